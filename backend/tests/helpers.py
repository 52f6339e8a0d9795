import datetime as dt
import uuid

from galaxyair.core.security import get_password_hash
from galaxyair.db.session import SessionLocal
from galaxyair.models.flight import Flight
from galaxyair.models.user import User
from galaxyair.schemas.booking import PassengerRecord, SearchCriteria
from galaxyair.schemas.flight import FareBucket, FlightOffer

VALID_PASSENGER = PassengerRecord(
    name="Jane Doe",
    phone="+1 555-123-4567",
    email="jane@example.com",
    address="123 Main St, Springfield, IL 62704",
)

CARD = {
    "method": "card",
    "card_number": "4242 4242 4242 4242",
    "expiry": "12/30",
    "cvv": "123",
    "cardholder": "Jane Doe",
}


def make_offer(
    offer_id: str = "GA001",
    origin_code: str = "JFK",
    destination_code: str = "LAX",
    date: dt.date = dt.date(2024, 1, 15),
    economy=(299, 120),
    business=(899, 24),
    first=(1599, 8),
) -> FlightOffer:
    return FlightOffer(
        id=offer_id,
        flight_number=offer_id,
        origin=origin_code,
        origin_code=origin_code,
        destination=destination_code,
        destination_code=destination_code,
        departure="08:00",
        arrival="11:30",
        duration="5h 30m",
        aircraft="Boeing 777",
        date=date,
        stops="non-stop",
        economy=FareBucket(price=economy[0], available=economy[1]),
        business=FareBucket(price=business[0], available=business[1]),
        first=FareBucket(price=first[0], available=first[1]),
    )


def make_criteria(trip_type="one-way", adults=2, children=0, class_type="economy", **overrides) -> SearchCriteria:
    data = {
        "origin": "JFK",
        "destination": "LAX",
        "depart_date": "2024-01-15",
        "trip_type": trip_type,
        "passengers": {"adults": adults, "children": children},
        "class_type": class_type,
    }
    if trip_type == "round-trip":
        data["return_date"] = "2024-01-20"
    data.update(overrides)
    return SearchCriteria.model_validate(data)


def unique_code() -> str:
    return "X" + uuid.uuid4().hex[:5].upper()


def seed_flight(
    origin_code: str,
    destination_code: str,
    date: dt.date = dt.date(2024, 1, 15),
    economy=(299, 120),
    business=(899, 24),
    first=(1599, 8),
    flight_id: str | None = None,
) -> str:
    flight_id = flight_id or "T" + uuid.uuid4().hex[:10].upper()
    db = SessionLocal()
    f = Flight(
        id=flight_id,
        flight_number=flight_id[:8],
        origin=f"City {origin_code}",
        origin_code=origin_code,
        destination=f"City {destination_code}",
        destination_code=destination_code,
        departure="08:00",
        arrival="11:30",
        duration="5h 30m",
        aircraft="Boeing 777",
        date=date,
        stops="non-stop",
        economy_price=economy[0],
        economy_available=economy[1],
        business_price=business[0],
        business_available=business[1],
        first_price=first[0],
        first_available=first[1],
    )
    db.add(f)
    db.commit()
    db.close()
    return flight_id


def ensure_user(email: str, password: str = "testpass", role: str = "user") -> int:
    db = SessionLocal()
    u = db.query(User).filter(User.email == email).first()
    if not u:
        u = User(email=email, full_name=email.split("@")[0], hashed_password=get_password_hash(password), role=role, is_active=True)
        db.add(u)
        db.commit()
        db.refresh(u)
    uid = u.id
    db.close()
    return uid
