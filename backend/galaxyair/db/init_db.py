import logging
from datetime import date

from galaxyair.db.session import engine, SessionLocal
from galaxyair.models import booking  # noqa: F401
from galaxyair.models import flight  # noqa: F401
from galaxyair.models import user  # noqa: F401
from galaxyair.models.base import Base
from galaxyair.models.flight import Flight
from galaxyair.models.user import User
from galaxyair.core.config import settings
from galaxyair.core.security import get_password_hash

logger = logging.getLogger(__name__)

# (id, from, to, from code, to code, dep, arr, duration, aircraft, date, (economy, business, first) as (price, available))
SAMPLE_FLIGHTS = [
    ("GA001", "New York", "Los Angeles", "JFK", "LAX", "08:00", "11:30", "5h 30m", "Boeing 777", date(2024, 1, 15),
     ((299, 120), (899, 24), (1599, 8))),
    ("GA002", "Los Angeles", "Miami", "LAX", "MIA", "14:15", "22:45", "4h 30m", "Airbus A320", date(2024, 1, 15),
     ((249, 150), (749, 20), (1299, 6))),
    ("GA003", "Chicago", "Seattle", "ORD", "SEA", "10:30", "12:45", "4h 15m", "Boeing 737", date(2024, 1, 15),
     ((199, 140), (649, 18), (1099, 4))),
    ("GA004", "Boston", "Denver", "BOS", "DEN", "16:20", "19:10", "4h 50m", "Airbus A321", date(2024, 1, 15),
     ((279, 135), (799, 22), (1399, 10))),
    ("GA005", "San Francisco", "New York", "SFO", "JFK", "07:45", "16:30", "5h 45m", "Boeing 787", date(2024, 1, 15),
     ((329, 160), (949, 28), (1699, 12))),
    ("GA006", "Miami", "Chicago", "MIA", "ORD", "09:15", "11:30", "3h 15m", "Boeing 737", date(2024, 1, 16),
     ((189, 130), (589, 16), (999, 6))),
]

def create_tables():
    Base.metadata.create_all(bind=engine)

def _sample_flight(row) -> Flight:
    fid, origin, dest, ocode, dcode, dep, arr, duration, aircraft, day, buckets = row
    (e_price, e_avail), (b_price, b_avail), (f_price, f_avail) = buckets
    return Flight(
        id=fid, flight_number=fid, origin=origin, destination=dest, origin_code=ocode, destination_code=dcode,
        departure=dep, arrival=arr, duration=duration, aircraft=aircraft, date=day, stops="non-stop",
        economy_price=e_price, economy_available=e_avail,
        business_price=b_price, business_available=b_avail,
        first_price=f_price, first_available=f_avail,
    )

def _ensure_user(db, email: str, password: str, full_name: str, role: str) -> User:
    u = db.query(User).filter(User.email == email).first()
    if not u:
        u = User(email=email, full_name=full_name, hashed_password=get_password_hash(password), role=role, is_active=True)
        db.add(u)
        db.commit()
        db.refresh(u)
        logger.info("[seed] created %s user %s", role, email)
    return u

def seed_demo_data():
    """Idempotent dev seed: admin and demo users plus the sample schedule."""
    db = SessionLocal()
    try:
        if settings.seed_sample_flights and db.query(Flight).count() == 0:
            db.add_all([_sample_flight(row) for row in SAMPLE_FLIGHTS])
            db.commit()
            logger.info("[seed] inserted %d sample flights", len(SAMPLE_FLIGHTS))

        admin_email = (settings.seed_admin_email or "admin@galaxy.com").lower()
        admin_pwd = settings.seed_admin_password or "Admin1234!"
        demo_email = (settings.seed_demo_email or "demo@galaxy.com").lower()
        demo_pwd = settings.seed_demo_password or "Demo1234!"

        _ensure_user(db, admin_email, admin_pwd, "Galaxy Admin", "admin")
        _ensure_user(db, demo_email, demo_pwd, "Demo User", "user")
    finally:
        db.close()
