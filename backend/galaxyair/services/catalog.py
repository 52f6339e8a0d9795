"""Flight catalog: read side of the flights table as FlightOffer values."""
import datetime as dt

from sqlalchemy import or_
from sqlalchemy.orm import Session

from galaxyair.models.flight import Flight
from galaxyair.schemas.flight import CabinClass, FareBucket, FlightOffer


def offer_from_row(f: Flight) -> FlightOffer:
    return FlightOffer(
        id=f.id,
        flight_number=f.flight_number,
        origin=f.origin,
        origin_code=f.origin_code,
        destination=f.destination,
        destination_code=f.destination_code,
        departure=f.departure,
        arrival=f.arrival,
        duration=f.duration,
        aircraft=f.aircraft,
        date=f.date,
        stops=f.stops,
        economy=FareBucket(price=float(f.economy_price), available=f.economy_available),
        business=FareBucket(price=float(f.business_price), available=f.business_available),
        first=FareBucket(price=float(f.first_price), available=f.first_available),
    )


def search_flights(
    db: Session,
    origin: str,
    destination: str,
    date: dt.date,
    party_size: int,
    cabin: CabinClass,
) -> list[FlightOffer]:
    """Exact route and date match, limited to offers that can seat the party.

    Origin and destination may be given as city name or airport code.
    Nothing matching is an empty list, not an error.
    """
    origin = origin.strip()
    destination = destination.strip()
    seats_col = getattr(Flight, f"{cabin}_available")
    q = (
        db.query(Flight)
        .filter(or_(Flight.origin == origin, Flight.origin_code == origin.upper()))
        .filter(or_(Flight.destination == destination, Flight.destination_code == destination.upper()))
        .filter(Flight.date == date)
        .filter(seats_col >= party_size)
        .order_by(Flight.departure)
    )
    return [offer_from_row(f) for f in q.all()]


def list_offers(db: Session) -> list[FlightOffer]:
    return [offer_from_row(f) for f in db.query(Flight).order_by(Flight.date, Flight.departure).all()]


def get_offer(db: Session, offer_id: str) -> FlightOffer | None:
    f = db.get(Flight, offer_id)
    return offer_from_row(f) if f else None


def available_routes(db: Session) -> dict[str, list[str]]:
    """Origin city -> destinations served from it, in first-seen order."""
    routes: dict[str, list[str]] = {}
    for origin, destination in db.query(Flight.origin, Flight.destination).order_by(Flight.id).all():
        dests = routes.setdefault(origin, [])
        if destination not in dests:
            dests.append(destination)
    return routes
