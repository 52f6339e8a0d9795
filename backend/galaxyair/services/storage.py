"""Persistence of bookings and flight mutations."""
import logging
from datetime import datetime, timezone

from sqlalchemy import func, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from galaxyair.booking.errors import SeatsExhausted, StorageUnavailable
from galaxyair.models.booking import Booking
from galaxyair.models.flight import CABIN_CLASSES, Flight
from galaxyair.schemas.booking import BookingRecord
from galaxyair.schemas.flight import FlightCreate, FlightOffer, FlightUpdate
from galaxyair.services.catalog import offer_from_row

logger = logging.getLogger(__name__)

_SNAPSHOT_FIELDS = {"criteria", "outbound", "return_flight", "passengers"}


def booking_from_row(b: Booking) -> BookingRecord:
    created = b.created_at
    if created.tzinfo is None:
        created = created.replace(tzinfo=timezone.utc)
    return BookingRecord(
        id=b.id,
        user_id=b.user_id,
        class_type=b.class_type,
        total_price=float(b.total_price),
        payment_method=b.payment_method,
        payment_status=b.payment_status,
        status=b.status,
        created_at=created,
        **b.details,
    )


def _take_seats(db: Session, flight_id: str, cabin: str, qty: int) -> bool:
    # Atomic seat decrement using UPDATE ... WHERE ... RETURNING to avoid race conditions
    col = f"{cabin}_available"
    row = db.execute(
        text(
            f"""
            UPDATE flights
            SET {col} = {col} - :qty
            WHERE id = :fid AND {col} >= :qty
            RETURNING {col}
            """
        ),
        {"qty": qty, "fid": flight_id},
    ).fetchone()
    return row is not None


def create_booking(db: Session, record: BookingRecord) -> BookingRecord:
    """Consume seats on every leg and store the booking in one transaction.

    Raises SeatsExhausted if a bucket sold out after selection (nothing is
    stored) and StorageUnavailable on database failure.
    """
    if record.class_type not in CABIN_CLASSES:
        raise ValueError(f"unknown cabin class {record.class_type!r}")
    qty = len(record.passengers)
    legs = [record.outbound] + ([record.return_flight] if record.return_flight else [])
    try:
        for leg in legs:
            if not _take_seats(db, leg.id, record.class_type, qty):
                db.rollback()
                raise SeatsExhausted(
                    f"Not enough {record.class_type} seats left on flight {leg.flight_number}"
                )
        created_at = record.created_at.astimezone(timezone.utc).replace(tzinfo=None)
        db.add(
            Booking(
                id=record.id,
                user_id=record.user_id,
                outbound_flight_id=record.outbound.id,
                return_flight_id=record.return_flight.id if record.return_flight else None,
                class_type=record.class_type,
                passenger_count=qty,
                total_price=record.total_price,
                payment_method=record.payment_method,
                payment_status=record.payment_status,
                status=record.status,
                created_at=created_at,
                details=record.model_dump(mode="json", include=_SNAPSHOT_FIELDS),
            )
        )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("failed to store booking %s", record.id, exc_info=True)
        raise StorageUnavailable("Could not save your booking, please try again") from exc
    logger.info(
        "booking %s stored: user=%s legs=%s passengers=%d total=%.2f",
        record.id, record.user_id, [leg.id for leg in legs], qty, record.total_price,
    )
    return record


def get_booking(db: Session, booking_id: str) -> BookingRecord | None:
    b = db.get(Booking, booking_id)
    return booking_from_row(b) if b else None


def list_bookings(
    db: Session,
    user_id: int,
    status: str | None = None,
    search: str | None = None,
) -> list[BookingRecord]:
    """A user's bookings, newest first.

    ``search`` matches booking id, outbound flight number, origin or
    destination, case-insensitively.
    """
    q = db.query(Booking).filter(Booking.user_id == user_id)
    if status:
        q = q.filter(Booking.status == status)
    records = [booking_from_row(b) for b in q.order_by(Booking.created_at.desc()).all()]
    if search:
        term = search.strip().lower()
        records = [
            r for r in records
            if term in r.id.lower()
            or term in r.outbound.flight_number.lower()
            or term in r.criteria.origin.lower()
            or term in r.criteria.destination.lower()
        ]
    return records


def cancel_booking(db: Session, b: Booking) -> BookingRecord:
    """Cancel a confirmed booking and give its seats back. Idempotent."""
    if b.status != "confirmed":
        return booking_from_row(b)
    for flight_id in filter(None, [b.outbound_flight_id, b.return_flight_id]):
        f = db.get(Flight, flight_id)
        if f is not None:
            col = f"{b.class_type}_available"
            setattr(f, col, getattr(f, col) + b.passenger_count)
    b.status = "cancelled"
    db.commit()
    db.refresh(b)
    logger.info("booking %s cancelled", b.id)
    return booking_from_row(b)


def _next_flight_id(db: Session) -> str:
    n = (db.query(func.count(Flight.id)).scalar() or 0) + 1
    while db.get(Flight, f"GA{n:03d}") is not None:
        n += 1
    return f"GA{n:03d}"


def create_flight(db: Session, payload: FlightCreate) -> FlightOffer:
    flight_id = payload.id or _next_flight_id(db)
    if db.get(Flight, flight_id) is not None:
        raise ValueError(f"Flight {flight_id} already exists")
    data = payload.model_dump(exclude={"id", "economy", "business", "first"})
    f = Flight(id=flight_id, **data)
    for cabin in CABIN_CLASSES:
        bucket = getattr(payload, cabin)
        setattr(f, f"{cabin}_price", bucket.price)
        setattr(f, f"{cabin}_available", bucket.available)
    db.add(f)
    db.commit()
    db.refresh(f)
    logger.info("flight %s created (%s %s->%s on %s)", f.id, f.flight_number, f.origin_code, f.destination_code, f.date)
    return offer_from_row(f)


def update_flight(db: Session, flight_id: str, patch: FlightUpdate) -> FlightOffer | None:
    f = db.get(Flight, flight_id)
    if not f:
        return None
    changes = patch.model_dump(exclude_unset=True)
    for cabin in CABIN_CLASSES:
        bucket = changes.pop(cabin, None)
        if bucket is not None:
            setattr(f, f"{cabin}_price", bucket["price"])
            setattr(f, f"{cabin}_available", bucket["available"])
    for key, value in changes.items():
        if value is not None:
            setattr(f, key, value)
    db.commit()
    db.refresh(f)
    logger.info("flight %s updated: %s", f.id, sorted(patch.model_dump(exclude_unset=True)))
    return offer_from_row(f)


def aggregate_analytics(db: Session) -> dict:
    """Revenue and occupancy figures derived from stored, non-cancelled bookings."""
    bookings = [booking_from_row(b) for b in db.query(Booking).filter(Booking.status != "cancelled").all()]
    flights = db.query(Flight).order_by(Flight.id).all()

    total_revenue = 0.0
    per_class_revenue = {cabin: 0.0 for cabin in CABIN_CLASSES}
    per_flight: dict[str, dict] = {
        f.id: {"bookings": 0, "passengers": 0, "revenue": 0.0} for f in flights
    }
    for r in bookings:
        total_revenue += r.total_price
        per_class_revenue[r.class_type] += r.total_price
        for leg in filter(None, [r.outbound, r.return_flight]):
            stats = per_flight.setdefault(leg.id, {"bookings": 0, "passengers": 0, "revenue": 0.0})
            stats["bookings"] += 1
            stats["passengers"] += len(r.passengers)
            stats["revenue"] += leg.fare(r.class_type).price * len(r.passengers)

    flight_stats = []
    for f in flights:
        stats = per_flight[f.id]
        remaining = f.economy_available + f.business_available + f.first_available
        sold = stats["passengers"]
        capacity = sold + remaining
        flight_stats.append({
            "flight_id": f.id,
            "flight_number": f.flight_number,
            "bookings": stats["bookings"],
            "passengers": sold,
            "seats_remaining": remaining,
            "occupancy_rate": round(sold / capacity * 100, 1) if capacity else 0.0,
            "revenue": round(stats["revenue"], 2),
        })

    total_bookings = len(bookings)
    return {
        "total_revenue": round(total_revenue, 2),
        "total_bookings": total_bookings,
        "per_class_revenue": {k: round(v, 2) for k, v in per_class_revenue.items()},
        "average_booking_value": round(total_revenue / total_bookings, 2) if total_bookings else 0.0,
        "per_flight_stats": flight_stats,
        "generated_at": datetime.now(tz=timezone.utc).isoformat(),
    }
