from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from galaxyair.api.deps import require_roles
from galaxyair.db.session import get_db
from galaxyair.models.booking import Booking
from galaxyair.schemas.flight import FlightCreate, FlightUpdate
from galaxyair.services import storage

router = APIRouter(dependencies=[Depends(require_roles("admin"))])


@router.post("/flights", status_code=201)
def create_flight(payload: FlightCreate, db: Session = Depends(get_db)):
    try:
        offer = storage.create_flight(db, payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    return {"flight": offer.model_dump(mode="json"), "message": "Flight added successfully"}


@router.put("/flights/{flight_id}")
def update_flight(flight_id: str, payload: FlightUpdate, db: Session = Depends(get_db)):
    offer = storage.update_flight(db, flight_id, payload)
    if not offer:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Flight not found")
    return {"flight": offer.model_dump(mode="json"), "message": "Flight updated successfully"}


@router.get("/analytics", response_model=dict)
def analytics(db: Session = Depends(get_db)):
    """Revenue and occupancy computed from stored bookings.

    Response:
        total_revenue, total_bookings, per_class_revenue{economy,business,first},
        average_booking_value, per_flight_stats[{flight_id, flight_number,
        bookings, passengers, seats_remaining, occupancy_rate, revenue}]
    """
    return storage.aggregate_analytics(db)


@router.get("/bookings", response_model=dict)
def list_all_bookings(
    page: int = Query(1, ge=1),
    page_size: int = Query(25, ge=1, le=200),
    status_filter: str | None = Query(None, pattern="^(confirmed|cancelled|completed)$"),
    db: Session = Depends(get_db),
):
    q = db.query(Booking)
    if status_filter:
        q = q.filter(Booking.status == status_filter)
    total = q.count()
    offset = (page - 1) * page_size
    rows = q.order_by(Booking.created_at.desc()).offset(offset).limit(page_size).all()
    pages = (total + page_size - 1) // page_size if total else 1
    return {
        "items": [storage.booking_from_row(b).model_dump(mode="json") for b in rows],
        "total": total,
        "page": page,
        "page_size": page_size,
        "pages": pages,
    }
