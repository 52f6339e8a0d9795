from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session

from galaxyair.api.deps import get_current_identity
from galaxyair.db.session import get_db
from galaxyair.models.booking import Booking
from galaxyair.schemas.auth import Identity
from galaxyair.services import storage

router = APIRouter()

@router.get("/my")
def my_bookings(
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
    status_filter: str | None = Query(None, pattern="^(confirmed|cancelled|completed)$"),
    search: str | None = Query(None, description="Booking id, flight number, origin or destination"),
):
    records = storage.list_bookings(db, identity.user_id, status=status_filter, search=search)
    return {"bookings": [r.model_dump(mode="json") for r in records], "total": len(records)}

@router.get("/{booking_id}")
def get_booking(booking_id: str, db: Session = Depends(get_db), identity: Identity = Depends(get_current_identity)):
    record = storage.get_booking(db, booking_id)
    if not record:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found")
    if record.user_id != identity.user_id and not identity.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    return {"booking": record.model_dump(mode="json")}

@router.post("/{booking_id}/cancel")
def cancel_booking(booking_id: str, db: Session = Depends(get_db), identity: Identity = Depends(get_current_identity)):
    """Cancel a booking. Only the owner may cancel; cancelling twice is a no-op."""
    b = db.get(Booking, booking_id)
    if not b:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found")
    if b.user_id != identity.user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    record = storage.cancel_booking(db, b)
    return {"status": record.status}
