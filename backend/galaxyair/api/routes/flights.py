from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from galaxyair.booking import pricing
from galaxyair.db.session import get_db
from galaxyair.schemas.booking import SearchCriteria
from galaxyair.services import catalog

router = APIRouter()

@router.get("/")
def list_flights(db: Session = Depends(get_db)):
    return {"flights": [o.model_dump(mode="json") for o in catalog.list_offers(db)]}

@router.get("/routes")
def list_routes(db: Session = Depends(get_db)):
    return {"routes": catalog.available_routes(db)}

@router.post("/search")
def search_flights(criteria: SearchCriteria, db: Session = Depends(get_db)):
    """Stateless search; offers without enough seats are never returned here.

    For round trips the reversed route is searched on the return date.
    """
    party = criteria.party_size
    outbound = catalog.search_flights(db, criteria.origin, criteria.destination, criteria.depart_date, party, criteria.class_type)
    inbound = []
    if criteria.is_round_trip:
        inbound = catalog.search_flights(db, criteria.destination, criteria.origin, criteria.return_date, party, criteria.class_type)
    return {
        "flights": [v.model_dump(mode="json") for v in pricing.annotate(outbound, criteria.class_type, party)],
        "return_flights": [v.model_dump(mode="json") for v in pricing.annotate(inbound, criteria.class_type, party)],
    }

@router.get("/{flight_id}")
def flight_detail(flight_id: str, db: Session = Depends(get_db)):
    offer = catalog.get_offer(db, flight_id)
    if not offer:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Flight not found")
    return {"flight": offer.model_dump(mode="json")}
