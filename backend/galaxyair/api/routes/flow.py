"""Per-user booking flow endpoints.

Each handler loads the caller's flow, applies one transition and stores the
result while holding the caller's flow lock, so overlapping requests from one
user are applied one after the other. Errors raised by a transition propagate
before anything is stored, so a rejected request never changes the flow.
"""
from typing import Callable

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from galaxyair.api.deps import get_current_identity, get_flow_service
from galaxyair.booking.errors import InvalidTransition
from galaxyair.booking.flow import BookingFlow, FlowStep
from galaxyair.schemas.auth import Identity
from galaxyair.schemas.booking import PassengerPatch, PassengerRecord, PaymentDetails, SearchCriteria
from galaxyair.services.flow_service import BookingFlowService
from galaxyair.services.flow_store import FlowStore, get_flow_store

router = APIRouter()


class SelectBody(BaseModel):
    offer_id: str


class PassengersBody(BaseModel):
    passengers: list[PassengerRecord] | None = None


def flow_snapshot(flow: BookingFlow) -> dict:
    return {
        "step": flow.step.value,
        "criteria": flow.criteria.model_dump(mode="json") if flow.criteria else None,
        "outbound_flights": [v.model_dump(mode="json") for v in flow.outbound_choices()],
        "return_flights": [v.model_dump(mode="json") for v in flow.return_choices()],
        "selection": flow.selection.model_dump(mode="json"),
        "passengers": [p.model_dump() for p in flow.passengers],
        "total_price": flow.current_total,
        "quoted_total": flow.quoted_total,
        "booking": flow.booking.model_dump(mode="json") if flow.booking else None,
        "error": flow.last_error,
    }


def _apply(store: FlowStore, user_id: int, transition: Callable[[BookingFlow], BookingFlow]) -> dict:
    with store.lock(user_id):
        flow = transition(store.get(user_id))
        return flow_snapshot(store.save(user_id, flow))


@router.get("/")
def current_flow(identity: Identity = Depends(get_current_identity), store: FlowStore = Depends(get_flow_store)):
    return flow_snapshot(store.get(identity.user_id))


@router.post("/search")
def search(
    criteria: SearchCriteria,
    identity: Identity = Depends(get_current_identity),
    store: FlowStore = Depends(get_flow_store),
    service: BookingFlowService = Depends(get_flow_service),
):
    return _apply(store, identity.user_id, lambda flow: service.search(flow, criteria))


@router.post("/select/outbound")
def select_outbound(body: SelectBody, identity: Identity = Depends(get_current_identity), store: FlowStore = Depends(get_flow_store)):
    return _apply(store, identity.user_id, lambda flow: flow.select_outbound(body.offer_id))


@router.post("/select/return")
def select_return(body: SelectBody, identity: Identity = Depends(get_current_identity), store: FlowStore = Depends(get_flow_store)):
    return _apply(store, identity.user_id, lambda flow: flow.select_return(body.offer_id))


@router.post("/clear-outbound")
def clear_outbound(identity: Identity = Depends(get_current_identity), store: FlowStore = Depends(get_flow_store)):
    return _apply(store, identity.user_id, BookingFlow.clear_outbound)


@router.post("/passengers/start")
def start_passengers(identity: Identity = Depends(get_current_identity), store: FlowStore = Depends(get_flow_store)):
    return _apply(store, identity.user_id, BookingFlow.proceed_to_passengers)


@router.patch("/passengers/{index}")
def update_passenger(
    index: int,
    patch: PassengerPatch,
    identity: Identity = Depends(get_current_identity),
    store: FlowStore = Depends(get_flow_store),
):
    fields = patch.model_dump(exclude_unset=True)
    return _apply(store, identity.user_id, lambda flow: flow.update_passenger(index, **fields))


@router.post("/passengers")
def submit_passengers(
    body: PassengersBody | None = None,
    identity: Identity = Depends(get_current_identity),
    store: FlowStore = Depends(get_flow_store),
):
    with store.lock(identity.user_id):
        flow = store.get(identity.user_id)
        if body is not None and body.passengers is not None:
            # keep what the user typed even if validation below rejects it
            flow = store.save(identity.user_id, flow.replace_passengers(body.passengers))
        flow = flow.submit_passengers()
        return flow_snapshot(store.save(identity.user_id, flow))


def _step_back(flow: BookingFlow) -> BookingFlow:
    if flow.step is FlowStep.PAYING:
        return flow.back_to_passengers()
    if flow.step is FlowStep.ENTERING_PASSENGERS:
        return flow.back_to_review()
    if flow.step in (FlowStep.REVIEWING, FlowStep.SELECTING_RETURN):
        return flow.clear_outbound()
    raise InvalidTransition(flow.step.value, "go back")


@router.post("/back")
def step_back(identity: Identity = Depends(get_current_identity), store: FlowStore = Depends(get_flow_store)):
    return _apply(store, identity.user_id, _step_back)


@router.post("/pay")
def pay(
    details: PaymentDetails,
    identity: Identity = Depends(get_current_identity),
    store: FlowStore = Depends(get_flow_store),
    service: BookingFlowService = Depends(get_flow_service),
):
    """Charge and confirm. A second pay for the same flow waits for the first
    and is then rejected, because the flow is no longer in ``paying``."""
    return _apply(store, identity.user_id, lambda flow: service.pay(flow, details, identity.user_id))


@router.post("/restart")
def restart(identity: Identity = Depends(get_current_identity), store: FlowStore = Depends(get_flow_store)):
    with store.lock(identity.user_id):
        return flow_snapshot(store.reset(identity.user_id))
