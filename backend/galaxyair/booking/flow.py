"""The booking flow state machine.

A ``BookingFlow`` is an immutable snapshot of one user's progress from search
to confirmed booking. Each transition validates its preconditions and returns a
new snapshot; on failure it raises and the caller keeps the snapshot it had.

    searching -> selecting_outbound -> [selecting_return] -> reviewing
      -> entering_passengers -> paying -> confirmed
"""
import logging
from enum import Enum
from typing import Iterable, Sequence

from pydantic import BaseModel, ConfigDict

from galaxyair.booking import pricing
from galaxyair.booking.errors import (
    AvailabilityConflict,
    BookingInvariantError,
    FieldValidationError,
    InvalidTransition,
    UnknownOffer,
)
from galaxyair.booking.validation import validate_passengers
from galaxyair.schemas.booking import (
    BookingRecord,
    PassengerRecord,
    SearchCriteria,
    Selection,
)
from galaxyair.schemas.flight import FlightOffer, OfferView

logger = logging.getLogger(__name__)


class FlowStep(str, Enum):
    SEARCHING = "searching"
    SELECTING_OUTBOUND = "selecting_outbound"
    SELECTING_RETURN = "selecting_return"
    REVIEWING = "reviewing"
    ENTERING_PASSENGERS = "entering_passengers"
    PAYING = "paying"
    CONFIRMED = "confirmed"


SEARCHABLE_STEPS = (
    FlowStep.SEARCHING,
    FlowStep.SELECTING_OUTBOUND,
    FlowStep.SELECTING_RETURN,
    FlowStep.REVIEWING,
)


class BookingFlow(BaseModel):
    model_config = ConfigDict(frozen=True)

    step: FlowStep = FlowStep.SEARCHING
    criteria: SearchCriteria | None = None
    outbound_offers: tuple[FlightOffer, ...] = ()
    return_offers: tuple[FlightOffer, ...] = ()
    selection: Selection = Selection()
    passengers: tuple[PassengerRecord, ...] = ()
    quoted_total: float | None = None
    booking: BookingRecord | None = None
    last_error: str | None = None

    @classmethod
    def start(cls) -> "BookingFlow":
        return cls()

    # -- helpers -----------------------------------------------------------

    def _require(self, action: str, *allowed: FlowStep) -> None:
        if self.step not in allowed:
            raise InvalidTransition(self.step.value, action)

    def _advance(self, step: FlowStep, **changes) -> "BookingFlow":
        logger.debug("booking flow %s -> %s", self.step.value, step.value)
        return self.model_copy(update={"step": step, "last_error": None, **changes})

    def _pick(self, offers: Iterable[FlightOffer], offer_id: str) -> FlightOffer:
        for offer in offers:
            if offer.id == offer_id:
                break
        else:
            raise UnknownOffer(f"Flight {offer_id} is not among the search results")
        cabin = self.criteria.class_type
        party = self.criteria.party_size
        if not pricing.is_selectable(offer, cabin, party):
            available = offer.fare(cabin).available
            raise AvailabilityConflict(
                f"Flight {offer.flight_number} has only {available} {cabin} seat(s) left for a party of {party}"
            )
        return offer

    # -- derived values ----------------------------------------------------

    @property
    def party_size(self) -> int:
        return self.criteria.party_size if self.criteria else 0

    @property
    def current_total(self) -> float | None:
        """Live price of the current selection, recomputed on every access."""
        if self.criteria is None or self.selection.outbound is None:
            return None
        return pricing.quote(self.criteria, self.selection)

    def outbound_choices(self) -> list[OfferView]:
        if self.criteria is None:
            return []
        return pricing.annotate(self.outbound_offers, self.criteria.class_type, self.party_size)

    def return_choices(self) -> list[OfferView]:
        if self.criteria is None:
            return []
        return pricing.annotate(self.return_offers, self.criteria.class_type, self.party_size)

    # -- transitions -------------------------------------------------------

    def search_resolved(
        self,
        criteria: SearchCriteria,
        outbound_offers: Sequence[FlightOffer],
        return_offers: Sequence[FlightOffer] = (),
    ) -> "BookingFlow":
        """Apply a completed catalog search. Any earlier selection is discarded."""
        self._require("search", *SEARCHABLE_STEPS)
        return self._advance(
            FlowStep.SELECTING_OUTBOUND,
            criteria=criteria,
            outbound_offers=tuple(outbound_offers),
            return_offers=tuple(return_offers) if criteria.is_round_trip else (),
            selection=Selection(),
            passengers=(),
            quoted_total=None,
        )

    def select_outbound(self, offer_id: str) -> "BookingFlow":
        self._require("select an outbound flight", FlowStep.SELECTING_OUTBOUND)
        offer = self._pick(self.outbound_offers, offer_id)
        next_step = FlowStep.SELECTING_RETURN if self.criteria.is_round_trip else FlowStep.REVIEWING
        return self._advance(next_step, selection=Selection(outbound=offer))

    def select_return(self, offer_id: str) -> "BookingFlow":
        self._require("select a return flight", FlowStep.SELECTING_RETURN)
        if self.selection.outbound is None:
            raise BookingInvariantError("selecting_return reached without an outbound leg")
        offer = self._pick(self.return_offers, offer_id)
        return self._advance(
            FlowStep.REVIEWING,
            selection=Selection(outbound=self.selection.outbound, return_flight=offer),
        )

    def clear_outbound(self) -> "BookingFlow":
        self._require(
            "change the outbound flight",
            FlowStep.SELECTING_OUTBOUND,
            FlowStep.SELECTING_RETURN,
            FlowStep.REVIEWING,
        )
        return self._advance(FlowStep.SELECTING_OUTBOUND, selection=Selection())

    def proceed_to_passengers(self) -> "BookingFlow":
        self._require("enter passengers", FlowStep.REVIEWING)
        blank = tuple(PassengerRecord() for _ in range(self.party_size))
        return self._advance(FlowStep.ENTERING_PASSENGERS, passengers=blank)

    def update_passenger(self, index: int, **fields: str) -> "BookingFlow":
        self._require("edit passengers", FlowStep.ENTERING_PASSENGERS)
        if not 0 <= index < len(self.passengers):
            raise FieldValidationError({f"passengers.{index}": "No such passenger"})
        changes = {k: v for k, v in fields.items() if v is not None}
        updated = list(self.passengers)
        updated[index] = updated[index].model_copy(update=changes)
        return self._advance(FlowStep.ENTERING_PASSENGERS, passengers=tuple(updated))

    def replace_passengers(self, passengers: Sequence[PassengerRecord]) -> "BookingFlow":
        self._require("edit passengers", FlowStep.ENTERING_PASSENGERS)
        if len(passengers) != self.party_size:
            raise FieldValidationError(
                {"passengers": f"Expected {self.party_size} passenger(s), got {len(passengers)}"}
            )
        return self._advance(FlowStep.ENTERING_PASSENGERS, passengers=tuple(passengers))

    def submit_passengers(self, passengers: Sequence[PassengerRecord] | None = None) -> "BookingFlow":
        """Validate every passenger and move to payment with the total frozen."""
        flow = self if passengers is None else self.replace_passengers(passengers)
        flow._require("submit passengers", FlowStep.ENTERING_PASSENGERS)
        errors = validate_passengers(flow.passengers)
        if errors:
            raise FieldValidationError(errors)
        return flow._advance(FlowStep.PAYING, quoted_total=pricing.quote(flow.criteria, flow.selection))

    def back_to_review(self) -> "BookingFlow":
        self._require("return to review", FlowStep.ENTERING_PASSENGERS)
        return self._advance(FlowStep.REVIEWING, passengers=())

    def back_to_passengers(self) -> "BookingFlow":
        self._require("return to passengers", FlowStep.PAYING)
        return self._advance(FlowStep.ENTERING_PASSENGERS, quoted_total=None)

    def payment_failed(self, message: str) -> "BookingFlow":
        self._require("record a payment failure", FlowStep.PAYING)
        logger.info("payment failed, staying in paying: %s", message)
        return self.model_copy(update={"last_error": message})

    def with_error(self, message: str) -> "BookingFlow":
        """Surface a recoverable collaborator failure without moving."""
        return self.model_copy(update={"last_error": message})

    def confirm(self, booking: BookingRecord) -> "BookingFlow":
        self._require("confirm a booking", FlowStep.PAYING)
        if booking.total_price != self.quoted_total:
            raise BookingInvariantError(
                f"booking total {booking.total_price} differs from quoted total {self.quoted_total}"
            )
        return self._advance(FlowStep.CONFIRMED, booking=booking)

    def restart(self) -> "BookingFlow":
        logger.debug("booking flow %s -> restart", self.step.value)
        return BookingFlow.start()

    def logout(self) -> "BookingFlow":
        return self.restart()
