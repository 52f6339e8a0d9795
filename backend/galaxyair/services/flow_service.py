import logging
import time
from typing import Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from tenacity import (RetryCallState, Retrying, retry_if_exception_type,
                      stop_after_attempt, wait_exponential)

from galaxyair.booking.builder import build_booking
from galaxyair.booking.errors import (
    CatalogUnavailable,
    FieldValidationError,
    InvalidTransition,
    SeatsExhausted,
    StorageUnavailable,
)
from galaxyair.booking.flow import SEARCHABLE_STEPS, BookingFlow, FlowStep
from galaxyair.booking.validation import validate_payment
from galaxyair.core.config import settings
from galaxyair.schemas.booking import PaymentDetails, SearchCriteria
from galaxyair.schemas.flight import FlightOffer
from galaxyair.services import catalog, storage
from galaxyair.services.payment import MockPaymentGateway

logger = logging.getLogger(__name__)


class BookingFlowService:
    """Runs the collaborator calls a flow step depends on, then applies it.

    A transition is applied only after its catalog, payment or storage call
    has returned; when the call fails the caller's flow is left as it was.
    """

    def __init__(
        self,
        db: Session,
        gateway: MockPaymentGateway | None = None,
        search_fn: Callable[..., list[FlightOffer]] = catalog.search_flights,
        retry_attempts: int | None = None,
        retry_backoff: float | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.db = db
        self.gateway = gateway or MockPaymentGateway()
        self._search_fn = search_fn
        self.retry_attempts = settings.catalog_retry_attempts if retry_attempts is None else retry_attempts
        self.retry_backoff = settings.catalog_retry_backoff_seconds if retry_backoff is None else retry_backoff
        self._sleep = sleep

    def _search_with_retry(self, origin: str, destination: str, date, criteria: SearchCriteria) -> list[FlightOffer]:
        attempts = 1 + self.retry_attempts

        def before_sleep(retry_state: RetryCallState) -> None:
            self.db.rollback()
            logger.warning("flight search %s->%s failed (attempt %d/%d), retrying in %.2fs: %s",
                           origin, destination, retry_state.attempt_number, attempts,
                           retry_state.next_action.sleep, retry_state.outcome.exception())

        retrying = Retrying(
            stop=stop_after_attempt(attempts),
            wait=wait_exponential(multiplier=self.retry_backoff),
            retry=retry_if_exception_type(SQLAlchemyError),
            sleep=self._sleep,
            before_sleep=before_sleep,
            reraise=True,
        )
        try:
            return retrying(
                self._search_fn, self.db, origin, destination, date, criteria.party_size, criteria.class_type
            )
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("flight search %s->%s failed after %d attempt(s)", origin, destination, attempts, exc_info=True)
            raise CatalogUnavailable("Flight search is temporarily unavailable, please try again") from exc

    def search(self, flow: BookingFlow, criteria: SearchCriteria) -> BookingFlow:
        if flow.step not in SEARCHABLE_STEPS:
            raise InvalidTransition(flow.step.value, "search")
        outbound = self._search_with_retry(criteria.origin, criteria.destination, criteria.depart_date, criteria)
        inbound: list[FlightOffer] = []
        if criteria.is_round_trip:
            # The reversed route may simply not be served; no return flights is a valid answer
            inbound = self._search_with_retry(criteria.destination, criteria.origin, criteria.return_date, criteria)
        logger.info("search %s->%s on %s: %d outbound, %d return offer(s)",
                    criteria.origin, criteria.destination, criteria.depart_date, len(outbound), len(inbound))
        return flow.search_resolved(criteria, outbound, inbound)

    def pay(self, flow: BookingFlow, details: PaymentDetails, user_id: int) -> BookingFlow:
        """Charge the quoted total and, on success, store and confirm the booking.

        A declined payment or a storage failure keeps the flow in ``paying``
        with ``last_error`` set so the user can try again.
        """
        if flow.step is not FlowStep.PAYING:
            raise InvalidTransition(flow.step.value, "pay")
        errors = validate_payment(details)
        if errors:
            raise FieldValidationError(errors)

        result = self.gateway.charge(flow.quoted_total, details)
        if not result.success:
            return flow.payment_failed(result.message or "Payment failed. Please try again.")

        record = build_booking(
            flow.criteria, flow.selection, flow.passengers, details.method, user_id=user_id
        )
        try:
            storage.create_booking(self.db, record)
        except (SeatsExhausted, StorageUnavailable) as exc:
            logger.warning("charge %s of %.2f has no booking behind it and must be refunded: %s",
                           result.reference, flow.quoted_total, exc.message)
            return flow.with_error(exc.message)
        return flow.confirm(record)
