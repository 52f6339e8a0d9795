import random
import string
from datetime import datetime, timezone
from typing import Sequence

from galaxyair.booking import pricing
from galaxyair.booking.errors import BookingInvariantError
from galaxyair.schemas.booking import (
    BookingRecord,
    PassengerRecord,
    PaymentMethod,
    SearchCriteria,
    Selection,
)


def generate_booking_id(now: datetime | None = None) -> str:
    now = now or datetime.now(tz=timezone.utc)
    millis = int(now.timestamp() * 1000)
    return f"BK{millis}" + "".join(random.choices(string.ascii_uppercase + string.digits, k=5))


def build_booking(
    criteria: SearchCriteria,
    selection: Selection,
    passengers: Sequence[PassengerRecord],
    payment_method: PaymentMethod,
    *,
    user_id: int,
    booking_id: str | None = None,
    now: datetime | None = None,
) -> BookingRecord:
    """Assemble the confirmed booking from the flow's accumulated state.

    Call only right after a successful payment. Missing legs or a passenger
    list that does not match the party are programming errors and raise
    BookingInvariantError instead of producing an inconsistent record.
    The total is computed from exactly the offers passed in.
    """
    if selection.outbound is None:
        raise BookingInvariantError("cannot build a booking without an outbound leg")
    if criteria.is_round_trip and selection.return_flight is None:
        raise BookingInvariantError("round-trip booking is missing its return leg")
    if not criteria.is_round_trip and selection.return_flight is not None:
        raise BookingInvariantError("one-way booking carries a return leg")
    if len(passengers) != criteria.party_size:
        raise BookingInvariantError(
            f"expected {criteria.party_size} passenger(s), got {len(passengers)}"
        )

    now = now or datetime.now(tz=timezone.utc)
    return BookingRecord(
        id=booking_id or generate_booking_id(now),
        user_id=user_id,
        criteria=criteria,
        outbound=selection.outbound,
        return_flight=selection.return_flight,
        passengers=tuple(passengers),
        class_type=criteria.class_type,
        total_price=pricing.quote(criteria, selection),
        payment_method=payment_method,
        payment_status="completed",
        status="confirmed",
        created_at=now,
    )
