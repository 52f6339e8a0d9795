"""Simulated card/wallet/bank payments. No money moves."""
import logging
import random
import string
from dataclasses import dataclass
from typing import Iterable

from galaxyair.core.config import settings
from galaxyair.schemas.booking import PaymentDetails

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PaymentResult:
    success: bool
    reference: str | None = None
    message: str | None = None


class MockPaymentGateway:
    """Approves every charge except those made with a configured decline card."""

    def __init__(self, decline_cards: Iterable[str] | None = None):
        cards = settings.payment_decline_cards if decline_cards is None else decline_cards
        self.decline_cards = {c.replace(" ", "") for c in cards}

    def charge(self, amount: float, details: PaymentDetails) -> PaymentResult:
        number = (details.card_number or "").replace(" ", "")
        if details.method == "card" and number in self.decline_cards:
            logger.info("mock payment declined for card ending %s", number[-4:])
            return PaymentResult(success=False, message="Payment was declined. Please try another card.")
        reference = "PAY" + "".join(random.choices(string.ascii_uppercase + string.digits, k=10))
        logger.info("mock payment %s approved: %.2f via %s", reference, amount, details.method)
        return PaymentResult(success=True, reference=reference)
