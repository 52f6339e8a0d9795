import re
from typing import Sequence

from galaxyair.schemas.booking import PassengerRecord, PaymentDetails

PHONE_RE = re.compile(r"^\+?[\d\s\-()]{10,}$")
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
EXPIRY_RE = re.compile(r"^(0[1-9]|1[0-2])/\d{2}$")

MIN_NAME_LENGTH = 2
MIN_ADDRESS_LENGTH = 10


def passenger_errors(passenger: PassengerRecord, prefix: str = "") -> dict[str, str]:
    """Per-field problems for one passenger; empty when the record is complete."""
    errors: dict[str, str] = {}
    name = passenger.name.strip()
    phone = passenger.phone.strip()
    email = passenger.email.strip()
    address = passenger.address.strip()

    if not name:
        errors[prefix + "name"] = "Name is required"
    elif len(name) < MIN_NAME_LENGTH:
        errors[prefix + "name"] = "Name must be at least 2 characters"

    if not phone:
        errors[prefix + "phone"] = "Phone number is required"
    elif not PHONE_RE.match(phone):
        errors[prefix + "phone"] = "Please enter a valid phone number"

    if not email:
        errors[prefix + "email"] = "Email is required"
    elif not EMAIL_RE.match(email):
        errors[prefix + "email"] = "Please enter a valid email address"

    if not address:
        errors[prefix + "address"] = "Address is required"
    elif len(address) < MIN_ADDRESS_LENGTH:
        errors[prefix + "address"] = "Please provide a complete address"
    return errors


def validate_passengers(passengers: Sequence[PassengerRecord]) -> dict[str, str]:
    errors: dict[str, str] = {}
    for index, passenger in enumerate(passengers):
        errors.update(passenger_errors(passenger, prefix=f"passengers.{index}."))
    return errors


def validate_payment(details: PaymentDetails) -> dict[str, str]:
    """Only card payments carry fields; digital wallets and bank transfer need none."""
    errors: dict[str, str] = {}
    if details.method != "card":
        return errors

    number = (details.card_number or "").replace(" ", "")
    if not number:
        errors["payment.card_number"] = "Card number is required"
    elif not number.isdigit() or not 16 <= len(number) <= 19:
        errors["payment.card_number"] = "Please enter a valid card number"

    expiry = (details.expiry or "").strip()
    if not expiry:
        errors["payment.expiry"] = "Expiry date is required"
    elif not EXPIRY_RE.match(expiry):
        errors["payment.expiry"] = "Please enter MM/YY format"

    cvv = (details.cvv or "").strip()
    if not cvv:
        errors["payment.cvv"] = "CVV is required"
    elif not cvv.isdigit() or not 3 <= len(cvv) <= 4:
        errors["payment.cvv"] = "Please enter a valid CVV"

    if not (details.cardholder or "").strip():
        errors["payment.cardholder"] = "Cardholder name is required"
    return errors
