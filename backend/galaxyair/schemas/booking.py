import datetime as dt
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from galaxyair.schemas.flight import CabinClass, FlightOffer

TripType = Literal["one-way", "round-trip"]
PaymentMethod = Literal["card", "digital", "bank"]
BookingStatus = Literal["confirmed", "cancelled", "completed"]


class PartyComposition(BaseModel):
    model_config = ConfigDict(frozen=True)

    adults: int = Field(1, ge=1, le=9)
    children: int = Field(0, ge=0, le=9)

    @property
    def size(self) -> int:
        return self.adults + self.children


class SearchCriteria(BaseModel):
    model_config = ConfigDict(frozen=True)

    origin: str = Field(..., min_length=2, description="City name or airport code")
    destination: str = Field(..., min_length=2, description="City name or airport code")
    depart_date: dt.date
    return_date: dt.date | None = None
    trip_type: TripType = "one-way"
    passengers: PartyComposition = PartyComposition()
    class_type: CabinClass = "economy"

    @model_validator(mode="after")
    def _check_return_date(self) -> "SearchCriteria":
        if self.trip_type == "round-trip":
            if self.return_date is None:
                raise ValueError("return_date is required for a round trip")
            if self.return_date < self.depart_date:
                raise ValueError("return_date must not be before depart_date")
        elif self.return_date is not None:
            raise ValueError("return_date is not allowed for a one-way trip")
        return self

    @property
    def party_size(self) -> int:
        return self.passengers.size

    @property
    def is_round_trip(self) -> bool:
        return self.trip_type == "round-trip"


class Selection(BaseModel):
    """The two leg slots of a trip; `return_flight` stays empty for one-way trips."""
    model_config = ConfigDict(frozen=True)

    outbound: FlightOffer | None = None
    return_flight: FlightOffer | None = None


class PassengerRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = ""
    phone: str = ""
    email: str = ""
    address: str = ""


class PassengerPatch(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str | None = None
    phone: str | None = None
    email: str | None = None
    address: str | None = None


class PaymentDetails(BaseModel):
    method: PaymentMethod = "card"
    card_number: str | None = None
    expiry: str | None = Field(None, description="MM/YY")
    cvv: str | None = None
    cardholder: str | None = None


class BookingRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    user_id: int
    criteria: SearchCriteria
    outbound: FlightOffer
    return_flight: FlightOffer | None = None
    passengers: tuple[PassengerRecord, ...]
    class_type: CabinClass
    total_price: float
    payment_method: PaymentMethod
    payment_status: str = "completed"
    status: BookingStatus = "confirmed"
    created_at: dt.datetime
