import datetime as dt
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

CabinClass = Literal["economy", "business", "first"]
StopCategory = Literal["non-stop", "1-stop", "2-stops"]

_HHMM = r"^([01]\d|2[0-3]):[0-5]\d$"


class FareBucket(BaseModel):
    """Price and remaining seats for one cabin class on one flight."""
    model_config = ConfigDict(frozen=True)

    price: float = Field(..., ge=0)
    available: int = Field(..., ge=0)


class FlightOffer(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    flight_number: str
    origin: str
    origin_code: str
    destination: str
    destination_code: str
    departure: str = Field(..., pattern=_HHMM)
    arrival: str = Field(..., pattern=_HHMM)
    duration: str
    aircraft: str
    date: dt.date
    stops: StopCategory = "non-stop"
    economy: FareBucket
    business: FareBucket
    first: FareBucket

    def fare(self, cabin: CabinClass) -> FareBucket:
        return getattr(self, cabin)


class FlightCreate(BaseModel):
    id: str | None = Field(None, max_length=16, description="Defaults to GA + sequence")
    flight_number: str = Field(..., min_length=1, max_length=32)
    origin: str = Field(..., min_length=1)
    origin_code: str = Field(..., min_length=2, max_length=8)
    destination: str = Field(..., min_length=1)
    destination_code: str = Field(..., min_length=2, max_length=8)
    departure: str = Field(..., pattern=_HHMM)
    arrival: str = Field(..., pattern=_HHMM)
    duration: str
    aircraft: str
    date: dt.date
    stops: StopCategory = "non-stop"
    economy: FareBucket
    business: FareBucket
    first: FareBucket


class FlightUpdate(BaseModel):
    """Partial update; only the fields present are applied."""
    model_config = ConfigDict(extra="forbid")

    flight_number: str | None = None
    origin: str | None = None
    origin_code: str | None = None
    destination: str | None = None
    destination_code: str | None = None
    departure: str | None = Field(None, pattern=_HHMM)
    arrival: str | None = Field(None, pattern=_HHMM)
    duration: str | None = None
    aircraft: str | None = None
    date: dt.date | None = None
    stops: StopCategory | None = None
    economy: FareBucket | None = None
    business: FareBucket | None = None
    first: FareBucket | None = None


class OfferView(BaseModel):
    """A search result as presented: unselectable offers stay listed, flagged."""
    offer: FlightOffer
    unit_price: float
    selectable: bool
