from sqlalchemy import CheckConstraint, String, Integer, Date, Numeric
from sqlalchemy.orm import Mapped, mapped_column
import datetime as dt

from galaxyair.models.base import Base

CABIN_CLASSES = ("economy", "business", "first")

class Flight(Base):
    __tablename__ = "flights"
    __table_args__ = (
        CheckConstraint("economy_available >= 0", name="ck_flights_economy_available"),
        CheckConstraint("business_available >= 0", name="ck_flights_business_available"),
        CheckConstraint("first_available >= 0", name="ck_flights_first_available"),
    )

    id: Mapped[str] = mapped_column(String(16), primary_key=True)
    flight_number: Mapped[str] = mapped_column(String(32), index=True)
    origin: Mapped[str] = mapped_column(String(120), index=True)
    origin_code: Mapped[str] = mapped_column(String(8), index=True)
    destination: Mapped[str] = mapped_column(String(120), index=True)
    destination_code: Mapped[str] = mapped_column(String(8), index=True)
    # Scheduled local times "HH:MM" on the service date
    departure: Mapped[str] = mapped_column(String(5))
    arrival: Mapped[str] = mapped_column(String(5))
    duration: Mapped[str] = mapped_column(String(32))
    aircraft: Mapped[str] = mapped_column(String(64))
    date: Mapped[dt.date] = mapped_column(Date, index=True)
    stops: Mapped[str] = mapped_column(String(16), default="non-stop")  # non-stop | 1-stop | 2-stops
    # Fare buckets, one price/availability pair per cabin class
    economy_price: Mapped[float] = mapped_column(Numeric(10, 2))
    economy_available: Mapped[int] = mapped_column(Integer)
    business_price: Mapped[float] = mapped_column(Numeric(10, 2))
    business_available: Mapped[int] = mapped_column(Integer)
    first_price: Mapped[float] = mapped_column(Numeric(10, 2))
    first_available: Mapped[int] = mapped_column(Integer)
