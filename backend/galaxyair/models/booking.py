from sqlalchemy import String, Integer, ForeignKey, DateTime, Numeric, JSON
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime

from galaxyair.models.base import Base

class Booking(Base):
    __tablename__ = "bookings"

    id: Mapped[str] = mapped_column(String(40), primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), index=True)
    outbound_flight_id: Mapped[str] = mapped_column(String(16), ForeignKey("flights.id"), index=True)
    return_flight_id: Mapped[str | None] = mapped_column(String(16), ForeignKey("flights.id"), nullable=True)
    class_type: Mapped[str] = mapped_column(String(16))
    passenger_count: Mapped[int] = mapped_column(Integer)
    total_price: Mapped[float] = mapped_column(Numeric(10, 2))
    payment_method: Mapped[str] = mapped_column(String(16))
    payment_status: Mapped[str] = mapped_column(String(16), default="completed")
    status: Mapped[str] = mapped_column(String(16), default="confirmed")  # confirmed, cancelled, completed
    created_at: Mapped[datetime] = mapped_column(DateTime, index=True)
    # Snapshot of criteria, legs and passengers as they were at booking time
    details: Mapped[dict] = mapped_column(JSON)
