from __future__ import annotations

import enum
import uuid
from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from muabook.models.base import Base, TimestampMixin


class BookingStatus(str, enum.Enum):
    """Possible statuses for a booking lifecycle."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    NO_SHOW = "no_show"


class Booking(Base, TimestampMixin):
    """Customer reservation of a provider for ``duration_hours``."""

    __tablename__ = "bookings"
    __table_args__ = (
        CheckConstraint("duration_hours > 0", name="positive_duration"),
        CheckConstraint("price >= 0", name="non_negative_price"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    customer_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    mua_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("mua_profiles.id", ondelete="CASCADE"), index=True, nullable=False
    )
    service_type: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    event_date: Mapped[datetime] = mapped_column(DateTime, index=True, nullable=False)
    event_location: Mapped[str] = mapped_column(String(255), nullable=False)
    duration_hours: Mapped[int] = mapped_column(Integer, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    status: Mapped[BookingStatus] = mapped_column(
        Enum(
            BookingStatus,
            name="booking_status",
            values_callable=lambda e: [m.value for m in e],
        ),
        default=BookingStatus.PENDING,
        nullable=False,
    )
    deposit_amount: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    deposit_paid: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    final_payment_paid: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    @property
    def end_date(self) -> datetime:
        return self.event_date + timedelta(hours=self.duration_hours)
