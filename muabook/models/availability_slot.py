from __future__ import annotations

import uuid
from datetime import datetime, time

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    Time,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from muabook.models.base import Base, TimestampMixin


class AvailabilitySlot(Base, TimestampMixin):
    """Open interval offered by a provider, weekly or on a single date.

    ``day_of_week`` uses 0 for Sunday through 6 for Saturday. ``specific_date``
    is a provider-local wall-clock timestamp, as are the HH:MM bounds.
    """

    __tablename__ = "availability_slots"
    __table_args__ = (
        CheckConstraint("end_time > start_time", name="time_order"),
        CheckConstraint(
            "(day_of_week IS NULL) <> (specific_date IS NULL)",
            name="weekday_xor_date",
        ),
        CheckConstraint(
            "day_of_week IS NULL OR (day_of_week >= 0 AND day_of_week <= 6)",
            name="weekday_range",
        ),
        CheckConstraint(
            "(recurring AND day_of_week IS NOT NULL) OR (NOT recurring AND day_of_week IS NULL)",
            name="recurring_matches_weekday",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    mua_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("mua_profiles.id", ondelete="CASCADE"), index=True, nullable=False
    )
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    day_of_week: Mapped[int | None] = mapped_column(Integer, nullable=True)
    specific_date: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    is_available: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    recurring: Mapped[bool] = mapped_column(Boolean, nullable=False)
