"""Read-only calendar projections for a provider."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import and_, or_, select
from sqlalchemy.orm import Session

from muabook.core.errors import ValidationError
from muabook.models import AvailabilitySlot, Booking, BookingStatus, User
from muabook.services.availability import select_slots_for_date
from muabook.services.bookings import format_money
from muabook.services.time_utils import (
    ensure_utc,
    isoformat_utc,
    parse_range_bound,
    provider_timezone,
)

MAX_VIEW_DAYS = 92


@dataclass
class CalendarBooking:
    """A booking as shown on the provider calendar."""

    id: UUID
    customer_name: str
    customer_phone: str | None
    service_type: str
    start_time: datetime
    end_time: datetime
    status: BookingStatus
    location: str
    notes: str | None
    price: Decimal

    def as_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "service_type": self.service_type,
            "start_time": isoformat_utc(self.start_time),
            "end_time": isoformat_utc(self.end_time),
            "status": self.status.value,
            "location": self.location,
            "notes": self.notes,
            "price": format_money(self.price),
        }


@dataclass
class SlotOccurrence:
    """A concrete availability window on one local date."""

    slot_id: UUID
    day: date
    start_time: time
    end_time: time
    is_available: bool
    recurring: bool

    def as_dict(self, tz: tzinfo) -> dict[str, Any]:
        local_start = datetime.combine(self.day, self.start_time, tzinfo=tz)
        local_end = datetime.combine(self.day, self.end_time, tzinfo=tz)
        return {
            "slot_id": str(self.slot_id),
            "date": self.day.isoformat(),
            "start": local_start.isoformat(),
            "end": local_end.isoformat(),
            "start_utc": ensure_utc(local_start).isoformat(),
            "end_utc": ensure_utc(local_end).isoformat(),
            "is_available": self.is_available,
            "recurring": self.recurring,
        }


def get_calendar_bookings(
    db: Session,
    provider_id: UUID,
    start_date: str | None = None,
    end_date: str | None = None,
) -> list[CalendarBooking]:
    """Return the provider's bookings whose start lies within the bounds.

    Each bound is optional and applied on its own. A date-only ``end_date``
    covers that whole local day.
    """

    lower = parse_range_bound(start_date, end=False)
    upper = parse_range_bound(end_date, end=True)
    if lower is not None and upper is not None and upper <= lower:
        raise ValidationError("end_date must not be before start_date")

    stmt = (
        select(Booking, User)
        .join(User, Booking.customer_id == User.id)
        .where(Booking.mua_id == provider_id)
    )
    if lower is not None:
        stmt = stmt.where(Booking.event_date >= lower)
    if upper is not None:
        stmt = stmt.where(Booking.event_date < upper)
    stmt = stmt.order_by(Booking.event_date, Booking.id)

    return [
        CalendarBooking(
            id=booking.id,
            customer_name=customer.full_name,
            customer_phone=customer.phone_number,
            service_type=booking.service_type,
            start_time=booking.event_date,
            end_time=booking.end_date,
            status=booking.status,
            location=booking.event_location,
            notes=booking.description,
            price=booking.price,
        )
        for booking, customer in db.execute(stmt).all()
    ]


def _parse_view_day(value: str | None, field: str) -> date:
    if not value or not value.strip():
        raise ValidationError(f"{field} is required")
    try:
        return date.fromisoformat(value.strip())
    except ValueError as exc:
        raise ValidationError(f"Invalid {field}: {value!r}. Expected YYYY-MM-DD") from exc


def availability_occurrences(
    db: Session, provider_id: UUID, first_day: date, last_day: date
) -> list[SlotOccurrence]:
    """Expand slot definitions into per-day windows for ``first_day..last_day``."""

    range_start = datetime.combine(first_day, time.min)
    range_end = datetime.combine(last_day + timedelta(days=1), time.min)
    stmt = (
        select(AvailabilitySlot)
        .where(
            AvailabilitySlot.mua_id == provider_id,
            or_(
                AvailabilitySlot.day_of_week.is_not(None),
                and_(
                    AvailabilitySlot.specific_date >= range_start,
                    AvailabilitySlot.specific_date < range_end,
                ),
            ),
        )
        .order_by(AvailabilitySlot.start_time)
    )
    slots = db.execute(stmt).scalars().all()

    occurrences: list[SlotOccurrence] = []
    day = first_day
    while day <= last_day:
        for slot in select_slots_for_date(slots, day):
            occurrences.append(
                SlotOccurrence(
                    slot_id=slot.id,
                    day=day,
                    start_time=slot.start_time,
                    end_time=slot.end_time,
                    is_available=slot.is_available,
                    recurring=slot.recurring,
                )
            )
        day += timedelta(days=1)
    return occurrences


def get_calendar_view(
    db: Session, provider_id: UUID, start_date: str | None, end_date: str | None
) -> dict[str, Any]:
    """Return bookings and availability occurrences for a date range."""

    first_day = _parse_view_day(start_date, "start_date")
    last_day = _parse_view_day(end_date, "end_date")
    if last_day < first_day:
        raise ValidationError("end_date must not be before start_date")
    if (last_day - first_day).days + 1 > MAX_VIEW_DAYS:
        raise ValidationError(f"Calendar range is limited to {MAX_VIEW_DAYS} days")

    tz = provider_timezone()
    bookings = get_calendar_bookings(
        db, provider_id, first_day.isoformat(), last_day.isoformat()
    )
    occurrences = availability_occurrences(db, provider_id, first_day, last_day)
    return {
        "start_date": first_day.isoformat(),
        "end_date": last_day.isoformat(),
        "timezone": tz.key,
        "bookings": [item.as_dict() for item in bookings],
        "availability": [item.as_dict(tz) for item in occurrences],
    }
