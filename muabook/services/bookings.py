"""Booking creation, listing and the status state machine."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from muabook.core.errors import (
    Conflict,
    InvalidTransition,
    NotFound,
    Unauthorized,
    ValidationError,
)
from muabook.metrics import BOOKINGS_COUNTER
from muabook.models import Booking, BookingStatus, ProviderProfile
from muabook.services.availability import is_open
from muabook.services.identity import (
    find_provider_profile_id,
    get_actor,
    is_provider,
    resolve_provider_profile,
)
from muabook.services.time_utils import (
    ensure_utc,
    isoformat_utc,
    parse_event_timestamp,
    to_naive_utc,
)

logger = logging.getLogger(__name__)

MAX_DURATION_HOURS = 24
ACTIVE_STATUSES = (BookingStatus.PENDING, BookingStatus.CONFIRMED)

TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING: frozenset(
        {BookingStatus.CONFIRMED, BookingStatus.CANCELLED, BookingStatus.NO_SHOW}
    ),
    BookingStatus.CONFIRMED: frozenset(
        {BookingStatus.COMPLETED, BookingStatus.CANCELLED, BookingStatus.NO_SHOW}
    ),
    BookingStatus.CANCELLED: frozenset(),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.NO_SHOW: frozenset(),
}

# Fits Numeric(10, 2): up to eight integer digits, at most two decimals.
_MONEY_PATTERN = re.compile(r"\d{1,8}(\.\d{1,2})?")


@dataclass
class BookingRequest:
    """Customer booking request with unparsed client values."""

    mua_id: UUID
    service_type: str
    event_date: str
    event_location: str
    duration_hours: int
    price: str
    description: str | None = None
    deposit_amount: str | None = None


def parse_money(value: Any, field: str) -> Decimal:
    """Parse a non-negative decimal string with at most two fractional digits."""

    if not isinstance(value, str) or not _MONEY_PATTERN.fullmatch(value.strip()):
        raise ValidationError(f"Invalid {field}: {value!r}")
    return Decimal(value.strip())


def _parse_duration(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError("duration_hours must be an integer")
    if not 1 <= value <= MAX_DURATION_HOURS:
        raise ValidationError(
            f"duration_hours must be between 1 and {MAX_DURATION_HOURS}"
        )
    return value


def _lock_profile(db: Session, profile_id: UUID) -> UUID | None:
    stmt = (
        select(ProviderProfile.id)
        .where(ProviderProfile.id == profile_id)
        .with_for_update()
    )
    return db.execute(stmt).scalar_one_or_none()


def has_overlap(db: Session, provider_id: UUID, start: datetime, end: datetime) -> bool:
    """Return whether an active booking of the provider intersects ``[start, end)``."""

    # Durations are capped, so earlier starts than this cannot reach ``start``.
    earliest = start - timedelta(hours=MAX_DURATION_HOURS)
    stmt = select(Booking).where(
        Booking.mua_id == provider_id,
        Booking.status.in_(ACTIVE_STATUSES),
        Booking.event_date > to_naive_utc(earliest),
        Booking.event_date < to_naive_utc(end),
    )
    return any(
        ensure_utc(booking.end_date) > start
        for booking in db.execute(stmt).scalars()
    )


def create_booking(db: Session, customer_id: UUID, request: BookingRequest) -> Booking:
    """Create a pending booking once the provider is free for the interval.

    The provider profile row is locked for the rest of the transaction so two
    requests for the same provider cannot both pass the availability and
    overlap checks.
    """

    actor = get_actor(db, customer_id)
    if is_provider(actor):
        raise Unauthorized("Only customers can create bookings")

    start = parse_event_timestamp(request.event_date)
    duration = _parse_duration(request.duration_hours)
    price = parse_money(request.price, "price")
    deposit = (
        parse_money(request.deposit_amount, "deposit_amount")
        if request.deposit_amount is not None
        else None
    )
    if not request.service_type or not request.service_type.strip():
        raise ValidationError("service_type is required")
    if not request.event_location or not request.event_location.strip():
        raise ValidationError("event_location is required")
    end = start + timedelta(hours=duration)

    if _lock_profile(db, request.mua_id) is None:
        raise NotFound("MUA not found")

    if not is_open(db, request.mua_id, start, end):
        BOOKINGS_COUNTER.labels(outcome="unavailable").inc()
        raise Conflict("MUA is not available at the requested time")
    if has_overlap(db, request.mua_id, start, end):
        BOOKINGS_COUNTER.labels(outcome="overlap").inc()
        raise Conflict("MUA already has a booking at the requested time")

    booking = Booking(
        customer_id=actor.id,
        mua_id=request.mua_id,
        service_type=request.service_type.strip(),
        description=request.description,
        event_date=to_naive_utc(start),
        event_location=request.event_location.strip(),
        duration_hours=duration,
        price=price,
        deposit_amount=deposit,
        status=BookingStatus.PENDING,
        deposit_paid=False,
        final_payment_paid=False,
    )
    db.add(booking)
    db.flush()

    BOOKINGS_COUNTER.labels(outcome="created").inc()
    logger.info(
        "booking created",
        extra={
            "booking_id": str(booking.id),
            "mua_id": str(request.mua_id),
            "event_date": start.isoformat(),
            "duration_hours": duration,
        },
    )
    return booking


def list_bookings(db: Session, actor_id: UUID) -> list[Booking]:
    """Return the bookings visible to the actor, newest first."""

    actor = get_actor(db, actor_id)
    stmt = select(Booking)
    if is_provider(actor):
        stmt = stmt.where(Booking.mua_id == resolve_provider_profile(db, actor.id))
    else:
        stmt = stmt.where(Booking.customer_id == actor.id)
    stmt = stmt.order_by(Booking.created_at.desc(), Booking.id)
    return list(db.execute(stmt).scalars().all())


def update_status(
    db: Session, actor_id: UUID, booking_id: UUID, new_status: BookingStatus
) -> Booking:
    """Apply a status change after checking ownership and the transition table."""

    stmt = select(Booking).where(Booking.id == booking_id).with_for_update()
    booking = db.execute(stmt).scalars().first()
    if booking is None:
        raise NotFound("Booking not found")

    if booking.customer_id != actor_id:
        profile_id = find_provider_profile_id(db, actor_id)
        if profile_id is None or booking.mua_id != profile_id:
            raise Unauthorized("Not permitted to update this booking")

    current = booking.status
    if new_status not in TRANSITIONS[current]:
        raise InvalidTransition(
            f"Cannot change booking status from {current.value} to {new_status.value}"
        )

    booking.status = new_status
    booking.updated_at = datetime.utcnow()
    db.flush()

    logger.info(
        "booking status changed",
        extra={
            "booking_id": str(booking.id),
            "from_status": current.value,
            "to_status": new_status.value,
        },
    )
    return booking


def format_money(value: Decimal | None) -> str | None:
    if value is None:
        return None
    return str(value.quantize(Decimal("0.01")))


def serialize_booking(booking: Booking) -> dict[str, Any]:
    """Return a JSON-friendly representation of a booking."""

    return {
        "id": str(booking.id),
        "customer_id": str(booking.customer_id),
        "mua_id": str(booking.mua_id),
        "service_type": booking.service_type,
        "description": booking.description,
        "event_date": isoformat_utc(booking.event_date),
        "end_date": isoformat_utc(booking.end_date),
        "event_location": booking.event_location,
        "duration_hours": booking.duration_hours,
        "price": format_money(booking.price),
        "status": booking.status.value,
        "deposit_amount": format_money(booking.deposit_amount),
        "deposit_paid": booking.deposit_paid,
        "final_payment_paid": booking.final_payment_paid,
        "created_at": isoformat_utc(booking.created_at),
        "updated_at": isoformat_utc(booking.updated_at),
    }
