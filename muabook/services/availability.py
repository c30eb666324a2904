"""Provider availability: slot definitions and open-interval queries."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Any, Iterable, Sequence
from uuid import UUID

from sqlalchemy import and_, delete, or_, select, update
from sqlalchemy.orm import Session

from muabook.core.errors import NotFound, ValidationError
from muabook.models import AvailabilitySlot, ProviderProfile
from muabook.services.time_utils import (
    format_hhmm,
    isoformat_utc,
    local_interval,
    parse_hhmm,
    parse_specific_date,
    provider_timezone,
    weekday_index,
)

logger = logging.getLogger(__name__)


@dataclass
class SlotSpec:
    """Requested slot definition as received from the client."""

    start_time: str
    end_time: str
    recurring: bool
    day_of_week: list[int] | None = None
    specific_date: str | None = None


def _parse_bounds(start_value: str, end_value: str) -> tuple[time, time]:
    start = parse_hhmm(start_value, "start_time")
    end = parse_hhmm(end_value, "end_time")
    if end <= start:
        raise ValidationError("end_time must be after start_time")
    return start, end


def _normalize_days(days: Sequence[int] | None) -> list[int]:
    if not days:
        raise ValidationError("Recurring slots must specify day_of_week")
    normalized: list[int] = []
    for day in days:
        if isinstance(day, bool) or not isinstance(day, int) or not 0 <= day <= 6:
            raise ValidationError(f"Invalid day_of_week {day!r}; expected 0-6")
        if day not in normalized:
            normalized.append(day)
    return normalized


def create_slot(db: Session, provider_id: UUID, spec: SlotSpec) -> list[AvailabilitySlot]:
    """Validate ``spec`` and persist one slot per occurrence rule.

    A recurring spec covering N weekdays yields N independent rows so each
    weekday can be toggled on its own later. All rows are written in the
    caller's transaction and returned together.
    """

    start, end = _parse_bounds(spec.start_time, spec.end_time)

    if spec.recurring:
        if spec.specific_date is not None:
            raise ValidationError("Recurring slots must not specify specific_date")
        slots = [
            AvailabilitySlot(
                mua_id=provider_id,
                start_time=start,
                end_time=end,
                day_of_week=day,
                specific_date=None,
                is_available=True,
                recurring=True,
            )
            for day in _normalize_days(spec.day_of_week)
        ]
    else:
        if spec.day_of_week is not None:
            raise ValidationError("Non-recurring slots must not specify day_of_week")
        if not spec.specific_date:
            raise ValidationError("Non-recurring slots must specify specific_date")
        slots = [
            AvailabilitySlot(
                mua_id=provider_id,
                start_time=start,
                end_time=end,
                day_of_week=None,
                specific_date=parse_specific_date(spec.specific_date),
                is_available=True,
                recurring=False,
            )
        ]

    db.add_all(slots)
    db.flush()
    logger.info(
        "availability slots created",
        extra={
            "mua_id": str(provider_id),
            "count": len(slots),
            "recurring": spec.recurring,
        },
    )
    return slots


def _month_bounds(month: str) -> tuple[datetime, datetime]:
    try:
        first = datetime.strptime(month.strip(), "%Y-%m")
    except ValueError as exc:
        raise ValidationError(f"Invalid month {month!r}; expected YYYY-MM") from exc
    if first.month == 12:
        return first, first.replace(year=first.year + 1, month=1)
    return first, first.replace(month=first.month + 1)


def list_slots(
    db: Session, provider_id: UUID, month: str | None = None
) -> list[AvailabilitySlot]:
    """Return the provider's slots, newest first.

    With ``month`` (``YYYY-MM``) recurring slots are always included and
    one-off slots only when their date falls inside that month.
    """

    stmt = select(AvailabilitySlot).where(AvailabilitySlot.mua_id == provider_id)
    if month:
        first, after = _month_bounds(month)
        stmt = stmt.where(
            or_(
                AvailabilitySlot.day_of_week.is_not(None),
                and_(
                    AvailabilitySlot.specific_date >= first,
                    AvailabilitySlot.specific_date < after,
                ),
            )
        )
    stmt = stmt.order_by(AvailabilitySlot.created_at.desc(), AvailabilitySlot.id)
    return list(db.execute(stmt).scalars().all())


def update_slot_availability(
    db: Session, provider_id: UUID, slot_id: UUID, is_available: bool
) -> AvailabilitySlot:
    """Toggle the soft availability flag of a slot owned by ``provider_id``."""

    stmt = (
        update(AvailabilitySlot)
        .where(
            AvailabilitySlot.id == slot_id,
            AvailabilitySlot.mua_id == provider_id,
        )
        .values(is_available=is_available, updated_at=datetime.utcnow())
        .execution_options(synchronize_session="fetch")
    )
    result = db.execute(stmt)
    if not result.rowcount:
        raise NotFound("Availability slot not found")

    logger.info(
        "availability slot toggled",
        extra={"slot_id": str(slot_id), "is_available": is_available},
    )
    return db.get(AvailabilitySlot, slot_id, populate_existing=True)


def update_slot(
    db: Session,
    provider_id: UUID,
    slot_id: UUID,
    *,
    start_time: str | None = None,
    end_time: str | None = None,
    is_available: bool | None = None,
) -> AvailabilitySlot:
    """Change the time bounds and/or flag of an owned slot."""

    if start_time is None and end_time is None:
        if is_available is None:
            raise ValidationError("Nothing to update")
        return update_slot_availability(db, provider_id, slot_id, is_available)

    stmt = (
        select(AvailabilitySlot)
        .where(
            AvailabilitySlot.id == slot_id,
            AvailabilitySlot.mua_id == provider_id,
        )
        .with_for_update()
    )
    slot = db.execute(stmt).scalars().first()
    if slot is None:
        raise NotFound("Availability slot not found")

    start, end = _parse_bounds(
        start_time if start_time is not None else format_hhmm(slot.start_time),
        end_time if end_time is not None else format_hhmm(slot.end_time),
    )
    slot.start_time = start
    slot.end_time = end
    if is_available is not None:
        slot.is_available = is_available
    slot.updated_at = datetime.utcnow()
    db.flush()
    return slot


def delete_slot(db: Session, provider_id: UUID, slot_id: UUID) -> None:
    """Remove a slot owned by ``provider_id``."""

    stmt = delete(AvailabilitySlot).where(
        AvailabilitySlot.id == slot_id,
        AvailabilitySlot.mua_id == provider_id,
    )
    result = db.execute(stmt)
    if not result.rowcount:
        raise NotFound("Availability slot not found")
    logger.info("availability slot deleted", extra={"slot_id": str(slot_id)})


def select_slots_for_date(
    slots: Iterable[AvailabilitySlot], day: date
) -> list[AvailabilitySlot]:
    """Return the slots governing ``day``.

    One-off slots dated ``day`` replace that weekday's recurring slots
    entirely, including when the one-off slot is switched off.
    """

    candidates = list(slots)
    one_off = [
        slot
        for slot in candidates
        if slot.specific_date is not None and slot.specific_date.date() == day
    ]
    if one_off:
        return one_off
    weekday = weekday_index(day)
    return [slot for slot in candidates if slot.day_of_week == weekday]


def slots_for_date(db: Session, provider_id: UUID, day: date) -> list[AvailabilitySlot]:
    day_start = datetime.combine(day, time.min)
    stmt = select(AvailabilitySlot).where(
        AvailabilitySlot.mua_id == provider_id,
        or_(
            AvailabilitySlot.day_of_week == weekday_index(day),
            and_(
                AvailabilitySlot.specific_date >= day_start,
                AvailabilitySlot.specific_date < day_start + timedelta(days=1),
            ),
        ),
    )
    return select_slots_for_date(db.execute(stmt).scalars().all(), day)


def is_open(db: Session, provider_id: UUID, start: datetime, end: datetime) -> bool:
    """Return whether ``[start, end)`` lies inside an available slot.

    The provider's global ``is_available`` switch must also be on. Intervals
    crossing local midnight are never open since slots are bounded by a day.
    """

    profile = db.get(ProviderProfile, provider_id)
    if profile is None or not profile.is_available:
        return False

    local_start, local_end = local_interval(start, end, provider_timezone())
    if local_end <= local_start or local_end.date() != local_start.date():
        return False

    wanted_start, wanted_end = local_start.time(), local_end.time()
    return any(
        slot.is_available
        and slot.start_time <= wanted_start
        and wanted_end <= slot.end_time
        for slot in slots_for_date(db, provider_id, local_start.date())
    )


def serialize_slot(slot: AvailabilitySlot) -> dict[str, Any]:
    """Return a JSON-friendly representation of a slot."""

    return {
        "id": str(slot.id),
        "mua_id": str(slot.mua_id),
        "start_time": format_hhmm(slot.start_time),
        "end_time": format_hhmm(slot.end_time),
        "day_of_week": slot.day_of_week,
        "specific_date": slot.specific_date.isoformat() if slot.specific_date else None,
        "is_available": slot.is_available,
        "recurring": slot.recurring,
        "created_at": isoformat_utc(slot.created_at),
        "updated_at": isoformat_utc(slot.updated_at),
    }
