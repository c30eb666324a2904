"""Provider dashboard: stats, availability management and the calendar."""

from __future__ import annotations

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, StrictBool, StrictInt
from sqlalchemy.orm import Session

from muabook.db.session import get_db
from muabook.dependencies import get_current_provider_id, get_current_user_id
from muabook.models import BookingStatus
from muabook.services.availability import (
    SlotSpec,
    create_slot,
    delete_slot,
    list_slots,
    serialize_slot,
    update_slot,
)
from muabook.services.bookings import serialize_booking, update_status
from muabook.services.calendar import get_calendar_bookings, get_calendar_view
from muabook.services.dashboard import get_dashboard
from muabook.services.providers import serialize_provider, set_profile_availability

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


class AvailabilityToggle(BaseModel):
    is_available: StrictBool


class SlotCreate(BaseModel):
    start_time: str
    end_time: str
    recurring: StrictBool
    day_of_week: list[StrictInt] | None = None
    specific_date: str | None = None


class SlotUpdate(BaseModel):
    start_time: str | None = None
    end_time: str | None = None
    is_available: StrictBool | None = None


class CalendarStatusUpdate(BaseModel):
    status: BookingStatus


@router.get("")
def overview(
    provider_id: UUID = Depends(get_current_provider_id),
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    return get_dashboard(db, provider_id)


@router.put("/availability")
def toggle_availability(
    payload: AvailabilityToggle,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    """Switch the provider's manual availability on or off."""

    profile = set_profile_availability(db, user_id, payload.is_available)
    return {"profile": serialize_provider(profile)}


@router.get("/availability/slots")
def read_slots(
    month: str | None = None,
    provider_id: UUID = Depends(get_current_provider_id),
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    slots = list_slots(db, provider_id, month)
    return {"slots": [serialize_slot(slot) for slot in slots]}


@router.post("/availability/slots", status_code=status.HTTP_201_CREATED)
def add_slots(
    payload: SlotCreate,
    provider_id: UUID = Depends(get_current_provider_id),
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    """Create one slot per requested weekday, or a single dated slot."""

    slots = create_slot(db, provider_id, SlotSpec(**payload.model_dump()))
    return {"slots": [serialize_slot(slot) for slot in slots]}


@router.put("/availability/slots/{slot_id}")
def edit_slot(
    slot_id: UUID,
    payload: SlotUpdate,
    provider_id: UUID = Depends(get_current_provider_id),
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    slot = update_slot(
        db,
        provider_id,
        slot_id,
        start_time=payload.start_time,
        end_time=payload.end_time,
        is_available=payload.is_available,
    )
    return {"slot": serialize_slot(slot)}


@router.delete("/availability/slots/{slot_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_slot(
    slot_id: UUID,
    provider_id: UUID = Depends(get_current_provider_id),
    db: Session = Depends(get_db),
) -> Response:
    delete_slot(db, provider_id, slot_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/calendar/bookings")
def calendar_bookings(
    start_date: str | None = None,
    end_date: str | None = None,
    provider_id: UUID = Depends(get_current_provider_id),
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    bookings = get_calendar_bookings(db, provider_id, start_date, end_date)
    return {"bookings": [booking.as_dict() for booking in bookings]}


@router.get("/calendar")
def calendar_view(
    start_date: str | None = None,
    end_date: str | None = None,
    provider_id: UUID = Depends(get_current_provider_id),
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    """Bookings plus concrete availability windows for each day in range."""

    return get_calendar_view(db, provider_id, start_date, end_date)


@router.put("/bookings/{booking_id}/status")
def calendar_status(
    booking_id: UUID,
    payload: CalendarStatusUpdate,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    booking = update_status(db, user_id, booking_id, payload.status)
    return {"booking": serialize_booking(booking)}
