from __future__ import annotations

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, StrictInt, StrictStr
from sqlalchemy.orm import Session

from muabook.db.session import get_db
from muabook.dependencies import get_current_user_id
from muabook.models import BookingStatus
from muabook.services.bookings import (
    BookingRequest,
    create_booking,
    list_bookings,
    serialize_booking,
    update_status,
)

router = APIRouter(prefix="/bookings", tags=["bookings"])


class BookingCreate(BaseModel):
    mua_id: UUID
    service_type: StrictStr
    description: StrictStr | None = None
    event_date: StrictStr
    event_location: StrictStr
    duration_hours: StrictInt
    price: StrictStr
    deposit_amount: StrictStr | None = None


class BookingStatusUpdate(BaseModel):
    status: BookingStatus


@router.post("", status_code=status.HTTP_201_CREATED)
def create(
    payload: BookingCreate,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    """Request a booking; it starts out pending."""

    booking = create_booking(db, user_id, BookingRequest(**payload.model_dump()))
    return {"booking": serialize_booking(booking)}


@router.get("")
def list_for_actor(
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    bookings = list_bookings(db, user_id)
    return {"bookings": [serialize_booking(booking) for booking in bookings]}


@router.put("/{booking_id}/status")
def change_status(
    booking_id: UUID,
    payload: BookingStatusUpdate,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    booking = update_status(db, user_id, booking_id, payload.status)
    return {"booking": serialize_booking(booking)}
