"""Service layer for the MuaBook API."""

from muabook.services.availability import (
    SlotSpec,
    create_slot,
    delete_slot,
    is_open,
    list_slots,
    serialize_slot,
    update_slot,
    update_slot_availability,
)
from muabook.services.bookings import (
    TRANSITIONS,
    BookingRequest,
    create_booking,
    list_bookings,
    serialize_booking,
    update_status,
)
from muabook.services.calendar import get_calendar_bookings, get_calendar_view
from muabook.services.identity import (
    get_actor,
    resolve_actor,
    resolve_provider_profile,
)

__all__ = [
    "BookingRequest",
    "SlotSpec",
    "TRANSITIONS",
    "create_booking",
    "create_slot",
    "delete_slot",
    "get_actor",
    "get_calendar_bookings",
    "get_calendar_view",
    "is_open",
    "list_bookings",
    "list_slots",
    "resolve_actor",
    "resolve_provider_profile",
    "serialize_booking",
    "serialize_slot",
    "update_slot",
    "update_slot_availability",
    "update_status",
]
