from datetime import datetime, time

import pytest

from muabook.core.errors import ValidationError
from muabook.models import BookingStatus, UserRole
from muabook.services.calendar import get_calendar_bookings, get_calendar_view

from factories import make_booking, make_dated_slot, make_provider, make_user, make_weekly_slot


@pytest.fixture()
def june_bookings(db):
    provider = make_provider(db, name="Calendar")
    other = make_provider(db, name="Elsewhere")
    customer = make_user(db, UserRole.CUSTOMER, name="Maria Silva")
    bookings = {
        "may": make_booking(db, customer.id, provider.id, datetime(2025, 5, 31, 23)),
        "june_first": make_booking(db, customer.id, provider.id, datetime(2025, 6, 1, 10), duration_hours=3),
        "june_last": make_booking(db, customer.id, provider.id, datetime(2025, 6, 30, 22)),
        "july": make_booking(db, customer.id, provider.id, datetime(2025, 7, 1, 0)),
        "other": make_booking(db, customer.id, other.id, datetime(2025, 6, 15, 10)),
    }
    return provider, customer, bookings


def test_june_range_returns_only_june_bookings_for_provider(db, june_bookings):
    provider, customer, bookings = june_bookings

    rows = get_calendar_bookings(db, provider.id, "2025-06-01", "2025-06-30")

    assert [row.id for row in rows] == [bookings["june_first"].id, bookings["june_last"].id]
    first = rows[0].as_dict()
    assert first["customer_name"] == "Maria Silva"
    assert first["customer_phone"] == customer.phone_number
    assert first["start_time"] == "2025-06-01T10:00:00+00:00"
    assert first["end_time"] == "2025-06-01T13:00:00+00:00"
    assert first["status"] == BookingStatus.PENDING.value
    assert first["price"] == "100.00"
    assert first["location"] == "Jakarta"


def test_bounds_are_independent_and_optional(db, june_bookings):
    provider, _, bookings = june_bookings

    everything = get_calendar_bookings(db, provider.id)
    assert len(everything) == 4

    from_june = get_calendar_bookings(db, provider.id, "2025-06-01", "")
    assert [row.id for row in from_june] == [
        bookings["june_first"].id,
        bookings["june_last"].id,
        bookings["july"].id,
    ]

    until_june = get_calendar_bookings(db, provider.id, None, "2025-06-01")
    assert [row.id for row in until_june] == [bookings["may"].id, bookings["june_first"].id]


def test_timestamp_bounds_are_inclusive(db, june_bookings):
    provider, _, bookings = june_bookings

    rows = get_calendar_bookings(
        db, provider.id, "2025-06-01T10:00:00Z", "2025-06-30T22:00:00Z"
    )

    assert [row.id for row in rows] == [bookings["june_first"].id, bookings["june_last"].id]


def test_invalid_bounds_are_rejected(db, june_bookings):
    provider, _, _ = june_bookings

    with pytest.raises(ValidationError):
        get_calendar_bookings(db, provider.id, "June", None)
    with pytest.raises(ValidationError):
        get_calendar_bookings(db, provider.id, "2025-06-30", "2025-06-01")


def test_calendar_view_expands_occurrences(db):
    provider = make_provider(db)
    customer = make_user(db, UserRole.CUSTOMER)
    # 2030-06-03 is a Monday; 2030-06-10 is the following Monday.
    make_weekly_slot(db, provider.id, 1, time(9), time(12))
    override = make_dated_slot(db, provider.id, datetime(2030, 6, 10), time(13), time(15))
    make_booking(db, customer.id, provider.id, datetime(2030, 6, 3, 9))

    view = get_calendar_view(db, provider.id, "2030-06-01", "2030-06-14")

    assert view["timezone"] == "UTC"
    assert len(view["bookings"]) == 1
    assert [(item["date"], item["start"]) for item in view["availability"]] == [
        ("2030-06-03", "2030-06-03T09:00:00+00:00"),
        ("2030-06-10", "2030-06-10T13:00:00+00:00"),
    ]
    assert view["availability"][1]["slot_id"] == str(override.id)
    assert view["availability"][1]["recurring"] is False


@pytest.mark.parametrize(
    ("start", "end"),
    [(None, "2030-06-10"), ("2030-06-10", "2030-06-01"), ("2030-01-01", "2030-06-01")],
)
def test_calendar_view_requires_bounded_range(db, start, end):
    provider = make_provider(db)

    with pytest.raises(ValidationError):
        get_calendar_view(db, provider.id, start, end)
