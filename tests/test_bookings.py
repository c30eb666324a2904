from datetime import datetime, time
from decimal import Decimal

import pytest
from sqlalchemy import event
from sqlalchemy.dialects import postgresql

from muabook.core.errors import (
    Conflict,
    InvalidTransition,
    NotFound,
    ProfileNotFound,
    Unauthorized,
    ValidationError,
)
from muabook.models import Booking, BookingStatus, UserRole
from muabook.services.bookings import (
    TRANSITIONS,
    BookingRequest,
    create_booking,
    list_bookings,
    serialize_booking,
    update_status,
)

from factories import make_booking, make_dated_slot, make_provider, make_user, make_weekly_slot


def booking_request(provider_id, **overrides) -> BookingRequest:
    values = {
        "mua_id": provider_id,
        "service_type": "bridal",
        "event_date": "2025-06-01T10:00:00Z",
        "event_location": "Jakarta",
        "duration_hours": 2,
        "price": "199.99",
    }
    values.update(overrides)
    return BookingRequest(**values)


@pytest.fixture()
def open_provider(db):
    provider = make_provider(db)
    # 2025-06-01 is a Sunday.
    make_weekly_slot(db, provider.id, 0, time(8), time(20))
    return provider


def test_create_booking_is_pending_with_exact_price(db, open_provider):
    customer = make_user(db, UserRole.CUSTOMER)

    booking = create_booking(db, customer.id, booking_request(open_provider.id))

    assert booking.status is BookingStatus.PENDING
    assert booking.deposit_paid is False
    assert booking.final_payment_paid is False
    assert booking.event_date == datetime(2025, 6, 1, 10)

    db.expire_all()
    stored = db.get(Booking, booking.id)
    assert stored.price == Decimal("199.99")
    assert serialize_booking(stored)["price"] == "199.99"
    assert serialize_booking(stored)["end_date"] == "2025-06-01T12:00:00+00:00"


@pytest.mark.parametrize(
    "overrides",
    [
        {"event_date": "2025-06-01 10:00:00"},
        {"event_date": "2025-06-01"},
        {"event_date": "2025-06-01T10:00:00"},
        {"event_date": "tomorrow"},
        {"price": "199.999"},
        {"price": "-5"},
        {"price": "abc"},
        {"price": "NaN"},
        {"price": "1e3"},
        {"deposit_amount": "12,50"},
        {"duration_hours": 0},
        {"duration_hours": 25},
        {"service_type": "  "},
    ],
)
def test_malformed_booking_input_is_rejected(db, open_provider, overrides):
    customer = make_user(db, UserRole.CUSTOMER)

    with pytest.raises(ValidationError):
        create_booking(db, customer.id, booking_request(open_provider.id, **overrides))


def test_event_date_offset_is_normalized_to_utc(db, open_provider):
    customer = make_user(db, UserRole.CUSTOMER)

    booking = create_booking(
        db,
        customer.id,
        booking_request(open_provider.id, event_date="2025-06-01T17:00:00+07:00"),
    )

    assert booking.event_date == datetime(2025, 6, 1, 10)


def test_providers_cannot_book(db, open_provider):
    other_provider = make_provider(db, name="Other")

    with pytest.raises(Unauthorized):
        create_booking(db, other_provider.user_id, booking_request(open_provider.id))


def test_unknown_provider_is_not_found(db):
    customer = make_user(db, UserRole.CUSTOMER)
    provider = make_provider(db)
    ghost_id = provider.user_id  # a user id, never a profile id

    with pytest.raises(NotFound):
        create_booking(db, customer.id, booking_request(ghost_id))


def test_booking_outside_availability_conflicts(db):
    provider = make_provider(db)
    make_weekly_slot(db, provider.id, 0, time(9), time(11))
    customer = make_user(db, UserRole.CUSTOMER)

    with pytest.raises(Conflict):
        create_booking(db, customer.id, booking_request(provider.id))


def test_booking_on_unavailable_one_off_date_conflicts(db, open_provider):
    make_dated_slot(db, open_provider.id, datetime(2025, 6, 1), is_available=False)
    customer = make_user(db, UserRole.CUSTOMER)

    with pytest.raises(Conflict):
        create_booking(db, customer.id, booking_request(open_provider.id))


def test_overlapping_active_booking_conflicts(db, open_provider):
    customer = make_user(db, UserRole.CUSTOMER)
    create_booking(db, customer.id, booking_request(open_provider.id))

    with pytest.raises(Conflict):
        create_booking(
            db,
            customer.id,
            booking_request(open_provider.id, event_date="2025-06-01T11:00:00Z"),
        )

    adjacent = create_booking(
        db,
        customer.id,
        booking_request(open_provider.id, event_date="2025-06-01T12:00:00Z"),
    )
    assert adjacent.status is BookingStatus.PENDING


def test_cancelled_booking_frees_the_interval(db, open_provider):
    customer = make_user(db, UserRole.CUSTOMER)
    make_booking(
        db,
        customer.id,
        open_provider.id,
        datetime(2025, 6, 1, 10),
        status=BookingStatus.CANCELLED,
    )

    booking = create_booking(db, customer.id, booking_request(open_provider.id))
    assert booking.status is BookingStatus.PENDING


def test_list_bookings_scopes_by_role(db):
    first = make_provider(db, name="First")
    second = make_provider(db, name="Second")
    alice = make_user(db, UserRole.CUSTOMER, name="Alice")
    bob = make_user(db, UserRole.CUSTOMER, name="Bob")
    a1 = make_booking(db, alice.id, first.id, datetime(2030, 6, 3, 10))
    a2 = make_booking(db, alice.id, second.id, datetime(2030, 6, 4, 10))
    b1 = make_booking(db, bob.id, first.id, datetime(2030, 6, 5, 10))
    a1.created_at, a2.created_at, b1.created_at = (
        datetime(2030, 1, 1),
        datetime(2030, 1, 2),
        datetime(2030, 1, 3),
    )
    db.flush()

    assert [b.id for b in list_bookings(db, first.user_id)] == [b1.id, a1.id]
    assert [b.id for b in list_bookings(db, second.user_id)] == [a2.id]
    assert [b.id for b in list_bookings(db, alice.id)] == [a2.id, a1.id]
    assert [b.id for b in list_bookings(db, bob.id)] == [b1.id]


def test_list_bookings_for_provider_without_profile(db):
    provider_user = make_user(db, UserRole.PROVIDER)

    with pytest.raises(ProfileNotFound):
        list_bookings(db, provider_user.id)


def test_status_scenario_both_parties_then_stranger(db, open_provider):
    customer = make_user(db, UserRole.CUSTOMER)
    stranger = make_user(db, UserRole.CUSTOMER)
    booking = create_booking(db, customer.id, booking_request(open_provider.id))

    confirmed = update_status(db, open_provider.user_id, booking.id, BookingStatus.CONFIRMED)
    assert confirmed.status is BookingStatus.CONFIRMED

    cancelled = update_status(db, customer.id, booking.id, BookingStatus.CANCELLED)
    assert cancelled.status is BookingStatus.CANCELLED

    with pytest.raises(Unauthorized):
        update_status(db, stranger.id, booking.id, BookingStatus.COMPLETED)


def test_stranger_cannot_change_status(db, open_provider):
    customer = make_user(db, UserRole.CUSTOMER)
    other_provider = make_provider(db, name="Other")
    booking = make_booking(db, customer.id, open_provider.id, datetime(2030, 6, 3, 10))

    with pytest.raises(Unauthorized):
        update_status(db, other_provider.user_id, booking.id, BookingStatus.CONFIRMED)

    db.expire_all()
    assert db.get(Booking, booking.id).status is BookingStatus.PENDING


def test_missing_booking_is_not_found(db, open_provider):
    customer = make_user(db, UserRole.CUSTOMER)

    with pytest.raises(NotFound):
        update_status(db, customer.id, open_provider.id, BookingStatus.CANCELLED)


@pytest.mark.parametrize(
    ("current", "target"),
    [
        (BookingStatus.PENDING, BookingStatus.COMPLETED),
        (BookingStatus.PENDING, BookingStatus.PENDING),
        (BookingStatus.CONFIRMED, BookingStatus.PENDING),
        (BookingStatus.CANCELLED, BookingStatus.CONFIRMED),
        (BookingStatus.COMPLETED, BookingStatus.CANCELLED),
        (BookingStatus.NO_SHOW, BookingStatus.COMPLETED),
    ],
)
def test_illegal_transitions_are_rejected(db, open_provider, current, target):
    customer = make_user(db, UserRole.CUSTOMER)
    booking = make_booking(db, customer.id, open_provider.id, datetime(2030, 6, 3, 10), status=current)

    with pytest.raises(InvalidTransition):
        update_status(db, customer.id, booking.id, target)


def test_transition_table_terminal_states():
    for status in (BookingStatus.CANCELLED, BookingStatus.COMPLETED, BookingStatus.NO_SHOW):
        assert TRANSITIONS[status] == frozenset()
    assert TRANSITIONS[BookingStatus.PENDING] == {
        BookingStatus.CONFIRMED,
        BookingStatus.CANCELLED,
        BookingStatus.NO_SHOW,
    }
    assert TRANSITIONS[BookingStatus.CONFIRMED] == {
        BookingStatus.COMPLETED,
        BookingStatus.CANCELLED,
        BookingStatus.NO_SHOW,
    }


def test_create_booking_locks_provider_before_checks(db, open_provider):
    customer = make_user(db, UserRole.CUSTOMER)
    executed = []

    def record(state):
        executed.append(str(state.statement.compile(dialect=postgresql.dialect())))

    event.listen(db, "do_orm_execute", record)
    try:
        create_booking(db, customer.id, booking_request(open_provider.id))
    finally:
        event.remove(db, "do_orm_execute", record)

    locks = [i for i, sql in enumerate(executed) if "FOR UPDATE" in sql]
    assert locks, executed
    lock_sql = executed[locks[0]]
    assert "FROM mua_profiles" in lock_sql
    slot_queries = [i for i, sql in enumerate(executed) if "FROM availability_slots" in sql]
    booking_queries = [i for i, sql in enumerate(executed) if "FROM bookings" in sql]
    assert slot_queries and booking_queries
    assert locks[0] < min(slot_queries + booking_queries)


def test_status_update_locks_booking(db, open_provider):
    customer = make_user(db, UserRole.CUSTOMER)
    booking = make_booking(db, customer.id, open_provider.id, datetime(2030, 6, 3, 10))
    executed = []

    def record(state):
        executed.append(str(state.statement.compile(dialect=postgresql.dialect())))

    event.listen(db, "do_orm_execute", record)
    try:
        update_status(db, customer.id, booking.id, BookingStatus.CANCELLED)
    finally:
        event.remove(db, "do_orm_execute", record)

    assert "FROM bookings" in executed[0] and "FOR UPDATE" in executed[0]
