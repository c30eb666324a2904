from datetime import datetime, time, timezone

import pytest
from sqlalchemy import select

from muabook.core.config import settings
from muabook.core.errors import NotFound, ValidationError
from muabook.models import AvailabilitySlot
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

from factories import make_dated_slot, make_provider, make_weekly_slot

# 2030-06-03 is a Monday (weekday index 1).
MONDAY = datetime(2030, 6, 3)


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


def test_recurring_slot_creates_one_row_per_weekday(db):
    provider = make_provider(db)

    slots = create_slot(
        db,
        provider.id,
        SlotSpec(start_time="09:00", end_time="12:00", recurring=True, day_of_week=[1, 3, 5]),
    )

    assert len(slots) == 3
    assert sorted(slot.day_of_week for slot in slots) == [1, 3, 5]
    for slot in slots:
        assert slot.start_time == time(9)
        assert slot.end_time == time(12)
        assert slot.is_available is True
        assert slot.recurring is True
        assert slot.specific_date is None

    stored = db.execute(
        select(AvailabilitySlot).where(AvailabilitySlot.mua_id == provider.id)
    ).scalars().all()
    assert len(stored) == 3


def test_duplicate_weekdays_are_collapsed(db):
    provider = make_provider(db)

    slots = create_slot(
        db,
        provider.id,
        SlotSpec(start_time="09:00", end_time="10:00", recurring=True, day_of_week=[2, 2, 4]),
    )

    assert sorted(slot.day_of_week for slot in slots) == [2, 4]


def test_one_off_slot_accepts_date_only(db):
    provider = make_provider(db)

    (slot,) = create_slot(
        db,
        provider.id,
        SlotSpec(start_time="10:00", end_time="14:00", recurring=False, specific_date="2030-06-03"),
    )

    assert slot.specific_date == MONDAY
    assert slot.day_of_week is None
    assert slot.recurring is False
    assert serialize_slot(slot)["specific_date"] == "2030-06-03T00:00:00"


@pytest.mark.parametrize(
    "spec",
    [
        SlotSpec(start_time="12:00", end_time="09:00", recurring=True, day_of_week=[1]),
        SlotSpec(start_time="09:00", end_time="09:00", recurring=True, day_of_week=[1]),
        SlotSpec(start_time="9am", end_time="12:00", recurring=True, day_of_week=[1]),
        SlotSpec(start_time="09:00", end_time="24:00", recurring=True, day_of_week=[1]),
        SlotSpec(start_time="09:00", end_time="12:00", recurring=True, day_of_week=[]),
        SlotSpec(start_time="09:00", end_time="12:00", recurring=True, day_of_week=None),
        SlotSpec(start_time="09:00", end_time="12:00", recurring=True, day_of_week=[7]),
        SlotSpec(start_time="09:00", end_time="12:00", recurring=True, day_of_week=[-1]),
        SlotSpec(
            start_time="09:00",
            end_time="12:00",
            recurring=True,
            day_of_week=[1],
            specific_date="2030-06-03",
        ),
        SlotSpec(start_time="09:00", end_time="12:00", recurring=False),
        SlotSpec(start_time="09:00", end_time="12:00", recurring=False, specific_date="03/06/2030"),
        SlotSpec(
            start_time="09:00",
            end_time="12:00",
            recurring=False,
            day_of_week=[1],
            specific_date="2030-06-03",
        ),
    ],
)
def test_invalid_slot_specs_are_rejected(db, spec):
    provider = make_provider(db)

    with pytest.raises(ValidationError):
        create_slot(db, provider.id, spec)

    rows = db.execute(
        select(AvailabilitySlot).where(AvailabilitySlot.mua_id == provider.id)
    ).scalars().all()
    assert rows == []


def test_list_slots_newest_first_and_month_filter(db):
    provider = make_provider(db)
    weekly = make_weekly_slot(db, provider.id, 1)
    weekly.created_at = datetime(2030, 1, 1)
    june = make_dated_slot(db, provider.id, datetime(2030, 6, 10))
    june.created_at = datetime(2030, 1, 2)
    july = make_dated_slot(db, provider.id, datetime(2030, 7, 1))
    july.created_at = datetime(2030, 1, 3)
    db.flush()

    assert [slot.id for slot in list_slots(db, provider.id)] == [july.id, june.id, weekly.id]
    assert [slot.id for slot in list_slots(db, provider.id, "2030-06")] == [june.id, weekly.id]

    with pytest.raises(ValidationError):
        list_slots(db, provider.id, "June 2030")


def test_toggle_and_delete_require_ownership(db):
    owner = make_provider(db, name="Owner")
    intruder = make_provider(db, name="Intruder")
    slot = make_weekly_slot(db, owner.id, 1)

    with pytest.raises(NotFound):
        update_slot_availability(db, intruder.id, slot.id, False)
    with pytest.raises(NotFound):
        delete_slot(db, intruder.id, slot.id)

    db.expire_all()
    unchanged = db.get(AvailabilitySlot, slot.id)
    assert unchanged is not None
    assert unchanged.is_available is True


def test_owner_can_toggle_and_delete(db):
    provider = make_provider(db)
    slot = make_weekly_slot(db, provider.id, 1)

    toggled = update_slot_availability(db, provider.id, slot.id, False)
    assert toggled.is_available is False

    delete_slot(db, provider.id, slot.id)
    remaining = db.execute(
        select(AvailabilitySlot.id).where(AvailabilitySlot.id == slot.id)
    ).first()
    assert remaining is None

    with pytest.raises(NotFound):
        delete_slot(db, provider.id, slot.id)


def test_update_slot_keeps_time_order(db):
    provider = make_provider(db)
    slot = make_weekly_slot(db, provider.id, 1, time(9), time(12))

    updated = update_slot(db, provider.id, slot.id, end_time="15:30")
    assert updated.end_time == time(15, 30)

    with pytest.raises(ValidationError):
        update_slot(db, provider.id, slot.id, start_time="16:00")


def test_is_open_uses_weekly_slot(db):
    provider = make_provider(db)
    make_weekly_slot(db, provider.id, 1, time(9), time(12))

    assert is_open(db, provider.id, utc(2030, 6, 3, 9), utc(2030, 6, 3, 12))
    assert is_open(db, provider.id, utc(2030, 6, 3, 10), utc(2030, 6, 3, 11))
    assert not is_open(db, provider.id, utc(2030, 6, 3, 11), utc(2030, 6, 3, 13))
    # Tuesday has no slot.
    assert not is_open(db, provider.id, utc(2030, 6, 4, 10), utc(2030, 6, 4, 11))


def test_one_off_slot_overrides_weekly_rule(db):
    provider = make_provider(db)
    make_weekly_slot(db, provider.id, 1, time(9), time(18))
    make_dated_slot(db, provider.id, MONDAY, time(14), time(16))

    assert not is_open(db, provider.id, utc(2030, 6, 3, 10), utc(2030, 6, 3, 11))
    assert is_open(db, provider.id, utc(2030, 6, 3, 14), utc(2030, 6, 3, 16))
    # The following Monday is governed by the weekly rule again.
    assert is_open(db, provider.id, utc(2030, 6, 10, 10), utc(2030, 6, 10, 11))


def test_unavailable_one_off_closes_the_day(db):
    provider = make_provider(db)
    make_weekly_slot(db, provider.id, 1)
    make_dated_slot(db, provider.id, MONDAY, is_available=False)

    assert not is_open(db, provider.id, utc(2030, 6, 3, 10), utc(2030, 6, 3, 11))


def test_profile_toggle_and_slot_flag_both_required(db):
    provider = make_provider(db)
    slot = make_weekly_slot(db, provider.id, 1)
    start, end = utc(2030, 6, 3, 10), utc(2030, 6, 3, 11)

    provider.is_available = False
    db.flush()
    assert not is_open(db, provider.id, start, end)

    provider.is_available = True
    slot.is_available = False
    db.flush()
    assert not is_open(db, provider.id, start, end)


def test_interval_crossing_midnight_is_closed(db):
    provider = make_provider(db)
    make_weekly_slot(db, provider.id, 1, time(0), time(23, 59))
    make_weekly_slot(db, provider.id, 2, time(0), time(23, 59))

    assert not is_open(db, provider.id, utc(2030, 6, 3, 23), utc(2030, 6, 4, 1))
    assert not is_open(db, provider.id, utc(2030, 6, 3, 11), utc(2030, 6, 3, 11))


def test_is_open_converts_to_provider_timezone(db, monkeypatch):
    monkeypatch.setattr(settings, "provider_timezone", "Asia/Jakarta")
    provider = make_provider(db)
    make_weekly_slot(db, provider.id, 1, time(9), time(12))

    # 02:00-04:00 UTC is 09:00-11:00 in Jakarta (UTC+7).
    assert is_open(db, provider.id, utc(2030, 6, 3, 2), utc(2030, 6, 3, 4))
    assert not is_open(db, provider.id, utc(2030, 6, 3, 9), utc(2030, 6, 3, 10))
