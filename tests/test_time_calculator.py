from datetime import date, datetime, timedelta, timezone

import pytest

from app.domain.scheduling.errors import (
    InvalidDate,
    InvalidSlotAlignment,
    InvalidTimeWindow,
    PastBooking,
)
from app.domain.scheduling.time_calculator import (
    SchedulingPolicy,
    calendar_day_bounds,
    civil_date,
    day_bounds,
    enumerate_slots,
    parse_date,
    validate_slot_timestamp,
)

NOW = datetime(2025, 11, 28, 10, 0)
DAY = date(2025, 11, 29)


@pytest.fixture
def utc_policy():
    return SchedulingPolicy()


@pytest.fixture
def jakarta_policy():
    return SchedulingPolicy(timezone_name="Asia/Jakarta")


class TestSlotGrid:
    def test_enumerates_twenty_half_hour_slots(self, utc_policy):
        slots = enumerate_slots(DAY, utc_policy)

        assert len(slots) == 20
        assert slots[0] == datetime(2025, 11, 29, 8, 0)
        assert slots[-1] == datetime(2025, 11, 29, 17, 30)
        assert all(b - a == timedelta(minutes=30) for a, b in zip(slots, slots[1:]))

    def test_enumeration_is_repeatable(self, utc_policy):
        assert enumerate_slots(DAY, utc_policy) == enumerate_slots(DAY, utc_policy)

    def test_day_bounds_are_first_and_last_slot(self, utc_policy):
        assert day_bounds(DAY, utc_policy) == (
            datetime(2025, 11, 29, 8, 0),
            datetime(2025, 11, 29, 17, 30),
        )

    def test_hourly_grid(self):
        policy = SchedulingPolicy(slot_minutes=60)
        assert len(enumerate_slots(DAY, policy)) == 10

    def test_policy_rejects_slot_length_not_dividing_an_hour(self):
        with pytest.raises(ValueError):
            SchedulingPolicy(slot_minutes=7)

    def test_policy_rejects_empty_window(self):
        with pytest.raises(ValueError):
            SchedulingPolicy(opening_hour=18, closing_hour=8)

    def test_policy_rejects_zero_capacity(self):
        with pytest.raises(ValueError):
            SchedulingPolicy(capacity=0)


class TestValidateSlot:
    def test_valid_slot_returns_naive_utc(self, utc_policy):
        ts = datetime(2025, 11, 29, 8, 30, tzinfo=timezone.utc)
        assert validate_slot_timestamp(ts, utc_policy, now=NOW) == datetime(2025, 11, 29, 8, 30)

    def test_last_slot_of_day_is_bookable(self, utc_policy):
        ts = datetime(2025, 11, 29, 17, 30, tzinfo=timezone.utc)
        assert validate_slot_timestamp(ts, utc_policy, now=NOW) == datetime(2025, 11, 29, 17, 30)

    @pytest.mark.parametrize("hour,minute", [(7, 45), (7, 30), (18, 0), (21, 0)])
    def test_outside_operating_hours(self, utc_policy, hour, minute):
        ts = datetime(2025, 11, 29, hour, minute, tzinfo=timezone.utc)
        with pytest.raises(InvalidTimeWindow):
            validate_slot_timestamp(ts, utc_policy, now=NOW)

    def test_window_is_checked_before_alignment(self, utc_policy):
        ts = datetime(2025, 11, 29, 7, 45, tzinfo=timezone.utc)
        with pytest.raises(InvalidTimeWindow):
            validate_slot_timestamp(ts, utc_policy, now=NOW)

    def test_off_grid_minute(self, utc_policy):
        ts = datetime(2025, 11, 29, 8, 15, tzinfo=timezone.utc)
        with pytest.raises(InvalidSlotAlignment):
            validate_slot_timestamp(ts, utc_policy, now=NOW)

    def test_stray_seconds(self, utc_policy):
        ts = datetime(2025, 11, 29, 8, 0, 30, tzinfo=timezone.utc)
        with pytest.raises(InvalidSlotAlignment):
            validate_slot_timestamp(ts, utc_policy, now=NOW)

    def test_past_slot(self, utc_policy):
        ts = datetime(2025, 11, 27, 9, 0, tzinfo=timezone.utc)
        with pytest.raises(PastBooking):
            validate_slot_timestamp(ts, utc_policy, now=NOW)

    def test_slot_equal_to_now_is_past(self, utc_policy):
        with pytest.raises(PastBooking):
            validate_slot_timestamp(NOW.replace(tzinfo=timezone.utc), utc_policy, now=NOW)

    def test_naive_input_is_treated_as_utc(self, utc_policy):
        assert validate_slot_timestamp(datetime(2025, 11, 29, 9, 0), utc_policy, now=NOW) == datetime(
            2025, 11, 29, 9, 0
        )


class TestBusinessTimezone:
    def test_window_follows_civil_time(self, jakarta_policy):
        # 08:00 WIB is 01:00 UTC
        ts = datetime(2025, 11, 29, 1, 0, tzinfo=timezone.utc)
        assert validate_slot_timestamp(ts, jakarta_policy, now=NOW) == datetime(2025, 11, 29, 1, 0)

    def test_closing_hour_in_civil_time(self, jakarta_policy):
        # 18:00 WIB
        ts = datetime(2025, 11, 29, 11, 0, tzinfo=timezone.utc)
        with pytest.raises(InvalidTimeWindow):
            validate_slot_timestamp(ts, jakarta_policy, now=NOW)

    def test_offset_input_is_normalized(self, jakarta_policy):
        wib = timezone(timedelta(hours=7))
        ts = datetime(2025, 11, 29, 9, 30, tzinfo=wib)
        assert validate_slot_timestamp(ts, jakarta_policy, now=NOW) == datetime(2025, 11, 29, 2, 30)

    def test_day_bounds_in_utc(self, jakarta_policy):
        assert day_bounds(DAY, jakarta_policy) == (
            datetime(2025, 11, 29, 1, 0),
            datetime(2025, 11, 29, 10, 30),
        )

    def test_calendar_day_bounds_in_utc(self, jakarta_policy):
        assert calendar_day_bounds(DAY, jakarta_policy) == (
            datetime(2025, 11, 28, 17, 0),
            datetime(2025, 11, 29, 17, 0),
        )

    def test_civil_date_rolls_over_before_utc(self, jakarta_policy):
        assert civil_date(datetime(2025, 11, 28, 18, 0), jakarta_policy) == date(2025, 11, 29)


class TestParseDate:
    def test_iso_date(self):
        assert parse_date("2025-11-29") == DAY

    @pytest.mark.parametrize("value", ["29-11-2025", "2025-13-01", "tomorrow"])
    def test_malformed(self, value):
        with pytest.raises(InvalidDate):
            parse_date(value)

    @pytest.mark.parametrize("value", [None, ""])
    def test_missing(self, value):
        with pytest.raises(InvalidDate):
            parse_date(value)
