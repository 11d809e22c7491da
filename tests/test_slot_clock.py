"""Slot ids: flooring, UTC+8 shift, offsets, calendar shifts, HHmm-only gap arithmetic."""
from datetime import datetime, timedelta, timezone

import pytest
from hypothesis import given
from hypothesis import strategies as st

from rainwatch.services.slot_clock import (
    current_slot,
    datetime_to_slot,
    is_top_of_hour,
    minutes_between,
    shift_slot,
    slot_minute,
    slot_to_datetime,
)

UTC = timezone.utc


class TestCurrentSlot:
    @pytest.mark.parametrize(
        "minute, expected",
        [(0, 202610191400), (4, 202610191400), (5, 202610191405), (7, 202610191405), (19, 202610191415), (59, 202610191455)],
    )
    def test_floors_minute_to_five(self, minute, expected):
        now = datetime(2026, 10, 19, 6, minute, 42, tzinfo=UTC)
        assert current_slot(now=now) == expected

    def test_local_date_rolls_over_before_utc(self):
        # 17:02 UTC is 01:02 the next day in Singapore
        now = datetime(2026, 10, 19, 17, 2, tzinfo=UTC)
        assert current_slot(now=now) == 202610200100

    def test_offset_minutes_crosses_midnight(self):
        now = datetime(2026, 10, 19, 3, 0, tzinfo=UTC)  # 11:00 local
        assert current_slot(-720, now=now) == 202610182300

    def test_naive_now_is_treated_as_utc(self):
        assert current_slot(now=datetime(2026, 10, 19, 6, 7)) == 202610191405

    def test_other_utc_offset(self):
        now = datetime(2026, 10, 19, 6, 7, tzinfo=UTC)
        assert current_slot(now=now, utc_offset_hours=0) == 202610190605

    @given(
        st.datetimes(min_value=datetime(2000, 1, 1), max_value=datetime(2099, 12, 31)),
        st.integers(min_value=-2000, max_value=2000),
    )
    def test_minute_is_floor_of_local_minute(self, naive, offset):
        now = naive.replace(tzinfo=UTC)
        local = now + timedelta(hours=8, minutes=offset)
        slot = current_slot(offset, now=now)
        assert slot_minute(slot) == (local.minute // 5) * 5
        assert slot_minute(slot) % 5 == 0
        assert slot // 10000 == int(local.strftime("%Y%m%d"))


class TestSlotArithmetic:
    def test_round_trip(self):
        assert datetime_to_slot(slot_to_datetime(202610191405)) == 202610191405

    def test_shift_across_midnight(self):
        assert shift_slot(202610200000, -5) == 202610192355
        assert shift_slot(202610192355, 5) == 202610200000

    def test_shift_across_month(self):
        assert shift_slot(202611010005, -10) == 202610312355

    def test_slot_to_datetime_rejects_garbage(self):
        with pytest.raises(ValueError):
            slot_to_datetime(12345)

    def test_top_of_hour(self):
        assert is_top_of_hour(202610191400) is True
        assert is_top_of_hour(202610191405) is False


class TestMinutesBetween:
    def test_same_day(self):
        assert minutes_between(202610191430, 202610191405) == 25
        assert minutes_between(202610191405, 202610191430) == -25

    def test_ignores_date(self):
        # Two days apart at the same time of day: 0
        assert minutes_between(202610211405, 202610191405) == 0

    def test_across_midnight_is_negative(self):
        assert minutes_between(202610200005, 202610192355) == -1430

    def test_missing_operand_is_zero(self):
        assert minutes_between(202610191405, None) == 0
        assert minutes_between(None, 202610191405) == 0
