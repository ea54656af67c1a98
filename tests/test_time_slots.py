"""
Tests for time slots and time ranges.
"""

from datetime import date

import pendulum
import pytest

from meetingdesk.domain.time_slots import (
    TIME_SLOT_INFO,
    TIME_SLOTS,
    TimeRange,
    TimeSlot,
    TimeSlotInfo,
)


class TestTimeRange:
    """Tests for TimeRange."""

    def test_end_must_follow_start(self):
        """A range ending at its start is rejected."""
        start = pendulum.datetime(2030, 4, 16, 13, 0, tz="Europe/Berlin")

        with pytest.raises(ValueError, match="must be before"):
            TimeRange(start=start, end=start)

    def test_str_format(self):
        tr = TimeRange(
            start=pendulum.parse("2030-04-16 13:00", tz="Europe/Berlin"),
            end=pendulum.parse("2030-04-16 14:00", tz="Europe/Berlin"),
        )

        assert str(tr) == "16.04.2030 13:00 - 14:00"


class TestTimeSlot:
    """Tests for the fixed set of meeting windows."""

    def test_canonical_order(self):
        """Slots are ordered by start time and there is no slot over lunch."""
        assert [slot.value for slot in TIME_SLOTS] == [
            "10:00-11:00",
            "11:00-12:00",
            "13:00-14:00",
            "14:00-15:00",
            "15:00-16:00",
        ]

    def test_parse_known_literal(self):
        assert TimeSlot.parse("13:00-14:00") is TimeSlot.ONE_PM
        assert TimeSlot.parse(TimeSlot.TEN_AM) is TimeSlot.TEN_AM

    @pytest.mark.parametrize("value", ["09:00-10:00", "12:00-13:00", "10:00 - 11:00", "", None, 10])
    def test_parse_rejects_other_values(self, value):
        assert TimeSlot.parse(value) is None

    def test_str_is_literal(self):
        assert str(TimeSlot.THREE_PM) == "15:00-16:00"


class TestTimeSlotInfo:
    """Tests for the slot display metadata."""

    def test_every_slot_has_metadata(self):
        assert set(TIME_SLOT_INFO) == set(TIME_SLOTS)
        for slot, info in TIME_SLOT_INFO.items():
            assert info.slot is slot
            assert slot.info is info
            assert f"{info.start_time}-{info.end_time}" == slot.value

    def test_first_and_last_slot(self):
        assert TIME_SLOT_INFO[TimeSlot.TEN_AM] == TimeSlotInfo(
            slot=TimeSlot.TEN_AM,
            start_time="10:00",
            end_time="11:00",
            display_name="10:00 AM - 11:00 AM",
            is_morning=True,
            is_afternoon=False,
        )
        assert TIME_SLOT_INFO[TimeSlot.THREE_PM].display_name == "3:00 PM - 4:00 PM"

    def test_morning_and_afternoon(self):
        """Exactly one of the two flags is set; the two morning slots come first."""
        morning = [slot for slot in TIME_SLOTS if slot.info.is_morning]
        afternoon = [slot for slot in TIME_SLOTS if slot.info.is_afternoon]

        assert morning == [TimeSlot.TEN_AM, TimeSlot.ELEVEN_AM]
        assert afternoon == [TimeSlot.ONE_PM, TimeSlot.TWO_PM, TimeSlot.THREE_PM]

    def test_table_is_read_only(self):
        with pytest.raises(TypeError):
            TIME_SLOT_INFO[TimeSlot.TEN_AM] = TIME_SLOT_INFO[TimeSlot.ELEVEN_AM]

    def test_on_calendar_day(self):
        """A slot resolves to a one-hour range in the event's timezone."""
        time_range = TimeSlot.ONE_PM.info.on(date(2030, 4, 16), "Europe/Berlin")

        assert time_range.start == pendulum.datetime(2030, 4, 16, 13, 0, tz="Europe/Berlin")
        assert time_range.end == pendulum.datetime(2030, 4, 16, 14, 0, tz="Europe/Berlin")
        assert time_range.start.timezone_name == "Europe/Berlin"
