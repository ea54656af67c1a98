"""
Meeting time slots and time ranges.

An event day is split into five fixed one-hour meeting windows. The set is
closed: bookings, forms and availability grids only ever use these members, and
the display metadata for each of them is a static lookup table.
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Tuple

import pendulum
from pendulum import DateTime


@dataclass(frozen=True)
class TimeRange:
    """
    Represents an immutable time range with start and end datetime.

    Invariant: start must be before end.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Start time {self.start} must be before end time {self.end}")

    def __str__(self) -> str:
        return f"{self.start.format('DD.MM.YYYY HH:mm')} - {self.end.format('HH:mm')}"


class TimeSlot(str, Enum):
    """The five bookable meeting windows, in canonical order."""

    TEN_AM = "10:00-11:00"
    ELEVEN_AM = "11:00-12:00"
    ONE_PM = "13:00-14:00"
    TWO_PM = "14:00-15:00"
    THREE_PM = "15:00-16:00"

    @classmethod
    def parse(cls, value: object) -> "TimeSlot | None":
        """Return the member for a slot literal, or None if it is not one."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value)
        except ValueError:
            return None

    @property
    def info(self) -> "TimeSlotInfo":
        return TIME_SLOT_INFO[self]

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class TimeSlotInfo:
    """Display metadata for a time slot."""
    slot: TimeSlot
    start_time: str  # HH:MM
    end_time: str  # HH:MM
    display_name: str
    is_morning: bool
    is_afternoon: bool

    def on(self, day: date, timezone: str = "Europe/Berlin") -> TimeRange:
        """
        Get the concrete time range of this slot on a calendar day.

        Args:
            day: Calendar day of the event
            timezone: IANA timezone the event takes place in

        Returns:
            TimeRange covering the slot on that day
        """
        return TimeRange(
            start=_at(day, self.start_time, timezone),
            end=_at(day, self.end_time, timezone),
        )


def _at(day: date, hh_mm: str, timezone: str) -> DateTime:
    hour, minute = (int(part) for part in hh_mm.split(":"))
    return pendulum.datetime(day.year, day.month, day.day, hour, minute, tz=timezone)


TIME_SLOTS: Tuple[TimeSlot, ...] = tuple(TimeSlot)

TIME_SLOT_INFO: Mapping[TimeSlot, TimeSlotInfo] = MappingProxyType({
    TimeSlot.TEN_AM: TimeSlotInfo(
        slot=TimeSlot.TEN_AM,
        start_time="10:00",
        end_time="11:00",
        display_name="10:00 AM - 11:00 AM",
        is_morning=True,
        is_afternoon=False,
    ),
    TimeSlot.ELEVEN_AM: TimeSlotInfo(
        slot=TimeSlot.ELEVEN_AM,
        start_time="11:00",
        end_time="12:00",
        display_name="11:00 AM - 12:00 PM",
        is_morning=True,
        is_afternoon=False,
    ),
    TimeSlot.ONE_PM: TimeSlotInfo(
        slot=TimeSlot.ONE_PM,
        start_time="13:00",
        end_time="14:00",
        display_name="1:00 PM - 2:00 PM",
        is_morning=False,
        is_afternoon=True,
    ),
    TimeSlot.TWO_PM: TimeSlotInfo(
        slot=TimeSlot.TWO_PM,
        start_time="14:00",
        end_time="15:00",
        display_name="2:00 PM - 3:00 PM",
        is_morning=False,
        is_afternoon=True,
    ),
    TimeSlot.THREE_PM: TimeSlotInfo(
        slot=TimeSlot.THREE_PM,
        start_time="15:00",
        end_time="16:00",
        display_name="3:00 PM - 4:00 PM",
        is_morning=False,
        is_afternoon=True,
    ),
})
