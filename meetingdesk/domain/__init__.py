"""
Domain layer - business rules and models, free of I/O.
"""

from .availability import (
    AvailabilityCalculator,
    BookingConflict,
    BookingStatus,
    EntrepreneurAvailability,
    EventAvailabilityGrid,
    SlotAvailability,
    find_conflict,
)
from .models import Entrepreneur, Event, EventEntrepreneur, MeetingBooking, Participant
from .time_slots import TIME_SLOT_INFO, TIME_SLOTS, TimeRange, TimeSlot, TimeSlotInfo
from .validation import ValidationResult

__all__ = [
    "AvailabilityCalculator",
    "BookingConflict",
    "BookingStatus",
    "EntrepreneurAvailability",
    "EventAvailabilityGrid",
    "SlotAvailability",
    "find_conflict",
    "Entrepreneur",
    "Event",
    "EventEntrepreneur",
    "MeetingBooking",
    "Participant",
    "TIME_SLOT_INFO",
    "TIME_SLOTS",
    "TimeRange",
    "TimeSlot",
    "TimeSlotInfo",
    "ValidationResult",
]
