"""
Domain-specific exception hierarchy for the meetingdesk application.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, List

if TYPE_CHECKING:
    from .availability import BookingConflict


class MeetingDeskError(Exception):
    """Base class for all application-level errors."""


class ConfigurationError(MeetingDeskError):
    """Raised when the application is not configured well enough to run."""


class FormValidationError(MeetingDeskError):
    """Raised by services when submitted form data does not validate."""

    def __init__(self, errors: Dict[str, List[str]]):
        self.errors = errors
        fields = ", ".join(sorted(errors))
        super().__init__(f"Invalid form data ({fields})")


class BookingConflictError(MeetingDeskError):
    """Raised when a booking would occupy an already booked slot."""

    def __init__(self, conflict: "BookingConflict"):
        self.conflict = conflict
        super().__init__(
            f"Time slot {conflict.time_slot.value} is already booked for "
            f"entrepreneur {conflict.entrepreneur_id} at event {conflict.event_id}"
        )


class NotFoundError(MeetingDeskError):
    """Raised when a record looked up by id does not exist."""


class DataAccessError(MeetingDeskError):
    """Raised when the hosted database cannot be reached or rejects a request."""


class DuplicateRecordError(DataAccessError):
    """Raised when a write violates a unique constraint in the database."""
