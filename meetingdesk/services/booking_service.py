"""
Application services for managing events and meeting bookings.

The service validates form input, runs the booking conflict check and
delegates persistence to the repositories. Grid derivation is left to the
domain-level ``AvailabilityCalculator``.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping
from uuid import UUID

from ..domain.availability import (
    AvailabilityCalculator,
    EventAvailabilityGrid,
    UnavailableSlots,
    find_conflict,
)
from ..domain.exceptions import (
    BookingConflictError,
    DuplicateRecordError,
    FormValidationError,
)
from ..domain.forms import (
    MeetingBookingForm,
    validate_entrepreneur,
    validate_event,
    validate_event_entrepreneur,
    validate_meeting_booking,
    validate_participant,
)
from ..domain.models import (
    Entrepreneur,
    Event,
    EventEntrepreneur,
    MeetingBooking,
    Participant,
)
from ..domain.validation import ValidationResult
from .repositories import Repositories

logger = logging.getLogger(__name__)


def _validated(result: ValidationResult) -> Any:
    if not result.success:
        raise FormValidationError(result.errors)
    return result.data


class BookingService:
    """
    Entry point for every write the admin tool performs.

    Form payloads are untrusted mappings (CLI options, JSON bodies); they are
    validated here before anything reaches the database.
    """

    def __init__(
        self,
        repositories: Repositories,
        calculator: AvailabilityCalculator | None = None,
        timezone: str | None = None,
    ) -> None:
        self._repos = repositories
        self._calculator = calculator or AvailabilityCalculator()
        self._timezone = timezone

    @property
    def repositories(self) -> Repositories:
        return self._repos

    # Entrepreneurs

    def create_entrepreneur(self, data: Mapping[str, Any]) -> Entrepreneur:
        return self._repos.entrepreneurs.create(_validated(validate_entrepreneur(data)))

    def update_entrepreneur(self, entrepreneur_id: UUID | str, data: Mapping[str, Any]) -> Entrepreneur:
        changes = _validated(validate_entrepreneur(data, partial=True))
        return self._repos.entrepreneurs.update(entrepreneur_id, changes)

    # Participants

    def create_participant(self, data: Mapping[str, Any]) -> Participant:
        return self._repos.participants.create(_validated(validate_participant(data)))

    def update_participant(self, participant_id: UUID | str, data: Mapping[str, Any]) -> Participant:
        changes = _validated(validate_participant(data, partial=True))
        return self._repos.participants.update(participant_id, changes)

    # Events

    def create_event(self, data: Mapping[str, Any]) -> Event:
        form = _validated(validate_event(data, timezone=self._timezone))
        return self._repos.events.create(form)

    def update_event(self, event_id: UUID | str, data: Mapping[str, Any]) -> Event:
        changes = _validated(validate_event(data, partial=True, timezone=self._timezone))
        self._repos.events.update(event_id, changes)
        return self._repos.events.get(event_id)

    def assign_entrepreneur(self, event_id: UUID | str, entrepreneur_id: UUID | str) -> EventEntrepreneur:
        """
        Assign an entrepreneur to an event.

        Raises:
            FormValidationError: If either id is not a UUID
            DuplicateRecordError: If the entrepreneur is already assigned
        """
        form = _validated(
            validate_event_entrepreneur(
                {"event_id": str(event_id), "entrepreneur_id": str(entrepreneur_id)}
            )
        )
        return self._repos.events.assign_entrepreneur(form)

    # Bookings

    def create_booking(self, data: Mapping[str, Any]) -> MeetingBooking:
        """
        Book a meeting slot.

        The slot is checked against the current bookings of the event before
        the insert. The check and the insert are separate calls, so two
        concurrent requests can both pass the check; the unique constraint on
        (event_id, entrepreneur_id, time_slot) in the database rejects the
        second insert, which is reported as the same conflict.

        Raises:
            FormValidationError: If the booking form is invalid
            BookingConflictError: If the slot is already booked
        """
        form: MeetingBookingForm = _validated(validate_meeting_booking(data))
        self._raise_on_conflict(form)

        try:
            return self._repos.bookings.create(form)
        except DuplicateRecordError:
            logger.info(
                "Booking insert for %s/%s/%s rejected by the database",
                form.event_id,
                form.entrepreneur_id,
                form.time_slot.value,
            )
            self._raise_on_conflict(form)
            raise

    def cancel_booking(self, booking_id: UUID | str) -> None:
        self._repos.bookings.delete(booking_id)

    def availability_grid(
        self,
        event_id: UUID | str,
        unavailable: UnavailableSlots = frozenset(),
    ) -> EventAvailabilityGrid:
        """Derive the current availability grid of an event."""
        event_uuid = UUID(str(event_id))
        entrepreneurs = self._repos.events.list_entrepreneurs(event_uuid)
        bookings = self._repos.bookings.list_by_event(event_uuid)
        return self._calculator.build_grid(event_uuid, entrepreneurs, bookings, unavailable)

    def _raise_on_conflict(self, form: MeetingBookingForm) -> None:
        if self._repos.bookings.check_availability(form.event_id, form.entrepreneur_id, form.time_slot):
            return

        # Taken: load the event's bookings to report the one holding the slot
        conflict = find_conflict(
            self._repos.bookings.list_by_event(form.event_id),
            form.event_id,
            form.entrepreneur_id,
            form.time_slot,
        )
        if conflict is not None:
            raise BookingConflictError(conflict)
