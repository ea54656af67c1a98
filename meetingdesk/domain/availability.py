"""
Availability grid for an event: entrepreneur x time slot booking status.

Pure domain logic without any external dependencies (no database, no I/O).
The grid is recomputed from scratch whenever the bookings of an event change.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from typing import AbstractSet, Dict, Iterable, List, Optional, Sequence, Tuple
from uuid import UUID

from .models import Entrepreneur, MeetingBooking
from .time_slots import TIME_SLOTS, TimeSlot

logger = logging.getLogger(__name__)

# (entrepreneur id, slot) pairs blocked by rules outside the booking set
UnavailableSlots = AbstractSet[Tuple[UUID, TimeSlot]]


class BookingStatus(str, Enum):
    AVAILABLE = "available"
    BOOKED = "booked"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class SlotAvailability:
    """Status of one time slot for one entrepreneur."""
    time_slot: TimeSlot
    status: BookingStatus
    booking: Optional[MeetingBooking] = None


@dataclass(frozen=True)
class EntrepreneurAvailability:
    """One row of the grid."""
    entrepreneur: Entrepreneur
    time_slots: List[SlotAvailability]


@dataclass(frozen=True)
class EventAvailabilityGrid:
    """
    Booking status of every assigned entrepreneur in every time slot.

    Rows follow the order the entrepreneurs were supplied in, columns always
    follow the canonical time slot order.
    """
    event_id: UUID
    entrepreneurs: List[EntrepreneurAvailability] = field(default_factory=list)

    def cell(self, entrepreneur_id: UUID, time_slot: TimeSlot) -> SlotAvailability | None:
        for row in self.entrepreneurs:
            if row.entrepreneur.id == entrepreneur_id:
                for cell in row.time_slots:
                    if cell.time_slot == time_slot:
                        return cell
        return None

    def is_available(self, entrepreneur_id: UUID, time_slot: TimeSlot) -> bool:
        cell = self.cell(entrepreneur_id, time_slot)
        return cell is not None and cell.status == BookingStatus.AVAILABLE

    def count(self, status: BookingStatus) -> int:
        """Number of cells with the given status."""
        return sum(
            1
            for row in self.entrepreneurs
            for cell in row.time_slots
            if cell.status == status
        )

    def cells(self) -> Iterable[Tuple[Entrepreneur, SlotAvailability]]:
        for row in self.entrepreneurs:
            for cell in row.time_slots:
                yield row.entrepreneur, cell


@dataclass(frozen=True)
class BookingConflict:
    """An attempted booking for a slot that is already taken."""
    event_id: UUID
    entrepreneur_id: UUID
    time_slot: TimeSlot
    existing_booking: MeetingBooking


def find_conflict(
    bookings: Iterable[MeetingBooking],
    event_id: UUID,
    entrepreneur_id: UUID,
    time_slot: TimeSlot,
) -> BookingConflict | None:
    """
    Check whether a new booking would collide with an existing one.

    Args:
        bookings: Current bookings (of any event)
        event_id: Event of the new booking
        entrepreneur_id: Entrepreneur of the new booking
        time_slot: Requested slot

    Returns:
        The conflict, or None if the slot is free
    """
    for booking in bookings:
        if (
            booking.event_id == event_id
            and booking.entrepreneur_id == entrepreneur_id
            and booking.slot == time_slot
        ):
            return BookingConflict(
                event_id=event_id,
                entrepreneur_id=entrepreneur_id,
                time_slot=time_slot,
                existing_booking=booking,
            )
    return None


class AvailabilityCalculator:
    """
    Derives the availability grid of an event from its bookings.

    Algorithm:
    1. Index the event's bookings by (entrepreneur, slot)
    2. For each assigned entrepreneur, walk the five slots in canonical order
    3. A slot with a booking is booked, a slot in the override set is
       unavailable, anything else is available
    """

    def build_grid(
        self,
        event_id: UUID,
        entrepreneurs: Sequence[Entrepreneur],
        bookings: Iterable[MeetingBooking],
        unavailable: UnavailableSlots = frozenset(),
    ) -> EventAvailabilityGrid:
        """
        Build the availability grid for an event.

        Args:
            event_id: Event the grid is for
            entrepreneurs: Entrepreneurs assigned to the event, in display order
            bookings: Existing bookings of the event
            unavailable: (entrepreneur id, slot) pairs blocked by external rules

        Returns:
            EventAvailabilityGrid with len(entrepreneurs) x 5 cells
        """
        assigned = {entrepreneur.id for entrepreneur in entrepreneurs}
        booked = self._index_bookings(event_id, assigned, bookings)

        rows = [
            EntrepreneurAvailability(
                entrepreneur=entrepreneur,
                time_slots=[
                    self._slot_status(entrepreneur.id, slot, booked, unavailable)
                    for slot in TIME_SLOTS
                ],
            )
            for entrepreneur in entrepreneurs
        ]

        return EventAvailabilityGrid(event_id=event_id, entrepreneurs=rows)

    def _slot_status(
        self,
        entrepreneur_id: UUID,
        slot: TimeSlot,
        booked: Dict[Tuple[UUID, TimeSlot], MeetingBooking],
        unavailable: UnavailableSlots,
    ) -> SlotAvailability:
        booking = booked.get((entrepreneur_id, slot))
        if booking is not None:
            # An existing booking is a fact; it wins over any override.
            return SlotAvailability(time_slot=slot, status=BookingStatus.BOOKED, booking=booking)

        if (entrepreneur_id, slot) in unavailable:
            return SlotAvailability(time_slot=slot, status=BookingStatus.UNAVAILABLE)

        return SlotAvailability(time_slot=slot, status=BookingStatus.AVAILABLE)

    def _index_bookings(
        self,
        event_id: UUID,
        assigned: AbstractSet[UUID],
        bookings: Iterable[MeetingBooking],
    ) -> Dict[Tuple[UUID, TimeSlot], MeetingBooking]:
        """
        Map (entrepreneur, slot) to its booking.

        Bookings of other events, of unassigned entrepreneurs or with a slot
        outside the fixed set do not belong in the grid and are skipped. The
        write path keeps at most one booking per pair; should the store still
        hold more, the earliest one is used.
        """
        grouped: Dict[Tuple[UUID, TimeSlot], List[MeetingBooking]] = defaultdict(list)

        for booking in bookings:
            if booking.event_id != event_id:
                logger.debug("Skipping booking %s of event %s", booking.id, booking.event_id)
                continue

            slot = booking.slot
            if slot is None:
                logger.warning(
                    "Booking %s has unknown time slot %r", booking.id, booking.time_slot
                )
                continue

            if booking.entrepreneur_id not in assigned:
                logger.debug(
                    "Skipping booking %s of unassigned entrepreneur %s",
                    booking.id,
                    booking.entrepreneur_id,
                )
                continue

            grouped[(booking.entrepreneur_id, slot)].append(booking)

        index: Dict[Tuple[UUID, TimeSlot], MeetingBooking] = {}
        for key, matches in grouped.items():
            if len(matches) > 1:
                logger.warning(
                    "%d bookings for entrepreneur %s in slot %s of event %s",
                    len(matches),
                    key[0],
                    key[1].value,
                    event_id,
                )
            index[key] = min(matches, key=lambda booking: booking.created_at)

        return index
