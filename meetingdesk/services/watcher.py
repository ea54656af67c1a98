"""
Change notification for the bookings of one event.

Callers only need to know that the booking set of an event changed so they
can re-derive the availability grid. The watcher finds out by polling.
"""

import logging
import time
from typing import Callable, FrozenSet, List, Optional, Tuple
from uuid import UUID

from ..domain.models import MeetingBooking
from .repositories import BookingRepository

logger = logging.getLogger(__name__)

Fingerprint = FrozenSet[Tuple[str, str, str, str]]


def fingerprint(bookings: List[MeetingBooking]) -> Fingerprint:
    return frozenset(
        (str(b.id), str(b.entrepreneur_id), str(b.participant_id), b.time_slot)
        for b in bookings
    )


class BookingWatcher:
    """
    Polls the bookings of an event and reports changes.

    The first poll always counts as a change, so a callback receives the
    initial booking set before any updates.
    """

    def __init__(
        self,
        bookings: BookingRepository,
        event_id: UUID | str,
        interval: float = 5.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._bookings = bookings
        self.event_id = event_id
        self.interval = interval
        self._sleep = sleep
        self._last: Optional[Fingerprint] = None

    def poll_once(self) -> Optional[List[MeetingBooking]]:
        """Return the bookings if they changed since the previous poll, else None."""
        bookings = self._bookings.list_by_event(self.event_id)
        current = fingerprint(bookings)

        if current == self._last:
            return None

        if self._last is not None:
            logger.info("Bookings of event %s changed (%d now)", self.event_id, len(bookings))
        self._last = current
        return bookings

    def run(
        self,
        callback: Callable[[List[MeetingBooking]], None],
        max_polls: Optional[int] = None,
    ) -> None:
        """
        Poll until interrupted (or ``max_polls`` polls) and call back on change.
        """
        polls = 0
        while True:
            changed = self.poll_once()
            if changed is not None:
                callback(changed)

            polls += 1
            if max_polls is not None and polls >= max_polls:
                return
            self._sleep(self.interval)
