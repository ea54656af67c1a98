"""
Tests for the booking change watcher.
"""

from meetingdesk.domain.forms import MeetingBookingForm
from meetingdesk.domain.time_slots import TimeSlot
from meetingdesk.services.watcher import BookingWatcher

from sample_data import EVENT_ID, JONAS_ID, LOGISTICS_ID, SEEDED_BOOKING_ID


class TestBookingWatcher:
    """Tests for BookingWatcher."""

    def test_first_poll_reports_current_bookings(self, repositories):
        watcher = BookingWatcher(repositories.bookings, EVENT_ID)

        bookings = watcher.poll_once()

        assert [b.id for b in bookings] == [SEEDED_BOOKING_ID]

    def test_unchanged_bookings_report_nothing(self, repositories):
        watcher = BookingWatcher(repositories.bookings, EVENT_ID)
        watcher.poll_once()

        assert watcher.poll_once() is None

    def test_new_and_cancelled_bookings_are_changes(self, repositories):
        watcher = BookingWatcher(repositories.bookings, EVENT_ID)
        watcher.poll_once()

        repositories.bookings.create(
            MeetingBookingForm(
                event_id=EVENT_ID,
                entrepreneur_id=LOGISTICS_ID,
                participant_id=JONAS_ID,
                time_slot=TimeSlot.TWO_PM,
            )
        )
        assert len(watcher.poll_once()) == 2

        repositories.bookings.delete(SEEDED_BOOKING_ID)
        assert len(watcher.poll_once()) == 1

    def test_run_calls_back_on_change_only(self, repositories):
        sleeps = []
        received = []
        watcher = BookingWatcher(repositories.bookings, EVENT_ID, interval=2.5, sleep=sleeps.append)

        watcher.run(received.append, max_polls=3)

        assert len(received) == 1
        assert sleeps == [2.5, 2.5]
