"""
Tests for the availability grid and the booking conflict check.
"""

import logging
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from meetingdesk.domain.availability import (
    AvailabilityCalculator,
    BookingStatus,
    find_conflict,
)
from meetingdesk.domain.models import Entrepreneur, MeetingBooking
from meetingdesk.domain.time_slots import TIME_SLOTS, TimeSlot

NOW = datetime(2026, 10, 1, 9, 0, tzinfo=timezone.utc)


def make_entrepreneur(name):
    return Entrepreneur(
        id=uuid4(),
        company_name=name,
        registration_number="REG-1",
        business_category="Technology",
        created_at=NOW,
        updated_at=NOW,
    )


def make_booking(event_id, entrepreneur, time_slot, created_at=NOW):
    return MeetingBooking(
        id=uuid4(),
        event_id=event_id,
        entrepreneur_id=entrepreneur.id,
        participant_id=uuid4(),
        time_slot=time_slot,
        created_at=created_at,
    )


@pytest.fixture
def event_id():
    return uuid4()


@pytest.fixture
def entrepreneurs():
    return [make_entrepreneur("Acme"), make_entrepreneur("Globex"), make_entrepreneur("Initech")]


class TestAvailabilityCalculator:
    """Tests for AvailabilityCalculator."""

    def test_no_bookings_everything_available(self, event_id, entrepreneurs):
        """N entrepreneurs and no bookings give N x 5 available cells."""
        grid = AvailabilityCalculator().build_grid(event_id, entrepreneurs, [])

        assert grid.event_id == event_id
        assert len(grid.entrepreneurs) == 3
        assert grid.count(BookingStatus.AVAILABLE) == 15
        for row in grid.entrepreneurs:
            assert [cell.time_slot for cell in row.time_slots] == list(TIME_SLOTS)
            assert all(cell.booking is None for cell in row.time_slots)

    def test_rows_keep_input_order(self, event_id, entrepreneurs):
        reordered = [entrepreneurs[2], entrepreneurs[0], entrepreneurs[1]]

        grid = AvailabilityCalculator().build_grid(event_id, reordered, [])

        assert [row.entrepreneur.company_name for row in grid.entrepreneurs] == [
            "Initech",
            "Acme",
            "Globex",
        ]

    def test_one_booking_marks_one_cell(self, event_id, entrepreneurs):
        globex = entrepreneurs[1]
        booking = make_booking(event_id, globex, "11:00-12:00")

        grid = AvailabilityCalculator().build_grid(event_id, entrepreneurs, [booking])

        cell = grid.cell(globex.id, TimeSlot.ELEVEN_AM)
        assert cell.status == BookingStatus.BOOKED
        assert cell.booking == booking
        assert grid.count(BookingStatus.BOOKED) == 1
        assert grid.count(BookingStatus.AVAILABLE) == 14
        assert not grid.is_available(globex.id, TimeSlot.ELEVEN_AM)
        assert grid.is_available(entrepreneurs[0].id, TimeSlot.ELEVEN_AM)

    def test_unavailable_override(self, event_id, entrepreneurs):
        acme = entrepreneurs[0]

        grid = AvailabilityCalculator().build_grid(
            event_id, entrepreneurs, [], unavailable={(acme.id, TimeSlot.THREE_PM)}
        )

        assert grid.cell(acme.id, TimeSlot.THREE_PM).status == BookingStatus.UNAVAILABLE
        assert grid.count(BookingStatus.UNAVAILABLE) == 1
        assert grid.count(BookingStatus.AVAILABLE) == 14

    def test_booking_wins_over_override(self, event_id, entrepreneurs):
        acme = entrepreneurs[0]
        booking = make_booking(event_id, acme, "15:00-16:00")

        grid = AvailabilityCalculator().build_grid(
            event_id, entrepreneurs, [booking], unavailable={(acme.id, TimeSlot.THREE_PM)}
        )

        cell = grid.cell(acme.id, TimeSlot.THREE_PM)
        assert cell.status == BookingStatus.BOOKED
        assert cell.booking == booking

    def test_bookings_that_do_not_belong_are_skipped(self, event_id, entrepreneurs):
        """Other events, unassigned entrepreneurs and unknown slots never show up."""
        acme = entrepreneurs[0]
        outsider = make_entrepreneur("Outsider")
        bookings = [
            make_booking(uuid4(), acme, "10:00-11:00"),
            make_booking(event_id, outsider, "10:00-11:00"),
            make_booking(event_id, acme, "09:00-10:00"),
        ]

        grid = AvailabilityCalculator().build_grid(event_id, entrepreneurs, bookings)

        assert grid.count(BookingStatus.BOOKED) == 0
        assert grid.cell(outsider.id, TimeSlot.TEN_AM) is None

    def test_duplicate_bookings_use_earliest(self, event_id, entrepreneurs, caplog):
        acme = entrepreneurs[0]
        later = make_booking(event_id, acme, "13:00-14:00", created_at=NOW + timedelta(minutes=5))
        earlier = make_booking(event_id, acme, "13:00-14:00", created_at=NOW)

        with caplog.at_level(logging.WARNING, logger="meetingdesk.domain.availability"):
            grid = AvailabilityCalculator().build_grid(event_id, entrepreneurs, [later, earlier])

        assert grid.cell(acme.id, TimeSlot.ONE_PM).booking == earlier
        assert grid.count(BookingStatus.BOOKED) == 1
        assert "2 bookings" in caplog.text

    def test_no_entrepreneurs(self, event_id):
        grid = AvailabilityCalculator().build_grid(event_id, [], [])

        assert grid.entrepreneurs == []
        assert list(grid.cells()) == []

    def test_cells_iterates_row_major(self, event_id, entrepreneurs):
        grid = AvailabilityCalculator().build_grid(event_id, entrepreneurs[:2], [])

        cells = list(grid.cells())

        assert len(cells) == 10
        assert cells[0][0] == entrepreneurs[0]
        assert cells[0][1].time_slot is TimeSlot.TEN_AM
        assert cells[5][0] == entrepreneurs[1]


class TestFindConflict:
    """Tests for the booking conflict check."""

    def test_conflict_on_same_triple(self, event_id, entrepreneurs):
        acme = entrepreneurs[0]
        existing = make_booking(event_id, acme, "10:00-11:00")

        conflict = find_conflict([existing], event_id, acme.id, TimeSlot.TEN_AM)

        assert conflict is not None
        assert conflict.existing_booking == existing
        assert conflict.time_slot is TimeSlot.TEN_AM

    def test_other_slot_is_free(self, event_id, entrepreneurs):
        acme = entrepreneurs[0]
        existing = make_booking(event_id, acme, "10:00-11:00")

        assert find_conflict([existing], event_id, acme.id, TimeSlot.ELEVEN_AM) is None

    def test_other_entrepreneur_is_free(self, event_id, entrepreneurs):
        existing = make_booking(event_id, entrepreneurs[0], "10:00-11:00")

        assert find_conflict([existing], event_id, entrepreneurs[1].id, TimeSlot.TEN_AM) is None

    def test_other_event_is_free(self, event_id, entrepreneurs):
        acme = entrepreneurs[0]
        existing = make_booking(uuid4(), acme, "10:00-11:00")

        assert find_conflict([existing], event_id, acme.id, TimeSlot.TEN_AM) is None

    def test_no_bookings(self, event_id, entrepreneurs):
        assert find_conflict([], event_id, entrepreneurs[0].id, TimeSlot.TEN_AM) is None
