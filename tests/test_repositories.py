"""
Tests for the repositories over the in-memory database.
"""

from datetime import date
from uuid import uuid4

import pytest

from meetingdesk.domain.exceptions import NotFoundError
from meetingdesk.domain.forms import EventForm, ParticipantForm
from meetingdesk.domain.time_slots import TimeSlot

from sample_data import AMIRA_ID, EVENT_ID, JONAS_ID, LEGAL_ID, LOGISTICS_ID, SOLAR_ID


class TestEntrepreneurRepository:
    def test_list_all_ordered_by_company_name(self, repositories):
        names = [e.company_name for e in repositories.entrepreneurs.list_all()]

        assert names == ["Brightpath Logistics", "Nordlicht Solar GmbH", "Quillstone Legal"]

    def test_list_active(self, repositories):
        active = repositories.entrepreneurs.list_active()

        assert LEGAL_ID not in {e.id for e in active}
        assert len(active) == 2

    def test_get_unknown(self, repositories):
        with pytest.raises(NotFoundError):
            repositories.entrepreneurs.get(uuid4())

    def test_list_by_ids(self, repositories):
        found = repositories.entrepreneurs.list_by_ids([SOLAR_ID, LEGAL_ID])

        assert [e.id for e in found] == [SOLAR_ID, LEGAL_ID]
        assert repositories.entrepreneurs.list_by_ids([]) == []

    def test_delete_cascades_to_bookings(self, repositories):
        repositories.entrepreneurs.delete(SOLAR_ID)

        assert repositories.bookings.list_by_event(EVENT_ID) == []
        assert [e.id for e in repositories.events.list_entrepreneurs(EVENT_ID)] == [LOGISTICS_ID]


class TestParticipantRepository:
    def test_create_and_list(self, repositories):
        form = ParticipantForm(name="Bea Krause", phone="030 1234", email="bea@example.com")

        created = repositories.participants.create(form)

        assert created.created_at is not None
        names = [p.name for p in repositories.participants.list_all()]
        assert names == ["Amira Haddad", "Bea Krause", "Jonas Weber"]

    def test_update_unknown(self, repositories):
        with pytest.raises(NotFoundError):
            repositories.participants.update(uuid4(), {"name": "Nobody"})


class TestEventRepository:
    def test_get_embeds_entrepreneurs(self, repositories):
        event = repositories.events.get(EVENT_ID)

        assert event.name == "Spring Founders Meetup"
        assert event.event_date == date(2030, 4, 16)
        assert [e.company_name for e in event.entrepreneurs] == [
            "Brightpath Logistics",
            "Nordlicht Solar GmbH",
        ]

    def test_list_all_newest_first(self, repositories):
        repositories.events.create(EventForm(name="Winter Summit", event_date=date(2031, 1, 20)))

        events = repositories.events.list_all()

        assert [e.name for e in events] == ["Winter Summit", "Spring Founders Meetup"]
        assert events[0].entrepreneurs == []

    def test_remove_entrepreneur(self, repositories):
        repositories.events.remove_entrepreneur(EVENT_ID, LOGISTICS_ID)

        assert [e.id for e in repositories.events.list_entrepreneurs(EVENT_ID)] == [SOLAR_ID]

    def test_delete_cascades(self, repositories, gateway):
        repositories.events.delete(EVENT_ID)

        assert repositories.events.list_all() == []
        assert gateway.select("event_entrepreneurs") == []
        assert gateway.select("meeting_bookings") == []


class TestBookingRepository:
    def test_list_by_event_embeds_details(self, repositories):
        bookings = repositories.bookings.list_by_event(EVENT_ID)

        assert len(bookings) == 1
        assert bookings[0].entrepreneur.id == SOLAR_ID
        assert bookings[0].participant.id == AMIRA_ID
        assert bookings[0].slot is TimeSlot.ELEVEN_AM

    def test_list_by_unknown_event(self, repositories):
        assert repositories.bookings.list_by_event(uuid4()) == []

    def test_check_availability(self, repositories):
        assert not repositories.bookings.check_availability(EVENT_ID, SOLAR_ID, TimeSlot.ELEVEN_AM)
        assert repositories.bookings.check_availability(EVENT_ID, SOLAR_ID, TimeSlot.TEN_AM)
        assert repositories.bookings.check_availability(EVENT_ID, LOGISTICS_ID, TimeSlot.ELEVEN_AM)

    def test_participant_delete_cascades(self, repositories):
        repositories.participants.delete(AMIRA_ID)

        assert repositories.bookings.list_by_event(EVENT_ID) == []
        assert repositories.participants.get(JONAS_ID).name == "Jonas Weber"
