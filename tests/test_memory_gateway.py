"""
Tests for the in-memory database.
"""

import json

import pytest

from meetingdesk.adapters.memory_gateway import InMemoryGateway
from meetingdesk.domain.exceptions import DuplicateRecordError


@pytest.fixture
def empty_gateway():
    return InMemoryGateway()


class TestInMemoryGateway:
    """Tests for InMemoryGateway."""

    def test_insert_assigns_id_and_timestamps(self, empty_gateway):
        row = empty_gateway.insert("participants", {"name": "Ada", "phone": "1", "email": "a@b.de"})

        assert row["id"]
        assert row["created_at"] == row["updated_at"]

    def test_link_rows_have_no_updated_at(self, empty_gateway):
        row = empty_gateway.insert("event_entrepreneurs", {"event_id": "e1", "entrepreneur_id": "x1"})

        assert "created_at" in row
        assert "updated_at" not in row

    def test_unique_booking_slot(self, empty_gateway):
        booking = {"event_id": "e1", "entrepreneur_id": "x1", "participant_id": "p1", "time_slot": "10:00-11:00"}
        empty_gateway.insert("meeting_bookings", booking)

        with pytest.raises(DuplicateRecordError):
            empty_gateway.insert("meeting_bookings", {**booking, "participant_id": "p2"})

        assert len(empty_gateway.select("meeting_bookings")) == 1

    def test_update_cannot_create_duplicate(self, empty_gateway):
        empty_gateway.insert("event_entrepreneurs", {"event_id": "e1", "entrepreneur_id": "x1"})
        second = empty_gateway.insert("event_entrepreneurs", {"event_id": "e1", "entrepreneur_id": "x2"})

        with pytest.raises(DuplicateRecordError):
            empty_gateway.update("event_entrepreneurs", {"id": second["id"]}, {"entrepreneur_id": "x1"})

    def test_select_filters_and_order(self, empty_gateway):
        for name, category in [("Zeta", "Tech"), ("Alpha", "Tech"), ("Mid", "Food")]:
            empty_gateway.insert(
                "entrepreneurs",
                {"company_name": name, "registration_number": "R", "business_category": category},
            )

        rows = empty_gateway.select("entrepreneurs", {"business_category": "Tech"}, order="company_name")
        assert [row["company_name"] for row in rows] == ["Alpha", "Zeta"]

        rows = empty_gateway.select(
            "entrepreneurs", {"company_name": ["Mid", "Zeta"]}, order="company_name", descending=True
        )
        assert [row["company_name"] for row in rows] == ["Zeta", "Mid"]

    def test_boolean_filter(self, gateway):
        rows = gateway.select("entrepreneurs", {"is_active": False})

        assert [row["company_name"] for row in rows] == ["Quillstone Legal"]

    def test_returned_rows_are_copies(self, gateway):
        rows = gateway.select("events")
        rows[0]["name"] = "Changed"

        assert gateway.select("events")[0]["name"] == "Spring Founders Meetup"

    def test_unknown_table(self, empty_gateway):
        with pytest.raises(KeyError):
            empty_gateway.select("rooms")

    def test_from_json(self, tmp_path):
        data_file = tmp_path / "seed.json"
        data_file.write_text(json.dumps({"events": [{"id": "e1", "name": "Seeded"}], "rooms": []}))

        gateway = InMemoryGateway.from_json(data_file)

        assert gateway.select("events", {"id": "e1"})[0]["name"] == "Seeded"

    def test_from_missing_file(self, tmp_path):
        gateway = InMemoryGateway.from_json(tmp_path / "missing.json")

        assert gateway.select("events") == []
