"""
Per-entity CRUD on top of a table gateway.

These are thin: they translate between gateway rows and domain models and
keep the ordering the admin screens expect. Transport errors from the gateway
propagate unchanged.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Generic, List, Mapping, Optional, Type, TypeVar
from uuid import UUID

import pendulum
from pydantic import BaseModel
from pydantic_core import to_jsonable_python

from ..adapters.gateway import (
    ENTREPRENEURS,
    EVENT_ENTREPRENEURS,
    EVENTS,
    MEETING_BOOKINGS,
    PARTICIPANTS,
    Row,
    TableGateway,
)
from ..domain.exceptions import NotFoundError
from ..domain.forms import EventEntrepreneurForm, MeetingBookingForm
from ..domain.models import (
    Entrepreneur,
    Event,
    EventEntrepreneur,
    MeetingBooking,
    Participant,
    Record,
)
from ..domain.time_slots import TimeSlot

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=Record)


class Repository(Generic[R]):
    """Common read, create and delete operations for one table."""

    table: str
    model: Type[R]
    order: Optional[str] = None
    descending: bool = False

    def __init__(self, gateway: TableGateway):
        self._gateway = gateway

    def list_all(self) -> List[R]:
        rows = self._gateway.select(self.table, order=self.order, descending=self.descending)
        return [self._to_model(row) for row in rows]

    def get(self, record_id: UUID | str) -> R:
        return self._to_model(self._get_row(record_id))

    def create(self, form: BaseModel) -> R:
        row = self._gateway.insert(self.table, form.model_dump(mode="json"))
        logger.info("Created %s row %s", self.table, row.get("id"))
        return self._to_model(row)

    def delete(self, record_id: UUID | str) -> None:
        self._gateway.delete(self.table, {"id": str(record_id)})
        logger.info("Deleted %s row %s", self.table, record_id)

    def _get_row(self, record_id: UUID | str) -> Row:
        rows = self._gateway.select(self.table, {"id": str(record_id)})
        if not rows:
            raise NotFoundError(f"No {self.table} record with id {record_id}")
        return rows[0]

    def _to_model(self, row: Mapping[str, Any]) -> R:
        return self.model.model_validate(row)


class MutableRepository(Repository[R]):
    """Repository for records that can be edited in place."""

    def update(self, record_id: UUID | str, changes: Mapping[str, Any]) -> R:
        """
        Apply a partial update and stamp ``updated_at``.

        Raises:
            NotFoundError: If no record has the id
        """
        payload: Dict[str, Any] = to_jsonable_python(dict(changes))
        payload["updated_at"] = pendulum.now("UTC").to_iso8601_string()

        rows = self._gateway.update(self.table, {"id": str(record_id)}, payload)
        if not rows:
            raise NotFoundError(f"No {self.table} record with id {record_id}")

        logger.info("Updated %s row %s (%s)", self.table, record_id, ", ".join(sorted(changes)))
        return self._to_model(rows[0])


class EntrepreneurRepository(MutableRepository[Entrepreneur]):
    table = ENTREPRENEURS
    model = Entrepreneur
    order = "company_name"

    def list_active(self) -> List[Entrepreneur]:
        rows = self._gateway.select(self.table, {"is_active": True}, order=self.order)
        return [self._to_model(row) for row in rows]

    def list_by_ids(self, ids: List[UUID | str]) -> List[Entrepreneur]:
        if not ids:
            return []
        rows = self._gateway.select(self.table, {"id": [str(i) for i in ids]}, order=self.order)
        return [self._to_model(row) for row in rows]


class ParticipantRepository(MutableRepository[Participant]):
    table = PARTICIPANTS
    model = Participant
    order = "name"

    def list_by_ids(self, ids: List[UUID | str]) -> List[Participant]:
        if not ids:
            return []
        rows = self._gateway.select(self.table, {"id": [str(i) for i in ids]})
        return [self._to_model(row) for row in rows]


class EventRepository(MutableRepository[Event]):
    """Events, newest first, with their assigned entrepreneurs embedded."""

    table = EVENTS
    model = Event
    order = "event_date"
    descending = True

    def __init__(self, gateway: TableGateway, entrepreneurs: EntrepreneurRepository):
        super().__init__(gateway)
        self._entrepreneurs = entrepreneurs

    def list_all(self) -> List[Event]:
        rows = self._gateway.select(self.table, order=self.order, descending=self.descending)
        return self._with_entrepreneurs(rows)

    def get(self, record_id: UUID | str) -> Event:
        return self._with_entrepreneurs([self._get_row(record_id)])[0]

    def list_entrepreneurs(self, event_id: UUID | str) -> List[Entrepreneur]:
        """Entrepreneurs assigned to an event, ordered by company name."""
        links = self._gateway.select(EVENT_ENTREPRENEURS, {"event_id": str(event_id)})
        return self._entrepreneurs.list_by_ids([link["entrepreneur_id"] for link in links])

    def assign_entrepreneur(self, form: EventEntrepreneurForm) -> EventEntrepreneur:
        row = self._gateway.insert(EVENT_ENTREPRENEURS, form.model_dump(mode="json"))
        logger.info("Assigned entrepreneur %s to event %s", form.entrepreneur_id, form.event_id)
        return EventEntrepreneur.model_validate(row)

    def remove_entrepreneur(self, event_id: UUID | str, entrepreneur_id: UUID | str) -> None:
        self._gateway.delete(
            EVENT_ENTREPRENEURS,
            {"event_id": str(event_id), "entrepreneur_id": str(entrepreneur_id)},
        )
        logger.info("Removed entrepreneur %s from event %s", entrepreneur_id, event_id)

    def _with_entrepreneurs(self, rows: List[Row]) -> List[Event]:
        if not rows:
            return []

        links = self._gateway.select(EVENT_ENTREPRENEURS, {"event_id": [row["id"] for row in rows]})
        entrepreneurs = {
            str(entrepreneur.id): entrepreneur
            for entrepreneur in self._entrepreneurs.list_by_ids(
                list({link["entrepreneur_id"] for link in links})
            )
        }

        # Keep company-name order inside each event
        by_event: Dict[str, List[Entrepreneur]] = {str(row["id"]): [] for row in rows}
        assigned = {(str(link["event_id"]), str(link["entrepreneur_id"])) for link in links}
        for entrepreneur_id, entrepreneur in entrepreneurs.items():
            for event_id in by_event:
                if (event_id, entrepreneur_id) in assigned:
                    by_event[event_id].append(entrepreneur)

        return [
            Event.model_validate({**row, "entrepreneurs": by_event[str(row["id"])]})
            for row in rows
        ]


class BookingRepository(Repository[MeetingBooking]):
    """Meeting bookings, with entrepreneur and participant embedded."""

    table = MEETING_BOOKINGS
    model = MeetingBooking
    order = "time_slot"

    def __init__(
        self,
        gateway: TableGateway,
        entrepreneurs: EntrepreneurRepository,
        participants: ParticipantRepository,
    ):
        super().__init__(gateway)
        self._entrepreneurs = entrepreneurs
        self._participants = participants

    def list_by_event(self, event_id: UUID | str) -> List[MeetingBooking]:
        rows = self._gateway.select(self.table, {"event_id": str(event_id)}, order=self.order)
        return self._with_details(rows)

    def create(self, form: MeetingBookingForm) -> MeetingBooking:
        booking = super().create(form)
        return self._with_details([booking.model_dump(mode="json")])[0]

    def check_availability(
        self,
        event_id: UUID | str,
        entrepreneur_id: UUID | str,
        time_slot: TimeSlot,
    ) -> bool:
        """True if no booking occupies the (event, entrepreneur, slot) triple."""
        rows = self._gateway.select(
            self.table,
            {
                "event_id": str(event_id),
                "entrepreneur_id": str(entrepreneur_id),
                "time_slot": time_slot.value,
            },
        )
        return not rows

    def _with_details(self, rows: List[Row]) -> List[MeetingBooking]:
        if not rows:
            return []

        entrepreneurs = {
            str(e.id): e
            for e in self._entrepreneurs.list_by_ids(list({row["entrepreneur_id"] for row in rows}))
        }
        participants = {
            str(p.id): p
            for p in self._participants.list_by_ids(list({row["participant_id"] for row in rows}))
        }

        return [
            MeetingBooking.model_validate(
                {
                    **row,
                    "entrepreneur": entrepreneurs.get(str(row["entrepreneur_id"])),
                    "participant": participants.get(str(row["participant_id"])),
                }
            )
            for row in rows
        ]


@dataclass(frozen=True)
class Repositories:
    entrepreneurs: EntrepreneurRepository
    participants: ParticipantRepository
    events: EventRepository
    bookings: BookingRepository

    @classmethod
    def over(cls, gateway: TableGateway) -> "Repositories":
        entrepreneurs = EntrepreneurRepository(gateway)
        participants = ParticipantRepository(gateway)
        return cls(
            entrepreneurs=entrepreneurs,
            participants=participants,
            events=EventRepository(gateway, entrepreneurs),
            bookings=BookingRepository(gateway, entrepreneurs, participants),
        )
