"""
Domain models for records stored in the hosted database.

Rows come back from the database as JSON objects and are parsed into these
models. Ids and timestamps are always assigned by the database.
"""

from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from .time_slots import TimeSlot


class Record(BaseModel):
    """Base for persisted rows. Extra columns returned by the database are ignored."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: UUID
    created_at: datetime


class Entrepreneur(Record):
    """A company offering meetings at events."""
    company_name: str
    registration_number: str
    business_category: str
    is_active: bool = True
    updated_at: datetime


class Participant(Record):
    """A person booking meetings with entrepreneurs."""
    name: str
    phone: str
    email: str
    updated_at: datetime


class Event(Record):
    """A networking event day."""
    name: str
    event_date: date
    updated_at: datetime
    entrepreneurs: List[Entrepreneur] = Field(default_factory=list)


class EventEntrepreneur(Record):
    """Link assigning an entrepreneur to an event."""
    event_id: UUID
    entrepreneur_id: UUID


class MeetingBooking(Record):
    """
    A participant's meeting with an entrepreneur in one time slot of an event.

    ``time_slot`` keeps the raw column value; use ``slot`` for the typed member.
    """
    event_id: UUID
    entrepreneur_id: UUID
    participant_id: UUID
    time_slot: str
    entrepreneur: Optional[Entrepreneur] = None
    participant: Optional[Participant] = None

    @property
    def slot(self) -> TimeSlot | None:
        return TimeSlot.parse(self.time_slot)
