"""
Form shapes for creating and updating records.

Each form is a ``FormSchema`` (field rules) paired with the frozen pydantic
model returned for valid input. Server-assigned fields (ids, timestamps) are
never part of a form.
"""

from datetime import date
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr

from .time_slots import TIME_SLOTS, TimeSlot
from .validation import (
    EmailAddress,
    FieldSpec,
    FormSchema,
    MaxLength,
    MinLength,
    NotBeforeToday,
    OneOf,
    Pattern,
    UUIDString,
    ValidationResult,
    parse_calendar_date,
)

REGISTRATION_NUMBER_PATTERN = r"[A-Z0-9-]+"
PHONE_PATTERN = r"\+?[0-9\s\-()]+"


class FormModel(BaseModel):
    model_config = ConfigDict(frozen=True)


class EntrepreneurForm(FormModel):
    company_name: str
    registration_number: str
    business_category: str
    is_active: bool = True


class ParticipantForm(FormModel):
    name: str
    phone: str
    email: EmailStr


class EventForm(FormModel):
    name: str
    event_date: date


class MeetingBookingForm(FormModel):
    event_id: UUID
    entrepreneur_id: UUID
    participant_id: UUID
    time_slot: TimeSlot


class EventEntrepreneurForm(FormModel):
    event_id: UUID
    entrepreneur_id: UUID


def _text(path: str, label: str, max_length: int, *extra) -> FieldSpec:
    """A required text field with the usual length bounds."""
    return FieldSpec(
        path=path,
        label=label,
        rules=(
            MinLength(1, f"{label} is required"),
            MaxLength(max_length, f"{label} must be {max_length} characters or fewer"),
            *extra,
        ),
    )


def _reference(path: str, label: str, message: str) -> FieldSpec:
    return FieldSpec(
        path=path,
        label=label,
        rules=(UUIDString(message),),
        convert=UUID,
    )


ENTREPRENEUR_SCHEMA = FormSchema(
    "entrepreneur",
    [
        _text("company_name", "Company name", 255),
        _text(
            "registration_number",
            "Registration number",
            100,
            Pattern(
                REGISTRATION_NUMBER_PATTERN,
                "Registration number must contain only uppercase letters, numbers, and hyphens",
            ),
        ),
        _text("business_category", "Business category", 255),
        FieldSpec("is_active", "Active status", kind="boolean", default=True),
    ],
    EntrepreneurForm,
)

PARTICIPANT_SCHEMA = FormSchema(
    "participant",
    [
        _text("name", "Name", 255),
        _text("phone", "Phone number", 20, Pattern(PHONE_PATTERN, "Please enter a valid phone number")),
        _text("email", "Email", 255, EmailAddress("Please enter a valid email address")),
    ],
    ParticipantForm,
)

EVENT_SCHEMA = FormSchema(
    "event",
    [
        _text("name", "Event name", 255),
        FieldSpec(
            "event_date",
            "Event date",
            rules=(
                MinLength(1, "Event date is required"),
                NotBeforeToday(
                    "Event date must be today or in the future",
                    "Event date must be a valid date",
                ),
            ),
            convert=parse_calendar_date,
        ),
    ],
    EventForm,
)

MEETING_BOOKING_SCHEMA = FormSchema(
    "meeting booking",
    [
        _reference("event_id", "Event ID", "Invalid event ID"),
        _reference("entrepreneur_id", "Entrepreneur ID", "Invalid entrepreneur ID"),
        _reference("participant_id", "Participant ID", "Invalid participant ID"),
        FieldSpec(
            "time_slot",
            "Time slot",
            rules=(
                OneOf(
                    tuple(slot.value for slot in TIME_SLOTS),
                    "Time slot must be one of: " + ", ".join(slot.value for slot in TIME_SLOTS),
                ),
            ),
            convert=TimeSlot,
        ),
    ],
    MeetingBookingForm,
)

EVENT_ENTREPRENEUR_SCHEMA = FormSchema(
    "event entrepreneur",
    [
        _reference("event_id", "Event ID", "Invalid event ID"),
        _reference("entrepreneur_id", "Entrepreneur ID", "Invalid entrepreneur ID"),
    ],
    EventEntrepreneurForm,
)


def validate_entrepreneur(data: Any, *, partial: bool = False) -> ValidationResult:
    return ENTREPRENEUR_SCHEMA.validate(data, partial=partial)


def validate_participant(data: Any, *, partial: bool = False) -> ValidationResult:
    return PARTICIPANT_SCHEMA.validate(data, partial=partial)


def validate_event(
    data: Any,
    *,
    partial: bool = False,
    today: date | None = None,
    timezone: str | None = None,
) -> ValidationResult:
    """Validate an event form. ``today`` defaults to the current day in ``timezone``."""
    return EVENT_SCHEMA.validate(data, partial=partial, today=today, timezone=timezone)


def validate_meeting_booking(data: Any) -> ValidationResult:
    return MEETING_BOOKING_SCHEMA.validate(data)


def validate_event_entrepreneur(data: Any) -> ValidationResult:
    return EVENT_ENTREPRENEUR_SCHEMA.validate(data)
