"""
Declarative validation of form payloads.

A form is described by a list of ``FieldSpec`` objects, each holding the rules
for one field. All fields are checked in a single pass and every violated rule
is reported, so a caller can show all problems of a form at once. Input that
does not conform never raises: it produces a failed ``ValidationResult`` with a
field-keyed error map.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import (
    Any,
    Callable,
    Dict,
    Generic,
    List,
    Mapping,
    Optional,
    Protocol,
    Sequence,
    Tuple,
    Type,
    TypeVar,
)

import pendulum
from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

GENERAL_ERROR_KEY = "general"
GENERIC_ERROR_MESSAGE = "Validation failed"

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)

_MISSING: Any = object()

UUID_PATTERN = r"[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}"


@dataclass(frozen=True)
class ValidationContext:
    """Values a rule may depend on besides the field value itself."""
    today: date

    @classmethod
    def create(cls, today: date | None = None, timezone: str | None = None) -> "ValidationContext":
        if today is None:
            today = pendulum.today(timezone or "local").date()
        return cls(today=today)


@dataclass(frozen=True)
class ValidationResult(Generic[T]):
    """Outcome of validating one form: either ``data`` or ``errors`` is set."""
    success: bool
    data: Optional[T] = None
    errors: Dict[str, List[str]] = field(default_factory=dict)

    @classmethod
    def ok(cls, data: T) -> "ValidationResult[T]":
        return cls(success=True, data=data)

    @classmethod
    def failure(cls, errors: Dict[str, List[str]]) -> "ValidationResult[T]":
        return cls(success=False, errors=errors)


class Rule(Protocol):
    """A single check on a field value. Returns a message if the check fails."""

    def check(self, value: Any, context: ValidationContext) -> Optional[str]:
        ...


@dataclass(frozen=True)
class MinLength:
    limit: int
    message: str

    def check(self, value: str, context: ValidationContext) -> Optional[str]:
        return None if len(value) >= self.limit else self.message


@dataclass(frozen=True)
class MaxLength:
    limit: int
    message: str

    def check(self, value: str, context: ValidationContext) -> Optional[str]:
        return None if len(value) <= self.limit else self.message


@dataclass(frozen=True)
class Pattern:
    regex: str
    message: str

    def check(self, value: str, context: ValidationContext) -> Optional[str]:
        return None if re.fullmatch(self.regex, value) else self.message


@dataclass(frozen=True)
class EmailAddress:
    """A bare address; display-name forms like ``Name <addr>`` are rejected."""
    message: str

    def check(self, value: str, context: ValidationContext) -> Optional[str]:
        try:
            validate_email(value, check_deliverability=False, allow_display_name=False)
        except EmailNotValidError:
            return self.message
        return None


@dataclass(frozen=True)
class UUIDString:
    """Canonical hyphenated UUID text. Existence of the referenced row is not checked."""
    message: str

    def check(self, value: str, context: ValidationContext) -> Optional[str]:
        return None if re.fullmatch(UUID_PATTERN, value) else self.message


@dataclass(frozen=True)
class OneOf:
    choices: Tuple[str, ...]
    message: str

    def check(self, value: str, context: ValidationContext) -> Optional[str]:
        return None if value in self.choices else self.message


@dataclass(frozen=True)
class NotBeforeToday:
    """
    The value must be a date on or after the current calendar day.

    Only calendar dates are compared; the time of day is dropped on both sides.
    """
    message: str
    invalid_message: str

    def check(self, value: str, context: ValidationContext) -> Optional[str]:
        if not value:
            # An empty value is reported by the length rule.
            return None
        day = parse_calendar_date(value)
        if day is None:
            return self.invalid_message
        return None if day >= context.today else self.message


def parse_calendar_date(value: str) -> date | None:
    """Parse a date or datetime string into its calendar date."""
    try:
        parsed = pendulum.parse(value, exact=True)
    except (ValueError, TypeError):
        return None

    if isinstance(parsed, datetime):
        parsed = parsed.date()
    if isinstance(parsed, date):
        return date(parsed.year, parsed.month, parsed.day)
    return None


@dataclass(frozen=True)
class FieldSpec:
    """
    Rules for one form field.

    ``path`` is dot-joined for fields nested inside sub-objects. ``kind`` is the
    expected input type (``"string"`` or ``"boolean"``); a value of the wrong
    type gets a single type message and its other rules are skipped.
    """
    path: str
    label: str
    kind: str = "string"
    rules: Tuple[Rule, ...] = ()
    default: Any = _MISSING
    convert: Optional[Callable[[Any], Any]] = None

    @property
    def segments(self) -> Tuple[str, ...]:
        return tuple(self.path.split("."))

    @property
    def has_default(self) -> bool:
        return self.default is not _MISSING

    def check(self, value: Any, context: ValidationContext) -> List[str]:
        if self.kind == "boolean":
            if not isinstance(value, bool):
                return [f"{self.label} must be true or false"]
        elif not isinstance(value, str):
            return [f"{self.label} must be text"]

        messages: List[str] = []
        for rule in self.rules:
            message = rule.check(value, context)
            if message:
                messages.append(message)
        return messages

    def normalize(self, value: Any) -> Any:
        return value if self.convert is None else self.convert(value)


class FormSchema(Generic[M]):
    """
    A form shape: its field rules and the model produced for valid input.
    """

    def __init__(self, name: str, fields: Sequence[FieldSpec], model: Type[M]):
        self.name = name
        self.fields = tuple(fields)
        self.model = model

    def validate(
        self,
        data: Any,
        *,
        partial: bool = False,
        today: date | None = None,
        timezone: str | None = None,
    ) -> ValidationResult:
        """
        Validate untrusted input against this form.

        Args:
            data: Parsed form or JSON body
            partial: Validate an update payload; only present fields are checked
                and no defaults are applied
            today: Current calendar day for date rules (defaults to today)
            timezone: Timezone used to determine today when it is not given

        Returns:
            ValidationResult with the form model (or a dict of changed fields
            when ``partial``), or the field-keyed error map
        """
        try:
            context = ValidationContext.create(today=today, timezone=timezone)
            return self._validate(data, partial, context)
        except Exception:
            logger.exception("Unexpected error while validating %s form", self.name)
            return ValidationResult.failure({GENERAL_ERROR_KEY: [GENERIC_ERROR_MESSAGE]})

    def _validate(self, data: Any, partial: bool, context: ValidationContext) -> ValidationResult:
        if not isinstance(data, Mapping):
            return ValidationResult.failure({GENERAL_ERROR_KEY: ["Form data must be an object"]})

        errors: Dict[str, List[str]] = {}
        cleaned: Dict[str, Any] = {}

        for spec in self.fields:
            value = _lookup(data, spec.segments)

            if value is _MISSING and partial:
                continue

            if value is _MISSING and spec.has_default:
                _assign(cleaned, spec.segments, spec.default)
                continue

            # An explicit null on an optional field is a type error, not an omission
            if value is _MISSING or (value is None and not spec.has_default):
                errors.setdefault(spec.path, []).append(f"{spec.label} is required")
                continue

            messages = spec.check(value, context)
            if messages:
                errors.setdefault(spec.path, []).extend(messages)
                continue

            _assign(cleaned, spec.segments, spec.normalize(value))

        if errors:
            return ValidationResult.failure(errors)

        if partial:
            if not cleaned:
                return ValidationResult.failure({GENERAL_ERROR_KEY: ["No fields to update"]})
            return ValidationResult.ok(cleaned)

        try:
            return ValidationResult.ok(self.model.model_validate(cleaned))
        except ValidationError as exc:
            return ValidationResult.failure(format_errors(exc))


def format_errors(error: ValidationError) -> Dict[str, List[str]]:
    """Convert a pydantic ValidationError into a field-keyed error map."""
    errors: Dict[str, List[str]] = {}

    for issue in error.errors():
        key = ".".join(str(part) for part in issue["loc"]) or GENERAL_ERROR_KEY
        errors.setdefault(key, []).append(issue["msg"])

    return errors


def _lookup(data: Mapping[str, Any], segments: Tuple[str, ...]) -> Any:
    current: Any = data
    for segment in segments:
        if not isinstance(current, Mapping) or segment not in current:
            return _MISSING
        current = current[segment]
    return current


def _assign(target: Dict[str, Any], segments: Tuple[str, ...], value: Any) -> None:
    for segment in segments[:-1]:
        target = target.setdefault(segment, {})
    target[segments[-1]] = value
