"""Data models for pocketcal events.

BaseEvent is the only persisted entity. Occurrence is a derived projection
of a recurring BaseEvent onto one later date. Both share the event fields
and expose the same display interface (``id``, ``base_id``, ``ref``,
``is_occurrence``), so a presentation list can hold either.
"""

import datetime
from enum import Enum
from typing import Any, Optional, Union

from dateutil import parser as date_parser
from pydantic import BaseModel, ConfigDict, Field, computed_field, field_serializer, field_validator

from .identity import BaseRef, OccurrenceRef, encode_ref, validate_base_id

CUSTOM_DEFAULT_INTERVAL_DAYS = 7


class RecurrenceType(str, Enum):
    """Supported recurrence rule shapes."""

    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    CUSTOM = "custom"


def parse_local_date(value: Any) -> datetime.date:
    """Coerce a stored or user-supplied value into a wall-clock date.

    Accepts ``date``, ``datetime`` and ISO-8601 strings, including the
    ``2024-01-01T00:00:00.000Z`` form older documents were written with.
    Aware values are converted to local time before the date is taken.
    """
    if isinstance(value, datetime.datetime):
        if value.tzinfo is not None:
            value = value.astimezone()
        return value.date()
    if isinstance(value, datetime.date):
        return value
    if isinstance(value, str) and value.strip():
        return parse_local_date(date_parser.isoparse(value.strip()))
    raise ValueError(f"cannot interpret {value!r} as a date")


def parse_local_timestamp(value: Any) -> datetime.datetime:
    """Coerce a value into a naive local datetime."""
    if isinstance(value, datetime.datetime):
        if value.tzinfo is not None:
            return value.astimezone().replace(tzinfo=None)
        return value
    if isinstance(value, datetime.date):
        return datetime.datetime.combine(value, datetime.time.min)
    if isinstance(value, str) and value.strip():
        return parse_local_timestamp(date_parser.isoparse(value.strip()))
    raise ValueError(f"cannot interpret {value!r} as a timestamp")


class Recurrence(BaseModel):
    """Recurrence rule attached to a base event.

    ``type`` is kept as a plain string so that documents carrying a rule
    shape this version does not know still load; such rules expand to
    nothing.
    """

    type: str = Field(default=RecurrenceType.NONE.value, description="Rule shape")
    interval: Optional[int] = Field(default=None, description="Steps between occurrences")
    end_date: Optional[datetime.date] = Field(
        default=None, alias="endDate", description="Last date that may be emitted"
    )
    days_of_week: Optional[list[int]] = Field(
        default=None, alias="daysOfWeek", description="Reserved, not used by expansion"
    )

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @field_validator("type", mode="before")
    @classmethod
    def _normalize_type(cls, value: Any) -> Any:
        if value is None:
            return RecurrenceType.NONE.value
        if isinstance(value, RecurrenceType):
            return value.value
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("end_date", mode="before")
    @classmethod
    def _parse_end_date(cls, value: Any) -> Any:
        if value is None or value == "":
            return None
        return parse_local_date(value)

    @property
    def kind(self) -> Optional[RecurrenceType]:
        """Known rule shape, or None for an unrecognized type string."""
        try:
            return RecurrenceType(self.type)
        except ValueError:
            return None

    @property
    def is_active(self) -> bool:
        return self.type != RecurrenceType.NONE.value

    @property
    def effective_interval(self) -> int:
        """Interval actually used for stepping.

        A missing interval takes the shape's default (7 days for custom, 1
        otherwise). Zero or negative intervals are clamped to 1 so expansion
        always moves forward.
        """
        if self.interval is None:
            if self.kind is RecurrenceType.CUSTOM:
                return CUSTOM_DEFAULT_INTERVAL_DAYS
            return 1
        return max(1, self.interval)


class _EventFields(BaseModel):
    """Fields shared by base events and their occurrences."""

    title: str = Field(..., description="Display title")
    description: Optional[str] = Field(default=None, description="Free-form notes")
    date: datetime.date = Field(..., description="Calendar date of this entry")
    time: Optional[str] = Field(default=None, description="Display time, e.g. '14:30'")
    color: Optional[str] = Field(default=None, description="Opaque style tag")
    recurrence: Optional[Recurrence] = Field(default=None, description="Recurrence rule")

    created_at: datetime.datetime = Field(..., alias="createdAt")
    updated_at: datetime.datetime = Field(..., alias="updatedAt")

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @field_validator("date", mode="before")
    @classmethod
    def _parse_date(cls, value: Any) -> datetime.date:
        return parse_local_date(value)

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def _parse_timestamp(cls, value: Any) -> datetime.datetime:
        return parse_local_timestamp(value)

    @field_serializer("created_at", "updated_at")
    def serialize_timestamp(self, dt: datetime.datetime) -> str:
        """Serialize timestamps to ISO format."""
        return dt.isoformat()

    @property
    def is_recurring(self) -> bool:
        return self.recurrence is not None and self.recurrence.is_active


# Copied verbatim from a base event onto each of its occurrences
SHARED_EVENT_FIELDS: tuple[str, ...] = tuple(
    name for name in _EventFields.model_fields if name != "date"
)


class BaseEvent(_EventFields):
    """User-authored calendar entry; the unit of storage and identity."""

    id: str = Field(..., description="Stable event id")

    @field_validator("id")
    @classmethod
    def _check_id(cls, value: str) -> str:
        return validate_base_id(value)

    @property
    def ref(self) -> BaseRef:
        return BaseRef(self.id)

    @property
    def base_id(self) -> str:
        return self.id

    @property
    def is_occurrence(self) -> bool:
        return False

    def to_record(self) -> dict[str, Any]:
        """Return the persisted document form (camelCase keys, ISO text)."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Occurrence(_EventFields):
    """Computed, non-persisted instance of a recurring base event."""

    base_id: str = Field(..., description="Id of the base event this was derived from")
    index: int = Field(..., ge=0, description="Sequence index within the series")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def id(self) -> str:
        return encode_ref(self.ref)

    @property
    def ref(self) -> OccurrenceRef:
        return OccurrenceRef(self.base_id, self.index)

    @property
    def is_occurrence(self) -> bool:
        return True


DisplayEvent = Union[BaseEvent, Occurrence]


class EventData(BaseModel):
    """Input for creating an event. Id and timestamps are assigned by the engine."""

    title: str
    description: Optional[str] = None
    date: datetime.date
    time: Optional[str] = None
    color: Optional[str] = None
    recurrence: Optional[Recurrence] = None

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @field_validator("date", mode="before")
    @classmethod
    def _parse_date(cls, value: Any) -> datetime.date:
        return parse_local_date(value)


class EventPatch(BaseModel):
    """Partial update for an event.

    Only fields explicitly present in the input are applied. Id and
    timestamp keys are ignored, so a UI may send back a whole event object
    (as drag-and-drop does) without overwriting identity.
    """

    title: Optional[str] = None
    description: Optional[str] = None
    date: Optional[datetime.date] = None
    time: Optional[str] = None
    color: Optional[str] = None
    recurrence: Optional[Recurrence] = None

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @field_validator("date", mode="before")
    @classmethod
    def _parse_date(cls, value: Any) -> Optional[datetime.date]:
        if value is None:
            return None
        return parse_local_date(value)

    def changes(self) -> dict[str, Any]:
        """Return the explicitly set fields, typed, ready for ``model_copy``.

        ``None`` for a required field (title, date) is dropped; ``None`` for
        an optional field clears it.
        """
        result: dict[str, Any] = {}
        for name in self.model_fields_set:
            value = getattr(self, name)
            if value is None and name in ("title", "date"):
                continue
            result[name] = value
        return result
