"""Identity scheme linking base events to their derived occurrences.

Internally an event is addressed by a tagged reference, either
``BaseRef(id)`` or ``OccurrenceRef(base_id, index)``. The string form
``"{base_id}-recurring-{index}"`` only exists at the UI and persistence
boundary, where ``encode_ref``/``parse_ref`` translate between the two.

The predicates at the bottom of this module are the only place that looks
at the delimiter. Everything else in the package asks them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from .exceptions import InvalidEventIdError

OCCURRENCE_DELIMITER = "-recurring-"


@dataclass(frozen=True)
class BaseRef:
    """Reference to a stored base event."""

    id: str

    @property
    def base_id(self) -> str:
        return self.id

    @property
    def is_occurrence(self) -> bool:
        return False


@dataclass(frozen=True)
class OccurrenceRef:
    """Reference to the ``index``-th generated occurrence of a base event.

    Index 0 is the first date after the base event's own date.
    """

    base_id: str
    index: int

    @property
    def is_occurrence(self) -> bool:
        return True


EventRef = Union[BaseRef, OccurrenceRef]


def encode_ref(ref: EventRef) -> str:
    """Render a reference as the string id used by the UI."""
    if isinstance(ref, OccurrenceRef):
        return f"{ref.base_id}{OCCURRENCE_DELIMITER}{ref.index}"
    return ref.id


def parse_ref(event_id: str) -> EventRef:
    """Decode a string id into a tagged reference.

    Args:
        event_id: Id as produced by ``encode_ref`` or a plain base id.

    Returns:
        ``OccurrenceRef`` when the id carries the delimiter, else ``BaseRef``.

    Raises:
        InvalidEventIdError: If the id is empty or the occurrence index is
            not a non-negative integer.
    """
    if not event_id:
        raise InvalidEventIdError("event id must be a non-empty string")

    if OCCURRENCE_DELIMITER not in event_id:
        return BaseRef(event_id)

    base_id, _, raw_index = event_id.partition(OCCURRENCE_DELIMITER)
    if not base_id or not raw_index.isdigit():
        raise InvalidEventIdError(f"malformed occurrence id: {event_id!r}")
    return OccurrenceRef(base_id, int(raw_index))


def is_occurrence_id(event_id: str) -> bool:
    """Return True if ``event_id`` encodes an occurrence sequence."""
    return OCCURRENCE_DELIMITER in event_id


def base_id_of(event_id: str) -> str:
    """Return the base event id for any display id.

    Splits on the first delimiter; an id without one is returned unchanged.
    """
    return event_id.split(OCCURRENCE_DELIMITER, 1)[0]


def is_base_storable(event_id: str) -> bool:
    """Return True if an entity with this id may be persisted."""
    return not is_occurrence_id(event_id)


def validate_base_id(event_id: str) -> str:
    """Check that ``event_id`` is usable as a base event id and return it."""
    if not event_id or not isinstance(event_id, str):
        raise InvalidEventIdError("base event id must be a non-empty string")
    if not is_base_storable(event_id):
        raise InvalidEventIdError(
            f"base event id {event_id!r} contains reserved delimiter {OCCURRENCE_DELIMITER!r}"
        )
    return event_id
