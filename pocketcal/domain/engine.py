"""Calendar engine: mutation operations over the base-event set.

Every mutation edits the base list, regenerates the presentation set and
persists the base list, all before returning. Occurrence ids are resolved
to their base event first, so edits and deletes always act on the whole
series.
"""

from __future__ import annotations

import datetime
import logging
from collections.abc import Mapping
from typing import Any, Callable, Optional, Union

from ..config_loader import Config
from ..core.time_utils import Clock, now_local
from ..exceptions import EventStoreError, InvalidEventIdError, PocketCalError
from ..identity import is_base_storable, parse_ref
from ..models import BaseEvent, DisplayEvent, EventData, EventPatch, parse_local_date
from .collection import rebuild
from .event_store import EventStore

logger = logging.getLogger(__name__)

IdFactory = Callable[[], str]

_MAX_ID_ATTEMPTS = 1000


class MonotonicIdFactory:
    """Millisecond-timestamp ids, strictly increasing within one process.

    Two events created in the same millisecond get consecutive ids rather
    than colliding.
    """

    def __init__(self, clock: Clock = now_local) -> None:
        self._clock = clock
        self._last = 0

    def __call__(self) -> str:
        candidate = int(self._clock().timestamp() * 1000)
        if candidate <= self._last:
            candidate = self._last + 1
        self._last = candidate
        return str(candidate)


class CalendarEngine:
    """Engine-facing API consumed by a calendar UI.

    Holds the normalized base-event list and the derived presentation list.
    Persistence failures are logged and never propagate out of a mutation.
    """

    def __init__(
        self,
        store: EventStore,
        config: Optional[Config] = None,
        clock: Optional[Clock] = None,
        id_factory: Optional[IdFactory] = None,
    ) -> None:
        """Create an engine and load the persisted base events.

        Args:
            store: Event store for loading and saving base events
            config: Expansion bounds; defaults to Config()
            clock: Source of "now"; defaults to now_local()
            id_factory: Source of fresh base ids; defaults to MonotonicIdFactory
        """
        self._store = store
        self._config = config or Config()
        self._clock: Clock = clock or now_local
        self._new_id: IdFactory = id_factory or MonotonicIdFactory(self._clock)

        self._base_events: list[BaseEvent] = store.load()
        self._events: list[DisplayEvent] = self._rebuild()
        logger.info(
            "Calendar loaded: %d base events, %d displayed",
            len(self._base_events),
            len(self._events),
        )

    @property
    def events(self) -> list[DisplayEvent]:
        """Current presentation set (base events and occurrences)."""
        return list(self._events)

    @property
    def base_events(self) -> list[BaseEvent]:
        return list(self._base_events)

    def get_event(self, target_id: str) -> Optional[DisplayEvent]:
        """Return the displayed event with exactly this id, if any."""
        for event in self._events:
            if event.id == target_id:
                return event
        return None

    def refresh(self) -> list[DisplayEvent]:
        """Regenerate occurrences against the current clock."""
        self._events = self._rebuild()
        return self.events

    def add_event(self, data: Union[EventData, Mapping[str, Any]]) -> BaseEvent:
        """Create a base event with a fresh id and timestamps.

        Raises:
            pydantic.ValidationError: If ``data`` is a mapping that does not
                describe an event.
        """
        payload = data if isinstance(data, EventData) else EventData.model_validate(data)
        now = self._clock()
        fields = {name: getattr(payload, name) for name in EventData.model_fields}
        event = BaseEvent(id=self._fresh_id(), created_at=now, updated_at=now, **fields)

        self._base_events.append(event)
        self._events = self._rebuild()
        self._persist()
        logger.info("Added event %s (%r on %s)", event.id, event.title, event.date.isoformat())
        return event

    def update_event(
        self, target_id: str, patch: Union[EventPatch, Mapping[str, Any]]
    ) -> Optional[BaseEvent]:
        """Apply ``patch`` to the series that ``target_id`` belongs to.

        ``target_id`` may be a base id or any of its occurrence ids. The id
        and ``createdAt`` never change; ``updatedAt`` is refreshed. Changing
        ``date`` or ``recurrence`` moves the whole series.

        Returns:
            The updated base event, or None if no event matched.
        """
        if not isinstance(patch, EventPatch):
            patch = EventPatch.model_validate(patch)
        changes = patch.changes()
        base_id = self._resolve_base_id(target_id)

        position = self._index_of(base_id) if base_id is not None else None
        if position is None:
            logger.debug("update_event: no event for %r (base %r); ignoring", target_id, base_id)
            return None

        current = self._base_events[position]
        updated = current.model_copy(update={**changes, "updated_at": self._clock()})
        self._base_events[position] = updated

        self._events = self._rebuild()
        self._persist()
        logger.info(
            "Updated event %s via %s (fields: %s)",
            base_id,
            target_id,
            ", ".join(sorted(changes)) or "-",
        )
        return updated

    def delete_event(self, target_id: str) -> bool:
        """Delete the series that ``target_id`` belongs to.

        Returns:
            True if a base event was removed, False if nothing matched.
        """
        base_id = self._resolve_base_id(target_id)
        if base_id is None:
            return False
        remaining = [event for event in self._base_events if event.id != base_id]
        if len(remaining) == len(self._base_events):
            logger.debug("delete_event: no event for %r (base %r); ignoring", target_id, base_id)
            return False

        self._base_events = remaining
        self._events = [event for event in self._events if event.base_id != base_id]
        self._persist()
        logger.info("Deleted event %s via %s", base_id, target_id)
        return True

    def move_event(
        self, target_id: str, new_date: Union[datetime.date, str]
    ) -> Optional[BaseEvent]:
        """Reschedule by drag-and-drop.

        Dropping an event on the day it already occupies does nothing.
        Otherwise the series anchor moves to ``new_date``, even when the
        dragged item was an occurrence.

        Returns:
            The updated base event, or None for a miss or a same-day drop.
        """
        day = parse_local_date(new_date)
        dragged = self.get_event(target_id)
        if dragged is None:
            logger.debug("move_event: no displayed event %r; ignoring", target_id)
            return None
        if dragged.date == day:
            logger.debug("move_event: %r already on %s; ignoring", target_id, day.isoformat())
            return None
        return self.update_event(target_id, EventPatch(date=day))

    def _resolve_base_id(self, target_id: str) -> Optional[str]:
        """Decode a display id into the id of its series, or None if malformed."""
        try:
            return parse_ref(target_id).base_id
        except InvalidEventIdError as exc:
            logger.debug("Ignoring malformed event id %r: %s", target_id, exc)
            return None

    def _index_of(self, base_id: str) -> Optional[int]:
        for position, event in enumerate(self._base_events):
            if event.id == base_id:
                return position
        return None

    def _fresh_id(self) -> str:
        taken = {event.id for event in self._base_events}
        for _ in range(_MAX_ID_ATTEMPTS):
            candidate = self._new_id()
            if candidate and candidate not in taken and is_base_storable(candidate):
                return candidate
        raise PocketCalError("id factory did not produce an unused base id")

    def _rebuild(self) -> list[DisplayEvent]:
        return rebuild(
            self._base_events,
            self._clock(),
            horizon_years=self._config.horizon_years,
            max_occurrences=self._config.max_occurrences,
        )

    def _persist(self) -> None:
        try:
            self._store.save(self._base_events)
        except EventStoreError as exc:
            logger.warning("Failed to persist %d base events: %s", len(self._base_events), exc)
