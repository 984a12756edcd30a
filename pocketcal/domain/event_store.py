"""JSON-backed store for base events.

The persisted document is a JSON array of base-event records under a single
key of a key-value backend. Derived occurrences never reach it.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from typing import Any

from pydantic import ValidationError

from ..config_loader import DEFAULT_STORAGE_KEY
from ..core.kv_backend import KeyValueBackend
from ..exceptions import EventStoreError
from ..identity import is_base_storable
from ..models import BaseEvent

logger = logging.getLogger(__name__)


class EventStore:
    """Loads and saves the canonical list of base events.

    load() never raises: an unreadable or malformed document is logged and
    treated as "no events". save() raises StoreWriteError from the backend
    and leaves it to the caller to decide whether that matters.
    """

    def __init__(self, backend: KeyValueBackend, key: str = DEFAULT_STORAGE_KEY) -> None:
        self._backend = backend
        self._key = key

    @property
    def key(self) -> str:
        return self._key

    def load(self) -> list[BaseEvent]:
        """Read and revive the persisted base events."""
        try:
            raw = self._backend.get(self._key)
        except EventStoreError as exc:
            logger.warning("Failed to read event document %r: %s", self._key, exc)
            return []

        if raw is None:
            logger.debug("Event document %r not found; starting empty", self._key)
            return []

        try:
            data = json.loads(raw)
        except ValueError as exc:
            logger.warning("Event document %r is not valid JSON: %s", self._key, exc)
            return []

        if not isinstance(data, list):
            logger.warning(
                "Event document %r root must be a list, got %s", self._key, type(data).__name__
            )
            return []

        events: list[BaseEvent] = []
        seen: set[str] = set()
        for position, record in enumerate(data):
            event = self._revive(position, record)
            if event is None:
                continue
            if event.id in seen:
                logger.warning("Duplicate event id %r in stored document; keeping first", event.id)
                continue
            seen.add(event.id)
            events.append(event)

        logger.debug("Loaded %d base events from %r", len(events), self._key)
        return events

    def _revive(self, position: int, record: Any) -> BaseEvent | None:
        if not isinstance(record, dict):
            logger.warning("Skipping stored record %d: not an object", position)
            return None

        record_id = record.get("id")
        if isinstance(record_id, str) and not is_base_storable(record_id):
            logger.warning("Skipping stored record %d: derived occurrence id %r", position, record_id)
            return None

        try:
            return BaseEvent.model_validate(record)
        except ValidationError as exc:
            logger.warning(
                "Skipping stored record %d (id=%r): %d validation error(s)",
                position,
                record_id,
                exc.error_count(),
            )
            return None

    def save(self, events: Iterable[Any]) -> int:
        """Persist exactly the base events in ``events``.

        Occurrences, or anything whose id encodes an occurrence, are
        filtered out before writing.

        Returns:
            Number of records written.

        Raises:
            StoreWriteError: If the backend could not write the document.
        """
        records = []
        dropped = 0
        for event in events:
            if not isinstance(event, BaseEvent) or not is_base_storable(event.id):
                dropped += 1
                continue
            records.append(event.to_record())

        if dropped:
            logger.debug("Filtered %d derived entries before saving", dropped)

        payload = json.dumps(records, ensure_ascii=False, indent=2)
        self._backend.set(self._key, payload)
        logger.debug("Saved %d base events to %r", len(records), self._key)
        return len(records)
