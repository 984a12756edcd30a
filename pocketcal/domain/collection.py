"""Presentation-set assembly: base events plus their generated occurrences."""

from __future__ import annotations

import datetime
import logging
from collections.abc import Iterable, Sequence
from typing import Optional, Union

from ..config_loader import (
    DEFAULT_HORIZON_YEARS,
    DEFAULT_UPCOMING_LIMIT,
    MAX_OCCURRENCES_PER_EVENT,
    Config,
)
from ..core.time_utils import as_datetime, now_local
from ..models import BaseEvent, DisplayEvent
from .recurrence import RecurrenceExpander

logger = logging.getLogger(__name__)


def rebuild(
    base_events: Iterable[BaseEvent],
    now: Optional[Union[datetime.date, datetime.datetime]] = None,
    *,
    horizon_years: int = DEFAULT_HORIZON_YEARS,
    max_occurrences: int = MAX_OCCURRENCES_PER_EVENT,
) -> list[DisplayEvent]:
    """Build the display list from base events.

    Each base event is included as-is and followed by its occurrences up to
    ``now + horizon_years``. The result depends only on the inputs, so two
    calls with the same base events and ``now`` are identical.
    """
    moment = as_datetime(now) if now is not None else now_local()
    expander = RecurrenceExpander(
        Config(horizon_years=horizon_years, max_occurrences=max_occurrences)
    )
    horizon = expander.horizon(moment)

    events: list[DisplayEvent] = []
    base_count = 0
    for base in base_events:
        base_count += 1
        events.append(base)
        events.extend(expander.expand_event(base, moment))

    logger.debug(
        "Rebuilt presentation set: %d base events -> %d display events (horizon %s)",
        base_count,
        len(events),
        horizon.date().isoformat(),
    )
    return events


def events_on(events: Iterable[DisplayEvent], day: datetime.date) -> list[DisplayEvent]:
    """Return the events that fall on ``day`` (one cell of the month grid)."""
    return [event for event in events if event.date == day]


def upcoming(
    events: Sequence[DisplayEvent],
    today: datetime.date,
    limit: int = DEFAULT_UPCOMING_LIMIT,
) -> list[DisplayEvent]:
    """Return events dated today or later, earliest first, at most ``limit``."""
    pending = [event for event in events if event.date >= today]
    pending.sort(key=lambda event: event.date)
    return pending[: max(0, limit)]
