"""Recurrence expansion for pocketcal base events.

A recurring base event is projected forward one step at a time from its
anchor date. The anchor itself is the base event and is never re-emitted.
Expansion is bounded twice: by an exclusive horizon and by a hard cap on
the number of generated instances.
"""

from __future__ import annotations

import datetime
import logging
from typing import Optional, Union

from dateutil.relativedelta import relativedelta

from ..config_loader import MAX_OCCURRENCES_PER_EVENT, Config
from ..core.time_utils import Clock, as_datetime, horizon_from, now_local
from ..models import SHARED_EVENT_FIELDS, BaseEvent, Occurrence, RecurrenceType

logger = logging.getLogger(__name__)

# relativedelta keyword for one step of each rule shape
_STEP_UNITS: dict[RecurrenceType, str] = {
    RecurrenceType.DAILY: "days",
    RecurrenceType.WEEKLY: "weeks",
    RecurrenceType.MONTHLY: "months",
    RecurrenceType.CUSTOM: "days",
}


def step_for(kind: RecurrenceType, interval: int) -> relativedelta:
    """Return the calendar step between consecutive occurrences.

    Monthly steps clamp to the last day of shorter months (Jan 31 -> Feb 29).
    Because each step starts from the previous occurrence, the clamped day
    carries forward.
    """
    return relativedelta(**{_STEP_UNITS[kind]: max(1, interval)})


def expand(
    base: BaseEvent,
    horizon: Union[datetime.date, datetime.datetime],
    max_occurrences: int = MAX_OCCURRENCES_PER_EVENT,
) -> list[Occurrence]:
    """Expand a base event into its future occurrences.

    Args:
        base: Base event, possibly carrying a recurrence rule.
        horizon: Exclusive upper bound. A plain date means midnight of that day.
        max_occurrences: Maximum number of occurrences to generate.

    Returns:
        Occurrences in strictly increasing date order, indexed from 0. Empty
        when the event does not recur or its rule shape is unknown.
    """
    rule = base.recurrence
    if rule is None or not rule.is_active:
        return []

    kind = rule.kind
    if kind is None or kind not in _STEP_UNITS:
        logger.debug("Unknown recurrence type %r on event %s; not expanding", rule.type, base.id)
        return []

    step = step_for(kind, rule.effective_interval)
    limit = as_datetime(horizon)
    shared = {name: getattr(base, name) for name in SHARED_EVENT_FIELDS}

    occurrences: list[Occurrence] = []
    cursor = base.date
    while len(occurrences) < max_occurrences:
        try:
            next_date = cursor + step
        except (OverflowError, ValueError):
            # stepped past date.max
            break

        if as_datetime(next_date) >= limit:
            break
        if rule.end_date is not None and next_date > rule.end_date:
            break

        occurrences.append(
            Occurrence(**shared, date=next_date, base_id=base.id, index=len(occurrences))
        )
        cursor = next_date

    logger.debug(
        "Expanded %s (%s every %d) into %d occurrences before %s",
        base.id,
        kind.value,
        rule.effective_interval,
        len(occurrences),
        limit.isoformat(),
    )
    return occurrences


class RecurrenceExpander:
    """Expansion bound to configured limits and a clock.

    Holds ``horizon_years`` and ``max_occurrences`` from a Config and derives
    the exclusive horizon from "now" on every call.
    """

    def __init__(self, config: Optional[Config] = None, clock: Optional[Clock] = None) -> None:
        config = config or Config()
        self.horizon_years = config.horizon_years
        self.max_occurrences = config.max_occurrences
        self._clock: Clock = clock or now_local

    def horizon(
        self, now: Optional[Union[datetime.date, datetime.datetime]] = None
    ) -> datetime.datetime:
        """Return the exclusive expansion bound for ``now`` (default: the clock)."""
        moment = as_datetime(now) if now is not None else self._clock()
        return horizon_from(moment, self.horizon_years)

    def expand_event(
        self, base: BaseEvent, now: Optional[Union[datetime.date, datetime.datetime]] = None
    ) -> list[Occurrence]:
        return expand(base, self.horizon(now), self.max_occurrences)
