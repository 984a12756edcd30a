"""Calendar domain: recurrence expansion, presentation set, event store, engine."""

from .collection import events_on, rebuild, upcoming
from .engine import CalendarEngine, MonotonicIdFactory
from .event_store import EventStore
from .recurrence import RecurrenceExpander, expand

__all__ = [
    "CalendarEngine",
    "EventStore",
    "MonotonicIdFactory",
    "RecurrenceExpander",
    "events_on",
    "expand",
    "rebuild",
    "upcoming",
]
