"""Shared fixtures for pocketcal tests."""

import datetime
import logging
from collections.abc import Generator
from typing import Any, Callable, Optional

import pytest

from pocketcal.config_loader import Config
from pocketcal.core.kv_backend import MemoryBackend
from pocketcal.domain.engine import CalendarEngine
from pocketcal.domain.event_store import EventStore
from pocketcal.logging_config import PACKAGE_LOGGERS
from pocketcal.models import BaseEvent, Recurrence

POCKETCAL_ENV_VARS = (
    "POCKETCAL_TEST_TIME",
    "POCKETCAL_DEBUG",
    "POCKETCAL_LOG_LEVEL",
    "POCKETCAL_DATA_DIR",
    "POCKETCAL_STORAGE_KEY",
    "POCKETCAL_HORIZON_YEARS",
    "POCKETCAL_MAX_OCCURRENCES",
    "POCKETCAL_UPCOMING_LIMIT",
)

FIXED_NOW = datetime.datetime(2024, 1, 1, 9, 0, 0)


def pytest_configure(config: Any) -> None:
    """Register test markers."""
    config.addinivalue_line("markers", "unit: Fast unit tests")
    config.addinivalue_line("markers", "integration: Tests that touch the filesystem or CLI")


class MutableClock:
    """Clock whose current time tests can move."""

    def __init__(self, now: datetime.datetime) -> None:
        self.now = now

    def __call__(self) -> datetime.datetime:
        return self.now

    def advance(self, **kwargs: Any) -> datetime.datetime:
        self.now = self.now + datetime.timedelta(**kwargs)
        return self.now


@pytest.fixture(autouse=True)
def clean_pocketcal_env(monkeypatch: pytest.MonkeyPatch) -> Generator[None, Any, None]:
    """Clear POCKETCAL_* variables and restore them (or their absence) afterwards.

    Set-then-delete registers each name with monkeypatch, so values a .env
    loader writes into os.environ are removed at teardown too.
    """
    for name in POCKETCAL_ENV_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    yield


@pytest.fixture(autouse=True)
def restore_log_levels() -> Generator[None, Any, None]:
    """Undo level changes made by configure_logging() and _init_logging()."""
    names = ("", *PACKAGE_LOGGERS, "dateutil", "yaml")
    saved = {name: logging.getLogger(name or None).level for name in names}
    yield
    for name, level in saved.items():
        logging.getLogger(name or None).setLevel(level)


@pytest.fixture
def clock() -> MutableClock:
    return MutableClock(FIXED_NOW)


@pytest.fixture
def memory_backend() -> MemoryBackend:
    return MemoryBackend()


@pytest.fixture
def store(memory_backend: MemoryBackend) -> EventStore:
    return EventStore(memory_backend)


@pytest.fixture
def make_event() -> Callable[..., BaseEvent]:
    """Factory for base events with sensible defaults."""

    def _make(
        event_id: str = "1",
        date: datetime.date = datetime.date(2024, 1, 1),
        recurrence: Optional[Recurrence] = None,
        title: str = "Standup",
        **extra: Any,
    ) -> BaseEvent:
        return BaseEvent(
            id=event_id,
            title=title,
            date=date,
            recurrence=recurrence,
            created_at=extra.pop("created_at", FIXED_NOW),
            updated_at=extra.pop("updated_at", FIXED_NOW),
            **extra,
        )

    return _make


@pytest.fixture
def make_engine(store: EventStore, clock: MutableClock) -> Callable[..., CalendarEngine]:
    """Factory building an engine over the in-memory store and fixed clock."""

    def _make(
        config: Optional[Config] = None,
        id_factory: Optional[Callable[[], str]] = None,
        event_store: Optional[EventStore] = None,
    ) -> CalendarEngine:
        return CalendarEngine(
            event_store or store,
            config=config,
            clock=clock,
            id_factory=id_factory,
        )

    return _make
