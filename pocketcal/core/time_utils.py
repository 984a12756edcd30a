"""Clock helpers for pocketcal.

All calendar dates are local wall-clock dates, so "now" is a naive local
datetime. Tests (and demos) can freeze it with the POCKETCAL_TEST_TIME
environment variable.
"""

from __future__ import annotations

import datetime
import logging
import os
from typing import Callable, Union

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

logger = logging.getLogger(__name__)

TEST_TIME_ENV = "POCKETCAL_TEST_TIME"

Clock = Callable[[], datetime.datetime]


def now_local() -> datetime.datetime:
    """Return the current local time as a naive datetime.

    Can be overridden via POCKETCAL_TEST_TIME.
    Format: ISO 8601 datetime string (e.g., "2024-01-01T09:00:00"). Aware
    values are converted to local time first.
    """
    test_time = os.environ.get(TEST_TIME_ENV)
    if test_time:
        try:
            dt = date_parser.isoparse(test_time)
            if dt.tzinfo is not None:
                dt = dt.astimezone().replace(tzinfo=None)
            return dt
        except (ValueError, OverflowError) as e:
            logger.warning("Failed to parse %s=%r: %s", TEST_TIME_ENV, test_time, e)

    return datetime.datetime.now()


def today_local() -> datetime.date:
    return now_local().date()


def fixed_clock(moment: datetime.datetime) -> Clock:
    """Return a clock that always reports ``moment``."""

    def _clock() -> datetime.datetime:
        return moment

    return _clock


def as_datetime(value: Union[datetime.date, datetime.datetime]) -> datetime.datetime:
    """Normalize a date to local midnight; datetimes pass through naive."""
    if isinstance(value, datetime.datetime):
        if value.tzinfo is not None:
            return value.astimezone().replace(tzinfo=None)
        return value
    return datetime.datetime.combine(value, datetime.time.min)


def horizon_from(now: datetime.datetime, years: int) -> datetime.datetime:
    """Return the expansion horizon ``years`` calendar years after ``now``.

    A horizon past the end of the calendar saturates at ``datetime.max``.
    """
    try:
        return now + relativedelta(years=years)
    except (ValueError, OverflowError):
        logger.warning("Horizon of %d years from %s is out of range; using datetime.max", years, now)
        return datetime.datetime.max
