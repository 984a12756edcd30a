"""Command-line entry for pocketcal.

A thin text front end over CalendarEngine, useful for scripting and for
poking at a data directory without a UI.
"""

from __future__ import annotations

import argparse
import sys
from collections.abc import Iterable, Sequence
from typing import Any, Optional

from pydantic import ValidationError

from . import _init_logging
from .config_loader import Config
from .core.config_manager import ConfigManager
from .core.kv_backend import FileBackend
from .core.time_utils import today_local
from .domain.collection import events_on, upcoming
from .domain.engine import CalendarEngine
from .domain.event_store import EventStore
from .exceptions import ConfigError
from .logging_config import configure_logging
from .models import DisplayEvent, EventPatch, RecurrenceType, parse_local_date

_REPEAT_CHOICES = [kind.value for kind in RecurrenceType]


def _add_event_options(parser: argparse.ArgumentParser, *, creating: bool) -> None:
    parser.add_argument("--title", required=creating, help="Event title")
    parser.add_argument("--date", required=creating, metavar="YYYY-MM-DD", help="Event date")
    parser.add_argument("--time", help="Display time, e.g. 14:30")
    parser.add_argument("--description", help="Free-form notes")
    parser.add_argument("--color", help="Style tag passed through to the UI")
    parser.add_argument("--repeat", choices=_REPEAT_CHOICES, help="Recurrence rule shape")
    parser.add_argument("--interval", type=int, help="Steps between occurrences")
    parser.add_argument("--until", metavar="YYYY-MM-DD", help="Last date a repeat may fall on")


def _create_parser() -> argparse.ArgumentParser:
    """Create argument parser for the pocketcal CLI.

    Returns:
        Configured argument parser
    """
    parser = argparse.ArgumentParser(
        prog="pocketcal",
        description="pocketcal - personal event calendar",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  pocketcal add --title Standup --date 2024-01-01 --repeat weekly
  pocketcal list --upcoming 5
  pocketcal move 1704067200000-recurring-2 2024-03-01
        """,
    )
    parser.add_argument("--config", metavar="PATH", help="YAML or JSON config file")
    parser.add_argument("--data-dir", metavar="DIR", help="Directory holding the event document")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    sub = parser.add_subparsers(dest="command", required=True)

    list_parser = sub.add_parser("list", help="Show events")
    group = list_parser.add_mutually_exclusive_group()
    group.add_argument("--date", metavar="YYYY-MM-DD", help="Only events on this day")
    group.add_argument("--upcoming", type=int, nargs="?", const=-1, metavar="N",
                       help="Next N events from today (default from config)")
    group.add_argument("--all", action="store_true", help="Every displayed event")

    add_parser = sub.add_parser("add", help="Create an event")
    _add_event_options(add_parser, creating=True)

    update_parser = sub.add_parser("update", help="Edit an event series")
    update_parser.add_argument("id", help="Base or occurrence id")
    _add_event_options(update_parser, creating=False)

    delete_parser = sub.add_parser("delete", help="Delete an event series")
    delete_parser.add_argument("id", help="Base or occurrence id")

    move_parser = sub.add_parser("move", help="Reschedule an event series")
    move_parser.add_argument("id", help="Base or occurrence id")
    move_parser.add_argument("date", metavar="YYYY-MM-DD", help="New date")

    return parser


def _format_event(event: DisplayEvent) -> str:
    parts = [event.id, event.date.isoformat(), event.time or "-", event.title]
    if event.is_occurrence:
        parts.append(f"(series {event.base_id})")
    elif event.is_recurring and event.recurrence is not None:
        parts.append(f"(repeats {event.recurrence.type})")
    return "\t".join(parts)


def _print_events(events: Iterable[DisplayEvent]) -> None:
    count = 0
    for event in events:
        print(_format_event(event))
        count += 1
    if count == 0:
        print("No events")


def _recurrence_from_args(
    args: argparse.Namespace, current: Optional[dict[str, Any]] = None
) -> Optional[dict[str, Any]]:
    """Build a recurrence mapping from CLI flags layered over ``current``."""
    if args.repeat is None and args.interval is None and args.until is None:
        return current
    if args.repeat == RecurrenceType.NONE.value:
        return None
    rule: dict[str, Any] = dict(current or {})
    if args.repeat is not None:
        rule["type"] = args.repeat
    if args.interval is not None:
        rule["interval"] = args.interval
    if args.until is not None:
        rule["endDate"] = args.until
    rule.setdefault("type", RecurrenceType.DAILY.value)
    return rule


def _event_fields_from_args(args: argparse.Namespace) -> dict[str, Any]:
    fields: dict[str, Any] = {}
    for name in ("title", "date", "time", "description", "color"):
        value = getattr(args, name, None)
        if value is not None:
            fields[name] = value
    return fields


def _open_engine(cfg: Config) -> CalendarEngine:
    store = EventStore(FileBackend(cfg.data_dir), key=cfg.storage_key)
    return CalendarEngine(store, cfg)


def _run_command(args: argparse.Namespace, cfg: Config) -> int:
    engine = _open_engine(cfg)

    if args.command == "list":
        if args.date:
            _print_events(events_on(engine.events, parse_local_date(args.date)))
        elif args.all:
            _print_events(sorted(engine.events, key=lambda e: e.date))
        else:
            limit = cfg.upcoming_limit if args.upcoming in (None, -1) else args.upcoming
            _print_events(upcoming(engine.events, today_local(), limit))
        return 0

    if args.command == "add":
        data = _event_fields_from_args(args)
        rule = _recurrence_from_args(args)
        if rule is not None:
            data["recurrence"] = rule
        event = engine.add_event(data)
        print(_format_event(event))
        return 0

    if args.command == "update":
        existing = engine.get_event(args.id)
        changes = _event_fields_from_args(args)
        current_rule = None
        if existing is not None and existing.recurrence is not None:
            current_rule = existing.recurrence.model_dump(by_alias=True, exclude_none=True)
        rule = _recurrence_from_args(args, current_rule)
        if rule is not current_rule:
            changes["recurrence"] = rule
        updated = engine.update_event(args.id, EventPatch.model_validate(changes))
        if updated is None:
            print(f"No event with id {args.id}", file=sys.stderr)
            return 1
        print(_format_event(updated))
        return 0

    if args.command == "delete":
        if not engine.delete_event(args.id):
            print(f"No event with id {args.id}", file=sys.stderr)
            return 1
        print(f"Deleted series of {args.id}")
        return 0

    if args.command == "move":
        if engine.get_event(args.id) is None:
            print(f"No event with id {args.id}", file=sys.stderr)
            return 1
        moved = engine.move_event(args.id, args.date)
        if moved is None:
            print(f"{args.id} is already on {args.date}")
            return 0
        print(_format_event(moved))
        return 0

    raise AssertionError(f"unhandled command {args.command!r}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the pocketcal CLI and return a process exit code."""
    parser = _create_parser()
    args = parser.parse_args(argv)

    try:
        cfg = ConfigManager(config_path=args.config).load_full_config()
    except ConfigError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 2
    if args.data_dir:
        cfg = cfg.with_overrides({"data_dir": args.data_dir})

    _init_logging(cfg.log_level)
    configure_logging(cfg.log_level, debug_mode=args.debug)

    try:
        return _run_command(args, cfg)
    except (ValidationError, ValueError) as exc:
        print(f"Invalid input: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
