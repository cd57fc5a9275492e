"""Command line access to calendar views, slots and stored schedules."""

import argparse
import asyncio
import sys
from datetime import date
from typing import Any, Optional, Sequence

import orjson
from loguru import logger

from clinisched.schedule import (
    CalendarView,
    ScheduleError,
    ScheduleFilters,
    ScheduleStatus,
    ScheduleType,
    SlotConfig,
    resolve_range,
    view_dates,
)
from clinisched.schedule.utils import format_time_display
from clinisched.settings.logging import setup_logging


def _dump(data: Any) -> None:
    sys.stdout.write(orjson.dumps(data, option=orjson.OPT_INDENT_2).decode())
    sys.stdout.write("\n")


def _today(value: Optional[str]) -> date:
    return date.fromisoformat(value) if value else date.today()


def cmd_range(args: argparse.Namespace) -> None:
    """Print the date range and grid of a view."""
    today = _today(args.today)
    date_range = resolve_range(args.view, today)
    _dump(
        {
            "view": args.view,
            "start": date_range.start,
            "end": date_range.end,
            "days": date_range.days,
            "grid": view_dates(args.view, today),
        },
    )


def cmd_slots(args: argparse.Namespace) -> None:
    """Print bookable slots."""
    defaults = SlotConfig.from_settings()
    config = SlotConfig(
        start_hour=args.start_hour if args.start_hour is not None else defaults.start_hour,
        end_hour=args.end_hour if args.end_hour is not None else defaults.end_hour,
        step_minutes=args.step if args.step is not None else defaults.step_minutes,
    )
    slots = config.slots()
    if args.display:
        slots = [format_time_display(slot) for slot in slots]
    _dump(slots)


async def cmd_init_db(args: argparse.Namespace) -> None:
    """Create the tables of the configured database."""
    from clinisched.db.engine import close_engine, create_tables

    try:
        await create_tables()
    finally:
        await close_engine()


async def cmd_agenda(args: argparse.Namespace) -> None:
    """Print a clinician's items and counts for a view."""
    from clinisched.db.engine import close_engine
    from clinisched.workflow import ScheduleWorkflow

    filters = ScheduleFilters(type=args.type, status=args.status)
    try:
        page = await ScheduleWorkflow().calendar(
            args.clinician,
            args.view,
            filters=filters,
            today=_today(args.today),
        )
    finally:
        await close_engine()

    _dump(
        {
            "view": page.view,
            "start": page.date_range.start,
            "end": page.date_range.end,
            "summary": page.summary.model_dump(),
            "days": {
                day.isoformat(): [
                    item.model_dump(mode="json", by_alias=True) for item in items
                ]
                for day, items in page.days.items()
            },
        },
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="clinisched",
        description="Clinician schedule calendar tools",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    views = [view.value for view in CalendarView]

    range_parser = commands.add_parser("range", help="Resolve a calendar view")
    range_parser.add_argument("view", choices=views)
    range_parser.add_argument("--today", help="Reference date, YYYY-MM-DD")
    range_parser.set_defaults(handler=cmd_range)

    slots_parser = commands.add_parser("slots", help="List bookable slots")
    slots_parser.add_argument("--start-hour", type=int)
    slots_parser.add_argument("--end-hour", type=int)
    slots_parser.add_argument("--step", type=int, help="Slot width in minutes")
    slots_parser.add_argument(
        "--display",
        action="store_true",
        help="Show times as 9:00 AM",
    )
    slots_parser.set_defaults(handler=cmd_slots)

    init_parser = commands.add_parser("init-db", help="Create database tables")
    init_parser.set_defaults(handler=cmd_init_db)

    agenda_parser = commands.add_parser("agenda", help="Show a clinician's schedule")
    agenda_parser.add_argument("--clinician", required=True, help="Clinician ID")
    agenda_parser.add_argument("--view", choices=views, default=CalendarView.WEEK.value)
    agenda_parser.add_argument("--type", choices=[t.value for t in ScheduleType])
    agenda_parser.add_argument("--status", choices=[s.value for s in ScheduleStatus])
    agenda_parser.add_argument("--today", help="Reference date, YYYY-MM-DD")
    agenda_parser.set_defaults(handler=cmd_agenda)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main function."""
    setup_logging()
    args = build_parser().parse_args(argv)

    try:
        result = args.handler(args)
        if asyncio.iscoroutine(result):
            asyncio.run(result)
    except ScheduleError as e:
        logger.error(e.message)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
