"""iCalendar (.ics) export of planned breaks.

Each break becomes one all-day event. iCalendar end dates are exclusive,
so ``DTEND`` is the day after the break's last day. Dates are written
without a timezone so they land on the same days in any calendar app.
"""

from __future__ import annotations

import datetime
import logging
import pathlib

from icalendar import Calendar, Event

from cto.breaks import Break, OptimizationResult
from cto.strategies import PROFILES

logger = logging.getLogger(__name__)

PRODID = "-//cto-planner//CTO Planner//EN"
CALENDAR_NAME = "CTO Planner"


def _description(brk: Break, result: OptimizationResult) -> str:
    stats = result.stats
    return "\n".join(
        [
            f"CTO days: {brk.cto_days}",
            f"Holidays: {brk.holidays}",
            f"Company days off: {brk.company_days_off}",
            f"Pre-booked days: {brk.pre_booked_days}",
            f"Weekend days: {brk.weekends}",
            f"Total days: {brk.total_days}",
            "",
            f"Strategy: {PROFILES[result.strategy].label}",
            f"CTO days used in plan: {stats.total_cto_days} of {result.number_of_days}",
            f"Total days off in plan: {stats.total_days_off}",
        ]
    )


def break_event(
    brk: Break,
    result: OptimizationResult,
    stamp: datetime.datetime,
) -> Event:
    event = Event()
    event.add("uid", f"{brk.start_date.isoformat()}-{brk.end_date.isoformat()}@cto-planner")
    event.add("dtstamp", stamp)
    event.add("dtstart", brk.start_date)
    event.add("dtend", brk.end_date + datetime.timedelta(days=1))
    event.add("summary", f"CTO - {brk.break_type}")
    event.add("description", _description(brk, result))
    event.add("categories", ["CTO", "Vacation"])
    event.add("status", "CONFIRMED")
    event.add("transp", "OPAQUE")
    event.add("x-microsoft-cdo-busystatus", "OOF")
    return event


def to_calendar(
    result: OptimizationResult,
    stamp: datetime.datetime | None = None,
) -> Calendar:
    """Build a calendar holding one all-day event per break of *result*.

    *stamp* is written as every event's ``DTSTAMP`` and defaults to the
    current UTC time.
    """
    if stamp is None:
        stamp = datetime.datetime.now(datetime.timezone.utc)

    cal = Calendar()
    cal.add("prodid", PRODID)
    cal.add("version", "2.0")
    cal.add("x-wr-calname", CALENDAR_NAME)
    for brk in result.breaks:
        cal.add_component(break_event(brk, result, stamp))
    return cal


def to_ics(result: OptimizationResult, stamp: datetime.datetime | None = None) -> bytes:
    return to_calendar(result, stamp).to_ical()


def write_ics(
    result: OptimizationResult,
    path: str | pathlib.Path,
    stamp: datetime.datetime | None = None,
) -> pathlib.Path:
    """Write *result* as an ``.ics`` file and return its path."""
    p = pathlib.Path(path)
    p.write_bytes(to_ics(result, stamp))
    logger.info("Exported %d breaks to %s", len(result.breaks), p)
    return p
