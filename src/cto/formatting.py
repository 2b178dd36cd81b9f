"""Plain-text rendering of an optimization result."""

from __future__ import annotations

import calendar
import datetime

from cto.breaks import Break, OptimizationResult
from cto.days import CalendarDay
from cto.strategies import PROFILES

WIDTH = 64


def _date_span(start: datetime.date, end: datetime.date) -> str:
    if start == end:
        return start.strftime("%a, %b %d")
    return f"{start.strftime('%a, %b %d')} -> {end.strftime('%a, %b %d')}"


def _break_parts(brk: Break) -> str:
    parts: list[str] = []
    if brk.cto_days:
        parts.append(f"{brk.cto_days} CTO")
    if brk.holidays:
        parts.append(f"{brk.holidays} holiday{'s' if brk.holidays > 1 else ''}")
    if brk.company_days_off:
        plural = "s" if brk.company_days_off > 1 else ""
        parts.append(f"{brk.company_days_off} company day{plural}")
    if brk.pre_booked_days:
        parts.append(f"{brk.pre_booked_days} pre-booked")
    if brk.weekends:
        parts.append(f"{brk.weekends} weekend")
    return " + ".join(parts)


def format_result(result: OptimizationResult) -> str:
    """Return a human-readable summary of an optimization result."""
    profile = PROFILES[result.strategy]
    stats = result.stats
    lines: list[str] = []

    lines.append("")
    lines.append("=" * WIDTH)
    lines.append(f"  STRATEGY: {profile.label}")
    lines.append(f"  {profile.description}")
    lines.append("=" * WIDTH)

    lines.append(f"  CTO days used: {stats.total_cto_days} / {result.number_of_days}")
    lines.append(f"  Total days off: {stats.total_days_off}")
    if stats.total_cto_days:
        lines.append(
            f"  Efficiency: {stats.total_days_off / stats.total_cto_days:.1f}x"
            " (days off per CTO day)"
        )
    lines.append(
        f"  Weekends: {stats.total_extended_weekends} extended, "
        f"{stats.total_normal_weekends} normal"
    )
    lines.append("")

    lines.append("  Breaks:")
    lines.append("  " + "-" * (WIDTH - 4))
    for i, brk in enumerate(result.breaks, 1):
        day_word = "day" if brk.total_days == 1 else "days"
        lines.append(
            f"  {i:>2}. {_date_span(brk.start_date, brk.end_date)}  "
            f"({brk.total_days} {day_word}, {brk.break_type})"
        )
        lines.append(f"      {_break_parts(brk)}")
        lines.append("")

    lines.append("  Days to request off:")
    for d in result.cto_dates:
        lines.append(f"    -> {d.strftime('%A, %B %d, %Y')}")

    return "\n".join(lines)


def _cell(day: CalendarDay) -> str:
    n = day.date.day
    if day.is_cto:
        return f" {n:>2}C"
    if day.is_holiday:
        return f" {n:>2}H"
    if day.is_company_day_off:
        return f" {n:>2}O"
    if day.is_pre_booked:
        return f" {n:>2}B"
    return f"  {n:>2}"


def _months(start: datetime.date, end: datetime.date) -> list[tuple[int, int]]:
    months: list[tuple[int, int]] = []
    year, month = start.year, start.month
    while (year, month) <= (end.year, end.month):
        months.append((year, month))
        year, month = (year + 1, 1) if month == 12 else (year, month + 1)
    return months


def format_calendar_view(result: OptimizationResult) -> str:
    """Return a month-by-month calendar of the months holding a day off.

    Only months with a CTO day, holiday, company day off or pre-booked day
    are shown. Dates outside the planning range are left blank.
    """
    if not result.days:
        return ""
    by_date = {d.date: d for d in result.days}
    active = {
        (d.date.year, d.date.month)
        for d in result.days
        if d.is_cto or d.is_holiday or d.is_company_day_off or d.is_pre_booked
    }
    if not active:
        return ""

    lines: list[str] = [
        "",
        "  Calendar View",
        "  Legend: C=CTO  H=Holiday  O=Company day off  B=Pre-booked",
        "",
    ]

    cal = calendar.Calendar(firstweekday=0)
    for year, month in _months(result.days[0].date, result.days[-1].date):
        if (year, month) not in active:
            continue

        lines.append(f"  {calendar.month_name[month]} {year}")
        lines.append("  Mo  Tu  We  Th  Fr  Sa  Su")

        row = ""
        for day_num, weekday in cal.itermonthdays2(year, month):
            day = by_date.get(datetime.date(year, month, day_num)) if day_num else None
            row += _cell(day) if day is not None else "    "
            if weekday == 6:
                lines.append(row.rstrip())
                row = ""
        if row.strip():
            lines.append(row.rstrip())
        lines.append("")

    return "\n".join(lines)
