"""Break extraction and summary statistics for a finished allocation."""

from __future__ import annotations

import datetime
from typing import NamedTuple

from cto.days import CalendarDay

# ---------------------------------------------------------------------------
# Break types
# ---------------------------------------------------------------------------

# Smallest total length for each label, longest first.
BREAK_TYPES: tuple[tuple[int, str], ...] = (
    (10, "Extended Break"),
    (7, "Week Break"),
    (5, "Mini Break"),
    (3, "Long Weekend"),
)
SHORT_BREAK = "Short Break"


def break_type_for(total_days: int) -> str:
    """Label a break by its total length in days."""
    for min_days, label in BREAK_TYPES:
        if total_days >= min_days:
            return label
    return SHORT_BREAK


# ---------------------------------------------------------------------------
# Data types
# ---------------------------------------------------------------------------


class Break(NamedTuple):
    """A maximal run of consecutive days that are part of a break."""

    start_date: datetime.date
    end_date: datetime.date
    days: list[CalendarDay]
    total_days: int
    cto_days: int
    holidays: int
    weekends: int
    company_days_off: int
    pre_booked_days: int

    @property
    def break_type(self) -> str:
        return break_type_for(self.total_days)

    def to_dict(self) -> dict[str, object]:
        return {
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "days": [d.to_dict() for d in self.days],
            "total_days": self.total_days,
            "cto_days": self.cto_days,
            "holidays": self.holidays,
            "weekends": self.weekends,
            "company_days_off": self.company_days_off,
            "pre_booked_days": self.pre_booked_days,
            "break_type": self.break_type,
        }


class OptimizationStats(NamedTuple):
    total_cto_days: int
    total_holidays: int
    total_normal_weekends: int
    total_extended_weekends: int
    total_company_days_off: int
    total_pre_booked_days: int
    total_days_off: int

    def to_dict(self) -> dict[str, object]:
        return dict(self._asdict())


class OptimizationResult(NamedTuple):
    """Everything one optimizer run produces."""

    strategy: str
    number_of_days: int
    days: list[CalendarDay]
    breaks: list[Break]
    stats: OptimizationStats

    @property
    def cto_dates(self) -> list[datetime.date]:
        return [d.date for d in self.days if d.is_cto]

    def to_dict(self) -> dict[str, object]:
        return {
            "strategy": self.strategy,
            "number_of_days": self.number_of_days,
            "days": [d.to_dict() for d in self.days],
            "breaks": [b.to_dict() for b in self.breaks],
            "stats": self.stats.to_dict(),
        }


# ---------------------------------------------------------------------------
# Weekend runs
# ---------------------------------------------------------------------------


def weekend_runs(days: list[CalendarDay]) -> list[tuple[int, int]]:
    """Maximal runs of consecutive weekend days, as ``(start, end)`` indices.

    With the default weekend this is one run per Saturday/Sunday pair; a
    run cut by the edge of the range is shorter.
    """
    runs: list[tuple[int, int]] = []
    start: int | None = None
    for i, day in enumerate(days):
        if day.is_weekend:
            if start is None:
                start = i
        elif start is not None:
            runs.append((start, i - 1))
            start = None
    if start is not None:
        runs.append((start, len(days) - 1))
    return runs


def is_normal_weekend(days: list[CalendarDay], start: int, end: int) -> bool:
    """A plain weekend: nothing special on it and workdays on both sides.

    A neighbour outside the range counts as a workday.
    """
    for day in days[start : end + 1]:
        if day.is_holiday or day.is_company_day_off or day.is_pre_booked:
            return False
    before_off = start > 0 and days[start - 1].is_off
    after_off = end + 1 < len(days) and days[end + 1].is_off
    return not before_off and not after_off


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------


def mark_breaks(days: list[CalendarDay]) -> None:
    """Set ``is_part_of_break`` on every day, in place.

    Every off day belongs to a break except the days of a normal weekend.
    """
    for day in days:
        day.is_part_of_break = day.is_off
    for start, end in weekend_runs(days):
        if is_normal_weekend(days, start, end):
            for day in days[start : end + 1]:
                day.is_part_of_break = False


def _make_break(run: list[CalendarDay]) -> Break:
    return Break(
        start_date=run[0].date,
        end_date=run[-1].date,
        days=run,
        total_days=len(run),
        cto_days=sum(1 for d in run if d.is_cto),
        holidays=sum(1 for d in run if d.is_holiday),
        weekends=sum(1 for d in run if d.is_weekend),
        company_days_off=sum(1 for d in run if d.is_company_day_off),
        pre_booked_days=sum(1 for d in run if d.is_pre_booked),
    )


def extract_breaks(days: list[CalendarDay]) -> list[Break]:
    """Group consecutive ``is_part_of_break`` days into :class:`Break` records."""
    breaks: list[Break] = []
    run: list[CalendarDay] = []
    for day in days:
        if day.is_part_of_break:
            run.append(day)
        elif run:
            breaks.append(_make_break(run))
            run = []
    if run:
        breaks.append(_make_break(run))
    return breaks


def compute_stats(days: list[CalendarDay]) -> OptimizationStats:
    normal = extended = 0
    for start, end in weekend_runs(days):
        if is_normal_weekend(days, start, end):
            normal += 1
        else:
            extended += 1

    return OptimizationStats(
        total_cto_days=sum(1 for d in days if d.is_cto),
        total_holidays=sum(1 for d in days if d.is_holiday),
        total_normal_weekends=normal,
        total_extended_weekends=extended,
        total_company_days_off=sum(1 for d in days if d.is_company_day_off),
        total_pre_booked_days=sum(1 for d in days if d.is_pre_booked),
        total_days_off=sum(1 for d in days if d.is_part_of_break),
    )
