"""Calendar model: one record per date, plus the off-block scan.

Weekday numbers used throughout the package follow the 0 = Sunday ..
6 = Saturday convention (not ``datetime``'s 0 = Monday), so a
Friday/Saturday weekend is ``{5, 6}``.
"""

from __future__ import annotations

import datetime
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import NamedTuple

from cto.errors import InvalidRangeError

logger = logging.getLogger(__name__)

DateLike = datetime.date | str

DEFAULT_WEEKEND: frozenset[int] = frozenset({0, 6})

WEEKDAY_NAMES = (
    "Sunday",
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
)

# ---------------------------------------------------------------------------
# Data types
# ---------------------------------------------------------------------------


class NamedDate(NamedTuple):
    """A date with an optional label, e.g. a holiday and its name."""

    date: datetime.date
    name: str = ""


class DateRange(NamedTuple):
    """An inclusive ``start``..``end`` span of dates."""

    start: datetime.date
    end: datetime.date

    @property
    def num_days(self) -> int:
        return (self.end - self.start).days + 1


class RecurringDayOff(NamedTuple):
    """A company day off repeating on one weekday inside a date window."""

    weekday: int
    start_date: datetime.date
    end_date: datetime.date
    name: str = ""


@dataclass
class CalendarDay:
    """State of a single date in the planning range.

    ``is_cto`` is only ever set by the optimizer and ``is_part_of_break`` is
    derived from the other flags once the allocation is final.
    """

    date: datetime.date
    is_weekend: bool = False
    is_holiday: bool = False
    holiday_name: str | None = None
    is_company_day_off: bool = False
    company_day_name: str | None = None
    is_pre_booked: bool = False
    pre_booked_name: str | None = None
    is_cto: bool = False
    is_part_of_break: bool = False

    @property
    def is_off_by_default(self) -> bool:
        return self.is_weekend or self.is_holiday or self.is_company_day_off or self.is_pre_booked

    @property
    def is_off(self) -> bool:
        return self.is_off_by_default or self.is_cto

    @property
    def is_workday(self) -> bool:
        return not self.is_off_by_default

    def to_dict(self) -> dict[str, object]:
        return {
            "date": self.date.isoformat(),
            "is_weekend": self.is_weekend,
            "is_holiday": self.is_holiday,
            "holiday_name": self.holiday_name,
            "is_company_day_off": self.is_company_day_off,
            "company_day_name": self.company_day_name,
            "is_pre_booked": self.is_pre_booked,
            "pre_booked_name": self.pre_booked_name,
            "is_cto": self.is_cto,
            "is_part_of_break": self.is_part_of_break,
        }


class OffBlock(NamedTuple):
    """A maximal run of off-by-default days, as calendar indices."""

    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start + 1


# ---------------------------------------------------------------------------
# Input normalisation
# ---------------------------------------------------------------------------


def weekday_index(d: datetime.date) -> int:
    """Weekday of *d* with 0 = Sunday .. 6 = Saturday."""
    return (d.weekday() + 1) % 7


def to_date(value: DateLike) -> datetime.date:
    """Coerce a ``date``/``datetime`` or an ISO ``YYYY-MM-DD`` string."""
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    try:
        return datetime.date.fromisoformat(value)
    except (TypeError, ValueError):
        raise InvalidRangeError(f"Invalid date {value!r}. Use YYYY-MM-DD.") from None


def resolve_range(
    year: int | None = None,
    start_date: DateLike | None = None,
    end_date: DateLike | None = None,
) -> DateRange:
    """Resolve either a calendar *year* or an explicit start/end pair."""
    if year is not None:
        if start_date is not None or end_date is not None:
            raise InvalidRangeError("Give either a year or a start/end date pair, not both.")
        try:
            return DateRange(datetime.date(year, 1, 1), datetime.date(year, 12, 31))
        except (TypeError, ValueError):
            raise InvalidRangeError(f"Invalid year {year!r}.") from None

    if start_date is None or end_date is None:
        raise InvalidRangeError("A date range needs a year or both a start date and an end date.")

    start = to_date(start_date)
    end = to_date(end_date)
    if end < start:
        raise InvalidRangeError(
            f"End date {end.isoformat()} is before start date {start.isoformat()}."
        )
    return DateRange(start, end)


def normalize_weekend(weekend_days: Iterable[int]) -> frozenset[int]:
    """Validate a set of weekend weekday numbers (0 = Sunday .. 6 = Saturday)."""
    days = frozenset(weekend_days)
    if not days:
        raise InvalidRangeError("The weekend must contain at least one day.")
    for d in days:
        if isinstance(d, bool) or not isinstance(d, int) or not 0 <= d <= 6:
            raise InvalidRangeError(
                f"Invalid weekend day {d!r}. Use 0 (Sunday) through 6 (Saturday)."
            )
    if len(days) == 7:
        raise InvalidRangeError("The weekend cannot cover the whole week.")
    return days


def _named_dates(entries: Iterable[object]) -> dict[datetime.date, str | None]:
    """Map date -> name, keeping the first name seen for a repeated date.

    Entries are bare dates, ``(date, name)`` pairs or ``{"date", "name"}``
    mappings; dates may be ISO strings. A missing or empty name maps to None.
    """
    result: dict[datetime.date, str | None] = {}
    for entry in entries:
        if isinstance(entry, Mapping):
            if "date" not in entry:
                raise InvalidRangeError(f"Date entry {entry!r} has no 'date'.")
            raw, name = entry["date"], entry.get("name")
        elif isinstance(entry, (tuple, list)):
            raw, name = entry[0], (entry[1] if len(entry) > 1 else None)
        else:
            raw, name = entry, None
        result.setdefault(to_date(raw), name or None)  # type: ignore[arg-type]
    return result


def expand_recurring(rule: RecurringDayOff) -> list[NamedDate]:
    """Every date in the rule's window falling on the rule's weekday."""
    weekday = rule.weekday
    if isinstance(weekday, bool) or not isinstance(weekday, int) or not 0 <= weekday <= 6:
        raise InvalidRangeError(
            f"Invalid recurring weekday {rule.weekday!r}. Use 0 (Sunday) through 6 (Saturday)."
        )
    window = resolve_range(start_date=rule.start_date, end_date=rule.end_date)

    delta = (weekday - weekday_index(window.start)) % 7
    d = window.start + datetime.timedelta(days=delta)
    dates: list[NamedDate] = []
    while d <= window.end:
        dates.append(NamedDate(d, rule.name))
        d += datetime.timedelta(weeks=1)
    return dates


# ---------------------------------------------------------------------------
# Calendar construction
# ---------------------------------------------------------------------------


def build_calendar(
    date_range: DateRange,
    weekend_days: Iterable[int] = DEFAULT_WEEKEND,
    holidays: Iterable[object] = (),
    company_days_off: Iterable[object] = (),
    pre_booked_days: Iterable[object] = (),
) -> list[CalendarDay]:
    """Build one :class:`CalendarDay` per date of *date_range*, inclusive.

    Dates outside the range are ignored. A date listed in several inputs
    carries every matching flag.
    """
    weekend = normalize_weekend(weekend_days)
    holiday_names = _named_dates(holidays)
    company_names = _named_dates(company_days_off)
    pre_booked_names = _named_dates(pre_booked_days)

    days: list[CalendarDay] = []
    for offset in range(date_range.num_days):
        d = date_range.start + datetime.timedelta(days=offset)
        days.append(
            CalendarDay(
                date=d,
                is_weekend=weekday_index(d) in weekend,
                is_holiday=d in holiday_names,
                holiday_name=holiday_names.get(d),
                is_company_day_off=d in company_names,
                company_day_name=company_names.get(d),
                is_pre_booked=d in pre_booked_names,
                pre_booked_name=pre_booked_names.get(d),
            )
        )

    logger.debug(
        "Built calendar %s..%s: %d days, %d holidays, %d company days off, %d pre-booked",
        date_range.start,
        date_range.end,
        len(days),
        sum(1 for day in days if day.is_holiday),
        sum(1 for day in days if day.is_company_day_off),
        sum(1 for day in days if day.is_pre_booked),
    )
    return days


def count_workdays(days: list[CalendarDay]) -> int:
    return sum(1 for d in days if d.is_workday)


def find_off_blocks(days: list[CalendarDay]) -> list[OffBlock]:
    """Return every maximal run of off-by-default days, in date order."""
    blocks: list[OffBlock] = []
    start: int | None = None

    for i, day in enumerate(days):
        if day.is_off_by_default:
            if start is None:
                start = i
        elif start is not None:
            blocks.append(OffBlock(start, i - 1))
            start = None

    if start is not None:
        blocks.append(OffBlock(start, len(days) - 1))

    return blocks
