"""Built-in public holiday presets.

The optimizer itself never looks holidays up; these presets are a
convenience for callers (the CLI uses them) and return plain
``(date, name)`` pairs ready to pass in.

Observed rules differ per country:

* ``us`` - Saturday holidays move back to Friday, Sunday ones to Monday.
* ``ca`` - weekend holidays move forward to the next free weekday.
"""

from __future__ import annotations

import datetime
from collections.abc import Callable

from cto.days import NamedDate

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _nth_weekday(year: int, month: int, weekday: int, n: int) -> datetime.date:
    """Return the *n*-th occurrence of *weekday* in *month* of *year*.

    *weekday* follows the ``datetime`` convention here: 0 = Monday.
    """
    first = datetime.date(year, month, 1)
    delta = (weekday - first.weekday()) % 7
    return first + datetime.timedelta(days=delta, weeks=n - 1)


def _last_weekday(year: int, month: int, weekday: int) -> datetime.date:
    if month == 12:
        last = datetime.date(year, 12, 31)
    else:
        last = datetime.date(year, month + 1, 1) - datetime.timedelta(days=1)
    delta = (last.weekday() - weekday) % 7
    return last - datetime.timedelta(days=delta)


def _weekday_on_or_before(d: datetime.date, weekday: int) -> datetime.date:
    return d - datetime.timedelta(days=(d.weekday() - weekday) % 7)


def _observed_nearest(d: datetime.date) -> datetime.date:
    """Sat -> Fri, Sun -> Mon."""
    if d.weekday() == 5:
        return d - datetime.timedelta(days=1)
    if d.weekday() == 6:
        return d + datetime.timedelta(days=1)
    return d


def _observed_forward(d: datetime.date, taken: datetime.date | None = None) -> datetime.date:
    """Move a weekend holiday to the next weekday that is not *taken*."""
    while d.weekday() >= 5 or d == taken:
        d += datetime.timedelta(days=1)
    return d


def easter_sunday(year: int) -> datetime.date:
    """Gregorian Easter Sunday (anonymous Gregorian computus)."""
    a = year % 19
    b, c = divmod(year, 100)
    d, e = divmod(b, 4)
    f = (b + 8) // 25
    g = (b - f + 1) // 3
    h = (19 * a + b - d - g + 15) % 30
    i, k = divmod(c, 4)
    l = (32 + 2 * e + 2 * i - h - k) % 7  # noqa: E741
    m = (a + 11 * h + 22 * l) // 451
    month, day = divmod(h + l - 7 * m + 114, 31)
    return datetime.date(year, month, day + 1)


# ---------------------------------------------------------------------------
# Country presets
# ---------------------------------------------------------------------------

PRESETS: dict[str, str] = {
    "ca": "Canadian statutory holidays",
    "us": "United States federal holidays",
}


def us_holidays(year: int) -> list[NamedDate]:
    """US federal holidays (observed) for *year*."""
    return sorted(
        [
            NamedDate(_observed_nearest(datetime.date(year, 1, 1)), "New Year's Day"),
            NamedDate(_nth_weekday(year, 1, 0, 3), "Martin Luther King Jr. Day"),
            NamedDate(_nth_weekday(year, 2, 0, 3), "Presidents' Day"),
            NamedDate(_last_weekday(year, 5, 0), "Memorial Day"),
            NamedDate(_observed_nearest(datetime.date(year, 6, 19)), "Juneteenth"),
            NamedDate(_observed_nearest(datetime.date(year, 7, 4)), "Independence Day"),
            NamedDate(_nth_weekday(year, 9, 0, 1), "Labor Day"),
            NamedDate(_nth_weekday(year, 11, 3, 4), "Thanksgiving"),
            NamedDate(_observed_nearest(datetime.date(year, 12, 25)), "Christmas Day"),
        ]
    )


def ca_holidays(year: int) -> list[NamedDate]:
    """Canadian statutory holidays (observed) for *year*."""
    christmas = _observed_forward(datetime.date(year, 12, 25))
    boxing_day = _observed_forward(datetime.date(year, 12, 26), taken=christmas)
    return sorted(
        [
            NamedDate(_observed_forward(datetime.date(year, 1, 1)), "New Year's Day"),
            NamedDate(_nth_weekday(year, 2, 0, 3), "Family Day"),
            NamedDate(easter_sunday(year) - datetime.timedelta(days=2), "Good Friday"),
            NamedDate(_weekday_on_or_before(datetime.date(year, 5, 24), 0), "Victoria Day"),
            NamedDate(_observed_forward(datetime.date(year, 7, 1)), "Canada Day"),
            NamedDate(_nth_weekday(year, 9, 0, 1), "Labour Day"),
            NamedDate(_nth_weekday(year, 10, 0, 2), "Thanksgiving"),
            NamedDate(_observed_forward(datetime.date(year, 11, 11)), "Remembrance Day"),
            NamedDate(christmas, "Christmas Day"),
            NamedDate(boxing_day, "Boxing Day"),
        ]
    )


_PRESET_FNS: dict[str, Callable[[int], list[NamedDate]]] = {
    "ca": ca_holidays,
    "us": us_holidays,
}


def get_holidays(country: str, year: int) -> list[NamedDate]:
    """Return ``(date, name)`` pairs for the given *country* preset and *year*.

    Raises ``KeyError`` if the country is not supported.
    """
    fn = _PRESET_FNS.get(country)
    if fn is None:
        supported = ", ".join(sorted(PRESETS))
        msg = f"Unknown country preset {country!r}. Supported: {supported}"
        raise KeyError(msg)
    return fn(year)


def holidays_between(country: str, start: datetime.date, end: datetime.date) -> list[NamedDate]:
    """Preset holidays observed inside ``start..end``.

    The year after *end* is included because a New Year's Day falling on a
    Saturday is observed on December 31 of the year before.
    """
    return [
        h
        for year in range(start.year, end.year + 2)
        for h in get_holidays(country, year)
        if start <= h.date <= end
    ]
