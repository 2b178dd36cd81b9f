"""Typer CLI for the CTO planner."""

from __future__ import annotations

import datetime
import json
import logging
import pathlib
import sys

import typer

from cto.breaks import OptimizationResult
from cto.days import (
    DEFAULT_WEEKEND,
    WEEKDAY_NAMES,
    DateRange,
    NamedDate,
    RecurringDayOff,
    expand_recurring,
    resolve_range,
)
from cto.errors import OptimizationError
from cto.export import write_ics
from cto.formatting import format_calendar_view, format_result
from cto.holidays import PRESETS, get_holidays, holidays_between
from cto.optimizer import CTOOptimizer
from cto.strategies import DEFAULT_STRATEGY, PROFILES

app = typer.Typer(
    name="cto",
    help="CTO Planner - make the most of your paid time off by placing CTO days "
    "next to and between weekends and holidays.",
    add_completion=False,
)

STRATEGY_CHOICES = list(PROFILES)

LOG_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _setup_logging(verbose: bool) -> None:
    """Configure the root logger; engine modules log through it."""
    level = logging.DEBUG if verbose else logging.WARNING
    root = logging.getLogger()
    root.setLevel(level)

    # Avoid duplicate handlers when invoked repeatedly in one process
    if root.handlers:
        return

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    root.addHandler(handler)


def _parse_date(value: str) -> datetime.date:
    """Parse a YYYY-MM-DD date string."""
    try:
        return datetime.date.fromisoformat(value)
    except (TypeError, ValueError):
        raise typer.BadParameter(f"Invalid date format {value!r}. Use YYYY-MM-DD.") from None


def _parse_named_date(value: str) -> NamedDate:
    """Parse ``YYYY-MM-DD`` or ``YYYY-MM-DD=Name``."""
    raw, _, name = value.partition("=")
    return NamedDate(_parse_date(raw.strip()), name.strip())


def _current_year() -> int:
    return datetime.date.today().year


# ---------------------------------------------------------------------------
# Config file
# ---------------------------------------------------------------------------


def _load_config(path: str) -> dict[str, object]:
    """Load a JSON run configuration; CLI flags override its values."""
    p = pathlib.Path(path)
    if not p.exists():
        typer.echo(f"Error: Config file not found: {path}", err=True)
        raise typer.Exit(code=1)

    try:
        data = json.loads(p.read_text())
    except json.JSONDecodeError as exc:
        typer.echo(f"Error: Invalid JSON in config file: {exc}", err=True)
        raise typer.Exit(code=1) from None

    if not isinstance(data, dict):
        typer.echo("Error: Config file must contain a JSON object.", err=True)
        raise typer.Exit(code=1)

    return data


def _config_list(data: dict[str, object], key: str) -> list[object]:
    raw = data.get(key, [])
    if not isinstance(raw, list):
        typer.echo(f"Error: {key!r} in config file must be a list.", err=True)
        raise typer.Exit(code=1)
    return raw


def _config_dates(data: dict[str, object], key: str) -> list[NamedDate]:
    """Read a list of ``"DATE[=NAME]"`` strings or ``{"date", "name"}`` objects."""
    dates: list[NamedDate] = []
    for entry in _config_list(data, key):
        if isinstance(entry, str):
            dates.append(_parse_named_date(entry))
        elif isinstance(entry, dict) and "date" in entry:
            dates.append(NamedDate(_parse_date(entry["date"]), str(entry.get("name", ""))))
        else:
            typer.echo(f"Error: Invalid entry in {key!r}: {entry!r}", err=True)
            raise typer.Exit(code=1)
    return dates


def _config_recurring(data: dict[str, object]) -> list[NamedDate]:
    """Expand ``recurring_days_off`` rules into individual company days off."""
    dates: list[NamedDate] = []
    for entry in _config_list(data, "recurring_days_off"):
        if not isinstance(entry, dict) or not {"weekday", "start_date", "end_date"} <= entry.keys():
            typer.echo(
                "Error: Each recurring day off needs 'weekday', 'start_date' and 'end_date'.",
                err=True,
            )
            raise typer.Exit(code=1)
        rule = RecurringDayOff(
            weekday=entry["weekday"],
            start_date=_parse_date(entry["start_date"]),
            end_date=_parse_date(entry["end_date"]),
            name=str(entry.get("name", "")),
        )
        dates.extend(expand_recurring(rule))
    return dates


def _resolve_cli_range(
    year: int | None,
    start: str | None,
    end: str | None,
    data: dict[str, object],
) -> DateRange:
    """CLI range flags win over the config file, which wins over the current year."""
    if year is not None or start is not None or end is not None:
        return resolve_range(year, start, end)
    if any(key in data for key in ("year", "start_date", "end_date")):
        return resolve_range(
            data.get("year"),  # type: ignore[arg-type]
            data.get("start_date"),  # type: ignore[arg-type]
            data.get("end_date"),  # type: ignore[arg-type]
        )
    return resolve_range(_current_year())


def _preset_holidays(country: str | None, date_range: DateRange) -> list[NamedDate]:
    if not country or country == "none":
        return []
    try:
        return holidays_between(country, date_range.start, date_range.end)
    except KeyError as exc:
        typer.echo(f"Error: {exc.args[0]}", err=True)
        raise typer.Exit(code=1) from None


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command()
def optimize(
    days: int = typer.Option(
        None,
        "--days",
        "-n",
        help="Number of CTO days to place.",
    ),
    strategy: str | None = typer.Option(
        None,
        "--strategy",
        "-s",
        help=f"Strategy: {', '.join(STRATEGY_CHOICES)}. Defaults to {DEFAULT_STRATEGY}.",
    ),
    year: int = typer.Option(
        None,
        "--year",
        "-y",
        help="Plan a whole calendar year. Defaults to the current year.",
    ),
    start: str | None = typer.Option(
        None,
        "--start",
        help="First day of the planning range (YYYY-MM-DD). Use with --end.",
    ),
    end: str | None = typer.Option(
        None,
        "--end",
        help="Last day of the planning range (YYYY-MM-DD). Use with --start.",
    ),
    weekend: list[int] | None = typer.Option(  # noqa: B008
        None,
        "--weekend",
        "-w",
        help="Weekend day, 0=Sunday .. 6=Saturday. Repeatable. Defaults to 0 and 6.",
    ),
    country: str | None = typer.Option(
        None,
        "--country",
        "-c",
        help=f"Holiday preset ({', '.join(sorted(PRESETS))}). Use 'none' to skip. Defaults to us.",
    ),
    holiday: list[str] | None = typer.Option(  # noqa: B008
        None,
        "--holiday",
        "-H",
        help="Additional holiday, YYYY-MM-DD[=Name]. Repeatable.",
    ),
    company_day: list[str] | None = typer.Option(  # noqa: B008
        None,
        "--company-day",
        help="Company day off, YYYY-MM-DD[=Name]. Repeatable.",
    ),
    pre_booked: list[str] | None = typer.Option(  # noqa: B008
        None,
        "--pre-booked",
        help="Day already booked off, YYYY-MM-DD[=Name]. Repeatable.",
    ),
    calendar: bool = typer.Option(
        True,
        "--calendar/--no-calendar",
        help="Show month-by-month calendar view.",
    ),
    output_json: bool = typer.Option(
        False,
        "--json",
        help="Output results as JSON.",
    ),
    ics: str | None = typer.Option(
        None,
        "--ics",
        help="Also write the breaks to an iCalendar (.ics) file at this path.",
    ),
    config: str | None = typer.Option(
        None,
        "--config",
        help="Path to a JSON config file. Command-line options override its values.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Log each optimizer stage to stderr.",
    ),
) -> None:
    """Place CTO days for the longest, best-placed breaks."""
    _setup_logging(verbose)
    data = _load_config(config) if config is not None else {}

    number_of_days = days if days is not None else data.get("number_of_days")
    if number_of_days is None:
        typer.echo("Error: --days is required (or set number_of_days in the config file).", err=True)
        raise typer.Exit(code=1)

    resolved_strategy = strategy or str(data.get("strategy", DEFAULT_STRATEGY))
    if resolved_strategy not in STRATEGY_CHOICES:
        typer.echo(
            f"Error: Invalid strategy {resolved_strategy!r}. "
            f"Choose from: {', '.join(STRATEGY_CHOICES)}",
            err=True,
        )
        raise typer.Exit(code=1)

    try:
        date_range = _resolve_cli_range(year, start, end, data)
        if weekend:
            weekend_days = weekend
        elif "weekend_days" in data:
            weekend_days = _config_list(data, "weekend_days")
        else:
            weekend_days = sorted(DEFAULT_WEEKEND)

        preset = country or data.get("country", "us")
        holidays = _preset_holidays(preset, date_range)  # type: ignore[arg-type]
        holidays += _config_dates(data, "holidays")
        holidays += [_parse_named_date(h) for h in holiday or []]

        company_days = _config_dates(data, "company_days_off") + _config_recurring(data)
        company_days += [_parse_named_date(c) for c in company_day or []]

        pre_booked_days = _config_dates(data, "pre_booked_days")
        pre_booked_days += [_parse_named_date(p) for p in pre_booked or []]

        optimizer = CTOOptimizer(
            number_of_days,  # type: ignore[arg-type]
            resolved_strategy,
            start_date=date_range.start,
            end_date=date_range.end,
            weekend_days=weekend_days,  # type: ignore[arg-type]
            holidays=holidays,
            company_days_off=company_days,
            pre_booked_days=pre_booked_days,
        )
        result = optimizer.optimize()
    except OptimizationError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None

    if output_json:
        _print_json(result, optimizer)
    else:
        _print_text(result, optimizer, calendar)

    if ics is not None:
        try:
            path = write_ics(result, ics)
        except OSError as exc:
            typer.echo(f"Error: Could not write calendar file: {exc}", err=True)
            raise typer.Exit(code=1) from None
        n = len(result.breaks)
        typer.echo(f"Exported {n} break{'s' if n != 1 else ''} to {path}", err=True)


def _print_text(result: OptimizationResult, optimizer: CTOOptimizer, show_calendar: bool) -> None:
    w = 64
    weekend_names = ", ".join(WEEKDAY_NAMES[d] for d in sorted(optimizer.weekend_days))
    holiday_days = [d for d in result.days if d.is_holiday]

    typer.echo("=" * w)
    typer.echo("  CTO PLANNER")
    typer.echo("=" * w)
    typer.echo(
        f"  Range:             {optimizer.date_range.start.isoformat()} -> "
        f"{optimizer.date_range.end.isoformat()}"
    )
    typer.echo(f"  Strategy:          {optimizer.profile.label}")
    typer.echo(f"  CTO days:          {optimizer.number_of_days}")
    typer.echo(f"  Workdays:          {optimizer.available_workdays}")
    typer.echo(f"  Weekend:           {weekend_names}")
    typer.echo(f"  Holidays:          {len(holiday_days)}")
    typer.echo(f"  Company days off:  {result.stats.total_company_days_off}")
    typer.echo(f"  Pre-booked days:   {result.stats.total_pre_booked_days}")
    typer.echo()
    for d in holiday_days:
        name = d.holiday_name or d.date.strftime("%b %d")
        typer.echo(f"    {d.date.strftime('%a, %b %d'):>12}  {name}")

    typer.echo(format_result(result))
    if show_calendar:
        typer.echo(format_calendar_view(result))

    n = len(result.breaks)
    typer.echo()
    typer.echo("=" * w)
    typer.echo(f"  Planned {n} break{'s' if n != 1 else ''}.")
    typer.echo("=" * w)


def _print_json(result: OptimizationResult, optimizer: CTOOptimizer) -> None:
    output: dict[str, object] = {
        "start_date": optimizer.date_range.start.isoformat(),
        "end_date": optimizer.date_range.end.isoformat(),
        "weekend_days": sorted(optimizer.weekend_days),
        **result.to_dict(),
    }
    json.dump(output, sys.stdout, indent=2)
    typer.echo()


@app.command()
def holidays(
    country: str = typer.Option(
        "us",
        "--country",
        "-c",
        help=f"Country preset ({', '.join(sorted(PRESETS))}).",
    ),
    year: int = typer.Option(
        None,
        "--year",
        "-y",
        help="Year to list holidays for. Defaults to the current year.",
    ),
) -> None:
    """List holidays for a country preset."""
    resolved_year = year if year is not None else _current_year()

    try:
        preset = get_holidays(country, resolved_year)
    except KeyError as exc:
        typer.echo(f"Error: {exc.args[0]}", err=True)
        raise typer.Exit(code=1) from None

    typer.echo(f"  {PRESETS[country]} - {resolved_year}")
    typer.echo()
    for d, name in preset:
        typer.echo(f"    {d.strftime('%a, %b %d'):>12}  {name}")


@app.command()
def strategies() -> None:
    """List the available strategies."""
    for profile in PROFILES.values():
        typer.echo(f"  {profile.name:<18} {profile.label}")
        typer.echo(f"  {'':<18} {profile.description}")


def main() -> None:
    """Entry point for the CLI."""
    app()
