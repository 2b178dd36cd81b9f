from __future__ import annotations

import datetime
import json
import os
import tempfile

import pytest
from icalendar import Calendar
from typer.testing import CliRunner

from cto.cli import app
from cto.holidays import ca_holidays, easter_sunday, get_holidays, holidays_between, us_holidays

runner = CliRunner()


def _write_config(data: dict[str, object]) -> str:
    """Write a JSON config to a temp file and return its path."""
    fd, path = tempfile.mkstemp(suffix=".json")
    with os.fdopen(fd, "w") as f:
        json.dump(data, f)
    return path


class TestOptimizeCommand:
    def test_optimize_basic(self) -> None:
        result = runner.invoke(app, ["optimize", "--days", "10", "--year", "2025", "--no-calendar"])
        assert result.exit_code == 0
        assert "CTO PLANNER" in result.output
        assert "Balanced Mix" in result.output
        assert "Days to request off" in result.output

    def test_optimize_single_strategy(self) -> None:
        result = runner.invoke(
            app,
            [
                "optimize",
                "--days",
                "5",
                "--year",
                "2025",
                "--strategy",
                "longWeekends",
                "--no-calendar",
            ],
        )
        assert result.exit_code == 0
        assert "Long Weekends" in result.output

    def test_optimize_json_output(self) -> None:
        result = runner.invoke(
            app, ["optimize", "--days", "5", "--year", "2025", "-s", "weekLongBreaks", "--json"]
        )
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["start_date"] == "2025-01-01"
        assert data["end_date"] == "2025-12-31"
        assert data["strategy"] == "weekLongBreaks"
        assert data["number_of_days"] == 5
        assert len(data["days"]) == 365
        assert data["stats"]["total_cto_days"] == 5
        assert data["weekend_days"] == [0, 6]

    def test_optimize_with_calendar(self) -> None:
        result = runner.invoke(app, ["optimize", "--days", "5", "--year", "2025", "--calendar"])
        assert result.exit_code == 0
        assert "Calendar View" in result.output

    def test_optimize_date_range(self) -> None:
        result = runner.invoke(
            app,
            [
                "optimize",
                "-n",
                "2",
                "-s",
                "longWeekends",
                "--start",
                "2025-06-28",
                "--end",
                "2025-07-06",
                "--country",
                "none",
                "--holiday",
                "2025-07-02=Mid-week holiday",
                "--json",
            ],
        )
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert len(data["days"]) == 9
        assert len(data["breaks"]) == 1
        assert data["breaks"][0]["total_days"] == 5
        assert data["breaks"][0]["break_type"] == "Mini Break"
        holiday = next(d for d in data["days"] if d["is_holiday"])
        assert holiday["holiday_name"] == "Mid-week holiday"

    def test_optimize_custom_weekend(self) -> None:
        result = runner.invoke(
            app,
            [
                "optimize",
                "-n",
                "1",
                "-s",
                "longWeekends",
                "--start",
                "2025-01-05",
                "--end",
                "2025-01-11",
                "-w",
                "5",
                "-w",
                "6",
                "--json",
            ],
        )
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["weekend_days"] == [5, 6]
        assert [d["date"] for d in data["days"] if d["is_cto"]] == ["2025-01-09"]

    def test_optimize_invalid_strategy(self) -> None:
        result = runner.invoke(app, ["optimize", "--days", "5", "--strategy", "bogus"])
        assert result.exit_code == 1
        assert "Invalid strategy" in result.output

    def test_optimize_no_country(self) -> None:
        result = runner.invoke(
            app,
            [
                "optimize",
                "--days",
                "5",
                "--year",
                "2025",
                "--country",
                "none",
                "--holiday",
                "2025-12-25",
                "--no-calendar",
            ],
        )
        assert result.exit_code == 0
        assert "Holidays:          1\n" in result.output

    def test_optimize_custom_holiday(self) -> None:
        result = runner.invoke(
            app,
            ["optimize", "--days", "5", "--year", "2025", "--holiday", "2025-03-17", "--no-calendar"],
        )
        assert result.exit_code == 0
        # 9 US holidays + 1 custom = 10
        assert "Holidays:          10" in result.output

    def test_optimize_canadian_preset(self) -> None:
        result = runner.invoke(
            app, ["optimize", "--days", "5", "--year", "2025", "--country", "ca", "--no-calendar"]
        )
        assert result.exit_code == 0
        assert "Holidays:          10" in result.output
        assert "Canada Day" in result.output

    def test_optimize_company_and_pre_booked_days(self) -> None:
        result = runner.invoke(
            app,
            [
                "optimize",
                "--days",
                "3",
                "--year",
                "2025",
                "--company-day",
                "2025-12-24=Shutdown",
                "--pre-booked",
                "2025-08-15=Wedding",
                "--json",
            ],
        )
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["stats"]["total_company_days_off"] == 1
        assert data["stats"]["total_pre_booked_days"] == 1
        day = next(d for d in data["days"] if d["date"] == "2025-08-15")
        assert day["pre_booked_name"] == "Wedding"
        assert day["is_cto"] is False

    def test_optimize_invalid_country(self) -> None:
        result = runner.invoke(app, ["optimize", "--days", "5", "--country", "zz"])
        assert result.exit_code == 1
        assert "Unknown country preset" in result.output

    def test_optimize_days_required(self) -> None:
        result = runner.invoke(app, ["optimize", "--year", "2025"])
        assert result.exit_code == 1
        assert "--days is required" in result.output

    def test_optimize_zero_days(self) -> None:
        result = runner.invoke(app, ["optimize", "--days", "0", "--year", "2025"])
        assert result.exit_code == 1
        assert "must be positive" in result.output

    def test_optimize_too_many_days(self) -> None:
        result = runner.invoke(app, ["optimize", "--days", "1000", "--year", "2025"])
        assert result.exit_code == 1
        assert "Cannot place 1000 CTO days" in result.output

    def test_optimize_end_before_start(self) -> None:
        result = runner.invoke(
            app, ["optimize", "--days", "2", "--start", "2025-03-01", "--end", "2025-02-01"]
        )
        assert result.exit_code == 1
        assert "before start date" in result.output

    def test_optimize_invalid_weekend(self) -> None:
        result = runner.invoke(app, ["optimize", "--days", "2", "--year", "2025", "-w", "9"])
        assert result.exit_code == 1
        assert "Invalid weekend day" in result.output

    def test_optimize_invalid_holiday_date(self) -> None:
        result = runner.invoke(
            app, ["optimize", "--days", "2", "--year", "2025", "--holiday", "25/12/2025"]
        )
        assert result.exit_code != 0
        assert "Invalid date format" in result.output

    def test_optimize_verbose(self) -> None:
        result = runner.invoke(
            app, ["optimize", "--days", "3", "--year", "2025", "--verbose", "--no-calendar"]
        )
        assert result.exit_code == 0


class TestConfigFile:
    def _basic_config(self) -> dict[str, object]:
        return {
            "number_of_days": 3,
            "strategy": "longWeekends",
            "start_date": "2025-07-01",
            "end_date": "2025-07-31",
            "weekend_days": [5, 6],
            "country": "none",
            "holidays": ["2025-07-16=Mid-month holiday"],
            "pre_booked_days": [{"date": "2025-07-23", "name": "Trip"}],
            "recurring_days_off": [
                {
                    "weekday": 1,
                    "start_date": "2025-07-01",
                    "end_date": "2025-07-31",
                    "name": "Summer Monday",
                }
            ],
        }

    def test_config_json_output(self) -> None:
        path = _write_config(self._basic_config())
        try:
            result = runner.invoke(app, ["optimize", "--config", path, "--json"])
            assert result.exit_code == 0
            data = json.loads(result.output)
            assert data["start_date"] == "2025-07-01"
            assert data["end_date"] == "2025-07-31"
            assert data["weekend_days"] == [5, 6]
            assert data["strategy"] == "longWeekends"
            stats = data["stats"]
            assert stats["total_cto_days"] == 3
            assert stats["total_holidays"] == 1
            # Mondays Jul 7, 14, 21 and 28
            assert stats["total_company_days_off"] == 4
            assert stats["total_pre_booked_days"] == 1
        finally:
            os.unlink(path)

    def test_cli_overrides_config(self) -> None:
        path = _write_config(self._basic_config())
        try:
            result = runner.invoke(
                app,
                ["optimize", "--config", path, "--days", "2", "--strategy", "balanced", "--json"],
            )
            assert result.exit_code == 0
            data = json.loads(result.output)
            assert data["number_of_days"] == 2
            assert data["strategy"] == "balanced"
        finally:
            os.unlink(path)

    def test_cli_range_overrides_config(self) -> None:
        path = _write_config(self._basic_config())
        try:
            result = runner.invoke(app, ["optimize", "--config", path, "--year", "2026", "--json"])
            assert result.exit_code == 0
            data = json.loads(result.output)
            assert data["start_date"] == "2026-01-01"
        finally:
            os.unlink(path)

    def test_config_text_output(self) -> None:
        path = _write_config(self._basic_config())
        try:
            result = runner.invoke(app, ["optimize", "--config", path])
            assert result.exit_code == 0
            assert "Weekend:           Friday, Saturday" in result.output
            assert "Company days off:  4" in result.output
        finally:
            os.unlink(path)

    def test_config_empty_weekend_rejected(self) -> None:
        path = _write_config({"number_of_days": 3, "year": 2025, "weekend_days": []})
        try:
            result = runner.invoke(
                app, ["optimize", "--config", path, "--json", "--country", "none"]
            )
            assert result.exit_code == 1
            assert "at least one day" in result.output
        finally:
            os.unlink(path)

    def test_config_without_weekend_uses_default(self) -> None:
        path = _write_config({"number_of_days": 3, "year": 2025})
        try:
            result = runner.invoke(
                app, ["optimize", "--config", path, "--json", "--country", "none"]
            )
            assert result.exit_code == 0
            assert json.loads(result.output)["weekend_days"] == [0, 6]
        finally:
            os.unlink(path)

    def test_config_file_not_found(self) -> None:
        result = runner.invoke(app, ["optimize", "--config", "/nonexistent/config.json"])
        assert result.exit_code == 1
        assert "Config file not found" in result.output

    def test_config_invalid_json(self) -> None:
        fd, path = tempfile.mkstemp(suffix=".json")
        with os.fdopen(fd, "w") as f:
            f.write("not json{{{")
        try:
            result = runner.invoke(app, ["optimize", "--config", path])
            assert result.exit_code == 1
            assert "Invalid JSON" in result.output
        finally:
            os.unlink(path)

    def test_config_must_be_object(self) -> None:
        path = _write_config([1, 2, 3])  # type: ignore[arg-type]
        try:
            result = runner.invoke(app, ["optimize", "--config", path])
            assert result.exit_code == 1
            assert "JSON object" in result.output
        finally:
            os.unlink(path)

    def test_config_bad_recurring_entry(self) -> None:
        cfg = self._basic_config()
        cfg["recurring_days_off"] = [{"weekday": 1}]
        path = _write_config(cfg)
        try:
            result = runner.invoke(app, ["optimize", "--config", path])
            assert result.exit_code == 1
            assert "recurring day off" in result.output
        finally:
            os.unlink(path)

    def test_config_bad_holiday_entry(self) -> None:
        cfg = self._basic_config()
        cfg["holidays"] = [42]
        path = _write_config(cfg)
        try:
            result = runner.invoke(app, ["optimize", "--config", path])
            assert result.exit_code == 1
            assert "Invalid entry in 'holidays'" in result.output
        finally:
            os.unlink(path)


INDEPENDENCE_WEEK = [
    "optimize",
    "-n",
    "2",
    "-s",
    "longWeekends",
    "--start",
    "2025-06-28",
    "--end",
    "2025-07-06",
    "--country",
    "none",
    "--holiday",
    "2025-07-02=Mid-week holiday",
]


class TestBreakTypes:
    def test_text_output_labels_breaks(self) -> None:
        result = runner.invoke(app, [*INDEPENDENCE_WEEK, "--no-calendar"])
        assert result.exit_code == 0
        assert "(5 days, Mini Break)" in result.output

    def test_json_breaks_carry_type(self) -> None:
        result = runner.invoke(app, ["optimize", "--days", "10", "--year", "2025", "--json"])
        assert result.exit_code == 0
        labels = {"Short Break", "Long Weekend", "Mini Break", "Week Break", "Extended Break"}
        breaks = json.loads(result.output)["breaks"]
        assert breaks
        assert all(b["break_type"] in labels for b in breaks)


class TestIcsExport:
    def _export(self, *args: str) -> tuple[object, Calendar]:
        fd, path = tempfile.mkstemp(suffix=".ics")
        os.close(fd)
        try:
            result = runner.invoke(app, [*args, "--ics", path])
            with open(path, "rb") as f:
                cal = Calendar.from_ical(f.read())
        finally:
            os.unlink(path)
        return result, cal

    def test_one_all_day_event_per_break(self) -> None:
        result, cal = self._export(*INDEPENDENCE_WEEK, "--no-calendar")
        assert result.exit_code == 0
        assert "Exported 1 break to" in result.output
        events = cal.walk("VEVENT")
        assert len(events) == 1
        event = events[0]
        assert event.decoded("dtstart") == datetime.date(2025, 6, 28)
        # End dates are exclusive: the break runs through Wednesday Jul 2
        assert event.decoded("dtend") == datetime.date(2025, 7, 3)
        assert str(event["summary"]) == "CTO - Mini Break"

    def test_description_has_break_and_plan_stats(self) -> None:
        _, cal = self._export(*INDEPENDENCE_WEEK, "--no-calendar")
        description = str(cal.walk("VEVENT")[0]["description"])
        assert "CTO days: 2" in description
        assert "Holidays: 1" in description
        assert "Total days: 5" in description
        assert "CTO days used in plan: 2 of 2" in description

    def test_events_are_all_day(self) -> None:
        result, cal = self._export("optimize", "--days", "10", "--year", "2025", "--no-calendar")
        assert result.exit_code == 0
        events = cal.walk("VEVENT")
        assert len(events) >= 1
        for event in events:
            start = event.decoded("dtstart")
            end = event.decoded("dtend")
            assert isinstance(start, datetime.date)
            assert not isinstance(start, datetime.datetime)
            assert end > start
            assert event.decoded("dtstamp").tzinfo is not None

    def test_unwritable_path(self) -> None:
        result = runner.invoke(
            app,
            [*INDEPENDENCE_WEEK, "--no-calendar", "--ics", "/nonexistent/dir/plan.ics"],
        )
        assert result.exit_code == 1
        assert "Could not write calendar file" in result.output


class TestOtherCommands:
    def test_holidays_default(self) -> None:
        result = runner.invoke(app, ["holidays", "--year", "2025"])
        assert result.exit_code == 0
        assert "United States federal holidays" in result.output
        assert "New Year" in result.output
        assert "Christmas" in result.output

    def test_holidays_canada(self) -> None:
        result = runner.invoke(app, ["holidays", "--country", "ca", "--year", "2025"])
        assert result.exit_code == 0
        assert "Canadian statutory holidays" in result.output
        assert "Good Friday" in result.output

    def test_holidays_invalid_country(self) -> None:
        result = runner.invoke(app, ["holidays", "--country", "zz"])
        assert result.exit_code == 1
        assert "Unknown country preset" in result.output

    def test_strategies_lists_profiles(self) -> None:
        result = runner.invoke(app, ["strategies"])
        assert result.exit_code == 0
        for name in ("balanced", "longWeekends", "weekLongBreaks", "extendedVacations"):
            assert name in result.output


class TestHolidayPresets:
    def test_us_holidays_count(self) -> None:
        assert len(us_holidays(2025)) == 9

    def test_us_holidays_sorted(self) -> None:
        dates = [d for d, _ in us_holidays(2025)]
        assert dates == sorted(dates)

    def test_us_holidays_observed_saturday(self) -> None:
        # July 4, 2026 falls on Saturday -> observed Friday July 3
        dates = {d for d, _ in us_holidays(2026)}
        assert datetime.date(2026, 7, 3) in dates

    def test_us_holidays_observed_sunday(self) -> None:
        # July 4, 2021 falls on Sunday -> observed Monday July 5
        dates = {d for d, _ in us_holidays(2021)}
        assert datetime.date(2021, 7, 5) in dates

    def test_easter(self) -> None:
        assert easter_sunday(2024) == datetime.date(2024, 3, 31)
        assert easter_sunday(2025) == datetime.date(2025, 4, 20)

    def test_ca_holidays_2025(self) -> None:
        names = {h.name: h.date for h in ca_holidays(2025)}
        assert len(names) == 10
        assert names["Good Friday"] == datetime.date(2025, 4, 18)
        assert names["Victoria Day"] == datetime.date(2025, 5, 19)
        assert names["Thanksgiving"] == datetime.date(2025, 10, 13)

    def test_ca_boxing_day_follows_christmas(self) -> None:
        # Dec 25, 2021 is a Saturday and Dec 26 a Sunday
        names = {h.name: h.date for h in ca_holidays(2021)}
        assert names["Christmas Day"] == datetime.date(2021, 12, 27)
        assert names["Boxing Day"] == datetime.date(2021, 12, 28)

    def test_get_holidays_unknown_country(self) -> None:
        with pytest.raises(KeyError):
            get_holidays("xx", 2025)

    def test_holidays_between_spans_years(self) -> None:
        found = holidays_between("us", datetime.date(2025, 12, 1), datetime.date(2026, 1, 31))
        assert [h.name for h in found] == [
            "Christmas Day",
            "New Year's Day",
            "Martin Luther King Jr. Day",
        ]

    def test_holidays_between_includes_new_year_observed_early(self) -> None:
        # Jan 1, 2022 is a Saturday -> observed Friday Dec 31, 2021
        found = holidays_between("us", datetime.date(2021, 12, 1), datetime.date(2021, 12, 31))
        assert found == [
            (datetime.date(2021, 12, 24), "Christmas Day"),
            (datetime.date(2021, 12, 31), "New Year's Day"),
        ]

    def test_optimize_year_picks_up_new_year_observed_early(self) -> None:
        result = runner.invoke(
            app, ["optimize", "--days", "1", "--year", "2021", "--json", "--no-calendar"]
        )
        assert result.exit_code == 0
        holidays = {d["date"] for d in json.loads(result.output)["days"] if d["is_holiday"]}
        assert "2021-12-31" in holidays
        # Jan 1, 2021 is a Friday and is observed on the day itself
        assert "2021-01-01" in holidays
