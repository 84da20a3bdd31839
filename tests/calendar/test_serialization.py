"""
tests/calendar/test_serialization.py

Covers:
  - dump -> load returns an equal model for every leap and season variant
  - dumped data is JSON-ready and carries the days_per_year cache
  - stale days_per_year cache is recomputed and reported
  - malformed payloads raise CalendarError
"""

import json

import pytest

from almanac.calendar import (
    CalendarDate,
    CalendarError,
    CalendarModel,
    CustomLeapRule,
    Cycle,
    DatedSeasons,
    Daylight,
    Era,
    Festival,
    GregorianLeapRule,
    Month,
    Moon,
    MoonPhase,
    NoLeapRule,
    PeriodicSeason,
    PeriodicSeasons,
    Season,
    SimpleLeapRule,
    TimeUnits,
    Weekday,
    dump_calendar,
    load_calendar,
)


# ── Fixtures ──────────────────────────────────────────────────────────────────

@pytest.fixture
def rich():
    phases = (MoonPhase("Dark", 0.0, 0.5, "new"), MoonPhase("Bright", 0.5, 1.0, "full"))
    return CalendarModel(
        name="Rich",
        months=(
            Month("Deepwinter", 30, 1, "Dw"),
            Month("Midwinter", 1, 2, "Mw", leap_days=2, intercalary=True),
            Month("Claw", 30, 3, "Cl", starting_weekday=2),
        ),
        weekdays=(Weekday("Ashday", "As", 1), Weekday("Emberday", "Em", 2), Weekday("Cinderday", "Ci", 3)),
        leap_rule=CustomLeapRule("400,!100,4", start=3),
        seasons=PeriodicSeasons((PeriodicSeason("Cold", 31, "#0000ff", "fas fa-snowflake"),
                                 PeriodicSeason("Warm", 30)), offset=5),
        eras=(Era("Dale Reckoning", "DR", 1, None, "suffix", "{year} {abbreviation}"),),
        moons=(Moon("Selune", 30.4375, phases, CalendarDate(1, 0, 1), 2.5, "#ffffff", False),),
        cycles=(Cycle("Zodiac", 2, ("Rat", "Ox"), 1, "eraYear"),),
        time_units=TimeUnits(20, 50, 100),
        festivals=(Festival("Shieldmeet", 2, 2, leap_year_only=True, counts_for_weekday=False),),
        daylight=Daylight(True, 8, 16),
        first_weekday=1,
        year_zero=1,
        current_date=CalendarDate(1492, 2, 5),
        cycle_format="Year of the {1}",
        description="A test calendar",
        imported_from="fantasy-calendar",
        suggested_id="rich",
    )


# ── Tests ─────────────────────────────────────────────────────────────────────

class TestRoundTrip:

    def test_rich_model(self, rich):
        model, warnings = load_calendar(dump_calendar(rich))
        assert model == rich
        assert warnings == []

    @pytest.mark.parametrize("rule", [
        NoLeapRule(),
        SimpleLeapRule(4, 1),
        GregorianLeapRule(2),
        CustomLeapRule("8,!+4"),
    ])
    def test_leap_rule_variants(self, rich, rule):
        m = CalendarModel(name="L", months=rich.months, weekdays=rich.weekdays, leap_rule=rule)
        loaded, _ = load_calendar(dump_calendar(m))
        assert loaded.leap_rule == rule
        assert type(loaded.leap_rule) is type(rule)

    def test_dated_seasons(self, rich):
        seasons = DatedSeasons((Season("Cold", 50, 9, "#00f"), Season("Warm", 10, 49)))
        m = CalendarModel(name="S", months=rich.months, weekdays=rich.weekdays, seasons=seasons)
        loaded, _ = load_calendar(dump_calendar(m))
        assert loaded.seasons == seasons

    def test_survives_json(self, rich):
        text = json.dumps(dump_calendar(rich))
        model, _ = load_calendar(json.loads(text))
        assert model == rich

    def test_custom_terms_available_after_load(self, rich):
        model, _ = load_calendar(dump_calendar(rich))
        assert [str(t) for t in model.leap_rule.terms] == ["400", "!100", "4"]


class TestDaysPerYearCache:

    def test_cache_written(self, rich):
        data = dump_calendar(rich)
        assert data["days_per_year"] == 61
        assert data["leap_rule"]["kind"] == "custom"

    def test_stale_cache_is_reported(self, rich):
        data = dump_calendar(rich)
        data["days_per_year"] = 365
        model, [warning] = load_calendar(data)
        assert model.days_per_year == 61
        assert "365" in warning and "61" in warning

    def test_input_not_mutated(self, rich):
        data = dump_calendar(rich)
        load_calendar(data)
        assert "days_per_year" in data


class TestRejection:

    def test_missing_fields(self):
        with pytest.raises(CalendarError):
            load_calendar({"name": "Nothing else"})

    def test_unknown_leap_kind(self, rich):
        data = dump_calendar(rich)
        data["leap_rule"] = {"kind": "lunar"}
        with pytest.raises(CalendarError):
            load_calendar(data)
