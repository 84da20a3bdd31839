"""
tests/importers/test_fantasy_calendar.py

Covers:
  - Format detection and the detect_importer / import_calendar entry points
  - Month, weekday, leap day, season, moon, era, cycle and clock conversion
  - Lossy-conversion warnings (moons, leap-rule collapse, cycles, eras)
  - Event conversion: categories, colors, duration, limits, OR splits, seeds
  - Per-event failures recorded as warnings, malformed events skipped
  - Seasons sharing a start day collapse to the first
  - MissingFieldError / empty month list
  - Settings overrides and idempotent transforms
"""

import copy

import numpy as np
import pytest

from almanac.calendar import (
    CalendarDate,
    Festival,
    GregorianLeapRule,
    SimpleLeapRule,
    era_label,
    season_at,
    validate,
)
from almanac.calendar.validation import resolved_season_coverage
from almanac.config import ImportSettings
from almanac.importers import (
    CalendariumImporter,
    FantasyCalendarImporter,
    MissingFieldError,
    UnrecognizedFormatError,
    detect_importer,
    import_calendar,
)
from almanac.recurrence import Recurrence, derive_seed


# ── Fixtures ──────────────────────────────────────────────────────────────────

@pytest.fixture
def export():
    return {
        "name": "Calendar of Harptos",
        "static_data": {
            "year_data": {
                "first_day": 2,
                "global_week": ["Firstday", "Secondday", "Thirdday"],
                "timespans": [
                    {"name": "Hammer", "type": "month", "length": 30},
                    {"name": "Midwinter", "type": "intercalary", "length": 1},
                    {"name": "Alturiak", "type": "month", "length": 30},
                ],
                "leap_days": [
                    {"name": "Shieldmeet", "intercalary": True, "timespan": 1,
                     "interval": "4", "offset": 0, "day": 2},
                ],
            },
            "moons": [
                {"name": "Selune", "cycle": 30.4375, "shift": 5, "granularity": 32,
                 "color": "#ffffff", "hidden": False},
            ],
            "seasons": {"data": [
                {"name": "Winter", "timespan": 2, "day": 1, "color": ["#0000ff", "#0000aa"],
                 "time": {"sunrise": {"hour": 8, "minute": 0}, "sunset": {"hour": 16, "minute": 0}}},
                {"name": "Summer", "timespan": 0, "day": 10, "color": ["#ff0000"],
                 "time": {"sunrise": {"hour": 5, "minute": 0}, "sunset": {"hour": 19, "minute": 0}}},
            ]},
            "eras": [
                {"name": "Dale Reckoning", "abbreviation": "DR", "date": {"year": 1},
                 "formatting": "{{year}} {{abbreviation}} ({{era_name}})"},
            ],
            "cycles": {"format": "Year of the {{1}}", "data": [
                {"name": "Zodiac", "length": 2, "offset": 0, "type": "year", "names": ["Rat", "Ox"]},
            ]},
            "clock": {"hours": 20, "minutes": 50},
        },
        "dynamic_data": {"year": 1492, "timespan": 2, "day": 5},
        "categories": [
            {"id": 7, "name": "Holy days", "event_settings": {"color": "Red", "hide": False}},
            {"id": 8, "name": "Secrets", "event_settings": {"color": "Dark", "hide": True}},
        ],
        "events": [
            {"id": 1, "name": "Feast", "description": "<p>Food</p>", "event_category_id": 7,
             "data": {"conditions": [["Month", "0", ["2"]], ["&&"], ["Day", "0", ["14"]]],
                      "duration": 3, "limited_repeat": True, "limited_repeat_num": 5},
             "settings": {"hide": False}},
            {"id": 2, "name": "Coronation",
             "data": {"date": [1490, 0, 3], "conditions": [["Date", "0", ["1490", "0", "3"]]]},
             "settings": {"color": "Green"}},
            {"id": 3, "name": "Market",
             "data": {"conditions": [["Weekday", "0", ["Firstday"]], ["||"], ["Weekday", "0", ["Thirdday"]]]}},
            {"id": 4, "name": "Broken", "data": "oops"},
            {"id": 5, "name": "Storm", "data": {"conditions": [["Random", "0", ["30"]]]}},
            {"id": 6, "name": "Full Selune", "event_category_id": 8,
             "data": {"conditions": [["Moons", "0", ["0", "16"]]]}},
        ],
    }


@pytest.fixture
def settings():
    return ImportSettings()


@pytest.fixture
def result(export, settings):
    return FantasyCalendarImporter(settings).run(export)


@pytest.fixture
def calendar(result):
    return result.calendar


# ── Helpers ───────────────────────────────────────────────────────────────────

def event(result, name):
    [draft] = [d for d in result.events if d.name == name]
    return draft


# ── Detection ─────────────────────────────────────────────────────────────────

class TestDetection:

    def test_detects_export(self, export):
        assert FantasyCalendarImporter.detect(export)
        assert not CalendariumImporter.detect(export)

    def test_detect_importer(self, export, settings):
        importer = detect_importer(export, settings)
        assert isinstance(importer, FantasyCalendarImporter)
        assert importer.settings is settings

    def test_import_calendar(self, export):
        assert import_calendar(export).importer_id == "fantasy-calendar"

    @pytest.mark.parametrize("raw", [{}, {"static_data": {}}, [], "text", None, {"calendars": []}])
    def test_unrecognized(self, raw):
        with pytest.raises(UnrecognizedFormatError):
            import_calendar(raw)

    def test_run_rejects_other_shapes(self):
        with pytest.raises(UnrecognizedFormatError):
            FantasyCalendarImporter().run({"calendars": [{"static": {"months": [], "weekdays": []}}]})


# ── Calendar structure ────────────────────────────────────────────────────────

class TestCalendar:

    def test_months(self, calendar):
        assert [m.name for m in calendar.months] == ["Hammer", "Midwinter", "Alturiak"]
        assert [m.ordinal for m in calendar.months] == [1, 2, 3]
        assert calendar.months[1].intercalary
        assert calendar.months[1].leap_days == 2
        assert calendar.days_per_year == 61

    def test_weekdays_and_first_day(self, calendar):
        assert [w.name for w in calendar.weekdays] == ["Firstday", "Secondday", "Thirdday"]
        assert calendar.first_weekday == 1

    def test_leap_rule_and_festival(self, calendar):
        assert calendar.leap_rule == SimpleLeapRule(4, 0)
        assert calendar.festivals == (Festival("Shieldmeet", 2, 2, leap_year_only=True, counts_for_weekday=False),)

    def test_seasons_reconstructed(self, calendar):
        seasons = calendar.seasons.seasons
        assert [(s.name, s.day_start, s.day_end) for s in seasons] == [("Summer", 9, 30), ("Winter", 31, 8)]
        assert seasons[1].color == "#0000ff"
        assert season_at(calendar, 0).name == "Winter"
        np.testing.assert_array_equal(resolved_season_coverage(calendar), np.ones(61, dtype=np.int64))

    def test_daylight(self, calendar):
        assert calendar.daylight.enabled
        assert (calendar.daylight.shortest_day, calendar.daylight.longest_day) == (8, 14)

    def test_moons(self, calendar):
        [moon] = calendar.moons
        assert moon.cycle_length == 30.4375
        assert moon.cycle_day_adjust == 5.0
        assert len(moon.phases) == 8
        assert moon.reference_date == CalendarDate(1, 0, 1)

    def test_era_template(self, calendar):
        assert calendar.eras[0].template == "{year} {abbreviation} ({era})"
        assert era_label(calendar, 1492) == "1492 DR (Dale Reckoning)"

    def test_cycles_and_clock(self, calendar):
        assert calendar.cycles[0].entries == ("Rat", "Ox")
        assert calendar.cycle_format == "Year of the {{1}}"
        assert calendar.time_units.hours_per_day == 20
        assert calendar.time_units.minutes_per_hour == 50

    def test_metadata(self, calendar):
        assert calendar.current_date == CalendarDate(1492, 2, 5)
        assert calendar.year_zero == 1
        assert calendar.imported_from == "fantasy-calendar"
        assert calendar.suggested_id == "calendar-of-harptos"

    def test_result_validates(self, calendar):
        assert [v for v in validate(calendar) if v.severity == "error"] == []


# ── Warnings ──────────────────────────────────────────────────────────────────

class TestWarnings:

    def test_moon_warning(self, result):
        assert any("Selune" in w and "reference date" in w for w in result.warnings)

    def test_failed_event_recorded(self, result):
        assert any("'Broken'" in w for w in result.warnings)
        assert not any(d.name == "Broken" for d in result.events)

    def test_leap_rules_collapse(self, export, settings):
        export["static_data"]["year_data"]["leap_days"].append(
            {"name": "Extra", "timespan": 0, "interval": "400,!100,4", "offset": 0}
        )
        model, warnings = FantasyCalendarImporter(settings).transform(export)
        assert model.leap_rule == SimpleLeapRule(4, 0)
        assert any("leap-day rules" in w for w in warnings)

    def test_gregorian_pattern(self, export, settings):
        export["static_data"]["year_data"]["leap_days"][0]["interval"] = "400,!100,4"
        model, _ = FantasyCalendarImporter(settings).transform(export)
        assert model.leap_rule == GregorianLeapRule(0)

    def test_cycle_length_mismatch(self, export, settings):
        export["static_data"]["cycles"]["data"][0]["length"] = 3
        _, warnings = FantasyCalendarImporter(settings).transform(export)
        assert any("declares length 3 but has 2 entries" in w for w in warnings)

    def test_unknown_era_placeholder(self, export, settings):
        export["static_data"]["eras"][0]["formatting"] = "{{year}} {{epoch}}"
        model, warnings = FantasyCalendarImporter(settings).transform(export)
        assert model.eras[0].template == "{year} {{epoch}}"
        assert any("{{epoch}}" in w for w in warnings)

    def test_event_with_classifier_warning_is_kept(self, export, settings):
        export["events"] = [
            {"id": 9, "name": "Lost day", "data": {"conditions": [["Weekday", "0", ["Nope"]]]}},
        ]
        result = FantasyCalendarImporter(settings).run(export)
        [draft] = result.events
        assert draft.recurrence is Recurrence.WEEKLY
        assert draft.weekday == 0
        assert any("'Nope'" in w for w in draft.warnings)

    def test_malformed_events_become_warnings(self, export, settings):
        export["events"] = [{"data": None}, "garbage"]
        result = FantasyCalendarImporter(settings).run(export)
        [draft] = result.events
        assert draft.name == "Untitled"
        assert draft.recurrence is Recurrence.NEVER
        assert any("event '?' could not be imported" in w for w in result.warnings)

    def test_seasons_sharing_a_start_day(self, export, settings):
        export["static_data"]["seasons"]["data"] = [
            {"name": "Thaw", "timespan": 0, "day": 1},
            {"name": "Melt", "timespan": 0, "day": 1},
        ]
        model, warnings = FantasyCalendarImporter(settings).transform(export)
        assert [s.name for s in model.seasons.seasons] == ["Thaw"]
        assert any("'Melt'" in w and "dropped" in w for w in warnings)
        assert [v for v in validate(model) if v.severity == "error"] == []


# ── Events ────────────────────────────────────────────────────────────────────

class TestEvents:

    def test_count(self, result):
        # Broken fails, Market splits in two
        assert len(result.events) == 6

    def test_yearly_with_duration_and_limit(self, result):
        feast = event(result, "Feast")
        assert feast.recurrence is Recurrence.YEARLY
        assert feast.start_date == CalendarDate(1492, 2, 14)
        assert feast.end_date == CalendarDate(1492, 2, 16)
        assert feast.max_occurrences == 5
        assert feast.category == "Holy days"
        assert feast.color == "#f44336"
        assert feast.suggested_type == "festival"
        assert feast.original_id == "1"

    def test_one_time_event(self, result):
        coronation = event(result, "Coronation")
        assert coronation.recurrence is Recurrence.NEVER
        assert coronation.start_date == CalendarDate(1490, 0, 3)
        assert coronation.color == "#4caf50"
        assert coronation.category == "default"
        assert coronation.suggested_type == "note"
        assert coronation.end_date is None

    def test_or_split_event(self, result):
        first, second = event(result, "Market (1/2)"), event(result, "Market (2/2)")
        assert (first.weekday, second.weekday) == (0, 2)
        assert first.recurrence is second.recurrence is Recurrence.WEEKLY

    def test_random_seed_from_event_id(self, result):
        storm = event(result, "Storm")
        assert storm.recurrence is Recurrence.RANDOM
        assert storm.random_config.probability == 30.0
        assert storm.random_config.seed == derive_seed("5")
        assert storm.suggested_type == "note"

    def test_moon_event_and_hidden_category(self, result):
        full = event(result, "Full Selune")
        assert full.recurrence is Recurrence.MOON
        assert full.moon_conditions[0].phase_start == 0.5
        assert full.hidden

    def test_no_undated(self, result):
        assert result.undated == ()


# ── Edge cases ────────────────────────────────────────────────────────────────

class TestEdgeCases:

    def test_missing_timespans(self):
        raw = {"static_data": {"year_data": {}}, "dynamic_data": {}}
        with pytest.raises(MissingFieldError) as info:
            FantasyCalendarImporter().run(raw)
        assert info.value.path == "static_data.year_data.timespans"
        assert info.value.importer_id == "fantasy-calendar"

    def test_empty_months(self):
        raw = {"static_data": {"year_data": {"timespans": []}}, "dynamic_data": {}}
        result = FantasyCalendarImporter().run(raw)
        assert result.calendar.months == ()
        assert result.calendar.suggested_id == "imported-calendar"
        assert "calendar has no months" in result.warnings

    def test_settings_override(self, export):
        settings = ImportSettings(moon_phase_count=4, suggested_id_separator="_", suggested_id_max_length=11)
        model, _ = FantasyCalendarImporter(settings).transform(export)
        assert len(model.moons[0].phases) == 4
        assert model.suggested_id == "calendar_of"

    def test_idempotent(self, export, settings):
        importer = FantasyCalendarImporter(settings)
        assert importer.run(export) == importer.run(copy.deepcopy(export))

    def test_input_untouched(self, export, settings):
        before = copy.deepcopy(export)
        FantasyCalendarImporter(settings).run(export)
        assert export == before
