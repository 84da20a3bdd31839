"""
almanac.calendar
~~~~~~~~~~~~~~~~

Canonical fictional-calendar model plus the arithmetic that keeps it
internally consistent: day-of-year <-> month/day conversion, leap-year
classification, season membership, era labels and moon phases.

Basic usage::

    from almanac.calendar import (
        CalendarModel, Month, Weekday, SimpleLeapRule,
        day_of_year_to_month_day, days_per_year, is_leap_year,
    )

    model = CalendarModel(
        name="Twinmonth",
        months=(Month("First", 30, 1, leap_days=31), Month("Second", 31, 2, leap_days=32)),
        weekdays=(Weekday("Oneday"),),
        leap_rule=SimpleLeapRule(interval=4),
    )
    is_leap_year(model, 4)                  # True
    days_per_year(model, leap=True)         # 63
    day_of_year_to_month_day(model, 30)     # (2, 1)

Models are frozen; use :func:`dataclasses.replace` to derive edited copies
and :func:`validate` before trusting arithmetic on hand-built input.

Public API
----------
CalendarModel           Root data structure (plus Month, Weekday, Era, Moon, ...).
validate                Structural checks, returns a list of Violation.
dump_calendar           Model -> plain data.
load_calendar           Plain data -> (model, warnings).
YearLayout              Prefix-sum month table behind the month/day lookups.
CalendarError           Raised for unusable arguments to arithmetic helpers.
AlmanacError            Base exception for the package.
"""

from __future__ import annotations

from almanac.calendar._exceptions import AlmanacError, CalendarError
from almanac.calendar.arithmetic import (
    absolute_day,
    add_days,
    compare_dates,
    cycle_label,
    date_to_day_of_year,
    day_of_year_to_date,
    day_of_year_to_month_day,
    days_between,
    days_per_year,
    era_for_year,
    era_label,
    festival_on,
    from_absolute_day,
    is_leap_year,
    is_valid_date,
    month_day_to_day_of_year,
    moon_phase,
    moon_position,
    next_phase_date,
    reconcile_days_per_year,
    resolve_seasons,
    season_at,
    year_length,
)
from almanac.calendar.layout import YearLayout
from almanac.calendar.leap import LeapTerm, describe_leap_rule, parse_leap_pattern
from almanac.calendar.model import (
    CalendarDate,
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
)
from almanac.calendar.serialization import dump_calendar, load_calendar
from almanac.calendar.validation import Violation, validate

__all__ = [
    "AlmanacError",
    "CalendarDate",
    "CalendarError",
    "CalendarModel",
    "CustomLeapRule",
    "Cycle",
    "DatedSeasons",
    "Daylight",
    "Era",
    "Festival",
    "GregorianLeapRule",
    "LeapTerm",
    "Month",
    "Moon",
    "MoonPhase",
    "NoLeapRule",
    "PeriodicSeason",
    "PeriodicSeasons",
    "Season",
    "SimpleLeapRule",
    "TimeUnits",
    "Violation",
    "Weekday",
    "YearLayout",
    "absolute_day",
    "add_days",
    "compare_dates",
    "cycle_label",
    "date_to_day_of_year",
    "day_of_year_to_date",
    "day_of_year_to_month_day",
    "days_between",
    "days_per_year",
    "describe_leap_rule",
    "dump_calendar",
    "era_for_year",
    "era_label",
    "festival_on",
    "from_absolute_day",
    "is_leap_year",
    "is_valid_date",
    "load_calendar",
    "month_day_to_day_of_year",
    "moon_phase",
    "moon_position",
    "next_phase_date",
    "parse_leap_pattern",
    "reconcile_days_per_year",
    "resolve_seasons",
    "season_at",
    "validate",
    "year_length",
]
