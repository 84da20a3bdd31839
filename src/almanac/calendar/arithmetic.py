"""
Stateless date arithmetic over a :class:`CalendarModel`.

Every function here is total on a model that passes
:func:`almanac.calendar.validation.validate`: nothing divides by zero and
out-of-range days wrap by floor modulo rather than raising.  Month/day
lookups go through a memoised :class:`YearLayout`.
"""

from __future__ import annotations

import math
import re
from typing import Optional, Union

from ._exceptions import CalendarError
from .layout import layout_for
from .leap import count_leap_years, rule_is_leap
from .model import (
    CalendarDate,
    CalendarModel,
    Cycle,
    Era,
    Festival,
    Moon,
    MoonPhase,
    PeriodicSeason,
    PeriodicSeasons,
    Season,
)

MoonRef = Union[Moon, int, str]

_PLACEHOLDER = re.compile(r"\{(\w+)\}")


# ── year shape ────────────────────────────────────────────────────────────────

def days_per_year(model: CalendarModel, leap: bool = False) -> int:
    return layout_for(model.months, leap).total


def is_leap_year(model: CalendarModel, year: int) -> bool:
    return rule_is_leap(model.leap_rule, year)


def year_length(model: CalendarModel, year: int) -> int:
    return days_per_year(model, is_leap_year(model, year))


def day_of_year_to_month_day(
    model: CalendarModel, day_of_year: int, leap: bool = False
) -> tuple[int, int]:
    """
    Convert a 0-based day-of-year to a 1-based ``(month, day)`` pair.

    Negative or over-range input wraps into ``[0, total)``.  A model without
    any days yields ``(1, 1)``.
    """
    return layout_for(model.months, leap).month_day(day_of_year)


def month_day_to_day_of_year(
    model: CalendarModel, month: int, day: int, leap: bool = False
) -> int:
    """Inverse of :func:`day_of_year_to_month_day`; ``month``/``day`` are 1-based."""
    return layout_for(model.months, leap).day_of_year(month, day)


def date_to_day_of_year(model: CalendarModel, date: CalendarDate) -> int:
    leap = is_leap_year(model, date.year)
    return month_day_to_day_of_year(model, date.month + 1, date.day, leap)


def day_of_year_to_date(model: CalendarModel, year: int, day_of_year: int) -> CalendarDate:
    leap = is_leap_year(model, year)
    month, day = day_of_year_to_month_day(model, day_of_year, leap)
    return CalendarDate(year, month - 1, day)


def is_valid_date(model: CalendarModel, date: CalendarDate) -> bool:
    if not 0 <= date.month < len(model.months):
        return False
    length = model.months[date.month].length(is_leap_year(model, date.year))
    return 1 <= date.day <= length


def compare_dates(a: CalendarDate, b: CalendarDate) -> int:
    """-1, 0 or 1, ordering by year, then month, then day."""
    ka, kb = (a.year, a.month, a.day), (b.year, b.month, b.day)
    return (ka > kb) - (ka < kb)


# ── day counting ──────────────────────────────────────────────────────────────

def _days_before_year(model: CalendarModel, year: int) -> int:
    """Signed day count from the start of year 0 to the start of ``year``."""
    if year == 0:
        return 0
    normal = days_per_year(model, False)
    leap = days_per_year(model, True)
    lo, hi = (0, year) if year > 0 else (year, 0)
    n_leap = count_leap_years(model.leap_rule, lo, hi)
    total = (hi - lo - n_leap) * normal + n_leap * leap
    return total if year > 0 else -total


def absolute_day(model: CalendarModel, date: CalendarDate) -> int:
    """Days elapsed since the first day of year 0 (negative before it)."""
    return _days_before_year(model, date.year) + date_to_day_of_year(model, date)


def days_between(model: CalendarModel, start: CalendarDate, end: CalendarDate) -> int:
    """Signed number of days from ``start`` to ``end``."""
    return absolute_day(model, end) - absolute_day(model, start)


def from_absolute_day(model: CalendarModel, day: int) -> CalendarDate:
    normal = days_per_year(model, False)
    if normal <= 0:
        return CalendarDate(0, 0, 1)
    year = day // normal
    # the estimate drifts by at most the leap days skipped; walk it in
    while _days_before_year(model, year) > day:
        year -= 1
    while _days_before_year(model, year + 1) <= day:
        year += 1
    return day_of_year_to_date(model, year, day - _days_before_year(model, year))


def add_days(model: CalendarModel, date: CalendarDate, days: int) -> CalendarDate:
    if days == 0:
        return date
    return from_absolute_day(model, absolute_day(model, date) + days)


def reconcile_days_per_year(model: CalendarModel, stored: Optional[int]) -> list[str]:
    """Compare a cached year length against the one derived from the months."""
    if stored is None:
        return []
    actual = days_per_year(model)
    if int(stored) != actual:
        return [
            f"stored days-per-year {stored} does not match the {actual} days "
            f"derived from the month list; using {actual}"
        ]
    return []


# ── seasons ───────────────────────────────────────────────────────────────────

def resolve_seasons(model: CalendarModel) -> tuple[Season, ...]:
    """
    Dated view of the model's seasons.

    Periodic seasons are laid end-to-end from ``offset``, wrapping modulo the
    year length; dated seasons are returned as-is.
    """
    seasons = model.seasons
    if not isinstance(seasons, PeriodicSeasons):
        return seasons.seasons
    total = days_per_year(model)
    if total <= 0:
        return ()
    out: list[Season] = []
    cursor = seasons.offset
    for s in seasons.seasons:
        if s.duration <= 0:
            continue
        start = cursor % total
        end = (cursor + min(s.duration, total) - 1) % total
        out.append(Season(s.name, start, end, s.color, s.icon))
        cursor += s.duration
    return tuple(out)


def _in_range(day: int, start: int, end: int) -> bool:
    if end < start:
        return day >= start or day <= end
    return start <= day <= end


def season_at(
    model: CalendarModel, day_of_year: int
) -> Optional[Union[Season, PeriodicSeason]]:
    """Season containing ``day_of_year``, or ``None`` inside a gap."""
    total = days_per_year(model)
    if total <= 0:
        return None
    d = day_of_year % total
    seasons = model.seasons
    if isinstance(seasons, PeriodicSeasons):
        cursor = seasons.offset
        for s in seasons.seasons:
            if s.duration > 0 and (d - cursor) % total < s.duration:
                return s
            cursor += max(s.duration, 0)
        return None
    for s in seasons.seasons:
        if _in_range(d, s.day_start, s.day_end):
            return s
    return None


# ── eras ──────────────────────────────────────────────────────────────────────

def era_for_year(model: CalendarModel, year: int) -> Optional[Era]:
    """Era containing ``year``; on overlap the last listed era wins."""
    found = None
    for era in model.eras:
        if era.contains(year):
            found = era
    return found


def era_label(model: CalendarModel, year: int) -> str:
    era = era_for_year(model, year)
    if era is None:
        return str(year)
    if era.template:
        values = {
            "year": str(year),
            "abbreviation": era.abbreviation,
            "short": era.abbreviation,
            "era": era.name,
            "name": era.name,
            "yearInEra": str(year - era.start_year + 1),
        }
        return _PLACEHOLDER.sub(lambda m: values.get(m.group(1), m.group(0)), era.template)
    if era.format == "prefix":
        return f"{era.abbreviation} {year}"
    return f"{year} {era.abbreviation}"


# ── moons ─────────────────────────────────────────────────────────────────────

def _resolve_moon(model: CalendarModel, moon: MoonRef) -> Moon:
    if isinstance(moon, Moon):
        return moon
    if isinstance(moon, int):
        if 0 <= moon < len(model.moons):
            return model.moons[moon]
        raise CalendarError(f"Moon index {moon} out of range; calendar has {len(model.moons)} moons.")
    for m in model.moons:
        if m.name == moon:
            return m
    raise CalendarError(f"Unknown moon {moon!r}.")


def moon_position(model: CalendarModel, moon: MoonRef, date: CalendarDate) -> float:
    """Fraction ``[0, 1)`` of the cycle elapsed at ``date``."""
    m = _resolve_moon(model, moon)
    if m.cycle_length <= 0:
        return 0.0
    elapsed = days_between(model, m.reference_date, date) + m.cycle_day_adjust
    position = math.fmod(elapsed, m.cycle_length)
    if position < 0:
        position += m.cycle_length
    return position / m.cycle_length


def moon_phase(model: CalendarModel, moon: MoonRef, date: CalendarDate) -> Optional[MoonPhase]:
    m = _resolve_moon(model, moon)
    position = moon_position(model, m, date)
    for phase in m.phases:
        if phase.start <= position < phase.end:
            return phase
    return None


def next_phase_date(
    model: CalendarModel,
    moon: MoonRef,
    phase: Union[MoonPhase, str],
    after: CalendarDate,
) -> Optional[CalendarDate]:
    """First date strictly after ``after`` on which ``moon`` shows ``phase``."""
    m = _resolve_moon(model, moon)
    name = phase if isinstance(phase, str) else phase.name
    if m.cycle_length <= 0 or not any(p.name == name for p in m.phases):
        return None
    origin = absolute_day(model, after)
    for step in range(1, int(math.ceil(m.cycle_length)) + 2):
        candidate = from_absolute_day(model, origin + step)
        found = moon_phase(model, m, candidate)
        if found is not None and found.name == name:
            return candidate
    return None


# ── festivals & cycles ────────────────────────────────────────────────────────

def festival_on(model: CalendarModel, date: CalendarDate) -> Optional[Festival]:
    leap = is_leap_year(model, date.year)
    for f in model.festivals:
        if f.month == date.month + 1 and f.day == date.day:
            if f.leap_year_only and not leap:
                continue
            return f
    return None


def _cycle_value(model: CalendarModel, cycle: Cycle, date: CalendarDate) -> int:
    basis = cycle.based_on
    if basis == "eraYear":
        era = era_for_year(model, date.year)
        return date.year - era.start_year + 1 if era else date.year
    if basis == "month":
        return date.month
    if basis == "monthDay":
        return date.day
    if basis == "day":
        return absolute_day(model, date)
    if basis == "yearDay":
        return date_to_day_of_year(model, date)
    return date.year


def cycle_label(model: CalendarModel, cycle: Union[Cycle, int], date: CalendarDate) -> str:
    """Name of the cycle entry active on ``date`` (empty when there are no entries)."""
    if isinstance(cycle, int):
        if not 0 <= cycle < len(model.cycles):
            raise CalendarError(f"Cycle index {cycle} out of range.")
        cycle = model.cycles[cycle]
    if not cycle.entries:
        return ""
    index = (_cycle_value(model, cycle, date) + cycle.offset) % len(cycle.entries)
    return cycle.entries[index]
