"""Helpers shared by the importers."""

from __future__ import annotations

import re
from typing import Any, Iterable, Optional, Sequence

from almanac.calendar.layout import YearLayout
from almanac.calendar.model import CalendarDate, Month, Moon, MoonPhase, Season, Weekday
from almanac.config import ImportSettings

FALLBACK_ID = "imported-calendar"

DEFAULT_WEEKDAYS = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")

PHASE_NAMES_8 = (
    "New Moon",
    "Waxing Crescent",
    "First Quarter",
    "Waxing Gibbous",
    "Full Moon",
    "Waning Gibbous",
    "Last Quarter",
    "Waning Crescent",
)

NEUTRAL_REFERENCE = CalendarDate(1, 0, 1)

# Fantasy-Calendar color names
FC_COLORS = {
    "Blue": "#2196f3",
    "Light-Blue": "#03a9f4",
    "Cyan": "#00bcd4",
    "Teal": "#009688",
    "Green": "#4caf50",
    "Light-Green": "#8bc34a",
    "Lime": "#cddc39",
    "Yellow": "#ffeb3b",
    "Amber": "#ffc107",
    "Orange": "#ff9800",
    "Deep-Orange": "#ff5722",
    "Red": "#f44336",
    "Pink": "#e91e63",
    "Purple": "#9c27b0",
    "Deep-Purple": "#673ab7",
    "Indigo": "#3f51b5",
    "Brown": "#795548",
    "Grey": "#9e9e9e",
    "Blue-Grey": "#607d8b",
    "Dark": "#212121",
}

# source placeholder -> canonical placeholder
ERA_PLACEHOLDERS = {
    "year": "year",
    "abbreviation": "abbreviation",
    "short_era": "abbreviation",
    "era_name": "era",
    "era": "era",
    "era_year": "yearInEra",
    "yearInEra": "yearInEra",
}

_SOURCE_PLACEHOLDER = re.compile(r"\{\{\s*(\w+)\s*\}\}")


def suggested_id(name: str, settings: ImportSettings) -> str:
    sep = settings.suggested_id_separator
    slug = re.sub(r"[\W_]+", sep, (name or "").lower()).strip(sep)
    slug = slug[: settings.suggested_id_max_length].rstrip(sep)
    return slug or FALLBACK_ID


def as_int(value: Any, default: int = 0) -> int:
    if value is None or isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        try:
            return int(float(value))
        except (TypeError, ValueError):
            return default


def as_float(value: Any, default: float = 0.0) -> float:
    if value is None or isinstance(value, bool):
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def even_moon_phases(count: int) -> tuple[MoonPhase, ...]:
    """``count`` equal phases tiling ``[0, 1)``; the last one ends exactly at 1."""
    count = max(int(count), 1)
    names = PHASE_NAMES_8 if count == 8 else tuple(f"Phase {i + 1}" for i in range(count))
    return tuple(
        MoonPhase(names[i], i / count, 1.0 if i == count - 1 else (i + 1) / count)
        for i in range(count)
    )


def synthesized_moon(
    name: str,
    cycle_length: float,
    settings: ImportSettings,
    cycle_day_adjust: float = 0.0,
    color: str = "",
    hidden: bool = False,
) -> tuple[Moon, str]:
    """Moon with generated phases and the neutral reference date, plus its warning."""
    moon = Moon(
        name=name,
        cycle_length=cycle_length,
        phases=even_moon_phases(settings.moon_phase_count),
        reference_date=NEUTRAL_REFERENCE,
        cycle_day_adjust=cycle_day_adjust,
        color=color,
        hidden=hidden,
    )
    warning = (
        f"moon {name!r}: no known new-moon date in the source; "
        f"{settings.moon_phase_count} even phases generated and reference date set to "
        f"year {NEUTRAL_REFERENCE.year}, month 1, day 1"
    )
    return moon, warning


def translate_era_template(template: Optional[str]) -> tuple[Optional[str], list[str]]:
    """
    Rewrite ``{{source}}`` placeholders into canonical ``{name}`` ones.

    Unknown placeholders are left exactly as written and reported.
    """
    if not template:
        return None, []
    unknown: list[str] = []

    def swap(match: re.Match) -> str:
        canonical = ERA_PLACEHOLDERS.get(match.group(1))
        if canonical is None:
            unknown.append(match.group(0))
            return match.group(0)
        return "{" + canonical + "}"

    translated = _SOURCE_PLACEHOLDER.sub(swap, template)
    warnings = [
        f"era template {template!r}: unknown placeholder {token} left unchanged"
        for token in dict.fromkeys(unknown)
    ]
    return translated, warnings


def month_starts(months: Sequence[Month]) -> list[int]:
    """0-based day-of-year on which each month begins (non-leap year)."""
    return YearLayout(months).prefix[:-1].tolist()


def reconstruct_dated_seasons(
    starts: Iterable[tuple[int, str, Optional[str], Optional[str]]],
    total_days: int,
) -> tuple[tuple[Season, ...], list[str]]:
    """
    Turn ``(start_day, name, color, icon)`` tuples into contiguous seasons.

    Seasons are sorted by start day; each ends the day before the next one
    starts and the last wraps around to the first.  A season starting on the
    same day as an earlier one is dropped (first wins) and reported.
    """
    if total_days <= 0:
        return (), []
    by_start: dict[int, tuple[int, str, Optional[str], Optional[str]]] = {}
    warnings: list[str] = []
    for start, name, color, icon in starts:
        day = start % total_days
        if day in by_start:
            warnings.append(
                f"season {name!r} starts on day {day} like {by_start[day][1]!r}; dropped"
            )
            continue
        by_start[day] = (day, name, color, icon)
    ordered = sorted(by_start.values(), key=lambda item: item[0])
    out = []
    for i, (start, name, color, icon) in enumerate(ordered):
        nxt = ordered[(i + 1) % len(ordered)][0]
        end = (nxt - 1) % total_days
        out.append(Season(name, start, end, color, icon))
    return tuple(out), warnings


def default_weekdays() -> tuple[Weekday, ...]:
    return tuple(Weekday(name, name[:2], i + 1) for i, name in enumerate(DEFAULT_WEEKDAYS))
