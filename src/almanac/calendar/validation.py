"""
Structural checks over a :class:`CalendarModel`.

:func:`validate` never raises; it returns every :class:`Violation` it finds
so a caller can decide whether to block or proceed.  Arithmetic helpers are
only guaranteed total on models without ``error`` violations.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

import numpy as np

from .arithmetic import days_per_year, resolve_seasons
from .model import CalendarModel, PeriodicSeasons

Severity = Literal["error", "warning"]


@dataclass(frozen=True, slots=True)
class Violation:
    entity: str        # e.g. "months[2]", "moons[0].phases"
    constraint: str    # short machine-friendly name
    message: str
    severity: Severity = "error"

    def __str__(self) -> str:
        return f"[{self.severity}] {self.entity}: {self.message}"


def _check_ordinals(items, label: str) -> list[Violation]:
    out = []
    for i, item in enumerate(items):
        if item.ordinal != i + 1:
            out.append(Violation(
                f"{label}[{i}]", "ordinal_contiguous",
                f"ordinal {item.ordinal} should be {i + 1}",
            ))
    return out


def _check_months(model: CalendarModel) -> list[Violation]:
    out: list[Violation] = []
    if not model.months:
        return [Violation("months", "non_empty", "calendar has no months")]
    out += _check_ordinals(model.months, "months")
    for i, m in enumerate(model.months):
        if m.days < 0:
            out.append(Violation(f"months[{i}]", "days_non_negative", f"{m.name!r} has {m.days} days"))
        if m.leap_days is not None and m.leap_days < m.days:
            out.append(Violation(
                f"months[{i}]", "leap_days_ge_days",
                f"{m.name!r} has {m.leap_days} leap-year days but {m.days} normal days",
            ))
    if days_per_year(model) <= 0:
        out.append(Violation("months", "year_length_positive", "year has no days"))
    return out


def _check_weekdays(model: CalendarModel) -> list[Violation]:
    if not model.weekdays:
        return [Violation("weekdays", "non_empty", "calendar has no weekdays")]
    out = _check_ordinals(model.weekdays, "weekdays")
    if not 0 <= model.first_weekday < len(model.weekdays):
        out.append(Violation(
            "first_weekday", "in_range",
            f"first weekday {model.first_weekday} outside 0..{len(model.weekdays) - 1}",
        ))
    return out


def _check_leap_rule(model: CalendarModel) -> list[Violation]:
    rule = model.leap_rule
    if rule.kind == "simple" and rule.interval <= 0:
        return [Violation("leap_rule", "interval_positive", f"interval must be > 0, got {rule.interval}")]
    if rule.kind == "gregorian" and not isinstance(rule.start, int):
        return [Violation("leap_rule", "start_integer", f"start must be an integer, got {rule.start!r}")]
    if rule.kind == "custom":
        out = []
        if not rule.terms:
            out.append(Violation("leap_rule", "pattern_terms", f"pattern {rule.pattern!r} has no terms"))
        for token in rule.invalid_tokens:
            out.append(Violation("leap_rule", "pattern_parse", f"cannot parse term {token!r}"))
        for term in rule.terms:
            if term.modulus <= 0:
                out.append(Violation("leap_rule", "modulus_positive", f"term {term} must have a modulus > 0"))
        return out
    return []


def _paint(coverage: np.ndarray, season) -> None:
    if season.wraps:
        coverage[season.day_start:] += 1
        coverage[: season.day_end + 1] += 1
    else:
        coverage[season.day_start: season.day_end + 1] += 1


def _check_seasons(model: CalendarModel) -> list[Violation]:
    total = days_per_year(model)
    seasons = model.seasons
    out: list[Violation] = []
    if isinstance(seasons, PeriodicSeasons):
        for i, s in enumerate(seasons.seasons):
            if s.duration <= 0:
                out.append(Violation(f"seasons[{i}]", "duration_positive", f"{s.name!r} has duration {s.duration}"))
        span = sum(max(s.duration, 0) for s in seasons.seasons)
        if span > total:
            out.append(Violation(
                "seasons", "durations_fit_year",
                f"season durations sum to {span} but the year has {total} days",
            ))
        return out
    if total <= 0:
        return out
    coverage = np.zeros(total, dtype=np.int64)
    for i, s in enumerate(seasons.seasons):
        if not (0 <= s.day_start < total and 0 <= s.day_end < total):
            out.append(Violation(
                f"seasons[{i}]", "bounds",
                f"{s.name!r} spans {s.day_start}..{s.day_end}, outside 0..{total - 1}",
            ))
            continue
        _paint(coverage, s)
    overlap = np.flatnonzero(coverage > 1)
    if overlap.size:
        out.append(Violation(
            "seasons", "no_overlap",
            f"{overlap.size} day(s) belong to more than one season, first at day {int(overlap[0])}",
        ))
    return out


def _check_eras(model: CalendarModel) -> list[Violation]:
    out: list[Violation] = []
    for i, era in enumerate(model.eras):
        if era.end_year is not None and era.start_year > era.end_year:
            out.append(Violation(
                f"eras[{i}]", "start_le_end",
                f"{era.name!r} starts in {era.start_year} after it ends in {era.end_year}",
            ))
    for i, a in enumerate(model.eras):
        for j in range(i + 1, len(model.eras)):
            b = model.eras[j]
            a_end = a.end_year if a.end_year is not None else float("inf")
            b_end = b.end_year if b.end_year is not None else float("inf")
            if a.start_year <= b_end and b.start_year <= a_end:
                out.append(Violation(
                    f"eras[{i}]", "no_overlap",
                    f"{a.name!r} overlaps {b.name!r}; the later era wins",
                    severity="warning",
                ))
    return out


def _check_moons(model: CalendarModel) -> list[Violation]:
    out: list[Violation] = []
    for i, moon in enumerate(model.moons):
        entity = f"moons[{i}]"
        if moon.cycle_length <= 0:
            out.append(Violation(entity, "cycle_positive", f"{moon.name!r} has cycle length {moon.cycle_length}"))
        if not moon.phases:
            out.append(Violation(f"{entity}.phases", "non_empty", f"{moon.name!r} has no phases"))
            continue
        bounds = np.array(sorted((p.start, p.end) for p in moon.phases), dtype=float)
        starts, ends = bounds[:, 0], bounds[:, 1]
        tiled = (
            np.isclose(starts[0], 0.0)
            and np.isclose(ends[-1], 1.0)
            and np.allclose(starts[1:], ends[:-1])
            and bool(np.all(ends > starts))
        )
        if not tiled:
            out.append(Violation(
                f"{entity}.phases", "tile_unit_interval",
                f"phases of {moon.name!r} do not exactly cover [0, 1)",
            ))
    return out


def _check_cycles(model: CalendarModel) -> list[Violation]:
    out: list[Violation] = []
    for i, c in enumerate(model.cycles):
        if c.length <= 0:
            out.append(Violation(f"cycles[{i}]", "length_positive", f"{c.name!r} has length {c.length}"))
        elif c.length != len(c.entries):
            out.append(Violation(
                f"cycles[{i}]", "length_matches_entries",
                f"{c.name!r} has length {c.length} but {len(c.entries)} entries",
            ))
    return out


def _check_time_units(model: CalendarModel) -> list[Violation]:
    t = model.time_units
    out = []
    for name in ("hours_per_day", "minutes_per_hour", "seconds_per_minute"):
        if getattr(t, name) <= 0:
            out.append(Violation(f"time_units.{name}", "positive", f"{name} must be > 0"))
    return out


def _check_festivals(model: CalendarModel) -> list[Violation]:
    out = []
    for i, f in enumerate(model.festivals):
        if not 1 <= f.month <= len(model.months):
            out.append(Violation(f"festivals[{i}]", "month_exists", f"{f.name!r} points at month {f.month}"))
            continue
        month = model.months[f.month - 1]
        if not 1 <= f.day <= month.length(leap=True):
            out.append(Violation(
                f"festivals[{i}]", "day_exists",
                f"{f.name!r} points at day {f.day} of {month.name!r}",
            ))
    return out


_CHECKS = (
    _check_months,
    _check_weekdays,
    _check_leap_rule,
    _check_seasons,
    _check_eras,
    _check_moons,
    _check_cycles,
    _check_time_units,
    _check_festivals,
)


def validate(model: CalendarModel) -> list[Violation]:
    violations: list[Violation] = []
    for check in _CHECKS:
        violations.extend(check(model))
    return violations


def resolved_season_coverage(model: CalendarModel) -> np.ndarray:
    """Per-day count of seasons covering each day-of-year (periodic seasons laid out)."""
    total = days_per_year(model)
    coverage = np.zeros(max(total, 0), dtype=np.int64)
    for s in resolve_seasons(model):
        _paint(coverage, s)
    return coverage
