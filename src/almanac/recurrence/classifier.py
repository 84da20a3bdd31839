"""
Condition tree -> canonical recurrence.

:func:`classify` never raises.  Anything it cannot express faithfully comes
back as a best-effort :class:`Classification` carrying a warning.
"""

from __future__ import annotations

import zlib
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Optional, Sequence

from almanac._log import get_logger
from almanac.calendar.model import CalendarDate

from .conditions import (
    Leaf,
    Predicate,
    UnknownCondition,
    has_or,
    parse_conditions,
    parse_float,
    parse_int,
    split_or_branches,
)

logger = get_logger(__name__)


class Recurrence(str, Enum):
    NEVER = "never"
    YEARLY = "yearly"
    MONTHLY = "monthly"
    WEEKLY = "weekly"
    SEASONAL = "seasonal"
    WEEK_OF_MONTH = "weekOfMonth"
    MOON = "moon"
    RANDOM = "random"
    RANGE = "range"


@dataclass(frozen=True, slots=True)
class MoonCondition:
    moon_index: int
    phase_start: float
    phase_end: float


@dataclass(frozen=True, slots=True)
class RandomConfig:
    probability: float   # percent
    seed: int
    check_interval: str = "daily"


@dataclass(frozen=True, slots=True)
class Classification:
    recurrence: Recurrence
    start_date: CalendarDate
    weekday: Optional[int] = None
    season_index: Optional[int] = None
    week_number: Optional[int] = None
    moon_conditions: tuple[MoonCondition, ...] = ()
    random_config: Optional[RandomConfig] = None
    warnings: tuple[str, ...] = ()


@dataclass(frozen=True)
class ClassifierContext:
    """What the classifier needs to know about the target calendar."""

    weekday_names: tuple[str, ...] = ()
    fallback_date: CalendarDate = CalendarDate(0, 0, 1)
    moon_granularities: tuple[int, ...] = ()
    default_granularity: int = 24
    default_random_probability: float = 10.0
    _weekday_lookup: dict = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        lookup = {}
        for i, name in enumerate(self.weekday_names):
            lookup.setdefault(name.strip().lower(), i)
        object.__setattr__(self, "_weekday_lookup", lookup)

    def weekday_index(self, name: str) -> Optional[int]:
        return self._weekday_lookup.get((name or "").strip().lower())

    def granularity(self, moon_index: int) -> int:
        if 0 <= moon_index < len(self.moon_granularities):
            g = self.moon_granularities[moon_index]
            if g > 0:
                return g
        return max(self.default_granularity, 1)


def branch_label(name: str, index: int, count: int) -> str:
    """``"Name (1/2)"`` for sibling drafts of a split event; ``name`` when alone."""
    if count <= 1:
        return name
    return f"{name} ({index + 1}/{count})"


def derive_seed(key: str) -> int:
    return zlib.crc32(key.encode("utf-8")) & 0x7FFFFFFF


# ── per-branch classification ─────────────────────────────────────────────────

def _branch_date(leaves: Sequence[Leaf], base: CalendarDate) -> CalendarDate:
    """Overlay Date/Year/Month/Day arguments from the branch onto ``base``."""
    year, month, day = base.year, base.month, base.day
    for leaf in leaves:
        if not isinstance(leaf, Predicate) or not leaf.values:
            continue
        v = leaf.values
        if leaf.kind == "Date":
            year = parse_int(v[0], year)
            month = parse_int(v[1], 0) if len(v) > 1 else 0
            day = parse_int(v[2], 1) if len(v) > 2 else 1
        elif leaf.kind == "Year":
            year = parse_int(v[0], year)
        elif leaf.kind == "Month":
            month = parse_int(v[0], 0)
        elif leaf.kind == "Day":
            day = parse_int(v[0], 1)
    return CalendarDate(year, month, day)


def _first(leaves: Sequence[Leaf], kind: str) -> Optional[Predicate]:
    for leaf in leaves:
        if isinstance(leaf, Predicate) and leaf.kind == kind:
            return leaf
    return None


def _arg(pred: Optional[Predicate], i: int) -> Any:
    if pred is None or len(pred.values) <= i:
        return None
    return pred.values[i]


def _weekday(pred: Optional[Predicate], context: ClassifierContext, warnings: list[str]) -> int:
    name = _arg(pred, 0) or ""
    index = context.weekday_index(name)
    if index is None:
        warnings.append(f"weekday {name!r} not found in the calendar; using the first weekday")
        return 0
    return index


def classify_branch(
    leaves: Sequence[Leaf],
    context: ClassifierContext,
    base_date: CalendarDate,
    seed_key: str = "",
) -> Classification:
    warnings: list[str] = []
    for leaf in leaves:
        if isinstance(leaf, UnknownCondition):
            warnings.append(f"unsupported condition type {leaf.tag!r} ignored")

    kinds = {leaf.kind for leaf in leaves if isinstance(leaf, Predicate)}
    date = _branch_date(leaves, base_date)
    no_month_day = "Month" not in kinds and "Day" not in kinds

    def result(recurrence: Recurrence, **extra: Any) -> Classification:
        return Classification(recurrence, date, warnings=tuple(warnings), **extra)

    if "Random" in kinds:
        pred = _first(leaves, "Random")
        probability = parse_float(_arg(pred, 0), context.default_random_probability)
        seed = parse_int(_arg(pred, 1), -1)
        if seed < 0:
            seed = derive_seed(seed_key)
        return result(Recurrence.RANDOM, random_config=RandomConfig(probability, seed))

    if "Date" in kinds and no_month_day:
        return result(Recurrence.NEVER)

    if "Weekday" in kinds and no_month_day:
        weekday = _weekday(_first(leaves, "Weekday"), context, warnings)
        return result(Recurrence.WEEKLY, weekday=weekday)

    if "Season" in kinds and no_month_day:
        return result(Recurrence.SEASONAL, season_index=parse_int(_arg(_first(leaves, "Season"), 0), 0))

    if "Week" in kinds and "Day" not in kinds:
        week = parse_int(_arg(_first(leaves, "Week"), 0), 1)
        weekday = None
        if "Weekday" in kinds:
            weekday = _weekday(_first(leaves, "Weekday"), context, warnings)
        return result(Recurrence.WEEK_OF_MONTH, week_number=week, weekday=weekday)

    if "Year" in kinds and no_month_day:
        years = _first(leaves, "Year").values
        if len(years) > 1:
            warnings.append(
                f"event spans specific years ({', '.join(years)}); importing for the first year only"
            )
        return result(Recurrence.NEVER)

    moons: tuple[MoonCondition, ...] = ()
    if "Moons" in kinds:
        pred = _first(leaves, "Moons")
        moon_index = parse_int(_arg(pred, 0), 0)
        phase_index = parse_int(_arg(pred, 1), 0)
        g = context.granularity(moon_index)
        moons = (MoonCondition(moon_index, phase_index / g, (phase_index + 1) / g),)
        if no_month_day:
            return result(Recurrence.MOON, moon_conditions=moons)

    if "Month" in kinds and "Day" in kinds:
        return result(Recurrence.YEARLY, moon_conditions=moons)
    if "Day" in kinds:
        return result(Recurrence.MONTHLY, moon_conditions=moons)
    if "Month" in kinds:
        warnings.append("month condition without a day; recurring yearly on the month's first day")
        date = replace(date, day=1)
        return result(Recurrence.YEARLY, moon_conditions=moons)

    if leaves:
        warnings.append("no recognized date conditions; imported as a one-time event")
    return result(Recurrence.NEVER)


# ── public entry point ────────────────────────────────────────────────────────

def classify(
    conditions: Any,
    context: ClassifierContext,
    base_date: Optional[CalendarDate] = None,
    seed_key: str = "",
) -> list[Classification]:
    """
    Classify a raw condition list.

    Returns one :class:`Classification` per top-level OR branch.  With a
    single branch, any OR that survived the split is reported as a warning;
    split siblings never carry that warning.
    """
    base = base_date or context.fallback_date
    nodes, parse_warnings = parse_conditions(conditions)

    branches, split_warnings = split_or_branches(nodes)
    shared = parse_warnings + split_warnings
    if len(branches) == 1 and has_or(nodes) and not split_warnings:
        shared.append("event has OR conditions; importing them as one combined rule")

    out = []
    for i, leaves in enumerate(branches):
        key = seed_key if len(branches) == 1 else f"{seed_key}#{i}"
        try:
            c = classify_branch(leaves, context, base, key)
        except (TypeError, ValueError, IndexError) as exc:
            logger.warning("Condition branch could not be classified", seed_key=seed_key, error=str(exc))
            c = Classification(Recurrence.NEVER, base, warnings=(f"conditions could not be classified: {exc}",))
        if shared:
            c = replace(c, warnings=tuple(shared) + c.warnings)
        out.append(c)
    logger.debug("Conditions classified", seed_key=seed_key, branches=len(out),
                 recurrences=[c.recurrence.value for c in out])
    return out
