"""
Canonical calendar data structures.

Everything here is plain, frozen data.  Behaviour lives in
:mod:`almanac.calendar.arithmetic` and :mod:`almanac.calendar.validation`.

Conventions
-----------
* ``Month.ordinal`` / ``Weekday.ordinal`` are 1-based.
* ``CalendarDate.month`` is 0-based, ``CalendarDate.day`` is 1-based.
* Season ``day_start`` / ``day_end`` are 0-based, inclusive day-of-year
  offsets; ``day_end < day_start`` means the season wraps across year-end.
* Moon phase ``start`` / ``end`` are fractions of the cycle, half-open.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated, Literal, Optional, Union

from pydantic import Field

from .leap import LeapTerm, parse_leap_pattern

EraFormat = Literal["prefix", "suffix"]
CycleBasis = Literal["year", "eraYear", "month", "monthDay", "day", "yearDay"]


@dataclass(frozen=True, slots=True)
class Month:
    name: str
    days: int
    ordinal: int
    abbreviation: str = ""
    leap_days: Optional[int] = None   # full month length in a leap year
    intercalary: bool = False
    starting_weekday: Optional[int] = None

    def length(self, leap: bool = False) -> int:
        if leap and self.leap_days is not None:
            return self.leap_days
        return self.days


@dataclass(frozen=True, slots=True)
class Weekday:
    name: str
    abbreviation: str = ""
    ordinal: int = 1


@dataclass(frozen=True, slots=True)
class Festival:
    name: str
    month: int   # 1-based
    day: int     # 1-based
    leap_year_only: bool = False
    counts_for_weekday: bool = True


@dataclass(frozen=True, slots=True, order=True)
class CalendarDate:
    year: int
    month: int   # 0-based
    day: int     # 1-based


# ── Leap rules ────────────────────────────────────────────────────────────────

@dataclass(frozen=True, slots=True)
class NoLeapRule:
    kind: Literal["none"] = "none"


@dataclass(frozen=True, slots=True)
class SimpleLeapRule:
    interval: int
    start: int = 0
    kind: Literal["simple"] = "simple"


@dataclass(frozen=True, slots=True)
class GregorianLeapRule:
    start: int = 0
    kind: Literal["gregorian"] = "gregorian"


@dataclass(frozen=True, slots=True)
class CustomLeapRule:
    """
    Arbitrary modulus pattern such as ``"400,!100,4"``.

    The pattern is parsed once (and memoised per distinct string) when the
    rule is built; :attr:`terms` and :attr:`invalid_tokens` expose the result.
    """

    pattern: str
    start: int = 0
    kind: Literal["custom"] = "custom"

    def __post_init__(self) -> None:
        parse_leap_pattern(self.pattern)

    @property
    def terms(self) -> tuple[LeapTerm, ...]:
        return parse_leap_pattern(self.pattern)[0]

    @property
    def invalid_tokens(self) -> tuple[str, ...]:
        return parse_leap_pattern(self.pattern)[1]


LeapRule = Annotated[
    Union[NoLeapRule, SimpleLeapRule, GregorianLeapRule, CustomLeapRule],
    Field(discriminator="kind"),
]


# ── Seasons ───────────────────────────────────────────────────────────────────

@dataclass(frozen=True, slots=True)
class Season:
    name: str
    day_start: int
    day_end: int
    color: Optional[str] = None
    icon: Optional[str] = None

    @property
    def wraps(self) -> bool:
        return self.day_end < self.day_start


@dataclass(frozen=True, slots=True)
class PeriodicSeason:
    name: str
    duration: int
    color: Optional[str] = None
    icon: Optional[str] = None


@dataclass(frozen=True, slots=True)
class DatedSeasons:
    seasons: tuple[Season, ...] = ()
    kind: Literal["dated"] = "dated"


@dataclass(frozen=True, slots=True)
class PeriodicSeasons:
    seasons: tuple[PeriodicSeason, ...] = ()
    offset: int = 0
    kind: Literal["periodic"] = "periodic"


SeasonSet = Annotated[
    Union[DatedSeasons, PeriodicSeasons],
    Field(discriminator="kind"),
]


# ── Eras, moons, cycles ───────────────────────────────────────────────────────

@dataclass(frozen=True, slots=True)
class Era:
    name: str
    abbreviation: str
    start_year: int
    end_year: Optional[int] = None
    format: EraFormat = "suffix"
    template: Optional[str] = None

    def contains(self, year: int) -> bool:
        if year < self.start_year:
            return False
        return self.end_year is None or year <= self.end_year


@dataclass(frozen=True, slots=True)
class MoonPhase:
    name: str
    start: float
    end: float
    icon: str = ""


@dataclass(frozen=True, slots=True)
class Moon:
    name: str
    cycle_length: float
    phases: tuple[MoonPhase, ...]
    reference_date: CalendarDate
    cycle_day_adjust: float = 0.0
    color: str = ""
    hidden: bool = False


@dataclass(frozen=True, slots=True)
class Cycle:
    name: str
    length: int
    entries: tuple[str, ...]
    offset: int = 0
    based_on: CycleBasis = "year"


@dataclass(frozen=True, slots=True)
class TimeUnits:
    hours_per_day: int = 24
    minutes_per_hour: int = 60
    seconds_per_minute: int = 60

    @property
    def seconds_per_day(self) -> int:
        return self.hours_per_day * self.minutes_per_hour * self.seconds_per_minute


@dataclass(frozen=True, slots=True)
class Daylight:
    enabled: bool = False
    shortest_day: Optional[int] = None   # hours
    longest_day: Optional[int] = None


# ── Root ──────────────────────────────────────────────────────────────────────

@dataclass(frozen=True, slots=True)
class CalendarModel:
    name: str
    months: tuple[Month, ...]
    weekdays: tuple[Weekday, ...]
    leap_rule: LeapRule = NoLeapRule()
    seasons: SeasonSet = DatedSeasons()
    eras: tuple[Era, ...] = ()
    moons: tuple[Moon, ...] = ()
    cycles: tuple[Cycle, ...] = ()
    time_units: TimeUnits = TimeUnits()
    festivals: tuple[Festival, ...] = ()
    daylight: Daylight = Daylight()
    first_weekday: int = 0
    year_zero: int = 0
    current_date: Optional[CalendarDate] = None
    cycle_format: str = ""
    description: str = ""
    imported_from: str = ""
    suggested_id: str = ""

    @property
    def days_per_year(self) -> int:
        """Non-leap year length, always recomputed from the months."""
        return sum(m.days for m in self.months)

    @property
    def leap_days_per_year(self) -> int:
        return sum(m.length(leap=True) for m in self.months)

    def __repr__(self) -> str:
        return (
            f"CalendarModel(name={self.name!r}, "
            f"months={len(self.months)}, "
            f"weekdays={len(self.weekdays)}, "
            f"days_per_year={self.days_per_year}, "
            f"leap_rule={self.leap_rule.kind!r}, "
            f"moons={len(self.moons)})"
        )
