"""
Calendarium (Obsidian plugin) ``data.json`` exports.

Only the first entry of ``calendars`` is imported.  Months and event months
are 0-based, days 1-based.  Events are dated, ranged, recurring (each date
part may be a ``[from, to]`` range bit, ``null`` meaning "any") or undated;
undated events are returned separately by :meth:`extract_undated`.
"""

from __future__ import annotations

import copy
from typing import Any, Iterable, Optional

from almanac._log import get_logger
from almanac.calendar.model import (
    CalendarDate,
    CalendarModel,
    CustomLeapRule,
    Cycle,
    DatedSeasons,
    Era,
    Festival,
    GregorianLeapRule,
    Month,
    NoLeapRule,
    SimpleLeapRule,
    Weekday,
)
from almanac.config import ImportSettings
from almanac.recurrence.classifier import Recurrence

from ._common import (
    as_float,
    as_int,
    default_weekdays,
    month_starts,
    reconstruct_dated_seasons,
    suggested_id,
    synthesized_moon,
    translate_era_template,
)
from ._exceptions import MissingFieldError
from ._shapes import CalendariumCalendar, CalendariumExport, matches
from .base import CalendarImporter, EventDraft, UndatedRecord

logger = get_logger(__name__)

SEASON_ICONS = {
    "Winter": "fas fa-snowflake",
    "Spring": "fas fa-seedling",
    "Summer": "fas fa-sun",
    "Autumn": "fas fa-leaf",
}

CUSTOM_WEEKDAYS_WARNING = "custom per-month weekday overrides detected; feature not supported from this source"


def _is_gregorian(intervals: list[dict]) -> bool:
    if len(intervals) != 3:
        return False
    shape = [(as_int(i.get("interval")), bool(i.get("ignore"))) for i in intervals]
    return shape == [(400, False), (100, True), (4, False)]


def _pattern(intervals: list[dict]) -> str:
    # "ignore" denies the year; "exclusive" counts from year 0 instead of the offset
    return ",".join(
        ("!" if i.get("ignore") else "") + ("+" if i.get("exclusive") else "") + str(as_int(i.get("interval")))
        for i in intervals
    )


def _first_value(bit: Any) -> int:
    if isinstance(bit, list):
        for v in bit:
            if v is not None:
                return as_int(v, 1)
        return 1
    return as_int(bit, 1)


class CalendariumImporter(CalendarImporter):
    id = "calendarium"
    label = "Calendarium"

    def __init__(self, settings: Optional[ImportSettings] = None) -> None:
        super().__init__(settings)
        self._category_map: dict[Any, tuple[str, str]] = {}

    @classmethod
    def detect(cls, raw: Any) -> bool:
        return matches(CalendariumExport, raw) and matches(CalendariumCalendar, raw["calendars"][0])

    @staticmethod
    def _calendar(raw: Any) -> dict:
        calendars = raw.get("calendars") if isinstance(raw, dict) else None
        if not calendars:
            raise MissingFieldError("calendars", CalendariumImporter.id)
        return calendars[0]

    # ── calendar ─────────────────────────────────────────────────────────

    def transform(self, raw: Any) -> tuple[CalendarModel, list[str]]:
        calendar = self._calendar(raw)
        static = calendar.get("static") or {}
        if "months" not in static:
            raise MissingFieldError("calendars[0].static.months", self.id)

        warnings: list[str] = []
        name = calendar.get("name") or "Imported Calendar"
        if len(raw["calendars"]) > 1:
            warnings.append(f"export contains {len(raw['calendars'])} calendars; only {name!r} was imported")

        months_raw = static.get("months") or []
        leap_days = [ld for ld in (static.get("leapDays") or []) if isinstance(ld, dict)]
        months = self._months(months_raw, leap_days)
        if not months:
            warnings.append("calendar has no months")
        if any(isinstance(m.get("week"), list) and m["week"] for m in months_raw):
            details = ", ".join(m.get("name", "?") for m in months_raw if isinstance(m.get("week"), list) and m["week"])
            warnings.append(f"{CUSTOM_WEEKDAYS_WARNING} ({details})")
        weekdays = self._weekdays(static.get("weekdays") or [])

        cycles, cycle_format = self._custom_years(static)
        current = calendar.get("current") or {}
        model = CalendarModel(
            name=name,
            months=months,
            weekdays=weekdays,
            leap_rule=self._leap_rule(leap_days, warnings),
            seasons=DatedSeasons(self._seasons(calendar.get("seasonal") or {}, months, warnings)),
            eras=self._eras(static.get("eras") or [], warnings),
            moons=self._moons(static.get("moons") or [], warnings),
            cycles=cycles,
            festivals=self._leap_festivals(leap_days, months),
            first_weekday=as_int(static.get("firstWeekDay")) % len(weekdays),
            year_zero=0,
            current_date=(
                CalendarDate(as_int(current["year"]), as_int(current.get("month")), as_int(current.get("day"), 1))
                if current.get("year") is not None else None
            ),
            cycle_format=cycle_format,
            description=calendar.get("description") or "Imported from Calendarium",
            imported_from=self.id,
            suggested_id=suggested_id(name, self.settings),
        )
        for w in warnings:
            logger.warning("Lossy conversion", importer=self.id, calendar=name, detail=w)
        return model, warnings

    @staticmethod
    def _months(months: list, leap_days: list[dict]) -> tuple[Month, ...]:
        extra: dict[int, int] = {}
        for ld in leap_days:
            ts = as_int(ld.get("timespan"))
            extra[ts] = extra.get(ts, 0) + 1
        out = []
        for i, m in enumerate(months):
            name = m.get("name") or f"Month {i + 1}"
            length = as_int(m.get("length"))
            out.append(Month(
                name=name,
                days=length,
                ordinal=i + 1,
                abbreviation=m.get("short") or name[:3],
                leap_days=length + extra[i] if extra.get(i) else None,
                intercalary=m.get("type") == "intercalary",
            ))
        return tuple(out)

    @staticmethod
    def _weekdays(weekdays: list) -> tuple[Weekday, ...]:
        if not weekdays:
            return default_weekdays()
        out = []
        for i, wd in enumerate(weekdays):
            value = wd.get("name") if isinstance(wd, dict) else wd
            name = str(value) if value else f"Day {i + 1}"
            out.append(Weekday(name, name[:2], i + 1))
        return tuple(out)

    @staticmethod
    def _rule_from(ld: dict):
        intervals = [i for i in (ld.get("interval") or []) if isinstance(i, dict)]
        if not intervals:
            return None
        start = as_int(ld.get("offset"))
        if _is_gregorian(intervals):
            return GregorianLeapRule(start)
        first = intervals[0]
        if len(intervals) == 1 and not first.get("ignore") and not first.get("exclusive"):
            n = as_int(first.get("interval"))
            return SimpleLeapRule(n, start) if n > 0 else None
        return CustomLeapRule(_pattern(intervals), start)

    def _leap_rule(self, leap_days: list[dict], warnings: list[str]):
        rules = [r for r in (self._rule_from(ld) for ld in leap_days) if r is not None]
        if not rules:
            return NoLeapRule()
        if len(dict.fromkeys(rules)) > 1:
            warnings.append(
                f"{len(leap_days)} leap-day rules found; all leap days now follow the "
                f"first ({rules[0].kind}) rule"
            )
        return rules[0]

    @staticmethod
    def _leap_festivals(leap_days: list[dict], months: tuple[Month, ...]) -> tuple[Festival, ...]:
        out = []
        for ld in leap_days:
            if not (ld.get("intercalary") and ld.get("name")):
                continue
            ts = as_int(ld.get("timespan"))
            if not 0 <= ts < len(months):
                continue
            out.append(Festival(
                name=ld["name"],
                month=ts + 1,
                day=min(as_int(ld.get("after")) + 1, months[ts].length(leap=True)),
                leap_year_only=True,
                counts_for_weekday=not ld.get("numbered", False),
            ))
        return tuple(out)

    def _seasons(self, seasonal: dict, months: tuple[Month, ...], warnings: list[str]):
        seasons = [s for s in (seasonal.get("seasons") or []) if isinstance(s, dict)]
        if not seasons:
            return ()
        weather = seasonal.get("weather") or {}
        if weather.get("enabled"):
            warnings.append("procedural weather is enabled in the source; weather settings were not imported")

        total = sum(m.days for m in months)
        if seasons[0].get("date") is not None:
            starts_by_month = month_starts(months)
            starts = []
            for s in seasons:
                date = s.get("date") or {}
                mi = as_int(date.get("month"))
                base = starts_by_month[mi] if 0 <= mi < len(starts_by_month) else 0
                starts.append((base + as_int(date.get("day"), 1) - 1, s.get("name") or "Season",
                               s.get("color") or None, SEASON_ICONS.get(s.get("kind"))))
        else:
            cursor = as_int(seasonal.get("offset"))
            starts = []
            for s in seasons:
                name = s.get("name") or "Season"
                duration = as_int(s.get("duration"), self.settings.periodic_season_duration)
                if duration <= 0:
                    warnings.append(f"season {name!r} has duration {duration}; dropped")
                    continue
                starts.append((cursor, name, s.get("color") or None, SEASON_ICONS.get(s.get("kind"))))
                cursor += duration
            span = cursor - as_int(seasonal.get("offset"))
            if span != total:
                warnings.append(
                    f"periodic season durations sum to {span} days but the year has {total}; "
                    f"season ends were realigned to the next season's start"
                )
        reconstructed, dropped = reconstruct_dated_seasons(starts, total)
        warnings.extend(dropped)
        return reconstructed

    def _moons(self, moons: list, warnings: list[str]):
        out = []
        for m in moons:
            moon, warning = synthesized_moon(
                m.get("name") or "Moon",
                as_float(m.get("cycle")),
                self.settings,
                cycle_day_adjust=as_float(m.get("offset")),
                color=m.get("faceColor") or "",
            )
            out.append(moon)
            warnings.append(warning)
        return tuple(out)

    @staticmethod
    def _eras(eras: list, warnings: list[str]) -> tuple[Era, ...]:
        out = []
        for e in eras:
            name = e.get("name") or "Era"
            fmt = e.get("format") or ""
            template, template_warnings = translate_era_template(fmt)
            warnings.extend(template_warnings)
            abbrev_at = fmt.find("{{abbreviation}}")
            if abbrev_at == -1:
                abbrev_at = fmt.find("{{era_name}}")
            year_at = fmt.find("{{year}}")
            prefix = abbrev_at != -1 and year_at != -1 and abbrev_at < year_at
            end = (e.get("end") or {}).get("year") if isinstance(e.get("end"), dict) else None
            out.append(Era(
                name=name,
                abbreviation=name[:3] or "E",
                start_year=as_int((e.get("date") or {}).get("year")),
                end_year=as_int(end) if end is not None else None,
                format="prefix" if prefix else "suffix",
                template=template,
            ))
        return tuple(out)

    @staticmethod
    def _custom_years(static: dict) -> tuple[tuple[Cycle, ...], str]:
        years = static.get("years") or []
        if not static.get("useCustomYears") or not years:
            return (), ""
        entries = tuple(
            str(y.get("name") or y.get("id") or "") if isinstance(y, dict) else str(y) for y in years
        )
        return (Cycle("Custom Years", len(entries), entries),), "Year of {1}"

    # ── events ───────────────────────────────────────────────────────────

    def source_events(self, raw: Any) -> Iterable[Any]:
        return [e for e in (self._calendar(raw).get("events") or []) if not self._undated(e)]

    @staticmethod
    def _undated(event: Any) -> bool:
        if not isinstance(event, dict):
            return False
        date = event.get("date")
        if event.get("type") == "Undated" or not isinstance(date, dict):
            return True
        if date.get("year") is not None:
            return False
        start = date.get("start")
        return not (event.get("type") == "Range" and isinstance(start, dict) and start.get("year") is not None)

    def _categories(self, raw: Any) -> dict[Any, tuple[str, str]]:
        return {
            cat.get("id"): (cat.get("name") or "default", cat.get("color") or self.settings.default_event_color)
            for cat in (self._calendar(raw).get("categories") or [])
            if isinstance(cat, dict)
        }

    def collect_events(self, raw: Any, calendar: CalendarModel) -> tuple[list[EventDraft], list[str]]:
        self._category_map = self._categories(raw)
        return super().collect_events(raw, calendar)

    def extract_undated(self, raw: Any) -> list[UndatedRecord]:
        categories = self._categories(raw)
        out = []
        for e in self._calendar(raw).get("events") or []:
            if not self._undated(e):
                continue
            category = categories.get(e.get("category"), ("default", ""))[0]
            out.append(UndatedRecord(e.get("name") or "Untitled", e.get("description") or "", category))
        if out:
            logger.info("Undated events set aside", importer=self.id, count=len(out))
        return out

    def convert_event(self, event: Any, raw: Any, calendar: CalendarModel) -> list[EventDraft]:
        date = event["date"]
        category, color = self._category_map.get(
            event.get("category"), ("default", self.settings.default_event_color)
        )
        common = dict(
            name=event.get("name") or "Untitled",
            content=event.get("description") or "",
            category=category,
            color=color,
            original_id=None if event.get("id") is None else str(event["id"]),
        )
        kind = event.get("type")

        if kind == "Range":
            start = date.get("start") if isinstance(date.get("start"), dict) else date
            end = date.get("end") if isinstance(date.get("end"), dict) else (event.get("end") or date)
            return [EventDraft(
                start_date=self._date(start),
                end_date=self._date(end),
                recurrence=Recurrence.NEVER,
                **common,
            )]

        if kind == "Recurring":
            return [self._recurring(date, common)]

        return [EventDraft(start_date=self._date(date), recurrence=Recurrence.NEVER, **common)]

    @staticmethod
    def _date(d: dict) -> CalendarDate:
        return CalendarDate(as_int(d.get("year")), as_int(d.get("month")), as_int(d.get("day"), 1))

    @staticmethod
    def _recurring(date: dict, common: dict) -> EventDraft:
        year, month, day = date.get("year"), date.get("month"), date.get("day")
        any_year = isinstance(year, list) and year[:1] == [None] and year[1:2] in ([None], [])
        if any_year and not isinstance(month, list) and not isinstance(day, list):
            return EventDraft(
                start_date=CalendarDate(1, as_int(month), as_int(day, 1)),
                recurrence=Recurrence.YEARLY,
                suggested_type="festival",
                **common,
            )
        if (isinstance(year, list) and isinstance(month, list) and not isinstance(day, list)
                and year[:1] == [None] and month[:1] == [None]):
            return EventDraft(
                start_date=CalendarDate(1, 0, as_int(day, 1)),
                recurrence=Recurrence.MONTHLY,
                suggested_type="festival",
                **common,
            )
        pattern = copy.deepcopy({"year": year, "month": month, "day": day})
        return EventDraft(
            start_date=CalendarDate(_first_value(year), _first_value(month) if month is not None else 0,
                                    _first_value(day)),
            recurrence=Recurrence.RANGE,
            range_pattern=pattern,
            warnings=(f"recurring pattern {pattern} has no direct equivalent; kept as a raw range pattern",),
            suggested_type="festival",
            **common,
        )
