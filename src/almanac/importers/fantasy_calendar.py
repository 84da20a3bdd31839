"""
Fantasy-Calendar JSON exports.

Shape::

    {
      "name": "...",
      "static_data": {
        "year_data": {"timespans": [...], "leap_days": [...], "global_week": [...], "first_day": 1},
        "moons": [...], "seasons": {"data": [...]}, "eras": [...],
        "cycles": {"format": "...", "data": [...]}, "clock": {"hours": 24, "minutes": 60}
      },
      "dynamic_data": {"year": 1492, "timespan": 0, "day": 1},
      "events": [...],
      "categories": [...]
    }

Months ("timespans") and ``dynamic_data.timespan`` are 0-based, days
1-based.  ``first_day`` is a 1-based weekday.  Event recurrence is a
condition tree handed to :mod:`almanac.recurrence`.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional

from almanac._log import get_logger
from almanac.calendar.arithmetic import add_days
from almanac.calendar.model import (
    CalendarDate,
    CalendarModel,
    CustomLeapRule,
    Cycle,
    Daylight,
    DatedSeasons,
    Era,
    Festival,
    GregorianLeapRule,
    Month,
    NoLeapRule,
    SimpleLeapRule,
    TimeUnits,
    Weekday,
)
from almanac.config import ImportSettings
from almanac.recurrence.classifier import ClassifierContext, Recurrence, branch_label, classify

from ._common import (
    FC_COLORS,
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
from ._shapes import FantasyCalendarExport, matches
from .base import CalendarImporter, EventDraft

logger = get_logger(__name__)

GREGORIAN_PATTERN = "400,!100,4"

CYCLE_BASIS = {
    "year": "year",
    "era_year": "eraYear",
    "month": "month",
    "day": "monthDay",
    "epoch": "day",
    "year_day": "yearDay",
}


class FantasyCalendarImporter(CalendarImporter):
    id = "fantasy-calendar"
    label = "Fantasy-Calendar"

    def __init__(self, settings: Optional[ImportSettings] = None) -> None:
        super().__init__(settings)
        self._category_map: dict[Any, tuple[str, str, bool]] = {}
        self._classifier_context = ClassifierContext()

    @classmethod
    def detect(cls, raw: Any) -> bool:
        return matches(FantasyCalendarExport, raw)

    # ── calendar ─────────────────────────────────────────────────────────

    def transform(self, raw: Any) -> tuple[CalendarModel, list[str]]:
        static = raw.get("static_data") or {}
        year_data = static.get("year_data") or {}
        if "timespans" not in year_data:
            raise MissingFieldError("static_data.year_data.timespans", self.id)

        warnings: list[str] = []
        name = raw.get("name") or "Imported Calendar"
        leap_days = [ld for ld in (year_data.get("leap_days") or []) if isinstance(ld, dict)]

        months = self._months(year_data.get("timespans") or [], leap_days)
        if not months:
            warnings.append("calendar has no months")
        weekdays = self._weekdays(year_data.get("global_week") or [])
        first_day = as_int(year_data.get("first_day"), 1)
        total = sum(m.days for m in months)

        leap_rule = self._leap_rule(leap_days, warnings)
        seasons_raw = (static.get("seasons") or {}).get("data") or []
        clock = static.get("clock") or {}

        model = CalendarModel(
            name=name,
            months=months,
            weekdays=weekdays,
            leap_rule=leap_rule,
            seasons=DatedSeasons(self._seasons(seasons_raw, months, total, warnings)),
            eras=self._eras(static.get("eras") or [], warnings),
            moons=self._moons(static.get("moons") or [], warnings),
            cycles=self._cycles((static.get("cycles") or {}).get("data") or [], warnings),
            time_units=TimeUnits(
                hours_per_day=as_int(clock.get("hours"), 24),
                minutes_per_hour=as_int(clock.get("minutes"), 60),
            ),
            festivals=self._leap_festivals(leap_days, months),
            daylight=self._daylight(seasons_raw),
            first_weekday=(first_day - 1) % len(weekdays),
            year_zero=1,
            current_date=self._current_date(raw.get("dynamic_data") or {}),
            cycle_format=(static.get("cycles") or {}).get("format") or "",
            description="Imported from Fantasy-Calendar",
            imported_from=self.id,
            suggested_id=suggested_id(name, self.settings),
        )
        for w in warnings:
            logger.warning("Lossy conversion", importer=self.id, calendar=name, detail=w)
        return model, warnings

    def _months(self, timespans: list, leap_days: list[dict]) -> tuple[Month, ...]:
        extra: dict[int, int] = {}
        for ld in leap_days:
            if ld.get("timespan") is None:
                continue
            ts = as_int(ld["timespan"])
            extra[ts] = extra.get(ts, 0) + 1
        months = []
        for i, ts in enumerate(timespans):
            length = as_int(ts.get("length"))
            name = ts.get("name") or f"Month {i + 1}"
            months.append(Month(
                name=name,
                days=length,
                ordinal=i + 1,
                abbreviation=name[:3],
                leap_days=length + extra[i] if extra.get(i) else None,
                intercalary=ts.get("type") == "intercalary",
            ))
        return tuple(months)

    @staticmethod
    def _weekdays(names: list) -> tuple[Weekday, ...]:
        if not names:
            return default_weekdays()
        return tuple(Weekday(str(n), str(n)[:2], i + 1) for i, n in enumerate(names))

    @staticmethod
    def _rule_from(ld: dict):
        interval = str(ld.get("interval") or "").replace(" ", "")
        start = as_int(ld.get("offset"))
        if not interval:
            return None
        if interval == GREGORIAN_PATTERN:
            return GregorianLeapRule(start)
        if "," in interval or "!" in interval or "+" in interval:
            return CustomLeapRule(interval, start)
        n = as_int(interval)
        return SimpleLeapRule(n, start) if n > 0 else None

    def _leap_rule(self, leap_days: list[dict], warnings: list[str]):
        rules = [r for r in (self._rule_from(ld) for ld in leap_days) if r is not None]
        if not rules:
            return NoLeapRule()
        distinct = list(dict.fromkeys(rules))
        if len(distinct) > 1:
            warnings.append(
                f"{len(distinct)} different leap-day rules found; only the first "
                f"({distinct[0].kind}) is used for every leap day"
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
            length = months[ts].length(leap=True)
            day = as_int(ld.get("day"), length) or length
            out.append(Festival(
                name=ld["name"],
                month=ts + 1,
                day=min(max(day, 1), max(length, 1)),
                leap_year_only=True,
                counts_for_weekday=bool(ld.get("adds_week_day", False)),
            ))
        return tuple(out)

    @staticmethod
    def _seasons(seasons: list, months: tuple[Month, ...], total: int, warnings: list[str]):
        starts_by_month = month_starts(months)
        starts = []
        for s in seasons:
            ts = as_int(s.get("timespan"))
            base = starts_by_month[ts] if 0 <= ts < len(starts_by_month) else 0
            colors = s.get("color")
            color = colors[0] if isinstance(colors, list) and colors else (colors or None)
            starts.append((base + as_int(s.get("day"), 1) - 1, s.get("name") or "Season", color, None))
        reconstructed, dropped = reconstruct_dated_seasons(starts, total)
        warnings.extend(dropped)
        return reconstructed

    @staticmethod
    def _daylight(seasons: list) -> Daylight:
        spans = []
        for s in seasons:
            t = s.get("time") or {}
            rise, sset = t.get("sunrise"), t.get("sunset")
            if not (isinstance(rise, dict) and isinstance(sset, dict)):
                continue
            start = as_float(rise.get("hour")) + as_float(rise.get("minute")) / 60
            end = as_float(sset.get("hour")) + as_float(sset.get("minute")) / 60
            spans.append(end - start)
        if not spans or max(spans) <= 0:
            return Daylight()
        return Daylight(True, round(min(spans)), round(max(spans)))

    def _moons(self, moons: list, warnings: list[str]):
        out = []
        for m in moons:
            moon, warning = synthesized_moon(
                m.get("name") or "Moon",
                as_float(m.get("cycle")),
                self.settings,
                cycle_day_adjust=as_float(m.get("shift")),
                color=m.get("color") or "",
                hidden=bool(m.get("hidden", False)),
            )
            out.append(moon)
            warnings.append(warning)
        return tuple(out)

    @staticmethod
    def _eras(eras: list, warnings: list[str]) -> tuple[Era, ...]:
        out = []
        for e in eras:
            name = e.get("name") or "Era"
            date = e.get("date") if isinstance(e.get("date"), dict) else {}
            start = date.get("year", e.get("start", 0))
            template, template_warnings = translate_era_template(
                e.get("formatting") or e.get("format") or e.get("date_format")
            )
            warnings.extend(template_warnings)
            end = e.get("end")
            out.append(Era(
                name=name,
                abbreviation=e.get("abbreviation") or name[:2] or "E",
                start_year=as_int(start),
                end_year=as_int(end) if end is not None else None,
                template=template,
            ))
        return tuple(out)

    @staticmethod
    def _cycles(cycles: list, warnings: list[str]) -> tuple[Cycle, ...]:
        out = []
        for c in cycles:
            name = c.get("name") or "Cycle"
            entries = tuple(
                str(e.get("name", "")) if isinstance(e, dict) else str(e)
                for e in (c.get("names") or c.get("data") or [])
            )
            length = as_int(c.get("length"), len(entries) or 12)
            if length != len(entries):
                warnings.append(
                    f"cycle {name!r} declares length {length} but has {len(entries)} entries"
                )
            out.append(Cycle(
                name=name,
                length=length,
                entries=entries,
                offset=as_int(c.get("offset")),
                based_on=CYCLE_BASIS.get(c.get("type"), "year"),
            ))
        return tuple(out)

    @staticmethod
    def _current_date(dynamic: dict) -> Optional[CalendarDate]:
        if dynamic.get("year") is None:
            return None
        return CalendarDate(as_int(dynamic["year"]), as_int(dynamic.get("timespan")), as_int(dynamic.get("day"), 1))

    # ── events ───────────────────────────────────────────────────────────

    def source_events(self, raw: Any) -> Iterable[Any]:
        return raw.get("events") or []

    def _categories(self, raw: Any) -> dict[Any, tuple[str, str, bool]]:
        out = {}
        for cat in raw.get("categories") or []:
            settings = cat.get("event_settings") or {}
            color = FC_COLORS.get(settings.get("color"), self.settings.default_event_color)
            out[cat.get("id")] = (cat.get("name") or "default", color, bool(settings.get("hide", False)))
        return out

    def _context(self, raw: Any, calendar: CalendarModel) -> ClassifierContext:
        moons = (raw.get("static_data") or {}).get("moons") or []
        return ClassifierContext(
            weekday_names=tuple(w.name for w in calendar.weekdays),
            fallback_date=calendar.current_date or CalendarDate(0, 0, 1),
            moon_granularities=tuple(as_int(m.get("granularity"), 0) for m in moons),
            default_granularity=self.settings.default_moon_granularity,
            default_random_probability=self.settings.default_random_probability,
        )

    def collect_events(self, raw: Any, calendar: CalendarModel) -> tuple[list[EventDraft], list[str]]:
        self._category_map = self._categories(raw)
        self._classifier_context = self._context(raw, calendar)
        return super().collect_events(raw, calendar)

    def convert_event(self, event: Any, raw: Any, calendar: CalendarModel) -> list[EventDraft]:
        data = event.get("data") or {}
        settings = event.get("settings") or {}
        name = event.get("name") or "Untitled"

        dated = data.get("date")
        one_time = isinstance(dated, list) and len(dated) >= 3
        if one_time:
            base = CalendarDate(as_int(dated[0]), as_int(dated[1]), as_int(dated[2], 1))
        else:
            dynamic = raw.get("dynamic_data") or {}
            base = CalendarDate(as_int(dynamic.get("year")), 0, 1)

        category, category_color, category_hidden = self._category_map.get(
            event.get("event_category_id"), ("default", None, False)
        )
        color = FC_COLORS.get(settings.get("color")) or category_color or self.settings.default_event_color
        duration = max(as_int(data.get("duration"), 1), 1)
        limited = as_int(data.get("limited_repeat_num")) if data.get("limited_repeat") else 0
        original_id = None if event.get("id") is None else str(event["id"])

        results = classify(
            data.get("conditions") or [],
            self._classifier_context,
            base_date=base,
            seed_key=original_id or name,
        )
        drafts = []
        for i, c in enumerate(results):
            single = one_time and len(results) == 1
            suggested = "note" if single or c.recurrence in (Recurrence.NEVER, Recurrence.RANDOM) else "festival"
            drafts.append(EventDraft(
                name=branch_label(name, i, len(results)),
                content=event.get("description") or "",
                start_date=c.start_date,
                recurrence=c.recurrence,
                end_date=add_days(calendar, c.start_date, duration - 1) if duration > 1 else None,
                category=category,
                color=color,
                warnings=c.warnings,
                weekday=c.weekday,
                season_index=c.season_index,
                week_number=c.week_number,
                moon_conditions=c.moon_conditions,
                random_config=c.random_config,
                max_occurrences=max(limited, 0),
                duration=duration,
                hidden=bool(settings.get("hide", False)) or category_hidden,
                original_id=original_id,
                suggested_type=suggested,
            ))
            for w in c.warnings:
                logger.debug("Event conversion warning", importer=self.id, event_name=name, detail=w)
        return drafts
