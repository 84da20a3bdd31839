"""Importer interface and the value types every importer produces."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, ClassVar, Iterable, Optional

from almanac._log import get_logger
from almanac.calendar.model import CalendarDate, CalendarModel
from almanac.config import ImportSettings, get_settings
from almanac.recurrence.classifier import MoonCondition, RandomConfig, Recurrence

from ._exceptions import UnrecognizedFormatError

logger = get_logger(__name__)

# per-event failures an importer recovers from instead of aborting
EVENT_ERRORS = (KeyError, TypeError, ValueError, AttributeError, IndexError)


@dataclass(frozen=True, slots=True)
class EventDraft:
    name: str
    content: str
    start_date: CalendarDate
    recurrence: Recurrence
    end_date: Optional[CalendarDate] = None
    category: str = "default"
    color: str = ""
    warnings: tuple[str, ...] = ()
    weekday: Optional[int] = None
    season_index: Optional[int] = None
    week_number: Optional[int] = None
    moon_conditions: tuple[MoonCondition, ...] = ()
    random_config: Optional[RandomConfig] = None
    range_pattern: Optional[dict[str, Any]] = None
    max_occurrences: int = 0
    duration: int = 1
    hidden: bool = False
    original_id: Optional[str] = None
    suggested_type: str = "note"   # "note" or "festival"


@dataclass(frozen=True, slots=True)
class UndatedRecord:
    """Source event without any resolvable date, kept for free-form archival."""

    name: str
    content: str = ""
    category: str = "default"


@dataclass(frozen=True, slots=True)
class ImportResult:
    calendar: CalendarModel
    events: tuple[EventDraft, ...]
    warnings: tuple[str, ...]
    undated: tuple[UndatedRecord, ...]
    importer_id: str


class CalendarImporter(ABC):
    """
    One adapter per external export format.

    Subclasses implement shape detection, calendar transformation and
    per-event conversion; :meth:`run` strings them together.  A failing event
    is logged and reported as a warning, it never aborts the import.
    """

    id: ClassVar[str]
    label: ClassVar[str]

    def __init__(self, settings: Optional[ImportSettings] = None) -> None:
        self.settings = settings or get_settings()

    @classmethod
    @abstractmethod
    def detect(cls, raw: Any) -> bool:
        """Structural sniff of the top-level shape; no semantic validation."""

    @abstractmethod
    def transform(self, raw: Any) -> tuple[CalendarModel, list[str]]:
        """Build a fresh :class:`CalendarModel` plus lossy-conversion warnings."""

    @abstractmethod
    def source_events(self, raw: Any) -> Iterable[Any]:
        pass

    @abstractmethod
    def convert_event(self, event: Any, raw: Any, calendar: CalendarModel) -> list[EventDraft]:
        """Drafts for one source event; an empty list for events handled elsewhere."""

    def extract_undated(self, raw: Any) -> list[UndatedRecord]:
        return []

    # ── event walk ───────────────────────────────────────────────────────

    def collect_events(self, raw: Any, calendar: CalendarModel) -> tuple[list[EventDraft], list[str]]:
        drafts: list[EventDraft] = []
        failures: list[str] = []
        for event in self.source_events(raw):
            name = event.get("name", "?") if isinstance(event, dict) else "?"
            try:
                drafts.extend(self.convert_event(event, raw, calendar))
            except EVENT_ERRORS as exc:
                logger.warning("Event skipped", importer=self.id, event_name=name, error=repr(exc))
                failures.append(f"event {name!r} could not be imported: {exc}")
        return drafts, failures

    def extract_events(self, raw: Any, calendar: CalendarModel) -> list[EventDraft]:
        return self.collect_events(raw, calendar)[0]

    def run(self, raw: Any) -> ImportResult:
        if not self.detect(raw):
            raise UnrecognizedFormatError(f"input is not a {self.label} export")
        calendar, warnings = self.transform(raw)
        drafts, failures = self.collect_events(raw, calendar)
        undated = self.extract_undated(raw)
        warnings = warnings + failures
        logger.info(
            "Calendar imported",
            importer=self.id,
            calendar=calendar.name,
            months=len(calendar.months),
            events=len(drafts),
            undated=len(undated),
            warnings=len(warnings),
        )
        return ImportResult(calendar, tuple(drafts), tuple(warnings), tuple(undated), self.id)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r})"
