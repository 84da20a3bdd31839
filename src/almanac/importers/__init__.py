"""
almanac.importers
~~~~~~~~~~~~~~~~~

Adapters that turn third-party calendar exports into a
:class:`~almanac.calendar.CalendarModel` plus event drafts.

Basic usage::

    import json
    from almanac.importers import import_calendar

    with open("export.json") as f:
        result = import_calendar(json.load(f))

    result.calendar.name          # "Calendar of Harptos"
    result.importer_id            # "fantasy-calendar"
    len(result.events)            # drafts, one per OR branch of each event
    result.warnings               # everything that did not convert losslessly

Formats are recognized by their top-level shape, tried in :data:`IMPORTERS`
order.  A single bad event becomes a warning; only an unrecognized or
structurally broken export raises.

Public API
----------
import_calendar       Detect the format and run the matching importer.
detect_importer       The importer instance for an export, or raise.
IMPORTERS             Registered importer classes.
CalendarImporter      Base class for new formats.
EventDraft            Importer-neutral event.
ImportResult          Calendar, drafts, warnings and undated records.
"""

from __future__ import annotations

from typing import Any, Optional

from almanac._log import get_logger
from almanac.config import ImportSettings
from almanac.importers._exceptions import ImportFormatError, MissingFieldError, UnrecognizedFormatError
from almanac.importers.base import CalendarImporter, EventDraft, ImportResult, UndatedRecord
from almanac.importers.calendarium import CalendariumImporter
from almanac.importers.fantasy_calendar import FantasyCalendarImporter

logger = get_logger(__name__)

IMPORTERS: tuple[type[CalendarImporter], ...] = (FantasyCalendarImporter, CalendariumImporter)


def detect_importer(raw: Any, settings: Optional[ImportSettings] = None) -> CalendarImporter:
    for cls in IMPORTERS:
        if cls.detect(raw):
            logger.debug("Export format detected", importer=cls.id)
            return cls(settings)
    raise UnrecognizedFormatError(
        "unrecognized export; expected one of: " + ", ".join(cls.label for cls in IMPORTERS)
    )


def import_calendar(raw: Any, settings: Optional[ImportSettings] = None) -> ImportResult:
    return detect_importer(raw, settings).run(raw)


__all__ = [
    "CalendarImporter",
    "CalendariumImporter",
    "EventDraft",
    "FantasyCalendarImporter",
    "IMPORTERS",
    "ImportFormatError",
    "ImportResult",
    "MissingFieldError",
    "UndatedRecord",
    "UnrecognizedFormatError",
    "detect_importer",
    "import_calendar",
]
