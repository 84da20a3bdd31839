"""
almanac
~~~~~~~

Fictional calendar arithmetic and import normalization.

    from almanac.importers import import_calendar

    result = import_calendar(json.load(fp))
    result.calendar        # CalendarModel
    result.events          # list[EventDraft]
    result.warnings        # every lossy conversion, human readable

Subpackages
-----------
almanac.calendar      Model, validation, date arithmetic, serialization.
almanac.recurrence    Condition trees and recurrence classification.
almanac.importers     Fantasy-Calendar and Calendarium adapters.
almanac.config        ImportSettings (ALMANAC_* environment variables).
"""

__version__ = "0.1.0"
