"""
Minimal pydantic shapes used to sniff export formats.

Only the keys an importer cannot live without are declared; everything else
is allowed through untouched.  Validation here is structural, never semantic.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError


class _Loose(BaseModel):
    model_config = ConfigDict(extra="allow")


class FantasyCalendarStatic(_Loose):
    year_data: dict[str, Any]


class FantasyCalendarExport(_Loose):
    static_data: FantasyCalendarStatic
    dynamic_data: dict[str, Any]


class CalendariumStatic(_Loose):
    months: list[Any]
    weekdays: list[Any]


class CalendariumCalendar(_Loose):
    static: CalendariumStatic


class CalendariumExport(_Loose):
    calendars: list[Any] = Field(min_length=1)


def matches(shape: type[BaseModel], raw: Any) -> bool:
    if not isinstance(raw, dict):
        return False
    try:
        shape.model_validate(raw)
    except ValidationError:
        return False
    return True
