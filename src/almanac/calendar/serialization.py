"""
Plain-data (JSON-ready) round trip for :class:`CalendarModel`.

``days_per_year`` is written as a convenience cache only.  On load it is
recomputed from the months and a mismatch becomes a warning; the stored
number is never trusted.
"""

from __future__ import annotations

from typing import Any

from pydantic import TypeAdapter, ValidationError

from almanac._log import get_logger

from ._exceptions import CalendarError
from .arithmetic import days_per_year, reconcile_days_per_year
from .model import CalendarModel

logger = get_logger(__name__)

_ADAPTER: TypeAdapter[CalendarModel] = TypeAdapter(CalendarModel)

_CACHE_KEY = "days_per_year"


def dump_calendar(model: CalendarModel) -> dict[str, Any]:
    data = _ADAPTER.dump_python(model, mode="json")
    data[_CACHE_KEY] = days_per_year(model)
    return data


def load_calendar(data: dict[str, Any]) -> tuple[CalendarModel, list[str]]:
    """
    Rebuild a model from :func:`dump_calendar` output.

    Raises :class:`CalendarError` when the payload does not describe a
    calendar at all.
    """
    payload = dict(data)
    stored = payload.pop(_CACHE_KEY, None)
    try:
        model = _ADAPTER.validate_python(payload)
    except ValidationError as exc:
        logger.error("Calendar payload rejected", errors=exc.error_count())
        raise CalendarError(f"Invalid calendar payload: {exc}") from exc
    warnings = reconcile_days_per_year(model, stored)
    for message in warnings:
        logger.warning("Stale days-per-year cache", calendar=model.name, detail=message)
    return model, warnings
