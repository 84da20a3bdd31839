"""Shared structlog entry point for the package."""

from __future__ import annotations

from typing import Any

import structlog


def get_logger(name: str) -> Any:  # BoundLogger, typed loosely like structlog itself
    """
    Return a structlog logger bound to ``name``.

    All modules obtain loggers through here so that callers configure
    structlog once for the whole package::

        logger = get_logger(__name__)
        logger.info("calendar imported", importer="fantasy-calendar", months=12)
    """
    return structlog.get_logger(name)
