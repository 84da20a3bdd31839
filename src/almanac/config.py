"""
almanac.config
~~~~~~~~~~~~~~

Import tunables, read from ``ALMANAC_*`` environment variables.

    from almanac.config import ImportSettings, get_settings

    settings = get_settings()                              # cached, env-driven
    custom   = ImportSettings(suggested_id_max_length=32)  # explicit override
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from almanac._log import get_logger

logger = get_logger(__name__)


class ImportSettings(BaseSettings):
    """Defaults applied while normalizing third-party calendar exports."""

    suggested_id_max_length: int = Field(default=48, description="Upper bound on the advisory calendar id")
    suggested_id_separator: str = Field(default="-", description="Replacement for non-alphanumeric runs")
    moon_phase_count: int = Field(default=8, description="Phases synthesized for moons without discrete phases")
    default_moon_granularity: int = Field(default=24, description="Phase granularity assumed for moon conditions")
    default_event_color: str = Field(default="#2196f3", description="Color for events without a category color")
    default_random_probability: float = Field(default=10.0, description="Percent chance for random events without one")
    periodic_season_duration: int = Field(default=91, description="Duration for periodic seasons missing one")

    @field_validator("suggested_id_max_length", "moon_phase_count", "default_moon_granularity",
                     "periodic_season_duration")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            logger.error("Invalid import setting", value=v)
            raise ValueError("Value must be at least 1")
        return v

    @field_validator("suggested_id_separator")
    @classmethod
    def validate_separator(cls, v: str) -> str:
        if len(v) != 1 or v.isalnum():
            raise ValueError("Separator must be a single non-alphanumeric character")
        return v

    @field_validator("default_random_probability")
    @classmethod
    def validate_probability(cls, v: float) -> float:
        if not 0.0 <= v <= 100.0:
            raise ValueError("Probability must be a percentage between 0 and 100")
        return v

    model_config = {"env_prefix": "ALMANAC_", "case_sensitive": False, "extra": "ignore"}


@lru_cache(maxsize=1)
def get_settings() -> ImportSettings:
    settings = ImportSettings()
    logger.debug("Import settings loaded", **settings.model_dump())
    return settings
