"""Centralized configuration using Pydantic Settings.

This module is the single source of truth for the engine's tunables:
location-matching tolerances, synthesis defaults, codec behaviour and
logging. None of the thresholds is hard-coded in the services.

Configuration can be overridden via environment variables:
- TRIP_MATCH_STRATEGY=exact
- TRIP_MATCH_PROXIMITY_METERS=250
- TRIP_SYNTH_MIN_TRANSFER_MINUTES=15
- TRIP_IO_DEFAULT_TIMEZONE=Europe/Athens
- etc.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from .domain.errors import ConfigurationError


class MatchingConfig(BaseSettings):
    """Location-equivalence configuration.

    Environment variables prefixed with TRIP_MATCH_.
    """

    model_config = SettingsConfigDict(env_prefix="TRIP_MATCH_")

    strategy: Literal["exact", "fuzzy", "proximity"] = "fuzzy"
    proximity_meters: float = Field(default=100.0, gt=0)
    min_containment_length: int = Field(default=5, ge=0)
    word_overlap_threshold: float = Field(default=0.7, ge=0, le=1)
    long_word_length: int = Field(default=5, ge=1)
    long_word_max_edits: int = Field(default=2, ge=0)
    short_word_max_edits: int = Field(default=1, ge=0)


class SynthesisConfig(BaseSettings):
    """Gap-filling configuration.

    Environment variables prefixed with TRIP_SYNTH_.
    """

    model_config = SettingsConfigDict(env_prefix="TRIP_SYNTH_")

    # Used when the previous segment ends exactly when the next one starts
    min_transfer_minutes: int = Field(default=30, gt=0)
    # Synthesized confidence never exceeds this share of the weakest import
    heuristic_weight: float = Field(default=0.5, gt=0, lt=1)


class CodecConfig(BaseSettings):
    """JSON codec configuration.

    Environment variables prefixed with TRIP_IO_.
    """

    model_config = SettingsConfigDict(env_prefix="TRIP_IO_")

    default_timezone: str = "UTC"


class ObservabilityConfig(BaseSettings):
    """Logging configuration.

    Environment variables prefixed with TRIP_LOG_.
    """

    model_config = SettingsConfigDict(env_prefix="TRIP_LOG_")

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class AppConfig(BaseSettings):
    """Main application configuration aggregating all sub-configs.

    Sub-configurations can be accessed via attributes:

        config = get_config()
        print(config.matching.strategy)
        print(config.synthesis.min_transfer_minutes)

    Environment variables prefixed with TRIP_.
    """

    model_config = SettingsConfigDict(env_prefix="TRIP_")

    matching: MatchingConfig = Field(default_factory=MatchingConfig)
    synthesis: SynthesisConfig = Field(default_factory=SynthesisConfig)
    codec: CodecConfig = Field(default_factory=CodecConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)


@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    """Get the singleton application configuration.

    Configuration is loaded once and cached. To reload configuration
    (e.g., in tests), use reset_config() first.

    Returns:
        The application configuration instance.

    Raises:
        ConfigurationError: If an environment variable holds an invalid value.
    """
    try:
        return AppConfig()
    except ValidationError as e:
        error = e.errors()[0]
        setting = ".".join(str(part) for part in error["loc"])
        raise ConfigurationError(
            f"Invalid value for {e.title}.{setting}: {error['msg']}",
            cause=e,
            setting_name=f"{e.title}.{setting}",
        ) from e


def reset_config() -> None:
    """Reset the configuration cache.

    Call this in tests to ensure a fresh configuration is loaded.
    """
    get_config.cache_clear()
