"""
Configuration management.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Optional

from core.comp_engine.models import ModelType, RegressionConfig


LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


@dataclass
class Config:
    """
    Application configuration.

    Loads from environment variables with sensible defaults.
    """

    # Server
    host: str = field(default_factory=lambda: os.getenv("HOST", "127.0.0.1"))
    port: int = field(default_factory=lambda: int(os.getenv("PORT", "8000")))
    debug: bool = field(default_factory=lambda: _env_bool("DEBUG", "false"))
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())

    # Geocoding
    google_maps_api_key: Optional[str] = field(
        default_factory=lambda: os.getenv("GOOGLE_MAPS_API_KEY") or None
    )
    geocode_timeout: float = field(
        default_factory=lambda: float(os.getenv("GEOCODE_TIMEOUT", "5"))
    )

    # Regression defaults
    default_model_type: str = field(
        default_factory=lambda: os.getenv("DEFAULT_MODEL_TYPE", "linear")
    )
    default_min_comps: int = field(
        default_factory=lambda: int(os.getenv("DEFAULT_MIN_COMPS", "3"))
    )
    default_max_comps: int = field(
        default_factory=lambda: int(os.getenv("DEFAULT_MAX_COMPS", "15"))
    )
    default_include_time_adjustment: bool = field(
        default_factory=lambda: _env_bool("DEFAULT_INCLUDE_TIME_ADJUSTMENT", "true")
    )
    default_include_distance_adjustment: bool = field(
        default_factory=lambda: _env_bool("DEFAULT_INCLUDE_DISTANCE_ADJUSTMENT", "true")
    )

    @classmethod
    def load(cls) -> "Config":
        """Load configuration from environment."""
        return cls()

    def default_regression_config(self) -> RegressionConfig:
        """
        RegressionConfig built from the configured defaults.

        Raises:
            ValueError: If DEFAULT_MODEL_TYPE or the comp bounds are invalid
        """
        model_type = ModelType.from_string(self.default_model_type)
        if model_type is None:
            raise ValueError(f"Invalid DEFAULT_MODEL_TYPE: {self.default_model_type}")
        return RegressionConfig(
            model_type=model_type,
            include_time_adjustment=self.default_include_time_adjustment,
            include_distance_adjustment=self.default_include_distance_adjustment,
            min_comps=self.default_min_comps,
            max_comps=self.default_max_comps,
        )

    def to_dict(self) -> dict:
        """Convert config to dictionary. The API key is never echoed."""
        return {
            "host": self.host,
            "port": self.port,
            "debug": self.debug,
            "log_level": self.log_level,
            "geocoding_enabled": self.google_maps_api_key is not None,
            "geocode_timeout": self.geocode_timeout,
            "default_model_type": self.default_model_type,
            "default_min_comps": self.default_min_comps,
            "default_max_comps": self.default_max_comps,
            "default_include_time_adjustment": self.default_include_time_adjustment,
            "default_include_distance_adjustment": self.default_include_distance_adjustment,
        }


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging for the CLI and web entry points."""
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
