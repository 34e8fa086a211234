"""
Settings for the dosage engine and its command line.

The safety thresholds are policy, not physiology: they default to the values
the calculator has always used and can be tightened per deployment.
"""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Literal, cast

from dotenv import load_dotenv
from pydantic import BaseModel, Field, model_validator

load_dotenv()

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class SafetyPolicy(BaseModel):
    """Thresholds used when classifying a computed dose."""

    caution_multiplier_low: float = Field(
        default=0.5, gt=0.0, description="Total multiplier at or below this is 'caution'"
    )
    caution_multiplier_high: float = Field(
        default=2.0, gt=0.0, description="Total multiplier at or above this is 'caution'"
    )
    overdose_danger_ratio: float = Field(
        default=1.5, gt=1.0, description="Proposed dose above max * ratio is 'danger'"
    )

    @model_validator(mode="after")
    def low_below_high(self) -> "SafetyPolicy":
        if self.caution_multiplier_low >= self.caution_multiplier_high:
            raise ValueError("caution_multiplier_low must be below caution_multiplier_high")
        return self


class LoggingConfig(BaseModel):
    level: LogLevel = Field(default="INFO", description="Logging level")
    format: Literal["json", "console"] = Field(default="json", description="Logging format")


class AppConfig(BaseModel):
    safety: SafetyPolicy = Field(default_factory=SafetyPolicy)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


DEFAULT_POLICY = SafetyPolicy()


def _level_to_literal(val: str) -> LogLevel:
    v = val.strip().upper()
    return cast(LogLevel, v if v in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"} else "INFO")


def load_config_from_env() -> AppConfig:
    """Build the configuration from environment variables (and a .env file)."""
    safety = SafetyPolicy(
        caution_multiplier_low=float(os.getenv("VET_DOSAGE_CAUTION_LOW", "0.5")),
        caution_multiplier_high=float(os.getenv("VET_DOSAGE_CAUTION_HIGH", "2.0")),
        overdose_danger_ratio=float(os.getenv("VET_DOSAGE_OVERDOSE_RATIO", "1.5")),
    )
    log_format = os.getenv("LOG_FORMAT", "json").strip().lower()
    logging_config = LoggingConfig(
        level=_level_to_literal(os.getenv("LOG_LEVEL", "INFO")),
        format="console" if log_format == "console" else "json",
    )
    return AppConfig(safety=safety, logging=logging_config)


@lru_cache
def get_config() -> AppConfig:
    return load_config_from_env()
