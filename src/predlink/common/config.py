"""Application configuration loading and models."""

import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator


class DatabaseConfig(BaseModel):
    """Database configuration."""

    path: str = "data/predlink.db"
    timeout_seconds: float = 10.0  # sqlite busy timeout per call


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    format: str = "json"  # "json" or "console"
    log_file: str | None = None


class QualifierWeights(BaseModel):
    """Multipliers applied to candidate scores by qualifier kind.

    ``main`` is a boost for the senior roster when only a distinguishing
    token differs; the others are penalties for reserve, youth and
    women's variants of a shared base name.
    """

    main: float = 1.05
    main_min_similarity: float = 0.75
    reserve: float = 0.85
    youth: float = 0.85
    women: float = 0.85  # query names a women's team too
    women_unspecified: float = 0.6  # query carries no gender marker
    variant_query_main: float = 0.6  # query names a variant, candidate is the senior roster


class MatchingConfig(BaseModel):
    """Team and fixture resolution settings."""

    confidence_floor: float = Field(default=0.6, ge=0.0, le=1.0)
    token_candidate_limit: int = 20
    prefix_candidate_limit: int = 50
    broad_scan_limit: int = 1000
    live_candidate_limit: int = 5
    degraded_confidence_factor: float = Field(default=0.8, ge=0.0, le=1.0)
    word_match_bonus: float = 0.15
    qualifier_weights: QualifierWeights = Field(default_factory=QualifierWeights)


class BatchConfig(BaseModel):
    """Pending re-resolution batch settings."""

    group_size: int = 5
    pause_seconds: float = 0.1
    pending_limit: int = 50
    lookback_days: int = 7

    @field_validator("group_size")
    @classmethod
    def _positive_group(cls, value: int) -> int:
        if value < 1:
            raise ValueError("group_size must be at least 1")
        return value


class AppConfig(BaseModel):
    """Root application configuration."""

    environment: str = Field(default="dev", description="Environment name (dev/prod)")
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    matching: MatchingConfig = Field(default_factory=MatchingConfig)
    batch: BatchConfig = Field(default_factory=BatchConfig)


def load_config(config_path: str | Path) -> AppConfig:
    """Load configuration from a YAML file with environment variable overrides.

    The following env vars are checked (a ``.env`` file is honoured):
    - PREDLINK_DB_PATH: SQLite database path
    - PREDLINK_LOG_LEVEL: Logging level
    - PREDLINK_CONFIDENCE_FLOOR: Shared resolution/link threshold

    Args:
        config_path: Path to the YAML configuration file.

    Returns:
        Parsed AppConfig instance.

    Raises:
        FileNotFoundError: If the config file doesn't exist.
        pydantic.ValidationError: If the config values are invalid.
    """
    load_dotenv()

    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    with open(path) as f:
        raw_config: dict[str, Any] = yaml.safe_load(f) or {}

    _apply_env_overrides(raw_config)

    return AppConfig(**raw_config)


def _apply_env_overrides(config: dict[str, Any]) -> None:
    """Apply environment variable overrides to config dict in place."""
    for section in ("database", "logging", "matching"):
        if not isinstance(config.get(section), dict):
            config[section] = {}

    if db_path := os.environ.get("PREDLINK_DB_PATH"):
        config["database"]["path"] = db_path

    if log_level := os.environ.get("PREDLINK_LOG_LEVEL"):
        config["logging"]["level"] = log_level

    if floor := os.environ.get("PREDLINK_CONFIDENCE_FLOOR"):
        config["matching"]["confidence_floor"] = float(floor)
