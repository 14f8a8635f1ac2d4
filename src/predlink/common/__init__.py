"""Common utilities: config, logging, time."""

from predlink.common.config import (
    AppConfig,
    BatchConfig,
    DatabaseConfig,
    LoggingConfig,
    MatchingConfig,
    QualifierWeights,
    load_config,
)
from predlink.common.logging import get_logger, setup_logging
from predlink.common.time_utils import days_ago, parse_iso, utc_now

__all__ = [
    "AppConfig",
    "BatchConfig",
    "DatabaseConfig",
    "LoggingConfig",
    "MatchingConfig",
    "QualifierWeights",
    "load_config",
    "setup_logging",
    "get_logger",
    "utc_now",
    "days_ago",
    "parse_iso",
]
