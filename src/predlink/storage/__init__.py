"""Storage module: database schema and access layer."""

from predlink.storage.database import Database, StorageError
from predlink.storage.interfaces import IPredictionStore
from predlink.storage.models import MatchLink, PredictionRecord, TeamAlias

__all__ = [
    "Database",
    "IPredictionStore",
    "MatchLink",
    "PredictionRecord",
    "StorageError",
    "TeamAlias",
]
