"""Prediction payload parsing, ingestion and pending re-resolution."""

from predlink.ingestion.batch import PendingMatcher
from predlink.ingestion.ingestor import (
    IngestionResult,
    PredictionIngestor,
    RawPredictionPayload,
)
from predlink.ingestion.parser import (
    ParsedPrediction,
    decode_payload,
    parse_content,
    split_teams,
)

__all__ = [
    "IngestionResult",
    "ParsedPrediction",
    "PendingMatcher",
    "PredictionIngestor",
    "RawPredictionPayload",
    "decode_payload",
    "parse_content",
    "split_teams",
]
