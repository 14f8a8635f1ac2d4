"""Ingest bot predictions and link them to live fixtures."""

import uuid
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict

from predlink.common.config import MatchingConfig
from predlink.common.logging import get_logger
from predlink.common.time_utils import utc_now
from predlink.ingestion.parser import ParsedPrediction, decode_payload, parse_content, parse_minute
from predlink.matching.match_resolver import MatchLookupResult, MatchResolver
from predlink.storage.interfaces import IPredictionStore
from predlink.storage.models import MatchLink, PredictionRecord

logger = get_logger(__name__)


class RawPredictionPayload(BaseModel):
    """Payload as posted by a bot.

    Either ``prediction`` carries the encoded text, or the team fields are
    given directly.
    """

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    id: str | None = None
    prediction: str | None = None
    bot_name: str | None = None
    league: str | None = None
    home_team: str | None = None
    away_team: str | None = None
    score: str | None = None
    minute: str | None = None
    prediction_type: str | None = None
    prediction_value: str | None = None


@dataclass
class IngestionResult:
    """Outcome of ingesting or re-resolving one prediction."""

    success: bool
    prediction_id: int | None = None
    external_id: str | None = None
    match_found: bool = False
    match: MatchLookupResult | None = None
    note: str | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "success": self.success,
            "prediction_id": self.prediction_id,
            "external_id": self.external_id,
            "match_found": self.match_found,
            "match": self.match.to_dict() if self.match else None,
            "note": self.note,
            "error": self.error,
        }


def low_confidence_note(confidence: float) -> str:
    return f"low confidence: {confidence:.2f}"


NO_MATCH_NOTE = "no match"


class PredictionIngestor:
    """Persists predictions and links those that resolve confidently."""

    def __init__(
        self,
        store: IPredictionStore,
        match_resolver: MatchResolver,
        config: MatchingConfig | None = None,
    ):
        """Initialize ingestor.

        Args:
            store: Prediction store.
            match_resolver: Fixture resolver.
            config: Matching settings; defaults to the resolver's own.
        """
        self.store = store
        self.match_resolver = match_resolver
        self.config = config or match_resolver.config

    @property
    def confidence_floor(self) -> float:
        return self.config.confidence_floor

    def ingest(self, payload: RawPredictionPayload | dict[str, Any]) -> IngestionResult:
        """Decode, parse, persist and try to link one prediction.

        Args:
            payload: Raw bot payload.

        Returns:
            Result; ``success`` is False only when nothing was persisted.
        """
        if not isinstance(payload, RawPredictionPayload):
            payload = RawPredictionPayload.model_validate(payload)

        parsed = self._parse(payload)
        if parsed is None or not parsed.home_team_name or not parsed.away_team_name:
            logger.warning("prediction_parse_failed", external_id=payload.id)
            return IngestionResult(
                success=False,
                external_id=payload.id,
                error="Could not parse prediction payload",
            )

        external_id = parsed.external_id or f"pred_{uuid.uuid4().hex}"
        if self.store.get_prediction_by_external_id(external_id) is not None:
            logger.warning("duplicate_prediction", external_id=external_id)
            return IngestionResult(
                success=False,
                external_id=external_id,
                error=f"Prediction {external_id} already ingested",
            )

        record = PredictionRecord(
            external_id=external_id,
            bot_name=parsed.bot_name,
            league=parsed.league,
            home_team_name=parsed.home_team_name,
            away_team_name=parsed.away_team_name,
            score_at_prediction=parsed.score_at_prediction,
            minute_at_prediction=parsed.minute_at_prediction,
            prediction_type=parsed.prediction_type,
            prediction_value=parsed.prediction_value,
            raw_content=parsed.raw_content,
            received_at=utc_now(),
        )
        self.store.create_prediction(record)
        logger.info(
            "prediction_ingested",
            prediction_id=record.id,
            external_id=external_id,
            home=record.home_team_name,
            away=record.away_team_name,
        )
        return self.resolve(record)

    def resolve(self, record: PredictionRecord) -> IngestionResult:
        """Run fixture resolution for a stored, unprocessed prediction.

        Links it when the overall confidence clears the floor; otherwise
        leaves it unprocessed with a note for a later retry.
        """
        lookup = self.match_resolver.find_match_by_teams(
            record.home_team_name,
            record.away_team_name,
            minute_hint=record.minute_at_prediction,
            score_hint=record.score_at_prediction,
            league_hint=record.league,
        )

        if lookup is None or lookup.overall_confidence < self.confidence_floor:
            note = NO_MATCH_NOTE if lookup is None else low_confidence_note(lookup.overall_confidence)
            self.store.mark_unresolved(record.id or 0, note)
            logger.info(
                "prediction_unresolved",
                prediction_id=record.id,
                external_id=record.external_id,
                note=note,
            )
            return IngestionResult(
                success=True,
                prediction_id=record.id,
                external_id=record.external_id,
                match_found=False,
                match=lookup,
                note=note,
            )

        self.store.link_prediction(
            MatchLink(
                prediction_id=record.id or 0,
                match_external_id=lookup.match_external_id,
                match_uuid=lookup.match_uuid,
                home_team_id=lookup.home_team.team_id,
                away_team_id=lookup.away_team.team_id,
                home_confidence=lookup.home_team.confidence,
                away_confidence=lookup.away_team.confidence,
                overall_confidence=lookup.overall_confidence,
                strategy=lookup.strategy,
                degraded=lookup.degraded,
            )
        )
        record.processed = True
        return IngestionResult(
            success=True,
            prediction_id=record.id,
            external_id=record.external_id,
            match_found=True,
            match=lookup,
        )

    def _parse(self, payload: RawPredictionPayload) -> ParsedPrediction | None:
        if payload.prediction:
            parsed = parse_content(decode_payload(payload.prediction), payload.id)
            if parsed is not None and payload.bot_name:
                parsed.bot_name = payload.bot_name
            return parsed
        if payload.home_team and payload.away_team:
            return ParsedPrediction(
                external_id=payload.id,
                home_team_name=payload.home_team.strip(),
                away_team_name=payload.away_team.strip(),
                bot_name=payload.bot_name or "external",
                league=payload.league,
                score_at_prediction=payload.score,
                minute_at_prediction=parse_minute(payload.minute),
                prediction_type=payload.prediction_type,
                prediction_value=payload.prediction_value,
                raw_content=payload.model_dump_json(exclude_none=True),
            )
        return None
