"""Data models for storage layer."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from predlink.common.time_utils import utc_now


@dataclass
class TeamAlias:
    """Raw team-name variant pointing at a canonical team."""

    id: int | None = None
    alias: str = ""
    team_id: str = ""  # registry external id
    source: str = "manual"
    created_at: datetime = field(default_factory=utc_now)


@dataclass
class PredictionRecord:
    """Bot prediction as received, plus its resolution state."""

    id: int | None = None
    external_id: str = ""
    bot_name: str | None = None
    league: str | None = None
    home_team_name: str = ""
    away_team_name: str = ""
    score_at_prediction: str | None = None  # e.g. "1-0"
    minute_at_prediction: int | None = None
    prediction_type: str | None = None  # e.g. "MS", "KG", "O2.5"
    prediction_value: str | None = None  # e.g. "1", "VAR", "2.5 ÜST"
    raw_content: str | None = None
    processed: bool = False
    note: str | None = None  # last resolution note, e.g. "no match"
    received_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "external_id": self.external_id,
            "bot_name": self.bot_name,
            "league": self.league,
            "home_team_name": self.home_team_name,
            "away_team_name": self.away_team_name,
            "score_at_prediction": self.score_at_prediction,
            "minute_at_prediction": self.minute_at_prediction,
            "prediction_type": self.prediction_type,
            "prediction_value": self.prediction_value,
            "processed": self.processed,
            "note": self.note,
            "received_at": self.received_at.isoformat(),
        }


@dataclass
class MatchLink:
    """Link from a prediction to the fixture it was resolved to.

    Created once; only the settlement fields change afterwards.
    """

    id: int | None = None
    prediction_id: int = 0
    match_external_id: str = ""
    match_uuid: str = ""
    home_team_id: str = ""
    away_team_id: str = ""
    home_confidence: float = 0.0
    away_confidence: float = 0.0
    overall_confidence: float = 0.0
    strategy: str | None = None
    degraded: bool = False
    status: str = "matched"  # matched, settled
    matched_at: datetime = field(default_factory=utc_now)
    # Settlement
    outcome: str | None = None  # won, lost, void
    final_home_score: int | None = None
    final_away_score: int | None = None
    settlement_reason: str | None = None
    settlement_rule: str | None = None
    resolved_at: datetime | None = None

    @property
    def is_settled(self) -> bool:
        return self.outcome is not None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "prediction_id": self.prediction_id,
            "match_external_id": self.match_external_id,
            "home_confidence": self.home_confidence,
            "away_confidence": self.away_confidence,
            "overall_confidence": self.overall_confidence,
            "strategy": self.strategy,
            "degraded": self.degraded,
            "status": self.status,
            "outcome": self.outcome,
            "final_home_score": self.final_home_score,
            "final_away_score": self.final_away_score,
            "settlement_reason": self.settlement_reason,
            "resolved_at": self.resolved_at.isoformat() if self.resolved_at else None,
        }
