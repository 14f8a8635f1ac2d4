"""Settlement rules and the service that applies them."""

from predlink.settlement.rules import (
    MARKET_RULES,
    MarketCode,
    ReasonCode,
    ScoreData,
    SettlementOutcome,
    SettlementResult,
    evaluate,
    market_from_prediction,
    outcome_to_status,
)
from predlink.settlement.service import (
    MatchNotFinishedError,
    MatchNotFoundError,
    SettlementError,
    SettlementService,
    SettlementSummary,
)

__all__ = [
    "MARKET_RULES",
    "MarketCode",
    "MatchNotFinishedError",
    "MatchNotFoundError",
    "ReasonCode",
    "ScoreData",
    "SettlementError",
    "SettlementOutcome",
    "SettlementResult",
    "SettlementService",
    "SettlementSummary",
    "evaluate",
    "market_from_prediction",
    "outcome_to_status",
]
