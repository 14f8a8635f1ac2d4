"""Settle linked predictions once their fixture has finished."""

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from predlink.common.logging import get_logger
from predlink.common.time_utils import utc_now
from predlink.registry.interfaces import IMatchRegistry
from predlink.settlement.rules import (
    ScoreData,
    as_goals,
    evaluate,
    market_from_prediction,
)
from predlink.storage.interfaces import IPredictionStore
from predlink.storage.models import MatchLink

logger = get_logger(__name__)


class SettlementError(Exception):
    """Base class for settlement errors."""


class MatchNotFoundError(SettlementError):
    """Settlement requested for a fixture the registry does not know."""


class MatchNotFinishedError(SettlementError):
    """Settlement requested for a fixture that has not finished."""


@dataclass
class SettlementSummary:
    """What settling one fixture did."""

    match_external_id: str
    settled: int = 0
    outcomes: dict[str, int] = field(default_factory=dict)
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "match_external_id": self.match_external_id,
            "settled": self.settled,
            "outcomes": dict(self.outcomes),
            "error": self.error,
        }


class SettlementService:
    """Applies the settlement rules to every unsettled link of a fixture.

    Deciding when a fixture is finished belongs to the registry sync;
    this service only refuses to settle fixtures that are not.
    """

    def __init__(self, match_registry: IMatchRegistry, store: IPredictionStore):
        self.match_registry = match_registry
        self.store = store

    def settle_match(self, match_external_id: str) -> SettlementSummary:
        """Settle all unsettled links of one finished fixture atomically.

        Args:
            match_external_id: Registry id of the fixture.

        Returns:
            Count of settled links by outcome.

        Raises:
            MatchNotFoundError: If the fixture is unknown.
            MatchNotFinishedError: If the fixture is not in the finished state.
        """
        match = self.match_registry.get_match(match_external_id)
        if match is None:
            raise MatchNotFoundError(f"Unknown match: {match_external_id}")
        if not match.state.is_finished:
            raise MatchNotFinishedError(
                f"Match {match_external_id} is {match.state.name}, not FINISHED"
            )

        links = self.store.get_unsettled_links(match_external_id)
        if not links:
            logger.debug("no_unsettled_links", match_external_id=match_external_id)
            return SettlementSummary(match_external_id=match_external_id)

        scores = ScoreData.from_match(match)
        resolved_at = utc_now()
        outcomes: Counter[str] = Counter()
        for link in links:
            self._apply(link, scores, resolved_at)
            outcomes[link.outcome or ""] += 1

        self.store.record_settlement(links)
        logger.info(
            "match_settled",
            match_external_id=match_external_id,
            settled=len(links),
            outcomes=dict(outcomes),
        )
        return SettlementSummary(
            match_external_id=match_external_id,
            settled=len(links),
            outcomes=dict(outcomes),
        )

    def _apply(self, link: MatchLink, scores: ScoreData, resolved_at: datetime) -> None:
        prediction = self.store.get_prediction(link.prediction_id)
        prediction_type = prediction.prediction_type if prediction else None
        prediction_value = prediction.prediction_value if prediction else None

        market = market_from_prediction(prediction_type, prediction_value)
        result = evaluate(market or prediction_type or "", scores)

        link.outcome = result.status
        link.settlement_rule = result.rule
        link.settlement_reason = result.reason.value if result.reason else None
        link.final_home_score = as_goals(scores.home_score)
        link.final_away_score = as_goals(scores.away_score)
        link.resolved_at = resolved_at

        if result.reason is not None:
            logger.warning(
                "prediction_voided",
                prediction_id=link.prediction_id,
                match_external_id=link.match_external_id,
                market=prediction_type,
                reason=result.reason.value,
            )

    def settle_finished(self) -> list[SettlementSummary]:
        """Settle every finished fixture that still has unsettled links.

        A failure on one fixture is logged and recorded in its summary;
        the remaining fixtures are still settled.
        """
        match_ids = sorted({link.match_external_id for link in self.store.get_unsettled_links()})
        summaries: list[SettlementSummary] = []

        for match_external_id in match_ids:
            match = self.match_registry.get_match(match_external_id)
            if match is None or not match.state.is_finished:
                continue
            try:
                summaries.append(self.settle_match(match_external_id))
            except Exception as e:
                logger.exception("match_settlement_failed", match_external_id=match_external_id)
                summaries.append(
                    SettlementSummary(match_external_id=match_external_id, error=str(e))
                )

        logger.info("settlement_pass_complete", fixtures=len(summaries))
        return summaries
