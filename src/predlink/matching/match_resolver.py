"""Locate the live fixture a prediction refers to.

Resolution is an ordered list of strategies: anchor on the home team,
then on the away team, then give up. Each strategy reports a typed
Found/NotFound outcome and the resolver stops at the first Found, so a
later strategy is never queried once an earlier one succeeds.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from predlink.common.config import MatchingConfig
from predlink.common.logging import get_logger
from predlink.matching.normalization import normalize
from predlink.matching.similarity import calculate_similarity
from predlink.matching.team_resolver import MatchMethod, TeamMatchResult, TeamResolver
from predlink.registry.interfaces import IMatchRegistry, MatchRecord, MatchState

logger = get_logger(__name__)


class Side(str, Enum):
    """Which team of a fixture."""

    HOME = "home"
    AWAY = "away"

    @property
    def other(self) -> "Side":
        return Side.AWAY if self is Side.HOME else Side.HOME


@dataclass
class MatchQuery:
    """Team names and optional hints extracted from a prediction."""

    home_name: str
    away_name: str
    minute_hint: int | None = None
    score_hint: str | None = None
    league_hint: str | None = None

    def name_for(self, side: Side) -> str:
        return self.home_name if side is Side.HOME else self.away_name


@dataclass
class MatchLookupResult:
    """A fixture located for a prediction."""

    match_external_id: str
    match_uuid: str
    home_team: TeamMatchResult
    away_team: TeamMatchResult
    overall_confidence: float
    state: MatchState
    match_time: datetime | None = None
    strategy: str = ""
    degraded: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "match_external_id": self.match_external_id,
            "match_uuid": self.match_uuid,
            "home_team": self.home_team.to_dict(),
            "away_team": self.away_team.to_dict(),
            "overall_confidence": self.overall_confidence,
            "state": self.state.name,
            "match_time": self.match_time.isoformat() if self.match_time else None,
            "strategy": self.strategy,
            "degraded": self.degraded,
        }


@dataclass(frozen=True)
class Found:
    result: MatchLookupResult


@dataclass(frozen=True)
class NotFound:
    reason: str


LookupOutcome = Found | NotFound


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


class MatchStrategy:
    """Base for one step of fixture lookup."""

    name = "base"

    def lookup(self, query: MatchQuery) -> LookupOutcome:
        raise NotImplementedError


class AnchorStrategy(MatchStrategy):
    """Resolve one named team, then pick among its live fixtures."""

    def __init__(
        self,
        side: Side,
        team_resolver: TeamResolver,
        match_registry: IMatchRegistry,
        config: MatchingConfig,
    ):
        self.side = side
        self.team_resolver = team_resolver
        self.match_registry = match_registry
        self.config = config
        self.name = f"{side.value}_anchor"

    def lookup(self, query: MatchQuery) -> LookupOutcome:
        anchor_name = query.name_for(self.side)
        other_name = query.name_for(self.side.other)

        anchor = self.team_resolver.find_team_by_alias(anchor_name, query.league_hint)
        if anchor is None or anchor.confidence < self.config.confidence_floor:
            return NotFound(f"{self.side.value} team unresolved")

        logger.info(
            "anchor_team_matched",
            side=self.side.value,
            raw_name=anchor_name,
            team_name=anchor.team_name,
            confidence=round(anchor.confidence, 3),
            method=anchor.method.value,
        )

        candidates = self.match_registry.find_live_matches_for_team(
            anchor.team_id, self.config.live_candidate_limit
        )
        if not candidates:
            return NotFound(f"no live fixture for {anchor.team_name}")

        if len(candidates) == 1:
            return Found(self._single_candidate(candidates[0], anchor, other_name, query))
        return Found(self._pick_candidate(candidates, anchor, other_name))

    def _opponent_similarity(self, raw_name: str, match: MatchRecord, anchor_id: str) -> float:
        _, opponent_name, opponent_short = match.opponent_of(anchor_id)
        normalized = normalize(raw_name)
        bonus = self.config.word_match_bonus
        scores = [calculate_similarity(normalized, normalize(opponent_name), bonus)]
        if opponent_short:
            scores.append(calculate_similarity(normalized, normalize(opponent_short), bonus))
        return max(scores)

    def _opponent_result(
        self, match: MatchRecord, anchor_id: str, confidence: float, method: MatchMethod
    ) -> TeamMatchResult:
        opponent_id, opponent_name, opponent_short = match.opponent_of(anchor_id)
        return TeamMatchResult(
            team_id=opponent_id,
            team_name=opponent_name,
            short_name=opponent_short,
            confidence=_clamp(confidence),
            method=method,
        )

    def _single_candidate(
        self,
        match: MatchRecord,
        anchor: TeamMatchResult,
        other_name: str,
        query: MatchQuery,
    ) -> MatchLookupResult:
        other = self.team_resolver.find_team_by_alias(other_name, query.league_hint)
        opponent_id, _, _ = match.opponent_of(anchor.team_id)
        if other is not None and other.team_id == opponent_id:
            opponent = self._opponent_result(match, anchor.team_id, other.confidence, other.method)
        else:
            similarity = self._opponent_similarity(other_name, match, anchor.team_id)
            opponent = self._opponent_result(match, anchor.team_id, similarity, MatchMethod.PARTIAL)

        overall = (anchor.confidence + opponent.confidence) / 2
        return self._build(match, anchor, opponent, overall)

    def _pick_candidate(
        self,
        candidates: list[MatchRecord],
        anchor: TeamMatchResult,
        other_name: str,
    ) -> MatchLookupResult:
        similarities = [
            self._opponent_similarity(other_name, match, anchor.team_id)
            for match in candidates
        ]
        for match, similarity in zip(candidates, similarities):
            if similarity >= self.config.confidence_floor:
                opponent = self._opponent_result(
                    match, anchor.team_id, similarity, MatchMethod.FUZZY
                )
                overall = (anchor.confidence + similarity) / 2
                return self._build(match, anchor, opponent, overall)

        match = candidates[0]
        overall = anchor.confidence * self.config.degraded_confidence_factor
        logger.warning(
            "degraded_fixture_acceptance",
            anchor_team=anchor.team_name,
            other_name=other_name,
            match_external_id=match.external_id,
            candidates=len(candidates),
            overall_confidence=round(overall, 3),
        )
        opponent = self._opponent_result(
            match, anchor.team_id, similarities[0], MatchMethod.PARTIAL
        )
        return self._build(match, anchor, opponent, overall, degraded=True)

    def _build(
        self,
        match: MatchRecord,
        anchor: TeamMatchResult,
        opponent: TeamMatchResult,
        overall: float,
        degraded: bool = False,
    ) -> MatchLookupResult:
        anchor_is_home = match.home_team_id == anchor.team_id
        return MatchLookupResult(
            match_external_id=match.external_id,
            match_uuid=match.uuid,
            home_team=anchor if anchor_is_home else opponent,
            away_team=opponent if anchor_is_home else anchor,
            overall_confidence=_clamp(overall),
            state=match.state,
            match_time=match.match_time,
            strategy=self.name,
            degraded=degraded,
        )


class UnresolvedStrategy(MatchStrategy):
    """Terminal step: record that neither anchor produced a fixture."""

    name = "unresolved"

    def lookup(self, query: MatchQuery) -> LookupOutcome:
        logger.warning(
            "match_unresolved",
            home_name=query.home_name,
            away_name=query.away_name,
        )
        return NotFound("no fixture for either team")


@dataclass
class MatchResolver:
    """Runs the anchor strategies in order and returns the first fixture found."""

    team_resolver: TeamResolver
    match_registry: IMatchRegistry
    config: MatchingConfig = field(default_factory=MatchingConfig)
    strategies: list[MatchStrategy] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.strategies:
            self.strategies = [
                AnchorStrategy(Side.HOME, self.team_resolver, self.match_registry, self.config),
                AnchorStrategy(Side.AWAY, self.team_resolver, self.match_registry, self.config),
                UnresolvedStrategy(),
            ]

    def find_match_by_teams(
        self,
        home_name: str,
        away_name: str,
        minute_hint: int | None = None,
        score_hint: str | None = None,
        league_hint: str | None = None,
    ) -> MatchLookupResult | None:
        """Find the live fixture between two raw team names.

        Args:
            home_name: Raw home team name.
            away_name: Raw away team name.
            minute_hint: Match minute quoted by the bot. Logged only.
            score_hint: Score quoted by the bot. Logged only.
            league_hint: League quoted by the bot, passed to team lookup.

        Returns:
            Located fixture, or None when no strategy finds one.
        """
        query = MatchQuery(
            home_name=(home_name or "").strip(),
            away_name=(away_name or "").strip(),
            minute_hint=minute_hint,
            score_hint=score_hint,
            league_hint=league_hint,
        )
        logger.debug(
            "match_lookup_started",
            home_name=query.home_name,
            away_name=query.away_name,
            minute_hint=minute_hint,
            score_hint=score_hint,
        )

        for strategy in self.strategies:
            outcome = strategy.lookup(query)
            if isinstance(outcome, Found):
                logger.info(
                    "match_found",
                    strategy=strategy.name,
                    match_external_id=outcome.result.match_external_id,
                    overall_confidence=round(outcome.result.overall_confidence, 3),
                    degraded=outcome.result.degraded,
                )
                return outcome.result
            logger.debug("match_strategy_miss", strategy=strategy.name, reason=outcome.reason)

        return None
