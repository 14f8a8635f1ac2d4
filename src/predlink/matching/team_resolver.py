"""Resolve free-text team names against the canonical team registry."""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from predlink.common.config import MatchingConfig, QualifierWeights
from predlink.common.logging import get_logger
from predlink.matching.normalization import (
    QualifierKind,
    has_distinguishing_token,
    normalize,
    qualifier_kind,
    significant_tokens,
)
from predlink.matching.similarity import calculate_similarity, partial_match
from predlink.registry.interfaces import ITeamRegistry, TeamRecord

logger = get_logger(__name__)

PARTIAL_MATCH_WEIGHT = 0.9
FUZZY_METHOD_THRESHOLD = 0.8
LEADING_MARKERS = "*#@!+ "


class MatchMethod(str, Enum):
    """How a team name was resolved."""

    EXACT = "exact"
    NORMALIZED = "normalized"
    FUZZY = "fuzzy"
    PARTIAL = "partial"


@dataclass
class TeamMatchResult:
    """A resolved team and how sure we are about it."""

    team_id: str
    team_name: str
    short_name: str | None
    confidence: float
    method: MatchMethod

    @classmethod
    def from_record(
        cls, team: TeamRecord, confidence: float, method: MatchMethod
    ) -> "TeamMatchResult":
        return cls(
            team_id=team.external_id,
            team_name=team.name,
            short_name=team.short_name,
            confidence=max(0.0, min(1.0, confidence)),
            method=method,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "team_id": self.team_id,
            "team_name": self.team_name,
            "short_name": self.short_name,
            "confidence": self.confidence,
            "method": self.method.value,
        }


def qualifier_multiplier(
    weights: QualifierWeights,
    query_kind: QualifierKind,
    candidate_kind: QualifierKind,
    raw_similarity: float,
    both_distinctive: bool,
) -> float:
    """Score multiplier for a candidate given both sides' roster variants.

    Reserve and youth candidates are penalized; a women's candidate is
    penalized harder when the query names no gender. A senior-roster
    candidate gets a small boost when it already scores well and both
    names carry a distinctive token, and is penalized when the query
    explicitly names a variant.
    """
    if candidate_kind is QualifierKind.WOMEN:
        if query_kind is QualifierKind.WOMEN:
            return weights.women
        return weights.women_unspecified
    if candidate_kind is QualifierKind.RESERVE:
        return weights.reserve
    if candidate_kind is QualifierKind.YOUTH:
        return weights.youth
    if query_kind is not QualifierKind.MAIN:
        return weights.variant_query_main
    if both_distinctive and raw_similarity >= weights.main_min_similarity:
        return weights.main
    return 1.0


class AliasResolver:
    """Exact lookup of known raw-name variants."""

    def __init__(self, registry: ITeamRegistry):
        self.registry = registry

    def find_by_alias(self, raw_name: str | None) -> TeamMatchResult | None:
        """Look up a raw name in the alias table.

        Args:
            raw_name: Name as written by the bot.

        Returns:
            Result with confidence 1.0 on a hit, None otherwise.
        """
        key = (raw_name or "").strip()
        if not key:
            return None
        team = self.registry.find_team_by_alias(key)
        if team is None:
            return None
        logger.info("team_alias_hit", raw_name=raw_name, team_name=team.name)
        return TeamMatchResult.from_record(team, 1.0, MatchMethod.EXACT)


class TeamResolver:
    """Ordered exact → alias → token search → prefix search resolution."""

    def __init__(self, registry: ITeamRegistry, config: MatchingConfig | None = None):
        """Initialize resolver.

        Args:
            registry: Team registry to query.
            config: Matching settings; the confidence floor is shared with
                the match resolver and the ingestor.
        """
        self.registry = registry
        self.config = config or MatchingConfig()
        self.aliases = AliasResolver(registry)

    @property
    def confidence_floor(self) -> float:
        return self.config.confidence_floor

    def find_team_by_alias(
        self, raw_name: str | None, league_hint: str | None = None
    ) -> TeamMatchResult | None:
        """Alias table first, then the full `find_best_match` chain."""
        hit = self.aliases.find_by_alias(raw_name)
        if hit is not None:
            return hit
        return self.find_best_match(raw_name, league_hint)

    def find_best_match(
        self, raw_name: str | None, league_hint: str | None = None
    ) -> TeamMatchResult | None:
        """Find the best registry team for a raw name.

        Args:
            raw_name: Name as written by the bot.
            league_hint: Accepted for callers that have one; not used to
                filter candidates.

        Returns:
            Best match at or above the confidence floor, or None.
        """
        query = (raw_name or "").strip()
        if not query:
            return None
        normalized = normalize(query)

        result = (
            self._exact_match(query)
            or self._token_anchored_match(query, normalized)
            or self._prefix_fallback_match(query, normalized)
        )
        if result is None:
            logger.warning("team_unresolved", raw_name=raw_name, league_hint=league_hint)
        return result

    def _exact_match(self, query: str) -> TeamMatchResult | None:
        team = self.registry.find_team_exact(query)
        if team is None:
            return None
        return TeamMatchResult.from_record(team, 1.0, MatchMethod.EXACT)

    def _token_anchored_match(self, query: str, normalized: str) -> TeamMatchResult | None:
        tokens = significant_tokens(normalized)[:2]
        if not tokens:
            return None

        candidates = self.registry.search_teams_by_tokens(
            tokens, normalized, self.config.token_candidate_limit
        )
        if not candidates:
            return None

        weights = self.config.qualifier_weights
        query_kind = qualifier_kind(query)
        query_distinctive = has_distinguishing_token(normalized)

        best_team: TeamRecord | None = None
        best_score = 0.0
        for team in candidates:
            team_normalized = normalize(team.name)
            raw_similarity = calculate_similarity(
                normalized, team_normalized, self.config.word_match_bonus
            )
            multiplier = qualifier_multiplier(
                weights,
                query_kind,
                qualifier_kind(team.name),
                raw_similarity,
                query_distinctive and has_distinguishing_token(team_normalized),
            )
            score = min(1.0, raw_similarity * multiplier)
            if score > best_score:
                best_score = score
                best_team = team

        if best_team is None or best_score < self.confidence_floor:
            logger.debug(
                "token_search_below_floor",
                query=query,
                candidates=len(candidates),
                best_score=round(best_score, 3),
            )
            return None

        return TeamMatchResult.from_record(best_team, best_score, MatchMethod.NORMALIZED)

    def _prefix_fallback_match(self, query: str, normalized: str) -> TeamMatchResult | None:
        stem = query.lstrip(LEADING_MARKERS).lower()
        preferred = list(dict.fromkeys(p for p in (normalized, normalized[:10]) if p))
        substrings = list(dict.fromkeys(
            [p for p in (stem[:2], stem[:3], stem[:4]) if p] + preferred
        ))

        candidates = self.registry.search_teams_by_substrings(
            substrings, preferred, self.config.prefix_candidate_limit
        )
        if not candidates:
            candidates = self.registry.scan_teams(self.config.broad_scan_limit)

        bonus = self.config.word_match_bonus
        best_team: TeamRecord | None = None
        best_score = 0.0
        for team in candidates:
            team_normalized = normalize(team.name)
            short_normalized = normalize(team.short_name) if team.short_name else ""

            name_similarity = calculate_similarity(normalized, team_normalized, bonus)
            short_similarity = (
                calculate_similarity(normalized, short_normalized, bonus)
                if short_normalized
                else 0.0
            )
            partial = max(
                partial_match(normalized, team_normalized),
                partial_match(normalized, short_normalized) if short_normalized else 0.0,
            )
            score = max(name_similarity, short_similarity, partial * PARTIAL_MATCH_WEIGHT)
            if score > best_score:
                best_score = score
                best_team = team

        if best_team is None or best_score < self.confidence_floor:
            return None

        method = MatchMethod.FUZZY if best_score > FUZZY_METHOD_THRESHOLD else MatchMethod.PARTIAL
        return TeamMatchResult.from_record(best_team, best_score, method)
