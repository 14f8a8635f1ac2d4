"""Team name normalization, similarity scoring and fixture resolution."""

from predlink.matching.match_resolver import (
    AnchorStrategy,
    Found,
    MatchLookupResult,
    MatchQuery,
    MatchResolver,
    MatchStrategy,
    NotFound,
    Side,
    UnresolvedStrategy,
)
from predlink.matching.normalization import (
    QualifierKind,
    fold_name,
    normalize,
    qualifier_kind,
)
from predlink.matching.similarity import (
    calculate_similarity,
    levenshtein_distance,
    partial_match,
)
from predlink.matching.team_resolver import (
    AliasResolver,
    MatchMethod,
    TeamMatchResult,
    TeamResolver,
)

__all__ = [
    "AliasResolver",
    "AnchorStrategy",
    "Found",
    "MatchLookupResult",
    "MatchMethod",
    "MatchQuery",
    "MatchResolver",
    "MatchStrategy",
    "NotFound",
    "QualifierKind",
    "Side",
    "TeamMatchResult",
    "TeamResolver",
    "UnresolvedStrategy",
    "calculate_similarity",
    "fold_name",
    "levenshtein_distance",
    "normalize",
    "partial_match",
    "qualifier_kind",
]
