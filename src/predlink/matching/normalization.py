"""Team name normalization and qualifier classification.

Free-text team names coming from prediction bots carry noise the
registry does not: leading markers ("*Santos Laguna"), gender and age
qualifiers ("(W)", "U19"), club-type suffixes ("FC", "SC", "United")
and inconsistent punctuation. `normalize` reduces a name to the part
that identifies the club so two spellings can be compared;
`qualifier_kind` keeps the qualifier information that normalization
throws away, so reserve/youth/women variants can still be told apart.
"""

import re
import unicodedata
from enum import Enum

# Club-type suffixes removed from the end of a name
CLUB_SUFFIXES = frozenset([
    "fc", "sc", "cf", "afc", "bc", "ac", "fk", "sk", "as", "ss", "us",
    "bk", "if", "ssk", "spor", "kulubu", "club", "team", "united",
])

# Gender/age/reserve markers removed from the end of a name
QUALIFIER_TOKENS = frozenset([
    "w", "women", "womens", "ladies", "femenil", "feminino", "feminine",
    "reserve", "reserves", "res", "youth", "junior", "juniors", "juvenil", "ii",
])

# Tokens that never make a name distinctive on their own
GENERIC_TOKENS = CLUB_SUFFIXES | frozenset(["the", "al", "el", "de", "la"])

_AGE_GROUP = re.compile(r"^u\d{1,2}$")
_PAREN_QUALIFIER = re.compile(
    r"\(\s*(?:w|women|ladies|reserves?|res|youth|u\s?\d{1,2}|ii|b)\s*\)",
    re.IGNORECASE,
)
_NON_WORD = re.compile(r"[^\w\s]")

_WOMEN_PATTERN = re.compile(
    r"\b(?:w|women|womens|ladies|femenil|feminin[oae]?|frauen|kadin)\b"
)
_YOUTH_PATTERN = re.compile(
    r"\b(?:u ?(?:1[5-9]|2[0-3])|under ?(?:1[5-9]|2[0-3])"
    r"|youth|juniors?|juniores|juvenil|academy)\b"
)
_RESERVE_PATTERN = re.compile(r"\b(?:reserves?|res)\b|\s(?:ii|b)$")


class QualifierKind(str, Enum):
    """Roster variant a team name refers to."""

    MAIN = "main"
    RESERVE = "reserve"
    YOUTH = "youth"
    WOMEN = "women"


def remove_diacritics(text: str) -> str:
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(c for c in decomposed if unicodedata.category(c) != "Mn")


def fold_name(name: str | None) -> str:
    """Lowercase, strip diacritics and punctuation, collapse whitespace.

    Unlike `normalize`, keeps every token. Used for registry search keys.
    """
    if not name:
        return ""
    result = remove_diacritics(name.lower())
    result = result.replace("-", " ")
    result = _NON_WORD.sub("", result)
    result = result.replace("_", " ")
    return " ".join(result.split())


def _is_strippable_tail(token: str) -> bool:
    return (
        token in CLUB_SUFFIXES
        or token in QUALIFIER_TOKENS
        or bool(_AGE_GROUP.match(token))
    )


def normalize(name: str | None) -> str:
    """Canonicalize a raw team name for comparison.

    Total and idempotent: ``normalize(normalize(x)) == normalize(x)``.
    Trailing suffixes and qualifiers are removed repeatedly ("Arsenal
    Women FC" -> "arsenal") but the last remaining token is always kept.

    Args:
        name: Raw team name, possibly None.

    Returns:
        Normalized name, empty for empty input.
    """
    if not name:
        return ""
    result = _PAREN_QUALIFIER.sub(" ", name.lower())
    tokens = fold_name(result).split()
    while len(tokens) > 1 and _is_strippable_tail(tokens[-1]):
        tokens.pop()
    return " ".join(tokens)


def qualifier_kind(name: str | None) -> QualifierKind:
    """Classify the roster variant named by a raw team name.

    Must be given the raw name: `normalize` strips the markers this
    looks for.
    """
    folded = fold_name(name)
    if not folded:
        return QualifierKind.MAIN
    if _WOMEN_PATTERN.search(folded):
        return QualifierKind.WOMEN
    if _YOUTH_PATTERN.search(folded):
        return QualifierKind.YOUTH
    if _RESERVE_PATTERN.search(folded):
        return QualifierKind.RESERVE
    return QualifierKind.MAIN


def significant_tokens(normalized: str) -> list[str]:
    """Tokens longer than one character, in order."""
    return [token for token in normalized.split() if len(token) > 1]


def has_distinguishing_token(normalized: str) -> bool:
    """True if the name has a non-generic token longer than three chars."""
    return any(
        len(token) > 3 and token not in GENERIC_TOKENS
        for token in normalized.split()
    )
