"""Deterministic settlement rules for supported prediction markets.

`evaluate` is a pure function of a market code and a finished fixture's
score data. It never guesses: if a value the market needs is missing,
negative or not a number, the result is VOID with a reason code.
"""

import math
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from predlink.matching.normalization import remove_diacritics
from predlink.registry.interfaces import MatchRecord


class SettlementOutcome(str, Enum):
    """Final outcome of a prediction."""

    WON = "WON"
    LOST = "LOST"
    VOID = "VOID"


class ReasonCode(str, Enum):
    """Why a prediction was voided."""

    INVALID_SCORE = "INVALID_SCORE"
    SCORE_DATA_MISSING = "SCORE_DATA_MISSING"
    HT_DATA_MISSING = "HT_DATA_MISSING"
    UNKNOWN_MARKET = "UNKNOWN_MARKET"


class MarketCode(str, Enum):
    """Supported settlement markets."""

    BTTS_YES = "BTTS_YES"
    O15_OVER = "O15_OVER"
    O25_OVER = "O25_OVER"
    O35_OVER = "O35_OVER"
    HT_O05_OVER = "HT_O05_OVER"
    HOME_O15_OVER = "HOME_O15_OVER"
    MS_1 = "MS_1"
    MS_X = "MS_X"
    MS_2 = "MS_2"

    @classmethod
    def from_code(cls, code: "str | MarketCode | None") -> "MarketCode | None":
        """Look up a code case-insensitively, None if unsupported."""
        if isinstance(code, cls):
            return code
        if not code:
            return None
        try:
            return cls(code.strip().upper())
        except ValueError:
            return None


class ScoreScope(str, Enum):
    """Which score values a market reads."""

    FULL_TIME = "full_time"
    HOME_ONLY = "home_only"
    HALF_TIME = "half_time"


@dataclass
class ScoreData:
    """Score values of a finished fixture, as provided (unvalidated)."""

    home_score: Any = None
    away_score: Any = None
    ht_home_score: Any = None
    ht_away_score: Any = None

    @classmethod
    def from_match(cls, match: MatchRecord) -> "ScoreData":
        return cls(
            home_score=match.home_score,
            away_score=match.away_score,
            ht_home_score=match.ht_home_score,
            ht_away_score=match.ht_away_score,
        )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ScoreData":
        return cls(
            home_score=data.get("home_score"),
            away_score=data.get("away_score"),
            ht_home_score=data.get("ht_home_score"),
            ht_away_score=data.get("ht_away_score"),
        )


@dataclass
class SettlementResult:
    """Outcome of evaluating one market against one fixture."""

    outcome: SettlementOutcome
    rule: str
    reason: ReasonCode | None = None
    data: dict[str, Any] = field(default_factory=dict)

    @property
    def status(self) -> str:
        return outcome_to_status(self.outcome)


@dataclass(frozen=True)
class MarketRule:
    """A market's WON condition over the goals in its scope."""

    code: MarketCode
    description: str
    scope: ScoreScope
    wins: Callable[[int, int], bool]


MARKET_RULES: dict[MarketCode, MarketRule] = {
    rule.code: rule
    for rule in (
        MarketRule(
            MarketCode.BTTS_YES,
            "Both teams score (home > 0 and away > 0)",
            ScoreScope.FULL_TIME,
            lambda home, away: home > 0 and away > 0,
        ),
        MarketRule(
            MarketCode.O15_OVER,
            "Total goals >= 2",
            ScoreScope.FULL_TIME,
            lambda home, away: home + away >= 2,
        ),
        MarketRule(
            MarketCode.O25_OVER,
            "Total goals >= 3",
            ScoreScope.FULL_TIME,
            lambda home, away: home + away >= 3,
        ),
        MarketRule(
            MarketCode.O35_OVER,
            "Total goals >= 4",
            ScoreScope.FULL_TIME,
            lambda home, away: home + away >= 4,
        ),
        MarketRule(
            MarketCode.HT_O05_OVER,
            "HT total goals >= 1",
            ScoreScope.HALF_TIME,
            lambda home, away: home + away >= 1,
        ),
        MarketRule(
            MarketCode.HOME_O15_OVER,
            "Home goals >= 2",
            ScoreScope.HOME_ONLY,
            lambda home, away: home >= 2,
        ),
        MarketRule(
            MarketCode.MS_1,
            "Home win (home > away)",
            ScoreScope.FULL_TIME,
            lambda home, away: home > away,
        ),
        MarketRule(
            MarketCode.MS_X,
            "Draw (home = away)",
            ScoreScope.FULL_TIME,
            lambda home, away: home == away,
        ),
        MarketRule(
            MarketCode.MS_2,
            "Away win (away > home)",
            ScoreScope.FULL_TIME,
            lambda home, away: away > home,
        ),
    )
}


def as_goals(value: Any) -> int | None:
    """Coerce a score value to an int, None if missing or not a number.

    Negative values are returned as-is so the caller can tell invalid
    data from missing data.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value) or not value.is_integer():
            return None
        return int(value)
    if isinstance(value, str):
        text = value.strip()
        if re.fullmatch(r"-?\d+", text):
            return int(text)
    return None


def _snapshot(scores: ScoreData) -> dict[str, Any]:
    home = as_goals(scores.home_score)
    away = as_goals(scores.away_score)
    ht_home = as_goals(scores.ht_home_score)
    ht_away = as_goals(scores.ht_away_score)
    return {
        "home_score": home,
        "away_score": away,
        "total_goals": home + away if home is not None and away is not None else None,
        "ht_home_score": ht_home,
        "ht_away_score": ht_away,
        "ht_total_goals": (
            ht_home + ht_away if ht_home is not None and ht_away is not None else None
        ),
    }


def _void(rule: str, reason: ReasonCode, data: dict[str, Any]) -> SettlementResult:
    return SettlementResult(SettlementOutcome.VOID, rule, reason, data)


def evaluate(
    market_type: "str | MarketCode", score_data: "ScoreData | Mapping[str, Any]"
) -> SettlementResult:
    """Settle one market against a finished fixture's scores.

    Args:
        market_type: Market code, e.g. "O25_OVER".
        score_data: Full-time and half-time scores.

    Returns:
        WON or LOST when every value the market reads is a non-negative
        integer, VOID with a reason code otherwise.
    """
    if not isinstance(score_data, ScoreData):
        score_data = ScoreData.from_mapping(score_data)
    data = _snapshot(score_data)

    code = MarketCode.from_code(market_type)
    if code is None:
        return _void(f"Unknown market type: {market_type}", ReasonCode.UNKNOWN_MARKET, data)
    rule = MARKET_RULES[code]

    if rule.scope is ScoreScope.HALF_TIME:
        home, away = data["ht_home_score"], data["ht_away_score"]
        if home is None or away is None:
            return _void("Half-time data missing", ReasonCode.HT_DATA_MISSING, data)
        if home < 0 or away < 0:
            return _void("Invalid negative HT scores", ReasonCode.INVALID_SCORE, data)
    elif rule.scope is ScoreScope.HOME_ONLY:
        home, away = data["home_score"], 0
        if home is None:
            return _void("Score data missing", ReasonCode.SCORE_DATA_MISSING, data)
        if home < 0:
            return _void("Invalid negative scores", ReasonCode.INVALID_SCORE, data)
    else:
        home, away = data["home_score"], data["away_score"]
        if home is None or away is None:
            return _void("Score data missing", ReasonCode.SCORE_DATA_MISSING, data)
        if home < 0 or away < 0:
            return _void("Invalid negative scores", ReasonCode.INVALID_SCORE, data)

    outcome = SettlementOutcome.WON if rule.wins(home, away) else SettlementOutcome.LOST
    return SettlementResult(outcome, rule.description, None, data)


def outcome_to_status(outcome: "SettlementOutcome | str") -> str:
    """Lowercase persistence form of an outcome ("won", "lost", "void")."""
    value = outcome.value if isinstance(outcome, SettlementOutcome) else str(outcome)
    return value.lower()


# Bot market text is folded to ASCII upper case before matching
_HALF_TIME = re.compile(r"\b(?:IY|HT|1Y|1H|FH)\b")
_OVER = re.compile(r"\b(?:UST|OVER)\b|\bO\s?\d[.,]5\b")
_UNDER = re.compile(r"\b(?:ALT|UNDER)\b|\bU\s?\d[.,]5\b")
_LINE = re.compile(r"(\d)[.,]5")
_HOME = re.compile(r"\b(?:EV|HOME)\b")
_BTTS = re.compile(r"\b(?:KG\s*VAR|BTTS(?:\s*YES)?|GG)\b")
_HT_GOAL = re.compile(r"\bGOL\b")
_RESULT = re.compile(r"\b(?:MS|1X2|FT)\s*([12X0])\b(?![.,]\d)")

_OVER_LINES = {
    "1": MarketCode.O15_OVER,
    "2": MarketCode.O25_OVER,
    "3": MarketCode.O35_OVER,
}
_RESULT_CODES = {
    "1": MarketCode.MS_1,
    "X": MarketCode.MS_X,
    "0": MarketCode.MS_X,
    "2": MarketCode.MS_2,
}


def _fold_market_text(*parts: str | None) -> str:
    seen: list[str] = []
    for part in parts:
        text = (part or "").strip()
        if text and text not in seen:
            seen.append(text)
    folded = remove_diacritics(" ".join(seen)).upper()
    return " ".join(folded.split())


def market_from_prediction(
    prediction_type: str | None, prediction_value: str | None = None
) -> MarketCode | None:
    """Map a bot's free-text market onto a supported market code.

    Examples: "2.5 ÜST" -> O25_OVER, "KG VAR" -> BTTS_YES,
    "IY 0.5 ÜST" -> HT_O05_OVER, "MS 1" -> MS_1. Under and
    "no goal" markets are not supported and return None.

    Args:
        prediction_type: Market label, e.g. "IY ÜST" or "MS".
        prediction_value: Market value, e.g. "0.5" or "1". Ignored when
            identical to `prediction_type`.

    Returns:
        Market code, or None if the text names no supported market.
    """
    text = _fold_market_text(prediction_type, prediction_value)
    if not text:
        return None

    code = MarketCode.from_code(text.replace(" ", "_"))
    if code is not None:
        return code

    if _UNDER.search(text):
        return None

    line = _LINE.search(text)
    is_over = bool(_OVER.search(text))

    if _HALF_TIME.search(text):
        if (is_over and line and line.group(1) == "0") or _HT_GOAL.search(text):
            return MarketCode.HT_O05_OVER
        return None

    if _HOME.search(text) and is_over and line and line.group(1) == "1":
        return MarketCode.HOME_O15_OVER

    if _BTTS.search(text):
        return MarketCode.BTTS_YES

    if is_over and line:
        return _OVER_LINES.get(line.group(1))

    result = _RESULT.search(text)
    if result:
        return _RESULT_CODES[result.group(1)]

    return None
