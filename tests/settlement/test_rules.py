"""Tests for market settlement rules.

A wrong outcome here means a pick is paid or graded incorrectly, so every
market is exercised on both sides of its threshold.
"""

import math

import pytest

from predlink.registry.interfaces import MatchRecord, MatchState
from predlink.settlement.rules import (
    MARKET_RULES,
    MarketCode,
    ReasonCode,
    ScoreData,
    SettlementOutcome,
    as_goals,
    evaluate,
    market_from_prediction,
    outcome_to_status,
)

WON = SettlementOutcome.WON
LOST = SettlementOutcome.LOST
VOID = SettlementOutcome.VOID


class TestBothTeamsScore:
    """BTTS_YES."""

    @pytest.mark.parametrize(
        "home,away,expected",
        [(3, 1, WON), (2, 1, WON), (1, 0, LOST), (0, 2, LOST), (0, 0, LOST)],
    )
    def test_outcomes(self, home, away, expected):
        result = evaluate("BTTS_YES", {"home_score": home, "away_score": away})

        assert result.outcome is expected
        assert "Both teams score" in result.rule
        assert result.data["home_score"] == home
        assert result.data["away_score"] == away

    def test_negative_score_is_void(self):
        result = evaluate("BTTS_YES", {"home_score": 2, "away_score": -1})

        assert result.outcome is VOID
        assert "Invalid negative scores" in result.rule
        assert result.reason is ReasonCode.INVALID_SCORE


class TestOverGoals:
    """Full-time over lines."""

    @pytest.mark.parametrize(
        "market,home,away,expected",
        [
            ("O15_OVER", 2, 1, WON),
            ("O15_OVER", 1, 1, WON),
            ("O15_OVER", 1, 0, LOST),
            ("O15_OVER", 0, 0, LOST),
            ("O25_OVER", 2, 1, WON),
            ("O25_OVER", 3, 2, WON),
            ("O25_OVER", 1, 1, LOST),
            ("O25_OVER", 0, 0, LOST),
            ("O35_OVER", 2, 2, WON),
            ("O35_OVER", 2, 1, LOST),
        ],
    )
    def test_outcomes(self, market, home, away, expected):
        result = evaluate(market, {"home_score": home, "away_score": away})

        assert result.outcome is expected
        assert result.data["total_goals"] == home + away

    def test_rule_text(self):
        result = evaluate("O25_OVER", {"home_score": 2, "away_score": 1})
        assert "Total goals >= 3" in result.rule

    def test_negative_score_is_void(self):
        result = evaluate("O25_OVER", {"home_score": -1, "away_score": 1})
        assert result.outcome is VOID

    def test_missing_score_is_void(self):
        result = evaluate("O15_OVER", {"home_score": 1})

        assert result.outcome is VOID
        assert result.reason is ReasonCode.SCORE_DATA_MISSING
        assert result.rule == "Score data missing"
        assert result.data["total_goals"] is None


class TestHalfTimeOver:
    """HT_O05_OVER reads only half-time scores."""

    @pytest.mark.parametrize(
        "ht_home,ht_away,expected",
        [(1, 0, WON), (0, 1, WON), (2, 1, WON), (0, 0, LOST)],
    )
    def test_outcomes(self, ht_home, ht_away, expected):
        result = evaluate(
            "HT_O05_OVER",
            {"home_score": 3, "away_score": 3, "ht_home_score": ht_home, "ht_away_score": ht_away},
        )

        assert result.outcome is expected
        assert result.data["ht_total_goals"] == ht_home + ht_away

    def test_missing_half_time_is_void(self):
        result = evaluate("HT_O05_OVER", {"home_score": 2, "away_score": 1})

        assert result.outcome is VOID
        assert result.reason is ReasonCode.HT_DATA_MISSING
        assert "Half-time data missing" in result.rule

    def test_negative_half_time_is_void(self):
        result = evaluate("HT_O05_OVER", {"ht_home_score": -1, "ht_away_score": 0})

        assert result.outcome is VOID
        assert result.reason is ReasonCode.INVALID_SCORE
        assert result.rule == "Invalid negative HT scores"


class TestHomeOver:
    """HOME_O15_OVER ignores the away score."""

    @pytest.mark.parametrize(
        "home,away,expected",
        [(2, 0, WON), (3, 5, WON), (1, 0, LOST), (0, 3, LOST), (2, None, WON)],
    )
    def test_outcomes(self, home, away, expected):
        result = evaluate("HOME_O15_OVER", {"home_score": home, "away_score": away})
        assert result.outcome is expected
        assert result.rule == "Home goals >= 2"

    def test_missing_home_is_void(self):
        result = evaluate("HOME_O15_OVER", {"away_score": 2})
        assert result.reason is ReasonCode.SCORE_DATA_MISSING


class TestMatchResult:
    """MS_1 / MS_X / MS_2."""

    @pytest.mark.parametrize(
        "market,home,away,expected",
        [
            ("MS_1", 2, 1, WON),
            ("MS_1", 1, 1, LOST),
            ("MS_X", 1, 1, WON),
            ("MS_X", 0, 1, LOST),
            ("MS_2", 0, 1, WON),
            ("MS_2", 2, 1, LOST),
        ],
    )
    def test_outcomes(self, market, home, away, expected):
        result = evaluate(market, {"home_score": home, "away_score": away})
        assert result.outcome is expected


class TestEvaluateInputs:
    """Input coercion and unknown markets."""

    def test_unknown_market(self):
        result = evaluate("CORNERS_OVER", {"home_score": 1, "away_score": 1})

        assert result.outcome is VOID
        assert result.reason is ReasonCode.UNKNOWN_MARKET
        assert result.rule == "Unknown market type: CORNERS_OVER"
        assert result.data["total_goals"] == 2

    def test_market_code_case_insensitive(self):
        assert evaluate("btts_yes", {"home_score": 1, "away_score": 1}).outcome is WON
        assert evaluate(MarketCode.BTTS_YES, {"home_score": 1, "away_score": 1}).outcome is WON

    def test_string_scores(self):
        result = evaluate("O25_OVER", {"home_score": "2", "away_score": " 1 "})
        assert result.outcome is WON

    @pytest.mark.parametrize("bad", [None, "abc", 1.5, math.nan, math.inf, True, [1]])
    def test_non_numeric_scores_are_missing(self, bad):
        result = evaluate("O15_OVER", {"home_score": bad, "away_score": 1})

        assert result.outcome is VOID
        assert result.reason is ReasonCode.SCORE_DATA_MISSING

    def test_score_data_from_match(self):
        match = MatchRecord(
            external_id="m",
            uuid="u",
            home_team_id="h",
            away_team_id="a",
            state=MatchState.FINISHED,
            home_score=2,
            away_score=1,
            ht_home_score=0,
            ht_away_score=0,
        )

        result = evaluate("HT_O05_OVER", ScoreData.from_match(match))

        assert result.outcome is LOST
        assert result.data["total_goals"] == 3

    def test_every_market_has_a_rule(self):
        assert set(MARKET_RULES) == set(MarketCode)


class TestHelpers:
    @pytest.mark.parametrize(
        "value,expected",
        [(3, 3), (2.0, 2), ("4", 4), ("-1", -1), (-2, -2), ("", None), ("2.5", None)],
    )
    def test_as_goals(self, value, expected):
        assert as_goals(value) == expected

    def test_outcome_to_status(self):
        assert outcome_to_status(WON) == "won"
        assert outcome_to_status(VOID) == "void"
        assert outcome_to_status("LOST") == "lost"
        assert evaluate("MS_X", {"home_score": 0, "away_score": 0}).status == "won"


class TestMarketFromPrediction:
    """Bot market text to market code."""

    @pytest.mark.parametrize(
        "prediction_type,prediction_value,expected",
        [
            ("2.5 ÜST", None, MarketCode.O25_OVER),
            ("1.5 ÜST", None, MarketCode.O15_OVER),
            ("Over 3.5", None, MarketCode.O35_OVER),
            ("ÜST", "2.5", MarketCode.O25_OVER),
            ("KG VAR", None, MarketCode.BTTS_YES),
            ("KG", "VAR", MarketCode.BTTS_YES),
            ("KG VAR", "KG VAR", MarketCode.BTTS_YES),
            ("BTTS", None, MarketCode.BTTS_YES),
            ("IY 0.5 ÜST", None, MarketCode.HT_O05_OVER),
            ("IY GOL", None, MarketCode.HT_O05_OVER),
            ("EV 1.5 ÜST", None, MarketCode.HOME_O15_OVER),
            ("MS 1", None, MarketCode.MS_1),
            ("MS", "X", MarketCode.MS_X),
            ("MS 0", None, MarketCode.MS_X),
            ("1X2", "2", MarketCode.MS_2),
            ("O25_OVER", None, MarketCode.O25_OVER),
            ("o15_over", None, MarketCode.O15_OVER),
        ],
    )
    def test_supported(self, prediction_type, prediction_value, expected):
        assert market_from_prediction(prediction_type, prediction_value) is expected

    @pytest.mark.parametrize(
        "prediction_type,prediction_value",
        [
            ("2.5 ALT", None),
            ("Under 2.5", None),
            ("4.5 ÜST", None),
            ("IY 1.5 ÜST", None),
            ("KG YOK", None),
            ("garbage", None),
            ("", None),
            (None, None),
        ],
    )
    def test_unsupported(self, prediction_type, prediction_value):
        assert market_from_prediction(prediction_type, prediction_value) is None
