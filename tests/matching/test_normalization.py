"""Tests for team name normalization."""

import pytest

from predlink.matching.normalization import (
    QualifierKind,
    fold_name,
    has_distinguishing_token,
    normalize,
    qualifier_kind,
    significant_tokens,
)


class TestFoldName:
    """Search-key folding keeps every token."""

    def test_diacritics_and_case(self):
        assert fold_name("Bayern München") == "bayern munchen"
        assert fold_name("Barça") == "barca"

    def test_punctuation_and_whitespace(self):
        assert fold_name("  Paris Saint-Germain ") == "paris saint germain"
        assert fold_name("R. Madrid") == "r madrid"

    def test_keeps_suffixes(self):
        assert fold_name("Arsenal Women FC") == "arsenal women fc"

    def test_empty(self):
        assert fold_name(None) == ""
        assert fold_name("") == ""


class TestNormalize:
    """Canonical comparison form."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("Real Madrid", "real madrid"),
            ("Arsenal FC", "arsenal"),
            ("Arsenal Women FC", "arsenal"),
            ("*Santos Laguna (W)", "santos laguna"),
            ("Manchester United", "manchester"),
            ("Jong Ajax U21", "jong ajax"),
            ("Barcelona (B)", "barcelona"),
            ("Bayern München", "bayern munchen"),
            ("FC", "fc"),
        ],
    )
    def test_normalize(self, raw, expected):
        assert normalize(raw) == expected

    def test_empty_input(self):
        assert normalize(None) == ""
        assert normalize("") == ""
        assert normalize("   ") == ""

    @pytest.mark.parametrize(
        "raw",
        ["Arsenal Women FC", "*Santos Laguna (W)", "Club W (W)", "Team (X)", "St. Pauli"],
    )
    def test_idempotent(self, raw):
        once = normalize(raw)
        assert normalize(once) == once


class TestQualifierKind:
    """Roster variant classification on raw names."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("Chelsea", QualifierKind.MAIN),
            ("Arsenal Women", QualifierKind.WOMEN),
            ("Santos Laguna (W)", QualifierKind.WOMEN),
            ("Tigres Femenil", QualifierKind.WOMEN),
            ("Barcelona U19", QualifierKind.YOUTH),
            ("Ajax Youth", QualifierKind.YOUTH),
            ("Sunderland Reserves", QualifierKind.RESERVE),
            ("Bayern Munich II", QualifierKind.RESERVE),
            ("Barcelona B", QualifierKind.RESERVE),
            (None, QualifierKind.MAIN),
        ],
    )
    def test_qualifier_kind(self, raw, expected):
        assert qualifier_kind(raw) is expected

    def test_normalized_name_loses_qualifier(self):
        assert qualifier_kind(normalize("Arsenal Women")) is QualifierKind.MAIN


class TestTokens:
    def test_significant_tokens_drop_single_chars(self):
        assert significant_tokens("a real madrid") == ["real", "madrid"]
        assert significant_tokens("") == []

    def test_distinguishing_token(self):
        assert has_distinguishing_token("real madrid")
        assert not has_distinguishing_token("al ain")
        assert not has_distinguishing_token("fc")
