"""
Unit tests for column scoring.
"""

from __future__ import annotations

import re

import pytest

from report_mapper.matcher import (
    EXACT_SCORE,
    KEYWORD_SCORE,
    NO_MATCH,
    PARTIAL_SCORE,
    ColumnMatcher,
    MatchCandidate,
    calculate_match_score,
    literal_keyword,
)
from report_mapper.patterns import DEFAULT_PATTERNS, PatternTable


@pytest.fixture
def matcher() -> ColumnMatcher:
    return ColumnMatcher()


# ======================================================================
# Scoring
# ======================================================================

class TestCalculateMatchScore:
    def test_full_match(self) -> None:
        assert calculate_match_score("Date", DEFAULT_PATTERNS.patterns_for("date")) == EXACT_SCORE

    def test_full_match_ignores_padding(self) -> None:
        assert calculate_match_score("  AMOUNT ", DEFAULT_PATTERNS.patterns_for("amount")) == EXACT_SCORE

    def test_partial_match(self) -> None:
        assert calculate_match_score(
            "Transaction Date", DEFAULT_PATTERNS.patterns_for("date")
        ) == PARTIAL_SCORE

    def test_indonesian_synonym(self) -> None:
        assert calculate_match_score("Tanggal", DEFAULT_PATTERNS.patterns_for("date")) == EXACT_SCORE

    def test_first_pattern_decides(self) -> None:
        family = [re.compile("amount"), re.compile("total amount")]
        # "amount" hits first and only partially
        assert calculate_match_score("Total Amount", family) == PARTIAL_SCORE

    def test_keyword_fallback(self) -> None:
        table = PatternTable({"amount": [r"\btotal\b"]})
        assert calculate_match_score("grandtotal", table.patterns_for("amount")) == KEYWORD_SCORE

    def test_no_match(self) -> None:
        assert calculate_match_score("Foo", DEFAULT_PATTERNS.patterns_for("date")) == NO_MATCH

    def test_empty_family(self) -> None:
        assert calculate_match_score("Date", ()) == NO_MATCH


class TestLiteralKeyword:
    @pytest.mark.parametrize("pattern, expected", [
        (r"check.?in", "checkin"),
        (r"nama.*barang", "namabarang"),
        (r"unit.?price", "unitprice"),
        (r"\btotal\b", "total"),
        (r"[Ss]tatus", "tatus"),
    ])
    def test_metacharacters_removed(self, pattern: str, expected: str) -> None:
        assert literal_keyword(re.compile(pattern)) == expected


# ======================================================================
# ColumnMatcher
# ======================================================================

class TestColumnMatcher:
    def test_unknown_field_scores_zero(self, matcher: ColumnMatcher) -> None:
        assert matcher.score("Date", "no_such_field") == NO_MATCH

    def test_candidates_field_major(self, matcher: ColumnMatcher) -> None:
        found = matcher.candidates(["Amount", "Date"], ["date", "amount"])
        assert found == [
            MatchCandidate("date", "Date", EXACT_SCORE),
            MatchCandidate("amount", "Amount", EXACT_SCORE),
        ]

    def test_candidates_skip_unknown_fields(self, matcher: ColumnMatcher) -> None:
        assert matcher.candidates(["Date"], ["bogus"]) == []

    def test_custom_table(self) -> None:
        matcher = ColumnMatcher(PatternTable({"amount": ["betrag"]}))
        assert matcher.score("Betrag", "amount") == EXACT_SCORE
        assert matcher.score("Amount", "amount") == NO_MATCH
