"""
Unit tests for the pattern and keyword tables.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from report_mapper.patterns import DEFAULT_KEYWORDS, DEFAULT_PATTERNS, PatternTable
from report_mapper.schema import TARGET_FIELDS


class TestPatternTable:
    def test_builtin_fields_in_declaration_order(self) -> None:
        assert DEFAULT_PATTERNS.fields == TARGET_FIELDS

    def test_case_insensitive(self) -> None:
        (pattern,) = PatternTable({"x": ["abc"]}).patterns_for("x")
        assert pattern.search("ABC")

    def test_unknown_field(self) -> None:
        assert DEFAULT_PATTERNS.patterns_for("nope") == ()
        assert "nope" not in DEFAULT_PATTERNS

    def test_invalid_regex(self) -> None:
        with pytest.raises(ValueError, match="Invalid pattern"):
            PatternTable({"x": ["("]})

    def test_merged_returns_new_table(self) -> None:
        merged = DEFAULT_PATTERNS.merged({"amount": ["betrag"], "tax": ["vat"]})
        assert merged.sources()["amount"][-1] == "betrag"
        assert merged.fields[-1] == "tax"
        assert "betrag" not in DEFAULT_PATTERNS.sources()["amount"]
        assert "tax" not in DEFAULT_PATTERNS


class TestPatternFile:
    def test_from_json(self, tmp_path: Path) -> None:
        path = tmp_path / "patterns.json"
        path.write_text(json.dumps({"date": ["datum"]}), encoding="utf-8")
        table = PatternTable.from_json(path)
        assert table.sources()["date"][-1] == "datum"
        assert len(table) == len(DEFAULT_PATTERNS)

    def test_bad_shape(self, tmp_path: Path) -> None:
        path = tmp_path / "patterns.json"
        path.write_text(json.dumps({"date": "datum"}), encoding="utf-8")
        with pytest.raises(ValueError, match="string lists"):
            PatternTable.from_json(path)


class TestKeywordTable:
    def test_lookup(self) -> None:
        assert "nominal" in DEFAULT_KEYWORDS.keywords_for("amount")
        assert DEFAULT_KEYWORDS.data_type_for("amount") == "currency"

    def test_unknown(self) -> None:
        assert DEFAULT_KEYWORDS.keywords_for("sku") == ()
        assert DEFAULT_KEYWORDS.data_type_for("sku") is None
