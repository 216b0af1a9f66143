"""
Unit tests for applying a mapping to raw rows.
"""

from __future__ import annotations

from report_mapper.row_mapper import apply_mapping
from report_mapper.schema import ROW_INDEX_KEY, FieldMapping


class TestApplyMapping:
    def test_row_index_is_one_based_and_ordered(self) -> None:
        rows = [{"A": i} for i in range(5)]
        mapped = apply_mapping(rows, {"amount": "A"})
        assert [r[ROW_INDEX_KEY] for r in mapped] == [1, 2, 3, 4, 5]
        assert [r["amount"] for r in mapped] == [0, 1, 2, 3, 4]

    def test_values_untouched(self) -> None:
        rows = [{"Total": "Rp 1.000", "When": "2024-01-01"}]
        mapped = apply_mapping(rows, {"amount": "Total", "date": "When"})
        assert mapped == [{"_rowIndex": 1, "amount": "Rp 1.000", "date": "2024-01-01"}]

    def test_missing_source_is_none(self) -> None:
        mapped = apply_mapping([{"A": 1}], {"amount": "A", "date": "Missing"})
        assert mapped[0]["date"] is None

    def test_keys_follow_mapping_order(self) -> None:
        mapped = apply_mapping([{"A": 1, "B": 2}], FieldMapping({"b": "B", "a": "A"}))
        assert list(mapped[0]) == ["_rowIndex", "b", "a"]

    def test_row_index_target_ignored(self) -> None:
        mapped = apply_mapping([{"x": "a"}, {"x": "b"}], {ROW_INDEX_KEY: "x", "amount": "x"})
        assert mapped == [
            {"_rowIndex": 1, "amount": "a"},
            {"_rowIndex": 2, "amount": "b"},
        ]

    def test_empty_mapping(self) -> None:
        assert apply_mapping([{"A": 1}, {"A": 2}], {}) == [
            {"_rowIndex": 1},
            {"_rowIndex": 2},
        ]

    def test_no_rows(self) -> None:
        assert apply_mapping([], {"amount": "A"}) == []
