"""
Tests for report summaries and cell validation.
"""

from __future__ import annotations

import pytest

from report_mapper.config import ReportConfig
from report_mapper.row_mapper import apply_mapping
from report_mapper.schema import ColumnMapping, DataType
from report_mapper.summarizer import (
    Summarizer,
    SummaryOptions,
    find_field,
    generate_financial_summary,
    process_data,
)


@pytest.fixture
def summarizer() -> Summarizer:
    return Summarizer()


def summarize(rows, mapping, options=None):
    return generate_financial_summary(apply_mapping(rows, mapping), mapping, options)


# ======================================================================
# Field discovery
# ======================================================================

class TestFindField:
    def test_first_key_wins(self) -> None:
        mapping = {"date": "D", "grand_total": "T", "amount": "A"}
        assert find_field(mapping, ("amount", "total")) == "grand_total"

    def test_case_insensitive(self) -> None:
        assert find_field({"Order Time": "x"}, ("date", "time")) == "Order Time"

    def test_none(self) -> None:
        assert find_field({"name": "N"}, ("category", "type")) is None


# ======================================================================
# Totals and averages
# ======================================================================

class TestAmounts:
    def test_truthy_unparseable_counts_toward_average(self) -> None:
        rows = [{"amt": "100"}, {"amt": "not-a-number"}, {"amt": ""}]
        summary = summarize(rows, {"amount": "amt"})
        assert summary.total == 100.0
        assert summary.average == 50.0
        assert summary.count == 3

    def test_explicit_zero_counts(self) -> None:
        summary = summarize([{"a": "0"}, {"a": "10"}], {"amount": "a"})
        assert summary.average == 5.0

    def test_no_valid_amounts(self) -> None:
        summary = summarize([{"a": ""}], {"amount": "a"})
        assert summary.total == 0.0
        assert summary.average == 0.0

    def test_no_amount_field(self) -> None:
        summary = summarize([{"n": "x"}], {"name": "n"})
        assert summary.total == 0.0
        assert summary.average is None
        assert "average" not in summary.to_dict()

    def test_option_overrides_discovery(self) -> None:
        rows = [{"p": "2"}, {"p": "3"}]
        summary = summarize(rows, {"price": "p"}, SummaryOptions(amount_field="price"))
        assert summary.total == 5.0


# ======================================================================
# Period
# ======================================================================

class TestPeriod:
    def test_earliest_to_latest(self) -> None:
        rows = [{"d": "2024-03-01"}, {"d": "2024-01-15"}, {"d": "nope"}]
        assert summarize(rows, {"date": "d"}).period == "2024-01-15 - 2024-03-01"

    def test_bad_offset_skipped(self) -> None:
        rows = [
            {"d": "2024-01-01"},
            {"d": "2024-01-01T00:00:00+25:00"},
            {"d": "2024-03-01"},
        ]
        assert summarize(rows, {"date": "d"}).period == "2024-01-01 - 2024-03-01"

    def test_needs_two_dates(self) -> None:
        rows = [{"d": "2024-03-01"}, {"d": ""}]
        assert summarize(rows, {"date": "d"}).period is None

    def test_no_rows(self) -> None:
        assert summarize([], {"date": "d"}).period is None


# ======================================================================
# Categories
# ======================================================================

class TestCategories:
    def test_blank_is_uncategorized(self) -> None:
        rows = [{"cat": "Food"}, {"cat": ""}, {"cat": "Food"}]
        assert summarize(rows, {"category": "cat"}).categories == {
            "Food": 2,
            "Uncategorized": 1,
        }

    def test_empty_data_still_reports(self) -> None:
        assert summarize([], {"category": "cat"}).categories == {}

    def test_custom_label(self) -> None:
        summarizer = Summarizer(ReportConfig(uncategorized_label="Other"))
        rows = [{"t": None}]
        mapping = {"type": "t"}
        summary = summarizer.summarize(apply_mapping(rows, mapping), mapping)
        assert summary.categories == {"Other": 1}


class TestIdempotence:
    def test_same_input_same_output(self, summarizer: Summarizer) -> None:
        rows = [
            {"d": "2024-01-01", "a": "10", "c": "X"},
            {"d": "2024-02-01", "a": "5", "c": ""},
        ]
        mapping = {"date": "d", "amount": "a", "category": "c"}
        data = apply_mapping(rows, mapping)
        first = summarizer.summarize(data, mapping).to_dict()
        second = summarizer.summarize(data, mapping).to_dict()
        assert first == second


# ======================================================================
# Cell validation
# ======================================================================

class TestValidateData:
    @pytest.fixture
    def mappings(self):
        return [
            ColumnMapping("Amt", "amount", DataType.CURRENCY),
            ColumnMapping("When", "date", DataType.DATE),
            ColumnMapping("Name", "name"),
        ]

    def test_errors_per_cell(self, summarizer: Summarizer, mappings) -> None:
        rows = [
            {"Amt": "12.5", "When": "2024-01-01", "Name": "A"},
            {"Amt": "abc", "When": "nope", "Name": ""},
        ]
        errors = summarizer.validate_data(rows, mappings)
        assert [(e.row, e.column, e.message) for e in errors] == [
            (2, "Amt", "Invalid number format for amount"),
            (2, "When", "Invalid date format for date"),
            (2, "Name", "Missing value for name"),
        ]
        assert errors[0].value == "abc"

    def test_clean_rows(self, summarizer: Summarizer, mappings) -> None:
        rows = [{"Amt": 3, "When": "2024-01-01", "Name": "A"}]
        assert summarizer.validate_data(rows, mappings) == []

    def test_bad_offset_is_invalid_date(self, summarizer: Summarizer, mappings) -> None:
        rows = [{"Amt": 1, "When": "2024-01-01T00:00:00+25:00", "Name": "A"}]
        errors = summarizer.validate_data(rows, mappings)
        assert [(e.row, e.message) for e in errors] == [(1, "Invalid date format for date")]

    def test_missing_column_reported(self, summarizer: Summarizer) -> None:
        errors = summarizer.validate_data([{}], [ColumnMapping("Qty", "quantity", DataType.NUMBER)])
        assert errors[0].message == "Missing value for quantity"


class TestProcessData:
    def test_summary_and_errors(self) -> None:
        rows = [
            {"Amount": "10", "Category": "A"},
            {"Amount": "x", "Category": "B"},
        ]
        mappings = [
            ColumnMapping("Amount", "amount", DataType.NUMBER),
            ColumnMapping("Category", "category"),
        ]
        result = process_data(rows, mappings)
        assert result.columns == ["Amount", "Category"]
        assert result.summary.total == 10.0
        assert result.summary.categories == {"A": 1, "B": 1}
        assert len(result.errors) == 1
        assert result.to_dict()["mappings"][0]["targetField"] == "amount"

    def test_no_rows(self) -> None:
        result = process_data([], [])
        assert result.columns == []
        assert result.summary.count == 0
