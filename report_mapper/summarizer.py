"""
Report Summarization Layer.

Derives aggregate statistics from mapped rows and, separately, collects
per-cell validation errors from raw rows.  Neither pass aborts on bad
data: unreadable amounts count as ``0``, unreadable dates are skipped, and
bad cells become ``ValidationError`` records so partial results are
always available.

Field discovery
---------------
Unless overridden through ``SummaryOptions``, the first mapping key (in
mapping order) whose lowercase name contains

* ``amount`` or ``total``  is the amount field,
* ``date`` or ``time``     is the date field,
* ``category`` or ``type`` is the category field.

Statistics
----------
* ``total`` / ``average``: sum of ``parse_amount`` over all rows; a row
  counts toward the average if its amount parses non-zero **or** its raw
  value is truthy (so ``"0"`` and ``"n/a"`` count, ``""`` does not).
* ``period``: earliest to latest parseable date, needing at least two.
* ``categories``: occurrences per category value, blanks grouped under
  the uncategorized label.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from report_mapper.config import ReportConfig
from report_mapper.logging_setup import get_logger
from report_mapper.normalizer import (
    is_empty,
    is_truthy,
    parse_amount,
    parse_date,
    to_number,
)
from report_mapper.row_mapper import apply_mapping
from report_mapper.schema import (
    ColumnMapping,
    DataType,
    FieldMapping,
    MappedRow,
    Summary,
    ValidationError,
)

logger = get_logger("summarizer")

_AMOUNT_HINTS = ("amount", "total")
_DATE_HINTS = ("date", "time")
_CATEGORY_HINTS = ("category", "type")


@dataclass(frozen=True)
class SummaryOptions:
    """Explicit field choices that bypass discovery."""

    amount_field: Optional[str] = None
    date_field: Optional[str] = None
    category_field: Optional[str] = None


@dataclass
class ProcessedData:
    """Interactive-path result: summary and cell errors side by side."""

    columns: List[str] = field(default_factory=list)
    mappings: List[ColumnMapping] = field(default_factory=list)
    summary: Summary = field(default_factory=Summary)
    errors: List[ValidationError] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "columns": self.columns,
            "mappings": [m.to_dict() for m in self.mappings],
            "summary": self.summary.to_dict(),
            "errors": [e.to_dict() for e in self.errors],
        }


def find_field(mapping: Mapping[str, str], hints: Tuple[str, ...]) -> Optional[str]:
    """First mapping key whose lowercase name contains any of *hints*."""
    for key in mapping:
        lowered = key.lower()
        if any(h in lowered for h in hints):
            return key
    return None


class Summarizer:
    """Computes ``Summary`` objects and cell validation errors.

    Parameters
    ----------
    config:
        Supplies the uncategorized label.
    """

    def __init__(self, config: Optional[ReportConfig] = None) -> None:
        self._config = config or ReportConfig()

    # ------------------------------------------------------------------ #
    # Summary
    # ------------------------------------------------------------------ #

    def summarize(
        self,
        data: Sequence[MappedRow],
        mapping: Mapping[str, str],
        options: Optional[SummaryOptions] = None,
    ) -> Summary:
        """Aggregate *data* (rows keyed by target field)."""
        options = options or SummaryOptions()
        summary = Summary(total=0.0, count=len(data))

        amount_field = options.amount_field or find_field(mapping, _AMOUNT_HINTS)
        if amount_field:
            total, valid_count = self._total(data, amount_field)
            summary.total = total
            summary.average = total / valid_count if valid_count > 0 else 0.0
            logger.debug("Amount: total=%s average=%s", total, summary.average)

        date_field = options.date_field or find_field(mapping, _DATE_HINTS)
        if date_field and data:
            summary.period = self._period(data, date_field)

        category_field = options.category_field or find_field(mapping, _CATEGORY_HINTS)
        if category_field:
            summary.categories = self._categories(data, category_field)
            logger.debug("Categories: %d distinct", len(summary.categories))

        logger.info(
            "Summary generated: count=%d, total=%s, categories=%s",
            summary.count,
            summary.total,
            summary.categories is not None,
        )
        return summary

    @staticmethod
    def _total(data: Iterable[MappedRow], amount_field: str) -> Tuple[float, int]:
        total = 0.0
        valid_count = 0
        for row in data:
            raw = row.get(amount_field)
            value = parse_amount(raw)
            if value != 0 or is_truthy(raw):
                total += value
                valid_count += 1
        return total, valid_count

    @staticmethod
    def _period(data: Iterable[MappedRow], date_field: str) -> Optional[str]:
        dates: List[datetime] = []
        for row in data:
            parsed = parse_date(row.get(date_field))
            if parsed is not None:
                dates.append(parsed)

        if len(dates) < 2:
            return None

        dates.sort()
        return f"{dates[0].date().isoformat()} - {dates[-1].date().isoformat()}"

    def _categories(
        self, data: Iterable[MappedRow], category_field: str
    ) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for row in data:
            label = self._category_label(row.get(category_field))
            counts[label] = counts.get(label, 0) + 1
        return counts

    def _category_label(self, value: Any) -> str:
        if not is_truthy(value):
            return self._config.uncategorized_label
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        return str(value)

    # ------------------------------------------------------------------ #
    # Cell validation
    # ------------------------------------------------------------------ #

    def validate_data(
        self,
        rows: Sequence[Mapping[str, Any]],
        mappings: Sequence[ColumnMapping],
    ) -> List[ValidationError]:
        """Check raw rows (keyed by source column) against each mapping."""
        errors: List[ValidationError] = []

        for index, row in enumerate(rows, start=1):
            for m in mappings:
                value = row.get(m.source_column)
                message = self._check_cell(value, m)
                if message:
                    errors.append(
                        ValidationError(
                            row=index,
                            column=m.source_column,
                            message=message,
                            value=value,
                        )
                    )

        if errors:
            logger.warning("Cell validation found %d error(s)", len(errors))
        return errors

    @staticmethod
    def _check_cell(value: Any, mapping: ColumnMapping) -> Optional[str]:
        if is_empty(value):
            return f"Missing value for {mapping.target_field}"

        if mapping.data_type in (DataType.NUMBER, DataType.CURRENCY):
            if to_number(value) is None:
                return f"Invalid number format for {mapping.target_field}"
        elif mapping.data_type == DataType.DATE:
            if parse_date(value) is None:
                return f"Invalid date format for {mapping.target_field}"
        return None

    # ------------------------------------------------------------------ #
    # Interactive path
    # ------------------------------------------------------------------ #

    def process_data(
        self,
        rows: Sequence[Mapping[str, Any]],
        mappings: Sequence[ColumnMapping],
    ) -> ProcessedData:
        """Validate and summarise raw rows under a ``ColumnMapping`` list."""
        field_mapping = FieldMapping.from_column_mappings(mappings)
        mapped = apply_mapping(rows, field_mapping)
        return ProcessedData(
            columns=list(rows[0].keys()) if rows else [],
            mappings=list(mappings),
            summary=self.summarize(mapped, field_mapping),
            errors=self.validate_data(rows, mappings),
        )


_DEFAULT = Summarizer()


def generate_financial_summary(
    data: Sequence[MappedRow],
    mapping: Mapping[str, str],
    options: Optional[SummaryOptions] = None,
) -> Summary:
    return _DEFAULT.summarize(data, mapping, options)


def validate_data(
    rows: Sequence[Mapping[str, Any]],
    mappings: Sequence[ColumnMapping],
) -> List[ValidationError]:
    return _DEFAULT.validate_data(rows, mappings)


def process_data(
    rows: Sequence[Mapping[str, Any]],
    mappings: Sequence[ColumnMapping],
) -> ProcessedData:
    return _DEFAULT.process_data(rows, mappings)
