"""
Target schema and data models.

Defines the target fields that source columns are mapped into, the two
interchangeable mapping representations, and the typed data structures
carried through the pipeline.

Mapping direction
-----------------
* ``FieldMapping`` / plain dicts are **target → source**.  This is the
  shape persisted and handed to the row mapper and summarizer.
* ``ColumnMapping`` lists are **source → target** records with a declared
  ``DataType``; they are what interactive callers edit.

``reverse_mapping`` and the ``FieldMapping`` helpers convert between them.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Optional


# ---------------------------------------------------------------------------
# Target schema
# ---------------------------------------------------------------------------

class DataType(str, Enum):
    """Column value classification.

    ``UNKNOWN`` is a terminal answer from type inference meaning "not
    enough signal"; it is never a valid ``ColumnMapping.data_type``.
    """

    STRING = "string"
    NUMBER = "number"
    DATE = "date"
    CURRENCY = "currency"
    UNKNOWN = "unknown"


MAPPABLE_TYPES = frozenset(
    {DataType.STRING, DataType.NUMBER, DataType.DATE, DataType.CURRENCY}
)

# Declaration order is the auto-mapper's first tie-break key.
TARGET_FIELDS: tuple[str, ...] = (
    "date",
    "amount",
    "category",
    "description",
    "reference",
    "notes",
    "name",
    "status",
    "check_in",
    "check_out",
    "department",
    "item_name",
    "quantity",
    "unit_price",
    "sku",
    "location",
)

# Data type assumed for a target field when the mapping does not say.
FIELD_DATA_TYPES: Dict[str, DataType] = {
    "date": DataType.DATE,
    "amount": DataType.CURRENCY,
    "unit_price": DataType.CURRENCY,
    "quantity": DataType.NUMBER,
}

ROW_INDEX_KEY = "_rowIndex"

MappedRow = Dict[str, Any]


def field_data_type(target_field: str) -> DataType:
    return FIELD_DATA_TYPES.get(target_field, DataType.STRING)


# ---------------------------------------------------------------------------
# Mapping representations
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ColumnMapping:
    """One source column assigned to one target field."""

    source_column: str
    target_field: str
    data_type: DataType = DataType.STRING

    def __post_init__(self) -> None:
        try:
            dtype = DataType(self.data_type)
        except ValueError:
            raise ValueError(f"Unknown data type: {self.data_type!r}") from None
        if dtype not in MAPPABLE_TYPES:
            raise ValueError(f"Data type {dtype.value!r} cannot be mapped")
        object.__setattr__(self, "data_type", dtype)

    def to_dict(self) -> dict[str, Any]:
        return {
            "sourceColumn": self.source_column,
            "targetField": self.target_field,
            "dataType": self.data_type.value,
        }

    @classmethod
    def from_dict(cls, data: Mapping) -> "ColumnMapping":
        return cls(
            source_column=data["sourceColumn"],
            target_field=data["targetField"],
            data_type=data.get("dataType", DataType.STRING),
        )


class FieldMapping(Mapping):
    """Read-only ``target field → source column`` mapping.

    Insertion order is preserved; the summarizer's field discovery relies
    on it.

    Parameters
    ----------
    data:
        Any ``{target: source}`` mapping or iterable of pairs.

    Raises
    ------
    ValueError
        If a key or value is not a non-empty string.
    """

    __slots__ = ("_data",)

    def __init__(self, data: Optional[Mapping | Iterable] = None) -> None:
        items = dict(data or {})
        for target, source in items.items():
            if not isinstance(target, str) or not target:
                raise ValueError(f"Target field must be a non-empty string: {target!r}")
            if not isinstance(source, str) or not source:
                raise ValueError(
                    f"Source column for {target!r} must be a non-empty string: {source!r}"
                )
        self._data: dict[str, str] = items

    def __getitem__(self, key: str) -> str:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"FieldMapping({self._data!r})"

    @property
    def source_columns(self) -> list[str]:
        return list(self._data.values())

    def reverse(self) -> dict[str, str]:
        """Return ``{source: target}``.  Repeated sources keep the last target."""
        return reverse_mapping(self._data)

    def to_dict(self) -> dict[str, str]:
        return dict(self._data)

    def to_column_mappings(
        self, data_types: Optional[Mapping] = None
    ) -> list[ColumnMapping]:
        """Convert to the ``ColumnMapping`` list form.

        ``data_types`` is keyed by target field; unlisted fields fall back
        to ``FIELD_DATA_TYPES``.
        """
        data_types = data_types or {}
        return [
            ColumnMapping(
                source_column=source,
                target_field=target,
                data_type=data_types.get(target, field_data_type(target)),
            )
            for target, source in self._data.items()
        ]

    @classmethod
    def from_column_mappings(
        cls, mappings: Iterable[ColumnMapping]
    ) -> "FieldMapping":
        return cls((m.target_field, m.source_column) for m in mappings)


def reverse_mapping(mapping: Mapping) -> dict[str, str]:
    """Swap a mapping's direction (``target → source`` ⇄ ``source → target``)."""
    return {source: target for target, source in mapping.items()}


def merge_mappings(existing: Mapping, new: Mapping) -> dict[str, str]:
    """Union of two mappings; entries in ``new`` win."""
    return {**existing, **new}


def is_mapping_empty(mapping: Mapping) -> bool:
    return len(mapping) == 0


# ---------------------------------------------------------------------------
# Pipeline data models
# ---------------------------------------------------------------------------

@dataclass
class Summary:
    """Aggregates derived from mapped rows.

    ``average``, ``period`` and ``categories`` stay ``None`` when no
    matching field exists; ``to_dict`` omits them rather than zeroing.
    """

    total: float = 0.0
    count: int = 0
    average: Optional[float] = None
    period: Optional[str] = None
    categories: Optional[dict[str, int]] = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"total": self.total, "count": self.count}
        if self.average is not None:
            out["average"] = self.average
        if self.period is not None:
            out["period"] = self.period
        if self.categories is not None:
            out["categories"] = dict(self.categories)
        return out


@dataclass
class ValidationError:
    """A cell that is empty or fails its mapping's declared data type."""

    row: int
    column: str
    message: str
    value: Any = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "row": self.row,
            "column": self.column,
            "message": self.message,
            "value": self.value,
        }


@dataclass
class ReportResult:
    """Report artifact handed to export collaborators."""

    report_id: str
    summary: Summary
    data: List[MappedRow] = field(default_factory=list)
    mapping: Dict[str, str] = field(default_factory=dict)
    generated_at: str = ""
    errors: List[ValidationError] = field(default_factory=list)
    mapping_errors: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return len(self.mapping_errors) == 0

    @property
    def headers(self) -> list[str]:
        """Table headers for exporters: the mapping's target fields."""
        return list(self.mapping.keys())

    def to_dict(self, row_limit: Optional[int] = None) -> dict[str, Any]:
        rows = self.data if row_limit is None else self.data[:row_limit]
        return {
            "success": self.success,
            "reportId": self.report_id,
            "summary": self.summary.to_dict(),
            "data": rows,
            "mapping": dict(self.mapping),
            "generatedAt": self.generated_at,
            "errors": [e.to_dict() for e in self.errors],
            "mappingErrors": self.mapping_errors,
        }
