"""
Auto-Mapping Layer.

Proposes ``target field → source column`` assignments without user input.
Two strategies share the ``MappingStrategy`` interface and differ in what
happens to columns nothing claims:

``StrictMappingStrategy`` (server-side)
    Regex scoring via ``ColumnMatcher`` plus deterministic greedy
    assignment.  Unclaimed columns are reported in ``unmatched`` and
    dropped from the mapping.

``PassThroughMappingStrategy`` (interactive)
    Keyword substring search per requested field.  Every unclaimed column
    is kept as a custom field mapped to itself, so nothing is dropped.

Strict algorithm
----------------
1. Score every ``(field, column)`` pair; keep scores above 0.  Pairs are
   generated field-major (declaration order) then column-major (input
   order).
2. Stable-sort by score, descending.  Ties keep the generation order.
3. Walk the sorted list; take a pair only if neither its column nor its
   field has been taken yet.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from report_mapper.logging_setup import get_logger
from report_mapper.matcher import (
    EXACT_SCORE,
    PARTIAL_SCORE,
    ColumnMatcher,
    calculate_match_score,
)
from report_mapper.normalizer import normalize_column
from report_mapper.patterns import DEFAULT_KEYWORDS, DEFAULT_PATTERNS, KeywordTable, PatternTable
from report_mapper.schema import ROW_INDEX_KEY, ColumnMapping, DataType, field_data_type

logger = get_logger("auto_mapper")


@dataclass
class AutoMapResult:
    """Outcome of one auto-mapping run."""

    mapping: Dict[str, str] = field(default_factory=dict)  # target → source
    confidence: Dict[str, float] = field(default_factory=dict)
    unmatched: List[str] = field(default_factory=list)
    column_mappings: List[ColumnMapping] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "mapping": dict(self.mapping),
            "confidence": dict(self.confidence),
            "unmatched": list(self.unmatched),
            "columnMappings": [m.to_dict() for m in self.column_mappings],
        }


class MappingStrategy(ABC):
    """Capability: map source columns onto target fields."""

    name: str = ""

    @abstractmethod
    def map(
        self,
        columns: Sequence[str],
        fields: Optional[Iterable[str]] = None,
    ) -> AutoMapResult:
        """Propose a mapping for *columns* over *fields* (all when ``None``)."""


class StrictMappingStrategy(MappingStrategy):
    """Conflict-free one-to-one mapping; unclaimed columns are dropped.

    Parameters
    ----------
    patterns:
        Pattern table to score with.  Defaults to the built-in table.
    """

    name = "strict"

    def __init__(self, patterns: Optional[PatternTable] = None) -> None:
        self._matcher = ColumnMatcher(patterns)

    def map(
        self,
        columns: Sequence[str],
        fields: Optional[Iterable[str]] = None,
    ) -> AutoMapResult:
        logger.debug("Starting strict auto-mapping for %d column(s)", len(columns))

        candidates = self._matcher.candidates(columns, fields)
        # sorted() is stable, which pins the tie-break.
        ranked = sorted(candidates, key=lambda c: -c.score)

        result = AutoMapResult()
        claimed: set[str] = set()

        for cand in ranked:
            if cand.column in claimed or cand.target in result.mapping:
                continue
            result.mapping[cand.target] = cand.column
            result.confidence[cand.target] = cand.score
            claimed.add(cand.column)
            logger.debug(
                "Mapped %r → %r (score=%.1f)", cand.column, cand.target, cand.score
            )

        result.unmatched = [c for c in columns if c not in claimed]
        result.column_mappings = [
            ColumnMapping(source, target, field_data_type(target))
            for target, source in result.mapping.items()
        ]

        if result.unmatched:
            logger.warning("Unmatched columns: %s", ", ".join(result.unmatched))
        logger.info(
            "Auto-mapping complete: mapped=%d, unmatched=%d",
            len(result.mapping),
            len(result.unmatched),
        )
        return result


class PassThroughMappingStrategy(MappingStrategy):
    """Keyword mapping that keeps every unclaimed column as a custom field.

    Parameters
    ----------
    keywords:
        Keyword table.  Defaults to the built-in table.
    """

    name = "pass_through"

    def __init__(self, keywords: Optional[KeywordTable] = None) -> None:
        self._keywords = keywords or DEFAULT_KEYWORDS

    def map(
        self,
        columns: Sequence[str],
        fields: Optional[Iterable[str]] = None,
    ) -> AutoMapResult:
        fields = list(fields) if fields is not None else []
        result = AutoMapResult()
        claimed: set[str] = set()
        data_types: Dict[str, DataType] = {}

        for target in fields:
            words = self._keywords.keywords_for(target)
            if not words or target in result.mapping:
                continue
            hit = self._first_hit(columns, words, claimed)
            if hit is None:
                continue
            column, score = hit
            result.mapping[target] = column
            result.confidence[target] = score
            data_types[target] = DataType(self._keywords.data_type_for(target))
            claimed.add(column)
            logger.debug("Mapped %r → %r by keyword", column, target)

        for column in columns:
            if column in claimed:
                continue
            target = _custom_field_name(column, result.mapping)
            result.mapping[target] = column
            data_types[target] = self.infer_data_type(column)
            claimed.add(column)
            logger.debug(
                "Passed %r through as custom field %r (%s)",
                column,
                target,
                data_types[target].value,
            )

        result.column_mappings = [
            ColumnMapping(source, target, data_types[target])
            for target, source in result.mapping.items()
        ]
        logger.info(
            "Pass-through auto-mapping complete: template fields=%d, custom=%d",
            len(result.confidence),
            len(result.mapping) - len(result.confidence),
        )
        return result

    def infer_data_type(self, column: str) -> DataType:
        """Guess a custom column's type from keywords in its name."""
        name = normalize_column(column)
        for source_field in ("date", "amount", "quantity"):
            if any(w in name for w in self._keywords.keywords_for(source_field)):
                return DataType(self._keywords.data_type_for(source_field))
        return DataType.STRING

    @staticmethod
    def _first_hit(
        columns: Sequence[str], words: Tuple[str, ...], claimed: set
    ) -> Optional[Tuple[str, float]]:
        for column in columns:
            if column in claimed:
                continue
            name = normalize_column(column)
            if name in words:
                return column, EXACT_SCORE
            if any(w in name for w in words):
                return column, PARTIAL_SCORE
        return None


def _custom_field_name(column: str, taken: Mapping[str, str]) -> str:
    if column not in taken and column != ROW_INDEX_KEY:
        return column
    n = 2
    while f"{column}_{n}" in taken:
        n += 1
    return f"{column}_{n}"


# ---------------------------------------------------------------------------
# Module-level conveniences (built-in tables)
# ---------------------------------------------------------------------------

STRATEGIES = {
    StrictMappingStrategy.name: StrictMappingStrategy,
    PassThroughMappingStrategy.name: PassThroughMappingStrategy,
}


def get_strategy(name: str) -> MappingStrategy:
    """Instantiate a strategy by name (``"strict"`` / ``"pass_through"``)."""
    try:
        return STRATEGIES[name]()
    except KeyError:
        raise ValueError(
            f"Unknown mapping strategy {name!r}; expected one of {sorted(STRATEGIES)}"
        ) from None


def auto_map_columns(
    columns: Sequence[str],
    strategy: Optional[MappingStrategy] = None,
    fields: Optional[Iterable[str]] = None,
) -> AutoMapResult:
    """Auto-map *columns*; strict over every target field by default."""
    return (strategy or StrictMappingStrategy()).map(columns, fields)


def suggest_mapping(
    target_field: str,
    columns: Sequence[str],
    current_mapping: Optional[Mapping[str, str]] = None,
    patterns: Optional[PatternTable] = None,
) -> List[Tuple[str, float]]:
    """Rank candidate columns for one field, skipping columns already used.

    Returns ``[(column, score), ...]`` best first; ties keep input order.
    An unknown field yields ``[]``.
    """
    family = (patterns or DEFAULT_PATTERNS).patterns_for(target_field)
    if not family:
        return []

    used = set((current_mapping or {}).values())
    scored = []
    for column in columns:
        if column in used:
            continue
        score = calculate_match_score(column, family)
        if score > 0:
            scored.append((column, score))
    return sorted(scored, key=lambda s: -s[1])
