"""
Mapping Validation Layer.

Gate checks run before a mapping is applied to rows.  None of them raise
on bad input: each returns a result object with ``valid`` plus details,
and the caller decides what to do (HTTP status, strict-mode exception).

Checks
------
1. **Source columns**: every column a mapping references must exist in
   the file.  Unknown columns get a "did you mean" hint from ``rapidfuzz``
   when a close enough available column exists.
2. **Required fields**: every required target field must be mapped.
3. **Pre-flight columns**: case-insensitive check that a file has the
   columns a caller needs, independent of any mapping.
4. **Completion statistics**: how much of a template a mapping covers.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence

from rapidfuzz import fuzz, process

from report_mapper.config import MatchingConfig
from report_mapper.logging_setup import get_logger
from report_mapper.normalizer import normalize_column
from report_mapper.templates import DEFAULT_REGISTRY, TemplateRegistry

logger = get_logger("validator")


@dataclass
class MappingValidationResult:
    valid: bool
    error: Optional[str] = None
    invalid_columns: List[str] = field(default_factory=list)
    missing_fields: List[str] = field(default_factory=list)
    suggestions: Dict[str, str] = field(default_factory=dict)
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        out: dict = {"valid": self.valid}
        if self.error is not None:
            out["error"] = self.error
        if self.invalid_columns:
            out["invalidColumns"] = self.invalid_columns
        if self.missing_fields:
            out["missingFields"] = self.missing_fields
        if self.suggestions:
            out["suggestions"] = self.suggestions
        return out


@dataclass
class ColumnValidationResult:
    valid: bool
    missing: List[str] = field(default_factory=list)
    available: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"valid": self.valid, "missing": self.missing, "available": self.available}


@dataclass
class MappingStats:
    total: int
    required_mapped: int
    optional_mapped: int
    required_total: int
    optional_total: int
    completion: int  # percent

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "requiredMapped": self.required_mapped,
            "optionalMapped": self.optional_mapped,
            "requiredTotal": self.required_total,
            "optionalTotal": self.optional_total,
            "completion": self.completion,
        }


# ---------------------------------------------------------------------------
# Individual checks
# ---------------------------------------------------------------------------

def suggest_column(
    name: str,
    available_columns: Sequence[str],
    threshold: float = 80.0,
) -> Optional[str]:
    """Closest available column to *name*, or ``None`` below *threshold*."""
    if not name or not available_columns:
        return None

    choices = {normalize_column(c): c for c in available_columns}
    best = process.extractOne(
        normalize_column(name),
        list(choices.keys()),
        scorer=fuzz.token_sort_ratio,
        score_cutoff=threshold,
    )
    if best is None:
        return None
    key, score, _ = best
    logger.debug("Suggest %r for %r (score=%.1f)", choices[key], name, score)
    return choices[key]


def validate_mapping(
    mapping: Mapping[str, str],
    available_columns: Sequence[str],
    *,
    fuzzy_threshold: float = 80.0,
) -> MappingValidationResult:
    """Every source column in *mapping* must be in *available_columns*."""
    available = set(available_columns)
    invalid = [col for col in mapping.values() if col not in available]

    if not invalid:
        return MappingValidationResult(valid=True)

    suggestions: Dict[str, str] = {}
    for col in invalid:
        hint = suggest_column(col, available_columns, fuzzy_threshold)
        if hint is not None:
            suggestions[col] = hint

    logger.warning("Invalid columns in mapping: %s", invalid)
    return MappingValidationResult(
        valid=False,
        error=f"Invalid columns: {', '.join(invalid)}",
        errors=[f"Invalid columns: {', '.join(invalid)}"],
        invalid_columns=invalid,
        suggestions=suggestions,
    )


def validate_required_fields(
    mapping: Mapping[str, str],
    required_fields: Sequence[str],
) -> MappingValidationResult:
    """Every field in *required_fields* must be a key of *mapping*."""
    missing = [f for f in required_fields if f not in mapping]

    if not missing:
        return MappingValidationResult(valid=True)

    logger.warning("Required fields not mapped: %s", missing)
    return MappingValidationResult(
        valid=False,
        error=f"Required fields not mapped: {', '.join(missing)}",
        errors=[f"Required fields not mapped: {', '.join(missing)}"],
        missing_fields=missing,
    )


def validate_columns(
    csv_columns: Sequence[str],
    required_columns: Sequence[str],
) -> ColumnValidationResult:
    """Case-insensitive, whitespace-trimmed presence check.

    ``missing`` holds the normalised names of absent columns; ``available``
    is *csv_columns* unchanged.
    """
    present = {normalize_column(c) for c in csv_columns}
    missing = [
        req for req in (normalize_column(c) for c in required_columns)
        if req not in present
    ]
    return ColumnValidationResult(
        valid=not missing,
        missing=missing,
        available=list(csv_columns),
    )


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def get_mapping_stats(
    mapping: Mapping[str, str],
    required_fields: Sequence[str],
    optional_fields: Sequence[str],
) -> MappingStats:
    required_mapped = sum(1 for f in required_fields if f in mapping)
    optional_mapped = sum(1 for f in optional_fields if f in mapping)
    required_total = len(required_fields)
    optional_total = len(optional_fields)

    denominator = required_total + optional_total
    mapped = required_mapped + optional_mapped
    completion = _round_half_up(mapped / denominator * 100) if denominator else 0

    return MappingStats(
        total=mapped,
        required_mapped=required_mapped,
        optional_mapped=optional_mapped,
        required_total=required_total,
        optional_total=optional_total,
        completion=completion,
    )


# ---------------------------------------------------------------------------
# Template-aware validator
# ---------------------------------------------------------------------------

class MappingValidator:
    """Runs the source-column and required-field checks for a template.

    Parameters
    ----------
    registry:
        Template lookups.  Defaults to the built-in registry.
    config:
        Supplies the fuzzy suggestion threshold.
    """

    def __init__(
        self,
        registry: Optional[TemplateRegistry] = None,
        config: Optional[MatchingConfig] = None,
    ) -> None:
        self._registry = registry or DEFAULT_REGISTRY
        self._config = config or MatchingConfig()

    def validate_for_template(
        self,
        mapping: Mapping[str, str],
        available_columns: Sequence[str],
        template_id: Optional[str] = None,
    ) -> MappingValidationResult:
        """Combine both checks; *template_id* ``None`` skips required fields.

        Raises
        ------
        TemplateNotFoundError
            If *template_id* is not registered.
        """
        columns = validate_mapping(
            mapping,
            available_columns,
            fuzzy_threshold=self._config.suggestion_threshold,
        )

        required = MappingValidationResult(valid=True)
        if template_id is not None:
            template = self._registry.require(template_id)
            required = validate_required_fields(mapping, template.required_fields)

        errors = [r.error for r in (columns, required) if r.error]
        return MappingValidationResult(
            valid=columns.valid and required.valid,
            error="; ".join(errors) if errors else None,
            invalid_columns=columns.invalid_columns,
            missing_fields=required.missing_fields,
            suggestions=columns.suggestions,
            errors=errors,
        )

    def stats_for_template(
        self, mapping: Mapping[str, str], template_id: str
    ) -> MappingStats:
        template = self._registry.require(template_id)
        return get_mapping_stats(
            mapping, template.required_fields, template.optional_fields
        )
