"""
Configuration module for Report Mapper.

All tuneable parameters (thresholds, row caps, placeholders, paths) live
here.  Nothing is hard-coded in business logic modules.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


@dataclass(frozen=True)
class MatchingConfig:
    """Controls mapping behaviour and how mapping failures are surfaced."""

    # Minimum rapidfuzz similarity (0–100) for a "did you mean" hint when a
    # mapping references a column the file does not have.
    suggestion_threshold: float = 80.0

    # When True the pipeline raises ``MappingInvalidError`` instead of
    # returning a failed ``ReportResult``.
    strict_mode: bool = False


@dataclass(frozen=True)
class ReportConfig:
    """Controls report assembly and rendering."""

    # Rows returned to interactive callers
    max_preview_rows: int = 100

    # Rows kept on a generated report
    max_stored_rows: int = 1000

    # Rendered in place of missing cells by the exporters
    placeholder: str = "-"

    # Category label used for rows with an empty category value
    uncategorized_label: str = "Uncategorized"


@dataclass(frozen=True)
class PipelineConfig:
    """Top-level configuration aggregating all sub-configs."""

    matching: MatchingConfig = field(default_factory=MatchingConfig)
    report: ReportConfig = field(default_factory=ReportConfig)

    log_level: int = logging.INFO

    # Optional JSON file ``{field: [regex, ...]}`` merged into the built-in
    # pattern table when the pipeline is constructed.
    custom_pattern_path: Optional[Path] = None

    # Template whose fields the pass-through strategy maps when the caller names none
    default_template_id: str = "financial-summary"
