"""
Pipeline Orchestrator.

The central entry point that wires together every layer:

    Table  →  Auto-Mapper (if no mapping given)  →  Mapping Validator
           →  Row Mapper  →  Summarizer  →  Cell Validation  →  ReportResult

Usage
-----
>>> from report_mapper.pipeline import ReportPipeline
>>> from report_mapper.config import PipelineConfig
>>>
>>> pipe = ReportPipeline(PipelineConfig())
>>> report = pipe.report_from_csv("Date,Amount\\n2024-01-01,100\\n")
>>> print(report.to_dict()["summary"])
"""

from __future__ import annotations

import random
import string
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from report_mapper.auto_mapper import (
    AutoMapResult,
    PassThroughMappingStrategy,
    StrictMappingStrategy,
    suggest_mapping,
)
from report_mapper.config import PipelineConfig
from report_mapper.errors import InputMissingError, MappingInvalidError
from report_mapper.logging_setup import configure_logging, get_logger
from report_mapper.patterns import DEFAULT_PATTERNS, PatternTable
from report_mapper.row_mapper import apply_mapping
from report_mapper.schema import FieldMapping, ReportResult, Summary
from report_mapper.summarizer import Summarizer, SummaryOptions
from report_mapper.table_reader import (
    ParsedTable,
    read_csv,
    read_dataframe,
    read_excel,
    read_json,
    read_table,
)
from report_mapper.templates import DEFAULT_REGISTRY, TemplateRegistry
from report_mapper.type_inference import detect_column_types
from report_mapper.validator import MappingStats, MappingValidationResult, MappingValidator

logger = get_logger("pipeline")

_ID_ALPHABET = string.ascii_lowercase + string.digits


def generate_report_id() -> str:
    """``report_<epoch ms>_<7 random base36 chars>``."""
    suffix = "".join(random.choices(_ID_ALPHABET, k=7))
    return f"report_{int(time.time() * 1000)}_{suffix}"


class ReportPipeline:
    """Orchestrates auto-mapping, validation and summarisation.

    Parameters
    ----------
    config:
        All tuneable knobs.  Defaults suit the built-in templates.
    registry:
        Template table.  Defaults to the built-in templates.
    patterns:
        Column pattern table.  ``config.custom_pattern_path`` is merged on
        top of it when set.
    """

    def __init__(
        self,
        config: Optional[PipelineConfig] = None,
        registry: Optional[TemplateRegistry] = None,
        patterns: Optional[PatternTable] = None,
    ) -> None:
        self._config = config or PipelineConfig()

        configure_logging(level=self._config.log_level)

        self._registry = registry or DEFAULT_REGISTRY
        self._patterns = patterns or DEFAULT_PATTERNS
        if self._config.custom_pattern_path:
            self._patterns = PatternTable.from_json(
                self._config.custom_pattern_path, base=self._patterns
            )

        self._strategies = {
            StrictMappingStrategy.name: StrictMappingStrategy(self._patterns),
            PassThroughMappingStrategy.name: PassThroughMappingStrategy(),
        }
        self._validator = MappingValidator(self._registry, self._config.matching)
        self._summarizer = Summarizer(self._config.report)

        logger.info(
            "Pipeline initialised: templates=%d, pattern fields=%d, strict=%s",
            len(self._registry.list_templates()),
            len(self._patterns),
            self._config.matching.strict_mode,
        )

    @property
    def config(self) -> PipelineConfig:
        return self._config

    @property
    def registry(self) -> TemplateRegistry:
        return self._registry

    # ------------------------------------------------------------------ #
    # Mapping
    # ------------------------------------------------------------------ #

    def auto_map(
        self,
        columns: Sequence[str],
        strategy: str = StrictMappingStrategy.name,
        template_id: Optional[str] = None,
    ) -> AutoMapResult:
        """Propose a mapping for *columns*.

        The strict strategy scores against every pattern field unless a
        template narrows it; the pass-through strategy maps the template's
        fields (the default template when none is named).

        Raises
        ------
        ValueError
            On an unknown strategy name.
        TemplateNotFoundError
            On an unknown template id.
        """
        if strategy not in self._strategies:
            raise ValueError(
                f"Unknown mapping strategy {strategy!r}; "
                f"expected one of {sorted(self._strategies)}"
            )

        fields = None
        if template_id is not None:
            fields = self._registry.require(template_id).fields
        elif strategy == PassThroughMappingStrategy.name:
            fields = self._registry.require(self._config.default_template_id).fields

        return self._strategies[strategy].map(list(columns), fields)

    def suggest(
        self,
        target_field: str,
        columns: Sequence[str],
        current_mapping: Optional[Mapping[str, str]] = None,
    ) -> list:
        return suggest_mapping(target_field, columns, current_mapping, self._patterns)

    def validate(
        self,
        mapping: Mapping[str, str],
        columns: Sequence[str],
        template_id: Optional[str] = None,
    ) -> MappingValidationResult:
        """Check *mapping* against *columns* and the template's required fields."""
        return self._validator.validate_for_template(FieldMapping(mapping), columns, template_id)

    def mapping_stats(self, mapping: Mapping[str, str], template_id: str) -> MappingStats:
        return self._validator.stats_for_template(mapping, template_id)

    # ------------------------------------------------------------------ #
    # Report generation
    # ------------------------------------------------------------------ #

    def generate_report(
        self,
        columns: Sequence[str],
        rows: Sequence[Mapping[str, Any]],
        mapping: Optional[Mapping[str, str]] = None,
        template_id: Optional[str] = None,
        options: Optional[SummaryOptions] = None,
    ) -> ReportResult:
        """Run the full pipeline over an already-parsed table.

        When *mapping* is ``None`` the strict auto-mapper proposes one.  An
        invalid mapping yields ``success=False`` with ``mapping_errors``, or
        raises ``MappingInvalidError`` in strict mode.

        Raises
        ------
        InputMissingError
            If *columns* is empty.
        TemplateNotFoundError
            If *template_id* is not registered.
        """
        if not columns:
            raise InputMissingError("No columns found")

        report_id = generate_report_id()
        generated_at = datetime.now(timezone.utc).isoformat()

        if mapping is None:
            mapping = self.auto_map(columns, template_id=template_id).mapping
        field_mapping = FieldMapping(mapping)

        check = self._validator.validate_for_template(field_mapping, columns, template_id)
        if not check.valid:
            if self._config.matching.strict_mode:
                raise MappingInvalidError(check.errors)
            logger.warning("Report %s not generated: %s", report_id, check.error)
            return ReportResult(
                report_id=report_id,
                summary=Summary(count=len(rows)),
                mapping=field_mapping.to_dict(),
                generated_at=generated_at,
                mapping_errors=list(check.errors),
            )

        data = apply_mapping(rows, field_mapping)
        summary = self._summarizer.summarize(data, field_mapping, options)
        cell_errors = self._summarizer.validate_data(
            rows, field_mapping.to_column_mappings()
        )

        report = ReportResult(
            report_id=report_id,
            summary=summary,
            data=data[: self._config.report.max_stored_rows],
            mapping=field_mapping.to_dict(),
            generated_at=generated_at,
            errors=cell_errors,
        )

        logger.info(
            "Report %s complete: rows=%d, fields=%d, cell errors=%d",
            report_id,
            summary.count,
            len(field_mapping),
            len(cell_errors),
        )
        return report

    def report_from_table(
        self,
        table: ParsedTable,
        mapping: Optional[Mapping[str, str]] = None,
        template_id: Optional[str] = None,
    ) -> ReportResult:
        return self.generate_report(table.columns, table.rows, mapping, template_id)

    # ------------------------------------------------------------------ #
    # Convenience entry points (one per input format)
    # ------------------------------------------------------------------ #

    def report_from_csv(
        self,
        source: Union[str, Path],
        mapping: Optional[Mapping[str, str]] = None,
        template_id: Optional[str] = None,
    ) -> ReportResult:
        """Report from a CSV file path or CSV text."""
        return self.report_from_table(read_csv(source), mapping, template_id)

    def report_from_excel(
        self,
        source: Union[str, Path],
        mapping: Optional[Mapping[str, str]] = None,
        template_id: Optional[str] = None,
    ) -> ReportResult:
        return self.report_from_table(read_excel(source), mapping, template_id)

    def report_from_json(
        self,
        source: Union[str, Path],
        mapping: Optional[Mapping[str, str]] = None,
        template_id: Optional[str] = None,
    ) -> ReportResult:
        return self.report_from_table(read_json(source), mapping, template_id)

    def report_from_dataframe(
        self,
        df: Any,
        mapping: Optional[Mapping[str, str]] = None,
        template_id: Optional[str] = None,
    ) -> ReportResult:
        return self.report_from_table(read_dataframe(df), mapping, template_id)

    def report_from_file(
        self,
        path: Union[str, Path],
        mapping: Optional[Mapping[str, str]] = None,
        template_id: Optional[str] = None,
    ) -> ReportResult:
        """Report from any supported file, chosen by extension."""
        return self.report_from_table(read_table(path), mapping, template_id)

    # ------------------------------------------------------------------ #
    # Utility
    # ------------------------------------------------------------------ #

    @staticmethod
    def column_types(rows: List[Mapping[str, Any]]) -> Dict[str, str]:
        """Inferred data type per column, as plain strings."""
        return {col: dtype.value for col, dtype in detect_column_types(rows).items()}
