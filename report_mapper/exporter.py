"""
Report Exporters.

Serialises a ``ReportResult`` for download.  Every exporter reads the
mapping's keys as table headers and ``row[key]`` as cell values, and
renders missing cells as the configured placeholder.

* ``to_xlsx``: openpyxl workbook with "Report Data" and "Summary" sheets
* ``to_csv_string``: the data table only
* ``to_json``: the full report dict
"""

from __future__ import annotations

import csv
import json
from io import StringIO
from pathlib import Path
from typing import Any, List, Optional, Union

from openpyxl import Workbook
from openpyxl.styles import Font

from report_mapper.config import ReportConfig
from report_mapper.logging_setup import get_logger
from report_mapper.schema import ReportResult

logger = get_logger("exporter")

SUPPORTED_FORMATS = ("xlsx", "csv", "json")


class ReportExporter:
    """Renders reports in the supported formats.

    Parameters
    ----------
    config:
        Supplies the placeholder for missing cells.
    """

    def __init__(self, config: Optional[ReportConfig] = None) -> None:
        self._config = config or ReportConfig()

    def format_value(self, value: Any) -> Any:
        if value is None:
            return self._config.placeholder
        return value

    def table(self, report: ReportResult) -> List[List[Any]]:
        """Header row followed by one row per mapped record."""
        headers = report.headers
        rows: List[List[Any]] = [list(headers)]
        for record in report.data:
            rows.append([self.format_value(record.get(h)) for h in headers])
        return rows

    # ------------------------------------------------------------------ #
    # Formats
    # ------------------------------------------------------------------ #

    def to_xlsx(self, report: ReportResult, path: Union[str, Path]) -> Path:
        """Write an .xlsx workbook to *path* and return the path."""
        path = Path(path)
        wb = Workbook()

        data_ws = wb.active
        data_ws.title = "Report Data"
        for row in self.table(report):
            data_ws.append(row)
        for cell in data_ws[1]:
            cell.font = Font(bold=True)

        summary = report.summary
        summary_ws = wb.create_sheet("Summary")
        summary_ws.append(["Report ID", report.report_id])
        summary_ws.append(["Generated At", report.generated_at])
        summary_ws.append(["Total Records", summary.count])
        summary_ws.append([])
        summary_ws.append(["Summary"])
        summary_ws.append(["Total Amount", summary.total])
        summary_ws.append([
            "Average Amount",
            summary.average if summary.average is not None else "N/A",
        ])
        summary_ws.append(["Period", summary.period or "N/A"])
        summary_ws.append([])
        summary_ws.append(["Category Breakdown"])
        summary_ws.append(["Category", "Count"])
        for category, count in (summary.categories or {}).items():
            summary_ws.append([category, count])

        wb.save(path)
        logger.info("Exported %s to %s", report.report_id, path)
        return path

    def to_csv_string(self, report: ReportResult) -> str:
        buf = StringIO()
        writer = csv.writer(buf)
        writer.writerows(self.table(report))
        return buf.getvalue()

    @staticmethod
    def to_json(report: ReportResult, indent: int = 2) -> str:
        return json.dumps(report.to_dict(), indent=indent, ensure_ascii=False, default=str)

    def export(
        self, report: ReportResult, fmt: str, directory: Union[str, Path]
    ) -> Path:
        """Write *report* in *fmt* under *directory*; return the file path.

        Raises
        ------
        ValueError
            If *fmt* is not one of ``SUPPORTED_FORMATS``.
        """
        if fmt not in SUPPORTED_FORMATS:
            raise ValueError(
                f"Unsupported export format {fmt!r}; expected one of {SUPPORTED_FORMATS}"
            )

        stamp = report.generated_at.split("T")[0] or "report"
        path = Path(directory) / f"{report.report_id}_{stamp}.{fmt}"

        if fmt == "xlsx":
            return self.to_xlsx(report, path)

        text = self.to_csv_string(report) if fmt == "csv" else self.to_json(report)
        path.write_text(text, encoding="utf-8")
        logger.info("Exported %s to %s", report.report_id, path)
        return path
