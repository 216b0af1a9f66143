"""
Table Readers.

Turns uploaded files into the uniform ``ParsedTable(columns, rows)`` shape
the mapping core consumes: ``columns`` is the header row and every row is
a ``{column: value}`` dict with ``""`` for missing cells.

Supported inputs
----------------
* CSV text or file: UTF-8 BOM stripped, CRLF normalised, blank lines skipped
* Excel (.xlsx / .xlsm): first worksheet, first row is the header
* JSON: an array of objects
* pandas ``DataFrame``

A source without a header row raises ``InputMissingError``.
"""

from __future__ import annotations

import csv
import json
from dataclasses import dataclass, field
from datetime import datetime
from io import StringIO
from pathlib import Path
from typing import Any, Dict, List, Union

import openpyxl

from report_mapper.errors import InputMissingError, UnsupportedFileError
from report_mapper.logging_setup import get_logger

logger = get_logger("table_reader")

Row = Dict[str, Any]

CSV_EXTENSIONS = {".csv", ".txt"}
EXCEL_EXTENSIONS = {".xlsx", ".xlsm"}
JSON_EXTENSIONS = {".json"}


@dataclass
class ParsedTable:
    columns: List[str] = field(default_factory=list)
    rows: List[Row] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.rows)

    def preview(self, limit: int) -> List[Row]:
        return self.rows[:limit]


def normalize_csv_content(content: str) -> str:
    """Strip a leading BOM and convert CRLF line endings to LF."""
    if content.startswith("\ufeff"):
        content = content[1:]
    return content.replace("\r\n", "\n")


def _looks_like_path(source: Union[str, Path]) -> bool:
    if isinstance(source, Path):
        return True
    if not source.strip() or "\n" in source:
        return False
    try:
        return Path(source).is_file()
    except OSError:
        return False


# ---------------------------------------------------------------------------
# Readers
# ---------------------------------------------------------------------------

def read_csv(source: Union[str, Path]) -> ParsedTable:
    """Read from a CSV file path or raw CSV text."""
    if _looks_like_path(source):
        with open(Path(source), encoding="utf-8", newline="") as fh:
            text = fh.read()
    else:
        text = str(source)

    reader = csv.reader(StringIO(normalize_csv_content(text)))
    records = [r for r in reader if any(cell.strip() for cell in r)]

    if not records:
        raise InputMissingError("No columns found in CSV input")

    columns = [c.strip() for c in records[0]]
    rows: List[Row] = []
    for record in records[1:]:
        if len(record) > len(columns):
            logger.warning("Row has %d extra cell(s); ignored", len(record) - len(columns))
        rows.append({
            col: record[i] if i < len(record) else ""
            for i, col in enumerate(columns)
        })

    logger.info("Read CSV: %d column(s), %d row(s)", len(columns), len(rows))
    return ParsedTable(columns=columns, rows=rows)


def _cell(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, datetime) and value.time() == datetime.min.time():
        return value.date().isoformat()
    if isinstance(value, datetime):
        return value.isoformat(sep=" ")
    return value


def read_excel(source: Union[str, Path]) -> ParsedTable:
    """Read the first worksheet of an .xlsx workbook.

    Dates come back as ISO strings so rows stay plain ``str | number``.
    """
    wb = openpyxl.load_workbook(Path(source), read_only=True, data_only=True)
    try:
        ws = wb.worksheets[0]
        raw_rows = list(ws.iter_rows(values_only=True))
    finally:
        wb.close()

    raw_rows = [r for r in raw_rows if any(v not in (None, "") for v in r)]
    if not raw_rows:
        raise InputMissingError(f"No columns found in workbook {Path(source).name}")

    header = raw_rows[0]
    # Trailing empty header cells are layout padding, not columns.
    while header and header[-1] in (None, ""):
        header = header[:-1]
    columns = [str(h).strip() if h is not None else "" for h in header]

    rows: List[Row] = []
    for raw in raw_rows[1:]:
        rows.append({
            col: _cell(raw[i]) if i < len(raw) else ""
            for i, col in enumerate(columns)
        })

    logger.info(
        "Read sheet %r: %d column(s), %d row(s)", ws.title, len(columns), len(rows)
    )
    return ParsedTable(columns=columns, rows=rows)


def read_json(source: Union[str, Path]) -> ParsedTable:
    """Read from a JSON file or JSON string holding an array of objects.

    Columns are the keys of the first object; later objects may omit keys.
    """
    if isinstance(source, Path) or (
        isinstance(source, str) and not source.lstrip().startswith(("[", "{"))
    ):
        with open(Path(source), encoding="utf-8") as fh:
            data = json.load(fh)
    else:
        data = json.loads(source)

    if not isinstance(data, list):
        raise ValueError(f"Unsupported JSON root type: {type(data).__name__}")

    records = [item for item in data if isinstance(item, dict)]
    if len(records) != len(data):
        logger.warning("Skipped %d non-object JSON element(s)", len(data) - len(records))
    if not records:
        raise InputMissingError("No columns found in JSON input")

    columns = [str(k) for k in records[0].keys()]
    rows = [
        {col: ("" if rec.get(col) is None else rec.get(col)) for col in columns}
        for rec in records
    ]
    return ParsedTable(columns=columns, rows=rows)


def read_dataframe(df: Any) -> ParsedTable:
    """Read from a pandas DataFrame; NaN cells become ``""``."""
    try:
        import pandas as pd  # noqa: F811
    except ImportError as exc:
        raise ImportError(
            "pandas is required to use read_dataframe"
        ) from exc

    if not isinstance(df, pd.DataFrame):
        raise TypeError(f"Expected pandas DataFrame, got {type(df).__name__}")

    if len(df.columns) == 0:
        raise InputMissingError("DataFrame has no columns")

    columns = [str(c) for c in df.columns]
    frame = df.astype(object).where(pd.notna(df), "")
    frame.columns = columns
    rows = frame.to_dict(orient="records")
    return ParsedTable(columns=columns, rows=rows)


def read_table(path: Union[str, Path]) -> ParsedTable:
    """Dispatch on the file extension.

    Raises
    ------
    InputMissingError
        If the file does not exist or has no header.
    UnsupportedFileError
        If no reader handles the extension.
    """
    path = Path(path)
    if not path.exists():
        raise InputMissingError(f"File not found: {path}")

    ext = path.suffix.lower()
    if ext in CSV_EXTENSIONS:
        return read_csv(path)
    if ext in EXCEL_EXTENSIONS:
        return read_excel(path)
    if ext in JSON_EXTENSIONS:
        return read_json(path)

    raise UnsupportedFileError(f"Unsupported file type: {ext or path.name}")
