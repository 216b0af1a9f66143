"""
Type Inference.

Classifies a column from sample values as ``date``, ``currency``,
``number`` or ``string`` (``unknown`` when every sample is empty).

The checks run in a fixed order and the first that fires wins:

1. **date**     every value starts ``YYYY-MM-DD`` or ``DD/MM/YYYY``
2. **currency** *any* value carries a currency symbol or code
3. **number**   every value (commas removed) is a plain decimal
4. **string**   otherwise

The currency rule is deliberately coarse: one ``"Rp 1000"`` in an
otherwise numeric column makes the whole column ``currency``.
"""

from __future__ import annotations

import re
from datetime import date
from typing import Any, Dict, List, Mapping, Sequence

from report_mapper.logging_setup import get_logger
from report_mapper.normalizer import is_empty
from report_mapper.schema import DataType

logger = get_logger("type_inference")

_DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}|\d{2}/\d{2}/\d{4}", re.ASCII)
_CURRENCY_RE = re.compile(r"Rp|[$€£¥]|IDR|USD|EUR")
_NUMBER_RE = re.compile(r"-?\d+(\.\d+)?", re.ASCII)


def _as_text(value: Any) -> str:
    # Integral floats print without ".0" so 100.0 reads like "100".
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def detect_type(values: Sequence[Any]) -> DataType:
    """Classify a column from its sampled values."""
    present = [v for v in values if not is_empty(v)]
    if not present:
        return DataType.UNKNOWN

    if all(isinstance(v, date) or _DATE_RE.match(_as_text(v)) for v in present):
        return DataType.DATE

    texts = [_as_text(v) for v in present]

    if any(_CURRENCY_RE.search(t) for t in texts):
        return DataType.CURRENCY

    if all(_NUMBER_RE.fullmatch(t.replace(",", "")) for t in texts):
        return DataType.NUMBER

    return DataType.STRING


def detect_column_types(rows: List[Mapping[str, Any]]) -> Dict[str, DataType]:
    """Apply ``detect_type`` to every column named by the first row."""
    if not rows:
        return {}

    types = {
        column: detect_type([row.get(column) for row in rows])
        for column in rows[0].keys()
    }
    logger.debug("Detected column types: %s", {c: t.value for c, t in types.items()})
    return types
