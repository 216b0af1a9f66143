"""
Row Mapping Layer.

Re-keys raw rows from source column names to target field names.  Values
are passed through untouched; coercion is left to the summarizer and the
exporters.
"""

from __future__ import annotations

from typing import Any, Iterable, List, Mapping

from report_mapper.logging_setup import get_logger
from report_mapper.schema import ROW_INDEX_KEY, MappedRow

logger = get_logger("row_mapper")


def apply_mapping(
    rows: Iterable[Mapping[str, Any]],
    mapping: Mapping[str, str],
) -> List[MappedRow]:
    """Apply a ``target → source`` mapping to *rows*.

    Each output row carries ``_rowIndex`` (1-based input position) followed
    by the mapped fields in mapping order.  A source column absent from a
    row yields ``None`` for that field.  A ``_rowIndex`` target is dropped;
    the index is never overwritten.
    """
    if ROW_INDEX_KEY in mapping:
        logger.warning("Ignoring mapping onto reserved field %r", ROW_INDEX_KEY)
    pairs = [(t, s) for t, s in mapping.items() if t != ROW_INDEX_KEY]
    mapped: List[MappedRow] = []
    for index, row in enumerate(rows, start=1):
        out: MappedRow = {ROW_INDEX_KEY: index}
        for target, source in pairs:
            out[target] = row.get(source)
        mapped.append(out)

    logger.debug("Applied %d-field mapping to %d row(s)", len(pairs), len(mapped))
    return mapped
