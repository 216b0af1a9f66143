"""
Column Pattern Tables.

Static, per-target-field lists of regular expressions that the column
matcher scores source column names against.  Every family carries English
and Indonesian synonyms (``tanggal`` for date, ``jumlah`` for amount, ...).

Design decisions
----------------
* Pattern **order** inside a family matters: the matcher stops at the
  first pattern that hits, so the most specific pattern goes first.
* Field **order** is the auto-mapper's tie-break, so the table preserves
  ``TARGET_FIELDS`` declaration order.
* Tables are immutable.  ``PatternTable.merged`` and ``from_json`` build
  new tables for callers that need extra synonyms; nothing edits a table
  in place.
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Dict, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

from report_mapper.logging_setup import get_logger

logger = get_logger("patterns")


# ---------------------------------------------------------------------------
# Built-in pattern families
# ---------------------------------------------------------------------------

_BUILTIN_PATTERNS: Dict[str, List[str]] = {
    "date": [r"date", r"time", r"tanggal", r"waktu", r"tgl"],
    "amount": [
        r"amount", r"total", r"price", r"cost", r"value",
        r"harga", r"jumlah", r"nilai",
    ],
    "category": [r"category", r"type", r"kategori", r"jenis", r"tipe"],
    "description": [
        r"description", r"desc", r"detail", r"keterangan", r"deskripsi",
    ],
    "reference": [r"reference", r"ref", r"id", r"no", r"number", r"nomor"],
    "notes": [r"notes", r"note", r"remark", r"comment", r"komentar", r"catatan"],
    "name": [r"name", r"nama", r"person", r"employee", r"karyawan", r"pegawai"],
    "status": [r"status", r"state", r"condition"],
    "check_in": [r"check.?in", r"masuk", r"start", r"begin"],
    "check_out": [r"check.?out", r"keluar", r"end", r"finish"],
    "department": [
        r"department", r"dept", r"division", r"divisi", r"departemen",
    ],
    "item_name": [r"item", r"product", r"barang", r"produk", r"nama.*barang"],
    "quantity": [r"quantity", r"qty", r"count", r"jumlah", r"kuantitas"],
    "unit_price": [r"unit.?price", r"price", r"harga.*satuan", r"harga"],
    "sku": [r"sku", r"code", r"kode"],
    "location": [r"location", r"loc", r"place", r"lokasi", r"tempat"],
}

# Keyword sets for the exploratory (pass-through) auto-mapper.  Each field
# also carries the data type a matched column is given.
_BUILTIN_KEYWORDS: Dict[str, Tuple[Tuple[str, ...], str]] = {
    "date": (("date", "tanggal", "tgl", "time", "waktu"), "date"),
    "amount": (
        ("amount", "total", "nominal", "harga", "price", "value", "jumlah"),
        "currency",
    ),
    "category": (("category", "kategori", "type", "jenis", "group"), "string"),
    "description": (
        ("description", "deskripsi", "detail", "keterangan", "notes", "catatan"),
        "string",
    ),
    "name": (("name", "nama", "person", "student", "employee"), "string"),
    "status": (("status", "state", "condition"), "string"),
    "quantity": (("quantity", "qty", "jumlah", "count"), "number"),
}


class PatternTable:
    """Immutable ``target field → compiled regex list`` table.

    Parameters
    ----------
    patterns:
        ``{field: [regex source, ...]}``.  Field order is preserved.

    Raises
    ------
    ValueError
        If a pattern does not compile.
    """

    def __init__(self, patterns: Mapping[str, Sequence[Union[str, re.Pattern]]]) -> None:
        compiled: Dict[str, Tuple[re.Pattern, ...]] = {}
        for field, sources in patterns.items():
            compiled[field] = tuple(_compile(field, src) for src in sources)
        self._patterns = compiled

    # ------------------------------------------------------------------ #
    # Lookup
    # ------------------------------------------------------------------ #

    def __contains__(self, field: object) -> bool:
        return field in self._patterns

    def __iter__(self) -> Iterator[str]:
        return iter(self._patterns)

    def __len__(self) -> int:
        return len(self._patterns)

    @property
    def fields(self) -> Tuple[str, ...]:
        return tuple(self._patterns)

    def patterns_for(self, field: str) -> Tuple[re.Pattern, ...]:
        """Patterns for *field*; empty for an unknown field."""
        return self._patterns.get(field, ())

    def sources(self) -> Dict[str, List[str]]:
        """Plain ``{field: [regex source, ...]}`` copy of the table."""
        return {f: [p.pattern for p in ps] for f, ps in self._patterns.items()}

    # ------------------------------------------------------------------ #
    # Construction helpers
    # ------------------------------------------------------------------ #

    def merged(self, extra: Mapping[str, Sequence[str]]) -> "PatternTable":
        """Return a new table with *extra* patterns appended per field.

        New fields are appended after the existing ones.
        """
        combined = self.sources()
        for field, sources in extra.items():
            combined.setdefault(field, []).extend(sources)
        logger.info(
            "Merged %d pattern(s) across %d field(s)",
            sum(len(s) for s in extra.values()),
            len(extra),
        )
        return PatternTable(combined)

    @classmethod
    def from_json(
        cls, path: Union[str, Path], base: Optional["PatternTable"] = None
    ) -> "PatternTable":
        """Load ``{field: [regex, ...]}`` from a JSON file, merged over *base*.

        Raises
        ------
        ValueError
            If the file is not an object of string lists.
        """
        with open(Path(path), encoding="utf-8") as fh:
            data = json.load(fh)

        if not isinstance(data, dict) or not all(
            isinstance(v, list) and all(isinstance(s, str) for s in v)
            for v in data.values()
        ):
            raise ValueError(
                f"Pattern file {path} must be an object of string lists"
            )

        logger.info("Loading custom patterns from %s", path)
        return (base or DEFAULT_PATTERNS).merged(data)


def _compile(field: str, source: Union[str, re.Pattern]) -> re.Pattern:
    if isinstance(source, re.Pattern):
        return re.compile(source.pattern, source.flags | re.IGNORECASE)
    try:
        return re.compile(source, re.IGNORECASE)
    except re.error as exc:
        raise ValueError(f"Invalid pattern {source!r} for field {field!r}: {exc}") from exc


DEFAULT_PATTERNS = PatternTable(_BUILTIN_PATTERNS)


class KeywordTable:
    """Immutable keyword sets used by the pass-through auto-mapper."""

    def __init__(
        self, keywords: Mapping[str, Tuple[Sequence[str], str]]
    ) -> None:
        self._keywords: Dict[str, Tuple[Tuple[str, ...], str]] = {
            field: (tuple(k.lower() for k in words), dtype)
            for field, (words, dtype) in keywords.items()
        }

    def __contains__(self, field: object) -> bool:
        return field in self._keywords

    def keywords_for(self, field: str) -> Tuple[str, ...]:
        entry = self._keywords.get(field)
        return entry[0] if entry else ()

    def data_type_for(self, field: str) -> Optional[str]:
        entry = self._keywords.get(field)
        return entry[1] if entry else None


DEFAULT_KEYWORDS = KeywordTable(_BUILTIN_KEYWORDS)
