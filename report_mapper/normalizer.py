"""
Column and Cell Normalization Layer.

Turns raw column names and raw cell values into comparable, typed forms
so that matchers, validators and the summarizer agree on what a value
means.

Rules
-----
1. Column names: lowercase, then strip surrounding whitespace.
2. Amounts (``parse_amount``): keep only digits, ``.`` and ``-`` and read
   the longest leading number; unreadable input is ``0``.
3. Numbers (``to_number``): a whole trimmed decimal / exponent literal,
   or ``None``.  Thousands separators are **not** accepted here.
4. Dates (``parse_date``): ``datetime`` / ``date`` objects, epoch
   milliseconds, or any string ``dateutil`` can read.  Always returns a
   naive UTC ``datetime`` or ``None``.
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime, timedelta, timezone
from typing import Any, Optional

from dateutil import parser as dateparser

from report_mapper.logging_setup import get_logger

logger = get_logger("normalizer")

_EPOCH = datetime(1970, 1, 1)

# Fills components missing from a partial date string ("March 2024").
_DATE_DEFAULT = datetime(1970, 1, 1)


class CellNormalizer:
    """Stateless column-name and cell normaliser.  All methods are pure."""

    # Anything that cannot be part of an amount
    _AMOUNT_STRIP_RE = re.compile(r"[^0-9.\-]")

    # Longest numeric prefix of a stripped amount
    _AMOUNT_PREFIX_RE = re.compile(r"^-?(\d+(\.\d*)?|\.\d+)")

    # A complete numeric literal
    _NUMBER_RE = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")
    _INFINITY_RE = re.compile(r"^([+-]?)Infinity$")
    _HEX_RE = re.compile(r"^0[xX][0-9a-fA-F]+$")

    # ------------------------------------------------------------------ #
    # Column names
    # ------------------------------------------------------------------ #

    def normalize_column(self, name: Any) -> str:
        """Return the comparable form of a column name."""
        return str(name).lower().strip()

    # ------------------------------------------------------------------ #
    # Emptiness / truthiness
    # ------------------------------------------------------------------ #

    @staticmethod
    def is_empty(value: Any) -> bool:
        """``None``, ``""`` and NaN count as empty cells."""
        if value is None:
            return True
        if isinstance(value, str):
            return value == ""
        if isinstance(value, float) and math.isnan(value):
            return True
        return False

    @staticmethod
    def is_truthy(value: Any) -> bool:
        """Truthiness of a raw cell, treating NaN as false."""
        if isinstance(value, float) and math.isnan(value):
            return False
        return bool(value)

    # ------------------------------------------------------------------ #
    # Values
    # ------------------------------------------------------------------ #

    def parse_amount(self, value: Any) -> float:
        """Best-effort amount: ``"Rp 1.500"`` → ``1.5``, ``"abc"`` → ``0``.

        Numbers pass through unchanged (NaN becomes ``0``).
        """
        if isinstance(value, bool):
            return 0.0
        if isinstance(value, (int, float)):
            return 0.0 if math.isnan(value) else float(value)
        if isinstance(value, str):
            cleaned = self._AMOUNT_STRIP_RE.sub("", value)
            m = self._AMOUNT_PREFIX_RE.match(cleaned)
            if not m:
                return 0.0
            return float(m.group(0))
        return 0.0

    def to_number(self, value: Any) -> Optional[float]:
        """Strict numeric conversion; ``None`` when *value* is not a number.

        Surrounding whitespace is ignored and a blank string reads as ``0``.
        """
        if isinstance(value, bool):
            return float(value)
        if isinstance(value, (int, float)):
            return None if math.isnan(value) else float(value)
        if not isinstance(value, str):
            return None

        text = value.strip()
        if not text:
            return 0.0
        if self._NUMBER_RE.match(text):
            return float(text)
        if self._HEX_RE.match(text):
            return float(int(text, 16))
        m = self._INFINITY_RE.match(text)
        if m:
            return -math.inf if m.group(1) == "-" else math.inf
        return None

    def parse_date(self, value: Any) -> Optional[datetime]:
        """Parse *value* into a naive UTC ``datetime`` or return ``None``."""
        if value is None or isinstance(value, bool):
            return None

        if isinstance(value, datetime):
            return _naive_utc(value)

        if isinstance(value, date):
            return datetime(value.year, value.month, value.day)

        if isinstance(value, (int, float)):
            if math.isnan(value) or math.isinf(value):
                return None
            try:
                return _EPOCH + timedelta(milliseconds=value)
            except OverflowError:
                return None

        if isinstance(value, str):
            text = value.strip()
            if not text:
                return None
            try:
                return _naive_utc(dateparser.parse(text, default=_DATE_DEFAULT))
            except (ValueError, OverflowError):
                logger.debug("parse_date: cannot read %r", value)
                return None

        return None


def _naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


_DEFAULT = CellNormalizer()

normalize_column = _DEFAULT.normalize_column
parse_amount = _DEFAULT.parse_amount
to_number = _DEFAULT.to_number
parse_date = _DEFAULT.parse_date
is_empty = CellNormalizer.is_empty
is_truthy = CellNormalizer.is_truthy
