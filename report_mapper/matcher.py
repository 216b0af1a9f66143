"""
Column Matching Layer.

Scores a source column name against one target field's pattern family.
Scores are coarse on purpose so that ties are common and the auto-mapper's
tie-break rule decides them:

* ``1.0``  a pattern matches the **whole** normalised name
* ``0.8``  a pattern matches part of the name
* ``0.5``  no regex hit, but a pattern's literal keyword is a substring
* ``0``    nothing

The first pattern that matches decides between 1.0 and 0.8; later
patterns are not consulted even if they would match fully.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from report_mapper.logging_setup import get_logger
from report_mapper.normalizer import normalize_column
from report_mapper.patterns import DEFAULT_PATTERNS, PatternTable

logger = get_logger("matcher")

EXACT_SCORE = 1.0
PARTIAL_SCORE = 0.8
KEYWORD_SCORE = 0.5
NO_MATCH = 0.0

_CHAR_CLASS_RE = re.compile(r"\[.*?\]")
_CLASS_ESCAPE_RE = re.compile(r"\\[a-zA-Z]")
_METACHAR_RE = re.compile(r"[\\.?*+^$()|{}]")


def literal_keyword(pattern: re.Pattern) -> str:
    """Approximate the literal text a pattern looks for.

    ``check.?in`` → ``checkin``; ``nama.*barang`` → ``namabarang``.
    """
    text = _CHAR_CLASS_RE.sub("", pattern.pattern)
    text = _CLASS_ESCAPE_RE.sub("", text)
    text = _METACHAR_RE.sub("", text)
    return text.lower()


def calculate_match_score(column_name: str, patterns: Sequence[re.Pattern]) -> float:
    """Score *column_name* against an ordered pattern family."""
    normalised = normalize_column(column_name)

    for pattern in patterns:
        m = pattern.search(normalised)
        if m:
            return EXACT_SCORE if m.group(0) == normalised else PARTIAL_SCORE

    for pattern in patterns:
        keyword = literal_keyword(pattern)
        if keyword and keyword in normalised:
            return KEYWORD_SCORE

    return NO_MATCH


@dataclass(frozen=True)
class MatchCandidate:
    """A scored ``(target field, source column)`` pair."""

    target: str
    column: str
    score: float


class ColumnMatcher:
    """Bind a ``PatternTable`` and score columns against its fields.

    Parameters
    ----------
    patterns:
        Pattern table to score against.  Defaults to the built-in table.
    """

    def __init__(self, patterns: Optional[PatternTable] = None) -> None:
        self._patterns = patterns or DEFAULT_PATTERNS

    @property
    def patterns(self) -> PatternTable:
        return self._patterns

    def score(self, column_name: str, target_field: str) -> float:
        """Score one pair; unknown fields score 0."""
        return calculate_match_score(
            column_name, self._patterns.patterns_for(target_field)
        )

    def candidates(
        self,
        columns: Sequence[str],
        fields: Optional[Iterable[str]] = None,
    ) -> List[MatchCandidate]:
        """Every pair scoring above 0.

        Ordered by field (table order, or *fields* order when given), then
        by column input order.  Callers that sort must use a stable sort
        to keep this as the tie-break.
        """
        fields = self._patterns.fields if fields is None else fields
        found: List[MatchCandidate] = []
        for target in fields:
            if target not in self._patterns:
                logger.debug("No patterns for field %r; skipped", target)
                continue
            for column in columns:
                score = self.score(column, target)
                if score > NO_MATCH:
                    found.append(MatchCandidate(target, column, score))
                    logger.debug("Candidate %r → %r score=%.1f", column, target, score)
        return found
