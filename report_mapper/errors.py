"""
Exceptions raised by Report Mapper.

Only truly exceptional conditions raise.  Mapping problems are normally
reported as ``valid=False`` result objects and cell problems accumulate
as ``ValidationError`` records; see ``validator`` and ``summarizer``.
"""

from __future__ import annotations

from typing import List, Optional


class ReportMapperError(Exception):
    """Base class for every error raised by this package."""


class InputMissingError(ReportMapperError):
    """No file was supplied, or the file yielded no columns."""


class UnsupportedFileError(ReportMapperError):
    """The file extension has no reader."""


class TemplateNotFoundError(ReportMapperError, KeyError):
    """A template id is not present in the registry."""

    def __init__(self, template_id: str) -> None:
        super().__init__(template_id)
        self.template_id = template_id

    def __str__(self) -> str:
        return f"Template not found: {self.template_id!r}"


class MappingInvalidError(ReportMapperError):
    """Raised in strict mode when a mapping fails validation."""

    def __init__(self, errors: Optional[List[str]] = None) -> None:
        self.errors = list(errors or [])
        super().__init__(
            f"Mapping failed validation with {len(self.errors)} error(s):\n"
            + "\n".join(self.errors)
        )
