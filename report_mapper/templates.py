"""
Report templates.

A template names the target fields a report needs (``required_fields``)
and may use (``optional_fields``).  The built-in table is static
configuration; alternate tables are supplied by constructing another
``TemplateRegistry``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional

from report_mapper.errors import TemplateNotFoundError


@dataclass(frozen=True)
class Template:
    id: str
    name: str
    description: str
    type: str  # "financial" | "attendance" | "inventory"
    required_fields: tuple[str, ...] = ()
    optional_fields: tuple[str, ...] = ()

    @property
    def fields(self) -> tuple[str, ...]:
        """Required fields followed by optional ones."""
        return self.required_fields + self.optional_fields

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "type": self.type,
            "requiredFields": list(self.required_fields),
            "optionalFields": list(self.optional_fields),
        }


BUILTIN_TEMPLATES: tuple[Template, ...] = (
    Template(
        id="financial-summary",
        name="Financial Summary",
        description=(
            "Generate financial reports with income, expenses, and balance "
            "calculations"
        ),
        type="financial",
        required_fields=("date", "amount", "category"),
        optional_fields=("description", "reference", "notes"),
    ),
    Template(
        id="attendance-report",
        name="Attendance Report",
        description="Track attendance records with summaries by person and date",
        type="attendance",
        required_fields=("date", "name", "status"),
        optional_fields=("check_in", "check_out", "department", "notes"),
    ),
    Template(
        id="inventory-report",
        name="Inventory Report",
        description="Monitor inventory levels, stock movements, and valuations",
        type="inventory",
        required_fields=("item_name", "quantity", "unit_price"),
        optional_fields=("category", "sku", "location", "date"),
    ),
)


class TemplateRegistry:
    """Read-only lookups into a template table.

    Parameters
    ----------
    templates:
        Templates to serve.  Defaults to ``BUILTIN_TEMPLATES``.
    """

    def __init__(self, templates: Optional[Iterable[Template]] = None) -> None:
        table = tuple(BUILTIN_TEMPLATES if templates is None else templates)
        self._templates = {t.id: t for t in table}

    def list_templates(self) -> List[Template]:
        return list(self._templates.values())

    def get_template_by_id(self, template_id: str) -> Optional[Template]:
        return self._templates.get(template_id)

    def require(self, template_id: str) -> Template:
        """Like ``get_template_by_id`` but raises ``TemplateNotFoundError``."""
        template = self._templates.get(template_id)
        if template is None:
            raise TemplateNotFoundError(template_id)
        return template

    def get_required_fields(self, template_id: str) -> List[str]:
        template = self._templates.get(template_id)
        return list(template.required_fields) if template else []

    def get_optional_fields(self, template_id: str) -> List[str]:
        template = self._templates.get(template_id)
        return list(template.optional_fields) if template else []

    def is_field_required(self, template_id: str, field: str) -> bool:
        return field.lower() in self.get_required_fields(template_id)


DEFAULT_REGISTRY = TemplateRegistry()


def get_template_by_id(template_id: str) -> Optional[Template]:
    return DEFAULT_REGISTRY.get_template_by_id(template_id)


def get_required_fields(template_id: str) -> List[str]:
    return DEFAULT_REGISTRY.get_required_fields(template_id)


def is_field_required(template_id: str, field: str) -> bool:
    return DEFAULT_REGISTRY.is_field_required(template_id, field)
