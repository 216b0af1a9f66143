"""
Unit tests for the template registry.
"""

from __future__ import annotations

import pytest

from report_mapper.errors import TemplateNotFoundError
from report_mapper.templates import (
    Template,
    TemplateRegistry,
    get_required_fields,
    get_template_by_id,
    is_field_required,
)


class TestBuiltinTemplates:
    def test_lookup(self) -> None:
        template = get_template_by_id("financial-summary")
        assert template is not None
        assert template.type == "financial"
        assert template.fields == (
            "date", "amount", "category", "description", "reference", "notes",
        )

    def test_missing(self) -> None:
        assert get_template_by_id("nope") is None
        assert get_required_fields("nope") == []

    def test_required_fields(self) -> None:
        assert get_required_fields("attendance-report") == ["date", "name", "status"]

    def test_is_field_required_ignores_case(self) -> None:
        assert is_field_required("inventory-report", "Unit_Price")
        assert not is_field_required("inventory-report", "sku")

    def test_to_dict(self) -> None:
        out = get_template_by_id("inventory-report").to_dict()
        assert out["requiredFields"] == ["item_name", "quantity", "unit_price"]


class TestTemplateRegistry:
    @pytest.fixture
    def registry(self) -> TemplateRegistry:
        return TemplateRegistry([
            Template("t1", "T1", "test", "financial", ("amount",), ("notes",)),
        ])

    def test_alternate_table(self, registry: TemplateRegistry) -> None:
        assert [t.id for t in registry.list_templates()] == ["t1"]
        assert registry.get_template_by_id("financial-summary") is None
        assert registry.get_optional_fields("t1") == ["notes"]

    def test_require_raises(self, registry: TemplateRegistry) -> None:
        with pytest.raises(TemplateNotFoundError) as exc_info:
            registry.require("financial-summary")
        assert exc_info.value.template_id == "financial-summary"
        assert isinstance(exc_info.value, KeyError)

    def test_default_has_three(self) -> None:
        assert len(TemplateRegistry().list_templates()) == 3
