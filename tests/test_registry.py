"""
tests/test_registry.py
Unit tests for crudgen.registry.EntityRegistry.
"""

from __future__ import annotations

import pathlib

import pytest

from crudgen.exceptions import CyclicRelationError, ExpansionDepthError
from crudgen.registry import EntityRegistry


class TestKnownEntities:
    def test_names_are_canonical(self) -> None:
        registry = EntityRegistry(["customers", "line_item"])
        assert registry.known == ["Customer", "LineItem"]
        assert registry.knows("Customer")
        assert "customer" in registry
        assert "Invoice" not in registry

    def test_add(self) -> None:
        registry = EntityRegistry()
        registry.add("invoice")
        assert registry.knows("Invoice")

    def test_scan_models_directory(self, tmp_path: pathlib.Path) -> None:
        models = tmp_path / "app" / "Models"
        models.mkdir(parents=True)
        (models / "User.php").write_text("<?php\n", encoding="utf-8")
        (models / "Customer.php").write_text("<?php\n", encoding="utf-8")
        (models / "README.md").write_text("", encoding="utf-8")

        registry = EntityRegistry.scan(models)
        assert registry.known == ["Customer", "User"]

    def test_scan_missing_directory(self, tmp_path: pathlib.Path) -> None:
        assert EntityRegistry.scan(tmp_path / "nope").known == []


class TestPlanningChain:
    def test_enter_and_leave(self) -> None:
        registry = EntityRegistry()
        registry.enter("Invoice")
        registry.enter("Customer")
        assert registry.chain == ["Invoice", "Customer"]
        assert registry.depth == 2
        assert registry.in_progress("invoice")
        registry.leave("Customer")
        registry.leave("Invoice")
        assert registry.chain == []

    def test_reentering_raises_with_chain(self) -> None:
        registry = EntityRegistry()
        registry.enter("A")
        registry.enter("B")
        with pytest.raises(CyclicRelationError) as exc_info:
            registry.enter("A")
        assert exc_info.value.chain == ["A", "B", "A"]
        assert "A -> B -> A" in str(exc_info.value)

    def test_leave_out_of_order(self) -> None:
        registry = EntityRegistry()
        registry.enter("A")
        registry.enter("B")
        with pytest.raises(RuntimeError):
            registry.leave("A")

    def test_depth_limit(self) -> None:
        registry = EntityRegistry(max_depth=1)
        registry.enter("A")
        registry.enter("B")
        with pytest.raises(ExpansionDepthError) as exc_info:
            registry.enter("C")
        assert exc_info.value.chain == ["A", "B", "C"]
        assert exc_info.value.max_depth == 1
