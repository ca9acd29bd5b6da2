"""
tests/conftest.py
Shared fixtures for the crudgen test suite.

No external mocking libraries are used; real file I/O is performed inside
temporary directories managed by pytest's tmp_path fixture, and answers come
from ``ScriptedPrompter`` / ``InMemoryWriter`` instances.
"""

from __future__ import annotations

import logging
import pathlib
from typing import Any, Dict, Iterator

import pytest
import yaml

from crudgen.models import (
    Attribute,
    EntityDescription,
    GenerationConfig,
    Relation,
    RelationKind,
    ValueType,
)
from crudgen.planner import ArtifactPlanner
from crudgen.templates import TemplateRenderer


ROUTES_HEADER: str = "<?php\n\nuse Illuminate\\Support\\Facades\\Route;\n"


# ---------------------------------------------------------------------------
# Logging isolation (the CLI reconfigures the "crudgen" logger)
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _restore_crudgen_logger() -> Iterator[None]:
    package_logger = logging.getLogger("crudgen")
    handlers = list(package_logger.handlers)
    level = package_logger.level
    propagate = package_logger.propagate
    yield
    package_logger.handlers[:] = handlers
    package_logger.setLevel(level)
    package_logger.propagate = propagate


# ---------------------------------------------------------------------------
# Entity descriptions
# ---------------------------------------------------------------------------


@pytest.fixture()
def invoice_description() -> EntityDescription:
    """Invoice { amount: float, paidAt: datetime NULL } belongsTo Customer."""
    return EntityDescription(
        name="Invoice",
        attributes=(
            Attribute(name="amount", value_type=ValueType.FLOAT, nullable=False),
            Attribute(name="paidAt", value_type=ValueType.DATETIME, nullable=True),
        ),
        relations=(
            Relation(kind=RelationKind.BELONGS_TO, related_entity_name="Customer"),
        ),
    )


@pytest.fixture()
def customer_description() -> EntityDescription:
    return EntityDescription(
        name="Customer",
        attributes=(Attribute(name="name", value_type=ValueType.STRING),),
        relations=(
            Relation(kind=RelationKind.HAS_MANY, related_entity_name="Invoice"),
        ),
    )


@pytest.fixture()
def invoice_file_data() -> Dict[str, Any]:
    """Description-file content for Invoice plus scripted Customer answers."""
    return {
        "entity": {
            "name": "Invoice",
            "attributes": [
                {"name": "amount", "type": "float"},
                {"name": "paidAt", "type": "datetime", "nullable": True},
            ],
            "relations": [{"kind": "belongsTo", "model": "Customer"}],
        },
        "entities": {
            "Customer": {
                "attributes": [{"name": "name", "type": "string"}],
            },
        },
        "overwrite": False,
    }


@pytest.fixture()
def invoice_yaml_path(
    invoice_file_data: Dict[str, Any], tmp_path: pathlib.Path
) -> pathlib.Path:
    path = tmp_path / "invoice.yaml"
    with open(path, "w", encoding="utf-8") as fh:
        yaml.safe_dump(invoice_file_data, fh, default_flow_style=False)
    return path


# ---------------------------------------------------------------------------
# Project / pipeline fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def laravel_project(tmp_path: pathlib.Path) -> pathlib.Path:
    """A minimal Laravel tree: models dir, migrations dir and routes/web.php."""
    root = tmp_path / "shop"
    (root / "app" / "Models").mkdir(parents=True)
    (root / "database" / "migrations").mkdir(parents=True)
    (root / "routes").mkdir(parents=True)
    (root / "routes" / "web.php").write_text(ROUTES_HEADER, encoding="utf-8")
    return root


@pytest.fixture()
def config(laravel_project: pathlib.Path) -> GenerationConfig:
    return GenerationConfig(base_path=laravel_project)


@pytest.fixture()
def planner() -> ArtifactPlanner:
    return ArtifactPlanner(GenerationConfig())


@pytest.fixture(scope="session")
def renderer() -> TemplateRenderer:
    return TemplateRenderer()
