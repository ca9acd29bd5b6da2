# File: crudgen/__init__.py
"""
CrudGen - CRUD Scaffolding Generator for Laravel
=================================================

Generates, for one entity, the Eloquent model, the create-table migration,
a resource controller, Store/Update form requests and the resource route
registration.  Related entities that do not exist yet can be generated in
the same run.

Architecture overview::

    ┌──────────────┐     ┌───────────────┐     ┌────────────────┐
    │  CLI / Entry │────▶│ CrudGenerator │────▶│ ArtifactPlanner│
    │   (cli.py)   │     │ (generator.py)│     │  (planner.py)  │
    └──────────────┘     └───────┬───────┘     └───────┬────────┘
                                 │                     │
                    ┌────────────┼──────────┐    ┌─────┴──────┐
                    ▼            ▼          ▼    ▼            ▼
             ┌──────────┐ ┌───────────┐ ┌─────────┐ ┌───────────┐
             │ prompts  │ │ exporters │ │templates│ │rules /    │
             │  (.py)   │ │  (.py)    │ │ (.py)   │ │relations  │
             └──────────┘ └───────────┘ └─────────┘ └───────────┘

Usage::

    # As a library
    from crudgen import CrudGenerator, GenerationConfig, ScriptedPrompter
    gen = CrudGenerator(GenerationConfig(base_path=Path("shop")), prompter)
    report = gen.generate(description)

    # From the command line
    crudgen Invoice --project ./shop -v

Public API:
    - CrudGenerator      - Pipeline orchestrator
    - ArtifactPlanner    - Pure artifact planning
    - EntityDescription  - Input model
    - GenerationConfig   - Layout / namespace settings
    - EntityRegistry     - Known entities + cycle detection
"""

from __future__ import annotations

__version__: str = "1.0.0"
__license__: str = "MIT"

from crudgen.exceptions import (
    CrudGenError,
    CyclicRelationError,
    DescriptionFileError,
    ExpansionDepthError,
    InvalidAttributeError,
    InvalidIdentifierError,
    UnfilledPlaceholderError,
    UnknownRelationKindError,
    UnknownValueTypeError,
)
from crudgen.models import (
    ArtifactKind,
    Attribute,
    EntityDescription,
    EntityPlan,
    GenerationConfig,
    Relation,
    RelationKind,
    RenderedArtifact,
    ValueType,
)
from crudgen.validators import ValidationResult, validate_description
from crudgen.registry import EntityRegistry
from crudgen.planner import ArtifactPlanner
from crudgen.templates import TemplateRenderer
from crudgen.prompts import ConsolePrompter, Prompter, ScriptedPrompter
from crudgen.exporters import (
    ArtifactExporter,
    DryRunWriter,
    ExportResult,
    FileSystemWriter,
    InMemoryWriter,
)
from crudgen.generator import (
    CrudGenerator,
    GenerationReport,
    load_config,
    load_description_file,
    parse_description,
)

# ---------------------------------------------------------------------------
# Public API surface
# ---------------------------------------------------------------------------

__all__: list[str] = [
    # Version info
    "__version__",
    "__license__",
    # Core orchestrator
    "CrudGenerator",
    "GenerationReport",
    "load_config",
    "load_description_file",
    "parse_description",
    # Models
    "ArtifactKind",
    "Attribute",
    "EntityDescription",
    "EntityPlan",
    "GenerationConfig",
    "Relation",
    "RelationKind",
    "RenderedArtifact",
    "ValueType",
    # Planning
    "ArtifactPlanner",
    "EntityRegistry",
    "TemplateRenderer",
    "ValidationResult",
    "validate_description",
    # Interaction / output
    "ConsolePrompter",
    "Prompter",
    "ScriptedPrompter",
    "ArtifactExporter",
    "DryRunWriter",
    "ExportResult",
    "FileSystemWriter",
    "InMemoryWriter",
    # Errors
    "CrudGenError",
    "CyclicRelationError",
    "DescriptionFileError",
    "ExpansionDepthError",
    "InvalidAttributeError",
    "InvalidIdentifierError",
    "UnfilledPlaceholderError",
    "UnknownRelationKindError",
    "UnknownValueTypeError",
]
