# File: crudgen/models.py
"""
CrudGen - Core Data Models
===========================
Pydantic V2 models for the canonical intermediate representation and the
rendering plan derived from it:

    EntityDescription → (rules, relations) → EntityPlan[RenderedArtifact]

``EntityDescription`` is the single source of truth for one generation
invocation.  It is frozen: the planner consumes it but never mutates it.
Identifier fields are normalised on construction, so raw user-typed names
never reach any derivation.
"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
)

from crudgen.utils import entity_name, to_camel_case

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudgen.models")

# ---------------------------------------------------------------------------
# Enums — fixed sets used across the entire project
# ---------------------------------------------------------------------------


class ValueType(str, Enum):
    """The seven attribute types an entity may declare."""

    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    DATE = "date"
    DATETIME = "datetime"
    TEXT = "text"


class ColumnType(str, Enum):
    """Migration column types (Blueprint method names)."""

    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    DATE = "date"
    DATETIME = "dateTime"
    TEXT = "text"


class RelationKind(str, Enum):
    """Eloquent relation cardinalities (values are the relation method names)."""

    HAS_ONE = "hasOne"
    HAS_MANY = "hasMany"
    BELONGS_TO = "belongsTo"
    BELONGS_TO_MANY = "belongsToMany"


class ArtifactKind(str, Enum):
    """Kinds of files produced for one entity, in planning order."""

    MODEL = "model"
    MIGRATION = "migration"
    CONTROLLER = "controller"
    STORE_REQUEST = "store_request"
    UPDATE_REQUEST = "update_request"
    ROUTE_REGISTRATION = "route_registration"


class OnDeleteAction(str, Enum):
    """Foreign-key ON DELETE behaviour."""

    CASCADE = "cascade"


# ---------------------------------------------------------------------------
# Shared model configuration
# ---------------------------------------------------------------------------

_FROZEN_CONFIG: ConfigDict = ConfigDict(
    strict=False,
    populate_by_name=True,
    frozen=True,
    extra="forbid",
)


# ---------------------------------------------------------------------------
# Entity description (input side)
# ---------------------------------------------------------------------------


class Attribute(BaseModel):
    """A named, typed, nullable-or-not field on an entity."""

    model_config = _FROZEN_CONFIG

    name: str = Field(..., min_length=1, description="camelCase attribute name.")
    value_type: ValueType = Field(..., alias="type", description="Declared type.")
    nullable: bool = Field(default=False, description="Whether NULL is allowed.")

    @field_validator("name")
    @classmethod
    def _normalise_name(cls, v: str) -> str:
        return to_camel_case(v)

    def __repr__(self) -> str:
        null_flag: str = " NULL" if self.nullable else " NOT NULL"
        return f"<Attribute {self.name} {self.value_type.value}{null_flag}>"


class Relation(BaseModel):
    """An association from the owning entity to another entity."""

    model_config = _FROZEN_CONFIG

    kind: RelationKind = Field(..., description="Relation cardinality.")
    related_entity_name: str = Field(
        ..., min_length=1, alias="model", description="Related entity name."
    )

    @field_validator("related_entity_name")
    @classmethod
    def _normalise_related(cls, v: str) -> str:
        return entity_name(v)

    def __repr__(self) -> str:
        return f"<Relation {self.kind.value} {self.related_entity_name}>"


class EntityDescription(BaseModel):
    """
    Canonical in-memory description of one entity.

    Attribute order is significant: it drives column and rule ordering in
    every generated artifact.  Relation duplicates are allowed.
    """

    model_config = _FROZEN_CONFIG

    name: str = Field(..., min_length=1, description="Singular StudlyCase name.")
    attributes: Tuple[Attribute, ...] = Field(default_factory=tuple)
    relations: Tuple[Relation, ...] = Field(default_factory=tuple)

    @field_validator("name")
    @classmethod
    def _normalise_name(cls, v: str) -> str:
        return entity_name(v)

    @computed_field  # type: ignore[misc]
    @property
    def attribute_names(self) -> List[str]:
        return [a.name for a in self.attributes]

    @computed_field  # type: ignore[misc]
    @property
    def related_entity_names(self) -> List[str]:
        """Related entity names in declaration order, without repeats."""
        seen: Dict[str, None] = {}
        for rel in self.relations:
            seen.setdefault(rel.related_entity_name, None)
        return list(seen)

    def __repr__(self) -> str:
        return (
            f"<EntityDescription {self.name}: "
            f"{len(self.attributes)} attributes, {len(self.relations)} relations>"
        )


# ---------------------------------------------------------------------------
# Derived specs (output of rules / relations)
# ---------------------------------------------------------------------------


class ColumnSpec(BaseModel):
    """Migration column derived from one attribute."""

    model_config = _FROZEN_CONFIG

    column_type: ColumnType
    name: str = Field(..., min_length=1)
    nullable: bool = False


class ForeignKeySpec(BaseModel):
    """Foreign-key column + constraint created by a ``belongsTo`` relation."""

    model_config = _FROZEN_CONFIG

    column_name: str = Field(..., min_length=1)
    referenced_table: str = Field(..., min_length=1)
    referenced_column: str = "id"
    on_delete: OnDeleteAction = OnDeleteAction.CASCADE
    nullable: bool = True

    def __repr__(self) -> str:
        return f"<FK {self.column_name} → {self.referenced_table}.{self.referenced_column}>"


class RelationMethod(BaseModel):
    """Model-side accessor for a relation."""

    model_config = _FROZEN_CONFIG

    method_name: str = Field(..., min_length=1)
    relation_kind: RelationKind
    related_class: str = Field(..., min_length=1)


# ---------------------------------------------------------------------------
# Rendering plan
# ---------------------------------------------------------------------------


class RenderedArtifact(BaseModel):
    """
    One file to produce: where it goes, which stub renders it and the values
    for every placeholder of that stub.
    """

    model_config = _FROZEN_CONFIG

    kind: ArtifactKind
    target_path: Path = Field(..., description="Path relative to the project root.")
    template: Optional[str] = Field(
        default=None,
        description="Stub name; None for artifacts merged structurally (routes).",
    )
    placeholder_values: Dict[str, str] = Field(default_factory=dict)

    def __repr__(self) -> str:
        return f"<RenderedArtifact {self.kind.value} → {self.target_path}>"


class EntityPlan(BaseModel):
    """Every artifact planned for one entity."""

    model_config = _FROZEN_CONFIG

    entity: str
    artifacts: Tuple[RenderedArtifact, ...] = Field(default_factory=tuple)

    def get(self, kind: ArtifactKind) -> RenderedArtifact:
        for artifact in self.artifacts:
            if artifact.kind == kind:
                return artifact
        raise KeyError(kind)


# ---------------------------------------------------------------------------
# Generation configuration
# ---------------------------------------------------------------------------


class GenerationConfig(BaseModel):
    """
    Settings that control where artifacts go and how they are named.

    Loaded from ``crudgen.yaml`` in the project root, the ``config`` section of
    a description file and CLI overrides, in increasing precedence.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        validate_assignment=True,
        extra="forbid",
    )

    base_path: Path = Field(
        default=Path("."), description="Root of the target application."
    )

    # -- Layout -------------------------------------------------------------
    models_dir: str = Field(default="app/Models")
    migrations_dir: str = Field(default="database/migrations")
    controllers_dir: str = Field(default="app/Http/Controllers")
    requests_dir: str = Field(default="app/Http/Requests")
    routes_file: str = Field(default="routes/web.php")
    stubs_dir: Optional[Path] = Field(
        default=None,
        description="Directory whose *.stub files override the bundled stubs.",
    )

    # -- Namespaces ---------------------------------------------------------
    model_namespace: str = Field(default="App\\Models")
    controller_namespace: str = Field(default="App\\Http\\Controllers")
    request_namespace: str = Field(default="App\\Http\\Requests")

    # -- Rules --------------------------------------------------------------
    datetime_format: str = Field(
        default="Y-m-d H:i:s", min_length=1, description="date_format rule pattern."
    )

    # -- Related entity expansion --------------------------------------------
    create_related: bool = Field(
        default=True,
        description="Offer to generate related entities that don't exist yet.",
    )
    max_expansion_depth: int = Field(default=8, ge=0, le=64)

    @property
    def models_path(self) -> Path:
        return self.base_path / self.models_dir


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "ValueType",
    "ColumnType",
    "RelationKind",
    "ArtifactKind",
    "OnDeleteAction",
    "Attribute",
    "Relation",
    "EntityDescription",
    "ColumnSpec",
    "ForeignKeySpec",
    "RelationMethod",
    "RenderedArtifact",
    "EntityPlan",
    "GenerationConfig",
]

logger.debug("crudgen.models loaded — %d public symbols.", len(__all__))
