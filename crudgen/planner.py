# File: crudgen/planner.py
"""
CrudGen - Artifact Planner
===========================
Pure computation of every artifact for an entity, prior to writing:

    EntityDescription → rules + relations → EntityPlan (6 RenderedArtifacts)

Artifact order inside a plan is fixed::

    model, migration, controller, store_request, update_request,
    route_registration

``plan()`` additionally walks the entity's relations.  A related entity the
``EntityRegistry`` does not know is handed to the *expander* (usually backed
by the prompter); when it returns a description, that entity is planned
first, so the returned list is ordered dependencies-first.  Expanded
descriptions are validated as they arrive; validating the root description
is left to the caller.

Nothing here touches the filesystem except through the registry seed, and
the same description plus the same timestamp always yields the same plan.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, Dict, List, Optional, Set

from crudgen.exceptions import CyclicRelationError
from crudgen.models import (
    ArtifactKind,
    EntityDescription,
    EntityPlan,
    GenerationConfig,
    RelationKind,
    RenderedArtifact,
)
from crudgen.registry import EntityRegistry
from crudgen.relations import (
    render_foreign_key_lines,
    render_relation_method,
    resolve_migration_side,
    resolve_model_side,
)
from crudgen.rules import (
    GeneratedRules,
    derive_column_definition,
    derive_rules,
    render_column_line,
    render_rule_lines,
)
from crudgen.utils import (
    indent_lines,
    php_string,
    to_kebab_case,
    to_plural,
    to_snake_case,
    to_studly_case,
)
from crudgen.validators import (
    check_attributes,
    check_relations,
    validate_description,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudgen.planner")

MIGRATION_TIMESTAMP_FORMAT: str = "%Y_%m_%d_%H%M%S"

# Given the name of a related entity that does not exist yet, return its
# description, or None to leave it alone.
Expander = Callable[[str], Optional[EntityDescription]]


# ---------------------------------------------------------------------------
# Naming helpers
# ---------------------------------------------------------------------------


def table_name(entity: str) -> str:
    """``LineItem`` → ``line_items``"""
    return to_plural(to_snake_case(entity))


def migration_class_name(entity: str) -> str:
    """``Invoice`` → ``CreateInvoicesTable``"""
    return f"Create{to_plural(to_studly_case(entity))}Table"


def resource_name(entity: str) -> str:
    """``LineItem`` → ``line-items``"""
    return to_plural(to_kebab_case(entity))


def controller_class_name(entity: str) -> str:
    return f"{entity}Controller"


def request_class_name(prefix: str, entity: str) -> str:
    return f"{prefix}{entity}Request"


class ArtifactPlanner:
    """
    Builds ``EntityPlan`` objects.

    Usage::

        planner = ArtifactPlanner(GenerationConfig())
        plan = planner.plan_entity(description, datetime(2024, 5, 1, 12, 0, 0))
        plan.get(ArtifactKind.MIGRATION).target_path
        # database/migrations/2024_05_01_120000_create_invoices_table.php
    """

    def __init__(self, config: Optional[GenerationConfig] = None) -> None:
        self._config: GenerationConfig = config or GenerationConfig()

    @property
    def config(self) -> GenerationConfig:
        return self._config

    # -----------------------------------------------------------------
    # Public: single entity
    # -----------------------------------------------------------------

    def plan_entity(
        self,
        description: EntityDescription,
        timestamp: datetime,
    ) -> EntityPlan:
        """
        Plan the six artifacts of one entity.

        Raises:
            InvalidAttributeError / UnknownValueTypeError /
            UnknownRelationKindError: the description fails revalidation.
        """
        check_attributes(description.attributes)
        check_relations(description.relations)

        rules: GeneratedRules = derive_rules(
            description.attributes, self._config.datetime_format
        )

        artifacts: List[RenderedArtifact] = [
            self._plan_model(description),
            self._plan_migration(description, timestamp),
            self._plan_controller(description),
            self._plan_request("Store", ArtifactKind.STORE_REQUEST, description, rules),
            self._plan_request("Update", ArtifactKind.UPDATE_REQUEST, description, rules),
            self._plan_route(description),
        ]

        logger.debug(
            "Planned %s: %s",
            description.name,
            ", ".join(str(a.target_path) for a in artifacts),
        )
        return EntityPlan(entity=description.name, artifacts=tuple(artifacts))

    # -----------------------------------------------------------------
    # Public: entity plus related-entity expansion
    # -----------------------------------------------------------------

    def plan(
        self,
        description: EntityDescription,
        registry: EntityRegistry,
        expander: Optional[Expander] = None,
        timestamp: Optional[datetime] = None,
    ) -> List[EntityPlan]:
        """
        Plan *description* and every related entity the expander supplies.

        Plans come back dependencies-first.  Migration timestamps start at
        *timestamp* and advance one second per plan so that migrations sort
        in the same order.

        Raises:
            CyclicRelationError: an entity needs a foreign key to an entity
                that is still waiting for it.
            ExpansionDepthError: expansion nests deeper than allowed.
        """
        base: datetime = timestamp or datetime.now()
        ordered: List[EntityDescription] = []
        self._collect(description, registry, expander, ordered)

        plans: List[EntityPlan] = [
            self.plan_entity(desc, base + timedelta(seconds=offset))
            for offset, desc in enumerate(ordered)
        ]
        logger.info(
            "Planning order: %s", " → ".join(p.entity for p in plans)
        )
        return plans

    def _collect(
        self,
        description: EntityDescription,
        registry: EntityRegistry,
        expander: Optional[Expander],
        ordered: List[EntityDescription],
    ) -> None:
        registry.enter(description.name)

        foreign_keys: Set[str] = {
            r.related_entity_name
            for r in description.relations
            if r.kind == RelationKind.BELONGS_TO
        }

        for related in description.related_entity_names:
            if related == description.name or registry.knows(related):
                continue
            if registry.in_progress(related):
                # A foreign key on an entity still waiting for this one can
                # never be migrated in order.
                if related in foreign_keys:
                    raise CyclicRelationError(registry.chain + [related])
                logger.debug(
                    "%s refers back to %s, which is already being planned.",
                    description.name,
                    related,
                )
                continue
            if expander is None:
                logger.info(
                    "%s references %s, which does not exist; not expanding.",
                    description.name,
                    related,
                )
                continue

            related_description: Optional[EntityDescription] = expander(related)
            if related_description is None:
                logger.info("Creation of related entity %s declined.", related)
                continue
            logger.info(
                "Expanding related entity %s (chain: %s).",
                related_description.name,
                " -> ".join(registry.chain),
            )
            validate_description(related_description)
            self._collect(related_description, registry, expander, ordered)

        registry.leave(description.name)
        registry.add(description.name)
        ordered.append(description)

    # -----------------------------------------------------------------
    # Per-artifact planning
    # -----------------------------------------------------------------

    def _path(self, directory: str, *parts: str) -> Path:
        return Path(directory, *parts)

    def _plan_model(self, description: EntityDescription) -> RenderedArtifact:
        fillable: str = ", ".join(php_string(n) for n in description.attribute_names)
        relation_blocks: str = "\n".join(
            render_relation_method(resolve_model_side(r))
            for r in description.relations
        )
        values: Dict[str, str] = {
            "namespace": self._config.model_namespace,
            "modelName": description.name,
            "fillableAttributes": fillable,
            "relations": relation_blocks,
        }
        return RenderedArtifact(
            kind=ArtifactKind.MODEL,
            target_path=self._path(self._config.models_dir, f"{description.name}.php"),
            template="model",
            placeholder_values=values,
        )

    def _plan_migration(
        self,
        description: EntityDescription,
        timestamp: datetime,
    ) -> RenderedArtifact:
        table: str = table_name(description.name)

        lines: List[str] = [
            render_column_line(derive_column_definition(a))
            for a in description.attributes
        ]
        for relation in description.relations:
            fk = resolve_migration_side(relation)
            if fk is not None:
                lines.extend(render_foreign_key_lines(fk))

        stamp: str = timestamp.strftime(MIGRATION_TIMESTAMP_FORMAT)
        values: Dict[str, str] = {
            "className": migration_class_name(description.name),
            "tableName": table,
            "columns": "\n".join(indent_lines(lines, level=3)),
        }
        return RenderedArtifact(
            kind=ArtifactKind.MIGRATION,
            target_path=self._path(
                self._config.migrations_dir, f"{stamp}_create_{table}_table.php"
            ),
            template="migration",
            placeholder_values=values,
        )

    def _plan_controller(self, description: EntityDescription) -> RenderedArtifact:
        name: str = description.name
        request_ns: str = f"{self._config.request_namespace}\\{name}"
        store: str = request_class_name("Store", name)
        update: str = request_class_name("Update", name)
        values: Dict[str, str] = {
            "namespace": self._config.controller_namespace,
            "controllerName": controller_class_name(name),
            "modelName": name,
            "modelClass": f"{self._config.model_namespace}\\{name}",
            "storeRequest": store,
            "updateRequest": update,
            "storeRequestClass": f"{request_ns}\\{store}",
            "updateRequestClass": f"{request_ns}\\{update}",
            "singularVariable": to_snake_case(name),
            "pluralVariable": table_name(name),
        }
        return RenderedArtifact(
            kind=ArtifactKind.CONTROLLER,
            target_path=self._path(
                self._config.controllers_dir, f"{controller_class_name(name)}.php"
            ),
            template="controller",
            placeholder_values=values,
        )

    def _plan_request(
        self,
        prefix: str,
        kind: ArtifactKind,
        description: EntityDescription,
        rules: GeneratedRules,
    ) -> RenderedArtifact:
        class_name: str = request_class_name(prefix, description.name)
        values: Dict[str, str] = {
            "namespace": f"{self._config.request_namespace}\\{description.name}",
            "className": class_name,
            "rules": "\n".join(indent_lines(render_rule_lines(rules), level=3)),
        }
        return RenderedArtifact(
            kind=kind,
            target_path=self._path(
                self._config.requests_dir, description.name, f"{class_name}.php"
            ),
            template="request",
            placeholder_values=values,
        )

    def _plan_route(self, description: EntityDescription) -> RenderedArtifact:
        return RenderedArtifact(
            kind=ArtifactKind.ROUTE_REGISTRATION,
            target_path=Path(self._config.routes_file),
            template=None,
            placeholder_values={
                "entityName": description.name,
                "resourceName": resource_name(description.name),
                "controllerClass": controller_class_name(description.name),
            },
        )


__all__: List[str] = [
    "ArtifactPlanner",
    "Expander",
    "MIGRATION_TIMESTAMP_FORMAT",
    "controller_class_name",
    "migration_class_name",
    "request_class_name",
    "resource_name",
    "table_name",
]
