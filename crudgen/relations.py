# File: crudgen/relations.py
"""
CrudGen - Relation Resolution
==============================
Turns each declared relation into its model-side accessor and, for
``belongsTo`` only, a migration-side foreign key.

Only ``belongsTo`` creates a column on the owning table.  ``hasOne`` and
``hasMany`` keep their key on the *related* table, and ``belongsToMany``
needs a pivot table, which is outside what a single-entity scaffold emits.

Accessor naming: to-many relations (``hasMany``, ``belongsToMany``) are named
with the plural camelCase of the related entity, to-one relations
(``hasOne``, ``belongsTo``) with the singular camelCase.  The rule depends
only on cardinality, so the same related entity always yields the same
name for a given kind.
"""

from __future__ import annotations

import logging
from typing import FrozenSet, List, Optional

from crudgen.models import ForeignKeySpec, Relation, RelationKind, RelationMethod
from crudgen.utils import php_string, to_camel_case, to_plural, to_snake_case

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudgen.relations")

_TO_MANY: FrozenSet[RelationKind] = frozenset({
    RelationKind.HAS_MANY,
    RelationKind.BELONGS_TO_MANY,
})


def method_name_for(relation: Relation) -> str:
    base: str = to_camel_case(relation.related_entity_name)
    if relation.kind in _TO_MANY:
        return to_plural(base)
    return base


def resolve_model_side(relation: Relation) -> RelationMethod:
    """Accessor method for the model, e.g. ``customer()`` → ``belongsTo(Customer)``."""
    return RelationMethod(
        method_name=method_name_for(relation),
        relation_kind=relation.kind,
        related_class=relation.related_entity_name,
    )


def resolve_migration_side(relation: Relation) -> Optional[ForeignKeySpec]:
    """
    Foreign key created on the owning table, or ``None``.

    ``belongsTo Customer`` → ``customer_id`` referencing ``customers.id``,
    nullable, cascading on delete.
    """
    if relation.kind != RelationKind.BELONGS_TO:
        return None
    snake: str = to_snake_case(relation.related_entity_name)
    return ForeignKeySpec(
        column_name=f"{snake}_id",
        referenced_table=to_plural(snake),
    )


# ---------------------------------------------------------------------------
# Line renderers
# ---------------------------------------------------------------------------


def render_relation_method(method: RelationMethod, indent: str = "    ") -> str:
    """Render one accessor method block (leading blank line included)."""
    lines: List[str] = [
        "",
        f"{indent}public function {method.method_name}()",
        f"{indent}{{",
        f"{indent}{indent}return $this->{method.relation_kind.value}"
        f"({method.related_class}::class);",
        f"{indent}}}",
    ]
    return "\n".join(lines)


def render_foreign_key_lines(fk: ForeignKeySpec) -> List[str]:
    """The unsigned key column followed by its constraint."""
    column: str = php_string(fk.column_name)
    nullable: str = "->nullable()" if fk.nullable else ""
    return [
        f"$table->unsignedBigInteger({column}){nullable};",
        f"$table->foreign({column})"
        f"->references({php_string(fk.referenced_column)})"
        f"->on({php_string(fk.referenced_table)})"
        f"->onDelete({php_string(fk.on_delete.value)});",
    ]


__all__: List[str] = [
    "method_name_for",
    "resolve_model_side",
    "resolve_migration_side",
    "render_relation_method",
    "render_foreign_key_lines",
]
