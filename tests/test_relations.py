"""
tests/test_relations.py
Unit tests for crudgen.relations (model accessors and foreign keys).
"""

from __future__ import annotations

import pytest

from crudgen.models import OnDeleteAction, Relation, RelationKind
from crudgen.relations import (
    method_name_for,
    render_foreign_key_lines,
    render_relation_method,
    resolve_migration_side,
    resolve_model_side,
)


def _relation(kind: RelationKind, related: str) -> Relation:
    return Relation(kind=kind, related_entity_name=related)


class TestMethodNaming:
    @pytest.mark.parametrize(
        "kind, related, expected",
        [
            (RelationKind.BELONGS_TO, "Customer", "customer"),
            (RelationKind.HAS_ONE, "Profile", "profile"),
            (RelationKind.HAS_MANY, "LineItem", "lineItems"),
            (RelationKind.BELONGS_TO_MANY, "Category", "categories"),
        ],
    )
    def test_name_follows_cardinality(
        self, kind: RelationKind, related: str, expected: str
    ) -> None:
        assert method_name_for(_relation(kind, related)) == expected

    def test_model_side(self) -> None:
        method = resolve_model_side(_relation(RelationKind.BELONGS_TO, "Customer"))
        assert method.method_name == "customer"
        assert method.relation_kind is RelationKind.BELONGS_TO
        assert method.related_class == "Customer"


class TestForeignKeys:
    def test_belongs_to_creates_foreign_key(self) -> None:
        fk = resolve_migration_side(_relation(RelationKind.BELONGS_TO, "Customer"))
        assert fk is not None
        assert fk.column_name == "customer_id"
        assert fk.referenced_table == "customers"
        assert fk.referenced_column == "id"
        assert fk.on_delete is OnDeleteAction.CASCADE
        assert fk.nullable is True

    def test_compound_name(self) -> None:
        fk = resolve_migration_side(_relation(RelationKind.BELONGS_TO, "LineItem"))
        assert fk is not None
        assert (fk.column_name, fk.referenced_table) == ("line_item_id", "line_items")

    @pytest.mark.parametrize(
        "kind",
        [RelationKind.HAS_ONE, RelationKind.HAS_MANY, RelationKind.BELONGS_TO_MANY],
    )
    def test_other_kinds_create_nothing(self, kind: RelationKind) -> None:
        assert resolve_migration_side(_relation(kind, "Customer")) is None


class TestRenderers:
    def test_relation_method_block(self) -> None:
        method = resolve_model_side(_relation(RelationKind.HAS_MANY, "Invoice"))
        assert render_relation_method(method) == (
            "\n"
            "    public function invoices()\n"
            "    {\n"
            "        return $this->hasMany(Invoice::class);\n"
            "    }"
        )

    def test_foreign_key_lines(self) -> None:
        fk = resolve_migration_side(_relation(RelationKind.BELONGS_TO, "Customer"))
        assert fk is not None
        assert render_foreign_key_lines(fk) == [
            "$table->unsignedBigInteger('customer_id')->nullable();",
            "$table->foreign('customer_id')->references('id')->on('customers')"
            "->onDelete('cascade');",
        ]
