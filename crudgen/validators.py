# File: crudgen/validators.py
"""
CrudGen - Input Validators
===========================
Pydantic handles the structure of an ``EntityDescription``; this module adds
the semantic checks that must hold before anything is derived from it:

- attribute names are non-empty and unique within the entity
  (``InvalidAttributeError``);
- every attribute type is one of the seven ``ValueType`` members
  (``UnknownValueTypeError``), even for descriptions built with
  ``model_construct`` that bypassed pydantic;
- every relation kind is one of the four ``RelationKind`` members.

Non-fatal observations (a relation pointing at the entity itself, an
attribute that collides with a generated foreign-key column, ...) are
collected into a ``ValidationResult`` and logged as warnings.

The ``coerce_*`` / ``make_*`` helpers are what the interaction layer uses to
turn raw user answers into model instances.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set

from crudgen.exceptions import (
    DescriptionFileError,
    InvalidAttributeError,
    UnknownRelationKindError,
    UnknownValueTypeError,
)
from crudgen.models import (
    Attribute,
    EntityDescription,
    Relation,
    RelationKind,
    ValueType,
)
from crudgen.utils import entity_name, to_camel_case, to_snake_case

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudgen.validators")

# Accepted spellings for user-typed values
_VALUE_TYPE_ALIASES: Dict[str, ValueType] = {
    "str": ValueType.STRING,
    "varchar": ValueType.STRING,
    "int": ValueType.INTEGER,
    "double": ValueType.FLOAT,
    "decimal": ValueType.FLOAT,
    "bool": ValueType.BOOLEAN,
    "date_time": ValueType.DATETIME,
    "timestamp": ValueType.DATETIME,
}

_COLUMNS_ADDED_BY_MIGRATION: Set[str] = {"id", "created_at", "updated_at"}

_NULLABLE_WORDS: Dict[str, bool] = {
    "true": True,
    "yes": True,
    "1": True,
    "false": False,
    "no": False,
    "0": False,
}


# ---------------------------------------------------------------------------
# Validation result container
# ---------------------------------------------------------------------------


class ValidationIssue:
    """Lightweight warning descriptor."""

    __slots__ = ("code", "message")

    def __init__(self, code: str, message: str) -> None:
        self.code: str = code
        self.message: str = message

    def __repr__(self) -> str:
        return f"[WARNING] {self.code}: {self.message}"

    def __str__(self) -> str:
        return self.__repr__()


class ValidationResult:
    """
    Accumulates non-fatal ``ValidationIssue`` instances.

    Fatal problems are raised, never collected.
    """

    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: List[ValidationIssue] = []

    def add_warning(self, code: str, message: str) -> None:
        self._items.append(ValidationIssue(code, message))

    @property
    def warnings(self) -> List[ValidationIssue]:
        return list(self._items)

    def summary(self) -> str:
        return f"Validation: {len(self._items)} warning(s)."

    def __repr__(self) -> str:
        return f"<ValidationResult {self.summary()}>"

    def __len__(self) -> int:
        return len(self._items)


# ---------------------------------------------------------------------------
# Coercion helpers (raw answers → enums / models)
# ---------------------------------------------------------------------------


def coerce_value_type(raw: Any) -> ValueType:
    """
    Map a user-typed type name to ``ValueType``.

    Raises:
        UnknownValueTypeError: for anything outside the seven kinds.
    """
    if isinstance(raw, ValueType):
        return raw
    if not isinstance(raw, str):
        raise UnknownValueTypeError(raw)
    key: str = raw.strip().lower()
    try:
        return ValueType(key)
    except ValueError:
        pass
    if key in _VALUE_TYPE_ALIASES:
        return _VALUE_TYPE_ALIASES[key]
    raise UnknownValueTypeError(raw)


def coerce_relation_kind(raw: Any) -> RelationKind:
    """
    Map ``belongsTo`` / ``belongs_to`` / ``BelongsTo`` ... to ``RelationKind``.

    Raises:
        UnknownRelationKindError: for anything outside the four kinds.
    """
    if isinstance(raw, RelationKind):
        return raw
    if not isinstance(raw, str) or not raw.strip():
        raise UnknownRelationKindError(raw)
    try:
        return RelationKind(to_camel_case(raw))
    except ValueError as exc:
        raise UnknownRelationKindError(raw) from exc


def make_attribute(
    name: Optional[str],
    value_type: Any,
    nullable: bool = False,
    *,
    existing: Iterable[str] = (),
) -> Attribute:
    """
    Build an ``Attribute`` from raw answers.

    Args:
        name: Attribute name as typed.
        value_type: Type name or ``ValueType``.
        nullable: Whether the attribute may be NULL.
        existing: Names already collected for the same entity.

    Raises:
        InvalidAttributeError: empty or duplicate name.
        UnknownValueTypeError: unsupported type.
    """
    if name is None or not str(name).strip():
        raise InvalidAttributeError("Attribute name must not be empty.")
    canonical: str = to_camel_case(str(name))
    if canonical in set(existing):
        raise InvalidAttributeError(
            f"Attribute '{canonical}' is already defined.", canonical
        )
    return Attribute(
        name=canonical,
        value_type=coerce_value_type(value_type),
        nullable=bool(nullable),
    )


def make_relation(kind: Any, related: Optional[str]) -> Relation:
    """
    Build a ``Relation`` from raw answers.

    Raises:
        UnknownRelationKindError: unsupported kind.
        InvalidIdentifierError: empty related model name.
    """
    return Relation(
        kind=coerce_relation_kind(kind),
        related_entity_name=entity_name(related or ""),
    )


def _require_list(items: Any, section: str) -> Iterable[Any]:
    if isinstance(items, (str, bytes, Mapping)):
        raise DescriptionFileError(
            f"'{section}' must be a list, got {type(items).__name__}."
        )
    return items


def _require_mapping(item: Any, section: str, index: int) -> Mapping[str, Any]:
    if not isinstance(item, Mapping):
        raise DescriptionFileError(
            f"{section}[{index}] must be a mapping, got {type(item).__name__}: "
            f"{item!r}."
        )
    return item


def parse_nullable(raw: Any) -> bool:
    """
    Read a description-file ``nullable`` value.

    Accepts booleans, ``0``/``1`` and the words true/false/yes/no.

    Raises:
        DescriptionFileError: anything else.
    """
    if raw is None:
        return False
    if isinstance(raw, bool):
        return raw
    key: str = str(raw).strip().lower()
    if isinstance(raw, (int, str)) and key in _NULLABLE_WORDS:
        return _NULLABLE_WORDS[key]
    raise DescriptionFileError(f"'nullable' must be true or false, got {raw!r}.")


def parse_attributes(items: Iterable[Any]) -> List[Attribute]:
    """
    Build attributes from description-file mappings, in order.

    Raises:
        DescriptionFileError: *items* is not a list, an item is not a
            mapping, or an item has a bad ``nullable`` value.
    """
    attributes: List[Attribute] = []
    for index, raw in enumerate(_require_list(items, "attributes")):
        item: Mapping[str, Any] = _require_mapping(raw, "attributes", index)
        attributes.append(
            make_attribute(
                item.get("name"),
                item.get("type", ValueType.STRING.value),
                parse_nullable(item.get("nullable")),
                existing=[a.name for a in attributes],
            )
        )
    return attributes


def parse_relations(items: Iterable[Any]) -> List[Relation]:
    """Build relations from description-file mappings, in order."""
    relations: List[Relation] = []
    for index, raw in enumerate(_require_list(items, "relations")):
        item: Mapping[str, Any] = _require_mapping(raw, "relations", index)
        relations.append(
            make_relation(item.get("kind", item.get("type")), item.get("model"))
        )
    return relations


# ---------------------------------------------------------------------------
# Entity validation
# ---------------------------------------------------------------------------


def check_attributes(attributes: Iterable[Attribute]) -> None:
    """
    Raise on the first empty, duplicate or mistyped attribute.

    Raises:
        InvalidAttributeError: empty or duplicate name.
        UnknownValueTypeError: ``value_type`` is not a ``ValueType``.
    """
    seen: Set[str] = set()
    for attribute in attributes:
        if not attribute.name:
            raise InvalidAttributeError("Attribute name must not be empty.")
        if attribute.name in seen:
            raise InvalidAttributeError(
                f"Attribute '{attribute.name}' is defined more than once.",
                attribute.name,
            )
        seen.add(attribute.name)
        if not isinstance(attribute.value_type, ValueType):
            raise UnknownValueTypeError(attribute.value_type)


def check_relations(relations: Iterable[Relation]) -> None:
    """Raise on the first relation whose kind is not a ``RelationKind``."""
    for relation in relations:
        if not isinstance(relation.kind, RelationKind):
            raise UnknownRelationKindError(relation.kind)


def validate_description(description: EntityDescription) -> ValidationResult:
    """
    Revalidate a description before planning.

    Hard failures raise; soft findings are returned as warnings.
    """
    check_attributes(description.attributes)
    check_relations(description.relations)

    result: ValidationResult = ValidationResult()
    attribute_names: Set[str] = set(description.attribute_names)
    snake_names: Set[str] = {to_snake_case(n) for n in attribute_names}

    for name in sorted(snake_names & _COLUMNS_ADDED_BY_MIGRATION):
        result.add_warning(
            "ATTRIBUTE_SHADOWS_DEFAULT_COLUMN",
            f"{description.name}.{name} duplicates a column the migration "
            "already creates.",
        )

    seen_relations: Set[tuple] = set()
    for relation in description.relations:
        key = (relation.kind, relation.related_entity_name)
        if key in seen_relations:
            result.add_warning(
                "DUPLICATE_RELATION",
                f"{description.name} declares {relation.kind.value} "
                f"{relation.related_entity_name} more than once.",
            )
        seen_relations.add(key)

        if relation.kind == RelationKind.BELONGS_TO:
            fk_column: str = f"{to_snake_case(relation.related_entity_name)}_id"
            if fk_column in snake_names:
                result.add_warning(
                    "ATTRIBUTE_SHADOWS_FOREIGN_KEY",
                    f"{description.name} declares attribute '{fk_column}' and a "
                    f"belongsTo {relation.related_entity_name} relation that "
                    "creates the same column.",
                )

    for issue in result.warnings:
        logger.warning("  ⚠ %s", issue)

    return result


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "ValidationIssue",
    "ValidationResult",
    "coerce_value_type",
    "coerce_relation_kind",
    "make_attribute",
    "make_relation",
    "parse_attributes",
    "parse_nullable",
    "parse_relations",
    "check_attributes",
    "check_relations",
    "validate_description",
]

logger.debug("crudgen.validators loaded.")
