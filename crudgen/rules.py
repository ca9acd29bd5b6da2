# File: crudgen/rules.py
"""
CrudGen - Attribute Rule Derivation
====================================
Maps an attribute's declared type and nullability to

    (a) a validation-rule string for the Store/Update request classes, and
    (b) a column definition for the migration.

Both derivations read the same ``_TYPE_TABLE``.  Adding a ``ValueType``
without a row here makes *both* fail with ``UnknownValueTypeError`` rather
than letting validation and storage silently disagree.

The rule map for an entity (``GeneratedRules``) is computed once by
``derive_rules`` and handed unformatted to every consumer.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Tuple

from crudgen.exceptions import UnknownValueTypeError
from crudgen.models import Attribute, ColumnSpec, ColumnType, ValueType
from crudgen.utils import php_string

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudgen.rules")

DEFAULT_DATETIME_FORMAT: str = "Y-m-d H:i:s"

GeneratedRules = Dict[str, str]

# valueType -> (validation clause, storage column type)
_TYPE_TABLE: Dict[ValueType, Tuple[str, ColumnType]] = {
    ValueType.STRING: ("string|max:255", ColumnType.STRING),
    ValueType.INTEGER: ("integer", ColumnType.INTEGER),
    ValueType.FLOAT: ("numeric", ColumnType.FLOAT),
    ValueType.BOOLEAN: ("boolean", ColumnType.BOOLEAN),
    ValueType.DATE: ("date", ColumnType.DATE),
    ValueType.DATETIME: ("date_format:{datetime_format}", ColumnType.DATETIME),
    ValueType.TEXT: ("string", ColumnType.TEXT),
}


def _lookup(value_type: object) -> Tuple[str, ColumnType]:
    try:
        return _TYPE_TABLE[value_type]  # type: ignore[index]
    except (KeyError, TypeError) as exc:
        raise UnknownValueTypeError(value_type) from exc


def derive_validation_rule(
    attribute: Attribute,
    datetime_format: str = DEFAULT_DATETIME_FORMAT,
) -> str:
    """
    Return the validation rule for one attribute.

    Examples:
        float, not nullable  -> ``required|numeric``
        datetime, nullable   -> ``nullable|date_format:Y-m-d H:i:s``
    """
    clause, _ = _lookup(attribute.value_type)
    presence: str = "nullable" if attribute.nullable else "required"
    return f"{presence}|{clause.format(datetime_format=datetime_format)}"


def derive_column_definition(attribute: Attribute) -> ColumnSpec:
    """Return the migration column spec for one attribute."""
    _, column_type = _lookup(attribute.value_type)
    return ColumnSpec(
        column_type=column_type,
        name=attribute.name,
        nullable=attribute.nullable,
    )


def derive_rules(
    attributes: Iterable[Attribute],
    datetime_format: str = DEFAULT_DATETIME_FORMAT,
) -> GeneratedRules:
    """Rule map for an entity, keyed by attribute name in declaration order."""
    rules: GeneratedRules = {}
    for attribute in attributes:
        rules[attribute.name] = derive_validation_rule(attribute, datetime_format)
    logger.debug("Derived %d validation rule(s).", len(rules))
    return rules


# ---------------------------------------------------------------------------
# Line renderers
# ---------------------------------------------------------------------------


def render_column_line(column: ColumnSpec) -> str:
    """``$table->float('amount');`` / ``$table->dateTime('paidAt')->nullable();``"""
    modifier: str = "->nullable()" if column.nullable else ""
    return f"$table->{column.column_type.value}({php_string(column.name)}){modifier};"


def render_rule_lines(rules: GeneratedRules) -> List[str]:
    """``'amount' => 'required|numeric',`` — one line per rule."""
    return [f"{php_string(name)} => {php_string(rule)}," for name, rule in rules.items()]


__all__: List[str] = [
    "DEFAULT_DATETIME_FORMAT",
    "GeneratedRules",
    "derive_validation_rule",
    "derive_column_definition",
    "derive_rules",
    "render_column_line",
    "render_rule_lines",
]
