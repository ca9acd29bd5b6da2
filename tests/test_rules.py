"""
tests/test_rules.py
Unit tests for crudgen.rules (validation rules and migration columns).

Every ValueType x nullable combination is enumerated explicitly.
"""

from __future__ import annotations

import itertools

import pytest

from crudgen.exceptions import UnknownValueTypeError
from crudgen.models import Attribute, ColumnType, ValueType
from crudgen.rules import (
    DEFAULT_DATETIME_FORMAT,
    derive_column_definition,
    derive_rules,
    derive_validation_rule,
    render_column_line,
    render_rule_lines,
)


EXPECTED = {
    (ValueType.STRING, False): ("required|string|max:255", ColumnType.STRING),
    (ValueType.STRING, True): ("nullable|string|max:255", ColumnType.STRING),
    (ValueType.INTEGER, False): ("required|integer", ColumnType.INTEGER),
    (ValueType.INTEGER, True): ("nullable|integer", ColumnType.INTEGER),
    (ValueType.FLOAT, False): ("required|numeric", ColumnType.FLOAT),
    (ValueType.FLOAT, True): ("nullable|numeric", ColumnType.FLOAT),
    (ValueType.BOOLEAN, False): ("required|boolean", ColumnType.BOOLEAN),
    (ValueType.BOOLEAN, True): ("nullable|boolean", ColumnType.BOOLEAN),
    (ValueType.DATE, False): ("required|date", ColumnType.DATE),
    (ValueType.DATE, True): ("nullable|date", ColumnType.DATE),
    (ValueType.DATETIME, False): ("required|date_format:Y-m-d H:i:s", ColumnType.DATETIME),
    (ValueType.DATETIME, True): ("nullable|date_format:Y-m-d H:i:s", ColumnType.DATETIME),
    (ValueType.TEXT, False): ("required|string", ColumnType.TEXT),
    (ValueType.TEXT, True): ("nullable|string", ColumnType.TEXT),
}


# ===========================================================================
# Totality over the 14 combinations
# ===========================================================================


class TestCombinations:
    def test_expected_table_covers_every_combination(self) -> None:
        combos = set(itertools.product(ValueType, (False, True)))
        assert combos == set(EXPECTED)
        assert len(combos) == 14

    @pytest.mark.parametrize("value_type, nullable", sorted(EXPECTED, key=str))
    def test_rule_and_column(self, value_type: ValueType, nullable: bool) -> None:
        attribute = Attribute(name="field", value_type=value_type, nullable=nullable)
        rule, column_type = EXPECTED[(value_type, nullable)]

        assert derive_validation_rule(attribute) == rule

        column = derive_column_definition(attribute)
        assert column.column_type is column_type
        assert column.name == "field"
        assert column.nullable is nullable


# ===========================================================================
# Details
# ===========================================================================


class TestRuleDetails:
    def test_custom_datetime_format(self) -> None:
        attribute = Attribute(name="paidAt", value_type=ValueType.DATETIME)
        assert derive_validation_rule(attribute, "d/m/Y H:i") == "required|date_format:d/m/Y H:i"
        assert DEFAULT_DATETIME_FORMAT == "Y-m-d H:i:s"

    def test_unknown_type_fails_both_derivations(self) -> None:
        bogus = Attribute.model_construct(name="x", value_type="money", nullable=False)
        with pytest.raises(UnknownValueTypeError):
            derive_validation_rule(bogus)
        with pytest.raises(UnknownValueTypeError):
            derive_column_definition(bogus)

    def test_derive_rules_keeps_declaration_order(self) -> None:
        attributes = [
            Attribute(name="paidAt", value_type=ValueType.DATETIME, nullable=True),
            Attribute(name="amount", value_type=ValueType.FLOAT),
        ]
        rules = derive_rules(attributes)
        assert list(rules) == ["paidAt", "amount"]
        assert rules["amount"] == "required|numeric"


class TestLineRenderers:
    def test_column_lines(self) -> None:
        amount = derive_column_definition(Attribute(name="amount", value_type=ValueType.FLOAT))
        paid_at = derive_column_definition(
            Attribute(name="paidAt", value_type=ValueType.DATETIME, nullable=True)
        )
        assert render_column_line(amount) == "$table->float('amount');"
        assert render_column_line(paid_at) == "$table->dateTime('paidAt')->nullable();"

    def test_rule_lines(self) -> None:
        lines = render_rule_lines({"amount": "required|numeric", "paidAt": "nullable|date"})
        assert lines == [
            "'amount' => 'required|numeric',",
            "'paidAt' => 'nullable|date',",
        ]
