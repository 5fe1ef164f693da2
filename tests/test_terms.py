"""
Tests for the UPLC Term model.

These tests verify:
    - Term objects can be created and composed
    - Terms are immutable
    - Constant types render and compare structurally
    - The builtin table is a stable tag ordering
"""

import dataclasses

import pytest
from uplcview.terms import (
    BUILTIN_NAMES,
    BUILTIN_TAGS,
    INTEGER,
    DATA,
    Apply,
    Builtin,
    Case,
    Const,
    Constr,
    ConstType,
    Delay,
    Error,
    Force,
    Lambda,
    Term,
    TypeTag,
    Var,
    list_of,
    pair_of,
    uses_sums_of_products,
)


class TestTermVariants:
    """Every variant is a Term and is frozen."""

    @pytest.mark.parametrize("term", [
        Var(1),
        Lambda(Var(1)),
        Apply(Builtin("addInteger"), Const(INTEGER, 1)),
        Delay(Error()),
        Force(Delay(Error())),
        Const(INTEGER, 7),
        Builtin("trace"),
        Error(),
        Constr(0, ()),
        Case(Constr(1, ()), (Error(), Error())),
    ])
    def test_variant_is_term(self, term):
        assert isinstance(term, Term)

    def test_var_immutable(self):
        var = Var(1)
        with pytest.raises(dataclasses.FrozenInstanceError):
            var.index = 2

    def test_constr_defaults_to_no_fields(self):
        assert Constr(3).fields == ()

    def test_structural_equality(self):
        """Two independently built trees with the same shape are equal."""
        left = Lambda(Apply(Var(1), Const(INTEGER, 5)))
        right = Lambda(Apply(Var(1), Const(INTEGER, 5)))
        assert left == right
        assert hash(left) == hash(right)


class TestConstType:
    """Constant types."""

    def test_simple_type_names(self):
        assert str(INTEGER) == "integer"
        assert str(DATA) == "data"

    def test_nested_type_names(self):
        nested = list_of(pair_of(INTEGER, DATA))
        assert str(nested) == "(list (pair integer data))"

    def test_type_tags_match_flat_encoding(self):
        assert TypeTag.INTEGER.value == 0
        assert TypeTag.APPLY.value == 7
        assert TypeTag.DATA.value == 8

    def test_types_compare_by_structure(self):
        assert list_of(INTEGER) == ConstType(TypeTag.LIST, (INTEGER,))


class TestBuiltins:
    """The builtin tag table."""

    def test_first_and_well_known_tags(self):
        assert BUILTIN_NAMES[0] == "addInteger"
        assert BUILTIN_TAGS["ifThenElse"] == 26
        assert BUILTIN_TAGS["unConstrData"] == 42
        assert BUILTIN_TAGS["serialiseData"] == 51

    def test_names_are_unique(self):
        assert len(set(BUILTIN_NAMES)) == len(BUILTIN_NAMES)

    def test_tags_fit_seven_bits(self):
        assert len(BUILTIN_NAMES) <= 128


class TestSumsOfProducts:
    """Detection of constr/case usage."""

    def test_plain_term(self):
        assert not uses_sums_of_products(Lambda(Apply(Var(1), Var(1))))

    def test_nested_case(self):
        term = Lambda(Force(Delay(Case(Var(1), (Error(),)))))
        assert uses_sums_of_products(term)

    def test_constr_in_argument(self):
        assert uses_sums_of_products(Apply(Var(1), Constr(0)))
