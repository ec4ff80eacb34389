# tests/test_typeref.py
"""
Tests for the type reference parser: decorations, qualifiers, generic
argument lists, basic-type short-circuit and malformed input.
"""

import pytest

from jdocgen.typeref import (
    BASIC_TYPES,
    TYPE_GRAMMAR,
    parse_type,
    split_leading_type,
    split_type_arguments,
)


class TestGrammarWellFormed:

    def test_key_rules_exist(self):
        for rule in ("type_expr", "decoration", "named", "type_args", "opaque"):
            assert rule in TYPE_GRAMMAR, f"Rule {rule!r} missing"


class TestNamedTypes:

    def test_plain_name(self):
        ref = parse_type("ReportItem")
        assert ref.base_name == "ReportItem"
        assert ref.qualifier == ""
        assert ref.type_arguments == ()
        assert not ref.is_basic
        assert ref.may_be_structure

    def test_qualified_name(self):
        ref = parse_type("models.User")
        assert ref.qualifier == "models"
        assert ref.base_name == "User"
        assert ref.qualified_name == "models.User"

    def test_surrounding_whitespace_is_ignored(self):
        assert parse_type("  User \t").base_name == "User"

    def test_unicode_identifier(self):
        assert parse_type("Größe").base_name == "Größe"


class TestDecorations:

    @pytest.mark.parametrize("text, decorations", [
        ("*User", "*"),
        ("[]User", "[]"),
        ("[]*User", "[]*"),
        ("*[]User", "*[]"),
        ("[4]User", "[4]"),
        ("...User", "..."),
        ("map[string]User", "map[string]"),
        ("map[string][]*User", "map[string][]*"),
    ])
    def test_decorations_are_stripped_for_lookup(self, text, decorations):
        ref = parse_type(text)
        assert ref.base_name == "User"
        assert ref.decorations == decorations

    def test_spelling_keeps_decorations(self):
        assert parse_type("[]*m.Page[Item]").spelling == "[]*m.Page[Item]"

    def test_text_is_original_input(self):
        assert parse_type(" []User ").text == "[]User"


class TestGenericArguments:

    def test_single_argument(self):
        ref = parse_type("Pagination[ReportItem]")
        assert ref.base_name == "Pagination"
        assert [a.base_name for a in ref.type_arguments] == ["ReportItem"]
        assert ref.is_generic

    def test_nested_arguments_split_on_top_level_commas(self):
        ref = parse_type("Pair[Outer[Inner], string]")
        assert len(ref.type_arguments) == 2
        outer, second = ref.type_arguments
        assert outer.base_name == "Outer"
        assert [a.base_name for a in outer.type_arguments] == ["Inner"]
        assert second.base_name == "string"
        assert second.is_basic

    def test_qualified_generic_with_decorated_arguments(self):
        ref = parse_type("*m.Page[[]r.Item, map[string]int]")
        assert ref.qualifier == "m"
        assert ref.base_name == "Page"
        first, second = ref.type_arguments
        assert (first.qualifier, first.base_name, first.decorations) == ("r", "Item", "[]")
        assert second.base_name == "int"
        assert second.decorations == "map[string]"

    def test_spaces_inside_argument_list(self):
        ref = parse_type("Pair[ A ,B ]")
        assert [a.base_name for a in ref.type_arguments] == ["A", "B"]
        assert ref.spelling == "Pair[A, B]"

    def test_generic_is_not_basic(self):
        assert not parse_type("int[T]").is_basic


class TestBasicTypes:

    @pytest.mark.parametrize("text", ["int", "string", "bool", "[]byte", "*float64", "error", "any"])
    def test_basic_types_short_circuit(self, text):
        ref = parse_type(text)
        assert ref.is_basic
        assert not ref.may_be_structure

    def test_every_scalar_is_listed(self):
        for name in ("uintptr", "rune", "complex128", "uint8", "int64"):
            assert name in BASIC_TYPES

    def test_qualified_basic_name_is_not_basic(self):
        assert not parse_type("pkg.string").is_basic


class TestOpaqueTypes:

    @pytest.mark.parametrize("text", [
        "chan int",
        "<-chan User",
        "chan<- User",
        "func(a int) string",
        "func()",
        "interface{}",
        "struct{ A int }",
        "struct{Backoff struct{Min int}}",
        "func(next func(int) int) error",
        "func(a, b int) (int, error)",
        "interface{M() interface{}}",
        "chan func(struct{}) error",
    ])
    def test_opaque_types_are_not_structures(self, text):
        ref = parse_type(text)
        assert ref.opaque
        assert not ref.malformed
        assert not ref.may_be_structure

    def test_slice_of_channels_is_opaque(self):
        ref = parse_type("[]chan int")
        assert ref.opaque
        assert ref.decorations == "[]"


class TestMalformed:

    @pytest.mark.parametrize("text", [
        "Pair[A, B", "Pair]A[", "[]", "Page[]", "a..b", "",
        "struct{A struct{B int}", "func(a func(int) int",
    ])
    def test_malformed_input_never_raises(self, text):
        ref = parse_type(text)
        assert ref.malformed
        assert ref.type_arguments == ()
        assert ref.base_name == text.strip()
        assert not ref.may_be_structure


class TestSplitHelpers:

    def test_split_type_arguments(self):
        assert split_type_arguments("ReportItem, Pair[Details, Info]") == [
            "ReportItem", "Pair[Details, Info]",
        ]

    def test_split_type_arguments_single(self):
        assert split_type_arguments("string") == ["string"]

    def test_split_leading_type_keeps_bracketed_spaces(self):
        assert split_leading_type("Pair[A, B] the pair") == ("Pair[A, B]", "the pair")

    def test_split_leading_type_without_rest(self):
        assert split_leading_type("  User") == ("User", "")
