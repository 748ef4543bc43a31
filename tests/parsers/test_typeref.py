"""Tests for the type-reference decomposer."""

from __future__ import annotations

import pytest

from typegraph.parsers.typeref import parse_type_ref, split_generic_args


def test_collection_wrapper_extracts_element_name() -> None:
    ref = parse_type_ref("Vec<LineItem>")

    assert ref.name == "LineItem"
    assert ref.is_collection is True
    assert ref.optional is False
    assert ref.raw == "Vec<LineItem>"


def test_optional_then_collection_are_both_peeled() -> None:
    ref = parse_type_ref("Option<Vec<String>>")

    assert ref.name == "String"
    assert ref.optional is True
    assert ref.is_collection is True


@pytest.mark.parametrize(
    "raw, name",
    [
        ("Optional[User]", "User"),
        ("User?", "User"),
        ("str | None", "str"),
        ("None | str", "str"),
        ("Account | undefined", "Account"),
        ("*Order", "Order"),
    ],
)
def test_optional_forms(raw: str, name: str) -> None:
    ref = parse_type_ref(raw)

    assert ref.name == name
    assert ref.optional is True
    assert ref.raw == raw


@pytest.mark.parametrize(
    "raw, name",
    [
        ("string[]", "string"),
        ("Array<User>", "User"),
        ("List[Item]", "Item"),
        ("list[int]", "int"),
        ("[]Order", "Order"),
        ("[4]byte", "byte"),
        ("[Tag]", "Tag"),
    ],
)
def test_collection_forms(raw: str, name: str) -> None:
    ref = parse_type_ref(raw)

    assert ref.name == name
    assert ref.is_collection is True


def test_generic_arguments_are_split_at_top_level() -> None:
    ref = parse_type_ref("HashMap<String, Vec<User>>")

    assert ref.name == "HashMap"
    assert ref.generics is not None
    assert [arg.name for arg in ref.generics] == ["String", "Vec"]
    assert [arg.raw for arg in ref.generics] == ["String", "Vec<User>"]


def test_python_subscript_generics() -> None:
    ref = parse_type_ref("dict[str, Profile]")

    assert ref.name == "dict"
    assert ref.generics is not None
    assert [arg.name for arg in ref.generics] == ["str", "Profile"]


def test_quoted_forward_reference_is_unquoted() -> None:
    assert parse_type_ref('"Node"').name == "Node"
    nested = parse_type_ref('List["Item"]')
    assert nested.name == "Item"
    assert nested.is_collection is True


def test_go_slice_of_pointers_keeps_element_name() -> None:
    ref = parse_type_ref("[]*User")

    assert ref.name == "User"
    assert ref.is_collection is True


def test_plain_and_qualified_names_pass_through() -> None:
    plain = parse_type_ref("  u64 ")
    qualified = parse_type_ref("std::collections::BTreeMap<K, V>")

    assert plain.name == "u64"
    assert plain.raw == "  u64 "
    assert plain.generics is None
    assert qualified.name == "std::collections::BTreeMap"


@pytest.mark.parametrize("raw", ["", "<>", "Map<", "[", "a<b>>", "???", "[]", "Foo>"])
def test_malformed_text_never_raises(raw: str) -> None:
    ref = parse_type_ref(raw)

    assert ref.raw == raw
    assert isinstance(ref.name, str)
    assert not set(ref.name) & set("<>[]")


def test_name_never_contains_generic_brackets() -> None:
    for raw in ("Result<User, Error>", "Box<dyn Fn(u32) -> u32>", "Mapping[str, list[int]]"):
        name = parse_type_ref(raw).name
        assert not set(name) & set("<>[]"), raw


def test_split_generic_args_respects_nesting() -> None:
    assert split_generic_args("A, B<C, D>, E[F, G], (H, I)") == ["A", "B<C, D>", "E[F, G]", "(H, I)"]
    assert split_generic_args("") == []


def test_stray_brackets_are_dropped_from_name() -> None:
    assert parse_type_ref("Foo>").name == "Foo"
    assert parse_type_ref("[]").name == ""
    assert parse_type_ref("[]").raw == "[]"
