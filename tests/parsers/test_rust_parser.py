"""Tests for the Rust parser."""

from __future__ import annotations

import textwrap

from typegraph.parsers.rust import RustParser, parse_visibility

SOURCE = textwrap.dedent(
    """
    use serde::{Deserialize, Serialize};

    /// An invoice issued to a customer.
    #[derive(Debug, Clone, Serialize)]
    pub struct Invoice<'a, T: Clone> {
        /// Primary key, unique per tenant.
        pub id: u64,
        pub items: Vec<LineItem>,
        #[serde(default)]
        pub note: Option<String>,
        pub(crate) cache: HashMap<String, T>,
        label: &'a str,
    }

    pub struct LineItem(pub String, u32);

    pub struct Marker;

    pub enum Error {
        NotFound(String),
        Invalid { field: String, reason: String },
        Timeout,
    }

    pub enum Level {
        Low = 1,
        High = 0x10,
    }

    pub trait Repository: Send + Sync {
        fn get(&self, id: u64) -> Option<Invoice>;
    }

    pub(crate) type InvoiceMap = HashMap<u64, Invoice>;

    struct Hidden {
        value: i32,
    }
    """
)


def _by_name(include_private: bool = True):
    return {t.name: t for t in RustParser().parse(SOURCE, "src/billing.rs", include_private)}


def test_braced_struct_fields_generics_and_metadata() -> None:
    invoice = _by_name()["Invoice"]

    assert invoice.kind == "struct"
    assert invoice.language == "rust"
    assert invoice.visibility == "public"
    assert invoice.generics == ["T"]
    assert invoice.doc == "An invoice issued to a customer."
    assert invoice.decorators == ["derive(Debug, Clone, Serialize)"]
    assert invoice.line == 6

    fields = {f.name: f for f in invoice.fields or []}
    assert list(fields) == ["id", "items", "note", "cache", "label"]
    assert fields["id"].doc == "Primary key, unique per tenant."
    assert fields["items"].type_ref.name == "LineItem"
    assert fields["items"].type_ref.is_collection is True
    assert fields["note"].optional is True
    assert fields["note"].decorators == ["serde(default)"]
    assert fields["cache"].visibility == "internal"
    assert fields["label"].visibility == "private"


def test_tuple_and_unit_structs() -> None:
    types = _by_name()

    line_item = types["LineItem"]
    assert [f.name for f in line_item.fields or []] == ["_0", "_1"]
    assert [f.type_ref.name for f in line_item.fields or []] == ["String", "u32"]
    assert (line_item.fields or [])[0].visibility == "public"
    assert types["Marker"].fields == []


def test_enum_variant_shapes() -> None:
    error = _by_name()["Error"]

    variants = {v.name: v for v in error.variants or []}
    assert list(variants) == ["NotFound", "Invalid", "Timeout"]
    assert [f.name for f in variants["NotFound"].fields or []] == ["_0"]
    assert [f.name for f in variants["Invalid"].fields or []] == ["field", "reason"]
    assert variants["Timeout"].fields is None

    level = _by_name()["Level"]
    assert [(v.name, v.value) for v in level.variants or []] == [("Low", 1), ("High", 16)]


def test_trait_supertraits_and_alias() -> None:
    types = _by_name()

    repository = types["Repository"]
    assert repository.kind == "trait"
    assert [ref.name for ref in repository.extends or []] == ["Send", "Sync"]

    alias = types["InvoiceMap"]
    assert alias.kind == "type_alias"
    assert alias.visibility == "internal"


def test_declaration_order_is_preserved() -> None:
    names = [t.name for t in RustParser().parse(SOURCE, "src/billing.rs")]

    assert names == [
        "Invoice",
        "LineItem",
        "Marker",
        "Error",
        "Level",
        "Repository",
        "InvoiceMap",
        "Hidden",
    ]


def test_public_only_drops_private_and_crate_visible_types() -> None:
    names = set(_by_name(include_private=False))

    assert "Hidden" not in names
    assert "InvoiceMap" not in names
    assert "Invoice" in names


def test_visibility_markers() -> None:
    assert parse_visibility("pub ") == "public"
    assert parse_visibility("pub(crate) ") == "internal"
    assert parse_visibility("pub(super) ") == "protected"
    assert parse_visibility(None) == "private"


def test_parsing_is_idempotent() -> None:
    parser = RustParser()

    assert parser.parse(SOURCE, "a.rs") == parser.parse(SOURCE, "a.rs")


def test_nested_generic_bounds_keep_the_type() -> None:
    content = textwrap.dedent(
        """
        pub struct Wrapper<T: Into<String>> {
            pub inner: T,
        }

        pub struct Callback<F: Fn(u32) -> u32>(F);

        pub enum Either<L: AsRef<str>, R> {
            Left(L),
            Right(R),
        }
        """
    )

    types = {t.name: t for t in RustParser().parse(content, "wrap.rs")}

    assert types["Wrapper"].generics == ["T"]
    assert [f.name for f in types["Wrapper"].fields or []] == ["inner"]
    assert types["Callback"].generics == ["F"]
    assert types["Either"].generics == ["L", "R"]
