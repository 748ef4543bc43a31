from __future__ import annotations

import textwrap
from typing import List, Optional

from typegraph.models import FieldDefinition, TypeDefinition, TypeRef, VariantDefinition
from typegraph.parsers.rust import RustParser
from typegraph.parsers.typeref import parse_type_ref
from typegraph.relationships import ROOT_MODULE, build_modules, build_relationships, build_summary, module_path


def _type(
    name: str,
    file: str = "src/models.rs",
    fields: Optional[List[FieldDefinition]] = None,
    extends: Optional[List[str]] = None,
    implements: Optional[List[str]] = None,
    kind: str = "struct",
    language: str = "rust",
) -> TypeDefinition:
    return TypeDefinition(
        name=name,
        kind=kind,  # type: ignore[arg-type]
        file=file,
        line=1,
        language=language,  # type: ignore[arg-type]
        fields=fields,
        extends=[parse_type_ref(item) for item in extends] if extends else None,
        implements=[parse_type_ref(item) for item in implements] if implements else None,
    )


def _field(name: str, raw: str) -> FieldDefinition:
    return FieldDefinition(name=name, type_ref=parse_type_ref(raw))


def test_collection_field_produces_collection_edge() -> None:
    source = textwrap.dedent(
        """
        pub struct Invoice {
            pub items: Vec<LineItem>,
        }

        pub struct LineItem {
            pub sku: String,
        }
        """
    )
    types = RustParser().parse(source, "src/billing.rs")

    items = (types[0].fields or [])[0]
    assert items.type_ref.name == "LineItem"
    assert items.type_ref.is_collection is True
    assert items.type_ref.raw == "Vec<LineItem>"

    relationships = build_relationships(types)
    assert [(r.from_type, r.to_type, r.kind, r.via_field) for r in relationships] == [
        ("Invoice", "LineItem", "collection", "items")
    ]
    assert relationships[0].file == "src/billing.rs"


def test_tuple_variant_payload_of_unknown_type_has_no_edge() -> None:
    types = RustParser().parse("pub enum Error {\n    NotFound(String),\n}\n", "src/error.rs")

    variant = (types[0].variants or [])[0]
    assert [f.name for f in variant.fields or []] == ["_0"]
    assert build_relationships(types) == []


def test_variant_payload_edges_use_qualified_via_field() -> None:
    event = TypeDefinition(
        name="Event",
        kind="enum",
        file="src/event.rs",
        line=1,
        language="rust",
        variants=[VariantDefinition(name="Created", fields=[_field("_0", "Order")])],
    )
    relationships = build_relationships([event, _type("Order")])

    assert [(r.to_type, r.kind, r.via_field) for r in relationships] == [("Order", "contains", "Created._0")]


def test_edge_order_and_kinds() -> None:
    types = [
        _type(
            "Admin",
            kind="class",
            extends=["User"],
            implements=["Auditable"],
            fields=[_field("profile", "Profile"), _field("index", "HashMap<String, User>")],
        ),
        _type("User", kind="class"),
        _type("Auditable", kind="interface"),
        _type("Profile"),
    ]

    relationships = build_relationships(types)

    assert [(r.to_type, r.kind, r.via_field) for r in relationships] == [
        ("User", "extends", None),
        ("Auditable", "implements", None),
        ("Profile", "contains", "profile"),
        ("User", "references", "index"),
    ]


def test_every_edge_endpoint_is_a_known_type() -> None:
    types = [
        _type("Order", fields=[_field("customer", "Customer"), _field("tags", "Vec<String>")]),
        _type("Customer", fields=[_field("orders", "Vec<Order>"), _field("id", "Uuid")]),
    ]
    names = {t.name for t in types}

    relationships = build_relationships(types)

    assert relationships
    for relationship in relationships:
        assert relationship.from_type in names
        assert relationship.to_type in names


def test_module_path() -> None:
    assert module_path("src/models/user.rs") == "src/models"
    assert module_path("main.go") == ROOT_MODULE
    assert module_path("web\\src\\app.ts") == "web/src"


def test_modules_partition_relationships() -> None:
    types = [
        _type("Order", file="src/orders/order.rs", fields=[_field("lines", "Vec<Line>"), _field("user", "User")]),
        _type("Line", file="src/orders/line.rs"),
        _type("User", file="src/users/user.rs", fields=[_field("last", "Order")]),
        _type("Config", file="build.rs"),
    ]
    relationships = build_relationships(types)

    modules = build_modules(types, relationships)

    assert [m.path for m in modules] == ["/", "src/orders", "src/users"]
    orders = modules[1]
    assert [t.name for t in orders.types] == ["Order", "Line"]
    assert [r.to_type for r in orders.internal_relationships] == ["Line"]
    assert [r.to_type for r in orders.external_relationships] == ["User"]
    users = modules[2]
    assert users.internal_relationships == []
    assert [r.to_type for r in users.external_relationships] == ["Order"]

    for module in modules:
        names = {t.name for t in module.types}
        owned = [r for r in relationships if r.from_type in names]
        assert len(owned) == len(module.internal_relationships) + len(module.external_relationships)


def test_summary_counts() -> None:
    types = [
        _type("Order", file="src/order.rs", fields=[_field("user", "User")]),
        _type("User", file="src/user.rs"),
        _type("Status", file="web/status.ts", kind="enum", language="typescript"),
    ]
    relationships = build_relationships(types)
    modules = build_modules(types, relationships)

    summary = build_summary(types, relationships, modules)

    assert summary.by_kind == {"enum": 1, "struct": 2}
    assert summary.by_language == {"rust": 2, "typescript": 1}
    assert summary.by_module == {"src": 2, "web": 1}
    assert summary.total_types == 3
    assert summary.total_relationships == 1


def test_unknown_targets_are_dropped() -> None:
    relationships = build_relationships([_type("Order", fields=[_field("when", "DateTime<Utc>")])])

    assert relationships == []


def test_references_edge_uses_generic_name() -> None:
    field = FieldDefinition(
        name="owner",
        type_ref=TypeRef(name="reference", raw="ForeignKey(User)", generics=[TypeRef(name="User", raw="User")]),
    )
    relationships = build_relationships([_type("Post", fields=[field]), _type("User")])

    assert [(r.to_type, r.kind) for r in relationships] == [("User", "references")]
