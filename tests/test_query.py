from __future__ import annotations

from typing import List

from typegraph.models import FieldDefinition, TypeDefinition, TypeRef, TypeRelationship
from typegraph.query import focus_relationships, group_relationships_by_kind, search_types


def _type(name: str, kind: str = "struct", visibility: str = "public", fields: int = 0) -> TypeDefinition:
    return TypeDefinition(
        name=name,
        kind=kind,  # type: ignore[arg-type]
        file="src/lib.rs",
        line=1,
        language="rust",
        visibility=visibility,  # type: ignore[arg-type]
        fields=[FieldDefinition(name=f"f{index}", type_ref=TypeRef(name="i32", raw="i32")) for index in range(fields)],
    )


def _relationship(from_type: str, to_type: str, kind: str) -> TypeRelationship:
    return TypeRelationship(from_type=from_type, to_type=to_type, kind=kind, file="src/lib.rs")  # type: ignore[arg-type]


TYPES = {
    "api": [
        _type("UserProfile", fields=1),
        _type("user_settings", visibility="private", fields=5),
        _type("Order", fields=3),
    ],
    "web": [
        _type("User", kind="interface", fields=2),
        _type("UserRole", kind="enum"),
    ],
}


def _names(results) -> List[str]:
    return [f"{repo}:{type_def.name}" for repo, type_def in results]


def test_name_search_is_normalised_and_ranked() -> None:
    results = search_types(TYPES, name="user")

    assert _names(results) == ["web:User", "api:UserProfile", "web:UserRole", "api:user_settings"]


def test_search_filters_by_kind_and_repo() -> None:
    assert _names(search_types(TYPES, kind="enum")) == ["web:UserRole"]
    assert _names(search_types(TYPES, repo="api", name="ORDER")) == ["api:Order"]
    assert _names(search_types(TYPES, name="user-settings")) == ["api:user_settings"]


def test_search_limit() -> None:
    assert len(search_types(TYPES, limit=2)) == 2
    assert search_types(TYPES, limit=0) == []


def test_focus_and_grouping() -> None:
    relationships = [
        _relationship("Order", "LineItem", "collection"),
        _relationship("Order", "Customer", "contains"),
        _relationship("Admin", "User", "extends"),
    ]

    assert focus_relationships(relationships, "line_item") == relationships[:1]
    assert focus_relationships(relationships, "order") == relationships[:2]

    grouped = group_relationships_by_kind(relationships)
    assert list(grouped) == ["collection", "contains", "extends"]
    assert grouped["extends"] == relationships[2:]
