"""Search helpers over extracted types and relationships."""

from __future__ import annotations

from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from .matching import normalize_type_name
from .models import TypeDefinition, TypeRelationship

DEFAULT_SEARCH_LIMIT = 50


def _search_score(type_def: TypeDefinition) -> int:
    return (100 if type_def.visibility == "public" else 0) + len(type_def.fields or [])


def search_types(
    types_by_repo: Mapping[str, Sequence[TypeDefinition]],
    name: Optional[str] = None,
    kind: Optional[str] = None,
    repo: Optional[str] = None,
    limit: int = DEFAULT_SEARCH_LIMIT,
) -> List[Tuple[str, TypeDefinition]]:
    """Return ``(repo, type)`` pairs matching the filters, most important first.

    ``name`` is a case- and separator-insensitive substring match. Public
    types rank above non-public ones; within that, types with more fields
    come first. Ties keep input order.
    """
    needle = normalize_type_name(name) if name else None
    results: List[Tuple[str, TypeDefinition]] = []
    for repo_name, types in types_by_repo.items():
        if repo is not None and repo_name != repo:
            continue
        for type_def in types:
            if kind is not None and type_def.kind != kind:
                continue
            if needle and needle not in normalize_type_name(type_def.name):
                continue
            results.append((repo_name, type_def))
    results.sort(key=lambda item: -_search_score(item[1]))
    return results[: max(limit, 0)]


def focus_relationships(
    relationships: Sequence[TypeRelationship], type_name: str
) -> List[TypeRelationship]:
    """Keep relationships touching a type whose name contains ``type_name``."""
    needle = normalize_type_name(type_name)
    return [
        relationship
        for relationship in relationships
        if needle in normalize_type_name(relationship.from_type)
        or needle in normalize_type_name(relationship.to_type)
    ]


def group_relationships_by_kind(
    relationships: Sequence[TypeRelationship],
) -> Dict[str, List[TypeRelationship]]:
    grouped: Dict[str, List[TypeRelationship]] = {}
    for relationship in relationships:
        grouped.setdefault(relationship.kind, []).append(relationship)
    return grouped


__all__ = [
    "DEFAULT_SEARCH_LIMIT",
    "focus_relationships",
    "group_relationships_by_kind",
    "search_types",
]
