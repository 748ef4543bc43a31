"""Relationship building and module grouping for one repository's types."""

from __future__ import annotations

import posixpath
from collections import Counter
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Set

from .models import (
    RelationshipKind,
    TypeDefinition,
    TypeModule,
    TypeRef,
    TypeRelationship,
    TypeSummary,
)

ROOT_MODULE = "/"


def build_relationships(types: Sequence[TypeDefinition]) -> List[TypeRelationship]:
    """Derive heritage, containment and reference edges between ``types``.

    Only edges whose target names a type in ``types`` are emitted. Edges are
    produced in input order: heritage first, then fields, then variant
    payloads for each type.
    """
    known: Set[str] = {type_def.name for type_def in types}
    relationships: List[TypeRelationship] = []

    for type_def in types:

        def add(target: str, kind: RelationshipKind, via_field: Optional[str] = None) -> None:
            if target in known:
                relationships.append(
                    TypeRelationship(
                        from_type=type_def.name,
                        to_type=target,
                        kind=kind,
                        file=type_def.file,
                        via_field=via_field,
                    )
                )

        for parent in type_def.extends or []:
            add(parent.name, "extends")
        for interface in type_def.implements or []:
            add(interface.name, "implements")
        for field in type_def.fields or []:
            _field_edges(field.type_ref, field.name, add)
        for variant in type_def.variants or []:
            for field in variant.fields or []:
                _field_edges(field.type_ref, f"{variant.name}.{field.name}", add)

    return relationships


_AddEdge = Callable[[str, RelationshipKind, Optional[str]], None]


def _field_edges(type_ref: TypeRef, via_field: str, add: _AddEdge) -> None:
    add(type_ref.name, "collection" if type_ref.is_collection else "contains", via_field)
    for generic in type_ref.generics or []:
        add(generic.name, "references", via_field)


def module_path(file_path: str) -> str:
    """Return the directory of ``file_path``; root files map to ``/``."""
    directory = posixpath.dirname(file_path.replace("\\", "/"))
    return directory or ROOT_MODULE


def build_modules(
    types: Sequence[TypeDefinition], relationships: Sequence[TypeRelationship]
) -> List[TypeModule]:
    """Group types by directory and partition relationships per module.

    A relationship belongs to module M when its ``from_type`` is declared in
    M; it is internal when its ``to_type`` is also declared in M.
    """
    grouped: Dict[str, List[TypeDefinition]] = {}
    for type_def in types:
        grouped.setdefault(module_path(type_def.file), []).append(type_def)

    modules: List[TypeModule] = []
    for path in sorted(grouped):
        members = grouped[path]
        names = {type_def.name for type_def in members}
        internal: List[TypeRelationship] = []
        external: List[TypeRelationship] = []
        for relationship in relationships:
            if relationship.from_type not in names:
                continue
            if relationship.to_type in names:
                internal.append(relationship)
            else:
                external.append(relationship)
        modules.append(
            TypeModule(
                path=path,
                types=members,
                internal_relationships=internal,
                external_relationships=external,
            )
        )
    return modules


def build_summary(
    types: Sequence[TypeDefinition],
    relationships: Sequence[TypeRelationship],
    modules: Iterable[TypeModule],
) -> TypeSummary:
    by_kind = Counter(type_def.kind for type_def in types)
    by_language = Counter(type_def.language for type_def in types)
    return TypeSummary(
        by_kind=dict(sorted(by_kind.items())),
        by_language=dict(sorted(by_language.items())),
        by_module={module.path: len(module.types) for module in modules},
        total_types=len(types),
        total_relationships=len(relationships),
    )


__all__ = [
    "ROOT_MODULE",
    "build_modules",
    "build_relationships",
    "build_summary",
    "module_path",
]
