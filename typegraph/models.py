"""Core data models shared across typegraph components."""

from __future__ import annotations

import re
from dataclasses import dataclass, field, fields, is_dataclass
from typing import Any, Dict, List, Literal, Optional, Union

Visibility = Literal["public", "private", "internal", "protected"]

TypeKind = Literal[
    "struct",
    "class",
    "interface",
    "enum",
    "type_alias",
    "trait",
    "protocol",
    "union",
    "message",
    "service",
    "input",
    "model",
]

Language = Literal[
    "rust",
    "typescript",
    "dart",
    "go",
    "swift",
    "kotlin",
    "python",
    "protobuf",
    "graphql",
    "prisma",
]

RelationshipKind = Literal["extends", "implements", "contains", "references", "collection"]

SCHEMA_MARKERS = frozenset({"zod", "orm"})


@dataclass(frozen=True)
class TypeRef:
    """A reference to a type occurring in a field, payload, or base list."""

    name: str
    raw: str
    generics: Optional[List["TypeRef"]] = None
    optional: bool = False
    is_collection: bool = False


@dataclass(frozen=True)
class FieldDefinition:
    """A named member of a struct-like type."""

    name: str
    type_ref: TypeRef
    optional: bool = False
    visibility: Optional[Visibility] = None
    decorators: Optional[List[str]] = None
    doc: Optional[str] = None


@dataclass(frozen=True)
class VariantDefinition:
    """One case of an enum, optionally carrying a payload or literal value."""

    name: str
    fields: Optional[List[FieldDefinition]] = None
    value: Optional[Union[str, int]] = None
    doc: Optional[str] = None


@dataclass(frozen=True)
class TypeDefinition:
    """A single declaration extracted from one source file."""

    name: str
    kind: TypeKind
    file: str
    line: int
    language: Language
    visibility: Visibility = "public"
    fields: Optional[List[FieldDefinition]] = None
    variants: Optional[List[VariantDefinition]] = None
    generics: Optional[List[str]] = None
    extends: Optional[List[TypeRef]] = None
    implements: Optional[List[TypeRef]] = None
    decorators: Optional[List[str]] = None
    doc: Optional[str] = None


@dataclass(frozen=True)
class TypeRelationship:
    """Directed edge between two types of the same repository."""

    from_type: str
    to_type: str
    kind: RelationshipKind
    file: str
    via_field: Optional[str] = None


@dataclass(frozen=True)
class TypeModule:
    """Types sharing a directory plus their relationship partition."""

    path: str
    types: List[TypeDefinition]
    internal_relationships: List[TypeRelationship]
    external_relationships: List[TypeRelationship]


@dataclass(frozen=True)
class TypeSummary:
    """Counts describing one extraction result."""

    by_kind: Dict[str, int]
    by_language: Dict[str, int]
    by_module: Dict[str, int]
    total_types: int
    total_relationships: int


@dataclass(frozen=True)
class ExtractionResult:
    """Everything extracted from one repository at one ref."""

    types: List[TypeDefinition]
    relationships: List[TypeRelationship]
    modules: List[TypeModule]
    summary: TypeSummary
    files_scanned: int = 0
    failed_files: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class MatchInstance:
    """One repository's copy of a type participating in a cross-repo match."""

    repo: str
    type: TypeDefinition


@dataclass(frozen=True)
class CrossRepoMatch:
    """Types sharing a normalized name across at least two repositories."""

    normalized_name: str
    instances: List[MatchInstance]
    similarity: int

    @property
    def repos(self) -> List[str]:
        seen: List[str] = []
        for instance in self.instances:
            if instance.repo not in seen:
                seen.append(instance.repo)
        return seen


@dataclass(frozen=True)
class TypeFlowEdge:
    """Repo-to-repo edge derived from a cross-repo match."""

    from_repo: str
    from_type: str
    to_repo: str
    to_type: str
    confidence: int
    shared_fields: List[str]


@dataclass(frozen=True)
class RepoLink:
    """Flow edges between one pair of repositories, folded together."""

    repos: tuple[str, str]
    type_names: List[str]
    edge_count: int
    confidence: int
    strong: bool


# Diagram and ranking helpers


_NON_WORD = re.compile(r"[^a-zA-Z0-9_]")
_ENTITY_EXCLUDES = (
    re.compile(r"^Option"),
    re.compile(r"^Result"),
    re.compile(r"^Vec"),
    re.compile(r"^Box"),
    re.compile(r"Error$"),
)


def type_id(type_def: TypeDefinition) -> str:
    """Return a stable identifier usable as a diagram node id."""
    return _NON_WORD.sub("_", f"{type_def.file}:{type_def.name}")


def relationship_id(relationship: TypeRelationship) -> str:
    """Return a stable identifier usable as a diagram edge id."""
    return _NON_WORD.sub(
        "_", f"{relationship.from_type}_{relationship.kind}_{relationship.to_type}"
    )


def is_domain_entity(type_def: TypeDefinition) -> bool:
    """Heuristic: multi-field record types that are not wrappers or errors."""
    if type_def.kind in ("enum", "type_alias"):
        return False
    if not type_def.fields or len(type_def.fields) < 2:
        return False
    return not any(pattern.search(type_def.name) for pattern in _ENTITY_EXCLUDES)


def type_importance(type_def: TypeDefinition) -> int:
    """Rank types for diagram filtering; higher is more important."""
    score = 0
    if type_def.visibility == "public":
        score += 2
    if type_def.fields:
        score += len(type_def.fields)
    if type_def.doc:
        score += 1
    if type_def.kind in ("trait", "interface"):
        score += 3
    if type_def.extends:
        score += 2
    if type_def.implements:
        score += 2
    return score


def is_schema_derived(type_def: TypeDefinition) -> bool:
    """Return True when a supplementary schema parser produced the type."""
    return any(marker in SCHEMA_MARKERS for marker in type_def.decorators or [])


def to_dict(obj: Any) -> Any:
    """Convert model objects into JSON-ready structures, dropping unset values."""
    if is_dataclass(obj) and not isinstance(obj, type):
        data: Dict[str, Any] = {}
        for item in fields(obj):
            value = getattr(obj, item.name)
            if value is None:
                continue
            data[item.name] = to_dict(value)
        return data
    if isinstance(obj, (list, tuple)):
        return [to_dict(value) for value in obj]
    if isinstance(obj, dict):
        return {key: to_dict(value) for key, value in obj.items()}
    return obj


__all__ = [
    "CrossRepoMatch",
    "ExtractionResult",
    "FieldDefinition",
    "Language",
    "MatchInstance",
    "RelationshipKind",
    "RepoLink",
    "TypeDefinition",
    "TypeFlowEdge",
    "TypeKind",
    "TypeModule",
    "TypeRef",
    "TypeRelationship",
    "TypeSummary",
    "VariantDefinition",
    "Visibility",
    "is_domain_entity",
    "is_schema_derived",
    "relationship_id",
    "to_dict",
    "type_id",
    "type_importance",
]
