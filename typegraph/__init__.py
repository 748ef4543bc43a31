"""Multi-language type extraction and cross-repository type matching."""

from __future__ import annotations

import threading
from typing import List, Mapping, Optional, Sequence

from .matching import DEFAULT_MIN_SIMILARITY
from .matching import build_flow_edges as _build_flow_edges
from .matching import find_cross_repo_matches as _find_cross_repo_matches
from .models import (
    CrossRepoMatch,
    ExtractionResult,
    TypeDefinition,
    TypeFlowEdge,
    TypeModule,
    TypeRelationship,
)
from .parsers import ParserRegistry, build_registry
from .relationships import build_modules as _build_modules
from .relationships import build_relationships as _build_relationships

__version__ = "0.1.0"

_default_registry: Optional[ParserRegistry] = None
_registry_lock = threading.Lock()


def default_registry() -> ParserRegistry:
    """Return the process-wide registry, building it on first use."""
    global _default_registry
    with _registry_lock:
        if _default_registry is None:
            _default_registry = build_registry()
        return _default_registry


def list_supported_extensions() -> List[str]:
    return default_registry().supported_extensions()


def parse(language: str, content: str, file_path: str, include_private: bool = True) -> List[TypeDefinition]:
    """Parse one file's ``content`` as ``language``; unknown languages raise ValueError."""
    return default_registry().parse(language, content, file_path, include_private)


def build_relationships(types: Sequence[TypeDefinition]) -> List[TypeRelationship]:
    return _build_relationships(types)


def build_modules(types: Sequence[TypeDefinition], relationships: Sequence[TypeRelationship]) -> List[TypeModule]:
    return _build_modules(types, relationships)


def find_cross_repo_matches(types_by_repo: Mapping[str, Sequence[TypeDefinition]]) -> List[CrossRepoMatch]:
    return _find_cross_repo_matches(types_by_repo)


def build_flow_edges(
    matches: Sequence[CrossRepoMatch], min_similarity: int = DEFAULT_MIN_SIMILARITY
) -> List[TypeFlowEdge]:
    return _build_flow_edges(matches, min_similarity)


__all__ = [
    "CrossRepoMatch",
    "ExtractionResult",
    "TypeDefinition",
    "TypeFlowEdge",
    "TypeModule",
    "TypeRelationship",
    "build_flow_edges",
    "build_modules",
    "build_relationships",
    "default_registry",
    "find_cross_repo_matches",
    "list_supported_extensions",
    "parse",
]
