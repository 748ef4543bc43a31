"""Cross-repository type matching and type-flow graph construction.

Types are bucketed by a normalised name so that ``blob_descriptor``,
``BlobDescriptor`` and ``blob-descriptor`` land together. Buckets spanning
more than one repository become :class:`CrossRepoMatch` values scored by the
average pairwise similarity of their cross-repo instances.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from itertools import combinations
from typing import Dict, FrozenSet, List, Mapping, Sequence, Set, Tuple

from .logging import get_logger
from .models import CrossRepoMatch, MatchInstance, RepoLink, TypeDefinition, TypeFlowEdge

logger = get_logger("matching")

DEFAULT_MIN_SIMILARITY = 60
DEFAULT_STRONG_THRESHOLD = 80

DEFAULT_KIND_CLASSES: Tuple[FrozenSet[str], ...] = (
    frozenset({"struct", "class", "interface"}),
    frozenset({"trait", "interface", "protocol"}),
)

# Opt-in grouping that also treats schema records (protobuf messages, ORM models,
# GraphQL inputs) as struct-like.
SCHEMA_KIND_CLASSES: Tuple[FrozenSet[str], ...] = (
    frozenset({"struct", "class", "interface", "message", "model", "input"}),
    frozenset({"trait", "interface", "protocol"}),
)

_SEPARATORS = re.compile(r"[_\-\s]+")


def normalize_type_name(name: str) -> str:
    """Strip underscores, hyphens and whitespace, then lower-case."""
    return _SEPARATORS.sub("", name).lower()


@dataclass(frozen=True)
class SimilarityWeights:
    """Score contributions used by :func:`score_similarity`."""

    name: int = 50
    kind: int = 20
    fields: int = 30
    kind_classes: Tuple[FrozenSet[str], ...] = field(default=DEFAULT_KIND_CLASSES)

    def kinds_equivalent(self, left: str, right: str) -> bool:
        if left == right:
            return True
        return any(left in group and right in group for group in self.kind_classes)


DEFAULT_WEIGHTS = SimilarityWeights()


def _round(value: float) -> int:
    # Half-up, so 2.5 scores 3 rather than Python's banker's 2.
    return int(math.floor(value + 0.5))


def normalized_field_names(type_def: TypeDefinition) -> Set[str]:
    return {normalize_type_name(item.name) for item in type_def.fields or []}


def score_similarity(
    left: TypeDefinition, right: TypeDefinition, weights: SimilarityWeights = DEFAULT_WEIGHTS
) -> int:
    """Score how alike two type definitions are.

    Name equality, kind equivalence and field-name overlap contribute
    ``weights.name``, ``weights.kind`` and a share of ``weights.fields``.
    The score is symmetric and, with the default weights, within 0..100.
    """
    score = 0
    if normalize_type_name(left.name) == normalize_type_name(right.name):
        score += weights.name
    if weights.kinds_equivalent(left.kind, right.kind):
        score += weights.kind
    left_fields = normalized_field_names(left)
    right_fields = normalized_field_names(right)
    if left_fields and right_fields:
        overlap = len(left_fields & right_fields) / max(len(left_fields), len(right_fields))
        score += _round(weights.fields * overlap)
    return score


def _cross_repo_pairs(instances: Sequence[MatchInstance]) -> List[Tuple[MatchInstance, MatchInstance]]:
    return [(left, right) for left, right in combinations(instances, 2) if left.repo != right.repo]


def find_cross_repo_matches(
    types_by_repo: Mapping[str, Sequence[TypeDefinition]],
    weights: SimilarityWeights = DEFAULT_WEIGHTS,
) -> List[CrossRepoMatch]:
    """Return types whose normalised name occurs in at least two repositories."""
    buckets: Dict[str, List[MatchInstance]] = {}
    for repo, types in types_by_repo.items():
        for type_def in types:
            buckets.setdefault(normalize_type_name(type_def.name), []).append(
                MatchInstance(repo=repo, type=type_def)
            )

    matches: List[CrossRepoMatch] = []
    for normalized, instances in buckets.items():
        if len({instance.repo for instance in instances}) < 2:
            continue
        pairs = _cross_repo_pairs(instances)
        total = sum(score_similarity(left.type, right.type, weights) for left, right in pairs)
        matches.append(
            CrossRepoMatch(
                normalized_name=normalized,
                instances=instances,
                similarity=_round(total / len(pairs)),
            )
        )

    matches.sort(key=lambda match: (-match.similarity, match.normalized_name))
    logger.debug("Found %d cross-repo matches across %d repos", len(matches), len(types_by_repo))
    return matches


def build_flow_edges(
    matches: Sequence[CrossRepoMatch], min_similarity: int = DEFAULT_MIN_SIMILARITY
) -> List[TypeFlowEdge]:
    """Emit one edge per instance pair of every match at or above ``min_similarity``.

    Same-repo instances of a match are paired too, so a repository holding
    both ``User`` and ``user`` contributes an edge between them.
    """
    edges: List[TypeFlowEdge] = []
    for match in matches:
        if match.similarity < min_similarity:
            continue
        for left, right in combinations(match.instances, 2):
            shared = normalized_field_names(left.type) & normalized_field_names(right.type)
            edges.append(
                TypeFlowEdge(
                    from_repo=left.repo,
                    from_type=left.type.name,
                    to_repo=right.repo,
                    to_type=right.type.name,
                    confidence=match.similarity,
                    shared_fields=sorted(shared),
                )
            )
    return edges


def summarize_repo_links(
    edges: Sequence[TypeFlowEdge], strong_threshold: int = DEFAULT_STRONG_THRESHOLD
) -> List[RepoLink]:
    """Fold flow edges into one link per unordered repository pair."""
    grouped: Dict[Tuple[str, str], List[TypeFlowEdge]] = {}
    for edge in edges:
        key = tuple(sorted((edge.from_repo, edge.to_repo)))
        grouped.setdefault(key, []).append(edge)  # type: ignore[arg-type]

    links: List[RepoLink] = []
    for repos in sorted(grouped):
        pair_edges = grouped[repos]
        names: List[str] = []
        for edge in pair_edges:
            if edge.from_type not in names:
                names.append(edge.from_type)
        confidence = _round(sum(edge.confidence for edge in pair_edges) / len(pair_edges))
        links.append(
            RepoLink(
                repos=repos,
                type_names=names,
                edge_count=len(pair_edges),
                confidence=confidence,
                strong=confidence >= strong_threshold,
            )
        )
    links.sort(key=lambda link: (-link.confidence, link.repos))
    return links


__all__ = [
    "DEFAULT_KIND_CLASSES",
    "DEFAULT_MIN_SIMILARITY",
    "DEFAULT_STRONG_THRESHOLD",
    "DEFAULT_WEIGHTS",
    "SCHEMA_KIND_CLASSES",
    "SimilarityWeights",
    "build_flow_edges",
    "find_cross_repo_matches",
    "normalize_type_name",
    "normalized_field_names",
    "score_similarity",
    "summarize_repo_links",
]
