"""Tree-sitter grammar loading and node helpers."""

from __future__ import annotations

import threading
from typing import Callable, Dict, Iterator, List, Optional

import tree_sitter_go
import tree_sitter_python
from tree_sitter import Language, Node, Parser, Tree

_GRAMMARS: Dict[str, Callable[[], object]] = {
    "python": tree_sitter_python.language,
    "go": tree_sitter_go.language,
}

# Parser objects are not safe to share between threads; keep one per thread.
_local = threading.local()


def get_parser(language_key: str) -> Parser:
    """Return this thread's cached parser for ``language_key``."""
    parsers: Dict[str, Parser] = getattr(_local, "parsers", None) or {}
    _local.parsers = parsers
    parser = parsers.get(language_key)
    if parser is not None:
        return parser
    grammar = _GRAMMARS.get(language_key)
    if grammar is None:
        raise ValueError(f"No tree-sitter grammar bundled for {language_key!r}")
    parser = Parser(Language(grammar()))
    parsers[language_key] = parser
    return parser


def parse_source(language_key: str, content: str) -> tuple[Tree, bytes]:
    source_bytes = content.encode("utf-8")
    return get_parser(language_key).parse(source_bytes), source_bytes


def node_text(node: Optional[Node], source_bytes: bytes) -> str:
    if node is None:
        return ""
    return source_bytes[node.start_byte : node.end_byte].decode("utf-8", errors="ignore")


def node_line(node: Node) -> int:
    """Return the 1-based line the node starts on."""
    return node.start_point[0] + 1


def children_of_type(node: Node, *types: str) -> List[Node]:
    return [child for child in node.named_children if child.type in types]


def first_child_of_type(node: Node, *types: str) -> Optional[Node]:
    for child in node.named_children:
        if child.type in types:
            return child
    return None


def walk(node: Node) -> Iterator[Node]:
    """Yield ``node`` and every named descendant in document order."""
    # Explicit stack: deeply nested expressions would exhaust the recursion limit.
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.named_children))


def preceding_comments(node: Node, source_bytes: bytes, prefix: str = "//") -> Optional[str]:
    """Join the run of comment siblings that ends directly above ``node``."""
    lines: List[str] = []
    expected_row = node.start_point[0] - 1
    sibling = node.prev_named_sibling
    while sibling is not None and sibling.type == "comment" and sibling.end_point[0] == expected_row:
        text = node_text(sibling, source_bytes).strip()
        if text.startswith(prefix):
            text = text[len(prefix) :]
        lines.insert(0, text.strip())
        expected_row = sibling.start_point[0] - 1
        sibling = sibling.prev_named_sibling
    doc = " ".join(line for line in lines if line).strip()
    return doc or None


__all__ = [
    "children_of_type",
    "first_child_of_type",
    "get_parser",
    "node_line",
    "node_text",
    "parse_source",
    "preceding_comments",
    "walk",
]
