"""Decompose raw type-signature text into :class:`TypeRef` values.

The decomposer is shared by every language parser. It recognises the common
nullability and collection wrappers across the supported languages, peels at
most one of each, and splits the remaining ``Identifier<Args>`` (or
``Identifier[Args]``) into a base name plus one level of generic arguments.
It never raises: text it cannot make sense of comes back as a TypeRef whose
name is the text itself and whose ``raw`` is the untouched input.
"""

from __future__ import annotations

import re
from typing import List, Optional, Pattern, Sequence

from ..models import TypeRef

_FLAGS = re.DOTALL

_OPTIONAL_PATTERNS: Sequence[Pattern[str]] = (
    re.compile(r"Option\s*<(.+)>", _FLAGS),  # Rust
    re.compile(r"Optional\s*<(.+)>", _FLAGS),  # Java
    re.compile(r"Optional\[(.+)\]", _FLAGS),  # Python typing
    re.compile(r"(.+?)\s*\?", _FLAGS),  # TypeScript / Swift / Dart / Kotlin
    re.compile(r"\?\s*(.+)", _FLAGS),  # PHP-style nullable prefix
    re.compile(r"(.+?)\s*\|\s*None", _FLAGS),  # PEP 604
    re.compile(r"None\s*\|\s*(.+)", _FLAGS),
    re.compile(r"(.+?)\s*\|\s*(?:null|undefined)", _FLAGS),  # TypeScript unions
    re.compile(r"\*\s*(.+)", _FLAGS),  # Go pointers
)

_COLLECTION_PATTERNS: Sequence[Pattern[str]] = (
    re.compile(r"(?:Vec|Array|ReadonlyArray|List|Set|HashSet|BTreeSet|VecDeque)\s*<(.+)>", _FLAGS),
    re.compile(r"(?:List|list|Set|set|Sequence|FrozenSet|frozenset)\[(.+)\]", _FLAGS),
    re.compile(r"\[(.+)\]", _FLAGS),  # Swift / Go-style bracket arrays
    re.compile(r"\[\d*\]\s*(.+)", _FLAGS),  # Go slices and fixed arrays
    re.compile(r"(.+?)\s*\[\]", _FLAGS),  # TypeScript / Java shorthand
)

_GENERIC_PATTERNS: Sequence[Pattern[str]] = (
    re.compile(r"([\w.:]+)\s*<(.+)>", _FLAGS),
    re.compile(r"([\w.]+)\[(.+)\]", _FLAGS),
)

_BRACKETS = re.compile(r"[<>\[\]]")
_OPENERS = "<[({"
_CLOSERS = ">])}"
_QUOTES = ("\"", "'")


def parse_type_ref(raw: str) -> TypeRef:
    """Return the TypeRef for ``raw``.

    ``raw`` on the result is always the exact input so callers can display
    the original signature even when the structure could not be inferred.
    """
    working = _unquote(raw.strip())

    optional = False
    for pattern in _OPTIONAL_PATTERNS:
        match = pattern.fullmatch(working)
        if match and match.group(1).strip():
            optional = True
            working = _unquote(match.group(1).strip())
            break

    is_collection = False
    for pattern in _COLLECTION_PATTERNS:
        match = pattern.fullmatch(working)
        if match and match.group(1).strip():
            is_collection = True
            working = _unquote(match.group(1).strip())
            break

    generics: Optional[List[TypeRef]] = None
    name = working
    for pattern in _GENERIC_PATTERNS:
        match = pattern.fullmatch(working)
        if match and _balanced(match.group(2)):
            name = match.group(1)
            generics = [
                TypeRef(name=_base_name(arg), raw=arg)
                for arg in split_generic_args(match.group(2))
            ] or None
            break

    return TypeRef(
        name=_base_name(name),
        raw=raw,
        generics=generics,
        optional=optional,
        is_collection=is_collection,
    )


def split_generic_args(args: str) -> List[str]:
    """Split ``args`` on commas that are not nested inside brackets."""
    parts: List[str] = []
    depth = 0
    current: List[str] = []
    for char in args:
        if char in _OPENERS:
            depth += 1
        elif char in _CLOSERS:
            depth = max(depth - 1, 0)
        if char == "," and depth == 0:
            part = "".join(current).strip()
            if part:
                parts.append(part)
            current = []
            continue
        current.append(char)
    tail = "".join(current).strip()
    if tail:
        parts.append(tail)
    return parts


def _base_name(text: str) -> str:
    # Pointer and borrow sigils are not part of the referenced name.
    text = text.strip().lstrip("*&").strip() or text.strip()
    head = _BRACKETS.sub("", re.split(r"[<\[]", text, maxsplit=1)[0]).strip()
    if head:
        return head
    # Nothing before the first opener; the bracketed text is all there is.
    return _BRACKETS.sub("", text).strip()


def _unquote(text: str) -> str:
    if len(text) >= 2 and text[0] in _QUOTES and text[-1] == text[0]:
        return text[1:-1].strip()
    return text


def _balanced(text: str) -> bool:
    depth = 0
    for char in text:
        if char in _OPENERS:
            depth += 1
        elif char in _CLOSERS:
            depth -= 1
            if depth < 0:
                return False
    return depth == 0


__all__ = ["parse_type_ref", "split_generic_args"]
