"""Rust type parser.

Finds structs (braced, tuple and unit), enums with their variants, traits
with supertraits, and type aliases. Discovery is line-anchored regular
expression scanning; bodies are recovered by brace matching.
"""

from __future__ import annotations

import re
from typing import List, Optional, Tuple

from ..models import FieldDefinition, TypeDefinition, VariantDefinition, Visibility
from .base import TypeParser, keep
from .text import (
    extract_braced,
    extract_doc_comment,
    line_number,
    mask_comment_separators,
    preceding_lines,
    split_names,
    split_top_level,
    unmask,
)
from .typeref import parse_type_ref

_VIS = r"(?P<vis>pub(?:\([^)]*\))?\s+)?"
_HEAD = r"^[ \t]*" + _VIS
_GENERICS = r"(?:<(?P<generics>.*?)>)?"

_BRACED_STRUCT = re.compile(
    _HEAD + r"struct\s+(?P<name>\w+)" + _GENERICS + r"\s*(?:where[^{;]+)?\{", re.MULTILINE
)
_TUPLE_STRUCT = re.compile(
    _HEAD + r"struct\s+(?P<name>\w+)" + _GENERICS + r"\s*\((?P<body>[^;]*)\)\s*(?:where[^;]+)?;",
    re.MULTILINE,
)
_UNIT_STRUCT = re.compile(_HEAD + r"struct\s+(?P<name>\w+)" + _GENERICS + r"\s*;", re.MULTILINE)
_ENUM = re.compile(_HEAD + r"enum\s+(?P<name>\w+)" + _GENERICS + r"\s*(?:where[^{]+)?\{", re.MULTILINE)
_TRAIT = re.compile(
    _HEAD + r"(?:unsafe\s+)?trait\s+(?P<name>\w+)" + _GENERICS + r"(?:\s*:\s*(?P<supers>[^{]+?))?\s*(?:where[^{]+)?\{",
    re.MULTILINE,
)
_TYPE_ALIAS = re.compile(
    _HEAD + r"type\s+(?P<name>\w+)" + _GENERICS + r"\s*=\s*(?P<target>[^;]+);", re.MULTILINE
)

_FIELD = re.compile(r"^(?P<vis>pub(?:\([^)]*\))?\s+)?(?P<name>\w+)\s*:\s*(?P<type>.+?)\s*$", re.DOTALL)
_TUPLE_MEMBER = re.compile(r"^(?P<vis>pub(?:\([^)]*\))?\s+)?(?P<type>.+)$", re.DOTALL)
_ATTRIBUTE = re.compile(r"#\[(.+)\]")


def parse_visibility(marker: Optional[str]) -> Visibility:
    if not marker:
        return "private"
    if "pub(crate)" in marker:
        return "internal"
    if "pub(super)" in marker:
        return "protected"
    if "pub" in marker:
        return "public"
    return "private"


def _split_leading(part: str) -> Tuple[str, List[str], Optional[str]]:
    """Separate leading attribute and comment lines from a member declaration."""
    attributes: List[str] = []
    docs: List[str] = []
    lines = part.strip().split("\n")
    while lines:
        line = lines[0].strip()
        if line.startswith("#["):
            match = _ATTRIBUTE.match(line)
            if match:
                attributes.append(match.group(1).strip())
        elif line.startswith("///"):
            docs.append(unmask(line[3:].strip()))
        elif not line.startswith("//") and line:
            break
        lines.pop(0)
    doc = " ".join(docs).strip() or None
    return "\n".join(lines).strip(), attributes, doc


def _parse_fields(body: str) -> List[FieldDefinition]:
    fields: List[FieldDefinition] = []
    for part in split_top_level(mask_comment_separators(body)):
        declaration, attributes, doc = _split_leading(part)
        match = _FIELD.match(declaration)
        if not match:
            continue
        type_ref = parse_type_ref(match.group("type"))
        fields.append(
            FieldDefinition(
                name=match.group("name"),
                type_ref=type_ref,
                optional=type_ref.optional,
                visibility=parse_visibility(match.group("vis")),
                decorators=attributes or None,
                doc=doc,
            )
        )
    return fields


def _parse_tuple_fields(body: str) -> List[FieldDefinition]:
    fields: List[FieldDefinition] = []
    for index, part in enumerate(split_top_level(mask_comment_separators(body))):
        declaration, attributes, _doc = _split_leading(part)
        match = _TUPLE_MEMBER.match(declaration)
        if not match:
            continue
        type_ref = parse_type_ref(match.group("type").strip())
        fields.append(
            FieldDefinition(
                name=f"_{index}",
                type_ref=type_ref,
                optional=type_ref.optional,
                visibility=parse_visibility(match.group("vis")),
                decorators=attributes or None,
            )
        )
    return fields


def _parse_variants(body: str) -> List[VariantDefinition]:
    variants: List[VariantDefinition] = []
    for part in split_top_level(mask_comment_separators(body)):
        declaration, _attributes, doc = _split_leading(part)
        if not declaration:
            continue
        named = re.match(r"^(\w+)\s*\{(.*)\}$", declaration, re.DOTALL)
        positional = re.match(r"^(\w+)\s*\((.*)\)$", declaration, re.DOTALL)
        valued = re.match(r"^(\w+)\s*=\s*(.+)$", declaration, re.DOTALL)
        if named:
            variants.append(VariantDefinition(name=named.group(1), fields=_parse_fields(named.group(2)), doc=doc))
        elif positional:
            variants.append(
                VariantDefinition(name=positional.group(1), fields=_parse_tuple_fields(positional.group(2)), doc=doc)
            )
        elif valued:
            variants.append(VariantDefinition(name=valued.group(1), value=_literal(valued.group(2)), doc=doc))
        elif re.fullmatch(r"\w+", declaration):
            variants.append(VariantDefinition(name=declaration, doc=doc))
    return variants


def _literal(text: str) -> str | int:
    text = text.strip()
    try:
        return int(text, 0)
    except ValueError:
        return text


def _attributes(content: str, index: int) -> Optional[List[str]]:
    found: List[str] = []
    for line in preceding_lines(content, index):
        if line.startswith("#["):
            match = _ATTRIBUTE.match(line)
            if match:
                found.append(match.group(1).strip())
        elif not line or line.startswith("//"):
            continue
        else:
            break
    found.reverse()
    return found or None


def _generic_names(text: Optional[str]) -> Optional[List[str]]:
    names = split_names(text)
    if names is None:
        return None
    # Lifetimes are not type parameters.
    return [name for name in names if not name.startswith("'")] or None


class RustParser(TypeParser):
    language = "rust"
    extensions = (".rs",)

    def parse(self, content: str, file_path: str, include_private: bool = True) -> List[TypeDefinition]:
        found: List[Tuple[int, TypeDefinition]] = []

        def emit(match: re.Match[str], kind: str, **extra: object) -> None:
            visibility = parse_visibility(match.group("vis"))
            if not keep(visibility, include_private):
                return
            generics = match.group("generics")
            # The lazy group stops at the first closer that ends the header; it must balance.
            arrows = (generics or "").replace("->", "")
            if arrows.count("<") != arrows.count(">"):
                return
            start = match.start("name")
            found.append(
                (
                    match.start(),
                    TypeDefinition(
                        name=match.group("name"),
                        kind=kind,  # type: ignore[arg-type]
                        file=file_path,
                        line=line_number(content, start),
                        language="rust",
                        visibility=visibility,
                        generics=_generic_names(generics),
                        decorators=_attributes(content, match.start("name")),
                        doc=extract_doc_comment(content, start),
                        **extra,  # type: ignore[arg-type]
                    ),
                )
            )

        for match in _BRACED_STRUCT.finditer(content):
            braced = extract_braced(content, match.end() - 1)
            emit(match, "struct", fields=_parse_fields(braced[0]) if braced else [])
        for match in _TUPLE_STRUCT.finditer(content):
            emit(match, "struct", fields=_parse_tuple_fields(match.group("body")))
        for match in _UNIT_STRUCT.finditer(content):
            emit(match, "struct", fields=[])
        for match in _ENUM.finditer(content):
            braced = extract_braced(content, match.end() - 1)
            emit(match, "enum", variants=_parse_variants(braced[0]) if braced else [])
        for match in _TRAIT.finditer(content):
            supers = match.group("supers")
            extends = None
            if supers:
                extends = [parse_type_ref(bound) for bound in split_top_level(supers, ("+",))] or None
            emit(match, "trait", extends=extends)
        for match in _TYPE_ALIAS.finditer(content):
            emit(match, "type_alias")

        found.sort(key=lambda item: item[0])
        return [type_def for _, type_def in found]


__all__ = ["RustParser", "parse_visibility"]
