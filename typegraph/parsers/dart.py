"""Dart type parser.

Classes, mixins, enums (including enhanced enums) and typedefs. Dart marks
library-private names with a leading underscore; everything else is public.
"""

from __future__ import annotations

import re
from typing import Dict, List, Optional, Tuple

from ..models import FieldDefinition, TypeDefinition, TypeRef, VariantDefinition, Visibility
from .base import TypeParser, keep
from .text import (
    extract_braced,
    extract_doc_comment,
    line_number,
    preceding_lines,
    split_names,
    split_top_level,
    strip_comments,
)
from .typeref import parse_type_ref

_CLASS = re.compile(
    r"^[ \t]*(?P<abstract>abstract\s+)?(?P<modifier>(?:base|sealed|final|interface|mixin)\s+)?"
    r"class\s+(?P<name>\w+)\s*(?:<(?P<generics>.*?)>)?"
    r"(?:\s+extends\s+(?P<extends>[\w.]+(?:\s*<.*?>)?))?"
    r"(?P<rest>(?:\s+(?:with|implements)\s+[^{]+?)*)\s*\{",
    re.MULTILINE,
)
_ENUM = re.compile(
    r"^[ \t]*enum\s+(?P<name>\w+)\s*(?:<(?P<generics>.*?)>)?(?P<rest>(?:\s+(?:with|implements)\s+[^{]+?)*)\s*\{",
    re.MULTILINE,
)
_MIXIN = re.compile(
    r"^[ \t]*(?:base\s+)?mixin\s+(?P<name>\w+)\s*(?:<(?P<generics>.*?)>)?(?:\s+on\s+(?P<on>[^{]+?))?"
    r"(?P<rest>(?:\s+implements\s+[^{]+?)*)\s*\{",
    re.MULTILINE,
)
_TYPEDEF = re.compile(
    r"^[ \t]*typedef\s+(?P<name>\w+)\s*(?:<(?P<generics>.*?)>)?\s*=\s*(?P<target>[^;]+);", re.MULTILINE
)

_FIELD = re.compile(
    r"^(?P<mods>(?:(?:late|final|covariant|external|var)\s+)*)"
    r"(?P<type>[\w.]+(?:\s*<.*>)?\??)\s+(?P<names>\w+(?:\s*,\s*\w+)*)\s*(?:=.*)?$",
    re.DOTALL,
)
_ANNOTATION = re.compile(r"^@(?P<name>[\w.]+)(?:\s*\([^)]*\))?\s*")
_HERITAGE_SPLIT = re.compile(r"\s*\b(with|implements)\b\s*")
_SKIP_WORDS = re.compile(r"\b(get|set|operator|static|const|factory)\b")


def _visibility(name: str) -> Visibility:
    return "private" if name.startswith("_") else "public"


def _statements(body: str) -> List[str]:
    """Split a class body into depth-0 declarations, dropping method blocks."""
    statements: List[str] = []
    depth = 0
    current: List[str] = []
    for char in body:
        if char in "({[":
            depth += 1
        elif char in ")}]":
            depth = max(depth - 1, 0)
            if char == "}" and depth == 0:
                current = []
                continue
        if char == ";" and depth == 0:
            statement = "".join(current).strip()
            if statement:
                statements.append(statement)
            current = []
            continue
        current.append(char)
    return statements


def _strip_annotations(statement: str) -> Tuple[str, List[str]]:
    annotations: List[str] = []
    while statement.startswith("@"):
        match = _ANNOTATION.match(statement)
        if not match:
            break
        annotations.append(match.group("name"))
        statement = statement[match.end():].strip()
    return statement, annotations


def parse_fields(body: str) -> List[FieldDefinition]:
    fields: List[FieldDefinition] = []
    for statement in _statements(strip_comments(body)):
        statement, annotations = _strip_annotations(statement)
        head = statement.split("=", 1)[0]
        if "(" in head or "=>" in statement or _SKIP_WORDS.search(head):
            continue
        match = _FIELD.match(statement)
        if not match or match.group("type") in ("return", "var", "final", "late"):
            continue
        raw_type = match.group("type").strip()
        for name in (part.strip() for part in match.group("names").split(",")):
            type_ref = parse_type_ref(raw_type)
            fields.append(
                FieldDefinition(
                    name=name,
                    type_ref=type_ref,
                    optional=type_ref.optional,
                    visibility=_visibility(name),
                    decorators=annotations or None,
                )
            )
    return fields


def _literal_type(arg: str) -> str:
    arg = arg.strip()
    if re.fullmatch(r"(['\"]).*\1", arg, re.DOTALL):
        return "String"
    if re.fullmatch(r"-?(?:0x[0-9a-fA-F]+|\d+)", arg):
        return "int"
    if re.fullmatch(r"-?\d+\.\d*(?:e-?\d+)?", arg):
        return "double"
    if arg in ("true", "false"):
        return "bool"
    return "dynamic"


def _enum_constructor_params(name: str, body: str) -> List[str]:
    match = re.search(rf"(?:const\s+)?\b{re.escape(name)}\s*\(", body)
    if not match:
        return []
    params = extract_braced(body, match.end() - 1, "(", ")")
    if not params:
        return []
    names: List[str] = []
    for param in split_top_level(params[0].replace("{", "").replace("}", "")):
        this_match = re.search(r"this\.(\w+)", param)
        names.append(this_match.group(1) if this_match else param.split()[-1])
    return names


def _parse_enum_values(name: str, body: str) -> List[VariantDefinition]:
    cleaned = strip_comments(body)
    values_section, _, members = cleaned.partition(";")
    field_types: Dict[str, TypeRef] = {field.name: field.type_ref for field in parse_fields(members)}
    param_names = _enum_constructor_params(name, members)

    variants: List[VariantDefinition] = []
    for part in split_top_level(values_section):
        part, _annotations = _strip_annotations(part.strip())
        match = re.match(r"^(\w+)\s*(?:<[^>]*>)?\s*(?:\((?P<args>.*)\))?$", part, re.DOTALL)
        if not match:
            continue
        args = match.group("args")
        payload: Optional[List[FieldDefinition]] = None
        if args and args.strip():
            payload = []
            for index, arg in enumerate(split_top_level(args)):
                named = re.match(r"^(\w+)\s*:\s*(.+)$", arg, re.DOTALL)
                if named:
                    field_name, value = named.group(1), named.group(2)
                elif index < len(param_names):
                    field_name, value = param_names[index], arg
                else:
                    field_name, value = f"_{index}", arg
                type_ref = field_types.get(field_name) or parse_type_ref(_literal_type(value))
                payload.append(FieldDefinition(name=field_name, type_ref=type_ref))
        variants.append(VariantDefinition(name=match.group(1), fields=payload))
    return variants


def _heritage(rest: Optional[str]) -> Tuple[Optional[List[TypeRef]], Optional[List[TypeRef]]]:
    """Split ``with``/``implements`` clauses into (mixins, interfaces)."""
    if not rest or not rest.strip():
        return None, None
    mixins: List[TypeRef] = []
    interfaces: List[TypeRef] = []
    tokens = _HERITAGE_SPLIT.split(rest.strip())
    keyword = None
    for token in tokens:
        if token in ("with", "implements"):
            keyword = token
            continue
        target = mixins if keyword == "with" else interfaces
        target.extend(parse_type_ref(item) for item in split_top_level(token))
    return mixins or None, interfaces or None


def _annotations(content: str, index: int) -> Optional[List[str]]:
    found: List[str] = []
    for line in preceding_lines(content, index):
        if line.startswith("@"):
            match = _ANNOTATION.match(line)
            if match:
                found.append(match.group("name"))
        elif not line or line.startswith("//"):
            continue
        else:
            break
    found.reverse()
    return found or None


class DartParser(TypeParser):
    language = "dart"
    extensions = (".dart",)

    def parse(self, content: str, file_path: str, include_private: bool = True) -> List[TypeDefinition]:
        found: List[Tuple[int, TypeDefinition]] = []

        def emit(match: re.Match[str], kind: str, **extra: object) -> None:
            name = match.group("name")
            visibility = _visibility(name)
            if not keep(visibility, include_private):
                return
            start = match.start("name")
            found.append(
                (
                    match.start(),
                    TypeDefinition(
                        name=name,
                        kind=kind,  # type: ignore[arg-type]
                        file=file_path,
                        line=line_number(content, start),
                        language="dart",
                        visibility=visibility,
                        generics=split_names(match.group("generics")),
                        decorators=_annotations(content, start),
                        doc=extract_doc_comment(content, start),
                        **extra,  # type: ignore[arg-type]
                    ),
                )
            )

        for match in _CLASS.finditer(content):
            braced = extract_braced(content, match.end() - 1)
            mixins, interfaces = _heritage(match.group("rest"))
            implements = (mixins or []) + (interfaces or [])
            extends = [parse_type_ref(match.group("extends"))] if match.group("extends") else None
            abstract = bool(match.group("abstract")) or (match.group("modifier") or "").strip() == "interface"
            emit(
                match,
                "interface" if abstract else "class",
                extends=extends,
                implements=implements or None,
                fields=parse_fields(braced[0]) if braced else [],
            )

        for match in _ENUM.finditer(content):
            braced = extract_braced(content, match.end() - 1)
            mixins, interfaces = _heritage(match.group("rest"))
            implements = (mixins or []) + (interfaces or [])
            emit(
                match,
                "enum",
                implements=implements or None,
                variants=_parse_enum_values(match.group("name"), braced[0]) if braced else [],
            )

        for match in _MIXIN.finditer(content):
            braced = extract_braced(content, match.end() - 1)
            on_types = [parse_type_ref(item) for item in split_top_level(match.group("on") or "")]
            _, interfaces = _heritage(match.group("rest"))
            emit(
                match,
                "trait",
                extends=on_types or None,
                implements=interfaces,
                fields=parse_fields(braced[0]) if braced else [],
            )

        for match in _TYPEDEF.finditer(content):
            emit(match, "type_alias")

        found.sort(key=lambda item: item[0])
        return [type_def for _, type_def in found]


__all__ = ["DartParser", "parse_fields"]
