"""TypeScript type parser.

Pattern-matching parser for interfaces, type aliases, classes and enums.
Exported declarations are public; everything else is module internal.
"""

from __future__ import annotations

import re
from dataclasses import replace
from typing import List, Optional, Tuple

from ..models import FieldDefinition, TypeDefinition, TypeRef, VariantDefinition, Visibility
from .base import TypeParser, keep
from .text import (
    extract_braced,
    extract_doc_comment,
    line_number,
    mask_comment_separators,
    preceding_lines,
    split_names,
    split_top_level,
    strip_comments,
    unmask,
)
from .typeref import parse_type_ref

_HEAD = r"^[ \t]*(?P<export>export\s+(?:default\s+)?)?(?:declare\s+)?"

_INTERFACE = re.compile(
    _HEAD + r"interface\s+(?P<name>\w+)\s*(?:<(?P<generics>.*?)>)?(?:\s+extends\s+(?P<extends>[^{]+?))?\s*\{",
    re.MULTILINE,
)
_TYPE_ALIAS = re.compile(
    _HEAD + r"type\s+(?P<name>\w+)\s*(?:<(?P<generics>.*?)>)?\s*=\s*", re.MULTILINE
)
_CLASS = re.compile(
    _HEAD
    + r"(?:abstract\s+)?class\s+(?P<name>\w+)\s*(?:<(?P<generics>.*?)>)?"
    + r"(?:\s+extends\s+(?P<extends>[\w.]+\s*(?:<.*?>)?))?"
    + r"(?:\s+implements\s+(?P<implements>[^{]+?))?\s*\{",
    re.MULTILINE,
)
_ENUM = re.compile(_HEAD + r"(?:const\s+)?enum\s+(?P<name>\w+)\s*\{", re.MULTILINE)

_MODIFIERS = r"(?P<mods>(?:(?:readonly|private|public|protected|static|declare|override|abstract)\s+)*)"
_MEMBER = re.compile(
    r"^" + _MODIFIERS + r"(?P<name>#?[\w$]+|\"[^\"]+\"|'[^']+')(?P<opt>\?)?!?\s*:\s*(?P<type>.+?)\s*$",
    re.DOTALL,
)
_DECORATOR_NAME = re.compile(r"^@(?P<name>[\w.]+)\s*")
_ENUM_MEMBER = re.compile(r"^(?P<name>[\w$]+|\"[^\"]+\"|'[^']+')(?:\s*=\s*(?P<value>.+))?$", re.DOTALL)
_STRING_LITERAL = re.compile(r"^([\"'`])(.*)\1$", re.DOTALL)


def _member_visibility(mods: str, name: str) -> Optional[Visibility]:
    if name.startswith("#"):
        return "private"
    for keyword in ("private", "protected", "public"):
        if re.search(rf"\b{keyword}\b", mods):
            return keyword  # type: ignore[return-value]
    return None


def take_decorator(text: str) -> Optional[Tuple[str, str]]:
    """Split a leading ``@Name(...)`` off ``text``; returns (name, rest)."""
    match = _DECORATOR_NAME.match(text)
    if not match:
        return None
    rest = text[match.end():]
    if rest.startswith("("):
        braced = extract_braced(rest, 0, "(", ")")
        rest = rest[braced[1]:] if braced else ""
    return match.group("name"), rest.strip()


def _is_function_type(text: str) -> bool:
    return text.lstrip().startswith("(") and "=>" in text


def _strip_initializer(text: str) -> str:
    parts = split_top_level(text, ("=",))
    # Arrow types contain "=>"; only cut on a bare assignment.
    if len(parts) > 1 and not parts[1].startswith(">"):
        return parts[0]
    return text


def parse_members(body: str) -> List[FieldDefinition]:
    """Parse property signatures out of an interface, class, or object-literal body."""
    fields: List[FieldDefinition] = []
    pending_doc: List[str] = []
    pending_decorators: List[str] = []
    for part in split_top_level(mask_comment_separators(body), (";", ",", "\n")):
        if part.startswith(("/**", "/*", "*")):
            text = unmask(re.sub(r"^/\*\*?|\*/$|^\*", "", part)).strip()
            if text:
                pending_doc.append(text)
            continue
        if part.startswith("//"):
            continue
        decorators: List[str] = []
        while part.startswith("@"):
            taken = take_decorator(part)
            if taken is None:
                break
            decorators.append(taken[0])
            part = taken[1]
        if not part:
            pending_decorators.extend(decorators)
            continue
        match = _MEMBER.match(part)
        if not match or _is_function_type(match.group("type")):
            pending_doc, pending_decorators = [], []
            continue
        raw_type = strip_comments(unmask(_strip_initializer(match.group("type")))).rstrip(";").strip()
        name = match.group("name").strip("\"'")
        type_ref = parse_type_ref(raw_type)
        optional = bool(match.group("opt"))
        if optional and not type_ref.optional:
            type_ref = replace(type_ref, optional=True)
        all_decorators = pending_decorators + decorators
        fields.append(
            FieldDefinition(
                name=name,
                type_ref=type_ref,
                optional=optional or type_ref.optional,
                visibility=_member_visibility(match.group("mods"), name),
                decorators=all_decorators or None,
                doc=" ".join(pending_doc) or None,
            )
        )
        pending_doc, pending_decorators = [], []
    return fields


def _parse_enum_members(body: str) -> List[VariantDefinition]:
    variants: List[VariantDefinition] = []
    for part in split_top_level(body):
        lines = [line.strip() for line in part.split("\n")]
        declaration = " ".join(
            line for line in lines if line and not line.startswith(("//", "/*", "*"))
        ).strip()
        match = _ENUM_MEMBER.match(declaration)
        if not match:
            continue
        value: Optional[str | int] = None
        raw_value = match.group("value")
        if raw_value is not None:
            raw_value = raw_value.strip()
            literal = _STRING_LITERAL.match(raw_value)
            if literal:
                value = literal.group(2)
            elif re.fullmatch(r"-?\d+", raw_value):
                value = int(raw_value)
            else:
                value = raw_value
        variants.append(VariantDefinition(name=match.group("name").strip("\"'"), value=value))
    return variants


def _decorators(content: str, index: int) -> Optional[List[str]]:
    found: List[str] = []
    for line in preceding_lines(content, index):
        if line.startswith("@"):
            match = re.match(r"@([\w.]+)", line)
            if match:
                found.append(match.group(1))
        elif not line or line.startswith(("//", "*", "/*")):
            continue
        else:
            break
    found.reverse()
    return found or None


def _heritage(text: Optional[str]) -> Optional[List[TypeRef]]:
    if not text:
        return None
    return [parse_type_ref(item) for item in split_top_level(text)] or None


def _alias_body(content: str, start: int) -> str:
    """Return the right-hand side of a type alias starting at ``start``."""
    depth = 0
    index = start
    while index < len(content):
        char = content[index]
        if char in "<({[":
            depth += 1
        elif char in ">)}]" and not (char == ">" and content[index - 1] == "="):
            depth -= 1
        elif char == ";" and depth <= 0:
            break
        elif char == "\n" and depth <= 0:
            rest = content[index + 1 :].lstrip(" \t")
            if not rest.startswith(("|", "&")) and not content[:index].rstrip().endswith(("|", "&", "=")):
                break
        index += 1
    return content[start:index].strip()


def _literal_union(body: str) -> Optional[List[VariantDefinition]]:
    members = [part.strip() for part in body.lstrip("|").split("|")]
    if len(members) < 2:
        return None
    variants: List[VariantDefinition] = []
    for member in members:
        literal = _STRING_LITERAL.match(member)
        if not literal:
            return None
        variants.append(VariantDefinition(name=literal.group(2), value=literal.group(2)))
    return variants


class TypeScriptParser(TypeParser):
    language = "typescript"
    extensions = (".ts", ".tsx", ".mts", ".cts")

    def parse(self, content: str, file_path: str, include_private: bool = True) -> List[TypeDefinition]:
        found: List[Tuple[int, TypeDefinition]] = []

        def emit(match: re.Match[str], kind: str, **extra: object) -> None:
            visibility: Visibility = "public" if match.group("export") else "internal"
            if not keep(visibility, include_private):
                return
            start = match.start("name")
            generics = match.groupdict().get("generics")
            found.append(
                (
                    match.start(),
                    TypeDefinition(
                        name=match.group("name"),
                        kind=kind,  # type: ignore[arg-type]
                        file=file_path,
                        line=line_number(content, start),
                        language="typescript",
                        visibility=visibility,
                        generics=split_names(generics),
                        doc=extract_doc_comment(content, start),
                        **extra,  # type: ignore[arg-type]
                    ),
                )
            )

        for match in _INTERFACE.finditer(content):
            braced = extract_braced(content, match.end() - 1)
            emit(
                match,
                "interface",
                extends=_heritage(match.group("extends")),
                fields=parse_members(braced[0]) if braced else [],
            )

        for match in _TYPE_ALIAS.finditer(content):
            body = _alias_body(content, match.end())
            variants = _literal_union(body)
            if variants:
                emit(match, "union", variants=variants)
            elif body.startswith("{"):
                braced = extract_braced(body, 0)
                emit(match, "type_alias", fields=parse_members(braced[0]) if braced else [])
            else:
                emit(match, "type_alias")

        for match in _CLASS.finditer(content):
            braced = extract_braced(content, match.end() - 1)
            emit(
                match,
                "class",
                extends=_heritage(match.group("extends")),
                implements=_heritage(match.group("implements")),
                fields=parse_members(braced[0]) if braced else [],
                decorators=_decorators(content, match.start("name")),
            )

        for match in _ENUM.finditer(content):
            braced = extract_braced(content, match.end() - 1)
            emit(match, "enum", variants=_parse_enum_members(braced[0]) if braced else [])

        found.sort(key=lambda item: item[0])
        return [type_def for _, type_def in found]


__all__ = ["TypeScriptParser", "parse_members"]
