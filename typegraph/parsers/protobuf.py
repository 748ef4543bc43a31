"""Protocol Buffers schema parser.

Messages, enums and services from ``.proto`` files. Names are qualified with
the file's ``package`` and, for nested declarations, with the enclosing
message, following protobuf's own scoping rules. Field types that name a
declaration from the same file are resolved to its qualified name so that
relationships line up; scalar types are mapped to portable names.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from ..models import FieldDefinition, TypeDefinition, TypeRef, VariantDefinition
from .base import TypeParser
from .text import extract_braced, extract_doc_comment, line_number, strip_comments

SCALAR_TYPES: Dict[str, str] = {
    "double": "f64",
    "float": "f32",
    "int32": "i32",
    "int64": "i64",
    "uint32": "u32",
    "uint64": "u64",
    "sint32": "i32",
    "sint64": "i64",
    "fixed32": "u32",
    "fixed64": "u64",
    "sfixed32": "i32",
    "sfixed64": "i64",
    "bool": "bool",
    "string": "string",
    "bytes": "bytes",
}

_PACKAGE = re.compile(r"^\s*package\s+([\w.]+)\s*;", re.MULTILINE)
_DECLARATION = re.compile(r"^[ \t]*(?P<keyword>message|enum|service)\s+(?P<name>\w+)\s*\{", re.MULTILINE)
_MAP_FIELD = re.compile(r"^map\s*<\s*(?P<key>[\w.]+)\s*,\s*(?P<value>[\w.]+)\s*>\s+(?P<name>\w+)\s*=\s*\d+")
_FIELD = re.compile(r"^(?:(?P<label>optional|required|repeated)\s+)?(?P<type>\.?[\w.]+)\s+(?P<name>\w+)\s*=\s*\d+")
_ENUM_VALUE = re.compile(r"^(?P<name>\w+)\s*=\s*(?P<value>-?(?:0x[0-9a-fA-F]+|\d+))")
_RPC = re.compile(
    r"^rpc\s+(?P<name>\w+)\s*\(\s*(?P<client_stream>stream\s+)?(?P<request>\.?[\w.]+)\s*\)\s*"
    r"returns\s*\(\s*(?P<server_stream>stream\s+)?(?P<response>\.?[\w.]+)\s*\)"
)
_ONEOF = re.compile(r"\boneof\s+\w+\s*\{")


@dataclass
class _Block:
    keyword: str
    name: str
    scope: str
    start: int
    body: str
    body_start: int
    nested: bool
    own_body: str = ""
    children: List["_Block"] = field(default_factory=list)


def _collect_blocks(body: str, offset: int, scope: str, nested: bool) -> List[_Block]:
    blocks: List[_Block] = []
    position = 0
    while True:
        match = _DECLARATION.search(body, position)
        if not match:
            break
        braced = extract_braced(body, match.end() - 1)
        if braced is None:
            break
        inner, end = braced
        name = f"{scope}.{match.group('name')}" if scope else match.group("name")
        block = _Block(
            keyword=match.group("keyword"),
            name=name,
            scope=scope,
            start=offset + match.start("name"),
            body=inner,
            body_start=offset + match.end(),
            nested=nested,
        )
        if block.keyword == "message":
            block.children = _collect_blocks(inner, block.body_start, name, True)
            block.own_body = _without_children(inner, block.body_start, block.children)
        else:
            block.own_body = inner
        blocks.append(block)
        position = end
    return blocks


def _without_children(inner: str, body_start: int, children: List[_Block]) -> str:
    """Blank out nested message/enum bodies so their fields stay with them."""
    text = inner
    for child in children:
        relative = child.start - body_start
        head = _DECLARATION.match(inner, inner.rfind("\n", 0, relative) + 1)
        begin = head.start() if head else relative
        end = child.body_start - body_start + len(child.body) + 1
        text = text[:begin] + " " * (end - begin) + text[end:]
    return text


def _flatten(blocks: List[_Block]) -> List[_Block]:
    flat: List[_Block] = []
    for block in blocks:
        flat.append(block)
        flat.extend(_flatten(block.children))
    return flat


class _Resolver:
    def __init__(self, declared: List[str]) -> None:
        self._declared = set(declared)

    def resolve(self, type_name: str, scope: str) -> str:
        """Resolve ``type_name`` relative to ``scope`` the way protoc does."""
        if type_name in SCALAR_TYPES:
            return SCALAR_TYPES[type_name]
        if type_name.startswith("."):
            return type_name[1:]
        parts = scope.split(".") if scope else []
        while True:
            candidate = ".".join(parts + [type_name])
            if candidate in self._declared:
                return candidate
            if not parts:
                return type_name
            parts.pop()


def _statements(body: str) -> List[str]:
    text = _ONEOF.sub(" ", strip_comments(body)).replace("{", ";").replace("}", ";")
    return [statement.strip() for statement in text.split(";") if statement.strip()]


def _type_ref(raw: str, resolved: str, repeated: bool = False) -> TypeRef:
    return TypeRef(name=resolved, raw=raw, is_collection=repeated)


def _message_fields(block: _Block, resolver: _Resolver) -> List[FieldDefinition]:
    fields: List[FieldDefinition] = []
    oneof_spans = [
        (match.end(), (extract_braced(block.own_body, match.end() - 1) or ("", match.end()))[1])
        for match in _ONEOF.finditer(block.own_body)
    ]
    oneof_names = set()
    for begin, end in oneof_spans:
        for statement in _statements(block.own_body[begin:end]):
            match = _FIELD.match(statement)
            if match:
                oneof_names.add(match.group("name"))

    for statement in _statements(block.own_body):
        if statement.startswith(("option ", "reserved ", "extensions ")):
            continue
        map_match = _MAP_FIELD.match(statement)
        if map_match:
            key, value = map_match.group("key"), map_match.group("value")
            raw = statement[: statement.index(">") + 1]
            fields.append(
                FieldDefinition(
                    name=map_match.group("name"),
                    type_ref=TypeRef(
                        name="Map",
                        raw=raw,
                        generics=[
                            TypeRef(name=resolver.resolve(key, block.name), raw=key),
                            TypeRef(name=resolver.resolve(value, block.name), raw=value),
                        ],
                    ),
                )
            )
            continue
        match = _FIELD.match(statement)
        if not match:
            continue
        label = match.group("label")
        raw_type = match.group("type")
        optional = label == "optional" or match.group("name") in oneof_names
        type_ref = _type_ref(raw_type, resolver.resolve(raw_type, block.name), label == "repeated")
        if optional:
            type_ref = TypeRef(name=type_ref.name, raw=type_ref.raw, optional=True, is_collection=type_ref.is_collection)
        fields.append(
            FieldDefinition(
                name=match.group("name"),
                type_ref=type_ref,
                optional=optional,
                decorators=["oneof"] if match.group("name") in oneof_names else None,
            )
        )
    return fields


def _int_literal(text: str) -> int:
    if text.lstrip("-").lower().startswith("0x"):
        return int(text, 16)
    return int(text)


def _enum_values(body: str) -> List[VariantDefinition]:
    variants: List[VariantDefinition] = []
    for statement in _statements(body):
        match = _ENUM_VALUE.match(statement)
        if match:
            variants.append(VariantDefinition(name=match.group("name"), value=_int_literal(match.group("value"))))
    return variants


def _rpc_methods(block: _Block, resolver: _Resolver) -> List[FieldDefinition]:
    methods: List[FieldDefinition] = []
    for statement in _statements(block.body):
        match = _RPC.match(statement)
        if not match:
            continue
        response = match.group("response")
        request = match.group("request")
        decorators = ["rpc", f"request:{resolver.resolve(request, block.scope)}"]
        if match.group("client_stream"):
            decorators.append("client_streaming")
        if match.group("server_stream"):
            decorators.append("server_streaming")
        methods.append(
            FieldDefinition(
                name=match.group("name"),
                type_ref=_type_ref(response, resolver.resolve(response, block.scope), bool(match.group("server_stream"))),
                decorators=decorators,
            )
        )
    return methods


class ProtobufParser(TypeParser):
    language = "protobuf"
    extensions = (".proto",)

    def parse(self, content: str, file_path: str, include_private: bool = True) -> List[TypeDefinition]:
        package_match = _PACKAGE.search(content)
        package = package_match.group(1) if package_match else ""
        blocks = _flatten(_collect_blocks(content, 0, package, False))
        resolver = _Resolver([block.name for block in blocks])

        types: List[Tuple[int, TypeDefinition]] = []
        for block in blocks:
            decorators = ["protobuf"]
            if block.nested:
                decorators.append("nested")
            common = dict(
                name=block.name,
                file=file_path,
                line=line_number(content, block.start),
                language="protobuf",
                visibility="public",
                doc=extract_doc_comment(content, block.start),
            )
            if block.keyword == "message":
                type_def = TypeDefinition(
                    kind="message", fields=_message_fields(block, resolver), decorators=decorators, **common  # type: ignore[arg-type]
                )
            elif block.keyword == "enum":
                type_def = TypeDefinition(
                    kind="enum", variants=_enum_values(block.body), decorators=decorators, **common  # type: ignore[arg-type]
                )
            else:
                type_def = TypeDefinition(
                    kind="service",
                    fields=_rpc_methods(block, resolver),
                    decorators=decorators + ["service"],
                    **common,  # type: ignore[arg-type]
                )
            types.append((block.start, type_def))
        types.sort(key=lambda item: item[0])
        return [type_def for _, type_def in types]


__all__ = ["ProtobufParser", "SCALAR_TYPES"]
