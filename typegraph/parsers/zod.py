"""Zod runtime-schema parser.

Runs next to the TypeScript parser on files that import ``zod`` and reports
each top-level schema constant as a type. A trailing ``Schema`` suffix is
dropped from the constant name so ``UserSchema`` lines up with ``User``.
"""

from __future__ import annotations

import re
from dataclasses import replace
from typing import Dict, List, Optional, Tuple

from ..models import FieldDefinition, TypeDefinition, TypeRef, VariantDefinition, Visibility
from .base import SupplementaryParser, keep
from .text import extract_braced, extract_doc_comment, line_number, split_top_level, strip_comments

ZOD_SCALARS: Dict[str, str] = {
    "string": "string",
    "number": "number",
    "boolean": "boolean",
    "date": "Date",
    "bigint": "bigint",
    "undefined": "undefined",
    "null": "null",
    "void": "void",
    "any": "any",
    "unknown": "unknown",
    "never": "never",
    "nan": "number",
    "symbol": "symbol",
}

_IMPORTS_ZOD = re.compile(r"""(?:from\s+|require\(\s*)["']zod(?:/[\w-]+)?["']""")
_DECLARATION = re.compile(
    r"^[ \t]*(?P<export>export\s+)?(?:const|let|var)\s+(?P<name>\w+)\s*(?::\s*[^=]+)?=\s*",
    re.MULTILINE,
)
_CALL = re.compile(r"z\s*\.\s*(?P<fn>\w+)\s*\(")
_EXTEND = re.compile(r"(?P<base>\w+)\s*\.\s*extend\s*\(")
_OPTIONAL_MODIFIERS = re.compile(r"\.\s*(?:optional|nullish|nullable)\s*\(\s*\)")
_REFERENCE = re.compile(r"^(?P<name>\w+)(?:\s*\..*)?$", re.DOTALL)
_ARRAY_MODIFIER = re.compile(r"\.\s*array\s*\(\s*\)")


def schema_name(name: str) -> str:
    if name.endswith("Schema") and name != "Schema":
        return name[: -len("Schema")]
    return name


def _call_args(expression: str, start: int) -> Tuple[str, str]:
    """Return (arguments, trailing method chain) for the call opening at ``start``."""
    braced = extract_braced(expression, start, "(", ")")
    if braced is None:
        return "", ""
    return braced[0], expression[braced[1]:]


def _call_body(content: str, start: int) -> str:
    braced = extract_braced(content, start, "(", ")")
    return braced[0] if braced else ""


def zod_type_ref(expression: str) -> TypeRef:
    """Translate a zod builder expression into a TypeRef of the inferred type."""
    text = expression.strip()
    chain = _top_level_chain(text)
    type_ref = _base_type_ref(text, expression)
    if _OPTIONAL_MODIFIERS.search(chain):
        type_ref = replace(type_ref, optional=True)
    if _ARRAY_MODIFIER.search(chain):
        type_ref = replace(type_ref, is_collection=True)
    return type_ref


def _base_type_ref(text: str, raw: str) -> TypeRef:
    call = _CALL.match(text)
    if call is None:
        reference = _REFERENCE.match(text)
        name = schema_name(reference.group("name")) if reference else "unknown"
        return TypeRef(name=name, raw=raw)
    fn = call.group("fn")
    args, _chain = _call_args(text, call.end() - 1)
    if fn in ZOD_SCALARS:
        return TypeRef(name=ZOD_SCALARS[fn], raw=raw)
    if fn in ("array", "set"):
        if not args.strip():
            return TypeRef(name="Array" if fn == "array" else "Set", raw=raw, is_collection=True)
        element = zod_type_ref(split_top_level(args)[0])
        return replace(element, raw=raw, optional=False, is_collection=True)
    if fn in ("record", "map"):
        generics = [zod_type_ref(arg) for arg in split_top_level(args)] or None
        return TypeRef(name="Record" if fn == "record" else "Map", raw=raw, generics=generics)
    if fn in ("optional", "nullable", "nullish"):
        return replace(zod_type_ref(args), raw=raw, optional=True)
    if fn == "lazy":
        return replace(zod_type_ref(args.split("=>", 1)[-1]), raw=raw)
    if fn == "nativeEnum":
        return TypeRef(name=args.strip(), raw=raw)
    if fn in ("union", "discriminatedUnion"):
        return TypeRef(name="union", raw=raw)
    return TypeRef(name=fn, raw=raw)


def _top_level_chain(text: str) -> str:
    """Return the method chain applied to the outermost call, if any."""
    call = _CALL.match(text)
    if call:
        return _call_args(text, call.end() - 1)[1]
    head = re.match(r"^\w+", text)
    return text[head.end():] if head else text


def parse_object_fields(body: str) -> List[FieldDefinition]:
    fields: List[FieldDefinition] = []
    for part in split_top_level(strip_comments(body)):
        match = re.match(r"^(?P<name>[\w$]+|\"[^\"]+\"|'[^']+')\s*:\s*(?P<expr>.+)$", part, re.DOTALL)
        if not match:
            continue
        type_ref = zod_type_ref(match.group("expr"))
        fields.append(
            FieldDefinition(name=match.group("name").strip("\"'"), type_ref=type_ref, optional=type_ref.optional)
        )
    return fields


def _enum_values(args: str) -> List[VariantDefinition]:
    inner = args.strip()
    if inner.startswith("["):
        braced = extract_braced(inner, 0, "[", "]")
        inner = braced[0] if braced else inner
    variants: List[VariantDefinition] = []
    for item in split_top_level(inner):
        value = item.strip().strip("\"'`")
        if value:
            variants.append(VariantDefinition(name=value, value=value))
    return variants


def _union_members(args: str, discriminated: bool) -> List[VariantDefinition]:
    items = split_top_level(args)
    if discriminated and items:
        items = items[1:]
    inner = items[0].strip() if items else ""
    if inner.startswith("["):
        braced = extract_braced(inner, 0, "[", "]")
        inner = braced[0] if braced else inner
    variants: List[VariantDefinition] = []
    for member in split_top_level(inner):
        literal = re.match(r"^z\s*\.\s*literal\s*\(\s*(?P<value>.+?)\s*\)$", member, re.DOTALL)
        if literal:
            value = literal.group("value").strip("\"'`")
            variants.append(VariantDefinition(name=value, value=value))
            continue
        type_ref = zod_type_ref(member)
        variants.append(VariantDefinition(name=type_ref.name))
    return variants


class ZodParser(SupplementaryParser):
    language = "typescript"
    applies_to = (".ts", ".tsx", ".mts", ".cts")

    def parse(self, content: str, file_path: str, include_private: bool = True) -> List[TypeDefinition]:
        if not _IMPORTS_ZOD.search(content):
            return []
        types: List[TypeDefinition] = []
        for match in _DECLARATION.finditer(content):
            visibility: Visibility = "public" if match.group("export") else "internal"
            if not keep(visibility, include_private):
                continue
            parsed = self._classify(content, match.end())
            if parsed is None:
                continue
            kind, extra = parsed
            start = match.start("name")
            types.append(
                TypeDefinition(
                    name=schema_name(match.group("name")),
                    kind=kind,  # type: ignore[arg-type]
                    file=file_path,
                    line=line_number(content, start),
                    language="typescript",
                    visibility=visibility,
                    decorators=["zod"],
                    doc=extract_doc_comment(content, start),
                    **extra,  # type: ignore[arg-type]
                )
            )
        return types

    @staticmethod
    def _classify(content: str, pos: int) -> Optional[Tuple[str, Dict[str, object]]]:
        call = _CALL.match(content, pos)
        if call:
            fn = call.group("fn")
            args = _call_body(content, call.end() - 1)
            if fn in ("object", "strictObject", "looseObject"):
                braced = extract_braced(args, 0)
                return "struct", {"fields": parse_object_fields(braced[0]) if braced else []}
            if fn == "enum":
                return "enum", {"variants": _enum_values(args)}
            if fn in ("union", "discriminatedUnion"):
                return "union", {"variants": _union_members(args, fn == "discriminatedUnion")}
            return None
        extend = _EXTEND.match(content, pos)
        if extend:
            args = _call_body(content, extend.end() - 1)
            braced = extract_braced(args, 0)
            base = schema_name(extend.group("base"))
            return "struct", {
                "fields": parse_object_fields(braced[0]) if braced else [],
                "extends": [TypeRef(name=base, raw=extend.group("base"))],
            }
        return None


__all__ = ["ZodParser", "parse_object_fields", "schema_name", "zod_type_ref"]
