"""Python type parser backed by tree-sitter.

Every ``class`` statement becomes a type. Dataclass-style decorators and
well-known bases (``TypedDict``, ``NamedTuple``, pydantic ``BaseModel``,
``Protocol``, the ``enum`` family) decide the kind; annotated class
attributes become fields and upper-case members of enums become variants.
Module-level ``type X = ...`` statements and ``X: TypeAlias = ...``
assignments are reported as aliases.
"""

from __future__ import annotations

import inspect
import re
from typing import List, Optional, Tuple

from tree_sitter import Node

from ..models import FieldDefinition, TypeDefinition, TypeKind, TypeRef, VariantDefinition, Visibility
from .base import TypeParser, keep
from .text import split_names
from .tree_sitter import children_of_type, first_child_of_type, node_line, node_text, parse_source, walk
from .typeref import parse_type_ref

STRUCT_DECORATORS = frozenset({"dataclass", "define", "frozen", "mutable", "attrs", "s", "dataclass_json"})
STRUCT_BASES = frozenset({"TypedDict", "NamedTuple", "BaseModel"})
ENUM_BASES = frozenset({"Enum", "IntEnum", "StrEnum", "Flag", "IntFlag"})
MARKER_BASES = STRUCT_BASES | ENUM_BASES | {"Protocol", "Generic", "ABC", "object"}

_ENUM_MEMBER = re.compile(r"^[A-Z][A-Z0-9_]*$")
_STRING_PREFIX = re.compile(r"^[rRbBuUfF]*")


def parse_visibility(name: str) -> Visibility:
    if name.startswith("__") and not name.endswith("__"):
        return "private"
    if name.startswith("_"):
        return "protected"
    return "public"


def _short(name: str) -> str:
    return name.split("[", 1)[0].rsplit(".", 1)[-1].strip()


def _string_value(node: Node, source: bytes) -> str:
    text = _STRING_PREFIX.sub("", node_text(node, source))
    for quote in ('"""', "'''", '"', "'"):
        if text.startswith(quote) and text.endswith(quote) and len(text) >= 2 * len(quote):
            return text[len(quote) : -len(quote)]
    return text


def _decorators(class_node: Node, source: bytes) -> List[str]:
    parent = class_node.parent
    if parent is None or parent.type != "decorated_definition":
        return []
    names: List[str] = []
    for decorator in children_of_type(parent, "decorator"):
        expression = decorator.named_children[0] if decorator.named_children else None
        if expression is not None and expression.type == "call":
            expression = expression.child_by_field_name("function")
        text = node_text(expression, source).strip()
        if text:
            names.append(text)
    return names


def _bases(class_node: Node, source: bytes) -> List[str]:
    arguments = class_node.child_by_field_name("superclasses")
    if arguments is None:
        return []
    return [
        node_text(child, source)
        for child in arguments.named_children
        if child.type in ("identifier", "attribute", "subscript")
    ]


def _generics(class_node: Node, bases: List[str], source: bytes) -> Optional[List[str]]:
    parameters = class_node.child_by_field_name("type_parameters")
    if parameters is not None:
        return split_names(node_text(parameters, source).strip("[]"))
    for base in bases:
        if _short(base) in ("Generic", "Protocol") and "[" in base:
            return split_names(base[base.index("[") + 1 : base.rindex("]")])
    return None


def _classify(decorators: List[str], bases: List[str]) -> TypeKind:
    if any(_short(decorator) in STRUCT_DECORATORS for decorator in decorators):
        return "struct"
    short_bases = {_short(base) for base in bases}
    if short_bases & STRUCT_BASES:
        return "struct"
    if "Protocol" in short_bases:
        return "protocol"
    if short_bases & ENUM_BASES:
        return "enum"
    return "class"


def _docstring(block: Optional[Node], source: bytes) -> Optional[str]:
    if block is None or not block.named_children:
        return None
    first = block.named_children[0]
    if first.type != "expression_statement" or not first.named_children:
        return None
    string = first.named_children[0]
    if string.type != "string":
        return None
    doc = inspect.cleandoc(_string_value(string, source))
    return doc or None


def _assignments(block: Node) -> List[Node]:
    found: List[Node] = []
    for statement in children_of_type(block, "expression_statement"):
        assignment = first_child_of_type(statement, "assignment")
        if assignment is not None:
            found.append(assignment)
    return found


def _fields(block: Node, source: bytes) -> List[FieldDefinition]:
    fields: List[FieldDefinition] = []
    for assignment in _assignments(block):
        left = assignment.child_by_field_name("left")
        annotation = assignment.child_by_field_name("type")
        if left is None or annotation is None or left.type != "identifier":
            continue
        name = node_text(left, source)
        if name.startswith("__") and name.endswith("__"):
            continue
        type_text = node_text(annotation, source)
        if _short(type_text) == "ClassVar":
            continue
        type_ref = parse_type_ref(type_text)
        has_default = assignment.child_by_field_name("right") is not None
        fields.append(
            FieldDefinition(
                name=name,
                type_ref=type_ref,
                optional=type_ref.optional or has_default,
                visibility=parse_visibility(name),
            )
        )
    return fields


def _variants(block: Node, source: bytes) -> List[VariantDefinition]:
    variants: List[VariantDefinition] = []
    for assignment in _assignments(block):
        left = assignment.child_by_field_name("left")
        if left is None or left.type != "identifier":
            continue
        name = node_text(left, source)
        if not _ENUM_MEMBER.match(name):
            continue
        right = assignment.child_by_field_name("right")
        value: Optional[str | int] = None
        if right is not None and right.type == "string":
            value = _string_value(right, source)
        elif right is not None and right.type == "integer":
            text = node_text(right, source).replace("_", "")
            value = int(text, 0) if not re.fullmatch(r"0\d+", text) else int(text)
        variants.append(VariantDefinition(name=name, value=value))
    return variants


def _module_aliases(root: Node, source: bytes) -> List[Tuple[Node, str, Optional[List[str]]]]:
    aliases: List[Tuple[Node, str, Optional[List[str]]]] = []
    for statement in root.named_children:
        if statement.type == "type_alias_statement" and statement.named_children:
            target = node_text(statement.named_children[0], source)
            name = target.split("[", 1)[0].strip()
            generics = split_names(target[len(name) :].strip().strip("[]")) if "[" in target else None
            aliases.append((statement, name, generics))
        elif statement.type == "expression_statement":
            assignment = first_child_of_type(statement, "assignment")
            if assignment is None:
                continue
            left = assignment.child_by_field_name("left")
            annotation = assignment.child_by_field_name("type")
            if left is not None and annotation is not None and _short(node_text(annotation, source)) == "TypeAlias":
                aliases.append((statement, node_text(left, source), None))
    return aliases


class PythonParser(TypeParser):
    language = "python"
    extensions = (".py", ".pyi")

    def parse(self, content: str, file_path: str, include_private: bool = True) -> List[TypeDefinition]:
        tree, source = parse_source("python", content)
        types: List[TypeDefinition] = []

        for node in walk(tree.root_node):
            if node.type != "class_definition":
                continue
            name = node_text(node.child_by_field_name("name"), source)
            if not name:
                continue
            visibility = parse_visibility(name)
            if not keep(visibility, include_private):
                continue
            decorators = _decorators(node, source)
            bases = _bases(node, source)
            kind = _classify(decorators, bases)
            block = node.child_by_field_name("body")
            extends: List[TypeRef] = [parse_type_ref(base) for base in bases if _short(base) not in MARKER_BASES]
            type_def = TypeDefinition(
                name=name,
                kind=kind,
                file=file_path,
                line=node_line(node),
                language="python",
                visibility=visibility,
                generics=_generics(node, bases, source),
                extends=extends or None,
                decorators=decorators or None,
                doc=_docstring(block, source),
                variants=_variants(block, source) if kind == "enum" and block is not None else None,
                fields=(_fields(block, source) or None) if kind != "enum" and block is not None else None,
            )
            types.append(type_def)

        for statement, name, generics in _module_aliases(tree.root_node, source):
            visibility = parse_visibility(name)
            if not keep(visibility, include_private):
                continue
            types.append(
                TypeDefinition(
                    name=name,
                    kind="type_alias",
                    file=file_path,
                    line=node_line(statement),
                    language="python",
                    visibility=visibility,
                    generics=generics,
                )
            )

        types.sort(key=lambda type_def: type_def.line)
        return types


__all__ = ["PythonParser", "parse_visibility"]
