"""Go type parser backed by tree-sitter."""

from __future__ import annotations

from typing import List, Optional

from tree_sitter import Node

from ..models import FieldDefinition, TypeDefinition, TypeRef, Visibility
from .base import TypeParser, keep
from .tree_sitter import children_of_type, node_line, node_text, parse_source, preceding_comments, walk
from .typeref import parse_type_ref

_METHOD_NODES = ("method_elem", "method_spec")
_EMBEDDED_NODES = ("type_elem", "interface_type_name", "constraint_elem", "type_identifier", "qualified_type")


def parse_visibility(name: str) -> Visibility:
    if name and name[0].isupper():
        return "public"
    return "private"


def _type_ref(node: Node, source: bytes) -> TypeRef:
    text = node_text(node, source)
    if node.type == "map_type":
        key = node.child_by_field_name("key")
        value = node.child_by_field_name("value")
        generics = [parse_type_ref(node_text(item, source)) for item in (key, value) if item is not None]
        return TypeRef(name="map", raw=text, generics=generics or None)
    return parse_type_ref(text)


def _tag(field_node: Node, source: bytes) -> Optional[List[str]]:
    tag = field_node.child_by_field_name("tag")
    if tag is None:
        return None
    text = node_text(tag, source)
    if len(text) >= 2 and text[0] in "`\"" and text[-1] == text[0]:
        text = text[1:-1]
    return [text] if text else None


def _struct_fields(struct_node: Node, source: bytes) -> List[FieldDefinition]:
    fields: List[FieldDefinition] = []
    for declarations in children_of_type(struct_node, "field_declaration_list"):
        for declaration in children_of_type(declarations, "field_declaration"):
            type_node = declaration.child_by_field_name("type")
            if type_node is None:
                continue
            type_ref = _type_ref(type_node, source)
            tag = _tag(declaration, source)
            doc = preceding_comments(declaration, source)
            names = [node_text(child, source) for child in children_of_type(declaration, "field_identifier")]
            if not names:
                # Embedded field: promoted under the embedded type's name.
                embedded = type_ref.name.rsplit(".", 1)[-1]
                fields.append(
                    FieldDefinition(
                        name=embedded,
                        type_ref=type_ref,
                        optional=type_ref.optional,
                        visibility=parse_visibility(embedded),
                        decorators=(tag or []) + ["embedded"],
                        doc=doc,
                    )
                )
                continue
            for name in names:
                fields.append(
                    FieldDefinition(
                        name=name,
                        type_ref=type_ref,
                        optional=type_ref.optional,
                        visibility=parse_visibility(name),
                        decorators=tag,
                        doc=doc,
                    )
                )
    return fields


def _result_type(method: Node, source: bytes) -> TypeRef:
    result = method.child_by_field_name("result")
    if result is None:
        return parse_type_ref("void")
    if result.type == "parameter_list":
        types = [
            declaration.child_by_field_name("type")
            for declaration in children_of_type(result, "parameter_declaration")
        ]
        candidates = [item for item in types if item is not None and node_text(item, source) != "error"]
        if candidates:
            return _type_ref(candidates[0], source)
        return parse_type_ref(node_text(result, source).strip("()") or "void")
    return _type_ref(result, source)


def _interface_members(interface_node: Node, source: bytes) -> tuple[List[FieldDefinition], List[TypeRef]]:
    methods: List[FieldDefinition] = []
    embedded: List[TypeRef] = []
    for child in interface_node.named_children:
        if child.type in _METHOD_NODES:
            name = node_text(child.child_by_field_name("name"), source)
            if not name:
                continue
            methods.append(
                FieldDefinition(
                    name=name,
                    type_ref=_result_type(child, source),
                    visibility=parse_visibility(name),
                    doc=preceding_comments(child, source),
                )
            )
        elif child.type in _EMBEDDED_NODES:
            text = node_text(child, source).strip()
            # Union constraints ("~int | ~string") are not embedded interfaces.
            if text and "|" not in text and not text.startswith("~"):
                embedded.append(parse_type_ref(text))
    return methods, embedded


def _generics(spec: Node, source: bytes) -> Optional[List[str]]:
    parameters = spec.child_by_field_name("type_parameters")
    if parameters is None:
        return None
    names: List[str] = []
    for declaration in children_of_type(parameters, "type_parameter_declaration"):
        names.extend(node_text(child, source) for child in children_of_type(declaration, "identifier"))
    return names or None


class GoParser(TypeParser):
    language = "go"
    extensions = (".go",)

    def parse(self, content: str, file_path: str, include_private: bool = True) -> List[TypeDefinition]:
        tree, source = parse_source("go", content)
        types: List[TypeDefinition] = []

        for declaration in walk(tree.root_node):
            if declaration.type != "type_declaration":
                continue
            specs = children_of_type(declaration, "type_spec", "type_alias")
            for spec in specs:
                name = node_text(spec.child_by_field_name("name"), source)
                if not name:
                    continue
                visibility = parse_visibility(name)
                if not keep(visibility, include_private):
                    continue
                # A lone spec is documented above the "type" keyword; grouped specs carry their own.
                doc = preceding_comments(spec, source) or (
                    preceding_comments(declaration, source) if len(specs) == 1 else None
                )
                common = dict(
                    name=name,
                    file=file_path,
                    line=node_line(spec),
                    language="go",
                    visibility=visibility,
                    generics=_generics(spec, source),
                    doc=doc,
                )
                type_node = spec.child_by_field_name("type")
                if spec.type == "type_spec" and type_node is not None and type_node.type == "struct_type":
                    types.append(TypeDefinition(kind="struct", fields=_struct_fields(type_node, source), **common))  # type: ignore[arg-type]
                elif spec.type == "type_spec" and type_node is not None and type_node.type == "interface_type":
                    methods, embedded = _interface_members(type_node, source)
                    types.append(
                        TypeDefinition(
                            kind="interface",
                            fields=methods or None,
                            extends=embedded or None,
                            **common,  # type: ignore[arg-type]
                        )
                    )
                else:
                    types.append(TypeDefinition(kind="type_alias", **common))  # type: ignore[arg-type]
        return types


__all__ = ["GoParser", "parse_visibility"]
