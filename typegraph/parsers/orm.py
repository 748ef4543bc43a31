"""ORM model parsers.

Database models are usually the canonical shape of a service's data, so
they are reported a second time as ``model`` types tagged with the
framework name and the ``orm`` marker. One supplementary parser exists per
language family:

* Python: Django ``models.Model`` subclasses and SQLAlchemy declarative
  classes.
* Go: GORM structs (embedding ``gorm.Model`` or carrying ``gorm:`` tags).
* TypeScript: TypeORM ``@Entity`` classes, Drizzle table definitions and
  Prisma generated client types.
"""

from __future__ import annotations

import re
from dataclasses import replace
from typing import Dict, List, Optional

from tree_sitter import Node

from ..models import FieldDefinition, TypeDefinition, TypeRef, Visibility
from .base import SupplementaryParser, keep
from .go import GoParser
from .python import parse_visibility as python_visibility
from .text import extract_braced, extract_doc_comment, line_number, split_top_level, strip_comments
from .tree_sitter import children_of_type, first_child_of_type, node_line, node_text, parse_source, walk
from .typeref import parse_type_ref
from .typescript import TypeScriptParser

ORM_MARKER = "orm"

DJANGO_FIELDS: Dict[str, str] = {
    "CharField": "string",
    "TextField": "string",
    "EmailField": "string",
    "URLField": "string",
    "SlugField": "string",
    "UUIDField": "UUID",
    "IntegerField": "i32",
    "BigIntegerField": "i64",
    "SmallIntegerField": "i16",
    "PositiveIntegerField": "u32",
    "AutoField": "i32",
    "BigAutoField": "i64",
    "FloatField": "f64",
    "DecimalField": "decimal",
    "BooleanField": "bool",
    "NullBooleanField": "bool",
    "DateField": "date",
    "DateTimeField": "datetime",
    "TimeField": "time",
    "DurationField": "duration",
    "FileField": "file",
    "ImageField": "image",
    "BinaryField": "bytes",
    "JSONField": "json",
}
DJANGO_RELATIONS = frozenset({"ForeignKey", "OneToOneField", "ManyToManyField"})

SQLALCHEMY_TYPES: Dict[str, str] = {
    "String": "string",
    "Text": "string",
    "Unicode": "string",
    "Integer": "i32",
    "BigInteger": "i64",
    "SmallInteger": "i16",
    "Float": "f64",
    "Numeric": "decimal",
    "Boolean": "bool",
    "Date": "date",
    "DateTime": "datetime",
    "Time": "time",
    "LargeBinary": "bytes",
    "JSON": "json",
    "UUID": "UUID",
    "Uuid": "UUID",
    "Enum": "enum",
}
# Declarative base classes themselves are not tables.
SQLALCHEMY_ROOTS = frozenset({"DeclarativeBase", "DeclarativeBaseNoMeta", "AsyncAttrs"})

DRIZZLE_TYPES: Dict[str, str] = {
    "text": "string",
    "varchar": "string",
    "char": "string",
    "integer": "i32",
    "int": "i32",
    "bigint": "i64",
    "smallint": "i16",
    "serial": "i32",
    "bigserial": "i64",
    "boolean": "bool",
    "timestamp": "datetime",
    "date": "date",
    "time": "time",
    "json": "json",
    "jsonb": "json",
    "uuid": "UUID",
    "real": "f32",
    "doublePrecision": "f64",
    "decimal": "decimal",
    "numeric": "decimal",
}

TYPEORM_COLUMNS = frozenset(
    {
        "Column",
        "PrimaryColumn",
        "PrimaryGeneratedColumn",
        "CreateDateColumn",
        "UpdateDateColumn",
        "DeleteDateColumn",
        "VersionColumn",
        "ObjectIdColumn",
    }
)
TYPEORM_RELATIONS = frozenset({"OneToOne", "OneToMany", "ManyToOne", "ManyToMany"})

_DJANGO_IMPORT = re.compile(r"^\s*(?:from\s+django\.db(?:\.models)?\s+import|import\s+django)", re.MULTILINE)
_SQLALCHEMY_IMPORT = re.compile(r"^\s*(?:from\s+sqlalchemy|import\s+sqlalchemy)", re.MULTILINE)
_DRIZZLE_TABLE = re.compile(
    r"^[ \t]*(?P<export>export\s+)?const\s+(?P<var>\w+)\s*=\s*(?:pg|mysql|sqlite)Table\s*\(\s*[\"'`](?P<table>[\w.-]+)[\"'`]\s*,\s*",
    re.MULTILINE,
)
_DRIZZLE_REFERENCE = re.compile(r"\.references\s*\(\s*\(\s*\)\s*(?::\s*\w+\s*)?=>\s*(?P<table>\w+)\s*\.")


def pascal_case(name: str) -> str:
    parts = re.split(r"[-_]+", name)
    return "".join(part[:1].upper() + part[1:] for part in parts if part)


def _model(type_def: TypeDefinition, framework: str, fields: Optional[List[FieldDefinition]], *extra: str) -> TypeDefinition:
    return replace(
        type_def,
        kind="model",
        fields=fields,
        variants=None,
        decorators=[framework, ORM_MARKER, *extra],
    )


# Python


def _call_parts(call: Node, source: bytes) -> tuple[str, List[Node], Dict[str, Node]]:
    function = node_text(call.child_by_field_name("function"), source)
    positional: List[Node] = []
    keywords: Dict[str, Node] = {}
    arguments = call.child_by_field_name("arguments")
    for argument in arguments.named_children if arguments is not None else []:
        if argument.type == "keyword_argument":
            name = node_text(argument.child_by_field_name("name"), source)
            value = argument.child_by_field_name("value")
            if value is not None:
                keywords[name] = value
        elif argument.type != "comment":
            positional.append(argument)
    return function.rsplit(".", 1)[-1], positional, keywords


def _is_true(node: Optional[Node], source: bytes) -> bool:
    return node is not None and node_text(node, source) == "True"


def _relation_target(node: Node, source: bytes, owner: str) -> str:
    text = node_text(node, source).strip("\"'")
    if text == "self":
        return owner
    return text.rsplit(".", 1)[-1]


def _class_assignments(block: Node) -> List[Node]:
    assignments: List[Node] = []
    for statement in children_of_type(block, "expression_statement"):
        assignment = first_child_of_type(statement, "assignment")
        if assignment is not None:
            assignments.append(assignment)
    return assignments


def _django_fields(block: Node, source: bytes, owner: str) -> List[FieldDefinition]:
    fields: List[FieldDefinition] = []
    for assignment in _class_assignments(block):
        left = assignment.child_by_field_name("left")
        right = assignment.child_by_field_name("right")
        if left is None or right is None or left.type != "identifier" or right.type != "call":
            continue
        name = node_text(left, source)
        if name.startswith("_"):
            continue
        field_class, positional, keywords = _call_parts(right, source)
        if field_class not in DJANGO_FIELDS and field_class not in DJANGO_RELATIONS and not field_class.endswith("Field"):
            continue
        nullable = _is_true(keywords.get("null"), source)
        raw = node_text(right, source)
        if field_class in DJANGO_RELATIONS:
            target_node = keywords.get("to") or (positional[0] if positional else None)
            generics = None
            if target_node is not None:
                target = _relation_target(target_node, source, owner)
                generics = [TypeRef(name=target, raw=node_text(target_node, source))]
            type_ref = TypeRef(
                name="reference",
                raw=raw,
                generics=generics,
                optional=nullable,
                is_collection=field_class == "ManyToManyField",
            )
        else:
            type_ref = TypeRef(name=DJANGO_FIELDS.get(field_class, field_class), raw=raw, optional=nullable)
        fields.append(
            FieldDefinition(
                name=name,
                type_ref=type_ref,
                optional=nullable or _is_true(keywords.get("blank"), source),
                decorators=[field_class],
            )
        )
    return fields


def _sqlalchemy_column_type(positional: List[Node], source: bytes) -> str:
    for argument in positional:
        head = node_text(argument, source).split("(", 1)[0].rsplit(".", 1)[-1]
        if head == "ForeignKey":
            return "reference"
        if head and head[0].isupper():
            return SQLALCHEMY_TYPES.get(head, head)
    return "unknown"


def _sqlalchemy_fields(block: Node, source: bytes) -> List[FieldDefinition]:
    fields: List[FieldDefinition] = []
    for assignment in _class_assignments(block):
        left = assignment.child_by_field_name("left")
        if left is None or left.type != "identifier":
            continue
        name = node_text(left, source)
        if name.startswith("_"):
            continue
        annotation = assignment.child_by_field_name("type")
        right = assignment.child_by_field_name("right")
        call_name, positional, keywords = (
            _call_parts(right, source) if right is not None and right.type == "call" else ("", [], {})
        )
        if annotation is not None:
            text = node_text(annotation, source)
            mapped = re.fullmatch(r"(?:\w+\.)?Mapped\[(.+)\]", text, re.DOTALL)
            if not mapped:
                continue
            type_ref = parse_type_ref(mapped.group(1))
            if _is_true(keywords.get("nullable"), source) and not type_ref.optional:
                type_ref = replace(type_ref, optional=True)
        elif call_name in ("Column", "mapped_column"):
            type_ref = TypeRef(
                name=_sqlalchemy_column_type(positional, source),
                raw=node_text(right, source),
                optional=_is_true(keywords.get("nullable"), source),
            )
        elif call_name == "relationship" and positional:
            target = _relation_target(positional[0], source, "")
            type_ref = TypeRef(name=target, raw=node_text(right, source))
        else:
            continue
        fields.append(
            FieldDefinition(
                name=name,
                type_ref=type_ref,
                optional=type_ref.optional,
                decorators=[call_name] if call_name else None,
            )
        )
    return fields


def _base_names(class_node: Node, source: bytes) -> List[str]:
    arguments = class_node.child_by_field_name("superclasses")
    if arguments is None:
        return []
    return [
        node_text(child, source).rsplit(".", 1)[-1]
        for child in arguments.named_children
        if child.type in ("identifier", "attribute")
    ]


def _has_tablename(block: Node, source: bytes) -> bool:
    for assignment in _class_assignments(block):
        if node_text(assignment.child_by_field_name("left"), source) == "__tablename__":
            return True
    return False


class PythonOrmParser(SupplementaryParser):
    language = "python"
    applies_to = (".py",)

    def parse(self, content: str, file_path: str, include_private: bool = True) -> List[TypeDefinition]:
        django = bool(_DJANGO_IMPORT.search(content))
        sqlalchemy = bool(_SQLALCHEMY_IMPORT.search(content))
        if not django and not sqlalchemy:
            return []
        tree, source = parse_source("python", content)
        types: List[TypeDefinition] = []
        for node in walk(tree.root_node):
            if node.type != "class_definition":
                continue
            name = node_text(node.child_by_field_name("name"), source)
            block = node.child_by_field_name("body")
            if not name or block is None:
                continue
            visibility = python_visibility(name)
            if not keep(visibility, include_private):
                continue
            bases = _base_names(node, source)
            if django and any(base.endswith("Model") for base in bases):
                framework, fields = "django", _django_fields(block, source, name)
            elif sqlalchemy and not set(bases) & SQLALCHEMY_ROOTS and (
                any(base.endswith("Base") for base in bases) or _has_tablename(block, source)
            ):
                framework, fields = "sqlalchemy", _sqlalchemy_fields(block, source)
            else:
                continue
            types.append(
                TypeDefinition(
                    name=name,
                    kind="model",
                    file=file_path,
                    line=node_line(node),
                    language="python",
                    visibility=visibility,
                    fields=fields,
                    decorators=[framework, ORM_MARKER],
                )
            )
        return types


# Go


class GoOrmParser(SupplementaryParser):
    language = "go"
    applies_to = (".go",)

    def __init__(self) -> None:
        self._structs = GoParser()

    def parse(self, content: str, file_path: str, include_private: bool = True) -> List[TypeDefinition]:
        if "gorm" not in content:
            return []
        models: List[TypeDefinition] = []
        for type_def in self._structs.parse(content, file_path, include_private):
            if type_def.kind != "struct" or not type_def.fields:
                continue
            embeds_model = any(field.type_ref.name == "gorm.Model" for field in type_def.fields)
            tagged = any(
                "gorm:" in decorator for field in type_def.fields for decorator in field.decorators or []
            )
            if not embeds_model and not tagged:
                continue
            fields = [field for field in type_def.fields if field.type_ref.name != "gorm.Model"]
            models.append(_model(type_def, "gorm", fields))
        return models


# TypeScript


def _drizzle_fields(body: str) -> List[FieldDefinition]:
    fields: List[FieldDefinition] = []
    for part in split_top_level(strip_comments(body)):
        match = re.match(r"^(?P<name>\w+)\s*:\s*(?P<builder>\w+)\s*\(", part)
        if not match:
            continue
        builder = match.group("builder")
        required = ".notNull()" in part or ".primaryKey()" in part
        reference = _DRIZZLE_REFERENCE.search(part)
        generics = None
        if reference:
            table = reference.group("table")
            generics = [TypeRef(name=pascal_case(table), raw=table)]
        fields.append(
            FieldDefinition(
                name=match.group("name"),
                type_ref=TypeRef(
                    name=DRIZZLE_TYPES.get(builder, builder),
                    raw=part[match.start("builder"):],
                    generics=generics,
                    optional=not required,
                ),
                optional=not required,
                decorators=[builder],
            )
        )
    return fields


class TypeScriptOrmParser(SupplementaryParser):
    language = "typescript"
    applies_to = (".ts", ".tsx", ".mts", ".cts")

    def __init__(self) -> None:
        self._declarations = TypeScriptParser()

    def parse(self, content: str, file_path: str, include_private: bool = True) -> List[TypeDefinition]:
        types: List[TypeDefinition] = []
        typeorm = "typeorm" in content or "@Entity" in content
        prisma = "prisma" in file_path.lower() or "@prisma/client" in content
        if typeorm or prisma:
            for type_def in self._declarations.parse(content, file_path, include_private):
                if typeorm and type_def.kind == "class" and "Entity" in (type_def.decorators or []):
                    types.append(self._typeorm_entity(type_def))
                elif prisma and type_def.kind == "type_alias" and type_def.fields and self._is_prisma_model(type_def):
                    types.append(_model(type_def, "prisma", type_def.fields))
        if "Table" in content:
            types.extend(self._drizzle_tables(content, file_path, include_private))
        types.sort(key=lambda type_def: type_def.line)
        return types

    @staticmethod
    def _typeorm_entity(type_def: TypeDefinition) -> TypeDefinition:
        fields = [
            field
            for field in type_def.fields or []
            if set(field.decorators or []) & (TYPEORM_COLUMNS | TYPEORM_RELATIONS)
        ]
        return _model(type_def, "typeorm", fields, "entity")

    @staticmethod
    def _is_prisma_model(type_def: TypeDefinition) -> bool:
        name = type_def.name
        return type_def.visibility == "public" and not (
            name.startswith("$") or "Args" in name or "Payload" in name
        )

    @staticmethod
    def _drizzle_tables(content: str, file_path: str, include_private: bool) -> List[TypeDefinition]:
        tables: List[TypeDefinition] = []
        for match in _DRIZZLE_TABLE.finditer(content):
            visibility: Visibility = "public" if match.group("export") else "internal"
            if not keep(visibility, include_private):
                continue
            braced = extract_braced(content, match.end())
            if braced is None or content[match.end():].lstrip()[:1] != "{":
                continue
            start = match.start("var")
            tables.append(
                TypeDefinition(
                    name=pascal_case(match.group("var")),
                    kind="model",
                    file=file_path,
                    line=line_number(content, start),
                    language="typescript",
                    visibility=visibility,
                    fields=_drizzle_fields(braced[0]),
                    decorators=["drizzle", ORM_MARKER, match.group("table")],
                    doc=extract_doc_comment(content, start),
                )
            )
        return tables


__all__ = [
    "GoOrmParser",
    "ORM_MARKER",
    "PythonOrmParser",
    "TypeScriptOrmParser",
    "pascal_case",
]
