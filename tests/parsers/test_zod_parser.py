"""Tests for the zod schema parser."""

from __future__ import annotations

import textwrap

from typegraph.parsers.zod import ZodParser, schema_name, zod_type_ref

SOURCE = textwrap.dedent(
    """
    import { z } from "zod";

    /** A registered user. */
    export const UserSchema = z.object({
      id: z.string().uuid(),
      email: z.string().email().optional(),
      tags: z.array(z.string()),
      roles: RoleSchema.array(),
      profile: ProfileSchema.nullable(),
      meta: z.record(z.string(), z.number()),
    });

    export const AdminSchema = UserSchema.extend({
      permissions: z.array(PermissionSchema),
    });

    export const RoleSchema = z.enum(["admin", "member"]);

    export const EventSchema = z.discriminatedUnion("type", [ClickSchema, z.literal("noop")]);

    const InternalSchema = z.object({ value: z.number() });

    export const helper = makeThing();
    """
)


def _parse(include_private: bool = True):
    return {t.name: t for t in ZodParser().parse(SOURCE, "src/schemas.ts", include_private)}


def test_object_schema_fields() -> None:
    user = _parse()["User"]

    assert user.kind == "struct"
    assert user.decorators == ["zod"]
    assert user.line == 5
    assert user.doc == "A registered user."

    fields = {f.name: f for f in user.fields or []}
    assert list(fields) == ["id", "email", "tags", "roles", "profile", "meta"]
    assert fields["id"].type_ref.name == "string"
    assert fields["id"].optional is False
    assert fields["email"].optional is True
    assert fields["tags"].type_ref.is_collection is True
    assert fields["roles"].type_ref.name == "Role"
    assert fields["roles"].type_ref.is_collection is True
    assert fields["profile"].type_ref.name == "Profile"
    assert fields["profile"].optional is True
    assert [g.name for g in fields["meta"].type_ref.generics or []] == ["string", "number"]


def test_extend_records_base_schema() -> None:
    admin = _parse()["Admin"]

    assert [ref.name for ref in admin.extends or []] == ["User"]
    permissions = (admin.fields or [])[0]
    assert permissions.type_ref.name == "Permission"
    assert permissions.type_ref.is_collection is True


def test_enum_and_union_schemas() -> None:
    types = _parse()

    role = types["Role"]
    assert role.kind == "enum"
    assert [(v.name, v.value) for v in role.variants or []] == [("admin", "admin"), ("member", "member")]

    event = types["Event"]
    assert event.kind == "union"
    assert [(v.name, v.value) for v in event.variants or []] == [("Click", None), ("noop", "noop")]


def test_non_schema_constants_and_visibility() -> None:
    types = _parse()

    assert "helper" not in types
    assert types["Internal"].visibility == "internal"
    assert "Internal" not in _parse(include_private=False)


def test_files_without_zod_import_are_ignored() -> None:
    assert ZodParser().parse("export const UserSchema = z.object({ id: z.string() });", "a.ts") == []


def test_schema_name_and_wrappers() -> None:
    assert schema_name("OrderSchema") == "Order"
    assert schema_name("Schema") == "Schema"
    assert zod_type_ref("z.optional(z.number())").optional is True
    assert zod_type_ref("z.lazy(() => NodeSchema)").name == "Node"


def test_many_declarations_are_classified_in_place() -> None:
    filler = "".join(f"const value{index} = {index};\n" for index in range(500))
    content = 'import { z } from "zod";\n' + filler + "export const TagSchema = z.enum([\"a\", \"b\"]);\n"

    types = ZodParser().parse(content, "gen.ts")

    assert [(t.name, t.kind, t.line) for t in types] == [("Tag", "enum", 502)]
    assert [v.name for v in types[0].variants or []] == ["a", "b"]
