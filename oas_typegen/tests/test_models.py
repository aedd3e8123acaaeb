import pytest

from oas_typegen.engine.config import GeneratorConfig
from oas_typegen.engine.pipeline import generate_from_dict
from oas_typegen.engine.types import (
    STRING,
    Dictionary,
    Dynamic,
    DynamicGranularity,
    EnumMember,
    Field,
    FieldDefault,
    NamedReference,
    NamedTypeKind,
    Primitive,
    PrimitiveType,
)
from oas_typegen.shared.errors import (
    AmbiguousOneOfMembership,
    CyclicReference,
    MissingDiscriminatorProperty,
    UntypedSchemaRejected,
)

NS = "com.example.api.models"


def _generate(schemas, **config):
    return generate_from_dict({"components": {"schemas": schemas}}, GeneratorConfig(**config))


def _pet_variants(**pet_extra):
    return {
        "Cat": {"type": "object", "required": ["petType"], "properties": {"petType": {"type": "string"}}},
        "Dog": {"type": "object", "required": ["petType"], "properties": {"petType": {"type": "string"}}},
        "Pet": {
            "oneOf": [{"$ref": "#/components/schemas/Cat"}, {"$ref": "#/components/schemas/Dog"}],
            "discriminator": {"propertyName": "petType", **pet_extra},
        },
    }


class TestRecords:
    def test_required_and_optional_fields(self):
        result = _generate({
            "Pet": {
                "type": "object",
                "required": ["name"],
                "properties": {"name": {"type": "string"}, "tag": {"type": "string"}},
            }
        })

        assert [entry.name for entry in result.types] == ["Pet"]
        pet = result.type_named("Pet")
        assert pet.kind is NamedTypeKind.RECORD
        assert pet.fields == (
            Field("name", Primitive(PrimitiveType.STRING), required=True),
            Field("tag", Primitive(PrimitiveType.STRING, nullable=True), required=False,
                  default=FieldDefault.EMPTY_STRING),
        )

    @pytest.mark.parametrize(
        "prop,expected",
        [
            ({"type": "integer"}, FieldDefault.ZERO),
            ({"type": "number"}, FieldDefault.ZERO),
            ({"type": "boolean"}, FieldDefault.FALSE),
            ({"type": "array", "items": {"type": "string"}}, FieldDefault.EMPTY_LIST),
            ({"type": "object", "additionalProperties": True}, FieldDefault.EMPTY_MAP),
            ({"type": "string", "format": "date-time"}, FieldDefault.NULL),
            ({"$ref": "#/components/schemas/Other"}, FieldDefault.NULL),
            ({"type": "string", "enum": ["a"]}, FieldDefault.NULL),
        ],
    )
    def test_default_policy(self, prop, expected):
        result = _generate({
            "Other": {"type": "string"},
            "Thing": {"type": "object", "properties": {"value": prop}},
        })
        assert result.type_named("Thing").fields[0].default is expected

    def test_defaults_disabled(self):
        result = _generate(
            {"Thing": {"type": "object", "properties": {"value": {"type": "string"}}}},
            generate_default_values=False,
        )
        assert result.type_named("Thing").fields[0].default is None

    def test_optional_fields_always_nullable(self):
        result = _generate({
            "Thing": {
                "type": "object",
                "properties": {
                    "plain": {"type": "string", "nullable": False},
                    "ref": {"$ref": "#/components/schemas/Other"},
                    "list": {"type": "array", "items": {"type": "integer"}},
                },
            },
            "Other": {"type": "object", "properties": {"x": {"type": "string"}}},
        })
        assert all(field.type.nullable for field in result.type_named("Thing").fields)

    def test_required_nullable_field_stays_nullable(self):
        result = _generate({
            "Thing": {
                "type": "object",
                "required": ["value"],
                "properties": {"value": {"type": "string", "nullable": True}},
            }
        })
        field = result.type_named("Thing").fields[0]
        assert field.required
        assert field.type.nullable
        assert field.default is None

    def test_all_of_record(self):
        result = _generate({
            "Base": {"type": "object", "required": ["id"], "properties": {"id": {"type": "string"}}},
            "Item": {
                "allOf": [{"$ref": "#/components/schemas/Base"}],
                "properties": {"label": {"type": "string"}},
            },
        })
        item = result.type_named("Item")
        assert item.kind is NamedTypeKind.RECORD
        assert [(field.name, field.required) for field in item.fields] == [("id", True), ("label", False)]

    def test_all_of_cycle(self):
        with pytest.raises(CyclicReference):
            _generate({
                "A": {"allOf": [{"$ref": "#/components/schemas/B"}]},
                "B": {"allOf": [{"$ref": "#/components/schemas/A"}]},
            })

    def test_self_referencing_record(self):
        result = _generate({
            "Node": {
                "type": "object",
                "properties": {"children": {"type": "array", "items": {"$ref": "#/components/schemas/Node"}}},
            }
        })
        field = result.type_named("Node").fields[0]
        assert field.type.element == NamedReference("Node", NS)


class TestNestedTypes:
    def test_property_enum(self):
        result = _generate({
            "Pet": {
                "type": "object",
                "properties": {"status": {"type": "string", "enum": ["available", "sold"]}},
            }
        })

        assert [entry.name for entry in result.types] == ["Pet", "PetStatus"]
        field = result.type_named("Pet").fields[0]
        assert field.type == NamedReference("PetStatus", NS, nullable=True)
        assert field.default is FieldDefault.NULL
        status = result.type_named("PetStatus")
        assert status.kind is NamedTypeKind.ENUMERATION
        assert [member.value for member in status.members] == ["available", "sold"]

    def test_nested_name_collision(self):
        result = _generate({
            "Pet": {
                "type": "object",
                "properties": {"status": {"type": "string", "enum": ["a"]}},
            },
            "PetStatus": {"type": "integer"},
        })
        assert result.type_named("Pet").fields[0].type.name == "PetStatus2"
        assert result.type_named("PetStatus").kind is NamedTypeKind.ALIAS
        assert result.type_named("PetStatus2").kind is NamedTypeKind.ENUMERATION

    def test_inline_object_and_items(self):
        result = _generate({
            "Order": {
                "type": "object",
                "properties": {
                    "shipping": {"type": "object", "properties": {"street": {"type": "string"}}},
                    "lines": {
                        "type": "array",
                        "items": {"type": "object", "properties": {"sku": {"type": "string"}}},
                    },
                    "labels": {
                        "type": "object",
                        "additionalProperties": {"type": "string", "enum": ["red", "blue"]},
                    },
                },
            }
        })

        fields = {field.name: field.type for field in result.type_named("Order").fields}
        assert fields["shipping"] == NamedReference("OrderShipping", NS, nullable=True)
        assert fields["lines"].element == NamedReference("OrderLinesItem", NS)
        assert fields["labels"] == Dictionary(STRING, NamedReference("OrderLabelsValue", NS), nullable=True)
        assert result.type_named("OrderShipping").kind is NamedTypeKind.RECORD
        assert result.type_named("OrderLinesItem").fields[0].name == "sku"
        assert result.type_named("OrderLabelsValue").kind is NamedTypeKind.ENUMERATION


class TestEnumerations:
    def test_round_trip(self):
        values = ["available", "in-progress", "2fa", "", "Sold Out"]
        result = _generate({"Status": {"type": "string", "enum": values}})

        status = result.type_named("Status")
        assert [member.value for member in status.members] == values
        assert [member.name for member in status.members] == [
            "AVAILABLE", "IN_PROGRESS", "_2FA", "EMPTY", "SOLD_OUT",
        ]
        assert status.target == Primitive(PrimitiveType.STRING)

    def test_camel_case_literals_kept_whole(self):
        result = _generate({"Phase": {"type": "string", "enum": ["inProgress", "done.ok"]}})
        assert [member.name for member in result.type_named("Phase").members] == ["INPROGRESS", "DONE_OK"]

    def test_member_name_collisions(self):
        result = _generate({"Sep": {"type": "string", "enum": ["a-b", "a_b"]}})
        assert result.type_named("Sep").members == (EnumMember("A_B", "a-b"), EnumMember("A_B_2", "a_b"))

    def test_integer_enum(self):
        result = _generate({"Level": {"type": "integer", "enum": [1, 2, 3]}})
        level = result.type_named("Level")
        assert [member.name for member in level.members] == ["_1", "_2", "_3"]
        assert level.target == Primitive(PrimitiveType.INT32)

    def test_duplicate_literals_collapse(self):
        result = _generate({"Dup": {"type": "string", "enum": ["a", "a"]}})
        assert len(result.type_named("Dup").members) == 1


class TestSumTypes:
    def test_discriminated_one_of(self):
        result = _generate(_pet_variants())

        pet = result.type_named("Pet")
        assert pet.kind is NamedTypeKind.SUM_TYPE
        assert pet.discriminator == "petType"
        assert pet.variants == ("Cat", "Dog")
        assert pet.discriminator_mapping == (("Cat", "Cat"), ("Dog", "Dog"))

        for name in ("Cat", "Dog"):
            record = result.type_named(name)
            assert record.sum_type == "Pet"
            field = record.fields[0]
            assert field.overrides
            assert field.default is None
            assert field.type == STRING

    def test_explicit_mapping(self):
        result = _generate(_pet_variants(mapping={"cat": "#/components/schemas/Cat"}))
        assert result.type_named("Pet").discriminator_mapping == (("cat", "Cat"), ("Dog", "Dog"))

    def test_missing_discriminator_property(self):
        schemas = _pet_variants()
        schemas["Dog"] = {"type": "object", "properties": {"bark": {"type": "boolean"}}}
        result = _generate(schemas)

        warnings = [w for w in result.warnings if isinstance(w, MissingDiscriminatorProperty)]
        assert [w.schema_name for w in warnings] == ["Dog"]

    def test_parent_properties_marked_override(self):
        schemas = _pet_variants()
        schemas["Pet"]["properties"] = {"petType": {"type": "string"}, "name": {"type": "string"}}
        schemas["Cat"]["properties"]["name"] = {"type": "string"}
        result = _generate(schemas)

        fields = {field.name: field for field in result.type_named("Cat").fields}
        assert fields["name"].overrides
        assert fields["name"].default is FieldDefault.EMPTY_STRING

    def test_ambiguous_membership_last_wins(self):
        schemas = _pet_variants()
        schemas["Animal"] = {"oneOf": [{"$ref": "#/components/schemas/Cat"}]}
        result = _generate(schemas)

        assert result.type_named("Cat").sum_type == "Animal"
        assert result.type_named("Pet").variants == ("Dog",)
        assert result.type_named("Animal").variants == ("Cat",)
        assert any(isinstance(w, AmbiguousOneOfMembership) for w in result.warnings)


class TestOtherShapes:
    def test_any_of_wrapper(self):
        result = _generate({"Value": {"anyOf": [{"type": "string"}, {"type": "integer"}]}})
        value = result.type_named("Value")
        assert value.kind is NamedTypeKind.WRAPPER
        assert value.fields == (Field("value", Dynamic(DynamicGranularity.ANY), required=True),)

    def test_primitive_alias(self):
        result = _generate({"Name": {"type": "string"}})
        name = result.type_named("Name")
        assert name.kind is NamedTypeKind.ALIAS
        assert name.target == Primitive(PrimitiveType.STRING)

    def test_free_form_object_is_dictionary_alias(self):
        result = _generate({"Meta": {"type": "object", "additionalProperties": True}})
        meta = result.type_named("Meta")
        assert meta.kind is NamedTypeKind.ALIAS
        assert meta.target == Dictionary(STRING, Dynamic(DynamicGranularity.JSON_ELEMENT))
        assert not any(entry.kind is NamedTypeKind.RECORD for entry in result.types)

    def test_untyped_rejected(self):
        with pytest.raises(UntypedSchemaRejected) as exc_info:
            _generate({"Blob": {"description": "anything"}}, dynamic_type_handling="FAIL")
        assert exc_info.value.schema_name == "Blob"

    def test_override_alias(self):
        result = _generate(
            {"Blob": {"description": "anything"}},
            dynamic_type_handling="FAIL",
            type_overrides={"Blob": "JsonObject"},
        )
        assert result.type_named("Blob").target == Dynamic(DynamicGranularity.JSON_OBJECT)

    def test_bare_reference_skipped(self):
        result = _generate({
            "Pet": {"type": "string"},
            "PetRef": {"$ref": "#/components/schemas/Pet"},
        })
        assert [entry.name for entry in result.types] == ["Pet"]

    def test_overridden_bare_reference_keeps_alias(self):
        schemas = {
            "Bar": {"type": "object", "properties": {"x": {"type": "string"}}},
            "Foo": {"$ref": "#/components/schemas/Bar"},
            "Holder": {
                "type": "object",
                "required": ["foo", "bar"],
                "properties": {
                    "foo": {"$ref": "#/components/schemas/Foo"},
                    "bar": {"$ref": "#/components/schemas/Bar"},
                },
            },
        }
        result = _generate(schemas, type_overrides={"Foo": "JsonObject"})

        assert [entry.name for entry in result.types] == ["Bar", "Foo", "Holder"]
        foo = result.type_named("Foo")
        assert foo.kind is NamedTypeKind.ALIAS
        assert foo.target == Dynamic(DynamicGranularity.JSON_OBJECT)
        fields = {field.name: field.type for field in result.type_named("Holder").fields}
        assert fields["foo"] == NamedReference("Foo", NS)
        assert fields["bar"] == NamedReference("Bar", NS)

    def test_nullable_union_alias(self):
        result = _generate({
            "Pet": {"type": "object", "properties": {"name": {"type": "string"}}},
            "MaybePet": {"anyOf": [{"$ref": "#/components/schemas/Pet"}, {"type": "null"}]},
        })
        maybe = result.type_named("MaybePet")
        assert maybe.kind is NamedTypeKind.ALIAS
        assert maybe.target == NamedReference("Pet", NS, nullable=True)


def _inline_union_schemas(owner_first, union_key="oneOf"):
    owner = {
        "Owner": {
            "type": "object",
            "properties": {
                "pet": {
                    union_key: [{"$ref": "#/components/schemas/Cat"}, {"$ref": "#/components/schemas/Dog"}],
                    "discriminator": {"propertyName": "petType"},
                },
            },
        }
    }
    variants = _pet_variants()
    del variants["Pet"]
    variants["Cat"]["properties"]["lives"] = {"type": "integer"}
    return {**owner, **variants} if owner_first else {**variants, **owner}


class TestInlineUnions:
    @pytest.mark.parametrize("owner_first", [True, False])
    def test_property_one_of(self, owner_first):
        result = _generate(_inline_union_schemas(owner_first))

        owner_pet = result.type_named("OwnerPet")
        assert owner_pet.kind is NamedTypeKind.SUM_TYPE
        assert owner_pet.discriminator == "petType"
        assert owner_pet.variants == ("Cat", "Dog")
        assert owner_pet.discriminator_mapping == (("Cat", "Cat"), ("Dog", "Dog"))
        assert result.type_named("Owner").fields[0].type == NamedReference("OwnerPet", NS, nullable=True)

        for name in ("Cat", "Dog"):
            record = result.type_named(name)
            assert record.sum_type == "OwnerPet"
            pet_type = record.fields[0]
            assert pet_type.name == "petType"
            assert pet_type.overrides
            assert pet_type.type == STRING
            assert pet_type.default is None
        assert result.warnings == ()

    def test_member_fields_not_duplicated(self):
        result = _generate(_inline_union_schemas(owner_first=False))
        assert [field.name for field in result.type_named("Cat").fields] == ["petType", "lives"]
        assert sorted(entry.name for entry in result.types) == ["Cat", "Dog", "Owner", "OwnerPet"]

    def test_property_discriminated_any_of(self):
        result = _generate(_inline_union_schemas(owner_first=False, union_key="anyOf"))
        assert result.type_named("OwnerPet").kind is NamedTypeKind.SUM_TYPE
        assert result.type_named("OwnerPet").variants == ("Cat", "Dog")
        assert result.type_named("Dog").sum_type == "OwnerPet"

    def test_inline_members_only_is_dynamic(self):
        result = _generate({
            "Setting": {
                "type": "object",
                "properties": {"value": {"oneOf": [{"type": "string"}, {"type": "integer"}]}},
            }
        })
        field = result.type_named("Setting").fields[0]
        assert field.type == Dynamic(DynamicGranularity.JSON_ELEMENT, nullable=True)
        assert [entry.name for entry in result.types] == ["Setting"]

    def test_inline_union_claims_member_of_named_union(self):
        schemas = _pet_variants()
        schemas["Owner"] = {
            "type": "object",
            "properties": {"cat": {"oneOf": [{"$ref": "#/components/schemas/Cat"}]}},
        }
        result = _generate(schemas)

        assert result.type_named("Cat").sum_type == "OwnerCat"
        assert result.type_named("OwnerCat").variants == ("Cat",)
        assert result.type_named("Pet").variants == ("Dog",)
        ambiguous = [w for w in result.warnings if isinstance(w, AmbiguousOneOfMembership)]
        assert [(w.previous, w.current) for w in ambiguous] == [("Pet", "OwnerCat")]
