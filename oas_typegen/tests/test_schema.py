import pytest

from oas_typegen.engine.schema import Discriminator, Schema, SchemaKind, reference_name
from oas_typegen.shared.errors import SchemaValidationError


class TestReferenceName:
    def test_last_segment(self):
        assert reference_name("#/components/schemas/Pet") == "Pet"
        assert reference_name("#/definitions/Tag") == "Tag"
        assert reference_name("Plain") == "Plain"


class TestSchemaFromDict:
    def test_object(self):
        schema = Schema.from_dict({
            "type": "object",
            "required": ["name"],
            "properties": {"name": {"type": "string"}, "tag": {"type": "string"}},
        })
        assert schema.kind is SchemaKind.OBJECT
        assert list(schema.properties) == ["name", "tag"]
        assert schema.required == ("name",)
        assert schema.is_property_required("name")
        assert not schema.is_property_required("tag")

    def test_reference_carries_nothing_else(self):
        schema = Schema.from_dict({"$ref": "#/components/schemas/Pet", "description": "ignored"})
        assert schema.is_reference
        assert schema.ref_name == "Pet"
        assert schema.description is None
        assert schema == Schema(ref="#/components/schemas/Pet")

    def test_enum_order_preserved(self):
        schema = Schema.from_dict({"type": "string", "enum": ["b", "a", "c"]})
        assert schema.enum == ("b", "a", "c")
        assert schema.has_enum

    def test_nullable_flag(self):
        assert Schema.from_dict({"type": "string", "nullable": True}).nullable

    def test_type_list_with_null(self):
        schema = Schema.from_dict({"type": ["integer", "null"]})
        assert schema.kind is SchemaKind.INTEGER
        assert schema.nullable

    def test_type_null_only(self):
        schema = Schema.from_dict({"type": "null"})
        assert schema.kind is SchemaKind.NULL
        assert schema.nullable

    def test_heterogeneous_type_list(self):
        assert Schema.from_dict({"type": ["string", "integer"]}).kind is None

    def test_unknown_type(self):
        with pytest.raises(SchemaValidationError) as exc_info:
            Schema.from_dict({"type": "file"}, "#/components/schemas/Upload")
        assert exc_info.value.field == "type"
        assert exc_info.value.schema_path == "#/components/schemas/Upload"

    def test_non_mapping(self):
        with pytest.raises(SchemaValidationError):
            Schema.from_dict("string")

    def test_boolean_schema(self):
        assert Schema.from_dict(True) == Schema()

    def test_enum_must_be_list(self):
        with pytest.raises(SchemaValidationError, match="enum"):
            Schema.from_dict({"enum": "a"})

    def test_additional_properties(self):
        assert Schema.from_dict({"type": "object", "additionalProperties": True}).additional_properties is True
        assert Schema.from_dict({"type": "object", "additionalProperties": False}).additional_properties is False
        nested = Schema.from_dict({"type": "object", "additionalProperties": {"type": "integer"}})
        assert nested.additional_properties == Schema(kind=SchemaKind.INTEGER)

    def test_composition_lists(self):
        schema = Schema.from_dict({
            "allOf": [{"$ref": "#/components/schemas/Base"}, {"type": "object"}],
            "oneOf": [{"$ref": "#/components/schemas/A"}],
            "anyOf": [{"type": "string"}, {"type": "integer"}],
        })
        assert len(schema.all_of) == 2
        assert schema.all_of[0].ref_name == "Base"
        assert schema.one_of[0].ref_name == "A"
        assert [member.kind for member in schema.any_of] == [SchemaKind.STRING, SchemaKind.INTEGER]

    def test_discriminator(self):
        schema = Schema.from_dict({
            "oneOf": [{"$ref": "#/components/schemas/Cat"}],
            "discriminator": {"propertyName": "petType", "mapping": {"cat": "#/components/schemas/Cat"}},
        })
        assert schema.discriminator == Discriminator("petType", (("cat", "#/components/schemas/Cat"),))

    def test_discriminator_string_form(self):
        assert Schema.from_dict({"discriminator": "kind"}).discriminator == Discriminator("kind")

    def test_discriminator_requires_property_name(self):
        with pytest.raises(SchemaValidationError):
            Schema.from_dict({"discriminator": {"mapping": {}}})

    def test_immutable(self):
        schema = Schema.from_dict({"type": "object", "properties": {"a": {"type": "string"}}})
        with pytest.raises(AttributeError):
            schema.kind = SchemaKind.STRING
        with pytest.raises(TypeError):
            schema.properties["b"] = Schema()

    def test_equality_ignores_description(self):
        assert Schema.from_dict({"type": "string", "description": "x"}) == Schema(kind=SchemaKind.STRING)
