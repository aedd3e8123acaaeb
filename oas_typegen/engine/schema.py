"""Immutable schema nodes parsed from raw OpenAPI dictionaries."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Final, Mapping

from ..shared.errors import SchemaValidationError


class SchemaKind(str, Enum):
    """Nominal kinds a schema can declare through ``type``."""

    STRING = "string"
    NUMBER = "number"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    ARRAY = "array"
    OBJECT = "object"
    NULL = "null"


PRIMITIVE_KINDS: Final[frozenset[SchemaKind]] = frozenset({
    SchemaKind.STRING,
    SchemaKind.NUMBER,
    SchemaKind.INTEGER,
    SchemaKind.BOOLEAN,
})


def reference_name(ref: str) -> str:
    """Get the referenced name, e.g. ``Pet`` from ``#/components/schemas/Pet``."""
    return ref.rsplit("/", 1)[-1]


@dataclass(frozen=True, slots=True)
class Discriminator:
    """Discriminator for polymorphic schemas."""

    property_name: str
    mapping: tuple[tuple[str, str], ...] = ()


@dataclass(frozen=True, slots=True)
class Schema:
    """A node in the schema dictionary.

    A schema with ``ref`` set carries no other content and must be resolved
    before it is inspected. Instances are never mutated; composition produces
    new values through ``dataclasses.replace``.
    """

    kind: SchemaKind | None = None
    format: str | None = None
    nullable: bool = False
    enum: tuple[Any, ...] | None = None
    properties: Mapping[str, Schema] | None = None
    required: tuple[str, ...] = ()
    items: Schema | None = None
    all_of: tuple[Schema, ...] = ()
    one_of: tuple[Schema, ...] = ()
    any_of: tuple[Schema, ...] = ()
    discriminator: Discriminator | None = None
    ref: str | None = None
    additional_properties: bool | Schema | None = None
    description: str | None = field(default=None, compare=False)
    title: str | None = field(default=None, compare=False)

    @property
    def is_reference(self) -> bool:
        return self.ref is not None

    @property
    def ref_name(self) -> str | None:
        return reference_name(self.ref) if self.ref is not None else None

    @property
    def is_primitive(self) -> bool:
        return self.kind in PRIMITIVE_KINDS

    @property
    def has_properties(self) -> bool:
        return bool(self.properties)

    @property
    def has_enum(self) -> bool:
        return bool(self.enum)

    def is_property_required(self, name: str) -> bool:
        return name in self.required

    @classmethod
    def from_dict(cls, raw: Any, schema_path: str = "#") -> Schema:
        """Parse a raw schema mapping (as produced by a YAML/JSON parser)."""
        if isinstance(raw, bool):
            # JSON Schema boolean form: ``true`` accepts anything
            return cls()
        if not isinstance(raw, dict):
            raise SchemaValidationError("Schema must be a mapping", schema_path)

        ref = raw.get("$ref")
        if ref is not None:
            if not isinstance(ref, str):
                raise SchemaValidationError("Must be a string", schema_path, "$ref")
            return cls(ref=ref)

        kind, type_nullable = _parse_type(raw.get("type"), schema_path)

        enum = raw.get("enum")
        if enum is not None and not isinstance(enum, list):
            raise SchemaValidationError("Must be a list", schema_path, "enum")

        properties = raw.get("properties")
        parsed_properties: Mapping[str, Schema] | None = None
        if properties is not None:
            if not isinstance(properties, dict):
                raise SchemaValidationError("Must be a mapping", schema_path, "properties")
            parsed_properties = MappingProxyType({
                str(name): cls.from_dict(value, f"{schema_path}/properties/{name}")
                for name, value in properties.items()
            })

        required = raw.get("required") or []
        if not isinstance(required, list):
            raise SchemaValidationError("Must be a list", schema_path, "required")

        items = raw.get("items")
        additional = raw.get("additionalProperties")
        if isinstance(additional, dict):
            additional = cls.from_dict(additional, f"{schema_path}/additionalProperties")
        elif additional is not None and not isinstance(additional, bool):
            raise SchemaValidationError("Must be a boolean or a schema", schema_path, "additionalProperties")

        return cls(
            kind=kind,
            format=raw.get("format"),
            nullable=bool(raw.get("nullable", False)) or type_nullable,
            enum=tuple(enum) if enum is not None else None,
            properties=parsed_properties,
            required=tuple(dict.fromkeys(str(name) for name in required)),
            items=cls.from_dict(items, f"{schema_path}/items") if items is not None else None,
            all_of=_parse_list(raw, "allOf", schema_path),
            one_of=_parse_list(raw, "oneOf", schema_path),
            any_of=_parse_list(raw, "anyOf", schema_path),
            discriminator=_parse_discriminator(raw.get("discriminator"), schema_path),
            additional_properties=additional,
            description=raw.get("description"),
            title=raw.get("title"),
        )


def _parse_type(raw_type: Any, schema_path: str) -> tuple[SchemaKind | None, bool]:
    """Parse ``type``; the 3.1 list form ``[X, "null"]`` sets nullability."""
    if raw_type is None:
        return None, False

    names = raw_type if isinstance(raw_type, list) else [raw_type]
    try:
        kinds = [SchemaKind(name) for name in names]
    except ValueError as e:
        raise SchemaValidationError(f"Unknown type {raw_type!r}", schema_path, "type") from e

    nullable = SchemaKind.NULL in kinds and len(kinds) > 1
    concrete = [kind for kind in kinds if kind is not SchemaKind.NULL]
    if len(concrete) == 1:
        return concrete[0], nullable
    if not concrete:
        return SchemaKind.NULL, True
    # Heterogeneous type lists carry no single kind
    return None, nullable


def _parse_list(raw: dict[str, Any], key: str, schema_path: str) -> tuple[Schema, ...]:
    members = raw.get(key)
    if members is None:
        return ()
    if not isinstance(members, list):
        raise SchemaValidationError("Must be a list", schema_path, key)
    return tuple(
        Schema.from_dict(member, f"{schema_path}/{key}/{index}")
        for index, member in enumerate(members)
    )


def _parse_discriminator(raw: Any, schema_path: str) -> Discriminator | None:
    if raw is None:
        return None
    if isinstance(raw, str):
        # Swagger 2 style: discriminator is the property name itself
        return Discriminator(property_name=raw)
    if not isinstance(raw, dict) or not isinstance(raw.get("propertyName"), str):
        raise SchemaValidationError("Must declare a propertyName", schema_path, "discriminator")
    mapping = raw.get("mapping") or {}
    if not isinstance(mapping, dict):
        raise SchemaValidationError("Mapping must be a mapping", schema_path, "discriminator")
    return Discriminator(
        property_name=raw["propertyName"],
        mapping=tuple((str(value), str(target)) for value, target in mapping.items()),
    )
