"""Mapping of schema nodes to concrete resolved types."""

from __future__ import annotations

import logging
from typing import Any, Callable, Final

from ..shared.errors import UntypedSchemaRejected, UntypedSchemaWarning
from .composition import CompositionResolver
from .config import DynamicTypeHandling, GeneratorConfig, parse_type_override
from .diagnostics import Diagnostics
from .references import ReferenceResolver
from .schema import Schema, SchemaKind
from .types import (
    STRING,
    Collection,
    Dictionary,
    Dynamic,
    DynamicGranularity,
    FieldDefault,
    NamedReference,
    Primitive,
    PrimitiveType,
    ResolvedType,
)

logger = logging.getLogger(__name__)

# (kind, format) -> primitive; a None format is the default for the kind
PRIMITIVE_TABLE: Final[dict[tuple[SchemaKind, str | None], PrimitiveType]] = {
    (SchemaKind.STRING, "date"): PrimitiveType.DATE,
    (SchemaKind.STRING, "date-time"): PrimitiveType.INSTANT,
    (SchemaKind.STRING, None): PrimitiveType.STRING,
    (SchemaKind.INTEGER, "int64"): PrimitiveType.INT64,
    (SchemaKind.INTEGER, None): PrimitiveType.INT32,
    (SchemaKind.NUMBER, "float"): PrimitiveType.FLOAT32,
    (SchemaKind.NUMBER, None): PrimitiveType.FLOAT64,
    (SchemaKind.BOOLEAN, None): PrimitiveType.BOOLEAN,
}

_DEFAULTS: Final[dict[PrimitiveType, FieldDefault]] = {
    PrimitiveType.STRING: FieldDefault.EMPTY_STRING,
    PrimitiveType.INT32: FieldDefault.ZERO,
    PrimitiveType.INT64: FieldDefault.ZERO,
    PrimitiveType.FLOAT32: FieldDefault.ZERO,
    PrimitiveType.FLOAT64: FieldDefault.ZERO,
    PrimitiveType.BOOLEAN: FieldDefault.FALSE,
}

_INT32_MAX = 2**31 - 1

# Called with (schema, name hint); registers a named type and returns its name
Synthesizer = Callable[[Schema, str], str]


def map_primitive(kind: SchemaKind, fmt: str | None = None) -> Primitive:
    """Pick the nearest concrete primitive for a (kind, format) pair."""
    primitive = PRIMITIVE_TABLE.get((kind, fmt)) or PRIMITIVE_TABLE[(kind, None)]
    return Primitive(primitive, fmt)


def infer_enum_kind(values: tuple[Any, ...]) -> SchemaKind:
    """Guess the base kind of an enum that declares no ``type``."""
    literals = [value for value in values if value is not None]
    if literals and all(isinstance(value, bool) for value in literals):
        return SchemaKind.BOOLEAN
    if literals and all(isinstance(value, int) and not isinstance(value, bool) for value in literals):
        return SchemaKind.INTEGER
    if literals and all(
        isinstance(value, (int, float)) and not isinstance(value, bool) for value in literals
    ):
        return SchemaKind.NUMBER
    return SchemaKind.STRING


def enum_base_type(schema: Schema) -> Primitive:
    """Literal type of an enumeration, from its kind or its values."""
    kind = schema.kind if schema.is_primitive else infer_enum_kind(schema.enum or ())
    fmt = schema.format
    if kind is SchemaKind.INTEGER and fmt is None:
        if any(isinstance(v, int) and abs(v) > _INT32_MAX for v in schema.enum or ()):
            fmt = "int64"
    return map_primitive(kind, fmt)  # type: ignore[arg-type]


def default_for(resolved: ResolvedType) -> FieldDefault:
    """Default value marker for an optional field of ``resolved`` type.

    Strings default to empty, numbers to zero, booleans to false, and
    collections/dictionaries to empty. Everything else, named references and
    dynamic values included, defaults to null.
    """
    if isinstance(resolved, Primitive):
        return _DEFAULTS.get(resolved.primitive, FieldDefault.NULL)
    if isinstance(resolved, Collection):
        return FieldDefault.EMPTY_LIST
    if isinstance(resolved, Dictionary):
        return FieldDefault.EMPTY_MAP
    return FieldDefault.NULL


class TypeMapper:
    """Maps schema occurrences to ``ResolvedType`` values.

    ``schema_name`` identifies a top-level dictionary entry: overrides are
    looked up by it, and a structured schema under that name maps to a
    reference to its own catalog entry. ``hint`` names an inline occurrence;
    when a ``synthesizer`` is installed, inline enums, objects and unions are
    registered as named types under that hint.
    """

    def __init__(
        self,
        resolver: ReferenceResolver,
        composer: CompositionResolver,
        config: GeneratorConfig,
        diagnostics: Diagnostics,
    ) -> None:
        self._resolver = resolver
        self._composer = composer
        self._config = config
        self._diagnostics = diagnostics
        self.synthesizer: Synthesizer | None = None

    def map_type(
        self,
        schema: Schema,
        nullable: bool = False,
        schema_name: str | None = None,
        hint: str | None = None,
    ) -> ResolvedType:
        """Map ``schema`` to a resolved type.

        Nullability of the result is the OR of the schema's own flag, the
        mapped base type's and ``nullable``.

        Raises:
            UntypedSchemaRejected: If an untyped schema is met while dynamic
                type handling is FAIL.
            UnresolvedReference: If a reference names an undefined schema.
            CyclicReference: If a reference or allOf chain loops.
        """
        nullable = nullable or schema.nullable
        if schema_name is not None:
            descriptor = self._config.type_overrides.get(schema_name)
            if descriptor is not None:
                logger.debug("Using override %r for schema '%s'", descriptor, schema_name)
                return parse_type_override(descriptor, nullable)

        base = self._map_base(schema, schema_name, hint)
        return base.with_nullable(base.nullable or nullable)

    def reference(self, ref: str) -> NamedReference:
        """Resolve ``ref`` and reference the final name of its chain.

        The chain stops at the first overridden name, whose alias entry carries
        the override.
        """
        target = self._resolver.resolve(ref, stop_at=self._config.type_overrides.keys())
        return NamedReference(target.name, namespace=self._config.models_namespace)

    def _map_base(self, schema: Schema, schema_name: str | None, hint: str | None) -> ResolvedType:
        if schema.is_reference:
            return self.reference(schema.ref)  # type: ignore[arg-type]

        member = self._composer.single_reference(schema)
        if member is not None:
            return self.reference(member.ref)  # type: ignore[arg-type]

        if schema.all_of:
            schema = self._composer.merge_all_of(schema, (schema_name,) if schema_name else ())

        collapsed = self._composer.nullable_member(schema)
        if collapsed is not None:
            return self.map_type(collapsed, nullable=True, hint=hint or schema_name)

        if schema.one_of or schema.any_of:
            members = self._composer.union_members(schema)
            if schema_name is None and members and not any(member.is_reference for member in members):
                # No named member can carry a variant
                return Dynamic(DynamicGranularity.JSON_ELEMENT)
            return self._named(schema, schema_name, hint, DynamicGranularity.JSON_ELEMENT)

        if schema.has_enum:
            if schema_name is not None or (hint is not None and self.synthesizer is not None):
                return self._named(schema, schema_name, hint, DynamicGranularity.JSON_ELEMENT)
            return enum_base_type(schema)

        child_hint = hint or schema_name
        kind = schema.kind
        if kind is None:
            return self._map_untyped(schema, child_hint)
        if kind is SchemaKind.NULL:
            return Dynamic(DynamicGranularity.ANY, nullable=True)
        if kind is SchemaKind.ARRAY:
            if schema.items is None:
                return Collection(Dynamic(DynamicGranularity.JSON_ELEMENT))
            item_hint = f"{child_hint}Item" if child_hint else None
            return Collection(self.map_type(schema.items, hint=item_hint))
        if schema.is_primitive:
            return map_primitive(kind, schema.format)

        if schema.has_properties:
            return self._named(schema, schema_name, hint, DynamicGranularity.JSON_OBJECT)
        return self._map_dictionary(schema, child_hint)

    def _named(
        self,
        schema: Schema,
        schema_name: str | None,
        hint: str | None,
        fallback: DynamicGranularity,
    ) -> ResolvedType:
        """Reference the catalog entry for a structured schema."""
        if schema_name is not None:
            return NamedReference(schema_name, namespace=self._config.models_namespace)
        if hint is not None and self.synthesizer is not None:
            name = self.synthesizer(schema, hint)
            return NamedReference(name, namespace=self._config.models_namespace)
        logger.debug("Anonymous structured schema mapped to dynamic %s", fallback.value)
        return Dynamic(fallback)

    def _map_dictionary(self, schema: Schema, hint: str | None) -> ResolvedType:
        additional = schema.additional_properties
        if additional is False:
            # No value type can be derived; not a dictionary
            return Dynamic(DynamicGranularity.ANY)
        if additional is None or additional is True or additional == Schema():
            return Dictionary(STRING, Dynamic(DynamicGranularity.JSON_ELEMENT))
        value_hint = f"{hint}Value" if hint else None
        return Dictionary(STRING, self.map_type(additional, hint=value_hint))

    def _map_untyped(self, schema: Schema, name: str | None) -> ResolvedType:
        if self._config.infer_dynamic_types:
            if schema.properties is not None or schema.additional_properties is not None:
                return Dynamic(DynamicGranularity.JSON_OBJECT)
            if schema.items is not None:
                return Dynamic(DynamicGranularity.JSON_ARRAY)
            return Dynamic(DynamicGranularity.JSON_ELEMENT)

        handling = self._config.dynamic_type_handling
        if handling is DynamicTypeHandling.FAIL:
            raise UntypedSchemaRejected(name)
        if handling is DynamicTypeHandling.WARN:
            self._diagnostics.warn(UntypedSchemaWarning(name))
        return Dynamic(DynamicGranularity.ANY)
