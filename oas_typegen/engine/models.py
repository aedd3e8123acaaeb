"""Derivation of the named type catalog from the schema dictionary."""

from __future__ import annotations

import logging
from typing import Any

from ..shared.errors import MissingDiscriminatorProperty
from ..shared.naming import ensure_unique, to_enum_member_name, to_pascal_case
from .composition import CompositionResolver
from .config import GeneratorConfig
from .diagnostics import Diagnostics
from .references import ReferenceResolver
from .schema import Schema
from .type_mapper import TypeMapper, default_for, enum_base_type
from .types import (
    STRING,
    Dynamic,
    DynamicGranularity,
    EnumMember,
    Field,
    NamedType,
    NamedTypeKind,
    ResolvedType,
)

logger = logging.getLogger(__name__)

WRAPPER_FIELD = "value"


class ModelDeriver:
    """Walks the schema dictionary and builds the ``NamedType`` catalog.

    Every top-level schema that is not a bare reference yields exactly one
    entry. Inline enums, objects and unions met while mapping fields (or
    operation payloads, through the shared ``TypeMapper``) become entries of
    their own, named from their owner and never shadowing an existing name.
    """

    def __init__(
        self,
        resolver: ReferenceResolver,
        composer: CompositionResolver,
        mapper: TypeMapper,
        config: GeneratorConfig,
        diagnostics: Diagnostics,
    ) -> None:
        self._resolver = resolver
        self._composer = composer
        self._mapper = mapper
        self._config = config
        self._diagnostics = diagnostics
        self._entries: dict[str, NamedType | None] = {}
        self._used_names: dict[str, int] = {name: 1 for name in resolver}
        self._membership: dict[str, str] = {}
        self._synthesized: dict[str, tuple[Schema, str]] = {}
        self._inline_unions: dict[str, Schema] = {}
        mapper.synthesizer = self.synthesize

    @property
    def catalog(self) -> tuple[NamedType, ...]:
        return tuple(entry for entry in self._entries.values() if entry is not None)

    def derive(self) -> tuple[NamedType, ...]:
        """Derive one entry per top-level schema, in dictionary order."""
        self._membership = self._composer.build_membership_index()
        for name, schema in self._resolver.items():
            if schema.is_reference and name not in self._config.type_overrides:
                logger.debug("Skipping bare reference '%s' -> %s", name, schema.ref)
                continue
            self._entries[name] = None
            self._entries[name] = self._derive_top_level(name, schema)
        return self.catalog

    def synthesize(self, schema: Schema, hint: str) -> str:
        """Register an inline schema as a named type and return its name.

        Asking again for the same hint and schema returns the existing name.
        """
        previous = self._synthesized.get(hint)
        if previous is not None and previous[0] == schema:
            return previous[1]
        name = ensure_unique(hint, self._used_names)
        self._synthesized[hint] = (schema, name)
        logger.debug("Synthesizing nested type '%s'", name)
        self._entries[name] = None
        self._entries[name] = self._derive_shape(name, schema)
        return name

    def _derive_top_level(self, name: str, schema: Schema) -> NamedType:
        if name in self._config.type_overrides:
            return NamedType(
                name=name,
                kind=NamedTypeKind.ALIAS,
                description=schema.description,
                target=self._mapper.map_type(schema, schema_name=name),
            )
        return self._derive_shape(name, self._composer.merge_all_of(schema, (name,)))

    def _derive_shape(self, name: str, schema: Schema) -> NamedType:
        description = schema.description
        if schema.all_of:
            schema = self._composer.merge_all_of(schema)

        collapsed = self._composer.nullable_member(schema)
        if collapsed is not None:
            if collapsed.is_reference or not _is_structured(collapsed):
                return NamedType(
                    name=name,
                    kind=NamedTypeKind.ALIAS,
                    description=description,
                    target=self._mapper.map_type(collapsed, nullable=True, hint=name),
                )
            schema = self._composer.merge_all_of(collapsed)
            description = description or schema.description

        if schema.has_enum:
            return self._enumeration(name, schema, description)
        if self._composer.union_members(schema) or schema.one_of:
            return self._sum_type(name, schema, description)
        if schema.any_of:
            return NamedType(
                name=name,
                kind=NamedTypeKind.WRAPPER,
                description=description,
                fields=(Field(WRAPPER_FIELD, Dynamic(DynamicGranularity.ANY), required=True),),
            )
        if schema.has_properties:
            return self._record(name, schema, description)
        return NamedType(
            name=name,
            kind=NamedTypeKind.ALIAS,
            description=description,
            target=self._mapper.map_type(schema, schema_name=name),
        )

    def _enumeration(self, name: str, schema: Schema, description: str | None) -> NamedType:
        members: list[EnumMember] = []
        seen: list[Any] = []
        used: dict[str, int] = {}
        for value in schema.enum or ():
            if any(_same_literal(value, other) for other in seen):
                continue
            seen.append(value)
            members.append(EnumMember(ensure_unique(to_enum_member_name(value), used, "_"), value))
        return NamedType(
            name=name,
            kind=NamedTypeKind.ENUMERATION,
            description=description,
            members=tuple(members),
            target=enum_base_type(schema),
        )

    def _sum_type(self, name: str, schema: Schema, description: str | None) -> NamedType:
        if name not in self._resolver and name not in self._inline_unions:
            self._register_inline_union(name, schema)

        variants: dict[str, None] = {}
        for member in self._composer.union_members(schema) or schema.one_of:
            if not member.is_reference:
                logger.debug("Inline oneOf member of '%s' has no name; not a variant", name)
                continue
            member_name = self._resolver.resolve(member.ref).name  # type: ignore[arg-type]
            if self._membership.get(member_name) == name:
                variants.setdefault(member_name, None)

        discriminator = schema.discriminator
        mapping: dict[str, str] = {}
        if discriminator is not None:
            for value, target in discriminator.mapping:
                mapping[value] = self._resolver.resolve(target).name
        mapped = set(mapping.values())
        for variant in variants:
            if variant not in mapped:
                mapping.setdefault(variant, variant)

        return NamedType(
            name=name,
            kind=NamedTypeKind.SUM_TYPE,
            description=description,
            discriminator=discriminator.property_name if discriminator else None,
            variants=tuple(variants),
            discriminator_mapping=tuple(mapping.items()),
        )

    def _register_inline_union(self, name: str, schema: Schema) -> None:
        """Claim the members of a synthesized union.

        Records and sum types derived before the claim are derived again so
        that membership, discriminator overrides and variants agree.
        """
        self._inline_unions[name] = schema
        before = dict(self._membership)
        for member in self._composer.classify_one_of(name, schema, self._membership):
            previous = before.get(member)
            if previous is not None and previous != name:
                self._rederive(previous)
            self._rederive(member)

    def _rederive(self, name: str) -> None:
        entry = self._entries.get(name)
        if entry is None or entry.kind not in (NamedTypeKind.RECORD, NamedTypeKind.SUM_TYPE):
            # Not derived yet, or still in progress further up the stack
            return
        logger.debug("Re-deriving '%s' after a membership change", name)
        schema = self._resolver.get(name)
        if schema is not None:
            self._entries[name] = self._derive_top_level(name, schema)
        elif name in self._inline_unions:
            self._entries[name] = self._derive_shape(name, self._inline_unions[name])

    def _record(self, name: str, schema: Schema, description: str | None) -> NamedType:
        sum_type = self._membership.get(name)
        parent = self._parent_schema(sum_type)
        discriminator = parent.discriminator.property_name if parent and parent.discriminator else None
        parent_properties = (parent.properties or {}) if parent else {}

        fields: list[Field] = []
        for prop, prop_schema in (schema.properties or {}).items():
            required = schema.is_property_required(prop)
            if prop == discriminator:
                # Satisfies the sum type's abstract discriminator
                fields.append(Field(
                    name=prop,
                    type=self._discriminator_type(parent).with_nullable(not required),  # type: ignore[arg-type]
                    required=required,
                    description=prop_schema.description,
                    overrides=True,
                ))
                continue

            resolved = self._mapper.map_type(
                prop_schema,
                nullable=not required,
                hint=f"{name}{to_pascal_case(prop)}",
            )
            default = None
            if not required and self._config.generate_default_values:
                default = default_for(resolved)
            fields.append(Field(
                name=prop,
                type=resolved,
                required=required,
                description=prop_schema.description,
                default=default,
                overrides=prop in parent_properties,
            ))

        if discriminator is not None and discriminator not in (schema.properties or {}):
            self._diagnostics.warn(MissingDiscriminatorProperty(name, sum_type, discriminator))  # type: ignore[arg-type]

        return NamedType(
            name=name,
            kind=NamedTypeKind.RECORD,
            description=description,
            fields=tuple(fields),
            sum_type=sum_type,
        )

    def _parent_schema(self, sum_type: str | None) -> Schema | None:
        if sum_type is None:
            return None
        parent = self._resolver.get(sum_type) or self._inline_unions.get(sum_type)
        if parent is None:
            return None
        return self._composer.merge_all_of(parent, (sum_type,))

    def _discriminator_type(self, parent: Schema) -> ResolvedType:
        """Declared type of the discriminator on the sum type, string by default."""
        declared = (parent.properties or {}).get(parent.discriminator.property_name)  # type: ignore[union-attr]
        if declared is None or declared.has_enum:
            return STRING
        return self._mapper.map_type(declared)


def _is_structured(schema: Schema) -> bool:
    return bool(
        schema.has_properties or schema.has_enum or schema.all_of or schema.one_of or schema.any_of
    )


def _same_literal(left: Any, right: Any) -> bool:
    # 1 == True in Python; enum literals compare by JSON type as well
    return type(left) is type(right) and left == right
