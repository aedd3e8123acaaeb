"""Composition resolution: allOf flattening and oneOf/anyOf classification."""

from __future__ import annotations

import logging
from dataclasses import replace
from types import MappingProxyType
from typing import Any

from ..shared.errors import AmbiguousOneOfMembership
from .diagnostics import Diagnostics
from .references import ReferenceResolver
from .schema import Schema, SchemaKind
from .types import NamedTypeKind

logger = logging.getLogger(__name__)

# Structural attributes a non-object allOf member may contribute
_FILL_ATTRIBUTES: tuple[str, ...] = ("format", "enum", "items", "additional_properties")


class CompositionResolver:
    """Flattens ``allOf`` chains and classifies union shapes."""

    __slots__ = ("_resolver", "_diagnostics")

    def __init__(self, resolver: ReferenceResolver, diagnostics: Diagnostics) -> None:
        self._resolver = resolver
        self._diagnostics = diagnostics

    def merge_all_of(self, schema: Schema, visited: tuple[str, ...] = ()) -> Schema:
        """Flatten ``schema.allOf`` into a single schema.

        Members are merged in list order, nested ``allOf`` first; a later
        member's property replaces an earlier one of the same name and the
        required names are unioned. The schema's own properties and required
        names are applied last. Schemas without ``allOf`` are returned as-is,
        which makes the merge idempotent.
        """
        if not schema.all_of:
            return schema

        properties: dict[str, Schema] = {}
        required: dict[str, None] = {}
        fill: dict[str, Any] = {}
        saw_object = schema.kind is SchemaKind.OBJECT or schema.properties is not None
        member_kind: SchemaKind | None = None

        for member in schema.all_of:
            resolved = self._resolve_member(member, visited)
            if resolved.properties is not None or resolved.kind is SchemaKind.OBJECT:
                saw_object = True
            if resolved.properties:
                properties.update(resolved.properties)
            required.update(dict.fromkeys(resolved.required))
            if member_kind is None:
                member_kind = resolved.kind
            for attribute in _FILL_ATTRIBUTES:
                value = getattr(resolved, attribute)
                if value is not None and attribute not in fill:
                    fill[attribute] = value

        if schema.properties:
            properties.update(schema.properties)
        required.update(dict.fromkeys(schema.required))

        changes: dict[str, Any] = {
            attribute: value
            for attribute, value in fill.items()
            if getattr(schema, attribute) is None
        }
        if schema.kind is None:
            changes["kind"] = SchemaKind.OBJECT if saw_object else member_kind
        return replace(
            schema,
            properties=MappingProxyType(properties) if saw_object else schema.properties,
            required=tuple(required),
            all_of=(),
            **changes,
        )

    def _resolve_member(self, member: Schema, visited: tuple[str, ...]) -> Schema:
        if not member.is_reference:
            return self.merge_all_of(member, visited)
        target = self._resolver.resolve(member.ref, visited)  # type: ignore[arg-type]
        if target.schema is None:
            logger.debug("allOf member '%s' is an external type; contributes nothing", target.name)
            return Schema()
        return self.merge_all_of(target.schema, visited + (target.name,))

    @staticmethod
    def single_reference(schema: Schema) -> Schema | None:
        """Return the member of ``{allOf: [$ref X]}`` wrappers that add no structure."""
        if len(schema.all_of) != 1 or not schema.all_of[0].is_reference:
            return None
        if (
            schema.kind is not None
            or schema.properties is not None
            or schema.enum is not None
            or schema.items is not None
            or schema.additional_properties is not None
            or schema.one_of
            or schema.any_of
        ):
            return None
        return schema.all_of[0]

    @staticmethod
    def nullable_member(schema: Schema) -> Schema | None:
        """Collapse ``oneOf``/``anyOf`` of one member plus ``{type: null}``."""
        members = schema.one_of or schema.any_of
        if not members:
            return None
        concrete = [member for member in members if member.kind is not SchemaKind.NULL]
        if len(concrete) == 1 and len(concrete) < len(members):
            return concrete[0]
        return None

    @staticmethod
    def union_members(schema: Schema) -> tuple[Schema, ...]:
        """Members that form a closed sum type: ``oneOf``, or a discriminated ``anyOf``."""
        if schema.one_of:
            return schema.one_of
        if schema.any_of and schema.discriminator is not None:
            if all(member.is_reference for member in schema.any_of):
                return schema.any_of
        return ()

    def classify_one_of(self, name: str, schema: Schema, index: dict[str, str]) -> tuple[str, ...]:
        """Register every referenced member of ``name`` in the reverse index.

        A member already claimed by another parent is re-assigned to ``name``
        (last registration wins) and an ``AmbiguousOneOfMembership`` warning
        is recorded. Returns the member names in list order.
        """
        members: dict[str, None] = {}
        for member in self.union_members(schema):
            if not member.is_reference:
                logger.debug("Inline oneOf member of '%s' is not a named type; skipped", name)
                continue
            member_name = self._resolver.resolve(member.ref).name  # type: ignore[arg-type]
            previous = index.get(member_name)
            if previous is not None and previous != name:
                self._diagnostics.warn(AmbiguousOneOfMembership(member_name, previous, name))
            index[member_name] = name
            members.setdefault(member_name, None)
        return tuple(members)

    def classify_any_of(self, schema: Schema) -> NamedTypeKind:
        """Decide how an ``anyOf`` schema is represented.

        A nullable single-member union is an ALIAS of that member, an
        ``anyOf`` of references with a discriminator is a SUM_TYPE, and every
        other union degrades to a WRAPPER around a dynamic payload.
        """
        if self.nullable_member(schema) is not None:
            return NamedTypeKind.ALIAS
        if self.union_members(schema):
            return NamedTypeKind.SUM_TYPE
        return NamedTypeKind.WRAPPER

    def build_membership_index(self) -> dict[str, str]:
        """Map every sum-type member name to the sum type that claims it."""
        index: dict[str, str] = {}
        for name, schema in self._resolver.items():
            if schema.is_reference or self.nullable_member(schema) is not None:
                continue
            if self.union_members(schema):
                self.classify_one_of(name, schema, index)
        return index
