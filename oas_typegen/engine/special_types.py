"""Well-known type names that documents reference but never define.

Specs exported from some Go services refer to ``#/components/schemas/Time`` or
``NullUUID`` without a matching schema. These names resolve through a fixed
table instead of failing as unresolved references.
"""

from __future__ import annotations

from typing import Final, Iterator, Mapping

from .types import Dynamic, DynamicGranularity, NamedType, NamedTypeKind, Primitive, PrimitiveType, ResolvedType

_INSTANT = Primitive(PrimitiveType.INSTANT, "date-time")
_STRING = Primitive(PrimitiveType.STRING)
_INT64 = Primitive(PrimitiveType.INT64, "int64")

SPECIAL_TYPES: Final[dict[str, ResolvedType]] = {
    # Time types
    "Time": _INSTANT,
    "NullTime": _INSTANT.with_nullable(),
    "nullTime": _INSTANT.with_nullable(),
    # UUID types
    "UUID": _STRING,
    "NullUUID": _STRING.with_nullable(),
    "nullUUID": _STRING.with_nullable(),
    # Duration types
    "Duration": _STRING,
    "NullDuration": _STRING.with_nullable(),
    "nullDuration": _STRING.with_nullable(),
    # Integer types
    "Int64": _INT64,
    "NullInt64": _INT64.with_nullable(),
    "nullInt64": _INT64.with_nullable(),
    # Other
    "AmountInCent": _INT64,
    "CodeChannel": _STRING,
    "webAuthnJavaScript": _STRING,
    "checkOplSyntaxBody": Dynamic(DynamicGranularity.ANY),
    "courierMessageStatus": _STRING,
    "courierMessageType": _STRING,
    "selfServiceFlowType": _STRING,
    "authenticatorAssuranceLevel": _STRING,
    "InvoiceStatus": _STRING,
    "CustomHostnameStatus": _STRING,
}


class SpecialTypeRegistry(Mapping[str, ResolvedType]):
    """Read-only lookup from special type name to its aliased type."""

    __slots__ = ("_types",)

    def __init__(self, types: Mapping[str, ResolvedType] | None = None) -> None:
        self._types = dict(SPECIAL_TYPES if types is None else types)

    def __getitem__(self, name: str) -> ResolvedType:
        return self._types[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._types)

    def __len__(self) -> int:
        return len(self._types)

    def alias_for(self, name: str) -> NamedType:
        """Catalog entry emitted for a special type that is actually referenced."""
        return NamedType(
            name=name,
            kind=NamedTypeKind.ALIAS,
            description="Type referenced but not defined in the API description",
            target=self._types[name],
        )
