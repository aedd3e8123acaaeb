"""Resolved types, the named-type catalog and operation signatures."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Iterator, Union


class PrimitiveType(str, Enum):
    """Concrete primitive targets picked by (kind, format)."""

    STRING = "string"
    INT32 = "int32"
    INT64 = "int64"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    BOOLEAN = "boolean"
    DATE = "date"
    INSTANT = "instant"


class DynamicGranularity(str, Enum):
    """How much is known about a dynamic value."""

    ANY = "any"
    JSON_ELEMENT = "json_element"
    JSON_OBJECT = "json_object"
    JSON_ARRAY = "json_array"
    JSON_PRIMITIVE = "json_primitive"


class _ResolvedTypeBase:
    __slots__ = ()

    nullable: bool

    @property
    def tag(self) -> str:
        return type(self).__name__.lower()

    def with_nullable(self, nullable: bool = True) -> ResolvedType:
        if self.nullable == nullable:
            return self  # type: ignore[return-value]
        return replace(self, nullable=nullable)  # type: ignore[type-var]

    def render(self) -> str:
        raise NotImplementedError

    def to_dict(self) -> dict[str, Any]:
        raise NotImplementedError

    def walk(self) -> Iterator[ResolvedType]:
        """Yield this type and every type nested inside it."""
        yield self  # type: ignore[misc]

    def __str__(self) -> str:
        text = self.render()
        return f"{text}?" if self.nullable else text


@dataclass(frozen=True, slots=True)
class Primitive(_ResolvedTypeBase):
    primitive: PrimitiveType
    format: str | None = None
    nullable: bool = False

    def render(self) -> str:
        return self.primitive.value

    def to_dict(self) -> dict[str, Any]:
        return {"tag": self.tag, "primitive": self.primitive.value, "format": self.format,
                "nullable": self.nullable}


@dataclass(frozen=True, slots=True)
class NamedReference(_ResolvedTypeBase):
    name: str
    namespace: str = ""
    external: bool = False
    nullable: bool = False

    @property
    def qualified_name(self) -> str:
        return f"{self.namespace}.{self.name}" if self.namespace else self.name

    def render(self) -> str:
        return self.name

    def to_dict(self) -> dict[str, Any]:
        return {"tag": self.tag, "name": self.name, "qualified_name": self.qualified_name,
                "external": self.external, "nullable": self.nullable}


@dataclass(frozen=True, slots=True)
class Collection(_ResolvedTypeBase):
    element: ResolvedType
    nullable: bool = False

    def render(self) -> str:
        return f"list[{self.element}]"

    def to_dict(self) -> dict[str, Any]:
        return {"tag": self.tag, "element": self.element.to_dict(), "nullable": self.nullable}

    def walk(self) -> Iterator[ResolvedType]:
        yield self
        yield from self.element.walk()


@dataclass(frozen=True, slots=True)
class Dictionary(_ResolvedTypeBase):
    key: ResolvedType
    value: ResolvedType
    nullable: bool = False

    def render(self) -> str:
        return f"dict[{self.key}, {self.value}]"

    def to_dict(self) -> dict[str, Any]:
        return {"tag": self.tag, "key": self.key.to_dict(), "value": self.value.to_dict(),
                "nullable": self.nullable}

    def walk(self) -> Iterator[ResolvedType]:
        yield self
        yield from self.key.walk()
        yield from self.value.walk()


@dataclass(frozen=True, slots=True)
class Dynamic(_ResolvedTypeBase):
    granularity: DynamicGranularity = DynamicGranularity.ANY
    nullable: bool = False

    def render(self) -> str:
        return f"dynamic:{self.granularity.value}"

    def to_dict(self) -> dict[str, Any]:
        return {"tag": self.tag, "granularity": self.granularity.value, "nullable": self.nullable}


ResolvedType = Union[Primitive, NamedReference, Collection, Dictionary, Dynamic]

STRING = Primitive(PrimitiveType.STRING)


class NamedTypeKind(str, Enum):
    RECORD = "record"
    ENUMERATION = "enumeration"
    SUM_TYPE = "sum_type"
    WRAPPER = "wrapper"
    ALIAS = "alias"


class FieldDefault(str, Enum):
    """Default-value markers for optional record fields."""

    EMPTY_STRING = "empty_string"
    ZERO = "zero"
    FALSE = "false"
    EMPTY_LIST = "empty_list"
    EMPTY_MAP = "empty_map"
    NULL = "null"


@dataclass(frozen=True, slots=True)
class Field:
    name: str
    type: ResolvedType
    required: bool
    description: str | None = None
    default: FieldDefault | None = None
    overrides: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type.to_dict(),
            "required": self.required,
            "description": self.description,
            "default": self.default.value if self.default else None,
            "overrides": self.overrides,
        }


@dataclass(frozen=True, slots=True)
class EnumMember:
    name: str
    value: Any


@dataclass(frozen=True, slots=True)
class NamedType:
    """An entry in the final type catalog.

    Only the payload attributes of the entry's ``kind`` are populated:
    ``fields`` for records and wrappers, ``members`` and ``target`` (the
    literal base type) for enumerations, ``discriminator``/``variants`` for
    sum types, ``target`` for aliases.
    """

    name: str
    kind: NamedTypeKind
    description: str | None = None
    fields: tuple[Field, ...] = ()
    members: tuple[EnumMember, ...] = ()
    discriminator: str | None = None
    variants: tuple[str, ...] = ()
    discriminator_mapping: tuple[tuple[str, str], ...] = ()
    target: ResolvedType | None = None
    sum_type: str | None = None
    emit_group: str = ""

    def referenced_types(self) -> Iterator[ResolvedType]:
        for item in self.fields:
            yield from item.type.walk()
        if self.target is not None:
            yield from self.target.walk()

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "kind": self.kind.value,
            "description": self.description,
            "emit_group": self.emit_group or self.name,
        }
        if self.kind in (NamedTypeKind.RECORD, NamedTypeKind.WRAPPER):
            data["fields"] = [item.to_dict() for item in self.fields]
            data["sum_type"] = self.sum_type
        elif self.kind is NamedTypeKind.ENUMERATION:
            data["base"] = self.target.to_dict() if self.target else None
            data["members"] = [{"name": m.name, "value": m.value} for m in self.members]
        elif self.kind is NamedTypeKind.SUM_TYPE:
            data["discriminator"] = self.discriminator
            data["variants"] = list(self.variants)
            data["discriminator_mapping"] = dict(self.discriminator_mapping)
        else:
            data["target"] = self.target.to_dict() if self.target else None
        return data


class ParameterLocation(str, Enum):
    QUERY = "query"
    HEADER = "header"
    PATH = "path"
    COOKIE = "cookie"


@dataclass(frozen=True, slots=True)
class Parameter:
    name: str
    location: ParameterLocation
    required: bool
    type: ResolvedType
    description: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "in": self.location.value, "required": self.required,
                "type": self.type.to_dict(), "description": self.description}


@dataclass(frozen=True, slots=True)
class RequestBody:
    type: ResolvedType
    required: bool
    content_type: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.to_dict(), "required": self.required,
                "content_type": self.content_type}


@dataclass(frozen=True, slots=True)
class Operation:
    """One callable API action derived from a path + method pair."""

    operation_id: str
    method: str
    path: str
    parameters: tuple[Parameter, ...] = ()
    request_body: RequestBody | None = None
    response_type: ResolvedType | None = None
    summary: str = ""
    description: str | None = None
    tags: tuple[str, ...] = ()
    deprecated: bool = False

    def referenced_types(self) -> Iterator[ResolvedType]:
        for param in self.parameters:
            yield from param.type.walk()
        if self.request_body is not None:
            yield from self.request_body.type.walk()
        if self.response_type is not None:
            yield from self.response_type.walk()

    def to_dict(self) -> dict[str, Any]:
        return {
            "operation_id": self.operation_id,
            "method": self.method,
            "path": self.path,
            "summary": self.summary,
            "description": self.description,
            "tags": list(self.tags),
            "deprecated": self.deprecated,
            "parameters": [param.to_dict() for param in self.parameters],
            "request_body": self.request_body.to_dict() if self.request_body else None,
            "response_type": self.response_type.to_dict() if self.response_type else None,
        }
