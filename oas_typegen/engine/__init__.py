"""Schema resolution and type-mapping engine."""

from .config import DynamicTypeHandling, GeneratorConfig, load_config, parse_type_override
from .document import ApiDocument
from .pipeline import GenerationResult, generate, generate_from_dict
from .report import render_report
from .schema import Discriminator, Schema, SchemaKind
from .types import (
    Collection,
    Dictionary,
    Dynamic,
    DynamicGranularity,
    EnumMember,
    Field,
    FieldDefault,
    NamedReference,
    NamedType,
    NamedTypeKind,
    Operation,
    Parameter,
    ParameterLocation,
    Primitive,
    PrimitiveType,
    RequestBody,
    ResolvedType,
)

__all__ = [
    # Configuration
    "DynamicTypeHandling",
    "GeneratorConfig",
    "load_config",
    "parse_type_override",
    # Pipeline
    "ApiDocument",
    "GenerationResult",
    "generate",
    "generate_from_dict",
    "render_report",
    # Schema model
    "Discriminator",
    "Schema",
    "SchemaKind",
    # Resolved model
    "Collection",
    "Dictionary",
    "Dynamic",
    "DynamicGranularity",
    "EnumMember",
    "Field",
    "FieldDefault",
    "NamedReference",
    "NamedType",
    "NamedTypeKind",
    "Operation",
    "Parameter",
    "ParameterLocation",
    "Primitive",
    "PrimitiveType",
    "RequestBody",
    "ResolvedType",
]
