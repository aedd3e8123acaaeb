"""Shared utilities for the type-model engine."""

from .schema_loader import (
    ExternalRefBundler,
    bundle_external_refs,
    load_spec,
    resolve_pointer,
)
from .naming import (
    ensure_unique,
    literal_text,
    synthesize_operation_id,
    to_enum_member_name,
    to_pascal_case,
    to_snake_case,
)
from .errors import (
    AmbiguousOneOfMembership,
    ConfigError,
    CyclicReference,
    DanglingReference,
    MissingDiscriminatorProperty,
    SchemaError,
    SchemaValidationError,
    SchemaWarning,
    UnresolvedReference,
    UntypedSchemaRejected,
    UntypedSchemaWarning,
)

__all__ = [
    # Document loading
    "ExternalRefBundler",
    "bundle_external_refs",
    "load_spec",
    "resolve_pointer",
    # Naming utilities
    "ensure_unique",
    "literal_text",
    "synthesize_operation_id",
    "to_enum_member_name",
    "to_pascal_case",
    "to_snake_case",
    # Errors
    "AmbiguousOneOfMembership",
    "ConfigError",
    "CyclicReference",
    "DanglingReference",
    "MissingDiscriminatorProperty",
    "SchemaError",
    "SchemaValidationError",
    "SchemaWarning",
    "UnresolvedReference",
    "UntypedSchemaRejected",
    "UntypedSchemaWarning",
]
