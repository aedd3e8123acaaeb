"""Custom exceptions and warnings for the type-model engine."""

from __future__ import annotations

from typing import Sequence

REMEDIATION_OPTIONS: tuple[str, ...] = (
    "Enable infer_dynamic_types (useJsonElementForDynamicTypes) so untyped schemas map to opaque JSON types",
    "Add a type override for the schema, e.g. schemaTypeOverrides['{name}'] = 'JsonElement'",
    "Fix the OpenAPI document so the schema declares a type",
)


class SchemaError(Exception):
    """Base exception for schema-related errors."""

    def __init__(self, message: str, schema_path: str | None = None) -> None:
        self.schema_path = schema_path
        full_message = f"{message}" if not schema_path else f"[{schema_path}] {message}"
        super().__init__(full_message)


class SchemaValidationError(SchemaError):
    """Raised when a raw schema node has a shape the engine cannot read."""

    def __init__(
        self,
        message: str,
        schema_path: str | None = None,
        field: str | None = None,
    ) -> None:
        self.field = field
        if field:
            message = f"Field '{field}': {message}"
        super().__init__(message, schema_path)


class UnresolvedReference(SchemaError):
    """Raised when a $ref names a schema absent from the dictionary."""

    def __init__(self, ref: str, schema_path: str | None = None) -> None:
        self.ref = ref
        super().__init__(f"Unresolved reference '{ref}'", schema_path)


class CyclicReference(SchemaError):
    """Raised when a reference chain returns to a name already being resolved."""

    def __init__(self, chain: Sequence[str], schema_path: str | None = None) -> None:
        self.chain = tuple(chain)
        super().__init__(f"Cyclic reference: {' -> '.join(self.chain)}", schema_path)


class UntypedSchemaRejected(SchemaError):
    """Raised when dynamic-type handling is FAIL and a schema has no type."""

    def __init__(self, schema_name: str | None, schema_path: str | None = None) -> None:
        self.schema_name = schema_name
        name = schema_name or "unnamed"
        options = "\n".join(
            f"  {index}. {option.format(name=name)}"
            for index, option in enumerate(REMEDIATION_OPTIONS, start=1)
        )
        super().__init__(
            f"Schema '{name}' has no type definition and dynamic types are rejected.\n"
            f"To fix this, either:\n{options}",
            schema_path,
        )


class DanglingReference(SchemaError):
    """Raised when a named reference has no entry in the final type catalog."""

    def __init__(self, name: str, schema_path: str | None = None) -> None:
        self.name = name
        super().__init__(f"Reference to '{name}' has no catalog entry", schema_path)


class ConfigError(Exception):
    """Raised for invalid generator configuration."""

    def __init__(self, message: str, key: str | None = None) -> None:
        self.key = key
        super().__init__(message if not key else f"Config '{key}': {message}")


class SchemaWarning(UserWarning):
    """Base class for non-fatal findings collected during generation."""

    def __init__(self, message: str, schema_name: str | None = None) -> None:
        self.schema_name = schema_name
        self.message = message
        super().__init__(message)

    @property
    def code(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict[str, str | None]:
        return {"code": self.code, "schema": self.schema_name, "message": self.message}


class UntypedSchemaWarning(SchemaWarning):
    """An untyped schema was mapped to a fully dynamic type."""

    def __init__(self, schema_name: str | None) -> None:
        name = schema_name or "unnamed"
        options = "; ".join(
            f"{index}. {option.format(name=name)}"
            for index, option in enumerate(REMEDIATION_OPTIONS, start=1)
        )
        super().__init__(
            f"Schema '{name}' has no type definition and will be mapped to a fully dynamic type, "
            f"which may fail at runtime if the serializer cannot handle it. To fix this, either: {options}",
            schema_name,
        )


class AmbiguousOneOfMembership(SchemaWarning):
    """A schema is claimed as a member by two different oneOf parents."""

    def __init__(self, schema_name: str, previous: str, current: str) -> None:
        self.previous = previous
        self.current = current
        super().__init__(
            f"Schema '{schema_name}' is a oneOf member of both '{previous}' and '{current}'; "
            f"using '{current}'",
            schema_name,
        )


class MissingDiscriminatorProperty(SchemaWarning):
    """A sum-type member does not declare the discriminator property."""

    def __init__(self, schema_name: str, sum_type: str, property_name: str) -> None:
        self.sum_type = sum_type
        self.property_name = property_name
        super().__init__(
            f"Schema '{schema_name}' is a member of '{sum_type}' but does not declare "
            f"discriminator property '{property_name}'",
            schema_name,
        )
