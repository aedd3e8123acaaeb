"""The parsed API description consumed by the engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

from ..shared.errors import CyclicReference, SchemaValidationError, UnresolvedReference
from .schema import Schema, reference_name


@dataclass(frozen=True)
class ApiDocument:
    """Schema dictionary plus the raw path graph and reusable components.

    Only the schema dictionary is parsed up front; path items, parameters,
    request bodies and responses stay raw and are read on demand by the
    operation extractor.
    """

    schemas: Mapping[str, Schema]
    paths: Mapping[str, Any] = field(default_factory=dict)
    components: Mapping[str, Any] = field(default_factory=dict)
    title: str = ""
    version: str = ""

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> ApiDocument:
        """Build a document from a parsed OpenAPI (or Swagger 2) mapping."""
        components = raw.get("components") or {}
        if not isinstance(components, dict):
            raise SchemaValidationError("Must be a mapping", "#", "components")

        raw_schemas = components.get("schemas")
        schema_root = "#/components/schemas"
        if raw_schemas is None and "definitions" in raw:
            raw_schemas = raw.get("definitions")
            schema_root = "#/definitions"
        raw_schemas = raw_schemas or {}
        if not isinstance(raw_schemas, dict):
            raise SchemaValidationError("Must be a mapping", schema_root)

        schemas = MappingProxyType({
            str(name): Schema.from_dict(value, f"{schema_root}/{name}")
            for name, value in raw_schemas.items()
        })

        paths = raw.get("paths") or {}
        if not isinstance(paths, dict):
            raise SchemaValidationError("Must be a mapping", "#", "paths")

        info = raw.get("info") or {}
        return cls(
            schemas=schemas,
            paths=paths,
            components=components,
            title=str(info.get("title", "")),
            version=str(info.get("version", "")),
        )

    @property
    def security_schemes(self) -> Mapping[str, Any]:
        return self.components.get("securitySchemes") or {}

    @property
    def uses_oauth2(self) -> bool:
        """Whether any security scheme is OAuth2, which triggers auth-helper generation."""
        return any(
            isinstance(scheme, dict) and scheme.get("type") == "oauth2"
            for scheme in self.security_schemes.values()
        )

    def component(self, section: str, node: Any, schema_path: str) -> dict[str, Any]:
        """Follow ``$ref`` chains into ``components.<section>``.

        Args:
            section: Component section, e.g. ``parameters`` or ``responses``.
            node: A raw mapping that may be a ``$ref``.
            schema_path: Location of ``node``, used in error messages.

        Raises:
            UnresolvedReference: If the referenced component does not exist.
            CyclicReference: If the chain returns to a component already seen.
        """
        seen: list[str] = []
        entries = self.components.get(section) or {}
        while isinstance(node, dict) and isinstance(node.get("$ref"), str):
            ref = node["$ref"]
            name = reference_name(ref)
            if name in seen:
                raise CyclicReference(seen + [name], schema_path)
            seen.append(name)
            if name not in entries:
                raise UnresolvedReference(ref, schema_path)
            node = entries[name]
        if not isinstance(node, dict):
            raise SchemaValidationError("Must be a mapping", schema_path)
        return node
