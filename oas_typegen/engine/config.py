"""Generator configuration and the type-override grammar."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Any, Final, Mapping

from ..shared.errors import ConfigError
from ..shared.schema_loader import load_spec
from .types import STRING, Dictionary, Dynamic, DynamicGranularity, NamedReference, ResolvedType


class DynamicTypeHandling(str, Enum):
    """How untyped schemas are handled when structural inference is off."""

    ALLOW = "ALLOW"
    WARN = "WARN"
    FAIL = "FAIL"


# Literal override descriptors understood without a namespace
OVERRIDE_LITERALS: Final[dict[str, ResolvedType]] = {
    "Any": Dynamic(DynamicGranularity.ANY),
    "JsonElement": Dynamic(DynamicGranularity.JSON_ELEMENT),
    "JsonObject": Dynamic(DynamicGranularity.JSON_OBJECT),
    "JsonArray": Dynamic(DynamicGranularity.JSON_ARRAY),
    "JsonPrimitive": Dynamic(DynamicGranularity.JSON_PRIMITIVE),
    "Map<String, JsonElement>": Dictionary(STRING, Dynamic(DynamicGranularity.JSON_ELEMENT)),
}

# Accepted config keys: camelCase plugin spelling or snake_case -> field name
_CONFIG_KEYS: Final[dict[str, str]] = {
    "packageName": "base_package",
    "basePackage": "base_package",
    "base_package": "base_package",
    "schemaTypeOverrides": "type_overrides",
    "type_overrides": "type_overrides",
    "dynamicTypeHandling": "dynamic_type_handling",
    "dynamic_type_handling": "dynamic_type_handling",
    "generateDefaultValues": "generate_default_values",
    "generate_default_values": "generate_default_values",
    "useJsonElementForDynamicTypes": "infer_dynamic_types",
    "infer_dynamic_types": "infer_dynamic_types",
}


def parse_type_override(descriptor: str, nullable: bool = False) -> ResolvedType:
    """Parse a textual override such as ``JsonObject`` or ``com.example.Money``."""
    text = descriptor.strip()
    literal = OVERRIDE_LITERALS.get(text) or OVERRIDE_LITERALS.get(text.replace(" ", "").replace(",", ", "))
    if literal is not None:
        return literal.with_nullable(nullable)

    namespace, _, simple_name = text.rpartition(".")
    if not simple_name:
        raise ConfigError(f"Invalid type descriptor {descriptor!r}", "type_overrides")
    return NamedReference(name=simple_name, namespace=namespace, external=True, nullable=nullable)


@dataclass(frozen=True)
class GeneratorConfig:
    """Configuration consumed by the resolution engine."""

    base_package: str = "com.example.api"
    type_overrides: Mapping[str, str] = field(default_factory=dict)
    dynamic_type_handling: DynamicTypeHandling = DynamicTypeHandling.WARN
    generate_default_values: bool = True
    infer_dynamic_types: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.dynamic_type_handling, DynamicTypeHandling):
            object.__setattr__(
                self, "dynamic_type_handling", _parse_handling(self.dynamic_type_handling)
            )
        for name, descriptor in self.type_overrides.items():
            if not isinstance(descriptor, str):
                raise ConfigError(f"Override for '{name}' must be a string", "type_overrides")
            # Fail early on descriptors the grammar rejects
            parse_type_override(descriptor)

    @property
    def models_namespace(self) -> str:
        return f"{self.base_package}.models" if self.base_package else ""

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> GeneratorConfig:
        """Build a config from a mapping using plugin or snake_case keys."""
        values: dict[str, Any] = {}
        for key, value in data.items():
            field_name = _CONFIG_KEYS.get(key)
            if field_name is None:
                raise ConfigError("Unknown setting", key)
            values[field_name] = value

        if "type_overrides" in values:
            overrides = values["type_overrides"] or {}
            if not isinstance(overrides, Mapping):
                raise ConfigError("Must be a mapping", "type_overrides")
            values["type_overrides"] = {str(k): v for k, v in overrides.items()}
        for flag in ("generate_default_values", "infer_dynamic_types"):
            if flag in values and not isinstance(values[flag], bool):
                raise ConfigError("Must be a boolean", flag)
        if "base_package" in values and not isinstance(values["base_package"], str):
            raise ConfigError("Must be a string", "base_package")
        return cls(**values)

    def merged(self, **changes: Any) -> GeneratorConfig:
        """Return a copy with ``changes`` applied, skipping ``None`` values."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})


def _parse_handling(value: Any) -> DynamicTypeHandling:
    try:
        return DynamicTypeHandling(str(value).upper())
    except ValueError as e:
        choices = ", ".join(mode.value for mode in DynamicTypeHandling)
        raise ConfigError(f"Expected one of {choices}, got {value!r}", "dynamic_type_handling") from e


def load_config(path: Path) -> GeneratorConfig:
    """Load a YAML or JSON config file."""
    return GeneratorConfig.from_mapping(load_spec(path))
