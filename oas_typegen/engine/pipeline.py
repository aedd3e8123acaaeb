"""End-to-end resolution: document + config -> type and operation catalogs."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Iterable, Mapping

from ..shared.errors import DanglingReference, SchemaWarning
from .composition import CompositionResolver
from .config import GeneratorConfig
from .diagnostics import Diagnostics
from .document import ApiDocument
from .models import ModelDeriver
from .operations import OperationExtractor
from .references import ReferenceResolver
from .special_types import SpecialTypeRegistry
from .type_mapper import TypeMapper
from .types import NamedReference, NamedType, Operation, ResolvedType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerationResult:
    """Everything the emitter needs; no further schema inspection required."""

    types: tuple[NamedType, ...]
    operations: tuple[Operation, ...]
    warnings: tuple[SchemaWarning, ...] = ()
    uses_oauth2: bool = False
    namespace: str = ""

    def type_named(self, name: str) -> NamedType | None:
        return next((entry for entry in self.types if entry.name == name), None)

    def operation(self, operation_id: str) -> Operation | None:
        return next((op for op in self.operations if op.operation_id == operation_id), None)

    def to_dict(self) -> dict[str, Any]:
        return {
            "namespace": self.namespace,
            "uses_oauth2": self.uses_oauth2,
            "types": [entry.to_dict() for entry in self.types],
            "operations": [op.to_dict() for op in self.operations],
            "warnings": [warning.to_dict() for warning in self.warnings],
        }


def generate(document: ApiDocument, config: GeneratorConfig | None = None) -> GenerationResult:
    """Resolve every schema and operation of ``document``.

    Fatal errors propagate and no partial result is returned. Warnings are
    collected on the result.

    Raises:
        UnresolvedReference, CyclicReference, UntypedSchemaRejected,
        DanglingReference: See ``oas_typegen.shared.errors``.
    """
    config = config or GeneratorConfig()
    diagnostics = Diagnostics()
    special_types = SpecialTypeRegistry()

    resolver = ReferenceResolver(document.schemas, external_names=frozenset(special_types))
    composer = CompositionResolver(resolver, diagnostics)
    mapper = TypeMapper(resolver, composer, config, diagnostics)
    deriver = ModelDeriver(resolver, composer, mapper, config, diagnostics)

    deriver.derive()
    operations = OperationExtractor(document, mapper).extract()
    types = _finalize_catalog(deriver.catalog, operations, special_types)

    logger.info(
        "Derived %d types and %d operations (%d warnings)",
        len(types), len(operations), len(diagnostics),
    )
    return GenerationResult(
        types=types,
        operations=operations,
        warnings=diagnostics.warnings,
        uses_oauth2=document.uses_oauth2,
        namespace=config.models_namespace,
    )


def generate_from_dict(raw: Mapping[str, Any], config: GeneratorConfig | None = None) -> GenerationResult:
    """Convenience wrapper for an already parsed document mapping."""
    return generate(ApiDocument.from_dict(raw), config)


def _referenced_names(resolved: Iterable[ResolvedType]) -> dict[str, None]:
    return {
        item.name: None
        for item in resolved
        if isinstance(item, NamedReference) and not item.external
    }


def _finalize_catalog(
    catalog: tuple[NamedType, ...],
    operations: tuple[Operation, ...],
    special_types: SpecialTypeRegistry,
) -> tuple[NamedType, ...]:
    """Add special-type aliases, check references, assign emit groups."""
    referenced: dict[str, None] = {}
    for entry in catalog:
        referenced.update(_referenced_names(entry.referenced_types()))
    for operation in operations:
        referenced.update(_referenced_names(operation.referenced_types()))

    known = {entry.name for entry in catalog}
    missing = [name for name in referenced if name not in known]
    entries = list(catalog)
    for name in sorted(missing):
        if name not in special_types:
            raise DanglingReference(name)
        entries.append(special_types.alias_for(name))

    groups: dict[str, str] = {}
    for entry in entries:
        group = groups.setdefault(entry.name.lower(), entry.name)
        if group != entry.name:
            logger.info("Type '%s' collides case-insensitively with '%s'; emitted together", entry.name, group)
    return tuple(replace(entry, emit_group=groups[entry.name.lower()]) for entry in entries)
