"""Reference resolution over the schema dictionary."""

from __future__ import annotations

from dataclasses import dataclass
from typing import AbstractSet, Iterator, Mapping

from ..shared.errors import CyclicReference, UnresolvedReference
from .schema import Schema, reference_name


@dataclass(frozen=True, slots=True)
class ResolvedReference:
    """Final target of a reference chain.

    ``schema`` is ``None`` when the name is a registered external type that
    the dictionary never defines.
    """

    name: str
    schema: Schema | None


class ReferenceResolver:
    """Resolves ``$ref`` strings against an immutable schema dictionary.

    Bare-reference chains (``A: $ref B``, ``B: $ref C``) are followed to the
    first schema with content. Callers thread ``visited``, the names already
    being resolved further up the stack; meeting one of them again raises
    ``CyclicReference`` instead of recursing.
    """

    __slots__ = ("_schemas", "_external_names")

    def __init__(
        self,
        schemas: Mapping[str, Schema],
        external_names: AbstractSet[str] = frozenset(),
    ) -> None:
        self._schemas = schemas
        self._external_names = external_names

    def __contains__(self, name: object) -> bool:
        return name in self._schemas

    def __iter__(self) -> Iterator[str]:
        return iter(self._schemas)

    def items(self):
        return self._schemas.items()

    def get(self, name: str) -> Schema | None:
        return self._schemas.get(name)

    def resolve(
        self,
        ref: str,
        visited: tuple[str, ...] = (),
        stop_at: AbstractSet[str] = frozenset(),
    ) -> ResolvedReference:
        """Follow ``ref`` to its target.

        A name in ``stop_at`` ends the chain even when its schema is itself a
        bare reference.

        Raises:
            UnresolvedReference: If a name in the chain is not defined.
            CyclicReference: If the chain meets a name in ``visited`` or itself.
        """
        chain = list(visited)
        current = ref
        while True:
            name = reference_name(current)
            if name in chain:
                raise CyclicReference(chain[chain.index(name):] + [name])
            chain.append(name)

            schema = self._schemas.get(name)
            if schema is None:
                if name in self._external_names:
                    return ResolvedReference(name, None)
                raise UnresolvedReference(current)
            if not schema.is_reference or name in stop_at:
                return ResolvedReference(name, schema)
            current = schema.ref  # type: ignore[assignment]
