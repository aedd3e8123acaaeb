"""Collection of non-fatal findings raised while resolving a document."""

from __future__ import annotations

import logging

from ..shared.errors import SchemaWarning

logger = logging.getLogger(__name__)


class Diagnostics:
    """Ordered warning list handed back to the caller alongside the catalog."""

    __slots__ = ("_warnings",)

    def __init__(self) -> None:
        self._warnings: list[SchemaWarning] = []

    def warn(self, warning: SchemaWarning) -> None:
        """Record ``warning`` unless an identical one is already recorded."""
        if any(existing.to_dict() == warning.to_dict() for existing in self._warnings):
            return
        logger.warning("%s: %s", warning.code, warning.message)
        self._warnings.append(warning)

    @property
    def warnings(self) -> tuple[SchemaWarning, ...]:
        return tuple(self._warnings)

    def __len__(self) -> int:
        return len(self._warnings)
