"""Markdown summary of a generation run, rendered through Jinja2."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader

from .pipeline import GenerationResult
from .types import NamedTypeKind

REPORT_TEMPLATE = "catalog_report.md.jinja"


@dataclass
class ReportContext:
    """Template environment with the report template pre-compiled."""
    template_env: Environment = field(init=False)
    _report_template: Any = field(init=False)

    def __post_init__(self) -> None:
        templates_dir = Path(__file__).parent / "templates"
        self.template_env = Environment(
            loader=FileSystemLoader(templates_dir),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            auto_reload=False,
        )
        self._report_template = self.template_env.get_template(REPORT_TEMPLATE)

    @property
    def report_template(self):
        return self._report_template


def render_report(
    result: GenerationResult,
    title: str = "",
    ctx: ReportContext | None = None,
) -> str:
    """Render the generation summary for ``result``."""
    ctx = ctx or ReportContext()
    counts = Counter(entry.kind for entry in result.types)
    collisions = [
        entry for entry in result.types
        if entry.emit_group and entry.emit_group != entry.name
    ]
    return ctx.report_template.render(
        title=title or "API",
        namespace=result.namespace,
        kind_counts=[(kind.value, counts[kind]) for kind in NamedTypeKind if counts[kind]],
        types=result.types,
        operations=result.operations,
        warnings=result.warnings,
        collisions=collisions,
        uses_oauth2=result.uses_oauth2,
    )
