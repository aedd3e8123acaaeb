#!/usr/bin/env python3
"""
OpenAPI type-model generator CLI.

Usage:
    python -m oas_typegen <command> [options]

Commands:
    generate    Resolve a spec and write the type/operation catalog
    validate    Resolve a spec and report errors and warnings only

Examples:
    python -m oas_typegen generate --spec openapi.yaml --output catalog.json
    python -m oas_typegen generate --spec openapi.yaml --dynamic-types fail
    python -m oas_typegen validate --spec openapi.yaml --fail-on-warnings
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from oas_typegen.engine import ApiDocument, GenerationResult, GeneratorConfig, generate, load_config, render_report
from oas_typegen.shared import ConfigError, SchemaError, bundle_external_refs, load_spec


def _engine_parser(description: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=description)
    parser.add_argument("--spec", required=True, type=Path, help="Path to the OpenAPI specification (JSON or YAML)")
    parser.add_argument("--config", type=Path, help="Generator config file (JSON or YAML)")
    parser.add_argument("--package", help="Base package used to qualify model references")
    parser.add_argument(
        "--dynamic-types",
        choices=["allow", "warn", "fail"],
        help="How to handle schemas without a type",
    )
    parser.add_argument(
        "--infer-dynamic-types",
        action="store_true",
        help="Map untyped schemas to opaque JSON types from structural hints",
    )
    parser.add_argument(
        "--no-default-values",
        action="store_true",
        help="Do not assign defaults to optional fields",
    )
    parser.add_argument(
        "--override",
        action="append",
        default=[],
        metavar="NAME=TYPE",
        help="Type override for a schema, e.g. Metadata=JsonObject (repeatable)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _build_config(parsed: argparse.Namespace) -> GeneratorConfig:
    """Config file values, then command-line flags on top."""
    config = load_config(parsed.config) if parsed.config else GeneratorConfig()

    overrides = None
    if parsed.override:
        overrides = dict(config.type_overrides)
        for item in parsed.override:
            name, sep, descriptor = item.partition("=")
            if not sep or not name.strip() or not descriptor.strip():
                raise ConfigError(f"Expected NAME=TYPE, got {item!r}", "override")
            overrides[name.strip()] = descriptor.strip()

    return config.merged(
        base_package=parsed.package,
        dynamic_type_handling=parsed.dynamic_types,
        generate_default_values=False if parsed.no_default_values else None,
        infer_dynamic_types=True if parsed.infer_dynamic_types else None,
        type_overrides=overrides,
    )


def _run_engine(parsed: argparse.Namespace) -> tuple[GenerationResult, ApiDocument]:
    raw = load_spec(parsed.spec)
    raw = bundle_external_refs(raw, parsed.spec)
    config = _build_config(parsed)
    document = ApiDocument.from_dict(raw)
    return generate(document, config), document


def _print_warnings(result: GenerationResult) -> None:
    for warning in result.warnings:
        print(f"warning: {warning.code}: {warning.message}")


def cmd_generate(args: list[str]) -> int:
    """Resolve the spec and write the catalog."""
    parser = _engine_parser("Resolve an OpenAPI spec into a type and operation catalog")
    parser.add_argument("--output", type=Path, help="Write the catalog JSON here (default: stdout)")
    parser.add_argument("--report", type=Path, help="Write a Markdown summary here")
    parsed = parser.parse_args(args)
    _configure_logging(parsed.verbose)

    try:
        result, document = _run_engine(parsed)
    except (SchemaError, ConfigError) as e:
        print(f"error: {e}")
        return 1

    _print_warnings(result)
    catalog = json.dumps(result.to_dict(), indent=2)
    if parsed.output:
        parsed.output.parent.mkdir(parents=True, exist_ok=True)
        parsed.output.write_text(catalog + "\n", encoding="utf-8")
        print(f"Generated catalog -> {parsed.output}")
    else:
        print(catalog)

    if parsed.report:
        parsed.report.parent.mkdir(parents=True, exist_ok=True)
        parsed.report.write_text(render_report(result, document.title), encoding="utf-8")
        print(f"Generated report -> {parsed.report}")
    return 0


def cmd_validate(args: list[str]) -> int:
    """Resolve the spec without writing anything."""
    parser = _engine_parser("Check that an OpenAPI spec resolves cleanly")
    parser.add_argument(
        "--fail-on-warnings",
        action="store_true",
        help="Exit non-zero when warnings were raised",
    )
    parsed = parser.parse_args(args)
    _configure_logging(parsed.verbose)

    try:
        result, _ = _run_engine(parsed)
    except (SchemaError, ConfigError) as e:
        print(f"error: {e}")
        return 1

    _print_warnings(result)
    print(
        f"{parsed.spec}: {len(result.types)} types, {len(result.operations)} operations, "
        f"{len(result.warnings)} warnings"
    )
    if result.warnings and parsed.fail_on_warnings:
        return 1
    return 0


COMMANDS = {
    "generate": (cmd_generate, "Resolve a spec and write the type/operation catalog"),
    "validate": (cmd_validate, "Resolve a spec and report errors and warnings only"),
}


def main() -> int:
    if len(sys.argv) < 2 or sys.argv[1] in ("-h", "--help"):
        print(__doc__)
        print("Available commands:")
        for name, (_, desc) in COMMANDS.items():
            print(f"  {name:12} {desc}")
        print("\nUse '<command> --help' for command-specific options.")
        return 0

    command = sys.argv[1]
    args = sys.argv[2:]

    if command not in COMMANDS:
        print(f"Unknown command: {command}")
        print(f"Available commands: {', '.join(COMMANDS.keys())}")
        return 1

    handler, _ = COMMANDS[command]
    return handler(args)


if __name__ == "__main__":
    sys.exit(main())
