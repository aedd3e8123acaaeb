"""Naming utilities for type and operation identifiers."""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Any

# Member name used for the empty-string enum literal
EMPTY_MEMBER_NAME = "EMPTY"
# Member name used for a null enum literal
NULL_MEMBER_NAME = "NULL"
# Member name used when nothing identifier-like survives sanitizing
FALLBACK_MEMBER_NAME = "VALUE"

# Runs of characters that cannot appear in an uppercase constant name
_NON_IDENTIFIER = re.compile(r"[^0-9A-Z_]+")


@lru_cache(maxsize=1024)
def to_pascal_case(value: str) -> str:
    """Convert a string to PascalCase.

    Uses caching for repeated calls with the same input.

    Examples:
        >>> to_pascal_case("hello_world")
        'HelloWorld'
        >>> to_pascal_case("hello-world")
        'HelloWorld'
        >>> to_pascal_case("helloWorld")
        'HelloWorld'
    """
    # Handle already camelCase/PascalCase by inserting underscores before caps
    value = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", value)

    parts = [part for part in re.split(r"[^0-9A-Za-z]+", value) if part]
    return "".join(part.capitalize() for part in parts)


@lru_cache(maxsize=1024)
def to_snake_case(value: str) -> str:
    """Convert a string to snake_case.

    Uses caching for repeated calls with the same input.

    Examples:
        >>> to_snake_case("HelloWorld")
        'hello_world'
        >>> to_snake_case("hello-world")
        'hello_world'
    """
    # Insert underscore before uppercase letters
    value = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", value)
    # Replace hyphens and multiple underscores
    value = value.replace("-", "_")
    value = re.sub(r"_+", "_", value)
    return value.lower().strip("_")


def literal_text(value: Any) -> str:
    """Render an enum literal the way it appears in a JSON document."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


@lru_cache(maxsize=1024)
def _member_name_for_text(text: str) -> str:
    if text == "":
        return EMPTY_MEMBER_NAME
    name = _NON_IDENTIFIER.sub("_", text.upper())
    if not name.strip("_"):
        return FALLBACK_MEMBER_NAME
    if name[0].isdigit():
        name = f"_{name}"
    return name


def to_enum_member_name(value: Any) -> str:
    """Derive the canonical constant name for an enum literal.

    Examples:
        >>> to_enum_member_name("in-progress")
        'IN_PROGRESS'
        >>> to_enum_member_name("inProgress")
        'INPROGRESS'
        >>> to_enum_member_name("2fa")
        '_2FA'
        >>> to_enum_member_name("")
        'EMPTY'
    """
    if value is None:
        return NULL_MEMBER_NAME
    return _member_name_for_text(literal_text(value))


@lru_cache(maxsize=512)
def synthesize_operation_id(method: str, path: str) -> str:
    """Build an operation id from the HTTP method and path template.

    Literal segments are title-cased and concatenated; every path parameter
    contributes ``By<ParamName>`` after the literal part.

    Examples:
        >>> synthesize_operation_id("GET", "/pets/{petId}")
        'getPetsByPetId'
        >>> synthesize_operation_id("post", "/users/{userId}/posts/{postId}")
        'postUsersPostsByUserIdByPostId'
    """
    literals: list[str] = []
    params: list[str] = []
    for segment in path.split("/"):
        if not segment:
            continue
        if segment.startswith("{") and segment.endswith("}"):
            params.append(f"By{to_pascal_case(segment[1:-1])}")
        else:
            literals.append(to_pascal_case(segment))
    return method.lower() + "".join(literals) + "".join(params)


def ensure_unique(base: str, used: dict[str, int], separator: str = "") -> str:
    """Ensure a name is unique by appending a numeric suffix if needed."""
    if base not in used:
        used[base] = 1
        return base
    counter = used[base]
    while True:
        counter += 1
        candidate = f"{base}{separator}{counter}"
        if candidate not in used:
            used[base] = counter
            used[candidate] = 1
            return candidate
