"""Extraction of callable operations from the path graph."""

from __future__ import annotations

import logging
from typing import Any, Final

from ..shared.naming import ensure_unique, synthesize_operation_id, to_pascal_case
from .document import ApiDocument
from .schema import Schema
from .type_mapper import TypeMapper
from .types import Operation, Parameter, ParameterLocation, RequestBody, ResolvedType

logger = logging.getLogger(__name__)

# OpenAPI path item order
HTTP_METHODS: Final[tuple[str, ...]] = (
    "get", "put", "post", "delete", "options", "head", "patch", "trace",
)

# Swagger 2 non-body parameters carry their schema inline
_INLINE_SCHEMA_KEYS: Final[tuple[str, ...]] = ("type", "format", "items", "enum")


def _escape_pointer(token: str) -> str:
    return token.replace("~", "~0").replace("/", "~1")


class OperationExtractor:
    """Builds the flat, ordered operation list.

    Paths are visited in document order and methods in OpenAPI order, so the
    result is a pure function of the document.
    """

    def __init__(self, document: ApiDocument, mapper: TypeMapper) -> None:
        self._document = document
        self._mapper = mapper

    def extract(self) -> tuple[Operation, ...]:
        result: list[Operation] = []
        used_ids: dict[str, int] = {}

        for path, path_item in self._document.paths.items():
            if not isinstance(path_item, dict):
                continue
            item_path = f"#/paths/{_escape_pointer(str(path))}"
            path_params = self._parameter_map(path_item.get("parameters"), f"{item_path}/parameters")

            for method in HTTP_METHODS:
                details = path_item.get(method)
                if not isinstance(details, dict):
                    continue
                result.append(self._build(
                    str(path), method, details, path_params, used_ids, f"{item_path}/{method}"
                ))

        logger.debug("Extracted %d operations", len(result))
        return tuple(result)

    def _build(
        self,
        path: str,
        method: str,
        details: dict[str, Any],
        path_params: dict[tuple[str, str], dict[str, Any]],
        used_ids: dict[str, int],
        schema_path: str,
    ) -> Operation:
        raw_id = details.get("operationId") or synthesize_operation_id(method, path)
        operation_id = ensure_unique(str(raw_id), used_ids, "_")
        hint = to_pascal_case(operation_id)

        # Operation-level parameters replace path-level ones in place
        merged = dict(path_params)
        merged.update(self._parameter_map(details.get("parameters"), f"{schema_path}/parameters"))
        parameters = tuple(
            param
            for param in (self._parameter(raw, hint, schema_path) for raw in merged.values())
            if param is not None
        )

        return Operation(
            operation_id=operation_id,
            method=method,
            path=path,
            parameters=parameters,
            request_body=self._request_body(details.get("requestBody"), hint, schema_path),
            response_type=self._response_type(details.get("responses"), hint, schema_path),
            summary=str(details.get("summary") or "").strip(),
            description=details.get("description"),
            tags=tuple(str(tag) for tag in details.get("tags") or ()),
            deprecated=bool(details.get("deprecated", False)),
        )

    def _parameter_map(self, raw: Any, schema_path: str) -> dict[tuple[str, str], dict[str, Any]]:
        params: dict[tuple[str, str], dict[str, Any]] = {}
        for index, entry in enumerate(raw or ()):
            param = self._document.component("parameters", entry, f"{schema_path}/{index}")
            params[(str(param.get("name", "")), str(param.get("in", "")))] = param
        return params

    def _parameter(self, param: dict[str, Any], hint: str, schema_path: str) -> Parameter | None:
        name = str(param.get("name", ""))
        try:
            location = ParameterLocation(param.get("in"))
        except ValueError:
            logger.warning("Skipping parameter '%s' with unsupported location %r", name, param.get("in"))
            return None

        required = bool(param.get("required", location is ParameterLocation.PATH))
        raw_schema = param.get("schema")
        if raw_schema is None and isinstance(param.get("content"), dict):
            raw_schema = _first_media_schema(param["content"])
        if raw_schema is None:
            raw_schema = {key: param[key] for key in _INLINE_SCHEMA_KEYS if key in param}

        schema = Schema.from_dict(raw_schema, f"{schema_path}/parameters/{name}")
        return Parameter(
            name=name,
            location=location,
            required=required,
            type=self._mapper.map_type(schema, nullable=not required, hint=f"{hint}{to_pascal_case(name)}"),
            description=param.get("description"),
        )

    def _request_body(self, raw: Any, hint: str, schema_path: str) -> RequestBody | None:
        if raw is None:
            return None
        body = self._document.component("requestBodies", raw, f"{schema_path}/requestBody")
        content = body.get("content") or {}
        if not content:
            return None
        # First declared content type wins
        content_type, media = next(iter(content.items()))
        raw_schema = media.get("schema") if isinstance(media, dict) else None
        if raw_schema is None:
            logger.debug("Request body of %s declares no schema", schema_path)
            return None

        required = bool(body.get("required", False))
        schema = Schema.from_dict(raw_schema, f"{schema_path}/requestBody/content/{content_type}/schema")
        return RequestBody(
            type=self._mapper.map_type(schema, nullable=not required, hint=f"{hint}Request"),
            required=required,
            content_type=str(content_type),
        )

    def _response_type(self, raw: Any, hint: str, schema_path: str) -> ResolvedType | None:
        if not isinstance(raw, dict):
            return None
        status = next((code for code in raw if str(code).startswith("2")), None)
        if status is None:
            return None
        response = self._document.component("responses", raw[status], f"{schema_path}/responses/{status}")
        raw_schema = _first_media_schema(response.get("content") or {})
        if raw_schema is None:
            # Swagger 2 responses carry the schema directly
            raw_schema = response.get("schema")
        if raw_schema is None:
            return None
        schema = Schema.from_dict(raw_schema, f"{schema_path}/responses/{status}")
        return self._mapper.map_type(schema, hint=f"{hint}Response")


def _first_media_schema(content: dict[str, Any]) -> Any:
    for media in content.values():
        return media.get("schema") if isinstance(media, dict) else None
    return None
