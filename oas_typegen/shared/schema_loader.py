"""Spec document loading and external $ref bundling."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any
from urllib.parse import unquote, urljoin, urlparse
from urllib.request import url2pathname

import requests
import yaml
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .errors import CyclicReference, SchemaError, UnresolvedReference
from .naming import ensure_unique

logger = logging.getLogger(__name__)

# Pointer prefixes whose targets are imported as named component schemas
SCHEMA_POINTER_PREFIXES: tuple[str, ...] = ("/components/schemas/", "/definitions/")


def load_spec(path: Path) -> dict[str, Any]:
    """Load an OpenAPI document (or config file) from disk.

    Supports both YAML and JSON formats.

    Raises:
        SchemaError: If the file cannot be read or parsed.
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise SchemaError(f"Failed to read file: {e}", str(path)) from e

    try:
        if path.suffix.lower() in {".yml", ".yaml"}:
            data = yaml.safe_load(raw)
        else:
            data = json.loads(raw)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise SchemaError(f"Invalid document: {e}", str(path)) from e

    if not isinstance(data, dict):
        raise SchemaError("Document root must be a mapping", str(path))

    return data


def resolve_pointer(document: Any, pointer: str, ref: str) -> Any:
    """Walk a JSON pointer (``/a/b/0``) inside a parsed document."""
    node = document
    for token in pointer.split("/")[1:]:
        token = unquote(token).replace("~1", "/").replace("~0", "~")
        if isinstance(node, dict) and token in node:
            node = node[token]
        elif isinstance(node, list) and token.isdigit() and int(token) < len(node):
            node = node[int(token)]
        else:
            raise UnresolvedReference(ref)
    return node


def _build_session() -> requests.Session:
    """Create an HTTP session that retries transient server errors."""
    session = requests.Session()
    retries = Retry(total=3, backoff_factor=0.5, status_forcelist=(500, 502, 503, 504))
    adapter = HTTPAdapter(max_retries=retries)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session


class ExternalRefBundler:
    """Rewrites external $refs into local component references.

    External documents are loaded once per bundler. Schema targets
    (``#/components/schemas/X`` or ``#/definitions/X``) are imported into
    ``components.schemas`` under their own name, suffixed when the name is
    taken; any other pointer target is inlined in place.
    """

    def __init__(self, base_path: Path | None = None, timeout: float = 5.0) -> None:
        self._base_dir = base_path.resolve().parent if base_path else Path.cwd()
        self._timeout = timeout
        self._file_cache: dict[str, dict[str, Any]] = {}
        self._url_cache: dict[str, dict[str, Any]] = {}
        self._session: requests.Session | None = None
        self._imported: dict[tuple[str, str], str] = {}
        self._imports: dict[str, Any] = {}
        self._used_names: dict[str, int] = {}
        self._inlining: list[tuple[str, str]] = []

    def bundle(self, spec: dict[str, Any]) -> dict[str, Any]:
        """Return a copy of ``spec`` whose references are all local."""
        components = spec.get("components") or {}
        for name in components.get("schemas") or {}:
            self._used_names[name] = 1

        result = self._rewrite(spec, None)
        if self._imports:
            result.setdefault("components", {})
            result["components"] = dict(result["components"] or {})
            schemas = dict(result["components"].get("schemas") or {})
            schemas.update(self._imports)
            result["components"]["schemas"] = schemas
            logger.debug("Imported %d external schemas", len(self._imports))
        return result

    def _rewrite(self, node: Any, origin: str | None) -> Any:
        if isinstance(node, list):
            return [self._rewrite(item, origin) for item in node]
        if not isinstance(node, dict):
            return node

        ref = node.get("$ref")
        if isinstance(ref, str):
            file_part, _, fragment = ref.partition("#")
            if file_part or origin is not None:
                return self._import(ref, file_part, fragment, origin)
            return dict(node)

        return {key: self._rewrite(value, origin) for key, value in node.items()}

    def _import(self, ref: str, file_part: str, pointer: str, origin: str | None) -> Any:
        location = self._locate(file_part, origin) if file_part else str(origin)
        key = (location, pointer)

        if pointer.startswith(SCHEMA_POINTER_PREFIXES):
            if key not in self._imported:
                document = self._load(location)
                target = resolve_pointer(document, pointer, ref)
                name = ensure_unique(pointer.rsplit("/", 1)[-1], self._used_names)
                self._imported[key] = name
                self._imports[name] = self._rewrite(target, location)
            return {"$ref": f"#/components/schemas/{self._imported[key]}"}

        if key in self._inlining:
            raise CyclicReference([f"{loc}#{ptr}" for loc, ptr in self._inlining] + [ref])
        self._inlining.append(key)
        try:
            document = self._load(location)
            return self._rewrite(resolve_pointer(document, pointer, ref), location)
        finally:
            self._inlining.pop()

    def _locate(self, file_part: str, origin: str | None) -> str:
        if file_part.startswith(("http://", "https://")):
            return file_part
        if file_part.startswith("file://"):
            parsed = urlparse(file_part)
            path_str = url2pathname(parsed.path or "")
            if parsed.netloc and not path_str.startswith(parsed.netloc):
                path_str = parsed.netloc + path_str
            return str(Path(path_str).resolve())
        if origin is not None and origin.startswith(("http://", "https://")):
            return urljoin(origin, file_part)
        base_dir = Path(origin).parent if origin is not None else self._base_dir
        return str((base_dir / file_part).resolve())

    def _load(self, location: str) -> dict[str, Any]:
        if location.startswith(("http://", "https://")):
            return self._fetch_remote_url(location)
        return self._load_external_file(Path(location))

    def _load_external_file(self, file_path: Path) -> dict[str, Any]:
        """Load and cache YAML/JSON external file content."""
        key = str(file_path)
        if key not in self._file_cache:
            self._file_cache[key] = load_spec(file_path)
        return self._file_cache[key]

    def _fetch_remote_url(self, url: str) -> dict[str, Any]:
        """Fetch and cache a remote JSON/YAML document by URL."""
        if url in self._url_cache:
            return self._url_cache[url]

        if self._session is None:
            self._session = _build_session()
        try:
            resp = self._session.get(url, timeout=self._timeout)
            resp.raise_for_status()
        except requests.RequestException as e:
            raise SchemaError(f"Failed to fetch external document: {e}", url) from e

        try:
            data = resp.json()
        except ValueError:
            try:
                data = yaml.safe_load(resp.text)
            except yaml.YAMLError as e:
                raise SchemaError(f"Invalid document: {e}", url) from e

        if not isinstance(data, dict):
            raise SchemaError("Document root must be a mapping", url)
        self._url_cache[url] = data
        return data


def bundle_external_refs(spec: dict[str, Any], base_path: Path | None = None) -> dict[str, Any]:
    """Resolve every external $ref in ``spec`` relative to ``base_path``."""
    return ExternalRefBundler(base_path).bundle(spec)
