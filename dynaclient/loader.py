"""Load an OpenAPI/Swagger spec from a URL or a file path.

Extracts paths, schemas and the server base path. Handles both
Swagger 2.0 (``definitions``) and OpenAPI 3 (``components.schemas``).
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import httpx

from .errors import FetchError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SpecDocument:
    """Raw spec text plus its parsed form, identified by where it came from."""

    reference: str
    text: str
    document: dict[str, Any] = field(repr=False)


def is_url(reference: str) -> bool:
    return reference.startswith(("http://", "https://"))


def _fetch_url(reference: str, timeout: float | None, client: httpx.Client | None) -> str:
    try:
        if client is not None:
            response = client.get(reference, follow_redirects=True)
        else:
            response = httpx.get(reference, timeout=timeout, follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise FetchError(reference, f"HTTP {exc.response.status_code}") from exc
    except httpx.HTTPError as exc:
        raise FetchError(reference, str(exc) or type(exc).__name__) from exc
    return response.text


def _read_file(reference: str) -> str:
    try:
        return Path(reference).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise FetchError(reference, str(exc)) from exc


def load_spec(
    reference: str,
    *,
    timeout: float | None = None,
    client: httpx.Client | None = None,
) -> SpecDocument:
    """Fetch the spec text and parse it as JSON.

    URLs go through httpx (synchronously); anything else is read from
    disk. Every failure, including malformed content, is a FetchError.
    """
    reference = str(reference)
    if is_url(reference):
        text = _fetch_url(reference, timeout, client)
    else:
        text = _read_file(reference)

    try:
        document = json.loads(text)
    except json.JSONDecodeError as exc:
        raise FetchError(reference, f"malformed JSON: {exc}") from exc
    if not isinstance(document, dict):
        raise FetchError(reference, "spec root is not a JSON object")

    logger.info("Loaded spec %s (%d bytes)", reference, len(text))
    return SpecDocument(reference=reference, text=text, document=document)


def is_swagger2(spec: dict[str, Any]) -> bool:
    return str(spec.get("swagger", "")).startswith("2")


def get_paths(spec: dict[str, Any]) -> dict[str, Any]:
    """Extract paths from the spec."""
    return spec.get("paths", {})


def get_schemas(spec: dict[str, Any]) -> dict[str, Any]:
    """Extract model schemas from the spec."""
    if is_swagger2(spec):
        return spec.get("definitions", {})
    return spec.get("components", {}).get("schemas", {})


def get_base_path(spec: dict[str, Any]) -> str:
    """Default server address declared by the spec."""
    if is_swagger2(spec):
        schemes = spec.get("schemes") or ["https"]
        scheme = "https" if "https" in schemes else schemes[0]
        host = spec.get("host", "localhost")
        return f"{scheme}://{host}{spec.get('basePath', '')}".rstrip("/")
    servers = spec.get("servers") or [{"url": "http://localhost"}]
    return servers[0].get("url", "http://localhost").rstrip("/")


def resolve_ref(spec: dict[str, Any], ref: str) -> dict[str, Any]:
    """Resolve a $ref pointer in the spec."""
    parts = ref.lstrip("#/").split("/")
    node = spec
    for part in parts:
        node = node[part]
    return node


def ref_name(ref: str) -> str:
    """Last segment of a $ref pointer, e.g. ``#/definitions/Pet`` -> ``Pet``."""
    return ref.rsplit("/", 1)[-1]
