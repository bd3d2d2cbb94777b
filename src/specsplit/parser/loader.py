"""Load OpenAPI documents from a URL, local file, or stdin.

This module is the document source of the pipeline: it handles all I/O for
fetching the raw contract and converting it into a Python dictionary, with
automatic JSON/YAML detection. The raw dict is then validated and frozen
into an :class:`~specsplit.models.OpenAPIDocument`.

The public functions are:

* :func:`load_source` -- Load and parse a document from any supported source.
* :func:`load_document` -- :func:`load_source` plus validation.

Missing files raise :class:`~specsplit.exceptions.DocumentNotFoundError`,
unparsable content raises :class:`~specsplit.exceptions.DocumentParseError`,
and both are :class:`~specsplit.exceptions.InputError` subclasses.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

import httpx
import yaml

from specsplit.exceptions import DocumentNotFoundError, DocumentParseError
from specsplit.models import OpenAPIDocument
from specsplit.output import debug


def load_document(source: str) -> OpenAPIDocument:
    """Read *source* and return the validated document.

    Args:
        source: A URL (http/https), file path, or ``'-'`` for stdin.

    Raises:
        InputError: If the document cannot be read, parsed, or validated.
    """
    raw = load_source(source)
    document = OpenAPIDocument.from_dict(raw)
    debug(
        f"Loaded OpenAPI {document.openapi} document '{document.info.get('title')}' "
        f"({len(document.paths)} paths)"
    )
    return document


def load_source(source: str) -> dict[str, Any]:
    """Load a document from URL, file path, or stdin (``'-'``).

    Supports JSON and YAML. Auto-detects the format from the extension or
    content type, falling back to trying both.
    """
    if source == "-":
        return _load_from_stdin()
    if source.startswith(("http://", "https://")):
        return _load_from_url(source)
    return _load_from_file(source)


def _load_from_stdin() -> dict[str, Any]:
    try:
        content = sys.stdin.read()
    except OSError as exc:
        raise DocumentParseError(f"Failed to read from stdin: {exc}") from exc

    if not content.strip():
        raise DocumentParseError("No input received from stdin")

    return _parse_content(content, hint="stdin")


def _load_from_url(url: str) -> dict[str, Any]:
    """Fetch a document over HTTP(S).

    A 404 is reported as not-found; every other HTTP or transport failure
    is a parse error from the caller's point of view (nothing usable came
    back).
    """
    try:
        response = httpx.get(url, timeout=30.0, follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        if exc.response.status_code == 404:
            raise DocumentNotFoundError(f"Document not found at {url}") from exc
        raise DocumentParseError(
            f"HTTP {exc.response.status_code} fetching document from {url}"
        ) from exc
    except httpx.RequestError as exc:
        raise DocumentParseError(f"Failed to fetch document from {url}: {exc}") from exc

    content_type = response.headers.get("content-type", "")
    hint = ""
    if "json" in content_type:
        hint = "json"
    elif "yaml" in content_type or "yml" in content_type:
        hint = "yaml"

    return _parse_content(response.text, hint=hint)


def _load_from_file(path: str) -> dict[str, Any]:
    file_path = Path(path)
    if not file_path.is_file():
        raise DocumentNotFoundError(f"Document not found: {path}")

    try:
        content = file_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise DocumentParseError(f"Failed to read document {path}: {exc}") from exc

    if not content.strip():
        raise DocumentParseError(f"Document is empty: {path}")

    suffix = file_path.suffix.lower()
    hint = ""
    if suffix == ".json":
        hint = "json"
    elif suffix in (".yaml", ".yml"):
        hint = "yaml"

    return _parse_content(content, hint=hint)


def _parse_content(content: str, hint: str = "") -> dict[str, Any]:
    """Parse content as JSON or YAML.

    Tries JSON first (unless hinted as YAML), then YAML. Valid JSON is also
    valid YAML, but the JSON parser is stricter and faster.

    Raises:
        DocumentParseError: If neither parser yields a mapping.
    """
    json_error: Exception | None = None

    if hint != "yaml":
        try:
            result = json.loads(content)
        except json.JSONDecodeError as exc:
            json_error = exc
            if hint == "json":
                raise DocumentParseError(f"Invalid JSON: {exc}") from exc
        else:
            return _require_mapping(result)

    try:
        result = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        msg = "Failed to parse document as JSON or YAML"
        if json_error:
            msg += f"\n  JSON error: {json_error}"
        msg += f"\n  YAML error: {exc}"
        raise DocumentParseError(msg) from exc

    return _require_mapping(result)


def _require_mapping(result: Any) -> dict[str, Any]:
    if not isinstance(result, dict):
        kind = type(result).__name__ if result is not None else "empty document"
        raise DocumentParseError(f"Document must be a JSON/YAML object (got {kind})")
    return result
