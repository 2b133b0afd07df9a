"""Load OpenAPI documents from a URL, a local file, or stdin.

This is the I/O edge of the pipeline: it turns raw JSON or YAML text into
the untyped dict tree that :class:`~oasgen.ir.builder.IRBuilder` walks.
Nothing downstream of this module touches the network or the disk until the
final commit.

* :func:`load_spec` -- load and parse a document from any supported source.
* :func:`parse_spec_text` -- parse already-read text (JSON first, then YAML).
* :func:`validate_openapi_version` -- accept 3.x, reject Swagger 2.x.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any

import httpx
import yaml

from oasgen.exceptions import SpecParseError

logger = logging.getLogger(__name__)


def load_spec(source: str | Path) -> dict[str, Any]:
    """Load an OpenAPI document from URL, file path, or stdin (``'-'``).

    Args:
        source: An http(s) URL, a file path, or ``'-'`` for stdin.

    Returns:
        The parsed document as a dictionary.

    Raises:
        SpecParseError: If the source cannot be read or parsed.
    """
    source = str(source)
    if source == "-":
        return _load_from_stdin()
    if source.startswith(("http://", "https://")):
        return _load_from_url(source)
    return _load_from_file(Path(source))


def _load_from_stdin() -> dict[str, Any]:
    try:
        content = sys.stdin.read()
    except OSError as exc:
        raise SpecParseError(f"Failed to read from stdin: {exc}") from exc
    if not content.strip():
        raise SpecParseError("No input received from stdin")
    return parse_spec_text(content)


def _load_from_url(url: str) -> dict[str, Any]:
    logger.debug("Fetching spec from %s", url)
    try:
        response = httpx.get(url, timeout=30.0, follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise SpecParseError(
            f"HTTP {exc.response.status_code} fetching spec from {url}"
        ) from exc
    except httpx.RequestError as exc:
        raise SpecParseError(f"Failed to fetch spec from {url}: {exc}") from exc

    content_type = response.headers.get("content-type", "")
    hint = ""
    if "json" in content_type:
        hint = "json"
    elif "yaml" in content_type or "yml" in content_type:
        hint = "yaml"
    return parse_spec_text(response.text, hint=hint)


def _load_from_file(path: Path) -> dict[str, Any]:
    if not path.is_file():
        raise SpecParseError(f"Spec file not found: {path}")
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SpecParseError(f"Failed to read spec file {path}: {exc}") from exc
    if not content.strip():
        raise SpecParseError(f"Spec file is empty: {path}")

    suffix = path.suffix.lower()
    hint = ""
    if suffix == ".json":
        hint = "json"
    elif suffix in (".yaml", ".yml"):
        hint = "yaml"
    return parse_spec_text(content, hint=hint)


def parse_spec_text(content: str, hint: str = "") -> dict[str, Any]:
    """Parse *content* as JSON or YAML.

    JSON is tried first unless *hint* is ``'yaml'``; valid JSON is also valid
    YAML, but the JSON parser is stricter and gives better errors. A
    ``'json'`` hint disables the YAML fallback.

    Raises:
        SpecParseError: If the content parses as neither format, or the top
            level is not a mapping.
    """
    json_error: Exception | None = None

    if hint != "yaml":
        try:
            return _require_mapping(json.loads(content))
        except json.JSONDecodeError as exc:
            if hint == "json":
                raise SpecParseError(f"Invalid JSON: {exc}") from exc
            json_error = exc

    try:
        return _require_mapping(yaml.safe_load(content))
    except yaml.YAMLError as exc:
        msg = "Failed to parse spec as JSON or YAML"
        if json_error:
            msg += f"\n  JSON error: {json_error}"
        msg += f"\n  YAML error: {exc}"
        raise SpecParseError(msg) from exc


def _require_mapping(result: Any) -> dict[str, Any]:
    if not isinstance(result, dict):
        kind = type(result).__name__ if result is not None else "empty document"
        raise SpecParseError(f"Spec must be a JSON/YAML object (got {kind})")
    return result


def validate_openapi_version(spec: dict[str, Any]) -> str:
    """Validate and return the ``openapi`` version string.

    Accepts any 3.x version; 3.0 and 3.1 are the tested ones.

    Raises:
        SpecParseError: For Swagger 2.x, a missing ``openapi`` field, or a
            non-3.x version.
    """
    if "swagger" in spec:
        raise SpecParseError(
            f"Swagger {spec['swagger']} is not supported. "
            "Only OpenAPI 3.x documents are supported. "
            "Consider converting with https://converter.swagger.io"
        )

    openapi_version = spec.get("openapi")
    if openapi_version is None:
        raise SpecParseError("Missing 'openapi' field. Is this an OpenAPI 3.x document?")

    version_str = str(openapi_version)
    if version_str.startswith("3."):
        return version_str

    raise SpecParseError(
        f"Unsupported OpenAPI version: {version_str}. Only OpenAPI 3.x is supported."
    )
