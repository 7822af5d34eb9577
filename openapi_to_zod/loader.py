"""
Loading of OpenAPI documents and config files.

Documents are read from a local file or stdin ('-') and parsed as JSON or
YAML; the format is taken from the file extension when it has a known one,
otherwise JSON is tried first and YAML second.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigurationError, SpecValidationError

logger = logging.getLogger(__name__)

JSON_SUFFIXES = (".json",)
YAML_SUFFIXES = (".yaml", ".yml")


def load_spec(source: str | Path) -> dict[str, Any]:
    """Load an OpenAPI document from a file path, or from stdin for '-'.

    Args:
        source: File path or '-'

    Returns:
        The parsed document

    Raises:
        SpecValidationError: If the source cannot be read or parsed, or is a Swagger 2.x document
    """
    if str(source) == "-":
        content = sys.stdin.read()
        hint = ""
    else:
        content, hint = _read_file(Path(source), SpecValidationError)

    if not content.strip():
        raise SpecValidationError(f"OpenAPI document is empty: {source}")

    spec = parse_content(content, hint, SpecValidationError)
    check_openapi_version(spec)
    return spec


def load_config_file(path: str | Path) -> dict[str, Any]:
    """Load a generator config file (JSON or YAML) as a dictionary.

    Raises:
        ConfigurationError: If the file cannot be read or parsed
    """
    content, hint = _read_file(Path(path), ConfigurationError)
    if not content.strip():
        return {}
    return parse_content(content, hint, ConfigurationError)


def _read_file(path: Path, error: type[Exception]) -> tuple[str, str]:
    if not path.is_file():
        raise error(f"File not found: {path}")
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise error(f"Failed to read {path}: {exc}") from exc

    suffix = path.suffix.lower()
    if suffix in JSON_SUFFIXES:
        return content, "json"
    if suffix in YAML_SUFFIXES:
        return content, "yaml"
    return content, ""


def parse_content(content: str, hint: str = "", error: type[Exception] = SpecValidationError) -> dict[str, Any]:
    """Parse content as JSON or YAML.

    Valid JSON is also valid YAML, so JSON is tried first unless the hint
    says YAML.

    Args:
        content: Raw text
        hint: "json", "yaml" or "" (unknown)
        error: Exception class raised on failure

    Returns:
        The parsed mapping
    """
    json_error: Exception | None = None

    if hint != "yaml":
        try:
            return _expect_mapping(json.loads(content), error)
        except json.JSONDecodeError as exc:
            if hint == "json":
                raise error(f"Invalid JSON: {exc}") from exc
            json_error = exc

    try:
        return _expect_mapping(yaml.safe_load(content), error)
    except yaml.YAMLError as exc:
        msg = "Failed to parse document as JSON or YAML"
        if json_error:
            msg += f"\n  JSON error: {json_error}"
        msg += f"\n  YAML error: {exc}"
        raise error(msg) from exc


def _expect_mapping(result: Any, error: type[Exception]) -> dict[str, Any]:
    if not isinstance(result, dict):
        kind = type(result).__name__ if result is not None else "empty document"
        raise error(f"Document must be a JSON/YAML object (got {kind})")
    return result


def check_openapi_version(spec: dict[str, Any]) -> None:
    """Reject Swagger 2.x documents; warn about unknown OpenAPI versions."""
    if "swagger" in spec:
        raise SpecValidationError(
            f"Swagger {spec['swagger']} is not supported. Only OpenAPI 3.0.x and 3.1.x documents are supported."
        )
    version = spec.get("openapi")
    if version is None:
        logger.warning("Document has no 'openapi' field, treating it as OpenAPI 3.x")
    elif not str(version).startswith("3."):
        logger.warning("Unsupported OpenAPI version %s, generating anyway", version)
