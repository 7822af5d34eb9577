"""
Exception hierarchy for openapi_to_zod.

All exceptions inherit from :class:`OpenApiToZodError`. Configuration problems
are raised when a generator is constructed, document problems before any code
is emitted, and compilation problems while a named schema is being compiled.

Subclass hierarchy::

    OpenApiToZodError
    +-- ConfigurationError
    +-- SpecValidationError
    |   +-- UnresolvedReferenceError
    +-- SchemaGenerationError
        +-- RecursionDepthError
"""

from __future__ import annotations

from typing import Any


class OpenApiToZodError(Exception):
    """Base exception for all generator errors.

    Args:
        message: Human-readable error description.
        context: Optional structured details (schema name, path, ref, ...).
    """

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message)
        self.context = context or {}


class ConfigurationError(OpenApiToZodError):
    """Raised for invalid generator options (e.g. a malformed date-time regex)."""


class SpecValidationError(OpenApiToZodError):
    """Raised when the input document cannot be used for generation."""


class UnresolvedReferenceError(SpecValidationError):
    """Raised when a $ref points to a schema that does not exist."""

    def __init__(self, ref: str, path: str = "", schema_name: str | None = None):
        ref_name = ref.split("/")[-1]
        location = f" at '{path}'" if path else ""
        super().__init__(
            f"Invalid reference{location}: '{ref}' points to non-existent schema '{ref_name}'",
            {"ref": ref, "ref_name": ref_name, "path": path, "schema_name": schema_name},
        )
        self.ref = ref
        self.ref_name = ref_name


class SchemaGenerationError(OpenApiToZodError):
    """Raised when a named schema cannot be compiled."""

    def __init__(self, message: str, schema_name: str | None = None, context: dict[str, Any] | None = None):
        super().__init__(message, context)
        self.schema_name = schema_name


class RecursionDepthError(SchemaGenerationError):
    """Raised when schema nesting exceeds the configured maximum depth."""
