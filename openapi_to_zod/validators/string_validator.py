"""
String validation.

Format, content-encoding and media-type validators are table driven; the
tables live in `string_formats.json` next to this module and are loaded once.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from ..config import GenerationContext
from ..expression import Expression, Literal, RegexLiteral, add_description, code, escape_pattern, message_options, z


class StringValidator:
    """Compiles `type: string` schemas."""

    # Class-level cache for the loaded format tables
    _tables: dict[str, dict[str, Any]] | None = None

    @classmethod
    def _load_tables(cls) -> dict[str, dict[str, Any]]:
        if cls._tables is None:
            table_file = Path(__file__).parent / "string_formats.json"
            with open(table_file, "r", encoding="utf-8") as f:
                cls._tables = json.load(f)
        return cls._tables

    @classmethod
    def lookup(cls, table: str, key: str) -> dict[str, Any] | None:
        """
        Look up an entry in one of the format tables, following `same_as` aliases.

        Args:
            table: "formats", "content_encodings" or "media_types"
            key: The format name, encoding or media type

        Returns:
            The table entry, or None when the key is unknown
        """
        entries = cls._load_tables()[table]
        entry = entries.get(key)
        while entry is not None and "same_as" in entry:
            entry = entries.get(entry["same_as"])
        return entry

    @staticmethod
    def _build_entry(entry: dict[str, Any], base: Expression | None = None) -> Expression:
        if base is None:
            base = z(entry.get("call", "string"))
        if "refine" in entry:
            base = base.then("refine", code(entry["refine"]), message_options(entry["message"]))
        return base

    def format_validation(self, schema: dict[str, Any], context: GenerationContext) -> Expression:
        """Return the base validator for the schema's `format` keyword."""
        fmt = schema.get("format") or ""
        if fmt == "date-time":
            return context.date_time_validation
        entry = self.lookup("formats", fmt)
        if entry is None:
            return z("string")
        return self._build_entry(entry)

    def _escaped_pattern(self, pattern: str, context: GenerationContext) -> str:
        escaped = context.pattern_cache.get(pattern)
        if escaped is None:
            escaped = escape_pattern(pattern)
            context.pattern_cache.set(pattern, escaped)
        return escaped

    def _apply_constraints(self, validation: Expression, schema: dict[str, Any], context: GenerationContext) -> Expression:
        if schema.get("minLength") is not None:
            validation = validation.then("min", Literal(schema["minLength"]))
        if schema.get("maxLength") is not None:
            validation = validation.then("max", Literal(schema["maxLength"]))
        if schema.get("pattern"):
            validation = validation.then("regex", RegexLiteral(self._escaped_pattern(schema["pattern"], context)))
        return validation

    def _encoding_validation(self, encoding: str) -> Expression:
        entry = self.lookup("content_encodings", encoding)
        if entry is None:
            return z("string").then("describe", Literal(f"Content encoding: {encoding}"))
        return self._build_entry(entry)

    def generate(self, schema: dict[str, Any], context: GenerationContext) -> Expression:
        """
        Compile a string schema.

        Length and pattern constraints follow the format base in a fixed order.
        A content encoding (without a format) replaces the base validator and
        the constraints are applied again on top of it; a content media type
        adds a refinement instead.

        Args:
            schema: The string schema
            context: Generation options (date-time validator, pattern cache)

        Returns:
            The string validator expression
        """
        validation = self._apply_constraints(self.format_validation(schema, context), schema, context)

        encoding = schema.get("contentEncoding")
        media_type = schema.get("contentMediaType")
        if encoding and not schema.get("format"):
            validation = self._apply_constraints(self._encoding_validation(encoding), schema, context)
        elif media_type:
            entry = self.lookup("media_types", media_type)
            # Other media types get no validation beyond the string itself
            if entry is not None:
                validation = self._build_entry(entry, validation)

        return add_description(validation, schema.get("description"), context.use_describe)
