"""
JSDoc comment generation for schemas and properties.

Schema text is escaped so that a description can never close the comment or
inject tags of its own.
"""

from __future__ import annotations

import json
import logging
from typing import Any

logger = logging.getLogger(__name__)


def escape_jsdoc(text: str) -> str:
    """Escape comment terminators and tag markers inside JSDoc text."""
    return text.replace("*/", "*\\/").replace("@", "\\@")


def _example_text(schema: dict[str, Any]) -> str | None:
    examples = schema.get("examples")
    try:
        if isinstance(examples, list) and examples:
            return "@example " + ", ".join(json.dumps(example, ensure_ascii=False) for example in examples)
        if "example" in schema:
            return "@example " + json.dumps(schema["example"], ensure_ascii=False)
    except (TypeError, ValueError) as exc:
        logger.warning("Could not serialize schema example: %s", exc)
    return None


def generate_jsdoc(schema: Any, name: str | None = None, include_descriptions: bool = True) -> str:
    """
    Build a single-line JSDoc comment for a schema.

    Args:
        schema: The schema to document
        name: Schema or property name; a title equal to it is not repeated
        include_descriptions: When False only `@deprecated` is kept

    Returns:
        The comment (without trailing newline), or an empty string
    """
    if not isinstance(schema, dict):
        return ""

    if not include_descriptions:
        return "/** @deprecated */" if schema.get("deprecated") else ""

    parts: list[str] = []

    title = schema.get("title")
    if isinstance(title, str) and title and title != name:
        parts.append(escape_jsdoc(title))

    description = schema.get("description")
    if isinstance(description, str) and description:
        parts.append(escape_jsdoc(description))

    example = _example_text(schema)
    if example:
        parts.append(example)

    if schema.get("deprecated"):
        parts.append("@deprecated")

    if not parts:
        return ""
    return f"/** {' '.join(parts)} */"


def add_conflict_warnings(jsdoc: str, conflicts: list[str]) -> str:
    """
    Attach an allOf conflict warning block to a JSDoc comment.

    Args:
        jsdoc: Existing comment (may be empty)
        conflicts: Conflict descriptions

    Returns:
        A multi-line comment containing the original text and the warnings
    """
    if not conflicts:
        return jsdoc
    lines = [" * @warning allOf property conflicts detected:"]
    lines.extend(f" * - {escape_jsdoc(conflict)}" for conflict in conflicts)
    block = "\n".join(lines)
    if jsdoc:
        return f"{jsdoc[: -len(' */')]}\n{block}\n */"
    return f"/**\n{block}\n */"
