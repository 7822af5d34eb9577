"""
Identifier naming for generated code.

Turns schema names, $ref paths and enum values into TypeScript identifiers:
camelCase schema constants, PascalCase type names and collision-free enum
member names.
"""

from __future__ import annotations

import fnmatch
import logging
import re
from collections.abc import Iterable

logger = logging.getLogger(__name__)

# Everything that is not an identifier character or a word separator
_SANITIZE_PATTERN = re.compile(r"[^a-zA-Z0-9._\-\s]+")
_WORD_SEPARATOR_PATTERN = re.compile(r"[.\-_\s]+")
_SIMPLE_IDENTIFIER_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9]*$")
_NON_IDENTIFIER_PATTERN = re.compile(r"[^a-zA-Z0-9]+")
_GLOB_CHARS_PATTERN = re.compile(r"[*?\[\]{}!]")
_NUMERIC_PATTERN = re.compile(r"^\d+(\.\d+)?$")

SORT_SUFFIXES = {"+": "Asc", "-": "Desc"}


def _split_words(text: str) -> list[str]:
    sanitized = _SANITIZE_PATTERN.sub("_", text)
    return [word for word in _WORD_SEPARATOR_PATTERN.split(sanitized) if word]


def _upper_first(text: str) -> str:
    return text[:1].upper() + text[1:]


def _lower_first(text: str) -> str:
    return text[:1].lower() + text[1:]


def to_camel_case(text: str, prefix: str | None = None, suffix: str | None = None) -> str:
    """Convert a schema name to a camelCase identifier.

    Dotted, dashed and underscored names are split into words
    ("Company.Models.User" -> "companyModelsUser"). A prefix is lower-cased
    at its first character and prepended; a suffix is capitalized and appended.

    Args:
        text: Schema name to convert
        prefix: Optional prefix (e.g. "api" -> "apiUser")
        suffix: Optional suffix (e.g. "dto" -> "userDto")

    Returns:
        camelCase identifier
    """
    words = _split_words(text)
    if not words:
        name = _lower_first(text)
    else:
        name = _lower_first(words[0]) + "".join(_upper_first(word) for word in words[1:])

    if prefix:
        name = _lower_first(prefix) + _upper_first(name)
    if suffix:
        name = name + _upper_first(suffix)
    return name


def to_pascal_case(value: str | int | float) -> str:
    """Convert a schema name or value to a PascalCase identifier.

    Names that already look like identifiers only get their first character
    upper-cased, so "userProfile" stays "UserProfile".

    Args:
        value: Name or value to convert

    Returns:
        PascalCase identifier, never empty and never starting with a digit
    """
    text = str(value)
    if _SIMPLE_IDENTIFIER_PATTERN.match(text):
        return _upper_first(text)

    words = _split_words(text)
    if not words:
        return "Value"
    result = "".join(_upper_first(word) for word in words)
    if result[0].isdigit():
        result = f"N{result}"
    return result


def resolve_ref_name(ref: str) -> str:
    """Return the schema name a $ref points to (its last path segment)."""
    return ref.split("/")[-1]


def _is_glob(pattern: str) -> bool:
    return bool(_GLOB_CHARS_PATTERN.search(pattern))


def _strip_single_prefix(text: str, pattern: str) -> str | None:
    """Strip one pattern, returning None when it does not match."""
    if _is_glob(pattern):
        try:
            regex = re.compile(fnmatch.translate(pattern))
        except re.error:
            logger.warning('Invalid glob pattern "%s": pattern is malformed', pattern)
            return None
        longest = 0
        for end in range(1, len(text) + 1):
            if regex.match(text[:end]):
                longest = end
        if longest == 0:
            return None
        return text[longest:]

    if pattern and text.startswith(pattern):
        return text[len(pattern) :]
    return None


def strip_prefix(text: str, pattern: str | Iterable[str] | None) -> str:
    """Strip a literal or glob prefix from a schema name.

    Glob patterns strip the longest matching prefix. When several patterns are
    given, the first one that matches wins. A name is never stripped to
    nothing: an empty result returns the input unchanged.

    Examples:
        strip_prefix("Company.Models.User", "Company.Models.") -> "User"
        strip_prefix("api_v2_UserSchema", "api_v[0-9]_") -> "UserSchema"

    Args:
        text: Name to strip
        pattern: Literal prefix, glob pattern, or a list of them

    Returns:
        The stripped name, or the original name if nothing matched
    """
    if not pattern:
        return text
    patterns = [pattern] if isinstance(pattern, str) else list(pattern)
    for candidate in patterns:
        stripped = _strip_single_prefix(text, candidate)
        if stripped is None:
            continue
        return stripped or text
    return text


def allocate_name(candidate: str, used_keys: set[str] | None) -> str:
    """Reserve candidate in used_keys, appending the smallest free integer >= 2."""
    if used_keys is None:
        return candidate
    name = candidate
    counter = 2
    while name in used_keys:
        name = f"{candidate}{counter}"
        counter += 1
    used_keys.add(name)
    return name


def _split_sort_sign(raw: str) -> tuple[str, str]:
    if raw[:1] in SORT_SUFFIXES:
        return raw[1:], SORT_SUFFIXES[raw[0]]
    return raw, ""


def string_to_enum_member(raw: str, used_keys: set[str] | None = None) -> str:
    """Convert a string enum value to a TypeScript enum member name.

    A leading "+" or "-" (sort direction) becomes an "Asc" / "Desc" suffix.
    Each word is title-cased, so "externalKey" -> "Externalkey" and
    "foo_bar" -> "FooBar". Empty input maps to "Empty", all-symbol input to
    "Value", and names starting with a digit get a "Value" prefix.

    Args:
        raw: The enum value
        used_keys: Names already allocated in this enum; updated in place

    Returns:
        A member name not present in used_keys
    """
    if raw == "":
        return allocate_name("Empty", used_keys)

    body, suffix = _split_sort_sign(raw)
    words = [word for word in _NON_IDENTIFIER_PATTERN.split(body.replace("_", " ")) if word]
    base = "".join(word[0].upper() + word[1:].lower() for word in words)

    if not base:
        base = "" if suffix else "Value"
    elif base[0].isdigit():
        base = f"Value{base}"

    return allocate_name(f"{base}{suffix}", used_keys)


def numeric_to_enum_member(raw: int | float | str, used_keys: set[str] | None = None) -> str:
    """Convert a numeric enum value to a TypeScript enum member name.

    Examples:
        5 -> "Value5", -5 -> "ValueNeg5", "+5" -> "Value5Asc", "-5" -> "Value5Desc"

    Args:
        raw: The enum value (number or numeric string)
        used_keys: Names already allocated in this enum; updated in place

    Returns:
        A member name not present in used_keys
    """
    suffix = ""
    if isinstance(raw, str):
        body, suffix = _split_sort_sign(raw.strip())
        digits = body
    elif raw < 0:
        digits = f"Neg{-raw}"
    else:
        digits = str(raw)

    digits = _NON_IDENTIFIER_PATTERN.sub("_", digits).strip("_")
    return allocate_name(f"Value{digits}{suffix}", used_keys)


def is_numeric_value(value: object) -> bool:
    """Return True for numbers and numeric strings (bools excluded)."""
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return True
    return isinstance(value, str) and bool(_NUMERIC_PATTERN.match(value.lstrip("+-")))
