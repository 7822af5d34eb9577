"""
Configuration for the Zod schema generator.

`GeneratorConfig` holds user options and converts from/to plain dictionaries
(config files). `GenerationContext` is the immutable per-generator view of
those options plus the caches owned by one generator instance.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from .errors import ConfigurationError
from .expression import Call, Expression, RegexLiteral, escape_pattern, z
from .lru_cache import LRUCache

SCHEMA_CACHE_SIZE = 500


class SchemaType(str, Enum):
    """Which properties survive readOnly/writeOnly visibility filtering."""

    ALL = "all"
    REQUEST = "request"  # drops readOnly properties
    RESPONSE = "response"  # drops writeOnly properties


class ObjectMode(str, Enum):
    """Object constructor used for declared properties."""

    STRICT = "strict"  # z.strictObject
    NORMAL = "normal"  # z.object
    LOOSE = "loose"  # z.looseObject


class EmptyObjectBehavior(str, Enum):
    """How an object schema without declared properties is compiled."""

    STRICT = "strict"  # z.strictObject({})
    LOOSE = "loose"  # z.looseObject({})
    RECORD = "record"  # z.record(z.string(), z.unknown())


class EnumType(str, Enum):
    """How top-level enum schemas are emitted."""

    ZOD = "zod"  # z.enum([...])
    TYPESCRIPT = "typescript"  # export enum XEnum {...} plus z.enum(XEnum)


@dataclass
class ContextOptions:
    """Per-context overrides applied to request or response schemas."""

    mode: ObjectMode | None = None
    use_describe: bool | None = None
    include_descriptions: bool | None = None

    @staticmethod
    def from_dict(d: dict[str, Any]) -> ContextOptions:
        options = ContextOptions()
        for k, v in d.items():
            k = _KEY_ALIASES.get(k, k)
            if k == "mode":
                options.mode = ObjectMode(v)
            elif hasattr(options, k):
                setattr(options, k, v)
        return options

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {}
        if self.mode is not None:
            d["mode"] = self.mode.value
        if self.use_describe is not None:
            d["use_describe"] = self.use_describe
        if self.include_descriptions is not None:
            d["include_descriptions"] = self.include_descriptions
        return d


# camelCase spellings accepted in config files
_KEY_ALIASES = {
    "schemaType": "schema_type",
    "defaultNullable": "default_nullable",
    "emptyObjectBehavior": "empty_object_behavior",
    "enumType": "enum_type",
    "stripSchemaPrefix": "strip_schema_prefix",
    "includeDescriptions": "include_descriptions",
    "useDescribe": "use_describe",
    "customDateTimeFormatRegex": "custom_date_time_format_regex",
    "separateTypesFile": "separate_types_file",
    "typesImportPath": "types_import_path",
    "showStats": "show_stats",
    "cacheSize": "cache_size",
    "maxDepth": "max_depth",
}

_ENUM_FIELDS: dict[str, type[Enum]] = {
    "mode": ObjectMode,
    "schema_type": SchemaType,
    "empty_object_behavior": EmptyObjectBehavior,
    "enum_type": EnumType,
}


@dataclass
class GeneratorConfig:
    """Configuration options for schema generation."""

    # Object constructor for declared properties
    mode: ObjectMode = ObjectMode.NORMAL

    # Visibility filtering of readOnly/writeOnly properties
    schema_type: SchemaType = SchemaType.ALL

    # Property values become nullable unless they say otherwise
    default_nullable: bool = False

    empty_object_behavior: EmptyObjectBehavior = EmptyObjectBehavior.LOOSE
    enum_type: EnumType = EnumType.ZOD

    # Naming of generated constants ("api" + "User" + "Dto" -> apiUserDtoSchema)
    prefix: str | None = None
    suffix: str | None = None
    strip_schema_prefix: str | list[str] | None = None

    # JSDoc comments and .describe() calls
    include_descriptions: bool = True
    use_describe: bool = False

    # Regex source replacing z.iso.datetime() for date-time strings
    custom_date_time_format_regex: str | None = None

    # Types are imported from a separate file (typed z.lazy annotations)
    separate_types_file: bool = False
    types_import_path: str = "./types"

    # Emit a statistics comment block
    show_stats: bool = False

    # Capacity of the escaped-pattern cache
    cache_size: int = 1000

    # Maximum schema nesting depth before generation is aborted
    max_depth: int = 100

    request: ContextOptions = field(default_factory=ContextOptions)
    response: ContextOptions = field(default_factory=ContextOptions)

    @staticmethod
    def from_dict(d: dict[str, Any]) -> GeneratorConfig:
        """Create a config from a dictionary (snake_case or camelCase keys)."""
        config = GeneratorConfig()
        for k, v in d.items():
            k = _KEY_ALIASES.get(k, k)
            if k in ("request", "response") and isinstance(v, dict):
                setattr(config, k, ContextOptions.from_dict(v))
            elif k in _ENUM_FIELDS:
                try:
                    setattr(config, k, _ENUM_FIELDS[k](v))
                except ValueError as exc:
                    choices = ", ".join(member.value for member in _ENUM_FIELDS[k])
                    raise ConfigurationError(f"Invalid value {v!r} for '{k}' (expected one of: {choices})") from exc
            elif hasattr(config, k):
                setattr(config, k, v)
        return config

    def to_dict(self) -> dict[str, Any]:
        """Convert config to a dictionary."""
        return {
            "mode": self.mode.value,
            "schema_type": self.schema_type.value,
            "default_nullable": self.default_nullable,
            "empty_object_behavior": self.empty_object_behavior.value,
            "enum_type": self.enum_type.value,
            "prefix": self.prefix,
            "suffix": self.suffix,
            "strip_schema_prefix": self.strip_schema_prefix,
            "include_descriptions": self.include_descriptions,
            "use_describe": self.use_describe,
            "custom_date_time_format_regex": self.custom_date_time_format_regex,
            "separate_types_file": self.separate_types_file,
            "types_import_path": self.types_import_path,
            "show_stats": self.show_stats,
            "cache_size": self.cache_size,
            "max_depth": self.max_depth,
            "request": self.request.to_dict(),
            "response": self.response.to_dict(),
        }


def default_date_time_validation() -> Expression:
    return Expression(Call("z.iso.datetime"))


# JavaScript regex syntax that `re` spells differently
JS_NAMED_GROUP = re.compile(r"(?<!\\)\(\?<(?![=!])")
JS_BACKREFERENCE = re.compile(r"\\k<(\w+)>")
JS_PROPERTY_ESCAPE = re.compile(r"\\[pP]\{[^}]*\}")


def as_python_regex(pattern: str) -> str:
    """Rewrite JavaScript-only regex syntax so `re` can check the pattern.

    Named groups `(?<name>...)` and `\\k<name>` become their `(?P...)`
    spellings, and Unicode property escapes `\\p{...}` are checked as `\\w`.
    The rewritten text is only compiled, never emitted.
    """
    pattern = JS_NAMED_GROUP.sub("(?P<", pattern)
    pattern = JS_BACKREFERENCE.sub(r"(?P=\1)", pattern)
    return JS_PROPERTY_ESCAPE.sub(r"\\w", pattern)


def build_date_time_validation(pattern: str | None) -> Expression:
    """Build the validator used for `format: date-time` strings.

    The pattern is emitted as a JavaScript regex literal. It is checked with
    `re` after the JavaScript-only syntax has been rewritten.

    Args:
        pattern: Optional regex source replacing the ISO validator

    Returns:
        `z.iso.datetime()` or `z.string().regex(/.../)`

    Raises:
        ConfigurationError: If the pattern is not a valid regular expression
    """
    if not pattern:
        return default_date_time_validation()
    try:
        re.compile(as_python_regex(pattern))
    except re.error as exc:
        raise ConfigurationError(
            f"Invalid regular expression pattern for custom_date_time_format_regex: {pattern}. {exc}",
            {"pattern": pattern},
        ) from exc
    return z("string").then("regex", RegexLiteral(escape_pattern(pattern)))


@dataclass(frozen=True)
class GenerationContext:
    """Immutable options for one generator, plus the caches it owns.

    The caches are mutable but belong to exactly one context, so separate
    generators running side by side never observe each other's entries.
    """

    schema_type: SchemaType = SchemaType.ALL
    mode: ObjectMode = ObjectMode.NORMAL
    default_nullable: bool = False
    empty_object_behavior: EmptyObjectBehavior = EmptyObjectBehavior.LOOSE
    prefix: str | None = None
    suffix: str | None = None
    strip_schema_prefix: str | tuple[str, ...] | None = None
    include_descriptions: bool = True
    use_describe: bool = False
    date_time_validation: Expression = field(default_factory=default_date_time_validation)
    separate_types_file: bool = False
    max_depth: int = 100
    pattern_cache: LRUCache[str, str] = field(default_factory=lambda: LRUCache(1000), compare=False)
    schema_cache: LRUCache[str, Any] = field(default_factory=lambda: LRUCache(SCHEMA_CACHE_SIZE), compare=False)

    @staticmethod
    def from_config(config: GeneratorConfig) -> GenerationContext:
        """Build a context; invalid options fail here, before any generation."""
        if config.max_depth < 1:
            raise ConfigurationError(f"max_depth must be positive, got {config.max_depth}")
        if config.cache_size < 1:
            raise ConfigurationError(f"cache_size must be positive, got {config.cache_size}")
        strip = config.strip_schema_prefix
        return GenerationContext(
            schema_type=config.schema_type,
            mode=config.mode,
            default_nullable=config.default_nullable,
            empty_object_behavior=config.empty_object_behavior,
            prefix=config.prefix,
            suffix=config.suffix,
            strip_schema_prefix=strip if strip is None or isinstance(strip, str) else tuple(strip),
            include_descriptions=config.include_descriptions,
            use_describe=config.use_describe,
            date_time_validation=build_date_time_validation(config.custom_date_time_format_regex),
            separate_types_file=config.separate_types_file,
            max_depth=config.max_depth,
            pattern_cache=LRUCache(config.cache_size),
        )

    def for_options(self, options: ContextOptions) -> GenerationContext:
        """Return a view with request/response overrides applied, sharing the caches."""
        return replace(
            self,
            mode=options.mode if options.mode is not None else self.mode,
            use_describe=options.use_describe if options.use_describe is not None else self.use_describe,
            include_descriptions=(
                options.include_descriptions if options.include_descriptions is not None else self.include_descriptions
            ),
        )
