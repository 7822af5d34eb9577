"""
Tests for string, number and array compilation.
"""

import unittest

import pytest

from openapi_to_zod.config import GenerationContext, GeneratorConfig
from openapi_to_zod.graph import SchemaGraphBuilder
from openapi_to_zod.property_generator import PropertyGenerator, SchemaSession
from openapi_to_zod.validators import StringValidator


def make_generator(schemas=None, **options):
    schemas = schemas or {}
    context = GenerationContext.from_config(GeneratorConfig(**options))
    return PropertyGenerator(schemas, context, SchemaGraphBuilder(schemas).build())


def compile_schema(schema, **options):
    return make_generator(**options).compile(schema, SchemaSession()).render()


class TestStringValidation(unittest.TestCase):
    def test_plain_string(self):
        self.assertEqual(compile_schema({"type": "string"}), "z.string()")

    def test_constraints_follow_format_in_fixed_order(self):
        schema = {"type": "string", "format": "email", "pattern": "^[a-z@.]+$", "maxLength": 10, "minLength": 3}
        self.assertEqual(compile_schema(schema), "z.email().min(3).max(10).regex(/^[a-z@.]+$/)")

    def test_date_time_default(self):
        self.assertEqual(compile_schema({"type": "string", "format": "date-time"}), "z.iso.datetime()")

    def test_date_time_custom_regex(self):
        out = compile_schema(
            {"type": "string", "format": "date-time"},
            custom_date_time_format_regex="^\\d{4}-\\d{2}-\\d{2}$",
        )
        self.assertEqual(out, "z.string().regex(/^\\d{4}-\\d{2}-\\d{2}$/)")

    def test_pattern_slashes_are_escaped(self):
        self.assertEqual(compile_schema({"type": "string", "pattern": "^a/b$"}), "z.string().regex(/^a\\/b$/)")

    def test_escaped_patterns_are_cached_per_generator(self):
        generator = make_generator()
        generator.compile({"type": "string", "pattern": "^x/y$"}, SchemaSession())
        self.assertEqual(generator.context.pattern_cache.get("^x/y$"), "^x\\/y$")

    def test_format_table(self):
        self.assertEqual(compile_schema({"type": "string", "format": "uuid"}), "z.uuid()")
        self.assertEqual(compile_schema({"type": "string", "format": "uri"}), "z.url()")
        self.assertEqual(compile_schema({"type": "string", "format": "date"}), "z.iso.date()")
        self.assertEqual(compile_schema({"type": "string", "format": "ipv4"}), "z.ipv4()")
        self.assertIn("Must be a valid hostname", compile_schema({"type": "string", "format": "hostname"}))

    def test_unknown_format_is_plain_string(self):
        self.assertEqual(compile_schema({"type": "string", "format": "x-custom"}), "z.string()")

    def test_content_encoding_replaces_base(self):
        out = compile_schema({"type": "string", "contentEncoding": "base64", "minLength": 4})
        self.assertEqual(out, "z.base64().min(4)")

    def test_unknown_content_encoding(self):
        out = compile_schema({"type": "string", "contentEncoding": "rot13"})
        self.assertEqual(out, 'z.string().describe("Content encoding: rot13")')

    def test_media_type_refine(self):
        out = compile_schema({"type": "string", "contentMediaType": "application/json"})
        self.assertTrue(out.startswith("z.string().refine("))

    def test_describe(self):
        out = compile_schema({"type": "string", "description": "User name"}, use_describe=True)
        self.assertEqual(out, 'z.string().describe("User name")')

    def test_same_as_aliases_resolve(self):
        self.assertIsNotNone(StringValidator.lookup("formats", "uuid"))
        self.assertIsNone(StringValidator.lookup("formats", "nope"))


class TestNumberValidation(unittest.TestCase):
    def test_integer_range(self):
        out = compile_schema({"type": "integer", "minimum": 0, "maximum": 100})
        self.assertEqual(out, "z.number().int().gte(0).lte(100)")

    def test_boolean_exclusive_bounds(self):
        out = compile_schema({"type": "number", "minimum": 0, "exclusiveMinimum": True, "maximum": 10})
        self.assertEqual(out, "z.number().gt(0).lte(10)")

    def test_numeric_exclusive_bounds(self):
        out = compile_schema({"type": "number", "exclusiveMinimum": 0, "exclusiveMaximum": 1})
        self.assertEqual(out, "z.number().gt(0).lt(1)")

    def test_multiple_of(self):
        self.assertEqual(compile_schema({"type": "number", "multipleOf": 0.5}), "z.number().multipleOf(0.5)")


class TestArrayValidation(unittest.TestCase):
    def test_items_and_length(self):
        out = compile_schema({"type": "array", "items": {"type": "string"}, "minItems": 1, "maxItems": 5})
        self.assertEqual(out, "z.array(z.string()).min(1).max(5)")

    def test_missing_items(self):
        self.assertEqual(compile_schema({"type": "array"}), "z.array(z.unknown())")

    def test_unique_items(self):
        out = compile_schema({"type": "array", "items": {"type": "integer"}, "uniqueItems": True})
        self.assertEqual(
            out,
            "z.array(z.number().int()).refine((items) => new Set(items).size === items.length, "
            '{ message: "Array items must be unique" })',
        )

    def test_closed_tuple(self):
        out = compile_schema({"type": "array", "prefixItems": [{"type": "string"}, {"type": "number"}], "items": False})
        self.assertEqual(
            out,
            "z.tuple([z.string(), z.number()]).refine((arr) => arr.length <= 2, "
            '{ message: "Array must not have more than 2 items" })',
        )

    def test_tuple_rest(self):
        out = compile_schema({"type": "array", "prefixItems": [{"type": "string"}], "items": {"type": "boolean"}})
        self.assertEqual(out, "z.tuple([z.string()]).rest(z.boolean())")

    def test_contains(self):
        out = compile_schema(
            {"type": "array", "items": {}, "contains": {"type": "string"}, "minContains": 2, "maxContains": 3}
        )
        self.assertIn("z.string().safeParse(item).success", out)
        self.assertIn("matches >= 2 && matches <= 3", out)
        self.assertIn("Array must contain at least 2 and at most 3 matching item(s)", out)


class TestScalars(unittest.TestCase):
    def test_boolean(self):
        self.assertEqual(compile_schema({"type": "boolean"}), "z.boolean()")

    def test_const(self):
        self.assertEqual(compile_schema({"const": "fixed"}), 'z.literal("fixed")')

    def test_string_enum(self):
        self.assertEqual(compile_schema({"type": "string", "enum": ["a", "b"]}), 'z.enum(["a", "b"])')

    def test_numeric_enum(self):
        self.assertEqual(compile_schema({"enum": [1, 2]}), "z.union([z.literal(1), z.literal(2)])")

    def test_untyped(self):
        self.assertEqual(compile_schema({}), "z.unknown()")

    def test_boolean_schemas(self):
        generator = make_generator()
        self.assertEqual(generator.compile(True, SchemaSession()).render(), "z.unknown()")
        self.assertEqual(generator.compile(False, SchemaSession()).render(), "z.never()")

    def test_multiple_types(self):
        self.assertEqual(compile_schema({"type": ["string", "number"]}), "z.union([z.string(), z.number()])")
        self.assertEqual(
            compile_schema({"type": ["string", "number", "null"]}), "z.union([z.string(), z.number()]).nullable()"
        )

    def test_not(self):
        self.assertEqual(
            compile_schema({"not": {"type": "string"}}),
            'z.unknown().refine((val) => !z.string().safeParse(val).success, '
            '{ message: "Value must not match the excluded schema" })',
        )

    def test_not_with_base_type(self):
        out = compile_schema({"type": "string", "not": {"enum": ["admin"]}})
        self.assertTrue(out.startswith('z.string().refine((val) => !z.enum(["admin"])'))


class TestLeafCache(unittest.TestCase):
    def test_pure_leaves_are_memoized(self):
        generator = make_generator()
        schema = {"type": "string", "minLength": 2}
        first = generator.compile(schema, SchemaSession())
        second = generator.compile(dict(schema), SchemaSession())
        self.assertIs(first, second)
        self.assertEqual(generator.context.schema_cache.size(), 1)

    def test_references_are_not_memoized(self):
        schemas = {"User": {"type": "object", "properties": {"id": {"type": "string"}}}}
        generator = make_generator(schemas)
        generator.compile({"$ref": "#/components/schemas/User"}, SchemaSession())
        self.assertEqual(generator.context.schema_cache.size(), 0)

    def test_leaves_inside_named_schemas_are_not_memoized(self):
        generator = make_generator()
        generator.compile({"type": "string", "minLength": 2}, SchemaSession(name="User"))
        self.assertEqual(generator.context.schema_cache.size(), 0)


if __name__ == "__main__":
    pytest.main([__file__])
