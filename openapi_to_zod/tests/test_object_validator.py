"""
Tests for object compilation: shapes, constructors and object-level rules.
"""

import unittest

import pytest

from openapi_to_zod.config import EmptyObjectBehavior, GenerationContext, GeneratorConfig, ObjectMode
from openapi_to_zod.graph import SchemaGraphBuilder
from openapi_to_zod.property_generator import PropertyGenerator, SchemaSession
from openapi_to_zod.validators.object_validator import property_count_message


def compile_schema(schema, schemas=None, **options):
    schemas = schemas or {}
    context = GenerationContext.from_config(GeneratorConfig(**options))
    generator = PropertyGenerator(schemas, context, SchemaGraphBuilder(schemas).build())
    return generator.compile(schema, SchemaSession(), is_top_level=True).render()


USER = {
    "type": "object",
    "properties": {
        "id": {"type": "string", "description": "Identifier"},
        "age": {"type": "integer"},
    },
    "required": ["id"],
}


class TestObjectShape(unittest.TestCase):
    def test_required_and_optional_properties(self):
        expected = "z.object({\n  /** Identifier */\n  id: z.string(),\n  age: z.number().int().optional()\n})"
        self.assertEqual(compile_schema(USER), expected)

    def test_no_descriptions(self):
        out = compile_schema(USER, include_descriptions=False)
        self.assertNotIn("Identifier", out)

    def test_additional_properties_false_is_strict(self):
        out = compile_schema({**USER, "additionalProperties": False}, mode=ObjectMode.LOOSE)
        self.assertTrue(out.startswith("z.strictObject({"))

    def test_typed_additional_properties(self):
        out = compile_schema({**USER, "additionalProperties": {"type": "string"}})
        self.assertTrue(out.endswith("}).catchall(z.string())"))

    def test_open_additional_properties(self):
        out = compile_schema({**USER, "additionalProperties": True})
        self.assertTrue(out.endswith("}).catchall(z.unknown())"))

    def test_non_identifier_keys_are_quoted(self):
        out = compile_schema({"type": "object", "properties": {"user-email": {"type": "string"}}})
        self.assertIn('"user-email": z.string().optional()', out)

    def test_properties_without_type(self):
        out = compile_schema({"properties": {"name": {"type": "string"}}, "required": ["name"]})
        self.assertEqual(out, "z.object({\n  name: z.string()\n})")


@pytest.mark.parametrize(
    "mode,constructor",
    [(ObjectMode.STRICT, "z.strictObject("), (ObjectMode.NORMAL, "z.object("), (ObjectMode.LOOSE, "z.looseObject(")],
)
def test_object_mode_selects_constructor(mode, constructor):
    assert compile_schema(USER, mode=mode).startswith(constructor)


@pytest.mark.parametrize(
    "behavior,expected",
    [
        (EmptyObjectBehavior.STRICT, "z.strictObject({})"),
        (EmptyObjectBehavior.LOOSE, "z.looseObject({})"),
        (EmptyObjectBehavior.RECORD, "z.record(z.string(), z.unknown())"),
    ],
)
def test_empty_object_behavior(behavior, expected):
    assert compile_schema({"type": "object"}, empty_object_behavior=behavior) == expected


def test_map_object():
    out = compile_schema({"type": "object", "additionalProperties": {"type": "integer"}})
    assert out == "z.record(z.string(), z.number().int())"


class TestObjectRules(unittest.TestCase):
    def test_property_count(self):
        out = compile_schema({**USER, "minProperties": 1})
        self.assertIn(".refine((obj) => Object.keys(obj).length >= 1", out)
        self.assertIn("Object must have at least 1 property", out)

    def test_property_count_messages(self):
        self.assertEqual(property_count_message(1, 3), "Object must have between 1 and 3 properties")
        self.assertEqual(property_count_message(None, 2), "Object must have at most 2 properties")

    def test_undeclared_required_properties(self):
        out = compile_schema({"type": "object", "properties": {"a": {"type": "string"}}, "required": ["a", "b-c"]})
        self.assertIn(".catchall(z.unknown())", out)
        self.assertIn('obj["b-c"] !== undefined', out)
        self.assertIn("Missing required fields: b-c", out)

    def test_pattern_properties(self):
        out = compile_schema(
            {
                "type": "object",
                "properties": {"id": {"type": "string"}},
                "patternProperties": {"^x-": {"type": "string"}, "^n_": {"type": "number"}},
            }
        )
        self.assertIn(".catchall(z.unknown()).superRefine(", out)
        self.assertIn('const patterns = ["^x-", "^n_"]', out)
        self.assertIn("const schemas = [z.string(), z.number()]", out)

    def test_property_names(self):
        out = compile_schema(
            {"type": "object", "properties": {}, "propertyNames": {"pattern": "^[a-z]+$", "maxLength": 8}}
        )
        self.assertIn("/^[a-z]+$/.test(key)", out)
        self.assertIn("must be at most 8 characters", out)

    def test_dependent_required(self):
        out = compile_schema(
            {
                "type": "object",
                "properties": {"credit_card": {"type": "string"}, "billing_address": {"type": "string"}},
                "dependentRequired": {"credit_card": ["billing_address"]},
            }
        )
        self.assertIn(".superRefine((obj, ctx) => { if (obj.credit_card !== undefined)", out)
        self.assertIn("When 'credit_card' is present", out)

    def test_schema_dependencies(self):
        out = compile_schema(
            {
                "type": "object",
                "properties": {"name": {"type": "string"}},
                "dependencies": {"name": {"properties": {"age": {"type": "integer"}}, "required": ["age"]}},
            }
        )
        self.assertIn("the object must satisfy additional constraints", out)
        self.assertIn("'name'", out)

    def test_if_then_else(self):
        out = compile_schema(
            {
                "type": "object",
                "properties": {"kind": {"type": "string"}},
                "if": {"properties": {"kind": {"const": "a"}}},
                "then": {"required": ["a"]},
                "else": {"required": ["b"]},
            }
        )
        self.assertIn("const matchesIf = ", out)
        self.assertIn("Conditional validation failed", out)

    def test_rules_keep_their_order(self):
        schema = {
            "type": "object",
            "properties": {"a": {"type": "string"}},
            "additionalProperties": {"type": "string"},
            "minProperties": 1,
            "required": ["a", "b"],
            "dependentRequired": {"a": ["b"]},
        }
        context = GenerationContext.from_config(GeneratorConfig())
        expression = PropertyGenerator({}, context).compile(schema, SchemaSession(), is_top_level=True)
        self.assertEqual(expression.modifier_names(), ["catchall", "refine", "refine", "superRefine"])


if __name__ == "__main__":
    pytest.main([__file__])
