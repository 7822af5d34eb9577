"""
Tests for allOf, oneOf and anyOf compilation.
"""

import logging
import unittest

import pytest

from openapi_to_zod.config import GenerationContext, GeneratorConfig
from openapi_to_zod.expression import Lazy, js_string
from openapi_to_zod.graph import SchemaGraphBuilder
from openapi_to_zod.property_generator import PropertyGenerator
from openapi_to_zod.validators import detect_all_of_conflicts


def ref(name):
    return {"$ref": f"#/components/schemas/{name}"}


def make_generator(schemas, **options):
    context = GenerationContext.from_config(GeneratorConfig(**options))
    return PropertyGenerator(schemas, context, SchemaGraphBuilder(schemas).build())


def compile_named(schemas, name, **options):
    return make_generator(schemas, **options).compile_named(name, schemas[name])


BASE = {"type": "object", "properties": {"id": {"type": "string"}}, "required": ["id"]}
EXTRA = {"type": "object", "properties": {"name": {"type": "string"}}}


def pet_schemas(dog_requires_kind=True, **pet_extra):
    cat = {"type": "object", "properties": {"kind": {"const": "cat"}}, "required": ["kind"]}
    dog = {"type": "object", "properties": {"kind": {"const": "dog"}}}
    if dog_requires_kind:
        dog["required"] = ["kind"]
    pet = {"oneOf": [ref("Cat"), ref("Dog")], "discriminator": {"propertyName": "kind"}, **pet_extra}
    return {"Cat": cat, "Dog": dog, "Pet": pet}


class TestAllOf(unittest.TestCase):
    def test_refs_are_extended(self):
        schemas = {"Base": BASE, "Extra": EXTRA, "Composite": {"allOf": [ref("Base"), ref("Extra")]}}
        expression, session = compile_named(schemas, "Composite")
        self.assertEqual(expression.render(), "baseSchema.extend(extraSchema.shape)")
        self.assertEqual(session.dependencies, ["Base", "Extra"])
        self.assertEqual(session.conflicts, [])

    def test_inline_branch_contributes_its_shape(self):
        schemas = {
            "Base": BASE,
            "Composite": {"allOf": [ref("Base"), {"type": "object", "properties": {"age": {"type": "integer"}}}]},
        }
        expression, _ = compile_named(schemas, "Composite")
        self.assertEqual(expression.render(), "baseSchema.extend({\n  age: z.number().int().optional()\n})")

    def test_nullable_comes_after_the_extension_chain(self):
        schemas = {"Base": BASE, "Extra": EXTRA, "Composite": {"allOf": [ref("Base"), ref("Extra")], "nullable": True}}
        expression, _ = compile_named(schemas, "Composite")
        self.assertEqual(expression.modifier_names(), ["extend", "nullable"])

    def test_default_nullable_does_not_touch_compositions(self):
        schemas = {"Base": BASE, "Extra": EXTRA, "Composite": {"allOf": [ref("Base"), ref("Extra")]}}
        expression, _ = compile_named(schemas, "Composite", default_nullable=True)
        self.assertEqual(expression.render(), "baseSchema.extend(extraSchema.shape)")

    def test_single_branch_alias(self):
        schemas = {"Base": BASE, "Alias": {"allOf": [ref("Base")]}}
        expression, _ = compile_named(schemas, "Alias", default_nullable=True)
        self.assertEqual(expression.render(), "baseSchema")

    def test_property_refs_follow_default_nullable(self):
        schemas = {
            "Base": BASE,
            "Holder": {
                "type": "object",
                "properties": {"direct": {"$ref": "#/components/schemas/Base"}, "wrapped": {"allOf": [ref("Base")]}},
                "required": ["direct", "wrapped"],
            },
        }
        expression, _ = compile_named(schemas, "Holder", default_nullable=True)
        out = expression.render()
        self.assertIn("direct: baseSchema.nullable()", out)
        self.assertIn("wrapped: baseSchema\n", out)

    def test_non_object_branches_are_intersected(self):
        schemas = {"Named": {"allOf": [{"type": "string"}, {"minLength": 2}]}}
        expression, _ = compile_named(schemas, "Named")
        self.assertEqual(expression.render(), "z.string().and(z.unknown())")

    def test_conflicts_are_reported(self):
        schemas = {
            "Base": BASE,
            "Composite": {"allOf": [ref("Base"), {"type": "object", "properties": {"id": {"type": "integer"}}}]},
        }
        expression, session = compile_named(schemas, "Composite")
        conflict = 'Property "id" has conflicting definitions in Base and inline'
        self.assertEqual(session.conflicts, [conflict])
        # The inline branch only redefines `id`, so nothing is left to extend with
        self.assertEqual(expression.modifier_names(), ["describe"])
        self.assertEqual(
            expression.render(), "baseSchema.describe(" + js_string("allOf composition conflict: " + conflict) + ")"
        )

    def test_first_definition_wins_over_inline_branch(self):
        inline = {"type": "object", "properties": {"id": {"type": "integer"}, "age": {"type": "integer"}}}
        schemas = {"Base": BASE, "Composite": {"allOf": [ref("Base"), inline]}}
        expression, _ = compile_named(schemas, "Composite")
        out = expression.render()
        self.assertTrue(out.startswith("baseSchema.extend({\n  age: z.number().int().optional()\n}).describe("))
        self.assertNotIn("id: z.number()", out)

    def test_first_definition_wins_over_referenced_branch(self):
        other = {"type": "object", "properties": {"id": {"type": "integer"}, "name": {"type": "string"}}}
        schemas = {"Base": BASE, "Other": other, "Composite": {"allOf": [ref("Base"), ref("Other")]}}
        expression, session = compile_named(schemas, "Composite")
        self.assertEqual(session.conflicts, ['Property "id" has conflicting definitions in Base and Other'])
        self.assertTrue(expression.render().startswith("baseSchema.extend(otherSchema.omit({ id: true }).shape)"))

    def test_deferred_first_branch_is_intersected(self):
        schemas = {
            "Parent": {"type": "object", "properties": {"children": {"type": "array", "items": ref("Child")}}},
            "Child": {"allOf": [ref("Parent"), {"type": "object", "properties": {"age": {"type": "integer"}}}]},
        }
        expression, _ = compile_named(schemas, "Child")
        self.assertIsInstance(expression.base, Lazy)
        self.assertEqual(expression.modifier_names(), ["and"])
        self.assertEqual(
            expression.render(),
            "z.lazy((): z.ZodTypeAny => parentSchema).and(z.object({\n  age: z.number().int().optional()\n}))",
        )

    def test_chain_stays_intersected_after_a_deferred_branch(self):
        schemas = {
            "Base": BASE,
            "Tree": {"type": "object", "properties": {"nodes": {"type": "array", "items": ref("Node")}}},
            "Node": {"allOf": [ref("Base"), ref("Tree"), EXTRA]},
        }
        expression, _ = compile_named(schemas, "Node")
        self.assertEqual(expression.modifier_names(), ["and", "and"])
        out = expression.render()
        self.assertTrue(out.startswith("baseSchema.and(z.lazy((): z.ZodTypeAny => treeSchema)).and(z.object("))

    def test_identical_definitions_do_not_conflict(self):
        generator = make_generator({"Base": BASE})
        branches = [ref("Base"), {"type": "object", "properties": {"id": {"type": "string"}}}]
        self.assertEqual(detect_all_of_conflicts(branches, generator), [])

    def test_conflicts_of_nested_allof(self):
        generator = make_generator({"Base": BASE, "Child": {"allOf": [ref("Base")]}})
        branches = [ref("Child"), {"properties": {"id": {"type": "number"}}}]
        self.assertEqual(
            detect_all_of_conflicts(branches, generator),
            ['Property "id" has conflicting definitions in Child and inline'],
        )


def test_conflicts_are_logged(caplog):
    schemas = {
        "Base": BASE,
        "Composite": {"allOf": [ref("Base"), {"type": "object", "properties": {"id": {"type": "integer"}}}]},
    }
    with caplog.at_level(logging.WARNING, logger="openapi_to_zod"):
        compile_named(schemas, "Composite")
    assert "allOf composition conflict in Composite" in caplog.text


class TestUnions(unittest.TestCase):
    def test_discriminated_union(self):
        expression, session = compile_named(pet_schemas(), "Pet")
        self.assertEqual(expression.render(), 'z.discriminatedUnion("kind", [catSchema, dogSchema])')
        self.assertEqual(session.warnings, [])

    def test_optional_discriminator_falls_back_to_union(self):
        expression, session = compile_named(pet_schemas(dog_requires_kind=False), "Pet")
        out = expression.render()
        self.assertTrue(out.startswith("z.union([catSchema, dogSchema]).describe("))
        self.assertIn("Discriminator 'kind' is optional in some variants", out)
        self.assertEqual(len(session.warnings), 1)
        self.assertTrue(session.warnings[0].startswith('Discriminator "kind" is not required in all variants of Pet'))

    def test_mapping_orders_branches(self):
        mapping = {"dog": "#/components/schemas/Dog", "cat": "#/components/schemas/Cat"}
        schemas = pet_schemas()
        schemas["Pet"]["discriminator"]["mapping"] = mapping
        expression, _ = compile_named(schemas, "Pet")
        self.assertEqual(expression.render(), 'z.discriminatedUnion("kind", [dogSchema, catSchema])')

    def test_mapping_adds_missing_branches(self):
        generator = make_generator(pet_schemas())
        branches = generator.resolve_discriminator_mapping({"dog": "#/components/schemas/Dog"}, [ref("Cat")])
        self.assertEqual(branches, [ref("Dog"), ref("Cat")])

    def test_empty_one_of(self):
        expression, session = compile_named({"Empty": {"oneOf": []}}, "Empty")
        self.assertEqual(expression.render(), "z.never()")
        self.assertTrue(session.warnings[0].startswith("Empty oneOf in schema Empty"))

    def test_single_branch_union_is_an_alias(self):
        expression, _ = compile_named({"Base": BASE, "One": {"anyOf": [ref("Base")]}}, "One")
        self.assertEqual(expression.render(), "baseSchema")

    def test_inline_any_of(self):
        expression, _ = compile_named({"Value": {"anyOf": [{"type": "string"}, {"type": "integer"}]}}, "Value")
        self.assertEqual(expression.render(), "z.union([z.string(), z.number().int()])")

    def test_nullable_union(self):
        expression, _ = compile_named(pet_schemas(nullable=True), "Pet")
        self.assertTrue(expression.render().endswith("]).nullable()"))


class TestUnevaluatedProperties(unittest.TestCase):
    def test_all_of_gets_catchall_and_refine(self):
        schemas = {
            "Base": BASE,
            "Extra": EXTRA,
            "Closed": {"allOf": [ref("Base"), ref("Extra")], "unevaluatedProperties": False},
        }
        expression, _ = compile_named(schemas, "Closed")
        self.assertEqual(expression.modifier_names(), ["extend", "catchall", "refine"])
        self.assertIn('new Set(["id", "name"]).has(key)', expression.render())
        self.assertIn("No unevaluated properties allowed", expression.render())

    def test_nullable_stays_last(self):
        schemas = {
            "Base": BASE,
            "Extra": EXTRA,
            "Closed": {"allOf": [ref("Base"), ref("Extra")], "unevaluatedProperties": False, "nullable": True},
        }
        expression, _ = compile_named(schemas, "Closed")
        self.assertEqual(expression.modifier_names(), ["extend", "catchall", "refine", "nullable"])

    def test_union_branches_accept_unknown_keys(self):
        expression, _ = compile_named(pet_schemas(unevaluatedProperties=False), "Pet")
        out = expression.render()
        self.assertIn("[catSchema.catchall(z.unknown()), dogSchema.catchall(z.unknown())]", out)
        self.assertEqual(expression.modifier_names(), ["refine"])

    def test_unevaluated_schema(self):
        schemas = {
            "Base": BASE,
            "Extra": EXTRA,
            "Typed": {"allOf": [ref("Base"), ref("Extra")], "unevaluatedProperties": {"type": "string"}},
        }
        expression, _ = compile_named(schemas, "Typed")
        self.assertIn("every((key) => z.string().safeParse(obj[key]).success)", expression.render())


if __name__ == "__main__":
    pytest.main([__file__])
