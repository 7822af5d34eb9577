"""
Zod expression tree.

Compiled schemas are kept as a tree of immutable nodes (a base constructor
followed by an ordered list of modifier calls) and only turned into
TypeScript source text by :class:`ExpressionSerializer`. Ordering properties
such as "nullable comes after the extension chain" can therefore be checked
on the tree itself.
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

# Property keys that can be written without quotes in an object literal
VALID_IDENTIFIER = re.compile(r"^[a-zA-Z_$][a-zA-Z0-9_$]*$")


def js_string(value: str) -> str:
    """Quote a string as a JavaScript string literal."""
    return json.dumps(value, ensure_ascii=False)


def js_value(value: Any) -> str:
    """Render a JSON-compatible value as a JavaScript literal."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return json.dumps(value, ensure_ascii=False)


def escape_pattern(pattern: str) -> str:
    """Escape a regex source for embedding in a `/.../` literal.

    Existing escapes are kept as-is; bare slashes and line breaks, which would
    end the literal, are escaped.
    """
    out: list[str] = []
    escaped = False
    for char in pattern:
        if escaped:
            out.append(char)
            escaped = False
        elif char == "\\":
            out.append(char)
            escaped = True
        elif char == "/":
            out.append("\\/")
        elif char == "\n":
            out.append("\\n")
        elif char == "\r":
            out.append("\\r")
        else:
            out.append(char)
    return "".join(out)


def property_key(name: str) -> str:
    """Return an object-literal key, quoted only when needed."""
    return name if VALID_IDENTIFIER.match(name) else js_string(name)


def property_access(target: str, name: str) -> str:
    """Return `target.name` or `target["name"]` for a property read."""
    return f"{target}.{name}" if VALID_IDENTIFIER.match(name) else f"{target}[{js_string(name)}]"


@dataclass(frozen=True)
class Node:
    """Base class for all expression tree nodes."""

    def render(self) -> str:
        return ExpressionSerializer().serialize(self)

    def children(self) -> tuple[Node, ...]:
        return ()

    def walk(self) -> Iterator[Node]:
        """Yield this node and every node below it, depth first."""
        yield self
        for child in self.children():
            yield from child.walk()


@dataclass(frozen=True)
class Identifier(Node):
    """A reference to a generated constant, e.g. `userSchema`."""

    name: str = ""


@dataclass(frozen=True)
class Member(Node):
    """Attribute access on another node, e.g. `baseSchema.shape`."""

    target: Node = field(default_factory=Identifier)
    attribute: str = ""

    def children(self) -> tuple[Node, ...]:
        return (self.target,)


@dataclass(frozen=True)
class Literal(Node):
    """A JSON-compatible literal value."""

    value: Any = None


@dataclass(frozen=True)
class RegexLiteral(Node):
    """A regex literal; `pattern` is already escaped for source output."""

    pattern: str = ""


@dataclass(frozen=True)
class ArrayLiteral(Node):
    """An array literal of nodes."""

    items: tuple[Node, ...] = ()

    def children(self) -> tuple[Node, ...]:
        return self.items


@dataclass(frozen=True)
class ShapeProperty:
    """One entry of an object shape."""

    name: str
    value: Node
    jsdoc: str = ""


@dataclass(frozen=True)
class Shape(Node):
    """An object literal mapping property names to validators."""

    properties: tuple[ShapeProperty, ...] = ()

    def children(self) -> tuple[Node, ...]:
        return tuple(prop.value for prop in self.properties)

    def property_names(self) -> list[str]:
        return [prop.name for prop in self.properties]


@dataclass(frozen=True)
class Code(Node):
    """Verbatim TypeScript with embedded expression nodes (refinement bodies)."""

    parts: tuple[str | Node, ...] = ()

    def children(self) -> tuple[Node, ...]:
        return tuple(part for part in self.parts if isinstance(part, Node))


@dataclass(frozen=True)
class Call(Node):
    """A constructor call such as `z.string()` or `z.union([...])`."""

    callee: str = ""
    args: tuple[Node, ...] = ()

    def children(self) -> tuple[Node, ...]:
        return self.args


@dataclass(frozen=True)
class Lazy(Node):
    """Deferred evaluation of a referenced schema: `z.lazy((): T => xSchema)`."""

    target: Identifier = field(default_factory=Identifier)
    annotation: str = "z.ZodTypeAny"

    def children(self) -> tuple[Node, ...]:
        return (self.target,)


@dataclass(frozen=True)
class Modifier:
    """A chained method call, e.g. `.nullable()` or `.extend(shape)`."""

    name: str
    args: tuple[Node, ...] = ()


@dataclass(frozen=True)
class Expression(Node):
    """A base node followed by an ordered chain of modifier calls."""

    base: Node = field(default_factory=Identifier)
    modifiers: tuple[Modifier, ...] = ()

    def then(self, name: str, *args: Node) -> Expression:
        """Return a new expression with one more modifier call appended."""
        return Expression(self.base, self.modifiers + (Modifier(name, tuple(args)),))

    def modifier_names(self) -> list[str]:
        return [modifier.name for modifier in self.modifiers]

    def has_modifier(self, name: str) -> bool:
        return any(modifier.name == name for modifier in self.modifiers)

    @property
    def callee(self) -> str | None:
        """The constructor name of the base call, if the base is a call."""
        return self.base.callee if isinstance(self.base, Call) else None

    @property
    def is_nullable(self) -> bool:
        return bool(self.modifiers) and self.modifiers[-1].name == "nullable"

    def children(self) -> tuple[Node, ...]:
        nodes: list[Node] = [self.base]
        for modifier in self.modifiers:
            nodes.extend(modifier.args)
        return tuple(nodes)


# Builders


def z(name: str, *args: Node) -> Expression:
    """Build `z.<name>(args...)`."""
    return Expression(Call(f"z.{name}", tuple(args)))


def ref(name: str) -> Expression:
    """Build a bare reference to a generated schema constant."""
    return Expression(Identifier(name))


def lazy(name: str, annotation: str) -> Expression:
    return Expression(Lazy(Identifier(name), annotation))


def code(*parts: str | Node) -> Code:
    return Code(tuple(parts))


def message_options(message: str) -> Code:
    """Build the `{ message: "..." }` options argument of a refinement."""
    return Code((f"{{ message: {js_string(message)} }}",))


def as_expression(node: Node) -> Expression:
    return node if isinstance(node, Expression) else Expression(node)


def wrap_nullable(expression: Expression, nullable: bool) -> Expression:
    return expression.then("nullable") if nullable else expression


def add_description(expression: Expression, description: Any, use_describe: bool) -> Expression:
    """Append `.describe("...")` when enabled and a description exists."""
    if not use_describe or not description or not isinstance(description, str):
        return expression
    return expression.then("describe", Literal(description))


class ExpressionSerializer:
    """Serializes expression trees to TypeScript source text."""

    INDENT = "  "

    def serialize(self, node: Node, level: int = 0) -> str:
        """Serialize a node; `level` is the indentation of the enclosing line."""
        if isinstance(node, Expression):
            text = self.serialize(node.base, level)
            for modifier in node.modifiers:
                args = ", ".join(self.serialize(arg, level) for arg in modifier.args)
                text += f".{modifier.name}({args})"
            return text
        if isinstance(node, Call):
            args = ", ".join(self.serialize(arg, level) for arg in node.args)
            return f"{node.callee}({args})"
        if isinstance(node, Identifier):
            return node.name
        if isinstance(node, Member):
            return f"{self.serialize(node.target, level)}.{node.attribute}"
        if isinstance(node, Lazy):
            return f"z.lazy((): {node.annotation} => {node.target.name})"
        if isinstance(node, Literal):
            return js_value(node.value)
        if isinstance(node, RegexLiteral):
            return f"/{node.pattern}/"
        if isinstance(node, ArrayLiteral):
            return "[" + ", ".join(self.serialize(item, level) for item in node.items) + "]"
        if isinstance(node, Shape):
            return self._serialize_shape(node, level)
        if isinstance(node, Code):
            return "".join(part if isinstance(part, str) else self.serialize(part, level) for part in node.parts)
        raise TypeError(f"Cannot serialize expression node {type(node).__name__}")

    def _serialize_shape(self, shape: Shape, level: int) -> str:
        if not shape.properties:
            return "{}"
        inner = self.INDENT * (level + 1)
        entries = []
        for prop in shape.properties:
            value = self.serialize(prop.value, level + 1)
            entry = f"{inner}{property_key(prop.name)}: {value}"
            if prop.jsdoc:
                entry = f"{inner}{prop.jsdoc}\n{entry}"
            entries.append(entry)
        return "{\n" + ",\n".join(entries) + "\n" + self.INDENT * level + "}"
