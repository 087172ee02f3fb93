"""Declarative schema tree used to instruct and validate extractions.

The tree is compiled once from the pydantic models in
:mod:`invoice_parser.schemas.invoice` and never mutated afterwards, so the
module-level ``INVOICE_SCHEMA`` can be shared by concurrent extraction calls.
"""

from __future__ import annotations

import inspect
import json
import types
from typing import Annotated, Any, Literal, Union, get_args, get_origin

from pydantic import BaseModel, ConfigDict, Field

from invoice_parser.schemas.invoice import InvoiceData


class _Node(BaseModel):
    model_config = ConfigDict(frozen=True)


class ScalarNode(_Node):
    """A leaf value."""

    kind: Literal["string", "number", "boolean"]


class ArrayNode(_Node):
    """A repeated value. Absent arrays default to an empty list."""

    kind: Literal["array"] = "array"
    items: SchemaNode


class ObjectNode(_Node):
    """A record with an ordered set of named properties."""

    kind: Literal["object"] = "object"
    title: str
    description: str | None = None
    properties: tuple[FieldSpec, ...]

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(spec.name for spec in self.properties)

    def get(self, name: str) -> FieldSpec | None:
        for spec in self.properties:
            if spec.name == name:
                return spec
        return None


class FieldSpec(_Node):
    """A named property of an object node."""

    name: str
    node: SchemaNode
    nullable: bool = False
    description: str | None = None


SchemaNode = Annotated[Union[ScalarNode, ArrayNode, ObjectNode], Field(discriminator="kind")]

ArrayNode.model_rebuild()
ObjectNode.model_rebuild()
FieldSpec.model_rebuild()

_SCALAR_KINDS: dict[type, str] = {str: "string", int: "number", float: "number", bool: "boolean"}
_SCALAR_PLACEHOLDERS: dict[str, Any] = {"string": "", "number": 0, "boolean": False}


def compile_schema(model: type[BaseModel]) -> ObjectNode:
    """Compile a pydantic model into an immutable schema tree.

    Optional annotations become nullable properties, ``list[...]`` becomes an
    array node, nested models become object nodes. Field aliases are used as
    the wire names.

    Args:
        model: The pydantic model to compile

    Returns:
        The root object node

    Raises:
        TypeError: If a field uses an annotation with no schema equivalent
    """
    specs: list[FieldSpec] = []
    for name, info in model.model_fields.items():
        where = f"{model.__name__}.{name}"
        node, nullable = _compile_annotation(info.annotation, where)
        specs.append(
            FieldSpec(
                name=info.alias or name,
                node=node,
                nullable=nullable,
                description=info.description,
            )
        )

    description = None
    if model.__doc__:
        description = inspect.cleandoc(model.__doc__).split("\n\n")[0]

    return ObjectNode(title=model.__name__, description=description, properties=tuple(specs))


def _compile_annotation(annotation: Any, where: str) -> tuple[ScalarNode | ArrayNode | ObjectNode, bool]:
    origin = get_origin(annotation)

    if origin is Union or origin is types.UnionType:
        args = [a for a in get_args(annotation) if a is not type(None)]
        if len(args) != 1:
            raise TypeError(f"{where}: only Optional unions are supported, got {annotation!r}")
        node, _ = _compile_annotation(args[0], where)
        return node, True

    if origin is list:
        args = get_args(annotation)
        if not args:
            raise TypeError(f"{where}: list fields need an item type")
        items, items_nullable = _compile_annotation(args[0], f"{where}[]")
        if items_nullable:
            raise TypeError(f"{where}: nullable list items are not supported")
        return ArrayNode(items=items), False

    if isinstance(annotation, type) and issubclass(annotation, BaseModel):
        return compile_schema(annotation), False

    if annotation in _SCALAR_KINDS:
        return ScalarNode(kind=_SCALAR_KINDS[annotation]), False  # type: ignore[arg-type]

    raise TypeError(f"{where}: unsupported annotation {annotation!r}")


def to_json_schema(schema: ObjectNode, strict: bool = True) -> dict[str, Any]:
    """Render a schema tree as JSON Schema for structured-output requests.

    In strict mode every property is listed as required and nullability is
    expressed through the type, which is what strict structured-output
    endpoints accept.
    """
    properties = {spec.name: _field_json_schema(spec, strict) for spec in schema.properties}
    if strict:
        required = list(schema.names)
    else:
        required = [
            spec.name
            for spec in schema.properties
            if not spec.nullable and not isinstance(spec.node, ArrayNode)
        ]

    result: dict[str, Any] = {
        "type": "object",
        "properties": properties,
        "required": required,
        "additionalProperties": False,
    }
    if schema.description:
        result["description"] = schema.description
    return result


def _field_json_schema(spec: FieldSpec, strict: bool) -> dict[str, Any]:
    result = _node_json_schema(spec.node, strict)
    if spec.nullable:
        if isinstance(spec.node, ObjectNode):
            result = {"anyOf": [result, {"type": "null"}]}
        else:
            result["type"] = [result["type"], "null"]
    if spec.description:
        result["description"] = spec.description
    return result


def _node_json_schema(node: ScalarNode | ArrayNode | ObjectNode, strict: bool) -> dict[str, Any]:
    if isinstance(node, ObjectNode):
        return to_json_schema(node, strict)
    if isinstance(node, ArrayNode):
        return {"type": "array", "items": _node_json_schema(node.items, strict)}
    return {"type": node.kind}


def build_template(schema: ObjectNode) -> dict[str, Any]:
    """Build the blank record shown before any extraction has run.

    Nullable scalars are ``None``, required scalars get an empty placeholder,
    arrays are empty and nested objects are always expanded.
    """
    return {spec.name: _template_value(spec) for spec in schema.properties}


def _template_value(spec: FieldSpec) -> Any:
    if isinstance(spec.node, ArrayNode):
        return []
    if isinstance(spec.node, ObjectNode):
        return build_template(spec.node)
    if spec.nullable:
        return None
    return _SCALAR_PLACEHOLDERS[spec.node.kind]


INVOICE_SCHEMA: ObjectNode = compile_schema(InvoiceData)

# Serialized so the shared template cannot be mutated in place.
INITIAL_TEMPLATE: str = json.dumps(build_template(INVOICE_SCHEMA), indent=2, ensure_ascii=False)
