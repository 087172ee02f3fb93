"""Validation and defaulting of extracted objects against the schema tree."""

import math
from collections.abc import Mapping
from typing import Any

from invoice_parser.core.exceptions import SchemaViolation, TypeMismatch
from invoice_parser.schemas.registry import (
    INVOICE_SCHEMA,
    ArrayNode,
    FieldSpec,
    ObjectNode,
    ScalarNode,
)

_PRIMITIVE_NAMES = {"string": "a string", "number": "a number", "boolean": "a boolean"}


def normalize(candidate: Any, schema: ObjectNode = INVOICE_SCHEMA) -> dict[str, Any]:
    """Bring an extracted object into exact conformance with a schema.

    Properties are visited depth-first in declaration order, so the first
    offending path is reported deterministically. Absent or null arrays
    become ``[]`` and absent nullable properties become ``None``; a missing
    non-nullable property is a :class:`SchemaViolation`. Undeclared keys are
    dropped. Values are never coerced: ``"47200"`` for a number is a
    :class:`TypeMismatch`.

    Args:
        candidate: The decoded object returned by the extraction backend
        schema: The schema tree to normalize against

    Returns:
        A new dict with exactly the schema's keys, in schema order

    Raises:
        SchemaViolation: If a non-nullable property is missing or null
        TypeMismatch: If a value has the wrong primitive type
    """
    if not isinstance(candidate, Mapping):
        raise TypeMismatch("$", f"expected an object, got {_describe(candidate)}")
    return _normalize_object(candidate, schema, "")


def _normalize_object(value: Mapping[str, Any], node: ObjectNode, path: str) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for spec in node.properties:
        child_path = f"{path}.{spec.name}" if path else spec.name
        raw = value.get(spec.name)
        if raw is None:
            result[spec.name] = _default(spec, child_path, present=spec.name in value)
        else:
            result[spec.name] = _normalize_value(raw, spec.node, child_path)
    return result


def _default(spec: FieldSpec, path: str, present: bool) -> Any:
    if isinstance(spec.node, ArrayNode):
        return []
    if spec.nullable:
        return None
    if present:
        raise SchemaViolation(path, "required field is null")
    raise SchemaViolation(path, "required field is missing")


def _normalize_value(value: Any, node: ScalarNode | ArrayNode | ObjectNode, path: str) -> Any:
    if isinstance(node, ObjectNode):
        if not isinstance(value, Mapping):
            raise TypeMismatch(path, f"expected an object, got {_describe(value)}")
        return _normalize_object(value, node, path)

    if isinstance(node, ArrayNode):
        if not isinstance(value, list):
            raise TypeMismatch(path, f"expected a list, got {_describe(value)}")
        items: list[Any] = []
        for index, item in enumerate(value):
            item_path = f"{path}[{index}]"
            if item is None:
                raise TypeMismatch(item_path, "list items must not be null")
            items.append(_normalize_value(item, node.items, item_path))
        return items

    if isinstance(node, ScalarNode):
        if not _matches(value, node.kind):
            raise TypeMismatch(
                path, f"expected {_PRIMITIVE_NAMES[node.kind]}, got {_describe(value)}"
            )
        return value

    raise TypeError(f"Unknown schema node {node!r}")


def _matches(value: Any, kind: str) -> bool:
    if kind == "string":
        return isinstance(value, str)
    if kind == "number":
        # bool is an int subclass
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return False
        return math.isfinite(value)
    if kind == "boolean":
        return isinstance(value, bool)
    return False


def _describe(value: Any) -> str:
    if isinstance(value, str):
        return f"string {value!r}"
    return type(value).__name__
