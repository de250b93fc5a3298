"""Helpers for hand-writing tool input schemas.

Schemas are plain JSON-schema dicts; these helpers only keep the common
object/property shapes terse and consistent.
"""

from enum import StrEnum
from typing import Any


class SchemaType(StrEnum):
    STRING = "string"
    NUMBER = "number"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    ARRAY = "array"
    OBJECT = "object"
    NULL = "null"


_MISSING = object()


def property_schema(
    type: SchemaType | str,
    description: str | None = None,
    *,
    enum: list[str] | None = None,
    default: Any = _MISSING,
    items: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Build the schema for a single property.

    Args:
        type: JSON schema type
        description: Optional human-readable description
        enum: Allowed values
        default: Default value (omitted when not given; None is a valid default)
        items: Item schema for array properties

    Returns:
        JSON-schema dict
    """
    schema: dict[str, Any] = {"type": str(SchemaType(type))}
    if description is not None:
        schema["description"] = description
    if enum is not None:
        schema["enum"] = list(enum)
    if default is not _MISSING:
        schema["default"] = default
    if items is not None:
        schema["items"] = items
    return schema


def object_schema(
    properties: dict[str, dict[str, Any]],
    required: list[str] | None = None,
    description: str | None = None,
) -> dict[str, Any]:
    """Build an object schema from property schemas.

    Raises:
        ValueError: If a required name is not among the properties
    """
    missing = [name for name in required or [] if name not in properties]
    if missing:
        raise ValueError(f"Required properties not defined: {', '.join(missing)}")

    schema: dict[str, Any] = {"type": "object", "properties": dict(properties)}
    if required:
        schema["required"] = list(required)
    if description is not None:
        schema["description"] = description
    return schema
