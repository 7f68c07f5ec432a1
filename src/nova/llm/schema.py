"""
schema.py

PURPOSE: Describe, convert and check the schemas used for structured output.
DEPENDENCIES: None (pure Python + json)

ARCHITECTURE NOTES:
Callers describe the shape they want in one of two ways:
- A simple mapping of field name -> type hint, e.g. {"name": "string", "age": "number"}
- A JSON schema object, e.g. {"type": "object", "properties": {...}, "required": [...]}

The HTTP driver turns either form into a JSON schema for the provider's
JSON-only response mode, and checks the decoded reply against it.
Type hints it does not recognize (including "") accept any value.
"""

import json
from collections.abc import Mapping
from typing import Any

from nova.llm.errors import StructuredOutputError

SCHEMA_INSTRUCTIONS = (
    "Your response must be formatted as a JSON object that conforms to the following schema: "
)

# JSON schema type name -> Python types accepted for it
JSON_TYPES: dict[str, tuple[type, ...]] = {
    "string": (str,),
    "number": (int, float),
    "integer": (int,),
    "boolean": (bool,),
    "array": (list,),
    "object": (dict,),
    "null": (type(None),),
}


def is_json_schema(schema: Any) -> bool:
    """Whether `schema` already looks like a JSON object schema."""
    return (
        isinstance(schema, Mapping)
        and schema.get("type") == "object"
        and isinstance(schema.get("properties"), Mapping)
    )


def describe_schema(schema: Any) -> str:
    """Render the instruction telling a model what shape to answer in."""
    try:
        rendered = json.dumps(schema, sort_keys=True, default=str)
    except (TypeError, ValueError):
        rendered = repr(schema)
    return SCHEMA_INSTRUCTIONS + rendered


def _property_schema(hint: Any) -> dict[str, Any]:
    if isinstance(hint, Mapping):
        return dict(hint)
    if isinstance(hint, str) and hint.lower() in JSON_TYPES:
        return {"type": hint.lower()}
    return {}


def to_json_schema(schema: Any) -> dict[str, Any]:
    """
    Convert a schema into a JSON object schema.

    Args:
        schema: A JSON schema, a mapping of field -> type hint, or anything else.

    Returns:
        A JSON schema. Non-mapping input yields an unconstrained object schema.
    """
    if is_json_schema(schema):
        return dict(schema)
    if not isinstance(schema, Mapping):
        return {"type": "object"}

    properties = {str(key): _property_schema(hint) for key, hint in schema.items()}
    return {
        "type": "object",
        "properties": properties,
        "required": list(properties),
    }


def _matches_type(value: Any, type_name: Any) -> bool:
    if not isinstance(type_name, str) or type_name not in JSON_TYPES:
        return True
    # bool is an int subclass, but JSON keeps them apart
    if isinstance(value, bool) and type_name in ("number", "integer"):
        return False
    return isinstance(value, JSON_TYPES[type_name])


def validate_structured(data: Any, schema: Any) -> dict[str, Any]:
    """
    Check a decoded structured reply against `schema`.

    Args:
        data: The decoded JSON reply.
        schema: The schema the reply was requested with.

    Returns:
        The reply, unchanged.

    Raises:
        StructuredOutputError: If the reply is not an object, misses a
            required key, or has a value of the wrong JSON type.
    """
    if not isinstance(data, dict):
        raise StructuredOutputError(
            f"Structured response must be a JSON object, got {type(data).__name__}"
        )

    json_schema = to_json_schema(schema)
    properties: Mapping[str, Any] = json_schema.get("properties", {})

    missing = [key for key in json_schema.get("required", []) if key not in data]
    if missing:
        raise StructuredOutputError(
            f"Structured response is missing required keys: {', '.join(missing)}"
        )

    for key, prop in properties.items():
        if key not in data or not isinstance(prop, Mapping):
            continue
        if not _matches_type(data[key], prop.get("type")):
            raise StructuredOutputError(
                f"Structured response field '{key}' should be of type {prop['type']}, "
                f"got {type(data[key]).__name__}"
            )

    return data
