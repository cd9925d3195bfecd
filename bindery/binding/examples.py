from typing import Any, Dict, Optional

_PLACEHOLDERS = {
    "string": "string",
    "integer": 0,
    "number": 0.0,
    "boolean": False,
    "null": None,
}

# Guard against self-referencing schemas
_MAX_DEPTH = 6


def generate_example(schema: Dict[str, Any], defs: Optional[Dict[str, Any]] = None, _depth: int = 0) -> Any:
    """
    Builds a placeholder instance that conforms to a JSON schema.
    Prefers what the schema itself offers (default, const, enum, examples)
    before falling back to type placeholders.
    """
    if defs is None:
        defs = schema.get("$defs", {})
    if _depth > _MAX_DEPTH:
        return None

    if "$ref" in schema:
        ref_name = schema["$ref"].split("/")[-1]
        return generate_example(defs.get(ref_name, {}), defs, _depth + 1)

    if "default" in schema and schema["default"] is not None:
        return schema["default"]
    if "const" in schema:
        return schema["const"]
    if schema.get("enum"):
        return schema["enum"][0]
    if schema.get("examples"):
        return schema["examples"][0]

    for combinator in ("anyOf", "oneOf", "allOf"):
        if combinator in schema:
            options = [s for s in schema[combinator] if s.get("type") != "null"] or schema[combinator]
            return generate_example(options[0], defs, _depth + 1)

    schema_type = schema.get("type")
    if isinstance(schema_type, list):
        schema_type = next((t for t in schema_type if t != "null"), "null")

    if schema_type == "object" or "properties" in schema:
        properties = schema.get("properties", {})
        return {name: generate_example(prop, defs, _depth + 1) for name, prop in properties.items()}
    if schema_type == "array":
        items = schema.get("items", {})
        return [generate_example(items, defs, _depth + 1)] if items else []
    return _PLACEHOLDERS.get(schema_type, None)
