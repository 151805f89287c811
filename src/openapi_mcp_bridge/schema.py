"""
Schema synthesis: OpenAPI schema nodes to tool input JSON Schemas.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .dereferencer import CIRCULAR_MARKER
from .models import JSON_MEDIA_TYPES, Parameter, PARAMETER_LOCATIONS, RequestBody, first_type

logger = logging.getLogger(__name__)

REQUEST_BODY_KEY = "requestBody"
REQUEST_BODY_DESCRIPTION = "The JSON request body."

_COPIED_KEYS = ("format", "description", "enum", "default", "example")


def escape_parameter_name(name: str) -> str:
    """Rewrite a bracketed parameter name into a schema-safe property name.

    ``filter[created_at]`` becomes ``filter_created_at_``. The trailing
    underscore marks the name as escaped.
    """
    if "[" not in name and "]" not in name:
        return name

    escaped = name.replace("[", "_").replace("]", "_")
    if not escaped.endswith("_"):
        escaped += "_"
    return escaped


def build_parameter_name_mapping(parameters: Iterable[Parameter]) -> Dict[str, str]:
    """Map escaped names back to the original parameter names of one operation."""
    mapping: Dict[str, str] = {}
    for param in parameters:
        escaped = escape_parameter_name(param.name)
        if escaped != param.name:
            mapping[escaped] = param.name
    return mapping


def unescape_parameter_name(escaped: str, mapping: Dict[str, str]) -> str:
    return mapping.get(escaped, escaped)


def escaped_name_index(parameters: Iterable[Parameter]) -> Dict[str, str]:
    """Map original parameter names of one operation to their escaped names."""
    return {original: escaped for escaped, original in build_parameter_name_mapping(parameters).items()}


def get_parameter_value(
    arguments: Dict[str, Any], name: str, escaped_names: Dict[str, str]
) -> Tuple[Any, bool]:
    """Look up a parameter by its escaped name, falling back to the raw name.

    Args:
        arguments: Tool call arguments
        name: Original parameter name
        escaped_names: The operation's index from :func:`escaped_name_index`
    """
    escaped = escaped_names.get(name, name)
    if escaped in arguments:
        return arguments[escaped], True
    if name in arguments:
        return arguments[name], True
    return None, False


def synthesize(node: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Convert one OpenAPI schema node into a JSON Schema fragment.

    ``allOf`` branches are merged, later branches overwriting earlier keys;
    ``properties`` are merged per property and ``required`` lists are joined.
    ``oneOf``/``anyOf`` alternatives and ``discriminator`` are carried over
    with a warning, since they are only partially supported.
    """
    if node is None or not isinstance(node, dict):
        return None
    if CIRCULAR_MARKER in node:
        return {"description": f"Circular reference to {node[CIRCULAR_MARKER]}"}

    fragment: Dict[str, Any] = {}

    for branch in node.get("allOf") or []:
        _merge_fragment(fragment, synthesize(branch) or {})

    for combiner in ("oneOf", "anyOf"):
        if node.get(combiner):
            logger.warning("%s used in schema; only basic support is provided", combiner)
            fragment[combiner] = [synthesize(sub) or {} for sub in node[combiner]]

    if node.get("discriminator") is not None:
        logger.warning("discriminator used in schema; only basic support is provided")
        fragment["discriminator"] = node["discriminator"]

    node_type = first_type(node)
    if node_type:
        fragment["type"] = node_type
    for key in _COPIED_KEYS:
        if node.get(key) not in (None, "", []):
            fragment[key] = node[key]

    if node_type == "object" and node.get("properties") is not None:
        own: Dict[str, Any] = {
            "properties": {name: synthesize(sub) or {} for name, sub in node["properties"].items()}
        }
        if node.get("required"):
            own["required"] = list(node["required"])
        _merge_fragment(fragment, own)

    if node_type == "array" and node.get("items") is not None:
        fragment["items"] = synthesize(node["items"]) or {}

    return fragment


def _merge_fragment(target: Dict[str, Any], source: Dict[str, Any]) -> None:
    for key, value in source.items():
        if key == "properties" and isinstance(target.get(key), dict):
            target[key] = {**target[key], **value}
        elif key == "required" and target.get(key):
            target[key] = target[key] + [name for name in value if name not in target[key]]
        else:
            target[key] = value


def build_input_schema(
    parameters: Iterable[Parameter], request_body: Optional[RequestBody] = None
) -> Dict[str, Any]:
    """Combine parameter and request body schemas into one object schema.

    Returns:
        A JSON Schema with one property per parameter (under its escaped name)
        plus ``requestBody`` when the operation takes a JSON body.
    """
    properties: Dict[str, Any] = {}
    required: List[str] = []

    for param in parameters:
        if param.location not in PARAMETER_LOCATIONS:
            logger.warning("Parameter '%s' uses unsupported location '%s'", param.name, param.location)
        if not param.schema_:
            logger.warning("Parameter '%s' has no schema and is not validated", param.name)
            continue
        if first_type(param.schema_) == "string" and param.schema_.get("format") == "binary":
            logger.warning(
                "Parameter '%s' uses 'string' with 'binary' format. Non-JSON body types are not fully supported.",
                param.name,
            )

        prop = synthesize(param.schema_) or {}
        if param.description:
            prop["description"] = param.description
        escaped = escape_parameter_name(param.name)
        properties[escaped] = prop
        if param.required:
            required.append(escaped)

    if request_body is not None:
        for media_type in request_body.content:
            if media_type.split(";")[0].strip().lower() not in JSON_MEDIA_TYPES:
                logger.warning(
                    "Request body uses media type '%s'. Only JSON is fully supported.", media_type
                )
        body_node = request_body.json_schema()
        if body_node is None and request_body.content:
            # best effort for non-JSON bodies
            body_node = next(iter(request_body.content.values())).get("schema")
        if body_node is not None:
            body = synthesize(body_node) or {}
            body["description"] = REQUEST_BODY_DESCRIPTION
            properties[REQUEST_BODY_KEY] = body
            if request_body.required:
                required.append(REQUEST_BODY_KEY)

    schema: Dict[str, Any] = {"type": "object", "properties": properties}
    if required:
        schema["required"] = required
    return schema


_FORMAT_EXAMPLES = {
    "email": "user@example.com",
    "uri": "https://example.com",
    "url": "https://example.com",
    "date": "2024-01-01",
    "date-time": "2024-01-01T00:00:00Z",
    "uuid": "123e4567-e89b-12d3-a456-426614174000",
}


def generate_example_value(prop: Dict[str, Any]) -> Any:
    """Produce a value that satisfies ``prop``, preferring enum and example values."""
    if prop.get("enum"):
        return prop["enum"][0]
    if "example" in prop:
        return prop["example"]

    prop_type = first_type(prop)
    if prop_type is None:
        for combiner in ("oneOf", "anyOf"):
            if prop.get(combiner):
                alternative = prop[combiner][0]
                if combiner == "oneOf" and alternative.get("properties"):
                    # all declared properties of the first alternative
                    return {
                        name: generate_example_value(sub)
                        for name, sub in alternative["properties"].items()
                    }
                return generate_example_value(alternative)
        if "properties" in prop:
            prop_type = "object"

    if prop_type == "string":
        return _FORMAT_EXAMPLES.get(prop.get("format", ""), "example_string")
    if prop_type == "number":
        return 123.45
    if prop_type == "integer":
        return 123
    if prop_type == "boolean":
        return True
    if prop_type == "array":
        if isinstance(prop.get("items"), dict):
            return [generate_example_value(prop["items"])]
        return ["item1", "item2"]
    if prop_type == "object":
        if not prop.get("properties"):
            return {"key": "value"}
        return generate_example_arguments(prop, optional_limit=1)
    return None


def generate_example_arguments(schema: Dict[str, Any], optional_limit: int = 2) -> Dict[str, Any]:
    """Build an example argument set: every required property plus a few optional ones."""
    properties = schema.get("properties") or {}
    example: Dict[str, Any] = {}
    for name in schema.get("required") or []:
        if name in properties:
            example[name] = generate_example_value(properties[name])

    added = 0
    for name, prop in properties.items():
        if added >= optional_limit:
            break
        if name not in example:
            example[name] = generate_example_value(prop)
            added += 1
    return example


_TIME_NAME_HINTS = ("date", "time", "created_at", "updated_at")


def has_datetime_in_schema(node: Optional[Dict[str, Any]]) -> bool:
    """Check recursively whether a schema carries a date or date-time format."""
    if not isinstance(node, dict):
        return False
    if node.get("format") in ("date", "date-time"):
        return True
    for sub in (node.get("properties") or {}).values():
        if has_datetime_in_schema(sub):
            return True
    if has_datetime_in_schema(node.get("items")):
        return True
    for combiner in ("allOf", "anyOf", "oneOf"):
        if any(has_datetime_in_schema(sub) for sub in node.get(combiner) or []):
            return True
    return False


def has_datetime_parameters(parameters: Iterable[Parameter], request_body: Optional[RequestBody] = None) -> bool:
    """Heuristic: does an operation take anything that looks like a date, time or timestamp?"""
    for param in parameters:
        name = param.name.lower()
        if any(hint in name for hint in _TIME_NAME_HINTS):
            return True
        if param.schema_:
            if param.schema_.get("format") in ("date", "date-time"):
                return True
            if first_type(param.schema_) == "integer" and "timestamp" in name:
                return True

    if request_body is not None:
        for media in request_body.content.values():
            if has_datetime_in_schema((media or {}).get("schema")):
                return True
    return False
