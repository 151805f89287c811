"""
Agent-facing text: tool descriptions and remediation narratives for failed calls.

Everything here is a pure function of the operation, its input schema and the
caller's arguments, so the same failure always produces the same text.
"""

import json
from typing import Any, Dict, List, Optional

from .models import Operation, first_type
from .schema import escaped_name_index, generate_example_arguments, generate_example_value, get_parameter_value

CREDENTIAL_VARIABLES = ("API_KEY", "BEARER_TOKEN", "BASIC_AUTH")
DANGEROUS_METHODS = ("PUT", "POST", "DELETE")


def _dump(value: Any) -> str:
    return json.dumps(value, indent=2, default=str)


def _operation_line(op: Operation) -> str:
    line = f"OPERATION: {op.operation_id}"
    if op.summary:
        line += f" - {op.summary}"
    return line


def _enum_text(prop: Dict[str, Any]) -> str:
    return ", ".join(str(v) for v in prop.get("enum") or [])


def _param_line(name: str, prop: Dict[str, Any], marker: str = "") -> str:
    line = f"  - {name}"
    prop_type = first_type(prop)
    if prop_type:
        line += f" ({prop_type})"
    if marker:
        line += f" {marker}"
    if prop.get("description"):
        line += f": {prop['description']}"
    return line


def _security_schemes(op: Operation) -> List[str]:
    return [" + ".join(requirement) for requirement in op.security if requirement]


def describe_operation(
    op: Operation, input_schema: Dict[str, Any], tool_name: Optional[str] = None, confirm_dangerous: bool = True
) -> str:
    """Build the tool description an agent sees in the tool listing."""
    name = tool_name or op.operation_id
    parts = [op.description or op.summary]

    schemes = [scheme for requirement in op.security for scheme in requirement]
    if schemes:
        parts.append(
            "\n\nAUTHENTICATION: Required ("
            + " OR ".join(schemes)
            + "). Set environment variables: "
            + ", ".join(CREDENTIAL_VARIABLES[:-1])
            + f", or {CREDENTIAL_VARIABLES[-1]}"
        )

    properties = input_schema.get("properties") or {}
    required = [r for r in input_schema.get("required") or [] if r in properties]
    if properties:
        parts.append("\n\nPARAMETERS:")
        if required:
            parts.append("\n• Required:")
            for req in required:
                line = _param_line(req, properties[req])
                if properties[req].get("enum"):
                    line += f" [values: {_enum_text(properties[req])}]"
                parts.append("\n" + line)
        optional = [n for n in properties if n not in required]
        if optional:
            parts.append("\n• Optional:")
            for opt in optional:
                line = _param_line(opt, properties[opt])
                if properties[opt].get("enum"):
                    line += f" [values: {_enum_text(properties[opt])}]"
                parts.append("\n" + line)

    parts.append(f"\n\nEXAMPLE: call {name} {json.dumps(generate_example_arguments(input_schema))}")

    if op.method in ("GET", "POST", "PUT"):
        parts.append(
            "\n\nRESPONSE: Returns HTTP status, headers, and response body. "
            "Success responses (2xx) return the data. "
            "Error responses include troubleshooting guidance."
        )
    if confirm_dangerous and op.method in DANGEROUS_METHODS:
        parts.append(
            "\n\n⚠️  SAFETY: This operation modifies data. "
            "You will be asked to confirm before execution."
        )
    return "".join(parts)


def narrate_bad_request(
    op: Operation, input_schema: Dict[str, Any], arguments: Dict[str, Any], body: str, tool_name: Optional[str] = None
) -> str:
    """400: list parameter requirements and show a corrected example call."""
    lines = [
        "BAD REQUEST (400): The API call failed due to incorrect or invalid parameters.",
        "",
        _operation_line(op),
    ]
    if op.description:
        lines.append(f"DESCRIPTION: {op.description}")
    lines.append("")

    properties = input_schema.get("properties") or {}
    required = input_schema.get("required") or []
    if properties:
        lines.append("PARAMETER REQUIREMENTS:")
        if required:
            lines.append("• Required parameters:")
            lines += [_param_line(r, properties[r]) for r in required if r in properties]
            lines.append("")
        lines.append("• All available parameters:")
        for name, prop in properties.items():
            line = _param_line(name, prop, "[REQUIRED]" if name in required else "")
            if prop.get("enum"):
                line += f" | Valid values: {_enum_text(prop)}"
            lines.append(line)
        lines.append("")

    if arguments:
        lines += ["YOUR CURRENT ARGUMENTS:", _dump(arguments), ""]
    if body:
        lines += ["SERVER ERROR DETAILS:", body, ""]

    example = generate_example_arguments(input_schema, optional_limit=3)
    lines += [
        "EXAMPLE CORRECT USAGE:",
        f"call {tool_name or op.operation_id} {_dump(example)}",
        "",
        "TROUBLESHOOTING STEPS:",
        "1. Verify all required parameters are provided",
        "2. Check parameter types match the schema (string, number, boolean, etc.)",
        "3. Ensure enum values are from the allowed list",
        "4. Validate parameter formats (dates, emails, URLs, etc.)",
        "5. Check for missing or incorrectly named parameters",
        "6. Review the server error details above for specific validation failures",
    ]
    return "\n".join(lines) + "\n"


def narrate_auth_failure(op: Operation, body: str, status: int) -> str:
    """401/403: explain the security schemes and how to supply credentials."""
    if status == 401:
        lines = ["AUTHENTICATION REQUIRED (401): Your request lacks valid authentication credentials."]
    else:
        lines = ["AUTHORIZATION FAILED (403): You don't have permission to access this resource."]
    lines += ["", _operation_line(op), "", "AUTHENTICATION METHODS:"]

    schemes = _security_schemes(op)
    if schemes:
        lines.append("This operation requires one of the following authentication methods:")
        lines += [f"{i}. {scheme}" for i, scheme in enumerate(schemes, 1)]
    else:
        lines += [
            "• Check the OpenAPI spec for security requirements",
            "• This operation may require global authentication",
        ]
    lines += [
        "",
        "AUTHENTICATION SETUP:",
        "Set one of these environment variables based on your API:",
        "",
        "• API Key Authentication:",
        '  export API_KEY="your-api-key-here"',
        "  # Common header names: X-API-Key, Authorization, Api-Key",
        "",
        "• Bearer Token Authentication:",
        '  export BEARER_TOKEN="your-bearer-token-here"',
        "  # Sets Authorization: Bearer <token>",
        "",
        "• Basic Authentication:",
        '  export BASIC_AUTH="username:password"',
        "  # Sets Authorization: Basic <base64-encoded-credentials>",
        "",
    ]
    if body:
        lines += ["SERVER ERROR DETAILS:", body, ""]

    lines.append("TROUBLESHOOTING STEPS:")
    if status == 401:
        lines += [
            "1. Verify you have set the correct authentication environment variable",
            "2. Check that your API key/token is valid and not expired",
            "3. Ensure the authentication method matches what the API expects",
            "4. Test your credentials with a simple API call (like GET /health)",
            "5. Check the API documentation for required authentication format",
        ]
    else:
        lines += [
            "1. Verify your account has permission to access this resource",
            "2. Check if your API key has the required scopes/permissions",
            "3. Ensure you're accessing the correct resource ID/path",
            "4. Contact the API provider to verify your account permissions",
        ]
    return "\n".join(lines) + "\n"


def narrate_not_found(op: Operation, arguments: Dict[str, Any], body: str) -> str:
    """404: show path parameters next to the values the caller supplied."""
    lines = [
        "RESOURCE NOT FOUND (404): The requested resource could not be found.",
        "",
        _operation_line(op),
        f"PATH: {op.method} {op.path}",
        "",
    ]
    if arguments:
        lines += ["YOUR CURRENT ARGUMENTS:", _dump(arguments), ""]

    path_params = [p.name for p in op.parameters_in("path")]
    escaped_names = escaped_name_index(op.parameters)
    if path_params:
        lines.append("PATH PARAMETERS IN THIS ENDPOINT:")
        for name in path_params:
            value, found = get_parameter_value(arguments, name, escaped_names)
            lines.append(f"• {name}: {value if found else 'NOT_PROVIDED'}")
        lines.append("")
    if body:
        lines += ["SERVER ERROR DETAILS:", body, ""]

    lines += ["TROUBLESHOOTING STEPS:", "1. Verify all path parameters are correct and exist:"]
    if path_params:
        lines += [f"   - Check that {name} exists and is accessible" for name in path_params]
    else:
        lines.append("   - Verify the endpoint path is correct")
    lines += [
        "2. Ensure you're using the correct resource identifiers",
        "3. Check if the resource was recently deleted or moved",
        "4. Try listing resources first to find valid identifiers",
        "5. Ensure you're using the correct API base URL",
    ]
    return "\n".join(lines) + "\n"


_SERVER_ERROR_TYPES = {
    500: ("Internal Server Error", "This indicates a problem with the server's code or configuration."),
    502: ("Bad Gateway", "The server received an invalid response from an upstream server."),
    503: ("Service Unavailable", "The server is temporarily unable to handle the request."),
    504: ("Gateway Timeout", "The server didn't receive a timely response from an upstream server."),
}

RETRY_STRATEGY = [
    "RETRY STRATEGY:",
    "• Wait 1-2 seconds and retry once",
    "• If it fails again, wait longer (exponential backoff)",
    "• Maximum 3-5 retry attempts",
    "• Report persistent errors to the API provider",
]


def narrate_server_error(
    op: Operation,
    input_schema: Dict[str, Any],
    arguments: Dict[str, Any],
    body: str,
    status: int,
    tool_name: Optional[str] = None,
) -> str:
    """5xx: classify the failure and recommend bounded backoff."""
    lines = [
        f"SERVER ERROR ({status}): The server encountered an error processing your request.",
        "",
        _operation_line(op),
        "",
    ]
    kind, explanation = _SERVER_ERROR_TYPES.get(
        status, (f"Server Error ({status})", "An unexpected server-side error occurred.")
    )
    lines += [f"ERROR TYPE: {kind}", explanation, ""]
    if body:
        lines += ["SERVER ERROR DETAILS:", body, ""]
    if arguments:
        lines += ["YOUR REQUEST DETAILS:", _dump(arguments), ""]

    lines.append("IMMEDIATE ACTIONS:")
    if status == 500:
        lines += [
            "1. Retry the request after a short delay (server issue)",
            "2. Check if the request data is valid and within expected limits",
            "3. Report the error to the API provider with request details",
        ]
    elif status in (502, 503, 504):
        lines += [
            "1. Wait and retry after a few seconds (temporary issue)",
            "2. Check the API status page for known outages",
            "3. Implement exponential backoff for retries",
        ]
    else:
        lines += ["1. Retry the request after a brief delay", "2. Check if this is a known issue with the API"]
    lines += [""] + RETRY_STRATEGY

    properties = input_schema.get("properties") or {}
    if properties:
        name = tool_name or op.operation_id
        lines += ["", "TOOL USAGE INFORMATION:", f"Tool Name: {name}"]
        required = [r for r in input_schema.get("required") or [] if r in properties]
        if required:
            lines.append("Required Parameters (mandatory for all calls):")
            lines += [_param_line(r, properties[r], "[MANDATORY]") for r in required]
        lines += [
            "",
            "Example Usage (retry with these correct parameters):",
            f"call {name} {_dump(generate_example_arguments(input_schema))}",
        ]
    return "\n".join(lines) + "\n"


def narrate_rate_limited(op: Operation, body: str) -> str:
    """429: the caller is being throttled; back off before retrying."""
    lines = ["RATE LIMITED (429): Too many requests were sent in a given amount of time.", "", _operation_line(op), ""]
    if body:
        lines += ["SERVER ERROR DETAILS:", body, ""]
    lines += RETRY_STRATEGY
    return "\n".join(lines) + "\n"


DEFAULT_SUGGESTION = (
    "Check the input parameters, authentication, and consult the tool schema. "
    "See the OpenAPI documentation for more details."
)


def narrate(
    op: Operation,
    input_schema: Dict[str, Any],
    arguments: Dict[str, Any],
    body: str,
    status: int,
    tool_name: Optional[str] = None,
) -> str:
    """Pick the remediation narrative for a non-2xx status."""
    if status in (401, 403):
        return narrate_auth_failure(op, body, status)
    if status == 404:
        return narrate_not_found(op, arguments, body)
    if status == 400:
        return narrate_bad_request(op, input_schema, arguments, body, tool_name)
    if status == 429:
        return narrate_rate_limited(op, body)
    if status >= 500:
        return narrate_server_error(op, input_schema, arguments, body, status, tool_name)
    return DEFAULT_SUGGESTION


def describe_validation_errors(
    messages: List[str], input_schema: Dict[str, Any], tool_name: str
) -> str:
    """Join validation messages and append a retry suggestion with example arguments."""
    example = generate_example_arguments(input_schema, optional_limit=0) or {
        name: generate_example_value(prop) for name, prop in (input_schema.get("properties") or {}).items()
    }
    text = "\n".join(messages).strip()
    return f"{text}\n\nTry again with: call {tool_name} {json.dumps(example)}"
