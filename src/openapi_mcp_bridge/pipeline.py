"""
Per-call invocation pipeline: validate, build the request, authenticate,
execute, classify the response and shape the result.
"""

import base64
import json
import logging
import random
import re
import uuid
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple
from urllib.parse import quote

import httpx
from jsonschema import Draft7Validator
from jsonschema.exceptions import ValidationError

from .auth import DEFAULT_API_KEY_HEADER, apply_security
from .logging import log_http_request, log_http_response
from .models import JSON_MEDIA_TYPES, CallContext, Operation, Parameter, ToolResult, first_type
from .narrator import DANGEROUS_METHODS, describe_validation_errors, narrate
from .schema import REQUEST_BODY_KEY, escaped_name_index, generate_example_arguments, get_parameter_value

logger = logging.getLogger(__name__)

ACCEPT_HEADER = "application/json, application/vnd.api+json"
CONFIRMATION_FLAG = "__confirmed"
STREAM_FLAG = "stream"
RESUME_TOKEN = "resume_token"
DEFAULT_TIMEOUT = 30.0

_JSON_TYPE_NAMES = (
    (bool, "boolean"),
    (int, "integer"),
    (float, "number"),
    (str, "string"),
    (list, "array"),
    (dict, "object"),
    (type(None), "null"),
)
_FILENAME = re.compile(r"filename\*?=(?:UTF-8'')?\"?([^\";]+)\"?", re.IGNORECASE)


def json_type_name(value: Any) -> str:
    for py_type, name in _JSON_TYPE_NAMES:
        if isinstance(value, py_type):
            return name
    return type(value).__name__


def format_value(value: Any) -> str:
    """Render an argument for a path, query, header or cookie slot.

    Integral numbers arrive as floats when the caller's JSON used ``42.0``;
    they are rendered without the fractional part.
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return str(value)


def classify_content_type(content_type: str) -> Tuple[bool, bool]:
    """Return (is_json, is_text) for a Content-Type header value."""
    media = content_type.split(";")[0].strip().lower()
    is_json = media in JSON_MEDIA_TYPES or media.endswith("+json")
    return is_json, media.startswith("text/")


def filename_from_disposition(disposition: Optional[str], default: str = "file") -> str:
    if disposition:
        match = _FILENAME.search(disposition)
        if match:
            return match.group(1).strip()
    return default


def _describe_violation(error: ValidationError) -> str:
    where = ".".join(str(part) for part in error.absolute_path)

    if error.validator == "required":
        missing = [name for name in error.validator_value if name not in (error.instance or {})]
        properties = error.schema.get("properties") or {}
        lines = []
        for name in missing:
            prop = properties.get(name) or {}
            detail = []
            if prop.get("description"):
                detail.append(prop["description"])
            if first_type(prop):
                detail.append(f"type: {first_type(prop)}")
            qualified = f"{where}.{name}" if where else name
            suffix = f" ({', '.join(detail)})" if detail else ""
            lines.append(f"Missing required parameter: '{qualified}'{suffix}. Please provide this parameter.")
        return "\n".join(lines)

    label = where or "arguments"
    if error.validator == "type":
        expected = error.validator_value
        if isinstance(expected, list):
            expected = " or ".join(expected)
        return (
            f"Invalid type for parameter '{label}': expected {expected}, "
            f"got {json_type_name(error.instance)}."
        )
    if error.validator == "enum":
        allowed = ", ".join(json.dumps(v) for v in error.validator_value)
        return f"Invalid value for parameter '{label}': {json.dumps(error.instance)} is not one of [{allowed}]."
    if error.validator in ("oneOf", "anyOf"):
        return f"Parameter '{label}' does not match any of the allowed alternatives ({error.validator})."
    return f"Invalid parameter '{label}': {error.message}"


class OperationPipeline:
    """Invocation handler bound to one operation.

    Instances are immutable after construction and safe to call concurrently;
    everything call-specific travels in the ``CallContext`` and the arguments.
    """

    def __init__(
        self,
        operation: Operation,
        input_schema: Dict[str, Any],
        tool_name: str,
        base_urls: Sequence[str],
        schemes: Mapping[str, Mapping[str, Any]],
        confirm_dangerous_actions: bool = True,
        api_key_header: str = DEFAULT_API_KEY_HEADER,
        client: Optional[httpx.AsyncClient] = None,
        log_http: bool = False,
        rng: Optional[random.Random] = None,
    ):
        self.operation = operation
        self.input_schema = input_schema
        self.tool_name = tool_name
        self.base_urls = tuple(base_urls)
        self.schemes = schemes
        self.confirm_dangerous_actions = confirm_dangerous_actions
        self.api_key_header = api_key_header
        self.client = client
        self.log_http = log_http
        self._rng = rng or random.Random()
        self._validator = Draft7Validator(input_schema)
        self._escaped_names = escaped_name_index(operation.parameters)

    async def __call__(self, context: CallContext, arguments: Dict[str, Any]) -> ToolResult:
        arguments = dict(arguments or {})

        failure = self.validate(arguments)
        if failure is not None:
            return failure

        if self.needs_confirmation(arguments):
            return self.confirmation_result()

        request = self.build_request(context, arguments)
        response = await self.execute(request, context)
        return self.shape(response, arguments)

    def validate(self, arguments: Dict[str, Any]) -> Optional[ToolResult]:
        """Check arguments against the input schema; return an error result on failure."""
        errors = sorted(self._validator.iter_errors(arguments), key=lambda e: [str(part) for part in e.absolute_path])
        if not errors:
            return None

        messages = [_describe_violation(error) for error in errors]
        example = generate_example_arguments(self.input_schema, optional_limit=0)
        text = describe_validation_errors(messages, self.input_schema, self.tool_name)
        return ToolResult(
            kind="text",
            text=text,
            is_error=True,
            structured={"type": "validation_error", "errors": messages, "example": example},
            **self._call_guidance(arguments, example),
        )

    def _call_guidance(self, arguments: Dict[str, Any], example: Dict[str, Any]) -> Dict[str, Any]:
        """Schema, arguments and usage hints attached to validation and success results."""
        return {
            "schema": self.input_schema,
            "arguments": arguments,
            "examples": [example],
            "usage": f"call {self.tool_name} <json-args>",
            "next_steps": ["list", f"schema {self.tool_name}"],
        }

    def needs_confirmation(self, arguments: Dict[str, Any]) -> bool:
        return (
            self.confirm_dangerous_actions
            and self.operation.method in DANGEROUS_METHODS
            and arguments.get(CONFIRMATION_FLAG) is not True
        )

    def confirmation_result(self) -> ToolResult:
        text = (
            "⚠️  CONFIRMATION REQUIRED\n\n"
            f"Action: {self.tool_name}\n"
            "This action is irreversible. Proceed?\n\n"
            f'To confirm, retry the call with {{"{CONFIRMATION_FLAG}": true}} added to your arguments.'
        )
        return ToolResult(
            kind="confirmation",
            text=text,
            structured={
                "type": "confirmation_request",
                "confirmation_required": True,
                "action": self.tool_name,
                "message": "This action is irreversible. Proceed?",
            },
            usage=f'call {self.tool_name} {{..., "{CONFIRMATION_FLAG}": true}}',
        )

    def _lookup(self, arguments: Dict[str, Any], param: Parameter) -> Tuple[Any, bool]:
        return get_parameter_value(arguments, param.name, self._escaped_names)

    def build_request(self, context: CallContext, arguments: Dict[str, Any]) -> httpx.Request:
        """Map validated arguments onto a concrete HTTP request."""
        op = self.operation

        path = op.path
        for param in op.parameters_in("path"):
            value, found = self._lookup(arguments, param)
            if found:
                path = path.replace("{" + param.name + "}", quote(format_value(value), safe=""))

        query: List[Tuple[str, str]] = []
        for param in op.parameters_in("query"):
            value, found = self._lookup(arguments, param)
            if not found or value is None:
                continue
            if isinstance(value, list):
                query.extend((param.name, format_value(item)) for item in value)
            else:
                query.append((param.name, format_value(value)))

        headers: Dict[str, str] = {"Accept": ACCEPT_HEADER}
        for param in op.parameters_in("header"):
            value, found = self._lookup(arguments, param)
            if found and value is not None:
                headers[param.name] = format_value(value)

        cookies: List[str] = []
        for param in op.parameters_in("cookie"):
            value, found = self._lookup(arguments, param)
            if found and value is not None:
                cookies.append(f"{param.name}={format_value(value)}")

        content = None
        if op.request_body is not None and REQUEST_BODY_KEY in arguments:
            media_type = op.request_body.json_media_type()
            body = arguments[REQUEST_BODY_KEY]
            if media_type is not None:
                content = json.dumps(body).encode("utf-8")
                headers["Content-Type"] = media_type
            elif op.request_body.content:
                # best-effort pass-through for other media types
                headers["Content-Type"] = next(iter(op.request_body.content))
                content = body.encode("utf-8") if isinstance(body, str) else json.dumps(body).encode("utf-8")

        auth = apply_security(op, self.schemes, context.credentials, self.api_key_header)
        headers.update(auth.headers)
        query.extend(auth.query.items())
        cookies.extend(auth.cookies)
        if cookies:
            headers["Cookie"] = "; ".join(cookies)

        base_url = self._rng.choice(self.base_urls)
        url = base_url.rstrip("/") + "/" + path.lstrip("/")
        return httpx.Request(op.method, url, params=query, headers=headers, content=content)

    async def execute(self, request: httpx.Request, context: CallContext) -> httpx.Response:
        """Send the request. Transport errors and cancellation propagate to the caller."""
        timeout = context.timeout if context.timeout is not None else DEFAULT_TIMEOUT
        request.extensions["timeout"] = httpx.Timeout(timeout).as_dict()

        logger.debug("Calling %s for tool %s", self.operation.operation_id, self.tool_name)
        if self.log_http:
            log_http_request(
                request.method,
                str(request.url),
                request.headers,
                request.content,
                sensitive_headers=(self.api_key_header,),
            )

        if self.client is not None:
            response = await self.client.send(request)
            await response.aread()
        else:
            async with httpx.AsyncClient() as client:
                response = await client.send(request)
                await response.aread()

        if self.log_http:
            content_type = response.headers.get("content-type", "")
            is_json, is_text = classify_content_type(content_type)
            log_http_response(
                response.status_code, content_type, response.content, bool(response.content) and not (is_json or is_text)
            )
        return response

    def _operation_identity(self) -> Dict[str, str]:
        return {
            "id": self.operation.operation_id,
            "summary": self.operation.summary,
            "description": self.operation.description,
        }

    def shape(self, response: httpx.Response, arguments: Dict[str, Any]) -> ToolResult:
        """Turn the HTTP response into a tool result."""
        status = response.status_code
        content_type = response.headers.get("content-type", "")
        is_json, is_text = classify_content_type(content_type)
        body = response.content
        binary = bool(body) and not (is_json or is_text)
        mime_type = content_type.split(";")[0].strip() or "application/octet-stream"
        url = str(response.request.url)

        if not 200 <= status < 300:
            reason = response.reason_phrase or httpx.codes.get_reason_phrase(status)
            body_text = "" if binary else response.text
            suggestion = narrate(
                self.operation, self.input_schema, arguments, body_text, status, self.tool_name
            )
            if binary:
                payload = {
                    "type": "api_response",
                    "error": {
                        "code": "http_error",
                        "http_status": status,
                        "message": f"{reason} (HTTP {status})",
                        "details": "Binary response (see file_base64)",
                        "suggestion": suggestion,
                        "mime_type": mime_type,
                        "file_base64": base64.b64encode(body).decode("ascii"),
                        "file_name": filename_from_disposition(response.headers.get("content-disposition")),
                        "operation": self._operation_identity(),
                    },
                }
                return ToolResult(kind="json", text=json.dumps(payload), is_error=True, structured=payload)

            operation_line = self.operation.operation_id
            if self.operation.summary:
                operation_line += f" ({self.operation.summary})"
            text = (
                f"HTTP {self.operation.method} {url}\n"
                f"Error: {reason} (HTTP {status})\n"
                f"Details: {body_text}\n"
                f"Suggestion: {suggestion}\n"
                f"Operation: {operation_line}"
            )
            return ToolResult(kind="text", text=text, is_error=True)

        guidance = self._call_guidance(arguments, generate_example_arguments(self.input_schema))
        if binary:
            payload = {
                "type": "api_response",
                "http_status": status,
                "mime_type": mime_type,
                "file_base64": base64.b64encode(body).decode("ascii"),
                "file_name": filename_from_disposition(response.headers.get("content-disposition")),
                "operation": self._operation_identity(),
            }
            result = ToolResult(
                kind="file",
                text=json.dumps(payload),
                structured=payload,
                output_format="structured",
                output_type="file",
                **guidance,
            )
        else:
            text = f"HTTP {self.operation.method} {url}\nStatus: {status}\nResponse:\n{response.text}"
            result = ToolResult(kind="json" if is_json else "text", text=text, **guidance)

        return self._mark_partial(result, arguments)

    def _mark_partial(self, result: ToolResult, arguments: Dict[str, Any]) -> ToolResult:
        token = arguments.get(RESUME_TOKEN)
        if arguments.get(STREAM_FLAG) is True:
            token = f"stream-{uuid.uuid4().hex}"
        elif not token:
            return result
        return result.model_copy(update={"kind": "partial", "partial": True, "resume_token": str(token)})
