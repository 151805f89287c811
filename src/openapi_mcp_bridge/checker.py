"""
Consistency checker: cross-checks a built catalog against its source document.
"""

import re
from typing import Any, Dict, Iterable, List, Optional

from .models import LintIssue, LintResult, Operation, first_type
from .operations import extract_operations
from .schema import build_input_schema

RECOMMENDED_TYPES = ("string", "integer", "boolean", "number", "array", "object")
RECOMMENDED_LOCATIONS = ("path", "query", "header", "cookie")
_ENUMERABLE_TYPES = ("string", "integer", "boolean")


def contains_word(text: str, word: str) -> bool:
    """Case-insensitive whole-word search."""
    if not text or not word:
        return False
    return re.search(r"(?i)\b" + re.escape(word) + r"\b", text) is not None


class _Collector:
    def __init__(self):
        self.issues: List[LintIssue] = []

    def add(self, severity: str, message: str, suggestion: str, **context: Any) -> None:
        self.issues.append(LintIssue(type=severity, message=message, suggestion=suggestion, **context))

    def result(self, detailed: bool) -> LintResult:
        errors = sum(1 for issue in self.issues if issue.type == "error")
        warnings = len(self.issues) - errors
        if errors:
            if detailed:
                summary = f"self-test failed: {errors} errors, {warnings} warnings"
            else:
                summary = f"self-test failed: {errors} issues found"
        elif warnings:
            summary = f"Self-test passed with {warnings} warnings"
        else:
            summary = "Self-test passed: all tools and required arguments are present"
        return LintResult(
            success=errors == 0,
            error_count=errors,
            warning_count=warnings,
            issues=self.issues,
            summary=summary,
        )


def _declares_operation_id(document: Dict[str, Any], op: Operation) -> bool:
    raw = ((document.get("paths") or {}).get(op.path) or {}).get(op.method.lower()) or {}
    return bool(raw.get("operationId"))


def _check_enumerable(
    out: _Collector, schema: Dict[str, Any], what: str, op: Operation, **context: Any
) -> None:
    if not schema.get("enum"):
        out.add(
            "info",
            f"{what} in operation '{op.operation_id}' has no enum.",
            "Add an 'enum' if it has a fixed set of values.",
            **context,
        )
    if "default" not in schema:
        out.add(
            "info",
            f"{what} in operation '{op.operation_id}' has no default value.",
            "Add a 'default' value for better UX.",
            **context,
        )
    if "example" not in schema:
        out.add(
            "info",
            f"{what} in operation '{op.operation_id}' has no example.",
            "Add an 'example' for documentation and testing.",
            **context,
        )
    if schema.get("enum") and "default" in schema and schema["default"] not in schema["enum"]:
        out.add(
            "warning",
            f"{what} in operation '{op.operation_id}' has a default value not in its enum list.",
            "Ensure the default value is one of the enum values.",
            **context,
        )


def _check_parameters(out: _Collector, op: Operation, detailed: bool) -> None:
    context = {"operation": op.operation_id, "path": op.path, "method": op.method}
    for param in op.parameters:
        if not param.name:
            out.add(
                "error",
                f"Operation '{op.operation_id}' has a parameter with no name.",
                "Add a 'name' field to the parameter.",
                **context,
            )
        if detailed and param.location not in RECOMMENDED_LOCATIONS:
            out.add(
                "warning",
                f"Parameter '{param.name}' in operation '{op.operation_id}' uses non-standard location '{param.location}'.",
                "Use one of: " + ", ".join(RECOMMENDED_LOCATIONS) + ".",
                parameter=param.name,
                **context,
            )
        if not param.schema_:
            out.add(
                "error",
                f"Parameter '{param.name}' in operation '{op.operation_id}' is missing a schema/type.",
                f"Add a 'schema' with a 'type', e.g.\n    - name: {param.name}\n      in: {param.location}\n"
                "      schema:\n        type: string",
                parameter=param.name,
                **context,
            )
            continue

        param_type = first_type(param.schema_)
        if not param_type:
            out.add(
                "error",
                f"Parameter '{param.name}' in operation '{op.operation_id}' is missing a type in its schema.",
                "Add a 'type' to the schema, e.g. type: string",
                parameter=param.name,
                **context,
            )
        elif detailed and param_type not in RECOMMENDED_TYPES:
            out.add(
                "warning",
                f"Parameter '{param.name}' in operation '{op.operation_id}' uses uncommon type '{param_type}'.",
                "Use one of: " + ", ".join(RECOMMENDED_TYPES) + ".",
                parameter=param.name,
                **context,
            )
        if detailed and param_type in _ENUMERABLE_TYPES:
            _check_enumerable(out, param.schema_, f"Parameter '{param.name}'", op, parameter=param.name, **context)


def _check_request_body(out: _Collector, op: Operation, detailed: bool) -> None:
    if op.request_body is None:
        return
    context = {"operation": op.operation_id, "path": op.path, "method": op.method, "field": "requestBody"}
    for media_type, media in op.request_body.content.items():
        schema = (media or {}).get("schema")
        if not schema:
            out.add(
                "error",
                f"Request body for operation '{op.operation_id}' (media type: '{media_type}') is missing a schema/type.",
                "Add a 'schema' with a 'type', e.g. type: object",
                **context,
            )
            continue
        body_type = first_type(schema)
        if not body_type:
            out.add(
                "error",
                f"Request body for operation '{op.operation_id}' (media type: '{media_type}') is missing a type in its schema.",
                "Add a 'type' to the schema, e.g. type: object",
                **context,
            )
        elif detailed and body_type not in RECOMMENDED_TYPES:
            out.add(
                "warning",
                f"Request body for operation '{op.operation_id}' uses uncommon type '{body_type}'.",
                "Use one of: " + ", ".join(RECOMMENDED_TYPES) + ".",
                **context,
            )
        if detailed and body_type == "object":
            for name, prop in (schema.get("properties") or {}).items():
                if isinstance(prop, dict) and first_type(prop) in _ENUMERABLE_TYPES:
                    _check_enumerable(out, prop, f"Request body property '{name}'", op, **context)


def _check_required_arguments(out: _Collector, op: Operation, detailed: bool) -> None:
    context = {"operation": op.operation_id, "path": op.path, "method": op.method}
    input_schema = build_input_schema(op.parameters, op.request_body)
    properties = input_schema.get("properties") or {}
    params = {p.name: p for p in op.parameters}

    for req in input_schema.get("required") or []:
        if req not in properties:
            out.add(
                "error",
                f"Tool '{op.operation_id}' is missing required argument '{req}' in schema.",
                f"Add the required argument '{req}' to the schema for tool '{op.operation_id}' "
                f"(path: '{op.path}', method: '{op.method}').",
                field=req,
                **context,
            )
        if not detailed:
            continue
        param = params.get(req)
        if param is not None and param.schema_ and "example" not in param.schema_:
            out.add(
                "info",
                f"Required parameter '{req}' in operation '{op.operation_id}' has no example.",
                "Add an 'example' for this required parameter.",
                parameter=req,
                **context,
            )
        if not (contains_word(op.summary, req) or contains_word(op.description, req)):
            out.add(
                "info",
                f"Required parameter '{req}' in operation '{op.operation_id}' is not mentioned in summary or description.",
                "Document required parameters in the summary or description for clarity.",
                parameter=req,
                **context,
            )


def check(document: Dict[str, Any], tool_names: Optional[Iterable[str]] = None, detailed: bool = False) -> LintResult:
    """Check that every operation of ``document`` made it into the catalog intact.

    Args:
        document: The loaded document
        tool_names: Names registered by the catalog. ``None`` skips the
                    presence check, which is how standalone linting runs.
        detailed: Also report warnings and informational suggestions

    Returns:
        The issues found; ``success`` is False iff any of them is an error
    """
    out = _Collector()
    registered = set(tool_names) if tool_names is not None else None

    for op in extract_operations(document):
        context = {"operation": op.operation_id, "path": op.path, "method": op.method}
        has_id = _declares_operation_id(document, op)
        if not has_id:
            out.add(
                "error",
                f"Operation for path '{op.path}' and method '{op.method.lower()}' is missing an operationId.",
                f"Add an 'operationId' field, e.g.\n    {op.path}:\n      {op.method.lower()}:\n"
                "        operationId: <uniqueOperationId>",
                path=op.path,
                method=op.method,
            )
        elif registered is not None and op.operation_id not in registered:
            out.add(
                "error",
                f"Tool '{op.operation_id}' (operationId) is missing from the tool catalog.",
                f"Ensure the operationId '{op.operation_id}' is unique and present in the OpenAPI spec.",
                **context,
            )

        if detailed:
            if not op.summary:
                out.add(
                    "warning",
                    f"Operation '{op.operation_id}' (path: '{op.path}', method: '{op.method}') is missing a summary.",
                    "Add a 'summary' field to describe the operation's purpose.",
                    **context,
                )
            if not op.description:
                out.add(
                    "warning",
                    f"Operation '{op.operation_id}' (path: '{op.path}', method: '{op.method}') is missing a description.",
                    "Add a 'description' field for more detail.",
                    **context,
                )
            if not op.tags:
                out.add(
                    "warning",
                    f"Operation '{op.operation_id}' (path: '{op.path}', method: '{op.method}') has no tags.",
                    "Add tags to group related operations.",
                    **context,
                )

        _check_parameters(out, op, detailed)
        _check_request_body(out, op, detailed)
        _check_required_arguments(out, op, detailed)

    return out.result(detailed)
