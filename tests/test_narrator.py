"""Tests for the error narratives and tool descriptions."""

from openapi_mcp_bridge.models import Operation, Parameter
from openapi_mcp_bridge.narrator import (
    DEFAULT_SUGGESTION,
    describe_operation,
    describe_validation_errors,
    narrate,
)
from openapi_mcp_bridge.schema import build_input_schema


def _operation(**overrides):
    fields = dict(
        operation_id="getOrder",
        method="GET",
        path="/orders/{orderId}",
        summary="Get an order",
        parameters=[
            Parameter.model_validate(
                {"name": "orderId", "in": "path", "required": True, "schema": {"type": "string"}}
            ),
            Parameter.model_validate(
                {"name": "status", "in": "query", "schema": {"type": "string", "enum": ["open", "closed"]}}
            ),
        ],
        security=[{"OAuth": []}],
    )
    fields.update(overrides)
    return Operation(**fields)


def test_bad_request_lists_parameters_and_example():
    op = _operation()
    schema = build_input_schema(op.parameters)
    text = narrate(op, schema, {"orderId": "x"}, '{"error": "bad"}', 400)

    assert text.startswith("BAD REQUEST (400)")
    assert "OPERATION: getOrder - Get an order" in text
    assert "orderId (string) [REQUIRED]" in text
    assert "Valid values: open, closed" in text
    assert '"orderId": "x"' in text
    assert '{"error": "bad"}' in text
    assert "call getOrder" in text


def test_auth_failure_names_schemes_and_variables():
    op = _operation()
    text = narrate(op, {}, {}, "", 401)
    assert text.startswith("AUTHENTICATION REQUIRED (401)")
    assert "1. OAuth" in text
    for variable in ("API_KEY", "BEARER_TOKEN", "BASIC_AUTH"):
        assert variable in text

    forbidden = narrate(op, {}, {}, "", 403)
    assert forbidden.startswith("AUTHORIZATION FAILED (403)")
    assert "scopes/permissions" in forbidden


def test_not_found_shows_supplied_and_missing_path_values():
    op = _operation()
    assert "• orderId: abc" in narrate(op, {}, {"orderId": "abc"}, "", 404)
    assert "• orderId: NOT_PROVIDED" in narrate(op, {}, {}, "", 404)


def test_not_found_reads_bracketed_path_values_by_escaped_name():
    op = _operation(
        path="/orders/{order[id]}",
        parameters=[
            Parameter.model_validate(
                {"name": "order[id]", "in": "path", "required": True, "schema": {"type": "string"}}
            )
        ],
    )
    assert "• order[id]: abc" in narrate(op, {}, {"order_id_": "abc"}, "", 404)
    assert "• order[id]: raw" in narrate(op, {}, {"order[id]": "raw"}, "", 404)


def test_server_errors_are_classified_with_bounded_retries():
    op = _operation()
    schema = build_input_schema(op.parameters)
    for status, kind in ((500, "Internal Server Error"), (502, "Bad Gateway"), (503, "Service Unavailable"), (504, "Gateway Timeout")):
        text = narrate(op, schema, {}, "", status)
        assert f"SERVER ERROR ({status})" in text
        assert f"ERROR TYPE: {kind}" in text
        assert "Maximum 3-5 retry attempts" in text
    assert "[MANDATORY]" in narrate(op, schema, {}, "", 500)


def test_rate_limit_and_other_statuses():
    op = _operation()
    assert "RATE LIMITED (429)" in narrate(op, {}, {}, "", 429)
    assert narrate(op, {}, {}, "", 409) == DEFAULT_SUGGESTION


def test_narratives_are_deterministic():
    op = _operation()
    schema = build_input_schema(op.parameters)
    assert narrate(op, schema, {"orderId": "1"}, "x", 400) == narrate(op, schema, {"orderId": "1"}, "x", 400)


def test_describe_operation():
    op = _operation(description="Fetch one order.")
    text = describe_operation(op, build_input_schema(op.parameters))
    assert text.startswith("Fetch one order.")
    assert "AUTHENTICATION: Required (OAuth)" in text
    assert "• Required:\n  - orderId (string)" in text
    assert "• Optional:\n  - status (string) [values: open, closed]" in text
    assert "RESPONSE:" in text
    assert "SAFETY" not in text

    delete = _operation(method="DELETE")
    assert "SAFETY" in describe_operation(delete, {}, confirm_dangerous=True)
    assert "SAFETY" not in describe_operation(delete, {}, confirm_dangerous=False)


def test_validation_error_text():
    schema = {"type": "object", "required": ["id"], "properties": {"id": {"type": "integer"}}}
    text = describe_validation_errors(["Missing required parameter: 'id'."], schema, "getOp")
    assert text == "Missing required parameter: 'id'.\n\nTry again with: call getOp {\"id\": 123}"
