"""Tests for credential handling."""

import base64

from openapi_mcp_bridge.auth import (
    DEFAULT_API_KEY_HEADER,
    apply_security,
    credentials_from_headers,
    default_api_key_header,
)
from openapi_mcp_bridge.config import Settings
from openapi_mcp_bridge.logging import redact_headers, redact_payload
from openapi_mcp_bridge.models import Credentials, Operation


def _op(security):
    return Operation(operation_id="op", method="GET", path="/", security=security)


SCHEMES = {
    "Bearer": {"type": "http", "scheme": "bearer"},
    "OAuth": {"type": "oauth2", "flows": {}},
    "HeaderKey": {"type": "apiKey", "in": "header", "name": "X-Key"},
}


def test_default_api_key_header(petstore):
    assert default_api_key_header(petstore) == "X-Pet-Key"
    assert default_api_key_header({"paths": {}}) == DEFAULT_API_KEY_HEADER


def test_first_satisfied_scheme_wins():
    placement = apply_security(
        _op([{"Bearer": [], "HeaderKey": []}]), SCHEMES, Credentials(api_key="k", bearer_token="t")
    )
    assert placement.headers == {"Authorization": "Bearer t"}


def test_oauth2_uses_bearer_token():
    placement = apply_security(_op([{"OAuth": []}]), SCHEMES, Credentials(bearer_token="t"))
    assert placement.headers == {"Authorization": "Bearer t"}


def test_legacy_fallback_injects_api_key_and_bearer():
    placement = apply_security(_op([{"Bearer": []}]), SCHEMES, Credentials(api_key="k"), default_header="X-Fallback")
    assert placement.headers == {"X-Fallback": "k"}

    placement = apply_security(_op([]), SCHEMES, Credentials(api_key="k", bearer_token="t", basic_auth="u:p"))
    assert placement.headers == {DEFAULT_API_KEY_HEADER: "k", "Authorization": "Bearer t"}


def test_credentials_from_headers():
    encoded = base64.b64encode(b"user:pass").decode()
    creds = credentials_from_headers({"Api-Key": "from-header", "Authorization": f"Basic {encoded}"})
    assert creds.api_key == "from-header"
    assert creds.basic_auth == "user:pass"
    assert creds.bearer_token is None

    fallback = Credentials(api_key="env-key", bearer_token="env-token")
    creds = credentials_from_headers({"authorization": "Bearer call-token"}, fallback)
    assert creds.api_key == "env-key"
    assert creds.bearer_token == "call-token"


def test_credentials_repr_hides_values():
    text = repr(Credentials(api_key="super-secret"))
    assert "super-secret" not in text
    assert "api_key" in text


def test_settings_from_environment(monkeypatch):
    for name in ("BEARER_TOKEN", "BASIC_AUTH", "DEBUG"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("API_KEY", "k")
    monkeypatch.setenv("MCP_LOG_HTTP", "1")
    monkeypatch.setenv("REQUEST_TIMEOUT_SECONDS", "7.5")
    settings = Settings()
    assert settings.credentials() == Credentials(api_key="k")
    assert settings.log_http
    assert settings.request_timeout_seconds == 7.5


def test_redaction():
    headers = redact_headers({"Authorization": "Bearer t", "X-Pet-Key": "k", "Accept": "*/*"}, ("X-Pet-Key",))
    assert headers == {"Authorization": "***REDACTED***", "X-Pet-Key": "***REDACTED***", "Accept": "*/*"}
    assert redact_payload({"password": "p", "nested": {"api_key": "k", "ok": 1}}) == {
        "password": "***REDACTED***",
        "nested": {"api_key": "***REDACTED***", "ok": 1},
    }
