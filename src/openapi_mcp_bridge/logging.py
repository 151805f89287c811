"""Logging helpers with redaction."""

import logging
import re
from typing import Any, Dict, Mapping, Optional

_SENSITIVE_KEYS = re.compile(r"(token|secret|api[_-]?key|password|authorization|cookie)", re.IGNORECASE)
_REDACTED = "***REDACTED***"

MAX_LOGGED_BODY = 1000

http_logger = logging.getLogger("openapi_mcp_bridge.http")


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def redact_headers(headers: Mapping[str, str], extra_sensitive: tuple = ()) -> Dict[str, str]:
    """Copy headers, masking credentials and any header named in ``extra_sensitive``."""
    extra = {name.lower() for name in extra_sensitive}
    return {
        key: _REDACTED if _SENSITIVE_KEYS.search(key) or key.lower() in extra else value
        for key, value in headers.items()
    }


def redact_payload(payload: Dict[str, Any]) -> Dict[str, Any]:
    redacted: Dict[str, Any] = {}
    for key, value in payload.items():
        if _SENSITIVE_KEYS.search(key):
            redacted[key] = _REDACTED
        elif isinstance(value, dict):
            redacted[key] = redact_payload(value)
        else:
            redacted[key] = value
    return redacted


def _truncate(body: bytes) -> str:
    text = body[:MAX_LOGGED_BODY].decode("utf-8", errors="replace")
    if len(body) > MAX_LOGGED_BODY:
        text += f"... ({len(body)} bytes total)"
    return text


def log_http_request(
    method: str,
    url: str,
    headers: Mapping[str, str],
    body: Optional[bytes] = None,
    sensitive_headers: tuple = (),
) -> None:
    http_logger.info("HTTP request: %s %s", method, url)
    http_logger.info("HTTP request headers: %s", redact_headers(headers, sensitive_headers))
    if body:
        http_logger.info("HTTP request body: %s", _truncate(body))


def log_http_response(status: int, content_type: str, body: bytes, binary: bool) -> None:
    http_logger.info("HTTP response: status=%s content-type=%s length=%d", status, content_type, len(body))
    if binary:
        http_logger.info("HTTP response body: <binary, %d bytes>", len(body))
    elif body:
        http_logger.info("HTTP response body: %s", _truncate(body))
