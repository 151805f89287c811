"""
Credential injection for outbound requests.

Credentials always come from the call's ``Credentials`` value; nothing here
reads or writes process environment.
"""

import base64
import logging
from typing import Any, Dict, List, Mapping, NamedTuple, Optional

from .models import Credentials, Operation

logger = logging.getLogger(__name__)

DEFAULT_API_KEY_HEADER = "X-API-Key"
API_KEY_SCHEME_NAME = "ApiKeyAuth"


class AuthPlacement(NamedTuple):
    """Headers, query parameters and cookies to add to one request."""

    headers: Dict[str, str]
    query: Dict[str, str]
    cookies: List[str]


def default_api_key_header(document: Dict[str, Any]) -> str:
    """Header used for the fallback API key, taken from the ``ApiKeyAuth`` scheme if declared."""
    schemes = ((document.get("components") or {}).get("securitySchemes")) or {}
    scheme = schemes.get(API_KEY_SCHEME_NAME) or {}
    if scheme.get("type") == "apiKey" and scheme.get("in") == "header" and scheme.get("name"):
        return scheme["name"]
    return DEFAULT_API_KEY_HEADER


def security_schemes(document: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
    return dict(((document.get("components") or {}).get("securitySchemes")) or {})


def basic_authorization(user_pass: str) -> str:
    return "Basic " + base64.b64encode(user_pass.encode("utf-8")).decode("ascii")


def _apply_scheme(scheme: Mapping[str, Any], credentials: Credentials, placement: AuthPlacement) -> bool:
    """Try one security scheme. Returns True when it could be satisfied."""
    scheme_type = scheme.get("type")

    if scheme_type == "http":
        http_scheme = str(scheme.get("scheme", "")).lower()
        if http_scheme == "bearer" and credentials.bearer_token:
            placement.headers["Authorization"] = f"Bearer {credentials.bearer_token}"
            return True
        if http_scheme == "basic" and credentials.basic_auth:
            placement.headers["Authorization"] = basic_authorization(credentials.basic_auth)
            return True
        return False

    if scheme_type == "apiKey":
        if not credentials.api_key or not scheme.get("name"):
            return False
        location = scheme.get("in")
        if location == "header":
            placement.headers[scheme["name"]] = credentials.api_key
        elif location == "query":
            placement.query[scheme["name"]] = credentials.api_key
        elif location == "cookie":
            placement.cookies.append(f"{scheme['name']}={credentials.api_key}")
        else:
            return False
        return True

    if scheme_type in ("oauth2", "openIdConnect") and credentials.bearer_token:
        placement.headers["Authorization"] = f"Bearer {credentials.bearer_token}"
        return True

    return False


def apply_security(
    operation: Operation,
    schemes: Mapping[str, Mapping[str, Any]],
    credentials: Credentials,
    default_header: str = DEFAULT_API_KEY_HEADER,
) -> AuthPlacement:
    """Resolve the operation's security requirements against the call's credentials.

    Each requirement is satisfied by the first of its schemes that has a
    matching credential. When no requirement could be satisfied, the legacy
    global injection is used: the API key under ``default_header`` plus a
    bearer token, or basic credentials when there is no bearer token.

    Returns:
        The headers, query parameters and cookie pairs to add to the request
    """
    placement = AuthPlacement(headers={}, query={}, cookies=[])
    satisfied = False

    for requirement in operation.security:
        for name in requirement:
            scheme = schemes.get(name)
            if scheme is None:
                logger.debug("Security scheme %s is not declared", name)
                continue
            if _apply_scheme(scheme, credentials, placement):
                satisfied = True
                break

    if not satisfied:
        if credentials.api_key:
            placement.headers[default_header] = credentials.api_key
        if credentials.bearer_token:
            placement.headers["Authorization"] = f"Bearer {credentials.bearer_token}"
        elif credentials.basic_auth:
            placement.headers["Authorization"] = basic_authorization(credentials.basic_auth)

    return placement


def credentials_from_headers(headers: Mapping[str, str], fallback: Optional[Credentials] = None) -> Credentials:
    """Build call credentials from inbound HTTP headers.

    ``X-API-Key``/``Api-Key`` carry an API key and ``Authorization`` a bearer
    or basic credential. Values missing from the headers come from ``fallback``.
    """
    fallback = fallback or Credentials()
    lowered = {key.lower(): value for key, value in headers.items()}

    api_key = lowered.get("x-api-key") or lowered.get("api-key")
    bearer_token = None
    basic_auth = None

    authorization = lowered.get("authorization", "")
    if authorization.lower().startswith("bearer "):
        bearer_token = authorization[7:].strip() or None
    elif authorization.lower().startswith("basic "):
        try:
            basic_auth = base64.b64decode(authorization[6:].strip()).decode("utf-8") or None
        except ValueError:
            logger.warning("Ignoring malformed basic Authorization header")

    return Credentials(
        api_key=api_key or fallback.api_key,
        bearer_token=bearer_token or fallback.bearer_token,
        basic_auth=basic_auth or fallback.basic_auth,
    )
