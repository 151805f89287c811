"""
Exceptions raised while loading documents and building tool catalogs.
"""

from typing import Optional


class BridgeError(Exception):
    """Base exception for openapi-mcp-bridge errors."""

    pass


class SpecLoadError(BridgeError):
    """Raised when an OpenAPI document cannot be read, parsed or validated.

    The message is a remediation narrative meant to be shown to a human or an
    agent as-is; the underlying error is kept on ``original``.
    """

    def __init__(self, stage: str, original: Exception, path: Optional[str] = None):
        self.stage = stage
        self.original = original
        self.path = path
        super().__init__(describe_load_error(stage, original, path))


class DereferenceError(BridgeError):
    """Raised when a reference cannot be resolved."""

    pass


class ConversionError(BridgeError):
    """Raised when an operation cannot be turned into a tool."""

    pass


_MINIMAL_DOCUMENT = """openapi: 3.0.0
info:
  title: My API
  version: 1.0.0
paths:
  /health:
    get:
      operationId: getHealth
      summary: Health check
      responses:
        '200':
          description: OK
"""


def describe_load_error(stage: str, original: Exception, path: Optional[str] = None) -> str:
    """Build the troubleshooting text for a failed document load.

    Args:
        stage: What was being attempted ("File reading", "Spec parsing", ...)
        original: The underlying exception
        path: Path of the document, when loaded from a file

    Returns:
        A multi-line narrative keyed on the kind of failure
    """
    lines = [f"OPENAPI LOADING ERROR: {stage} failed", ""]
    if path:
        lines += [f"FILE: {path}", ""]
    lines += ["ORIGINAL ERROR:", str(original), ""]

    text = str(original).lower()
    shown = path or "<spec>"
    if isinstance(original, FileNotFoundError) or "no such file" in text or "cannot find" in text:
        lines += [
            "ISSUE: File not found",
            "",
            "TROUBLESHOOTING STEPS:",
            "1. Verify the file path is correct",
            f"2. Check that the file exists: ls -la {shown}",
            "3. Ensure you have read permissions on the file",
            "4. Try using an absolute path instead of relative path",
            "5. Check current working directory: pwd",
        ]
    elif isinstance(original, PermissionError) or "permission denied" in text:
        lines += [
            "ISSUE: Permission denied",
            "",
            "TROUBLESHOOTING STEPS:",
            f"1. Check file permissions: ls -la {shown}",
            "2. Ensure you have read access to the file",
            "3. Try running with appropriate permissions",
        ]
    elif "yaml" in text or "json" in text or "unmarshal" in text or "scanner" in text:
        lines += [
            "ISSUE: YAML/JSON parsing error",
            "",
            "TROUBLESHOOTING STEPS:",
            "1. Validate your YAML/JSON syntax using an online validator",
            "2. Check for common issues:",
            "   - Missing quotes around strings",
            "   - Incorrect indentation (YAML is sensitive to spaces)",
            "   - Missing commas in JSON",
            "   - Unclosed brackets or braces",
            "3. Use a YAML/JSON linter or formatter",
            "4. Verify the file encoding is UTF-8",
        ]
    elif "validation" in text or "invalid" in text or "missing" in text or "unsupported" in text:
        lines += [
            "ISSUE: OpenAPI specification validation failed",
            "",
            "TROUBLESHOOTING STEPS:",
            "1. Ensure your spec follows OpenAPI 3.0+ format",
            "2. Required fields to check:",
            "   - 'openapi' version field (e.g., openapi: 3.0.0)",
            "   - 'info' section with title and version",
            "   - 'paths' section with at least one endpoint",
            f"3. Validate using this tool: openapi-mcp-bridge validate {shown}",
            "4. Common validation issues:",
            "   - Missing operationId for operations",
            "   - Invalid parameter definitions",
            "   - Incorrect schema references",
        ]
    elif "timeout" in text or "network" in text or "connection" in text:
        lines += [
            "ISSUE: Network or timeout error",
            "",
            "TROUBLESHOOTING STEPS:",
            "1. Check your internet connection",
            "2. Verify any referenced external URLs are accessible",
            "3. Try downloading the spec locally if it's remote",
            "4. Check firewall settings",
        ]
    else:
        lines += [
            "GENERAL TROUBLESHOOTING STEPS:",
            "1. Verify the OpenAPI spec file format (YAML or JSON)",
            "2. Check the OpenAPI version (should be 3.0+)",
            f"3. Validate the spec using: openapi-mcp-bridge validate {shown}",
            "4. Try using a minimal OpenAPI spec to test",
            "5. Check the documentation: https://spec.openapis.org/oas/v3.0.3/",
        ]

    lines += ["", "EXAMPLE MINIMAL OPENAPI SPEC:", "```yaml", _MINIMAL_DOCUMENT.rstrip(), "```"]
    return "\n".join(lines) + "\n"
