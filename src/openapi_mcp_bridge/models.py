"""
Data models for turning OpenAPI operations into agent tools.
"""

from typing import Any, Awaitable, Callable, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

JSON_MEDIA_TYPES = ("application/json", "application/vnd.api+json")
PARAMETER_LOCATIONS = ("path", "query", "header", "cookie")


class Parameter(BaseModel):
    """A single operation parameter."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = ""
    location: str = Field(default="query", alias="in")
    required: bool = False
    schema_: Optional[Dict[str, Any]] = Field(default=None, alias="schema")
    description: Optional[str] = None


class RequestBody(BaseModel):
    """Request body of an operation, keyed by media type."""

    model_config = ConfigDict(frozen=True)

    content: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    required: bool = False
    description: Optional[str] = None

    def json_media_type(self) -> Optional[str]:
        """Return the declared JSON media type, preferring plain JSON over JSON:API."""
        for wanted in JSON_MEDIA_TYPES:
            for media_type in self.content:
                if media_type.split(";")[0].strip().lower() == wanted:
                    return media_type
        return None

    def json_schema(self) -> Optional[Dict[str, Any]]:
        media_type = self.json_media_type()
        if media_type is None:
            return None
        return (self.content.get(media_type) or {}).get("schema")


class Operation(BaseModel):
    """One HTTP-reachable capability extracted from an OpenAPI document."""

    model_config = ConfigDict(frozen=True)

    operation_id: str
    method: str
    path: str
    summary: str = ""
    description: str = ""
    parameters: List[Parameter] = Field(default_factory=list)
    request_body: Optional[RequestBody] = None
    tags: List[str] = Field(default_factory=list)
    security: List[Dict[str, List[str]]] = Field(default_factory=list)

    def parameters_in(self, location: str) -> List[Parameter]:
        return [p for p in self.parameters if p.location == location]


class GenerationOptions(BaseModel):
    """Per-catalog configuration, fixed for the lifetime of one build."""

    model_config = ConfigDict(frozen=True)

    name_format: Optional[Callable[[str], str]] = None
    tag_filter: List[str] = Field(default_factory=list)
    dry_run: bool = False
    pretty_print: bool = False
    version: str = ""
    post_process_schema: Optional[Callable[[str, Dict[str, Any]], Dict[str, Any]]] = None
    confirm_dangerous_actions: bool = True
    base_url: Optional[str] = None


class Credentials(BaseModel):
    """Credentials available to a single call. Never mutated once built."""

    model_config = ConfigDict(frozen=True)

    api_key: Optional[str] = None
    bearer_token: Optional[str] = None
    basic_auth: Optional[str] = None

    def __repr__(self) -> str:
        present = [k for k in ("api_key", "bearer_token", "basic_auth") if getattr(self, k)]
        return f"Credentials(present={present})"

    __str__ = __repr__


class CallContext(BaseModel):
    """Call-scoped state handed to a tool handler."""

    model_config = ConfigDict(frozen=True)

    credentials: Credentials = Field(default_factory=Credentials)
    timeout: Optional[float] = None


ResultKind = Literal["text", "json", "file", "confirmation", "partial"]


class ToolResult(BaseModel):
    """Result of a tool call, flagged as an error when the agent should react."""

    kind: ResultKind = "text"
    text: str
    is_error: bool = False
    structured: Optional[Dict[str, Any]] = None
    schema_: Optional[Dict[str, Any]] = Field(default=None, alias="schema")
    arguments: Optional[Dict[str, Any]] = None
    examples: List[Any] = Field(default_factory=list)
    usage: Optional[str] = None
    next_steps: List[str] = Field(default_factory=list)
    output_format: Optional[str] = None
    output_type: Optional[str] = None
    partial: bool = False
    resume_token: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)


ToolHandler = Callable[[CallContext, Dict[str, Any]], Awaitable[ToolResult]]


class Tool(BaseModel):
    """A named, schema-validated callable exposed to the agent."""

    name: str
    description: str
    input_schema: Dict[str, Any]
    annotations: Dict[str, Any] = Field(default_factory=dict)
    handler: Optional[ToolHandler] = Field(default=None, exclude=True)

    def listing(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
            "annotations": self.annotations,
        }


class Resource(BaseModel):
    """A read-only resource exposed next to the tools."""

    uri: str
    name: str
    description: str = ""
    mime_type: str = "application/json"
    reader: Callable[[], str] = Field(exclude=True)


class LintIssue(BaseModel):
    """A single issue found while checking a document against its catalog."""

    type: Literal["error", "warning", "info"]
    message: str
    suggestion: str = ""
    operation: Optional[str] = None
    path: Optional[str] = None
    method: Optional[str] = None
    parameter: Optional[str] = None
    field: Optional[str] = None


class LintResult(BaseModel):
    """Outcome of a consistency check."""

    success: bool
    error_count: int = 0
    warning_count: int = 0
    issues: List[LintIssue] = Field(default_factory=list)
    summary: Optional[str] = None


def first_type(schema: Optional[Dict[str, Any]]) -> Optional[str]:
    """Return the schema's type, taking the first entry of a type union."""
    if not schema:
        return None
    declared = schema.get("type")
    if isinstance(declared, list):
        return declared[0] if declared else None
    return declared
