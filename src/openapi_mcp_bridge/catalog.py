"""
Tool catalog builder: one tool per operation plus the catalog-level meta-tools.
"""

import json
import logging
import random
import time
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field

from .auth import default_api_key_header, security_schemes
from .exceptions import ConversionError
from .models import CallContext, GenerationOptions, Operation, Resource, Tool, ToolResult
from .narrator import describe_operation
from .pipeline import OperationPipeline
from .registry import ToolHost, ToolRegistry
from .schema import build_input_schema, has_datetime_parameters

logger = logging.getLogger(__name__)

FALLBACK_BASE_URL = "http://localhost:8080"
READ_ONLY_METHODS = ("GET", "HEAD", "OPTIONS")
DESTRUCTIVE_METHODS = ("DELETE", "PUT")
EMPTY_INPUT_SCHEMA: Dict[str, Any] = {"type": "object", "properties": {}}
TIMESTAMP_URI = "timestamp://current"


def to_snake_case(name: str) -> str:
    out = []
    for i, char in enumerate(name):
        if i > 0 and "A" <= char <= "Z":
            out.append("_")
        out.append(char)
    return "".join(out).lower()


def to_camel_case(name: str) -> str:
    parts = [p for p in name.replace("-", "_").replace(" ", "_").split("_") if p]
    if not parts:
        return name
    return parts[0].lower() + "".join(p[:1].upper() + p[1:].lower() for p in parts[1:])


NAME_FORMATTERS: Dict[str, Callable[[str], str]] = {
    "lower": str.lower,
    "upper": str.upper,
    "snake": to_snake_case,
    "camel": to_camel_case,
}


def get_name_formatter(name: Optional[str]) -> Optional[Callable[[str], str]]:
    """Look up a built-in name formatter; unknown or empty names leave names unchanged."""
    if not name:
        return None
    return NAME_FORMATTERS.get(name.lower())


def resolve_base_urls(document: Dict[str, Any], override: Optional[str] = None) -> List[str]:
    """Candidate base URLs: the override, else the document's servers, else the local fallback."""
    if override:
        return [override]
    servers = [s.get("url") for s in document.get("servers") or [] if isinstance(s, dict) and s.get("url")]
    return servers or [FALLBACK_BASE_URL]


def build_annotations(op: Operation, version: str = "") -> Dict[str, Any]:
    title_parts = []
    if version:
        title_parts.append(f"OpenAPI {version}")
    if op.tags:
        title_parts.append("Tags: " + ", ".join(op.tags))

    annotations: Dict[str, Any] = {}
    if title_parts:
        annotations["title"] = " | ".join(title_parts)
    if op.method in READ_ONLY_METHODS:
        annotations["readOnlyHint"] = True
    if op.method in DESTRUCTIVE_METHODS:
        annotations["destructiveHint"] = True
    return annotations


def _matches_tags(op: Operation, tag_filter: List[str]) -> bool:
    return not tag_filter or any(tag in tag_filter for tag in op.tags)


class Catalog(BaseModel):
    """Result of one catalog build."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    host: Any
    tool_names: List[str] = Field(default_factory=list)
    summaries: List[Dict[str, Any]] = Field(default_factory=list)
    resources: List[Resource] = Field(default_factory=list)

    def dump_summaries(self, pretty: bool = False) -> str:
        return json.dumps(self.summaries, indent=2 if pretty else None)


def _meta_result(name: str, text: str) -> ToolResult:
    return ToolResult(
        kind="text",
        text=text,
        schema=EMPTY_INPUT_SCHEMA,
        arguments={},
        usage=f"call {name} <json-args>",
        next_steps=["list", f"schema {name}"],
    )


def _info_tool(document: Dict[str, Any], version: str) -> Tool:
    info = document.get("info") or {}

    async def handler(context: CallContext, arguments: Dict[str, Any]) -> ToolResult:
        lines = []
        for label, key in (
            ("Title", "title"),
            ("Version", "version"),
            ("Description", "description"),
            ("Terms of Service", "termsOfService"),
        ):
            if info.get(key):
                lines.append(f"{label}: {info[key]}")
        return _meta_result("info", "\n".join(lines))

    return Tool(
        name="info",
        description="Show API metadata: title, version, description, and terms of service.",
        input_schema=dict(EMPTY_INPUT_SCHEMA),
        annotations={"title": f"OpenAPI {version}"} if version else {},
        handler=handler,
    )


def _external_docs_tool(external_docs: Dict[str, Any], version: str) -> Tool:
    async def handler(context: CallContext, arguments: Dict[str, Any]) -> ToolResult:
        text = f"External documentation URL: {external_docs['url']}"
        if external_docs.get("description"):
            text += f"\nDescription: {external_docs['description']}"
        return _meta_result("externalDocs", text)

    return Tool(
        name="externalDocs",
        description="Show the OpenAPI external documentation URL and description.",
        input_schema=dict(EMPTY_INPUT_SCHEMA),
        annotations={"title": f"OpenAPI {version}"} if version else {},
        handler=handler,
    )


def _describe_tool(host: ToolHost) -> Tool:
    async def handler(context: CallContext, arguments: Dict[str, Any]) -> ToolResult:
        tools = [
            {
                **tool.listing(),
                "output_type": "text",
                "example_call": {"name": tool.name, "arguments": {}},
            }
            for tool in host.list_tools()
        ]
        payload = {"type": "tool_descriptions", "tools": tools}
        return ToolResult(
            kind="json",
            text=json.dumps(payload, indent=2),
            structured=payload,
            output_format="structured",
            output_type="json",
        )

    return Tool(
        name="describe",
        description="Describe all available tools and their schemas in machine-readable form.",
        input_schema=dict(EMPTY_INPUT_SCHEMA),
        annotations={"title": "Agent-Friendly Documentation", "readOnlyHint": True},
        handler=handler,
    )


def current_timestamp() -> str:
    now = time.time()
    local = datetime.fromtimestamp(now).astimezone()
    return json.dumps(
        {
            "unix_timestamp": int(now),
            "iso8601": local.isoformat(timespec="seconds"),
            "timezone": local.tzname(),
        }
    )


TIMESTAMP_RESOURCE = Resource(
    uri=TIMESTAMP_URI,
    name="Current Unix Timestamp",
    description="Provides the current Unix timestamp in seconds to help the AI understand the current date and time",
    mime_type="application/json",
    reader=current_timestamp,
)


def build_catalog(
    operations: List[Operation],
    document: Dict[str, Any],
    options: Optional[GenerationOptions] = None,
    host: Optional[ToolHost] = None,
    client: Optional[httpx.AsyncClient] = None,
    log_http: bool = False,
    rng: Optional[random.Random] = None,
) -> Catalog:
    """Build tools for ``operations`` and register them with ``host``.

    Args:
        operations: Operations extracted from ``document``
        document: The loaded document, used for servers, security schemes and metadata
        options: Generation options; defaults apply when omitted
        host: Where tools are registered. An in-process ``ToolRegistry`` is used when omitted.
        client: Shared outbound HTTP client handed to every pipeline
        log_http: Log outbound requests and responses
        rng: Random source for base-URL selection

    Returns:
        The catalog. In dry-run mode nothing is registered and ``summaries``
        holds one entry per tool instead.
    """
    options = options or GenerationOptions()
    host = host if host is not None else ToolRegistry()
    catalog = Catalog(host=host)

    base_urls = resolve_base_urls(document, options.base_url)
    api_key_header = default_api_key_header(document)
    schemes = security_schemes(document)

    for op in operations:
        if not _matches_tags(op, options.tag_filter):
            continue

        name = options.name_format(op.operation_id) if options.name_format else op.operation_id
        input_schema = build_input_schema(op.parameters, op.request_body)
        if options.post_process_schema is not None:
            input_schema = options.post_process_schema(name, input_schema)
            if not isinstance(input_schema, dict):
                raise ConversionError(f"Schema hook returned {type(input_schema).__name__} for tool {name}")
        description = describe_operation(op, input_schema, name, options.confirm_dangerous_actions)

        if options.dry_run:
            catalog.summaries.append(
                {"name": name, "description": description, "tags": list(op.tags), "inputSchema": input_schema}
            )
            catalog.tool_names.append(name)
            continue

        pipeline = OperationPipeline(
            op,
            input_schema,
            name,
            base_urls,
            schemes,
            confirm_dangerous_actions=options.confirm_dangerous_actions,
            api_key_header=api_key_header,
            client=client,
            log_http=log_http,
            rng=rng,
        )
        host.register_tool(
            Tool(
                name=name,
                description=description,
                input_schema=input_schema,
                annotations=build_annotations(op, options.version),
                handler=pipeline,
            )
        )
        catalog.tool_names.append(name)

    if options.dry_run:
        return catalog

    external_docs = document.get("externalDocs") or {}
    if external_docs.get("url"):
        host.register_tool(_external_docs_tool(external_docs, options.version))
        catalog.tool_names.append("externalDocs")

    host.register_tool(_info_tool(document, options.version))
    catalog.tool_names.append("info")

    host.register_tool(_describe_tool(host))
    catalog.tool_names.append("describe")

    if any(has_datetime_parameters(op.parameters, op.request_body) for op in operations):
        host.register_resource(TIMESTAMP_RESOURCE)
        catalog.resources.append(TIMESTAMP_RESOURCE)

    logger.info("Registered %d tools", len(catalog.tool_names))
    return catalog
