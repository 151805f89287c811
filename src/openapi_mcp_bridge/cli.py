"""
Command-line interface for the OpenAPI to MCP bridge.
"""

import json
from pathlib import Path
from typing import List, Optional

import typer
import yaml

from .catalog import build_catalog, get_name_formatter
from .checker import check
from .config import get_settings
from .docs import write_markdown
from .exceptions import BridgeError
from .loader import load_document
from .logging import configure_logging
from .models import Credentials, GenerationOptions, LintResult
from .operations import (
    compile_pattern,
    extract_operations,
    filter_by_names,
    filter_by_tags,
    filter_operations,
    summarize_operations,
)

app = typer.Typer(help="Expose the operations of an OpenAPI document as MCP tools")


def _load(spec: Path) -> dict:
    """Load a document or exit with its troubleshooting narrative.

    Raises:
        typer.Exit: If the document cannot be loaded
    """
    try:
        return load_document(spec)
    except BridgeError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(1)


def _save_yaml(content: dict, path: Path) -> None:
    """Save content to a YAML file.

    Raises:
        typer.Exit: If the file cannot be saved
    """
    try:
        with open(path, "w") as f:
            yaml.dump(content, f, sort_keys=False)
    except OSError as e:
        typer.echo(f"Error saving to {path}: {str(e)}", err=True)
        raise typer.Exit(1)


def _selected_operations(document: dict, include: Optional[str], exclude: Optional[str]):
    settings = get_settings()
    return filter_operations(
        extract_operations(document),
        compile_pattern(include or settings.include_desc_regex),
        compile_pattern(exclude or settings.exclude_desc_regex),
    )


def _report(result: LintResult) -> None:
    for issue in result.issues:
        typer.echo(f"[{issue.type.upper()}] {issue.message}", err=True)
        if issue.suggestion:
            typer.echo(f"  Suggestion: {issue.suggestion}", err=True)
    typer.echo(result.summary, err=True)


@app.command()
def serve(
    spec: Path = typer.Argument(..., help="Path to the OpenAPI YAML or JSON document"),
    http: Optional[str] = typer.Option(None, "--http", help="Serve over HTTP on HOST:PORT instead of stdio"),
    base_url: Optional[str] = typer.Option(None, "--base-url", help="Override the API base URL"),
    api_key: Optional[str] = typer.Option(None, "--api-key", help="API key credential"),
    bearer_token: Optional[str] = typer.Option(None, "--bearer-token", help="Bearer token credential"),
    basic_auth: Optional[str] = typer.Option(None, "--basic-auth", help="Basic credential as user:pass"),
    tag: List[str] = typer.Option([], "--tag", help="Only expose operations with this tag (repeatable)"),
    tool_name_format: Optional[str] = typer.Option(
        None, "--tool-name-format", help="Tool name format: lower, upper, snake or camel"
    ),
    include_desc_regex: Optional[str] = typer.Option(None, "--include-desc-regex"),
    exclude_desc_regex: Optional[str] = typer.Option(None, "--exclude-desc-regex"),
    no_confirm_dangerous: bool = typer.Option(
        False, "--no-confirm-dangerous", help="Do not ask for confirmation before PUT/POST/DELETE"
    ),
) -> None:
    """Serve the document's operations as MCP tools."""
    from .server import FastMCPHost

    settings = get_settings()
    configure_logging(settings.log_level)
    document = _load(spec)

    startup = settings.credentials()
    credentials = Credentials(
        api_key=api_key or startup.api_key,
        bearer_token=bearer_token or startup.bearer_token,
        basic_auth=basic_auth or startup.basic_auth,
    )
    info = document.get("info") or {}
    host = FastMCPHost(
        info.get("title") or "openapi-mcp-bridge",
        credentials=credentials,
        timeout=settings.request_timeout_seconds,
        instructions=info.get("description"),
    )
    options = GenerationOptions(
        name_format=get_name_formatter(tool_name_format),
        tag_filter=tag,
        version=str(info.get("version", "")),
        confirm_dangerous_actions=not no_confirm_dangerous,
        base_url=base_url or settings.openapi_base_url,
    )
    build_catalog(
        _selected_operations(document, include_desc_regex, exclude_desc_regex),
        document,
        options,
        host=host,
        log_http=settings.log_http,
    )
    host.run(http)


@app.command()
def tools(
    spec: Path = typer.Argument(..., help="Path to the OpenAPI YAML or JSON document"),
    pretty: bool = typer.Option(False, "--pretty", help="Pretty-print the JSON output"),
    tag: List[str] = typer.Option([], "--tag", help="Only list operations with this tag (repeatable)"),
    tool_name_format: Optional[str] = typer.Option(None, "--tool-name-format"),
) -> None:
    """Print the tool summaries without serving (dry run)."""
    document = _load(spec)
    options = GenerationOptions(
        name_format=get_name_formatter(tool_name_format), tag_filter=tag, dry_run=True, pretty_print=pretty
    )
    catalog = build_catalog(_selected_operations(document, None, None), document, options)
    typer.echo(catalog.dump_summaries(pretty))


@app.command()
def summary(spec: Path = typer.Argument(..., help="Path to the OpenAPI YAML or JSON document")) -> None:
    """Print the number of tools and the number of tools per tag."""
    document = _load(spec)
    counts = summarize_operations(_selected_operations(document, None, None))
    typer.echo(f"Total tools: {counts['total']}")
    for tag_name, count in counts["tags"].items():
        typer.echo(f"  {tag_name}: {count}")


@app.command()
def validate(spec: Path = typer.Argument(..., help="Path to the OpenAPI YAML or JSON document")) -> None:
    """Load the document and check that every operation becomes a tool."""
    document = _load(spec)
    catalog = build_catalog(extract_operations(document), document, GenerationOptions(dry_run=True))
    result = check(document, catalog.tool_names)
    _report(result)
    if not result.success:
        raise typer.Exit(1)


@app.command()
def lint(
    spec: Path = typer.Argument(..., help="Path to the OpenAPI YAML or JSON document"),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON"),
) -> None:
    """Run the detailed consistency check."""
    document = _load(spec)
    result = check(document, detailed=True)
    if as_json:
        typer.echo(result.model_dump_json(indent=2, exclude_none=True))
    else:
        _report(result)
    if not result.success:
        raise typer.Exit(1)


@app.command(name="filter")
def filter_command(
    spec: Path = typer.Argument(..., help="Path to the OpenAPI YAML or JSON document"),
    tag: List[str] = typer.Option([], "--tag", help="Only keep operations with this tag (repeatable)"),
    include_desc_regex: Optional[str] = typer.Option(None, "--include-desc-regex"),
    exclude_desc_regex: Optional[str] = typer.Option(None, "--exclude-desc-regex"),
    function_list_file: Optional[Path] = typer.Option(
        None, "--function-list-file", help="File with one operationId per line"
    ),
) -> None:
    """Print the operations left after filtering, as JSON."""
    document = _load(spec)
    operations = filter_by_tags(_selected_operations(document, include_desc_regex, exclude_desc_regex), tag)
    if function_list_file is not None:
        operations = filter_by_names(operations, function_list_file.read_text().splitlines())
    typer.echo(
        json.dumps(
            [
                {
                    "name": op.operation_id,
                    "description": op.description or op.summary,
                    "method": op.method,
                    "path": op.path,
                    "tags": op.tags,
                }
                for op in operations
            ],
            indent=2,
        )
    )


@app.command()
def docs(
    spec: Path = typer.Argument(..., help="Path to the OpenAPI YAML or JSON document"),
    output: Path = typer.Option(..., "--output", "-o", help="Where to write the Markdown documentation"),
    tool_name_format: Optional[str] = typer.Option(None, "--tool-name-format"),
) -> None:
    """Write Markdown documentation for every tool."""
    document = _load(spec)
    options = GenerationOptions(name_format=get_name_formatter(tool_name_format), dry_run=True)
    catalog = build_catalog(_selected_operations(document, None, None), document, options)
    write_markdown(output, catalog.summaries, document)
    typer.echo(f"Wrote Markdown documentation to {output}")


@app.command()
def dereference(
    spec: Path = typer.Argument(..., help="Path to the input OpenAPI spec"),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Path to save the dereferenced spec. If not provided, will use input filename with .dereferenced.yaml suffix",
    ),
) -> None:
    """Resolve every $ref in an OpenAPI document."""
    if output is None:
        output = spec.parent / f"{spec.stem}.dereferenced.yaml"

    document = _load(spec)
    _save_yaml(document, output)
    typer.echo(f"Successfully dereferenced {spec} to {output}")


def main():
    """Entry point for the CLI."""
    app()
