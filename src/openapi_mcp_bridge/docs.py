"""
Markdown documentation for a tool catalog.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Union

from .models import first_type
from .schema import generate_example_value


def render_markdown(summaries: List[Dict[str, Any]], document: Dict[str, Any]) -> str:
    """Render dry-run tool summaries as Markdown.

    Args:
        summaries: Entries with ``name``, ``description``, ``tags`` and ``inputSchema``
        document: The source document, for the API title, version and description

    Returns:
        The Markdown text
    """
    out = ["# MCP Tools Documentation\n"]
    info = document.get("info") or {}
    if info:
        out.append(f"**API Title:** {info.get('title', '')}\n")
        out.append(f"**Version:** {info.get('version', '')}\n")
        if info.get("description"):
            out.append(f"{info['description']}\n")

    for summary in summaries:
        name = summary.get("name", "")
        out.append(f"## {name}\n")
        if summary.get("description"):
            out.append(f"{summary['description']}\n")
        if summary.get("tags"):
            out.append("**Tags:** " + ", ".join(summary["tags"]) + "\n")

        properties = (summary.get("inputSchema") or {}).get("properties") or {}
        if properties:
            rows = ["**Arguments:**\n", "| Name | Type | Description |", "|------|------|-------------|"]
            for prop_name, prop in properties.items():
                description = (prop.get("description") or "").replace("\n", " ").replace("|", "\\|")
                rows.append(f"| {prop_name} | {first_type(prop) or ''} | {description} |")
            out.append("\n".join(rows) + "\n")

            example = {prop_name: generate_example_value(prop) for prop_name, prop in properties.items()}
            out.append("**Example call:**\n\n```json\n" + f"call {name} {json.dumps(example, indent=2)}\n" + "```\n")

    return "\n".join(out)


def write_markdown(path: Union[str, Path], summaries: List[Dict[str, Any]], document: Dict[str, Any]) -> None:
    Path(path).write_text(render_markdown(summaries, document), encoding="utf-8")
