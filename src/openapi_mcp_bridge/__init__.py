"""
Expose the operations of an OpenAPI document as schema-validated MCP tools.
"""

from .catalog import Catalog, build_catalog, get_name_formatter
from .checker import check
from .exceptions import BridgeError, ConversionError, DereferenceError, SpecLoadError
from .loader import load_document
from .models import (
    CallContext,
    Credentials,
    GenerationOptions,
    LintResult,
    Operation,
    Tool,
    ToolResult,
)
from .operations import extract_operations, filter_operations
from .registry import ToolHost, ToolRegistry
from .schema import build_input_schema, synthesize

__version__ = "0.1.0"

__all__ = [
    "BridgeError",
    "CallContext",
    "Catalog",
    "ConversionError",
    "Credentials",
    "DereferenceError",
    "GenerationOptions",
    "LintResult",
    "Operation",
    "SpecLoadError",
    "Tool",
    "ToolHost",
    "ToolRegistry",
    "ToolResult",
    "build_catalog",
    "build_input_schema",
    "check",
    "extract_operations",
    "filter_operations",
    "get_name_formatter",
    "load_document",
    "synthesize",
]
