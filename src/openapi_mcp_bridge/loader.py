"""
Loading and structural validation of OpenAPI documents.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from .dereferencer import Dereferencer
from .exceptions import DereferenceError, SpecLoadError

logger = logging.getLogger(__name__)

DocumentSource = Union[str, Path, Dict[str, Any]]


def parse_document(content: str) -> Dict[str, Any]:
    """Parse a JSON or YAML document.

    Args:
        content: Document text

    Returns:
        The parsed mapping

    Raises:
        ValueError: If the content is neither valid JSON nor valid YAML
    """
    try:
        return json.loads(content)
    except json.JSONDecodeError:
        try:
            return yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ValueError(f"Failed to parse specification as JSON or YAML: {e}") from e


def validate_document(spec: Any) -> None:
    """Check the parts of an OpenAPI 3 document the engine relies on.

    Raises:
        ValueError: If the specification is invalid
    """
    if not isinstance(spec, dict):
        raise ValueError("Specification validation failed: document must be a mapping")

    for field in ("openapi", "info", "paths"):
        if field not in spec:
            raise ValueError(f"Specification validation failed: missing required field '{field}'")

    version = str(spec["openapi"])
    if not version.startswith("3."):
        raise ValueError(f"Specification validation failed: unsupported OpenAPI version {version}")

    info = spec["info"]
    if not isinstance(info, dict) or not info.get("title") or info.get("version") in (None, ""):
        raise ValueError("Specification validation failed: 'info' requires 'title' and 'version'")

    if not isinstance(spec["paths"], dict):
        raise ValueError("Specification validation failed: 'paths' must be a mapping")


def load_document(source: DocumentSource, base_path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """Load, validate and dereference an OpenAPI document.

    Args:
        source: A file path, the document text, or an already parsed mapping
        base_path: Directory for relative external references. Defaults to the
                   file's directory when loading from a path.

    Returns:
        The validated document with all references resolved

    Raises:
        SpecLoadError: If any stage fails. Nothing is extracted from an invalid document.
    """
    path_str: Optional[str] = None
    if isinstance(source, dict):
        spec = source
    else:
        if isinstance(source, Path) or _looks_like_path(source):
            path = Path(source)
            path_str = str(path)
            try:
                content = path.read_text(encoding="utf-8")
            except OSError as e:
                raise SpecLoadError("File reading", e, path_str) from e
            if base_path is None:
                base_path = path.parent
        else:
            content = source
        try:
            spec = parse_document(content)
        except ValueError as e:
            raise SpecLoadError("Spec parsing", e, path_str) from e

    try:
        validate_document(spec)
    except ValueError as e:
        raise SpecLoadError("Spec validation", e, path_str) from e

    try:
        resolved = Dereferencer(spec, base_path=base_path).dereference()
    except DereferenceError as e:
        raise SpecLoadError("Reference resolution", e, path_str) from e

    logger.info(
        "Loaded OpenAPI document %s %s",
        resolved["info"].get("title"),
        resolved["info"].get("version"),
    )
    return resolved


def _looks_like_path(source: str) -> bool:
    if "\n" in source or source.lstrip().startswith(("{", "openapi:")):
        return False
    return True
