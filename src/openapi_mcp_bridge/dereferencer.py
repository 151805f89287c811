"""
Reference resolver for OpenAPI documents.

Resolves every ``$ref`` in the document so that later stages only ever see a
finite tree of plain mappings:
- Local references (e.g. "#/components/schemas/Pet")
- File references (e.g. "./common.yaml#/components/schemas/Error")
- Remote references (e.g. "https://example.com/common.json#/Error")

A reference to a document and pointer already being resolved higher up the
stack is replaced by a ``{"$$circular_ref": ref}`` marker instead of being
expanded again.
"""

import copy
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union
from urllib.parse import urljoin

import httpx
import yaml

from .exceptions import DereferenceError

logger = logging.getLogger(__name__)

CIRCULAR_MARKER = "$$circular_ref"


class Dereferencer:
    """Resolves references in an OpenAPI document."""

    def __init__(
        self, spec: Dict[str, Any], base_path: Optional[Union[str, Path]] = None
    ):
        """Initialize the dereferencer.

        Args:
            spec: The OpenAPI specification dictionary
            base_path: Base path for resolving relative file references. If not provided,
                      uses the current working directory.
        """
        self.spec = copy.deepcopy(spec)
        self.base_path = Path(base_path) if base_path else Path.cwd()
        self._cache: Dict[str, Any] = {}
        self._ref_stack: List[Tuple[str, str]] = []

    def _resolve_json_pointer(self, obj: Any, pointer: str) -> Any:
        """Resolve a JSON pointer within an object.

        Raises:
            DereferenceError: If the pointer cannot be resolved
        """
        if not pointer.startswith("/"):
            raise DereferenceError(f"Invalid JSON pointer: {pointer}")

        current = obj
        for part in pointer.lstrip("/").split("/"):
            part = part.replace("~1", "/").replace("~0", "~")
            try:
                if isinstance(current, list):
                    current = current[int(part)]
                else:
                    current = current[part]
            except (KeyError, TypeError, IndexError, ValueError):
                raise DereferenceError(f"Could not resolve pointer {pointer}")

        return current

    def _load_external_ref(self, ref_path: str) -> Any:
        """Load an external document from a located file path or URL.

        Raises:
            DereferenceError: If the reference cannot be loaded
        """
        if ref_path in self._cache:
            return self._cache[ref_path]

        try:
            if ref_path.startswith(("http://", "https://")):
                response = httpx.get(ref_path, timeout=30, follow_redirects=True)
                response.raise_for_status()
                if ref_path.endswith((".yaml", ".yml")):
                    data = yaml.safe_load(response.text)
                else:
                    data = json.loads(response.text)
            else:
                file_path = Path(ref_path)
                with open(file_path) as f:
                    if str(file_path).endswith((".yaml", ".yml")):
                        data = yaml.safe_load(f)
                    else:
                        data = json.load(f)
        except (OSError, ValueError, yaml.YAMLError, httpx.HTTPError) as e:
            raise DereferenceError(
                f"Failed to load external reference {ref_path}: {str(e)}"
            ) from e

        self._cache[ref_path] = data
        return data

    def _locate(self, ref_path: str, source: Optional[str]) -> str:
        """Turn the file part of a ref into an absolute file path or URL."""
        if ref_path.startswith(("http://", "https://")):
            return ref_path
        if source is None:
            return str(self.base_path / ref_path)
        if source.startswith(("http://", "https://")):
            return urljoin(source, ref_path)
        return str(Path(source).parent / ref_path)

    def _dereference(self, obj: Any, document: Any, source: Optional[str]) -> Any:
        """Recursively dereference a value and everything below it.

        Args:
            obj: The value to resolve
            document: The document ``obj`` belongs to; fragment-only refs point into it
            source: Location of ``document``, or None for the root document
        """
        if isinstance(obj, list):
            return [self._dereference(item, document, source) for item in obj]
        if not isinstance(obj, dict):
            return obj

        ref = obj.get("$ref")
        if isinstance(ref, str):
            file_part, _, pointer = ref.partition("#")
            target_source = self._locate(file_part, source) if file_part else source
            stack_key = (target_source or "", pointer)
            if stack_key in self._ref_stack:
                logger.debug("Circular reference %s replaced by marker", ref)
                return {CIRCULAR_MARKER: ref}

            self._ref_stack.append(stack_key)
            try:
                target_document = self._load_external_ref(target_source) if file_part else document
                target = self._resolve_json_pointer(target_document, pointer) if pointer else target_document
                resolved = self._dereference(target, target_document, target_source)
            finally:
                self._ref_stack.pop()

            # Sibling keys next to $ref take precedence over the target
            siblings = {k: self._dereference(v, document, source) for k, v in obj.items() if k != "$ref"}
            if not isinstance(resolved, dict):
                return resolved
            result = dict(resolved)
            result.update(siblings)
            return result

        return {key: self._dereference(value, document, source) for key, value in obj.items()}

    def dereference(self) -> Dict[str, Any]:
        """Dereference all references in the OpenAPI specification.

        Returns:
            The specification with all references dereferenced

        Raises:
            DereferenceError: If any reference cannot be resolved
        """
        self._ref_stack.clear()
        return self._dereference(self.spec, self.spec, None)
