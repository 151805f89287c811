"""
Extraction and filtering of operations from a loaded OpenAPI document.
"""

import re
from collections import Counter
from typing import Any, Dict, Iterable, List, Optional, Pattern

from .models import Operation, Parameter, RequestBody

HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")


def _merge_parameters(shared: List[Dict[str, Any]], own: List[Dict[str, Any]]) -> List[Parameter]:
    """Merge path-level and operation-level parameters.

    An operation-level parameter replaces a path-level one with the same name
    and location; order of first appearance is kept.
    """
    merged: Dict[tuple, Dict[str, Any]] = {}
    for raw in [*shared, *own]:
        if not isinstance(raw, dict):
            continue
        merged[(raw.get("name"), raw.get("in"))] = raw
    return [Parameter.model_validate(raw) for raw in merged.values()]


def extract_operations(document: Dict[str, Any]) -> List[Operation]:
    """Extract every operation of the document, in document order.

    Operations without an ``operationId`` get ``<method>_<path>`` as their
    identifier; the consistency checker still reports them.
    """
    operations: List[Operation] = []
    default_security = document.get("security") or []

    for path, path_item in (document.get("paths") or {}).items():
        if not isinstance(path_item, dict):
            continue
        shared = path_item.get("parameters") or []
        for method, raw in path_item.items():
            if method.lower() not in HTTP_METHODS or not isinstance(raw, dict):
                continue

            security = raw["security"] if "security" in raw else default_security
            request_body = raw.get("requestBody")

            operations.append(
                Operation(
                    operation_id=raw.get("operationId") or f"{method.lower()}_{path}",
                    method=method.upper(),
                    path=path,
                    summary=raw.get("summary") or "",
                    description=raw.get("description") or "",
                    parameters=_merge_parameters(shared, raw.get("parameters") or []),
                    request_body=RequestBody.model_validate(request_body) if request_body else None,
                    tags=list(raw.get("tags") or []),
                    security=[dict(req) for req in security or []],
                )
            )

    return operations


def filter_operations(
    operations: Iterable[Operation],
    include: Optional[Pattern[str]] = None,
    exclude: Optional[Pattern[str]] = None,
) -> List[Operation]:
    """Keep operations whose description (or summary) matches ``include`` and not ``exclude``."""
    kept = []
    for op in operations:
        text = op.description or op.summary
        if include is not None and not include.search(text):
            continue
        if exclude is not None and exclude.search(text):
            continue
        kept.append(op)
    return kept


def filter_by_tags(operations: Iterable[Operation], tags: Iterable[str]) -> List[Operation]:
    wanted = set(tags)
    if not wanted:
        return list(operations)
    return [op for op in operations if wanted.intersection(op.tags)]


def filter_by_names(operations: Iterable[Operation], names: Iterable[str]) -> List[Operation]:
    wanted = {name.strip() for name in names if name.strip()}
    return [op for op in operations if op.operation_id in wanted]


def compile_pattern(pattern: Optional[str]) -> Optional[Pattern[str]]:
    return re.compile(pattern) if pattern else None


def summarize_operations(operations: Iterable[Operation]) -> Dict[str, Any]:
    """Count tools and tools per tag."""
    operations = list(operations)
    tags = Counter(tag for op in operations for tag in op.tags)
    return {"total": len(operations), "tags": dict(sorted(tags.items()))}
