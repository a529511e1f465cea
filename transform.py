from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Tuple, Union

from manifest import encode_documents, load_documents, workload_from_object
from uninject import Report, Uninjector


logger = logging.getLogger(__name__)


def _uninject_object(obj: Dict[str, Any], uninjector: Uninjector, reports: List[Report]) -> None:
    if obj.get("kind") == "List":
        for item in obj.get("items") or []:
            if isinstance(item, dict):
                _uninject_object(item, uninjector, reports)
        return

    resource = workload_from_object(obj)
    if resource.pod_spec is None:
        logger.debug("passing through %s %r", resource.kind or "<no kind>", resource.name)
        return

    report = Report(kind=resource.kind, name=resource.name)
    # Per-object bytes are discarded; the whole stream is encoded once below.
    uninjector.uninject(resource, report)
    reports.append(report)


def uninject_manifests(data: Union[bytes, str], uninjector: Uninjector) -> Tuple[bytes, List[Report]]:
    """
    Uninject every workload in a YAML/JSON stream.
    Non-workload documents are re-emitted unchanged.
    """
    docs = load_documents(data)
    reports: List[Report] = []
    for doc in docs:
        _uninject_object(doc, uninjector, reports)
    return encode_documents(docs), reports


def format_report(reports: Iterable[Report]) -> str:
    lines = []
    for r in reports:
        verdict = "uninjected" if r.removed_anything() else "skipped"
        lines.append(f'{r.kind.lower()} "{r.name}" {verdict}')
    return "\n".join(lines)
