from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

from kubernetes import client

from gate import RequestContext, enforce
from k8s_resource import api_version_of, get_resource, load_dynamic_client
from manifest import workload_from_object
from sanitize import prune_k8s_object
from uninject import Report, Uninjector


logger = logging.getLogger(__name__)


# -------------------------------------------------------------------
# Read tools
# -------------------------------------------------------------------

async def k8s_uninject(arguments: Dict[str, Any], uninjector: Optional[Uninjector] = None) -> str:
    """
    Fetch exactly one namespaced workload and return it with the proxy
    sidecar, init container, identity volume and marker metadata removed.
    Nothing is written back to the cluster.

    Required:
      - namespace, group, version, plural, name
    """
    namespace = (arguments.get("namespace") or "").strip()
    group = (arguments.get("group") or "").strip()
    version = (arguments.get("version") or "").strip()
    plural = (arguments.get("plural") or "").strip()
    name = (arguments.get("name") or "").strip()
    kind = arguments.get("kind")

    ctx = RequestContext(
        tool_name="k8s_uninject",
        verb="uninject",
        kind=kind,
        namespace=namespace,
        name=name,
        arguments=arguments,
    )

    # Gate first: fail closed, no API call if rejected.
    enforce(ctx)

    if not version:
        raise ValueError("version is required")

    request = {
        "namespace": namespace,
        "group": group,
        "version": version,
        "plural": plural,
        "name": name,
    }

    dyn = load_dynamic_client()
    resource = get_resource(dyn, api_version_of(group, version), plural, kind=kind)

    try:
        resp = resource.get(name=name, namespace=namespace)
    except client.exceptions.ApiException as e:
        status = "error"
        if e.status == 404:
            status = "not_found"
        elif e.status == 403:
            status = "forbidden"

        out = {
            "request": request,
            "result": {
                "status": status,
                "message": f"kubernetes api error: {e.status}",
            },
            "raw": {
                "status": e.status,
                "reason": e.reason,
            },
        }
        return json.dumps(out, indent=2, sort_keys=True)

    raw = resp.to_dict() if hasattr(resp, "to_dict") else resp
    workload = workload_from_object(prune_k8s_object(raw))

    report = Report(kind=workload.kind, name=workload.name)
    manifest = (uninjector or Uninjector()).uninjected_copy(workload, report)[1]

    if manifest is None:
        status = "not_a_workload"
    elif report.removed_anything():
        status = "uninjected"
    else:
        status = "skipped"
    logger.info("k8s_uninject %s/%s %s: %s", namespace, plural, name, status)

    out = {
        "request": request,
        "result": {
            "status": status,
            "proxy": report.uninjected.proxy,
            "proxy_init": report.uninjected.proxy_init,
        },
        "manifest": manifest.decode("utf-8") if manifest is not None else None,
    }
    return json.dumps(out, indent=2, sort_keys=True)
