from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from manifest import WorkloadResource, encode_object
from naming import DEFAULT_POLICY, NamingPolicy


logger = logging.getLogger(__name__)

Encoder = Callable[[Dict[str, Any]], bytes]


# -----------------------------
# Report
# -----------------------------
@dataclass
class Uninjected:
    proxy: bool = False
    proxy_init: bool = False


@dataclass
class Report:
    kind: str = ""
    name: str = ""
    uninjected: Uninjected = field(default_factory=Uninjected)

    def removed_anything(self) -> bool:
        return self.uninjected.proxy or self.uninjected.proxy_init


# -----------------------------
# Helpers
# -----------------------------
def _without_named(items: Optional[List[Dict[str, Any]]], name: str) -> Tuple[List[Dict[str, Any]], int]:
    kept = []
    removed = 0
    for item in items or []:
        if item.get("name") == name:
            removed += 1
        else:
            kept.append(item)
    return kept, removed


def _set_or_drop(parent: Dict[str, Any], key: str, value) -> None:
    # Empty collections are left out, as an omitempty serializer would.
    if value:
        parent[key] = value
    else:
        parent.pop(key, None)


def uninject_object_meta(meta: Dict[str, Any], policy: NamingPolicy = DEFAULT_POLICY) -> None:
    """
    Remove prefixed annotations and labels from an ObjectMeta mapping.
    The proxy-inject annotation is kept: it records the injection decision.
    """
    annotations = {}
    for key, val in (meta.get("annotations") or {}).items():
        if not str(key).startswith(policy.prefix) or key == policy.proxy_inject_annotation:
            annotations[key] = val
    _set_or_drop(meta, "annotations", annotations)

    labels = {}
    for key, val in (meta.get("labels") or {}).items():
        if not str(key).startswith(policy.prefix):
            labels[key] = val
    _set_or_drop(meta, "labels", labels)


# -----------------------------
# Uninjector
# -----------------------------
class Uninjector:
    """
    Strips the proxy sidecar, proxy-init container, identity volume and
    prefixed metadata from a workload.

    `uninject` mutates the resource it is given; `uninjected_copy` leaves the
    caller's resource alone and works on a deep copy.
    """

    def __init__(self, policy: NamingPolicy = DEFAULT_POLICY, encoder: Encoder = encode_object):
        self.policy = policy
        self.encoder = encoder

    def uninject(self, resource: WorkloadResource, report: Report) -> Optional[bytes]:
        if resource.pod_spec is None:
            return None

        self.uninject_pod_spec(resource, report)

        if resource.meta is not None:
            uninject_object_meta(resource.meta, self.policy)
        uninject_object_meta(resource.pod_meta, self.policy)

        return self.encoder(resource.obj)

    def uninjected_copy(self, resource: WorkloadResource, report: Report) -> Tuple[WorkloadResource, Optional[bytes]]:
        # Deep-copying the whole resource at once keeps the shared
        # meta/pod_meta identity of a Pod intact in the copy.
        clone = copy.deepcopy(resource)
        return clone, self.uninject(clone, report)

    def uninject_pod_spec(self, resource: WorkloadResource, report: Report) -> None:
        spec = resource.pod_spec
        if spec is None:
            return
        policy = self.policy

        annotations = resource.pod_meta.get("annotations") or {}
        if annotations.get(policy.automount_annotation) == policy.automount_enabled:
            spec["automountServiceAccountToken"] = False

        init_containers, removed = _without_named(spec.get("initContainers"), policy.init_container_name)
        if removed:
            report.uninjected.proxy_init = True
            logger.debug("removed %s from %s/%s", policy.init_container_name, resource.kind, resource.name)
        _set_or_drop(spec, "initContainers", init_containers)

        containers, removed = _without_named(spec.get("containers"), policy.proxy_container_name)
        if removed:
            report.uninjected.proxy = True
            logger.debug("removed %s from %s/%s", policy.proxy_container_name, resource.kind, resource.name)
        spec["containers"] = containers

        volumes, _ = _without_named(spec.get("volumes"), policy.identity_volume_name)
        _set_or_drop(spec, "volumes", volumes)
