from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Union

import yaml
from yaml.resolver import Resolver


# Kinds whose pod template lives at spec.template
TEMPLATE_KINDS = {
    "Deployment",
    "ReplicaSet",
    "DaemonSet",
    "StatefulSet",
    "Job",
    "ReplicationController",
}

BOOL_TAG = "tag:yaml.org,2002:bool"
TIMESTAMP_TAG = "tag:yaml.org,2002:timestamp"

# Only true/false are booleans; yes/no/on/off and timestamps stay strings
BOOL_RE = re.compile(r"^(?:true|True|TRUE|false|False|FALSE)$")


class ManifestError(Exception):
    pass


# -------------------------------------------------------------------
# YAML flavour
# -------------------------------------------------------------------

def _scalar_preserving_resolvers():
    resolvers = {}
    for first, entries in Resolver.yaml_implicit_resolvers.items():
        kept = [(tag, regexp) for tag, regexp in entries if tag not in (BOOL_TAG, TIMESTAMP_TAG)]
        if kept:
            resolvers[first] = kept
    return resolvers


class ManifestLoader(yaml.SafeLoader):
    pass


class ManifestDumper(yaml.SafeDumper):
    pass


# The dumper shares the loader's table so those strings are written back unquoted.
for _cls in (ManifestLoader, ManifestDumper):
    _cls.yaml_implicit_resolvers = _scalar_preserving_resolvers()
    _cls.add_implicit_resolver(BOOL_TAG, BOOL_RE, list("tTfF"))


@dataclass
class WorkloadResource:
    """
    View over a decoded manifest.

    `meta`, `pod_meta` and `pod_spec` are the very mappings held inside `obj`,
    so mutating them mutates the manifest. For a Pod, `meta` and `pod_meta`
    are the same mapping. A missing pod metadata block is represented by a
    detached empty mapping: cleanup never adds keys to an empty one.
    """
    kind: str
    name: str
    obj: Dict[str, Any]
    meta: Optional[Dict[str, Any]]
    pod_meta: Dict[str, Any]
    pod_spec: Optional[Dict[str, Any]]


def _mapping(parent: Dict[str, Any], key: str) -> Optional[Dict[str, Any]]:
    val = parent.get(key)
    return val if isinstance(val, dict) else None


def _pod_template(obj: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    kind = obj.get("kind")
    spec = _mapping(obj, "spec")
    if spec is None:
        return None

    if kind in TEMPLATE_KINDS:
        return _mapping(spec, "template")

    if kind == "CronJob":
        job_template = _mapping(spec, "jobTemplate")
        job_spec = _mapping(job_template, "spec") if job_template else None
        return _mapping(job_spec, "template") if job_spec else None

    return None


def workload_from_object(obj: Dict[str, Any]) -> WorkloadResource:
    """
    Locate the metadata blocks and pod spec of a decoded manifest.
    Kinds without a pod template come back with pod_spec=None.
    The manifest itself is never modified here.
    """
    kind = obj.get("kind") or ""
    meta = _mapping(obj, "metadata")
    name = (meta or {}).get("name") or ""

    if kind == "Pod":
        pod_spec = _mapping(obj, "spec")
        return WorkloadResource(
            kind=kind,
            name=name,
            obj=obj,
            meta=meta,
            pod_meta=meta if meta is not None else {},
            pod_spec=pod_spec,
        )

    template = _pod_template(obj)
    pod_spec = _mapping(template, "spec") if template else None
    if template is None or pod_spec is None:
        return WorkloadResource(kind=kind, name=name, obj=obj, meta=meta, pod_meta={}, pod_spec=None)

    pod_meta = _mapping(template, "metadata")
    return WorkloadResource(
        kind=kind,
        name=name,
        obj=obj,
        meta=meta,
        pod_meta=pod_meta if pod_meta is not None else {},
        pod_spec=pod_spec,
    )


# -------------------------------------------------------------------
# Decoding
# -------------------------------------------------------------------

def load_documents(data: Union[bytes, str]) -> List[Dict[str, Any]]:
    """
    Parse a (possibly multi-document) YAML or JSON stream.
    Empty documents are dropped. Timestamps and yes/no/on/off scalars
    load as strings so they are re-emitted as written.
    """
    try:
        docs = list(yaml.load_all(data, Loader=ManifestLoader))
    except yaml.YAMLError as e:
        raise ManifestError(f"Invalid manifest: {e}") from e

    out = []
    for i, doc in enumerate(docs):
        if doc is None:
            continue
        if not isinstance(doc, dict):
            raise ManifestError(f"Document {i} is not a mapping ({type(doc).__name__})")
        out.append(doc)
    return out


# -------------------------------------------------------------------
# Encoding
# -------------------------------------------------------------------

def encode_object(obj: Dict[str, Any]) -> bytes:
    return yaml.dump(obj, Dumper=ManifestDumper, sort_keys=False, default_flow_style=False).encode("utf-8")


def encode_documents(objs: Iterable[Dict[str, Any]]) -> bytes:
    return b"---\n".join(encode_object(o) for o in objs)
