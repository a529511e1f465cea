import re
import math
from typing import Dict, Any


MAX_LINES = 2000

ENTROPY_THRESHOLD = 4.0

REDACT_PATTERNS = [
    (re.compile(r"password\s*=\s*\S+", re.IGNORECASE), "password"),
    (re.compile(r"token\s*=\s*\S+", re.IGNORECASE), "token"),
    (re.compile(r"api[_-]?key\s*=\s*\S+", re.IGNORECASE), "api-key"),
    (re.compile(r"bearer\s+[a-zA-Z0-9\-_.]+", re.IGNORECASE), "bearer"),
    (re.compile(r"eyJ[a-zA-Z0-9\-_]+\.[a-zA-Z0-9\-_]+\.[a-zA-Z0-9\-_]+"), "jwt"),
]

# Image digests look random but are not secrets
DIGEST_RE = re.compile(r"sha256:[a-f0-9]{64}")
BASE64_RE = re.compile(r"[A-Za-z0-9+/=]{20,}")

NOISY_METADATA_FIELDS = (
    "managedFields",
    "resourceVersion",
    "uid",
    "selfLink",
    "generation",
    "creationTimestamp",
)

LAST_APPLIED_ANNOTATION = "kubectl.kubernetes.io/last-applied-configuration"


def _entropy(s: str) -> float:
    probs = [s.count(c) / len(s) for c in set(s)]
    return -sum(p * math.log2(p) for p in probs)


def sanitize_output(tool_name: str, raw: str, max_lines: int = MAX_LINES) -> str:
    text = raw

    for regex, label in REDACT_PATTERNS:
        text = regex.sub(f"[REDACTED: {label}]", text)

    digests = set(DIGEST_RE.findall(text))

    def redact_entropy(match):
        val = match.group(0)
        if any(val in d for d in digests):
            return val
        if _entropy(val) > ENTROPY_THRESHOLD:
            return "[REDACTED: high-entropy]"
        return val

    text = BASE64_RE.sub(redact_entropy, text)

    lines = text.splitlines()
    if len(lines) > max_lines:
        lines = lines[:max_lines]
        lines.append(f"\n[Output of {tool_name} truncated]")

    return "\n".join(lines)


def prune_k8s_object(obj: Dict[str, Any]) -> Dict[str, Any]:
    """
    Reduce a live API object to a manifest: drop status, server-populated
    metadata and the last-applied annotation. Top-level and metadata are
    copied; nested pod template mappings are shared with the input.
    This is NOT a security boundary.
    """
    if not isinstance(obj, dict):
        return obj

    obj = dict(obj)
    obj.pop("status", None)

    md = obj.get("metadata")
    if isinstance(md, dict):
        md = dict(md)
        for k in NOISY_METADATA_FIELDS:
            md.pop(k, None)
        annotations = md.get("annotations")
        if isinstance(annotations, dict) and LAST_APPLIED_ANNOTATION in annotations:
            md["annotations"] = {k: v for k, v in annotations.items() if k != LAST_APPLIED_ANNOTATION}
        obj["metadata"] = md

    # Gate blocks secrets; redact payloads structurally in case one slips through
    if obj.get("kind") == "Secret":
        for key in ("data", "stringData"):
            payload = obj.get(key)
            if isinstance(payload, dict):
                obj[key] = {k: "[REDACTED]" for k in payload.keys()}

    return obj
