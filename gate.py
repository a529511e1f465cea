from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Mapping, Any


# -----------------------------
# Hard forbidden resources
# -----------------------------
FORBIDDEN_KINDS = {
    "secret",
    "configmap",
}

# Block bypass when clients omit `kind`
FORBIDDEN_PLURALS = {
    "secrets",
    "configmaps",
}

# Only kinds that carry a pod template can be uninjected
UNINJECT_ALLOWED_PLURALS = {
    "pods",
    "deployments",
    "replicasets",
    "daemonsets",
    "statefulsets",
    "jobs",
    "cronjobs",
    "replicationcontrollers",
}

BULK_ARGUMENTS = {
    "label_selector",
    "field_selector",
    "selectors",
    "all",
    "all_namespaces",
}


# -----------------------------
# Exceptions
# -----------------------------
class GateError(Exception):
    pass


class ForbiddenKind(GateError):
    pass


class MissingScope(GateError):
    pass


class BulkOperationBlocked(GateError):
    pass


class NotInjectable(GateError):
    pass


# -----------------------------
# Request Context
# -----------------------------
@dataclass(frozen=True)
class RequestContext:
    tool_name: str
    verb: str
    kind: Optional[str] = None
    namespace: Optional[str] = None
    name: Optional[str] = None
    arguments: Optional[Mapping[str, Any]] = None


def _norm(val: Optional[str]) -> Optional[str]:
    return val.lower().strip() if val else None


# -----------------------------
# Validators
# -----------------------------
def validate_kind(kind: Optional[str]) -> None:
    k = _norm(kind)
    if k and k in FORBIDDEN_KINDS:
        raise ForbiddenKind(f"Access to kind '{kind}' is forbidden")


def validate_plural(plural: Optional[str]) -> None:
    p = _norm(plural)
    if p and p in FORBIDDEN_PLURALS:
        raise ForbiddenKind(f"Access to plural '{plural}' is forbidden")


def validate_scope(ctx: RequestContext) -> None:
    if not ctx.namespace or not ctx.name:
        raise MissingScope(f"{ctx.verb.upper()} requires namespace and name")


def validate_injectable(plural: Optional[str]) -> None:
    p = _norm(plural)
    if p not in UNINJECT_ALLOWED_PLURALS:
        raise NotInjectable(f"Plural '{plural}' has no pod template to uninject")


def block_bulk_args(arguments: Mapping[str, Any]) -> None:
    for key in sorted(BULK_ARGUMENTS):
        if key in arguments:
            raise BulkOperationBlocked(f"Bulk operation via '{key}' is not allowed")


# -----------------------------
# Single Enforcement Entry
# -----------------------------
def enforce(ctx: RequestContext) -> None:
    """
    Single fail-closed enforcement point.
    Called exactly once per tool invocation, before any API call.
    """
    if not ctx.verb:
        raise GateError("Missing verb")

    args = ctx.arguments or {}

    # Hard blocks
    validate_kind(ctx.kind)
    validate_plural(args.get("plural"))

    validate_scope(ctx)
    block_bulk_args(args)

    if ctx.verb == "uninject":
        validate_injectable(args.get("plural"))
