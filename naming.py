from __future__ import annotations

from dataclasses import dataclass, fields, replace


# -----------------------------
# Reserved naming conventions
# -----------------------------
PREFIX = "linkerd.io"

PROXY_CONTAINER_NAME = "linkerd-proxy"
INIT_CONTAINER_NAME = "linkerd-init"
IDENTITY_END_ENTITY_VOLUME_NAME = "linkerd-identity-end-entity"

PROXY_INJECT_ANNOTATION = PREFIX + "/inject"

AUTOMOUNT_SERVICE_ACCOUNT_TOKEN_ANNOTATION = PREFIX + "/automount-service-account-token"
AUTOMOUNT_SERVICE_ACCOUNT_TOKEN_ENABLED = "enabled"


@dataclass(frozen=True)
class NamingPolicy:
    """
    Names and key prefixes written by the injector.
    Uninjection only removes what matches these exactly (or by prefix for keys).
    """
    prefix: str = PREFIX
    proxy_container_name: str = PROXY_CONTAINER_NAME
    init_container_name: str = INIT_CONTAINER_NAME
    identity_volume_name: str = IDENTITY_END_ENTITY_VOLUME_NAME
    automount_annotation: str = AUTOMOUNT_SERVICE_ACCOUNT_TOKEN_ANNOTATION
    automount_enabled: str = AUTOMOUNT_SERVICE_ACCOUNT_TOKEN_ENABLED
    proxy_inject_annotation: str = PROXY_INJECT_ANNOTATION

    def with_overrides(self, **overrides) -> "NamingPolicy":
        known = {f.name for f in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise TypeError(f"Unknown naming policy fields: {sorted(unknown)}")
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes)


DEFAULT_POLICY = NamingPolicy()
