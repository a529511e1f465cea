from kubernetes import client, config
from kubernetes.dynamic import DynamicClient


# Fallback: plural -> kind for the workloads that carry a pod template
PLURAL_TO_KIND = {
    "pods": "Pod",
    "deployments": "Deployment",
    "replicasets": "ReplicaSet",
    "daemonsets": "DaemonSet",
    "statefulsets": "StatefulSet",
    "jobs": "Job",
    "cronjobs": "CronJob",
    "replicationcontrollers": "ReplicationController",
}


def load_dynamic_client() -> DynamicClient:
    # Local kubeconfig only
    config.load_kube_config()
    return DynamicClient(client.ApiClient())


def api_version_of(group: str, version: str) -> str:
    group = (group or "").strip()
    version = (version or "").strip()
    return f"{group}/{version}" if group else version


def get_resource(dyn: DynamicClient, api_version: str, plural: str, kind: str = None):
    """
    Resolve a workload resource via discovery, falling back to a kind lookup.
    """
    for resource in dyn.resources.search(api_version=api_version):
        if resource.name == plural:
            return resource

    kind = kind or PLURAL_TO_KIND.get(plural.lower())
    if kind:
        return dyn.resources.get(api_version=api_version, kind=kind)

    raise ValueError(f"Cannot resolve resource for plural='{plural}' api_version='{api_version}'")
