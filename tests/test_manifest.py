import sys
import os
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import pytest
import yaml

from manifest import ManifestError, encode_documents, encode_object, load_documents, workload_from_object
from naming import DEFAULT_POLICY as P
from transform import format_report, uninject_manifests
from uninject import Report, Uninjected, Uninjector


INJECTED = f"""\
apiVersion: apps/v1
kind: Deployment
metadata:
  name: web
  namespace: shop
spec:
  template:
    metadata:
      annotations:
        {P.prefix}/proxy-version: stable-2.14
        {P.proxy_inject_annotation}: enabled
      labels:
        app: web
        {P.prefix}/proxy-deployment: web
    spec:
      initContainers:
      - name: {P.init_container_name}
        image: proxy-init:v2
      containers:
      - name: web
        image: nginx:1.25
      - name: {P.proxy_container_name}
        image: proxy:stable
      volumes:
      - name: {P.identity_volume_name}
        emptyDir: {{}}
---
apiVersion: v1
kind: Service
metadata:
  name: web
  annotations:
    {P.prefix}/inject: enabled
spec:
  ports:
  - port: 80
"""


def test_load_documents_skips_empty_docs():
    docs = load_documents("---\nkind: Service\n---\n---\nkind: Pod\n")

    assert [d["kind"] for d in docs] == ["Service", "Pod"]


def test_load_documents_accepts_json():
    docs = load_documents(b'{"kind": "Pod", "metadata": {"name": "p"}, "spec": {"containers": []}}')

    assert docs[0]["metadata"]["name"] == "p"


def test_load_documents_rejects_scalars():
    with pytest.raises(ManifestError):
        load_documents("just a string\n")


def test_load_documents_rejects_invalid_yaml():
    with pytest.raises(ManifestError):
        load_documents("kind: [unclosed\n")


def test_pod_shares_metadata_blocks():
    obj = {"kind": "Pod", "metadata": {"name": "p"}, "spec": {"containers": []}}
    res = workload_from_object(obj)

    assert res.meta is res.pod_meta is obj["metadata"]
    assert res.pod_spec is obj["spec"]
    assert res.name == "p"


@pytest.mark.parametrize("kind", ["Deployment", "ReplicaSet", "DaemonSet", "StatefulSet", "Job", "ReplicationController"])
def test_template_kinds(kind):
    obj = {"kind": kind, "metadata": {"name": "w"}, "spec": {"template": {"metadata": {}, "spec": {"containers": []}}}}
    res = workload_from_object(obj)

    assert res.pod_spec is obj["spec"]["template"]["spec"]
    assert res.pod_meta is obj["spec"]["template"]["metadata"]
    assert res.meta is obj["metadata"]


def test_missing_pod_metadata_is_not_added():
    obj = {"kind": "Deployment", "spec": {"template": {"spec": {"containers": []}}}}
    res = workload_from_object(obj)

    assert res.pod_meta == {}
    assert "metadata" not in obj["spec"]["template"]
    assert "metadata" not in obj


def test_cronjob_template():
    obj = {
        "kind": "CronJob",
        "metadata": {"name": "nightly"},
        "spec": {"jobTemplate": {"spec": {"template": {"metadata": {}, "spec": {"containers": []}}}}},
    }
    res = workload_from_object(obj)

    assert res.pod_spec is obj["spec"]["jobTemplate"]["spec"]["template"]["spec"]


def test_non_workloads_have_no_pod_spec():
    assert workload_from_object({"kind": "ConfigMap", "data": {"a": "b"}}).pod_spec is None
    assert workload_from_object({"kind": "Deployment", "spec": {}}).pod_spec is None
    assert workload_from_object({}).pod_spec is None


def test_uninject_manifests_stream():
    out, reports = uninject_manifests(INJECTED, Uninjector())
    docs = list(yaml.safe_load_all(out))

    deploy, service = docs
    pod = deploy["spec"]["template"]
    assert [c["name"] for c in pod["spec"]["containers"]] == ["web"]
    assert "initContainers" not in pod["spec"]
    assert "volumes" not in pod["spec"]
    assert pod["metadata"]["annotations"] == {P.proxy_inject_annotation: "enabled"}
    assert pod["metadata"]["labels"] == {"app": "web"}

    # Service is not a workload and passes through as-is
    assert service["metadata"]["annotations"] == {f"{P.prefix}/inject": "enabled"}

    assert reports == [Report(kind="Deployment", name="web", uninjected=Uninjected(proxy=True, proxy_init=True))]


def test_uninject_manifests_expands_lists():
    doc = {
        "apiVersion": "v1",
        "kind": "List",
        "items": [
            {"kind": "Pod", "metadata": {"name": "a"}, "spec": {"containers": [{"name": P.proxy_container_name}, {"name": "a"}]}},
            {"kind": "Pod", "metadata": {"name": "b"}, "spec": {"containers": [{"name": "b"}]}},
        ],
    }
    out, reports = uninject_manifests(encode_documents([doc]), Uninjector())

    items = yaml.safe_load(out)["items"]
    assert [c["name"] for c in items[0]["spec"]["containers"]] == ["a"]
    assert [(r.name, r.removed_anything()) for r in reports] == [("a", True), ("b", False)]


def test_uninject_manifests_is_idempotent():
    once, _ = uninject_manifests(INJECTED, Uninjector())
    twice, reports = uninject_manifests(once, Uninjector())

    assert once == twice
    assert not any(r.removed_anything() for r in reports)


def test_format_report():
    reports = [
        Report(kind="Deployment", name="web", uninjected=Uninjected(proxy=True)),
        Report(kind="StatefulSet", name="db"),
    ]

    assert format_report(reports) == 'deployment "web" uninjected\nstatefulset "db" skipped'


def test_specless_pod_passes_through_unchanged():
    src = "apiVersion: v1\nkind: Pod\n"
    out, reports = uninject_manifests(src, Uninjector())

    assert out == src.encode("utf-8")
    assert reports == []


def test_template_without_metadata_gains_none():
    src = f"""\
apiVersion: apps/v1
kind: Deployment
metadata:
  name: web
spec:
  template:
    spec:
      containers:
      - name: web
      - name: {P.proxy_container_name}
"""
    out, reports = uninject_manifests(src, Uninjector())
    template = yaml.safe_load(out)["spec"]["template"]

    assert "metadata" not in template
    assert [c["name"] for c in template["spec"]["containers"]] == ["web"]
    assert reports[0].uninjected.proxy is True


def test_timestamps_and_yaml11_words_survive():
    src = f"""\
apiVersion: v1
kind: Pod
metadata:
  name: api
  creationTimestamp: 2024-01-01T00:00:00Z
  annotations:
    example.com/enabled: on
    example.com/public: yes
    {P.prefix}/proxy-version: stable
spec:
  containers:
  - name: api
    tty: true
  - name: {P.proxy_container_name}
"""
    docs = load_documents(src)
    assert docs[0]["metadata"]["creationTimestamp"] == "2024-01-01T00:00:00Z"
    assert docs[0]["spec"]["containers"][0]["tty"] is True

    out, _ = uninject_manifests(src, Uninjector())
    text = out.decode("utf-8")

    assert "creationTimestamp: 2024-01-01T00:00:00Z\n" in text
    assert "example.com/enabled: on\n" in text
    assert "example.com/public: yes\n" in text
    assert "tty: true\n" in text
    assert "proxy-version" not in text


def test_quoted_true_string_stays_quoted():
    out = encode_object({"value": "true", "flag": True})

    assert out == b"value: 'true'\nflag: true\n"
