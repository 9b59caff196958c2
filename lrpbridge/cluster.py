"""Orchestrator access.

Everything above this module speaks plain manifest dicts (camelCase, the way
`kubectl get -o json` prints them). `KubernetesCluster` talks to a real API
server; `InMemoryCluster` is the reference implementation used by the tests
and for local dry runs.
"""
from __future__ import annotations

import copy
from collections import Counter
from contextlib import contextmanager
from threading import Lock
from typing import Any, Iterator

from kubernetes import client as k8s_client
from kubernetes import config as k8s_config
from kubernetes.client.rest import ApiException

from .errors import AlreadyExists, CollaboratorFailure, Conflict, NotFound
from .logs import log_event
from .settings import Settings

Manifest = dict[str, Any]

DEPLOYMENT = "Deployment"
STATEFUL_SET = "StatefulSet"
SERVICE = "Service"
JOB = "Job"

# kind -> (api group, method suffix used by the generated client)
_KINDS: dict[str, tuple[str, str]] = {
    DEPLOYMENT: ("apps", "deployment"),
    STATEFUL_SET: ("apps", "stateful_set"),
    SERVICE: ("core", "service"),
    JOB: ("batch", "job"),
}


class Cluster:
    """CRUD over namespaced resources, keyed by kind and name."""

    def namespace_exists(self, namespace: str) -> bool:
        raise NotImplementedError

    def create_namespace(self, namespace: str) -> None:
        raise NotImplementedError

    def create(self, namespace: str, kind: str, manifest: Manifest) -> Manifest:
        raise NotImplementedError

    def get(self, namespace: str, kind: str, name: str) -> Manifest:
        raise NotImplementedError

    def list(self, namespace: str, kind: str, label_selector: str | None = None) -> list[Manifest]:
        raise NotImplementedError

    def replace(self, namespace: str, kind: str, name: str, manifest: Manifest) -> Manifest:
        raise NotImplementedError

    def delete(self, namespace: str, kind: str, name: str) -> None:
        raise NotImplementedError


@contextmanager
def _translate(kind: str, name: str, verb: str) -> Iterator[None]:
    try:
        yield
    except ApiException as e:
        if e.status == 404:
            raise NotFound(f"{kind} {name!r} not found") from e
        if e.status == 409:
            if verb == "create":
                raise AlreadyExists(f"{kind} {name!r} already exists") from e
            raise Conflict(f"{kind} {name!r} was modified concurrently") from e
        raise CollaboratorFailure(f"{verb} {kind} {name!r}: {e.status} {e.reason}") from e


class KubernetesCluster(Cluster):
    def __init__(self, api_client: k8s_client.ApiClient | None = None, request_timeout_s: int = 30):
        self._api_client = api_client or k8s_client.ApiClient()
        self._apis = {
            "apps": k8s_client.AppsV1Api(self._api_client),
            "core": k8s_client.CoreV1Api(self._api_client),
            "batch": k8s_client.BatchV1Api(self._api_client),
        }
        self.request_timeout_s = request_timeout_s

    @classmethod
    def from_settings(cls, s: Settings) -> "KubernetesCluster":
        if s.in_cluster:
            k8s_config.load_incluster_config()
        else:
            k8s_config.load_kube_config(config_file=s.kubeconfig)
        return cls(request_timeout_s=s.request_timeout_s)

    def _method(self, kind: str, verb: str):
        group, suffix = _KINDS[kind]
        return getattr(self._apis[group], f"{verb}_namespaced_{suffix}")

    def _to_dict(self, obj: Any) -> Manifest:
        return self._api_client.sanitize_for_serialization(obj)

    def namespace_exists(self, namespace: str) -> bool:
        try:
            with _translate("Namespace", namespace, "read"):
                self._apis["core"].read_namespace(namespace, _request_timeout=self.request_timeout_s)
            return True
        except NotFound:
            return False

    def create_namespace(self, namespace: str) -> None:
        body = {"apiVersion": "v1", "kind": "Namespace", "metadata": {"name": namespace}}
        with _translate("Namespace", namespace, "create"):
            self._apis["core"].create_namespace(body, _request_timeout=self.request_timeout_s)
        log_event("INFO", "created-namespace", namespace=namespace)

    def create(self, namespace: str, kind: str, manifest: Manifest) -> Manifest:
        name = manifest["metadata"]["name"]
        with _translate(kind, name, "create"):
            obj = self._method(kind, "create")(namespace, manifest, _request_timeout=self.request_timeout_s)
        return self._to_dict(obj)

    def get(self, namespace: str, kind: str, name: str) -> Manifest:
        with _translate(kind, name, "read"):
            obj = self._method(kind, "read")(name, namespace, _request_timeout=self.request_timeout_s)
        return self._to_dict(obj)

    def list(self, namespace: str, kind: str, label_selector: str | None = None) -> list[Manifest]:
        kwargs: dict[str, Any] = {"_request_timeout": self.request_timeout_s}
        if label_selector:
            kwargs["label_selector"] = label_selector
        with _translate(kind, label_selector or "*", "list"):
            result = self._method(kind, "list")(namespace, **kwargs)
        return [self._to_dict(item) for item in result.items]

    def replace(self, namespace: str, kind: str, name: str, manifest: Manifest) -> Manifest:
        with _translate(kind, name, "replace"):
            obj = self._method(kind, "replace")(name, namespace, manifest, _request_timeout=self.request_timeout_s)
        return self._to_dict(obj)

    def delete(self, namespace: str, kind: str, name: str) -> None:
        with _translate(kind, name, "delete"):
            self._method(kind, "delete")(
                name,
                namespace,
                propagation_policy="Background",
                _request_timeout=self.request_timeout_s,
            )


def _selector_matches(labels: dict[str, str], label_selector: str | None) -> bool:
    if not label_selector:
        return True
    for term in label_selector.split(","):
        term = term.strip().replace("==", "=")
        if not term:
            continue
        if "=" in term:
            key, value = term.split("=", 1)
            if labels.get(key.strip()) != value.strip():
                return False
        elif term not in labels:
            return False
    return True


class InMemoryCluster(Cluster):
    """A lock-guarded object store with create/replace semantics close to the API server's."""

    def __init__(self, namespaces: list[str] | None = None) -> None:
        self.lock = Lock()
        self.namespaces: set[str] = set(namespaces or [])
        self.objects: dict[tuple[str, str, str], Manifest] = {}
        self.calls: Counter[tuple[str, str]] = Counter()  # (verb, kind) -> count
        self._revision = 0

    def _next_revision(self) -> str:
        self._revision += 1
        return str(self._revision)

    def namespace_exists(self, namespace: str) -> bool:
        with self.lock:
            return namespace in self.namespaces

    def create_namespace(self, namespace: str) -> None:
        with self.lock:
            self.calls[("create", "Namespace")] += 1
            if namespace in self.namespaces:
                raise AlreadyExists(f"Namespace {namespace!r} already exists")
            self.namespaces.add(namespace)

    def create(self, namespace: str, kind: str, manifest: Manifest) -> Manifest:
        name = manifest["metadata"]["name"]
        with self.lock:
            self.calls[("create", kind)] += 1
            if namespace not in self.namespaces:
                raise NotFound(f"Namespace {namespace!r} not found")
            key = (namespace, kind, name)
            if key in self.objects:
                raise AlreadyExists(f"{kind} {name!r} already exists")
            obj = copy.deepcopy(manifest)
            obj["metadata"]["namespace"] = namespace
            obj["metadata"]["resourceVersion"] = self._next_revision()
            self.objects[key] = obj
            return copy.deepcopy(obj)

    def get(self, namespace: str, kind: str, name: str) -> Manifest:
        with self.lock:
            self.calls[("get", kind)] += 1
            obj = self.objects.get((namespace, kind, name))
            if obj is None:
                raise NotFound(f"{kind} {name!r} not found")
            return copy.deepcopy(obj)

    def list(self, namespace: str, kind: str, label_selector: str | None = None) -> list[Manifest]:
        with self.lock:
            self.calls[("list", kind)] += 1
            return [
                copy.deepcopy(obj)
                for (ns, k, _), obj in self.objects.items()
                if ns == namespace and k == kind and _selector_matches(obj["metadata"].get("labels") or {}, label_selector)
            ]

    def replace(self, namespace: str, kind: str, name: str, manifest: Manifest) -> Manifest:
        with self.lock:
            self.calls[("replace", kind)] += 1
            key = (namespace, kind, name)
            current = self.objects.get(key)
            if current is None:
                raise NotFound(f"{kind} {name!r} not found")
            expected = manifest["metadata"].get("resourceVersion")
            if expected and expected != current["metadata"]["resourceVersion"]:
                raise Conflict(f"{kind} {name!r} was modified concurrently")
            obj = copy.deepcopy(manifest)
            obj["metadata"]["namespace"] = namespace
            obj["metadata"]["resourceVersion"] = self._next_revision()
            self.objects[key] = obj
            return copy.deepcopy(obj)

    def delete(self, namespace: str, kind: str, name: str) -> None:
        with self.lock:
            self.calls[("delete", kind)] += 1
            if self.objects.pop((namespace, kind, name), None) is None:
                raise NotFound(f"{kind} {name!r} not found")
