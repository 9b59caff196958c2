from __future__ import annotations

import copy
from typing import Any

from .cluster import DEPLOYMENT, STATEFUL_SET, Cluster, Manifest
from .errors import InvariantViolation
from .logs import log_event
from .models import LRP
from .names import headless_service_name, validate_app_name

CONTAINER_NAME = "opi"
NAME_LABEL = "name"


def env_to_list(env: dict[str, str]) -> list[dict[str, str]]:
    return [{"name": k, "value": v} for k, v in env.items()]


def env_to_map(env_vars: list[dict[str, Any]] | None) -> dict[str, str]:
    return {e["name"]: e.get("value", "") for e in env_vars or []}


def assert_single_container(containers: list[Manifest]) -> None:
    # We only ever create single-container pods.
    if len(containers) != 1:
        raise InvariantViolation(f"Unexpectedly, container count is not 1 but {len(containers)}.")


def _own_annotations(annotations: dict[str, str] | None) -> dict[str, str]:
    # Cluster-managed annotations are always prefixed (e.g. deployment.kubernetes.io/revision).
    return {k: v for k, v in (annotations or {}).items() if "/" not in k}


class WorkloadManager:
    """Creates and reads back the replica controller of one app."""

    kind = ""
    api_version = "apps/v1"
    uses_headless_service = False

    def __init__(self, cluster: Cluster, namespace: str):
        self.cluster = cluster
        self.namespace = namespace

    def _extra_spec(self, lrp: LRP) -> dict[str, Any]:
        return {}

    def to_manifest(self, lrp: LRP) -> Manifest:
        labels = {NAME_LABEL: lrp.name}
        container: dict[str, Any] = {
            "name": CONTAINER_NAME,
            "image": lrp.image,
            "env": env_to_list(lrp.env),
        }
        if lrp.command:
            container["command"] = list(lrp.command)
        spec: dict[str, Any] = {
            "replicas": lrp.target_instances,
            "selector": {"matchLabels": dict(labels)},
            "template": {
                "metadata": {"labels": dict(labels)},
                "spec": {"containers": [container]},
            },
        }
        spec.update(self._extra_spec(lrp))
        return {
            "apiVersion": self.api_version,
            "kind": self.kind,
            "metadata": {
                "name": lrp.name,
                "labels": dict(labels),
                "annotations": dict(lrp.metadata),
            },
            "spec": spec,
        }

    def to_lrp(self, manifest: Manifest) -> LRP:
        meta = manifest.get("metadata") or {}
        spec = manifest.get("spec") or {}
        containers = ((spec.get("template") or {}).get("spec") or {}).get("containers") or []
        assert_single_container(containers)
        container = containers[0]
        return LRP(
            name=meta["name"],
            image=container.get("image", ""),
            command=list(container.get("command") or []),
            env=env_to_map(container.get("env")),
            target_instances=int(spec.get("replicas", 1)),
            metadata=_own_annotations(meta.get("annotations")),
        )

    def desire(self, lrp: LRP) -> None:
        validate_app_name(lrp.name)
        self.cluster.create(self.namespace, self.kind, self.to_manifest(lrp))
        log_event("INFO", "created-workload", kind=self.kind, name=lrp.name, instances=lrp.target_instances)

    def read(self, name: str) -> Manifest:
        return self.cluster.get(self.namespace, self.kind, name)

    def get(self, name: str) -> LRP:
        return self.to_lrp(self.read(name))

    def list(self) -> list[LRP]:
        return [self.to_lrp(m) for m in self.cluster.list(self.namespace, self.kind, label_selector=NAME_LABEL)]

    def update(self, lrp: LRP, current: Manifest | None = None) -> None:
        """Write replicas and metadata back onto the live object.

        `current` is the manifest the caller already read; without one the
        object is read here. Either way the write carries that read's
        resourceVersion, so a concurrent writer in between makes the
        orchestrator reject it with Conflict.
        """
        if current is None:
            current = self.read(lrp.name)
        current = copy.deepcopy(current)
        current["spec"]["replicas"] = lrp.target_instances
        annotations = current["metadata"].setdefault("annotations", {})
        annotations.update(lrp.metadata)
        self.cluster.replace(self.namespace, self.kind, lrp.name, current)
        log_event("INFO", "updated-workload", kind=self.kind, name=lrp.name, instances=lrp.target_instances)

    def delete(self, name: str) -> None:
        self.cluster.delete(self.namespace, self.kind, name)
        log_event("INFO", "deleted-workload", kind=self.kind, name=name)


class DeploymentManager(WorkloadManager):
    kind = DEPLOYMENT


class StatefulSetManager(WorkloadManager):
    kind = STATEFUL_SET
    uses_headless_service = True

    def _extra_spec(self, lrp: LRP) -> dict[str, Any]:
        return {
            "serviceName": headless_service_name(lrp.name),
            "podManagementPolicy": "Parallel",
        }


BACKENDS: dict[str, type[WorkloadManager]] = {
    "deployment": DeploymentManager,
    "statefulset": StatefulSetManager,
}


def workload_manager_for(backend: str, cluster: Cluster, namespace: str) -> WorkloadManager:
    try:
        cls = BACKENDS[backend.strip().lower()]
    except KeyError:
        raise ValueError(f"Unknown workload backend {backend!r}. Use one of: {', '.join(sorted(BACKENDS))}.") from None
    return cls(cluster, namespace)
