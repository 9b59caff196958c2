from __future__ import annotations

from .cluster import SERVICE, Cluster, Manifest
from .logs import log_event
from .models import LRP, VCAP_APP_URIS
from .names import headless_service_name, service_name

ROUTES_ANNOTATION = "routes"
SERVICE_PORT_NAME = "service"


class ServiceManager:
    """Stable and headless network identities for one app.

    Unlike workloads, creating a service that already exists is an error here:
    it means two apps derived the same name.
    """

    def __init__(self, cluster: Cluster, namespace: str, port: int = 8080):
        self.cluster = cluster
        self.namespace = namespace
        self.port = port

    def _manifest(self, name: str, lrp: LRP) -> Manifest:
        return {
            "apiVersion": "v1",
            "kind": SERVICE,
            "metadata": {
                "name": name,
                "labels": {"name": lrp.name},
            },
            "spec": {
                "ports": [{"name": SERVICE_PORT_NAME, "port": self.port}],
                "selector": {"name": lrp.name},
            },
        }

    def to_service(self, lrp: LRP) -> Manifest:
        manifest = self._manifest(service_name(lrp.name), lrp)
        manifest["metadata"]["annotations"] = {
            ROUTES_ANNOTATION: lrp.metadata.get(VCAP_APP_URIS, "[]"),
        }
        return manifest

    def to_headless_service(self, lrp: LRP) -> Manifest:
        manifest = self._manifest(headless_service_name(lrp.name), lrp)
        manifest["spec"]["clusterIP"] = "None"
        return manifest

    def create(self, lrp: LRP) -> None:
        manifest = self.to_service(lrp)
        self.cluster.create(self.namespace, SERVICE, manifest)
        log_event("INFO", "created-service", name=manifest["metadata"]["name"], app=lrp.name)

    def create_headless(self, lrp: LRP) -> None:
        manifest = self.to_headless_service(lrp)
        self.cluster.create(self.namespace, SERVICE, manifest)
        log_event("INFO", "created-headless-service", name=manifest["metadata"]["name"], app=lrp.name)

    def delete(self, app_name: str) -> None:
        self.cluster.delete(self.namespace, SERVICE, service_name(app_name))

    def delete_headless(self, app_name: str) -> None:
        self.cluster.delete(self.namespace, SERVICE, headless_service_name(app_name))
