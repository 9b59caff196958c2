from __future__ import annotations

from typing import Callable, Iterable

from .cluster import Cluster
from .errors import AlreadyExists, InvariantViolation, NotFound
from .ingress import IngressManager, NoopIngressManager
from .logs import log_event
from .models import LRP, VcapApp
from .services import ServiceManager
from .settings import Settings
from .workloads import WorkloadManager, workload_manager_for


def _ignore_existing(create: Callable[[LRP], None], lrp: LRP) -> None:
    try:
        create(lrp)
    except AlreadyExists:
        log_event("DEBUG", "already-exists", name=lrp.name, step=getattr(create, "__name__", "create"))


class Desirer:
    """Reconciles LRPs onto the cluster: workload, service(s), ingress.

    Desiring is idempotent: anything that already exists is left as it is.
    Within one call every LRP is attempted; the first failure is raised once
    all of them have been processed. Nothing is rolled back.
    """

    def __init__(
        self,
        cluster: Cluster,
        namespace: str,
        workloads: WorkloadManager,
        services: ServiceManager,
        ingress: IngressManager | None = None,
    ):
        self.cluster = cluster
        self.namespace = namespace
        self.workloads = workloads
        self.services = services
        self.ingress = ingress or NoopIngressManager()

    @classmethod
    def from_settings(cls, cluster: Cluster, s: Settings, ingress: IngressManager | None = None) -> "Desirer":
        return cls(
            cluster=cluster,
            namespace=s.namespace,
            workloads=workload_manager_for(s.workload_backend, cluster, s.namespace),
            services=ServiceManager(cluster, s.namespace, port=s.service_port),
            ingress=ingress,
        )

    def ensure_namespace(self) -> None:
        if self.cluster.namespace_exists(self.namespace):
            return
        try:
            self.cluster.create_namespace(self.namespace)
        except AlreadyExists:
            pass

    def desire(self, lrps: Iterable[LRP]) -> None:
        self.ensure_namespace()
        first_error: Exception | None = None
        for lrp in lrps:
            try:
                self._desire_one(lrp)
            except InvariantViolation:
                raise
            except Exception as e:
                log_event("ERROR", "failed-to-desire-lrp", name=lrp.name, error=f"{type(e).__name__}: {e}")
                if first_error is None:
                    first_error = e
        if first_error is not None:
            raise first_error

    def _desire_one(self, lrp: LRP) -> None:
        # Parsed before any write so a malformed blob leaves nothing behind.
        vcap = VcapApp.from_env(lrp.env)
        _ignore_existing(self.workloads.desire, lrp)
        _ignore_existing(self.services.create, lrp)
        if self.workloads.uses_headless_service:
            _ignore_existing(self.services.create_headless, lrp)
        self.ingress.update_ingress(self.namespace, lrp, vcap)

    def get(self, name: str) -> LRP:
        return self.workloads.get(name)

    def list(self) -> list[LRP]:
        return self.workloads.list()

    def update(self, name: str, instances: int) -> None:
        """Set the instance count of an existing app (read, modify, write).

        The write carries the resourceVersion of this read, so anyone writing
        in between makes it fail with Conflict.
        """
        current = self.workloads.read(name)
        lrp = self.workloads.to_lrp(current)
        lrp.target_instances = instances
        self.workloads.update(lrp, current=current)

    def stop(self, name: str) -> None:
        self.workloads.delete(name)
        deletes = [self.services.delete]
        if self.workloads.uses_headless_service:
            deletes.append(self.services.delete_headless)
        for delete in deletes:
            try:
                delete(name)
            except NotFound:
                pass
