from __future__ import annotations

from .logs import log_event
from .models import LRP, VcapApp


class IngressManager:
    """Publishes routing rules for an app. Implemented outside this package."""

    def update_ingress(self, namespace: str, lrp: LRP, vcap: VcapApp) -> None:
        raise NotImplementedError


class NoopIngressManager(IngressManager):
    """Used when no routing collaborator is wired in; only records the request."""

    def update_ingress(self, namespace: str, lrp: LRP, vcap: VcapApp) -> None:
        log_event("DEBUG", "skipped-ingress-update", namespace=namespace, name=lrp.name, uris=len(vcap.application_uris))
