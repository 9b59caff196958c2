"""Wiring from Settings to a served app.

Run with any ASGI server, e.g. `uvicorn --factory lrpbridge.main:create_default_app`.
"""
from __future__ import annotations

from fastapi import FastAPI

from .api import create_app
from .bifrost import Bifrost
from .cluster import Cluster, KubernetesCluster
from .converter import DropletStager
from .desirer import Desirer
from .ingress import IngressManager
from .logs import configure_logging, log_event
from .settings import Settings, settings


def build_stager(s: Settings) -> DropletStager | None:
    if not (s.cc_api and s.registry_url and s.registry_ip):
        return None
    return DropletStager(s.cc_api, s.registry_url, s.registry_ip, timeout_s=s.stager_timeout_s)


def build_bifrost(
    s: Settings = settings,
    cluster: Cluster | None = None,
    ingress: IngressManager | None = None,
) -> Bifrost:
    cluster = cluster or KubernetesCluster.from_settings(s)
    desirer = Desirer.from_settings(cluster, s, ingress=ingress)
    stager = build_stager(s)
    log_event(
        "INFO",
        "bifrost-ready",
        namespace=s.namespace,
        backend=s.workload_backend,
        staging="on" if stager else "off",
    )
    return Bifrost(desirer, stager=stager)


def create_default_app() -> FastAPI:
    configure_logging(settings.log_level)
    return create_app(build_bifrost())
