from __future__ import annotations

import os
from dataclasses import dataclass


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    # Cluster
    namespace: str = os.getenv("LRPB_NAMESPACE", "eirini")
    workload_backend: str = os.getenv("LRPB_WORKLOAD_BACKEND", "statefulset")  # deployment|statefulset
    kubeconfig: str | None = os.getenv("LRPB_KUBECONFIG")
    in_cluster: bool = _env_bool("LRPB_IN_CLUSTER", False)
    request_timeout_s: int = _env_int("LRPB_REQUEST_TIMEOUT_S", 30)
    service_port: int = _env_int("LRPB_SERVICE_PORT", 8080)

    # Tasks / staging
    task_deadline_s: int = _env_int("LRPB_TASK_DEADLINE_S", 900)
    cc_uploader_ip: str = os.getenv("LRPB_CC_UPLOADER_IP", "")
    certs_secret_name: str = os.getenv("LRPB_CERTS_SECRET_NAME", "cc-certs")

    # Droplet -> image round trip (only used when a request carries no image)
    cc_api: str = os.getenv("LRPB_CC_API", "")
    registry_url: str = os.getenv("LRPB_REGISTRY_URL", "")
    registry_ip: str = os.getenv("LRPB_REGISTRY_IP", "")
    stager_timeout_s: int = _env_int("LRPB_STAGER_TIMEOUT_S", 60)

    log_level: str = os.getenv("LRPB_LOG_LEVEL", "INFO")


settings = Settings()
