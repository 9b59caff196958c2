from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Callable, Iterable

import httpx

from .api_models import DesireLRPRequest, EnvironmentVariable
from .errors import CollaboratorFailure, ConversionFailure
from .logs import log_event
from .models import ENV_VCAP_APPLICATION, LAST_UPDATED, LRP, PROCESS_GUID, VCAP_APP_ID, VcapApp
from .names import validate_app_name


class DropletStager:
    """Turns a droplet into an image reference.

    Downloads the droplet from the platform API, pushes it into the internal
    registry and returns the image reference the registry will serve it under.
    """

    def __init__(
        self,
        cc_api: str,
        registry_url: str,
        registry_ip: str,
        timeout_s: float = 60.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.cc_api = cc_api.rstrip("/")
        self.registry_url = registry_url.rstrip("/")
        self.registry_ip = registry_ip
        self.timeout_s = timeout_s
        self.transport = transport

    def droplet_download_uri(self, app_guid: str) -> str:
        return f"{self.cc_api}/v2/apps/{app_guid}/droplet/download"

    def registry_stage_uri(self, space: str, app_name: str) -> str:
        return f"{self.registry_url}/v2/{space}/{app_name}/blobs/"

    def image_uri(self, droplet_hash: str) -> str:
        return f"{self.registry_ip}/cloudfoundry/app-name:{droplet_hash}"

    def stage(self, request: DesireLRPRequest, vcap: VcapApp) -> str:
        if not vcap.application_id:
            raise CollaboratorFailure("cannot resolve droplet: VCAP_APPLICATION has no application_id")
        try:
            with httpx.Client(timeout=self.timeout_s, transport=self.transport) as client:
                resp = client.get(self.droplet_download_uri(vcap.application_id), follow_redirects=True)
                resp.raise_for_status()
                droplet = resp.content

                stage_uri = self.registry_stage_uri(vcap.space_name, vcap.application_name)
                log_event("INFO", "sending-request-to-registry", request=stage_uri, guid=request.droplet_hash)
                resp = client.post(
                    stage_uri,
                    params={"guid": request.droplet_hash},
                    content=droplet,
                    headers={"Content-Type": "application/gzip"},
                )
                resp.raise_for_status()
        except httpx.HTTPError as e:
            log_event("ERROR", "droplet-staging-failed", app_guid=vcap.application_id, error=f"{type(e).__name__}: {e}")
            raise CollaboratorFailure(f"staging droplet for {vcap.application_id} failed: {e}") from e
        return self.image_uri(request.droplet_hash)


def env_vars_to_map(envs: Iterable[EnvironmentVariable]) -> dict[str, str]:
    return {e.name: e.value for e in envs}


def parse_vcap_application(env: dict[str, str]) -> dict[str, str]:
    """Flatten VCAP_APPLICATION into string metadata.

    Non-string values (route URIs and the like) are kept as compact JSON.
    """
    raw = env.get(ENV_VCAP_APPLICATION)
    if raw is None:
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConversionFailure(f"{ENV_VCAP_APPLICATION} is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ConversionFailure(f"{ENV_VCAP_APPLICATION} must be a JSON object")
    return {k: v if isinstance(v, str) else json.dumps(v, separators=(",", ":")) for k, v in data.items()}


def convert(request: DesireLRPRequest, stager: DropletStager | None = None) -> LRP:
    env = env_vars_to_map(request.environment)
    vcap = parse_vcap_application(env)
    # The typed view is what the desirer and ingress read later; reject it here.
    vcap_app = VcapApp.from_env(env)

    metadata = {PROCESS_GUID: request.process_guid, LAST_UPDATED: request.last_updated}
    metadata.update(vcap)

    name = (vcap.get(VCAP_APP_ID) or request.process_guid).lower()
    try:
        validate_app_name(name)
    except ValueError as e:
        raise ConversionFailure(str(e)) from e

    image = request.docker_image
    if not image:
        if stager is None:
            raise ConversionFailure(f"request {request.process_guid} carries no image and no stager is configured")
        image = stager.stage(request, vcap_app)

    return LRP(
        name=name,
        image=image,
        command=[request.start_command],
        env=env,
        target_instances=request.num_instances,
        metadata=metadata,
    )


Converter = Callable[[DesireLRPRequest, "DropletStager | None"], LRP]


@dataclass
class ConversionResult:
    process_guid: str
    lrp: LRP | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.lrp is not None


def convert_batch(
    requests: Iterable[DesireLRPRequest],
    stager: DropletStager | None = None,
    converter: Converter = convert,
) -> list[ConversionResult]:
    """Convert every request independently; a failure only drops its own message."""
    results: list[ConversionResult] = []
    for request in requests:
        try:
            results.append(ConversionResult(request.process_guid, lrp=converter(request, stager)))
        except Exception as e:
            log_event(
                "ERROR",
                "failed-to-convert-message",
                process_guid=request.process_guid,
                error=f"{type(e).__name__}: {e}",
            )
            results.append(ConversionResult(request.process_guid, error=e))
    return results
