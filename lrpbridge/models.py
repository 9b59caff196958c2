from __future__ import annotations

from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ConversionFailure

# Metadata keys carried in LRP.metadata and mirrored as workload annotations.
PROCESS_GUID = "process_guid"
LAST_UPDATED = "last_updated"
VCAP_APP_NAME = "application_name"
VCAP_APP_ID = "application_id"
VCAP_APP_URIS = "application_uris"
VCAP_VERSION = "version"
VCAP_SPACE_NAME = "space_name"

# Environment keys
ENV_VCAP_APPLICATION = "VCAP_APPLICATION"
ENV_STAGING_GUID = "STAGING_GUID"
ENV_APP_ID = "APP_ID"


@dataclass
class LRP:
    name: str
    image: str = ""
    command: list[str] = field(default_factory=list)
    env: dict[str, str] = field(default_factory=dict)
    target_instances: int = 0
    metadata: dict[str, str] = field(default_factory=dict)


@dataclass
class Task:
    image: str
    env: dict[str, str] = field(default_factory=dict)
    metadata: dict[str, str] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return self.env.get(ENV_STAGING_GUID, "")

    @property
    def app_id(self) -> str:
        return self.env.get(ENV_APP_ID, "")


class VcapApp(BaseModel):
    """The parts of VCAP_APPLICATION we care about."""

    model_config = ConfigDict(extra="ignore")

    application_name: str = ""
    application_id: str = ""
    version: str = ""
    application_uris: list[str] = Field(default_factory=list)
    space_name: str = ""

    @classmethod
    def from_env(cls, env: dict[str, str]) -> "VcapApp":
        raw = env.get(ENV_VCAP_APPLICATION)
        if not raw:
            return cls()
        try:
            return cls.model_validate_json(raw)
        except ValidationError as e:
            raise ConversionFailure(f"{ENV_VCAP_APPLICATION} is malformed: {e}") from e
