from __future__ import annotations

from pydantic import BaseModel, Field


class EnvironmentVariable(BaseModel):
    name: str
    value: str = ""


class DesireLRPRequest(BaseModel):
    process_guid: str = Field(..., description="Platform process GUID")
    docker_image: str = Field("", description="Resolved image; empty means resolve from the droplet")
    droplet_hash: str = Field("", description="Droplet hash, used as image tag when staging")
    start_command: str = ""
    environment: list[EnvironmentVariable] = Field(default_factory=list)
    num_instances: int = Field(0, ge=0)
    last_updated: str = ""


class DesiredLRPUpdate(BaseModel):
    instances: int = Field(..., ge=0)


class UpdateDesiredLRPRequest(BaseModel):
    process_guid: str
    update: DesiredLRPUpdate


class DesiredLRPSchedulingInfo(BaseModel):
    process_guid: str


class DesiredLRP(BaseModel):
    process_guid: str
    instances: int
