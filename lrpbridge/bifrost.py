from __future__ import annotations

from typing import Iterable

from .api_models import DesiredLRP, DesiredLRPSchedulingInfo, DesireLRPRequest, UpdateDesiredLRPRequest
from .converter import Converter, DropletStager, convert, convert_batch
from .desirer import Desirer
from .errors import BridgeError
from .logs import log_event
from .models import LRP, PROCESS_GUID


class Bifrost:
    """Platform-facing facade: requests in, scheduling info out."""

    def __init__(self, desirer: Desirer, stager: DropletStager | None = None, converter: Converter = convert):
        self.desirer = desirer
        self.stager = stager
        self.converter = converter

    def transfer(self, requests: Iterable[DesireLRPRequest]) -> None:
        results = convert_batch(requests, stager=self.stager, converter=self.converter)
        lrps = [r.lrp for r in results if r.ok]
        dropped = len(results) - len(lrps)
        if dropped:
            log_event("WARN", "dropped-messages", count=dropped)
        if not lrps:
            return
        self.desirer.desire(lrps)

    def list(self) -> list[DesiredLRPSchedulingInfo]:
        try:
            lrps = self.desirer.list()
        except BridgeError as e:
            log_event("ERROR", "failed-to-list-desired-lrps", error=e)
            raise
        return [DesiredLRPSchedulingInfo(process_guid=lrp.metadata.get(PROCESS_GUID, "")) for lrp in lrps]

    def _lookup(self, process_guid: str) -> LRP:
        # Apps are named after their application id, so a process guid has
        # to be matched against the annotations first.
        for lrp in self.desirer.list():
            if lrp.metadata.get(PROCESS_GUID) == process_guid:
                return lrp
        return self.desirer.get(process_guid.lower())

    def get(self, process_guid: str) -> DesiredLRP:
        try:
            lrp = self._lookup(process_guid)
        except BridgeError as e:
            log_event("ERROR", "failed-to-get-desired-lrp", process_guid=process_guid, error=e)
            raise
        return DesiredLRP(process_guid=process_guid, instances=lrp.target_instances)

    def update(self, request: UpdateDesiredLRPRequest) -> None:
        try:
            lrp = self._lookup(request.process_guid)
            self.desirer.update(lrp.name, request.update.instances)
        except BridgeError as e:
            log_event("ERROR", "failed-to-update-desired-lrp", process_guid=request.process_guid, error=e)
            raise
