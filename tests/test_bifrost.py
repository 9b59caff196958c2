import pytest

from conftest import NAMESPACE
from lrpbridge.api_models import DesireLRPRequest, DesiredLRPUpdate, EnvironmentVariable, UpdateDesiredLRPRequest
from lrpbridge.bifrost import Bifrost
from lrpbridge.cluster import InMemoryCluster
from lrpbridge.desirer import Desirer
from lrpbridge.errors import BridgeError, NotFound
from lrpbridge.models import LRP
from lrpbridge.services import ServiceManager
from lrpbridge.workloads import StatefulSetManager


class FakeDesirer:
    def __init__(self, lrps=None, list_error=None):
        self.lrps = {l.name: l for l in lrps or []}
        self.list_error = list_error
        self.desired = []
        self.updates = []

    def desire(self, lrps):
        self.desired.append(list(lrps))

    def list(self):
        if self.list_error is not None:
            raise self.list_error
        return list(self.lrps.values())

    def get(self, name):
        try:
            return self.lrps[name]
        except KeyError:
            raise NotFound(name) from None

    def update(self, name, instances):
        self.updates.append((name, instances))


def test_transfer_converts_and_desires_every_request():
    converted = []

    def converter(request, stager):
        converted.append(request)
        return LRP(name=request.process_guid, image=request.docker_image)

    desirer = FakeDesirer()
    bifrost = Bifrost(desirer, converter=converter)
    bifrost.transfer([DesireLRPRequest(process_guid="a", docker_image="msg1"), DesireLRPRequest(process_guid="b", docker_image="msg2")])

    assert len(converted) == 2
    assert len(desirer.desired) == 1
    assert [l.image for l in desirer.desired[0]] == ["msg1", "msg2"]


def test_transfer_drops_messages_that_fail_to_convert():
    desirer = FakeDesirer()
    bad = DesireLRPRequest(
        process_guid="bad",
        docker_image="img",
        environment=[EnvironmentVariable(name="VCAP_APPLICATION", value="{nope")],
    )
    good = DesireLRPRequest(process_guid="good", docker_image="img")

    Bifrost(desirer).transfer([bad, good])

    assert [[l.name for l in batch] for batch in desirer.desired] == [["good"]]


def test_transfer_drops_a_type_mismatched_vcap_before_anything_is_created():
    cluster = InMemoryCluster(namespaces=[NAMESPACE])
    desirer = Desirer(cluster, NAMESPACE, StatefulSetManager(cluster, NAMESPACE), ServiceManager(cluster, NAMESPACE))
    bad = DesireLRPRequest(
        process_guid="bad",
        docker_image="img",
        environment=[
            EnvironmentVariable(name="VCAP_APPLICATION", value='{"application_id": "bad", "application_uris": null}')
        ],
    )
    good = DesireLRPRequest(process_guid="good", docker_image="img")

    Bifrost(desirer).transfer([bad, good])

    assert sorted(name for (_, _, name) in cluster.objects) == ["cf-good", "cfh-good", "good"]


def test_transfer_with_nothing_converted_does_not_desire():
    desirer = FakeDesirer()
    Bifrost(desirer).transfer([DesireLRPRequest(process_guid="no-image")])
    assert desirer.desired == []


def test_list_translates_to_scheduling_infos():
    desirer = FakeDesirer(
        [
            LRP(name="1234", metadata={"process_guid": "abcd"}),
            LRP(name="5678", metadata={"process_guid": "efgh"}),
            LRP(name="0213", metadata={"process_guid": "ijkl"}),
        ]
    )
    infos = Bifrost(desirer).list()
    assert [i.process_guid for i in infos] == ["abcd", "efgh", "ijkl"]


def test_list_empty():
    assert Bifrost(FakeDesirer()).list() == []


def test_list_error_propagates():
    with pytest.raises(BridgeError):
        Bifrost(FakeDesirer(list_error=BridgeError("arrgh"))).list()


def test_get_resolves_by_process_guid():
    desirer = FakeDesirer([LRP(name="app-id", target_instances=5, metadata={"process_guid": "app-id-v2"})])
    lrp = Bifrost(desirer).get("app-id-v2")
    assert lrp.process_guid == "app-id-v2"
    assert lrp.instances == 5


def test_get_falls_back_to_the_name():
    desirer = FakeDesirer([LRP(name="plain", target_instances=2)])
    assert Bifrost(desirer).get("plain").instances == 2


def test_get_missing():
    with pytest.raises(NotFound):
        Bifrost(FakeDesirer()).get("nope")


def test_update_applies_only_the_instance_count():
    desirer = FakeDesirer([LRP(name="app-id", target_instances=1, metadata={"process_guid": "app-id-v2"})])
    Bifrost(desirer).update(UpdateDesiredLRPRequest(process_guid="app-id-v2", update=DesiredLRPUpdate(instances=7)))
    assert desirer.updates == [("app-id", 7)]


def test_update_missing_writes_nothing():
    desirer = FakeDesirer()
    with pytest.raises(NotFound):
        Bifrost(desirer).update(UpdateDesiredLRPRequest(process_guid="ghost", update=DesiredLRPUpdate(instances=7)))
    assert desirer.updates == []
