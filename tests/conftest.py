import json

import pytest

from lrpbridge.cluster import InMemoryCluster
from lrpbridge.desirer import Desirer
from lrpbridge.ingress import IngressManager
from lrpbridge.models import LRP, PROCESS_GUID, VCAP_APP_URIS
from lrpbridge.services import ServiceManager
from lrpbridge.workloads import DeploymentManager, StatefulSetManager

NAMESPACE = "midgard"


class RecordingIngress(IngressManager):
    def __init__(self, error=None):
        self.calls = []
        self.error = error

    def update_ingress(self, namespace, lrp, vcap):
        self.calls.append((namespace, lrp, vcap))
        if self.error is not None:
            raise self.error


def vcap_env(app_name, uris):
    # handcrafted on purpose, not via the production serializer
    quoted = ",".join(f'"{u}"' for u in uris)
    return {"VCAP_APPLICATION": f'{{ "application_name": "{app_name}", "application_uris": [{quoted}] }}'}


def make_lrp(name, instances=1, image="busybox", uris=None):
    uris = uris or [f"https://{name}.eirini.cf/"]
    return LRP(
        name=name,
        image=image,
        command=[""],
        env=vcap_env(f"vcap-{name}", uris),
        target_instances=instances,
        metadata={PROCESS_GUID: f"{name}-guid", VCAP_APP_URIS: json.dumps(uris, separators=(",", ":"))},
    )


@pytest.fixture
def cluster():
    return InMemoryCluster(namespaces=[NAMESPACE])


@pytest.fixture
def ingress():
    return RecordingIngress()


@pytest.fixture(params=[DeploymentManager, StatefulSetManager], ids=["deployment", "statefulset"])
def workloads(request, cluster):
    return request.param(cluster, NAMESPACE)


@pytest.fixture
def services(cluster):
    return ServiceManager(cluster, NAMESPACE)


@pytest.fixture
def desirer(cluster, workloads, services, ingress):
    return Desirer(cluster, NAMESPACE, workloads, services, ingress)
