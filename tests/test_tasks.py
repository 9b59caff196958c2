import pytest

from conftest import NAMESPACE
from lrpbridge.errors import AlreadyExists, NotFound
from lrpbridge.models import Task
from lrpbridge.settings import Settings
from lrpbridge.tasks import TaskManager


@pytest.fixture
def task():
    return Task(
        image="eirini/recipe:latest",
        env={"STAGING_GUID": "staging-123", "APP_ID": "app-guid", "COMPLETION_CALLBACK": "http://cc/cb"},
        metadata={"process_guid": "app-guid-v1"},
    )


@pytest.fixture
def tasks(cluster):
    return TaskManager(cluster, NAMESPACE, cc_uploader_ip="10.0.0.9", certs_secret_name="cc-certs")


def test_desire_creates_a_bounded_job(cluster, tasks, task):
    tasks.desire(task)

    job = cluster.get(NAMESPACE, "Job", "staging-123")
    assert job["metadata"]["labels"] == {"name": "app-guid"}
    assert job["spec"]["activeDeadlineSeconds"] == 900
    pod = job["spec"]["template"]
    assert pod["metadata"]["labels"] == {"name": "app-guid"}
    assert pod["spec"]["restartPolicy"] == "Never"
    (container,) = pod["spec"]["containers"]
    assert container["name"] == "opi-task"
    assert container["image"] == "eirini/recipe:latest"
    assert {"name": "COMPLETION_CALLBACK", "value": "http://cc/cb"} in container["env"]
    assert "hostAliases" not in pod["spec"]


def test_deadline_is_configurable(cluster, task):
    TaskManager(cluster, NAMESPACE, active_deadline_s=60).desire(task)
    assert cluster.get(NAMESPACE, "Job", "staging-123")["spec"]["activeDeadlineSeconds"] == 60


def test_desire_staging_mounts_certs_and_aliases_uploader(cluster, tasks, task):
    tasks.desire_staging(task)

    job = cluster.get(NAMESPACE, "Job", "staging-123")
    spec = job["spec"]["template"]["spec"]
    assert job["spec"]["activeDeadlineSeconds"] == 900
    assert spec["hostAliases"] == [{"ip": "10.0.0.9", "hostnames": ["cc-uploader.service.cf.internal"]}]
    assert spec["volumes"] == [{"name": "cc-certs-volume", "secret": {"secretName": "cc-certs"}}]
    assert spec["containers"][0]["volumeMounts"] == [
        {"name": "cc-certs-volume", "readOnly": True, "mountPath": "/cc-certs"}
    ]


def test_desire_same_task_twice_fails(tasks, task):
    tasks.desire(task)
    with pytest.raises(AlreadyExists):
        tasks.desire_staging(task)


def test_delete(cluster, tasks, task):
    tasks.desire(task)
    tasks.delete("staging-123")
    assert cluster.list(NAMESPACE, "Job") == []

    with pytest.raises(NotFound):
        tasks.delete("staging-123")


def test_from_settings_carries_staging_options_into_the_job(cluster, task):
    s = Settings(
        namespace=NAMESPACE,
        task_deadline_s=120,
        cc_uploader_ip="10.1.2.3",
        certs_secret_name="staging-certs",
    )
    TaskManager.from_settings(cluster, s).desire_staging(task)

    job = cluster.get(NAMESPACE, "Job", "staging-123")
    spec = job["spec"]["template"]["spec"]
    assert job["spec"]["activeDeadlineSeconds"] == 120
    assert spec["hostAliases"][0]["ip"] == "10.1.2.3"
    assert spec["volumes"][0]["secret"] == {"secretName": "staging-certs"}


@pytest.mark.parametrize("staging_guid", [None, "", "Staging_123"])
@pytest.mark.parametrize("staging", [False, True])
def test_task_without_a_valid_name_is_rejected_before_create(cluster, tasks, task, staging_guid, staging):
    if staging_guid is None:
        del task.env["STAGING_GUID"]
    else:
        task.env["STAGING_GUID"] = staging_guid

    with pytest.raises(ValueError):
        (tasks.desire_staging if staging else tasks.desire)(task)
    assert cluster.calls[("create", "Job")] == 0
