from __future__ import annotations

from typing import Any

from .cluster import JOB, Cluster, Manifest
from .logs import log_event
from .models import Task
from .names import validate_app_name
from .settings import Settings
from .workloads import NAME_LABEL, env_to_list

TASK_CONTAINER_NAME = "opi-task"

CC_UPLOADER_INTERNAL_URL = "cc-uploader.service.cf.internal"
CC_CERTS_VOLUME_NAME = "cc-certs-volume"
CC_CERTS_MOUNT_PATH = "/cc-certs"

DEFAULT_ACTIVE_DEADLINE_S = 900


class TaskManager:
    """One-shot jobs (staging and friends).

    Jobs are never supervised from here. activeDeadlineSeconds is what
    guarantees a hung task gets killed; deleting a finished job is the
    creator's job once its callback has fired.
    """

    def __init__(
        self,
        cluster: Cluster,
        namespace: str,
        cc_uploader_ip: str = "",
        certs_secret_name: str = "",
        active_deadline_s: int = DEFAULT_ACTIVE_DEADLINE_S,
    ):
        self.cluster = cluster
        self.namespace = namespace
        self.cc_uploader_ip = cc_uploader_ip
        self.certs_secret_name = certs_secret_name
        self.active_deadline_s = active_deadline_s

    @classmethod
    def from_settings(cls, cluster: Cluster, s: Settings) -> "TaskManager":
        return cls(
            cluster,
            s.namespace,
            cc_uploader_ip=s.cc_uploader_ip,
            certs_secret_name=s.certs_secret_name,
            active_deadline_s=s.task_deadline_s,
        )

    def to_job(self, task: Task) -> Manifest:
        labels = {NAME_LABEL: task.app_id}
        return {
            "apiVersion": "batch/v1",
            "kind": JOB,
            "metadata": {
                "name": task.name,
                "labels": dict(labels),
                "annotations": dict(task.metadata),
            },
            "spec": {
                "activeDeadlineSeconds": self.active_deadline_s,
                "template": {
                    "metadata": {"labels": dict(labels)},
                    "spec": {
                        "containers": [
                            {
                                "name": TASK_CONTAINER_NAME,
                                "image": task.image,
                                "env": env_to_list(task.env),
                            }
                        ],
                        "restartPolicy": "Never",
                    },
                },
            },
        }

    def to_staging_job(self, task: Task) -> Manifest:
        job = self.to_job(task)
        pod_spec: dict[str, Any] = job["spec"]["template"]["spec"]
        pod_spec["hostAliases"] = [{"ip": self.cc_uploader_ip, "hostnames": [CC_UPLOADER_INTERNAL_URL]}]
        pod_spec["volumes"] = [
            {"name": CC_CERTS_VOLUME_NAME, "secret": {"secretName": self.certs_secret_name}},
        ]
        pod_spec["containers"][0]["volumeMounts"] = [
            {"name": CC_CERTS_VOLUME_NAME, "readOnly": True, "mountPath": CC_CERTS_MOUNT_PATH},
        ]
        return job

    def desire(self, task: Task) -> None:
        validate_app_name(task.name)
        self.cluster.create(self.namespace, JOB, self.to_job(task))
        log_event("INFO", "created-task", name=task.name, app=task.app_id)

    def desire_staging(self, task: Task) -> None:
        validate_app_name(task.name)
        self.cluster.create(self.namespace, JOB, self.to_staging_job(task))
        log_event("INFO", "created-staging-task", name=task.name, app=task.app_id)

    def delete(self, name: str) -> None:
        # Background propagation takes the job's pods with it.
        self.cluster.delete(self.namespace, JOB, name)
        log_event("INFO", "deleted-task", name=name)
