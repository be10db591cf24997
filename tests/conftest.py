# tests/conftest.py

import json
from datetime import datetime, timezone

import pytest

from ctrwatch.models.container import (
    CONTAINER_METADATA_EXTENSION,
    SANDBOX_METADATA_EXTENSION,
    ContainerRecord,
)

FIXED_TIMESTAMP = datetime(2024, 3, 7, 12, 30, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def mock_settings_env_vars(monkeypatch):
    """
    Pytest fixture to mock environment variables for the config module.

    Runs automatically for every test so that Config() instances built inside tests
    are predictable and isolated from the actual environment.
    """
    monkeypatch.setenv("METRICS_URL", "http://metrics.test/v1/metrics")
    monkeypatch.setenv("METRIC_INTERVAL", "10")
    monkeypatch.setenv("ELASTICSEARCH_HOSTS", "http://es.test:9200")
    monkeypatch.setenv("ELASTICSEARCH_INDEX_PREFIX", "docker")
    monkeypatch.delenv("ELASTICSEARCH_USER", raising=False)
    monkeypatch.delenv("ELASTICSEARCH_PASSWORD", raising=False)


@pytest.fixture
def timestamp():
    return FIXED_TIMESTAMP


@pytest.fixture
def make_container():
    """
    Factory fixture building ContainerRecords the way containerd reports CRI containers.
    """

    def _make(
        container_id: str,
        name: str = "app",
        image: str = "docker.io/library/nginx:1.25",
        annotations: dict = None,
        labels: dict = None,
        sandbox: bool = False,
    ) -> ContainerRecord:
        if annotations is None:
            annotations = {
                "io.kubernetes.cri.container-name": name,
                "io.kubernetes.cri.container-type": "sandbox" if sandbox else "container",
            }
        if labels is None:
            labels = {
                "io.kubernetes.pod.name": f"{name}-pod",
                "io.kubernetes.pod.namespace": "default",
            }
        extension = SANDBOX_METADATA_EXTENSION if sandbox else CONTAINER_METADATA_EXTENSION
        return ContainerRecord(
            id=container_id,
            image=image,
            spec=json.dumps({"ociVersion": "1.1.0", "annotations": annotations}).encode(),
            labels=labels,
            extensions={extension: json.dumps({"Version": "v1", "Metadata": {"Name": name}}).encode()},
        )

    return _make
