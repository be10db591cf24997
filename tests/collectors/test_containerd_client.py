# tests/collectors/test_containerd_client.py

from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

pytest.importorskip("containerd.services.containers.v1.containers_pb2")

from ctrwatch.collectors.containerd_client import (  # noqa: E402
    NAMESPACE_HEADER,
    ContainerdRuntimeClient,
    normalize_unix_target,
)


@pytest.mark.parametrize(
    "sock, expected",
    [
        ("/run/containerd/containerd.sock", "unix:///run/containerd/containerd.sock"),
        ("run/containerd/containerd.sock", "unix:///run/containerd/containerd.sock"),
        ("unix:///run/containerd/containerd.sock", "unix:///run/containerd/containerd.sock"),
        ("unix://run/containerd/containerd.sock", "unix:///run/containerd/containerd.sock"),
    ],
)
def test_normalize_unix_target(sock, expected):
    assert normalize_unix_target(sock) == expected


def test_normalize_unix_target_rejects_empty():
    with pytest.raises(ValueError):
        normalize_unix_target("")


@pytest.mark.asyncio
async def test_list_calls_carry_namespace_and_deadline():
    client = ContainerdRuntimeClient("/run/containerd/containerd.sock", namespace="k8s.io", timeout=3)
    client._containers = SimpleNamespace(List=AsyncMock(return_value=SimpleNamespace(containers=["c"])))
    client._tasks = SimpleNamespace(
        List=AsyncMock(return_value=SimpleNamespace(tasks=[SimpleNamespace(id="t1"), SimpleNamespace(id="t2")]))
    )

    containers = await client.list_containers()
    task_ids = await client.list_tasks()

    assert containers == ["c"]
    assert task_ids == ["t1", "t2"]
    kwargs = client._containers.List.await_args.kwargs
    assert kwargs["metadata"] == ((NAMESPACE_HEADER, "k8s.io"),)
    assert kwargs["timeout"] == 3
    await client.close()
