# src/ctrwatch/collectors/containerd_collector.py
"""
Snapshots the containerd runtime: the current container list and the ids of
containers that hold a task.
"""

import asyncio
import logging
from typing import Any

import grpc

from ..core.exceptions import TransportFailure
from ..models.container import ContainerRecord, ContainerSnapshot
from .base_collector import BaseCollector

logger = logging.getLogger(__name__)


def to_container_record(container: Any) -> ContainerRecord:
    """
    Converts a containerd ``Container`` message into a ContainerRecord, keeping the
    raw bytes of the spec and extension ``Any`` payloads.
    """
    return ContainerRecord(
        id=container.id,
        image=container.image,
        spec=container.spec.value,
        labels=dict(container.labels),
        extensions={key: payload.value for key, payload in container.extensions.items()},
    )


class ContainerdCollector(BaseCollector):
    """
    Lists containers and tasks concurrently; both calls must succeed for the cycle
    to go on.
    """

    def __init__(self, runtime_client):
        self._client = runtime_client

    async def collect(self) -> ContainerSnapshot:
        try:
            containers, task_ids = await asyncio.gather(
                self._client.list_containers(),
                self._client.list_tasks(),
            )
        except grpc.aio.AioRpcError as e:
            raise TransportFailure(f"containerd call failed: {e.code()} {e.details()}") from e
        except asyncio.TimeoutError as e:
            raise TransportFailure("containerd call timed out") from e

        records = [to_container_record(container) for container in containers]
        running_ids = frozenset(task_ids)
        logger.debug("containerd reported %d container(s), %d task(s).", len(records), len(running_ids))
        return ContainerSnapshot(containers=records, running_ids=running_ids)

    async def close(self):
        await self._client.close()
