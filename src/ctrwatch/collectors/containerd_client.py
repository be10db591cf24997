# src/ctrwatch/collectors/containerd_client.py
"""
Thin async wrapper around the containerd gRPC Containers and Tasks services.
"""

import logging
from typing import List

import grpc
from containerd.services.containers.v1 import containers_pb2, containers_pb2_grpc
from containerd.services.tasks.v1 import tasks_pb2, tasks_pb2_grpc

logger = logging.getLogger(__name__)

NAMESPACE_HEADER = "containerd-namespace"


def normalize_unix_target(sock: str) -> str:
    """
    Accepts '/run/containerd/containerd.sock' or 'unix:///run/containerd/containerd.sock'
    and returns a gRPC target of the form 'unix:///path'.
    """
    if not sock:
        raise ValueError("containerd socket path is empty")
    if sock.startswith("unix://"):
        after = sock[len("unix://") :]
        return sock if after.startswith("/") else "unix:///" + after
    if not sock.startswith("/"):
        sock = "/" + sock
    return "unix://" + sock


class ContainerdRuntimeClient:
    """
    Exposes the two read operations the collector needs: list containers and list tasks.

    Every call carries the namespace header and a deadline of ``timeout`` seconds.
    Errors surface as ``grpc.aio.AioRpcError``.
    """

    def __init__(self, socket: str, namespace: str = "k8s.io", timeout: float = 10.0):
        self.target = normalize_unix_target(socket)
        self.namespace = namespace
        self.timeout = timeout
        self._channel = grpc.aio.insecure_channel(self.target)
        self._containers = containers_pb2_grpc.ContainersStub(self._channel)
        self._tasks = tasks_pb2_grpc.TasksStub(self._channel)
        logger.debug("containerd client created for %s (namespace %s).", self.target, namespace)

    @property
    def _metadata(self):
        return ((NAMESPACE_HEADER, self.namespace),)

    async def list_containers(self) -> List[containers_pb2.Container]:
        response = await self._containers.List(
            containers_pb2.ListContainersRequest(), metadata=self._metadata, timeout=self.timeout
        )
        return list(response.containers)

    async def list_tasks(self) -> List[str]:
        response = await self._tasks.List(tasks_pb2.ListTasksRequest(), metadata=self._metadata, timeout=self.timeout)
        return [task.id for task in response.tasks]

    async def close(self):
        await self._channel.close()
        logger.debug("containerd channel to %s closed.", self.target)
