# src/ctrwatch/models/document.py
"""
The observability document shipped to Elasticsearch, one per container per cycle.
"""

import math
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

MEASUREMENT_NAME = "containerd"


class ContainerState(str, Enum):
    """Lifecycle state derived from the running task list."""

    RUNNING = "Running"
    EXITED = "Exited"


class _Group(BaseModel):
    model_config = ConfigDict(frozen=True)


class CpuStats(_Group):
    """CPU counters, normalized to nanoseconds."""

    throttled_time: float = 0.0
    usage_system: float = 0.0
    usage_user: float = 0.0
    usage_total: float = 0.0


class MemStats(_Group):
    active_anon: float = 0.0
    inactive_anon: float = 0.0
    active_file: float = 0.0
    inactive_file: float = 0.0
    limit: float = 0.0
    usage: float = 0.0
    usage_pct: float = Field(
        0.0, description="usage / limit; NaN or infinite when the limit is zero (unlimited cgroup)."
    )
    pgfault: float = 0.0
    pgmajfault: float = 0.0
    unevictable: float = 0.0


class IoStats(_Group):
    read: float = 0.0
    read_bytes: float = 0.0
    write: float = 0.0
    write_bytes: float = 0.0


class ProcStats(_Group):
    current: float = 0.0
    limit: float = 0.0


class DocumentTag(_Group):
    """
    String dimensions of a document. The Kubernetes values are copied verbatim from
    the runtime record and stay None when the runtime did not report them.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    host: str
    container_id: str
    container_image: str
    container_name: str
    state: ContainerState
    kubernetes_container_name: Optional[str] = Field(None, alias="io.kubernetes.container.name")
    kubernetes_container_type: Optional[str] = Field(None, alias="io.kubernetes.container.type")
    kubernetes_pod_name: Optional[str] = Field(None, alias="io.kubernetes.pod.name")
    kubernetes_pod_namespace: Optional[str] = Field(None, alias="io.kubernetes.pod.namespace")


class ObservabilityDocument(BaseModel):
    """
    Resource usage of a single container at a single instant.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    timestamp: datetime = Field(..., alias="@timestamp")
    cpu: CpuStats
    mem: MemStats
    io: IoStats
    proc: ProcStats
    measurement_name: str = MEASUREMENT_NAME
    tag: DocumentTag

    def to_source(self) -> Dict[str, Any]:
        """
        Returns the document body as sent to Elasticsearch.

        Absent Kubernetes tags are omitted rather than sent as empty strings, and a
        non-finite usage_pct is encoded as null since JSON has no NaN/Infinity.
        """
        source = self.model_dump(by_alias=True, mode="python")
        source["tag"] = {key: value for key, value in source["tag"].items() if value is not None}
        source["tag"]["state"] = self.tag.state.value
        if not math.isfinite(self.mem.usage_pct):
            source["mem"]["usage_pct"] = None
        return source
