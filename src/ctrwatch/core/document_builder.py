# src/ctrwatch/core/document_builder.py
"""
Joins a containerd container record with the per-cycle metric index to produce
one ObservabilityDocument.

The container listing and the metrics payload are fetched independently, so a
container may have no samples (it started after the scrape) and samples may
exist for containers no longer listed. Missing samples read as zero; orphan
samples are simply never looked up.
"""

import json
import logging
from datetime import datetime
from typing import AbstractSet, Any, Dict

from ..models.container import (
    CONTAINER_METADATA_EXTENSION,
    SANDBOX_METADATA_EXTENSION,
    ContainerRecord,
)
from ..models.document import (
    ContainerState,
    CpuStats,
    DocumentTag,
    IoStats,
    MemStats,
    ObservabilityDocument,
    ProcStats,
)
from .exceptions import MalformedRuntimeRecord
from .metric_index import MetricIndex

logger = logging.getLogger(__name__)

# cgroup CPU counters are exported in microseconds; documents carry nanoseconds.
USEC_TO_NSEC = 1000

CPU_METRICS = {
    "throttled_time": "container_cpu_throttled_usec_microseconds",
    "usage_system": "container_cpu_system_usec_microseconds",
    "usage_user": "container_cpu_user_usec_microseconds",
    "usage_total": "container_cpu_usage_usec_microseconds",
}

MEM_METRICS = {
    "active_anon": "container_memory_active_anon_bytes",
    "inactive_anon": "container_memory_inactive_anon_bytes",
    "active_file": "container_memory_active_file_bytes",
    "inactive_file": "container_memory_inactive_file_bytes",
    "pgfault": "container_memory_pgfault_bytes",
    "pgmajfault": "container_memory_pgmajfault_bytes",
    "unevictable": "container_memory_unevictable_bytes",
}
MEM_USAGE_METRIC = "container_memory_usage_bytes"
MEM_LIMIT_METRIC = "container_memory_usage_limit_bytes"

IO_METRICS = {
    "read": "container_io_rios_total",
    "read_bytes": "container_io_rbytes_bytes",
    "write": "container_io_wios_total",
    "write_bytes": "container_io_wbytes_bytes",
}

PROC_METRICS = {
    "current": "container_pids_current",
    "limit": "container_pids_limit",
}

CONTAINER_NAME_ANNOTATION = "io.kubernetes.cri.container-name"
CONTAINER_TYPE_ANNOTATION = "io.kubernetes.cri.container-type"
POD_NAME_LABEL = "io.kubernetes.pod.name"
POD_NAMESPACE_LABEL = "io.kubernetes.pod.namespace"


def _decode_json(container_id: str, payload: bytes, what: str) -> Dict[str, Any]:
    try:
        decoded = json.loads(payload)
    except (TypeError, ValueError) as e:
        raise MalformedRuntimeRecord(container_id, f"{what} is not valid JSON: {e}") from e
    if not isinstance(decoded, dict):
        raise MalformedRuntimeRecord(container_id, f"{what} is not a JSON object")
    return decoded


def decode_annotations(container: ContainerRecord) -> Dict[str, str]:
    """Returns the OCI spec annotations of a container (empty when the spec has none)."""
    spec = _decode_json(container.id, container.spec, "spec")
    annotations = spec.get("annotations") or {}
    if not isinstance(annotations, dict):
        raise MalformedRuntimeRecord(container.id, "spec annotations are not a mapping")
    return annotations


def decode_container_name(container: ContainerRecord) -> str:
    """Reads Metadata.Name from the CRI container (or sandbox) metadata extension."""
    payload = container.extensions.get(CONTAINER_METADATA_EXTENSION)
    if payload is None:
        payload = container.extensions.get(SANDBOX_METADATA_EXTENSION)
    if payload is None:
        raise MalformedRuntimeRecord(
            container.id,
            f"neither '{CONTAINER_METADATA_EXTENSION}' nor '{SANDBOX_METADATA_EXTENSION}' extension is present",
        )

    metadata = _decode_json(container.id, payload, "metadata extension")
    try:
        name = metadata["Metadata"]["Name"]
    except (KeyError, TypeError) as e:
        raise MalformedRuntimeRecord(container.id, "metadata extension has no Metadata.Name") from e
    if not isinstance(name, str):
        raise MalformedRuntimeRecord(container.id, "Metadata.Name is not a string")
    return name


def build_document(
    container: ContainerRecord,
    metric_index: MetricIndex,
    running_ids: AbstractSet[str],
    hostname: str,
    timestamp: datetime,
) -> ObservabilityDocument:
    """
    Builds the observability document for one container.

    Raises:
        MalformedRuntimeRecord: If the spec or the metadata extension cannot be decoded.
    """
    annotations = decode_annotations(container)
    container_name = decode_container_name(container)

    def value(metric_name: str) -> float:
        return metric_index.value(metric_name, container.id)

    usage = value(MEM_USAGE_METRIC)
    limit = value(MEM_LIMIT_METRIC)
    try:
        usage_pct = usage / limit
    except ZeroDivisionError:
        # Unlimited cgroups report a zero limit; keep IEEE semantics (0/0 -> NaN, x/0 -> inf).
        usage_pct = float("nan") if usage == 0 else float("inf") if usage > 0 else float("-inf")

    state = ContainerState.RUNNING if container.id in running_ids else ContainerState.EXITED

    return ObservabilityDocument(
        timestamp=timestamp,
        cpu=CpuStats(**{field: value(name) * USEC_TO_NSEC for field, name in CPU_METRICS.items()}),
        mem=MemStats(
            usage=usage,
            limit=limit,
            usage_pct=usage_pct,
            **{field: value(name) for field, name in MEM_METRICS.items()},
        ),
        io=IoStats(**{field: value(name) for field, name in IO_METRICS.items()}),
        proc=ProcStats(**{field: value(name) for field, name in PROC_METRICS.items()}),
        tag=DocumentTag(
            host=hostname,
            container_id=container.id,
            container_image=container.image,
            container_name=container_name,
            state=state,
            kubernetes_container_name=annotations.get(CONTAINER_NAME_ANNOTATION),
            kubernetes_container_type=annotations.get(CONTAINER_TYPE_ANNOTATION),
            kubernetes_pod_name=container.labels.get(POD_NAME_LABEL),
            kubernetes_pod_namespace=container.labels.get(POD_NAMESPACE_LABEL),
        ),
    )
