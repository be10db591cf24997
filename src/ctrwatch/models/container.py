# src/ctrwatch/models/container.py
"""
Models describing what the containerd runtime reports for one polling cycle.
"""

from typing import Dict, FrozenSet, List

from pydantic import BaseModel, Field

CONTAINER_METADATA_EXTENSION = "io.cri-containerd.container.metadata"
SANDBOX_METADATA_EXTENSION = "io.cri-containerd.sandbox.metadata"


class ContainerRecord(BaseModel):
    """
    One entry of the containerd container listing.

    ``spec`` and the ``extensions`` values are kept as the raw bytes carried by the
    protobuf ``Any`` payloads; decoding them is the document builder's job.
    """

    id: str
    image: str = ""
    spec: bytes = b""
    labels: Dict[str, str] = Field(default_factory=dict)
    extensions: Dict[str, bytes] = Field(default_factory=dict)


class ContainerSnapshot(BaseModel):
    """
    Containers and running task ids captured for a single cycle.
    """

    containers: List[ContainerRecord] = Field(default_factory=list)
    running_ids: FrozenSet[str] = Field(default_factory=frozenset)
