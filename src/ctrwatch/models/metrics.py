# src/ctrwatch/models/metrics.py
"""
Pydantic models for samples parsed from the containerd metrics endpoint.
"""

from typing import Dict

from pydantic import BaseModel, Field


class RawMetricSample(BaseModel):
    """
    A single sample line of the exposition payload, e.g.
    ``container_memory_usage_bytes{container_id="c1",namespace="k8s.io"} 1024``.
    """

    name: str = Field(..., description="The sample name as it appears in the payload.")
    labels: Dict[str, str] = Field(default_factory=dict, description="The sample's label set.")
    value: float = Field(..., description="The raw sample value.")
