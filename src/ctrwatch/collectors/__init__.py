from .containerd_collector import ContainerdCollector
from .metrics_collector import MetricsEndpointCollector

__all__ = [
    "ContainerdCollector",
    "MetricsEndpointCollector",
]
