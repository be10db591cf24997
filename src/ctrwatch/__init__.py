"""ctrwatch: containerd resource telemetry shipped to Elasticsearch."""

__version__ = "0.3.0"
