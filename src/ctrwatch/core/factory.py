# src/ctrwatch/core/factory.py
"""
Factory functions that build the collector's components from configuration.
Every client is constructed here and handed to its owner explicitly.
"""

import logging

from ..collectors.containerd_collector import ContainerdCollector
from ..collectors.metrics_collector import MetricsEndpointCollector
from ..storage.base_sink import DeliverySink
from ..storage.elasticsearch_sink import ElasticsearchSink
from ..utils.host import read_hostname
from .batch import Batch
from .config import Config
from .poll_loop import PollLoop

logger = logging.getLogger(__name__)


def get_runtime_collector(settings: Config) -> ContainerdCollector:
    # Imported here so that the gRPC stubs are only loaded when a real socket is used.
    from ..collectors.containerd_client import ContainerdRuntimeClient

    client = ContainerdRuntimeClient(
        socket=settings.CONTAINERD_SOCKET,
        namespace=settings.CONTAINERD_NAMESPACE,
        timeout=settings.UPSTREAM_TIMEOUT,
    )
    return ContainerdCollector(client)


def get_metrics_collector(settings: Config) -> MetricsEndpointCollector:
    return MetricsEndpointCollector(url=settings.METRICS_URL, timeout=settings.UPSTREAM_TIMEOUT)


def get_sink(settings: Config) -> DeliverySink:
    return ElasticsearchSink(
        index_prefix=settings.ELASTICSEARCH_INDEX_PREFIX,
        request_timeout=settings.UPSTREAM_TIMEOUT,
    )


def build_poll_loop(settings: Config, sink: DeliverySink = None) -> PollLoop:
    """
    Assembles a PollLoop. The Elasticsearch connection must already be registered
    (see ``setup_elasticsearch``) unless a sink is passed in.
    """
    hostname = read_hostname(settings.HOSTNAME_FILE)
    logger.info("Collecting for host '%s' every %ss.", hostname, settings.METRIC_INTERVAL)
    return PollLoop(
        runtime=get_runtime_collector(settings),
        metrics=get_metrics_collector(settings),
        sink=sink if sink is not None else get_sink(settings),
        hostname=hostname,
        interval_seconds=settings.METRIC_INTERVAL,
        batch=Batch(max_cycles=settings.FLUSH_MAX_CYCLES, max_documents=settings.FLUSH_MAX_DOCUMENTS),
    )
