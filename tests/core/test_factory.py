# tests/core/test_factory.py

from unittest.mock import MagicMock, patch

from ctrwatch.core.config import Config
from ctrwatch.core.factory import build_poll_loop, get_metrics_collector, get_sink
from ctrwatch.storage.elasticsearch_sink import ElasticsearchSink


def test_get_metrics_collector_uses_configured_url_and_timeout(monkeypatch):
    monkeypatch.setenv("UPSTREAM_TIMEOUT", "4")

    collector = get_metrics_collector(Config())

    assert collector.url == "http://metrics.test/v1/metrics"
    assert collector.timeout == 4


def test_get_sink_uses_index_prefix_and_upstream_timeout(monkeypatch):
    monkeypatch.setenv("ELASTICSEARCH_INDEX_PREFIX", "containers")
    monkeypatch.setenv("UPSTREAM_TIMEOUT", "7")

    sink = get_sink(Config())

    assert isinstance(sink, ElasticsearchSink)
    assert sink.index_prefix == "containers"
    assert sink.request_timeout == 7


def test_build_poll_loop_wires_components(monkeypatch, tmp_path):
    hostname_file = tmp_path / "k8s-hostname"
    hostname_file.write_text("node-9\n")
    monkeypatch.setenv("HOSTNAME_FILE", str(hostname_file))
    monkeypatch.setenv("METRIC_INTERVAL", "15")
    monkeypatch.setenv("FLUSH_MAX_CYCLES", "3")
    runtime = MagicMock()
    sink = MagicMock()

    with patch("ctrwatch.core.factory.get_runtime_collector", return_value=runtime):
        loop = build_poll_loop(Config(), sink=sink)

    assert loop.runtime is runtime
    assert loop.sink is sink
    assert loop.hostname == "node-9"
    assert loop.interval_seconds == 15
    assert loop.batch.max_cycles == 3
    assert loop.batch.max_documents == 2000
