# tests/core/test_metric_index.py

import pytest

from ctrwatch.core.metric_index import MAX_SAFE_INTEGER, MetricIndex, parse_exposition
from ctrwatch.models.metrics import RawMetricSample

PAYLOAD = """\
# HELP container_memory_usage_bytes Current memory usage
# TYPE container_memory_usage_bytes gauge
container_memory_usage_bytes{container_id="c1",namespace="k8s.io"} 100
container_memory_usage_bytes{container_id="c2",namespace="k8s.io"} 4096
# HELP container_memory_usage_limit_bytes Memory limit
# TYPE container_memory_usage_limit_bytes gauge
container_memory_usage_limit_bytes{container_id="c1",namespace="k8s.io"} 200
# HELP container_io_rios_total Read operations
# TYPE container_io_rios_total counter
container_io_rios_total{container_id="c1",namespace="k8s.io"} 42
# HELP process_open_fds Number of open file descriptors
# TYPE process_open_fds gauge
process_open_fds 17
"""


def _sample(name, container_id, value):
    return RawMetricSample(name=name, labels={"container_id": container_id}, value=value)


def test_build_indexes_by_name_and_container_id():
    index = MetricIndex.build(PAYLOAD)

    assert index.value("container_memory_usage_bytes", "c1") == 100
    assert index.value("container_memory_usage_bytes", "c2") == 4096
    assert index.value("container_memory_usage_limit_bytes", "c1") == 200


def test_counter_samples_keep_their_total_suffix():
    index = MetricIndex.build(PAYLOAD)

    assert index.value("container_io_rios_total", "c1") == 42


def test_non_container_metrics_are_not_indexed():
    index = MetricIndex.build(PAYLOAD)

    assert "process_open_fds" not in index.metric_names
    assert all(name.startswith("container_") for name in index.metric_names)


@pytest.mark.parametrize(
    "name, container_id",
    [
        ("container_memory_usage_bytes", "missing"),
        ("container_does_not_exist", "c1"),
        ("container_does_not_exist", "missing"),
    ],
)
def test_absent_lookups_resolve_to_zero(name, container_id):
    index = MetricIndex.build(PAYLOAD)

    assert index.value(name, container_id) == 0


def test_empty_index_resolves_everything_to_zero():
    assert MetricIndex().value("container_memory_usage_bytes", "c1") == 0
    assert len(MetricIndex.build("")) == 0


def test_values_beyond_safe_integer_are_clamped_to_zero():
    index = MetricIndex.from_samples(
        [
            _sample("container_pids_limit", "at-ceiling", float(MAX_SAFE_INTEGER)),
            _sample("container_pids_limit", "above", float(MAX_SAFE_INTEGER) * 2),
            _sample("container_pids_limit", "max-uint64", 18446744073709551615.0),
            _sample("container_pids_limit", "negative", -float(MAX_SAFE_INTEGER) * 2),
        ]
    )

    assert index.value("container_pids_limit", "at-ceiling") == MAX_SAFE_INTEGER
    assert index.value("container_pids_limit", "above") == 0
    assert index.value("container_pids_limit", "max-uint64") == 0
    assert index.value("container_pids_limit", "negative") == 0


@pytest.mark.parametrize("raw", ["NaN", "+Inf", "-Inf"])
def test_non_finite_values_are_clamped_to_zero(raw):
    index = MetricIndex.build(f'container_pids_limit{{container_id="c1"}} {raw}\n')

    assert index.value("container_pids_limit", "c1") == 0


def test_samples_without_container_id_are_skipped():
    index = MetricIndex.build('container_memory_usage_bytes{namespace="k8s.io"} 5\n')

    assert len(index) == 0
    assert index.container_ids() == set()


def test_last_sample_wins_for_duplicate_pairs():
    index = MetricIndex.from_samples(
        [
            _sample("container_memory_usage_bytes", "c1", 1),
            _sample("container_memory_usage_bytes", "c1", 2),
        ]
    )

    assert index.value("container_memory_usage_bytes", "c1") == 2


def test_container_ids_spans_all_metrics():
    index = MetricIndex.build(PAYLOAD)

    assert index.container_ids() == {"c1", "c2"}


def test_parse_exposition_yields_raw_samples():
    samples = list(parse_exposition(PAYLOAD))

    first = samples[0]
    assert first.name == "container_memory_usage_bytes"
    assert first.labels == {"container_id": "c1", "namespace": "k8s.io"}
    assert first.value == 100


def test_invalid_payload_raises_value_error():
    with pytest.raises(ValueError):
        MetricIndex.build('container_memory_usage_bytes{container_id="c1"} not-a-number\n')
