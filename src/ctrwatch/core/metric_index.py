# src/ctrwatch/core/metric_index.py
"""
Indexes the containerd metrics payload by metric name and container id so the
document builder can look values up per container.
"""

import logging
import math
from typing import Dict, Iterable, Iterator

from prometheus_client.parser import text_string_to_metric_families

from ..models.metrics import RawMetricSample

logger = logging.getLogger(__name__)

CONTAINER_METRIC_PREFIX = "container_"
CONTAINER_ID_LABEL = "container_id"

# Largest integer a float64 represents exactly (2**53 - 1).
MAX_SAFE_INTEGER = 9007199254740991


def parse_exposition(text: str) -> Iterator[RawMetricSample]:
    """
    Yields every sample of an exposition-format payload.

    Individual samples are used rather than families so that counter samples keep
    their full name (``container_io_rios_total``, not ``container_io_rios``).

    Raises:
        ValueError: If the payload is not valid exposition text.
    """
    for family in text_string_to_metric_families(text):
        for sample in family.samples:
            yield RawMetricSample(name=sample.name, labels=dict(sample.labels), value=sample.value)


class MetricIndex:
    """
    Two-level lookup: metric name -> container id -> sample.

    Built fresh every cycle and never mutated afterwards.
    """

    def __init__(self, samples: Dict[str, Dict[str, RawMetricSample]] = None):
        self._samples = samples or {}

    @classmethod
    def from_samples(cls, samples: Iterable[RawMetricSample]) -> "MetricIndex":
        grouped: Dict[str, Dict[str, RawMetricSample]] = {}
        unlabelled = 0
        for sample in samples:
            if not sample.name.startswith(CONTAINER_METRIC_PREFIX):
                continue
            container_id = sample.labels.get(CONTAINER_ID_LABEL)
            if container_id is None:
                unlabelled += 1
                continue
            # Last sample wins for a repeated (name, container_id) pair.
            grouped.setdefault(sample.name, {})[container_id] = sample

        if unlabelled:
            logger.debug("Skipped %d container_ sample(s) without a '%s' label.", unlabelled, CONTAINER_ID_LABEL)
        return cls(grouped)

    @classmethod
    def build(cls, text: str) -> "MetricIndex":
        """Parses an exposition payload and indexes its container_ samples."""
        return cls.from_samples(parse_exposition(text))

    def value(self, name: str, container_id: str) -> float:
        """
        Returns the sample value for ``name`` and ``container_id``, or 0.0.

        Zero is also returned for readings that are not finite or whose magnitude
        exceeds MAX_SAFE_INTEGER: such values come from corrupt or overflowed
        counters and are dropped on purpose rather than shipped.
        """
        sample = self._samples.get(name, {}).get(container_id)
        if sample is None:
            return 0.0
        value = sample.value
        if not math.isfinite(value) or abs(value) > MAX_SAFE_INTEGER:
            return 0.0
        return float(value)

    @property
    def metric_names(self):
        return set(self._samples)

    def container_ids(self) -> set:
        """All container ids that have at least one indexed sample."""
        ids = set()
        for by_container in self._samples.values():
            ids.update(by_container)
        return ids

    def __len__(self) -> int:
        return sum(len(by_container) for by_container in self._samples.values())
