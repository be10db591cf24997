# src/ctrwatch/collectors/metrics_collector.py
"""
Scrapes the containerd metrics endpoint and indexes the container_ samples.
"""

import logging

import httpx

from ..core.exceptions import TransportFailure
from ..core.metric_index import MetricIndex
from ..utils.http_client import get_async_http_client
from .base_collector import BaseCollector

logger = logging.getLogger(__name__)


class MetricsEndpointCollector(BaseCollector):
    """
    Fetches the exposition payload with a single GET (no query parameters) and
    turns it into a MetricIndex.
    """

    def __init__(self, url: str, timeout: float = 10.0, verify: bool = True):
        self.url = url
        self.timeout = timeout
        self.verify = verify

    async def collect(self) -> MetricIndex:
        async with get_async_http_client(timeout=self.timeout, verify=self.verify) as client:
            try:
                response = await client.get(self.url)
                response.raise_for_status()
            except httpx.HTTPError as e:
                raise TransportFailure(f"Failed to fetch metrics from {self.url}: {e}") from e
            text = response.text

        try:
            index = MetricIndex.build(text)
        except ValueError as e:
            logger.debug("Raw metrics payload from %s: %s", self.url, text[:500])
            raise TransportFailure(f"Metrics endpoint {self.url} returned an unparsable payload: {e}") from e

        logger.debug("Indexed %d container sample(s) from %s", len(index), self.url)
        return index
