import asyncio
import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, List, Optional

from ..collectors.containerd_collector import ContainerdCollector
from ..collectors.metrics_collector import MetricsEndpointCollector
from ..models.delivery import DeliveryReport
from ..models.document import ObservabilityDocument
from ..storage.base_sink import DeliverySink
from .batch import Batch
from .document_builder import build_document
from .exceptions import CtrWatchError, DeliveryAttemptFailed, MalformedRuntimeRecord

logger = logging.getLogger(__name__)


class PollLoop:
    """
    Drives collection on a fixed interval: sleep, snapshot containerd and scrape
    metrics concurrently, build one document per container, batch, and flush
    when the batch says so.

    Upstream failures (TransportFailure) propagate out of ``run``; a malformed
    container only costs that container's document, and a failed delivery only
    costs the flushed batch.

    ``sink`` may be None for a loop that only collects; such a loop cannot flush.
    """

    def __init__(
        self,
        runtime: ContainerdCollector,
        metrics: MetricsEndpointCollector,
        sink: Optional[DeliverySink],
        hostname: str,
        interval_seconds: float,
        batch: Optional[Batch] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.runtime = runtime
        self.metrics = metrics
        self.sink = sink
        self.hostname = hostname
        self.interval_seconds = interval_seconds
        # An empty Batch is falsy, so compare against None.
        self.batch = batch if batch is not None else Batch()
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._in_flight: Optional[asyncio.Future] = None

    async def collect(self) -> List[ObservabilityDocument]:
        """Runs one collection pass and returns the documents it produced."""
        timestamp = self._clock()
        snapshot, metric_index = await asyncio.gather(self.runtime.collect(), self.metrics.collect())

        documents = []
        skipped = 0
        for container in snapshot.containers:
            try:
                documents.append(
                    build_document(container, metric_index, snapshot.running_ids, self.hostname, timestamp)
                )
            except MalformedRuntimeRecord as e:
                skipped += 1
                logger.warning("Skipping container: %s", e)

        listed = {container.id for container in snapshot.containers}
        orphaned = metric_index.container_ids() - listed
        if orphaned:
            # Expected when a container goes away between the listing and the scrape.
            logger.debug("Ignoring metrics for %d container(s) not in the listing: %s", len(orphaned), orphaned)
        if skipped:
            logger.warning("Skipped %d of %d container(s) this cycle.", skipped, len(snapshot.containers))

        logger.debug("Built %d document(s) at %s.", len(documents), timestamp.isoformat())
        return documents

    async def flush(self) -> Optional[DeliveryReport]:
        """
        Drains the batch and delivers it. The batch is empty afterwards whatever
        the outcome; undelivered documents are not re-queued.

        The bulk request is shielded: cancelling ``flush`` leaves it running, and
        ``finish`` waits for it.
        """
        if self.sink is None:
            raise CtrWatchError("This poll loop has no delivery sink to flush to.")

        documents = self.batch.drain()
        self._in_flight = asyncio.ensure_future(self.sink.deliver(documents))
        return await self._settle(asyncio.shield(self._in_flight))

    async def _settle(self, delivery: Awaitable[DeliveryReport]) -> Optional[DeliveryReport]:
        try:
            report = await delivery
        except DeliveryAttemptFailed as e:
            logger.error("Delivery failed, dropping %d document(s): %s", e.document_count, e)
            return None

        logger.info(f"Pushed {report.submitted} metrics")
        return report

    async def finish(self):
        """
        Shutdown hook: waits for a delivery interrupted by cancellation, then
        flushes whatever is still batched.
        """
        if self._in_flight is not None and not self._in_flight.done():
            logger.info("Waiting for the in-flight delivery before exit.")
            await self._settle(self._in_flight)
        if len(self.batch):
            logger.info("Flushing %d pending document(s) before exit.", len(self.batch))
            await self.flush()

    async def run_cycle(self) -> Optional[DeliveryReport]:
        """One iteration without the leading sleep. Returns the report if a flush happened."""
        documents = await self.collect()
        if self.batch.offer(documents):
            return await self.flush()
        return None

    async def run(self):
        """Polls forever. Cancellation or an upstream failure ends the loop."""
        logger.info("Started monitoring containerd")
        try:
            while True:
                await asyncio.sleep(self.interval_seconds)
                await self.run_cycle()
        except asyncio.CancelledError:
            logger.info("Poll loop cancelled with %d document(s) pending.", len(self.batch))
            raise

    async def close(self):
        await self.runtime.close()
        await self.metrics.close()
        if self.sink is not None:
            await self.sink.close()
