import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from elasticsearch.exceptions import ApiError, SerializationError, TransportError
from elasticsearch_dsl import async_connections

from ..core.config import Config
from ..core.exceptions import DeliveryAttemptFailed, TransportFailure
from ..models.delivery import DeliveryReport, FailedOperation
from ..models.document import ObservabilityDocument
from .base_sink import DeliverySink

logger = logging.getLogger(__name__)

CONNECTION_ALIAS = "default"


async def setup_elasticsearch(settings: Config, alias: str = CONNECTION_ALIAS):
    """
    Registers the async Elasticsearch connection under ``alias`` and pings it.
    Handles both simple and authenticated connections.

    Raises:
        TransportFailure: If the cluster cannot be reached.
    """
    connection_args = {
        "hosts": [settings.ELASTICSEARCH_HOSTS],
        "verify_certs": settings.ELASTICSEARCH_VERIFY_CERTS,
        "request_timeout": settings.UPSTREAM_TIMEOUT,
    }
    if settings.ELASTICSEARCH_USER and settings.ELASTICSEARCH_PASSWORD:
        logger.info("Connecting to Elasticsearch with authentication.")
        connection_args["basic_auth"] = (settings.ELASTICSEARCH_USER, settings.ELASTICSEARCH_PASSWORD)
    else:
        logger.info("Connecting to Elasticsearch without authentication.")

    try:
        async_connections.create_connection(alias, **connection_args)
        conn = async_connections.get_connection(alias)
        reachable = await conn.ping()
    except TransportError as te:
        logger.error(f"Elasticsearch transport error during connection setup: {te}")
        raise TransportFailure(f"Elasticsearch transport error during connection setup: {te}") from te

    if not reachable:
        logger.error("Could not ping Elasticsearch.")
        raise TransportFailure("Failed to connect to Elasticsearch: Ping failed.")

    logger.info("Successfully connected to Elasticsearch.")
    return conn


def dated_index_name(prefix: str, when: datetime) -> str:
    """``docker`` + 2024-03-07 -> ``docker-2024.03.07``."""
    return f"{prefix}-{when:%Y.%m.%d}"


class ElasticsearchSink(DeliverySink):
    """
    Bulk-indexes flushed batches into a dated index.

    Per-document rejections are collected into the DeliveryReport and never
    raised; only a failure of the request as a whole raises DeliveryAttemptFailed.
    """

    def __init__(
        self,
        index_prefix: str = "docker",
        client=None,
        alias: str = CONNECTION_ALIAS,
        request_timeout: float = 10.0,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.index_prefix = index_prefix
        self.alias = alias
        self.request_timeout = request_timeout
        self._client = client
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @property
    def client(self):
        if self._client is None:
            self._client = async_connections.get_connection(self.alias)
        return self._client

    def index_name(self) -> str:
        # Named after the delivery time in UTC, not the documents' timestamps.
        return dated_index_name(self.index_prefix, self._clock().astimezone(timezone.utc))

    async def deliver(self, documents: List[ObservabilityDocument]) -> DeliveryReport:
        index_name = self.index_name()
        if not documents:
            return DeliveryReport(index=index_name, submitted=0)

        operations: List[Dict[str, Any]] = []
        for document in documents:
            operations.append({"index": {"_index": index_name}})
            operations.append(document.to_source())

        try:
            response = await self.client.options(request_timeout=self.request_timeout).bulk(
                operations=operations, refresh=True
            )
        except (TransportError, ApiError, SerializationError) as e:
            raise DeliveryAttemptFailed(
                f"Bulk delivery of {len(documents)} document(s) to '{index_name}' failed: {e}",
                document_count=len(documents),
            ) from e

        errors = []
        if response["errors"]:
            errors = self._collect_errors(response["items"], operations, documents)
            logger.error(
                "Elasticsearch rejected %d of %d document(s) in '%s': %s",
                len(errors),
                len(documents),
                index_name,
                [error.model_dump(by_alias=True) for error in errors],
            )

        return DeliveryReport(index=index_name, submitted=len(documents), errors=errors)

    @staticmethod
    def _collect_errors(
        items: List[Dict[str, Any]],
        operations: List[Dict[str, Any]],
        documents: List[ObservabilityDocument],
    ) -> List[FailedOperation]:
        """
        Walks the bulk result items positionally: item ``i`` answers the directive at
        ``operations[2 * i]`` for ``documents[i]``.
        """
        failed = []
        for position, item in enumerate(items):
            result = next(iter(item.values()))
            if not result.get("error"):
                continue
            failed.append(
                FailedOperation(
                    status=result.get("status"),
                    error=result["error"],
                    operation=operations[position * 2],
                    document=documents[position],
                )
            )
        return failed

    async def close(self):
        if self._client is not None:
            await self._client.close()
            logger.debug("Elasticsearch client closed.")
