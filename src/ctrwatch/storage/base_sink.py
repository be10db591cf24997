# src/ctrwatch/storage/base_sink.py
from abc import ABC, abstractmethod
from typing import List

from ..models.delivery import DeliveryReport
from ..models.document import ObservabilityDocument


class DeliverySink(ABC):
    """
    Abstract base class for document sinks.
    Defines the contract for shipping a flushed batch to a store.
    """

    @abstractmethod
    async def deliver(self, documents: List[ObservabilityDocument]) -> DeliveryReport:
        """
        Submits the documents as one bulk operation.

        Args:
            documents: The flushed batch, in the order it was collected.

        Returns:
            A report with the submitted count and every per-document failure.

        Raises:
            DeliveryAttemptFailed: If the store rejects the request as a whole.
        """
        pass

    async def close(self):
        """
        Release the store client.
        """
        pass
