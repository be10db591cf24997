# src/ctrwatch/collectors/base_collector.py
"""
This module defines the abstract base class for the collector's upstream readers.
Both readers are polled once per cycle by the poll loop and own the client they
talk through, which is released by ``close``.
"""

from abc import ABC, abstractmethod
from typing import Any


class BaseCollector(ABC):
    """
    Abstract Base Class for upstream data collectors.
    """

    @abstractmethod
    async def collect(self) -> Any:
        """
        Fetches the current state of the upstream source.

        Raises:
            TransportFailure: If the upstream source cannot be read.
        """
        pass

    async def close(self):
        """
        Clean up resources (e.g., close HTTP clients or gRPC channels).
        """
        pass
