# src/ctrwatch/core/batch.py

import logging
from typing import Iterable, List

from ..models.document import ObservabilityDocument

logger = logging.getLogger(__name__)

DEFAULT_MAX_CYCLES = 10
DEFAULT_MAX_DOCUMENTS = 2000


class Batch:
    """
    Accumulates documents across polling cycles until one of two thresholds is
    exceeded: more than ``max_cycles`` cycles or more than ``max_documents``
    documents. Both comparisons are strict.

    Only the poll loop task touches a Batch, so it carries no lock.
    """

    def __init__(self, max_cycles: int = DEFAULT_MAX_CYCLES, max_documents: int = DEFAULT_MAX_DOCUMENTS):
        self.max_cycles = max_cycles
        self.max_documents = max_documents
        self.documents: List[ObservabilityDocument] = []
        self.cycles = 0

    def offer(self, documents: Iterable[ObservabilityDocument]) -> bool:
        """
        Appends one cycle's documents and returns True when a flush is due.
        """
        self.documents.extend(documents)
        self.cycles += 1
        return self.flush_due

    @property
    def flush_due(self) -> bool:
        return self.cycles > self.max_cycles or len(self.documents) > self.max_documents

    def drain(self) -> List[ObservabilityDocument]:
        """
        Hands over the accumulated documents and resets the batch.

        Called before delivery starts, so anything offered while a delivery is in
        flight lands in a fresh batch.
        """
        documents = self.documents
        self.documents = []
        self.cycles = 0
        logger.debug("Drained %d document(s) from batch.", len(documents))
        return documents

    def __len__(self) -> int:
        return len(self.documents)
