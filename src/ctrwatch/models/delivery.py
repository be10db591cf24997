# src/ctrwatch/models/delivery.py
"""
Outcome of a bulk delivery to the store.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .document import ObservabilityDocument


class FailedOperation(BaseModel):
    """
    A document the store accepted in the bulk request but refused to index.
    """

    status: Optional[int] = Field(None, description="HTTP status reported for this operation.")
    error: Any = Field(None, description="Error detail reported by the store.")
    operation: Dict[str, Any] = Field(..., description="The bulk directive sent for this document.")
    document: ObservabilityDocument = Field(..., description="The document as it was submitted.")


class DeliveryReport(BaseModel):
    index: str
    submitted: int = 0
    errors: List[FailedOperation] = Field(default_factory=list)

    @property
    def partial_failure(self) -> bool:
        return bool(self.errors)
