class CtrWatchError(Exception):
    """Base exception for ctrwatch."""

    pass


class TransportFailure(CtrWatchError):
    """Raised when an upstream call (containerd, metrics endpoint) fails or times out."""

    pass


class MalformedRuntimeRecord(CtrWatchError):
    """Raised when a container's spec or metadata extension cannot be decoded."""

    def __init__(self, container_id: str, reason: str):
        super().__init__(f"Malformed runtime record for container '{container_id}': {reason}")
        self.container_id = container_id
        self.reason = reason


class DeliveryAttemptFailed(CtrWatchError):
    """Raised when a bulk delivery is rejected as a whole by the store."""

    def __init__(self, message: str, document_count: int = 0):
        super().__init__(message)
        self.document_count = document_count
