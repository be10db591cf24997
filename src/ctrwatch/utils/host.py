import logging

logger = logging.getLogger(__name__)

UNKNOWN_HOST = "unknown"


def read_hostname(path: str) -> str:
    """
    Reads the node name from ``path`` (written by the DaemonSet's init container).
    Falls back to "unknown" when the file is missing or unreadable.
    """
    try:
        with open(path, "r") as f:
            hostname = f.read().strip()
    except OSError as e:
        logger.warning("Could not read hostname from %s (%s); using '%s'.", path, e, UNKNOWN_HOST)
        return UNKNOWN_HOST
    return hostname
