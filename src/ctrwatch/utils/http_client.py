import logging

import httpx

from .. import __version__

logger = logging.getLogger(__name__)

USER_AGENT = f"ctrwatch/{__version__}"


def get_async_http_client(timeout: float, verify: bool = True) -> httpx.AsyncClient:
    """
    Returns a configured httpx.AsyncClient with:
    - A single timeout applied to connect, read, write and pool acquisition.
    - Standard User-Agent header.
    """
    # No retries: a failed request fails the polling cycle.
    return httpx.AsyncClient(
        timeout=httpx.Timeout(timeout),
        headers={"User-Agent": USER_AGENT},
        verify=verify,
        follow_redirects=True,
    )
