"""Shared httpx helpers for the remote calls (/check, /submit, releases).

Every call site accepts an optional httpx.Client so tests can inject one
built on httpx.MockTransport. When none is given a short-lived client is
opened and closed around the single request.
"""

from contextlib import contextmanager
from typing import Iterator, Optional

import httpx

USER_AGENT = "optimus-cli"


def bearer_headers(api_key: str) -> dict[str, str]:
    return {
        "Authorization": f"Bearer {api_key}",
        "User-Agent": USER_AGENT,
    }


@contextmanager
def client_scope(
    client: Optional[httpx.Client] = None,
    timeout: Optional[float] = None,
) -> Iterator[httpx.Client]:
    """Yield the injected client, or a fresh one closed on exit.

    timeout=None disables httpx's default 5s timeout entirely; the upload
    and release download rely on that.
    """
    if client is not None:
        yield client
        return

    with httpx.Client(timeout=timeout, follow_redirects=True) as owned:
        yield owned


def is_success(status_code: int) -> bool:
    return 200 <= status_code < 300
