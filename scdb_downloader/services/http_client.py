"""
HTTP Client Factory

Builds the httpx client used for an SCDB session:
- Cookie persistence across login and downloads
- Redirect following (the login POST answers with a redirect)
- Browser-like default headers; the site rejects unfamiliar clients
- Long timeouts, since the fixed-camera archive is generated on request
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from ..config import DEFAULT_TIMEOUT

logger = logging.getLogger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/139.0.0.0 Safari/537.36"
)

DEFAULT_HEADERS = {
    "User-Agent": USER_AGENT,
    "Accept": (
        "text/html,application/xhtml+xml,application/xml;q=0.9,"
        "image/avif,image/webp,image/apng,*/*;q=0.8"
    ),
    "Accept-Language": "en-GB,en;q=0.9",
}


def create_http_client(
    timeout: float = DEFAULT_TIMEOUT,
    verify: bool = False,
    transport: Optional[httpx.BaseTransport] = None,
) -> httpx.Client:
    """
    Create a client for one SCDB session.

    Args:
        timeout: Total request timeout in seconds
        verify: Verify the server TLS certificate
        transport: Optional transport override (tests pass httpx.MockTransport)

    Returns:
        A new httpx.Client; the caller owns it and must close it
    """
    client = httpx.Client(
        timeout=httpx.Timeout(timeout, connect=30.0),
        verify=verify,
        follow_redirects=True,
        headers=DEFAULT_HEADERS,
        transport=transport,
    )

    logger.debug(
        f"HTTP client initialized: timeout={timeout}s, verify_tls={verify}, follow_redirects=True"
    )
    return client
