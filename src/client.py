"""HTTP client factory for asfclaim.

One AsyncClient is shared by every adapter so connections are pooled, and
its lifecycle is managed explicitly by the entry point.
"""

from __future__ import annotations

import logging

import httpx

from core import __version__

USER_AGENT = f"asfclaim/{__version__}"


def build_http_client(timeout: float = 30.0) -> httpx.AsyncClient:
    """Create the shared async HTTP client."""

    logging.getLogger(__name__).debug("Initializing HTTP client")
    return httpx.AsyncClient(
        timeout=httpx.Timeout(timeout),
        headers={"User-Agent": USER_AGENT},
        follow_redirects=True,
    )
