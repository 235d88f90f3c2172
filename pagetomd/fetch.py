"""Content fetching over plain HTTP with httpx (no JS rendering)."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import httpx

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/131.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}


@dataclass
class FetchResult:
    """A page as served: final URL after redirects, status and headers."""

    html: str
    url: str
    status: int
    headers: dict[str, str] = field(default_factory=dict)


async def fetch_static(
    url: str,
    timeout: int = 30,
    follow_redirects: bool = True,
    headers: dict[str, str] | None = None,
    verify_ssl: bool = True,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FetchResult:
    """Fetch *url* and return its HTML.

    Raises ``httpx.HTTPStatusError`` for 4xx/5xx responses; the page is never
    rendered, so content injected by scripts is not part of the result.
    """
    request_headers = {**DEFAULT_HEADERS, **(headers or {})}

    async with httpx.AsyncClient(
        timeout=timeout,
        follow_redirects=follow_redirects,
        headers=request_headers,
        verify=verify_ssl,
        transport=transport,
    ) as client:
        response = await client.get(url)
        response.raise_for_status()

    logger.info("Fetched %s (%d, %d bytes)", response.url, response.status_code, len(response.content))
    return FetchResult(
        html=response.text,
        url=str(response.url),
        status=response.status_code,
        headers=dict(response.headers),
    )
