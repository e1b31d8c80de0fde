"""Fetch web pages and binaries, failing over from direct GET to CORS relays.

Attempts run in order: direct request (when enabled), primary relay,
secondary relay. The first attempt that returns a usable body wins; the
failover is the only automatic retry in the pipeline.
"""

from typing import Protocol
from urllib.parse import quote

import httpx
import logfire

from src.constants import (
    DEFAULT_HTTP_TIMEOUT_SECONDS,
    ERROR_PAGE_INDICATORS,
    ERROR_PAGE_MAX_CHARS,
    MIN_FETCHED_PAGE_CHARS,
    PRIMARY_PROXY_TEMPLATE,
    SECONDARY_PROXY_TEMPLATE,
)
from src.exceptions import FetchFailureError


class PageFetcher(Protocol):
    """Protocol for fetching page content."""

    async def fetch(self, url: str) -> str:
        """Fetch HTML content from URL.

        Raises:
            FetchFailureError: If every transport fails
        """
        ...

    async def fetch_bytes(self, url: str) -> bytes:
        """Fetch a binary resource (e.g. a PDF) from URL.

        Raises:
            FetchFailureError: If every transport fails
        """
        ...


def looks_like_error_page(html: str) -> bool:
    """True for short pages carrying a bot-wall or error-page marker."""
    if len(html) >= ERROR_PAGE_MAX_CHARS:
        return False
    lowered = html.lower()
    return any(marker.lower() in lowered for marker in ERROR_PAGE_INDICATORS)


class ProxyPageFetcher:
    """Fetch pages with httpx, failing over to CORS relay services."""

    # Default headers to mimic a real browser
    DEFAULT_HEADERS = {
        "User-Agent": (
            "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
        ),
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.9",
    }

    def __init__(
        self,
        timeout: float = DEFAULT_HTTP_TIMEOUT_SECONDS,
        proxy_templates: list[str] | None = None,
        direct_fetch: bool = True,
        headers: dict[str, str] | None = None,
    ):
        """Initialize the page fetcher.

        Args:
            timeout: Timeout for each individual HTTP attempt, in seconds
            proxy_templates: Relay URL templates in failover order; "{url}" is
                replaced with the percent-encoded target
            direct_fetch: Whether to try the target directly before the relays
            headers: Optional custom headers (defaults to browser-like headers)
        """
        self._timeout = timeout
        self._proxy_templates = (
            list(proxy_templates)
            if proxy_templates is not None
            else [PRIMARY_PROXY_TEMPLATE, SECONDARY_PROXY_TEMPLATE]
        )
        self._direct_fetch = direct_fetch
        self._headers = headers or self.DEFAULT_HEADERS.copy()

    def attempt_urls(self, url: str) -> list[tuple[str, str]]:
        """Return (transport_name, request_url) pairs in the order they are tried."""
        attempts: list[tuple[str, str]] = []
        if self._direct_fetch:
            attempts.append(("direct", url))
        encoded = quote(url, safe="")
        names = ("primary_proxy", "secondary_proxy")
        for index, template in enumerate(self._proxy_templates):
            name = names[index] if index < len(names) else f"proxy_{index + 1}"
            attempts.append((name, template.format(url=encoded)))
        return attempts

    async def fetch(self, url: str) -> str:
        """Fetch a page's HTML, rejecting error pages and near-empty bodies.

        Raises:
            FetchFailureError: If every transport fails
        """
        response = await self._fetch_with_failover(url, check_html=True)
        return response.text

    async def fetch_bytes(self, url: str) -> bytes:
        """Fetch a binary resource through the same transport chain.

        Raises:
            FetchFailureError: If every transport fails
        """
        response = await self._fetch_with_failover(url, check_html=False)
        return response.content

    async def _fetch_with_failover(self, url: str, check_html: bool) -> httpx.Response:
        attempts = self.attempt_urls(url)
        if not attempts:
            raise FetchFailureError(
                f"Failed to fetch {url}: no transports configured", source_url=url
            )

        last_error: Exception | None = None
        async with httpx.AsyncClient(
            timeout=self._timeout,
            follow_redirects=True,
            headers=self._headers,
        ) as client:
            for transport, request_url in attempts:
                try:
                    response = await client.get(request_url)
                    response.raise_for_status()
                    self._check_body(response, check_html)
                except (httpx.HTTPError, FetchFailureError) as e:
                    last_error = e
                    logfire.warning(
                        "Fetch attempt failed",
                        url=url,
                        transport=transport,
                        error=str(e),
                    )
                    continue

                logfire.info(
                    "Page fetched",
                    url=url,
                    transport=transport,
                    status_code=response.status_code,
                    content_length=len(response.content),
                )
                return response

        raise FetchFailureError(
            f"Failed to fetch {url}: {last_error}", source_url=url
        ) from last_error

    @staticmethod
    def _check_body(response: httpx.Response, check_html: bool) -> None:
        if not response.content:
            raise FetchFailureError("Empty response body")
        if not check_html:
            return
        html = response.text
        if looks_like_error_page(html):
            raise FetchFailureError("Error page detected")
        if len(html) < MIN_FETCHED_PAGE_CHARS:
            raise FetchFailureError("Page is too short")
