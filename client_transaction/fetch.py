"""
HTTP fetchers for the home page and the ondemand script.

A fetcher is any awaitable callable taking a URL and returning the response
body as text. Two implementations are provided: a plain httpx client and a
curl_cffi session that impersonates a browser TLS fingerprint.
"""

import logging
from typing import Awaitable, Callable, Optional

import httpx
from curl_cffi.requests import AsyncSession

from client_transaction.config import TransactionSettings
from client_transaction.document import HomePageDocument
from client_transaction.errors import HomePageUnavailable

logger = logging.getLogger(__name__)

Fetcher = Callable[[str], Awaitable[str]]


class HttpxFetcher:
    """Fetch text over httpx.AsyncClient."""

    def __init__(self, settings: Optional[TransactionSettings] = None):
        self.settings = settings or TransactionSettings()
        self.client = httpx.AsyncClient(
            headers={"user-agent": self.settings.user_agent},
            timeout=httpx.Timeout(self.settings.fetch_timeout, connect=self.settings.fetch_timeout),
            follow_redirects=True
        )

    async def __call__(self, url: str) -> str:
        response = await self.client.get(url)
        response.raise_for_status()
        logger.debug(f"Fetched {url} ({len(response.text)} chars)")
        return response.text

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self) -> "HttpxFetcher":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()


class CurlCffiFetcher:
    """Fetch text over curl_cffi with browser impersonation."""

    def __init__(self, settings: Optional[TransactionSettings] = None):
        self.settings = settings or TransactionSettings()
        self.session = AsyncSession(
            impersonate=self.settings.impersonate,
            timeout=self.settings.fetch_timeout
        )

    async def __call__(self, url: str) -> str:
        response = await self.session.get(url)
        response.raise_for_status()
        logger.debug(f"Fetched {url} ({len(response.text)} chars)")
        return response.text

    async def close(self):
        """Close the curl session."""
        await self.session.close()

    async def __aenter__(self) -> "CurlCffiFetcher":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()


def build_fetcher(settings: Optional[TransactionSettings] = None):
    """Create the fetcher selected by ``settings.fetch_backend``."""
    settings = settings or TransactionSettings()
    if settings.fetch_backend == "curl_cffi":
        return CurlCffiFetcher(settings)
    return HttpxFetcher(settings)


async def load_home_page(fetch: Fetcher, url: Optional[str] = None) -> HomePageDocument:
    """
    Download and parse the home page.

    Args:
        fetch: Fetcher used for the request
        url: Page URL, defaults to the configured home page

    Returns:
        Parsed HomePageDocument

    Raises:
        HomePageUnavailable: If the request fails or returns an error status
    """
    url = url or TransactionSettings().home_page_url
    try:
        markup = await fetch(url)
    except Exception as e:
        raise HomePageUnavailable(f"Error fetching home page {url}: {e}") from e
    logger.info(f"Loaded home page from {url}")
    return HomePageDocument(markup)
