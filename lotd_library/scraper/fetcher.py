"""
aiohttp page fetcher.

Thin wrapper around a shared ``aiohttp.ClientSession`` that turns every
transport problem into a ``NetworkError`` the retry policy understands.

Example:
    >>> async with PageFetcher() as fetcher:
    ...     html = await fetcher.fetch("https://legacy-of-the-dragonborn.fandom.com/wiki/Treasure_Map_XXI")
"""

from __future__ import annotations

import asyncio
from typing import Optional, Protocol

import aiohttp

from lotd_library.utils.exceptions import NetworkError
from lotd_library.utils.logger import get_logger

logger = get_logger(__name__)


class PageSource(Protocol):
    """Anything that can turn a URL into document text."""

    async def fetch(self, url: str) -> str:
        ...


class PageFetcher:
    """
    Fetch wiki pages as text over one pooled HTTP session.

    Attributes:
        timeout: Total per-request timeout in seconds.
        user_agent: User-Agent header sent with every request.
    """

    def __init__(self, timeout: float = 30.0, user_agent: Optional[str] = None):
        self.timeout = timeout
        self.user_agent = user_agent
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self) -> "PageFetcher":
        await self.start_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def start_session(self) -> None:
        if self._session is not None:
            logger.warning("Session already active")
            return

        headers = {'Accept': 'text/html,application/xhtml+xml'}
        if self.user_agent:
            headers['User-Agent'] = self.user_agent

        self._session = aiohttp.ClientSession(
            headers=headers,
            timeout=aiohttp.ClientTimeout(total=self.timeout),
        )
        logger.debug(f"HTTP session opened (timeout={self.timeout}s)")

    async def close(self) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None
            logger.debug("HTTP session closed")

    async def fetch(self, url: str) -> str:
        """
        Download a page as text.

        Args:
            url: Absolute page URL.

        Returns:
            Response body decoded as text.

        Raises:
            NetworkError: On HTTP error status, undecodable body, timeout or
                connection failure.
            RuntimeError: If no session is active.
        """
        if self._session is None:
            raise RuntimeError(
                "No active session. Use 'async with PageFetcher()' "
                "or call start_session() first."
            )

        logger.debug(f"GET {url}")
        try:
            async with self._session.get(url) as response:
                if response.status >= 400:
                    raise NetworkError(
                        f"HTTP {response.status} for {url}",
                        url=url,
                        status_code=response.status,
                    )
                return await response.text()
        except UnicodeDecodeError as e:
            raise NetworkError(f"Undecodable response body from {url}", url=url) from e
        except asyncio.TimeoutError as e:
            raise NetworkError(f"Timeout fetching {url}", url=url) from e
        except aiohttp.ClientError as e:
            raise NetworkError(f"Request to {url} failed: {e}", url=url) from e
