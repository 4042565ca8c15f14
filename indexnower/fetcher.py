# indexnower/fetcher.py
"""
Content fetcher: downloads the raw text of a page for fingerprinting.

Failures (non-2xx status, network error, timeout, empty body) are reported
as ``None`` - "content unavailable" - and never raised.
"""
from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional

from aiohttp import ClientError, ClientSession, ClientTimeout

from indexnower.config import DEFAULT_USER_AGENT
from indexnower.logger import get_logger

logger = get_logger("fetcher")

#: anything that maps a URL to its text, or ``None`` when unavailable
ContentFetch = Callable[[str], Awaitable[Optional[str]]]


class ContentFetcher:
    """Fetches page text with a fixed User-Agent, one request at a time."""

    def __init__(
        self,
        session: Optional[ClientSession] = None,
        *,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = 30.0,
    ) -> None:
        self.session = session
        self.user_agent = user_agent
        self.timeout = timeout
        self._owns_session = session is None

    async def __aenter__(self) -> ContentFetcher:
        if self.session is None:
            self.session = ClientSession(
                timeout=ClientTimeout(total=self.timeout),
                raise_for_status=False,
            )
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._owns_session and self.session and not self.session.closed:
            await self.session.close()

    async def fetch_response(self, url: str) -> tuple[int, str]:
        """Return ``(status, body)``; the body is ``""`` for any non-2xx answer.

        Transport errors propagate - the proxy server maps them to 500.
        """
        if self.session is None:
            raise RuntimeError("Session not initialized")
        async with self.session.get(url, headers={"User-Agent": self.user_agent}) as resp:
            if not 200 <= resp.status < 300:
                return resp.status, ""
            # invalid bytes become U+FFFD instead of failing the fetch
            return resp.status, await resp.text(errors="replace")

    async def fetch(self, url: str) -> Optional[str]:
        try:
            status, body = await self.fetch_response(url)
        except (ClientError, asyncio.TimeoutError, ValueError) as exc:
            logger.warning("Fetch failed for %s: %s", url, exc)
            return None
        if not body:
            logger.debug("No content for %s (HTTP %s)", url, status)
            return None
        return body

    __call__ = fetch


__all__ = ["ContentFetch", "ContentFetcher"]
