# indexnower/sitemap.py
"""
Sitemap retrieval.

A sitemap index is expanded one level deep: every child sitemap it lists is
fetched and its ``<url>`` entries are merged, children first, then any
entries of the parent document. A child that cannot be fetched or parsed is
logged and skipped; only a failure of the top-level document is an error.
"""
from __future__ import annotations

import asyncio
from typing import List, Optional

from aiohttp import ClientError, ClientSession, ClientTimeout

from indexnower.config import DEFAULT_USER_AGENT
from indexnower.exceptions import SitemapError
from indexnower.logger import get_logger
from indexnower.models import SitemapUrl
from indexnower.parser.sitemap_parser import parse_sitemap

logger = get_logger("sitemap")


class SitemapService:
    """Fetches and parses sitemaps over a shared aiohttp session."""

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

    async def __aenter__(self) -> SitemapService:
        if self.session is None:
            self.session = ClientSession(timeout=ClientTimeout(total=self.timeout))
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._owns_session and self.session and not self.session.closed:
            await self.session.close()

    async def _get(self, url: str) -> tuple[int, str, bytes]:
        if self.session is None:
            raise RuntimeError("Session not initialized")
        async with self.session.get(url, headers={"User-Agent": self.user_agent}) as resp:
            return resp.status, resp.reason or "", await resp.read()

    async def fetch(self, sitemap_url: str) -> List[SitemapUrl]:
        """Return all URL entries of ``sitemap_url``.

        Raises:
            SitemapError: 400 when the document cannot be fetched or parsed,
                500 on a transport failure.
        """
        try:
            status, reason, body = await self._get(sitemap_url)
        except (ClientError, asyncio.TimeoutError) as exc:
            raise SitemapError(f"Failed to fetch sitemap: {exc or type(exc).__name__}", status=500) from exc
        if not 200 <= status < 300:
            raise SitemapError(f"Failed to fetch sitemap: {status} {reason}".rstrip(), status=400)

        parsed = parse_sitemap(body)
        urls: List[SitemapUrl] = []
        for child in parsed.sitemaps:
            urls.extend(await self._fetch_child(child))
        urls.extend(parsed.urls)
        logger.info("Sitemap %s: %d URLs (%d child sitemaps)", sitemap_url, len(urls), len(parsed.sitemaps))
        return urls

    async def _fetch_child(self, url: str) -> List[SitemapUrl]:
        try:
            status, _, body = await self._get(url)
        except (ClientError, asyncio.TimeoutError) as exc:
            logger.warning("Failed to fetch sub-sitemap %s: %s", url, exc)
            return []
        if not 200 <= status < 300:
            logger.warning("Failed to fetch sub-sitemap %s: HTTP %s", url, status)
            return []
        try:
            # nested indexes are not followed
            return parse_sitemap(body).urls
        except SitemapError as exc:
            logger.warning("Failed to parse sub-sitemap %s: %s", url, exc)
            return []


async def fetch_sitemap(sitemap_url: str, session: Optional[ClientSession] = None) -> List[SitemapUrl]:
    """One-shot helper around :class:`SitemapService`."""
    async with SitemapService(session) as service:
        return await service.fetch(sitemap_url)


__all__ = ["SitemapService", "fetch_sitemap"]
