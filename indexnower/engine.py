# File: indexnower/engine.py
"""indexnower.engine: фасад над хранилищем, сверкой URL и отправкой в IndexNow."""

from __future__ import annotations

import asyncio
from typing import Iterable, List, Optional

from indexnower.config import AppConfig, load_config
from indexnower.exceptions import NoActiveSiteError, SiteNotFoundError
from indexnower.fetcher import ContentFetch, ContentFetcher
from indexnower.indexnow import IndexNowClient, SubmitResult, SubmitTransport, submit_urls
from indexnower.logger import logger
from indexnower.models import SitemapUrl, UrlEntry
from indexnower.reconciler import UrlInput, reconcile_urls
from indexnower.sitemap import SitemapService
from indexnower.storage import JsonFileStore, StateStore

__all__ = ["Engine"]


class Engine:
    """Фасад для CLI и тестов: сайты, загрузка URL, проверка изменений и отправка."""

    @staticmethod
    def load_config(path: Optional[str]) -> AppConfig:
        """Загружает конфиг из YAML/JSON или использует значения по умолчанию."""
        return load_config(path)

    def __init__(self, config: AppConfig, state: Optional[StateStore] = None) -> None:
        """Без явного state документ хранится в config.data_file."""
        self.config = config
        self.state = state or StateStore(JsonFileStore(config.data_file))

    def resolve_site_id(self, site_id: Optional[str] = None) -> str:
        """Явный id (если сайт существует) или id активного сайта."""
        if site_id:
            if self.state.get_site(site_id) is None:
                raise SiteNotFoundError(site_id)
            return site_id
        site = self.state.get_active_site()
        if site is None:
            raise NoActiveSiteError()
        return site.id

    async def load_sitemap(self, sitemap_url: str) -> List[SitemapUrl]:
        async with SitemapService(user_agent=self.config.user_agent, timeout=self.config.timeout) as service:
            return await service.fetch(sitemap_url)

    async def load_urls(
        self,
        site_id: str,
        urls: Iterable[UrlInput],
        *,
        dedupe: bool = False,
        fetch: Optional[ContentFetch] = None,
        cancel: Optional[asyncio.Event] = None,
    ) -> List[UrlEntry]:
        """Сверяет URL с сохранёнными записями и возвращает затронутые записи."""
        if fetch is not None:
            return await reconcile_urls(self.state, site_id, urls, fetch, dedupe=dedupe, cancel=cancel)
        async with ContentFetcher(user_agent=self.config.user_agent, timeout=self.config.timeout) as fetcher:
            return await reconcile_urls(self.state, site_id, urls, fetcher.fetch, dedupe=dedupe, cancel=cancel)

    def pending_urls(self, site_id: str) -> List[str]:
        """URL сайта со статусом pending или changed, в порядке хранения."""
        return [url for url, entry in self.state.get_url_entries(site_id).items() if entry.status.needs_submission]

    async def submit_pending(self, site_id: str, *, transport: Optional[SubmitTransport] = None) -> SubmitResult:
        """Отправляет pending/changed URL и помечает подтверждённые как submitted."""
        urls = self.pending_urls(site_id)
        settings = self.state.get_site_settings(site_id)

        if transport is not None:
            result = await submit_urls(urls, settings, transport, batch_size=self.config.batch_size)
        else:
            async with IndexNowClient(endpoint=self.config.indexnow_endpoint, timeout=self.config.timeout) as client:
                result = await submit_urls(urls, settings, client.post, batch_size=self.config.batch_size)

        if result.submitted_urls:
            self.state.mark_submitted(site_id, result.submitted_urls)
        if not result.success:
            logger.error("Submission failed: %s", result.message)
        return result
