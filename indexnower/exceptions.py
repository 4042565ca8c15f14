# indexnower/exceptions.py
"""Exceptions raised by IndexNower."""

from __future__ import annotations

from typing import Optional


class IndexNowerError(Exception):
    """Base class for all project errors."""


class SiteNotFoundError(IndexNowerError, KeyError):
    """No site with the given id in the persisted document."""

    def __init__(self, site_id: str) -> None:
        super().__init__(site_id)
        self.site_id = site_id

    def __str__(self) -> str:
        return f"Site not found: {self.site_id}"


class NoActiveSiteError(IndexNowerError):
    """An operation needs an active site but none is selected."""

    def __str__(self) -> str:
        return "No active site. Create or select one first."


class SitemapError(IndexNowerError):
    """Sitemap could not be fetched or parsed; ``status`` is the HTTP status to report."""

    def __init__(self, message: str, status: int = 400) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
