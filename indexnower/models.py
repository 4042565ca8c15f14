# indexnower/models.py
"""
Data models for IndexNower.

The persisted document is JSON with camelCase keys (``contentHash``,
``activeSiteId`` ...); the models accept both camelCase and snake_case on
input and always dump by alias.
"""
from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    """Timezone-aware current time, the only clock the store uses."""
    return datetime.now(timezone.utc)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class UrlStatus(str, Enum):
    """Lifecycle of a tracked URL."""

    PENDING = "pending"
    SUBMITTED = "submitted"
    CHANGED = "changed"
    ERROR = "error"

    @property
    def needs_submission(self) -> bool:
        if self is UrlStatus.PENDING or self is UrlStatus.CHANGED:
            return True
        if self is UrlStatus.SUBMITTED or self is UrlStatus.ERROR:
            return False
        raise ValueError(f"Unknown status: {self!r}")


class UrlEntry(_CamelModel):
    """State of a single URL; ``url`` is also its key in ``Site.urls``."""

    url: str
    content_hash: str = ""
    last_submitted: Optional[datetime] = None
    status: UrlStatus = UrlStatus.PENDING
    # raw <lastmod> value from the sitemap, informational only
    last_modified: Optional[str] = None


class SiteSettings(_CamelModel):
    api_key: str = ""
    key_location: str = ""
    host: str = ""

    def resolved_key_location(self) -> str:
        """``keyLocation`` or the conventional ``https://{host}/{apiKey}.txt``."""
        return self.key_location or f"https://{self.host}/{self.api_key}.txt"


class Site(_CamelModel):
    id: str
    name: str
    settings: SiteSettings = Field(default_factory=SiteSettings)
    urls: Dict[str, UrlEntry] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    def touch(self) -> None:
        self.updated_at = utcnow()


class AppData(_CamelModel):
    """Root document: every site plus the active-site pointer."""

    sites: Dict[str, Site] = Field(default_factory=dict)
    active_site_id: Optional[str] = None

    def active_site(self) -> Optional[Site]:
        # a dangling pointer counts as "no active site"
        if not self.active_site_id:
            return None
        return self.sites.get(self.active_site_id)


class SitemapUrl(_CamelModel):
    """One ``<url>`` element of a sitemap."""

    loc: str
    lastmod: Optional[str] = None
    changefreq: Optional[str] = None
    priority: Optional[str] = None

    def to_json_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


__all__ = [
    "UrlStatus",
    "UrlEntry",
    "SiteSettings",
    "Site",
    "AppData",
    "SitemapUrl",
    "utcnow",
]
