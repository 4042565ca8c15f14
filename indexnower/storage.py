# indexnower/storage.py
"""
Persistence of the :class:`~indexnower.models.AppData` document.

Two layers:

* a *document store* - anything with ``read() -> AppData`` and
  ``write(AppData) -> None`` (:class:`JsonFileStore` on disk,
  :class:`MemoryStore` for tests);
* :class:`StateStore` - site/settings/URL accessors on top of it.

Every accessor reads the whole document, changes it and writes the whole
document back. There is no locking: one process, one user.
"""
from __future__ import annotations

import json
import os
import secrets
import string
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Protocol, Union

from pydantic import ValidationError

from indexnower.exceptions import SiteNotFoundError
from indexnower.logger import get_logger
from indexnower.models import AppData, Site, SiteSettings, UrlEntry, UrlStatus, utcnow

logger = get_logger("storage")

_ID_ALPHABET = string.ascii_lowercase + string.digits
_ID_LENGTH = 13
_UNSET: Any = object()


class DocumentStore(Protocol):
    def read(self) -> AppData: ...

    def write(self, data: AppData) -> None: ...


class MemoryStore:
    """In-process store; keeps a private copy so callers cannot alias it."""

    def __init__(self, data: Optional[AppData] = None) -> None:
        self._data = (data or AppData()).model_copy(deep=True)
        self.writes = 0

    def read(self) -> AppData:
        return self._data.model_copy(deep=True)

    def write(self, data: AppData) -> None:
        self._data = data.model_copy(deep=True)
        self.writes += 1


class JsonFileStore:
    """AppData as a single JSON file."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path).expanduser()

    def read(self) -> AppData:
        if not self.path.is_file():
            return AppData()
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
            return AppData.model_validate(raw)
        except (OSError, json.JSONDecodeError, ValidationError) as exc:
            logger.error("Failed to load app data from %s: %s", self.path, exc)
            return AppData()

    def write(self, data: AppData) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(data.to_json_dict(), ensure_ascii=False, indent=2), encoding="utf-8")
        os.replace(tmp, self.path)


def generate_id() -> str:
    """Random 13-character base-36 site id."""
    return "".join(secrets.choice(_ID_ALPHABET) for _ in range(_ID_LENGTH))


class StateStore:
    """Accessors for sites, their settings and their URL entries."""

    def __init__(self, store: DocumentStore) -> None:
        self.store = store

    # -- whole document ----------------------------------------------------

    def read(self) -> AppData:
        return self.store.read()

    def write(self, data: AppData) -> None:
        self.store.write(data)

    def _site(self, data: AppData, site_id: str) -> Site:
        site = data.sites.get(site_id)
        if site is None:
            raise SiteNotFoundError(site_id)
        return site

    # -- sites -------------------------------------------------------------

    def get_site(self, site_id: str) -> Optional[Site]:
        return self.read().sites.get(site_id)

    def list_sites(self) -> List[Site]:
        return sorted(self.read().sites.values(), key=lambda s: s.name.casefold())

    def get_active_site(self) -> Optional[Site]:
        return self.read().active_site()

    def set_active_site(self, site_id: str) -> None:
        """Point the active site at ``site_id``; unknown ids are ignored."""
        data = self.read()
        if site_id in data.sites:
            data.active_site_id = site_id
            self.write(data)

    def create_site(self, name: str) -> Site:
        """Create an empty site and make it active."""
        data = self.read()
        site_id = generate_id()
        while site_id in data.sites:
            site_id = generate_id()
        now = utcnow()
        site = Site(id=site_id, name=name, created_at=now, updated_at=now)
        data.sites[site_id] = site
        data.active_site_id = site_id
        self.write(data)
        logger.info("Created site %s (%s)", name, site_id)
        return site

    def update_site(self, site_id: str, *, name: Optional[str] = None) -> Site:
        data = self.read()
        site = self._site(data, site_id)
        if name is not None:
            site.name = name
        site.touch()
        self.write(data)
        return site

    def delete_site(self, site_id: str) -> None:
        """Remove a site; an active pointer moves to the first remaining site or to None."""
        data = self.read()
        self._site(data, site_id)
        del data.sites[site_id]
        if data.active_site_id == site_id:
            remaining = list(data.sites)
            data.active_site_id = remaining[0] if remaining else None
        self.write(data)
        logger.info("Deleted site %s", site_id)

    # -- settings ----------------------------------------------------------

    def get_site_settings(self, site_id: str) -> SiteSettings:
        site = self.get_site(site_id)
        return site.settings if site else SiteSettings()

    def update_site_settings(
        self,
        site_id: str,
        *,
        api_key: Optional[str] = None,
        host: Optional[str] = None,
        key_location: Optional[str] = None,
    ) -> SiteSettings:
        data = self.read()
        site = self._site(data, site_id)
        updates = {
            k: v
            for k, v in (("api_key", api_key), ("host", host), ("key_location", key_location))
            if v is not None
        }
        site.settings = site.settings.model_copy(update=updates)
        site.touch()
        self.write(data)
        return site.settings

    # -- URL entries -------------------------------------------------------

    def get_url_entries(self, site_id: str) -> Dict[str, UrlEntry]:
        site = self.get_site(site_id)
        return dict(site.urls) if site else {}

    def get_url_entry(self, site_id: str, url: str) -> Optional[UrlEntry]:
        return self.get_url_entries(site_id).get(url)

    def put_url_entry(self, site_id: str, entry: UrlEntry) -> UrlEntry:
        """Replace the entry stored under ``entry.url``."""
        data = self.read()
        site = self._site(data, site_id)
        site.urls[entry.url] = entry
        site.touch()
        self.write(data)
        return entry

    def update_url_entry(
        self,
        site_id: str,
        url: str,
        *,
        content_hash: str = "",
        last_submitted: Optional[datetime] = _UNSET,
        status: Optional[UrlStatus] = None,
        last_modified: Optional[str] = None,
    ) -> UrlEntry:
        """Merge the given fields into the stored entry.

        An empty ``content_hash``, a missing ``status`` or ``last_modified`` and
        an unset ``last_submitted`` keep whatever is stored; a new entry starts
        as ``pending`` with an empty hash.
        """
        data = self.read()
        site = self._site(data, site_id)
        current = site.urls.get(url) or UrlEntry(url=url)
        entry = UrlEntry(
            url=url,
            content_hash=content_hash or current.content_hash,
            last_submitted=current.last_submitted if last_submitted is _UNSET else last_submitted,
            status=status or current.status,
            last_modified=last_modified or current.last_modified,
        )
        site.urls[url] = entry
        site.touch()
        self.write(data)
        return entry

    def mark_submitted(
        self, site_id: str, urls: Iterable[str], when: Optional[datetime] = None
    ) -> List[UrlEntry]:
        """Flip the given URLs to ``submitted`` in one write; unknown URLs are skipped."""
        when = when or utcnow()
        data = self.read()
        site = self._site(data, site_id)
        updated: List[UrlEntry] = []
        for url in urls:
            entry = site.urls.get(url)
            if entry is None:
                continue
            entry = entry.model_copy(update={"status": UrlStatus.SUBMITTED, "last_submitted": when})
            site.urls[url] = entry
            updated.append(entry)
        site.touch()
        self.write(data)
        return updated

    def remove_url_entry(self, site_id: str, url: str) -> bool:
        data = self.read()
        site = self._site(data, site_id)
        removed = site.urls.pop(url, None) is not None
        if removed:
            site.touch()
            self.write(data)
        return removed

    def clear_site_history(self, site_id: str) -> None:
        data = self.read()
        site = self._site(data, site_id)
        site.urls = {}
        site.touch()
        self.write(data)


__all__ = [
    "DocumentStore",
    "MemoryStore",
    "JsonFileStore",
    "StateStore",
    "generate_id",
]
