# indexnower/reconciler.py
"""
URL-set reconciliation: merge freshly supplied URLs with the stored entries.

For every URL the current content is fetched, fingerprinted and compared with
the stored fingerprint to decide the new status:

============================  =====================  ==================
situation                     status                 contentHash
============================  =====================  ==================
fetched, no stored hash       ``pending``            new hash
fetched, hash differs         ``changed``            new hash
fetched, hash equal           previous status        new hash
fetch failed, entry stored    previous status        previous hash
fetch failed, nothing stored  ``pending``            ``""``
============================  =====================  ==================

URLs are processed one after another; a failed fetch only affects its own
entry. Each entry is written to the store as soon as it is computed.
"""
from __future__ import annotations

import asyncio
import time
from typing import Dict, Iterable, List, Optional, Tuple, Union

from indexnower.exceptions import SiteNotFoundError
from indexnower.fetcher import ContentFetch
from indexnower.hashing import hash_content
from indexnower.logger import get_logger
from indexnower.models import SitemapUrl, UrlEntry, UrlStatus
from indexnower.storage import StateStore

logger = get_logger("reconciler")

UrlInput = Union[str, SitemapUrl]


def derive_status(previous: Optional[UrlEntry], new_hash: Optional[str]) -> Tuple[UrlStatus, str]:
    """Return ``(status, content_hash)`` for a URL; ``new_hash`` is None when the fetch failed."""
    if new_hash is None:
        if previous is None:
            return UrlStatus.PENDING, ""
        return previous.status, previous.content_hash

    if previous is None or not previous.content_hash:
        return UrlStatus.PENDING, new_hash
    if previous.content_hash != new_hash:
        return UrlStatus.CHANGED, new_hash
    return previous.status, new_hash


def reconcile_entry(
    url: str,
    previous: Optional[UrlEntry],
    content: Optional[str],
    last_modified: Optional[str] = None,
) -> UrlEntry:
    """Build the updated entry for one URL from its previous state and fetched content."""
    new_hash = hash_content(content) if content else None
    status, content_hash = derive_status(previous, new_hash)
    return UrlEntry(
        url=url,
        content_hash=content_hash,
        last_submitted=previous.last_submitted if previous else None,
        status=status,
        last_modified=last_modified or (previous.last_modified if previous else None),
    )


def _split_input(item: UrlInput) -> Tuple[str, Optional[str]]:
    if isinstance(item, SitemapUrl):
        return item.loc, item.lastmod
    return item, None


async def reconcile_urls(
    state: StateStore,
    site_id: str,
    urls: Iterable[UrlInput],
    fetch: ContentFetch,
    *,
    dedupe: bool = False,
    cancel: Optional[asyncio.Event] = None,
) -> List[UrlEntry]:
    """Fetch, fingerprint and store every URL of ``urls`` for ``site_id``.

    Every URL is compared with the entries stored *before* the call started.
    Without ``dedupe`` a repeated URL is processed again and the later result
    overwrites the earlier one in the store; the returned list then holds one
    entry per occurrence. With ``dedupe`` only the first occurrence is kept.

    Setting ``cancel`` stops the loop before the next URL; entries already
    written stay written and are returned.
    Raises SiteNotFoundError before any fetch when ``site_id`` is unknown.
    """
    items = [_split_input(item) for item in urls]
    if dedupe:
        first_seen: Dict[str, Tuple[str, Optional[str]]] = {}
        for url, last_modified in items:
            first_seen.setdefault(url, (url, last_modified))
        if len(first_seen) < len(items):
            logger.debug("Removed %d duplicate URLs", len(items) - len(first_seen))
        items = list(first_seen.values())

    if state.get_site(site_id) is None:
        raise SiteNotFoundError(site_id)
    existing = state.get_url_entries(site_id)
    results: List[UrlEntry] = []
    start = time.monotonic()
    logger.info("Checking %d URLs for site %s", len(items), site_id)

    for url, last_modified in items:
        if cancel is not None and cancel.is_set():
            logger.info("Reconciliation cancelled after %d of %d URLs", len(results), len(items))
            break
        content = await fetch(url)
        if content is None:
            logger.debug("Content unavailable for %s", url)
        entry = reconcile_entry(url, existing.get(url), content, last_modified)
        state.put_url_entry(site_id, entry)
        results.append(entry)

    logger.info("Checked %d URLs in %.2f s", len(results), time.monotonic() - start)
    return results


__all__ = ["UrlInput", "derive_status", "reconcile_entry", "reconcile_urls"]
