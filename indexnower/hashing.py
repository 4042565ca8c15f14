# indexnower/hashing.py
"""Content fingerprints used for change detection (not for security)."""

from __future__ import annotations

import hashlib


def hash_content(content: str) -> str:
    """Hex MD5 digest of the UTF-8 encoded page content."""
    return hashlib.md5(content.encode("utf-8"), usedforsecurity=False).hexdigest()


def hash_url(url: str) -> str:
    """Same digest applied to a URL string, for a content-independent id."""
    return hash_content(url)


__all__ = ["hash_content", "hash_url"]
