# File: indexnower/utils.py
"""indexnower.utils: проверка URL и разбор вставленного вручную списка URL."""

from __future__ import annotations

from typing import List, Sequence
from urllib.parse import urlparse

from indexnower.logger import logger

__all__: Sequence[str] = (
    "is_valid_url",
    "extract_urls_from_text",
)


def is_valid_url(url: str) -> bool:
    """Проверяет, что строка - абсолютный http(s) URL с хостом."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def extract_urls_from_text(text: str) -> List[str]:
    """Один URL на строку: пробелы обрезаются, пустые и не-http(s) строки отбрасываются."""
    urls = []
    for line in text.splitlines():
        candidate = line.strip()
        if candidate and is_valid_url(candidate):
            urls.append(candidate)
    logger.debug("Extracted %d URLs from text", len(urls))
    return urls
