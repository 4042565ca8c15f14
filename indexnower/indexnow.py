# indexnower/indexnow.py
"""
Submission of URLs to the IndexNow API.

:func:`submit_urls` splits the list into chunks of at most ``batch_size``
URLs and sends them strictly one after another. The first failed chunk
stops the run; the result then counts only the chunks acknowledged before
it. Nothing is retried.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Iterator, List, Optional, Sequence, Tuple

from aiohttp import ClientError, ClientSession, ClientTimeout

from indexnower.config import DEFAULT_ENDPOINT, MAX_BATCH_SIZE
from indexnower.logger import get_logger
from indexnower.models import SiteSettings

logger = get_logger("indexnow")

#: statuses with which IndexNow acknowledges a submission
SUCCESS_STATUSES: Tuple[int, ...] = (200, 202)

#: sends one payload, returns ``(status, body_text)``; raises on transport failure
SubmitTransport = Callable[[Dict[str, Any]], Awaitable[Tuple[int, str]]]


@dataclass(slots=True)
class SubmitResult:
    """Outcome of a submission run."""

    success: bool
    message: str
    submitted_count: int = 0
    # URLs of the chunks the remote acknowledged, in order
    submitted_urls: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "message": self.message,
            "submittedCount": self.submitted_count,
        }


def chunked(urls: Sequence[str], size: int) -> Iterator[List[str]]:
    """Consecutive slices of ``urls`` with at most ``size`` items each."""
    if size < 1:
        raise ValueError("size must be >= 1")
    for i in range(0, len(urls), size):
        yield list(urls[i : i + size])


def build_payload(urls: List[str], settings: SiteSettings) -> Dict[str, Any]:
    return {
        "host": settings.host,
        "key": settings.api_key,
        "keyLocation": settings.resolved_key_location(),
        "urlList": urls,
    }


class IndexNowClient:
    """Thin aiohttp client for the IndexNow endpoint (usable as a SubmitTransport)."""

    def __init__(
        self,
        session: Optional[ClientSession] = None,
        *,
        endpoint: str = DEFAULT_ENDPOINT,
        timeout: float = 30.0,
    ) -> None:
        self.session = session
        self.endpoint = endpoint
        self.timeout = timeout
        self._owns_session = session is None

    async def __aenter__(self) -> IndexNowClient:
        if self.session is None:
            self.session = ClientSession(timeout=ClientTimeout(total=self.timeout))
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._owns_session and self.session and not self.session.closed:
            await self.session.close()

    async def post(self, payload: Dict[str, Any]) -> Tuple[int, str]:
        if self.session is None:
            raise RuntimeError("Session not initialized")
        async with self.session.post(
            self.endpoint,
            json=payload,
            headers={"Content-Type": "application/json; charset=utf-8"},
        ) as resp:
            return resp.status, await resp.text()

    __call__ = post


async def submit_urls(
    urls: Sequence[str],
    settings: SiteSettings,
    transport: SubmitTransport,
    *,
    batch_size: int = MAX_BATCH_SIZE,
) -> SubmitResult:
    """Submit ``urls`` chunk by chunk; never raises for remote or network failures."""
    if not settings.api_key:
        return SubmitResult(False, "API key is required")
    if not settings.host:
        return SubmitResult(False, "Host is required")
    if not urls:
        return SubmitResult(False, "No URLs to submit")

    batch_size = min(batch_size, MAX_BATCH_SIZE)
    submitted: List[str] = []

    for number, chunk in enumerate(chunked(urls, batch_size), start=1):
        logger.info("Submitting chunk %d (%d URLs) for %s", number, len(chunk), settings.host)
        try:
            status, text = await transport(build_payload(chunk, settings))
        except (ClientError, asyncio.TimeoutError, OSError) as exc:
            logger.warning("Network error on chunk %d: %s", number, exc)
            return SubmitResult(
                False,
                f"Network error: {exc or type(exc).__name__}",
                len(submitted),
                submitted,
            )

        if status not in SUCCESS_STATUSES:
            logger.warning("IndexNow rejected chunk %d: HTTP %s", number, status)
            return SubmitResult(
                False,
                f"IndexNow API error: {status} - {text}",
                len(submitted),
                submitted,
            )
        submitted.extend(chunk)

    logger.info("Submitted %d URLs", len(submitted))
    return SubmitResult(True, f"Successfully submitted {len(submitted)} URLs", len(submitted), submitted)


__all__ = [
    "SUCCESS_STATUSES",
    "SubmitTransport",
    "SubmitResult",
    "IndexNowClient",
    "build_payload",
    "chunked",
    "submit_urls",
]
