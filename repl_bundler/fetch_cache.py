"""Single-flight fetch cache for registry and runtime module URLs.

At most one network request is in flight per URL. Successful responses are
kept for the lifetime of the process (registry content at a given URL is
treated as immutable); failed requests are evicted so a later request can
retry.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from functools import partial

import httpx

from .errors import NetworkError
from .events import EventBus
from .generation import GenerationGuard

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE = 0.2


@dataclass(frozen=True)
class FetchResult:
    """Body of a fetched URL."""

    url: str  # final URL after redirects
    body: str


class FetchCache:
    """Coalesces concurrent fetches of the same URL into one request.

    Entries are keyed by the URL that was requested, not by the final URL a
    redirect chain ended at, so resolving the same specifier twice never
    repeats the redirect walk.
    """

    def __init__(
        self,
        guard: GenerationGuard,
        events: EventBus | None = None,
        client: httpx.AsyncClient | None = None,
        debounce: float = DEFAULT_DEBOUNCE,
    ):
        """Initialize fetch cache.

        Args:
            guard: Generation guard consulted before issuing and after resuming
            events: Bus receiving "fetching <url>" status events on cache misses
            client: HTTP client. If None, one that follows redirects is created.
            debounce: Delay in seconds before a fresh fetch is issued
        """
        self._guard = guard
        self._events = events
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(follow_redirects=True)
        self.debounce = debounce
        self._entries: dict[str, asyncio.Task[FetchResult]] = {}

    def __contains__(self, url: object) -> bool:
        return url in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    async def get_or_fetch(self, url: str, uid: int) -> FetchResult:
        """Return the cached response for `url`, fetching it on a miss.

        Raises:
            Aborted: `uid` was superseded before the fetch was issued or while waiting
            NetworkError: Non-success response or transport failure
        """
        entry = self._entries.get(url)
        if entry is None:
            await asyncio.sleep(self.debounce)
            self._guard.check(uid)

            # Another caller may have issued the request while we slept.
            entry = self._entries.get(url)
            if entry is None:
                entry = self._issue(url, uid)
        else:
            logger.debug(f"[fetch] cache hit {url}")

        result = await asyncio.shield(entry)
        self._guard.check(uid)
        return result

    async def follow_redirects(self, url: str, uid: int) -> str:
        """Return the final URL `url` redirects to."""
        return (await self.get_or_fetch(url, uid)).url

    async def try_follow_redirects(self, url: str, uid: int) -> str | None:
        """Like `follow_redirects`, but returns None when the fetch fails.

        `Aborted` still propagates.
        """
        try:
            return await self.follow_redirects(url, uid)
        except NetworkError as e:
            logger.debug(f"[fetch] probe failed for {url}: {e}")
            return None

    def _issue(self, url: str, uid: int) -> asyncio.Task[FetchResult]:
        if self._events is not None:
            self._events.status(uid, f"fetching {url}")
        logger.debug(f"[fetch] cache miss {url}")

        task = asyncio.ensure_future(self._fetch(url))
        self._entries[url] = task
        task.add_done_callback(partial(self._evict_failed, url))
        return task

    async def _fetch(self, url: str) -> FetchResult:
        try:
            response = await self._client.get(url)
        except httpx.HTTPError as e:
            raise NetworkError(str(e) or type(e).__name__, url=url) from e

        if not response.is_success:
            raise NetworkError(response.text, url=url, status_code=response.status_code)

        return FetchResult(url=str(response.url), body=response.text)

    def _evict_failed(self, url: str, task: asyncio.Task[FetchResult]) -> None:
        if not task.cancelled() and task.exception() is None:
            return
        if self._entries.get(url) is task:
            del self._entries[url]
            logger.debug(f"[fetch] evicted failed entry {url}")

    async def aclose(self) -> None:
        """Close the HTTP client if this cache created it."""
        if self._owns_client:
            await self._client.aclose()

    def __repr__(self) -> str:
        return f"FetchCache(entries={len(self._entries)}, debounce={self.debounce})"
