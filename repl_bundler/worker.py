"""Dispatch entry point: accepts bundle requests, latest request wins."""

from __future__ import annotations

import asyncio
import logging

import httpx

from .compile_cache import CompileCacheStore
from .errors import Aborted
from .events import EventBus
from .fetch_cache import FetchCache
from .generation import GenerationGuard
from .interfaces import BundlingEngine
from .interfaces import Compiler
from .models import BundleRequest
from .models import BundleResult
from .orchestrator import Bundler
from .resolution.manifest import ManifestResolver
from .resolution.packages import PackageResolver
from .settings import BundlerSettings

logger = logging.getLogger(__name__)


class BundleWorker:
    """Serves bundle requests.

    Submitting a request makes it current immediately; everything still in
    flight for older requests aborts at its next check and never posts a
    result. Results are published on the event bus.
    """

    def __init__(self, bundler: Bundler, guard: GenerationGuard, events: EventBus):
        self.bundler = bundler
        self.guard = guard
        self.events = events
        self._tasks: set[asyncio.Task] = set()

    def submit(self, request: BundleRequest) -> asyncio.Task | None:
        """Start bundling `request` in the background.

        Returns:
            The task running the request, or None for an empty request
        """
        if not request.components:
            return None

        self.guard.begin(request.uid)

        task = asyncio.ensure_future(self._run(request))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(self, request: BundleRequest) -> BundleResult | None:
        # Yield once so a burst of submissions only bundles the last one.
        await asyncio.sleep(0)
        if not self.guard.is_current(request.uid):
            return None

        try:
            result = await self.bundler.bundle(request)
        except Aborted:
            logger.debug(f"[bundle:{request.uid}] aborted")
            return None

        if not self.guard.is_current(request.uid):
            logger.debug(f"[bundle:{request.uid}] finished after being superseded, dropping result")
            return None

        self.events.publish(result)
        return result

    async def drain(self) -> None:
        """Wait for all submitted requests to settle."""
        if self._tasks:
            await asyncio.gather(*self._tasks)


def create_worker(
    settings: BundlerSettings,
    engine: BundlingEngine,
    compiler: Compiler,
    client: httpx.AsyncClient | None = None,
    events: EventBus | None = None,
) -> BundleWorker:
    """Wire a worker with fresh caches and guard.

    Args:
        settings: Base URLs and tunables
        engine: Bundling engine consuming the plugin hooks
        compiler: Component compiler
        client: HTTP client for the fetch cache. If None, one is created.
        events: Bus for status events and results. If None, one is created.
    """
    events = events or EventBus()
    guard = GenerationGuard()
    fetch_cache = FetchCache(guard, events=events, client=client, debounce=settings.fetch_debounce)
    packages = PackageResolver(fetch_cache, ManifestResolver(fetch_cache), settings.packages_url)
    bundler = Bundler(
        settings=settings,
        engine=engine,
        compiler=compiler,
        fetch_cache=fetch_cache,
        packages=packages,
        guard=guard,
        compile_caches=CompileCacheStore(),
        events=events,
    )
    return BundleWorker(bundler, guard, events)
