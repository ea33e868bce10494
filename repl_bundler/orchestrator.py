"""Runs the bundling passes for one request and packages the result."""

from __future__ import annotations

import json
import logging
import traceback
from collections.abc import Mapping
from dataclasses import dataclass
from dataclasses import field

from .bridge import ReplPlugin
from .compile_cache import CompileCacheStore
from .compile_cache import CompileEntries
from .errors import Aborted
from .errors import BundlerError
from .events import EventBus
from .fetch_cache import FetchCache
from .generation import GenerationGuard
from .interfaces import Bundle
from .interfaces import BundlingEngine
from .interfaces import Compiler
from .interfaces import EngineWarning
from .interfaces import InputOptions
from .interfaces import OutputOptions
from .models import BundleErrorInfo
from .models import BundleRequest
from .models import BundleResult
from .models import BundlerWarning
from .models import CompileWarning
from .models import SourceDocument
from .models import Target
from .models import TargetOutput
from .plugins import CommonJSPlugin
from .plugins import GlslPlugin
from .plugins import JsonPlugin
from .plugins import ReplacePlugin
from .resolution.packages import PackageResolver
from .resolution.versions import FeatureGates
from .settings import BundlerSettings

logger = logging.getLogger(__name__)

BUILD_CONSTANTS = {"process.env.NODE_ENV": json.dumps("production")}


@dataclass
class PassResult:
    """Outcome of one bundling pass (one target)."""

    target: Target
    bundle: Bundle | None = None
    error: BaseException | None = None
    imports: list[str] = field(default_factory=list)
    cache: CompileEntries = field(default_factory=dict)
    warnings: list[CompileWarning] = field(default_factory=list)
    bundler_warnings: list[BundlerWarning] = field(default_factory=list)


def error_info(error: BaseException) -> BundleErrorInfo:
    """Structured form of `error`, including any span or context it carries."""
    if isinstance(error, BundlerError):
        details = error.details()
    else:
        # Foreign errors (e.g. from the compiler) may carry span attributes.
        details = {
            key: getattr(error, key)
            for key in ("filename", "start", "end", "frame", "code")
            if getattr(error, key, None) is not None
        }
    return BundleErrorInfo(
        message=str(error) or type(error).__name__,
        stack="".join(traceback.format_exception(error)),
        details=details,
    )


class Bundler:
    """Dual-target orchestrator.

    Always bundles the interactive (`dom`) target; bundles the server
    (`ssr`) target too when `settings.ssr_enabled` is set. The compile cache
    of each target is only replaced after that target's pass succeeded.
    """

    def __init__(
        self,
        *,
        settings: BundlerSettings,
        engine: BundlingEngine,
        compiler: Compiler,
        fetch_cache: FetchCache,
        packages: PackageResolver,
        guard: GenerationGuard,
        compile_caches: CompileCacheStore | None = None,
        events: EventBus | None = None,
    ):
        self.settings = settings
        self._engine = engine
        self._compiler = compiler
        self.fetch_cache = fetch_cache
        self._packages = packages
        self._guard = guard
        self.compile_caches = compile_caches or CompileCacheStore()
        self._events = events or EventBus()

    async def bundle(self, request: BundleRequest) -> BundleResult:
        """Bundle `request`.

        Returns:
            BundleResult with outputs, or with `error` set if any pass failed

        Raises:
            Aborted: The request was superseded; nothing must be reported
        """
        uid = request.uid
        logger.info(f"Running svelte compiler version {self._compiler.VERSION}")

        lookup = {document.path: document for document in request.components}
        dom: PassResult | None = None

        try:
            gates = FeatureGates.from_version(self._compiler.VERSION)

            dom = await self._get_bundle(uid, Target.DOM, lookup, gates)
            if dom.error is not None:
                raise dom.error
            self.compile_caches.replace(Target.DOM, dom.cache)
            dom_output = await self._generate(uid, dom)

            ssr_output = None
            if self.settings.ssr_enabled:
                ssr = await self._get_bundle(uid, Target.SSR, lookup, gates)
                if ssr.error is not None:
                    raise ssr.error
                self.compile_caches.replace(Target.SSR, ssr.cache)
                ssr_output = await self._generate(uid, ssr)

            return BundleResult(
                uid=uid,
                dom=dom_output,
                ssr=ssr_output,
                imports=dom.imports,
                warnings=dom.warnings,
                bundler_warnings=dom.bundler_warnings,
            )
        except Aborted:
            raise
        except Exception as e:
            logger.exception(f"Bundle {uid} failed")
            return BundleResult(
                uid=uid,
                imports=dom.imports if dom else None,
                warnings=dom.warnings if dom else [],
                bundler_warnings=dom.bundler_warnings if dom else [],
                error=error_info(e),
            )

    async def _get_bundle(
        self, uid: int, target: Target, lookup: Mapping[str, SourceDocument], gates: FeatureGates
    ) -> PassResult:
        plugin = ReplPlugin(
            uid=uid,
            target=target,
            lookup=lookup,
            guard=self._guard,
            fetch_cache=self.fetch_cache,
            packages=self._packages,
            compiler=self._compiler,
            gates=gates,
            runtime_url=self.settings.svelte_url,
            previous_cache=self.compile_caches.entries(target),
            notify=lambda message: self._events.status(uid, message),
            loop_guard_timeout=self.settings.loop_guard_timeout,
        )
        result = PassResult(
            target=target,
            imports=plugin.imports,
            cache=plugin.new_cache,
            warnings=plugin.warnings,
        )

        def on_warn(warning: EngineWarning) -> None:
            result.bundler_warnings.append(BundlerWarning(message=warning.message))

        options = InputOptions(
            input=self.settings.entry,
            plugins=[plugin, CommonJSPlugin(), JsonPlugin(), GlslPlugin(), ReplacePlugin(BUILD_CONSTANTS)],
            inline_dynamic_imports=True,
            on_warn=on_warn,
        )

        try:
            result.bundle = await self._engine.rollup(options)
            self._guard.check(uid)
        except Aborted:
            raise
        except Exception as e:
            logger.debug(f"[bundle:{uid}] {target.value} pass failed: {e}")
            result.error = e

        return result

    async def _generate(self, uid: int, result: PassResult) -> TargetOutput:
        chunk = await result.bundle.generate(OutputOptions())
        self._guard.check(uid)
        return TargetOutput(code=chunk.code, map=chunk.map)
