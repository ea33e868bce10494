"""Resolve/load/transform hooks the bundling engine calls for one pass.

A `ReplPlugin` is created per request and per target. Every hook checks the
generation guard first, so no network request, cache mutation or compiler
call happens on behalf of a superseded request.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from collections.abc import Mapping
from urllib.parse import urljoin

from .compile_cache import CompileCacheEntry
from .compile_cache import CompileEntries
from .errors import ResolutionError
from .fetch_cache import FetchCache
from .generation import GenerationGuard
from .interfaces import CompileOptions
from .interfaces import CompileResult
from .interfaces import Compiler
from .interfaces import TransformResult
from .models import CompileWarning
from .models import SourceDocument
from .models import SourceKind
from .models import Target
from .resolution.packages import PackageResolver
from .resolution.specifiers import SpecifierKind
from .resolution.specifiers import classify
from .resolution.specifiers import runtime_internal_url
from .resolution.specifiers import runtime_module_url
from .resolution.versions import FeatureGates

logger = logging.getLogger(__name__)

COMPONENT_SUFFIX = f".{SourceKind.SVELTE.value}"


class ReplPlugin:
    """Bridge between the bundling engine and the resolver, caches and compiler.

    After the pass, `imports` holds the packages imported directly by the
    request's documents, `warnings` the compiler warnings, and `new_cache`
    the compile results to keep for the next request.
    """

    name = "repl"

    def __init__(
        self,
        *,
        uid: int,
        target: Target,
        lookup: Mapping[str, SourceDocument],
        guard: GenerationGuard,
        fetch_cache: FetchCache,
        packages: PackageResolver,
        compiler: Compiler,
        gates: FeatureGates,
        runtime_url: str,
        previous_cache: CompileEntries,
        notify: Callable[[str], None],
        loop_guard_timeout: int = 100,
    ):
        self.uid = uid
        self.target = target
        self.lookup = lookup
        self._guard = guard
        self._fetch_cache = fetch_cache
        self._packages = packages
        self._compiler = compiler
        self.gates = gates
        self.runtime_url = runtime_url.rstrip("/")
        self._previous_cache = previous_cache
        self._notify = notify
        self.loop_guard_timeout = loop_guard_timeout

        self.imports: list[str] = []
        self.warnings: list[CompileWarning] = []
        self.new_cache: CompileEntries = {}

    async def resolve_id(self, importee: str, importer: str | None = None) -> str:
        self._guard.check(self.uid)

        specifier = classify(importee, importer, self.lookup, self.runtime_url)

        if specifier.kind is SpecifierKind.RUNTIME:
            return runtime_module_url(self.runtime_url, specifier.value, self.gates)

        if specifier.kind is SpecifierKind.RUNTIME_INTERNAL:
            return runtime_internal_url(specifier.value, importer, self.gates)

        if specifier.kind in (SpecifierKind.LOCAL, SpecifierKind.URL):
            return specifier.value

        if specifier.kind is SpecifierKind.RELATIVE:
            return await self._resolve_relative(specifier.value, importer)

        return await self._resolve_package(specifier.value, specifier.package_name, specifier.subpath, importer)

    async def _resolve_relative(self, importee: str, importer: str | None) -> str:
        if not importer or not importer.startswith(("http:", "https:")):
            raise ResolutionError(f'Cannot resolve "{importee}" from "{importer}"', specifier=importee)

        url = urljoin(importer, importee)
        if url not in self._fetch_cache:
            self._notify(f"resolving {url}")
        return await self._fetch_cache.follow_redirects(url, self.uid)

    async def _resolve_package(self, importee: str, package_name: str, subpath: str, importer: str | None) -> str:
        if self._packages.manifest_url(package_name) not in self._fetch_cache:
            self._notify(f"resolving {importee}")

        if importer in self.lookup and package_name not in self.imports:
            self.imports.append(package_name)

        return await self._packages.resolve(importee, package_name, subpath, self.uid)

    async def load(self, module_id: str) -> str:
        self._guard.check(self.uid)

        if module_id in self.lookup:
            return self.lookup[module_id].source

        return (await self._fetch_cache.get_or_fetch(module_id, self.uid)).body

    async def transform(self, code: str, module_id: str) -> TransformResult | None:
        self._guard.check(self.uid)

        if not module_id.endswith(COMPONENT_SUFFIX):
            return None

        cached = self._previous_cache.get(module_id)
        if cached is not None and cached.code == code:
            logger.debug(f"[compile:{self.target.value}] cache hit {module_id}")
            result = cached.result
        else:
            result = await self._compile(code, module_id)

        self.new_cache[module_id] = CompileCacheEntry(code=code, result=result)

        for warning in result.warnings:
            self.warnings.append(
                CompileWarning(
                    message=warning.message,
                    filename=warning.filename,
                    start=warning.start,
                    end=warning.end,
                )
            )

        return result.js

    async def _compile(self, code: str, module_id: str) -> CompileResult:
        self._notify(f"bundling {module_id}")

        name = module_id.split("/")[-1].split(".")[0]
        options = CompileOptions(
            generate=self.target.value,
            filename=f"{name}{COMPONENT_SUFFIX}",
            format="esm",
            dev=True,
            loop_guard_timeout=self.loop_guard_timeout if self.gates.loop_guard_timeout else None,
        )

        result = self._compiler.compile(code, options)
        if inspect.isawaitable(result):
            result = await result
            self._guard.check(self.uid)
        return result

    def __repr__(self) -> str:
        return f"ReplPlugin(uid={self.uid}, target={self.target.value})"
