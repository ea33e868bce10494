"""Shared fixtures: a fake registry, a fake bundling engine and a fake compiler."""

import asyncio
import json
import re

import httpx
import pytest

from repl_bundler.events import EventBus
from repl_bundler.events import StatusEvent
from repl_bundler.fetch_cache import FetchCache
from repl_bundler.generation import GenerationGuard
from repl_bundler.interfaces import CompileResult
from repl_bundler.interfaces import CompilerWarning
from repl_bundler.interfaces import EngineWarning
from repl_bundler.interfaces import OutputChunk
from repl_bundler.interfaces import TransformResult
from repl_bundler.settings import BundlerSettings

REGISTRY = "https://registry.test"
RUNTIME = "https://registry.test/svelte@3.59.2"

IMPORT_PATTERN = re.compile(r"""\bimport\s+(?:[\w*{},\s]+?\s+from\s+)?["']([^"']+)["']""")
SCRIPT_PATTERN = re.compile(r"<script[^>]*>(.*?)</script>", re.DOTALL)


class FakeRegistry:
    """In-memory HTTP registry served through httpx.MockTransport.

    Routes map a URL to (status, body) or to a redirect target given as
    ("redirect", location). Every request is recorded in `requests`.
    """

    def __init__(self) -> None:
        self.routes: dict[str, tuple] = {}
        self.requests: list[str] = []
        self.gate: asyncio.Event | None = None

    def add(self, url: str, body: str | dict, status: int = 200) -> None:
        if isinstance(body, dict):
            body = json.dumps(body)
        self.routes[url] = (status, body)

    def redirect(self, url: str, location: str) -> None:
        self.routes[url] = ("redirect", location)

    def package(self, name: str, manifest: dict, files: dict[str, str] | None = None, version: str = "1.0.0") -> str:
        """Publish a package; `{REGISTRY}/{name}/...` redirects to `{name}@{version}/...`."""
        base = f"{REGISTRY}/{name}@{version}"
        self.redirect(f"{REGISTRY}/{name}/package.json", f"{base}/package.json")
        self.add(f"{base}/package.json", manifest)
        for path, body in (files or {}).items():
            self.add(f"{base}/{path}", body)
        return base

    def count(self, url: str) -> int:
        return self.requests.count(url)

    async def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append(url)
        if self.gate is not None:
            await self.gate.wait()

        route = self.routes.get(url)
        if route is None:
            return httpx.Response(404, text=f"Cannot find {url}")
        if route[0] == "redirect":
            return httpx.Response(302, headers={"location": route[1]})
        status, body = route
        return httpx.Response(status, text=body)


class FakeCompiler:
    """Compiles a component to its <script> contents plus a default export.

    `gate`, when set, blocks the next `blocked_calls` compilations until the
    event is set, which makes compile() return a coroutine.
    """

    def __init__(self, version: str = "3.59.2", warnings: list[CompilerWarning] | None = None):
        self.VERSION = version
        self.calls: list[tuple[str, object]] = []
        self.warnings = warnings or []
        self.gate: asyncio.Event | None = None
        self.blocked_calls = 0
        self.started = asyncio.Event()

    def _compile(self, source: str, options) -> CompileResult:
        match = SCRIPT_PATTERN.search(source)
        script = match.group(1).strip() if match else ""
        code = f"{script}\nexport default function Component() {{}}\n"
        return CompileResult(js=TransformResult(code=code, map={"version": 3}), warnings=list(self.warnings))

    def compile(self, source: str, options):
        self.calls.append((source, options))
        if self.gate is not None and self.blocked_calls > 0:
            self.blocked_calls -= 1
            return self._compile_later(source, options)
        return self._compile(source, options)

    async def _compile_later(self, source: str, options) -> CompileResult:
        self.started.set()
        await self.gate.wait()
        return self._compile(source, options)


class FakeBundle:
    def __init__(self, modules: dict[str, str]):
        self.modules = modules

    async def generate(self, options) -> OutputChunk:
        body = "\n".join(f"// {module_id}\n{code}" for module_id, code in self.modules.items())
        code = f"var {options.name} = (function () {{\n{body}\n}})();\n"
        return OutputChunk(code=code, map={"version": 3, "sources": list(self.modules)})


class FakeEngine:
    """Breadth-first module walker that drives plugin hooks like rollup does."""

    def __init__(self, warnings: list[str] | None = None):
        self.warnings = warnings or []
        self.options = None

    async def rollup(self, options) -> FakeBundle:
        self.options = options
        for message in self.warnings:
            options.on_warn(EngineWarning(message=message))

        modules: dict[str, str] = {}
        queue: list[tuple[str, str | None]] = [(options.input, None)]
        while queue:
            importee, importer = queue.pop(0)
            module_id = await self._first(options.plugins, "resolve_id", importee, importer)
            if module_id is None:
                raise RuntimeError(f"Could not resolve '{importee}' from '{importer}'")
            if module_id in modules:
                continue

            code = await self._first(options.plugins, "load", module_id)
            for plugin in options.plugins:
                hook = getattr(plugin, "transform", None)
                if hook is None:
                    continue
                result = await hook(code, module_id)
                if result is not None:
                    code = result.code

            modules[module_id] = code
            queue.extend((dependency, module_id) for dependency in IMPORT_PATTERN.findall(code))

        return FakeBundle(modules)

    async def _first(self, plugins, hook_name: str, *args):
        for plugin in plugins:
            hook = getattr(plugin, hook_name, None)
            if hook is None:
                continue
            result = await hook(*args)
            if result is not None:
                return result
        return None


@pytest.fixture
def registry() -> FakeRegistry:
    return FakeRegistry()


@pytest.fixture
async def http_client(registry):
    async with httpx.AsyncClient(transport=httpx.MockTransport(registry.handler), follow_redirects=True) as client:
        yield client


@pytest.fixture
def guard() -> GenerationGuard:
    guard = GenerationGuard()
    guard.begin(1)
    return guard


@pytest.fixture
def events() -> EventBus:
    return EventBus()


@pytest.fixture
def statuses(events) -> list[str]:
    messages: list[str] = []

    def record(event):
        if isinstance(event, StatusEvent):
            messages.append(event.message)

    events.subscribe(record)
    return messages


@pytest.fixture
def fetch_cache(guard, events, http_client) -> FetchCache:
    return FetchCache(guard, events=events, client=http_client, debounce=0)


@pytest.fixture
def settings() -> BundlerSettings:
    return BundlerSettings(packages_url=REGISTRY, svelte_url=RUNTIME, fetch_debounce=0)


@pytest.fixture
def compiler() -> FakeCompiler:
    return FakeCompiler()


@pytest.fixture
def engine() -> FakeEngine:
    return FakeEngine()
