"""Contracts for the external collaborators: bundling engine and compiler.

Neither is implemented here. The bundling engine links modules it obtains by
calling the plugin hooks; the compiler turns a component into a JS module.
"""

from __future__ import annotations

from collections.abc import Awaitable
from collections.abc import Callable
from dataclasses import dataclass
from dataclasses import field
from typing import Any
from typing import Protocol
from typing import runtime_checkable


@dataclass
class TransformResult:
    """Code produced by a transform hook or by the compiler."""

    code: str
    map: Any = None


@dataclass
class CompilerWarning:
    message: str
    filename: str | None = None
    start: dict[str, int] | None = None
    end: dict[str, int] | None = None


@dataclass
class CompileOptions:
    generate: str  # "dom" or "ssr"
    filename: str
    format: str = "esm"
    dev: bool = True
    loop_guard_timeout: int | None = None


@dataclass
class CompileResult:
    js: TransformResult
    css: TransformResult | None = None
    warnings: list[CompilerWarning] = field(default_factory=list)


@runtime_checkable
class Compiler(Protocol):
    """Component compiler.

    `compile` may return the result directly or an awaitable of it. Failures
    are raised as-is (ideally `CompileError`, which carries a source span).
    """

    VERSION: str

    def compile(self, source: str, options: CompileOptions) -> CompileResult | Awaitable[CompileResult]: ...


@dataclass
class EngineWarning:
    message: str
    code: str | None = None


@dataclass
class InputOptions:
    input: str
    plugins: list[Any]
    inline_dynamic_imports: bool = True
    on_warn: Callable[[EngineWarning], None] | None = None


@dataclass
class OutputOptions:
    format: str = "iife"
    name: str = "SvelteComponent"
    exports: str = "named"
    sourcemap: bool = True


@dataclass
class OutputChunk:
    code: str
    map: dict[str, Any] | str | None = None


class Bundle(Protocol):
    async def generate(self, options: OutputOptions) -> OutputChunk: ...


@runtime_checkable
class BundlingEngine(Protocol):
    """Module linker driven by plugin hooks.

    For every module the engine calls, on each plugin in order, the async
    hooks `resolve_id(importee, importer)` and `load(module_id)` until one
    returns a non-None value, then `transform(code, module_id)` on every
    plugin, feeding each non-None `TransformResult` to the next. Exceptions
    raised by hooks must propagate out of `rollup`.
    """

    async def rollup(self, options: InputOptions) -> Bundle: ...
