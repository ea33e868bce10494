"""Process-wide compile cache, one namespace per target."""

from __future__ import annotations

from dataclasses import dataclass

from .interfaces import CompileResult
from .models import Target


@dataclass
class CompileCacheEntry:
    code: str  # source the result was compiled from
    result: CompileResult


CompileEntries = dict[str, CompileCacheEntry]


class CompileCacheStore:
    """Holds the compile results of the last successful pass per target.

    A pass reads the previous entries and builds a fresh mapping of the
    modules it actually compiled; only a successful pass replaces the stored
    mapping. Entries for modules that changed or disappeared therefore drop
    out one by one, and nothing is ever cleared wholesale.
    """

    def __init__(self) -> None:
        self._namespaces: dict[Target, CompileEntries] = {target: {} for target in Target}

    def entries(self, target: Target) -> CompileEntries:
        return self._namespaces[target]

    def replace(self, target: Target, entries: CompileEntries) -> None:
        self._namespaces[target] = entries

    def __repr__(self) -> str:
        sizes = ", ".join(f"{target.value}={len(entries)}" for target, entries in self._namespaces.items())
        return f"CompileCacheStore({sizes})"
