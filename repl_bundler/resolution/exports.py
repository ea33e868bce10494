"""Conditional `exports` map resolution.

Follows Node's package exports algorithm for the parts a browser bundler
needs: subpath keys, `*` patterns, legacy folder mappings (`"./lib/"`),
nested condition objects and fallback arrays.
"""

from __future__ import annotations

from collections.abc import Collection
from typing import Any

DEFAULT_CONDITIONS = frozenset({"default", "import", "svelte", "browser", "production"})


def _is_subpath_map(exports: dict[str, Any]) -> bool:
    """True if the keys are subpaths ("./x"), False if they are conditions."""
    return any(key.startswith(".") for key in exports)


def _normalize(exports: Any) -> dict[str, Any]:
    # A string, an array or a bare condition object all describe ".".
    if isinstance(exports, dict) and _is_subpath_map(exports):
        return exports
    return {".": exports}


def _resolve_target(
    target: Any, conditions: Collection[str], substitution: str | None, folder: bool = False
) -> str | None:
    if target is None:
        return None

    if isinstance(target, str):
        if substitution is None:
            return target
        if folder:
            return target + substitution
        # A `*` key fills every `*` in the target; a target without one is fixed.
        return target.replace("*", substitution)

    if isinstance(target, list):
        for candidate in target:
            resolved = _resolve_target(candidate, conditions, substitution, folder)
            if resolved is not None:
                return resolved
        return None

    if isinstance(target, dict):
        # Document order decides, not the order of `conditions`.
        for condition, value in target.items():
            if condition in conditions:
                resolved = _resolve_target(value, conditions, substitution, folder)
                if resolved is not None:
                    return resolved
        return None

    return None


def _match_pattern(mapping: dict[str, Any], subpath: str) -> tuple[str, str] | None:
    """Find the best `*` or trailing-`/` key for `subpath`.

    Returns:
        (key, substitution) or None. The longest matching prefix wins.
    """
    best: tuple[str, str] | None = None
    best_prefix = -1

    for key in mapping:
        if "*" in key:
            prefix, _, suffix = key.partition("*")
            if (
                subpath.startswith(prefix)
                and subpath.endswith(suffix)
                and len(subpath) > len(prefix) + len(suffix)
                and len(prefix) > best_prefix
            ):
                best = (key, subpath[len(prefix) : len(subpath) - len(suffix)])
                best_prefix = len(prefix)
        elif key.endswith("/") and subpath.startswith(key) and len(key) > best_prefix:
            best = (key, subpath[len(key) :])
            best_prefix = len(key)

    return best


def resolve_exports(exports: Any, subpath: str = ".", conditions: Collection[str] = DEFAULT_CONDITIONS) -> str | None:
    """Resolve `subpath` ("." or "./x") against an `exports` field.

    Returns:
        The target path (e.g. "./dist/index.mjs"), or None if `subpath` is not
        exported under any of `conditions`.
    """
    if subpath in ("", "."):
        subpath = "."
    elif not subpath.startswith("./"):
        subpath = "./" + subpath.lstrip("/")

    mapping = _normalize(exports)

    if subpath in mapping:
        return _resolve_target(mapping[subpath], conditions, None)

    matched = _match_pattern(mapping, subpath)
    if matched is None:
        return None

    key, substitution = matched
    return _resolve_target(mapping[key], conditions, substitution, folder="*" not in key)
