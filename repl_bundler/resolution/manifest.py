"""Package manifest (package.json) resolution.

Resolution order (first match wins):
1. Framework field (`svelte`) for the package entry point
2. Conditional `exports` map
3. Legacy entry fields (browser, module, main), then index file probing
4. `browser` remapping object for subpaths
5. The subpath unchanged

The framework field must be checked before `exports`, and `exports` before
any legacy field, or existing packages resolve to the wrong artifact.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Collection
from typing import TYPE_CHECKING
from typing import Any
from urllib.parse import urljoin

from pydantic import BaseModel
from pydantic import ConfigDict

from ..errors import ResolutionError
from .exports import DEFAULT_CONDITIONS
from .exports import resolve_exports

if TYPE_CHECKING:
    from ..fetch_cache import FetchCache

logger = logging.getLogger(__name__)

LEGACY_FIELDS = ("browser", "module", "main")
INDEX_CANDIDATES = ("index.mjs", "index.js")

_LEADING_DOT_SLASH = re.compile(r"^\.?/")


class Manifest(BaseModel):
    """The fields of a package manifest that take part in resolution."""

    model_config = ConfigDict(extra="allow")

    name: str | None = None
    version: str | None = None
    svelte: Any = None
    exports: Any = None
    browser: Any = None
    module: Any = None
    main: Any = None

    def field(self, name: str) -> Any:
        """Value of any manifest field, declared or extra."""
        if name in type(self).model_fields:
            return getattr(self, name)
        return (self.model_extra or {}).get(name)


def _normalize_path(value: str) -> str:
    return "./" + _LEADING_DOT_SLASH.sub("", value)


class ManifestResolver:
    """Turns a manifest plus subpath into a module location.

    Locations are relative to the package base URL (e.g. "./dist/index.mjs"),
    except when index probing had to follow redirects, in which case the final
    absolute URL is returned.
    """

    def __init__(
        self,
        fetch_cache: FetchCache,
        framework_field: str = "svelte",
        conditions: Collection[str] = DEFAULT_CONDITIONS,
        index_candidates: tuple[str, ...] = INDEX_CANDIDATES,
    ):
        self._fetch_cache = fetch_cache
        self.framework_field = framework_field
        self.conditions = conditions
        self.index_candidates = index_candidates

    async def resolve_entry(self, manifest: Manifest, *, package_name: str, package_base: str, uid: int) -> str:
        """Resolve the package entry point (subpath ".")."""
        return await self.resolve(manifest, ".", package_name=package_name, package_base=package_base, uid=uid)

    async def resolve(
        self,
        manifest: Manifest,
        subpath: str,
        *,
        package_name: str,
        package_base: str,
        uid: int,
    ) -> str:
        """Resolve `subpath` ("." or "./x") within a package.

        Args:
            manifest: Parsed package manifest
            subpath: "." for the entry point, "./x" for deep imports
            package_name: Package name, for error messages
            package_base: Base URL of the package (no trailing slash), for index probing
            uid: Generation token of the request

        Raises:
            ResolutionError: No export matches, or no entry point exists
            Aborted: The request was superseded while probing
        """
        # Layer 1: framework field, a legacy override that beats `exports`
        framework_entry = manifest.field(self.framework_field)
        if subpath == "." and isinstance(framework_entry, str):
            logger.debug(f"[package:resolve] {package_name} -> {self.framework_field} field")
            return framework_entry

        # Layer 2: conditional exports
        if manifest.exports is not None:
            resolved = resolve_exports(manifest.exports, subpath, self.conditions)
            if resolved is None:
                raise ResolutionError(
                    f'no matching export path for "{subpath}" in "{package_name}/package.json"',
                    package=package_name,
                )
            logger.debug(f"[package:resolve] {package_name} {subpath} -> exports ({resolved})")
            return resolved

        # Layer 3: legacy entry fields, then index probing
        if subpath == ".":
            for field in LEGACY_FIELDS:
                value = manifest.field(field)
                if isinstance(value, str) and value:
                    logger.debug(f"[package:resolve] {package_name} -> {field} field")
                    return _normalize_path(value)

            if probed := await self._probe_index(package_base, uid):
                logger.debug(f"[package:resolve] {package_name} -> probed {probed}")
                return probed

            raise ResolutionError(
                f'no entry point found in "{package_name}/package.json"',
                package=package_name,
            )

        # Layer 4: browser remapping
        if isinstance(manifest.browser, dict):
            return self._remap_browser(manifest.browser, subpath)

        # Layer 5: unchanged
        return subpath

    def _remap_browser(self, browser: dict[str, Any], subpath: str) -> str:
        bare = _LEADING_DOT_SLASH.sub("", subpath)
        for key in (subpath, bare, f"{subpath}.js", f"{bare}.js"):
            value = browser.get(key)
            if isinstance(value, str):
                return _normalize_path(value)
        return subpath

    async def _probe_index(self, package_base: str, uid: int) -> str | None:
        # Candidates are tried lazily, in order; a failed fetch just moves on.
        for candidate in self.index_candidates:
            url = urljoin(f"{package_base}/", candidate)
            if resolved := await self._fetch_cache.try_follow_redirects(url, uid):
                return resolved
        return None

    def __repr__(self) -> str:
        return f"ManifestResolver(framework_field={self.framework_field!r})"
