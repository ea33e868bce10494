"""Bare package specifier resolution against the package registry."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING
from urllib.parse import urljoin

from pydantic import ValidationError

from ..errors import BundlerError
from ..errors import ResolutionError
from .manifest import Manifest
from .manifest import ManifestResolver

if TYPE_CHECKING:
    from ..fetch_cache import FetchCache

logger = logging.getLogger(__name__)

MANIFEST_SUFFIX = "/package.json"


class PackageResolver:
    """Resolves `name` + subpath to an absolute URL under the registry base."""

    def __init__(self, fetch_cache: FetchCache, manifest_resolver: ManifestResolver, packages_url: str):
        self._fetch_cache = fetch_cache
        self._manifests = manifest_resolver
        self.packages_url = packages_url.rstrip("/")

    def manifest_url(self, package_name: str) -> str:
        return f"{self.packages_url}/{package_name}{MANIFEST_SUFFIX}"

    async def fetch_manifest(self, package_name: str, uid: int) -> tuple[Manifest, str]:
        """Fetch and parse a package manifest.

        The registry usually redirects an unversioned name to a pinned
        version; the returned base URL is the pinned one.

        Returns:
            Tuple of (Manifest, package base URL without trailing slash)

        Raises:
            NetworkError: The manifest could not be fetched
            ResolutionError: The manifest is not a JSON object
        """
        manifest_url = await self._fetch_cache.follow_redirects(self.manifest_url(package_name), uid)
        body = (await self._fetch_cache.get_or_fetch(manifest_url, uid)).body

        try:
            manifest = Manifest.model_validate(json.loads(body))
        except (json.JSONDecodeError, ValidationError) as e:
            raise ResolutionError(f'malformed manifest "{package_name}/package.json": {e}', package=package_name) from e

        package_base = manifest_url.removesuffix(MANIFEST_SUFFIX)
        return manifest, package_base

    async def resolve(self, specifier: str, package_name: str, subpath: str, uid: int) -> str:
        """Resolve a bare specifier already split into name and subpath.

        Errors carry the offending specifier and package name.
        """
        try:
            manifest, package_base = await self.fetch_manifest(package_name, uid)
            resolved = await self._manifests.resolve(
                manifest, subpath, package_name=package_name, package_base=package_base, uid=uid
            )
        except ResolutionError as e:
            raise ResolutionError(
                f'Cannot import "{specifier}": {e.message}.', specifier=specifier, package=package_name
            ) from e
        except BundlerError as e:
            raise e.attach(specifier=specifier, package=package_name)

        url = urljoin(f"{package_base}/", resolved)
        logger.debug(f"[package:resolve] {specifier} -> {url}")
        return url
