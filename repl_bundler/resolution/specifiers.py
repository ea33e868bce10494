"""Import specifier classification.

Every specifier the bundling engine asks about falls into exactly one
`SpecifierKind`, each of which has its own resolution strategy in the bridge.
"""

from __future__ import annotations

import re
from collections.abc import Container
from dataclasses import dataclass
from enum import Enum
from urllib.parse import urljoin

from ..errors import UnknownImportError
from .versions import FeatureGates

RUNTIME_PACKAGE = "svelte"

PACKAGE_PATTERN = re.compile(r"^((?:@[^/]+/)?[^/]+)(/.+)?$")

# Extensions tried, in order, when a local import omits one.
LOCAL_SUFFIXES = (".js", ".json")


class SpecifierKind(Enum):
    RUNTIME = "runtime"  # `svelte`, `svelte/store`
    RUNTIME_INTERNAL = "runtime-internal"  # imported by a runtime module
    LOCAL = "local"  # one of the request's documents
    URL = "url"  # absolute http(s) URL
    RELATIVE = "relative"  # relative to a fetched module's URL
    PACKAGE = "package"  # bare package specifier


@dataclass(frozen=True)
class Specifier:
    """A classified import specifier.

    `value` is the specifier to resolve, already normalized for its kind: the
    matching lookup key for LOCAL, the trailing-slash-stripped specifier
    otherwise. `package_name` and `subpath` are set for PACKAGE only.
    """

    kind: SpecifierKind
    value: str
    package_name: str | None = None
    subpath: str | None = None


def parse_package_specifier(specifier: str) -> tuple[str, str]:
    """Split a bare specifier into package name and subpath.

    >>> parse_package_specifier("@scope/pkg/dist/x.js")
    ('@scope/pkg', './dist/x.js')

    Raises:
        UnknownImportError: `specifier` is not a package name
    """
    match = PACKAGE_PATTERN.match(specifier)
    if not match:
        raise UnknownImportError(f'Invalid import "{specifier}"', specifier=specifier)
    return match.group(1), f".{match.group(2) or ''}"


def classify(importee: str, importer: str | None, lookup: Container[str], runtime_url: str) -> Specifier:
    """Classify `importee` as imported from `importer`.

    Order matters: runtime imports are checked before local documents, and
    local documents before anything that could trigger a network request.
    """
    if importee == RUNTIME_PACKAGE or importee.startswith(f"{RUNTIME_PACKAGE}/"):
        return Specifier(SpecifierKind.RUNTIME, importee)

    if importer and importer.startswith(runtime_url):
        return Specifier(SpecifierKind.RUNTIME_INTERNAL, importee)

    if importee in lookup and (not importer or importer in lookup):
        return Specifier(SpecifierKind.LOCAL, importee)
    for suffix in LOCAL_SUFFIXES:
        if importee + suffix in lookup:
            return Specifier(SpecifierKind.LOCAL, importee + suffix)

    if importee.endswith("/"):
        importee = importee[:-1]

    if importee.startswith(("http:", "https:")):
        return Specifier(SpecifierKind.URL, importee)

    if importee.startswith("."):
        return Specifier(SpecifierKind.RELATIVE, importee)

    package_name, subpath = parse_package_specifier(importee)
    return Specifier(SpecifierKind.PACKAGE, importee, package_name=package_name, subpath=subpath)


def runtime_module_url(runtime_url: str, importee: str, gates: FeatureGates) -> str:
    """URL of `svelte` or `svelte/<name>` under the runtime base URL."""
    if importee == RUNTIME_PACKAGE:
        return f"{runtime_url}/index.mjs"

    name = importee[len(RUNTIME_PACKAGE) + 1 :]
    if gates.legacy_package_structure:
        return f"{runtime_url}/{name}.mjs"
    return f"{runtime_url}/{name}/index.mjs"


def runtime_internal_url(importee: str, importer: str, gates: FeatureGates) -> str:
    """URL of a module imported by one runtime module from another."""
    resolved = urljoin(importer, importee)
    if resolved.endswith(".mjs"):
        return resolved
    if gates.legacy_package_structure:
        return f"{resolved}.mjs"
    return f"{resolved}/index.mjs"
