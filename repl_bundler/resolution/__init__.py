"""Module resolution for playground imports.

This package turns import specifiers into concrete module URLs:
- specifiers: classify a specifier into its resolution strategy
- exports: conditional `exports` map algorithm
- manifest: package manifest precedence chain
- packages: bare specifier -> registry URL
- versions: compiler-version feature gates
"""

from .exports import resolve_exports
from .manifest import Manifest
from .manifest import ManifestResolver
from .packages import PackageResolver
from .specifiers import Specifier
from .specifiers import SpecifierKind
from .specifiers import classify
from .specifiers import parse_package_specifier
from .versions import FeatureGates

__all__ = [
    "FeatureGates",
    "Manifest",
    "ManifestResolver",
    "PackageResolver",
    "Specifier",
    "SpecifierKind",
    "classify",
    "parse_package_specifier",
    "resolve_exports",
]
