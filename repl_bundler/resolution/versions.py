"""Feature gates derived from the compiler's version string."""

from __future__ import annotations

import re
from dataclasses import dataclass

VERSION_PATTERN = re.compile(r"^(\d+)\.(\d+)\.(\d+)")

# Runtime modules moved from `svelte/<name>.mjs` to `svelte/<name>/index.mjs` after this release.
LEGACY_PACKAGE_STRUCTURE_MAX = (3, 4, 4)
# `loopGuardTimeout` compile option exists from this release on.
LOOP_GUARD_TIMEOUT_MIN = (3, 14, 0)


def compare_to_version(version: str, major: int, minor: int, patch: int) -> int:
    """Compare `version` with major.minor.patch.

    Returns:
        Negative, zero or positive, like a classic cmp()

    Raises:
        ValueError: `version` does not start with major.minor.patch
    """
    match = VERSION_PATTERN.match(version)
    if not match:
        raise ValueError(f"Unrecognised compiler version: {version!r}")

    v_major, v_minor, v_patch = (int(part) for part in match.groups())
    return (v_major - major) or (v_minor - minor) or (v_patch - patch)


def is_legacy_package_structure(version: str) -> bool:
    return compare_to_version(version, *LEGACY_PACKAGE_STRUCTURE_MAX) <= 0


def has_loop_guard_timeout_feature(version: str) -> bool:
    return compare_to_version(version, *LOOP_GUARD_TIMEOUT_MIN) >= 0


@dataclass(frozen=True)
class FeatureGates:
    """Version-dependent behaviour, fixed for the duration of one request."""

    version: str
    legacy_package_structure: bool
    loop_guard_timeout: bool

    @classmethod
    def from_version(cls, version: str) -> FeatureGates:
        return cls(
            version=version,
            legacy_package_structure=is_legacy_package_structure(version),
            loop_guard_timeout=has_loop_guard_timeout_feature(version),
        )
