"""Error taxonomy for resolution, fetching and compilation.

`Aborted` deliberately does not derive from `BundlerError`: it signals a
superseded generation and must never be reported to the caller, so generic
`except BundlerError` handlers must not catch it.
"""

from __future__ import annotations

from typing import Any


class Aborted(Exception):
    """Raised when work belongs to a generation that is no longer current."""

    def __init__(self, generation: Any):
        super().__init__(f"generation {generation!r} was superseded")
        self.generation = generation


class BundlerError(Exception):
    """Base class for errors surfaced as a failed bundling pass."""

    def __init__(self, message: str, *, specifier: str | None = None, package: str | None = None):
        super().__init__(message)
        self.message = message
        self.specifier = specifier
        self.package = package

    def attach(self, *, specifier: str, package: str | None = None) -> BundlerError:
        """Record which import caused this error, keeping the original message."""
        if self.specifier is None:
            self.specifier = specifier
            self.package = package
        return self

    def details(self) -> dict[str, Any]:
        """Extra structured fields reported alongside message and stack."""
        return {key: value for key, value in (("specifier", self.specifier), ("package", self.package)) if value}


class ResolutionError(BundlerError):
    """A manifest, exports map or legacy field lookup failed."""


class UnknownImportError(BundlerError):
    """The specifier is not a local document, URL, relative path or package name."""


class NetworkError(BundlerError):
    """A fetch failed. For non-success responses the message is the response body."""

    def __init__(self, message: str, *, url: str | None = None, status_code: int | None = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code

    def details(self) -> dict[str, Any]:
        details = super().details()
        if self.url:
            details["url"] = self.url
        if self.status_code is not None:
            details["status_code"] = self.status_code
        return details


class CompileError(BundlerError):
    """Structured compiler failure.

    Compilers may raise this to report a source span; any other exception a
    compiler raises is propagated unchanged.
    """

    def __init__(
        self,
        message: str,
        *,
        filename: str | None = None,
        start: dict[str, int] | None = None,
        end: dict[str, int] | None = None,
        frame: str | None = None,
    ):
        super().__init__(message)
        self.filename = filename
        self.start = start
        self.end = end
        self.frame = frame

    def details(self) -> dict[str, Any]:
        details = super().details()
        for key in ("filename", "start", "end", "frame"):
            value = getattr(self, key)
            if value is not None:
                details[key] = value
        return details
