"""
Generation guard for "latest request wins" cancellation.

The dispatch worker provides the POLICY (a new request supersedes the old one).
The guard provides the MECHANISM (a current token plus an equality check).

There is no cancellation signal pushed through call stacks. Every operation
captures the generation it was started for and calls `check()` at entry and
again each time it resumes from an await:

    guard.check(uid)
    result = await fetch_cache.get_or_fetch(url, uid)
    guard.check(uid)  # may have been superseded while suspended
"""

import logging
from typing import Any

from .errors import Aborted

logger = logging.getLogger(__name__)


class GenerationGuard:
    """Holds the token of the request currently being served."""

    def __init__(self) -> None:
        self._current: Any = None

    @property
    def current(self) -> Any:
        """Token of the current request (None before the first request)."""
        return self._current

    def begin(self, generation: Any) -> None:
        """Make `generation` current, invalidating all work from earlier ones.

        Only the dispatch entry point calls this.
        """
        if self._current is not None and self._current != generation:
            logger.debug(f"[generation] {self._current!r} superseded by {generation!r}")
        self._current = generation

    def is_current(self, generation: Any) -> bool:
        # Equality, not ordering: tokens are opaque.
        return generation == self._current

    def check(self, generation: Any) -> None:
        """Raise `Aborted` if `generation` is no longer current."""
        if generation != self._current:
            raise Aborted(generation)

    def __repr__(self) -> str:
        return f"GenerationGuard(current={self._current!r})"
