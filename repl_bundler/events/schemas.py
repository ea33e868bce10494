"""Event schemas for the bundler's outbound side channel."""

from typing import Literal

from pydantic import BaseModel
from pydantic import Field

from repl_bundler.models import BundleResult


class StatusEvent(BaseModel):
    """Progress notification, emitted on resolution/fetch/compile cache misses."""

    type: Literal["status"] = "status"
    uid: int = Field(description="Generation token of the request doing the work")
    message: str = Field(description="Human-readable status, e.g. 'fetching https://...'")


BundlerEvent = StatusEvent | BundleResult
