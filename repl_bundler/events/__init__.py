"""Bundler event system for status notifications and results."""

from repl_bundler.events.bus import EventBus
from repl_bundler.events.schemas import BundlerEvent
from repl_bundler.events.schemas import StatusEvent

__all__ = [
    "EventBus",
    "BundlerEvent",
    "StatusEvent",
]
