"""Fixed plugin chain run after the resolve/load/transform bridge."""

from .commonjs import CommonJSPlugin
from .glsl import GlslPlugin
from .json_module import JsonPlugin
from .replace import ReplacePlugin

__all__ = [
    "CommonJSPlugin",
    "GlslPlugin",
    "JsonPlugin",
    "ReplacePlugin",
]
