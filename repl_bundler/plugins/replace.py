"""Build-time constant substitution."""

from collections.abc import Mapping

from ..interfaces import TransformResult


class ReplacePlugin:
    """Replaces each key with its value, literally, in every module.

    Values are inserted as code, so string constants must already be quoted,
    e.g. `{"process.env.NODE_ENV": '"production"'}`.
    """

    name = "replace"

    def __init__(self, values: Mapping[str, str]):
        self.values = dict(values)

    async def transform(self, code: str, module_id: str) -> TransformResult | None:
        replaced = code
        for key, value in self.values.items():
            replaced = replaced.replace(key, value)
        if replaced == code:
            return None
        return TransformResult(code=replaced)
