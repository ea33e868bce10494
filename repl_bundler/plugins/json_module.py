"""Expose JSON documents as ES modules."""

from ..interfaces import TransformResult


class JsonPlugin:
    name = "json"

    async def transform(self, code: str, module_id: str) -> TransformResult | None:
        if not module_id.endswith(".json"):
            return None
        return TransformResult(code=f"export default {code};")
