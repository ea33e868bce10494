"""Expose shader sources as ES modules exporting the shader text."""

import json

from ..interfaces import TransformResult


class GlslPlugin:
    name = "glsl"

    async def transform(self, code: str, module_id: str) -> TransformResult | None:
        if not module_id.endswith(".glsl"):
            return None
        return TransformResult(code=f"export default {json.dumps(code)};")
