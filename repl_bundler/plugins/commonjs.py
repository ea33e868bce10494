"""CommonJS interop for packages that ship `require`/`module.exports` code.

Literal `require("x")` calls are hoisted into ES imports and served from a
lookup table; `module.exports` becomes the default export. Dynamic requires
throw at runtime. ES modules are left alone.
"""

import json
import re

from ..interfaces import TransformResult

CJS_MARKERS = re.compile(r"\b(?:require|module|exports)\b")
ESM_STATEMENT = re.compile(r"^\s*(?:import\s*[\w{*'\"]|export\s)", re.MULTILINE)
REQUIRE_CALL = re.compile(r"""\brequire\(\s*(["'])([^"'\n]+)\1\s*\)""")

# Data, shader, style and component sources are never CommonJS.
NON_SCRIPT_SUFFIXES = (".json", ".glsl", ".css", ".svelte")

REQUIRE_SHIM = (
    "function require(id) {\n"
    "\tif (id in __repl_lookup) return __repl_lookup[id];\n"
    "\tthrow new Error(`Cannot require modules dynamically (${id})`);\n"
    "}"
)


def find_requires(code: str) -> list[str]:
    """Distinct literal `require()` arguments, in order of appearance."""
    requires: list[str] = []
    for match in REQUIRE_CALL.finditer(code):
        if match.group(2) not in requires:
            requires.append(match.group(2))
    return requires


class CommonJSPlugin:
    name = "commonjs"

    async def transform(self, code: str, module_id: str) -> TransformResult | None:
        if module_id.endswith(NON_SCRIPT_SUFFIXES):
            return None
        if not CJS_MARKERS.search(code) or ESM_STATEMENT.search(code):
            return None

        requires = find_requires(code)
        imports = "\n".join(f"import __repl_{i} from {json.dumps(dep)};" for i, dep in enumerate(requires))
        entries = ", ".join(f"{json.dumps(dep)}: __repl_{i}" for i, dep in enumerate(requires))

        transformed = "\n\n".join(
            [
                imports,
                f"const __repl_lookup = {{ {entries} }};",
                REQUIRE_SHIM,
                "const exports = {}; const module = { exports };",
                code,
                "export default module.exports;",
            ]
        )
        return TransformResult(code=transformed)
