"""Tests for the fixed plugin chain."""

from repl_bundler.plugins import CommonJSPlugin
from repl_bundler.plugins import GlslPlugin
from repl_bundler.plugins import JsonPlugin
from repl_bundler.plugins import ReplacePlugin
from repl_bundler.plugins.commonjs import find_requires

MODULE_ID = "https://registry.test/pkg@1.0.0/index.js"


class TestCommonJS:
    async def test_module_exports_becomes_default_export(self):
        result = await CommonJSPlugin().transform("module.exports = 42;", MODULE_ID)

        assert result.code.rstrip().endswith("export default module.exports;")
        assert "const exports = {}; const module = { exports };" in result.code
        assert "module.exports = 42;" in result.code

    async def test_requires_are_hoisted_to_imports(self):
        code = "const a = require('a');\nconst b = require(\"./b.js\");\nconst again = require('a');"

        result = await CommonJSPlugin().transform(code, MODULE_ID)

        assert 'import __repl_0 from "a";' in result.code
        assert 'import __repl_1 from "./b.js";' in result.code
        assert '"a": __repl_0, "./b.js": __repl_1' in result.code
        assert result.code.count("import __repl_") == 2

    async def test_dynamic_require_throws_at_runtime(self):
        result = await CommonJSPlugin().transform("exports.load = (name) => require(name);", MODULE_ID)
        assert "Cannot require modules dynamically" in result.code

    async def test_es_modules_are_untouched(self):
        code = "import x from 'x';\nexport const module = x;"
        assert await CommonJSPlugin().transform(code, MODULE_ID) is None

    async def test_code_without_markers_is_untouched(self):
        assert await CommonJSPlugin().transform("console.log('hi');", MODULE_ID) is None

    def test_find_requires_keeps_order_and_dedupes(self):
        code = "require('b'); require('a'); require('b'); require(dynamic);"
        assert find_requires(code) == ["b", "a"]


class TestChain:
    """Non-script modules pass through CommonJS interop untouched."""

    async def run_chain(self, code: str, module_id: str) -> str:
        for plugin in (CommonJSPlugin(), JsonPlugin(), GlslPlugin()):
            result = await plugin.transform(code, module_id)
            if result is not None:
                code = result.code
        return code

    async def test_json_with_commonjs_words(self):
        code = '{"module": "x", "exports": 1, "require": true}'
        assert await self.run_chain(code, "./data.json") == f"export default {code};"

    async def test_shader_with_commonjs_words(self):
        code = "// shader module\nvoid main() {}"
        assert await self.run_chain(code, "./shader.glsl") == 'export default "// shader module\\nvoid main() {}";'

    async def test_extensionless_remote_script_is_converted(self):
        result = await CommonJSPlugin().transform("module.exports = 1;", "https://registry.test/pkg@1.0.0/index")
        assert result is not None


class TestJson:
    async def test_json_becomes_default_export(self):
        result = await JsonPlugin().transform('{"version": "1.0.0"}', "./data.json")
        assert result.code == 'export default {"version": "1.0.0"};'

    async def test_other_modules_are_untouched(self):
        assert await JsonPlugin().transform("export default 1;", "./data.js") is None


class TestGlsl:
    async def test_shader_is_exported_as_string(self):
        result = await GlslPlugin().transform('void main() {\n\tgl_FragColor = vec4(1.0);\n}', "./shader.glsl")
        assert result.code == 'export default "void main() {\\n\\tgl_FragColor = vec4(1.0);\\n}";'

    async def test_other_modules_are_untouched(self):
        assert await GlslPlugin().transform("export default 1;", "./shader.js") is None


class TestReplace:
    async def test_values_are_substituted(self):
        plugin = ReplacePlugin({"process.env.NODE_ENV": '"production"'})

        result = await plugin.transform("if (process.env.NODE_ENV !== 'production') warn();", MODULE_ID)

        assert result.code == "if (\"production\" !== 'production') warn();"

    async def test_unchanged_code_returns_none(self):
        plugin = ReplacePlugin({"process.env.NODE_ENV": '"production"'})
        assert await plugin.transform("export default 1;", MODULE_ID) is None
