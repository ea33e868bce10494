"""Tests for import specifier classification and runtime URLs."""

import pytest

from repl_bundler.errors import UnknownImportError
from repl_bundler.resolution.specifiers import SpecifierKind
from repl_bundler.resolution.specifiers import classify
from repl_bundler.resolution.specifiers import parse_package_specifier
from repl_bundler.resolution.specifiers import runtime_internal_url
from repl_bundler.resolution.specifiers import runtime_module_url
from repl_bundler.resolution.versions import FeatureGates

RUNTIME = "https://cdn.test/svelte@3.59.2"
LOOKUP = {"./App.svelte", "./utils.js", "./data.json"}

MODERN = FeatureGates.from_version("3.59.2")
LEGACY = FeatureGates.from_version("3.4.0")


class TestParsePackageSpecifier:
    @pytest.mark.parametrize(
        ("specifier", "expected"),
        [
            ("left-pad", ("left-pad", ".")),
            ("svelte-motion/easing", ("svelte-motion", "./easing")),
            ("@scope/pkg", ("@scope/pkg", ".")),
            ("@scope/pkg/dist/x.js", ("@scope/pkg", "./dist/x.js")),
        ],
    )
    def test_split(self, specifier, expected):
        assert parse_package_specifier(specifier) == expected

    @pytest.mark.parametrize("specifier", ["", "/absolute"])
    def test_invalid(self, specifier):
        with pytest.raises(UnknownImportError, match="Invalid import"):
            parse_package_specifier(specifier)


class TestClassify:
    def test_runtime(self):
        assert classify("svelte", "./App.svelte", LOOKUP, RUNTIME).kind is SpecifierKind.RUNTIME
        assert classify("svelte/store", "./App.svelte", LOOKUP, RUNTIME).kind is SpecifierKind.RUNTIME

    def test_runtime_beats_local_documents(self):
        assert classify("svelte", None, {"svelte"}, RUNTIME).kind is SpecifierKind.RUNTIME

    def test_svelte_prefixed_package_is_not_runtime(self):
        specifier = classify("svelte-motion", "./App.svelte", LOOKUP, RUNTIME)
        assert specifier.kind is SpecifierKind.PACKAGE
        assert specifier.package_name == "svelte-motion"

    def test_runtime_internal(self):
        specifier = classify("../internal", f"{RUNTIME}/store/index.mjs", LOOKUP, RUNTIME)
        assert specifier.kind is SpecifierKind.RUNTIME_INTERNAL

    def test_entry_document(self):
        specifier = classify("./App.svelte", None, LOOKUP, RUNTIME)
        assert specifier.kind is SpecifierKind.LOCAL
        assert specifier.value == "./App.svelte"

    def test_local_document_with_added_suffix(self):
        assert classify("./utils", "./App.svelte", LOOKUP, RUNTIME).value == "./utils.js"
        assert classify("./data", "./App.svelte", LOOKUP, RUNTIME).value == "./data.json"

    def test_local_name_imported_from_remote_module_is_not_local(self):
        specifier = classify("./utils.js", "https://cdn.test/pkg@1.0.0/index.js", LOOKUP, RUNTIME)
        assert specifier.kind is SpecifierKind.RELATIVE

    def test_url(self):
        specifier = classify("https://cdn.test/x.js", "./App.svelte", LOOKUP, RUNTIME)
        assert specifier.kind is SpecifierKind.URL
        assert specifier.value == "https://cdn.test/x.js"

    def test_trailing_slash_is_stripped(self):
        specifier = classify("left-pad/", "./App.svelte", LOOKUP, RUNTIME)
        assert specifier.kind is SpecifierKind.PACKAGE
        assert specifier.value == "left-pad"
        assert specifier.subpath == "."

    def test_relative(self):
        specifier = classify("./lib/x.js", "https://cdn.test/pkg@1.0.0/index.js", LOOKUP, RUNTIME)
        assert specifier.kind is SpecifierKind.RELATIVE

    def test_package_with_subpath(self):
        specifier = classify("@scope/pkg/button", "./App.svelte", LOOKUP, RUNTIME)
        assert specifier.kind is SpecifierKind.PACKAGE
        assert (specifier.package_name, specifier.subpath) == ("@scope/pkg", "./button")


class TestRuntimeUrls:
    def test_runtime_entry(self):
        assert runtime_module_url(RUNTIME, "svelte", MODERN) == f"{RUNTIME}/index.mjs"
        assert runtime_module_url(RUNTIME, "svelte", LEGACY) == f"{RUNTIME}/index.mjs"

    def test_runtime_submodule(self):
        assert runtime_module_url(RUNTIME, "svelte/store", MODERN) == f"{RUNTIME}/store/index.mjs"
        assert runtime_module_url(RUNTIME, "svelte/store", LEGACY) == f"{RUNTIME}/store.mjs"

    def test_runtime_internal_directory_import(self):
        importer = f"{RUNTIME}/store/index.mjs"
        assert runtime_internal_url("../internal", importer, MODERN) == f"{RUNTIME}/internal/index.mjs"
        assert runtime_internal_url("../internal", importer, LEGACY) == f"{RUNTIME}/internal.mjs"

    def test_runtime_internal_explicit_file(self):
        importer = f"{RUNTIME}/index.mjs"
        assert runtime_internal_url("./internal/index.mjs", importer, LEGACY) == f"{RUNTIME}/internal/index.mjs"
