"""Tests for the development script bundler."""

import shutil
import subprocess

import pytest

from sitetools.bundler import Bundler, bundle, mask, unmask


class TestResolution:
    def test_relative_candidates(self, tmp_path, write):
        entry = write("js/app.js", "")
        write("js/a.js", "")
        write("js/lib/index.js", "")
        write("js/data.json", "{}")
        b = Bundler(entry)
        assert b.resolve("./a", entry) == (tmp_path / "js" / "a.js").resolve()
        assert b.resolve("./lib", entry) == (tmp_path / "js" / "lib" / "index.js").resolve()
        assert b.resolve("./data.json", entry) == (tmp_path / "js" / "data.json").resolve()

    def test_node_modules_main(self, tmp_path, write):
        entry = write("js/app.js", "")
        write("node_modules/tiny/package.json", '{"main": "dist/tiny"}')
        write("node_modules/tiny/dist/tiny.js", "")
        b = Bundler(entry)
        assert b.resolve("tiny", entry) == (
            tmp_path / "node_modules" / "tiny" / "dist" / "tiny.js"
        ).resolve()

    def test_unresolvable(self, write):
        entry = write("js/app.js", "require('./missing')\n")
        with pytest.raises(FileNotFoundError, match="Cannot resolve './missing'"):
            bundle(entry)

    def test_missing_entry(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="Bundle entry not found"):
            Bundler(tmp_path / "app.js")


class TestTransform:
    def test_es_imports(self, write):
        entry = write(
            "js/app.js",
            "import def, { a, b as c } from './lib'\n"
            "import * as ns from './lib'\n"
            "import './side-effect'\n"
            "c(a, def, ns)\n",
        )
        write("js/lib.js", "export const a = 1\nexport function b() {}\n")
        write("js/side-effect.js", "window.loaded = true\n")
        b = Bundler(entry)
        modules = {m.id: m for m in b.collect()}

        app = modules["./app.js"].code
        assert 'var _lib__0 = require("./lib.js");' in app
        assert "var _lib__0_default = require.interop(_lib__0);" in app
        assert 'var ns = _lib__2;' in app
        assert 'require("./side-effect.js");' in app
        assert "_lib__0.b(_lib__0.a, _lib__0_default.default, ns)" in app
        assert "const {" not in app

        lib = modules["./lib.js"].code
        assert lib.startswith('Object.defineProperty(exports, "__esModule", { value: true });')
        assert 'require.d(exports, "a", function () { return a; });' in lib
        assert 'require.d(exports, "b", function () { return b; });' in lib
        assert "const a = 1" in lib
        assert "function b() {}" in lib
        assert "exports.a =" not in lib

    def test_exports(self, write):
        entry = write(
            "js/app.js",
            "const x = 1\n"
            "export { x, x as y }\n"
            "export { z as w } from './z'\n"
            "export * from './z'\n"
            "export default x\n",
        )
        write("js/z.js", "exports.z = 3\n")
        code = Bundler(entry).collect()[0].code
        assert 'require.d(exports, "x", function () { return x; });' in code
        assert 'require.d(exports, "y", function () { return x; });' in code
        assert 'var _z__0 = require("./z.js");' in code
        assert 'require.d(exports, "w", function () { return _z__0.z; });' in code
        assert 'require.reexport(exports, require("./z.js"));' in code
        assert "var __default_export__ = x" in code
        assert 'require.d(exports, "default", function () { return __default_export__; });' in code

    def test_every_declarator_exported(self, write):
        entry = write(
            "js/app.js",
            "export const a = 1, b = 2\n"
            "export let { c, d: e } = { c: 3, d: 4 }, [f] = [5];\n"
            "export var g = function (x, y) {\n  return x + y\n}, h\n",
        )
        code = Bundler(entry).collect()[0].code
        for name in "abcefgh":
            assert f'require.d(exports, "{name}", function () {{ return {name}; }});' in code
        assert '"d"' not in code

    def test_named_default_declarations(self, write):
        entry = write("js/app.js", "export default function ready() {}\nready()\n")
        code = Bundler(entry).collect()[0].code
        assert 'require.d(exports, "default", function () { return ready; });' in code
        assert "\nfunction ready() {}\n" in code

    def test_import_uses_keep_property_names(self, write):
        entry = write(
            "js/app.js",
            "import { item, count } from './lib'\n"
            "const o = { item, count: count, other: item.count }\n"
            "list(item, count)\n",
        )
        write("js/lib.js", "export const item = {}\nexport let count = 0\n")
        code = Bundler(entry).collect()[0].code
        assert (
            "const o = { item: _lib__0.item, count: _lib__0.count, other: _lib__0.item.count }"
            in code
        )
        assert "list(_lib__0.item, _lib__0.count)" in code

    def test_commonjs_untouched_except_ids(self, write):
        entry = write("js/app.js", "var util = require('./util')\nmodule.exports = util\n")
        write("js/util.js", "module.exports = {}\n")
        code = Bundler(entry).collect()[0].code
        assert code == 'var util = require("./util.js")\nmodule.exports = util\n'

    def test_nested_ids_relative_to_entry(self, write):
        entry = write("js/app.js", "require('./modules/a')\n")
        write("js/modules/a.js", "require('./b')\n")
        write("js/modules/b.js", "")
        ids = [m.id for m in Bundler(entry).collect()]
        assert ids == ["./app.js", "./modules/a.js", "./modules/b.js"]

    def test_json_module(self, write):
        entry = write("js/app.js", "const cfg = require('./cfg.json')\n")
        write("js/cfg.json", '{"a": 1}\n')
        modules = Bundler(entry).collect()
        assert modules[1].code == 'module.exports = {"a": 1};'


class TestCommentsAndLiterals:
    def test_commented_out_require_is_ignored(self, write):
        source = "// const old = require('./removed')\nconsole.log(1)\n"
        entry = write("js/app.js", source)
        modules = Bundler(entry).collect()
        assert len(modules) == 1
        assert modules[0].code == source

    def test_imports_inside_block_comment_are_ignored(self, write):
        source = "/*\nimport x from './gone'\nexport * from './gone'\n*/\nwindow.a = 1\n"
        entry = write("js/app.js", source)
        assert Bundler(entry).collect()[0].code == source

    def test_strings_and_templates_are_ignored(self, write):
        source = (
            "var help = \"call require('./nope') to load\"\n"
            "var tpl = `\nimport y from './gone'\n${require('./real')}`\n"
            "var re = /require\\('.\\/nope'\\)/\n"
        )
        entry = write("js/app.js", source)
        write("js/real.js", "module.exports = 'r'\n")
        modules = Bundler(entry).collect()
        assert [m.id for m in modules] == ["./app.js", "./real.js"]
        code = modules[0].code
        assert "call require('./nope') to load" in code
        assert "import y from './gone'" in code
        assert '${require("./real.js")}' in code
        assert "/require\\('.\\/nope'\\)/" in code

    def test_mask_round_trip(self):
        source = "a = 'x' /* c */ + `t${b}u` // end\nd = e / f / g\n"
        code, hidden = mask(source)
        assert "'x'" not in code and "/* c */" not in code
        assert "${" not in code and "b" in code
        assert "d = e / f / g" in code
        assert unmask(code, hidden) == source


class TestBundle:
    def test_shared_module_included_once(self, write):
        entry = write("js/app.js", "require('./a')\nrequire('./b')\n")
        write("js/a.js", "require('./shared')\n")
        write("js/b.js", "require('./shared')\n")
        write("js/shared.js", "module.exports = 42\n")
        out = bundle(entry)
        assert out.count('/***/ "./shared.js":') == 1
        assert 'return require("./app.js");' in out
        assert out.startswith("(function (modules) {")
        assert out.rstrip().endswith("});")


@pytest.mark.skipif(shutil.which("node") is None, reason="node is not installed")
class TestRuntime:
    def run(self, entry):
        result = subprocess.run(
            ["node", "-e", bundle(entry)], capture_output=True, text=True, check=True
        )
        return result.stdout.strip()

    def test_multiple_declarators(self, write):
        entry = write(
            "js/app.js",
            "import { a, b } from './lib'\nconsole.log(JSON.stringify([a, b]))\n",
        )
        write("js/lib.js", "export const a = 1, b = 2\n")
        assert self.run(entry) == "[1,2]"

    def test_live_bindings(self, write):
        entry = write(
            "js/app.js",
            "import * as c from './counter'\n"
            "import { count, inc } from './counter'\n"
            "inc()\n"
            "console.log(c.count, count)\n",
        )
        write("js/counter.js", "export let count = 0\nexport function inc() { count++ }\n")
        assert self.run(entry) == "1 1"

    def test_circular_import(self, write):
        entry = write(
            "js/app.js",
            "import { ping } from './a'\nconsole.log(ping())\n",
        )
        write(
            "js/a.js",
            "import { pong } from './b'\n"
            "export function ping() { return pong() }\n"
            "export const name = 'a'\n",
        )
        write("js/b.js", "import { name } from './a'\nexport function pong() { return name }\n")
        assert self.run(entry) == "a"

    def test_commonjs_default_import(self, write):
        entry = write("js/app.js", "import ready from './ready'\nconsole.log(ready())\n")
        write("js/ready.js", "// require('./old')\nmodule.exports = function () { return 'ok' }\n")
        assert self.run(entry) == "ok"
