"""Development-mode script bundler.

Starting from an entry file, follows `require()` calls and ES `import`/`export`
statements, rewrites each module into a CommonJS-style function and emits one
readable script with a small module runtime. Relative specifiers resolve to
`x`, `x.js`, `x.mjs`, `x.json` or `x/index.js`; bare specifiers are looked up in
`node_modules` directories from the importing file upwards.

Matching happens on a masked copy of each source in which comments, string,
template and regex literals are replaced by numbered placeholders, so text inside
them is never taken for a dependency. ES exports become getters defined at the
top of the module and named imports are read through the imported module object,
which keeps bindings live across modules and during circular imports.
"""

from __future__ import annotations

import json
import os
import re
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Dict, List, Optional, Tuple


_LIT = r"\x00(\d+)\x00"
_PLACEHOLDER_RE = re.compile(_LIT)
_REQUIRE_RE = re.compile(r"(?<![\w$.])require\(\s*" + _LIT + r"\s*\)")
_IMPORT_FROM_RE = re.compile(
    r"^([ \t]*)import\s+([\w$*{}\s,]+?)\s+from\s+" + _LIT + r"[ \t]*;?", re.M
)
_IMPORT_BARE_RE = re.compile(r"^([ \t]*)import\s+" + _LIT + r"[ \t]*;?", re.M)
_EXPORT_FROM_RE = re.compile(
    r"^([ \t]*)export\s+(\*|\{[^}]*\})\s+from\s+" + _LIT + r"[ \t]*;?", re.M
)
_EXPORT_LIST_RE = re.compile(r"^([ \t]*)export\s+\{([^}]*)\}[ \t]*;?", re.M)
_EXPORT_DECL_RE = re.compile(
    r"^([ \t]*)export\s+("
    r"(?:async\s+)?function\b\s*\*?\s*([\w$]+)"
    r"|class\s+([\w$]+)"
    r"|(?:const|let|var)\b)",
    re.M,
)
_EXPORT_DEFAULT_DECL_RE = re.compile(
    r"^([ \t]*)export\s+default\s+("
    r"(?:async\s+)?function\b\s*\*?\s*([\w$]+)"
    r"|class\s+(?!extends\b)([\w$]+))",
    re.M,
)
_EXPORT_DEFAULT_RE = re.compile(r"^([ \t]*)export\s+default\s+", re.M)
_IDENT_RE = re.compile(r"(?<![\w$])[A-Za-z_$][\w$]*")

# After these words a `/` starts a regex literal rather than a division
_REGEX_KEYWORDS = {
    "return", "typeof", "case", "do", "else", "in", "of", "new",
    "delete", "void", "throw", "instanceof", "yield", "await",
}

_EXTENSIONS = (".js", ".mjs", ".json")

_RUNTIME = """(function (modules) {
  var cache = {};
  function require(id) {
    if (cache[id]) {
      return cache[id].exports;
    }
    var module = (cache[id] = { exports: {} });
    modules[id].call(module.exports, module, module.exports, require);
    return module.exports;
  }
  require.d = function (exports, name, getter) {
    if (!Object.prototype.hasOwnProperty.call(exports, name)) {
      Object.defineProperty(exports, name, { enumerable: true, get: getter });
    }
  };
  require.interop = function (mod) {
    return mod && mod.__esModule ? mod : { default: mod };
  };
  require.reexport = function (target, mod) {
    Object.keys(mod).forEach(function (key) {
      if (key !== "default") {
        require.d(target, key, function () { return mod[key]; });
      }
    });
  };
  return require(__ENTRY__);
})({
__MODULES__
});
"""


@dataclass
class Module:
    id: str
    path: Path
    code: str = ""
    deps: Dict[str, str] = field(default_factory=dict)


# masking


def _quoted_end(text: str, i: int) -> int:
    quote = text[i]
    i += 1
    while i < len(text) and text[i] != quote:
        if text[i] == "\n":
            return i
        i += 2 if text[i] == "\\" else 1
    return min(i + 1, len(text))


def _template_end(text: str, i: int) -> Tuple[int, bool]:
    """End of the template chunk at `i` and whether it opens a `${` substitution."""
    i += 1
    while i < len(text):
        if text[i] == "\\":
            i += 2
        elif text[i] == "`":
            return i + 1, False
        elif text.startswith("${", i):
            return i + 2, True
        else:
            i += 1
    return len(text), False


def _regex_end(text: str, i: int) -> Optional[int]:
    i += 1
    in_class = False
    while i < len(text):
        ch = text[i]
        if ch == "\\":
            i += 2
            continue
        if ch == "\n":
            return None
        if in_class:
            in_class = ch != "]"
        elif ch == "[":
            in_class = True
        elif ch == "/":
            i += 1
            while i < len(text) and text[i].isalpha():
                i += 1
            return i
        i += 1
    return None


def _starts_regex(text: str, i: int, prev: str) -> bool:
    if not prev or prev in "(,=:[!&|?{};+-*%<>~^":
        return True
    word = re.search(r"([\w$]+)\s*$", text[max(0, i - 16) : i])
    return bool(word) and word.group(1) in _REGEX_KEYWORDS


def mask(source: str) -> Tuple[str, List[str]]:
    """Replace comments and literals with `\\x00N\\x00` placeholders.

    Returns the masked code and the list of hidden texts; template substitutions
    (`${...}`) stay visible as code.
    """
    out: List[str] = []
    hidden: List[str] = []
    substitutions: List[int] = []  # brace depth at each open `${`
    depth = 0
    prev = ""  # last significant code character
    i = 0
    while i < len(source):
        ch = source[i]
        end = None
        if ch == "`" or (ch == "}" and substitutions and substitutions[-1] == depth):
            if ch == "}":
                substitutions.pop()
            end, opened = _template_end(source, i)
            if opened:
                substitutions.append(depth)
            prev = "(" if opened else "a"
        elif ch in "'\"":
            end = _quoted_end(source, i)
            prev = "a"
        elif source.startswith("//", i):
            end = source.find("\n", i)
            end = len(source) if end == -1 else end
        elif source.startswith("/*", i):
            end = source.find("*/", i + 2)
            end = len(source) if end == -1 else end + 2
        elif ch == "/" and _starts_regex(source, i, prev):
            end = _regex_end(source, i)
            if end is not None:
                prev = "a"
        if end is None:
            if ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
            if not ch.isspace():
                prev = ch
            out.append(ch)
            i += 1
            continue
        out.append(f"\x00{len(hidden)}\x00")
        hidden.append(source[i:end])
        i = end
    return "".join(out), hidden


def unmask(code: str, hidden: List[str]) -> str:
    return _PLACEHOLDER_RE.sub(lambda m: hidden[int(m.group(1))], code)


# ES syntax helpers


def _specifiers(clause: str) -> List[tuple[str, str]]:
    """`{ a, b as c }` -> [("a", "a"), ("b", "c")]."""
    out = []
    for part in clause.strip().strip("{}").split(","):
        part = part.strip()
        if not part:
            continue
        names = re.split(r"\s+as\s+", part)
        out.append((names[0], names[-1]))
    return out


def _import_clause(clause: str) -> Tuple[Optional[str], Optional[str], List[tuple[str, str]]]:
    """Split an import clause into (default, namespace, named specifiers)."""
    clause = " ".join(clause.split())
    default = namespace = None
    named: List[tuple[str, str]] = []
    rest = clause
    if not clause.startswith(("{", "*")):
        default, _, rest = clause.partition(",")
        default = default.strip()
        rest = rest.strip()
    if rest.startswith("*"):
        namespace = re.split(r"\s+as\s+", rest, maxsplit=1)[1].strip()
    elif rest.startswith("{"):
        named = _specifiers(rest)
    return default, namespace, named


def _binding_names(declarator: str) -> List[str]:
    target = declarator.strip()
    if target[:1] in "{[":
        close = "}" if target[0] == "{" else "]"
        inner = target[1 : target.find(close)] if close in target else target[1:]
        names = []
        for part in inner.split(","):
            part = part.strip().lstrip(".")
            if ":" in part:
                part = part.split(":", 1)[1]
            part = part.split("=", 1)[0].strip()
            if _IDENT_RE.fullmatch(part):
                names.append(part)
        return names
    m = _IDENT_RE.match(target)
    return [m.group(0)] if m else []


def _declared_names(code: str, start: int) -> List[str]:
    """Names bound by the `const`/`let`/`var` declaration whose list begins at `start`."""
    depth = 0
    seg_start = i = start
    segments = []
    while i < len(code):
        ch = code[i]
        if ch in "([{":
            depth += 1
        elif ch in ")]}":
            if depth == 0:
                break
            depth -= 1
        elif depth == 0 and ch == ",":
            segments.append(code[seg_start:i])
            seg_start = i + 1
        elif depth == 0 and ch == ";":
            break
        elif depth == 0 and ch == "\n":
            before = code[seg_start:i].rstrip()
            after = code[i:].lstrip()
            continued = after[:1] in (",", ".", "?", ":", "+", "-", "*", "/", "=", "&", "|")
            if before and before[-1] not in ",=+-*/%&|^<>?:(" and not continued:
                break
        i += 1
    segments.append(code[seg_start:i])
    names: List[str] = []
    for seg in segments:
        names.extend(_binding_names(seg))
    return names


def _reference(code: str, m: re.Match, target: str, braces: List[str]) -> str:
    name = m.group(0)
    before = code[max(0, m.start() - 64) : m.start()].rstrip()
    after = code[m.end() : m.end() + 64].lstrip()
    if before.endswith(".") and not before.endswith("..."):
        return name
    in_object = bool(braces) and braces[-1] == "{" and before[-1:] in ("{", ",")
    if in_object and after.startswith(":"):
        return name
    if in_object and after[:1] in (",", "}"):
        return f"{name}: {target}"
    return target


def link_imports(code: str, refs: Dict[str, str]) -> str:
    """Rewrite uses of imported names in masked `code` to reads off their module."""
    if not refs:
        return code
    out = []
    braces: List[str] = []
    i = 0
    while i < len(code):
        ch = code[i]
        m = _IDENT_RE.match(code, i)
        if m:
            name = m.group(0)
            out.append(_reference(code, m, refs[name], braces) if name in refs else name)
            i = m.end()
            continue
        if ch in "([{":
            braces.append(ch)
        elif ch in ")]}" and braces:
            braces.pop()
        out.append(ch)
        i += 1
    return "".join(out)


class Bundler:
    def __init__(self, entry: Path | str, root: Path | str | None = None):
        self.entry = Path(entry).resolve()
        if not self.entry.is_file():
            raise FileNotFoundError(f"Bundle entry not found: {entry}")
        self.root = Path(root).resolve() if root else self.entry.parent
        self.modules: Dict[Path, Module] = {}
        self._queue: List[Path] = []

    def module_id(self, path: Path) -> str:
        rel = Path(os.path.relpath(path, self.root)).as_posix()
        return rel if rel.startswith("../") else "./" + rel

    # resolution

    def _resolve_file(self, base: Path) -> Optional[Path]:
        if base.is_file():
            return base
        for ext in _EXTENSIONS:
            candidate = base.with_name(base.name + ext)
            if candidate.is_file():
                return candidate
        if base.is_dir():
            manifest = base / "package.json"
            if manifest.is_file():
                main = json.loads(manifest.read_text(encoding="utf-8")).get("main")
                if main:
                    found = self._resolve_file(base / main)
                    if found:
                        return found
            index = base / "index.js"
            if index.is_file():
                return index
        return None

    def resolve(self, specifier: str, importer: Path) -> Path:
        if specifier.startswith(("./", "../", "/")):
            found = self._resolve_file((importer.parent / specifier))
        else:
            found = None
            for folder in [importer.parent, *importer.parent.parents]:
                found = self._resolve_file(folder / "node_modules" / specifier)
                if found:
                    break
        if found is None:
            raise FileNotFoundError(
                f"Cannot resolve '{specifier}' imported from {importer}"
            )
        return found.resolve()

    def _dependency(self, module: Module, specifier: str) -> str:
        path = self.resolve(specifier, module.path)
        dep_id = self.module_id(path)
        module.deps[specifier] = dep_id
        if path not in self.modules and path not in self._queue:
            self._queue.append(path)
        return dep_id

    # transformation

    def transform(self, module: Module, source: str) -> str:
        if module.path.suffix == ".json":
            return f"module.exports = {source.strip()};"

        code, hidden = mask(source)

        def literal(text: str) -> str:
            hidden.append(text)
            return f"\x00{len(hidden) - 1}\x00"

        def specifier(index: str) -> Optional[str]:
            text = hidden[int(index)]
            return text[1:-1] if text[:1] in "'\"" else None

        def req(spec: str) -> str:
            return f"require({literal(json.dumps(self._dependency(module, spec)))})"

        imports: List[str] = []
        getters: List[tuple[str, str]] = []
        refs: Dict[str, str] = {}

        def module_var(spec: str) -> str:
            stem = PurePosixPath(spec).name.split(".")[0]
            safe = re.sub(r'[^\w$]', '_', stem) or 'module'
            return f"_{safe}__{len(imports)}"

        def require_call(m: re.Match) -> str:
            spec = specifier(m.group(1))
            return m.group(0) if spec is None else req(spec)

        def export_from(m: re.Match) -> str:
            clause, spec = m.group(2), specifier(m.group(3))
            if clause == "*":
                imports.append(f"require.reexport(exports, {req(spec)});")
            else:
                var = module_var(spec)
                imports.append(f"var {var} = {req(spec)};")
                for imported, exported in _specifiers(clause):
                    getters.append((exported, f"{var}.{imported}"))
            return m.group(1)

        def export_list(m: re.Match) -> str:
            getters.extend((exported, local) for local, exported in _specifiers(m.group(2)))
            return m.group(1)

        def export_default_decl(m: re.Match) -> str:
            getters.append(("default", m.group(3) or m.group(4)))
            return m.group(1) + m.group(2)

        def export_default(m: re.Match) -> str:
            getters.append(("default", "__default_export__"))
            return f"{m.group(1)}var __default_export__ = "

        def export_decl(m: re.Match) -> str:
            name = m.group(3) or m.group(4)
            names = [name] if name else _declared_names(m.string, m.end())
            getters.extend((n, n) for n in names)
            return m.group(1) + m.group(2)

        def import_from(m: re.Match) -> str:
            spec = specifier(m.group(3))
            default, namespace, named = _import_clause(m.group(2))
            var = module_var(spec)
            imports.append(f"var {var} = {req(spec)};")
            if default:
                imports.append(f"var {var}_default = require.interop({var});")
                refs[default] = f"{var}_default.default"
            if namespace:
                imports.append(f"var {namespace} = {var};")
            for imported, local in named:
                refs[local] = f"{var}.{imported}"
            return m.group(1)

        def import_bare(m: re.Match) -> str:
            imports.append(f"{req(specifier(m.group(2)))};")
            return m.group(1)

        # Plain require() first; the rewrites below emit already-resolved ids
        code = _REQUIRE_RE.sub(require_call, code)
        is_esm = False
        for pattern, repl in (
            (_EXPORT_FROM_RE, export_from),
            (_EXPORT_LIST_RE, export_list),
            (_EXPORT_DEFAULT_DECL_RE, export_default_decl),
            (_EXPORT_DEFAULT_RE, export_default),
            (_EXPORT_DECL_RE, export_decl),
            (_IMPORT_FROM_RE, import_from),
            (_IMPORT_BARE_RE, import_bare),
        ):
            code, count = pattern.subn(repl, code)
            is_esm = is_esm or count > 0

        if not is_esm:
            return unmask(code, hidden)
        header = ['Object.defineProperty(exports, "__esModule", { value: true });']
        header += [
            f"require.d(exports, {literal(json.dumps(name))}, function () {{ return {local}; }});"
            for name, local in getters
        ]
        header += imports
        code = link_imports("\n".join(header) + "\n" + code, refs)
        return unmask(code, hidden)

    def collect(self) -> List[Module]:
        self._queue = [self.entry]
        while self._queue:
            path = self._queue.pop(0)
            if path in self.modules:
                continue
            module = Module(id=self.module_id(path), path=path)
            self.modules[path] = module
            module.code = self.transform(module, path.read_text(encoding="utf-8"))
        return list(self.modules.values())

    def bundle(self) -> str:
        modules = self.collect()
        chunks = [
            f"/***/ {json.dumps(m.id)}:\n"
            f"/***/ (function (module, exports, require) {{\n"
            f"{m.code.rstrip()}\n"
            f"/***/ }})"
            for m in modules
        ]
        entry_id = json.dumps(self.module_id(self.entry))
        return _RUNTIME.replace("__ENTRY__", entry_id).replace(
            "__MODULES__", ",\n\n".join(chunks)
        )


def bundle(entry: Path | str, root: Path | str | None = None) -> str:
    return Bundler(entry, root).bundle()
