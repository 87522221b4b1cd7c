"""Placeholder shorthand for stylesheets.

A `%buttons.scss` source declares plain class rules. Each top-level rule whose
selector is a single class is expanded into a placeholder plus a class that extends
it, so other stylesheets can `@extend %btn` without pulling in the `.btn` selector:

    .btn { color: red; }

becomes

    %btn { color: red; }
    .btn { @extend %btn; }

Everything else (variables, `@use`, comments, compound selectors) is copied as is.
"""

from __future__ import annotations

import re
from pathlib import Path


_CLASS_SELECTOR_RE = re.compile(r"^\.(-?[_a-zA-Z][\w-]*)$")


def _skip_string(text: str, i: int) -> int:
    quote = text[i]
    i += 1
    while i < len(text) and text[i] != quote:
        i += 2 if text[i] == "\\" else 1
    return i + 1


def _skip_comment(text: str, i: int) -> int:
    if text.startswith("//", i):
        end = text.find("\n", i)
        return len(text) if end == -1 else end
    end = text.find("*/", i + 2)
    return len(text) if end == -1 else end + 2


def _block_end(text: str, i: int) -> int:
    """Index just past the `}` matching the `{` at `i`."""
    depth = 0
    while i < len(text):
        ch = text[i]
        if ch in "\"'":
            i = _skip_string(text, i)
            continue
        if text.startswith("//", i) or text.startswith("/*", i):
            i = _skip_comment(text, i)
            continue
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return i + 1
        i += 1
    raise ValueError("Unbalanced braces in stylesheet")


def expand(text: str) -> str:
    out = []
    i = 0
    start = 0  # start of the current top-level statement
    while i < len(text):
        ch = text[i]
        if ch in "\"'":
            i = _skip_string(text, i)
        elif text.startswith("//", i) or text.startswith("/*", i):
            if not text[start:i].strip():
                end = _skip_comment(text, i)
                out.append(text[start:end])
                start = i = end
            else:
                i = _skip_comment(text, i)
        elif ch == ";":
            out.append(text[start : i + 1])
            start = i = i + 1
        elif ch == "{":
            end = _block_end(text, i)
            prelude = text[start:i]
            body = text[i:end]
            selector = prelude.strip()
            m = _CLASS_SELECTOR_RE.match(selector)
            if m:
                lead = prelude[: len(prelude) - len(prelude.lstrip())]
                name = m.group(1)
                out.append(f"{lead}%{name} {body}\n.{name} {{ @extend %{name}; }}")
            else:
                out.append(text[start:end])
            start = i = end
        elif ch == "}":
            raise ValueError("Unbalanced braces in stylesheet")
        else:
            i += 1
    out.append(text[start:])
    return "".join(out)


def partial_path(source: Path) -> Path:
    """`%buttons.scss` -> `_buttons.scss` in the same folder."""
    source = Path(source)
    return source.with_name(source.name.replace("%", "_"))
