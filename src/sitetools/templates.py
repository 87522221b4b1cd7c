from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Dict

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape


TEMPLATE_SUFFIX = ".j2"

# Blocks whose whitespace is significant
_VERBATIM_RE = re.compile(
    r"(<(pre|script|textarea)\b.*?</\2\s*>)", re.IGNORECASE | re.DOTALL
)


def make_env(search_path: Path | str) -> Environment:
    return Environment(
        loader=FileSystemLoader(str(search_path)),
        autoescape=select_autoescape(
            # components must escape too, or their markup gets escaped by the caller
            enabled_extensions=("j2",),
            default_for_string=False,
        ),
        undefined=StrictUndefined,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )


def template_name(path: Path, search_path: Path | str) -> str:
    return Path(path).relative_to(search_path).as_posix()


def output_name(path: Path | str) -> str:
    """`about.html.j2` -> `about.html`."""
    name = Path(path).name
    return name[: -len(TEMPLATE_SUFFIX)] if name.endswith(TEMPLATE_SUFFIX) else name


def stem(path: Path | str) -> str:
    """File name up to its first dot: `person.xml.j2` -> `person`."""
    return Path(path).name.split(".")[0]


def render(path: Path, search_path: Path | str, context: Dict[str, Any]) -> str:
    env = make_env(search_path)
    return env.get_template(template_name(path, search_path)).render(**context)


def _tidy_chunk(chunk: str) -> str:
    lines = [line.rstrip() for line in chunk.split("\n")]
    return re.sub(r"\n{3,}", "\n\n", "\n".join(lines))


def tidy_html(text: str) -> str:
    """Strip trailing whitespace and collapse blank-line runs outside verbatim blocks."""
    parts = _VERBATIM_RE.split(text)
    out = []
    # split() yields text, block, tag-name triples
    for i in range(0, len(parts), 3):
        out.append(_tidy_chunk(parts[i]))
        if i + 1 < len(parts):
            out.append(parts[i + 1])
    return "".join(out).strip("\n") + "\n"
