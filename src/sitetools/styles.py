from __future__ import annotations

from pathlib import Path
from typing import Iterable

import rcssmin
import sass


STYLE_SUFFIXES = (".scss", ".sass", ".css")


def is_entry_stylesheet(path: Path) -> bool:
    """Top-level stylesheets compile on their own; partials and shorthand sources do not."""
    path = Path(path)
    return path.suffix in STYLE_SUFFIXES and not path.name.startswith(("_", "%"))


def compile_stylesheet(path: Path, include_paths: Iterable[Path] = ()) -> str:
    path = Path(path)
    return sass.compile(
        filename=str(path),
        include_paths=[str(p) for p in [path.parent, *include_paths]],
        output_style="expanded",
    )


def minify(css: str) -> str:
    return rcssmin.cssmin(css)
