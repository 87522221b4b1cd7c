"""Stylesheets.

`styles.shorthand` expands `%name.scss` sources into `_name.scss` partials next
to them; `styles.compile` compiles each top-level stylesheet to `css/<name>.css`
and a minified `css/<name>.min.css` in the destination.
"""

from __future__ import annotations

from pathlib import Path
from typing import List

from sitebuild import task
from sitebuild.logging import get_logger
from sitebuild.utils import dest_path, src_path
from sitetools import shorthand
from sitetools.styles import (
    STYLE_SUFFIXES,
    compile_stylesheet,
    is_entry_stylesheet,
    minify,
)


def shorthand_sources(params: dict) -> List[Path]:
    scss_dir = Path(src_path(params, "scss"))
    if not scss_dir.is_dir():
        return []
    return sorted(
        p for p in scss_dir.rglob("%*") if p.is_file() and p.suffix in STYLE_SUFFIXES
    )


def entry_stylesheets(params: dict) -> List[Path]:
    scss_dir = Path(src_path(params, "scss"))
    if not scss_dir.is_dir():
        return []
    return sorted(p for p in scss_dir.iterdir() if p.is_file() and is_entry_stylesheet(p))


@task(
    name="styles.shorthand",
    inputs=lambda p: [f"{src_path(p, 'scss')}/**/%*"],
    outputs=lambda p: [str(shorthand.partial_path(s)) for s in shorthand_sources(p)],
)
def styles_shorthand(params: dict):
    logger = get_logger("sitetasks.styles")
    for source in shorthand_sources(params):
        target = shorthand.partial_path(source)
        target.write_text(
            shorthand.expand(source.read_text(encoding="utf-8")), encoding="utf-8"
        )
        logger.info("Expanded %s -> %s", source, target.name)


@task(
    name="styles.compile",
    inputs=lambda p: [
        f"{src_path(p, 'scss')}/**/*.scss",
        f"{src_path(p, 'scss')}/**/*.sass",
        f"{src_path(p, 'scss')}/**/*.css",
        "!**/%*",
    ],
    outputs=lambda p: [
        dest_path(p, "css", f"{s.stem}{suffix}")
        for s in entry_stylesheets(p)
        for suffix in (".css", ".min.css")
    ],
)
def styles_compile(params: dict):
    logger = get_logger("sitetasks.styles")
    css_dir = Path(dest_path(params, "css"))
    css_dir.mkdir(parents=True, exist_ok=True)
    for sheet in entry_stylesheets(params):
        css = compile_stylesheet(sheet)
        (css_dir / f"{sheet.stem}.css").write_text(css, encoding="utf-8")
        (css_dir / f"{sheet.stem}.min.css").write_text(minify(css), encoding="utf-8")
        logger.info("Compiled %s -> css/%s.css", sheet.name, sheet.stem)
