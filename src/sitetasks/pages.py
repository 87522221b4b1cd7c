"""HTML pages.

Renders every view under `pages/views/` with the site locals, tidies the markup
and writes it to the destination at its pretty URL (`about.html.j2` is served from
`about/index.html`). Views import the component index with
`{% import "mixins/_index.j2" as mixins %}`.
"""

from __future__ import annotations

from pathlib import Path, PurePosixPath
from typing import List

from sitebuild import task
from sitebuild.logging import get_logger
from sitebuild.utils import dest_dir, src_path, template_locals
from sitetools.indexer import write_index
from sitetools.templates import output_name, render, tidy_html
from sitetools.urls import page_url, pretty_path


def views(params: dict) -> List[Path]:
    views_dir = Path(src_path(params, "pages", "views"))
    return sorted(views_dir.rglob("*.html.j2")) if views_dir.is_dir() else []


def view_target(params: dict, view: Path) -> PurePosixPath:
    """Destination-relative path of a rendered view."""
    views_dir = Path(src_path(params, "pages", "views"))
    rel = PurePosixPath(view.relative_to(views_dir).parent.as_posix(), output_name(view))
    return pretty_path(rel)


def page_urls(params: dict) -> List[str]:
    return [page_url(view_target(params, v)) for v in views(params)]


@task(
    name="pages.index",
    inputs=lambda p: [
        f"{src_path(p, 'pages', 'mixins')}/**/*.j2",
        "!**/_index.j2",
    ],
    outputs=lambda p: [src_path(p, "pages", "mixins", "_index.j2")],
)
def pages_index(params: dict):
    folder = Path(src_path(params, "pages", "mixins"))
    if write_index(folder):
        get_logger("sitetasks.pages").info("Updated component index %s", folder)


@task(
    name="pages.compile",
    inputs=lambda p: [f"{src_path(p, 'pages')}/**/*.j2"],
    outputs=lambda p: [
        f"{dest_dir(p)}/{view_target(p, v).as_posix()}" for v in views(p)
    ],
)
def pages_compile(params: dict):
    logger = get_logger("sitetasks.pages")
    search_path = Path(src_path(params, "pages"))
    found = views(params)
    if not found:
        logger.warning("No views under %s", search_path / "views")
    for view in found:
        target = view_target(params, view)
        context = dict(template_locals(params), page=page_url(target))
        html = tidy_html(render(view, search_path, context))
        out = Path(dest_dir(params)) / target
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(html, encoding="utf-8")
        logger.debug("Rendered %s -> %s", view, out)
    logger.info("Rendered %d pages", len(found))
