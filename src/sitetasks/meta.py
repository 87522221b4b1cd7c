"""Site metadata: sitemap, robots.txt and favicon."""

from __future__ import annotations

from pathlib import Path

from sitebuild import task
from sitebuild.logging import get_logger
from sitebuild.utils import dest_path, site_root, src_path, template_locals
from sitetools.templates import render

from .pages import page_urls


ROBOTS_PLACEHOLDER = "https://root/"


def _write(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


@task(
    name="meta.sitemap",
    inputs=lambda p: [
        src_path(p, "meta", "sitemap.xml.j2"),
        f"{src_path(p, 'pages', 'views')}/**/*.html.j2",
    ],
    outputs=lambda p: [dest_path(p, "sitemap.xml")],
)
def sitemap(params: dict):
    """Render the sitemap with the site root, lastmod date and every page URL."""
    logger = get_logger("sitetasks.meta")
    source = Path(src_path(params, "meta", "sitemap.xml.j2"))
    if not source.exists():
        raise FileNotFoundError(f"Sitemap template not found: {source}")
    context = dict(template_locals(params), pages=page_urls(params))
    out = Path(dest_path(params, "sitemap.xml"))
    _write(out, render(source, source.parent, context))
    logger.info("Wrote %s (%d pages)", out, len(context["pages"]))


@task(
    name="meta.robots",
    inputs=lambda p: [src_path(p, "meta", "robots.txt")],
    outputs=lambda p: [dest_path(p, "robots.txt")],
)
def robots(params: dict):
    source = Path(src_path(params, "meta", "robots.txt"))
    text = source.read_text(encoding="utf-8")
    _write(
        Path(dest_path(params, "robots.txt")),
        text.replace(ROBOTS_PLACEHOLDER, site_root(params)),
    )


@task(
    name="meta.favicon",
    inputs=lambda p: [src_path(p, "meta", "favicon.svg.j2")],
    outputs=lambda p: [dest_path(p, "favicon.svg")],
)
def favicon(params: dict):
    source = Path(src_path(params, "meta", "favicon.svg.j2"))
    if not source.exists():
        raise FileNotFoundError(f"Favicon template not found: {source}")
    _write(
        Path(dest_path(params, "favicon.svg")),
        render(source, source.parent, template_locals(params)),
    )
