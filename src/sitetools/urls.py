"""Pretty URLs for rendered pages.

`about.html` becomes `about/index.html` and underscores in a file name nest it
further, so `docs_intro.html` is served at `/docs/intro/`.
"""

from __future__ import annotations

from pathlib import PurePosixPath


KEEP_AS_IS = {"index", "404"}


def pretty_path(rel: PurePosixPath | str) -> PurePosixPath:
    rel = PurePosixPath(rel)
    if rel.suffix != ".html":
        return rel
    name = rel.stem
    if name in KEEP_AS_IS:
        return rel
    segments = [s for s in name.split("_") if s]
    return rel.parent.joinpath(*segments, "index.html")


def page_url(rel: PurePosixPath | str) -> str:
    """Site-relative URL of a page: `about/index.html` -> `about/`."""
    path = pretty_path(rel)
    if path.name == "index.html":
        parent = path.parent.as_posix()
        return "" if parent == "." else parent + "/"
    return path.as_posix()
