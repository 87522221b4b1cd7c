"""Script bundle: `js/app.js` and its imports -> `<dest>/js/app.js`."""

from __future__ import annotations

from pathlib import Path

from sitebuild import task
from sitebuild.logging import get_logger
from sitebuild.utils import dest_path, src_path
from sitetools.bundler import Bundler


@task(
    name="js.bundle",
    inputs=lambda p: [f"{src_path(p, 'js')}/**/*.js", f"{src_path(p, 'js')}/**/*.json"],
    outputs=lambda p: [dest_path(p, "js", "app.js")],
)
def js_bundle(params: dict):
    logger = get_logger("sitetasks.scripts")
    bundler = Bundler(src_path(params, "js", "app.js"))
    code = bundler.bundle()
    out = Path(dest_path(params, "js", "app.js"))
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(code, encoding="utf-8")
    logger.info("Bundled %d modules -> %s", len(bundler.modules), out)
