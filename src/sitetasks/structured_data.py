"""Structured data (JSON-LD) compiled from XML views.

Each `json/views/**/*.xml.j2` renders to XML, which is converted to JSON and
written twice to `json/output/`: minified as `<name>.min.json` and indented as
`<name>.json`. Elements named `at-type` come out as `@type`, and a single
top-level `<entity>` is unwrapped.
"""

from __future__ import annotations

from pathlib import Path
from typing import List

from sitebuild import task
from sitebuild.logging import get_logger
from sitebuild.utils import src_path, template_locals
from sitetools import xmljson
from sitetools.indexer import write_index
from sitetools.templates import render, stem


def views(params: dict) -> List[Path]:
    views_dir = Path(src_path(params, "json", "views"))
    return sorted(views_dir.rglob("*.xml.j2")) if views_dir.is_dir() else []


def _outputs(params: dict) -> List[str]:
    out_dir = src_path(params, "json", "output")
    outputs = []
    for view in views(params):
        outputs.append(f"{out_dir}/{stem(view)}.min.json")
        outputs.append(f"{out_dir}/{stem(view)}.json")
    return outputs


@task(
    name="json.index",
    inputs=lambda p: [
        f"{src_path(p, 'json', 'mixins')}/**/*.j2",
        "!**/_index.j2",
    ],
    outputs=lambda p: [src_path(p, "json", "mixins", "_index.j2")],
)
def json_index(params: dict):
    folder = Path(src_path(params, "json", "mixins"))
    if write_index(folder):
        get_logger("sitetasks.structured_data").info(
            "Updated component index %s", folder
        )


@task(
    name="json.compile",
    inputs=lambda p: [
        f"{src_path(p, 'json', 'views')}/**/*.j2",
        f"{src_path(p, 'json', 'mixins')}/**/*.j2",
    ],
    outputs=_outputs,
)
def json_compile(params: dict):
    logger = get_logger("sitetasks.structured_data")
    search_path = Path(src_path(params, "json"))
    out_dir = Path(src_path(params, "json", "output"))
    out_dir.mkdir(parents=True, exist_ok=True)
    for view in views(params):
        xml = render(view, search_path, template_locals(params))
        try:
            data = xmljson.convert(xml)
        except xmljson.ParseError as e:
            raise ValueError(f"{view} did not render to well-formed XML: {e}") from e
        name = stem(view)
        (out_dir / f"{name}.min.json").write_text(
            xmljson.dumps_min(data), encoding="utf-8"
        )
        (out_dir / f"{name}.json").write_text(
            xmljson.dumps_pretty(data), encoding="utf-8"
        )
        logger.info("Wrote %s/%s{.json,.min.json}", out_dir, name)
