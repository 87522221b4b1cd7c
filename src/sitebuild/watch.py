"""Watch rules and the live-reload dev server.

Each rule watches a source folder and reruns a pipeline target when a matching file
changes. Rules sharing a folder are registered as one entry and run in order. The
livereload server serves the destination folder and reloads connected browsers
once the rebuild callback returns.
"""

from __future__ import annotations

import fnmatch
import os
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from livereload import Server

from .core import TaskSpec
from .logging import get_logger
from .pipelines import build_pipeline
from .utils import _get, dest_dir, src_path


log = get_logger("sitebuild.watch")


@dataclass
class WatchRule:
    folder: str
    target: str
    include: List[str]
    ignore: List[str] = field(default_factory=list)

    def ignores(self, filename: str) -> bool:
        name = os.path.basename(filename)
        if any(fnmatch.fnmatch(name, pat) for pat in self.ignore):
            return True
        return not any(fnmatch.fnmatch(name, pat) for pat in self.include)


def watch_rules(params: dict) -> List[WatchRule]:
    return [
        WatchRule(src_path(params, "json"), "json", ["*.j2"], ["_index.*"]),
        WatchRule(src_path(params, "pages"), "pages", ["*.j2"], ["_index.*"]),
        WatchRule(src_path(params, "scss"), "styles.shorthand", ["%*"]),
        WatchRule(
            src_path(params, "scss"),
            "styles.compile",
            ["*.scss", "*.sass"],
            ["%*", "_index.*"],
        ),
        WatchRule(src_path(params, "js"), "js", ["*.js", "*.json"]),
        WatchRule(src_path(params, "meta"), "meta", ["*"]),
    ]


@dataclass
class FolderWatch:
    """Every rule for one folder, registered with livereload as a single entry."""

    folder: str
    rules: List[WatchRule]

    @property
    def targets(self) -> List[str]:
        return [rule.target for rule in self.rules]

    def ignores(self, filename: str) -> bool:
        return all(rule.ignores(filename) for rule in self.rules)


def folder_watches(params: dict) -> List[FolderWatch]:
    """Group the watch rules by folder, keeping rule order.

    livereload keys its watch entries by path, so a second entry for the same
    folder would replace the first.
    """
    grouped: Dict[str, FolderWatch] = {}
    for rule in watch_rules(params):
        grouped.setdefault(rule.folder, FolderWatch(rule.folder, [])).rules.append(rule)
    return list(grouped.values())


def make_rebuild(
    targets: List[str], specs: Dict[str, TaskSpec], params: dict
) -> Callable[[], None]:
    def rebuild() -> None:
        for target in targets:
            log.info("Change detected, running %s", target)
            try:
                build_pipeline(target, specs).run(params=params)
            except Exception:  # noqa: BLE001
                log.exception("Rebuild of %s failed; still watching", target)

    return rebuild


def create_server(params: dict, specs: Dict[str, TaskSpec]) -> Server:
    server = Server()
    delay = _get(params, "server", "delay", default=None)
    for entry in folder_watches(params):
        if not os.path.isdir(entry.folder):
            log.warning("Not watching %s (folder missing)", entry.folder)
            continue
        server.watch(
            entry.folder,
            make_rebuild(entry.targets, specs, params),
            delay=delay,
            ignore=entry.ignores,
        )
        log.info("Watching %s -> %s", entry.folder, ", ".join(entry.targets))
    return server


def serve(
    params: dict,
    specs: Dict[str, TaskSpec],
    host: Optional[str] = None,
    port: Optional[int] = None,
    open_browser: Optional[bool] = None,
) -> None:
    server = create_server(params, specs)
    host = host or _get(params, "server", "host", default="127.0.0.1")
    port = port or int(_get(params, "server", "port", default=3000))
    if open_browser is None:
        open_browser = bool(_get(params, "server", "open_browser", default=False))
    log.info("Serving %s at http://%s:%d/", dest_dir(params), host, port)
    server.serve(
        root=dest_dir(params),
        host=host,
        port=port,
        open_url_delay=1 if open_browser else None,
    )
