"""Small helpers for building site paths and template locals from config params."""

from __future__ import annotations

from datetime import date
from typing import Dict


DEFAULT_ROOT = "https://example.com/"


def _get(d: Dict, *keys, default=None):
    cur = d
    for k in keys:
        if not isinstance(cur, dict):
            return default
        cur = cur.get(k)
        if cur is None:
            return default
    return cur


def src_dir(p: Dict) -> str:
    return str(_get(p, "site", "src_dir", default="site")).rstrip("/")


def dest_dir(p: Dict) -> str:
    return str(_get(p, "site", "dest_dir", default="docs")).rstrip("/")


def src_path(p: Dict, *parts: str) -> str:
    return "/".join([src_dir(p), *parts])


def dest_path(p: Dict, *parts: str) -> str:
    return "/".join([dest_dir(p), *parts])


def site_root(p: Dict) -> str:
    root = str(_get(p, "site", "root", default=DEFAULT_ROOT))
    return root if root.endswith("/") else root + "/"


def lastmod(p: Dict) -> str:
    return str(_get(p, "site", "lastmod", default=date.today().isoformat()))


def template_locals(p: Dict) -> Dict[str, str]:
    return {"root": site_root(p), "lastmod": lastmod(p)}


def runs_dir(p: Dict) -> str:
    return _get(p, "project", "runs_dir", default=".sitebuild/runs")


def cache_dir(p: Dict) -> str:
    return _get(p, "project", "cache_dir", default=".sitebuild/cache")
