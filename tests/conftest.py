"""Test fixtures for the site build."""

import shutil
from pathlib import Path

import pytest


EXAMPLE_SITE = Path(__file__).resolve().parents[1] / "site"


@pytest.fixture
def params(tmp_path):
    """Config params pointing every folder into a temporary directory."""
    return {
        "project": {
            "runs_dir": str(tmp_path / ".sitebuild" / "runs"),
            "cache_dir": str(tmp_path / ".sitebuild" / "cache"),
        },
        "site": {
            "root": "https://docs.example.org/",
            "src_dir": str(tmp_path / "site"),
            "dest_dir": str(tmp_path / "docs"),
            "lastmod": "2024-01-02",
        },
    }


@pytest.fixture
def example_site(tmp_path, params):
    """A copy of the repository's example site sources."""
    shutil.copytree(EXAMPLE_SITE, tmp_path / "site")
    return tmp_path / "site"


@pytest.fixture
def write(tmp_path):
    """Write a text file below tmp_path, creating folders as needed."""

    def _write(rel: str, text: str) -> Path:
        path = tmp_path / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path

    return _write
