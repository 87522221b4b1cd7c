from __future__ import annotations

import re
from pathlib import Path
from typing import List


INDEX_NAME = "_index.j2"


def identifier(rel: Path) -> str:
    """`forms/text-input.j2` -> `forms_text_input`."""
    name = rel.as_posix().split(".")[0]
    ident = re.sub(r"\W+", "_", name).strip("_")
    if not ident or ident[0].isdigit():
        ident = "c_" + ident
    return ident


def components(folder: Path, ext: str = "j2") -> List[Path]:
    folder = Path(folder)
    return sorted(
        p
        for p in folder.rglob(f"*.{ext}")
        if p.is_file() and not p.name.startswith("_index.")
    )


def render_index(folder: Path, ext: str = "j2") -> str:
    """Build the index source importing every component of `folder`.

    Component paths are written relative to the folder's parent, which is the
    template search path the views are rendered with.
    """
    folder = Path(folder)
    lines = []
    for comp in components(folder, ext):
        rel = comp.relative_to(folder)
        ident = identifier(rel)
        target = f"{folder.name}/{rel.as_posix()}"
        lines.append(
            f'{{% import "{target}" as _{ident} %}}{{% set {ident} = _{ident} %}}'
        )
    return "\n".join(lines) + "\n" if lines else ""


def write_index(folder: Path, ext: str = "j2") -> bool:
    """Write `<folder>/_index.j2`; returns False when the content was unchanged."""
    folder = Path(folder)
    if not folder.is_dir():
        raise FileNotFoundError(f"Component folder not found: {folder}")
    index = folder / INDEX_NAME
    content = render_index(folder, ext)
    if index.exists() and index.read_text(encoding="utf-8") == content:
        return False
    index.write_text(content, encoding="utf-8")
    return True
