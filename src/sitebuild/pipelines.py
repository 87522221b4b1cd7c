"""Named task groups, run in series."""

from __future__ import annotations

from typing import Dict, List

from .core import Pipeline, TaskSpec


GROUPS: Dict[str, List[str]] = {
    "meta": ["meta.sitemap", "meta.robots", "meta.favicon"],
    "json": ["json.index", "json.compile"],
    "pages": ["pages.index", "pages.compile"],
    "styles": ["styles.shorthand", "styles.compile"],
    "js": ["js.bundle"],
    "build": ["meta", "json", "pages", "styles", "js"],
}


def expand_target(target: str, specs: Dict[str, TaskSpec]) -> List[str]:
    """Flatten a group or task name into the ordered list of task names."""
    if target in GROUPS:
        steps: List[str] = []
        for member in GROUPS[target]:
            for step in expand_target(member, specs):
                if step not in steps:
                    steps.append(step)
        return steps
    if target in specs:
        return [target]
    raise KeyError(f"Unknown target: {target}")


def series(steps: List[str]) -> List[tuple[str, str]]:
    return list(zip(steps, steps[1:]))


def build_pipeline(target: str, specs: Dict[str, TaskSpec]) -> Pipeline:
    steps = expand_target(target, specs)
    missing = [s for s in steps if s not in specs]
    if missing:
        raise KeyError("Missing required tasks: " + ", ".join(missing))
    return Pipeline(
        tasks={s: specs[s] for s in steps}, edges=series(steps), name=target
    )
