"""In-repo task runner for the documentation site build.

Provides Task and Pipeline primitives, simple DAG scheduling, output caching, a
live-reload dev server and a Typer CLI. Task functions live in `sitetasks`.
"""

from .core import TaskSpec, Pipeline, task  # re-export for convenience

__all__ = ["TaskSpec", "Pipeline", "task"]
