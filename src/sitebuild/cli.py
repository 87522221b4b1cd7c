from __future__ import annotations

import importlib
import os
import pkgutil
from datetime import date
from pathlib import Path
from typing import Dict, Optional

import typer
import yaml
from dotenv import find_dotenv, load_dotenv

from .core import Pipeline, TaskSpec
from .logging import configure, get_logger
from .pipelines import GROUPS, build_pipeline
from . import watch as watch_mod

# .env is read from the working directory before any logger is used
load_dotenv(find_dotenv(usecwd=True))
configure()

app = typer.Typer(add_completion=False, help="Build and serve the documentation site")
log = get_logger("sitebuild.cli")

DEFAULT_CONFIG = "configs/site.yaml"
ENV_OVERRIDES = {
    "SITE_ROOT": ("site", "root"),
    "SITE_SRC_DIR": ("site", "src_dir"),
    "SITE_DEST_DIR": ("site", "dest_dir"),
}


def load_config(path: str | Path) -> dict:
    """Read the YAML config, apply environment overrides and fill in `site.lastmod`."""
    p = Path(path)
    if p.exists():
        with open(p, "r", encoding="utf-8") as f:
            params = yaml.safe_load(f) or {}
    else:
        log.warning("Config %s not found, using defaults", p)
        params = {}
    for var, (section, key) in ENV_OVERRIDES.items():
        value = os.getenv(var)
        if value:
            params.setdefault(section, {})[key] = value
    params.setdefault("site", {}).setdefault("lastmod", date.today().isoformat())
    return params


def discover_tasks() -> Dict[str, TaskSpec]:
    """Import all modules in `sitetasks` package and collect decorated functions."""
    tasks_pkg = "sitetasks"
    specs: Dict[str, TaskSpec] = {}
    try:
        pkg = importlib.import_module(tasks_pkg)
    except ModuleNotFoundError:
        log.warning("No tasks package found.")
        return specs
    for m in pkgutil.iter_modules(pkg.__path__, prefix=f"{tasks_pkg}."):
        try:
            mod = importlib.import_module(m.name)
        except Exception as e:  # noqa: BLE001
            log.warning("Failed to import %s: %s", m.name, e)
            continue
        for attr_name in dir(mod):
            obj = getattr(mod, attr_name)
            spec = getattr(obj, "_task_spec", None)
            if isinstance(spec, TaskSpec):
                specs[spec.name] = spec
    return specs


def _force_set(force: str) -> set[str]:
    return set([x.strip() for x in force.split(",") if x.strip()])


def _run_target(
    target: str,
    config: str,
    force: str = "",
    from_step: str = "",
    until_step: str = "",
    retries: int = 0,
) -> None:
    specs = discover_tasks()
    try:
        pipe = build_pipeline(target, specs)
        pipe.select_steps(from_step or None, until_step or None, None)
    except (KeyError, ValueError) as e:
        typer.echo(e.args[0])
        raise typer.Exit(code=1)
    params = load_config(config)
    pipe.run(
        params=params,
        force=_force_set(force),
        from_step=from_step or None,
        until_step=until_step or None,
        retries=retries,
    )


@app.callback(invoke_without_command=True)
def main_callback(ctx: typer.Context):
    """Without a command, build the site then watch and serve it."""
    if ctx.invoked_subcommand is None:
        serve(config=DEFAULT_CONFIG, host="", port=0, open_browser=None)


@app.command("list")
def list_tasks():
    """List discovered tasks and task groups."""
    specs = discover_tasks()
    if not specs:
        typer.echo(
            "No tasks discovered. Create modules under `sitetasks/` and decorate functions with @task()."
        )
        raise typer.Exit(code=0)
    typer.echo("Discovered tasks:")
    for name in sorted(specs.keys()):
        typer.echo(f"- {name}")
    typer.echo("Groups:")
    for name, members in GROUPS.items():
        typer.echo(f"- {name}: {' → '.join(members)}")


@app.command()
def run_task(
    name: str = typer.Argument(..., help="Task name to run"),
    config: str = typer.Option(DEFAULT_CONFIG, help="Path to YAML config"),
    force: bool = typer.Option(False, help="Ignore cache for this task"),
    retries: int = typer.Option(0, help="Retries on failure"),
):
    """Run a single task by name."""
    specs = discover_tasks()
    if name not in specs:
        typer.echo(f"Task not found: {name}")
        raise typer.Exit(code=1)
    spec = specs[name]
    params = load_config(config)
    pipe = Pipeline(tasks={name: spec}, edges=[], name=f"task.{name}")
    pipe.run(
        params=params, force={name} if force else set(), only_step=name, retries=retries
    )


@app.command()
def run(
    target: str = typer.Argument(..., help="Group (meta, json, pages, styles, js, build) or task name"),
    config: str = typer.Option(DEFAULT_CONFIG, help="Path to YAML config"),
    force: str = typer.Option("", help="Comma-separated tasks to force"),
    from_step: str = typer.Option("", help="Start from this step name"),
    until_step: str = typer.Option("", help="Stop after this step name"),
    retries: int = typer.Option(0, help="Retries per task on failure"),
):
    """Run a task group in series."""
    _run_target(target, config, force, from_step, until_step, retries)


@app.command()
def build(
    config: str = typer.Option(DEFAULT_CONFIG, help="Path to YAML config"),
    force: str = typer.Option("", help="Comma-separated tasks to force"),
    retries: int = typer.Option(0, help="Retries per task on failure"),
):
    """Build every site artifact into the destination folder."""
    _run_target("build", config, force, retries=retries)


@app.command()
def watch(
    config: str = typer.Option(DEFAULT_CONFIG, help="Path to YAML config"),
    host: str = typer.Option("", help="Dev server host"),
    port: int = typer.Option(0, help="Dev server port"),
):
    """Rebuild on source changes and live-reload the served site."""
    params = load_config(config)
    watch_mod.serve(
        params, discover_tasks(), host=host or None, port=port or None, open_browser=False
    )


@app.command()
def serve(
    config: str = typer.Option(DEFAULT_CONFIG, help="Path to YAML config"),
    host: str = typer.Option("", help="Dev server host"),
    port: int = typer.Option(0, help="Dev server port"),
    open_browser: Optional[bool] = typer.Option(None, "--open/--no-open", help="Open a browser tab"),
):
    """Build, then watch and serve the site with live reload."""
    specs = discover_tasks()
    params = load_config(config)
    build_pipeline("build", specs).run(params=params)
    watch_mod.serve(
        params, specs, host=host or None, port=port or None, open_browser=open_browser
    )


def main():  # pragma: no cover
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
