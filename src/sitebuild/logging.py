"""Console and run-file logging for the site build.

Loggers are named after the module or pipeline step that owns them
(`sitebuild.cli`, `sitebuild.build.pages.compile`, `sitetasks.styles`). The console
handler is installed once; the level from `SITE_LOG_LEVEL` is applied to the
package loggers every time `configure` runs, so a level read from `.env` after
the first import still takes effect.
"""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path


FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
PACKAGES = ("sitebuild", "sitetasks", "sitetools")

_configured = False


def _as_level(value: int | str) -> int:
    if isinstance(value, int):
        return value
    level = logging.getLevelName(value.strip().upper())
    return level if isinstance(level, int) else logging.INFO


def configure(level: int | str | None = None) -> int:
    """Install the console handler once and set the package log level.

    Without an explicit `level`, `SITE_LOG_LEVEL` is read (default INFO).
    """
    global _configured
    level = _as_level(os.getenv("SITE_LOG_LEVEL", "INFO") if level is None else level)
    if not _configured:
        logging.basicConfig(level=level, format=FORMAT)
        _configured = True
    for name in PACKAGES:
        logging.getLogger(name).setLevel(level)
    return level


def attach_file(logger: logging.Logger, log_file: Path) -> None:
    """Send `logger` records to a rotating `log_file`.

    A logger writes to one file at a time; a handler for another file is closed.
    """
    target = os.path.abspath(log_file)
    for handler in list(logger.handlers):
        if not isinstance(handler, RotatingFileHandler):
            continue
        if handler.baseFilename == target:
            return
        logger.removeHandler(handler)
        handler.close()
    Path(target).parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        target, maxBytes=1_000_000, backupCount=3, encoding="utf-8"
    )
    handler.setFormatter(logging.Formatter(FORMAT))
    logger.addHandler(handler)


def get_logger(name: str, log_file: Path | None = None) -> logging.Logger:
    if not _configured:
        configure()
    logger = logging.getLogger(name)
    if log_file is not None:
        attach_file(logger, log_file)
    return logger
