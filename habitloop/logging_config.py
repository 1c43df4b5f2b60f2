"""Logging setup shared by the web app and the terminal UI."""

from __future__ import annotations

import logging
from pathlib import Path

from habitloop.workspace import load_settings

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def setup_logging(
    level: str | None = None,
    root: Path | None = None,
    log_file: Path | None = None,
) -> logging.Logger:
    """Configure the root logger from settings.yaml (or *level*).

    The terminal UI passes *log_file* so records do not draw over the screen.
    """
    if level is None:
        level = str(load_settings(root).get("log_level", "INFO"))
    kwargs = {}
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        kwargs["filename"] = str(log_file)
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        **kwargs,
    )
    return logging.getLogger("habitloop")
