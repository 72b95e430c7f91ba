"""Log sink setup for the ircd process."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

from .config import ServerRuntimeConfig

# Loggers that emit one DEBUG record per protocol line in or out.
WIRE_LOGGERS = ("ircd.session", "ircd.commands")

DEFAULT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def parse_level(value: Any, default: int) -> int:
    if isinstance(value, int):
        return value
    text = str(value or "").strip().upper()
    if not text:
        return default
    if text.isdigit():
        return int(text)
    # getLevelName maps known names (including WARN) to ints and
    # anything else to a "Level ..." string.
    level = logging.getLevelName(text)
    return level if isinstance(level, int) else default


def _file_handler(path: str) -> logging.Handler:
    p = Path(os.path.expanduser(path))
    p.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(p, encoding="utf-8")
    try:
        os.chmod(p, 0o600)
    except OSError:
        pass
    return handler


def configure_logging(
    cfg: ServerRuntimeConfig,
    *,
    override_level: str | None = None,
    override_file: str | None = None,
) -> int:
    """Install the root handlers for ircd and return the effective level.

    Replaces whatever root handlers were installed before. Per-line
    RX/TX records stay off unless ``log_wire`` is set, even at DEBUG, so a
    DEBUG run shows connection and registry events without every line.
    """
    level = parse_level(override_level or cfg.log_level, logging.INFO)

    log_file = override_file if override_file is not None else cfg.log_file
    handlers: list[logging.Handler] = []
    if cfg.log_console:
        handlers.append(logging.StreamHandler())
    if log_file and log_file.strip():
        handlers.append(_file_handler(log_file))

    formatter = logging.Formatter(
        fmt=(cfg.log_format or "").strip() or DEFAULT_FORMAT,
        datefmt=cfg.log_datefmt or None,
    )

    root = logging.getLogger()
    for h in list(root.handlers):
        root.removeHandler(h)
    for h in handlers:
        h.setFormatter(formatter)
        root.addHandler(h)
    root.setLevel(level)

    wire_level = logging.NOTSET if cfg.log_wire else max(level, logging.INFO)
    for name in WIRE_LOGGERS:
        logging.getLogger(name).setLevel(wire_level)

    logging.captureWarnings(True)
    return level
