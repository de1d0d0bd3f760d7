"""Logging setup shared by the library and the CLI. Stdlib only.

Console output goes to stderr because the CLI prints its results as JSON on
stdout. A daily DEBUG-level file under LOG_DIR keeps collaborator payloads
and tracebacks that are never shown to callers.
"""
from __future__ import annotations

import logging
import os
import sys
from datetime import datetime
from pathlib import Path

_DEFAULT_LOG_DIR = Path(__file__).resolve().parent.parent / "logs"
_FORMAT = "%(asctime)s  %(levelname)-8s  %(name)s  %(message)s"
_DATE_FMT = "%Y-%m-%d %H:%M:%S"
_console: logging.Handler | None = None
_configured = False


def get_logger(name: str) -> logging.Logger:
    """Return a named logger; installs the handlers on first use."""
    global _configured
    if not _configured:
        _configure()
        _configured = True
    return logging.getLogger(name)


def set_level(level_name: str) -> None:
    """Change the console verbosity after startup (e.g. from ``--verbose``)."""
    level = getattr(logging, level_name.upper(), logging.INFO)
    get_logger(__name__)
    logging.getLogger().setLevel(min(level, logging.getLogger().level))
    if _console is not None:
        _console.setLevel(level)


def _file_handler() -> logging.Handler | None:
    log_dir = Path(os.environ.get("LOG_DIR", "") or _DEFAULT_LOG_DIR)
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file = log_dir / f"talentmatch_{datetime.now().strftime('%Y-%m-%d')}.log"
        handler = logging.FileHandler(log_file, encoding="utf-8")
    except OSError:
        return None
    handler.setLevel(logging.DEBUG)
    return handler


def _configure() -> None:
    global _console
    level = getattr(logging, os.environ.get("LOG_LEVEL", "INFO").upper(), logging.INFO)

    root = logging.getLogger()
    if root.handlers:
        # Host application (or pytest) already owns logging.
        return

    formatter = logging.Formatter(_FORMAT, datefmt=_DATE_FMT)
    for noisy in ("httpx", "httpcore", "openai"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    _console = logging.StreamHandler(sys.stderr)
    _console.setLevel(level)
    _console.setFormatter(formatter)
    root.addHandler(_console)

    fh = _file_handler()
    if fh is not None:
        fh.setFormatter(formatter)
        root.addHandler(fh)
        root.setLevel(logging.DEBUG)
    else:
        root.setLevel(level)
