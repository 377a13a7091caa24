"""Logging set-up: console output filtered by verbosity, everything to a file."""

from __future__ import annotations

import datetime
import enum
import logging
import sys
from dataclasses import dataclass
from pathlib import Path

_PACKAGE = __name__.rpartition(".")[0] or __name__
logger = logging.getLogger(__name__)


class LogLevel(enum.IntEnum):
    """Verbosity levels; PRT is display text that is never written to the log file."""

    DBG = logging.DEBUG
    INF = logging.INFO
    WRN = logging.WARNING
    ERR = logging.ERROR
    PRT = logging.CRITICAL + 10


_NAMES = {
    LogLevel.DBG: ("debug", "DBG", "dbg"),
    LogLevel.INF: ("info", "INF", "inf"),
    LogLevel.WRN: ("warn", "WRN", "wrn"),
    LogLevel.ERR: ("error", "ERR", "err"),
}


def _tag(levelno: int) -> str:
    for level in sorted(LogLevel, reverse=True):
        if levelno >= level:
            return level.name
    return LogLevel.DBG.name


class _ConsoleHandler(logging.Handler):
    """Writes plain messages to whatever sys.stdout currently is."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            sys.stdout.write(self.format(record) + "\n")
            sys.stdout.flush()
        except Exception:
            self.handleError(record)


class _FileFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        elapsed = record.relativeCreated / 1000.0
        return f"{elapsed:.6f} {record.funcName} [{_tag(record.levelno)}] {record.getMessage()}"


@dataclass
class _Handlers:
    console: _ConsoleHandler | None = None
    file: logging.FileHandler | None = None


_handlers = _Handlers()


def parse_verbosity(name: str) -> LogLevel:
    """Map a verbosity name to a level; unknown names fall back to INF."""
    for level, names in _NAMES.items():
        if name in names:
            return level
    logger.warning("Warning, verbosity (%s) not recognised! Defaulting to INFO.", name)
    return LogLevel.INF


def _package_logger() -> logging.Logger:
    pkg = logging.getLogger(_PACKAGE)
    pkg.setLevel(logging.DEBUG)
    if _handlers.console is None:
        _handlers.console = _ConsoleHandler()
        _handlers.console.setFormatter(logging.Formatter("%(message)s"))
        pkg.addHandler(_handlers.console)
    return pkg


def set_verbosity(name: str) -> LogLevel:
    """Set the console verbosity by name and return the chosen level."""
    _package_logger()
    level = parse_verbosity(name)
    _handlers.console.setLevel(level)
    return level


def configure_logging(name: str = "info", log_dir: str | Path | None = None) -> Path:
    """Log to the console at the given verbosity and everything but PRT to a new file.

    Returns the path of the log file.
    """
    pkg = _package_logger()
    directory = Path(log_dir) if log_dir is not None else Path.cwd()
    stamp = datetime.datetime.now().strftime("%Y%m%d_%H%M%S")
    path = directory / f"{_PACKAGE}-{stamp}.log"

    if _handlers.file is not None:
        pkg.removeHandler(_handlers.file)
        _handlers.file.close()
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(_FileFormatter())
    handler.addFilter(lambda record: record.levelno != LogLevel.PRT)
    pkg.addHandler(handler)
    _handlers.file = handler

    set_verbosity(name)
    sys.stdout.write(f"Initialised logging to {path}\n")
    return path