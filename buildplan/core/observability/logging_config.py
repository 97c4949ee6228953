"""
Logging configuration for the buildplan CLI.

main.py calls setup_logging() once per invocation; modules log through
``logging.getLogger(__name__)`` and inherit it.

Console level precedence:
    --debug / -v / -q  >  BUILDPLAN_LOG_LEVEL  >  WARNING

BUILDPLAN_LOG_FILE adds a file handler at BUILDPLAN_LOG_FILE_LEVEL
(default: the console level).
"""

from __future__ import annotations

import logging
import sys

# (format, datefmt) per console level; anything above INFO prints the bare message
_CONSOLE_FORMATS = {
    logging.DEBUG: ("%(asctime)s %(levelname)-5s %(name)s:%(lineno)d: %(message)s", "%H:%M:%S"),
    logging.INFO: ("%(asctime)s [%(name)s] %(message)s", "%H:%M:%S"),
}
_FMT_PLAIN = "%(message)s"

_FMT_FILE = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d: %(message)s"
_DATEFMT_FILE = "%Y-%m-%d %H:%M:%S"


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
) -> None:
    """Install the console handler, plus a file handler when asked.

    Args:
        level: Console level name. Unknown names fall back to WARNING.
        log_file: Optional path of a log file to append to.
        log_file_level: Level for the log file; defaults to ``level``.
    """
    console_level = _parse_level(level)
    fmt, datefmt = _console_format(console_level)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(logging.Formatter(fmt, datefmt=datefmt))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(console)

    root_level = console_level
    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else console_level
        root_level = min(root_level, file_level)

        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(file_level)
        file_handler.setFormatter(logging.Formatter(_FMT_FILE, datefmt=_DATEFMT_FILE))
        root.addHandler(file_handler)

    root.setLevel(root_level)

    # Handler failures are reported on stderr, never raised into a command
    logging.raiseExceptions = False


def _console_format(level: int) -> tuple[str, str | None]:
    for threshold in (logging.DEBUG, logging.INFO):
        if level <= threshold:
            return _CONSOLE_FORMATS[threshold]
    return _FMT_PLAIN, None


def _parse_level(level: str | None) -> int:
    if not level:
        return logging.WARNING
    numeric = getattr(logging, level.upper(), None)
    return numeric if isinstance(numeric, int) else logging.WARNING
