# src/ai_diary/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path

LOG_FILE_NAME = "ai_diary.log"

# Console floors by logger-name prefix, first match wins.
# Request/response chatter of the REST service only goes to the file.
_CONSOLE_FLOORS: tuple[tuple[str, int], ...] = (
    ("ai_diary.remote.rest_service", logging.WARNING),
    ("ai_diary.", logging.NOTSET),
)
# httpx, py.warnings and anything else third-party.
_DEFAULT_CONSOLE_FLOOR = logging.ERROR

# Transport libraries too chatty even for the debug file.
_CHATTY_LIBS = ("httpx", "httpcore")


class _ConsoleNoiseFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        for prefix, floor in _CONSOLE_FLOORS:
            if record.name.startswith(prefix):
                return record.levelno >= floor
        return record.levelno >= _DEFAULT_CONSOLE_FLOOR


def parse_level(value: str | int, default: int = logging.INFO) -> int:
    """'debug' / 'INFO' / 10 -> logging level; unknown names give `default`."""
    if isinstance(value, int):
        return value
    level = getattr(logging, str(value).strip().upper(), None)
    return level if isinstance(level, int) else default


def setup_logging(
    *,
    log_dir: str | Path = ".local/ai_diary",
    console_level: str | int = logging.INFO,
    file_level: str | int = logging.DEBUG,
) -> Path:
    """
    Console (filtered) + file (full) logging on the root logger.

    Replaces any handlers already installed, so calling it twice does not
    duplicate output. Returns the log file path.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_NAME

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(parse_level(console_level))
    console.setFormatter(fmt)
    console.addFilter(_ConsoleNoiseFilter())
    root.addHandler(console)

    to_file = logging.FileHandler(log_file, encoding="utf-8")
    to_file.setLevel(parse_level(file_level, logging.DEBUG))
    to_file.setFormatter(fmt)
    root.addHandler(to_file)

    for name in _CHATTY_LIBS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.captureWarnings(True)
    return log_file
