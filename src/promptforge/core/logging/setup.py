from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from .json_formatter import JSONFormatter

ROOT_LOGGER = "promptforge"
_MARKER = "_promptforge_json_logging"
_QUIET_LOGGERS = ("httpx", "httpcore")


def _env_level() -> int:
    name = os.getenv("PROMPTFORGE_LOG_LEVEL", "INFO").strip().upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def _file_logging_on() -> bool:
    return os.getenv("PROMPTFORGE_LOG_TO_FILE", "off").strip().casefold() == "on"


def _attach(logger: logging.Logger, handler: logging.Handler, formatter: logging.Formatter) -> None:
    handler.setFormatter(formatter)
    setattr(handler, _MARKER, True)
    logger.addHandler(handler)


def _owned(logger: logging.Logger) -> list[logging.Handler]:
    return [h for h in logger.handlers if getattr(h, _MARKER, False)]


def _log_file(log_dir: Path | None) -> Path:
    directory = Path(os.getenv("PROMPTFORGE_LOG_DIR") or log_dir or Path.cwd() / "logs").expanduser()
    directory.mkdir(parents=True, exist_ok=True)
    return directory / "promptforge.log"


def configure_logging(log_dir: Path | None = None) -> logging.Logger:
    """Route ``promptforge.*`` records to stdout as JSON, plus a rotating file when enabled.

    Safe to call repeatedly: handlers this function attached earlier are reused.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(_env_level())
    logger.propagate = False

    formatter = JSONFormatter()
    owned = _owned(logger)

    if not any(not isinstance(h, RotatingFileHandler) for h in owned):
        _attach(logger, logging.StreamHandler(stream=sys.stdout), formatter)

    if _file_logging_on():
        path = _log_file(log_dir)
        if not any(isinstance(h, RotatingFileHandler) and Path(h.baseFilename) == path for h in owned):
            rotating = RotatingFileHandler(
                filename=path,
                maxBytes=int(os.getenv("PROMPTFORGE_LOG_MAX_BYTES", "5000000")),
                backupCount=int(os.getenv("PROMPTFORGE_LOG_BACKUP_COUNT", "5")),
                encoding="utf-8",
            )
            _attach(logger, rotating, formatter)

    # transport libraries would otherwise echo request lines at INFO
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return logger
