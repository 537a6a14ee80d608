"""Logging configuration built around structlog JSON logging."""

from __future__ import annotations

import logging
import logging.config
import os
from pathlib import Path

import structlog

LOGGER_NAME = "agro_dashboard"
DASHBOARD_LOG = "dashboard.log"
ERROR_LOG = "error.log"
# dashboard.log rolls over at 5 MB, keeping three old files
MAX_LOG_BYTES = 5 * 1024 * 1024
LOG_BACKUPS = 3

_LOGGING_INITIALISED = False
_VERBOSE = False


def default_log_dir() -> Path:
    env_root = os.environ.get("AGRO_DASHBOARD_HOME")
    if env_root:
        return Path(env_root).expanduser().resolve() / "logs"
    return Path(__file__).resolve().parents[1] / "logs"


def _logging_config(log_dir: Path, verbose: bool) -> dict:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "()": "pythonjsonlogger.jsonlogger.JsonFormatter",
                "fmt": "%(asctime)s %(levelname)s %(name)s %(message)s",
            }
        },
        "handlers": {
            # stderr only, and quiet unless --verbose: stdout belongs to the rich tables
            "console": {
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stderr",
                "level": "DEBUG" if verbose else "WARNING",
                "formatter": "json",
            },
            "dashboard_file": {
                "class": "logging.handlers.RotatingFileHandler",
                "level": "INFO",
                "filename": str(log_dir / DASHBOARD_LOG),
                "maxBytes": MAX_LOG_BYTES,
                "backupCount": LOG_BACKUPS,
                "formatter": "json",
                "encoding": "utf-8",
            },
            "error_file": {
                "class": "logging.FileHandler",
                "level": "ERROR",
                "filename": str(log_dir / ERROR_LOG),
                "formatter": "json",
                "encoding": "utf-8",
            },
        },
        "loggers": {
            LOGGER_NAME: {
                "handlers": ["console", "dashboard_file", "error_file"],
                "level": "DEBUG" if verbose else "INFO",
                "propagate": False,
            },
        },
    }


def _enable_verbose() -> None:
    """Raise an already configured logger to debug output."""

    py_logger = logging.getLogger(LOGGER_NAME)
    py_logger.setLevel(logging.DEBUG)
    for handler in py_logger.handlers:
        if handler.get_name() == "console":
            handler.setLevel(logging.DEBUG)


def configure_logging(verbose: bool = False) -> structlog.BoundLogger:
    """Configure structlog + stdlib handlers and return the dashboard logger.

    Handlers are installed once per process. Components call this without
    arguments to get the shared logger; a later ``verbose=True`` (the CLI's
    ``--verbose``) still switches the console to debug output.
    """

    global _LOGGING_INITIALISED, _VERBOSE
    log_dir = default_log_dir()
    log_dir.mkdir(parents=True, exist_ok=True)
    for name in (DASHBOARD_LOG, ERROR_LOG):
        (log_dir / name).touch(exist_ok=True)

    if not _LOGGING_INITIALISED:
        logging.config.dictConfig(_logging_config(log_dir, verbose))
        structlog.configure(
            processors=[
                structlog.contextvars.merge_contextvars,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.stdlib.add_log_level,
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
            ],
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )
        _LOGGING_INITIALISED = True
        _VERBOSE = verbose
    elif verbose and not _VERBOSE:
        _enable_verbose()
        _VERBOSE = True
    return structlog.get_logger(LOGGER_NAME)


def tail_log(path: Path, line_count: int = 100) -> list[str]:
    """Return the last N lines from a log file."""

    if not path.exists():
        return []
    with path.open("r", encoding="utf-8", errors="ignore") as stream:
        lines = stream.readlines()
    return lines[-line_count:]


def available_logs() -> list[Path]:
    log_dir = default_log_dir()
    if not log_dir.exists():
        return []
    return sorted(log_dir.glob("*.log"))


__all__ = ["available_logs", "configure_logging", "default_log_dir", "tail_log"]
