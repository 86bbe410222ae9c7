"""Logging setup: stdlib handlers plus structlog, both tagged with the current splice run."""

from __future__ import annotations

import logging
import logging.config
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator

import structlog

from .config import LoggingSettings

_NO_RUN = "-"


class RunContextFilter(logging.Filter):
    """Copy the run id bound in structlog's context vars onto stdlib records.

    ``asyncio.to_thread`` carries the context into worker threads, so ffmpeg,
    storage and renderer logs end up tagged with the run that caused them.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        record.run_id = structlog.contextvars.get_contextvars().get("run_id", _NO_RUN)
        return True


@contextmanager
def run_context(run_id: str) -> Iterator[None]:
    with structlog.contextvars.bound_contextvars(run_id=run_id):
        yield


def configure_logging(settings: LoggingSettings) -> None:
    log_dir = Path(settings.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    level_value = getattr(logging, settings.level.upper(), logging.INFO)

    logging_config: Dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "run_context": {"()": RunContextFilter},
        },
        "formatters": {
            "plain": {
                "format": "%(asctime)s %(levelname)s [%(run_id)s] %(name)s %(funcName)s:%(lineno)d %(message)s",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "plain",
                "filters": ["run_context"],
                "level": settings.level,
            },
            "file": {
                "class": "logging.handlers.RotatingFileHandler",
                "filename": str(log_dir / "splice.log"),
                "formatter": "plain",
                "filters": ["run_context"],
                "maxBytes": settings.max_log_file_size_mb * 1024 * 1024,
                "backupCount": settings.backup_count,
                "encoding": "utf-8",
                "level": settings.level,
            },
        },
        "root": {
            "handlers": ["console", "file"],
            "level": settings.level,
        },
    }

    logging.config.dictConfig(logging_config)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level_value),
        cache_logger_on_first_use=True,
    )
