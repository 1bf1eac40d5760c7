"""Structured logging for sync runs, built on structlog.

Every event goes through one shared processor chain and is then rendered
either for a terminal (console format) or as one JSON object per line
(json format, the production default). Events emitted during a run carry
the run id bound by the CLI, and token-like fields are masked before
rendering so API credentials never reach a log sink.
"""

import logging
import sys
from pathlib import Path
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from t212_ynab_sync.config import Settings, get_settings

REDACTED = "***"
_SECRET_MARKERS = ("token", "authorization", "secret")

# Libraries that log every HTTP request at INFO
QUIET_LOGGERS = ("httpx", "httpcore", "asyncio")


def redact_secrets(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Mask values whose key looks like a credential."""
    for key in event_dict:
        if any(marker in key.lower() for marker in _SECRET_MARKERS):
            event_dict[key] = REDACTED
    return event_dict


def add_app_context(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    settings = get_settings()
    event_dict.setdefault("app", settings.app_name)
    event_dict.setdefault("environment", settings.environment.value)
    return event_dict


def shared_processors() -> list[Processor]:
    """Processors common to both output formats, in application order."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.stdlib.add_logger_name,
        redact_secrets,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]


def build_processors(log_format: str) -> list[Processor]:
    if log_format == "json":
        return [
            *shared_processors(),
            add_app_context,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(sort_keys=True),
        ]
    return [
        *shared_processors(),
        structlog.dev.ConsoleRenderer(
            colors=sys.stdout.isatty(),
            exception_formatter=structlog.dev.plain_traceback,
        ),
    ]


def configure_logging(settings: Settings | None = None) -> None:
    """Configure structlog and the stdlib root logger from settings.

    Call once per process, before the first sync run logs anything.
    """
    settings = settings or get_settings()
    level = logging.getLevelName(settings.log_level.value)

    structlog.configure(
        processors=build_processors(settings.log_format),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    if settings.log_file:
        attach_file_handler(settings.log_file, level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def attach_file_handler(log_file: Path, level: int) -> logging.FileHandler:
    """Also write every log line to log_file, creating its directory."""
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_file, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logging.getLogger().addHandler(handler)
    return handler


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger.

    Example:
        logger = get_logger(__name__)
        logger.info("transaction_skipped", transaction_id=tx.id)
    """
    return structlog.stdlib.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


class LogContext:
    """Bind values to every event logged inside a with block.

    Example:
        with LogContext(run_id=run_id, budget_id=budget_id):
            asyncio.run(orchestrator.run())
    """

    def __init__(self, **kwargs: Any) -> None:
        self.kwargs = kwargs

    def __enter__(self) -> "LogContext":
        bind_context(**self.kwargs)
        return self

    def __exit__(self, *args: Any) -> None:
        unbind_context(*self.kwargs)
