"""Structured logging setup.

structlog runs on top of stdlib logging so that uvicorn, motor and our own
loggers share one pipeline. Development gets a coloured console; every
other environment logs JSON. Optional rotating files always hold JSON: one
for everything at the configured level and one for errors only.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog
from structlog.types import EventDict, Processor

from src.core.context import log_fields


if TYPE_CHECKING:
    from src.config.settings import Settings


# Substrings of event keys whose values never reach the output
REDACTED_KEYS = ("password", "secret", "token", "authorization", "cookie")
REDACTED = "[redacted]"

_QUIET_LOGGERS = ("uvicorn.access", "pymongo", "httpx")


def inject_request_context(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Merge request id and acting user into the event."""
    for key, value in log_fields().items():
        event_dict.setdefault(key, value)
    return event_dict


def _redact(key: str, value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _redact(k, v) for k, v in value.items()}
    lowered = key.lower()
    if value is not None and any(marker in lowered for marker in REDACTED_KEYS):
        return REDACTED
    return value


def redact_secrets(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    return {key: _redact(key, value) for key, value in event_dict.items()}


def _rotating_file(
    settings: "Settings", filename: str, level: int, pre_chain: list[Processor]
) -> RotatingFileHandler:
    log_dir = Path(settings.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        log_dir / filename,
        maxBytes=settings.log_file_max_bytes,
        backupCount=settings.log_file_backup_count,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=structlog.processors.JSONRenderer(),
            foreign_pre_chain=pre_chain,
        )
    )
    return handler


def configure_structlog(settings: "Settings") -> None:
    """Route structlog and stdlib logging through the same handlers.

    Safe to call more than once; existing root handlers are replaced.
    """
    level = logging.getLevelName(settings.log_level)
    use_json = (
        settings.log_json
        if settings.log_json is not None
        else not settings.is_development
    )

    pre_chain: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        inject_request_context,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        redact_secrets,
    ]

    renderer: Processor
    if use_json:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    console.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=renderer, foreign_pre_chain=pre_chain
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level)
    root.addHandler(console)

    if settings.log_file_enabled:
        root.addHandler(
            _rotating_file(settings, f"{settings.app_name}.log", level, pre_chain)
        )
        root.addHandler(
            _rotating_file(
                settings, f"{settings.app_name}.error.log", logging.ERROR, pre_chain
            )
        )

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
