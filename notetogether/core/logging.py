"""
Centralized Logging Configuration.

All modules log through structlog loggers obtained from `get_logger`.
Settings come from config/settings/logging.yaml (validated as LoggingSchema).

Structured fields in every JSON log record:
    timestamp   - ISO 8601 UTC timestamp
    level       - Log level (debug, info, warning, error, critical)
    logger      - Module path (e.g., notetogether.sync.controller)
    event       - Log message
    func_name   - Function that emitted the log
    lineno      - Line number in source file
    source      - Layer that emitted the record (cli, sync, store, auth, internal)

Usage:
    from notetogether.core.logging import get_logger, log_with_source, setup_logging

    setup_logging()                                  # from logging.yaml
    setup_logging(level="DEBUG", format_type="console")

    logger = get_logger(__name__)
    logger.info("Listener attached", extra={"path": path})
    log_with_source(logger, "sync", "info", "Snapshot applied", count=3)

Log File:
    logs/system.jsonl (rotating); filter by the 'source' field
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

import structlog
from structlog.typing import Processor

from notetogether.core.config import get_app_config, resolve_project_path
from notetogether.core.config_schema import FileHandlerSchema, LoggingSchema

VALID_SOURCES = frozenset({
    "cli",
    "sync",
    "store",
    "auth",
    "internal",
    "unknown",
})
"""Log source values callers pass to `log_with_source`."""

# SDK loggers that flood the console at INFO
NOISY_LOGGERS = ("google", "httpx")


def _logging_settings() -> LoggingSchema:
    return get_app_config().logging


def _shared_processors() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        structlog.processors.CallsiteParameterAdder(
            parameters=[
                structlog.processors.CallsiteParameter.FUNC_NAME,
                structlog.processors.CallsiteParameter.LINENO,
            ],
        ),
    ]


def _formatter(format_type: str, processors: list[Processor]) -> logging.Formatter:
    """stdlib formatter rendering records as JSON or as colored console lines."""
    renderer = (
        structlog.dev.ConsoleRenderer(colors=True)
        if format_type == "console"
        else structlog.processors.JSONRenderer()
    )
    return structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=processors)


def _file_handler(config: FileHandlerSchema, formatter: logging.Formatter) -> RotatingFileHandler:
    log_path: Path = resolve_project_path(config.path)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        filename=str(log_path),
        maxBytes=config.max_bytes,
        backupCount=config.backup_count,
        encoding="utf-8",
    )
    handler.setFormatter(formatter)
    return handler


def setup_logging(
    level: str | None = None,
    format_type: str | None = None,
    enable_console: bool | None = None,
    enable_file_logging: bool | None = None,
) -> None:
    """
    Configure structlog and the root logger.

    Arguments left as None take their value from logging.yaml. The file
    handler always writes JSON; the console uses `format_type`.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_type: Console output format, 'json' or 'console'
        enable_console: Log to stderr
        enable_file_logging: Log to the rotating JSONL file
    """
    settings = _logging_settings()
    level = level or settings.level
    format_type = format_type or settings.format
    console_enabled = settings.handlers.console.enabled if enable_console is None else enable_console
    file_enabled = settings.handlers.file.enabled if enable_file_logging is None else enable_file_logging

    processors = _shared_processors()
    structlog.configure(
        processors=processors + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    if console_enabled:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(_formatter(format_type, processors))
        root_logger.addHandler(console_handler)

    if file_enabled:
        root_logger.addHandler(_file_handler(settings.handlers.file, _formatter("json", processors)))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> Any:
    """Structlog logger for `name` (normally __name__)."""
    return structlog.get_logger(name)


def log_with_source(logger: Any, source: str, level: str, message: str, **kwargs: Any) -> None:
    """
    Log `message` at `level` with an explicit `source` field.

    Example:
        log_with_source(logger, "store", "info", "Note added", note_id="n1")

    Raises:
        AttributeError: If level is not a valid log level
    """
    getattr(logger, level.lower())(message, source=source, **kwargs)
