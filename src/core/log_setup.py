"""Structured logging configuration driven by the ``logging`` config section."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import structlog

from src.core.config_loader import LoggingConfig

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
    "fatal": logging.CRITICAL,
    "panic": logging.CRITICAL,
}


def resolve_log_level(level: str | None) -> int:
    return _LEVELS.get((level or "info").lower(), logging.INFO)


def _build_renderer(log_format: str) -> structlog.types.Processor:
    if log_format.lower() == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=False)


def _build_handler(output_file: str) -> logging.Handler:
    if not output_file:
        return logging.StreamHandler(sys.stderr)
    path = Path(output_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    return logging.FileHandler(path, mode="a", encoding="utf-8")


def configure_bootstrap_logging() -> None:
    """Send events emitted while the configuration loads to stderr."""
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(logging.INFO),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(sys.stderr),
        cache_logger_on_first_use=False,
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.dev.ConsoleRenderer(colors=False),
        ],
    )


def configure_logging(config: LoggingConfig) -> logging.Handler:
    """Route structlog through stdlib logging with the configured level, format and sink.

    Returns the handler installed on the root logger.
    """
    min_level = resolve_log_level(config.level)

    processors: list[structlog.types.Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    if config.report_caller:
        processors.append(
            structlog.processors.CallsiteParameterAdder(
                {
                    structlog.processors.CallsiteParameter.FILENAME,
                    structlog.processors.CallsiteParameter.FUNC_NAME,
                    structlog.processors.CallsiteParameter.LINENO,
                }
            )
        )
    processors.append(structlog.stdlib.ProcessorFormatter.wrap_for_formatter)

    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(min_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
        processors=processors,
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(min_level)

    # Drop handlers from an earlier configuration so messages are not duplicated
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    handler = _build_handler(config.output_file)
    handler.setLevel(min_level)
    handler.setFormatter(structlog.stdlib.ProcessorFormatter(processor=_build_renderer(config.format)))
    root_logger.addHandler(handler)
    return handler


__all__ = ["configure_bootstrap_logging", "configure_logging", "resolve_log_level"]
