"""
Structured logging for brandguard

Every module logs through a child of the ``brandguard`` logger, which owns
the only handler. Output is JSON (python-json-logger) unless LOG_FORMAT is
``text``; LOG_LEVEL picks the threshold.
"""
import logging
import os
import sys
import time

from pythonjsonlogger import jsonlogger

from brandguard import __version__

APP_LOGGER_NAME = "brandguard"

JSON_FIELDS = "%(timestamp)s %(level)s %(logger)s %(message)s"
TEXT_FORMAT = "%(asctime)s %(levelname)-8s %(name)s - %(message)s"


class BrandGuardJsonFormatter(jsonlogger.JsonFormatter):
    """
    JSON formatter for brandguard records

    Every record carries the service name and version next to the standard
    timestamp, level, logger and call site fields.
    """

    def add_fields(self, log_record: dict, record: logging.LogRecord, message_dict: dict) -> None:
        super().add_fields(log_record, record, message_dict)

        if not log_record.get("timestamp"):
            log_record["timestamp"] = self.formatTime(record, self.datefmt)
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["service"] = APP_LOGGER_NAME
        log_record["version"] = __version__
        log_record["location"] = f"{record.module}:{record.funcName}:{record.lineno}"


def _build_formatter(format_type: str) -> logging.Formatter:
    if format_type == "text":
        return logging.Formatter(fmt=TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    return BrandGuardJsonFormatter(fmt=JSON_FIELDS, datefmt="%Y-%m-%dT%H:%M:%S%z")


def setup_logger(
    name: str = APP_LOGGER_NAME,
    level: str | None = None,
    format_type: str | None = None,
) -> logging.Logger:
    """
    Attach a fresh stderr handler to a logger

    Args:
        name: Logger to configure (the application logger by default)
        level: Threshold name, defaults to $LOG_LEVEL or INFO
        format_type: "json" or "text", defaults to $LOG_FORMAT or json

    Returns:
        The configured logger
    """
    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    log_level = logging.getLevelName(level_name)
    if not isinstance(log_level, int):
        log_level = logging.INFO

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(_build_formatter((format_type or os.getenv("LOG_FORMAT", "json")).lower()))

    logger = logging.getLogger(name)
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.setLevel(log_level)
    logger.propagate = False
    return logger


def get_logger(name: str = APP_LOGGER_NAME) -> logging.Logger:
    """
    Logger for a brandguard module (pass ``__name__``)

    The application logger is configured on first use; module loggers
    propagate to it and have no handlers of their own.
    """
    app_logger = logging.getLogger(APP_LOGGER_NAME)
    if not app_logger.handlers:
        setup_logger(APP_LOGGER_NAME)

    if name == APP_LOGGER_NAME or name.startswith(APP_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return app_logger.getChild(name)


class log_operation:
    """
    Context manager that logs the start, duration and result of an operation

    Failures are logged at WARNING with the exception type and, for
    classified brandguard errors, the failure kind. Exceptions are never
    suppressed.

    Usage:
        with log_operation("upstream fix", logger=logger, evaluation_id=evaluation_id):
            response = client.post(...)
    """

    def __init__(self, operation_name: str, logger: logging.Logger | None = None, **context):
        self.operation_name = operation_name
        self.logger = logger or get_logger()
        self.context = {"operation": operation_name, **context}
        self.started: float | None = None

    def __enter__(self):
        self.started = time.monotonic()
        self.logger.debug(f"Starting: {self.operation_name}", extra=self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        duration_ms = round((time.monotonic() - self.started) * 1000, 1)

        if exc_type is None:
            self.logger.info(
                f"Completed: {self.operation_name}",
                extra={**self.context, "duration_ms": duration_ms, "status": "success"},
            )
            return False

        kind = getattr(exc_val, "kind", None)
        self.logger.warning(
            f"Failed: {self.operation_name}",
            extra={
                **self.context,
                "duration_ms": duration_ms,
                "status": "error",
                "error_type": exc_type.__name__,
                "failure_kind": getattr(kind, "value", kind),
            },
        )
        return False
