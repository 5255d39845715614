"""
Logging Module for VendorSync.

Architecture:
- Structured logging (JSON format for production)
- Multiple handlers (console + rotating file)
- Service-specific loggers with isolated log files
- Environment-aware configuration
- Context passed through `extra={...}` and rendered by the JSON formatter
"""

import functools
import inspect
import json
import logging
import os
import sys
import time
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional


# Project root and logs directory
PROJECT_ROOT = Path(__file__).parent.parent
LOGS_DIR = Path(os.getenv("LOG_DIR", str(PROJECT_ROOT / "logs")))

# Attributes present on every LogRecord; anything else came in via `extra`
_RESERVED_ATTRS = set(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class StructuredFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.
    Outputs logs in JSON format for easy parsing by log aggregators.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "service": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        extra = {
            key: value
            for key, value in vars(record).items()
            if key not in _RESERVED_ATTRS and not key.startswith("_")
        }
        if extra:
            log_data["extra"] = extra

        return json.dumps(log_data, default=str)


class ColoredConsoleFormatter(logging.Formatter):
    """
    Colored console formatter for development.
    Makes logs readable in terminal with color coding.
    """

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        # Work on a copy so the file handler sees the plain level name
        record = logging.makeLogRecord(vars(record))
        color = self.COLORS.get(record.levelname, self.RESET)
        record.levelname = f"{color}{record.levelname:8}{self.RESET}"
        return super().format(record)


def get_logger(
    service_name: str,
    log_level: Optional[str] = None,
    enable_console: bool = True,
    enable_file: bool = True,
    enable_json: Optional[bool] = None,
) -> logging.Logger:
    """
    Get a configured logger for a service.

    Args:
        service_name: Name of the service (e.g., 'reconciler', 'feeds')
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        enable_console: Enable console output
        enable_file: Enable file output with rotation
        enable_json: Use JSON format (defaults to True in production)

    Returns:
        Configured logger instance

    Usage:
        logger = get_logger('reconciler')
        logger.info('Vendor sync started', extra={'vendor_id': '64f0c1'})
    """
    if log_level is None:
        log_level = os.getenv("LOG_LEVEL", "INFO").upper()

    environment = os.getenv("ENVIRONMENT", "development").lower()
    is_production = environment == "production"

    if enable_json is None:
        enable_json = is_production

    logger = logging.getLogger(service_name)
    logger.setLevel(getattr(logging, log_level))
    logger.handlers.clear()  # Clear existing handlers to avoid duplicates

    if enable_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(getattr(logging, log_level))

        if enable_json:
            console_formatter = StructuredFormatter()
        else:
            console_formatter = ColoredConsoleFormatter(
                fmt="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )

        console_handler.setFormatter(console_formatter)
        logger.addHandler(console_handler)

    if enable_file:
        LOGS_DIR.mkdir(parents=True, exist_ok=True)
        log_file = LOGS_DIR / f"{service_name}.log"

        # Rotating file handler: 10MB per file, keep 5 backups
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setLevel(getattr(logging, log_level))

        if enable_json:
            file_formatter = StructuredFormatter()
        else:
            file_formatter = logging.Formatter(
                fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(module)s:%(funcName)s:%(lineno)d | %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )

        file_handler.setFormatter(file_formatter)
        logger.addHandler(file_handler)

    logger.propagate = False

    return logger


def log_execution_time(logger: logging.Logger):
    """
    Decorator to log function execution time.
    Works for both plain functions and coroutines.

    Usage:
        @log_execution_time(logger)
        async def fetch_items():
            ...
    """

    def _log_success(func, started: float):
        logger.info(
            f"{func.__name__} executed successfully",
            extra={"execution_time_seconds": time.perf_counter() - started},
        )

    def _log_failure(func, started: float):
        execution_time = time.perf_counter() - started
        logger.error(
            f"{func.__name__} failed after {execution_time:.2f}s",
            exc_info=True,
            extra={"execution_time_seconds": execution_time},
        )

    def decorator(func):
        if inspect.iscoroutinefunction(func):
            @functools.wraps(func)
            async def async_wrapper(*args, **kwargs):
                started = time.perf_counter()
                try:
                    result = await func(*args, **kwargs)
                except Exception:
                    _log_failure(func, started)
                    raise
                _log_success(func, started)
                return result

            return async_wrapper

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            started = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception:
                _log_failure(func, started)
                raise
            _log_success(func, started)
            return result

        return wrapper

    return decorator
