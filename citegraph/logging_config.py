"""
Structured Logging
==================

JSON log lines with per-operation context:
- operation name, user and project identifiers
- record counts for batch work
- call durations from @log_performance
"""

import logging
import logging.handlers
import json
import time
import os
import sys
from typing import Optional
from functools import wraps
from datetime import datetime, timezone


# Extra fields copied from the LogRecord into the JSON payload when present
CONTEXT_FIELDS = ("operation", "user_id", "project_id", "count", "duration_ms")


class StructuredFormatter(logging.Formatter):
    """Format records as one JSON object per line"""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "function": record.funcName,
            "line": record.lineno,
        }

        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                log_data[name] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def _level_from_env(default: int) -> int:
    name = os.getenv("LOG_LEVEL")
    if not name:
        return default
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else default


def setup_logger(
    name: str,
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    use_structured: bool = True,
) -> logging.Logger:
    """
    Set up a logger with a stdout handler and an optional rotating file handler.

    Args:
        name: Logger name
        level: Logging level (LOG_LEVEL in the environment overrides it)
        log_file: Optional file path for logging
        use_structured: JSON lines when True, plain text otherwise

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    level = _level_from_env(level)
    logger.setLevel(level)

    if logger.handlers:
        return logger

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)

    if use_structured:
        formatter = StructuredFormatter()
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        os.makedirs(os.path.dirname(log_file) or ".", exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file, maxBytes=10485760, backupCount=5  # 10MB per file
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def log_performance(func):
    """Decorator logging call duration; failures are logged and re-raised"""

    @wraps(func)
    def wrapper(*args, **kwargs):
        logger = logging.getLogger(func.__module__)
        start_time = time.perf_counter()

        try:
            result = func(*args, **kwargs)
        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.error(
                f"{func.__qualname__} failed: {e}",
                extra={"operation": func.__name__, "duration_ms": duration_ms},
                exc_info=True,
            )
            raise

        duration_ms = (time.perf_counter() - start_time) * 1000
        logger.debug(
            f"{func.__qualname__} completed",
            extra={"operation": func.__name__, "duration_ms": duration_ms},
        )
        return result

    return wrapper


class Logger:
    """Convenience wrapper: keyword arguments become structured fields"""

    def __init__(self, name: str, level: int = logging.INFO):
        self.logger = setup_logger(name, level)
        self.name = name

    def info(self, message: str, **kwargs):
        self.logger.info(message, extra=kwargs)

    def debug(self, message: str, **kwargs):
        self.logger.debug(message, extra=kwargs)

    def warning(self, message: str, **kwargs):
        self.logger.warning(message, extra=kwargs)

    def error(self, message: str, exc_info: bool = False, **kwargs):
        self.logger.error(message, extra=kwargs, exc_info=exc_info)
