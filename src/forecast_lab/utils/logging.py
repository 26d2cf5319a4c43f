#!/usr/bin/env python3
"""
Logging Utilities
Console/file loggers for notebooks and library code

- JSON lines (StructuredFormatter) or readable lines annotated with the
  process memory (PerformanceFormatter)
- LogContext / performance_monitor time an analysis step and attach the
  measurements as extra fields
"""

import logging
import sys
import json
import time
from pathlib import Path
from typing import Any, Dict, Optional, Union
from datetime import datetime
from functools import wraps
import psutil

EXTRA_FIELDS = 'extra_fields'


def _memory_mb() -> float:
    """Resident set size of this process"""
    return psutil.Process().memory_info().rss / 1024 / 1024


def _extra(record: logging.LogRecord) -> Dict[str, Any]:
    return getattr(record, EXTRA_FIELDS, None) or {}


class StructuredFormatter(logging.Formatter):
    """One JSON object per record; extra fields are merged at the top level"""

    def format(self, record):
        entry = {
            'timestamp': datetime.fromtimestamp(record.created).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno,
        }
        entry.update(_extra(record))

        if record.exc_info:
            entry['exception'] = self.formatException(record.exc_info)

        return json.dumps(entry, ensure_ascii=False, default=str)


class PerformanceFormatter(logging.Formatter):
    """
    Readable lines prefixed with the process memory

    Extra fields are appended as key=value pairs so timings logged by
    LogContext and performance_monitor stay visible.
    """

    def __init__(self, show_memory: bool = True):
        super().__init__()
        self.show_memory = show_memory

    def format(self, record):
        stamp = datetime.fromtimestamp(record.created).strftime('%Y-%m-%d %H:%M:%S')
        parts = [f"[{stamp}]", f"[{record.levelname:8s}]", f"[{record.name}]"]
        if self.show_memory:
            parts.append(f"[{_memory_mb():.0f}MB]")
        parts.append(record.getMessage())
        line = ' '.join(parts)

        fields = _extra(record)
        if fields:
            line += ' | ' + ' '.join(f"{key}={value}" for key, value in fields.items())

        if record.levelno == logging.DEBUG:
            line += f" ({record.filename}:{record.lineno})"

        if record.exc_info:
            line += '\n' + self.formatException(record.exc_info)

        return line


def _level(level: Union[str, int]) -> int:
    if isinstance(level, int):
        return level
    value = logging.getLevelName(level.upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown logging level: {level}")
    return value


def setup_logger(name: str,
                 level: Union[str, int] = "INFO",
                 log_file: Optional[Union[str, Path]] = None,
                 structured: bool = False,
                 performance: bool = True) -> logging.Logger:
    """
    Configure a named logger, replacing any handlers it already has

    Args:
        name: Logger name
        level: Logging level name or number
        log_file: Also write to this file (parent directories are created)
        structured: JSON lines instead of text
        performance: Show process memory in text lines

    Returns:
        Configured logger (not propagating to the root logger)
    """
    logger = logging.getLogger(name)
    logger.handlers.clear()
    logger.setLevel(_level(level))

    formatter = StructuredFormatter() if structured else PerformanceFormatter(show_memory=performance)

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding='utf-8'))

    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.propagate = False
    return logger


class LogContext:
    """
    Time one analysis step

    Logs '<operation> started' on entry and '<operation> completed' or
    '<operation> failed' on exit, with the context and duration attached.
    Exceptions are never suppressed.
    """

    def __init__(self, logger: logging.Logger, operation: str = 'operation', **context):
        self.logger = logger
        self.operation = operation
        self.context = context
        self.start_time = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        self.logger.info(f"{self.operation} started", extra={EXTRA_FIELDS: dict(self.context)})
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        fields = {**self.context, 'duration_seconds': round(time.perf_counter() - self.start_time, 3)}

        if exc_type is None:
            self.logger.info(f"{self.operation} completed", extra={EXTRA_FIELDS: fields})
        else:
            fields.update(error_type=exc_type.__name__, error_message=str(exc_val))
            self.logger.error(f"{self.operation} failed", extra={EXTRA_FIELDS: fields})
        return False


def performance_monitor(logger: Optional[logging.Logger] = None):
    """Decorator logging duration and memory change of every call"""

    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            func_logger = logger or logging.getLogger(func.__module__)
            start_time = time.perf_counter()
            start_memory = _memory_mb()

            def metrics(status: str) -> Dict[str, Any]:
                end_memory = _memory_mb()
                return {
                    'function': func.__name__,
                    'duration_seconds': round(time.perf_counter() - start_time, 3),
                    'memory_mb': round(end_memory, 1),
                    'memory_delta_mb': round(end_memory - start_memory, 1),
                    'status': status,
                }

            try:
                result = func(*args, **kwargs)
            except Exception as e:
                fields = metrics('error')
                fields.update(error_type=type(e).__name__, error_message=str(e))
                func_logger.error(f"{func.__name__} failed after {fields['duration_seconds']}s",
                                  extra={EXTRA_FIELDS: fields})
                raise

            fields = metrics('success')
            func_logger.info(f"{func.__name__} completed in {fields['duration_seconds']}s",
                             extra={EXTRA_FIELDS: fields})
            return result

        return wrapper
    return decorator


def configure_logging(config) -> logging.Logger:
    """Set up the 'forecast_lab' package logger from a LoggingConfig"""
    logger = setup_logger(
        'forecast_lab',
        level=config.level,
        log_file=config.log_file_path if config.enable_file_logging else None,
        structured=config.structured
    )
    logger.debug("Package logging configured")
    return logger


def get_logger(name: str, level: str = "INFO") -> logging.Logger:
    """Text logger with memory annotations, for notebook scripts"""
    return setup_logger(name, level=level, performance=True)
