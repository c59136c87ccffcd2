"""
Store Review Insights Logging Configuration
===========================================

Configures logging for the API and the CLI with support for:
- JSON lines output (for log aggregation)
- Human-readable output (for development)
- File rotation

Usage:
    from src.orchestrator.logging_config import setup_logging

    setup_logging(level="DEBUG", json_output=True, log_file="logs/api.log")
"""

import json
import logging
import logging.handlers
import os
import sys
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Optional


# Extra record attributes copied into JSON output when present
EXTRA_FIELDS = ("scope", "store_id", "cache", "duration", "stores", "reviews")


class JSONFormatter(logging.Formatter):
    """
    Formats log records as JSON lines.

    Output format:
        {"ts": "2024-...", "level": "INFO", "logger": "src.data.review_fetcher", "msg": "..."}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }

        if record.exc_info and record.exc_info[0] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)

        for key in EXTRA_FIELDS:
            val = getattr(record, key, None)
            if val is not None:
                log_entry[key] = val

        return json.dumps(log_entry, default=str, ensure_ascii=False)


def setup_logging(
    level: str = "INFO",
    json_output: bool = False,
    log_file: Optional[str] = None,
    max_bytes: int = 10 * 1024 * 1024,  # 10 MB
    backup_count: int = 5,
    stream=None,
):
    """
    Configure application logging.

    Args:
        level: Root log level (DEBUG, INFO, WARNING, ERROR)
        json_output: Use JSON lines format
        log_file: Optional file path for log output (with rotation)
        max_bytes: Max file size before rotation
        backup_count: Number of rotated files to keep
        stream: Console stream (stderr by default so CLI stdout stays JSON)
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    root.handlers.clear()

    if json_output:
        formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(
            "%(asctime)s [%(levelname)-8s] %(name)-30s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    console = logging.StreamHandler(stream or sys.stderr)
    console.setFormatter(formatter)
    root.addHandler(console)

    if log_file:
        os.makedirs(os.path.dirname(log_file) or ".", exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    # Quiet noisy libraries
    for name in ("urllib3", "httpx", "httpcore", "openai", "anthropic"):
        logging.getLogger(name).setLevel(logging.WARNING)

    root.info(
        "Logging configured: level=%s json=%s file=%s",
        level, json_output, log_file or "none",
    )


@contextmanager
def log_duration(logger: logging.Logger, action: str, level: int = logging.INFO, **fields):
    """
    Log how long the wrapped block took.

    Keyword fields are attached to the record, so the JSON formatter
    emits them next to the measured duration.
    """
    started = time.monotonic()
    try:
        yield
    finally:
        duration = round(time.monotonic() - started, 3)
        logger.log(level, f"{action} took {duration:.2f}s", extra=dict(fields, duration=duration))
