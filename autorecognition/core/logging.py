"""
Logging for the recognition service

Events are structlog key-value records: JSON lines in production, coloured
console output in debug mode. OCR text is mostly Chinese, so JSON keeps
non-ASCII characters as they are.
"""
import logging
import sys
from typing import Any

import structlog

# Screenshots travel as base64 strings; never write one to the log
MAX_LOGGED_VALUE_LENGTH = 512

# Engine libraries that log every inference at INFO
NOISY_LOGGERS = ("ppocr", "paddle", "easyocr")


def truncate_long_values(logger: Any, method_name: str, event_dict: dict) -> dict:
    """Shorten oversized string and bytes values in place"""
    for key, value in event_dict.items():
        if key == "event":
            continue
        if isinstance(value, (bytes, bytearray)):
            event_dict[key] = f"<{len(value)} bytes>"
        elif isinstance(value, str) and len(value) > MAX_LOGGED_VALUE_LENGTH:
            event_dict[key] = f"{value[:MAX_LOGGED_VALUE_LENGTH]}... ({len(value)} chars)"
    return event_dict


def setup_logging(log_level: str = "INFO", is_debug: bool = False) -> None:
    """
    Configure structlog and the stdlib root logger

    Args:
        log_level: DEBUG, INFO, WARNING or ERROR
        is_debug: Render for a terminal instead of JSON
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        truncate_long_values,
    ]

    if is_debug:
        processors.append(structlog.dev.ConsoleRenderer())
    else:
        processors += [
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(ensure_ascii=False),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> Any:
    return structlog.get_logger(name)
