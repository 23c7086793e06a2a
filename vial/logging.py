# Copyright 2025 thestill.me
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Structured logging configuration for vial.

Environment Variables:
    LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL). Default: INFO
    LOG_FORMAT: Output format (console, json, cloudwatch, auto). Default: auto
    LOG_FILE: Optional file path for log output. Default: None (stderr only)

Example:
    from vial.logging import configure_structlog, get_logger

    configure_structlog()
    logger = get_logger(__name__)
    logger.info("Episode published", episode_id="abc", publish_date="2025-01-01")
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, List

import structlog
from structlog.dev import ConsoleRenderer
from structlog.processors import JSONRenderer

LOG_FORMATS = ("console", "json", "cloudwatch")


def _cloudwatch_processor(logger: Any, method_name: str, event_dict: dict) -> dict:
    """Rename fields to the names CloudWatch Logs Insights dashboards expect.

    - 'event' becomes 'message'
    - 'timestamp' becomes '@timestamp'
    - 'level' is upper-cased
    """
    if "event" in event_dict:
        event_dict["message"] = event_dict.pop("event")

    if "timestamp" in event_dict:
        event_dict["@timestamp"] = event_dict.pop("timestamp")

    if "level" in event_dict:
        event_dict["level"] = event_dict["level"].upper()

    return event_dict


def get_log_level() -> int:
    """Get log level from the LOG_LEVEL environment variable."""
    level_name = os.getenv("LOG_LEVEL", "INFO").upper()
    return getattr(logging, level_name, logging.INFO)


def get_log_format() -> str:
    """Get log format from environment variable.

    Formats:
        - console: Colored output for development (default for TTY)
        - json: JSON output for production
        - cloudwatch: JSON with AWS CloudWatch field names
        - auto: console if TTY, json otherwise (default)

    Returns:
        Format string: 'console', 'json' or 'cloudwatch'
    """
    format_str = os.getenv("LOG_FORMAT", "auto").lower()
    if format_str == "auto":
        return "console" if sys.stderr.isatty() else "json"
    if format_str not in LOG_FORMATS:
        return "json"
    return format_str


def _build_processors(log_format: str) -> List[Any]:
    shared_processors: List[Any] = [
        # request_id bound by the logging middleware lands on every line
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if log_format == "console":
        return shared_processors + [ConsoleRenderer(colors=True)]
    if log_format == "cloudwatch":
        return shared_processors + [_cloudwatch_processor, JSONRenderer()]
    return shared_processors + [JSONRenderer()]


def configure_structlog() -> None:
    """Configure structlog based on environment variables.

    Call once at startup (the CLI does this before loading config). Output
    goes to stderr, plus a rotating file when LOG_FILE is set.
    """
    log_level = get_log_level()
    processors = _build_processors(get_log_format())
    log_file = os.getenv("LOG_FILE")

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)

        root_logger = logging.getLogger()
        root_logger.setLevel(log_level)

        stderr_handler = logging.StreamHandler(sys.stderr)
        stderr_handler.setLevel(log_level)
        stderr_handler.setFormatter(logging.Formatter("%(message)s"))
        root_logger.addHandler(stderr_handler)

        # 100MB max, 5 backups
        file_handler = RotatingFileHandler(log_file, maxBytes=100 * 1024 * 1024, backupCount=5)
        file_handler.setLevel(log_level)
        file_handler.setFormatter(logging.Formatter("%(message)s"))
        root_logger.addHandler(file_handler)

        structlog.configure(
            processors=processors,
            wrapper_class=structlog.make_filtering_bound_logger(log_level),
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )
    else:
        structlog.configure(
            processors=processors,
            wrapper_class=structlog.make_filtering_bound_logger(log_level),
            context_class=dict,
            logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
            cache_logger_on_first_use=True,
        )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger instance.

    Example:
        logger = get_logger(__name__)
        logger.info("Sweep finished", published=2, failed=0)
    """
    return structlog.get_logger(name)
