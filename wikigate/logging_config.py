"""
Logging configuration for wikigate.

Sets up logging to the console and, when a log directory is configured, to
a rotating file. Credentials never reach a handler: RedactingFilter masks
password and token parameters in every record.

Usage:
    from wikigate.logging_config import setup_logging

    logger = setup_logging(log_dir="/var/log/wikigate")  # or $LOG_DIR
    api = MediaWikiClient(url, logger=logger)
"""

import logging
import os
import re
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

# matched as suffixes: lgpassword, csrftoken, logintoken, ...
SENSITIVE_PARAMS = ("password", "token")
MASK = "***"

_SENSITIVE_PATTERN = re.compile(
    r"(?P<key>['\"]?\b\w*(?:%s)\b['\"]?\s*[:=]\s*)(?P<quote>['\"]?)[^'\"&,\s}]+"
    % "|".join(SENSITIVE_PARAMS)
)


def redact(text: str) -> str:
    """Mask values of sensitive parameters in a message."""
    return _SENSITIVE_PATTERN.sub(lambda m: f"{m.group('key')}{m.group('quote')}{MASK}", text)


class RedactingFilter(logging.Filter):
    """Rewrites records so passwords and tokens are never written out."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = redact(message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def setup_logging(
    name: str = "wikigate",
    log_dir: Optional[str] = None,
    level: int = logging.INFO,
    max_bytes: int = 10 * 1024 * 1024,  # 10 MB
    backup_count: int = 5,
    console: bool = True,
) -> logging.Logger:
    """
    Set up logging to console and (optionally) a rotating file.

    Args:
        name: Logger name; also the log filename ({name}.log)
        log_dir: Directory for log files (default: LOG_DIR env var; no file if unset)
        level: Logging level (default: INFO)
        max_bytes: Max log file size before rotation
        backup_count: Number of rotated log files to keep
        console: Whether to also log to console

    Returns:
        Configured logger instance
    """
    if log_dir is None:
        log_dir = os.environ.get("LOG_DIR")

    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Clear any existing handlers (for re-initialization)
    logger.handlers.clear()

    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    if log_dir:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        log_file = log_path / f"{name}.log"

        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        file_handler.addFilter(RedactingFilter())
        logger.addHandler(file_handler)

    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        console_handler.addFilter(RedactingFilter())
        logger.addHandler(console_handler)

    logger.debug(f"Logging initialized for {name}")
    return logger
