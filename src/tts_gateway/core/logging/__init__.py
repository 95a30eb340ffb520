"""
tts-gateway Structured Logging.

A thin layer over the stdlib ``logging`` module that adds:
    - Numeric verbosity levels (1-4), see levels.py
    - Request id correlation through a ContextVar, see context.py
    - Colored console lines and optional JSONL files, see formatters.py

Configuration:
    export TTS_GW_LOG_LEVEL=3      # VERBOSE
    export TTS_GW_LOG_DIR=logs     # also write logs/tts-gateway.jsonl
    export TTS_GW_NO_COLOR=1

    or in settings.yaml:
        logging:
          level: 2
          log_dir: logs

Usage:
    from tts_gateway.core.logging import get_logger, info, warn, fail

    log = get_logger("tts-gateway.credentials")
    info(log, "credential_refresh_start")
    success(log, "credential_refreshed", region="eastasia", seconds=0.41)
    fail(log, "credential_refresh_failed", upstream_status=401)

Secrets (tokens, signatures, API keys) must never be passed as fields.
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Optional

from .levels import LogLevel, LEVEL_MAP, LEVEL_NAMES, coerce_level
from .colors import Colors, supports_color, colorize, get_tag_color
from .context import (
    get_request_id,
    set_request_id,
    get_level,
    set_level,
    get_level_name,
    is_configured,
    set_configured,
    get_log_config,
    set_log_config,
    read_logging_config,
)
from .formatters import JsonlFormatter, ColoredConsoleFormatter


def configure_logging(level: Optional[int | str | LogLevel] = None, force: bool = False) -> None:
    """
    Configure the root logger.

    Args:
        level: Log level (1-4, level name, or LogLevel). Defaults to the
            configured value, then NORMAL.
        force: Reconfigure even if already configured.
    """
    from . import colors

    if is_configured() and not force:
        return

    colors.USE_COLORS = supports_color()

    log_config = read_logging_config()
    set_log_config(log_config)

    current_level = coerce_level(level or log_config.get("level", LogLevel.NORMAL))
    set_level(current_level)
    python_level = LEVEL_MAP.get(current_level, logging.INFO)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG - 10)  # handlers filter
    root.handlers = []

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(python_level)
    console.setFormatter(ColoredConsoleFormatter())
    root.addHandler(console)

    log_dir = log_config.get("log_dir")
    if log_dir:
        jsonl_file = log_config.get("jsonl_file", "tts-gateway.jsonl")
        max_bytes = int(log_config.get("rotate_max_bytes", 10 * 1024 * 1024))
        backup_count = int(log_config.get("rotate_backup_count", 5))

        Path(log_dir).mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            Path(log_dir) / str(jsonl_file),
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
            delay=True,
        )
        file_handler.setLevel(logging.DEBUG - 10)
        file_handler.setFormatter(JsonlFormatter())
        root.addHandler(file_handler)

    # httpx logs every request at INFO; keep it behind VERBOSE
    logging.getLogger("httpx").setLevel(
        logging.INFO if current_level >= LogLevel.VERBOSE else logging.WARNING
    )

    set_configured(True)


def _log(
    logger: logging.Logger,
    level: int,
    tag: str,
    msg: str,
    numeric_level: int = 2,
    **fields: Any
) -> None:
    if numeric_level > get_level():
        return

    event = fields.pop("event", None)
    seconds = fields.pop("seconds", None)
    logger.log(
        level,
        msg,
        extra={
            "tag": tag,
            "request_id": get_request_id(),
            "event": event,
            "seconds": seconds,
            "extra_data": fields or None,
            "numeric_level": numeric_level,
        },
    )


def get_logger(name: str = "tts-gateway") -> logging.Logger:
    """Get a logger, configuring logging on first use."""
    configure_logging()
    return logging.getLogger(name)


def info(logger: logging.Logger, msg: str, **fields: Any) -> None:
    """Level 2 (NORMAL) informational message."""
    _log(logger, logging.INFO, "INFO", msg, numeric_level=2, **fields)


def warn(logger: logging.Logger, msg: str, **fields: Any) -> None:
    """Level 2 (NORMAL) warning."""
    _log(logger, logging.WARNING, "WARN", msg, numeric_level=2, **fields)


def error(logger: logging.Logger, msg: str, **fields: Any) -> None:
    """Level 1 (MINIMAL) error."""
    _log(logger, logging.ERROR, "ERROR", msg, numeric_level=1, **fields)


def success(logger: logging.Logger, msg: str, **fields: Any) -> None:
    """Level 2 (NORMAL) success marker."""
    _log(logger, logging.INFO, "SUCCESS", msg, numeric_level=2, **fields)


def fail(logger: logging.Logger, msg: str, **fields: Any) -> None:
    """Level 1 (MINIMAL) failure marker."""
    _log(logger, logging.ERROR, "FAIL", msg, numeric_level=1, **fields)


def verbose(logger: logging.Logger, msg: str, **fields: Any) -> None:
    """Level 3 (VERBOSE) detail."""
    _log(logger, logging.DEBUG, "INFO", msg, numeric_level=3, **fields)


def debug(logger: logging.Logger, msg: str, **fields: Any) -> None:
    """Level 4 (DEBUG) internals."""
    _log(logger, logging.DEBUG, "DEBUG", msg, numeric_level=4, **fields)


__all__ = [
    "LogLevel",
    "LEVEL_MAP",
    "LEVEL_NAMES",
    "coerce_level",
    "Colors",
    "supports_color",
    "colorize",
    "get_tag_color",
    "get_request_id",
    "set_request_id",
    "get_level",
    "set_level",
    "get_level_name",
    "get_log_config",
    "JsonlFormatter",
    "ColoredConsoleFormatter",
    "configure_logging",
    "get_logger",
    "info",
    "warn",
    "error",
    "success",
    "fail",
    "verbose",
    "debug",
]
