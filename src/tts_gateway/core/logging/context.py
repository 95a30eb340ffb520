"""
Request Context and Configuration State for Logging.

The request id lives in a ContextVar so every log line emitted while
handling one HTTP request (including lines from the credential store and
the upstream clients) carries the same id. The HTTP middleware sets it;
code outside a request sees "-".

Environment Variables:
    - TTS_GW_LOG_LEVEL: Override log level (1-4 or name)
    - TTS_GW_LOG_DIR: Enable JSONL file logging into this directory
    - TTS_GW_JSONL_FILE: JSONL filename (default tts-gateway.jsonl)
    - TTS_GW_LOG_ROTATE_BYTES: Max file size before rotation
    - TTS_GW_LOG_ROTATE_BACKUP: Number of rotated files to keep
"""
from __future__ import annotations

import os
from contextvars import ContextVar
from typing import Any, Dict

import yaml

from .levels import LEVEL_NAMES, LogLevel

_request_id: ContextVar[str] = ContextVar("request_id", default="-")

_configured: bool = False
_log_config: Dict[str, Any] = {}
_current_level: LogLevel = LogLevel.NORMAL


def get_request_id() -> str:
    """Request id for the current context, or "-" outside a request."""
    return _request_id.get()


def set_request_id(rid: str) -> None:
    """Bind a request id to the current context."""
    _request_id.set(rid)


def get_level() -> LogLevel:
    return _current_level


def set_level(level: LogLevel) -> None:
    global _current_level
    _current_level = level


def get_level_name() -> str:
    return LEVEL_NAMES.get(_current_level, "NORMAL")


def is_configured() -> bool:
    return _configured


def set_configured(value: bool) -> None:
    global _configured
    _configured = value


def get_log_config() -> Dict[str, Any]:
    return _log_config


def set_log_config(config: Dict[str, Any]) -> None:
    global _log_config
    _log_config = config


def _read_settings_logging_section() -> Dict[str, Any]:
    """
    Read the ``logging`` section of the settings file, if there is one.

    Parsed directly with PyYAML rather than through load_settings(), because
    config.py is imported by modules that log at import time.
    """
    path = os.getenv("TTS_GW_SETTINGS", "config/settings.yaml")
    if not os.path.exists(path):
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError):
        return {}
    section = raw.get("logging", {}) if isinstance(raw, dict) else {}
    return dict(section or {})


def read_logging_config() -> Dict[str, Any]:
    """
    Resolve logging configuration.

    Priority (highest first): environment, settings file, defaults.
    """
    cfg: Dict[str, Any] = _read_settings_logging_section()

    if os.getenv("TTS_GW_LOG_LEVEL"):
        cfg["level"] = os.environ["TTS_GW_LOG_LEVEL"]
    if os.getenv("TTS_GW_LOG_DIR"):
        cfg["log_dir"] = os.environ["TTS_GW_LOG_DIR"]
    if os.getenv("TTS_GW_JSONL_FILE"):
        cfg["jsonl_file"] = os.environ["TTS_GW_JSONL_FILE"]
    if os.getenv("TTS_GW_LOG_ROTATE_BYTES"):
        try:
            cfg["rotate_max_bytes"] = int(os.environ["TTS_GW_LOG_ROTATE_BYTES"])
        except ValueError:
            pass  # keep file/default value
    if os.getenv("TTS_GW_LOG_ROTATE_BACKUP"):
        try:
            cfg["rotate_backup_count"] = int(os.environ["TTS_GW_LOG_ROTATE_BACKUP"])
        except ValueError:
            pass

    return cfg
