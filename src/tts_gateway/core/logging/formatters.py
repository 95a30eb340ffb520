"""
Log Formatters for JSON and Console Output.

    JsonlFormatter: one JSON object per line, for files and log shippers.
    ColoredConsoleFormatter: compact human-readable lines for terminals.

Output Examples:
    JSONL:
        {"ts":"2026-10-17T14:30:05+00:00","level":2,"tag":"SUCCESS","message":"credential_refreshed","request_id":"3f9c0a1b2c4d","extra":{"region":"eastasia","seconds_remaining":599}}

    Console:
        14:30:05 [SUCCESS] (3f9c0a1b2c4d) credential_refreshed region=eastasia seconds_remaining=599 0.412s

Field colouring (console only):
    seconds            green < 0.5s < yellow < 2s < red
    status             green 2xx/3xx, yellow 4xx, red 5xx
    upstream_status    same as status
    seconds_remaining  red < 60 < yellow < 300 < green
"""
from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any, Dict

from .colors import Colors, duration_color, expiry_color, get_tag_color, status_color


def _use_colors() -> bool:
    # Read at call time: configure_logging() and tests may flip the flag.
    from . import colors
    return colors.USE_COLORS


def _paint(text: str, color: str) -> str:
    if not _use_colors():
        return text
    return f"{color}{text}{Colors.RESET}"


class JsonlFormatter(logging.Formatter):
    """Format log records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created).astimezone().isoformat()

        payload: Dict[str, Any] = {
            "ts": ts,
            "level": getattr(record, "numeric_level", 2),
            "tag": getattr(record, "tag", record.levelname),
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", "-"),
            "logger": record.name,
        }

        event = getattr(record, "event", None)
        if event:
            payload["event"] = event

        seconds = getattr(record, "seconds", None)
        if seconds is not None:
            payload["seconds"] = seconds

        extra_data = getattr(record, "extra_data", None)
        if extra_data:
            payload["extra"] = extra_data

        return json.dumps(payload, ensure_ascii=False, default=str)


class ColoredConsoleFormatter(logging.Formatter):
    """
    Format log records for the console.

    Layout:
        HH:MM:SS [ TAG   ] (rid) message key=value ... 0.123s
    """

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        tag = getattr(record, "tag", record.levelname)
        rid = getattr(record, "request_id", "-")

        parts = [
            _paint(ts, Colors.DIM),
            _paint(f"[{tag:^7}]", get_tag_color(tag)),
        ]
        if rid != "-":
            parts.append(_paint(f"({rid})", Colors.DIM + Colors.CYAN))
        parts.append(record.getMessage())

        event = getattr(record, "event", None)
        if event:
            parts.append(_paint(f"event={event}", Colors.BLUE))

        extra_data = getattr(record, "extra_data", None)
        if extra_data:
            for k, v in extra_data.items():
                parts.append(_paint(f"{k}={v}", self._field_color(k, v)))

        seconds = getattr(record, "seconds", None)
        if seconds is not None:
            parts.append(_paint(f"{seconds:.3f}s", duration_color(seconds)))

        return " ".join(parts)

    @staticmethod
    def _field_color(key: str, value: Any) -> str:
        if key in ("status", "upstream_status") and isinstance(value, int):
            return status_color(value)
        if key == "seconds_remaining" and isinstance(value, (int, float)):
            return expiry_color(value)
        return Colors.DIM
