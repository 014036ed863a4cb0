"""
Structured logging configuration.

Emits both human-readable and JSON logs. Structured fields travel on the
record via `extra=` and JSON logs include:
- Timestamp
- Level
- Subsystem
- Session ID
- Agent
- Sequence number
- Event type
- Latency metrics
"""
from __future__ import annotations

import itertools
import json
import logging
import os
import sys
from datetime import datetime
from logging.handlers import RotatingFileHandler
from typing import Any, Optional

_STRUCTURED_FIELDS = ("subsystem", "session_id", "agent", "event_type", "seq", "latency_ms")

_seq = itertools.count(1)


class JSONFormatter(logging.Formatter):
    """Format log records as JSON."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "ts": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for name in _STRUCTURED_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                log_data["event" if name == "event_type" else name] = value

        extra_data = getattr(record, "extra_data", None)
        if extra_data:
            log_data.update(extra_data)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class HumanFormatter(logging.Formatter):
    """Human-readable format with colors."""

    COLORS = {
        "DEBUG": "\033[36m",    # Cyan
        "INFO": "\033[32m",     # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",    # Red
        "CRITICAL": "\033[35m", # Magenta
    }
    RESET = "\033[0m"

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S.%f")[:-3]
        prefix_parts = [f"{timestamp} {record.levelname[:4]}"]

        subsystem = getattr(record, "subsystem", None)
        if subsystem and subsystem != "general":
            prefix_parts.append(f"[{subsystem}]")
        agent = getattr(record, "agent", None)
        if agent:
            prefix_parts.append(f"agent={agent}")
        session_id = getattr(record, "session_id", None)
        if session_id:
            prefix_parts.append(f"session={session_id[:8]}")

        message = record.getMessage()
        latency_ms = getattr(record, "latency_ms", None)
        if latency_ms is not None:
            message = f"{message} ({latency_ms:.1f}ms)"

        line = f"{' '.join(prefix_parts)}: {message}"

        if self.use_colors and sys.stderr.isatty():
            color = self.COLORS.get(record.levelname, "")
            line = f"{color}{line}{self.RESET}"

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)

        return line


def log_event(
    logger: logging.Logger,
    event_type: str,
    msg: str,
    level: int = logging.INFO,
    subsystem: str = "coach",
    session_id: Optional[str] = None,
    agent: Optional[str] = None,
    latency_ms: Optional[float] = None,
    **extra: Any,
) -> None:
    """Log a structured event; unknown keyword arguments land in extra_data."""
    logger.log(
        level,
        msg,
        extra={
            "subsystem": subsystem,
            "session_id": session_id,
            "agent": agent,
            "event_type": event_type,
            "seq": next(_seq),
            "latency_ms": latency_ms,
            "extra_data": extra,
        },
    )


def configure_logging(
    level: str = "INFO",
    log_dir: Optional[str] = None,
    json_file: Optional[str] = None,
    max_bytes: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5,
) -> None:
    """
    Configure structured logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        log_dir: Directory for log files
        json_file: Path for JSON logs (in log_dir if relative)
        max_bytes: Max size per log file
        backup_count: Number of backup files to keep
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))
    root_logger.handlers = []

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(HumanFormatter())
    root_logger.addHandler(console)

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

        human_handler = RotatingFileHandler(
            os.path.join(log_dir, "chef_coach.log"),
            maxBytes=max_bytes,
            backupCount=backup_count,
        )
        human_handler.setFormatter(HumanFormatter(use_colors=False))
        root_logger.addHandler(human_handler)

        json_path = json_file or "chef_coach.json.log"
        if not os.path.isabs(json_path):
            json_path = os.path.join(log_dir, json_path)

        json_handler = RotatingFileHandler(
            json_path,
            maxBytes=max_bytes,
            backupCount=backup_count,
        )
        json_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(json_handler)
