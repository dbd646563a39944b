"""Logging for Doctor Food.

One stdout handler per logger, configured from the environment:
- LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO)
- LOG_TYPE: text, json (default: text)

Analysis log lines can carry context through ``extra``:
- analysis_id: correlates every line of one analysis cycle
- intent: camera or gallery
- state: the state the controller just entered
"""

import json
import logging
import os
import sys
from typing import Any

CONTEXT_FIELDS = ("analysis_id", "intent", "state")

# level name -> (ANSI color, icon)
LEVEL_STYLES = {
    "DEBUG": ("\033[36m", "🔍"),
    "INFO": ("\033[32m", "ℹ️"),
    "WARNING": ("\033[33m", "⚠️"),
    "ERROR": ("\033[31m", "❌"),
    "CRITICAL": ("\033[1;31m", "🔥"),
}
RESET = "\033[0m"


def record_context(record: logging.LogRecord) -> dict[str, Any]:
    """Return the context fields attached to a record, in CONTEXT_FIELDS order."""
    return {field: getattr(record, field) for field in CONTEXT_FIELDS if hasattr(record, field)}


class JSONFormatter(logging.Formatter):
    """One JSON object per line; Arabic text is kept readable."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **record_context(record),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


class RichTextFormatter(logging.Formatter):
    """Colored single-line output with a level icon.

    The analysis id is shown as a ``[id]`` prefix; other context fields are
    appended as ``key=value`` pairs.
    """

    def format(self, record: logging.LogRecord) -> str:
        color, icon = LEVEL_STYLES.get(record.levelname, (RESET, ""))
        context = record_context(record)

        prefix = f"[{context.pop('analysis_id')}] " if "analysis_id" in context else ""
        suffix = "".join(f" {key}={value}" for key, value in context.items())
        line = (
            f"{color}{icon} {self.formatTime(record, '%Y-%m-%d %H:%M:%S')} "
            f"{record.levelname:<8} {record.name:<20} {prefix}{record.getMessage()}{suffix}{RESET}"
        )

        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def get_logger(name: str) -> logging.Logger:
    """Return the named logger, attaching a stdout handler on first use."""
    instance = logging.getLogger(name)
    if instance.handlers:
        return instance

    level = getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)
    if not isinstance(level, int):
        level = logging.INFO
    formatter = JSONFormatter() if os.getenv("LOG_TYPE", "text").lower() == "json" else RichTextFormatter()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(formatter)

    instance.setLevel(level)
    instance.addHandler(handler)
    return instance


def quiet_library_loggers(*names: str) -> None:
    """Raise third-party loggers to WARNING."""
    for name in names:
        logging.getLogger(name).setLevel(logging.WARNING)


logger = get_logger("doctor_food")

quiet_library_loggers("google.genai", "google_genai", "httpx")
