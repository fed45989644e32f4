from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Optional

from transitiongate.config import log_format, log_level

# Record attributes set through `extra=` or a LoggerAdapter while an issue
# pipeline runs.
CONTEXT_FIELDS = ("issue",)


class JsonLogFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                payload[field] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, separators=(",", ":"), ensure_ascii=False)


class TextLogFormatter(logging.Formatter):
    """Plain formatter that prefixes issue-scoped lines with `[KEY]`."""

    def __init__(self) -> None:
        super().__init__("%(asctime)s %(levelname)s %(name)s %(message)s")

    def formatMessage(self, record: logging.LogRecord) -> str:
        line = super().formatMessage(record)
        issue = getattr(record, "issue", None)
        return f"[{issue}] {line}" if issue else line


def configure_logging(level: Optional[str] = None, fmt: Optional[str] = None) -> None:
    level_value = getattr(logging, (level or log_level()).upper(), logging.INFO)
    selected_format = (fmt or log_format()).strip().lower()
    formatter = JsonLogFormatter() if selected_format == "json" else TextLogFormatter()

    root = logging.getLogger()
    root.setLevel(level_value)
    if not root.handlers:
        handler = logging.StreamHandler()
        root.addHandler(handler)
    for handler in root.handlers:
        handler.setFormatter(formatter)
