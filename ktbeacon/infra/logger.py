"""Structured logger utilities."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

# Attributes passed through ``extra=`` by the send pipeline.
BEACON_LOG_FIELDS = ("message_type", "param", "url")


class BeaconJsonFormatter(logging.Formatter):
    """One JSON object per record, with beacon context fields when present."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for field in BEACON_LOG_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                payload[field] = value
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, separators=(",", ":"))


def get_logger(name: str = "ktbeacon", level: int | str = logging.INFO) -> logging.Logger:
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ValueError(f"unknown log level: {level}")
        level = resolved

    logger = logging.getLogger(name)
    logger.setLevel(level)
    if not any(isinstance(h.formatter, BeaconJsonFormatter) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(BeaconJsonFormatter())
        logger.addHandler(handler)
    return logger
