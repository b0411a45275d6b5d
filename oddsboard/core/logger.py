# core/logger.py
import json
import logging
from typing import Any

from .config import ENVCFG


# ---------- JSON logger ----------
class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def get_logger(name: str) -> logging.Logger:
    """Named logger with a single JSON stream handler; level from ODDSBOARD_LOG_LEVEL."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(JsonFormatter())
        logger.addHandler(handler)
    logger.setLevel(logging._nameToLevel.get(ENVCFG.LOG_LEVEL.upper(), logging.INFO))
    return logger


def log_event(logger: logging.Logger, event: str, level: str = "info", **kwargs: Any) -> None:
    msg = {"event": event, **kwargs}
    getattr(logger, level, logger.info)(json.dumps(msg, default=str))
