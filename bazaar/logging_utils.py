"""Logging utilities for the LagosBazaar storefront.

Provides console logging setup plus structured JSONL logging for gateway
interactions and other storefront events.
"""

import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from .config import LOG_DIR

__all__ = ["setup_logging", "log_interaction", "JSONLFileHandler", "LOG_DIR"]

logger = logging.getLogger(__name__)


class JSONLFileHandler(logging.Handler):
    """Handler that writes structured JSONL logs, one file per day."""

    def __init__(self, log_dir: Path, prefix: str = "bazaar"):
        super().__init__()
        self.log_dir = log_dir
        self.prefix = prefix

    def _get_log_file(self) -> Path:
        self.log_dir.mkdir(parents=True, exist_ok=True)
        return self.log_dir / f"{self.prefix}_{datetime.now().strftime('%Y%m%d')}.jsonl"

    def emit(self, record: logging.LogRecord) -> None:
        try:
            entry = {
                "timestamp": datetime.now().isoformat(),
                "level": record.levelname,
                "logger": record.name,
                "message": record.getMessage(),
            }
            if record.exc_info:
                entry["exception"] = self.formatException(record.exc_info)

            with open(self._get_log_file(), "a", encoding="utf-8") as f:
                f.write(json.dumps(entry, ensure_ascii=False) + "\n")
        except Exception:
            self.handleError(record)

    def formatException(self, exc_info) -> str:
        return logging.Formatter().formatException(exc_info)


def setup_logging(
    level: int = logging.INFO,
    log_to_file: bool = True,
    log_dir: Optional[Path] = None,
) -> logging.Logger:
    """Set up logging for the storefront package.

    Args:
        level: Logging level (default: INFO)
        log_to_file: Whether to also write JSONL records
        log_dir: Custom log directory (default: project logs/)

    Returns:
        Configured 'bazaar' package logger
    """
    logger = logging.getLogger("bazaar")
    logger.setLevel(level)
    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(
        logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s", datefmt="%H:%M:%S")
    )
    logger.addHandler(console_handler)

    if log_to_file:
        file_handler = JSONLFileHandler(log_dir or LOG_DIR)
        file_handler.setLevel(logging.DEBUG)
        logger.addHandler(file_handler)

    return logger


def log_interaction(event_type: str, data: Dict[str, Any], log_dir: Optional[Path] = None) -> None:
    """Log a storefront event to a structured JSONL file.

    Args:
        event_type: Type of event (gateway_call, gateway_response, gateway_error,
            stale_ai_response, hero_cache_hit, etc.)
        data: Event-specific data to log
        log_dir: Directory override (default: configured LOG_DIR)
    """
    target_dir = log_dir or LOG_DIR
    log_entry = {"timestamp": datetime.now().isoformat(), "event_type": event_type, **data}
    try:
        target_dir.mkdir(parents=True, exist_ok=True)
        log_file = target_dir / f"interactions_{datetime.now().strftime('%Y%m%d')}.jsonl"
        with open(log_file, "a", encoding="utf-8") as f:
            f.write(json.dumps(log_entry, ensure_ascii=False, default=str) + "\n")
    except OSError:
        # Event logging must never break the request that produced the event
        logger.exception("Failed to write %s event to %s", event_type, target_dir)
