"""
Custom Log Handlers for GitLike.

JSONL rotating file handler for structured log output.
"""

import json
import logging
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path


class JSONLRotatingHandler(RotatingFileHandler):
    """
    Rotating file handler that writes JSONL format.

    Each log record is written as a single JSON line. The file is opened
    lazily so merely configuring a logger creates nothing on disk.
    """

    def __init__(
        self,
        filename: str | Path,
        max_bytes: int = 5_000_000,
        backup_count: int = 3,
    ):
        """
        Initialize JSONL handler.

        Args:
            filename: Path to log file
            max_bytes: Max file size before rotation
            backup_count: Number of backup files to keep
        """
        filepath = Path(filename)
        filepath.parent.mkdir(parents=True, exist_ok=True)

        super().__init__(
            str(filepath),
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
            delay=True,
        )

    def emit(self, record: logging.LogRecord) -> None:
        """
        Emit a log record as a JSONL line.

        Messages that are already JSON (entry.to_json()) are written as-is;
        plain text is wrapped in a small JSON object.
        """
        try:
            msg = self.format(record)

            try:
                data = json.loads(msg)
            except json.JSONDecodeError:
                data = {
                    "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
                    "level": record.levelname,
                    "message": msg,
                    "logger": record.name,
                }

            line = json.dumps(data, default=str) + "\n"
            if self.stream is None:
                self.stream = self._open()
            if self.shouldRollover(record):
                self.doRollover()
            self.stream.write(line)
            self.flush()

        except Exception:
            self.handleError(record)


class SimpleFormatter(logging.Formatter):
    """Formatter that returns the message as-is (entries are already JSON)."""

    def format(self, record: logging.LogRecord) -> str:
        """Return just the message, no formatting."""
        return record.getMessage()


def create_jsonl_logger(
    name: str,
    filepath: Path,
    level: str = "INFO",
    max_bytes: int = 5_000_000,
    backup_count: int = 3,
) -> logging.Logger:
    """
    Create a logger configured for JSONL output.

    Args:
        name: Logger name
        filepath: Path to log file
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        max_bytes: Max file size before rotation
        backup_count: Number of backup files

    Returns:
        Configured logger
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Remove existing handlers to avoid duplicates
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()

    handler = JSONLRotatingHandler(
        filepath,
        max_bytes=max_bytes,
        backup_count=backup_count,
    )
    handler.setFormatter(SimpleFormatter())
    logger.addHandler(handler)

    # Don't propagate to root logger
    logger.propagate = False

    return logger
