"""
Structured event logging for cache activity.

Every event goes to the regular ``http_content.events`` logger as one
``[event] key=value`` line. When a log directory is given, the same event is
also appended as a JSON object to ``http_content_<timestamp>.jsonl``.
"""

import json
import logging
import sys
import uuid
from datetime import datetime
from pathlib import Path
from typing import IO, Any


class StructuredLogger:
    """
    Writes named events with keyword fields to logging and, optionally, JSON lines.

    Usage:
        with StructuredLogger(log_dir=Path("logs")) as events:
            events.emit(logging.INFO, "fetch_completed", url=url, size_bytes=1024)
    """

    def __init__(self, name: str = "http_content.events", log_dir: Path | None = None):
        self._logger = logging.getLogger(name)
        self.run_id = uuid.uuid4().hex[:12]
        self.json_path: Path | None = None
        self._json_file: IO[str] | None = None

        if log_dir is not None:
            log_dir.mkdir(parents=True, exist_ok=True)
            stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            self.json_path = log_dir / f"http_content_{stamp}.jsonl"
            self._json_file = self.json_path.open("a", encoding="utf-8")

    def emit(self, level: int, event: str, **fields: Any) -> None:
        if self._logger.isEnabledFor(level):
            details = " ".join(f"{key}={value}" for key, value in fields.items())
            self._logger.log(level, f"[{event}] {details}".rstrip())
        if self._json_file is None or self._json_file.closed:
            return

        record = {
            "ts": datetime.now().isoformat(timespec="milliseconds"),
            "run_id": self.run_id,
            "level": logging.getLevelName(level),
            "event": event,
            **fields,
        }
        try:
            self._json_file.write(json.dumps(record, default=str) + "\n")
            self._json_file.flush()
        except (OSError, ValueError) as e:
            print(f"Could not write event log: {e}", file=sys.stderr)

    def close(self) -> None:
        if self._json_file is not None and not self._json_file.closed:
            self._json_file.close()

    def __enter__(self) -> "StructuredLogger":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


class ContentEventLogger:
    """The fixed set of events the cache components report."""

    def __init__(self, logger: StructuredLogger):
        self.logger = logger

    def cache_hit(self, url: str, path: str, size_bytes: int):
        self.logger.emit(
            logging.DEBUG, "cache_hit", url=url, path=path, size_bytes=size_bytes
        )

    def fetch_started(self, url: str, path: str):
        self.logger.emit(logging.DEBUG, "fetch_started", url=url, path=path)

    def fetch_completed(self, url: str, path: str, size_bytes: int, duration_s: float):
        self.logger.emit(
            logging.INFO,
            "fetch_completed",
            url=url,
            path=path,
            size_bytes=size_bytes,
            duration_s=round(duration_s, 3),
        )

    def fetch_failed(self, url: str, path: str, error: str):
        self.logger.emit(logging.WARNING, "fetch_failed", url=url, path=path, error=error)

    def stale_fallback(self, url: str, path: str, size_bytes: int):
        """A refetch failed and an older local copy was served instead."""
        self.logger.emit(
            logging.WARNING, "stale_fallback", url=url, path=path, size_bytes=size_bytes
        )

    def sweep_completed(self, folder: str, removed: int, duration_s: float):
        self.logger.emit(
            logging.INFO,
            "sweep_completed",
            folder=folder,
            removed=removed,
            duration_s=round(duration_s, 3),
        )

    def sound_mounted(self, url: str, sound_path: str, from_cache: bool):
        self.logger.emit(
            logging.INFO,
            "sound_mounted",
            url=url,
            sound_path=sound_path,
            from_cache=from_cache,
        )


def create_structured_logger(
    log_dir: Path | None = None,
) -> tuple[StructuredLogger, ContentEventLogger]:
    """
    Returns:
        Tuple of (base_logger, event_logger). JSON output is on only with a log_dir.
    """
    base = StructuredLogger(log_dir=log_dir)
    return base, ContentEventLogger(base)
