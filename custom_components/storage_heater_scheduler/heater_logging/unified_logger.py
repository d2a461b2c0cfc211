"""Structured event logger for the heater scheduler.

Every event goes to the Home Assistant log as ``EVENT | key=value | ...``.
Optionally (off by default) events are also written to:
1. A rotating text log (``heater.log``, 5MB x 3)
2. Daily structured JSON-lines files (``YEAR/MONTH/DAY/events.log``)

File I/O runs in a background thread so the event loop never blocks.
"""

from __future__ import annotations

import json
import logging
import queue
import threading
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

_LOGGER = logging.getLogger(__name__)

LOGGER_NAME = "custom_components.storage_heater_scheduler"


class HeaterLogger:
    """Event logger with optional file output."""

    CRITICAL = "critical"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    DEBUG = "debug"

    _LEVELS = {
        CRITICAL: logging.CRITICAL,
        ERROR: logging.ERROR,
        WARNING: logging.WARNING,
        INFO: logging.INFO,
        DEBUG: logging.DEBUG,
    }

    def __init__(
        self,
        name: str = "heater",
        log_dir: Path | None = None,
        max_file_size_mb: int = 5,
        backup_count: int = 3,
    ) -> None:
        """Initialize the logger.

        Args:
            name: Child logger name
            log_dir: Directory for file logs (default: component dir/log)
            max_file_size_mb: Max size of the rotating log file
            backup_count: Rotated files to keep
        """
        self.name = name
        self.log_dir = log_dir or Path(__file__).parent.parent / "log"
        self._max_file_size_mb = max_file_size_mb
        self._backup_count = backup_count

        self._ha_logger = logging.getLogger(f"{LOGGER_NAME}.{name}")

        self._file_logging_enabled = False
        self._file_handler: RotatingFileHandler | None = None
        self._write_queue: queue.Queue = queue.Queue()
        self._writer_thread: threading.Thread | None = None

    # ========== File output ==========

    def set_file_logging(self, enabled: bool) -> None:
        """Turn file output on or off."""
        if enabled == self._file_logging_enabled:
            return

        self._file_logging_enabled = enabled
        if enabled:
            self._start_writer_thread()
        else:
            self.shutdown()

        self.info("FILE_LOGGING_CHANGED", enabled=enabled, dir=str(self.log_dir))

    @property
    def file_logging_enabled(self) -> bool:
        """Check if file output is enabled."""
        return self._file_logging_enabled

    def _start_writer_thread(self) -> None:
        if self._writer_thread is not None and self._writer_thread.is_alive():
            return
        self._writer_thread = threading.Thread(
            target=self._writer_loop,
            name="HeaterLogWriter",
            daemon=True,
        )
        self._writer_thread.start()

    def shutdown(self) -> None:
        """Stop the writer thread and close file handlers."""
        self._file_logging_enabled = False
        thread = self._writer_thread
        if thread is None:
            return
        self._write_queue.put(None)
        thread.join(timeout=2.0)
        self._writer_thread = None

    def _writer_loop(self) -> None:
        self._open_file_handler()

        while True:
            item = self._write_queue.get()
            if item is None:
                break
            try:
                self._write_daily_entry(*item)
            except OSError as ex:
                _LOGGER.error("Failed to write daily event log: %s", ex)

        if self._file_handler is not None:
            self._ha_logger.removeHandler(self._file_handler)
            self._file_handler.close()
            self._file_handler = None

    def _open_file_handler(self) -> None:
        try:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            handler = RotatingFileHandler(
                self.log_dir / "heater.log",
                maxBytes=self._max_file_size_mb * 1024 * 1024,
                backupCount=self._backup_count,
                encoding="utf-8",
            )
        except OSError as ex:
            _LOGGER.error("Failed to set up file handler: %s", ex)
            return

        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s | %(levelname)s | %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        handler.setLevel(logging.DEBUG)
        self._ha_logger.addHandler(handler)
        self._file_handler = handler

    def daily_log_file(self, when: datetime) -> Path:
        """Path of the structured log for a given day."""
        return (
            self.log_dir
            / str(when.year)
            / f"{when.month:02d}"
            / f"{when.day:02d}"
            / "events.log"
        )

    def _write_daily_entry(
        self, event: str, level: str, data: dict[str, Any], timestamp: datetime
    ) -> None:
        log_file = self.daily_log_file(timestamp)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        entry = {
            "timestamp": timestamp.strftime("%Y-%m-%d %H:%M:%S.%f")[:-3],
            "level": level,
            "event": event,
            "data": data,
        }
        with open(log_file, "a", encoding="utf-8") as f:
            f.write(json.dumps(entry, default=str) + "\n")

    # ========== Logging API ==========

    @staticmethod
    def format_message(event: str, data: dict[str, Any]) -> str:
        """Render an event as a single log line."""
        if not data:
            return event
        return f"{event} | " + " | ".join(f"{k}={v}" for k, v in data.items())

    def log(self, level: str, event: str, **data: Any) -> None:
        """Log an event at the given level.

        Args:
            level: One of critical, error, warning, info, debug
            event: Event name, e.g. "CYCLE_STARTED"
            **data: Context values
        """
        self._ha_logger.log(
            self._LEVELS.get(level, logging.DEBUG), self.format_message(event, data)
        )
        if self._file_logging_enabled:
            self._write_queue.put_nowait((event, level, data, datetime.now()))

    def critical(self, event: str, **data: Any) -> None:
        """Log critical event."""
        self.log(self.CRITICAL, event, **data)

    def error(self, event: str, **data: Any) -> None:
        """Log error event."""
        self.log(self.ERROR, event, **data)

    def warning(self, event: str, **data: Any) -> None:
        """Log warning event."""
        self.log(self.WARNING, event, **data)

    def info(self, event: str, **data: Any) -> None:
        """Log info event."""
        self.log(self.INFO, event, **data)

    def debug(self, event: str, **data: Any) -> None:
        """Log debug event."""
        self.log(self.DEBUG, event, **data)

    def separator(self, title: str = "") -> None:
        """Log a visual separator."""
        self.debug(f"{'=' * 20} {title} {'=' * 20}" if title else "=" * 60)


_logger_instance: HeaterLogger | None = None


def get_logger() -> HeaterLogger:
    """Get or create the singleton logger instance."""
    global _logger_instance
    if _logger_instance is None:
        _logger_instance = HeaterLogger()
    return _logger_instance
