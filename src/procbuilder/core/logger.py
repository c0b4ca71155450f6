"""JSON-lines logging of process runs.

Each execution of a builder produces a `process_exec_start` line, a
`process_exec_end` line carrying the exit status and duration, and, when the
run fails, a `process_failed` line with the structured error fields.
"""

import json
import logging
import os
import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

from procbuilder.core.command import ExitStatus
from procbuilder.core.exceptions import ProcessError, format_error_for_log

DEFAULT_LOG_DIR = "~/.procbuilder/logs"
LOG_FILE_NAME = "procbuilder.log"

# Keys written by JSONFormatter itself; event fields never replace them
RESERVED_FIELDS = ("timestamp", "level", "message")


def file_logging_disabled() -> bool:
    return os.environ.get("PROCBUILDER_DISABLE_FILE_LOGGING", "").lower() in ("1", "true", "yes")


@dataclass
class RunRecord:
    """What is known about one run while it is being logged.

    The builder fills in `status` once the child has exited; it stays None
    when the process never started.
    """

    command: str
    capture: bool
    status: ExitStatus | None = None

    def fields(self) -> dict[str, Any]:
        return {"command": self.command, "capture": self.capture}

    def outcome(self) -> dict[str, Any]:
        if self.status is None:
            return {"exit_status": "never executed"}
        return {"exit_status": str(self.status), "returncode": self.status.returncode}


class ProcBuilderLogger:
    """Logger for process runs with rotation.

    Lines go to ~/.procbuilder/logs/procbuilder.log (unless file logging is
    disabled through PROCBUILDER_DISABLE_FILE_LOGGING) and to stderr.
    """

    log_dir: Path | None
    log_file: Path | None

    def __init__(
        self,
        log_dir: str | None = None,
        max_bytes: int = 10 * 1024 * 1024,  # 10MB
        backup_count: int = 5,
        level: str | None = None,
    ) -> None:
        """Initialize logger with rotation.

        Args:
            log_dir: Directory for log files (defaults to ~/.procbuilder/logs/)
            max_bytes: Maximum size before rotation (default 10MB)
            backup_count: Number of backup files to keep (default 5)
            level: Log level, reads from PROCBUILDER_LOG_LEVEL env if not provided
        """
        self._logger = logging.getLogger("procbuilder")
        self._logger.propagate = False

        for handler in self._logger.handlers[:]:
            handler.close()
            self._logger.removeHandler(handler)

        handlers: list[logging.Handler] = [logging.StreamHandler()]
        self.log_dir = None
        self.log_file = None

        if not file_logging_disabled():
            self.log_dir = Path(log_dir if log_dir is not None else DEFAULT_LOG_DIR).expanduser()
            self.log_dir.mkdir(parents=True, exist_ok=True)
            self.log_file = self.log_dir / LOG_FILE_NAME
            handlers.append(
                RotatingFileHandler(self.log_file, maxBytes=max_bytes, backupCount=backup_count)
            )

        for handler in handlers:
            handler.setFormatter(JSONFormatter())
            self._logger.addHandler(handler)

        # Successful runs are logged at INFO, so they stay quiet by default
        self.set_level(level or os.environ.get("PROCBUILDER_LOG_LEVEL", "WARNING"))

    def set_level(self, level: str) -> None:
        """Set logging level (DEBUG, INFO, WARN/WARNING, ERROR)."""
        level_upper = level.upper()
        if level_upper == "WARN":
            level_upper = "WARNING"
        self._logger.setLevel(getattr(logging, level_upper, logging.INFO))

    def flush(self) -> None:
        for handler in self._logger.handlers:
            handler.flush()

    def _emit(self, level: int, event: str, **fields: Any) -> None:
        self._logger.log(level, event, extra={"fields": fields})

    @contextmanager
    def process_run(self, command: str, capture: bool) -> Iterator[RunRecord]:
        """Log the start and end of one run.

        The end line is written even when the body raises, with whatever
        status the body recorded.

        Example:
            with logger.process_run("`ls -l`", capture=True) as run:
                run.status = command.run(capture=True).status
        """
        record = RunRecord(command=command, capture=capture)
        start = time.monotonic()
        self._emit(logging.INFO, "process_exec_start", **record.fields())

        try:
            yield record
        finally:
            duration_ms = (time.monotonic() - start) * 1000
            self._emit(
                logging.INFO,
                "process_exec_end",
                **record.fields(),
                **record.outcome(),
                duration_ms=duration_ms,
            )

    def process_failed(self, error: ProcessError) -> None:
        """Log a failed run with the error's structured fields."""
        fields = format_error_for_log(error)
        fields["error_message"] = fields.pop("message")
        self._emit(logging.WARNING, "process_failed", **fields)


class JSONFormatter(logging.Formatter):
    """Formats log records as JSON lines.

    Event fields that collide with the line's own keys are written with a
    `field_` prefix instead of replacing them.
    """

    def format(self, record: logging.LogRecord) -> str:
        dt = datetime.fromtimestamp(record.created, tz=UTC)
        timestamp = dt.strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"

        log_data: dict[str, Any] = {
            "timestamp": timestamp,
            "level": record.levelname,
            "message": record.getMessage(),
        }

        for key, value in getattr(record, "fields", {}).items():
            log_data[f"field_{key}" if key in RESERVED_FIELDS else key] = value

        return json.dumps(log_data, default=str)
