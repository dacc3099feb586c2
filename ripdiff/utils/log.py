"""Logging utilities for ripdiff.

Messages are prefixed with the emitting component (``"[parser] ..."``) and
structured context goes through ``extra=``. The stderr handler only shows
warnings by default so it never mixes into rendered diff output; a file
attached with ``--log-file`` receives every record with its context as JSON.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

LOG_LEVEL_ENV_VAR = "RIPDIFF_LOG_LEVEL"

# Attributes every LogRecord carries; anything else came in through ``extra=``.
_RESERVED_FIELDS = frozenset(logging.makeLogRecord({}).__dict__) | {"message", "asctime"}


class StructuredFormatter(logging.Formatter):
    """``<utc time> [LEVEL] message | {"extra": ...}``"""

    def formatTime(self, record: logging.LogRecord, datefmt: Optional[str] = None) -> str:
        stamp = datetime.fromtimestamp(record.created, tz=timezone.utc)
        return stamp.isoformat(timespec="milliseconds").replace("+00:00", "Z")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = {
            key: value
            for key, value in vars(record).items()
            if key not in _RESERVED_FIELDS and not key.startswith("_")
        }
        if not context:
            return line
        return f"{line} | {json.dumps(context, sort_keys=True, default=str)}"


class RipdiffLogger:
    """Thin wrapper over the ``ripdiff`` stdlib logger."""

    def __init__(self, name: str = "ripdiff"):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.DEBUG)
        self.logger.propagate = False
        self._file_handler: Optional[logging.FileHandler] = None

        if not self.logger.handlers:
            level_name = os.getenv(LOG_LEVEL_ENV_VAR, "WARNING").upper()
            stderr_handler = logging.StreamHandler(sys.stderr)
            stderr_handler.setLevel(getattr(logging, level_name, logging.WARNING))
            stderr_handler.setFormatter(logging.Formatter("ripdiff %(levelname)s: %(message)s"))
            self.logger.addHandler(stderr_handler)

    @property
    def log_file(self) -> Optional[Path]:
        if self._file_handler is None:
            return None
        return Path(self._file_handler.baseFilename)

    def attach_file_handler(self, log_file: Path) -> Path:
        """Send every record to ``log_file``, replacing a previous file handler."""
        log_file = log_file.expanduser().resolve()
        if self.log_file == log_file:
            return log_file
        self.detach_file_handler()

        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_file, encoding="utf-8")
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(StructuredFormatter("%(asctime)s [%(levelname)s] %(message)s"))
        self.logger.addHandler(handler)
        self._file_handler = handler
        return log_file

    def detach_file_handler(self) -> None:
        if self._file_handler is None:
            return
        self.logger.removeHandler(self._file_handler)
        self._file_handler.close()
        self._file_handler = None

    def debug(self, message: str, *args: Any, **kwargs: Any) -> None:
        self.logger.debug(message, *args, **kwargs)

    def info(self, message: str, *args: Any, **kwargs: Any) -> None:
        self.logger.info(message, *args, **kwargs)

    def warning(self, message: str, *args: Any, **kwargs: Any) -> None:
        self.logger.warning(message, *args, **kwargs)


_logger: Optional[RipdiffLogger] = None


def get_logger() -> RipdiffLogger:
    """Get the process-wide logger."""
    global _logger
    if _logger is None:
        _logger = RipdiffLogger()
    return _logger


def enable_file_logging(log_file: Path) -> Path:
    logger = get_logger()
    path = logger.attach_file_handler(log_file)
    logger.debug("[logging] File logging enabled at %s", path)
    return path
