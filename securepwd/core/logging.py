"""
Secure Logging Module
=====================

Redacting log handlers for the password container library.

Library modules never attach handlers. They log lifecycle events
(epochs, sizes, operation names) through child loggers of
``securepwd``:

- securepwd.memory: block allocation and retirement
- securepwd.password: reallocating mutations and moves
- securepwd.streams: stream bridge transfers

Applications opt in with configure_logging(), which attaches console
and rotating-file handlers to the ``securepwd`` logger, or with
get_secure_logger() for a logger of their own.

Security Features:
- Credential-looking text in messages and arguments is redacted
- Raw buffers passed as log arguments are replaced by their length
- Log files are only written below an explicit directory
"""

from __future__ import annotations

import json
import logging
import re
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Final, Optional, Pattern

from securepwd.core.config import LoggingConfig, SecureConfig


PACKAGE_LOGGER: Final[str] = "securepwd"

_VALUE: Final[str] = r'\s*[=:]\s*["\']?[^\s"\']+["\']?'

# Keyword followed by an assigned value, e.g. "password=hunter2"
_SENSITIVE_PATTERNS: Final[list[tuple[str, Pattern[str]]]] = [
    ("password", re.compile(r"(?i)\b(password|passwd|passphrase|pwd|pin)" + _VALUE)),
    ("secret", re.compile(r"(?i)\b(secret|private[_-]?key)" + _VALUE)),
    ("token", re.compile(r"(?i)\b(token|bearer|api[_-]?key)" + _VALUE)),
    ("credential", re.compile(r"(?i)\b(credential|auth)" + _VALUE)),
    # Long encoded blobs
    ("base64_secret", re.compile(r"[A-Za-z0-9+/]{40,}={0,2}")),
    ("hex_secret", re.compile(r"(?i)(?:0x)?[a-f0-9]{32,}")),
]

_REDACTED_TEXT: Final[str] = "[REDACTED]"

_CONSOLE_DATE_FORMAT: Final[str] = "%H:%M:%S"
_FILE_FORMAT: Final[str] = (
    "%(asctime)s | %(levelname)-8s | %(name)s | %(funcName)s:%(lineno)d | %(message)s"
)


class SecureLogFilter(logging.Filter):
    """
    Log filter that redacts secrets before a record is formatted.

    String messages and string arguments are scanned for credential
    patterns. Bytes-like arguments are never formatted: they may hold
    code units copied out of a password, so only their size is kept.
    """

    def __init__(self, name: str = "", additional_patterns: Optional[list[Pattern[str]]] = None) -> None:
        """
        Initialize the secure log filter.

        Args:
            name: Logger name filter (empty string matches all)
            additional_patterns: Extra regex patterns replaced by [REDACTED]
        """
        super().__init__(name)
        self._additional_patterns = additional_patterns or []

    def filter(self, record: logging.LogRecord) -> bool:
        """Redact the record in place; the record is always kept."""
        if isinstance(record.msg, str) and record.msg:
            record.msg = self._sanitize(record.msg)

        if isinstance(record.args, dict):
            record.args = {key: self._scrub(value) for key, value in record.args.items()}
        elif isinstance(record.args, tuple):
            record.args = tuple(self._scrub(arg) for arg in record.args)

        return True

    def _scrub(self, value: Any) -> Any:
        if isinstance(value, str):
            return self._sanitize(value)
        if isinstance(value, (bytes, bytearray, memoryview)):
            nbytes = value.nbytes if isinstance(value, memoryview) else len(value)
            return f"<{nbytes} bytes {_REDACTED_TEXT}>"
        return value

    def _sanitize(self, text: str) -> str:
        for name, pattern in _SENSITIVE_PATTERNS:
            text = pattern.sub(f"{name}={_REDACTED_TEXT}", text)
        for pattern in self._additional_patterns:
            text = pattern.sub(_REDACTED_TEXT, text)
        return text


class StructuredLogFormatter(logging.Formatter):
    """One JSON object per record, for log aggregation."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
            "thread": record.threadName,
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class SecureRotatingFileHandler(RotatingFileHandler):
    """
    Rotating file handler that refuses ``..`` components and creates
    its parent directory.
    """

    def __init__(
        self,
        filename: str | Path,
        mode: str = "a",
        maxBytes: int = 10 * 1024 * 1024,
        backupCount: int = 5,
        encoding: str = "utf-8",
    ) -> None:
        if ".." in Path(filename).parts:
            raise ValueError("Log path cannot contain path traversal sequences")

        log_path = Path(filename).resolve()
        log_path.parent.mkdir(parents=True, exist_ok=True)

        super().__init__(
            str(log_path),
            mode=mode,
            maxBytes=maxBytes,
            backupCount=backupCount,
            encoding=encoding,
        )


def _build_handlers(
    file_stem: str,
    config: LoggingConfig,
    log_dir: Optional[Path],
    enable_json: bool,
) -> list[logging.Handler]:
    secure_filter = SecureLogFilter()
    handlers: list[logging.Handler] = []

    if config.enable_console:
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(logging.Formatter(config.format, datefmt=_CONSOLE_DATE_FORMAT))
        handlers.append(console)

    if config.enable_file and log_dir is not None:
        file_handler = SecureRotatingFileHandler(
            filename=Path(log_dir) / f"{file_stem}.log",
            maxBytes=config.max_file_size_bytes,
            backupCount=config.backup_count,
        )
        if enable_json:
            file_handler.setFormatter(StructuredLogFormatter())
        else:
            file_handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt=config.date_format))
        handlers.append(file_handler)

    for handler in handlers:
        handler.setLevel(logging.DEBUG)
        handler.addFilter(secure_filter)
    return handlers


def get_secure_logger(
    name: str,
    log_dir: Optional[Path] = None,
    config: Optional[LoggingConfig] = None,
    enable_json: bool = False,
) -> logging.Logger:
    """
    Create a logger with redacting handlers.

    Handlers are attached once; later calls return the same logger
    unchanged. The logger does not propagate to the root logger.

    Args:
        name: Logger name (typically __name__)
        log_dir: Directory for log files (file output needs one)
        config: Logging settings (defaults to SecureConfig's logging section)
        enable_json: Write file output as JSON lines

    Returns:
        Configured logger
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    config = config or SecureConfig.get_instance().logging
    logger.setLevel(config.level.upper())
    for handler in _build_handlers(name.replace(".", "_"), config, log_dir, enable_json):
        logger.addHandler(handler)
    logger.propagate = False
    return logger


def configure_logging(
    log_dir: Optional[Path] = None,
    config: Optional[LoggingConfig] = None,
    enable_json: bool = False,
) -> logging.Logger:
    """
    Route the library's own log records through redacting handlers.

    Call once at application startup. Every ``securepwd.*`` logger
    inherits the handlers attached here.

    Returns:
        The ``securepwd`` package logger
    """
    return get_secure_logger(PACKAGE_LOGGER, log_dir=log_dir, config=config, enable_json=enable_json)
