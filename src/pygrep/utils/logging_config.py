"""
Diagnostics for pygrep.

Search results go to stdout; everything logged here goes to stderr (and
optionally to a rotating log file), so piping results never mixes the two
streams. Every message carries an ``operation`` field plus event specific
fields, which the JSON and structured layouts print next to the message.

Log events:
    search_start / search_complete: one pair per invocation (INFO)
    source_error: a source could not be opened or read (ERROR)
    source_skipped / binary_source: traversal and detection notes (DEBUG)
"""

from __future__ import annotations

import json
import logging
import logging.handlers
import sys
from enum import Enum
from pathlib import Path
from typing import Any


class LogLevel(str, Enum):
    """Available log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Available log formats."""

    SIMPLE = "simple"
    DETAILED = "detailed"
    JSON = "json"
    STRUCTURED = "structured"


# Attributes every LogRecord has; anything else on a record came from ``extra``
_STANDARD_ATTRS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", None, None).__dict__
) | {"message", "asctime"}


def _event_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {k: v for k, v in record.__dict__.items() if k not in _STANDARD_ATTRS}


class SearchLogger:
    """
    Logger for search events.

    The default level is WARNING: per-source errors are shown, progress
    messages are not. The simple layout prefixes messages with the program
    name the way grep does (``pygrep: a.txt: Permission denied``).
    """

    def __init__(
        self,
        name: str = "pygrep",
        level: LogLevel = LogLevel.WARNING,
        format_type: LogFormat = LogFormat.SIMPLE,
        log_file: Path | None = None,
        max_file_size: int = 10 * 1024 * 1024,  # 10MB
        backup_count: int = 5,
        enable_console: bool = True,
        enable_file: bool = False,
    ):
        self.name = name
        self.level = level
        self.format_type = format_type
        self.log_file = log_file

        self.logger = logging.getLogger(name)
        self.logger.setLevel(level.value)
        self.logger.propagate = False
        # Reconfiguring the same name replaces, never stacks, handlers
        self.logger.handlers.clear()

        handlers: list[logging.Handler] = []
        if enable_console:
            handlers.append(logging.StreamHandler(sys.stderr))
        if enable_file and log_file:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(
                logging.handlers.RotatingFileHandler(
                    log_file, maxBytes=max_file_size, backupCount=backup_count, encoding="utf-8"
                )
            )
        for handler in handlers:
            handler.setLevel(level.value)
            handler.setFormatter(self._get_formatter())
            self.logger.addHandler(handler)

    def _get_formatter(self) -> logging.Formatter:
        if self.format_type == LogFormat.DETAILED:
            return logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(operation)s - %(message)s",
                defaults={"operation": "-"},
            )
        if self.format_type == LogFormat.JSON:
            return JsonFormatter()
        if self.format_type == LogFormat.STRUCTURED:
            return StructuredFormatter()
        return logging.Formatter(f"{self.name}: %(message)s")

    def _log(self, level: int, message: str, operation: str, **fields: Any) -> None:
        if self.logger.isEnabledFor(level):
            self.logger.log(level, message, extra={"operation": operation, **fields})

    def log_search_start(self, pattern: str, paths: list[str], **kwargs: Any) -> None:
        self._log(
            logging.INFO,
            f"Searching for {pattern!r} in {', '.join(paths) or 'standard input'}",
            "search_start",
            pattern=pattern,
            paths=paths,
            **kwargs,
        )

    def log_search_complete(
        self, pattern: str, match_count: int, elapsed_ms: float, **kwargs: Any
    ) -> None:
        self._log(
            logging.INFO,
            f"Search for {pattern!r} done: {match_count} match(es) in {elapsed_ms:.2f}ms",
            "search_complete",
            pattern=pattern,
            match_count=match_count,
            elapsed_ms=elapsed_ms,
            **kwargs,
        )

    def log_source_error(self, source: str, error: str, **kwargs: Any) -> None:
        """Log a per-source failure. The message already names the source."""
        self._log(logging.ERROR, error, "source_error", source=source, **kwargs)

    def log_binary_source(self, source: str, **kwargs: Any) -> None:
        self._log(
            logging.DEBUG, f"Binary content detected: {source}", "binary_source", source=source, **kwargs
        )

    def log_source_skipped(self, source: str, reason: str, **kwargs: Any) -> None:
        self._log(
            logging.DEBUG,
            f"Skipping {source}: {reason}",
            "source_skipped",
            source=source,
            reason=reason,
            **kwargs,
        )


class JsonFormatter(logging.Formatter):
    """One JSON object per log line."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": record.created,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_event_fields(record),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        # stdlib json keeps surrogate-escaped file names encodable
        return json.dumps(entry, default=str)


class StructuredFormatter(logging.Formatter):
    """``time [LEVEL] logger: message | key=value ...``"""

    def format(self, record: logging.LogRecord) -> str:
        line = f"{self.formatTime(record)} [{record.levelname}] {record.name}: {record.getMessage()}"
        fields = _event_fields(record)
        if fields:
            line += " | " + " ".join(f"{k}={v}" for k, v in fields.items())
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


_global_logger: SearchLogger | None = None


def get_logger() -> SearchLogger:
    """Get the global logger instance."""
    global _global_logger
    if _global_logger is None:
        _global_logger = SearchLogger()
    return _global_logger


def configure_logging(
    level: LogLevel = LogLevel.WARNING,
    format_type: LogFormat = LogFormat.SIMPLE,
    log_file: Path | None = None,
    enable_console: bool = True,
    enable_file: bool = False,
    **kwargs: Any,
) -> SearchLogger:
    """Replace the global logger."""
    global _global_logger
    _global_logger = SearchLogger(
        level=level,
        format_type=format_type,
        log_file=log_file,
        enable_console=enable_console,
        enable_file=enable_file,
        **kwargs,
    )
    return _global_logger


def disable_logging() -> None:
    """Silence the global logger, including per-source errors (``-s``)."""
    logger = get_logger()
    logger.logger.setLevel(logging.CRITICAL + 1)
