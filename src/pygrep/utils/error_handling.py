"""
Error handling and reporting for pygrep.

Errors fall in two groups. Fatal errors (``InvalidPattern``,
``ConfigurationError``) are raised before any source is scanned since no
useful work is possible. Per-source errors (``SourceNotFound``,
``PermissionDenied``, ``IsADirectory``, ``SymlinkCycle``, ``ReadFailure``)
are never raised across the pipeline: the resolver and the engine convert
them into error events, the aggregator records them in an ``ErrorCollector``
and they drive the final "error occurred" status.

Error Categories:
    - PATTERN: The pattern could not be compiled
    - CONFIGURATION: Invalid search options
    - FILE_ACCESS: Missing files, directories given without recursion, cycles
    - PERMISSION: Permission denied on open or directory listing
    - IO: Read failures after a stream was opened

Example:
    Classifying an OS error:
        >>> from pygrep.utils.error_handling import ErrorCollector, classify_os_error
        >>> collector = ErrorCollector()
        >>> try:
        ...     open("missing.txt", "rb")
        ... except OSError as exc:
        ...     collector.add_error(classify_os_error(exc, "missing.txt"))
        >>> collector.get_summary()["total_errors"]
        1
"""

from __future__ import annotations

import errno
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any


class ErrorSeverity(str, Enum):
    """Error severity levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """Error categories for classification."""

    PATTERN = "pattern"
    CONFIGURATION = "configuration"
    FILE_ACCESS = "file_access"
    PERMISSION = "permission"
    IO = "io"
    UNKNOWN = "unknown"


@dataclass
class ErrorInfo:
    """Detailed error information."""

    category: ErrorCategory
    severity: ErrorSeverity
    message: str
    source: str | None = None
    file_path: Path | None = None
    exception_type: str | None = None
    timestamp: float = field(default_factory=time.time)
    context: dict[str, Any] = field(default_factory=dict)
    suggestions: list[str] = field(default_factory=list)


class SearchError(Exception):
    """Base exception for search-related errors."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.UNKNOWN,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        source: str | None = None,
        file_path: Path | None = None,
        suggestions: list[str] | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message: str = message
        self.category: ErrorCategory = category
        self.severity: ErrorSeverity = severity
        self.source: str | None = source
        self.file_path: Path | None = file_path
        self.suggestions: list[str] = suggestions or []
        self.context: dict[str, Any] = context or {}
        self.timestamp: float = time.time()


class InvalidPattern(SearchError):
    """The pattern is not a valid expression."""

    def __init__(self, message: str, pattern: str, context: dict[str, Any] | None = None) -> None:
        merged_context: dict[str, Any] = {"pattern": pattern}
        if context:
            merged_context.update(context)
        super().__init__(
            message,
            category=ErrorCategory.PATTERN,
            severity=ErrorSeverity.CRITICAL,
            suggestions=[
                "Check the expression syntax",
                "Use fixed-string mode to search for the text literally",
            ],
            context=merged_context,
        )
        self.pattern = pattern


class ConfigurationError(SearchError):
    """Configuration-related errors."""

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(
            message,
            category=ErrorCategory.CONFIGURATION,
            severity=ErrorSeverity.CRITICAL,
            suggestions=["Check the combination of search options"],
            context=context,
        )


class SourceNotFound(SearchError):
    def __init__(self, message: str, source: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(
            message,
            category=ErrorCategory.FILE_ACCESS,
            severity=ErrorSeverity.MEDIUM,
            source=source,
            file_path=Path(source),
            suggestions=["Verify the path exists"],
            context=context,
        )


class PermissionDenied(SearchError):
    def __init__(self, message: str, source: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(
            message,
            category=ErrorCategory.PERMISSION,
            severity=ErrorSeverity.HIGH,
            source=source,
            file_path=Path(source),
            suggestions=[
                "Check file permissions",
                "Run with appropriate user privileges",
            ],
            context=context,
        )


class IsADirectory(SearchError):
    def __init__(self, message: str, source: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(
            message,
            category=ErrorCategory.FILE_ACCESS,
            severity=ErrorSeverity.LOW,
            source=source,
            file_path=Path(source),
            suggestions=["Enable recursive mode to search directories"],
            context=context,
        )


class SymlinkCycle(SearchError):
    def __init__(self, message: str, source: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(
            message,
            category=ErrorCategory.FILE_ACCESS,
            severity=ErrorSeverity.MEDIUM,
            source=source,
            file_path=Path(source),
            suggestions=["Disable symlink following or remove the looping link"],
            context=context,
        )


class ReadFailure(SearchError):
    def __init__(self, message: str, source: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(
            message,
            category=ErrorCategory.IO,
            severity=ErrorSeverity.HIGH,
            source=source,
            file_path=None,
            suggestions=["Check the device or pipe the data comes from"],
            context=context,
        )


def classify_os_error(exception: OSError, source: str, operation: str = "read") -> SearchError:
    """
    Map an ``OSError`` raised while resolving or reading ``source`` onto the
    per-source error taxonomy.

    Args:
        exception: The OS error that occurred
        source: Display name of the source
        operation: Operation being performed (e.g. "open", "read", "list")

    Returns:
        The matching ``SearchError`` subclass instance
    """
    reason = exception.strerror or str(exception)
    message = f"{source}: {reason}"
    context = {"operation": operation, "errno": exception.errno}
    if isinstance(exception, FileNotFoundError):
        return SourceNotFound(message, source, context=context)
    if isinstance(exception, PermissionError):
        return PermissionDenied(message, source, context=context)
    if isinstance(exception, IsADirectoryError):
        return IsADirectory(message, source, context=context)
    if exception.errno == errno.ELOOP:
        return SymlinkCycle(message, source, context=context)
    return ReadFailure(message, source, context=context)


class ErrorCollector:
    """Collects errors reported during one search run."""

    def __init__(self, max_errors: int = 1000) -> None:
        self.max_errors = max_errors
        self.errors: list[ErrorInfo] = []
        self.error_counts: dict[ErrorCategory, int] = {}

    def add_error(
        self,
        exception: Exception,
        category: ErrorCategory | None = None,
        severity: ErrorSeverity | None = None,
        source: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Add an error to the collection."""
        if isinstance(exception, SearchError):
            error_category = exception.category
            error_severity = exception.severity
            error_source = exception.source or source
            error_file_path = exception.file_path
            error_suggestions = exception.suggestions
            error_context = {**exception.context, **(context or {})}
        else:
            error_category = category or ErrorCategory.UNKNOWN
            error_severity = severity or ErrorSeverity.MEDIUM
            error_source = source
            error_file_path = None
            error_suggestions = []
            error_context = context or {}

        error_info = ErrorInfo(
            category=error_category,
            severity=error_severity,
            message=str(exception),
            source=error_source,
            file_path=error_file_path,
            exception_type=type(exception).__name__,
            context=error_context,
            suggestions=error_suggestions,
        )

        # Counts stay exact even when details are capped
        if len(self.errors) < self.max_errors:
            self.errors.append(error_info)
        self.error_counts[error_category] = self.error_counts.get(error_category, 0) + 1

    @property
    def total(self) -> int:
        return sum(self.error_counts.values())

    def get_errors_by_category(self, category: ErrorCategory) -> list[ErrorInfo]:
        return [error for error in self.errors if error.category == category]

    def get_errors_by_severity(self, severity: ErrorSeverity) -> list[ErrorInfo]:
        return [error for error in self.errors if error.severity == severity]

    def get_summary(self) -> dict[str, Any]:
        """Get error summary statistics."""
        return {
            "total_errors": self.total,
            "by_category": {category.value: count for category, count in self.error_counts.items()},
            "by_severity": {
                severity.value: len(self.get_errors_by_severity(severity))
                for severity in ErrorSeverity
            },
        }

    def clear(self) -> None:
        self.errors.clear()
        self.error_counts.clear()


def create_error_report(error_collector: ErrorCollector) -> str:
    """Create a human-readable error report."""
    if not error_collector.errors:
        return "No errors occurred during the search operation."

    summary = error_collector.get_summary()

    report = ["Search Error Report", "=" * 50, ""]
    report.append(f"Total errors: {summary['total_errors']}")
    report.append("")

    report.append("Errors by category:")
    for category, count in summary["by_category"].items():
        report.append(f"  {category}: {count}")
    report.append("")

    report.append("Errors:")
    for error in error_collector.errors:
        report.append(f"  - [{error.exception_type}] {error.message}")
        if error.suggestions:
            report.append(f"    Suggestions: {', '.join(error.suggestions)}")

    return "\n".join(report)
