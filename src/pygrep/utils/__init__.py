"""
Utility modules: error taxonomy, logging and output formatting.
"""

from .error_handling import (
    ConfigurationError,
    ErrorCategory,
    ErrorCollector,
    ErrorSeverity,
    InvalidPattern,
    SearchError,
    create_error_report,
)
from .logging_config import SearchLogger, configure_logging, get_logger

__all__ = [
    "ConfigurationError",
    "ErrorCategory",
    "ErrorCollector",
    "ErrorSeverity",
    "InvalidPattern",
    "SearchError",
    "create_error_report",
    "SearchLogger",
    "configure_logging",
    "get_logger",
]
