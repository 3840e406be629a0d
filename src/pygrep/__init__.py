"""
pygrep: line-oriented pattern search over files, directories and standard input.

The package exposes a small pipeline that can be driven from the command line
or embedded as a library. Every stage is a lazy iterator, so output starts as
soon as the first line is selected and memory use does not grow with input
size.

Key Features:
    - **Literal and Regular Expression Patterns**: byte-level matching with
      case-insensitive and whole-word variants
    - **Context Lines**: before/after windows with group separators
    - **Recursive Traversal**: include/exclude globs, symlink cycle detection
    - **Binary Handling**: summary, text or skip modes for files with NUL bytes
    - **Structured Results**: records and a three-way outcome (matches,
      no matches, error) instead of printing from the core
    - **Parallel Search**: optional thread pool with deterministic output order

Main Classes:
    PyGrep: Orchestrates resolution, scanning, matching and aggregation
    SearchConfig: Search options
    SearchResult: Records, outcome and statistics of one search

Example Usage:
    Library:
        >>> from pygrep import PyGrep, SearchConfig
        >>> result = PyGrep(SearchConfig(paths=["notes.txt"], line_number=True)).search("cat")
        >>> [r.line_number for r in result.records]
        [1, 3]

    CLI:
        $ pygrep -n cat notes.txt
        $ pygrep -ri --include "*.py" todo src
"""

from .core.api import PyGrep
from .core.config import SearchConfig
from .core.types import (
    BinaryMode,
    OutcomeStatus,
    OutputFormat,
    OutputRecord,
    RecordKind,
    SearchOutcome,
    SearchResult,
    SearchStats,
)
from .search.matchers import ExpressionMatcher, LiteralMatcher, Matcher, compile_matcher
from .utils.error_handling import ConfigurationError, InvalidPattern, SearchError
from .utils.logging_config import configure_logging, disable_logging, get_logger

__version__ = "0.1.0"
__license__ = "MIT"
__description__ = "Line-oriented pattern search over files, directories and standard input"

__all__ = [
    # Main classes
    "PyGrep",
    "SearchConfig",
    "SearchResult",
    "SearchOutcome",
    "SearchStats",
    "OutputRecord",
    # Enums
    "BinaryMode",
    "OutcomeStatus",
    "OutputFormat",
    "RecordKind",
    # Matchers
    "Matcher",
    "LiteralMatcher",
    "ExpressionMatcher",
    "compile_matcher",
    # Errors
    "SearchError",
    "InvalidPattern",
    "ConfigurationError",
    # Logging
    "configure_logging",
    "disable_logging",
    "get_logger",
    "__version__",
]
