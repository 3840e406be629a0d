"""
Configuration module for pygrep.

This module defines the SearchConfig class which serves as the central
configuration object for all search operations: the paths to search, the
matching options, the output shaping options and the traversal and
performance settings.

Key Configuration Areas:
    - Scope: paths, recursion, symlink handling, include/exclude globs
    - Matching: case folding, whole words, fixed strings, inversion
    - Output: line numbers, context lines, counts, file lists, filenames
    - Binary handling: detection bytes and policy
    - Performance: chunk size, optional per-source parallelism

Example:
    Basic configuration:
        >>> from pygrep.core.config import SearchConfig
        >>>
        >>> config = SearchConfig(
        ...     paths=["src"],
        ...     recursive=True,
        ...     case_insensitive=True,
        ...     line_number=True,
        ...     include=["*.py"],
        ... )
        >>> config.validate()

    Context around matches:
        >>> config = SearchConfig(paths=["app.log"]).with_context(2)
        >>> config.context_before, config.context_after
        (2, 2)
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ..utils.error_handling import ConfigurationError
from .types import STDIN_SENTINEL, BinaryMode, OutputFormat

DEFAULT_CHUNK_SIZE = 64 * 1024


@dataclass(slots=True)
class SearchConfig:
    # Scope
    paths: list[str] = field(
        default_factory=lambda: [STDIN_SENTINEL],
        metadata={"help": "Paths to search, '-' is standard input."},
    )
    recursive: bool = False
    follow_symlinks: bool = False  # only affects links found while recursing
    include: list[str] | None = None  # gitignore-style globs for files found while recursing
    exclude: list[str] | None = None
    exclude_dir: list[str] | None = None

    # Matching
    case_insensitive: bool = False
    whole_word: bool = False
    fixed_string: bool = False
    invert: bool = False

    # Output shaping
    line_number: bool = False
    with_filename: bool | None = None  # None = decide from the operands
    count_only: bool = False
    files_with_matches: bool = False
    files_without_match: bool = False
    quiet: bool = False
    max_count: int | None = None
    context_before: int = 0
    context_after: int = 0
    output_format: OutputFormat = OutputFormat.TEXT

    # Binary handling
    binary_mode: BinaryMode = BinaryMode.BINARY
    binary_bytes: frozenset[int] = frozenset({0})

    # Performance
    chunk_size: int = DEFAULT_CHUNK_SIZE
    parallel: bool = False
    workers: int = 0  # 0 = auto(cpu_count)

    def with_context(self, lines: int) -> SearchConfig:
        """Set both before and after context, like ``-C``."""
        self.context_before = lines
        self.context_after = lines
        return self

    @property
    def suppresses_lines(self) -> bool:
        """True when no per-line records are produced."""
        return self.count_only or self.files_with_matches or self.files_without_match or self.quiet

    @property
    def stops_at_first_match(self) -> bool:
        return self.files_with_matches or self.files_without_match or self.quiet

    def validate(self) -> None:
        """Validate configuration and raise ConfigurationError on issues.

        Raises:
            ConfigurationError: If the configuration is invalid.
        """
        if self.context_before < 0 or self.context_after < 0:
            raise ConfigurationError(
                "Context lines must be non-negative",
                context={
                    "field": "context",
                    "before": self.context_before,
                    "after": self.context_after,
                },
            )

        if self.max_count is not None and self.max_count < 0:
            raise ConfigurationError(
                "Max count must be non-negative",
                context={"field": "max_count", "value": self.max_count},
            )

        if self.workers < 0:
            raise ConfigurationError(
                "Worker count must be non-negative (0 = auto-detect CPU count)",
                context={"field": "workers", "value": self.workers},
            )

        if self.chunk_size <= 0:
            raise ConfigurationError(
                "Chunk size must be positive",
                context={"field": "chunk_size", "value": self.chunk_size},
            )

        if self.files_with_matches and self.files_without_match:
            raise ConfigurationError(
                "files_with_matches and files_without_match are mutually exclusive",
                context={"field": "files_with_matches"},
            )

        if any(not 0 <= b <= 255 for b in self.binary_bytes):
            raise ConfigurationError(
                "Binary detection bytes must be in range 0-255",
                context={"field": "binary_bytes"},
            )
