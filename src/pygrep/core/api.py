"""
Main API module for pygrep.

This module provides the PyGrep class, the entry point for programmatic use.
It wires the pipeline together:

    SourceResolver -> LineScanner -> SearchEngine(Matcher) -> ResultAggregator

Classes:
    PyGrep: Compiles the pattern, resolves sources and runs the search

Example:
    Collecting every record:
        >>> from pygrep import PyGrep, SearchConfig
        >>> config = SearchConfig(paths=["src"], recursive=True, line_number=True)
        >>> result = PyGrep(config).search(r"def \\w+_handler")
        >>> print(f"{result.outcome.match_count} matches, exit code {result.outcome.exit_code}")

    Streaming records as they are produced:
        >>> grep = PyGrep(SearchConfig(paths=["app.log"], invert=True))
        >>> for record in grep.iter_records("DEBUG"):
        ...     handle(record)
        >>> grep.last_result.outcome.status
        <OutcomeStatus.MATCHES: 'matches'>
"""

from __future__ import annotations

import os
import time
from collections.abc import Iterator
from typing import Any, BinaryIO

from ..search.aggregator import ResultAggregator
from ..search.engine import SearchEngine
from ..search.matchers import Matcher, compile_matcher
from ..search.resolver import SourceResolver
from ..utils.error_handling import create_error_report
from ..utils.logging_config import SearchLogger, get_logger
from .config import SearchConfig
from .types import STDIN_SENTINEL, OutputRecord, SearchResult, SearchStats


class PyGrep:
    """
    Line-oriented search over files, directories and standard input.

    Attributes:
        cfg (SearchConfig): Configuration controlling the search
        logger (SearchLogger): Logging interface
        last_result (SearchResult | None): Result of the most recent search;
            its records are only filled in by ``search``
    """

    def __init__(
        self,
        config: SearchConfig | None = None,
        logger: SearchLogger | None = None,
        stdin: BinaryIO | None = None,
    ) -> None:
        self.cfg = config or SearchConfig()
        self.cfg.validate()
        self.logger = logger or get_logger()
        self._stdin = stdin
        self.last_result: SearchResult | None = None

    def compile(self, pattern: str) -> Matcher:
        """Compile ``pattern`` with the configured options; raises ``InvalidPattern``."""
        return compile_matcher(
            pattern,
            fixed_string=self.cfg.fixed_string,
            case_insensitive=self.cfg.case_insensitive,
            whole_word=self.cfg.whole_word,
        )

    def with_filename(self) -> bool:
        """Whether records are tagged with their source name."""
        if self.cfg.with_filename is not None:
            return self.cfg.with_filename
        paths = self.cfg.paths or [STDIN_SENTINEL]
        if len(paths) > 1:
            return True
        return self.cfg.recursive and any(p != STDIN_SENTINEL and os.path.isdir(p) for p in paths)

    def iter_records(self, pattern: str) -> Iterator[OutputRecord]:
        """
        Compile the pattern eagerly, then return a lazy record stream.

        ``last_result`` holds the finalized outcome and statistics once the
        stream is exhausted.
        """
        matcher = self.compile(pattern)
        return self._iter_records(pattern, matcher, collect=False)

    def search(self, pattern: str) -> SearchResult:
        """Run a complete search and return every record with the outcome."""
        matcher = self.compile(pattern)
        for _ in self._iter_records(pattern, matcher, collect=True):
            pass
        assert self.last_result is not None
        return self.last_result

    def _iter_records(self, pattern: str, matcher: Matcher, collect: bool) -> Iterator[OutputRecord]:
        t0 = time.perf_counter()
        self.logger.log_search_start(
            pattern=pattern,
            paths=self.cfg.paths,
            fixed_string=self.cfg.fixed_string,
            recursive=self.cfg.recursive,
        )

        resolver = SourceResolver.from_config(self.cfg, logger=self.logger, stdin=self._stdin)
        engine = SearchEngine(matcher, self.cfg, logger=self.logger)
        aggregator = ResultAggregator.from_config(self.cfg, with_filename=self.with_filename())

        result = SearchResult(outcome=aggregator.outcome)
        self.last_result = result
        emitted = 0
        events = engine.run(resolver.resolve(self.cfg.paths))
        try:
            for record in aggregator.records(events):
                emitted += 1
                if collect:
                    result.records.append(record)
                yield record
        finally:
            events.close()
            outcome = aggregator.outcome
            result.outcome = outcome
            result.stats = SearchStats(
                sources_scanned=sum(1 for s in outcome.sources.values() if s.error is None),
                sources_matched=sum(1 for s in outcome.sources.values() if s.match_count > 0),
                lines_scanned=sum(s.lines_scanned for s in outcome.sources.values()),
                records=emitted,
                elapsed_ms=(time.perf_counter() - t0) * 1000.0,
            )
            self.logger.log_search_complete(
                pattern=pattern,
                match_count=outcome.match_count,
                elapsed_ms=result.stats.elapsed_ms,
                status=outcome.status.value,
            )

    def get_error_summary(self) -> dict[str, Any]:
        """Get summary of errors encountered during the last search."""
        if self.last_result is None:
            return {"total_errors": 0, "by_category": {}, "by_severity": {}}
        return self.last_result.outcome.errors.get_summary()

    def get_error_report(self) -> str:
        """Get detailed error report for the last search."""
        if self.last_result is None:
            return "No search has been run."
        return create_error_report(self.last_result.outcome.errors)
