"""
Result aggregation: turns the engine's event stream into output records and
a final ``SearchOutcome``.

The aggregator never raises on behalf of a source. Per-source errors are
recorded as data and make the final status ``ERROR`` even when matches were
found elsewhere.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from ..core.config import SearchConfig
from ..core.types import (
    BinaryMatchEvent,
    ContextEvent,
    MatchEvent,
    OutputRecord,
    RecordKind,
    SearchEvent,
    SearchOutcome,
    SourceErrorEvent,
    SourceFinishedEvent,
    SourceState,
)


class ResultAggregator:
    def __init__(
        self,
        with_filename: bool = False,
        line_number: bool = False,
        count_only: bool = False,
        files_with_matches: bool = False,
        files_without_match: bool = False,
        quiet: bool = False,
        context: bool = False,
    ) -> None:
        self.with_filename = with_filename
        self.line_number = line_number
        self.count_only = count_only
        self.files_with_matches = files_with_matches
        self.files_without_match = files_without_match
        self.quiet = quiet
        self.context = context
        self.outcome = SearchOutcome()
        self._last_line: tuple[str, int] | None = None

    @classmethod
    def from_config(cls, config: SearchConfig, with_filename: bool) -> ResultAggregator:
        return cls(
            with_filename=with_filename,
            line_number=config.line_number,
            count_only=config.count_only,
            files_with_matches=config.files_with_matches,
            files_without_match=config.files_without_match,
            quiet=config.quiet,
            context=bool(config.context_before or config.context_after),
        )

    @property
    def _emits_lines(self) -> bool:
        return not (
            self.quiet or self.count_only or self.files_with_matches or self.files_without_match
        )

    def _tag(self, source: str) -> str | None:
        return source if self.with_filename else None

    def records(self, events: Iterable[SearchEvent]) -> Iterator[OutputRecord]:
        """Yield output records lazily; ``self.outcome`` is final once exhausted."""
        outcome = self.outcome = SearchOutcome()
        self._last_line = None
        for event in events:
            if isinstance(event, (MatchEvent, ContextEvent)):
                status = outcome.status_for(event.source)
                status.state = SourceState.SCANNING
                matched = isinstance(event, MatchEvent)
                if matched:
                    outcome.match_count += 1
                if self._emits_lines:
                    if self.context and self._is_gap(event):
                        yield OutputRecord(kind=RecordKind.SEPARATOR)
                    self._last_line = (event.source, event.line_number)
                    yield OutputRecord(
                        kind=RecordKind.LINE if matched else RecordKind.CONTEXT,
                        source=self._tag(event.source),
                        line_number=event.line_number if self.line_number else None,
                        content=event.content,
                        spans=event.spans if matched else (),
                    )
            elif isinstance(event, BinaryMatchEvent):
                status = outcome.status_for(event.source)
                status.binary = True
                outcome.match_count += 1
                if self._emits_lines:
                    yield OutputRecord(kind=RecordKind.BINARY, source=event.source)
            elif isinstance(event, SourceErrorEvent):
                status = outcome.status_for(event.source)
                status.error = event.error
                status.state = SourceState.ERROR_ABORTED
                outcome.errors.add_error(event.error, source=event.source)
            elif isinstance(event, SourceFinishedEvent):
                status = outcome.status_for(event.source)
                status.state = event.state
                status.match_count = event.match_count
                status.lines_scanned = event.lines_scanned
                status.binary = status.binary or event.binary
                yield from self._finish_source(event)
        outcome.finalized = True

    def _is_gap(self, event: MatchEvent | ContextEvent) -> bool:
        if self._last_line is None:
            return False
        source, number = self._last_line
        return source != event.source or event.line_number != number + 1

    def _finish_source(self, event: SourceFinishedEvent) -> Iterator[OutputRecord]:
        if self.quiet:
            return
        if self.count_only and not (self.files_with_matches or self.files_without_match):
            yield OutputRecord(
                kind=RecordKind.COUNT, source=self._tag(event.source), count=event.match_count
            )
        elif self.files_with_matches and event.match_count > 0:
            yield OutputRecord(kind=RecordKind.FILENAME, source=event.source)
        elif (
            self.files_without_match
            and event.match_count == 0
            and event.state != SourceState.ERROR_ABORTED
        ):
            yield OutputRecord(kind=RecordKind.FILENAME, source=event.source)

    def consume(self, events: Iterable[SearchEvent]) -> SearchOutcome:
        """Drain ``events`` and return the finalized outcome."""
        for _ in self.records(events):
            pass
        return self.outcome
