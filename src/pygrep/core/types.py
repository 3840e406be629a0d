"""
Core type definitions for pygrep.

This module contains the data types that flow through the search pipeline:
lines produced by the scanner, sources produced by the resolver, the events
emitted by the engine and the records and outcome built by the aggregator.

Key Types:
    Line: One scanned line of a source (number, content, terminator flag)
    Source: A searchable input with its display name and open byte stream
    MatchEvent: A selected line of one source (a match, or a non-match when inverted)
    ContextEvent: A line printed only as context around a selected line
    BinaryMatchEvent: Summary emitted when a binary source has a match
    SourceErrorEvent: A per-source failure (missing file, permission, ...)
    SourceFinishedEvent: Terminal state marker of one source
    OutputRecord: Structured record consumed by the formatting layer
    SearchOutcome: Aggregate result with the three-way status

Example:
    Inspecting records of a search:
        >>> from pygrep import PyGrep, SearchConfig
        >>> result = PyGrep(SearchConfig(paths=["notes.txt"])).search("todo")
        >>> for record in result.records:
        ...     print(record.line_number, record.content)
        >>> result.outcome.exit_code
        0
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import BinaryIO, ClassVar, Union

from ..utils.error_handling import ErrorCollector, SearchError

STDIN_SENTINEL = "-"
STDIN_LABEL = "(standard input)"

# (start, end) byte offsets within a line's content
Span = tuple[int, int]


class OutputFormat(str, Enum):
    TEXT = "text"
    JSON = "json"


class BinaryMode(str, Enum):
    """How sources containing non-text bytes are treated."""

    BINARY = "binary"  # report a single "binary file matches" summary
    TEXT = "text"  # search every line as text
    WITHOUT_MATCH = "without-match"  # treat binary sources as non-matching


class SourceState(str, Enum):
    """Per-source search state machine."""

    OPENING = "opening"
    SCANNING = "scanning"
    EARLY_STOP = "early_stop"
    EXHAUSTED = "exhausted"
    ERROR_ABORTED = "error_aborted"

    @property
    def is_terminal(self) -> bool:
        return self in (SourceState.EARLY_STOP, SourceState.EXHAUSTED, SourceState.ERROR_ABORTED)


class OutcomeStatus(str, Enum):
    MATCHES = "matches"
    NO_MATCHES = "no_matches"
    ERROR = "error"

    @property
    def exit_code(self) -> int:
        return {OutcomeStatus.MATCHES: 0, OutcomeStatus.NO_MATCHES: 1, OutcomeStatus.ERROR: 2}[self]


class RecordKind(str, Enum):
    LINE = "line"
    CONTEXT = "context"
    COUNT = "count"
    FILENAME = "filename"
    BINARY = "binary"
    SEPARATOR = "separator"  # break between non-adjacent context groups


@dataclass(frozen=True, slots=True)
class Line:
    number: int
    content: bytes
    terminated: bool = True


@dataclass(slots=True)
class Source:
    """
    One searchable input.

    The stream is opened by the resolver and released by whoever consumes the
    source, normally through ``with source:``. Standard input is never closed.

    Attributes:
        name: Display name (the path as spelled by the user, or the stdin label)
        stream: Open binary stream
        path: Resolved filesystem path, ``None`` for standard input
    """

    name: str
    stream: BinaryIO
    path: Path | None = None

    @property
    def is_stdin(self) -> bool:
        return self.path is None

    def close(self) -> None:
        if not self.is_stdin:
            self.stream.close()

    def __enter__(self) -> Source:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


@dataclass(frozen=True, slots=True)
class MatchEvent:
    """A selected line: a match, or a non-matching line under invert."""

    matched: ClassVar[bool] = True

    source: str
    line_number: int
    content: bytes
    spans: tuple[Span, ...] = ()
    terminated: bool = True


@dataclass(frozen=True, slots=True)
class ContextEvent:
    """A line shown around a selected line. It is never counted."""

    matched: ClassVar[bool] = False
    spans: ClassVar[tuple[Span, ...]] = ()

    source: str
    line_number: int
    content: bytes
    terminated: bool = True


@dataclass(frozen=True, slots=True)
class BinaryMatchEvent:
    source: str


@dataclass(frozen=True, slots=True)
class SourceErrorEvent:
    source: str
    error: SearchError


@dataclass(frozen=True, slots=True)
class SourceFinishedEvent:
    source: str
    state: SourceState
    match_count: int = 0
    lines_scanned: int = 0
    binary: bool = False


SearchEvent = Union[
    MatchEvent, ContextEvent, BinaryMatchEvent, SourceErrorEvent, SourceFinishedEvent
]


@dataclass(frozen=True, slots=True)
class OutputRecord:
    kind: RecordKind
    source: str | None = None
    line_number: int | None = None
    content: bytes | None = None
    spans: tuple[Span, ...] = ()
    count: int | None = None


@dataclass(slots=True)
class SourceStatus:
    name: str
    state: SourceState = SourceState.OPENING
    match_count: int = 0
    lines_scanned: int = 0
    binary: bool = False
    error: SearchError | None = None


@dataclass(slots=True)
class SearchOutcome:
    """Aggregate result of one invocation."""

    match_count: int = 0
    sources: dict[str, SourceStatus] = field(default_factory=dict)
    errors: ErrorCollector = field(default_factory=ErrorCollector)
    finalized: bool = False

    @property
    def has_errors(self) -> bool:
        return self.errors.total > 0 or any(s.error is not None for s in self.sources.values())

    @property
    def status(self) -> OutcomeStatus:
        if self.has_errors:
            return OutcomeStatus.ERROR
        if self.match_count > 0:
            return OutcomeStatus.MATCHES
        return OutcomeStatus.NO_MATCHES

    @property
    def exit_code(self) -> int:
        return self.status.exit_code

    def status_for(self, name: str) -> SourceStatus:
        status = self.sources.get(name)
        if status is None:
            status = self.sources[name] = SourceStatus(name=name)
        return status


@dataclass(slots=True)
class SearchStats:
    sources_scanned: int = 0
    sources_matched: int = 0
    lines_scanned: int = 0
    records: int = 0
    elapsed_ms: float = 0.0


@dataclass(slots=True)
class SearchResult:
    records: list[OutputRecord] = field(default_factory=list)
    outcome: SearchOutcome = field(default_factory=SearchOutcome)
    stats: SearchStats = field(default_factory=SearchStats)
