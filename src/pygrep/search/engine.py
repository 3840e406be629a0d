"""
Search engine: runs a compiled matcher over resolved sources and produces a
typed event stream.

Each source goes through ``OPENING -> SCANNING -> (EARLY_STOP | EXHAUSTED |
ERROR_ABORTED)`` and always ends with exactly one ``SourceFinishedEvent``.
Between those, the engine emits a ``MatchEvent`` per selected line (a match,
or a non-match in invert mode), a ``ContextEvent`` for each context
line, a single ``BinaryMatchEvent`` when a binary source has a selected line,
and ``SourceErrorEvent`` for read failures. Errors on one source never stop
the run.

Sources are searched one at a time in resolution order. With
``parallel=True`` they are searched on a thread pool and the per-source event
lists are yielded in the original order, so output is identical to the
sequential run.
"""

from __future__ import annotations

import os
import threading
from collections import deque
from collections.abc import Iterable, Iterator
from concurrent.futures import Future, ThreadPoolExecutor

from ..core.config import SearchConfig
from ..core.types import (
    BinaryMatchEvent,
    BinaryMode,
    ContextEvent,
    Line,
    MatchEvent,
    SearchEvent,
    Source,
    SourceErrorEvent,
    SourceFinishedEvent,
    SourceState,
)
from ..utils.error_handling import ReadFailure
from ..utils.logging_config import SearchLogger, get_logger
from .matchers import Matcher
from .resolver import ResolvedItem
from .scanner import scan


class ContextWindow:
    """Ring buffer holding the last ``size`` unselected lines of a source."""

    def __init__(self, size: int) -> None:
        self.size = size
        self._lines: deque[Line] = deque(maxlen=size)

    def push(self, line: Line) -> None:
        if self.size:
            self._lines.append(line)

    def drain(self) -> list[Line]:
        lines = list(self._lines)
        self._lines.clear()
        return lines

    def __len__(self) -> int:
        return len(self._lines)


class SearchEngine:
    def __init__(
        self,
        matcher: Matcher,
        config: SearchConfig | None = None,
        logger: SearchLogger | None = None,
    ) -> None:
        self.matcher = matcher
        self.cfg = config or SearchConfig()
        self.logger = logger or get_logger()

        cfg = self.cfg
        # Context is pointless when no line content is reported
        self._before = 0 if cfg.suppresses_lines else cfg.context_before
        self._after = 0 if cfg.suppresses_lines else cfg.context_after
        self._need_spans = not cfg.invert and not cfg.suppresses_lines
        self._binary_needles = [bytes([b]) for b in sorted(cfg.binary_bytes)]
        self._detect_binary = cfg.binary_mode != BinaryMode.TEXT and bool(self._binary_needles)

        cap = cfg.max_count
        if cfg.stops_at_first_match:
            cap = 1 if cap is None else min(cap, 1)
        self._cap = cap

    # -- per line helpers -------------------------------------------------

    def _is_binary(self, content: bytes) -> bool:
        return any(needle in content for needle in self._binary_needles)

    def _select(self, content: bytes) -> tuple[bool, tuple[tuple[int, int], ...]]:
        if self._need_spans:
            spans = self.matcher.find_all(content)
            return bool(spans), tuple(spans)
        return self.matcher.matches(content) != self.cfg.invert, ()

    @staticmethod
    def _context(name: str, line: Line) -> ContextEvent:
        return ContextEvent(
            source=name,
            line_number=line.number,
            content=line.content,
            terminated=line.terminated,
        )

    # -- single source ----------------------------------------------------

    def search_source(
        self, source: Source, cancel: threading.Event | None = None
    ) -> Iterator[SearchEvent]:
        """
        Search one source; the source is closed when this generator ends.

        ``cancel`` is checked before every line so a worker thread can be
        stopped while its source is still being read.
        """
        name = source.name
        state = SourceState.OPENING
        count = 0
        lines_scanned = 0
        binary = False
        cap = self._cap

        with source:
            if cap == 0:
                yield SourceFinishedEvent(name, SourceState.EARLY_STOP)
                return

            window = ContextWindow(self._before)
            after_remaining = 0
            lines = scan(source.stream, self.cfg.chunk_size)
            state = SourceState.SCANNING
            try:
                for line in lines:
                    if cancel is not None and cancel.is_set():
                        state = SourceState.EARLY_STOP
                        break
                    lines_scanned += 1
                    capped = cap is not None and count >= cap

                    if capped:
                        # Only trailing context after the last allowed match remains
                        after_remaining -= 1
                        yield self._context(name, line)
                        if after_remaining <= 0:
                            state = SourceState.EARLY_STOP
                            break
                        continue

                    if self._detect_binary and self._is_binary(line.content):
                        binary = True
                        self.logger.log_binary_source(name)
                        if self.cfg.binary_mode == BinaryMode.WITHOUT_MATCH:
                            state = SourceState.EARLY_STOP
                            break
                        selected = self._select(line.content)[0]
                        while not selected:
                            nxt = next(lines, None)
                            if nxt is None:
                                break
                            lines_scanned += 1
                            selected = self._select(nxt.content)[0]
                        if selected:
                            count += 1
                            yield BinaryMatchEvent(name)
                            state = SourceState.EARLY_STOP
                        else:
                            state = SourceState.EXHAUSTED
                        break

                    selected, spans = self._select(line.content)
                    if selected:
                        for ctx in window.drain():
                            yield self._context(name, ctx)
                        count += 1
                        yield MatchEvent(
                            source=name,
                            line_number=line.number,
                            content=line.content,
                            spans=spans,
                            terminated=line.terminated,
                        )
                        after_remaining = self._after
                        if cap is not None and count >= cap and after_remaining == 0:
                            state = SourceState.EARLY_STOP
                            break
                    elif after_remaining > 0:
                        after_remaining -= 1
                        yield self._context(name, line)
                    else:
                        window.push(line)
                else:
                    state = SourceState.EXHAUSTED
            except OSError as exc:
                error = ReadFailure(
                    f"{name}: {exc.strerror or exc}",
                    name,
                    context={"operation": "read", "errno": exc.errno, "line": lines_scanned},
                )
                self.logger.log_source_error(name, error.message)
                state = SourceState.ERROR_ABORTED
                yield SourceErrorEvent(name, error)

        yield SourceFinishedEvent(
            name,
            state,
            match_count=count,
            lines_scanned=lines_scanned,
            binary=binary,
        )

    # -- whole run --------------------------------------------------------

    def run(self, items: Iterable[ResolvedItem]) -> Iterator[SearchEvent]:
        """
        Search every resolved item in order.

        Closing the returned generator (or hitting the first match in quiet
        mode) closes the open stream and stops resolution.
        """
        iterator = iter(items)
        events = self._run_parallel(iterator) if self.cfg.parallel else self._run_sequential(iterator)
        try:
            for event in events:
                yield event
                if (
                    self.cfg.quiet
                    and isinstance(event, SourceFinishedEvent)
                    and event.match_count > 0
                ):
                    break
        finally:
            events.close()
            close = getattr(iterator, "close", None)
            if close is not None:
                close()

    def _forward_error(self, event: SourceErrorEvent) -> SourceErrorEvent:
        self.logger.log_source_error(event.source, event.error.message)
        return event

    def _run_sequential(self, items: Iterator[ResolvedItem]) -> Iterator[SearchEvent]:
        for item in items:
            if isinstance(item, SourceErrorEvent):
                yield self._forward_error(item)
                continue
            yield from self.search_source(item)

    def _collect(self, source: Source, cancel: threading.Event) -> list[SearchEvent]:
        return list(self.search_source(source, cancel))

    def _run_parallel(self, items: Iterator[ResolvedItem]) -> Iterator[SearchEvent]:
        workers = self.cfg.workers or min(32, (os.cpu_count() or 4))
        # Bounded look-ahead keeps the number of open streams small
        limit = workers * 2
        pending: deque[tuple[Source, Future[list[SearchEvent]]] | SourceErrorEvent] = deque()

        def drain(entry: tuple[Source, Future[list[SearchEvent]]] | SourceErrorEvent) -> Iterator[SearchEvent]:
            if isinstance(entry, SourceErrorEvent):
                yield self._forward_error(entry)
            else:
                yield from entry[1].result()

        cancel = threading.Event()
        ex = ThreadPoolExecutor(max_workers=workers)
        try:
            for item in items:
                if isinstance(item, SourceErrorEvent):
                    pending.append(item)
                else:
                    pending.append((item, ex.submit(self._collect, item, cancel)))
                while len(pending) >= limit:
                    yield from drain(pending.popleft())
            while pending:
                yield from drain(pending.popleft())
        finally:
            # Running workers stop at their next line
            cancel.set()
            for entry in pending:
                if not isinstance(entry, SourceErrorEvent):
                    source, future = entry
                    if future.cancel():
                        source.close()
            ex.shutdown(wait=True)
