"""Tests for pygrep.core.types module."""

from __future__ import annotations

import io
from pathlib import Path

from pygrep.core.types import (
    OutcomeStatus,
    SearchOutcome,
    Source,
    SourceState,
)
from pygrep.utils.error_handling import ReadFailure


class TestSourceState:
    def test_terminal_states(self):
        assert SourceState.EXHAUSTED.is_terminal
        assert SourceState.EARLY_STOP.is_terminal
        assert SourceState.ERROR_ABORTED.is_terminal
        assert not SourceState.OPENING.is_terminal
        assert not SourceState.SCANNING.is_terminal


class TestOutcomeStatus:
    def test_exit_codes(self):
        assert OutcomeStatus.MATCHES.exit_code == 0
        assert OutcomeStatus.NO_MATCHES.exit_code == 1
        assert OutcomeStatus.ERROR.exit_code == 2


class TestSource:
    def test_file_source_closed(self):
        stream = io.BytesIO(b"x")
        with Source(name="f", stream=stream, path=Path("f")):
            pass
        assert stream.closed

    def test_stdin_never_closed(self):
        stream = io.BytesIO(b"x")
        source = Source(name="(standard input)", stream=stream)
        assert source.is_stdin
        with source:
            pass
        assert not stream.closed


class TestSearchOutcome:
    def test_empty_outcome(self):
        outcome = SearchOutcome()
        assert outcome.status == OutcomeStatus.NO_MATCHES
        assert not outcome.has_errors

    def test_matches(self):
        assert SearchOutcome(match_count=3).exit_code == 0

    def test_error_dominates(self):
        outcome = SearchOutcome(match_count=3)
        outcome.errors.add_error(ReadFailure("x: Input/output error", "x"))
        assert outcome.has_errors
        assert outcome.status == OutcomeStatus.ERROR

    def test_status_for_creates_once(self):
        outcome = SearchOutcome()
        first = outcome.status_for("a")
        assert outcome.status_for("a") is first
        assert first.state == SourceState.OPENING
