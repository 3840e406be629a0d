"""Tests for pygrep.utils.formatter module."""

from __future__ import annotations

import io
import sys

import orjson
import pytest

from pygrep.core.types import OutputFormat, OutputRecord, RecordKind, SearchOutcome, SourceState
from pygrep.utils.error_handling import SourceNotFound
from pygrep.utils.formatter import (
    format_records,
    format_text,
    outcome_to_json_bytes,
    record_to_dict,
    to_json_bytes,
    write_records,
)


class TestFormatText:
    def test_bare_line(self):
        assert format_text(OutputRecord(RecordKind.LINE, content=b"cat")) == b"cat"

    def test_line_with_name_and_number(self):
        record = OutputRecord(RecordKind.LINE, source="a.txt", line_number=3, content=b"catalog")
        assert format_text(record) == b"a.txt:3:catalog"

    def test_context_uses_dash(self):
        record = OutputRecord(RecordKind.CONTEXT, source="a.txt", line_number=2, content=b"dog")
        assert format_text(record) == b"a.txt-2-dog"

    def test_separator(self):
        assert format_text(OutputRecord(RecordKind.SEPARATOR)) == b"--"

    def test_count(self):
        assert format_text(OutputRecord(RecordKind.COUNT, count=2)) == b"2"
        assert format_text(OutputRecord(RecordKind.COUNT, source="a.txt", count=0)) == b"a.txt:0"

    def test_filename(self):
        assert format_text(OutputRecord(RecordKind.FILENAME, source="a.txt")) == b"a.txt"

    def test_binary(self):
        record = OutputRecord(RecordKind.BINARY, source="img.bin")
        assert format_text(record) == b"Binary file img.bin matches"

    def test_raw_bytes_pass_through(self):
        assert format_text(OutputRecord(RecordKind.LINE, content=b"\xff\x00")) == b"\xff\x00"


class TestJson:
    def test_record_to_dict(self):
        record = OutputRecord(RecordKind.LINE, source="a.txt", line_number=1, content=b"cat", spans=((0, 3),))
        assert record_to_dict(record) == {
            "type": "line",
            "source": "a.txt",
            "line_number": 1,
            "text": "cat",
            "spans": [[0, 3]],
        }

    def test_invalid_utf8_replaced(self):
        data = record_to_dict(OutputRecord(RecordKind.LINE, content=b"\xffok"))
        assert data["text"] == "�ok"

    def test_format_records_skips_separators(self):
        records = [
            OutputRecord(RecordKind.LINE, content=b"a"),
            OutputRecord(RecordKind.SEPARATOR),
            OutputRecord(RecordKind.COUNT, count=1),
        ]
        lines = list(format_records(records, OutputFormat.JSON))
        assert [orjson.loads(line)["type"] for line in lines] == ["line", "count"]

    def test_outcome_summary(self):
        outcome = SearchOutcome(match_count=2)
        outcome.status_for("a.txt").state = SourceState.EXHAUSTED
        missing = outcome.status_for("b.txt")
        missing.error = SourceNotFound("b.txt: No such file or directory", "b.txt")
        outcome.errors.add_error(missing.error)
        data = orjson.loads(outcome_to_json_bytes(outcome))
        assert data["status"] == "error"
        assert data["exit_code"] == 2
        assert data["match_count"] == 2
        assert [s["source"] for s in data["sources"]] == ["a.txt", "b.txt"]
        assert data["sources"][1]["error"] == "b.txt: No such file or directory"
        assert data["errors"]["total_errors"] == 1

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX file name encoding")
    def test_undecodable_file_names(self):
        # A file name with byte 0xFF arrives as a lone surrogate
        name = "bad\udcff.txt"
        line = to_json_bytes(OutputRecord(RecordKind.LINE, source=name, line_number=1, content=b"cat"))
        assert orjson.loads(line)["source"] == "bad\ufffd.txt"

        outcome = SearchOutcome(match_count=1)
        outcome.status_for(name).state = SourceState.EXHAUSTED
        locked = outcome.status_for(name + ".lock")
        locked.error = SourceNotFound(f"{name}.lock: No such file or directory", name + ".lock")
        data = orjson.loads(outcome_to_json_bytes(outcome))
        assert [s["source"] for s in data["sources"]] == ["bad\ufffd.txt", "bad\ufffd.txt.lock"]
        assert data["sources"][1]["error"] == "bad\ufffd.txt.lock: No such file or directory"


class TestWriteRecords:
    def test_text(self):
        out = io.BytesIO()
        records = [
            OutputRecord(RecordKind.LINE, line_number=1, content=b"cat"),
            OutputRecord(RecordKind.LINE, line_number=3, content=b"catalog"),
        ]
        assert write_records(records, out) == 2
        assert out.getvalue() == b"1:cat\n3:catalog\n"
