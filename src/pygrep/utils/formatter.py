"""
Output formatting module for pygrep.

Renders the structured records produced by the search pipeline. The text
layout follows grep: ``name:number:line`` for selected lines, ``-`` as the
separator for context lines, ``--`` between non-adjacent groups. Line content
is written back as raw bytes, so non-UTF-8 input survives unchanged.

Key Functions:
    format_text: One grep-style line for a record
    to_json_bytes: Fast JSON serialization of a record using orjson
    outcome_to_json_bytes: Final summary object for the JSON layout
    format_records: Lazily render a record stream in either format
"""

from __future__ import annotations

import os
from collections.abc import Iterable, Iterator
from typing import Any, BinaryIO

import orjson

from ..core.types import OutputFormat, OutputRecord, RecordKind, SearchOutcome


def _name(source: str) -> bytes:
    return os.fsencode(source)


def _display(text: str) -> str:
    """JSON-safe form of a name; undecodable bytes become U+FFFD."""
    return os.fsencode(text).decode("utf-8", errors="replace")


def format_text(record: OutputRecord) -> bytes:
    """grep-style line for one record, without the trailing newline."""
    if record.kind == RecordKind.SEPARATOR:
        return b"--"
    if record.kind == RecordKind.BINARY:
        return b"Binary file " + _name(record.source or "") + b" matches"
    if record.kind == RecordKind.FILENAME:
        return _name(record.source or "")
    if record.kind == RecordKind.COUNT:
        count = str(record.count or 0).encode()
        return _name(record.source) + b":" + count if record.source is not None else count

    sep = b":" if record.kind == RecordKind.LINE else b"-"
    out: list[bytes] = []
    if record.source is not None:
        out.append(_name(record.source) + sep)
    if record.line_number is not None:
        out.append(str(record.line_number).encode() + sep)
    out.append(record.content or b"")
    return b"".join(out)


def record_to_dict(record: OutputRecord) -> dict[str, Any]:
    payload: dict[str, Any] = {"type": record.kind.value}
    if record.source is not None:
        payload["source"] = _display(record.source)
    if record.line_number is not None:
        payload["line_number"] = record.line_number
    if record.content is not None:
        payload["text"] = record.content.decode("utf-8", errors="replace")
        payload["spans"] = [[a, b] for a, b in record.spans]
    if record.count is not None:
        payload["count"] = record.count
    return payload


def to_json_bytes(record: OutputRecord) -> bytes:
    return orjson.dumps(record_to_dict(record))


def outcome_to_json_bytes(outcome: SearchOutcome) -> bytes:
    payload = {
        "type": "summary",
        "status": outcome.status.value,
        "exit_code": outcome.exit_code,
        "match_count": outcome.match_count,
        "sources": [
            {
                "source": _display(s.name),
                "state": s.state.value,
                "match_count": s.match_count,
                "lines_scanned": s.lines_scanned,
                "binary": s.binary,
                "error": _display(s.error.message) if s.error is not None else None,
            }
            for s in outcome.sources.values()
        ],
        "errors": outcome.errors.get_summary(),
    }
    return orjson.dumps(payload)


def format_records(records: Iterable[OutputRecord], fmt: OutputFormat) -> Iterator[bytes]:
    for record in records:
        if fmt == OutputFormat.JSON:
            # separators only make sense in the text layout
            if record.kind == RecordKind.SEPARATOR:
                continue
            yield to_json_bytes(record)
        else:
            yield format_text(record)


def write_records(
    records: Iterable[OutputRecord], stream: BinaryIO, fmt: OutputFormat = OutputFormat.TEXT
) -> int:
    """Write records as newline separated lines; returns the number written."""
    written = 0
    for line in format_records(records, fmt):
        stream.write(line + b"\n")
        written += 1
    return written
