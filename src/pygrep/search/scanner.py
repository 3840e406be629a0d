"""
Streaming line scanner.

Turns a binary stream into a lazy sequence of ``Line`` objects without
reading the whole input into memory. Lines are split on ``\\n``; a ``\\r``
immediately before the ``\\n`` is stripped as part of the terminator. A last
line without a terminator is still produced, flagged ``terminated=False``.
All other bytes, including NUL and invalid UTF-8, are passed through as is.

The only blocking work is the stream read. Read errors propagate to the
caller as ``OSError``.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import BinaryIO

from ..core.config import DEFAULT_CHUNK_SIZE
from ..core.types import Line


def _strip_cr(content: bytes) -> bytes:
    return content[:-1] if content.endswith(b"\r") else content


def scan(stream: BinaryIO, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[Line]:
    """
    Yield the lines of ``stream`` in order, numbered from 1.

    ``read1`` is preferred when the stream has it so pipes and terminals hand
    over whatever is available instead of blocking for a full chunk.
    """
    read = getattr(stream, "read1", None) or stream.read
    number = 0
    # pieces of a line that straddles chunk boundaries
    pending: list[bytes] = []
    while True:
        chunk = read(chunk_size)
        if not chunk:
            break
        start = 0
        while True:
            nl = chunk.find(b"\n", start)
            if nl == -1:
                break
            content = chunk[start:nl]
            if pending:
                pending.append(content)
                content = b"".join(pending)
                pending.clear()
            number += 1
            yield Line(number=number, content=_strip_cr(content), terminated=True)
            start = nl + 1
        if start < len(chunk):
            pending.append(chunk[start:])

    if pending:
        yield Line(number=number + 1, content=b"".join(pending), terminated=False)


class LineScanner:
    """Scanner bound to a chunk size; each ``scan`` call starts a fresh sequence."""

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self.chunk_size = chunk_size

    def scan(self, stream: BinaryIO) -> Iterator[Line]:
        return scan(stream, self.chunk_size)
