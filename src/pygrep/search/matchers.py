"""
Pattern matching for pygrep.

A pattern is compiled once into one of exactly two matchers:

- ``LiteralMatcher``: plain substring search over bytes (``fixed_string``).
- ``ExpressionMatcher``: regular expressions compiled by the ``regex`` engine.

Case folding and whole-word matching are resolved at compile time. Without
case folding both matchers work on raw bytes. With it, the line is decoded as
UTF-8, matched with Unicode full case folding, and spans are mapped back to
byte offsets. Matchers are read-only after construction and can be shared by
concurrent scans.

Span policy: matches are non-overlapping and ordered left to right. A
zero-length match is only reported when the line has no non-empty match, and
then only the first one, so the empty pattern selects every line with the
single span ``(0, 0)``.

Example:
    >>> from pygrep.search.matchers import compile_matcher
    >>> m = compile_matcher("cat", fixed_string=True)
    >>> m.find_all(b"concatenate cat")
    [(3, 6), (12, 15)]
    >>> compile_matcher(r"\\bcat\\b").find_all(b"concatenate cat")
    [(12, 15)]
"""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass
from functools import lru_cache

import regex as regex_mod  # better regex engine

from ..core.types import Span
from ..utils.error_handling import InvalidPattern

_WORD_BYTES = frozenset(b"abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789_")

# Unicode full case folding, so "ß" matches "SS" and "É" matches "é"
_FOLD_FLAGS = regex_mod.IGNORECASE | regex_mod.FULLCASE


@dataclass(frozen=True, slots=True)
class Pattern:
    text: str
    raw: bytes
    fixed_string: bool = False
    case_insensitive: bool = False
    whole_word: bool = False


@lru_cache(maxsize=64)
def _get_compiled_regex(pattern: bytes | str, flags: int) -> regex_mod.Pattern:
    return regex_mod.compile(pattern, flags=flags)


def _compile(source: bytes | str, flags: int, pattern: Pattern) -> regex_mod.Pattern:
    try:
        # Compile the bare expression first so syntax errors point at the user's text
        _get_compiled_regex(source, flags)
        if pattern.whole_word:
            if isinstance(source, str):
                source = r"(?<!\w)(?:" + source + r")(?!\w)"
            else:
                source = rb"(?<!\w)(?:" + source + rb")(?!\w)"
        return _get_compiled_regex(source, flags)
    except regex_mod.error as exc:
        raise InvalidPattern(f"Invalid pattern {pattern.text!r}: {exc}", pattern.text) from exc


def _decode(data: bytes) -> str:
    return data.decode("utf-8", "surrogateescape")


def _pick_spans(found: Iterable[Span]) -> list[Span]:
    spans: list[Span] = []
    first_empty: Span | None = None
    for start, end in found:
        if start == end:
            if first_empty is None:
                first_empty = (start, end)
            continue
        spans.append((start, end))
    if not spans and first_empty is not None:
        spans.append(first_empty)
    return spans


def _to_byte_spans(text: str, spans: list[Span]) -> list[Span]:
    """Map ordered character spans of ``text`` to offsets in its UTF-8 bytes."""
    out: list[Span] = []
    char_pos = byte_pos = 0
    for start, end in spans:
        byte_pos += len(text[char_pos:start].encode("utf-8", "surrogateescape"))
        byte_start = byte_pos
        byte_pos += len(text[start:end].encode("utf-8", "surrogateescape"))
        char_pos = end
        out.append((byte_start, byte_pos))
    return out


class _FoldedSearch:
    """
    Case-insensitive search over the decoded line.

    Lines are decoded as UTF-8 with undecodable bytes kept as surrogates, so
    any byte string can be searched and the spans map back exactly.
    """

    __slots__ = ("regex",)

    def __init__(self, regex: regex_mod.Pattern) -> None:
        self.regex = regex

    def find_all(self, line: bytes) -> list[Span]:
        text = _decode(line)
        spans = _pick_spans(m.span() for m in self.regex.finditer(text))
        if line.isascii():
            return spans
        return _to_byte_spans(text, spans)

    def matches(self, line: bytes) -> bool:
        return self.regex.search(_decode(line)) is not None


def _at_word_boundaries(line: bytes, start: int, end: int) -> bool:
    if start > 0 and line[start - 1] in _WORD_BYTES:
        return False
    if end < len(line) and line[end] in _WORD_BYTES:
        return False
    return True


class Matcher(ABC):
    """Compiled pattern plus matching algorithm."""

    def __init__(self, pattern: Pattern) -> None:
        self.pattern = pattern

    @abstractmethod
    def find_all(self, line: bytes) -> list[Span]:
        """Return the ordered match spans of ``line``, possibly empty."""

    def matches(self, line: bytes) -> bool:
        return bool(self.find_all(line))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.pattern.text!r})"


class LiteralMatcher(Matcher):
    def __init__(self, pattern: Pattern) -> None:
        super().__init__(pattern)
        self._needle = pattern.raw
        self._folded: _FoldedSearch | None = None
        if pattern.case_insensitive:
            escaped = regex_mod.escape(_decode(pattern.raw))
            self._folded = _FoldedSearch(_compile(escaped, _FOLD_FLAGS, pattern))

    def find_all(self, line: bytes) -> list[Span]:
        if self._folded is not None:
            return self._folded.find_all(line)
        needle = self._needle
        n = len(needle)
        spans: list[Span] = []
        start = 0
        while start <= len(line):
            i = line.find(needle, start)
            if i == -1:
                break
            if self.pattern.whole_word and not _at_word_boundaries(line, i, i + n):
                start = i + 1
                continue
            spans.append((i, i + n))
            if n == 0:
                break
            start = i + n
        return spans

    def matches(self, line: bytes) -> bool:
        if self._folded is not None:
            return self._folded.matches(line)
        if self.pattern.whole_word:
            return bool(self.find_all(line))
        return self._needle in line


class ExpressionMatcher(Matcher):
    def __init__(self, pattern: Pattern) -> None:
        super().__init__(pattern)
        self._folded: _FoldedSearch | None = None
        if pattern.case_insensitive:
            self._folded = _FoldedSearch(_compile(_decode(pattern.raw), _FOLD_FLAGS, pattern))
            self._regex = self._folded.regex
        else:
            self._regex = _compile(pattern.raw, 0, pattern)

    def find_all(self, line: bytes) -> list[Span]:
        if self._folded is not None:
            return self._folded.find_all(line)
        return _pick_spans(m.span() for m in self._regex.finditer(line))

    def matches(self, line: bytes) -> bool:
        if self._folded is not None:
            return self._folded.matches(line)
        return self._regex.search(line) is not None


def compile_matcher(
    pattern: str,
    *,
    fixed_string: bool = False,
    case_insensitive: bool = False,
    whole_word: bool = False,
) -> Matcher:
    """
    Compile ``pattern`` into a matcher.

    The pattern text is encoded the way the operating system encodes command
    line arguments, so arguments that were not valid UTF-8 round-trip to their
    original bytes.

    Raises:
        InvalidPattern: If the expression cannot be compiled.
    """
    compiled = Pattern(
        text=pattern,
        raw=os.fsencode(pattern),
        fixed_string=fixed_string,
        case_insensitive=case_insensitive,
        whole_word=whole_word,
    )
    if fixed_string:
        return LiteralMatcher(compiled)
    return ExpressionMatcher(compiled)
