"""
Source resolution: expands path operands into an ordered, lazy sequence of
open sources.

Failures on one operand (missing path, permission denied, directory without
recursion, symlink loop) are yielded as ``SourceErrorEvent`` items in place
of a source, and resolution carries on with the next entry.

Recursive traversal is depth first with directory entries sorted by name,
so the order is deterministic. The walk keeps an explicit stack of open
directory listings, so tree depth is not bounded by the recursion limit.
Symlink loops are detected with the set of ``(st_dev, st_ino)`` identities
of the directories on the current path. Files are deduplicated by canonical
path.
"""

from __future__ import annotations

import os
import stat
import sys
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import BinaryIO, Union

import pathspec

from ..core.config import SearchConfig
from ..core.types import STDIN_LABEL, STDIN_SENTINEL, Source, SourceErrorEvent
from ..utils.error_handling import IsADirectory, ReadFailure, SymlinkCycle, classify_os_error
from ..utils.logging_config import SearchLogger, get_logger

ResolvedItem = Union[Source, SourceErrorEvent]

DirIdentity = tuple[int, int]

# One open directory listing on the walk stack
_Frame = tuple[str, Iterator[os.DirEntry], DirIdentity]


def build_pathspec(patterns: list[str] | None) -> pathspec.GitIgnoreSpec | None:
    if not patterns:
        return None
    return pathspec.GitIgnoreSpec.from_lines(patterns)


class SourceResolver:
    def __init__(
        self,
        recursive: bool = False,
        follow_symlinks: bool = False,
        include: list[str] | None = None,
        exclude: list[str] | None = None,
        exclude_dir: list[str] | None = None,
        logger: SearchLogger | None = None,
        stdin: BinaryIO | None = None,
    ) -> None:
        self.recursive = recursive
        self.follow_symlinks = follow_symlinks
        self._include = build_pathspec(include)
        self._exclude = build_pathspec(exclude)
        self._exclude_dir = build_pathspec(exclude_dir)
        self.logger = logger or get_logger()
        self._stdin = stdin

    @classmethod
    def from_config(
        cls, config: SearchConfig, logger: SearchLogger | None = None, stdin: BinaryIO | None = None
    ) -> SourceResolver:
        return cls(
            recursive=config.recursive,
            follow_symlinks=config.follow_symlinks,
            include=config.include,
            exclude=config.exclude,
            exclude_dir=config.exclude_dir,
            logger=logger,
            stdin=stdin,
        )

    def resolve(self, paths: Iterable[str]) -> Iterator[ResolvedItem]:
        """Yield a source or an error event per searchable input, in order."""
        seen: set[str] = set()
        stdin_used = False
        operands = list(paths) or [STDIN_SENTINEL]
        for name in operands:
            if name == STDIN_SENTINEL:
                if stdin_used:
                    self.logger.log_source_skipped(STDIN_LABEL, "already searched")
                    continue
                stdin_used = True
                yield self._open_stdin()
                continue
            yield from self._resolve_operand(name, seen)

    def _open_stdin(self) -> ResolvedItem:
        stream = self._stdin
        if stream is None:
            if sys.stdin is None:
                return SourceErrorEvent(
                    STDIN_LABEL, ReadFailure(f"{STDIN_LABEL}: not available", STDIN_LABEL)
                )
            stream = sys.stdin.buffer
        return Source(name=STDIN_LABEL, stream=stream, path=None)

    def _resolve_operand(self, name: str, seen: set[str]) -> Iterator[ResolvedItem]:
        # Command line symlinks are always followed
        try:
            st = os.stat(name)
        except OSError as exc:
            yield SourceErrorEvent(name, classify_os_error(exc, name, "stat"))
            return

        if stat.S_ISDIR(st.st_mode):
            if not self.recursive:
                yield SourceErrorEvent(name, IsADirectory(f"{name}: Is a directory", name))
                return
            yield from self._walk(name, (st.st_dev, st.st_ino), seen)
            return

        yield from self._open_file(name, seen)

    def _open_file(self, name: str, seen: set[str]) -> Iterator[ResolvedItem]:
        real = os.path.realpath(name)
        if real in seen:
            self.logger.log_source_skipped(name, "already searched")
            return
        seen.add(real)
        try:
            stream = open(name, "rb")
        except OSError as exc:
            yield SourceErrorEvent(name, classify_os_error(exc, name, "open"))
            return
        yield Source(name=name, stream=stream, path=Path(real))

    def _listing(self, dir_name: str) -> Iterator[os.DirEntry] | SourceErrorEvent:
        try:
            with os.scandir(dir_name) as it:
                return iter(sorted(it, key=lambda e: e.name))
        except OSError as exc:
            return SourceErrorEvent(dir_name, classify_os_error(exc, dir_name, "list"))

    def _walk(self, root: str, identity: DirIdentity, seen: set[str]) -> Iterator[ResolvedItem]:
        listing = self._listing(root)
        if isinstance(listing, SourceErrorEvent):
            yield listing
            return

        stack: list[_Frame] = [(root, listing, identity)]
        active: set[DirIdentity] = {identity}
        while stack:
            dir_name, entries, dir_identity = stack[-1]
            descend: tuple[str, DirIdentity] | None = None
            for entry in entries:
                child = os.path.join(dir_name, entry.name)
                try:
                    if entry.is_symlink() and not self.follow_symlinks:
                        self.logger.log_source_skipped(child, "symbolic link")
                        continue

                    if entry.is_dir():
                        if self._dir_excluded(child, root):
                            self.logger.log_source_skipped(child, "excluded directory")
                            continue
                        st = entry.stat()
                        child_identity = (st.st_dev, st.st_ino)
                        if child_identity in active:
                            yield SourceErrorEvent(
                                child,
                                SymlinkCycle(f"{child}: recursive directory loop", child),
                            )
                            continue
                        descend = (child, child_identity)
                        break
                    elif entry.is_file():
                        if not self._file_included(child, root):
                            self.logger.log_source_skipped(child, "excluded by pattern")
                            continue
                        yield from self._open_file(child, seen)
                    else:
                        self.logger.log_source_skipped(child, "not a regular file")
                except OSError as exc:
                    yield SourceErrorEvent(child, classify_os_error(exc, child, "stat"))

            if descend is None:
                # Directory finished
                stack.pop()
                active.discard(dir_identity)
                continue

            child, child_identity = descend
            listing = self._listing(child)
            if isinstance(listing, SourceErrorEvent):
                yield listing
                continue
            stack.append((child, listing, child_identity))
            active.add(child_identity)

    def _file_included(self, path: str, root: str) -> bool:
        rel = os.path.relpath(path, root)
        if self._include is not None and not self._include.match_file(rel):
            return False
        if self._exclude is not None and self._exclude.match_file(rel):
            return False
        return True

    def _dir_excluded(self, path: str, root: str) -> bool:
        if self._exclude_dir is None:
            return False
        rel = os.path.relpath(path, root)
        return self._exclude_dir.match_file(rel) or self._exclude_dir.match_file(rel + "/")
