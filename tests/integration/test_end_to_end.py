"""End-to-end scenarios through the public API and the CLI entry point."""

from __future__ import annotations

import builtins
import errno
import os
from pathlib import Path

import pytest
from click.testing import CliRunner

from pygrep import PyGrep, SearchConfig
from pygrep.cli.main import cli
from pygrep.core.types import OutcomeStatus, RecordKind
from pygrep.search import resolver as resolver_module
from pygrep.utils.error_handling import PermissionDenied

pytestmark = pytest.mark.integration


def test_literal_search_reports_matching_lines(animals_file: Path):
    result = PyGrep(SearchConfig(paths=[str(animals_file)], line_number=True)).search("cat")
    assert [(r.line_number, r.content) for r in result.records] == [(1, b"cat"), (3, b"catalog")]
    assert result.outcome.status == OutcomeStatus.MATCHES


def test_case_insensitive_search(animals_file: Path):
    cfg = SearchConfig(paths=[str(animals_file)], case_insensitive=True, line_number=True)
    result = PyGrep(cfg).search("CAT")
    assert [r.line_number for r in result.records] == [1, 3]


@pytest.mark.skipif(hasattr(os, "geteuid") and os.geteuid() == 0, reason="root can read any file")
def test_unreadable_file_with_match_elsewhere(tmp_path: Path, animals_file: Path):
    locked = tmp_path / "locked.txt"
    locked.write_text("cat\n")
    locked.chmod(0)
    try:
        result = CliRunner().invoke(cli, ["cat", str(locked), str(animals_file)])
    finally:
        locked.chmod(0o644)
    assert result.exit_code == 2
    assert f"{animals_file}:cat" in result.stdout


def test_empty_pattern_matches_every_line(tmp_path: Path):
    p = tmp_path / "e.txt"
    p.write_bytes(b"one\n\nthree\n")
    result = PyGrep(SearchConfig(paths=[str(p)])).search("")
    assert [r.spans for r in result.records] == [((0, 0),)] * 3


def test_unterminated_last_line_is_searched(tmp_path: Path):
    p = tmp_path / "u.txt"
    p.write_bytes(b"first\nlast")
    result = PyGrep(SearchConfig(paths=[str(p)], line_number=True)).search("last")
    assert [(r.line_number, r.content) for r in result.records] == [(2, b"last")]
    out = CliRunner().invoke(cli, ["last", str(p)])
    assert out.stdout == "last\n"


def test_recursive_search_with_filters(sample_tree: Path):
    cfg = SearchConfig(
        paths=[str(sample_tree)],
        recursive=True,
        include=["*.py", "*.txt"],
        exclude=["b.txt"],
        exclude_dir=["build"],
        count_only=True,
    )
    result = PyGrep(cfg).search("todo")
    counts = {Path(r.source).name: r.count for r in result.records if r.kind == RecordKind.COUNT}
    assert counts == {"a.txt": 1, "mod.py": 1, "deep.py": 1}


def test_parallel_output_identical(sample_tree: Path):
    base = dict(paths=[str(sample_tree)], recursive=True, line_number=True)
    sequential = PyGrep(SearchConfig(**base)).search("o")
    parallel = PyGrep(SearchConfig(**base, parallel=True, workers=2)).search("o")
    assert parallel.records == sequential.records
    assert parallel.outcome.exit_code == sequential.outcome.exit_code


def test_concatenate_scenario(tmp_path: Path):
    p = tmp_path / "c.txt"
    p.write_bytes(b"cat\ndog\nconcatenate\n")
    result = PyGrep(SearchConfig(paths=[str(p)], line_number=True)).search("cat")
    assert [r.line_number for r in result.records] == [1, 3]
    assert result.records[1].spans == ((3, 6),)


def test_case_folded_single_line(tmp_path: Path):
    p = tmp_path / "c.txt"
    p.write_bytes(b"Cat\n")
    result = PyGrep(SearchConfig(paths=[str(p)], case_insensitive=True, line_number=True)).search("CAT")
    assert [r.line_number for r in result.records] == [1]


@pytest.mark.skipif(hasattr(os, "geteuid") and os.geteuid() == 0, reason="root can read any file")
def test_recursive_with_unreadable_file(tmp_path: Path):
    root = tmp_path / "dir"
    root.mkdir()
    (root / "good.txt").write_text("cat\n")
    locked = root / "locked.txt"
    locked.write_text("cat\n")
    locked.chmod(0)
    try:
        result = PyGrep(SearchConfig(paths=[str(root)], recursive=True)).search("cat")
    finally:
        locked.chmod(0o644)
    assert result.outcome.match_count == 1
    assert result.outcome.errors.total == 1
    assert result.outcome.exit_code == 2


@pytest.fixture
def deny_open(monkeypatch):
    """Make opening the registered paths fail with EACCES, whatever the uid."""
    denied: set[str] = set()

    def fake_open(file, *args, **kwargs):
        if os.fspath(file) in denied:
            raise PermissionError(errno.EACCES, "Permission denied", os.fspath(file))
        return builtins.open(file, *args, **kwargs)

    monkeypatch.setattr(resolver_module, "open", fake_open, raising=False)
    return denied


def test_recursive_with_permission_denied(tmp_path: Path, deny_open: set[str]):
    root = tmp_path / "dir"
    root.mkdir()
    (root / "good.txt").write_text("cat\n")
    locked = root / "locked.txt"
    locked.write_text("cat\n")
    deny_open.add(str(locked))

    result = PyGrep(SearchConfig(paths=[str(root)], recursive=True)).search("cat")
    assert result.outcome.match_count == 1
    assert result.outcome.errors.total == 1
    assert result.outcome.exit_code == 2
    status = result.outcome.sources[str(locked)]
    assert isinstance(status.error, PermissionDenied)


def test_cli_permission_denied_with_match_elsewhere(tmp_path: Path, animals_file: Path, deny_open: set[str]):
    locked = tmp_path / "locked.txt"
    locked.write_text("cat\n")
    deny_open.add(str(locked))

    result = CliRunner().invoke(cli, ["cat", str(locked), str(animals_file)])
    assert result.exit_code == 2
    assert f"{animals_file}:cat" in result.stdout
