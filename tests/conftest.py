"""
Shared test fixtures and utilities for pygrep tests.

This module provides common fixtures, test data, and helper functions
to reduce code duplication across the test suite.
"""

from __future__ import annotations

import io
from pathlib import Path

import pytest

from pygrep import PyGrep, SearchConfig
from pygrep.core.types import OutputRecord, RecordKind
from pygrep.utils.logging_config import LogLevel, configure_logging

# Test data constants
ANIMALS = "cat\ndog\ncatalog\n"

NUMBERED = "".join(f"line {i}\n" for i in range(1, 11))

SAMPLE_PYTHON_CODE = """
def foo():
    '''A simple function'''
    pass

class Bar:
    def baz(self):
        return "ok"
"""


@pytest.fixture(autouse=True)
def quiet_logging():
    """Route the global logger to a fresh WARNING logger for every test."""
    yield configure_logging(level=LogLevel.WARNING)


@pytest.fixture
def animals_file(tmp_path: Path) -> Path:
    p = tmp_path / "a.txt"
    p.write_bytes(ANIMALS.encode())
    return p


@pytest.fixture
def numbered_file(tmp_path: Path) -> Path:
    p = tmp_path / "numbers.txt"
    p.write_bytes(NUMBERED.encode())
    return p


@pytest.fixture
def sample_tree(tmp_path: Path) -> Path:
    """Create a small directory tree with text and python files."""
    root = tmp_path / "tree"
    (root / "pkg" / "sub").mkdir(parents=True)
    (root / "build").mkdir()
    (root / "b.txt").write_text("todo: b\n", encoding="utf-8")
    (root / "a.txt").write_text("nothing here\ntodo: a\n", encoding="utf-8")
    (root / "pkg" / "mod.py").write_text(SAMPLE_PYTHON_CODE + "# todo: mod\n", encoding="utf-8")
    (root / "pkg" / "sub" / "deep.py").write_text("# todo: deep\n", encoding="utf-8")
    (root / "build" / "out.txt").write_text("todo: build\n", encoding="utf-8")
    return root


class TestDataHelper:
    """Helper class for running searches and inspecting records."""

    @staticmethod
    def run(pattern: str, stdin: bytes | None = None, **kwargs):
        cfg = SearchConfig(**kwargs)
        stream = io.BytesIO(stdin) if stdin is not None else None
        return PyGrep(cfg, stdin=stream).search(pattern)

    @staticmethod
    def lines(records: list[OutputRecord]) -> list[bytes]:
        return [r.content for r in records if r.kind == RecordKind.LINE]

    @staticmethod
    def numbers(records: list[OutputRecord], kind: RecordKind = RecordKind.LINE) -> list[int]:
        return [r.line_number for r in records if r.kind == kind]


@pytest.fixture
def test_helper():
    """Provide the TestDataHelper for tests."""
    return TestDataHelper()


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "slow: Slow tests that may take longer to run")
