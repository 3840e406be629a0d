"""
Command-line interface for pygrep.

A thin consumer of the structured records produced by the search pipeline:
options are mapped onto a SearchConfig, records are written to stdout as
they are produced and the process exits with the three-way status.

Exit Status:
    0   at least one line was selected
    1   no line was selected
    2   a source error occurred (even if lines were selected), or the
        pattern/options were invalid

Example Usage:
    Case-insensitive search with line numbers:
        $ pygrep -in "error" app.log

    Recursive search limited to Python files, two lines of context:
        $ pygrep -r -C 2 --include "*.py" "def main" src

    Count non-matching lines from standard input:
        $ cat notes.txt | pygrep -vc todo
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

import click

from ..core.api import PyGrep
from ..core.config import SearchConfig
from ..core.types import BinaryMode, OutputFormat
from ..utils.error_handling import ConfigurationError, InvalidPattern
from ..utils.formatter import format_records, outcome_to_json_bytes
from ..utils.logging_config import LogFormat, LogLevel, configure_logging, disable_logging


@click.command("pygrep")
@click.option("-i", "--ignore-case", is_flag=True, default=False, help="Ignore case distinctions.")
@click.option("-v", "--invert-match", is_flag=True, default=False, help="Select non-matching lines.")
@click.option("-w", "--word-regexp", is_flag=True, default=False, help="Match only whole words.")
@click.option("-F", "--fixed-strings", is_flag=True, default=False, help="Treat PATTERN as a literal string.")
@click.option("-r", "--recursive", is_flag=True, default=False, help="Search directories recursively.")
@click.option(
    "-R",
    "--dereference-recursive",
    is_flag=True,
    default=False,
    help="Like -r, but follow all symbolic links.",
)
@click.option("-n", "--line-number", is_flag=True, default=False, help="Prefix lines with their line number.")
@click.option("-H", "--with-filename", "force_filename", is_flag=True, default=False, help="Always print file names.")
@click.option("-h", "--no-filename", "no_filename", is_flag=True, default=False, help="Never print file names.")
@click.option("-c", "--count", "count_only", is_flag=True, default=False, help="Print only a count of selected lines per source.")
@click.option("-l", "--files-with-matches", is_flag=True, default=False, help="Print only names of sources with selected lines.")
@click.option("-L", "--files-without-match", is_flag=True, default=False, help="Print only names of sources without selected lines.")
@click.option("-q", "--quiet", is_flag=True, default=False, help="Print nothing, stop at the first match.")
@click.option("-s", "--no-messages", is_flag=True, default=False, help="Suppress error messages.")
@click.option("-m", "--max-count", type=click.IntRange(min=0), default=None, help="Stop a source after NUM selected lines.")
@click.option("-A", "--after-context", type=click.IntRange(min=0), default=None, help="Print NUM lines of trailing context.")
@click.option("-B", "--before-context", type=click.IntRange(min=0), default=None, help="Print NUM lines of leading context.")
@click.option("-C", "--context", type=click.IntRange(min=0), default=None, help="Print NUM lines of context on both sides.")
@click.option("-a", "--text", "force_text", is_flag=True, default=False, help="Search binary sources as text.")
@click.option("-I", "skip_binary", is_flag=True, default=False, help="Treat binary sources as non-matching.")
@click.option(
    "--binary-files",
    type=click.Choice([m.value for m in BinaryMode]),
    default=None,
    help="How to treat sources containing NUL bytes.",
)
@click.option("--include", multiple=True, help="Search only files matching GLOB while recursing.")
@click.option("--exclude", multiple=True, help="Skip files matching GLOB while recursing.")
@click.option("--exclude-dir", multiple=True, help="Skip directories matching GLOB while recursing.")
@click.option(
    "--format",
    "fmt",
    type=click.Choice([e.value for e in OutputFormat]),
    default=OutputFormat.TEXT.value,
    help="Output format.",
)
@click.option("--parallel", is_flag=True, default=False, help="Search sources on a thread pool.")
@click.option("--workers", type=click.IntRange(min=0), default=0, help="Worker threads for --parallel (0 = auto).")
@click.option("--show-errors", is_flag=True, default=False, help="Print an error report at the end.")
# Logging and debugging options
@click.option("--debug", is_flag=True, default=False, help="Enable debug logging.")
@click.option(
    "--log-level",
    type=click.Choice([lvl.value for lvl in LogLevel]),
    default=LogLevel.WARNING.value,
    help="Log level.",
)
@click.option("--log-file", type=click.Path(dir_okay=False), default=None, help="Also write logs to FILE.")
@click.option(
    "--log-format",
    type=click.Choice([f.value for f in LogFormat]),
    default=LogFormat.SIMPLE.value,
    help="Log format.",
)
@click.argument("pattern")
@click.argument("paths", nargs=-1)
def cli(
    ignore_case: bool,
    invert_match: bool,
    word_regexp: bool,
    fixed_strings: bool,
    recursive: bool,
    dereference_recursive: bool,
    line_number: bool,
    force_filename: bool,
    no_filename: bool,
    count_only: bool,
    files_with_matches: bool,
    files_without_match: bool,
    quiet: bool,
    no_messages: bool,
    max_count: int | None,
    after_context: int | None,
    before_context: int | None,
    context: int | None,
    force_text: bool,
    skip_binary: bool,
    binary_files: str | None,
    include: tuple[str, ...],
    exclude: tuple[str, ...],
    exclude_dir: tuple[str, ...],
    fmt: str,
    parallel: bool,
    workers: int,
    show_errors: bool,
    debug: bool,
    log_level: str,
    log_file: str | None,
    log_format: str,
    pattern: str,
    paths: tuple[str, ...],
) -> None:
    """Search PATHS (or standard input) for lines matching PATTERN."""
    if debug:
        log_level = LogLevel.DEBUG.value
    logger = configure_logging(
        level=LogLevel(log_level),
        format_type=LogFormat(log_format),
        log_file=Path(log_file) if log_file else None,
        enable_file=bool(log_file),
        enable_console=True,
    )
    if no_messages:
        disable_logging()

    binary_mode = BinaryMode.BINARY
    if force_text:
        binary_mode = BinaryMode.TEXT
    elif skip_binary:
        binary_mode = BinaryMode.WITHOUT_MATCH
    if binary_files is not None:
        binary_mode = BinaryMode(binary_files)

    with_filename: bool | None = None
    if force_filename:
        with_filename = True
    elif no_filename:
        with_filename = False

    output_format = OutputFormat(fmt)
    cfg = SearchConfig(
        paths=list(paths),
        recursive=recursive or dereference_recursive,
        follow_symlinks=dereference_recursive,
        include=list(include) or None,
        exclude=list(exclude) or None,
        exclude_dir=list(exclude_dir) or None,
        case_insensitive=ignore_case,
        whole_word=word_regexp,
        fixed_string=fixed_strings,
        invert=invert_match,
        line_number=line_number,
        with_filename=with_filename,
        count_only=count_only,
        files_with_matches=files_with_matches,
        files_without_match=files_without_match,
        quiet=quiet,
        max_count=max_count,
        context_before=before_context if before_context is not None else (context or 0),
        context_after=after_context if after_context is not None else (context or 0),
        output_format=output_format,
        binary_mode=binary_mode,
        parallel=parallel,
        workers=workers,
    )

    try:
        grep = PyGrep(cfg, logger=logger)
        records = grep.iter_records(pattern)
    except (InvalidPattern, ConfigurationError) as e:
        click.echo(f"pygrep: {e.message}", err=True)
        sys.exit(2)

    out = click.get_binary_stream("stdout")
    try:
        for line in format_records(records, output_format):
            out.write(line + b"\n")
        if output_format == OutputFormat.JSON:
            assert grep.last_result is not None
            out.write(outcome_to_json_bytes(grep.last_result.outcome) + b"\n")
        out.flush()
    except KeyboardInterrupt:
        records.close()
        click.echo("pygrep: interrupted", err=True)
        sys.exit(130)
    except BrokenPipeError:
        # The reader went away (`pygrep ... | head`): stop searching and
        # point stdout at devnull so the final flush at exit cannot fail again
        records.close()
        _silence_stdout(out)
        assert grep.last_result is not None
        sys.exit(grep.last_result.outcome.exit_code)

    result = grep.last_result
    assert result is not None
    outcome = result.outcome

    if show_errors and outcome.errors.total:
        click.echo("\n" + "=" * 50, err=True)
        click.echo("ERROR REPORT", err=True)
        click.echo("=" * 50, err=True)
        click.echo(grep.get_error_report(), err=True)

    sys.exit(outcome.exit_code)


def _silence_stdout(out) -> None:
    try:
        fd = out.fileno()
    except (OSError, ValueError):
        # In-memory stream, nothing is flushed at exit
        return
    devnull = os.open(os.devnull, os.O_WRONLY)
    os.dup2(devnull, fd)
    os.close(devnull)


def main() -> None:
    cli(prog_name="pygrep")


if __name__ == "__main__":
    main()
