"""Unit tests for CLI output helpers."""

import io

from rich.console import Console

from astgen.cli.utils import echo_error, echo_info, echo_success, echo_warning, print_languages


def test_echo_helpers_write_to_stderr(capsys):
    echo_success("done")
    echo_error("broken")
    echo_warning("careful")
    echo_info("fyi")

    captured = capsys.readouterr()
    assert captured.out == ""
    for text in ("done", "broken", "careful", "fyi"):
        assert text in captured.err


def test_print_languages_table():
    buffer = io.StringIO()
    print_languages(Console(file=buffer, width=120))
    output = buffer.getvalue()
    assert "C#" in output
    assert ".cs" in output
    assert "tsx" in output
