"""Tests for CLI error rendering."""

import re
from io import StringIO

import pytest
from rich.console import Console

from kforge.cli.output import render_error
from kforge.core.errors import KforgeError
from kforge.core.kconfig import ConfigOption, OptionMode, ReconciliationFailure
from kforge.core.subprocess import ExecutionFailure
from kforge.core.versions import DEFAULT_KERNEL_TAG_PATTERN, NoCandidateFound, TagSelectionRules


def render(error: KforgeError, capsys: pytest.CaptureFixture[str]) -> tuple[str, str]:
    buffer = StringIO()
    render_error(error, console=Console(file=buffer, width=120))
    return buffer.getvalue(), capsys.readouterr().err


def test_execution_failure_shows_both_streams(capsys: pytest.CaptureFixture[str]) -> None:
    error = ExecutionFailure("make prepare", 2, stdout="some output", stderr="bad things")

    panel, err = render(error, capsys)

    assert "Command Failed" in panel
    assert "Command: make prepare" in panel
    assert "Exit code: 2" in panel
    assert "some output" in panel
    assert "bad things" in panel
    assert err == "Error: `make prepare` failed with status=2\n"


def test_execution_failure_marks_empty_streams(capsys: pytest.CaptureFixture[str]) -> None:
    panel, _ = render(ExecutionFailure("false", 1, stdout="", stderr=""), capsys)

    assert panel.count("(empty)") == 2


def test_reconciliation_failure_lists_options(capsys: pytest.CaptureFixture[str]) -> None:
    error = ReconciliationFailure(
        [
            ConfigOption(key="CONFIG_ZFS", mode=OptionMode.BUILTIN),
            ConfigOption(key="CONFIG_VFIO", mode=OptionMode.MODULE),
        ]
    )

    panel, err = render(error, capsys)

    assert "- CONFIG_ZFS=y" in panel
    assert "- CONFIG_VFIO=m" in panel
    assert err == "Error: 2 config option(s) not found in .config:\n"


def test_no_candidate_found_prints_only_message(capsys: pytest.CaptureFixture[str]) -> None:
    rules = TagSelectionRules(prefix="kernel-6.1", pattern=re.compile(DEFAULT_KERNEL_TAG_PATTERN))

    panel, err = render(NoCandidateFound(rules, considered=0), capsys)

    assert panel == ""
    assert err.startswith("Error: No tag found among 0 tags matching prefix='kernel-6.1'")
