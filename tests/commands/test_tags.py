"""Tests for the `kforge tags select` command."""

from pathlib import Path

from click.testing import CliRunner

from kforge.cli.cli import cli
from kforge.core.context import KforgeContext

TAGS = "kernel-6.1.0-1\nkernel-6.1.2-1\nkernel-6.1.2-0.rc1\nkernel-6.2.0-1\n"


def test_select_reads_tags_from_stdin() -> None:
    """The selected tag is the only thing printed on success."""
    runner = CliRunner()

    result = runner.invoke(
        cli,
        ["tags", "select", "--prefix", "kernel-6.1", "--exclude-substring", ".rc"],
        input=TAGS,
        obj=KforgeContext.for_test(),
    )

    assert result.exit_code == 0, result.output
    assert result.output == "kernel-6.1.2-1\n"


def test_select_reads_tags_from_file(tmp_path: Path) -> None:
    tags_file = tmp_path / "tags.txt"
    tags_file.write_text(TAGS, encoding="utf-8")
    runner = CliRunner()

    result = runner.invoke(
        cli,
        [
            "tags",
            "select",
            str(tags_file),
            "--prefix",
            "kernel-6.1",
            "--exclude-substring",
            ".rc",
            "--exclude-tag",
            "kernel-6.1.2-1",
        ],
        obj=KforgeContext.for_test(),
    )

    assert result.exit_code == 0, result.output
    assert result.output == "kernel-6.1.0-1\n"


def test_select_with_custom_pattern_and_suffix() -> None:
    runner = CliRunner()

    result = runner.invoke(
        cli,
        [
            "tags",
            "select",
            "--prefix",
            "kernel-6.1",
            "--pattern",
            r"kernel-(\d+\.\d+\.\d+-\d+)\.fc\d+",
            "--require-suffix",
            "fc39",
        ],
        input="kernel-6.1.9-100.fc38\nkernel-6.1.8-200.fc39\n",
        obj=KforgeContext.for_test(),
    )

    assert result.exit_code == 0, result.output
    assert result.output == "kernel-6.1.8-200.fc39\n"


def test_select_exits_1_when_nothing_matches() -> None:
    runner = CliRunner()

    result = runner.invoke(
        cli,
        ["tags", "select", "--prefix", "kernel-9"],
        input=TAGS,
        obj=KforgeContext.for_test(),
    )

    assert result.exit_code == 1
    assert "No tag found among 4 tags" in result.output


def test_select_rejects_pattern_without_group() -> None:
    runner = CliRunner()

    result = runner.invoke(
        cli,
        ["tags", "select", "--prefix", "kernel-", "--pattern", r"kernel-\d+"],
        input=TAGS,
        obj=KforgeContext.for_test(),
    )

    assert result.exit_code == 2
    assert "group 1" in result.output


def test_select_rejects_invalid_regex() -> None:
    runner = CliRunner()

    result = runner.invoke(
        cli,
        ["tags", "select", "--prefix", "kernel-", "--pattern", "kernel-("],
        input=TAGS,
        obj=KforgeContext.for_test(),
    )

    assert result.exit_code == 2
    assert "invalid regular expression" in result.output
