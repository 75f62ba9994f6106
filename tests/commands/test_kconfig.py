"""Tests for the `kforge kconfig` commands."""

from pathlib import Path

from click.testing import CliRunner

from kforge.cli.cli import cli
from kforge.core.build_config import BuildConfig
from kforge.core.context import KforgeContext
from kforge.core.subprocess import CommandResult, CommandSpec
from tests.fakes.executor import FakeCommandExecutor
from tests.fakes.user_feedback import FakeUserFeedback


def write_config(tmp_path: Path, text: str) -> Path:
    path = tmp_path / ".config"
    path.write_text(text, encoding="utf-8")
    return path


def test_apply_edits_file_and_reports_resolutions(tmp_path: Path) -> None:
    # Setup
    path = write_config(tmp_path, "CONFIG_KVM=m\nCONFIG_VFIO=m\n")
    feedback = FakeUserFeedback()
    ctx = KforgeContext.for_test(feedback=feedback)
    runner = CliRunner()

    # Execute
    result = runner.invoke(
        cli,
        ["kconfig", "apply", str(path), "-o", "CONFIG_KVM=y", "-o", "VFIO=m", "-o", "ZFS=y"],
        obj=ctx,
    )

    # Verify
    assert result.exit_code == 0, result.output
    assert path.read_text(encoding="utf-8") == "CONFIG_KVM=y\nCONFIG_VFIO=m\nCONFIG_ZFS=y\n"
    assert feedback.messages == [
        ("info", "- CONFIG_KVM=y is a module, changing it to built-in"),
        ("info", "- CONFIG_VFIO=m already set"),
        ("info", "- CONFIG_ZFS=y is not set, adding it"),
        ("success", f"All 3 config option(s) present in {path}"),
    ]


def test_apply_runs_normalize_command_in_file_directory(tmp_path: Path) -> None:
    path = write_config(tmp_path, "CONFIG_A=y\n")
    normalize = "make ARCH=x86_64 oldconfig"

    def reorder(spec: CommandSpec) -> None:
        lines = path.read_text(encoding="utf-8").splitlines(keepends=True)
        path.write_text("".join(reversed(lines)), encoding="utf-8")

    executor = FakeCommandExecutor(side_effects={normalize: reorder})
    runner = CliRunner()

    result = runner.invoke(
        cli,
        ["kconfig", "apply", str(path), "-o", "CONFIG_KVM=y", "--normalize", normalize],
        obj=KforgeContext.for_test(executor=executor),
    )

    assert result.exit_code == 0, result.output
    assert executor.commands == [normalize]
    assert executor.executed[0].cwd == tmp_path
    assert path.read_text(encoding="utf-8") == "CONFIG_KVM=y\nCONFIG_A=y\n"


def test_apply_fails_when_normalize_drops_option(tmp_path: Path) -> None:
    path = write_config(tmp_path, "CONFIG_A=y\n")
    normalize = "make oldconfig"

    def drop_everything(spec: CommandSpec) -> None:
        path.write_text("CONFIG_A=y\n", encoding="utf-8")

    executor = FakeCommandExecutor(side_effects={normalize: drop_everything})
    runner = CliRunner()

    result = runner.invoke(
        cli,
        ["kconfig", "apply", str(path), "-o", "KVM=y", "-o", "ZFS=y", "--normalize", normalize],
        obj=KforgeContext.for_test(executor=executor),
    )

    assert result.exit_code == 1
    assert "Config Verification Failed" in result.output
    assert "CONFIG_KVM=y" in result.output
    assert "CONFIG_ZFS=y" in result.output


def test_apply_reports_failed_normalize_command(tmp_path: Path) -> None:
    path = write_config(tmp_path, "CONFIG_A=y\n")
    executor = FakeCommandExecutor(
        results={"make oldconfig": CommandResult(2, "", "*** No rule to make target")}
    )
    runner = CliRunner()

    result = runner.invoke(
        cli,
        ["kconfig", "apply", str(path), "-o", "KVM=y", "--normalize", "make oldconfig"],
        obj=KforgeContext.for_test(executor=executor),
    )

    assert result.exit_code == 1
    assert "Command Failed" in result.output
    assert "No rule to make target" in result.output
    assert "failed with status=2" in result.output


def test_apply_defaults_to_configured_options(tmp_path: Path) -> None:
    path = write_config(tmp_path, "")
    ctx = KforgeContext.for_test(build_config=BuildConfig(config_options=("CONFIG_USB=m",)))
    runner = CliRunner()

    result = runner.invoke(cli, ["kconfig", "apply", str(path)], obj=ctx)

    assert result.exit_code == 0, result.output
    assert path.read_text(encoding="utf-8") == "CONFIG_USB=m\n"


def test_apply_rejects_invalid_option(tmp_path: Path) -> None:
    path = write_config(tmp_path, "")
    runner = CliRunner()

    result = runner.invoke(
        cli,
        ["kconfig", "apply", str(path), "-o", "CONFIG_KVM=maybe"],
        obj=KforgeContext.for_test(),
    )

    assert result.exit_code == 1
    assert "Error: Invalid config option" in result.output
    assert path.read_text(encoding="utf-8") == ""


def test_check_succeeds_when_all_present(tmp_path: Path) -> None:
    path = write_config(tmp_path, "CONFIG_KVM=y\nCONFIG_VFIO_PCI=m\n")
    runner = CliRunner()

    result = runner.invoke(
        cli,
        ["kconfig", "check", str(path), "-o", "KVM=y", "-o", "VFIO_PCI=m"],
        obj=KforgeContext.for_test(),
    )

    assert result.exit_code == 0, result.output
    assert "All 2 config option(s) present" in result.output


def test_check_reports_missing_without_editing(tmp_path: Path) -> None:
    original = "CONFIG_KVM=m\nCONFIG_VFIO_PCI=m\n"
    path = write_config(tmp_path, original)
    runner = CliRunner()

    result = runner.invoke(
        cli,
        ["kconfig", "check", str(path), "-o", "KVM=y", "-o", "VFIO=m"],
        obj=KforgeContext.for_test(),
    )

    assert result.exit_code == 1
    assert "CONFIG_KVM=y" in result.output
    assert "CONFIG_VFIO=m" in result.output
    assert path.read_text(encoding="utf-8") == original


def test_missing_config_file_is_a_usage_error(tmp_path: Path) -> None:
    runner = CliRunner()

    result = runner.invoke(
        cli,
        ["kconfig", "check", str(tmp_path / "missing")],
        obj=KforgeContext.for_test(),
    )

    assert result.exit_code == 2
