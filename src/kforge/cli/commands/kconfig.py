from pathlib import Path

import click

from kforge.cli.error_boundary import cli_error_boundary
from kforge.cli.output import user_output
from kforge.core.context import KforgeContext
from kforge.core.kconfig import (
    ConfigOption,
    OptionResolution,
    ReconciliationFailure,
    find_missing,
    reconcile_config_file,
)
from kforge.core.subprocess import CommandSpec


def _desired_options(ctx: KforgeContext, options: tuple[str, ...]) -> list[ConfigOption]:
    if options:
        return [ConfigOption.parse(option) for option in options]
    return ctx.load_config().desired_options()


option_argument = click.option(
    "-o",
    "--option",
    "options",
    multiple=True,
    help="Desired option such as CONFIG_KVM=y (repeatable; default: configured options).",
)


@click.group("kconfig")
def kconfig_group() -> None:
    """Edit and verify kernel .config files."""


@kconfig_group.command("apply")
@click.argument("config_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@option_argument
@click.option(
    "--normalize",
    "normalize_command",
    default=None,
    help="Shell command run in the file's directory after editing, "
    "e.g. 'make ARCH=x86_64 oldconfig'.",
)
@click.pass_obj
@cli_error_boundary
def apply_cmd(
    ctx: KforgeContext,
    config_path: Path,
    options: tuple[str, ...],
    normalize_command: str | None,
) -> None:
    """Apply the desired options to CONFIG_PATH and verify them."""
    desired = _desired_options(ctx, options)

    def report(resolution: OptionResolution) -> None:
        ctx.feedback.info(f"- {resolution.describe()}")

    def normalize() -> None:
        if normalize_command is None:
            return
        ctx.executor.execute(CommandSpec(command=normalize_command, cwd=config_path.parent))

    reconcile_config_file(config_path, desired, normalize, on_resolution=report)
    ctx.feedback.success(f"All {len(desired)} config option(s) present in {config_path}")


@kconfig_group.command("check")
@click.argument("config_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@option_argument
@click.pass_obj
@cli_error_boundary
def check_cmd(ctx: KforgeContext, config_path: Path, options: tuple[str, ...]) -> None:
    """Report desired options missing from CONFIG_PATH without editing it."""
    desired = _desired_options(ctx, options)
    missing = find_missing(config_path.read_text(encoding="utf-8"), desired)
    if missing:
        raise ReconciliationFailure(missing)
    user_output(f"All {len(desired)} config option(s) present in {config_path}")
