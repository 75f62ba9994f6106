import logging
import os
from pathlib import Path

import click

from kforge.cli.commands.build import build_cmd
from kforge.cli.commands.config import config_group
from kforge.cli.commands.kconfig import kconfig_group
from kforge.cli.commands.tags import tags_group
from kforge.core.context import create_context

CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])  # terse help flags


def _configure_logging(debug: bool) -> None:
    if debug or os.environ.get("KFORGE_DEBUG"):
        logging.basicConfig(
            level=logging.DEBUG, format="[DEBUG %(name)s:%(lineno)d] %(message)s"
        )


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(package_name="kforge")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Path to kforge.toml (default: ./kforge.toml).",
)
@click.option("--debug", is_flag=True, help="Log every command and decision to stderr.")
@click.option("-q", "--quiet", is_flag=True, help="Only show errors.")
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None, debug: bool, quiet: bool) -> None:
    """Build a custom kernel with zfs compiled in."""
    _configure_logging(debug)
    # Only create context if not already provided (e.g., by tests)
    if ctx.obj is None:
        ctx.obj = create_context(config_path=config_path, quiet=quiet)


cli.add_command(build_cmd)
cli.add_command(config_group)
cli.add_command(kconfig_group)
cli.add_command(tags_group)


def main() -> None:
    """CLI entry point used by the `kforge` console script."""
    cli()
