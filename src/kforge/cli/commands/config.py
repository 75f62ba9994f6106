import click

from kforge.cli.error_boundary import cli_error_boundary
from kforge.cli.output import machine_output, user_output
from kforge.core.build_config import BuildConfig
from kforge.core.context import KforgeContext


def _format_value(value: object) -> str:
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, list):
        return ", ".join(str(item) for item in value)
    return str(value)


@click.group("config")
def config_group() -> None:
    """Show or create the build configuration."""


@config_group.command("show")
@click.pass_obj
@cli_error_boundary
def show_cmd(ctx: KforgeContext) -> None:
    """Print the effective build configuration."""
    store = ctx.config_store
    if store.exists():
        user_output(f"Build configuration ({store.path()}):")
    else:
        user_output(f"Build configuration (defaults, {store.path()} not found):")

    for key, value in ctx.load_config().to_dict().items():
        machine_output(f"  {key}={_format_value(value)}")


@config_group.command("init")
@click.option("-f", "--force", is_flag=True, help="Overwrite an existing config file.")
@click.pass_obj
@cli_error_boundary
def init_cmd(ctx: KforgeContext, force: bool) -> None:
    """Write a kforge.toml holding the default configuration."""
    store = ctx.config_store
    if store.exists() and not force:
        raise FileExistsError(f"Config already exists at {store.path()} (use --force)")

    store.save(BuildConfig())
    user_output(click.style(f"✓ Wrote {store.path()}", fg="green"))
