import click

from kforge.cli.error_boundary import cli_error_boundary
from kforge.core.context import KforgeContext
from kforge.core.pipeline import count_changes, run_pipeline


@click.command("build")
@click.option(
    "--skip-zfs",
    is_flag=True,
    help="Build the kernel without compiling zfs into it.",
)
@click.option(
    "-j",
    "--jobs",
    type=click.IntRange(min=1),
    default=None,
    help="Parallel make jobs (default: the configured value, or make's default).",
)
@click.pass_obj
@cli_error_boundary
def build_cmd(ctx: KforgeContext, skip_zfs: bool, jobs: int | None) -> None:
    """Fetch, configure and build the custom kernel.

    Steps:
    1. Update the kernel checkout and check out the newest acceptable tag
    2. Copy it to a scratch tree and generate the distribution .config
    3. Build zfs into the scratch tree (unless --skip-zfs)
    4. Apply and verify the custom config options
    5. Build bzImage and modules

    Stops at the first failing step.
    """
    result = run_pipeline(ctx, skip_zfs=skip_zfs, jobs=jobs)

    changed = count_changes(result.resolutions)
    summary = f"Built {result.kernel_tag.name}"
    if result.zfs_tag is not None:
        summary += f" with {result.zfs_tag}"
    summary += f" ({changed} config option(s) changed)"
    ctx.feedback.success(summary)
