import re
from typing import TextIO

import click

from kforge.cli.error_boundary import cli_error_boundary
from kforge.cli.output import machine_output
from kforge.core.context import KforgeContext
from kforge.core.versions import (
    DEFAULT_KERNEL_TAG_PATTERN,
    TagSelectionRules,
    parse_tag_list,
    require_best_tag,
)


def _compile_pattern(ctx: click.Context, param: click.Parameter, value: str) -> re.Pattern[str]:
    try:
        pattern = re.compile(value)
    except re.error as e:
        raise click.BadParameter(f"invalid regular expression: {e}") from e
    if pattern.groups < 1:
        raise click.BadParameter("pattern must capture the version in group 1")
    return pattern


@click.group("tags")
def tags_group() -> None:
    """Work with revision tag lists."""


@tags_group.command("select")
@click.argument("tags_file", type=click.File("r"), default="-")
@click.option("--prefix", required=True, help="Tags must start with this text.")
@click.option(
    "--exclude-substring",
    "exclude_substrings",
    multiple=True,
    help="Drop tags containing this text (repeatable), e.g. .rc",
)
@click.option(
    "--exclude-suffix",
    "exclude_suffixes",
    multiple=True,
    help="Drop tags ending with this text (repeatable), e.g. .eln",
)
@click.option(
    "--exclude-tag",
    "exclude_tags",
    multiple=True,
    help="Drop this exact tag (repeatable).",
)
@click.option("--require-suffix", default=None, help="Keep only tags ending with this text.")
@click.option(
    "--pattern",
    default=DEFAULT_KERNEL_TAG_PATTERN,
    show_default=True,
    callback=_compile_pattern,
    help="Regex the whole tag must match; group 1 captures the version.",
)
@click.pass_obj
@cli_error_boundary
def select_tags_cmd(
    ctx: KforgeContext,
    tags_file: TextIO,
    prefix: str,
    exclude_substrings: tuple[str, ...],
    exclude_suffixes: tuple[str, ...],
    exclude_tags: tuple[str, ...],
    require_suffix: str | None,
    pattern: re.Pattern[str],
) -> None:
    """Print the newest tag from TAGS_FILE (default: stdin).

    TAGS_FILE holds one tag per line, as printed by `git tag --list`.
    Exits with status 1 when no tag qualifies.
    """
    rules = TagSelectionRules(
        prefix=prefix,
        pattern=pattern,
        blocklist_substrings=frozenset(exclude_substrings),
        blocklist_suffixes=frozenset(exclude_suffixes),
        excluded_tags=frozenset(exclude_tags),
        required_suffix=require_suffix,
    )
    tag = require_best_tag(parse_tag_list(tags_file.read()), rules)
    machine_output(tag.name)
