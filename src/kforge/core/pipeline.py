"""Sequential kernel build pipeline.

Builds a custom Fedora kernel with OpenZFS compiled in:

1. fetch_kernel_tree: update the kernel checkout and check out the newest
   acceptable release tag
2. prepare_build_tree: copy the checkout to a scratch tree and generate the
   distribution .config
3. build_zfs: configure zfs against the scratch tree and copy it in as a
   built-in module
4. configure_kernel: reconcile .config with the desired options
5. build_kernel: make bzImage and modules

Steps run strictly in order and the first failure aborts the run. There is no
rollback; rerunning starts over from a fresh scratch tree.
"""

import itertools
import logging
from dataclasses import dataclass
from pathlib import Path

from kforge.core.build_config import BuildConfig
from kforge.core.context import KforgeContext
from kforge.core.kconfig import OptionResolution, Resolution, reconcile_config_file
from kforge.core.os_release import distribution_release_suffix
from kforge.core.subprocess import CommandSpec
from kforge.core.versions import (
    NoCandidateFound,
    RevisionTag,
    TagSelectionRules,
    candidate_tags,
    require_best_tag,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BuildPaths:
    """Locations of the checkouts and the scratch build tree."""

    workspace: Path
    kernel_repo: Path
    build_tree: Path
    zfs_repo: Path

    @staticmethod
    def resolve(cwd: Path, config: BuildConfig) -> "BuildPaths":
        workspace = cwd / config.workspace
        return BuildPaths(
            workspace=workspace,
            kernel_repo=workspace / config.kernel_dir,
            build_tree=workspace / config.build_dir,
            zfs_repo=workspace / config.zfs_dir,
        )


@dataclass(frozen=True)
class PipelineResult:
    kernel_tag: RevisionTag
    zfs_tag: str | None
    resolutions: list[OptionResolution]
    build_tree: Path


def _run(ctx: KforgeContext, command: str | tuple[str, ...], cwd: Path) -> None:
    ctx.executor.execute(CommandSpec(command=command, cwd=cwd))


def _make(ctx: KforgeContext, cwd: Path, *args: str) -> None:
    _run(ctx, ("make", *args), cwd)


def _jobs_args(jobs: int | None) -> list[str]:
    if jobs is None:
        return []
    return [f"-j{jobs}"]


def _sync_checkout(ctx: KforgeContext, url: str, repo: Path, branch: str) -> None:
    if not repo.exists():
        ctx.feedback.info(f"Cloning {url}")
        ctx.git.clone(url, repo)
    ctx.git.checkout(repo, branch)
    ctx.git.pull(repo)


def kernel_rules(ctx: KforgeContext, config: BuildConfig) -> TagSelectionRules:
    """Tag rules for the kernel checkout, honoring match_os_release."""
    required_suffix = None
    if config.match_os_release:
        os_release = ctx.os_release_path.read_text(encoding="utf-8")
        required_suffix = distribution_release_suffix(os_release)
        logger.debug("Restricting kernel tags to suffix %s", required_suffix)
    return config.kernel_rules(required_suffix=required_suffix)


def fetch_kernel_tree(ctx: KforgeContext, config: BuildConfig, paths: BuildPaths) -> RevisionTag:
    """Update the kernel checkout and check out the newest acceptable tag.

    Raises:
        NoCandidateFound: If no tag passes the kernel selection rules
    """
    _sync_checkout(ctx, config.kernel_repo_url, paths.kernel_repo, config.kernel_branch)

    tags = ctx.git.list_tags(paths.kernel_repo)
    logger.debug("Found %d tags in %s", len(tags), paths.kernel_repo)
    tag = require_best_tag(tags, kernel_rules(ctx, config))

    ctx.feedback.info(f"Building on top of {tag.name}")
    ctx.git.checkout(paths.kernel_repo, tag.name)
    return tag


def prepare_build_tree(ctx: KforgeContext, config: BuildConfig, paths: BuildPaths) -> None:
    """Copy the kernel checkout to the scratch tree and generate its .config."""
    if paths.build_tree.exists():
        _run(ctx, ("rm", "-rf", str(paths.build_tree)), paths.workspace)
    _run(ctx, ("cp", "-ar", str(paths.kernel_repo), str(paths.build_tree)), paths.workspace)

    tree = paths.build_tree
    _make(ctx, tree, "mrproper")
    _make(ctx, tree, f"ARCH={config.arch}", "oldconfig")
    _make(ctx, tree, "prepare")

    _run(ctx, ("rm", ".config"), tree)
    _make(ctx, tree, "FLAVOR=fedora", "dist-configs-arch")
    # Shell glob: the generated file name embeds the kernel version
    _run(ctx, f"cp redhat/configs/kernel-*-{config.arch}.config .config", tree)


def build_zfs(ctx: KforgeContext, config: BuildConfig, paths: BuildPaths) -> str:
    """Configure zfs against the scratch tree and copy it in as built-in.

    Returns:
        The zfs tag that was built

    Raises:
        NoCandidateFound: If the configured zfs release tag does not exist
    """
    repo = paths.zfs_repo
    if repo.exists():
        ctx.git.clean_ignored(repo)
    _sync_checkout(ctx, config.zfs_repo_url, repo, config.zfs_branch)

    tag = config.zfs_tag
    tags = ctx.git.list_tags(repo)
    rules = config.zfs_rules()
    releases = candidate_tags(tags, rules)
    if tag not in {release.name for release in releases}:
        raise NoCandidateFound(rules, considered=len(tags))

    newest = max(releases, key=lambda release: (release.version, release.name))
    if newest.name != tag:
        ctx.feedback.info(f"Note: {newest.name} is newer than the configured {tag}")

    ctx.feedback.info(f"Building {tag} (https://github.com/openzfs/zfs/releases/tag/{tag})")
    ctx.git.checkout(repo, tag)
    _run(ctx, ("sh", "autogen.sh"), repo)

    tree = str(paths.build_tree)
    _run(
        ctx,
        (
            "./configure",
            "--enable-linux-builtin",
            f"--with-linux={tree}",
            f"--with-linux-obj={tree}",
        ),
        repo,
    )
    _run(ctx, ("./copy-builtin", tree), repo)
    return tag


def configure_kernel(
    ctx: KforgeContext, config: BuildConfig, paths: BuildPaths
) -> list[OptionResolution]:
    """Reconcile the scratch tree's .config with the desired options.

    Raises:
        ReconciliationFailure: If an option is missing after normalization
    """
    tree = paths.build_tree
    resolutions: list[OptionResolution] = []

    def report(resolution: OptionResolution) -> None:
        resolutions.append(resolution)
        ctx.feedback.info(f"- {resolution.describe()}")

    def normalize() -> None:
        # Cleans up and reorders .config after our edits
        _make(ctx, tree, f"ARCH={config.arch}", config.normalize_target)

    ctx.feedback.info("Adding custom config flags")
    reconcile_config_file(
        tree / ".config", config.desired_options(), normalize, on_resolution=report
    )
    ctx.feedback.success(".. all config flags look good!")
    return resolutions


def build_kernel(
    ctx: KforgeContext, config: BuildConfig, paths: BuildPaths, jobs: int | None = None
) -> None:
    """Build the kernel image and modules in the scratch tree."""
    if jobs is None:
        jobs = config.jobs
    tree = paths.build_tree

    ctx.feedback.info(f"Building kernel {config.kernel_tag}-{config.kernel_number}")
    _make(ctx, tree, "bzImage", *config.version_args(), *_jobs_args(jobs))
    _make(ctx, tree, "modules", *config.version_args(), *_jobs_args(jobs))


def report_install_instructions(ctx: KforgeContext, paths: BuildPaths) -> None:
    ctx.feedback.success("The kernel is now built, you can install it by typing:")
    ctx.feedback.info("")
    ctx.feedback.info(f"cd {paths.build_tree}")
    ctx.feedback.info("sudo make modules_install")
    ctx.feedback.info("sudo make install")


def run_pipeline(
    ctx: KforgeContext, *, skip_zfs: bool = False, jobs: int | None = None
) -> PipelineResult:
    """Run every build step in order.

    Raises:
        ExecutionFailure: If any external command fails
        NoCandidateFound: If no kernel tag (or the zfs tag) is available
        ReconciliationFailure: If .config does not converge
    """
    config = ctx.load_config()
    paths = BuildPaths.resolve(ctx.cwd, config)
    logger.debug("Build paths: %s", paths)
    paths.workspace.mkdir(parents=True, exist_ok=True)

    with_zfs = config.zfs_enabled and not skip_zfs
    total = 5 if with_zfs else 4
    number = itertools.count(1)

    ctx.feedback.step(next(number), total, "Fetch kernel tree")
    kernel_tag = fetch_kernel_tree(ctx, config, paths)
    ctx.feedback.step(next(number), total, "Prepare build tree")
    prepare_build_tree(ctx, config, paths)

    zfs_tag = None
    if with_zfs:
        ctx.feedback.step(next(number), total, "Build zfs into the kernel tree")
        zfs_tag = build_zfs(ctx, config, paths)

    ctx.feedback.step(next(number), total, "Configure kernel")
    resolutions = configure_kernel(ctx, config, paths)
    ctx.feedback.step(next(number), total, "Build kernel")
    build_kernel(ctx, config, paths, jobs=jobs)
    report_install_instructions(ctx, paths)

    return PipelineResult(
        kernel_tag=kernel_tag,
        zfs_tag=zfs_tag,
        resolutions=resolutions,
        build_tree=paths.build_tree,
    )


def count_changes(resolutions: list[OptionResolution]) -> int:
    """Number of options that needed an edit."""
    return sum(1 for item in resolutions if item.resolution is not Resolution.ALREADY_SET)
