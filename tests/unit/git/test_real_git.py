"""Tests for RealGit command construction using a fake executor."""

from pathlib import Path

from kforge.core.git.real import RealGit
from kforge.core.subprocess import CommandResult
from tests.fakes.executor import FakeCommandExecutor

REPO = Path("/work/kernel-ark")


def test_list_tags_parses_output() -> None:
    executor = FakeCommandExecutor(
        results={"git tag --list": CommandResult(0, "kernel-6.1.2-1\n\nkernel-6.1.3-1\n", "")}
    )

    tags = RealGit(executor).list_tags(REPO)

    assert tags == ["kernel-6.1.2-1", "kernel-6.1.3-1"]
    assert executor.executed[0].cwd == REPO


def test_clone_runs_in_parent_directory() -> None:
    executor = FakeCommandExecutor()

    RealGit(executor).clone("https://example.com/kernel-ark.git", REPO)

    spec = executor.executed[0]
    assert spec.command == ("git", "clone", "https://example.com/kernel-ark.git", str(REPO))
    assert spec.cwd == REPO.parent


def test_checkout_pull_and_clean() -> None:
    executor = FakeCommandExecutor()
    git = RealGit(executor)

    git.checkout(REPO, "kernel-6.1.2-1")
    git.pull(REPO)
    git.clean_ignored(REPO)

    assert executor.commands == [
        "git checkout kernel-6.1.2-1",
        "git pull",
        "git clean -fx",
    ]
    assert {spec.cwd for spec in executor.executed} == {REPO}
