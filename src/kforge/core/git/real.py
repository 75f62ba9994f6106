"""Production Git implementation running the git CLI."""

from pathlib import Path

from kforge.core.executor.abc import CommandExecutor
from kforge.core.git.abc import Git
from kforge.core.subprocess import CommandResult, CommandSpec
from kforge.core.versions import parse_tag_list


class RealGit(Git):
    """All git operations execute actual git commands through the executor."""

    def __init__(self, executor: CommandExecutor) -> None:
        self._executor = executor

    def _git(self, args: list[str], cwd: Path) -> CommandResult:
        return self._executor.execute(CommandSpec(command=("git", *args), cwd=cwd))

    def clone(self, url: str, destination: Path) -> None:
        self._git(["clone", url, str(destination)], cwd=destination.parent)

    def checkout(self, repo: Path, ref: str) -> None:
        self._git(["checkout", ref], cwd=repo)

    def pull(self, repo: Path) -> None:
        self._git(["pull"], cwd=repo)

    def list_tags(self, repo: Path) -> list[str]:
        result = self._git(["tag", "--list"], cwd=repo)
        return parse_tag_list(result.stdout)

    def clean_ignored(self, repo: Path) -> None:
        self._git(["clean", "-fx"], cwd=repo)
