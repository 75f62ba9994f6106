"""Production command executor using real child processes."""

from kforge.core.executor.abc import CommandExecutor
from kforge.core.subprocess import CommandResult, CommandSpec, execute


class RealCommandExecutor(CommandExecutor):
    """Runs commands through kforge.core.subprocess.execute."""

    def execute(self, spec: CommandSpec) -> CommandResult:
        return execute(spec)
