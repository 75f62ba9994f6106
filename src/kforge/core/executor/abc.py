"""Command executor interface.

Architecture:
- CommandExecutor: Abstract base class every integration runs commands through
- RealCommandExecutor: Production implementation spawning real processes
- FakeCommandExecutor (tests/fakes): In-memory implementation for tests
"""

from abc import ABC, abstractmethod

from kforge.core.subprocess import CommandResult, CommandSpec


class CommandExecutor(ABC):
    """Abstract interface for running external commands.

    Implementations must honor CommandSpec.allowed_exit_codes: either return a
    CommandResult whose exit code is allowed, or raise ExecutionFailure.
    """

    @abstractmethod
    def execute(self, spec: CommandSpec) -> CommandResult:
        """Run a command to completion.

        Args:
            spec: The command to run

        Returns:
            CommandResult with the captured stdout and stderr

        Raises:
            ExecutionFailure: If the command's exit code is not allowed
        """
        ...
