"""Subprocess execution with concurrent output capture.

Every external tool kforge drives (git, make, the zfs build scripts) runs
through execute(). The child's stdout and stderr are drained by two reader
threads so a child that fills the pipe buffer of one stream while we wait on
the other can never deadlock the run.
"""

import contextlib
import logging
import os
import subprocess
import threading
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO

from kforge.core.errors import KforgeError

logger = logging.getLogger(__name__)

# Same status a POSIX shell reports for an unknown command
COMMAND_NOT_FOUND_EXIT_CODE = 127


@dataclass(frozen=True)
class CommandSpec:
    """A single command invocation.

    Attributes:
        command: Shell command line (run through the host shell) or an argv
            sequence (executed directly)
        input: Text written to the child's stdin, or None to close stdin
            immediately
        allowed_exit_codes: Exit codes that are not treated as errors
        cwd: Working directory for the child, or None to inherit ours
        env: Extra environment variables layered over the inherited environment
    """

    command: str | tuple[str, ...]
    input: str | None = None
    allowed_exit_codes: frozenset[int] = frozenset({0})
    cwd: Path | None = None
    env: Mapping[str, str] = field(default_factory=dict)

    @property
    def display(self) -> str:
        """Human-readable command text for logs and error messages."""
        if isinstance(self.command, str):
            return self.command
        return " ".join(self.command)


@dataclass(frozen=True)
class CommandResult:
    """Outcome of a command whose exit code was allowed."""

    exit_code: int
    stdout: str
    stderr: str


class ExecutionFailure(KforgeError):
    """An external command exited with a status outside its allowed set.

    Carries the full captured output so callers can report both streams
    before aborting.
    """

    def __init__(self, command: str, exit_code: int, stdout: str, stderr: str) -> None:
        self.command = command
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr

        message = f"`{command}` failed with status={exit_code}"
        if stdout.strip():
            message += f"\nstdout:\n{stdout.strip()}"
        if stderr.strip():
            message += f"\nstderr:\n{stderr.strip()}"
        super().__init__(message)


def _drain(stream: IO[bytes], chunks: list[bytes]) -> None:
    for chunk in iter(lambda: stream.read(8192), b""):
        chunks.append(chunk)
    stream.close()


def _start_reader(stream: IO[bytes], chunks: list[bytes], name: str) -> threading.Thread:
    reader = threading.Thread(target=_drain, args=(stream, chunks), name=name, daemon=True)
    reader.start()
    return reader


def _feed_input(stdin: IO[bytes], text: str | None) -> None:
    # A child that exits without reading its input is judged by its exit code
    try:
        if text is not None:
            stdin.write(text.encode("utf-8"))
            if not text.endswith("\n"):
                stdin.write(b"\n")
    except BrokenPipeError:
        pass
    finally:
        with contextlib.suppress(BrokenPipeError):
            stdin.close()


def execute(spec: CommandSpec) -> CommandResult:
    """Run a command to completion and capture both output streams.

    Blocks until the child exits and both readers have seen end-of-stream.

    Args:
        spec: The command to run

    Returns:
        CommandResult whose exit code is in spec.allowed_exit_codes

    Raises:
        ExecutionFailure: If the exit code is not allowed, or an argv command's
            executable cannot be found (reported as exit code 127)
        FileNotFoundError: If spec.cwd does not exist
    """
    env = None
    if spec.env:
        env = {**os.environ, **spec.env}

    logger.debug("Running command: %s (cwd=%s)", spec.display, spec.cwd)

    # Popen raises FileNotFoundError for a missing cwd as well as a missing binary
    if spec.cwd is not None and not spec.cwd.is_dir():
        raise FileNotFoundError(f"Working directory not found: {spec.cwd}")

    try:
        process = subprocess.Popen(
            spec.command,
            shell=isinstance(spec.command, str),
            cwd=spec.cwd,
            env=env,
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
        )
    except FileNotFoundError as e:
        raise ExecutionFailure(
            spec.display, COMMAND_NOT_FOUND_EXIT_CODE, stdout="", stderr=str(e)
        ) from e

    # Popen with PIPE for all three guarantees these are set
    assert process.stdin is not None
    assert process.stdout is not None
    assert process.stderr is not None

    stdout_chunks: list[bytes] = []
    stderr_chunks: list[bytes] = []
    readers = [
        _start_reader(process.stdout, stdout_chunks, "kforge-stdout"),
        _start_reader(process.stderr, stderr_chunks, "kforge-stderr"),
    ]

    _feed_input(process.stdin, spec.input)

    for reader in readers:
        reader.join()
    exit_code = process.wait()

    stdout = b"".join(stdout_chunks).decode("utf-8", errors="replace")
    stderr = b"".join(stderr_chunks).decode("utf-8", errors="replace")

    logger.debug(
        "Command finished: %s (exit=%d, stdout=%d bytes, stderr=%d bytes)",
        spec.display,
        exit_code,
        len(stdout),
        len(stderr),
    )

    if exit_code not in spec.allowed_exit_codes:
        raise ExecutionFailure(spec.display, exit_code, stdout=stdout, stderr=stderr)

    return CommandResult(exit_code=exit_code, stdout=stdout, stderr=stderr)


def run_command(
    command: str | Sequence[str],
    *,
    input: str | None = None,
    allowed_exit_codes: Sequence[int] = (0,),
    cwd: Path | None = None,
) -> CommandResult:
    """Convenience wrapper building a CommandSpec and executing it."""
    if not isinstance(command, str):
        command = tuple(command)
    return execute(
        CommandSpec(
            command=command,
            input=input,
            allowed_exit_codes=frozenset(allowed_exit_codes),
            cwd=cwd,
        )
    )
