"""User-facing progress output for the build pipeline."""

from abc import ABC, abstractmethod

import click

from kforge.cli.output import user_output


def format_step(number: int, total: int, title: str) -> str:
    """Header for a numbered pipeline stage, e.g. "[2/5] Prepare build tree"."""
    return f"[{number}/{total}] {title}"


class UserFeedback(ABC):
    """Progress output for the build pipeline.

    Pipeline steps call ctx.feedback methods instead of printing, so tests can
    capture messages and --quiet can suppress them. Stage headers come from
    step(); info() is for detail within a stage (selected tags, per-option
    config decisions, install instructions). Only error() survives --quiet.
    """

    @abstractmethod
    def step(self, number: int, total: int, title: str) -> None:
        """Announce the start of pipeline stage `number` of `total`."""

    @abstractmethod
    def info(self, message: str) -> None:
        """Show detail within the current stage."""

    @abstractmethod
    def success(self, message: str) -> None:
        """Show a completed outcome."""

    @abstractmethod
    def error(self, message: str) -> None:
        """Show an error (even with --quiet)."""


class InteractiveFeedback(UserFeedback):
    """Writes everything to stderr; stage headers in bold, outcomes in color."""

    def step(self, number: int, total: int, title: str) -> None:
        user_output(click.style(format_step(number, total, title), bold=True))

    def info(self, message: str) -> None:
        user_output(f"  {message}" if message else "")

    def success(self, message: str) -> None:
        user_output(click.style(message, fg="green"))

    def error(self, message: str) -> None:
        user_output(click.style(message, fg="red"))


class SuppressedFeedback(UserFeedback):
    """Feedback for --quiet runs (only errors shown)."""

    def step(self, number: int, total: int, title: str) -> None:
        pass

    def info(self, message: str) -> None:
        pass

    def success(self, message: str) -> None:
        pass

    def error(self, message: str) -> None:
        user_output(click.style(message, fg="red"))
