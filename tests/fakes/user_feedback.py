"""Fake UserFeedback capturing messages for assertions."""

from kforge.core.user_feedback import UserFeedback, format_step


class FakeUserFeedback(UserFeedback):
    """Records messages instead of printing them.

    Attributes:
        messages: (level, message) pairs in the order they were emitted
    """

    def __init__(self) -> None:
        self.messages: list[tuple[str, str]] = []

    def step(self, number: int, total: int, title: str) -> None:
        self.messages.append(("step", format_step(number, total, title)))

    def info(self, message: str) -> None:
        self.messages.append(("info", message))

    def success(self, message: str) -> None:
        self.messages.append(("success", message))

    def error(self, message: str) -> None:
        self.messages.append(("error", message))

    @property
    def steps(self) -> list[str]:
        """Stage headers in the order they were announced."""
        return [message for level, message in self.messages if level == "step"]

    @property
    def text(self) -> str:
        """All messages joined by newlines."""
        return "\n".join(message for _, message in self.messages)
