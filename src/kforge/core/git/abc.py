"""High-level git operations interface.

This module provides a clean abstraction over the git commands the build
pipeline needs, making the pipeline testable without real repositories.

Architecture:
- Git: Abstract base class defining the interface
- RealGit: Production implementation running git through a CommandExecutor
- FakeGit (tests/fakes): In-memory implementation for tests
"""

from abc import ABC, abstractmethod
from pathlib import Path


class Git(ABC):
    """Abstract interface for git operations.

    All implementations (real and fake) must implement this interface.
    This interface contains ONLY runtime operations - no test setup methods.
    """

    @abstractmethod
    def clone(self, url: str, destination: Path) -> None:
        """Clone `url` into `destination` (which must not exist yet)."""
        ...

    @abstractmethod
    def checkout(self, repo: Path, ref: str) -> None:
        """Checkout a branch or tag."""
        ...

    @abstractmethod
    def pull(self, repo: Path) -> None:
        """Pull the current branch from its upstream."""
        ...

    @abstractmethod
    def list_tags(self, repo: Path) -> list[str]:
        """List all tag names in the repository."""
        ...

    @abstractmethod
    def clean_ignored(self, repo: Path) -> None:
        """Remove untracked files ignored by .gitignore (git clean -fx)."""
        ...
