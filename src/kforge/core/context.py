"""Application context with dependency injection."""

from dataclasses import dataclass
from pathlib import Path

from kforge.core.build_config import (
    CONFIG_FILENAME,
    BuildConfig,
    ConfigStore,
    FilesystemConfigStore,
    InMemoryConfigStore,
)
from kforge.core.executor.abc import CommandExecutor
from kforge.core.executor.real import RealCommandExecutor
from kforge.core.git.abc import Git
from kforge.core.git.real import RealGit
from kforge.core.os_release import OS_RELEASE_PATH
from kforge.core.user_feedback import InteractiveFeedback, SuppressedFeedback, UserFeedback


@dataclass(frozen=True)
class KforgeContext:
    """Immutable context holding all dependencies for kforge operations.

    Created at CLI entry point and threaded through the application.
    Frozen to prevent accidental modification at runtime.
    """

    executor: CommandExecutor
    git: Git
    config_store: ConfigStore
    feedback: UserFeedback
    cwd: Path  # Current working directory at CLI invocation
    os_release_path: Path

    def load_config(self) -> BuildConfig:
        """Load the build config, falling back to defaults when none exists.

        Raises:
            ValueError: If the config file is malformed
        """
        return self.config_store.load_or_default()

    @staticmethod
    def for_test(
        executor: CommandExecutor | None = None,
        git: Git | None = None,
        config_store: ConfigStore | None = None,
        feedback: UserFeedback | None = None,
        cwd: Path | None = None,
        build_config: BuildConfig | None = None,
        os_release_path: Path | None = None,
    ) -> "KforgeContext":
        """Create test context with optional pre-configured integration classes.

        Unspecified integrations default to their in-memory fakes.

        Args:
            build_config: Shorthand for config_store=InMemoryConfigStore(build_config)
        """
        from tests.fakes.executor import FakeCommandExecutor
        from tests.fakes.git import FakeGit
        from tests.fakes.user_feedback import FakeUserFeedback

        if config_store is None:
            config_store = InMemoryConfigStore(build_config)

        return KforgeContext(
            executor=executor if executor is not None else FakeCommandExecutor(),
            git=git if git is not None else FakeGit(),
            config_store=config_store,
            feedback=feedback if feedback is not None else FakeUserFeedback(),
            cwd=cwd if cwd is not None else Path("/fake/cwd"),
            os_release_path=(
                os_release_path if os_release_path is not None else Path("/fake/os-release")
            ),
        )


def create_context(*, config_path: Path | None = None, quiet: bool = False) -> KforgeContext:
    """Create production context with real implementations.

    Called at CLI entry point to create the context for the entire
    command execution.

    Args:
        config_path: Explicit kforge.toml location (default: ./kforge.toml)
        quiet: Suppress progress output, showing only errors
    """
    cwd = Path.cwd()
    if config_path is None:
        config_path = cwd / CONFIG_FILENAME

    executor = RealCommandExecutor()
    feedback: UserFeedback = SuppressedFeedback() if quiet else InteractiveFeedback()

    return KforgeContext(
        executor=executor,
        git=RealGit(executor),
        config_store=FilesystemConfigStore(config_path),
        feedback=feedback,
        cwd=cwd,
        os_release_path=OS_RELEASE_PATH,
    )
