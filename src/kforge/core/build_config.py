"""Build configuration data structures and loading.

Provides immutable build config loaded from kforge.toml. Every setting has a
default reproducing the stock ZFS-enabled Fedora kernel build, so the file
only needs to list what differs.
"""

import re
import tomllib
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any

import tomlkit

from kforge.core.kconfig import ConfigOption
from kforge.core.versions import (
    DEFAULT_KERNEL_TAG_PATTERN,
    RELEASE_TAIL_PATTERN,
    TagSelectionRules,
)

CONFIG_FILENAME = "kforge.toml"
ZFS_TAG_PATTERN = r"zfs-(\d+\.\d+\.\d+)"

DEFAULT_CONFIG_OPTIONS = (
    "CONFIG_VFIO=m",
    "CONFIG_VFIO_IOMMU_TYPE1=m",
    "CONFIG_VFIO_PCI=m",
    "CONFIG_VFIO_VIRQFD=m",
    "CONFIG_KVM=y",
    "CONFIG_KVM_INTEL=y",
    "CONFIG_ZFS=y",
    "CONFIG_USB_XHCI_HCD=m",
    "CONFIG_USB_XHCI_PCI=m",
    "CONFIG_CC_OPTIMIZE_FOR_PERFORMANCE=y",
)


@dataclass(frozen=True)
class BuildConfig:
    """Immutable build configuration.

    Loaded once at CLI entry point and stored in KforgeContext.
    """

    workspace: Path = Path(".")
    arch: str = "x86_64"
    kernel_tag: str = "KAWGRR"
    kernel_number: str = "10013"
    jobs: int | None = None

    kernel_repo_url: str = "https://gitlab.com/cki-project/kernel-ark.git"
    kernel_dir: str = "kernel-ark"
    kernel_branch: str = "os-build"
    build_dir: str = "tmpkernel"

    # Check kernel versions supported by the zfs release at kernel.org
    supported_kernel: str = "6.1"
    tag_blocklist_substrings: tuple[str, ...] = (".rc", ".elrdy")
    tag_blocklist_suffixes: tuple[str, ...] = (".eln",)
    excluded_tags: tuple[str, ...] = ("kernel-6.5.11-0",)
    tag_pattern: str = DEFAULT_KERNEL_TAG_PATTERN
    match_os_release: bool = False

    zfs_enabled: bool = True
    zfs_repo_url: str = "https://github.com/openzfs/zfs"
    zfs_dir: str = "zfs"
    zfs_branch: str = "master"
    zfs_version: str = "2.2.0"

    normalize_target: str = "oldconfig"
    config_options: tuple[str, ...] = field(default=DEFAULT_CONFIG_OPTIONS)

    @property
    def zfs_tag(self) -> str:
        return f"zfs-{self.zfs_version}"

    def kernel_rules(self, required_suffix: str | None = None) -> TagSelectionRules:
        """Tag selection rules for the kernel checkout.

        With a required suffix the default pattern also accepts a release tail,
        so "kernel-6.1.4-200.fc39" qualifies for suffix "fc39".
        """
        pattern = self.tag_pattern
        if required_suffix is not None and pattern == DEFAULT_KERNEL_TAG_PATTERN:
            pattern += RELEASE_TAIL_PATTERN
        return TagSelectionRules(
            prefix=f"kernel-{self.supported_kernel}",
            pattern=re.compile(pattern),
            blocklist_substrings=frozenset(self.tag_blocklist_substrings),
            blocklist_suffixes=frozenset(self.tag_blocklist_suffixes),
            excluded_tags=frozenset(self.excluded_tags),
            required_suffix=required_suffix,
        )

    def zfs_rules(self) -> TagSelectionRules:
        """Rules describing zfs release tags (release candidates excluded)."""
        return TagSelectionRules(
            prefix="zfs-",
            pattern=re.compile(ZFS_TAG_PATTERN),
            blocklist_substrings=frozenset({"-rc"}),
        )

    def desired_options(self) -> list[ConfigOption]:
        return [ConfigOption.parse(option) for option in self.config_options]

    def version_args(self) -> list[str]:
        """make variables naming the custom kernel."""
        return [
            f"ARCH={self.arch}",
            f"EXTRAVERSION=-{self.kernel_tag}",
            f"LOCALVERSION=-{self.kernel_number}",
        ]

    def to_dict(self) -> dict[str, Any]:
        """Plain TOML-compatible representation (None values omitted)."""
        data: dict[str, Any] = {}
        for config_field in fields(self):
            value = getattr(self, config_field.name)
            if value is None:
                continue
            if isinstance(value, Path):
                value = str(value)
            elif isinstance(value, tuple):
                value = list(value)
            data[config_field.name] = value
        return data


_STRING_LIST_FIELDS = {
    "tag_blocklist_substrings",
    "tag_blocklist_suffixes",
    "excluded_tags",
    "config_options",
}
_BOOL_FIELDS = {"match_os_release", "zfs_enabled"}


def _convert(name: str, value: Any, source: Path) -> Any:
    if name == "workspace":
        if not isinstance(value, str):
            raise ValueError(f"'{name}' must be a string in {source}")
        return Path(value).expanduser()
    if name == "jobs":
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            raise ValueError(f"'jobs' must be a positive integer in {source}")
        return value
    if name in _BOOL_FIELDS:
        if not isinstance(value, bool):
            raise ValueError(f"'{name}' must be true or false in {source}")
        return value
    if name in _STRING_LIST_FIELDS:
        if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
            raise ValueError(f"'{name}' must be a list of strings in {source}")
        return tuple(value)
    if not isinstance(value, str):
        raise ValueError(f"'{name}' must be a string in {source}")
    return value


def build_config_from_dict(data: dict[str, Any], source: Path) -> BuildConfig:
    """Build a BuildConfig from parsed TOML data.

    Raises:
        ValueError: If a key is unknown, a value has the wrong type, or a
            config option or tag pattern is malformed
    """
    known = {config_field.name for config_field in fields(BuildConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown key(s) in {source}: {', '.join(unknown)}")

    values = {name: _convert(name, value, source) for name, value in data.items()}
    config = replace(BuildConfig(), **values)

    # Validate eagerly so a typo fails at load time, not mid-build
    config.desired_options()
    try:
        pattern = re.compile(config.tag_pattern)
    except re.error as e:
        raise ValueError(f"Invalid 'tag_pattern' in {source}: {e}") from e
    if pattern.groups < 1:
        raise ValueError(f"'tag_pattern' in {source} must capture the version in group 1")

    return config


class ConfigStore(ABC):
    """Abstract interface for build config access.

    Provides dependency injection for config access, enabling in-memory
    implementations for tests without touching filesystem.
    """

    @abstractmethod
    def exists(self) -> bool:
        """Check if the config exists."""
        ...

    @abstractmethod
    def load(self) -> BuildConfig:
        """Load the build config.

        Raises:
            FileNotFoundError: If config doesn't exist
            ValueError: If config is malformed
        """
        ...

    @abstractmethod
    def save(self, config: BuildConfig) -> None:
        """Save the build config."""
        ...

    @abstractmethod
    def path(self) -> Path:
        """Get the path to the config file (for error messages)."""
        ...

    def load_or_default(self) -> BuildConfig:
        """Load the config if it exists, otherwise return the defaults."""
        if not self.exists():
            return BuildConfig()
        return self.load()


class FilesystemConfigStore(ConfigStore):
    """Production implementation that reads/writes kforge.toml."""

    def __init__(self, config_path: Path) -> None:
        self._config_path = config_path

    def exists(self) -> bool:
        return self._config_path.exists()

    def load(self) -> BuildConfig:
        if not self._config_path.exists():
            raise FileNotFoundError(f"Build config not found at {self._config_path}")

        try:
            data = tomllib.loads(self._config_path.read_text(encoding="utf-8"))
        except tomllib.TOMLDecodeError as e:
            raise ValueError(f"Invalid TOML in {self._config_path}: {e}") from e
        return build_config_from_dict(data, self._config_path)

    def save(self, config: BuildConfig) -> None:
        document = tomlkit.document()
        document.add(tomlkit.comment("kforge build configuration"))
        for key, value in config.to_dict().items():
            document.add(key, value)

        self._config_path.parent.mkdir(parents=True, exist_ok=True)
        self._config_path.write_text(tomlkit.dumps(document), encoding="utf-8")

    def path(self) -> Path:
        return self._config_path


class InMemoryConfigStore(ConfigStore):
    """Test implementation that stores config in memory without touching filesystem."""

    def __init__(self, config: BuildConfig | None = None) -> None:
        """Initialize in-memory config store.

        Args:
            config: Initial config state (None = config doesn't exist)
        """
        self._config = config

    def exists(self) -> bool:
        return self._config is not None

    def load(self) -> BuildConfig:
        if self._config is None:
            raise FileNotFoundError(f"Build config not found at {self.path()}")
        return self._config

    def save(self, config: BuildConfig) -> None:
        self._config = config

    def path(self) -> Path:
        return Path("/fake/kforge.toml")
