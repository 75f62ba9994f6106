"""Kernel .config reconciliation.

Moves a generated kernel configuration toward a declared set of options with
the smallest possible edit, runs the kernel's own normalization pass over the
result and checks that every requested option survived it.

The configuration is handled as plain text, one `KEY=VALUE` assignment per
line. Options are matched against whole lines, so `CONFIG_VFIO=m` never
matches inside `CONFIG_VFIO_PCI=m`.
"""

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from kforge.core.errors import KforgeError

logger = logging.getLogger(__name__)

CONFIG_PREFIX = "CONFIG_"


class OptionMode(Enum):
    """How a configuration option is enabled."""

    MODULE = "module"
    BUILTIN = "built-in"
    BOOLEAN = "boolean"

    @property
    def suffix(self) -> str:
        if self is OptionMode.MODULE:
            return "=m"
        return "=y"


@dataclass(frozen=True)
class ConfigOption:
    """A desired option, e.g. CONFIG_KVM built in."""

    key: str
    mode: OptionMode

    @property
    def text(self) -> str:
        """The exact line this option produces in a .config file."""
        return f"{self.key}{self.mode.suffix}"

    @property
    def module_text(self) -> str:
        return f"{self.key}=m"

    @property
    def builtin_text(self) -> str:
        return f"{self.key}=y"

    @staticmethod
    def parse(text: str) -> "ConfigOption":
        """Parse "CONFIG_KVM=y" or "KVM=m".

        "=y" parses as BUILTIN. A key without the CONFIG_ prefix gets one.

        Raises:
            ValueError: If the text is not KEY=y or KEY=m
        """
        key, sep, value = text.strip().partition("=")
        key = key.strip()
        if not sep or not key:
            raise ValueError(f"Invalid config option {text!r}: expected KEY=y or KEY=m")
        if not key.startswith(CONFIG_PREFIX):
            key = CONFIG_PREFIX + key

        value = value.strip()
        if value == "m":
            return ConfigOption(key=key, mode=OptionMode.MODULE)
        if value == "y":
            return ConfigOption(key=key, mode=OptionMode.BUILTIN)
        raise ValueError(f"Invalid config option {text!r}: value must be 'y' or 'm'")


class Resolution(Enum):
    """What reconciliation did for a single option."""

    ALREADY_SET = "already set"
    MODULE_TO_BUILTIN = "is a module, changing it to built-in"
    BUILTIN_TO_MODULE = "is built-in, changing it to module"
    APPENDED = "is not set, adding it"


@dataclass(frozen=True)
class OptionResolution:
    option: ConfigOption
    resolution: Resolution

    def describe(self) -> str:
        return f"{self.option.text} {self.resolution.value}"


class ReconciliationFailure(KforgeError):
    """Desired options are missing from the configuration after normalization."""

    def __init__(self, missing_options: Sequence[ConfigOption]) -> None:
        self.missing_options = tuple(missing_options)
        listing = "\n".join(f"- {option.text}" for option in self.missing_options)
        super().__init__(
            f"{len(self.missing_options)} config option(s) not found in .config:\n{listing}"
        )


def _find_line(lines: list[str], text: str) -> int | None:
    for index, line in enumerate(lines):
        if line.strip() == text:
            return index
    return None


def _rewrite_line(lines: list[str], index: int, old: str, new: str) -> None:
    lines[index] = lines[index].replace(old, new, 1)


def resolve_option(lines: list[str], option: ConfigOption) -> Resolution:
    """Apply the edit for one option to `lines` in place."""
    if _find_line(lines, option.text) is not None:
        return Resolution.ALREADY_SET

    if option.mode is OptionMode.MODULE:
        index = _find_line(lines, option.builtin_text)
        if index is not None:
            _rewrite_line(lines, index, option.builtin_text, option.text)
            return Resolution.BUILTIN_TO_MODULE
    else:
        index = _find_line(lines, option.module_text)
        if index is not None:
            _rewrite_line(lines, index, option.module_text, option.text)
            return Resolution.MODULE_TO_BUILTIN

    if lines and not lines[-1].endswith("\n"):
        lines[-1] += "\n"
    lines.append(option.text + "\n")
    return Resolution.APPENDED


def apply_options(
    current: str, desired: Iterable[ConfigOption]
) -> tuple[str, list[OptionResolution]]:
    """Edit `current` so every desired option is present.

    Lines unrelated to the desired options are left untouched.

    Returns:
        The edited text and one OptionResolution per desired option, in order
    """
    lines = current.splitlines(keepends=True)
    resolutions: list[OptionResolution] = []
    for option in desired:
        resolution = resolve_option(lines, option)
        logger.debug("Option %s: %s", option.text, resolution.name)
        resolutions.append(OptionResolution(option=option, resolution=resolution))
    return "".join(lines), resolutions


def find_missing(text: str, desired: Iterable[ConfigOption]) -> list[ConfigOption]:
    """Return the desired options whose exact line is absent from `text`."""
    present = {line.strip() for line in text.splitlines()}
    return [option for option in desired if option.text not in present]


def reconcile(
    current: str,
    desired: Sequence[ConfigOption],
    normalize: Callable[[str], str],
    on_resolution: Callable[[OptionResolution], None] | None = None,
) -> str:
    """Converge `current` toward `desired` and verify after normalization.

    Args:
        current: Current configuration text
        desired: Options that must be present afterwards
        normalize: Receives the edited text, runs the canonicalization pass over
            it and returns the resulting text
        on_resolution: Called with each option's resolution, in order

    Returns:
        The post-normalization configuration text

    Raises:
        ReconciliationFailure: If any desired option is absent after normalization
    """
    edited, resolutions = apply_options(current, desired)
    if on_resolution is not None:
        for resolution in resolutions:
            on_resolution(resolution)

    normalized = normalize(edited)

    missing = find_missing(normalized, desired)
    if missing:
        raise ReconciliationFailure(missing)
    return normalized


def reconcile_config_file(
    path: Path,
    desired: Sequence[ConfigOption],
    normalize: Callable[[], None],
    on_resolution: Callable[[OptionResolution], None] | None = None,
) -> str:
    """Reconcile a .config file in place.

    The edited text is written back before `normalize()` runs, and the file is
    re-read afterwards for verification.

    Args:
        path: The .config file
        desired: Options that must be present afterwards
        normalize: Runs the external normalization pass over `path`
        on_resolution: Called with each option's resolution, in order

    Returns:
        The final file content

    Raises:
        FileNotFoundError: If `path` does not exist
        ReconciliationFailure: If any desired option is absent after normalization
    """
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    def normalize_file(edited: str) -> str:
        path.write_text(edited, encoding="utf-8")
        normalize()
        return path.read_text(encoding="utf-8")

    current = path.read_text(encoding="utf-8")
    return reconcile(current, desired, normalize_file, on_resolution=on_resolution)
