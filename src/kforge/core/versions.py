"""Revision tag selection.

Picks the newest build target out of a raw `git tag --list` output. Tag lists
are noisy: release candidates, experimental builds, known-bad releases and
tags from unrelated naming schemes all show up. Filtering is declarative
(TagSelectionRules) and anything that does not parse is dropped rather than
treated as an error.
"""

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass

from kforge.core.errors import KforgeError

logger = logging.getLogger(__name__)

# kernel-ark tags look like "kernel-6.1.2-1"
DEFAULT_KERNEL_TAG_PATTERN = r"kernel-(\d+\.\d+\.\d+(?:-\d{1,3})?)"
# Distribution release tail such as ".fc39", accepted when a required suffix is set
RELEASE_TAIL_PATTERN = r"(?:\.[\w.]+)?"


@dataclass(frozen=True)
class RevisionTag:
    """A tag name together with its parsed version.

    version holds the dotted numeric segments followed by the build counter
    when the tag has one ("6.1.2-1" -> (6, 1, 2, 1)).
    """

    name: str
    version: tuple[int, ...]


@dataclass(frozen=True)
class TagSelectionRules:
    """Declarative rules for choosing a build target from a tag list.

    Attributes:
        prefix: Tags must start with this text
        pattern: Regex matched against the whole tag; group 1 captures the
            version ("6.1.2" or "6.1.2-1")
        blocklist_substrings: Tags containing any of these are dropped
        blocklist_suffixes: Tags ending with any of these are dropped
        excluded_tags: Exact tag names known to be bad
        required_suffix: When set, tags must end with this text

    Raises:
        ValueError: If pattern has no capture group
    """

    prefix: str
    pattern: re.Pattern[str]
    blocklist_substrings: frozenset[str] = frozenset()
    blocklist_suffixes: frozenset[str] = frozenset()
    excluded_tags: frozenset[str] = frozenset()
    required_suffix: str | None = None

    def __post_init__(self) -> None:
        if self.pattern.groups < 1:
            raise ValueError(
                f"Tag pattern {self.pattern.pattern!r} must capture the version in group 1"
            )

    def describe(self) -> str:
        """One-line summary used in NoCandidateFound messages."""
        parts = [f"prefix={self.prefix!r}", f"pattern={self.pattern.pattern!r}"]
        if self.blocklist_substrings:
            parts.append(f"blocklist_substrings={sorted(self.blocklist_substrings)}")
        if self.blocklist_suffixes:
            parts.append(f"blocklist_suffixes={sorted(self.blocklist_suffixes)}")
        if self.excluded_tags:
            parts.append(f"excluded_tags={sorted(self.excluded_tags)}")
        if self.required_suffix is not None:
            parts.append(f"required_suffix={self.required_suffix!r}")
        return ", ".join(parts)


class NoCandidateFound(KforgeError):
    """Tag selection produced no result after filtering."""

    def __init__(self, rules: TagSelectionRules, considered: int) -> None:
        self.rules = rules
        self.considered = considered
        super().__init__(f"No tag found among {considered} tags matching {rules.describe()}")


def parse_tag_list(text: str) -> list[str]:
    """Split newline-separated tag output into tag names."""
    return [line.strip() for line in text.splitlines() if line.strip()]


def parse_version(version: str) -> tuple[int, ...]:
    """Parse "6.1.2" or "6.1.2-1" into a tuple of ints.

    Raises:
        ValueError: If any segment is not a non-negative integer
    """
    dotted, sep, build = version.partition("-")
    segments = dotted.split(".")
    if sep:
        segments.append(build)
    for segment in segments:
        if not segment.isdigit():
            raise ValueError(f"Invalid version segment {segment!r} in {version!r}")
    return tuple(int(segment) for segment in segments)


def _is_blocked(tag: str, rules: TagSelectionRules) -> bool:
    if tag in rules.excluded_tags:
        return True
    if any(substring in tag for substring in rules.blocklist_substrings):
        return True
    if any(tag.endswith(suffix) for suffix in rules.blocklist_suffixes):
        return True
    if rules.required_suffix is not None and not tag.endswith(rules.required_suffix):
        return True
    return False


def candidate_tags(tags: Iterable[str], rules: TagSelectionRules) -> list[RevisionTag]:
    """Filter and parse tags, dropping anything that does not qualify."""
    candidates: list[RevisionTag] = []
    for tag in tags:
        if not tag.startswith(rules.prefix):
            continue
        if _is_blocked(tag, rules):
            logger.debug("Skipping blocklisted tag: %s", tag)
            continue

        match = rules.pattern.fullmatch(tag)
        if match is None:
            logger.debug("Skipping tag not matching %s: %s", rules.pattern.pattern, tag)
            continue

        try:
            version = parse_version(match.group(1))
        except ValueError:
            logger.debug("Skipping tag with unparseable version: %s", tag)
            continue

        candidates.append(RevisionTag(name=tag, version=version))
    return candidates


def select_best_tag(tags: Iterable[str], rules: TagSelectionRules) -> RevisionTag | None:
    """Return the highest-versioned tag that passes the rules, or None.

    Versions compare segment by segment numerically. Two tags with the same
    parsed version are ordered by tag name, the greater name winning.
    """
    candidates = candidate_tags(tags, rules)
    if not candidates:
        return None
    return max(candidates, key=lambda candidate: (candidate.version, candidate.name))


def require_best_tag(tags: Iterable[str], rules: TagSelectionRules) -> RevisionTag:
    """Like select_best_tag, but raise NoCandidateFound instead of returning None."""
    tag_list = list(tags)
    best = select_best_tag(tag_list, rules)
    if best is None:
        raise NoCandidateFound(rules, considered=len(tag_list))
    return best
