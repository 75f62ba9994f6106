"""Tests for os-release parsing."""

import pytest

from kforge.core.os_release import distribution_release_suffix, parse_os_release

FEDORA_39 = """\
NAME="Fedora Linux"
VERSION="39 (Workstation Edition)"
ID=fedora
# comment line
VERSION_ID=39
PRETTY_NAME='Fedora Linux 39 (Workstation Edition)'
"""


def test_parse_os_release_strips_quotes() -> None:
    values = parse_os_release(FEDORA_39)

    assert values["NAME"] == "Fedora Linux"
    assert values["ID"] == "fedora"
    assert values["PRETTY_NAME"] == "Fedora Linux 39 (Workstation Edition)"


def test_parse_os_release_skips_comments_and_garbage() -> None:
    assert parse_os_release("# x=y\n\nnot an assignment\nA=1\n") == {"A": "1"}


def test_distribution_release_suffix() -> None:
    assert distribution_release_suffix(FEDORA_39) == "fc39"


def test_distribution_release_suffix_requires_version_id() -> None:
    with pytest.raises(ValueError, match="VERSION_ID"):
        distribution_release_suffix("ID=fedora\n")
