"""Host distribution discovery from /etc/os-release."""

from pathlib import Path

OS_RELEASE_PATH = Path("/etc/os-release")


def parse_os_release(text: str) -> dict[str, str]:
    """Parse os-release KEY=VALUE lines, stripping surrounding quotes."""
    values: dict[str, str] = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        values[key.strip()] = value.strip().strip("\"'")
    return values


def distribution_release_suffix(text: str) -> str:
    """Return the Fedora release suffix used in kernel tags ("fc39").

    Raises:
        ValueError: If VERSION_ID is missing
    """
    version_id = parse_os_release(text).get("VERSION_ID")
    if not version_id:
        raise ValueError("No VERSION_ID in os-release")
    return f"fc{version_id}"
