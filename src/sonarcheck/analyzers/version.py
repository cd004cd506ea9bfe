"""Version comparison for SonarQube project versions and chart appVersions.

Two schemes are supported:
- DOTTED: component-wise numeric comparison ("1.10" > "1.9")
- CONCATENATED: legacy behaviour, dots stripped and the remaining digits
  compared as one integer ("1.10" -> 110, "1.9" -> 19)

The concatenated scheme is width dependent ("1.10.0" -> 1100 outranks
"2.0.0" -> 200) and is kept only for compatibility with existing pipelines.
Components that are not integers count as zero in both schemes.
"""

from dataclasses import dataclass
from enum import Enum
from itertools import zip_longest


class VersionScheme(Enum):
    """How version strings are ordered."""

    DOTTED = "dotted"
    CONCATENATED = "concatenated"


def _to_int(value: str) -> int:
    if not (value.isascii() and value.isdigit()):
        return 0
    return int(value)


@dataclass(frozen=True)
class Version:
    """Parsed dot-separated version.

    Attributes:
        raw: Original version string
        components: Non-negative integer components ("202406.827.0" -> (202406, 827, 0))
    """

    raw: str
    components: tuple[int, ...]

    @classmethod
    def parse(cls, value: str) -> "Version":
        """Parse a version string, mapping non-numeric components to 0."""
        return cls(raw=value, components=tuple(_to_int(part) for part in value.split(".")))

    @property
    def concatenated(self) -> int:
        """Return the legacy integer form: dots stripped, parsed as one number."""
        return _to_int(self.raw.replace(".", ""))

    def __str__(self) -> str:
        return self.raw


def _sign(left: int, right: int) -> int:
    if left < right:
        return -1
    if left > right:
        return 1
    return 0


def compare_versions(
    a: str | Version,
    b: str | Version,
    scheme: VersionScheme = VersionScheme.DOTTED,
) -> int:
    """Compare two versions.

    Args:
        a: First version
        b: Second version
        scheme: Ordering scheme

    Returns:
        -1 if a < b, 0 if a == b, 1 if a > b
    """
    left = a if isinstance(a, Version) else Version.parse(a)
    right = b if isinstance(b, Version) else Version.parse(b)

    if scheme == VersionScheme.CONCATENATED:
        return _sign(left.concatenated, right.concatenated)

    for left_part, right_part in zip_longest(left.components, right.components, fillvalue=0):
        if left_part != right_part:
            return _sign(left_part, right_part)
    return 0
