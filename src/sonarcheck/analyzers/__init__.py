"""Sonarcheck analyzers.

Pure, I/O-light building blocks of a check run:
- version: Version parsing and ordering schemes
- gate_resolver: Quality gate verdict for a version from a project history
- chart_dependencies: Subchart discovery in unpacked chart layers
- ignore_rules: Comma-separated regex exemptions
"""

from sonarcheck.analyzers.chart_dependencies import (
    extract_app_versions,
    extract_dependencies,
    read_app_version,
)
from sonarcheck.analyzers.gate_resolver import resolve_gate_status
from sonarcheck.analyzers.ignore_rules import IgnoreRuleSet, matches
from sonarcheck.analyzers.version import Version, VersionScheme, compare_versions

__all__ = [
    # Versions
    "Version",
    "VersionScheme",
    "compare_versions",
    # Gate resolution
    "resolve_gate_status",
    # Chart dependencies
    "extract_app_versions",
    "extract_dependencies",
    "read_app_version",
    # Ignore rules
    "IgnoreRuleSet",
    "matches",
]
