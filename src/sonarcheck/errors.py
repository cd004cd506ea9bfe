"""Sonarcheck exception hierarchy.

Fatal errors (configuration, unreachable services, manifest failures) propagate
to the CLI. Per-item errors (a layer, a chart, a SonarQube project, an ignore
rule) are caught by the pipeline, logged and recorded on the run result.
"""

from pathlib import Path


class SonarCheckError(Exception):
    """Base class for all Sonarcheck errors."""


class ConfigError(SonarCheckError, ValueError):
    """Raised when the environment does not describe a usable configuration."""


class ServiceUnavailableError(SonarCheckError):
    """Raised when an external service fails its liveness probe."""

    def __init__(self, service: str, message: str | None = None) -> None:
        self.service = service
        self.message = message or f"Service not available: {service}"
        super().__init__(self.message)


class RegistryError(SonarCheckError):
    """Raised when the artifact registry request or response is unusable."""


class SonarQubeError(SonarCheckError):
    """Raised when a SonarQube request fails or returns an API error."""


class ProjectNotFoundError(SonarQubeError):
    """Raised when no SonarQube project carries the dependency's exact name."""

    def __init__(self, dependency: str) -> None:
        self.dependency = dependency
        super().__init__(f"Project key not found for dependency {dependency}")


class IgnoreRuleError(SonarCheckError):
    """Raised when an ignore rule is not a valid regular expression."""

    def __init__(self, rule: str, reason: str) -> None:
        self.rule = rule
        self.reason = reason
        super().__init__(f"Invalid ignore rule '{rule}': {reason}")


class ChartMetadataError(SonarCheckError):
    """Raised when a Chart.yaml cannot be read or carries no appVersion."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot read appVersion from {path}: {reason}")


class ArchiveError(SonarCheckError):
    """Raised when a downloaded layer cannot be unpacked."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot extract {path}: {reason}")
