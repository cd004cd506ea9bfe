"""Sonarcheck configuration system.

Configuration comes from environment variables, read once at startup into a
SonarCheckConfig that is passed to every component. CLI flags only override
verbosity (-v, -d).

Required variables:
- SONARQUBE_TOKEN: SonarQube token (basic auth username, empty password)
- JFROG_CREDENTIALS: Artifactory credentials as user:password
- CHART_NAME: Umbrella chart name
- CHART_VERSION: Umbrella chart version
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from sonarcheck.analyzers.version import VersionScheme
from sonarcheck.errors import ConfigError

DEFAULT_SONARQUBE_URL = "http://sonarqube.com"
DEFAULT_JFROG_URL = "http://artifactory.com"
DEFAULT_JFROG_PATH_PREFIX = "artifactory"
DEFAULT_OCI_REGISTRY = "charts-registry"
DEFAULT_CHART_REPOSITORY = "lieferscheine"
DEFAULT_HTTP_TIMEOUT = 30.0
CLEANING_PATTERN = "layer_*"

TRUE_VALUES = {"1", "true", "yes", "on"}

# =============================================================================
# Configuration Dataclasses
# =============================================================================


@dataclass
class SonarQubeConfig:
    """SonarQube connection settings.

    Attributes:
        url: Base URL of the SonarQube instance
        token: User token, sent as the basic auth username
    """

    url: str = DEFAULT_SONARQUBE_URL
    token: str = field(default="", repr=False)

    def __post_init__(self) -> None:
        """Normalize the base URL."""
        self.url = self.url.rstrip("/")


@dataclass
class RegistryConfig:
    """Artifactory OCI registry settings.

    Attributes:
        url: Base URL of the Artifactory instance
        path_prefix: Context path of the Artifactory API ("" if part of url)
        registry: OCI registry (Artifactory repository key)
        repository: Chart repository inside the registry
        username: Basic auth user
        password: Basic auth password
    """

    url: str = DEFAULT_JFROG_URL
    path_prefix: str = DEFAULT_JFROG_PATH_PREFIX
    registry: str = DEFAULT_OCI_REGISTRY
    repository: str = DEFAULT_CHART_REPOSITORY
    username: str = ""
    password: str = field(default="", repr=False)

    def __post_init__(self) -> None:
        """Normalize URL parts."""
        self.url = self.url.rstrip("/")
        self.path_prefix = self.path_prefix.strip("/")

    @property
    def base_url(self) -> str:
        """Return the URL repository paths are resolved against."""
        if self.path_prefix:
            return f"{self.url}/{self.path_prefix}"
        return self.url


@dataclass
class ChartConfig:
    """Umbrella chart to check.

    Attributes:
        name: Chart name, e.g. "tramon-lt"
        version: Chart version, e.g. "202406.827.0"
    """

    name: str
    version: str


@dataclass
class SonarCheckConfig:
    """Top-level Sonarcheck configuration.

    Attributes:
        sonarqube: SonarQube settings
        registry: Artifactory settings
        chart: Umbrella chart coordinates
        work_dir: Directory layer archives are downloaded and unpacked into
        timeout: Timeout for every HTTP request, in seconds
        version_scheme: How project versions are ordered
        verbose: Report passed and ignored dependencies
        debug: Report raw responses and rule matching detail
    """

    sonarqube: SonarQubeConfig
    registry: RegistryConfig
    chart: ChartConfig
    work_dir: Path = field(default_factory=Path.cwd)
    timeout: float = DEFAULT_HTTP_TIMEOUT
    version_scheme: VersionScheme = VersionScheme.DOTTED
    verbose: bool = False
    debug: bool = False


# =============================================================================
# Environment Parsing
# =============================================================================


def parse_bool(value: str | None) -> bool:
    """Interpret an environment flag ("true", "1", "yes", "on")."""
    return value is not None and value.strip().lower() in TRUE_VALUES


def parse_credentials(value: str) -> tuple[str, str]:
    """Split user:password credentials on the first colon.

    Raises:
        ConfigError: If the value has no colon
    """
    user, sep, password = value.partition(":")
    if not sep:
        raise ConfigError(
            "JFROG_CREDENTIALS environment variable is not properly formatted, e.x. user:pass"
        )
    return user, password


def _require(environ: Mapping[str, str], key: str) -> str:
    value = environ.get(key)
    if value is None:
        raise ConfigError(f"{key} environment variable not set")
    return value


def _parse_timeout(value: str | None) -> float:
    if value is None or value == "":
        return DEFAULT_HTTP_TIMEOUT
    try:
        timeout = float(value)
    except ValueError:
        raise ConfigError(f"HTTP_TIMEOUT must be a number of seconds (got {value!r})")
    if timeout <= 0:
        raise ConfigError(f"HTTP_TIMEOUT must be positive (got {value!r})")
    return timeout


def _parse_scheme(value: str | None) -> VersionScheme:
    if not value:
        return VersionScheme.DOTTED
    try:
        return VersionScheme(value.strip().lower())
    except ValueError:
        valid = ", ".join(s.value for s in VersionScheme)
        raise ConfigError(f"Invalid VERSION_SCHEME: {value}. Valid: {valid}")


# =============================================================================
# Config Loading
# =============================================================================


def load_config(environ: Mapping[str, str] | None = None) -> SonarCheckConfig:
    """Load configuration from environment variables.

    Args:
        environ: Environment mapping (defaults to os.environ)

    Returns:
        SonarCheckConfig instance

    Raises:
        ConfigError: If a required variable is missing or a value is invalid
    """
    if environ is None:
        environ = os.environ

    token = _require(environ, "SONARQUBE_TOKEN")
    username, password = parse_credentials(_require(environ, "JFROG_CREDENTIALS"))
    chart = ChartConfig(
        name=_require(environ, "CHART_NAME"),
        version=_require(environ, "CHART_VERSION"),
    )

    work_dir = environ.get("WORK_DIR")

    return SonarCheckConfig(
        sonarqube=SonarQubeConfig(
            url=environ.get("SONARQUBE_URL", DEFAULT_SONARQUBE_URL),
            token=token,
        ),
        registry=RegistryConfig(
            url=environ.get("JFROG_URL", DEFAULT_JFROG_URL),
            path_prefix=environ.get("JFROG_PATH_PREFIX", DEFAULT_JFROG_PATH_PREFIX),
            registry=environ.get("OCI_REGISTRY", DEFAULT_OCI_REGISTRY),
            repository=environ.get("CHART_REPOSITORY", DEFAULT_CHART_REPOSITORY),
            username=username,
            password=password,
        ),
        chart=chart,
        work_dir=Path(work_dir) if work_dir else Path.cwd(),
        timeout=_parse_timeout(environ.get("HTTP_TIMEOUT")),
        version_scheme=_parse_scheme(environ.get("VERSION_SCHEME")),
        verbose=parse_bool(environ.get("VERBOSE")),
        debug=parse_bool(environ.get("DEBUG")),
    )
