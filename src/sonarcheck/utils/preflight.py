"""Preflight validation of the external services.

Both SonarQube and Artifactory MUST answer their liveness probe before anything
is downloaded. An unreachable service aborts the run before any side effect.

The probes are unauthenticated: a server that is up but rejects credentials is
reported later, by the first authenticated request.
"""

from dataclasses import dataclass, field
from typing import Any

import httpx

from sonarcheck.config import SonarCheckConfig
from sonarcheck.errors import ServiceUnavailableError

SONARQUBE_HEALTH_PATH = "/api/server/version"


@dataclass
class ServiceCheck:
    """Result of probing a single service.

    Attributes:
        name: Service name
        url: URL that was probed
        available: Whether the service answered 200
        status_code: HTTP status code if a response was received
        version: Server version if the probe returns one
        message: Status message (human-readable context)
    """

    name: str
    url: str
    available: bool
    status_code: int | None = None
    version: str | None = None
    message: str = ""


@dataclass
class PreflightResult:
    """Result of preflight validation.

    Attributes:
        success: Whether every service is available
        checks: Individual service check results
        errors: Error messages for unavailable services
    """

    success: bool = True
    checks: list[ServiceCheck] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    def add_check(self, check: ServiceCheck) -> None:
        """Add a service check result."""
        self.checks.append(check)

        if not check.available:
            self.success = False
            self.errors.append(check.message)

    def raise_for_failure(self) -> None:
        """Raise for the first unavailable service.

        Raises:
            ServiceUnavailableError: If any service failed its probe
        """
        for check in self.checks:
            if not check.available:
                raise ServiceUnavailableError(check.name, check.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON output."""
        return {
            "success": self.success,
            "checks": [
                {
                    "name": c.name,
                    "url": c.url,
                    "available": c.available,
                    "status_code": c.status_code,
                    "version": c.version,
                    "message": c.message,
                }
                for c in self.checks
            ],
            "errors": self.errors,
        }


class PreflightChecker:
    """Probes SonarQube and Artifactory before a run.

    Usage:
        checker = PreflightChecker(timeout=config.timeout)
        result = checker.check_all(config)
        result.raise_for_failure()
    """

    def __init__(
        self,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize preflight checker.

        Args:
            timeout: Timeout in seconds for each probe
            transport: Optional httpx transport (tests inject a MockTransport)
        """
        self.timeout = timeout
        self.transport = transport

    def check_service(
        self,
        name: str,
        url: str,
        label: str,
        read_version: bool = False,
    ) -> ServiceCheck:
        """Probe a URL without credentials and expect HTTP 200.

        Args:
            name: Service identifier
            url: URL to probe
            label: Human-readable service name used in messages
            read_version: Keep the response body as the server version

        Returns:
            ServiceCheck result
        """
        try:
            with httpx.Client(
                timeout=self.timeout,
                transport=self.transport,
                follow_redirects=True,
            ) as client:
                response = client.get(url)
        except httpx.HTTPError as e:
            return ServiceCheck(
                name=name,
                url=url,
                available=False,
                message=f"{label} server is not reachable: {e}",
            )

        if response.status_code != httpx.codes.OK:
            return ServiceCheck(
                name=name,
                url=url,
                available=False,
                status_code=response.status_code,
                message=f"{label} server returned non-OK status: {response.status_code}",
            )

        return ServiceCheck(
            name=name,
            url=url,
            available=True,
            status_code=response.status_code,
            version=(response.text.strip() or None) if read_version else None,
            message=f"{label} server is reachable",
        )

    def check_sonarqube(self, url: str) -> ServiceCheck:
        """Check that SonarQube answers /api/server/version.

        The endpoint returns the plain-text server version, which is kept on
        the check result.
        """
        return self.check_service(
            "sonarqube",
            f"{url}{SONARQUBE_HEALTH_PATH}",
            "SonarQube",
            read_version=True,
        )

    def check_registry(self, url: str) -> ServiceCheck:
        """Check that the Artifactory base URL answers."""
        return self.check_service("artifactory", url, "JFrog")

    def check_all(self, config: SonarCheckConfig) -> PreflightResult:
        """Run all preflight checks.

        Args:
            config: Run configuration

        Returns:
            PreflightResult with all check results
        """
        result = PreflightResult()
        result.add_check(self.check_sonarqube(config.sonarqube.url))
        result.add_check(self.check_registry(config.registry.url))
        return result
