"""Clients of the external services.

- registry: Artifactory OCI registry (chart manifest and layers)
- sonarqube: SonarQube Web API (project keys and analysis history)
"""

from sonarcheck.clients.registry import ArtifactRegistryClient
from sonarcheck.clients.sonarqube import SonarQubeClient

__all__ = [
    "ArtifactRegistryClient",
    "SonarQubeClient",
]
