"""SonarQube Web API client.

Endpoints used:
- GET /api/components/search?qualifiers=TRK&q={name}: project key lookup
- GET /api/project_analyses/search?ps=200&project={key}: analysis history

Authentication is HTTP basic with the user token as username and an empty
password.
"""

import logging
from types import TracebackType
from typing import Any

import httpx

from sonarcheck.config import SonarQubeConfig
from sonarcheck.errors import ProjectNotFoundError, SonarQubeError
from sonarcheck.models.analysis import AnalysisRecord

logger = logging.getLogger(__name__)

PROJECT_QUALIFIER = "TRK"
ANALYSES_PAGE_SIZE = 200


class SonarQubeClient:
    """Reads project keys and analysis histories from SonarQube."""

    def __init__(
        self,
        config: SonarQubeConfig,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            config: SonarQube URL and token
            timeout: Timeout in seconds for each request
            transport: Optional httpx transport (tests inject a MockTransport)
        """
        self.config = config
        self._client = httpx.Client(
            base_url=config.url,
            auth=httpx.BasicAuth(config.token, ""),
            timeout=timeout,
            transport=transport,
            follow_redirects=True,
        )

    def __enter__(self) -> "SonarQubeClient":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying HTTP connection pool."""
        self._client.close()

    def _get_json(self, path: str, params: dict[str, Any]) -> dict[str, Any]:
        try:
            response = self._client.get(path, params=params)
        except httpx.HTTPError as e:
            raise SonarQubeError(f"Error sending GET request to {path}: {e}") from e

        logger.debug("Response for %s %s: %s", path, params, response.text)

        try:
            data = response.json()
        except ValueError as e:
            raise SonarQubeError(
                f"Error decoding response of {path} (HTTP {response.status_code}): {e}"
            ) from e

        if not isinstance(data, dict):
            raise SonarQubeError(f"Unexpected response format from {path}")

        errors = data.get("errors")
        if isinstance(errors, list) and errors:
            first = errors[0]
            message = first.get("msg") if isinstance(first, dict) else None
            raise SonarQubeError(f"SonarQube API error: {message or first}")

        if response.status_code != httpx.codes.OK:
            raise SonarQubeError(f"SonarQube returned HTTP {response.status_code} for {path}")

        return data

    def find_project_key(self, name: str) -> str:
        """Find the key of the project named exactly like a dependency.

        The component search is a substring search, so "app" also returns
        "app-mock"; only an exact name match is accepted.

        Args:
            name: Dependency name

        Returns:
            Project key

        Raises:
            ProjectNotFoundError: If no project has exactly this name
            SonarQubeError: If the request fails
        """
        data = self._get_json(
            "/api/components/search",
            {"qualifiers": PROJECT_QUALIFIER, "q": name},
        )

        components = data.get("components")
        if isinstance(components, list):
            for component in components:
                if not isinstance(component, dict) or component.get("name") != name:
                    continue
                key = component.get("key")
                if isinstance(key, str):
                    return key

        raise ProjectNotFoundError(name)

    def fetch_analyses(self, project_key: str) -> list[AnalysisRecord]:
        """Fetch the analysis history of a project in API order.

        Entries without a string projectVersion are dropped.

        Args:
            project_key: SonarQube project key

        Returns:
            Analysis records

        Raises:
            SonarQubeError: If the request fails, the API reports an error or
                the response has no analyses array
        """
        data = self._get_json(
            "/api/project_analyses/search",
            {"ps": ANALYSES_PAGE_SIZE, "project": project_key},
        )

        analyses = data.get("analyses")
        if not isinstance(analyses, list):
            raise SonarQubeError("Unexpected response format: missing 'analyses'")

        records = []
        for entry in analyses:
            record = AnalysisRecord.from_dict(entry) if isinstance(entry, dict) else None
            if record is not None:
                records.append(record)
        return records
