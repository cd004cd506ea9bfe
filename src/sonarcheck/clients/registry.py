"""Artifactory OCI registry client.

Artifactory exposes the files of an OCI artifact under the repository path::

    {base}/{registry}/{repository}/{chart}/{version}/manifest.json
    {base}/{registry}/{repository}/{chart}/{version}/sha256__{digest}

Only the two reads needed to pull a chart are implemented.
"""

import logging
from pathlib import Path
from types import TracebackType

import httpx

from sonarcheck.config import RegistryConfig
from sonarcheck.errors import RegistryError
from sonarcheck.models.chart import LayerDescriptor, Manifest

logger = logging.getLogger(__name__)

MANIFEST_FILE = "manifest.json"
DOWNLOAD_CHUNK_SIZE = 64 * 1024


class ArtifactRegistryClient:
    """Fetches chart manifests and layers from Artifactory with basic auth."""

    def __init__(
        self,
        config: RegistryConfig,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            config: Registry settings and credentials
            timeout: Timeout in seconds for each request
            transport: Optional httpx transport (tests inject a MockTransport)
        """
        self.config = config
        self._client = httpx.Client(
            base_url=config.base_url,
            auth=httpx.BasicAuth(config.username, config.password),
            timeout=timeout,
            transport=transport,
            follow_redirects=True,
        )

    def __enter__(self) -> "ArtifactRegistryClient":
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

    def artifact_path(self, chart_name: str, chart_version: str) -> str:
        """Return the repository path of a chart version."""
        return (
            f"/{self.config.registry}/{self.config.repository}/{chart_name}/{chart_version}"
        )

    def fetch_manifest(self, chart_name: str, chart_version: str) -> Manifest:
        """Fetch and decode the OCI manifest of a chart version.

        Args:
            chart_name: Umbrella chart name
            chart_version: Umbrella chart version

        Returns:
            Decoded Manifest

        Raises:
            RegistryError: If the request fails, is not 200, or the body is malformed
        """
        path = f"{self.artifact_path(chart_name, chart_version)}/{MANIFEST_FILE}"
        try:
            response = self._client.get(path)
        except httpx.HTTPError as e:
            raise RegistryError(f"Error fetching manifest {path}: {e}") from e

        if response.status_code != httpx.codes.OK:
            raise RegistryError(
                f"Failed to fetch manifest {path}: "
                f"{response.status_code} {response.reason_phrase}"
            )

        try:
            manifest = Manifest.from_dict(response.json())
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise RegistryError(f"Error decoding manifest {path}: {e}") from e

        logger.debug(
            "Manifest for %s:%s lists %d layer(s)",
            chart_name,
            chart_version,
            len(manifest.layers),
        )
        return manifest

    def download_layer(
        self,
        chart_name: str,
        chart_version: str,
        layer: LayerDescriptor,
        destination: Path,
    ) -> Path:
        """Stream a layer blob to a file.

        A partially written file is removed when the download fails.

        Args:
            chart_name: Umbrella chart name
            chart_version: Umbrella chart version
            layer: Layer descriptor from the manifest
            destination: File to write

        Returns:
            The destination path

        Raises:
            RegistryError: If the request fails, is not 200, or the file cannot be written
        """
        path = f"{self.artifact_path(chart_name, chart_version)}/sha256__{layer.hex_digest}"
        try:
            with self._client.stream("GET", path) as response:
                if response.status_code != httpx.codes.OK:
                    raise RegistryError(
                        f"Failed to download layer {layer.digest}: "
                        f"{response.status_code} {response.reason_phrase}"
                    )
                with open(destination, "wb") as f:
                    for chunk in response.iter_bytes(DOWNLOAD_CHUNK_SIZE):
                        f.write(chunk)
        except (httpx.HTTPError, OSError) as e:
            destination.unlink(missing_ok=True)
            raise RegistryError(f"Error downloading layer {layer.digest}: {e}") from e

        logger.info("File %s downloaded successfully", destination.name)
        return destination
