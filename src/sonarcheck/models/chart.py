"""Chart artifact entities.

- LayerDescriptor: One content-addressed blob referenced by an OCI manifest
- Manifest: OCI image manifest of a packaged chart
- Dependency: Subchart name and the appVersion it pins
"""

from dataclasses import dataclass, field
from typing import Any

DIGEST_PREFIX = "sha256:"


@dataclass(frozen=True)
class LayerDescriptor:
    """Descriptor of a manifest blob.

    Attributes:
        media_type: OCI media type of the blob
        digest: Content digest, e.g. "sha256:4f1c..."
        size: Blob size in bytes
    """

    media_type: str
    digest: str
    size: int = 0

    @property
    def hex_digest(self) -> str:
        """Return the digest without its algorithm prefix."""
        return self.digest.removeprefix(DIGEST_PREFIX)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LayerDescriptor":
        """Build a descriptor from its manifest JSON object."""
        return cls(
            media_type=str(data.get("mediaType", "")),
            digest=str(data["digest"]),
            size=int(data.get("size", 0)),
        )


@dataclass(frozen=True)
class Manifest:
    """OCI manifest of a packaged umbrella chart.

    Attributes:
        schema_version: Manifest schema version
        config: Config blob descriptor (None if absent)
        layers: Content layers in manifest order
    """

    schema_version: int = 2
    config: LayerDescriptor | None = None
    layers: tuple[LayerDescriptor, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Manifest":
        """Build a manifest from decoded manifest.json.

        Raises:
            KeyError, TypeError, ValueError: If the document is malformed
        """
        config_data = data.get("config")
        return cls(
            schema_version=int(data.get("schemaVersion", 2)),
            config=LayerDescriptor.from_dict(config_data) if config_data else None,
            layers=tuple(LayerDescriptor.from_dict(layer) for layer in data.get("layers", [])),
        )


@dataclass(frozen=True)
class Dependency:
    """Subchart bundled in an umbrella chart.

    Attributes:
        name: Subchart directory name, also the SonarQube project name
        version: appVersion declared in the subchart's Chart.yaml
    """

    name: str
    version: str
