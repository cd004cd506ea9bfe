"""Shared pytest fixtures for Sonarcheck tests.

Fixtures are organized by category:
- Chart fixtures: Unpacked layer trees and packaged layer archives
- Configuration fixtures: Environment and config objects for a test run
- Service fixtures: In-memory SonarQube and Artifactory behind httpx.MockTransport
"""

import io
import json
import logging
import tarfile
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import httpx
import pytest

from sonarcheck.config import SonarCheckConfig, load_config

SONARQUBE_URL = "http://sonarqube.test"
JFROG_URL = "http://artifactory.test"
CHART_NAME = "umbrella"
CHART_VERSION = "202406.827.0"


# =============================================================================
# Logging
# =============================================================================


@pytest.fixture(autouse=True)
def reset_sonarcheck_logging() -> Iterator[None]:
    """Drop handlers installed by a test so later tests do not write to closed streams."""
    yield
    logger = logging.getLogger("sonarcheck")
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)


# =============================================================================
# Chart Fixtures
# =============================================================================


def chart_yaml(name: str, app_version: str | None) -> str:
    """Render a minimal Chart.yaml."""
    lines = ["apiVersion: v2", f"name: {name}", "version: 1.0.0"]
    if app_version is not None:
        lines.append(f'appVersion: "{app_version}"')
    return "\n".join(lines) + "\n"


def write_umbrella(root: Path, umbrella: str, subcharts: dict[str, str]) -> Path:
    """Write an unpacked umbrella chart with subcharts under root.

    Returns:
        The umbrella chart directory
    """
    chart_dir = root / umbrella
    (chart_dir / "charts").mkdir(parents=True, exist_ok=True)
    (chart_dir / "Chart.yaml").write_text(chart_yaml(umbrella, "0.0.1"))
    for name, version in subcharts.items():
        sub_dir = chart_dir / "charts" / name
        sub_dir.mkdir(parents=True, exist_ok=True)
        (sub_dir / "Chart.yaml").write_text(chart_yaml(name, version))
    return chart_dir


def build_layer_archive(umbrella: str, subcharts: dict[str, str]) -> bytes:
    """Build a gzipped tar of an umbrella chart, like a Helm chart layer."""
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as tar:
        files = {f"{umbrella}/Chart.yaml": chart_yaml(umbrella, "0.0.1")}
        for name, version in subcharts.items():
            files[f"{umbrella}/charts/{name}/Chart.yaml"] = chart_yaml(name, version)
        for path, content in files.items():
            data = content.encode()
            info = tarfile.TarInfo(path)
            info.size = len(data)
            tar.addfile(info, io.BytesIO(data))
    return buffer.getvalue()


@pytest.fixture
def make_umbrella() -> Callable[[Path, str, dict[str, str]], Path]:
    """Return a factory writing unpacked umbrella charts."""
    return write_umbrella


@pytest.fixture
def make_layer_archive() -> Callable[[str, dict[str, str]], bytes]:
    """Return a factory building packaged layer archives."""
    return build_layer_archive


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture
def work_dir(tmp_path: Path) -> Path:
    """Return an empty working directory for layer downloads."""
    path = tmp_path / "work"
    path.mkdir()
    return path


@pytest.fixture
def env(work_dir: Path) -> dict[str, str]:
    """Return a complete environment for a run."""
    return {
        "SONARQUBE_URL": SONARQUBE_URL,
        "SONARQUBE_TOKEN": "squ_token",
        "JFROG_URL": JFROG_URL,
        "JFROG_CREDENTIALS": "deployer:s3cr:et",
        "CHART_NAME": CHART_NAME,
        "CHART_VERSION": CHART_VERSION,
        "WORK_DIR": str(work_dir),
        "HTTP_TIMEOUT": "5",
    }


@pytest.fixture
def config(env: dict[str, str]) -> SonarCheckConfig:
    """Return the configuration built from the test environment."""
    return load_config(env)


# =============================================================================
# Service Fixtures
# =============================================================================


@dataclass
class FakeServices:
    """In-memory SonarQube and Artifactory.

    Attributes:
        layers: Layer archives served by the registry, by digest
        projects: SonarQube project name -> key
        analyses: SonarQube project key -> analyses JSON entries
        sonarqube_up: Whether the SonarQube liveness probe answers 200
        registry_up: Whether the Artifactory liveness probe answers 200
        manifest_status: HTTP status of the manifest request
        failing_layers: Digests whose download answers 500
        requests: Every request received, in order
    """

    layers: dict[str, bytes] = field(default_factory=dict)
    projects: dict[str, str] = field(default_factory=dict)
    analyses: dict[str, list[dict[str, Any]]] = field(default_factory=dict)
    sonarqube_up: bool = True
    registry_up: bool = True
    manifest_status: int = 200
    failing_layers: set[str] = field(default_factory=set)
    requests: list[httpx.Request] = field(default_factory=list)

    def add_layer(self, digest: str, archive: bytes) -> None:
        """Serve a layer archive under a digest."""
        self.layers[digest] = archive

    def add_project(
        self,
        name: str,
        analyses: list[dict[str, Any]],
        key: str | None = None,
    ) -> str:
        """Register a SonarQube project and its analysis history."""
        key = key or f"org.example:{name}"
        self.projects[name] = key
        self.analyses[key] = analyses
        return key

    @property
    def transport(self) -> httpx.MockTransport:
        """Return an httpx transport routing to this fake."""
        return httpx.MockTransport(self.handle)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = str(request.url)
        if url.startswith(SONARQUBE_URL):
            return self._sonarqube(request)
        if url.startswith(JFROG_URL):
            return self._registry(request)
        return httpx.Response(404)

    def _sonarqube(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path == "/api/server/version":
            return httpx.Response(200 if self.sonarqube_up else 503, text="10.6.0.92116")
        if path == "/api/components/search":
            query = request.url.params.get("q", "")
            components = [
                {"name": name, "key": key}
                for name, key in self.projects.items()
                if query in name
            ]
            return httpx.Response(200, json={"components": components})
        if path == "/api/project_analyses/search":
            key = request.url.params.get("project", "")
            if key not in self.analyses:
                return httpx.Response(
                    404,
                    json={"errors": [{"msg": f"Component key '{key}' not found"}]},
                )
            return httpx.Response(200, json={"analyses": self.analyses[key]})
        return httpx.Response(404)

    def _registry(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path in {"", "/"}:
            return httpx.Response(200 if self.registry_up else 502, text="OK")

        prefix = f"/artifactory/charts-registry/lieferscheine/{CHART_NAME}/{CHART_VERSION}/"
        if not path.startswith(prefix):
            return httpx.Response(404)
        name = path.removeprefix(prefix)

        if name == "manifest.json":
            if self.manifest_status != 200:
                return httpx.Response(self.manifest_status)
            return httpx.Response(200, content=json.dumps(self.manifest()).encode())

        digest = "sha256:" + name.removeprefix("sha256__")
        if digest in self.failing_layers:
            return httpx.Response(500)
        if digest not in self.layers:
            return httpx.Response(404)
        return httpx.Response(200, content=self.layers[digest])

    def manifest(self) -> dict[str, Any]:
        """Return the OCI manifest listing every layer."""
        return {
            "schemaVersion": 2,
            "config": {
                "mediaType": "application/vnd.cncf.helm.config.v1+json",
                "digest": "sha256:c0ffee",
                "size": 117,
            },
            "layers": [
                {
                    "mediaType": "application/vnd.cncf.helm.chart.content.v1.tar+gzip",
                    "digest": digest,
                    "size": len(archive),
                }
                for digest, archive in self.layers.items()
            ]
            + [
                {
                    "mediaType": "application/vnd.cncf.helm.chart.content.v1.tar+gzip",
                    "digest": digest,
                    "size": 0,
                }
                for digest in sorted(self.failing_layers)
                if digest not in self.layers
            ],
        }


def gate_analysis(version: str, status: str | None = None) -> dict[str, Any]:
    """Build a project_analyses entry, with a QUALITY_GATE event if status is given."""
    events = [{"category": "VERSION", "name": version}]
    if status is not None:
        events.append({"category": "QUALITY_GATE", "name": status})
    return {"key": f"analysis-{version}", "projectVersion": version, "events": events}


@pytest.fixture
def services() -> FakeServices:
    """Return empty, reachable fake services."""
    return FakeServices()


@pytest.fixture
def make_analysis() -> Callable[..., dict[str, Any]]:
    """Return a factory building project_analyses entries."""
    return gate_analysis
