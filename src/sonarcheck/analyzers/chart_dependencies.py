"""Subchart discovery in unpacked umbrella chart layers.

An unpacked layer looks like::

    layer_1/
        <umbrella>/
            Chart.yaml
            charts/
                <subchart>/Chart.yaml   <- appVersion read here
                <other>.tgz             <- packaged subcharts are skipped

The subchart directory name is the dependency name and also the name of its
SonarQube project.
"""

import logging
from collections.abc import Iterable
from pathlib import Path

import yaml

from sonarcheck.errors import ChartMetadataError
from sonarcheck.models.chart import Dependency

logger = logging.getLogger(__name__)

CHART_GLOB = "*/charts/*/Chart.yaml"
PACKAGED_CHART_SUFFIX = ".tgz"


def read_app_version(chart_path: Path) -> str:
    """Read the appVersion field of a Chart.yaml.

    Scalars are read with BaseLoader, so an unquoted ``appVersion: 1.10`` stays
    "1.10" instead of resolving to the float 1.1.

    Args:
        chart_path: Path to Chart.yaml

    Returns:
        The declared appVersion

    Raises:
        ChartMetadataError: If the file cannot be read, parsed, or has no appVersion
    """
    try:
        with open(chart_path, encoding="utf-8") as f:
            data = yaml.load(f, Loader=yaml.BaseLoader)
    except OSError as e:
        raise ChartMetadataError(chart_path, str(e)) from e
    except yaml.YAMLError as e:
        raise ChartMetadataError(chart_path, f"invalid YAML: {e}") from e

    if not isinstance(data, dict):
        raise ChartMetadataError(chart_path, "document is not a mapping")

    app_version = data.get("appVersion")
    if app_version is None or app_version == "":
        raise ChartMetadataError(chart_path, "appVersion is missing")
    if not isinstance(app_version, str):
        raise ChartMetadataError(chart_path, "appVersion is not a scalar")

    return app_version


def find_chart_files(root_dir: Path) -> list[Path]:
    """List subchart Chart.yaml files one umbrella level below a root directory."""
    return sorted(
        path
        for path in root_dir.glob(CHART_GLOB)
        if path.is_file() and not path.parent.name.endswith(PACKAGED_CHART_SUFFIX)
    )


def extract_app_versions(root_dirs: Iterable[Path]) -> dict[str, str]:
    """Build the dependency name -> appVersion mapping of unpacked layers.

    A chart that cannot be read is logged and skipped. When two layers bundle a
    subchart with the same name, the one in the later directory wins.

    Args:
        root_dirs: Unpacked layer directories, in manifest order

    Returns:
        Mapping of subchart name to declared appVersion
    """
    dependencies: dict[str, str] = {}

    for root_dir in map(Path, root_dirs):
        for chart_path in find_chart_files(root_dir):
            chart_name = chart_path.parent.name
            try:
                app_version = read_app_version(chart_path)
            except ChartMetadataError as e:
                logger.warning("Error reading appVersion from %s: %s", chart_path, e.reason)
                continue

            previous = dependencies.get(chart_name)
            if previous is not None and previous != app_version:
                logger.debug(
                    "Subchart %s found again in %s: %s replaces %s",
                    chart_name,
                    root_dir,
                    app_version,
                    previous,
                )
            dependencies[chart_name] = app_version

    return dependencies


def extract_dependencies(root_dirs: Iterable[Path]) -> list[Dependency]:
    """Extract subchart dependencies sorted by name."""
    mapping = extract_app_versions(root_dirs)
    return [Dependency(name=name, version=mapping[name]) for name in sorted(mapping)]
