"""Unit tests for subchart discovery."""

import logging
from collections.abc import Callable
from pathlib import Path

import pytest

from sonarcheck.analyzers.chart_dependencies import (
    extract_app_versions,
    extract_dependencies,
    read_app_version,
)
from sonarcheck.analyzers.gate_resolver import resolve_gate_status
from sonarcheck.errors import ChartMetadataError
from sonarcheck.models import AnalysisEvent, AnalysisRecord, Dependency, GateStatus

MakeUmbrella = Callable[[Path, str, dict[str, str]], Path]


class TestReadAppVersion:
    """Tests for read_app_version."""

    def test_quoted_version(self, tmp_path: Path) -> None:
        """Test reading a quoted appVersion."""
        chart = tmp_path / "Chart.yaml"
        chart.write_text('apiVersion: v2\nname: web\nappVersion: "1.2.3"\n')

        assert read_app_version(chart) == "1.2.3"

    @pytest.mark.parametrize("declared", ["1.10", "0123", "1.0", "2024.06"])
    def test_unquoted_version_kept_verbatim(self, tmp_path: Path, declared: str) -> None:
        """Test unquoted numeric-looking versions keep their literal text."""
        chart = tmp_path / "Chart.yaml"
        chart.write_text(f"name: web\nappVersion: {declared}\n")

        assert read_app_version(chart) == declared

    def test_non_scalar_app_version(self, tmp_path: Path) -> None:
        """Test a list or mapping appVersion is rejected."""
        chart = tmp_path / "Chart.yaml"
        chart.write_text("name: web\nappVersion:\n  - 1.0\n")

        with pytest.raises(ChartMetadataError, match="not a scalar"):
            read_app_version(chart)

    def test_missing_app_version(self, tmp_path: Path) -> None:
        """Test a chart without appVersion raises ChartMetadataError."""
        chart = tmp_path / "Chart.yaml"
        chart.write_text("name: web\nversion: 1.0.0\n")

        with pytest.raises(ChartMetadataError, match="appVersion is missing"):
            read_app_version(chart)

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        """Test malformed YAML raises ChartMetadataError."""
        chart = tmp_path / "Chart.yaml"
        chart.write_text("name: [web\nappVersion: 1.0\n")

        with pytest.raises(ChartMetadataError, match="invalid YAML"):
            read_app_version(chart)

    def test_non_mapping_document(self, tmp_path: Path) -> None:
        """Test a YAML list is rejected."""
        chart = tmp_path / "Chart.yaml"
        chart.write_text("- web\n- 1.0\n")

        with pytest.raises(ChartMetadataError, match="not a mapping"):
            read_app_version(chart)

    def test_missing_file(self, tmp_path: Path) -> None:
        """Test an unreadable file raises ChartMetadataError."""
        with pytest.raises(ChartMetadataError) as exc_info:
            read_app_version(tmp_path / "Chart.yaml")

        assert exc_info.value.path == tmp_path / "Chart.yaml"


class TestExtractAppVersions:
    """Tests for extract_app_versions."""

    def test_two_subcharts(self, tmp_path: Path, make_umbrella: MakeUmbrella) -> None:
        """Test subcharts are keyed by directory name."""
        layer = tmp_path / "layer_1"
        make_umbrella(layer, "umbrella", {"web-app": "1.2.3", "worker": "4.5.6"})

        result = extract_app_versions([layer])

        assert result == {"web-app": "1.2.3", "worker": "4.5.6"}

    def test_malformed_chart_is_skipped(
        self,
        tmp_path: Path,
        make_umbrella: MakeUmbrella,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Test a broken Chart.yaml does not stop the other subcharts."""
        layer = tmp_path / "layer_1"
        chart_dir = make_umbrella(layer, "umbrella", {"web-app": "1.2.3", "worker": "4.5.6"})
        (chart_dir / "charts" / "worker" / "Chart.yaml").write_text("appVersion: [4.5\n")

        with caplog.at_level(logging.WARNING, logger="sonarcheck"):
            result = extract_app_versions([layer])

        assert result == {"web-app": "1.2.3"}
        assert "Error reading appVersion" in caplog.text

    def test_umbrella_chart_itself_not_included(
        self,
        tmp_path: Path,
        make_umbrella: MakeUmbrella,
    ) -> None:
        """Test only charts below charts/ are dependencies."""
        layer = tmp_path / "layer_1"
        make_umbrella(layer, "umbrella", {"web-app": "1.0.0"})

        assert "umbrella" not in extract_app_versions([layer])

    def test_nested_subcharts_ignored(
        self,
        tmp_path: Path,
        make_umbrella: MakeUmbrella,
    ) -> None:
        """Test subcharts of subcharts are not dependencies of the umbrella."""
        layer = tmp_path / "layer_1"
        chart_dir = make_umbrella(layer, "umbrella", {"web-app": "1.0.0"})
        make_umbrella(chart_dir / "charts" / "web-app", "inner", {"deep": "9.9.9"})
        make_umbrella(chart_dir / "charts" / "web-app" / "charts", "deep", {})

        assert extract_app_versions([layer]) == {"web-app": "1.0.0"}

    def test_packaged_subcharts_skipped(
        self,
        tmp_path: Path,
        make_umbrella: MakeUmbrella,
    ) -> None:
        """Test packaged subchart archives are not read."""
        layer = tmp_path / "layer_1"
        chart_dir = make_umbrella(layer, "umbrella", {"web-app": "1.0.0"})
        (chart_dir / "charts" / "cache-1.0.0.tgz").write_bytes(b"\x1f\x8b")

        assert extract_app_versions([layer]) == {"web-app": "1.0.0"}

    def test_collision_last_layer_wins(
        self,
        tmp_path: Path,
        make_umbrella: MakeUmbrella,
    ) -> None:
        """Test a subchart in a later directory overrides an earlier one."""
        make_umbrella(tmp_path / "layer_1", "umbrella", {"web-app": "1.0.0"})
        make_umbrella(tmp_path / "layer_2", "umbrella", {"web-app": "2.0.0"})
        layer_1, layer_2 = tmp_path / "layer_1", tmp_path / "layer_2"

        assert extract_app_versions([layer_1, layer_2]) == {"web-app": "2.0.0"}
        assert extract_app_versions([layer_2, layer_1]) == {"web-app": "1.0.0"}

    def test_idempotent(self, tmp_path: Path, make_umbrella: MakeUmbrella) -> None:
        """Test extracting twice from the same tree gives the same mapping."""
        make_umbrella(tmp_path / "layer_1", "umbrella", {"a": "1.0", "b": "2.0"})
        make_umbrella(tmp_path / "layer_2", "other", {"c": "3.0"})
        layers = [tmp_path / "layer_1", tmp_path / "layer_2"]

        assert extract_app_versions(layers) == extract_app_versions(layers)

    def test_no_layers(self) -> None:
        """Test no directories gives an empty mapping."""
        assert extract_app_versions([]) == {}


class TestExtractDependencies:
    """Tests for extract_dependencies."""

    def test_sorted_by_name(self, tmp_path: Path, make_umbrella: MakeUmbrella) -> None:
        """Test dependencies come back sorted by name."""
        layer = tmp_path / "layer_1"
        make_umbrella(layer, "umbrella", {"zeta": "1.0", "alpha": "2.0", "mid": "3.0"})

        result = extract_dependencies([layer])

        assert result == [
            Dependency("alpha", "2.0"),
            Dependency("mid", "3.0"),
            Dependency("zeta", "1.0"),
        ]


class TestDeclaredVersionResolution:
    """Tests for resolving the gate of an extracted appVersion."""

    def test_unquoted_version_matches_analysis(self, tmp_path: Path) -> None:
        """Test an unquoted 1.10 matches the 1.10 analysis, so newer gate changes are skipped."""
        chart_dir = tmp_path / "layer_1" / "umbrella" / "charts" / "web-app"
        chart_dir.mkdir(parents=True)
        (chart_dir / "Chart.yaml").write_text("name: web-app\nappVersion: 1.10\n")
        history = [
            AnalysisRecord("1.10"),
            AnalysisRecord("1.20", (AnalysisEvent("QUALITY_GATE", "Failed"),)),
        ]

        [dependency] = extract_dependencies([tmp_path / "layer_1"])
        resolution = resolve_gate_status(history, dependency.version)

        assert dependency.version == "1.10"
        assert resolution.status == GateStatus.NOT_FOUND
