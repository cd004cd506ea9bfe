"""Quality gate check pipeline.

Runs one check of an umbrella chart through a linear sequence of stages:

    INIT -> SERVICES_CHECKED -> ARTIFACT_FETCHED -> DEPENDENCIES_EXTRACTED
         -> DEPENDENCIES_CHECKED -> CLEANED -> REPORTED

Fatal errors (unreachable service, unusable manifest) propagate to the caller.
Everything else is recorded on the RunResult and the run continues; the
working directory is cleaned whatever happens after the fetch started.
"""

import logging
from datetime import UTC, datetime
from pathlib import Path
from types import TracebackType

import httpx

from sonarcheck.analyzers import IgnoreRuleSet, extract_dependencies, resolve_gate_status
from sonarcheck.clients import ArtifactRegistryClient, SonarQubeClient
from sonarcheck.config import SonarCheckConfig
from sonarcheck.errors import (
    ArchiveError,
    IgnoreRuleError,
    ProjectNotFoundError,
    RegistryError,
    SonarQubeError,
)
from sonarcheck.models import (
    CheckOutcome,
    Dependency,
    DependencyCheck,
    GateResolution,
    GateStatus,
    RunError,
    RunResult,
    RunStage,
)
from sonarcheck.utils.archive import clean_working_directory, extract_tar_gz, layer_paths
from sonarcheck.utils.logging import get_logger
from sonarcheck.utils.preflight import PreflightChecker

logger = get_logger(__name__)


class GateCheckPipeline:
    """Checks every subchart of an umbrella chart against SonarQube.

    The pipeline sequence:
    1. Probe SonarQube and Artifactory
    2. Download and unpack the chart layers
    3. Read each subchart's appVersion
    4. Resolve each subchart's quality gate, in name order
    5. Clean the working directory

    Clients passed in are owned by the caller; clients the pipeline creates
    are closed by close().
    """

    def __init__(
        self,
        config: SonarCheckConfig,
        registry: ArtifactRegistryClient | None = None,
        sonarqube: SonarQubeClient | None = None,
        preflight: PreflightChecker | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the pipeline.

        Args:
            config: Run configuration
            registry: Artifactory client (created from config if None)
            sonarqube: SonarQube client (created from config if None)
            preflight: Service prober (created from config if None)
            transport: httpx transport for the clients the pipeline creates
        """
        self.config = config
        self._owned: list[ArtifactRegistryClient | SonarQubeClient] = []

        if registry is None:
            registry = ArtifactRegistryClient(config.registry, config.timeout, transport)
            self._owned.append(registry)
        if sonarqube is None:
            sonarqube = SonarQubeClient(config.sonarqube, config.timeout, transport)
            self._owned.append(sonarqube)

        self.registry = registry
        self.sonarqube = sonarqube
        self.preflight = preflight or PreflightChecker(config.timeout, transport)

    def __enter__(self) -> "GateCheckPipeline":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        """Close the clients created by the pipeline."""
        for client in self._owned:
            client.close()
        self._owned.clear()

    @property
    def work_dir(self) -> Path:
        """Directory layers are downloaded and unpacked into."""
        return self.config.work_dir

    def run(self, ignore_rules: str | IgnoreRuleSet = "") -> RunResult:
        """Execute the full check.

        Args:
            ignore_rules: Comma-separated ignore regexes, or a parsed rule set

        Returns:
            RunResult with one check per dependency

        Raises:
            ServiceUnavailableError: If a service fails its liveness probe
            RegistryError: If the chart manifest cannot be fetched or decoded
        """
        rules = (
            ignore_rules
            if isinstance(ignore_rules, IgnoreRuleSet)
            else IgnoreRuleSet.parse(ignore_rules)
        )
        chart = self.config.chart
        result = RunResult(chart_name=chart.name, chart_version=chart.version)

        logger.info("Checking umbrella chart %s:%s", chart.name, chart.version)

        self._check_services(result)

        try:
            layer_dirs = self._fetch_artifact(result)
            dependencies = self._extract_dependencies(layer_dirs, result)
            self._check_dependencies(dependencies, rules, result)
        finally:
            self._clean(result)
            result.finished_at = datetime.now(UTC)

        return result

    def report(self, result: RunResult) -> None:
        """Log the run summary and mark the run as reported."""
        if result.ok:
            logger.info(
                "All components passed (%d checked, %d ignored)",
                len(result.checks) - result.count(CheckOutcome.IGNORED),
                result.count(CheckOutcome.IGNORED),
            )
        else:
            logger.error("One or more components failed in SonarQube status check.")
        result.stage = RunStage.REPORTED

    # =========================================================================
    # Stages
    # =========================================================================

    def _check_services(self, result: RunResult) -> None:
        """Stage 1: probe both services; raises ServiceUnavailableError."""
        preflight = self.preflight.check_all(self.config)
        for check in preflight.checks:
            if check.available:
                logger.debug("%s is reachable at %s", check.name, check.url)
        preflight.raise_for_failure()
        result.stage = RunStage.SERVICES_CHECKED

    def _fetch_artifact(self, result: RunResult) -> list[Path]:
        """Stage 2: download and unpack every layer of the chart.

        A layer that fails to download or unpack is recorded and skipped.

        Returns:
            Directories of the unpacked layers
        """
        chart = self.config.chart
        self.work_dir.mkdir(parents=True, exist_ok=True)
        clean_working_directory(self.work_dir)

        manifest = self.registry.fetch_manifest(chart.name, chart.version)

        layer_dirs: list[Path] = []
        for index, layer in enumerate(manifest.layers, start=1):
            archive_path, output_dir = layer_paths(self.work_dir, index)
            try:
                self.registry.download_layer(chart.name, chart.version, layer, archive_path)
                extract_tar_gz(archive_path, output_dir)
            except RegistryError as e:
                logger.error("Failed to download content for layer %d: %s", index, e)
                result.add_error(RunError("registry", str(e), item=layer.digest))
                continue
            except ArchiveError as e:
                logger.error("Failed to extract layer %d: %s", index, e)
                result.add_error(RunError("archive", str(e), item=layer.digest))
                continue
            layer_dirs.append(output_dir)

        if manifest.layers and not layer_dirs:
            logger.warning("None of the %d layer(s) could be unpacked", len(manifest.layers))

        result.stage = RunStage.ARTIFACT_FETCHED
        return layer_dirs

    def _extract_dependencies(
        self,
        layer_dirs: list[Path],
        result: RunResult,
    ) -> list[Dependency]:
        """Stage 3: read the appVersion of every subchart."""
        dependencies = extract_dependencies(layer_dirs)

        if dependencies:
            logger.info(
                "These dependencies found in %s:%s: %s",
                self.config.chart.name,
                self.config.chart.version,
                ", ".join(f"{d.name}={d.version}" for d in dependencies),
            )
        else:
            logger.warning("No subcharts found in %s", self.config.chart.name)

        result.stage = RunStage.DEPENDENCIES_EXTRACTED
        return dependencies

    def _check_dependencies(
        self,
        dependencies: list[Dependency],
        rules: IgnoreRuleSet,
        result: RunResult,
    ) -> None:
        """Stage 4: check each dependency; failures never stop the loop."""
        for dependency in dependencies:
            result.add_check(self._check_dependency(dependency, rules, result))
        result.stage = RunStage.DEPENDENCIES_CHECKED

    def _clean(self, result: RunResult) -> None:
        """Stage 5: remove downloaded archives and unpacked layers."""
        clean_working_directory(self.work_dir)
        result.stage = RunStage.CLEANED

    # =========================================================================
    # Single dependency
    # =========================================================================

    def _ignore_rule_for(
        self,
        dependency: Dependency,
        rules: IgnoreRuleSet,
        result: RunResult,
    ) -> str | None:
        """Find the ignore rule matching a dependency.

        A rule that does not compile disables ignoring for this dependency: it
        is checked like any other.
        """
        try:
            return rules.matching_rule(dependency.name)
        except IgnoreRuleError as e:
            logger.error("Error: %s", e)
            result.add_error(RunError("ignore", str(e), item=dependency.name))
            return None

    def _check_dependency(
        self,
        dependency: Dependency,
        rules: IgnoreRuleSet,
        result: RunResult,
    ) -> DependencyCheck:
        name, version = dependency.name, dependency.version

        rule = self._ignore_rule_for(dependency, rules, result)
        if rule is not None:
            logger.info("%s: Ignored", name)
            logger.debug("Ignore rule '%s' matched dependency %s", rule, name)
            return DependencyCheck(name, version, CheckOutcome.IGNORED, f"ignored by '{rule}'")

        try:
            project_key = self.sonarqube.find_project_key(name)
        except ProjectNotFoundError as e:
            logger.error("%s: Not Found", name)
            return DependencyCheck(name, version, CheckOutcome.NOT_FOUND, str(e))
        except SonarQubeError as e:
            logger.error("Error looking up SonarQube project for dependency %s: %s", name, e)
            result.add_error(RunError("sonarqube", str(e), item=name))
            return DependencyCheck(name, version, CheckOutcome.ERROR, str(e))

        try:
            history = self.sonarqube.fetch_analyses(project_key)
        except SonarQubeError as e:
            logger.error("Error fetching analyses for dependency %s: %s", name, e)
            result.add_error(RunError("sonarqube", str(e), item=name))
            return DependencyCheck(name, version, CheckOutcome.ERROR, str(e))

        resolution = resolve_gate_status(history, version, self.config.version_scheme)
        return self._classify(dependency, resolution)

    def _classify(self, dependency: Dependency, resolution: GateResolution) -> DependencyCheck:
        """Turn a resolved gate status into a check outcome and log it."""
        name, version = dependency.name, dependency.version

        if resolution.status == GateStatus.PASSED:
            outcome = CheckOutcome.PASSED
            level, suffix = logging.INFO, ""
        elif resolution.status == GateStatus.FAILED:
            outcome = CheckOutcome.FAILED
            level, suffix = logging.ERROR, ""
        else:
            outcome = CheckOutcome.UNKNOWN
            level, suffix = logging.ERROR, " (UNKNOWN STATUS)"

        logger.structured(
            level,
            "%s-%s: %s%s",
            name,
            version,
            resolution.name,
            suffix,
            dependency=name,
            version=version,
            outcome=outcome.value,
            analysis_version=resolution.project_version,
        )
        return DependencyCheck(name, version, outcome, resolution.name)
