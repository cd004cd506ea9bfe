"""Run result entities.

This module contains entities describing one quality gate check run:
- RunStage: Position of the run in its linear stage sequence
- CheckOutcome: Classification of a single dependency check
- DependencyCheck: Outcome for one dependency
- RunError: Non-fatal error encountered during the run
- RunResult: Aggregated result of the run
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any


class RunStage(Enum):
    """Stages of a check run, in execution order."""

    INIT = "init"
    SERVICES_CHECKED = "services_checked"
    ARTIFACT_FETCHED = "artifact_fetched"
    DEPENDENCIES_EXTRACTED = "dependencies_extracted"
    DEPENDENCIES_CHECKED = "dependencies_checked"
    CLEANED = "cleaned"
    REPORTED = "reported"


class CheckOutcome(Enum):
    """Classification of a single dependency check."""

    PASSED = "passed"
    FAILED = "failed"
    UNKNOWN = "unknown"  # Gate status other than Passed/Failed, or none found
    NOT_FOUND = "not_found"  # No SonarQube project with the dependency's name
    ERROR = "error"  # SonarQube request failed
    IGNORED = "ignored"


@dataclass
class DependencyCheck:
    """Outcome of checking one dependency.

    Attributes:
        name: Dependency (subchart) name
        version: Declared appVersion
        outcome: Classified outcome
        detail: Gate status name or error message
    """

    name: str
    version: str
    outcome: CheckOutcome
    detail: str = ""

    @property
    def ok(self) -> bool:
        """Return True if this dependency does not block the release."""
        return self.outcome in {CheckOutcome.PASSED, CheckOutcome.IGNORED}

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "name": self.name,
            "version": self.version,
            "outcome": self.outcome.value,
            "detail": self.detail,
            "ok": self.ok,
        }


@dataclass
class RunError:
    """Non-fatal error encountered during a run.

    Attributes:
        component: Component that failed (registry, archive, chart, ignore, sonarqube)
        message: Error description
        item: Layer, file or dependency the error relates to
    """

    component: str
    message: str
    item: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "component": self.component,
            "message": self.message,
            "item": self.item,
        }


@dataclass
class RunResult:
    """Aggregated result of a quality gate check run.

    Built incrementally by the pipeline. ``ok`` stays True until a dependency
    check fails; recoverable errors alone (a broken layer, an unreadable
    chart) do not flip it.

    Attributes:
        chart_name: Umbrella chart name
        chart_version: Umbrella chart version
        started_at: Run start timestamp (UTC)
        finished_at: Run end timestamp (UTC)
        stage: Last stage reached
        checks: One entry per dependency, in check order
        errors: Recoverable errors encountered during the run
    """

    chart_name: str
    chart_version: str
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    finished_at: datetime | None = None
    stage: RunStage = RunStage.INIT
    checks: list[DependencyCheck] = field(default_factory=list)
    errors: list[RunError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        """Return True if every checked dependency passed or was ignored."""
        return all(check.ok for check in self.checks)

    @property
    def failed_checks(self) -> list[DependencyCheck]:
        """Return the checks that block the release."""
        return [check for check in self.checks if not check.ok]

    def add_check(self, check: DependencyCheck) -> None:
        """Record the outcome of one dependency check."""
        self.checks.append(check)

    def add_error(self, error: RunError) -> None:
        """Record a recoverable error."""
        self.errors.append(error)

    def get_check(self, name: str) -> DependencyCheck | None:
        """Get the check recorded for a dependency."""
        for check in self.checks:
            if check.name == name:
                return check
        return None

    def count(self, outcome: CheckOutcome) -> int:
        """Count checks with the given outcome."""
        return sum(1 for check in self.checks if check.outcome == outcome)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON output."""
        return {
            "chart": {"name": self.chart_name, "version": self.chart_version},
            "ok": self.ok,
            "stage": self.stage.value,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "checks": [check.to_dict() for check in self.checks],
            "errors": [error.to_dict() for error in self.errors],
        }
