"""Sonarcheck data models.

This module exports all core entities used throughout the application:
- AnalysisRecord / AnalysisEvent: SonarQube project history
- GateStatus / GateResolution: Resolved quality gate verdicts
- Manifest / LayerDescriptor: OCI manifest of the umbrella chart
- Dependency: Subchart name and pinned appVersion
- RunResult / DependencyCheck / RunError: Outcome of a check run
"""

from sonarcheck.models.analysis import (
    AnalysisEvent,
    AnalysisRecord,
    GateResolution,
    GateStatus,
)
from sonarcheck.models.chart import Dependency, LayerDescriptor, Manifest
from sonarcheck.models.run import (
    CheckOutcome,
    DependencyCheck,
    RunError,
    RunResult,
    RunStage,
)

__all__ = [
    "AnalysisEvent",
    "AnalysisRecord",
    "GateResolution",
    "GateStatus",
    "Dependency",
    "LayerDescriptor",
    "Manifest",
    "CheckOutcome",
    "DependencyCheck",
    "RunError",
    "RunResult",
    "RunStage",
]
