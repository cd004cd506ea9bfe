"""SonarQube analysis entities.

This module contains entities read from the SonarQube project history:
- AnalysisEvent: One event attached to an analysis (quality gate change, version...)
- AnalysisRecord: One historical analysis of a SonarQube project
- GateStatus: Classification of a quality gate verdict
- GateResolution: The verdict that applies to a given dependency version
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

QUALITY_GATE_CATEGORY = "QUALITY_GATE"
NOT_FOUND_MESSAGE = "No quality gate status found before the specified version"


class GateStatus(Enum):
    """Classification of a quality gate verdict."""

    PASSED = "Passed"
    FAILED = "Failed"
    UNKNOWN = "Unknown"
    NOT_FOUND = "NotFound"

    @classmethod
    def from_event_name(cls, name: str) -> "GateStatus":
        """Classify the name of a QUALITY_GATE event.

        Anything other than "Passed" or "Failed" (for example "Passed (was Failed)"
        style names or new SonarQube statuses) is UNKNOWN.
        """
        if name == cls.PASSED.value:
            return cls.PASSED
        if name == cls.FAILED.value:
            return cls.FAILED
        return cls.UNKNOWN


@dataclass(frozen=True)
class AnalysisEvent:
    """Event attached to a SonarQube analysis.

    Attributes:
        category: Event category (QUALITY_GATE, VERSION, OTHER...)
        name: Event name; for QUALITY_GATE events this is the gate status
    """

    category: str
    name: str

    @property
    def is_quality_gate(self) -> bool:
        """Return True if the event records a quality gate change."""
        return self.category == QUALITY_GATE_CATEGORY


@dataclass(frozen=True)
class AnalysisRecord:
    """One historical analysis of a SonarQube project.

    SonarQube stamps a QUALITY_GATE event only on the analysis where the gate
    outcome changed, so most records carry no gate event at all.

    Attributes:
        project_version: Version string the project was analyzed at
        events: Events attached to the analysis, in API order
    """

    project_version: str
    events: tuple[AnalysisEvent, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AnalysisRecord | None":
        """Build a record from an API analysis entry.

        Returns:
            AnalysisRecord, or None if the entry has no usable projectVersion
        """
        project_version = data.get("projectVersion")
        if not isinstance(project_version, str):
            return None

        raw_events = data.get("events")
        if not isinstance(raw_events, list):
            raw_events = []

        events = tuple(
            AnalysisEvent(category=event["category"], name=event["name"])
            for event in raw_events
            if isinstance(event, dict)
            and isinstance(event.get("category"), str)
            and isinstance(event.get("name"), str)
        )
        return cls(project_version=project_version, events=events)


@dataclass(frozen=True)
class GateResolution:
    """Quality gate verdict resolved for a dependency version.

    Attributes:
        status: Classified verdict
        name: Raw event name, or a placeholder message when nothing was found
        project_version: Version of the analysis the verdict was taken from
    """

    status: GateStatus
    name: str
    project_version: str | None = None

    @classmethod
    def not_found(cls) -> "GateResolution":
        """Create the resolution used when no applicable event exists."""
        return cls(status=GateStatus.NOT_FOUND, name=NOT_FOUND_MESSAGE)
