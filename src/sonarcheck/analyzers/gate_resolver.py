"""Quality gate resolution over a SonarQube project history.

SonarQube only attaches a QUALITY_GATE event to the analysis on which the gate
outcome changed. A project that passed at 1.0 and kept passing through 2.0 has
the "Passed" event on 1.0 and nothing on 2.0, so the verdict for 2.0 has to be
inherited from an earlier analysis.
"""

import logging
from collections.abc import Iterable

from sonarcheck.analyzers.version import Version, VersionScheme, compare_versions
from sonarcheck.models.analysis import AnalysisRecord, GateResolution, GateStatus

logger = logging.getLogger(__name__)


def resolve_gate_status(
    history: Iterable[AnalysisRecord],
    target_version: str | Version,
    scheme: VersionScheme = VersionScheme.DOTTED,
) -> GateResolution:
    """Find the quality gate verdict that applies to a version.

    Records are scanned in the order given (the API order). Once a record with
    exactly the target version has been seen, records with a greater version
    are skipped so a later gate change cannot override the verdict that held
    at the target. The first QUALITY_GATE event of the first record that is
    not skipped wins.

    Args:
        history: Project analyses in service order
        target_version: appVersion declared by the dependency
        scheme: Version ordering scheme

    Returns:
        GateResolution; NOT_FOUND if no applicable QUALITY_GATE event exists
    """
    target = target_version if isinstance(target_version, Version) else Version.parse(target_version)
    found_version = False

    for record in history:
        comparison = compare_versions(record.project_version, target, scheme)
        if comparison == 0:
            found_version = True
        elif found_version and comparison > 0:
            logger.debug(
                "Skipping analysis %s (newer than matched version %s)",
                record.project_version,
                target,
            )
            continue

        for event in record.events:
            if event.is_quality_gate:
                logger.debug(
                    "Quality gate '%s' found on analysis %s for version %s",
                    event.name,
                    record.project_version,
                    target,
                )
                return GateResolution(
                    status=GateStatus.from_event_name(event.name),
                    name=event.name,
                    project_version=record.project_version,
                )

    return GateResolution.not_found()
