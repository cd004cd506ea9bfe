"""Sonarcheck utility modules.

- logging: Standardized logging with human/verbose/JSON modes
- preflight: Liveness probes of SonarQube and Artifactory
- archive: Layer extraction and working directory cleanup
"""

from sonarcheck.utils.archive import clean_working_directory, extract_tar_gz
from sonarcheck.utils.logging import get_logger, setup_logging
from sonarcheck.utils.preflight import PreflightChecker, PreflightResult

__all__ = [
    "get_logger",
    "setup_logging",
    "PreflightChecker",
    "PreflightResult",
    "clean_working_directory",
    "extract_tar_gz",
]
