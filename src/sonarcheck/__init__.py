"""Sonarcheck - SonarQube quality gate check for umbrella Helm charts.

Sonarcheck pulls an umbrella chart from an OCI registry in Artifactory,
unpacks its subcharts and verifies that the application version each subchart
pins has passed its SonarQube quality gate. It runs as a release pipeline step:
no interactive prompts, meaningful exit codes.

Core principles:
- Preflight Validation: both services are probed before anything is fetched
- Per-item Resilience: one broken layer, chart or project never aborts the run
- Deterministic Output: dependencies are checked in name order
- Explicit Configuration: one config object, built once from the environment
"""

__version__ = "0.1.0"
__author__ = "Sonarcheck Contributors"
