"""Sonarcheck CLI interface.

Checks that every subchart of an umbrella chart already passed its SonarQube
quality gate.

Arguments:
- IGNORE_RULES: comma-separated regexes of subcharts not to check

Options:
- --verbose/-v: Report passed and ignored subcharts (overrides VERBOSE)
- --debug/-d: Report raw responses and rule matching (overrides DEBUG)
- --ci: JSON log lines
- --json: Print the run result as JSON
- --version: Show version and exit
"""

import json
import sys
from typing import Annotated

import typer

from sonarcheck import __version__
from sonarcheck.config import SonarCheckConfig, load_config
from sonarcheck.errors import ConfigError, RegistryError, ServiceUnavailableError
from sonarcheck.pipeline import GateCheckPipeline
from sonarcheck.utils.logging import configure_from_cli, get_logger

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_FATAL = 2

ENVIRONMENT_HELP = """\b
Environment:
  SONARQUBE_TOKEN    Required  Token used to read quality gate statuses
  JFROG_CREDENTIALS  Required  Artifactory credentials, e.g. user:password
  CHART_NAME         Required  Umbrella chart name, e.g. tramon-lt
  CHART_VERSION      Required  Umbrella chart version, e.g. 202406.827.0
  SONARQUBE_URL      Optional  SonarQube URL (default: http://sonarqube.com)
  JFROG_URL          Optional  Artifactory URL (default: http://artifactory.com)
  JFROG_PATH_PREFIX  Optional  Artifactory context path (default: artifactory)
  OCI_REGISTRY       Optional  OCI registry (default: charts-registry)
  CHART_REPOSITORY   Optional  Chart repository (default: lieferscheine)
  HTTP_TIMEOUT       Optional  Request timeout in seconds (default: 30)
  WORK_DIR           Optional  Download directory (default: current directory)
  VERSION_SCHEME     Optional  dotted or concatenated (default: dotted)
  VERBOSE, DEBUG     Optional  Enable verbose/debug mode

\b
Example:
  CHART_NAME=sample CHART_VERSION=202406.827.0 JFROG_CREDENTIALS=user:password \\
  SONARQUBE_TOKEN=595bb1 sonarcheck -v ".*mock,.*-cronjobs,.*-test.*"
"""

app = typer.Typer(
    name="sonarcheck",
    help="Check that the subcharts of an umbrella chart passed their SonarQube quality gate.",
    epilog=ENVIRONMENT_HELP,
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)

_logger = get_logger()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"sonarcheck {__version__}")
        raise typer.Exit()


def create_pipeline(config: SonarCheckConfig) -> GateCheckPipeline:
    """Build the pipeline for a configuration."""
    return GateCheckPipeline(config)


@app.command()
def main(
    ignore_rules: Annotated[
        str,
        typer.Argument(
            help="Comma-separated regexes of subcharts to skip, e.g. '.*-mock,.*-test.*'",
            show_default=False,
        ),
    ] = "",
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose output (overrides VERBOSE)",
        ),
    ] = False,
    debug: Annotated[
        bool,
        typer.Option(
            "--debug",
            "-d",
            help="Enable debug output (overrides DEBUG)",
        ),
    ] = False,
    ci: Annotated[
        bool,
        typer.Option(
            "--ci",
            help="Enable CI mode with JSON log lines",
        ),
    ] = False,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Print the run result as JSON",
        ),
    ] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = False,
) -> None:
    """Check umbrella charts if their subcharts (dependencies) already passed the SonarQube analyses.

    Exit codes:
        0: All subcharts passed or were ignored
        1: One or more subcharts failed, are unknown, or were not found
        2: Fatal error (configuration, unreachable service, manifest)
    """
    # Logs go to stderr when stdout carries the JSON result
    stream = sys.stderr if json_output else None
    configure_from_cli(verbose=verbose, debug=debug, ci=ci, stream=stream)

    try:
        config = load_config()
    except ConfigError as e:
        _logger.error(str(e))
        raise typer.Exit(EXIT_FATAL)

    # VERBOSE/DEBUG from the environment apply unless the flags already did
    config.verbose = config.verbose or verbose
    config.debug = config.debug or debug
    if (config.verbose, config.debug) != (verbose, debug):
        configure_from_cli(verbose=config.verbose, debug=config.debug, ci=ci, stream=stream)

    try:
        with create_pipeline(config) as pipeline:
            result = pipeline.run(ignore_rules)
            pipeline.report(result)
    except ServiceUnavailableError as e:
        _logger.error(e.message)
        raise typer.Exit(EXIT_FATAL)
    except RegistryError as e:
        _logger.error(str(e))
        raise typer.Exit(EXIT_FATAL)

    if json_output:
        typer.echo(json.dumps(result.to_dict(), indent=2))
    elif result.ok:
        typer.echo("✅ All components passed")
    else:
        failed = ", ".join(check.name for check in result.failed_checks)
        typer.echo(f"❌ Quality gate check FAILED: {failed}", err=True)

    raise typer.Exit(EXIT_OK if result.ok else EXIT_FAILED)


if __name__ == "__main__":
    app()
