"""Entry point for running Sonarcheck as a module.

Usage:
    python -m sonarcheck [options] [ignore rules]

Example:
    python -m sonarcheck -v ".*-mock,.*-cronjobs"
"""

from sonarcheck.cli import app

if __name__ == "__main__":
    app()
