"""Standardized logging for pipeline output.

Provides three output modes:
- Human mode: [LEVEL] message (colored if TTY)
- Verbose mode: [LEVEL][HH:MM:SS] message, used by -v and -d
- CI/JSON mode: {"level":"...","ts":"...","logger":"...","msg":"..."}

Levels follow the CLI flags: failures only by default, passed and ignored
dependencies with -v, raw responses and rule matching with -d.
"""

import json
import logging
import sys
from datetime import UTC, datetime
from enum import Enum
from typing import Any, TextIO

ROOT_LOGGER = "sonarcheck"


class LogMode(Enum):
    """Logging output mode."""

    HUMAN = "human"
    VERBOSE = "verbose"
    JSON = "json"


class Colors:
    """ANSI color codes for terminal output."""

    RESET = "\033[0m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    RED = "\033[31m"
    GRAY = "\033[90m"


LEVEL_COLORS = {
    logging.DEBUG: Colors.GRAY,
    logging.INFO: Colors.GREEN,
    logging.WARNING: Colors.YELLOW,
    logging.ERROR: Colors.RED,
    logging.CRITICAL: Colors.RED,
}


def _is_tty(stream: TextIO | None = None) -> bool:
    """Check if the stream is a TTY (supports colors)."""
    if stream is None:
        stream = sys.stdout
    return hasattr(stream, "isatty") and stream.isatty()


class HumanFormatter(logging.Formatter):
    """Formatter for human-readable output.

    Format: [LEVEL] message
    """

    def __init__(self, use_colors: bool = True, timestamps: bool = False) -> None:
        """Initialize human formatter.

        Args:
            use_colors: Whether to use ANSI colors
            timestamps: Whether to add [HH:MM:SS] after the level
        """
        super().__init__()
        self.use_colors = use_colors
        self.timestamps = timestamps

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record."""
        level = f"[{record.levelname}]"
        if self.use_colors:
            color = LEVEL_COLORS.get(record.levelno, Colors.RESET)
            level = f"{color}{level}{Colors.RESET}"

        if self.timestamps:
            stamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
            level = f"{level}[{stamp}]"

        message = f"{level} {record.getMessage()}"
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        return message


class JSONFormatter(logging.Formatter):
    """Formatter for JSON lines output (machine-readable).

    Format: {"level":"INFO","ts":"2026-01-31T19:45:23+00:00","logger":"...","msg":"..."}
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record as JSON."""
        log_entry: dict[str, Any] = {
            "level": record.levelname,
            "ts": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "logger": record.name,
            "msg": record.getMessage(),
        }

        extra_data = getattr(record, "extra_data", None)
        if extra_data:
            log_entry.update(extra_data)

        return json.dumps(log_entry)


class SonarCheckLogger(logging.Logger):
    """Logger with structured logging support."""

    def structured(
        self,
        level: int,
        msg: str,
        *args: Any,
        **kwargs: Any,
    ) -> None:
        """Log a message with additional structured data.

        In JSON mode the keyword arguments become top-level fields of the line;
        the other formatters ignore them.

        Args:
            level: Log level
            msg: Log message (%-style)
            *args: Message arguments
            **kwargs: Additional data to include in JSON output
        """
        if not self.isEnabledFor(level):
            return
        self._log(level, msg, args, extra={"extra_data": kwargs} if kwargs else None)


logging.setLoggerClass(SonarCheckLogger)


def get_logger(name: str = ROOT_LOGGER) -> SonarCheckLogger:
    """Get a Sonarcheck logger instance.

    Args:
        name: Logger name (module loggers live under "sonarcheck.")

    Returns:
        SonarCheckLogger instance
    """
    return logging.getLogger(name)  # type: ignore[return-value]


def setup_logging(
    mode: LogMode = LogMode.HUMAN,
    level: int = logging.WARNING,
    stream: TextIO | None = None,
) -> None:
    """Configure the sonarcheck logger hierarchy.

    Args:
        mode: Output mode (human, verbose, json)
        level: Minimum log level
        stream: Output stream (default: stdout)
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    use_colors = _is_tty(stream)

    if mode == LogMode.JSON:
        formatter: logging.Formatter = JSONFormatter()
    else:
        formatter = HumanFormatter(use_colors=use_colors, timestamps=mode == LogMode.VERBOSE)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def configure_from_cli(
    verbose: bool = False,
    debug: bool = False,
    ci: bool = False,
    stream: TextIO | None = None,
) -> None:
    """Configure logging based on CLI flags.

    Args:
        verbose: Report passed/ignored dependencies, with timestamps
        debug: Also report raw responses and matching detail
        ci: Enable JSON output for CI/CD
        stream: Output stream (default: stdout)
    """
    if ci:
        mode = LogMode.JSON
    elif verbose or debug:
        mode = LogMode.VERBOSE
    else:
        mode = LogMode.HUMAN

    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    setup_logging(mode=mode, level=level, stream=stream)
