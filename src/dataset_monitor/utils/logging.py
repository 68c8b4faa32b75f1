"""
Logging configuration for dataset-monitor.

Console output goes through Rich (or a plain formatter), with an optional
plain-text file log next to it.
"""

import logging
import sys
from pathlib import Path
from typing import Any

from rich.logging import RichHandler

ROOT_LOGGER_NAME = "dataset_monitor"


class FileFormatter(logging.Formatter):
    """Formatter for file logs - clean and parseable."""

    def __init__(self) -> None:
        super().__init__(fmt="%(asctime)s [%(levelname)-8s] %(name)s: %(message)s", datefmt="%Y-%m-%d %H:%M:%S")


class ConsoleFormatter(logging.Formatter):
    """Plain console format: "level: timestamp - msg", with file:line for errors."""

    def __init__(self) -> None:
        super().__init__(datefmt="%Y-%m-%d %H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        if record.levelno >= logging.ERROR and record.pathname:
            filename = Path(record.pathname).name
            line = f"{record.levelname}: {self.formatTime(record)} - {filename}:{record.lineno} - {message}"
        else:
            line = f"{record.levelname}: {self.formatTime(record)} - {message}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


# Map string level names to logging constants
LEVEL_MAP = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def _parse_level(level: str | int) -> int:
    """
    Parse logging level from string or int.

    Args:
        level: Logging level as string (DEBUG, INFO, etc.) or int

    Returns:
        Logging level constant (INFO when the name is unknown)
    """
    if isinstance(level, int):
        return level
    if isinstance(level, str):
        level_upper = level.upper()
        if level_upper in LEVEL_MAP:
            return LEVEL_MAP[level_upper]
    return logging.INFO


def setup_logging(
    level: str | int = logging.INFO,
    log_file: str | Path | None = None,
    format_string: str | None = None,
    file_mode: str = "a",
    console_enabled: bool = True,
    use_rich: bool = True,
) -> logging.Logger:
    """
    Setup logging configuration for dataset-monitor.

    Args:
        level: Logging level as string (DEBUG, INFO, etc.) or int (default: INFO)
        log_file: Optional file path to write logs to (default: None, console only)
        format_string: Optional custom format string for the plain console handler
        file_mode: File mode for file handler - 'a' for append, 'w' for overwrite (default: 'a')
        console_enabled: Whether to enable console logging (default: True)
        use_rich: Whether to use Rich's RichHandler for console output (default: True)

    Returns:
        Logger instance
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)

    # Remove existing handlers to avoid duplicates on repeated setup
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    level_int = _parse_level(level)
    logger.setLevel(level_int)

    if console_enabled:
        if use_rich:
            console_handler: logging.Handler = RichHandler(
                level=level_int,
                show_time=True,
                show_path=True,
                markup=False,
                rich_tracebacks=True,
                tracebacks_show_locals=False,
                log_time_format="[%X]",
                omit_repeated_times=False,
            )
        else:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setLevel(level_int)
            if format_string is None:
                console_handler.setFormatter(ConsoleFormatter())
            else:
                console_handler.setFormatter(logging.Formatter(format_string))
        logger.addHandler(console_handler)

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file, mode=file_mode)
        # File captures everything the logger lets through
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(FileFormatter())
        logger.addHandler(file_handler)

    return logger


def setup_logging_from_config(
    config: dict[str, Any],
    project_dir: Path | None = None,
    level_override: str | int | None = None,
) -> logging.Logger:
    """
    Setup logging from the ``logging:`` section of the configuration.

    Args:
        config: Full configuration dictionary
        project_dir: Optional project directory for resolving relative log file paths
        level_override: Level that wins over the configured one (e.g. from --verbose)

    Returns:
        Logger instance
    """
    logging_config = config.get("logging") or {}

    level = level_override if level_override is not None else logging_config.get("level", logging.INFO)
    file_mode = logging_config.get("file_mode", "a")
    format_string = logging_config.get("format")

    log_file = logging_config.get("file") or logging_config.get("log_file")
    if log_file and project_dir:
        log_file = Path(log_file)
        if not log_file.is_absolute():
            log_file = project_dir / log_file

    console_enabled = logging_config.get("console_enabled", True)
    console_type = logging_config.get("console_type", "rich")

    return setup_logging(
        level=level,
        log_file=log_file,
        format_string=format_string,
        file_mode=file_mode,
        console_enabled=console_enabled,
        use_rich=console_type == "rich",
    )


def get_logger(name: str = ROOT_LOGGER_NAME) -> logging.Logger:
    """
    Get a logger instance.

    Args:
        name: Logger name (default: "dataset_monitor")

    Returns:
        Logger instance
    """
    logger = logging.getLogger(name)
    # Child loggers hand records up to the handlers installed by setup_logging()
    logger.propagate = True
    return logger
