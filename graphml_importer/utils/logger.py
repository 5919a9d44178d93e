# -*- coding: utf-8 -*-
"""
Log handler setup for the importer.

setup_logging() installs a stdout handler, plus an append-mode file handler
when a log file is given, and quiets the neo4j driver below WARNING. The CLI
calls it once; modules just ask get_logger(__name__) for their logger.

Examples:
    # In the entry point
    from graphml_importer.utils.logger import setup_logging
    setup_logging(log_file="logs/import.log")

    # Per module
    from graphml_importer.utils.logger import get_logger
    logger = get_logger(__name__)
    logger.info("Nodes progress: 5000/12000")

"""
# Standard library
import logging
import sys
from pathlib import Path
from typing import Optional, Union

DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Set after the first setup_logging() call
_logging_configured = False


def parse_level(level: Union[int, str, None], default: int = logging.INFO) -> int:
    """
    Convert a level name such as "debug" or "WARNING" into a logging level.

    Unknown names fall back to the default level.
    """
    if level is None or level == "":
        return default
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).strip().upper())
    return resolved if isinstance(resolved, int) else default


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_file: Optional[str] = None,
    format_string: str = DEFAULT_FORMAT,
    force: bool = False
) -> None:
    """
    Install root handlers for stdout and, optionally, a log file.

    Later calls are no-ops unless force is passed.

    Args:
        level: Logging level or level name (default: logging.INFO)
        log_file: Optional path to log file. Parent directories are created
                  and records are appended in addition to console output
        format_string: Log message format
        force: Reconfigure even if logging was already set up

    Example:
        >>> setup_logging(level="debug", log_file="logs/import.log")
    """
    global _logging_configured

    if _logging_configured and not force:
        return

    level = parse_level(level)
    formatter = logging.Formatter(format_string)

    handlers = []

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    handlers.append(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    logging.basicConfig(
        level=level,
        handlers=handlers,
        force=True
    )

    # The neo4j driver is chatty at INFO (notifications about deprecated id())
    logging.getLogger("neo4j").setLevel(max(level, logging.WARNING))

    _logging_configured = True


def get_logger(name: str) -> logging.Logger:
    """Return the named logger; handlers come from setup_logging()."""
    return logging.getLogger(name)
