"""Logging utilities for visium-concordance.

Provides console / file logger setup and structured run records
(YAML documents).
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Optional, Union

import yaml

PathLike = Union[str, Path]

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def get_timestamped_log_path(log_path: PathLike) -> Path:
    """Generate a timestamped log path from the base log path.

    Example: concordance.log -> concordance_20261017_080530.log

    Parameters
    ----------
    log_path : PathLike
        Base log file path.

    Returns
    -------
    Path
        Timestamped log path.
    """
    log_path = Path(log_path)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    stem = log_path.stem
    suffix = log_path.suffix or ".log"
    return log_path.parent / f"{stem}_{timestamp}{suffix}"


def setup_logging(
    verbose: bool = False,
    log_dir: Optional[PathLike] = None,
    log_filename: str = "concordance.log",
    name: str = "visium_concordance",
    timestamped: bool = True,
) -> logging.Logger:
    """Configure the package logger with a console and optional file handler.

    Parameters
    ----------
    verbose : bool
        Enable verbose (DEBUG) logging
    log_dir : PathLike, optional
        Directory for the log file (console only if None)
    log_filename : str
        Base log file name
    name : str
        Logger name
    timestamped : bool
        Add a timestamp to the log file name to keep previous logs

    Returns
    -------
    logging.Logger
        Configured logger
    """
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(formatter)
    logger.addHandler(console)

    if log_dir:
        log_path = Path(log_dir) / log_filename
        if timestamped:
            log_path = get_timestamped_log_path(log_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
        logger.info("Log file: %s", log_path)

    return logger


def _prepare_log_destination(log_path: PathLike) -> Path:
    """Ensure log destination directory exists."""
    path = Path(log_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def log_yaml(
    log_path: Optional[PathLike],
    record: dict[str, Any],
    *,
    logger: logging.Logger | None = None,
) -> None:
    """Append a YAML document to log_path.

    Parameters
    ----------
    log_path : PathLike
        Path to log file. Ignored when ``logger`` is given.
    record : dict
        Dictionary to serialize as YAML.
    logger : logging.Logger, optional
        If provided, log to this logger instead of file.
    """
    yaml_text = yaml.safe_dump(record, sort_keys=False).rstrip("\n")
    message = f"{yaml_text}\n---"
    if logger is not None:
        logger.info("%s", message)
        return

    path = _prepare_log_destination(log_path)
    with path.open("a", encoding="utf-8") as handle:
        handle.write(message)
        handle.write("\n")
