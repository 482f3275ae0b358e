"""Logging setup shared by the CLI commands.

Library modules log through ``logging.getLogger(__name__)``. The CLI calls
:func:`configure_logging` once, which renders records on the terminal with
rich and optionally mirrors them to a plain-text log file (for example
``ci-logs/<sha>/auto-pr.log``) that is later committed with the CI logs.
"""

import logging
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

PACKAGE_LOGGER = "photo_pipeline"
SUCCESS = 25
FILE_FORMAT = "%(asctime)s %(levelname)-7s [%(name)s] %(message)s"

logging.addLevelName(SUCCESS, "SUCCESS")


def configure_logging(
    verbose: bool = False,
    log_file: Path | str | None = None,
    console: Console | None = None,
) -> logging.Logger:
    """Attach terminal and optional file handlers to the package logger.

    Calling it again replaces the handlers installed by a previous call,
    so commands can switch to a per-commit log file once the SHA is known.

    Args:
        verbose: Show DEBUG records on the terminal
        log_file: Path of a log file to (re)create and append records to
        console: Rich console to render to (defaults to stderr)

    Returns:
        The package logger
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        if getattr(handler, "_photo_pipeline", False):
            logger.removeHandler(handler)
            handler.close()

    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    rich_handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )
    rich_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
    rich_handler._photo_pipeline = True  # type: ignore[attr-defined]
    logger.addHandler(rich_handler)

    if log_file is not None:
        add_file_handler(log_file)

    return logger


def add_file_handler(log_file: Path | str) -> Path:
    """Mirror package log records into ``log_file``.

    The file is truncated first and its parent directory created.
    """
    path = Path(log_file)
    path.parent.mkdir(parents=True, exist_ok=True)

    file_handler = logging.FileHandler(path, mode="w", encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
    file_handler._photo_pipeline = True  # type: ignore[attr-defined]
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(logging.DEBUG)
    package_logger.addHandler(file_handler)
    return path


def log_success(logger: logging.Logger, message: str, *args: object) -> None:
    logger.log(SUCCESS, message, *args)


def log_section(logger: logging.Logger, title: str) -> None:
    """Emit a banner that separates the phases of a workflow."""
    separator = "=" * (len(title) + 8)
    logger.info("")
    logger.info(separator)
    logger.info("=== %s ===", title)
    logger.info(separator)
    logger.info("")


def log_subsection(logger: logging.Logger, title: str) -> None:
    logger.info("")
    logger.info("--- %s ---", title)
