"""Logging utilities with rich console output.

Every moonsync module logs through a named logger that writes via rich,
so decoder diagnostics and CLI summaries share one console.

Usage:
    from common.logger import get_logger

    logger = get_logger(__name__)
    logger.info("Reading cache folder...")
    logger.debug("Skipping corrupt annotation file")
"""

import logging

from rich.console import Console
from rich.logging import RichHandler

from .env import env

# Shared console so log records and CLI output interleave cleanly
console = Console()
err_console = Console(stderr=True)


def _rich_handler(show_time: bool = False, show_path: bool = False) -> RichHandler:
    handler = RichHandler(
        console=console,
        show_time=show_time,
        show_path=show_path,
        rich_tracebacks=True,
        tracebacks_show_locals=True,
        markup=True,
    )
    handler.setFormatter(logging.Formatter(fmt="%(message)s", datefmt="[%X]"))
    return handler


def get_logger(
    name: str,
    level: str | None = None,
    show_time: bool = False,
    show_path: bool = False,
) -> logging.Logger:
    """Get a configured logger with rich output.

    Args:
        name: Logger name (typically __name__ of the module)
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
               If None, uses environment variable LOG_LEVEL or defaults to INFO.
        show_time: Show timestamp in log output
        show_path: Show file path in log output

    Returns:
        Configured logger instance

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Parsed 12 annotation files")
        Parsed 12 annotation files
    """
    logger = logging.getLogger(name)

    # Avoid adding multiple handlers if logger already configured
    if logger.handlers:
        return logger

    logger.setLevel((level or env.log_level()).upper())
    logger.addHandler(_rich_handler(show_time=show_time, show_path=show_path))

    # pytest caplog captures through propagation
    logger.propagate = True

    return logger


def _rich_loggers() -> list[logging.Logger]:
    """Loggers created by get_logger()."""
    return [
        logger
        for logger in logging.root.manager.loggerDict.values()
        if isinstance(logger, logging.Logger)
        and any(isinstance(h, RichHandler) for h in logger.handlers)
    ]


def setup_logging(
    level: str | None = None,
    log_file: str | None = None,
    stderr: bool = False,
) -> None:
    """Configure logging once at the CLI entry point.

    Module loggers keep their own rich handler; this applies the level to
    all of them and optionally mirrors every record to a file through the
    root logger.

    Args:
        level: Logging level for all modules (default: LOG_LEVEL or INFO)
        log_file: Optional file path to also log to a file
        stderr: Write log records to stderr, leaving stdout to the command
    """
    level = (level or env.log_level()).upper()
    target = err_console if stderr else console

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    for logger in _rich_loggers():
        logger.setLevel(level)
        for handler in logger.handlers:
            if isinstance(handler, RichHandler):
                handler.console = target

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        root_logger.addHandler(file_handler)


def progress(message: str) -> None:
    """Print a progress line without the logger prefix."""
    console.print(message)


def success(message: str) -> None:
    """Print a success line with a green checkmark.

    Example:
        >>> success("Reconciled 42 books")
        ✓ Reconciled 42 books
    """
    console.print(f"[green]✓[/green] {message}")


def warning(message: str) -> None:
    """Print a warning line with a yellow warning icon."""
    console.print(f"[yellow]⚠[/yellow] {message}")


def error(message: str) -> None:
    """Print an error line with a red X icon to stderr."""
    err_console.print(f"[red]✗[/red] {message}")
