"""Logging setup for the CLI.

Library modules only create module-level loggers; handlers are attached
here, once, on the ``dotstate`` logger.
"""

import logging
from pathlib import Path

from rich.logging import RichHandler

from dotstate.core.paths import APP_NAME, ensure_dir, get_log_path
from dotstate.utils.formatting import err_console

FILE_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(
    verbose: bool = False, quiet: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Configure the ``dotstate`` logger.

    Console output goes to stderr through Rich at WARNING (DEBUG when
    verbose, ERROR when quiet). Everything from DEBUG up is also appended
    to the log file. A log file that cannot be opened is skipped with a
    warning.

    Args:
        verbose: Show debug messages on the console.
        quiet: Only show errors on the console.
        log_file: Log file location; defaults to the standard log path.

    Returns:
        The configured logger.
    """
    logger = logging.getLogger(APP_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    console_handler = RichHandler(
        console=err_console,
        show_time=False,
        show_path=False,
        rich_tracebacks=verbose,
    )
    if verbose:
        console_handler.setLevel(logging.DEBUG)
    elif quiet:
        console_handler.setLevel(logging.ERROR)
    else:
        console_handler.setLevel(logging.WARNING)
    logger.addHandler(console_handler)

    path = log_file or get_log_path()
    try:
        ensure_dir(path.parent, "log")
        file_handler = logging.FileHandler(path, mode="a", encoding="utf-8")
    except (OSError, RuntimeError) as e:
        logger.warning("Cannot write log file %s: %s", path, e)
    else:
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
        file_handler.setLevel(logging.DEBUG)
        logger.addHandler(file_handler)

    return logger
