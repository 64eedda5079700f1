"""Unit tests for logging setup."""

import logging
from pathlib import Path

from dotstate.utils.logger import setup_logging
from rich.logging import RichHandler


def _console_handler(logger: logging.Logger) -> RichHandler:
    return next(h for h in logger.handlers if isinstance(h, RichHandler))


class TestSetupLogging:
    """Tests for setup_logging function."""

    def test_default_levels(self, tmp_path: Path) -> None:
        """Console shows warnings, the file gets everything."""
        logger = setup_logging(log_file=tmp_path / "dotstate.log")

        assert logger.name == "dotstate"
        assert not logger.propagate
        assert _console_handler(logger).level == logging.WARNING
        file_handler = next(h for h in logger.handlers if isinstance(h, logging.FileHandler))
        assert file_handler.level == logging.DEBUG

    def test_verbose_and_quiet(self, tmp_path: Path) -> None:
        """verbose lowers and quiet raises the console level."""
        log_file = tmp_path / "dotstate.log"

        assert _console_handler(setup_logging(verbose=True, log_file=log_file)).level == (
            logging.DEBUG
        )
        assert _console_handler(setup_logging(quiet=True, log_file=log_file)).level == (
            logging.ERROR
        )

    def test_writes_log_file(self, tmp_path: Path) -> None:
        """Module loggers below dotstate reach the log file."""
        log_file = tmp_path / "logs" / "dotstate.log"
        logger = setup_logging(log_file=log_file)

        logging.getLogger("dotstate.symlinks.engine").debug("linked %s", ".zshrc")
        for handler in logger.handlers:
            handler.flush()

        assert "linked .zshrc" in log_file.read_text()
        assert "[DEBUG] dotstate.symlinks.engine" in log_file.read_text()

    def test_repeated_setup_replaces_handlers(self, tmp_path: Path) -> None:
        """Calling setup twice does not duplicate handlers."""
        setup_logging(log_file=tmp_path / "a.log")
        logger = setup_logging(log_file=tmp_path / "a.log")

        assert len(logger.handlers) == 2

    def test_unwritable_log_file(self, tmp_path: Path) -> None:
        """A log path that cannot be opened only drops the file handler."""
        blocker = tmp_path / "blocker"
        blocker.write_text("x")

        logger = setup_logging(log_file=blocker / "dotstate.log")

        assert len(logger.handlers) == 1
