"""Tests for logger setup."""

import sys

import pytest
from loguru import logger

from meta_rpc.initialization.logging import LOG_SYMLINK_NAME, setup_logging


@pytest.fixture(autouse=True)
def restore_logger():
    yield
    logger.remove()
    logger.add(sys.stderr)


class TestSetupLogging:
    """Test stderr and file logging modes."""

    def test_stderr_mode(self, tmp_path):
        assert setup_logging(tmp_path) is None
        assert list(tmp_path.iterdir()) == []

    def test_quiet_mode_writes_file(self, tmp_path):
        logfile = setup_logging(tmp_path, quiet=True, level="DEBUG")

        logger.info("service started")
        logger.remove()

        assert logfile.parent == tmp_path
        assert "service started" in logfile.read_text()

        symlink = tmp_path / LOG_SYMLINK_NAME
        assert symlink.is_symlink()
        assert symlink.resolve() == logfile.resolve()

    def test_symlink_replaced(self, tmp_path):
        (tmp_path / LOG_SYMLINK_NAME).symlink_to("old.log")

        logfile = setup_logging(tmp_path, quiet=True)
        logger.remove()

        assert (tmp_path / LOG_SYMLINK_NAME).resolve() == logfile.resolve()
