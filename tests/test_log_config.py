"""
Unit tests for command-line logging setup.
"""

import logging

import pytest
import structlog

from asset_snapshot.core.log_config import configure_logging


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    structlog.reset_defaults()
    root.handlers[:] = handlers
    root.setLevel(level)


class TestConfigureLogging:
    """Test structlog routing"""

    def test_events_go_to_stderr(self, capsys, restore_logging):
        """stdout stays free for report and JSON output"""
        configure_logging()

        structlog.get_logger("asset_snapshot.test").info("snapshot_assembled", pages=2)

        captured = capsys.readouterr()
        assert captured.out == ""
        assert "snapshot_assembled" in captured.err
        assert "pages=2" in captured.err

    def test_debug_only_when_verbose(self, capsys, restore_logging):
        configure_logging(verbose=False)
        structlog.get_logger("asset_snapshot.test").debug("quiet_event")
        assert "quiet_event" not in capsys.readouterr().err

        configure_logging(verbose=True)
        structlog.get_logger("asset_snapshot.test").debug("loud_event")
        assert "loud_event" in capsys.readouterr().err
