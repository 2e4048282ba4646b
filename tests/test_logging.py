"""Tests for console helpers and structlog configuration."""

import json
import logging
import logging.handlers
from contextlib import ExitStack
from pathlib import Path
from unittest.mock import patch

import pytest
import structlog

from uid_io_monitor import logging as console
from uid_io_monitor.config import Config


@pytest.fixture
def restore_logging():
    """Restore stdlib root handlers and structlog defaults after a test."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
    structlog.reset_defaults()


def _patch_state_paths(stack: ExitStack, base_path: Path) -> None:
    # fmt: off
    stack.enter_context(patch.object(
        Config, "state_dir",
        new_callable=lambda: property(lambda self: base_path)
    ))
    stack.enter_context(patch.object(
        Config, "log_path",
        new_callable=lambda: property(lambda self: base_path / "daemon.log")
    ))
    # fmt: on


class TestConfigure:
    """Tests for configure()."""

    def test_writes_json_lines(self, tmp_path: Path, restore_logging) -> None:
        state_dir = tmp_path / "state"
        with ExitStack() as stack:
            _patch_state_paths(stack, state_dir)
            config = Config()
            console.configure(config)

            structlog.get_logger().info("uid_io_primed", uids=3)

            lines = (state_dir / "daemon.log").read_text().splitlines()

        record = json.loads(lines[-1])
        assert record["event"] == "uid_io_primed"
        assert record["uids"] == 3
        assert record["level"] == "info"

    def test_installs_rotating_file_handler(self, tmp_path: Path, restore_logging) -> None:
        with ExitStack() as stack:
            _patch_state_paths(stack, tmp_path / "state")
            config = Config()
            config.system.log_max_bytes = 1024
            config.system.log_backup_count = 2
            console.configure(config)

        file_handlers = [
            h
            for h in logging.getLogger().handlers
            if isinstance(h, logging.handlers.RotatingFileHandler)
        ]
        assert len(file_handlers) == 1
        assert file_handlers[0].maxBytes == 1024
        assert file_handlers[0].backupCount == 2

    def test_debug_events_are_filtered(self, tmp_path: Path, restore_logging) -> None:
        state_dir = tmp_path / "state"
        with ExitStack() as stack:
            _patch_state_paths(stack, state_dir)
            console.configure(Config())
            structlog.get_logger().debug("noise")
            text = (state_dir / "daemon.log").read_text()

        assert "noise" not in text


class TestConsoleHelpers:
    """Tests for human-facing console output."""

    def test_report_is_printed_verbatim(self, capsys) -> None:
        text = "[IO_TOTAL: 1.000s] RD:0 WR:0 fsync:0\n[R1:100.00%] [bold]x[/] : 10082 -\n"
        console.report(text)
        out = capsys.readouterr().out
        assert "[IO_TOTAL: 1.000s] RD:0 WR:0 fsync:0" in out
        assert "[bold]x[/]" in out

    def test_option_rejected_mentions_key(self, capsys) -> None:
        console.option_rejected("iostats.min", "abc")
        out = capsys.readouterr().out
        assert "iostats.min" in out
        assert "warn" in out

    def test_daemon_started_shows_interval(self, capsys) -> None:
        console.daemon_started(2.5)
        assert "every 2.5s" in capsys.readouterr().out
