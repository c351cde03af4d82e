# tests/test_cli.py
"""Tests for CLI argument parsing and process exit codes."""

import sys
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from gptcli.cli import _parse_args, main
from gptcli.config import PANIC_LOG_FILE
from gptcli.runner import RunConfig


class TestParseArgs:
    """Tests for command line parsing."""

    def test_defaults(self):
        """No arguments should give the default RunConfig."""
        with patch.object(sys, "argv", ["gptcli"]):
            config = _parse_args()
        assert config == RunConfig()
        assert config.initial_message is None

    def test_words_become_first_message(self):
        """Positional words should be joined into the first message."""
        config = _parse_args(["how", "do", "I", "exit", "vim"])
        assert config.initial_message == "how do I exit vim"

    def test_c_skips_first_message(self):
        """A leading "c" should go straight to the prompt."""
        config = _parse_args(["c"])
        assert config.message == ["c"]
        assert config.initial_message is None

    def test_options(self, tmp_path):
        """Every option should land on its RunConfig field."""
        config = _parse_args([
            "--model", "gpt-4o",
            "--config-dir", str(tmp_path / "cfg"),
            "--data-dir", str(tmp_path / "data"),
            "--inline-code",
            "--seed", "42",
            "--debug",
        ])

        assert config.model == "gpt-4o"
        assert config.config_dir == tmp_path / "cfg"
        assert config.data_dir == tmp_path / "data"
        assert config.inline_code is True
        assert config.seed == 42
        assert config.debug is True

    def test_short_model_flag(self):
        """-m should work like --model."""
        assert _parse_args(["-m", "gpt-4o"]).model == "gpt-4o"

    def test_resolved_dirs_fall_back_to_platform(self):
        """Unset directories should resolve to platform defaults."""
        config = RunConfig()
        assert isinstance(config.resolved_config_dir(), Path)
        assert config.resolved_data_dir().name == "gptcli"


class TestMain:
    """Tests for the process entry point."""

    def _run_main(self, argv, run_mock):
        with (
            patch.object(sys, "argv", ["gptcli", *argv]),
            patch("gptcli.cli._install_signal_handlers"),
            patch("gptcli.cli.run", run_mock),
            pytest.raises(SystemExit) as excinfo,
        ):
            main()
        return excinfo.value.code

    def test_success(self, tmp_path):
        """A clean run should exit 0."""
        run_mock = AsyncMock(return_value=0)
        assert self._run_main(["--data-dir", str(tmp_path)], run_mock) == 0
        run_mock.assert_awaited_once()

    def test_setup_failure_code_passes_through(self, tmp_path):
        """The run's own exit code should be used."""
        assert self._run_main(["--data-dir", str(tmp_path)], AsyncMock(return_value=1)) == 1

    def test_interrupt(self, tmp_path):
        """Ctrl-C should exit 130."""
        run_mock = AsyncMock(side_effect=KeyboardInterrupt)
        assert self._run_main(["--data-dir", str(tmp_path)], run_mock) == 130

    def test_fatal_error_writes_panic_log(self, tmp_path):
        """An unexpected error should exit 1 and leave a traceback in panic.log."""
        run_mock = AsyncMock(side_effect=RuntimeError("kaboom"))

        assert self._run_main(["--data-dir", str(tmp_path)], run_mock) == 1

        panic = (tmp_path / PANIC_LOG_FILE).read_text(encoding="utf-8")
        assert "RuntimeError: kaboom" in panic
