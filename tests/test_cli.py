"""Tests for the command-line entry point."""

import logging
from unittest.mock import patch

import pytest

from mermaid_studio import mcp_server
from mermaid_studio.__main__ import _build_parser, _load_settings, main


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


class TestParser:

    def test_options_before_or_after_subcommand(self, tmp_path):
        before = _build_parser().parse_args(["--data-dir", str(tmp_path), "serve", "--port", "9000"])
        after = _build_parser().parse_args(["serve", "--data-dir", str(tmp_path), "--port", "9000"])
        assert before.data_dir == after.data_dir == str(tmp_path)
        assert before.port == after.port == 9000

    def test_overrides_reach_settings(self, tmp_path):
        args = _build_parser().parse_args(["serve", "--data-dir", str(tmp_path), "--host", "0.0.0.0", "--log-level", "debug"])
        config = _load_settings(args)
        assert config.data_dir == tmp_path
        assert config.host == "0.0.0.0"
        assert config.log_level == "DEBUG"

    def test_mcp_has_no_port(self):
        with pytest.raises(SystemExit):
            _build_parser().parse_args(["mcp", "--port", "1"])


def test_serve_runs_uvicorn(tmp_path):
    with patch("uvicorn.run") as mock_run:
        main(["--data-dir", str(tmp_path), "serve", "--port", "9100"])

    assert mock_run.call_args.kwargs["port"] == 9100
    assert mock_run.call_args.kwargs["host"] == "127.0.0.1"


def test_default_command_is_serve(tmp_path):
    with patch("uvicorn.run") as mock_run:
        main(["--data-dir", str(tmp_path)])
    mock_run.assert_called_once()


def test_mcp_runs_stdio_server(tmp_path):
    try:
        with patch.object(mcp_server, "main") as mock_main:
            main(["mcp", "--data-dir", str(tmp_path)])
        mock_main.assert_called_once()
        assert mcp_server._get_commands().diagrams.diagrams_dir == tmp_path / "diagrams"
    finally:
        mcp_server.configure(None)


def test_invalid_log_level_exits(tmp_path):
    with pytest.raises(SystemExit) as exc_info:
        main(["--data-dir", str(tmp_path), "--log-level", "LOUD"])
    assert exc_info.value.code == 2
