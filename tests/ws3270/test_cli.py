"""Unit tests for CLI argument parsing and env var application."""

import argparse
import os
from pathlib import Path

import pytest

from ws3270.cli import _FLAG_TO_ENV, _positive_float, apply_args_to_env, parse_args

_ALL_ENV_VARS = ["WS3270_LOG_LEVEL", *[env for _, env in _FLAG_TO_ENV]]


@pytest.fixture(autouse=True)
def _clean_env():
    """Ensure apply_args_to_env changes don't leak between tests."""
    saved = {var: os.environ.get(var) for var in _ALL_ENV_VARS}
    yield
    for var, value in saved.items():
        if value is None:
            os.environ.pop(var, None)
        else:
            os.environ[var] = value


class TestParseArgs:
    def test_no_args(self):
        args = parse_args([])
        assert args.version is False
        assert args.verbose is False
        assert args.log_level is None
        assert args.url is None
        assert args.trace_file is None
        assert args.heartbeat is None
        assert args.command == "run"

    def test_version_flag(self):
        assert parse_args(["--version"]).version is True

    def test_verbose_short(self):
        assert parse_args(["-v"]).verbose is True

    def test_log_level(self):
        assert parse_args(["--log-level", "WARNING"]).log_level == "WARNING"

    def test_invalid_log_level(self):
        with pytest.raises(SystemExit):
            parse_args(["--log-level", "CHATTY"])

    def test_replay_command(self):
        args = parse_args(["replay", "--trace-file", "t.jsonl"])
        assert args.command == "replay"
        assert args.trace_file == Path("t.jsonl")

    def test_unknown_command(self):
        with pytest.raises(SystemExit):
            parse_args(["dance"])

    def test_all_flags(self):
        args = parse_args(
            [
                "--config-dir",
                "/tmp/cfg",
                "--url",
                "ws://host:1/ws",
                "--heartbeat",
                "5",
                "run",
            ]
        )
        assert args.config_dir == Path("/tmp/cfg")
        assert args.url == "ws://host:1/ws"
        assert args.heartbeat == 5.0


class TestPositiveFloat:
    def test_accepts_positive(self):
        assert _positive_float("0.5") == 0.5

    @pytest.mark.parametrize("value", ["0", "-1"])
    def test_rejects_non_positive(self, value):
        with pytest.raises(argparse.ArgumentTypeError):
            _positive_float(value)

    def test_heartbeat_flag_rejects_zero(self):
        with pytest.raises(SystemExit):
            parse_args(["--heartbeat", "0"])


class TestApplyArgsToEnv:
    def test_verbose_sets_debug(self):
        apply_args_to_env(parse_args(["-v", "--log-level", "ERROR"]))
        assert os.environ["WS3270_LOG_LEVEL"] == "DEBUG"

    def test_log_level(self):
        apply_args_to_env(parse_args(["--log-level", "WARNING"]))
        assert os.environ["WS3270_LOG_LEVEL"] == "WARNING"

    def test_url_and_heartbeat(self):
        apply_args_to_env(parse_args(["--url", "ws://h:2/ws", "--heartbeat", "7.5"]))
        assert os.environ["WS3270_URL"] == "ws://h:2/ws"
        assert os.environ["WS3270_HEARTBEAT"] == "7.5"

    def test_paths_resolved(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        apply_args_to_env(parse_args(["--trace-file", "rec.jsonl"]))
        assert os.environ["WS3270_TRACE_FILE"] == str(tmp_path.resolve() / "rec.jsonl")

    def test_unset_flags_leave_env_alone(self, monkeypatch):
        monkeypatch.setenv("WS3270_URL", "ws://kept:1/ws")
        apply_args_to_env(parse_args([]))
        assert os.environ["WS3270_URL"] == "ws://kept:1/ws"
