"""Tests for main — command dispatch and the offline replay command."""

import json

import pytest

from ws3270 import __version__
from ws3270 import main as main_module

pytestmark = pytest.mark.usefixtures("structlog_to_stdlib")


@pytest.fixture
def _config_with_trace(monkeypatch, tmp_path):
    from ws3270.config import config

    path = tmp_path / "trace.jsonl"
    monkeypatch.setattr(config, "trace_file", path)
    return path


def test_version(capsys):
    main_module.main(["--version"])
    assert capsys.readouterr().out.strip() == f"ws3270 {__version__}"


def test_replay_without_trace_file(monkeypatch, capsys):
    from ws3270.config import config

    monkeypatch.setattr(config, "trace_file", None)
    assert main_module.replay() == 2
    assert "--trace-file" in capsys.readouterr().err


def test_replay_missing_file(_config_with_trace, capsys):
    assert main_module.replay() == 1
    assert "cannot read" in capsys.readouterr().err


def test_replay_prints_screen_and_status(_config_with_trace, capsys):
    _config_with_trace.write_text(
        "\n".join(
            [
                json.dumps({"screen-mode": {"model": 2, "rows": 3, "columns": 20}}),
                json.dumps(
                    {
                        "screen": {
                            "cursor": {"enabled": True, "row": 2, "column": 4},
                            "rows": [{"row": 2, "changes": [{"column": 1, "text": "LOGON"}]}],
                        }
                    }
                ),
            ]
        ),
        encoding="utf-8",
    )
    assert main_module.replay() == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines[:3] == ["", "LOGON", ""]
    assert lines[3].endswith("004/002")
