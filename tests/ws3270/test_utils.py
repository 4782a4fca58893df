import asyncio
import logging
from pathlib import Path

import pytest

from ws3270.utils import task_done_callback, ws3270_dir

pytestmark = pytest.mark.usefixtures("structlog_to_stdlib")


def test_ws3270_dir_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("WS3270_DIR", str(tmp_path))
    assert ws3270_dir() == tmp_path


def test_ws3270_dir_default(monkeypatch):
    monkeypatch.delenv("WS3270_DIR", raising=False)
    assert ws3270_dir() == Path.home() / ".ws3270"


async def test_task_done_callback_logs_exception(
    caplog: pytest.LogCaptureFixture,
) -> None:
    async def _failing() -> None:
        raise RuntimeError("boom")

    with caplog.at_level(logging.ERROR):
        task = asyncio.create_task(_failing())
        task.add_done_callback(task_done_callback)
        with pytest.raises(RuntimeError):
            await task
        await asyncio.sleep(0)
    assert "boom" in caplog.text
    assert "Background task" in caplog.text


async def test_task_done_callback_ignores_cancelled() -> None:
    async def _forever() -> None:
        await asyncio.sleep(999)

    task = asyncio.create_task(_forever())
    task.add_done_callback(task_done_callback)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task


async def test_task_done_callback_ignores_success(
    caplog: pytest.LogCaptureFixture,
) -> None:
    async def _ok() -> None:
        pass

    with caplog.at_level(logging.ERROR):
        task = asyncio.create_task(_ok())
        task.add_done_callback(task_done_callback)
        await task
        await asyncio.sleep(0)
    assert "Background task" not in caplog.text
