"""Inbound message trace — record raw indications and replay them later.

TraceRecorder appends every raw inbound message as one JSONL line before it
is decoded, so a trace also captures messages that later fail to decode.
replay_trace() feeds a recorded trace through a dispatcher, which rebuilds
the screen and status strip offline.
"""

from pathlib import Path

import aiofiles
import structlog

from .dispatcher import IndicationDispatcher
from .protocol import DecodeError, decode_indication
from .screen_buffer import ScreenBoundsError

logger = structlog.get_logger()


class TraceRecorder:
    """Appends raw inbound messages to a JSONL trace file.

    The first failure to create or write the file is logged and turns
    recording off; the session itself carries on.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self.enabled = True
        self._prepared = False

    async def record(self, text: str) -> None:
        if not self.enabled:
            return
        # One message per line; the protocol never sends raw newlines
        line = text.replace("\n", " ")
        try:
            if not self._prepared:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                self._prepared = True
            async with aiofiles.open(self.path, "a", encoding="utf-8") as f:
                await f.write(line + "\n")
        except OSError:
            logger.exception("Could not write trace file %s, recording disabled", self.path)
            self.enabled = False


def replay_trace(path: Path, dispatcher: IndicationDispatcher) -> int:
    """Dispatch every decodable line of a trace file in order.

    Undecodable lines and out-of-bounds updates are logged and skipped.
    Returns the number of indications applied.
    """
    applied = 0
    with open(path, "r", encoding="utf-8") as f:
        for lineno, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                indication = decode_indication(line)
            except DecodeError as e:
                logger.warning("Skipping trace line %d: %s", lineno, e)
                continue
            try:
                dispatcher.dispatch(indication)
            except ScreenBoundsError as e:
                logger.error("Trace line %d out of bounds: %s", lineno, e)
                continue
            applied += 1
    return applied
