"""Capture engine process: launches ``python -m vrt.engine`` for one phase."""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path

from vrt.errors import ExecutionError

logger = logging.getLogger(__name__)


class EngineLauncher:
    """Runs the capture engine as a separate process and returns its exit status.

    With ``stream_output`` the engine writes straight to the terminal;
    otherwise its output is captured and logged at DEBUG.
    """

    def __init__(self, python: str = sys.executable, stream_output: bool = False):
        self.python = python
        self.stream_output = stream_output

    def command(self, request_path: Path) -> list[str]:
        return [self.python, "-m", "vrt.engine", "--request", str(request_path)]

    async def run(self, request_path: Path) -> int:
        cmd = self.command(request_path)
        logger.debug("Launching capture engine: %s", " ".join(cmd))
        pipe = None if self.stream_output else asyncio.subprocess.PIPE
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=pipe,
                stderr=asyncio.subprocess.STDOUT if pipe else None,
            )
        except OSError as e:
            raise ExecutionError(f"Failed to run capture engine: {e}") from e

        stdout, _ = await proc.communicate()
        if stdout:
            for line in stdout.decode(errors="replace").splitlines():
                logger.debug("engine: %s", line)
        logger.debug("Capture engine exited with %s", proc.returncode)
        return proc.returncode
