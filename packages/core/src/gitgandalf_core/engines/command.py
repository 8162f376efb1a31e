"""Inference engine driven as a child process.

The prompt is written to the child's stdin, which is then closed; stdout and
stderr are drained concurrently until the child exits. A single wall-clock
deadline, measured from launch, covers the whole exchange.
"""

from __future__ import annotations

import asyncio
import logging
import os
import signal
import time

from gitgandalf_core.engines.base import BaseEngine
from gitgandalf_core.errors import EngineFailureError, EngineTimeoutError, SpawnError, ToolUnavailableError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 60.0

# How long to wait for the killed process group to be reaped.
_KILL_GRACE_SECONDS = 5.0


class CommandEngine(BaseEngine):
    def __init__(self, command: list[str], timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS):
        if not command:
            raise ValueError("command must contain at least the executable.")
        self.command = list(command)
        self.timeout_seconds = timeout_seconds

    async def invoke(self, prompt: str) -> str:
        """Run the engine once.

        Exactly one outcome per call: the trimmed stdout, or one of
        ToolUnavailableError, SpawnError, EngineTimeoutError,
        EngineFailureError. Once the deadline passes the result is fixed as
        a timeout; anything the child writes while being killed is discarded.
        """
        logger.debug("Launching engine: %s", " ".join(self.command))
        started = time.monotonic()
        try:
            process = await asyncio.create_subprocess_exec(
                *self.command,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                # own process group, so a timeout also kills anything the engine spawned
                start_new_session=True,
            )
        except (FileNotFoundError, PermissionError) as e:
            raise ToolUnavailableError(self.command[0]) from e
        except OSError as e:
            raise SpawnError(f"Could not start inference engine {self.command[0]!r}: {e}") from e

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(prompt.encode("utf-8")),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            await self._terminate(process)
            logger.warning("Engine exceeded %gs; terminated pid %s", self.timeout_seconds, process.pid)
            raise EngineTimeoutError(self.timeout_seconds) from None

        elapsed = time.monotonic() - started
        logger.debug("Engine exited with status %s after %.1fs", process.returncode, elapsed)

        if process.returncode != 0:
            raise EngineFailureError(process.returncode, stderr.decode("utf-8", errors="replace"))

        return stdout.decode("utf-8", errors="replace").strip()

    @staticmethod
    async def _terminate(process: asyncio.subprocess.Process) -> None:
        """Kill the engine's whole process group and reap the engine.

        Descendants hold copies of the stdout/stderr pipes, so killing only
        the direct child would leave wait() blocked until they exit.
        """
        try:
            os.killpg(process.pid, signal.SIGKILL)
        except (AttributeError, ProcessLookupError, PermissionError):
            # no process groups on this platform, or the group is already gone
            try:
                process.kill()
            except ProcessLookupError:
                pass
        try:
            await asyncio.wait_for(process.wait(), timeout=_KILL_GRACE_SECONDS)
        except asyncio.TimeoutError:
            logger.warning("Engine pid %s not reaped %gs after kill", process.pid, _KILL_GRACE_SECONDS)
