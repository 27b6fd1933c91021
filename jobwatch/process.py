"""
Process runner for job attempts.

Spawns the target executable through the event loop, captures stdout/stderr
and waits for the exit without holding a worker thread per running job.
Spawn failures surface as OSError so the caller can tell a launch failure
apart from a process that ran and failed.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Optional

logger = logging.getLogger(__name__)


@dataclass
class ProcessResult:
    """Outcome of a single process run."""

    pid: int
    returncode: int
    stdout: str
    stderr: str

    @property
    def exit_code(self) -> Optional[int]:
        """Exit code of a normal exit, None when the process was killed by a signal."""
        return self.returncode if self.returncode >= 0 else None

    @property
    def success(self) -> bool:
        return self.returncode == 0


class ProcessRunner:
    """Runs external commands and reports their result once they exit."""

    async def run(
        self,
        command: list[str],
        on_spawn: Optional[Callable[[int], None]] = None,
    ) -> ProcessResult:
        """
        Run a command to completion.

        Calls on_spawn(pid) as soon as the process has started. Raises OSError
        if the process cannot be started.
        """
        process = await asyncio.create_subprocess_exec(
            *command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            start_new_session=True,
        )
        logger.debug(f"Spawned {command[0]} with PID {process.pid}")

        if on_spawn:
            on_spawn(process.pid)

        stdout_bytes, stderr_bytes = await process.communicate()

        stdout = stdout_bytes.decode("utf-8", errors="replace") if stdout_bytes else ""
        stderr = stderr_bytes.decode("utf-8", errors="replace") if stderr_bytes else ""

        return ProcessResult(
            pid=process.pid,
            returncode=process.returncode,
            stdout=stdout,
            stderr=stderr,
        )
