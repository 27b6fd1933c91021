"""Pytest configuration and fixtures."""

import os
import tempfile

# Keep the service log out of the home directory before jobwatch is imported
os.environ.setdefault("JOBWATCH_DATA_DIR", tempfile.mkdtemp(prefix="jobwatch-test-"))

import asyncio
from datetime import datetime

import pytest

from jobwatch.process import ProcessResult


class FakeRunner:
    """Stands in for ProcessRunner without spawning anything.

    returncode is either a fixed exit code or a callable taking
    (command, attempt_number) and returning one.
    """

    def __init__(self, returncode=0, error: Exception = None, gate: asyncio.Event = None):
        self.returncode = returncode
        self.error = error
        self.gate = gate
        self.calls: list[list[str]] = []

    async def run(self, command, on_spawn=None) -> ProcessResult:
        self.calls.append(list(command))
        attempt = len(self.calls)

        if self.error:
            raise self.error

        pid = 4000 + attempt
        if on_spawn:
            on_spawn(pid)

        if self.gate:
            await self.gate.wait()

        if callable(self.returncode):
            code = self.returncode(command, attempt)
        else:
            code = self.returncode

        return ProcessResult(
            pid=pid,
            returncode=code,
            stdout=f"attempt {attempt} output",
            stderr="" if code == 0 else f"attempt {attempt} failed",
        )


class FakeClock:
    """Clock whose time only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 1, 15, 12, 0, 0))


@pytest.fixture
def sleeps():
    """Records requested delays instead of sleeping."""
    delays = []

    async def fake_sleep(delay):
        delays.append(delay)
        await asyncio.sleep(0)

    fake_sleep.delays = delays
    return fake_sleep
