"""
Job supervision for jobwatch.

Keeps the in-memory job registry, runs each job's attempts in its own
asyncio task, retries failed runs and periodically evicts finished jobs
once they are older than the retention window.

All access to the registry and to job records goes through the manager
lock. Callers only ever receive copies of the records.
"""

import asyncio
import logging
import threading
import uuid
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Optional, Sequence

from .config import config
from .models import Job, JobStats, JobStatus
from .process import ProcessResult, ProcessRunner
from .stats import compute_stats

logger = logging.getLogger(__name__)


class JobManager:
    """Starts jobs and tracks them through to a terminal state."""

    def __init__(
        self,
        runner: Optional[ProcessRunner] = None,
        command: Optional[str] = None,
        max_retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
        retention: Optional[timedelta] = None,
        cleanup_interval: Optional[float] = None,
        clock: Callable[[], datetime] = datetime.now,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._runner = runner or ProcessRunner()
        self._command = command or config.job_command
        self._max_retries = config.max_retries if max_retries is None else max_retries
        self._retry_delay = config.retry_delay if retry_delay is None else retry_delay
        self._retention = (
            timedelta(seconds=config.job_retention) if retention is None else retention
        )
        self._cleanup_interval = (
            config.cleanup_interval if cleanup_interval is None else cleanup_interval
        )
        self._clock = clock
        self._sleep = sleep

        self._jobs: dict[str, Job] = {}
        self._tasks: dict[str, asyncio.Task] = {}
        self._lock = threading.Lock()
        self._running = False
        self._task = None

    @property
    def in_flight(self) -> int:
        """Number of jobs whose supervision task has not finished."""
        return len(self._tasks)

    async def start_job(self, name: str, arguments: Sequence[str] = ()) -> Job:
        """
        Register a job and launch its first attempt in the background.

        Returns a copy of the new record, still in the running state.
        """
        job_id = str(uuid.uuid4())
        job = Job(
            id=job_id,
            name=name,
            arguments=tuple(arguments),
            start_time=self._clock(),
            max_retries=self._max_retries,
        )

        with self._lock:
            self._jobs[job_id] = job
            created = replace(job)

        logger.info(f"Starting job {job_id}: {name}")

        task = asyncio.create_task(self._supervise(job))
        self._tasks[job_id] = task
        task.add_done_callback(lambda _: self._tasks.pop(job_id, None))

        return created

    def get_job(self, job_id: str) -> Optional[Job]:
        """Get a copy of a job by ID."""
        with self._lock:
            job = self._jobs.get(job_id)
            return replace(job) if job else None

    def list_jobs(self, status: Optional[JobStatus] = None) -> list[Job]:
        """List copies of all retained jobs, optionally filtered by status."""
        jobs = self.snapshot()
        if status:
            jobs = [j for j in jobs if j.status == status]
        return jobs

    def snapshot(self) -> list[Job]:
        """Copy every retained job in submission order."""
        with self._lock:
            return [replace(job) for job in self._jobs.values()]

    def get_stats(self) -> JobStats:
        return compute_stats(self.snapshot())

    async def wait(self, job_id: str) -> Optional[Job]:
        """Wait until a job reaches a terminal state and return its final copy."""
        task = self._tasks.get(job_id)
        if task:
            await task
        return self.get_job(job_id)

    async def _supervise(self, job: Job):
        """Run attempts for a job until it completes, crashes or runs out of retries."""
        command = [self._command, *job.arguments]

        try:
            while True:
                try:
                    result = await self._runner.run(
                        command, on_spawn=lambda pid: self._set_process_id(job, pid)
                    )
                except OSError as e:
                    self._mark_crashed(job, str(e))
                    return

                if not self._record_exit(job, result):
                    return

                await self._sleep(self._retry_delay)

        except Exception as e:
            logger.exception(f"Supervision of job {job.id} failed")
            self._mark_crashed(job, str(e))

    def _set_process_id(self, job: Job, pid: int):
        with self._lock:
            job.process_id = pid

    def _record_exit(self, job: Job, result: ProcessResult) -> bool:
        """Store an attempt's outcome. Returns True if another attempt should run."""
        with self._lock:
            job.end_time = self._clock()
            job.exit_code = result.exit_code
            job.output = result.stdout
            job.error = result.stderr

            if result.success:
                job.status = JobStatus.COMPLETED
                logger.info(f"Job {job.id} completed successfully")
                return False

            if job.retry_count < job.max_retries:
                job.status = JobStatus.RETRYING
                job.retry_count += 1
                logger.warning(
                    f"Job {job.id} failed with exit code {result.returncode}, "
                    f"retrying ({job.retry_count}/{job.max_retries})"
                )
                return True

            job.status = JobStatus.RETRY_FAILED
            logger.error(f"Job {job.id} failed after {job.max_retries} retries")
            return False

    def _mark_crashed(self, job: Job, message: str):
        with self._lock:
            job.end_time = self._clock()
            job.error = message
            job.status = JobStatus.CRASHED
        logger.error(f"Job {job.id} crashed: {message}")

    def cleanup_old_jobs(self, now: Optional[datetime] = None) -> int:
        """Remove finished jobs that ended before the retention window. Returns the count removed."""
        cutoff = (now or self._clock()) - self._retention

        with self._lock:
            expired = [
                job_id
                for job_id, job in self._jobs.items()
                if job.status.is_terminal and job.end_time and job.end_time < cutoff
            ]
            for job_id in expired:
                del self._jobs[job_id]

        for job_id in expired:
            logger.debug(f"Cleaned up old job: {job_id}")

        return len(expired)

    async def start(self):
        """Start the periodic cleanup loop."""
        if self._running:
            return

        self._running = True
        self._task = asyncio.create_task(self._cleanup_loop())
        logger.info("Job cleanup started")

    async def stop(self):
        """Stop the cleanup loop. Jobs still running are left to finish on their own."""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        if self._tasks:
            logger.warning(f"Abandoning {len(self._tasks)} job(s) still in flight")
        logger.info("Job cleanup stopped")

    async def _cleanup_loop(self):
        while self._running:
            await self._sleep(self._cleanup_interval)
            try:
                removed = self.cleanup_old_jobs()
                if removed:
                    logger.info(f"Evicted {removed} finished job(s)")
            except Exception as e:
                logger.error(f"Error in cleanup loop: {e}")


# Global job manager instance
job_manager = JobManager()
