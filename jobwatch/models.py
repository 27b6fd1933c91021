"""
Data models for jobwatch.

Jobs live only in memory: the job manager owns the live records and hands
out copies. Statistics models are plain value objects built by the analyzer.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class JobStatus(Enum):
    RUNNING = "running"
    COMPLETED = "completed"
    CRASHED = "crashed"
    RETRYING = "retrying"
    RETRY_FAILED = "retry_failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.CRASHED, JobStatus.RETRY_FAILED)


@dataclass
class Job:
    """A submitted job and the outcome of its most recent attempt."""

    id: str
    name: str
    arguments: tuple[str, ...] = ()
    status: JobStatus = JobStatus.RUNNING
    start_time: datetime = field(default_factory=datetime.now)
    end_time: Optional[datetime] = None
    exit_code: Optional[int] = None
    retry_count: int = 0
    max_retries: int = 1
    process_id: Optional[int] = None
    output: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "arguments": list(self.arguments),
            "status": self.status.value,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "exit_code": self.exit_code,
            "retry_count": self.retry_count,
            "max_retries": self.max_retries,
            "process_id": self.process_id,
            "output": self.output,
            "error": self.error,
            "duration_seconds": (
                (self.end_time or datetime.now()) - self.start_time
            ).total_seconds(),
        }


@dataclass(frozen=True)
class JobPattern:
    """Success rate of the jobs matching one name/argument pattern."""

    pattern: str
    match_count: int
    success_rate: float
    difference_from_average: str

    def to_dict(self) -> dict:
        return {
            "pattern": self.pattern,
            "match_count": self.match_count,
            "success_rate": self.success_rate,
            "difference_from_average": self.difference_from_average,
        }


@dataclass(frozen=True)
class JobStats:
    total_jobs: int
    overall_success_rate: float
    patterns: list[JobPattern] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "total_jobs": self.total_jobs,
            "overall_success_rate": self.overall_success_rate,
            "patterns": [p.to_dict() for p in self.patterns],
        }
