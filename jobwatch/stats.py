"""
Pattern analysis over the job history.

Compares the success rate of jobs sharing a name/argument trait against the
overall success rate. Everything here is a pure function of the snapshot.
"""

import re
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Iterable

from .models import Job, JobPattern, JobStats, JobStatus

NOT_APPLICABLE = "n/a"

_DIGIT = re.compile(r"[0-9]")
_SPECIAL = re.compile(r"[^a-zA-Z0-9]")

# (description, predicate) pairs, reported in this order
PATTERNS: list[tuple[str, Callable[[Job], bool]]] = [
    ("Job name length > 10", lambda job: len(job.name) > 10),
    ("Job name contains digits", lambda job: bool(_DIGIT.search(job.name))),
    ("Argument count > 2", lambda job: len(job.arguments) > 2),
    ("Job name is all lowercase", lambda job: job.name == job.name.lower()),
    ("Job name contains special characters", lambda job: bool(_SPECIAL.search(job.name))),
]


def success_rate(jobs: list[Job]) -> float:
    """Fraction of jobs that completed, 0.0 for an empty list."""
    if not jobs:
        return 0.0
    completed = sum(1 for job in jobs if job.status == JobStatus.COMPLETED)
    return completed / len(jobs)


def format_difference(rate: float, overall_rate: float) -> str:
    """
    Render the relative difference between a rate and the overall rate.

    Rounds half away from zero to a whole percent. Returns "n/a" when the
    overall rate is zero since no relative difference exists.
    """
    if overall_rate == 0:
        return NOT_APPLICABLE

    percent = Decimal(str((rate - overall_rate) / overall_rate * 100))
    rounded = int(percent.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    return f"{rounded}%"


def analyze_pattern(
    jobs: list[Job],
    description: str,
    predicate: Callable[[Job], bool],
    overall_rate: float,
) -> JobPattern:
    matching = [job for job in jobs if predicate(job)]
    rate = success_rate(matching)
    return JobPattern(
        pattern=description,
        match_count=len(matching),
        success_rate=rate,
        difference_from_average=format_difference(rate, overall_rate),
    )


def compute_stats(snapshot: Iterable[Job]) -> JobStats:
    """Summarize a job snapshot into overall and per-pattern success rates."""
    jobs = list(snapshot)
    overall_rate = success_rate(jobs)

    return JobStats(
        total_jobs=len(jobs),
        overall_success_rate=overall_rate,
        patterns=[
            analyze_pattern(jobs, description, predicate, overall_rate)
            for description, predicate in PATTERNS
        ],
    )
