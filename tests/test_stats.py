"""Tests for the job pattern analyzer."""

from datetime import datetime

import pytest

from jobwatch.models import Job, JobStatus
from jobwatch.stats import NOT_APPLICABLE, PATTERNS, compute_stats, format_difference


def make_job(name, status=JobStatus.COMPLETED, arguments=()):
    return Job(
        id=f"id-{name}",
        name=name,
        arguments=tuple(arguments),
        status=status,
        start_time=datetime(2024, 1, 15, 12, 0, 0),
    )


def pattern(stats, description):
    return next(p for p in stats.patterns if p.pattern == description)


class TestOverallRate:
    def test_empty_snapshot(self):
        """An empty history has a zero success rate, not an error."""
        stats = compute_stats([])

        assert stats.total_jobs == 0
        assert stats.overall_success_rate == 0
        assert len(stats.patterns) == 5
        for p in stats.patterns:
            assert p.match_count == 0
            assert p.success_rate == 0
            assert p.difference_from_average == NOT_APPLICABLE

    def test_only_completed_counts_as_success(self):
        jobs = [
            make_job("a", JobStatus.COMPLETED),
            make_job("b", JobStatus.RUNNING),
            make_job("c", JobStatus.RETRYING),
            make_job("d", JobStatus.CRASHED),
            make_job("e", JobStatus.RETRY_FAILED),
        ]

        assert compute_stats(jobs).overall_success_rate == pytest.approx(0.2)


class TestPatterns:
    @pytest.fixture
    def snapshot(self):
        # Three long names that all completed, one short name that failed
        return [
            make_job("processing_a"),
            make_job("processing_b"),
            make_job("processing_c"),
            make_job("short", JobStatus.RETRY_FAILED),
        ]

    def test_patterns_reported_in_fixed_order(self, snapshot):
        stats = compute_stats(snapshot)

        assert [p.pattern for p in stats.patterns] == [
            "Job name length > 10",
            "Job name contains digits",
            "Argument count > 2",
            "Job name is all lowercase",
            "Job name contains special characters",
        ]

    def test_long_names_beat_average(self, snapshot):
        stats = compute_stats(snapshot)
        long_names = pattern(stats, "Job name length > 10")

        assert stats.overall_success_rate == pytest.approx(0.75)
        assert long_names.match_count == 3
        assert long_names.success_rate == 1.0
        assert long_names.difference_from_average == "33%"

    def test_empty_subgroup_is_minus_hundred_percent(self, snapshot):
        digits = pattern(compute_stats(snapshot), "Job name contains digits")

        assert digits.match_count == 0
        assert digits.success_rate == 0
        assert digits.difference_from_average == "-100%"

    def test_subgroup_equal_to_overall(self, snapshot):
        lowercase = pattern(compute_stats(snapshot), "Job name is all lowercase")

        assert lowercase.match_count == 4
        assert lowercase.difference_from_average == "0%"

    def test_special_characters(self, snapshot):
        special = pattern(compute_stats(snapshot), "Job name contains special characters")

        assert special.match_count == 3
        assert special.success_rate == 1.0

    def test_argument_count(self):
        jobs = [
            make_job("a", arguments=["1", "2", "3"]),
            make_job("b", JobStatus.CRASHED, arguments=["1", "2", "3", "4"]),
            make_job("c", arguments=["1", "2"]),
            make_job("d", arguments=[]),
        ]
        many_args = pattern(compute_stats(jobs), "Argument count > 2")

        assert many_args.match_count == 2
        assert many_args.success_rate == 0.5
        assert many_args.difference_from_average == "-33%"

    def test_predicates_only_look_at_name_and_arguments(self):
        predicates = dict(PATTERNS)
        job = make_job("Build-42")

        assert predicates["Job name contains digits"](job)
        assert predicates["Job name contains special characters"](job)
        assert not predicates["Job name is all lowercase"](job)
        assert not predicates["Job name length > 10"](job)

    def test_name_without_letters_is_lowercase(self):
        predicates = dict(PATTERNS)
        assert predicates["Job name is all lowercase"](make_job("job-123"))
        assert predicates["Job name is all lowercase"](make_job("123"))

    def test_only_ascii_digits_count_as_digits(self):
        predicates = dict(PATTERNS)
        arabic_indic = make_job("job٣")

        assert not predicates["Job name contains digits"](arabic_indic)
        assert predicates["Job name contains special characters"](arabic_indic)
        assert predicates["Job name contains digits"](make_job("job3"))

    def test_all_failed_reports_not_applicable(self):
        jobs = [make_job("a", JobStatus.CRASHED), make_job("b1", JobStatus.RETRY_FAILED)]
        stats = compute_stats(jobs)

        assert stats.overall_success_rate == 0
        assert all(p.difference_from_average == NOT_APPLICABLE for p in stats.patterns)

    def test_stats_are_deterministic(self, snapshot):
        assert compute_stats(snapshot) == compute_stats(snapshot)
        assert compute_stats(snapshot).to_dict() == compute_stats(snapshot).to_dict()

    def test_to_dict(self, snapshot):
        data = compute_stats(snapshot).to_dict()

        assert data["total_jobs"] == 4
        assert data["overall_success_rate"] == pytest.approx(0.75)
        assert data["patterns"][0] == {
            "pattern": "Job name length > 10",
            "match_count": 3,
            "success_rate": 1.0,
            "difference_from_average": "33%",
        }


class TestFormatDifference:
    def test_rounds_to_whole_percent(self):
        assert format_difference(0.5, 0.8) == "-38%"
        assert format_difference(1.0, 0.6) == "67%"

    def test_no_negative_zero(self):
        assert format_difference(0.749, 0.75) == "0%"

    def test_zero_overall_rate(self):
        assert format_difference(0.0, 0.0) == NOT_APPLICABLE
        assert format_difference(1.0, 0.0) == NOT_APPLICABLE
