"""
Tests for the monthly routine builder.

Tests the schedule properties including:
- Window placement at the end of the month
- Distinct subjects and contiguous days
- Reproducibility and a pinned routine
"""

import pytest
from pathlib import Path

# Add parent directory to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from monthlyquiz.models import ExamConfig, Subject
from monthlyquiz.schedule import (
    build_schedule,
    entry_for_day,
    last_day_of_month,
    month_seed,
    window_start_day,
)


@pytest.fixture
def subjects():
    return ExamConfig.default().subjects


class TestWindowDays:
    """Test calendar helpers."""

    def test_month_seed_format(self):
        """Test the zero-padded routine seed."""
        assert month_seed(2025, 6) == "2025-06-schedule"

    def test_last_day_of_month(self):
        """Test month lengths including leap years."""
        assert last_day_of_month(2025, 7) == 31
        assert last_day_of_month(2025, 6) == 30
        assert last_day_of_month(2024, 2) == 29
        assert last_day_of_month(2025, 2) == 28

    def test_31_day_month_window(self):
        """Test that a 31-day month with K=10 runs from day 22 to 31."""
        assert window_start_day(2025, 7, 10) == 22

    def test_february_window(self):
        """Test the window of a non-leap February."""
        assert window_start_day(2025, 2, 10) == 19


class TestBuildSchedule:
    """Test routine construction."""

    def test_entry_count_and_days(self, subjects):
        """Test K entries on contiguous days ending on the last day."""
        schedule = build_schedule(subjects, 2025, 7, 10)
        assert len(schedule) == 10
        assert [e.day for e in schedule] == list(range(22, 32))

    def test_subjects_distinct(self, subjects):
        """Test that no subject repeats when K equals the pool size."""
        schedule = build_schedule(subjects, 2025, 7, 10)
        ids = [e.subject.id for e in schedule]
        assert len(set(ids)) == 10

    def test_truncated_window(self, subjects):
        """Test K smaller than the subject pool."""
        schedule = build_schedule(subjects, 2024, 2, 4)
        assert [e.day for e in schedule] == [26, 27, 28, 29]
        assert len({e.subject.id for e in schedule}) == 4

    def test_reproducible(self, subjects):
        """Test that repeated builds give the same routine."""
        assert build_schedule(subjects, 2025, 9, 10) == build_schedule(subjects, 2025, 9, 10)

    def test_pinned_routine_june_2025(self, subjects):
        """Test the exact routine for June 2025 with the default subjects."""
        schedule = build_schedule(subjects, 2025, 6, 10)
        assert [(e.day, e.subject.id) for e in schedule] == [
            (21, "ict"),
            (22, "higher-math"),
            (23, "biology"),
            (24, "religion"),
            (25, "math"),
            (26, "bangla-1"),
            (27, "bgs"),
            (28, "chemistry"),
            (29, "bangla-2"),
            (30, "physics"),
        ]

    def test_months_differ(self, subjects):
        """Test that different months are seeded differently."""
        june = [e.subject.id for e in build_schedule(subjects, 2025, 6, 10)]
        july = [e.subject.id for e in build_schedule(subjects, 2025, 7, 10)]
        assert june != july

    def test_window_larger_than_pool_rejected(self):
        """Test that K greater than the subject count is refused."""
        few = [Subject(id="a", name="A", file="a.json"), Subject(id="b", name="B", file="b.json")]
        with pytest.raises(ValueError):
            build_schedule(few, 2025, 6, 3)

    def test_zero_window_rejected(self, subjects):
        """Test that K must be positive."""
        with pytest.raises(ValueError):
            build_schedule(subjects, 2025, 6, 0)


class TestEntryForDay:
    """Test day lookup."""

    def test_inside_window(self, subjects):
        """Test lookup of a scheduled day."""
        schedule = build_schedule(subjects, 2025, 6, 10)
        assert entry_for_day(schedule, 30).subject.id == "physics"

    def test_outside_window(self, subjects):
        """Test lookup of a day before the window."""
        schedule = build_schedule(subjects, 2025, 6, 10)
        assert entry_for_day(schedule, 15) is None
