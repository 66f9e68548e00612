"""Tests for project statistics."""

from datetime import datetime

import pytest

from tracer.engines import statistics


class TestTaskStats:
    def test_empty_project(self):
        stats = statistics.compute_task_stats([])
        assert stats.total == 0
        assert stats.completion_rate == 0
        assert stats.blocked_count == 0
        assert stats.by_status == {"pending": 0, "in-progress": 0, "completed": 0, "blocked": 0}

    def test_all_completed_is_100(self, make_task):
        tasks = [make_task(status="completed") for _ in range(3)]
        assert statistics.compute_task_stats(tasks).completion_rate == 100

    def test_counts_and_hours(self, make_task):
        tasks = [
            make_task(status="completed", priority="high", estimated_hours=4, actual_hours=5),
            make_task(status="pending", priority="high", estimated_hours=2, actual_hours=0),
            make_task(status="in-progress", priority="urgent", estimated_hours=None, actual_hours=1.5),
            make_task(status="blocked", priority="low"),
        ]
        stats = statistics.compute_task_stats(tasks)
        assert stats.total == 4
        assert stats.by_status["completed"] == 1
        assert stats.by_status["blocked"] == 1
        assert stats.by_priority == {"low": 1, "medium": 0, "high": 2, "urgent": 1}
        assert stats.total_estimated_hours == 6
        assert stats.total_actual_hours == 6.5
        assert stats.time_variance == pytest.approx(0.5)
        assert stats.completion_rate == 25

    def test_blocked_counts_unfinished_dependencies(self, make_task):
        done = make_task(status="completed")
        open_dep = make_task(status="pending")
        ready = make_task(dependencies=[done.id])
        waiting = make_task(dependencies=[open_dep.id])
        marked = make_task(status="blocked")
        stats = statistics.compute_task_stats([done, open_dep, ready, waiting, marked])
        assert stats.blocked_count == 2

    def test_missing_dependency_counts_as_blocking(self, make_task):
        orphan = make_task(dependencies=["0" * 24])
        assert statistics.blocked_count([orphan]) == 1


class TestAgentStats:
    def test_no_agents_means_zero_rates(self):
        stats = statistics.compute_agent_stats([])
        assert stats.average_efficiency == 0
        assert stats.utilization_rate == 0

    def test_utilization_counts_working_and_busy(self, make_agent):
        agents = [
            make_agent(status="working", efficiency=0.9),
            make_agent(status="busy", efficiency=0.7),
            make_agent(status="idle", efficiency=0.5),
            make_agent(status="suspended", efficiency=0.1),
        ]
        stats = statistics.compute_agent_stats(agents)
        assert stats.utilization_rate == 50
        assert stats.average_efficiency == pytest.approx(0.55)
        assert stats.by_status == {"idle": 1, "working": 1, "busy": 1, "suspended": 1}
        assert stats.by_type["backend"] == 4


def test_planning_stats_by_status(make_session):
    stats = statistics.compute_planning_stats(
        [make_session(status="draft"), make_session(status="active"), make_session(status="active")]
    )
    assert stats.total == 3
    assert stats.by_status == {"draft": 1, "active": 2, "completed": 0}


class TestTimelineAndProductivity:
    def test_duration_in_whole_days(self, project, now, days_ago):
        project.created_at = days_ago(10.5)
        project.updated_at = days_ago(1)
        timeline = statistics.compute_timeline(project, now=now)
        assert timeline.duration == 10

    def test_naive_timestamps_are_treated_as_utc(self, project, now):
        project.created_at = datetime(2026, 2, 27, 12, 0)
        project.updated_at = datetime(2026, 2, 27, 12, 0)
        assert statistics.compute_timeline(project, now=now).duration == 2

    def test_tasks_per_day_zero_on_first_day(self, project, now, make_task, make_agent):
        project.created_at = now
        project.updated_at = now
        timeline = statistics.compute_timeline(project, now=now)
        metrics = statistics.compute_productivity(
            statistics.compute_task_stats([make_task()]),
            statistics.compute_agent_stats([make_agent()]),
            timeline,
        )
        assert metrics.tasks_per_day == 0

    def test_productivity_figures(self, project, days_ago, now, make_task, make_agent):
        project.created_at = days_ago(4)
        project.updated_at = now
        tasks = [make_task(status="completed"), make_task()]
        agents = [make_agent(status="working", efficiency=1.0), make_agent(status="idle", efficiency=0.6)]
        metrics = statistics.compute_productivity(
            statistics.compute_task_stats(tasks),
            statistics.compute_agent_stats(agents),
            statistics.compute_timeline(project, now=now),
        )
        assert metrics.tasks_per_day == 0.5
        assert metrics.completion_velocity == 50
        assert metrics.agent_productivity == pytest.approx(0.4)


def test_summary_counts(make_task, make_agent, make_session):
    summary = statistics.summarize_project(
        [make_task(status="completed"), make_task(status="in-progress"), make_task(status="blocked")],
        [make_agent(status="idle"), make_agent(status="working"), make_agent(status="suspended")],
        [make_session()],
    )
    assert summary.total_tasks == 3
    assert summary.completed_tasks == 1
    assert summary.in_progress_tasks == 1
    assert summary.blocked_tasks == 1
    assert summary.total_agents == 3
    assert summary.active_agents == 2
    assert summary.planning_sessions == 1
