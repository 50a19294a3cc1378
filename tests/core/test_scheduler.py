"""
Unit tests for the job scheduler registry.
"""

from unittest.mock import AsyncMock

import pytest
from apscheduler.triggers.interval import IntervalTrigger

from hold_tracker.core import scheduler


@pytest.fixture(autouse=True)
def _clean_registry():
    scheduler.clear_registry()
    yield
    scheduler.clear_registry()


class TestRegistry:
    def test_registered_job_is_listed(self):
        scheduler.register_job("job_a", AsyncMock(), IntervalTrigger(hours=1))

        jobs = scheduler.list_registered_jobs()

        assert [job["job_id"] for job in jobs] == ["job_a"]

    @pytest.mark.asyncio
    async def test_manual_trigger_runs_job(self):
        func = AsyncMock()
        scheduler.register_job("job_a", func, IntervalTrigger(hours=1))

        result = await scheduler.trigger_job_manually("job_a")

        func.assert_awaited_once()
        assert result["status"] == "success"

    @pytest.mark.asyncio
    async def test_manual_trigger_reports_failure(self):
        scheduler.register_job(
            "job_a", AsyncMock(side_effect=RuntimeError("boom")), IntervalTrigger(hours=1)
        )

        result = await scheduler.trigger_job_manually("job_a")

        assert result["status"] == "error"
        assert "boom" in result["error"]

    @pytest.mark.asyncio
    async def test_unknown_job_raises(self):
        with pytest.raises(ValueError):
            await scheduler.trigger_job_manually("missing")

    @pytest.mark.asyncio
    async def test_start_adds_registered_jobs(self):
        scheduler.register_job("job_a", AsyncMock(), IntervalTrigger(hours=1))

        running = await scheduler.start_scheduler()
        try:
            assert running.get_job("job_a") is not None
        finally:
            await scheduler.stop_scheduler()

    def test_pause_without_scheduler_returns_false(self):
        assert scheduler.pause_job("job_a") is False
