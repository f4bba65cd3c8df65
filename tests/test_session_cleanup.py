"""
Tests for the periodic session cleanup job.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from lscs_core.services.session_cleanup import SessionCleanupJob


@pytest.fixture
def session_service():
    service = MagicMock()
    service.cleanup_expired_sessions = AsyncMock(return_value=0)
    return service


class TestSessionCleanupJob:
    @pytest.mark.asyncio
    async def test_sweeps_periodically(self, session_service):
        job = SessionCleanupJob(session_service, interval=0.01)
        await job.start()
        await asyncio.sleep(0.1)
        await job.stop()

        assert session_service.cleanup_expired_sessions.await_count >= 2
        assert not job.is_running()

    @pytest.mark.asyncio
    async def test_first_sweep_waits_one_interval(self, session_service):
        job = SessionCleanupJob(session_service, interval=60)
        await job.start()
        await asyncio.sleep(0.01)
        await job.stop()

        session_service.cleanup_expired_sessions.assert_not_called()

    @pytest.mark.asyncio
    async def test_failures_do_not_stop_the_loop(self, session_service):
        calls = 0

        async def flaky():
            nonlocal calls
            calls += 1
            if calls == 1:
                raise RuntimeError("database unavailable")
            return 1

        session_service.cleanup_expired_sessions = AsyncMock(side_effect=flaky)
        job = SessionCleanupJob(session_service, interval=0.01)
        await job.start()
        await asyncio.sleep(0.1)
        await job.stop()

        assert calls >= 2

    @pytest.mark.asyncio
    async def test_stop_is_idempotent(self, session_service):
        job = SessionCleanupJob(session_service, interval=0.01)
        await job.stop()
        await job.start()
        await job.start()
        await job.stop()
        await job.stop()
        assert not job.is_running()

    @pytest.mark.asyncio
    async def test_run_once_reports_failure(self, session_service):
        session_service.cleanup_expired_sessions.side_effect = RuntimeError("boom")
        job = SessionCleanupJob(session_service)
        assert await job.run_once() is None

    @pytest.mark.asyncio
    async def test_run_once_returns_count(self, session_service):
        session_service.cleanup_expired_sessions.return_value = 5
        job = SessionCleanupJob(session_service)
        assert await job.run_once() == 5
