"""
Tests for the expired OTP sweeper.
"""

import pytest

from otp_verification.maintenance import SWEEP_JOB_ID, ExpiredOtpSweeper


class TestExpiredOtpSweeper:

    @pytest.mark.asyncio
    async def test_run_once_deletes_expired(self, orchestrator, otp_store, sink, clock):
        await orchestrator.register("a@x.com", "p", "A", "B")
        await orchestrator.request_otp("a@x.com")
        clock.advance(minutes=16)

        deleted = await ExpiredOtpSweeper(orchestrator).run_once()

        assert deleted == 1
        assert len(otp_store) == 0

    @pytest.mark.asyncio
    async def test_run_once_swallows_errors(self, orchestrator):
        """A failed sweep is logged and reported as nothing deleted."""
        async def broken(now=None):
            raise ConnectionError("db down")

        orchestrator.sweep_expired = broken

        assert await ExpiredOtpSweeper(orchestrator).run_once() == 0

    @pytest.mark.asyncio
    async def test_start_and_shutdown(self, orchestrator):
        sweeper = ExpiredOtpSweeper(orchestrator, interval_minutes=5)

        sweeper.start()
        try:
            assert sweeper.running
            assert sweeper.next_run_time() is not None
            assert sweeper._scheduler.get_job(SWEEP_JOB_ID) is not None
        finally:
            sweeper.shutdown()

        assert not sweeper.running
        assert sweeper.next_run_time() is None

    @pytest.mark.asyncio
    async def test_start_is_idempotent(self, orchestrator):
        sweeper = ExpiredOtpSweeper(orchestrator)

        sweeper.start()
        scheduler = sweeper._scheduler
        sweeper.start()

        assert sweeper._scheduler is scheduler
        sweeper.shutdown()
