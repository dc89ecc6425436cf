"""
Maintenance Tasks
=================
Periodic deletion of expired OTP records, off the request path.
"""

from typing import Optional

import structlog
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from otp_verification.service import AuthOrchestrator

logger = structlog.get_logger(__name__)

SWEEP_JOB_ID = "sweep_expired_otps"


class ExpiredOtpSweeper:
    """Runs ``AuthOrchestrator.sweep_expired`` on an interval."""

    def __init__(self, orchestrator: AuthOrchestrator, interval_minutes: int = 5, timezone: str = "UTC"):
        self.orchestrator = orchestrator
        self.interval_minutes = interval_minutes
        self.timezone = timezone
        self._scheduler: Optional[AsyncIOScheduler] = None

    async def run_once(self) -> int:
        """Sweep now. Failures are logged so the next run still happens."""
        try:
            deleted = await self.orchestrator.sweep_expired()
        except Exception:
            logger.exception("Expired OTP sweep failed")
            return 0
        logger.info("Expired OTP sweep", deleted=deleted)
        return deleted

    def start(self) -> None:
        """Start the scheduler. Must be called from a running event loop."""
        if self._scheduler is not None:
            return
        scheduler = AsyncIOScheduler(timezone=self.timezone)
        scheduler.add_job(
            self.run_once,
            "interval",
            minutes=self.interval_minutes,
            id=SWEEP_JOB_ID,
            replace_existing=True,
            coalesce=True,
            max_instances=1,
        )
        scheduler.start()
        self._scheduler = scheduler
        logger.info("Expired OTP sweeper started", interval_minutes=self.interval_minutes)

    def shutdown(self) -> None:
        if self._scheduler is None:
            return
        self._scheduler.shutdown(wait=False)
        self._scheduler = None
        logger.info("Expired OTP sweeper stopped")

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    def next_run_time(self):
        if self._scheduler is None:
            return None
        job = self._scheduler.get_job(SWEEP_JOB_ID)
        return job.next_run_time if job else None
