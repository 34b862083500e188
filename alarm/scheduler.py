"""Job scheduling for the countdown ticker and alarm auto-stop, using APScheduler."""

import uuid
from datetime import datetime, timedelta
from typing import Callable, Optional

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler

from timer.config import DEBUG


class ScheduledJob:
    """Handle for a scheduled job. Cancelling twice is harmless."""

    def __init__(self, scheduler: BackgroundScheduler, job_id: str):
        self._scheduler = scheduler
        self.job_id = job_id
        self.cancelled = False

    def cancel(self):
        if self.cancelled:
            return
        self.cancelled = True
        try:
            self._scheduler.remove_job(self.job_id)
        except JobLookupError:
            pass  # One-shot job already ran, or never started


class JobScheduler:
    """Thin wrapper around a BackgroundScheduler with interval and one-shot jobs."""

    def __init__(self, scheduler: Optional[BackgroundScheduler] = None):
        self._scheduler = scheduler or BackgroundScheduler()

    @property
    def running(self) -> bool:
        return self._scheduler.running

    def start(self):
        """Start the scheduler."""
        if self._scheduler.running:
            return
        self._scheduler.start()
        print("[Scheduler] Started")

    def shutdown(self):
        """Stop the scheduler without waiting for running jobs."""
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            print("[Scheduler] Stopped")

    def every(self, seconds: float, func: Callable[[], None]) -> ScheduledJob:
        """Run func every `seconds`, first run one interval from now."""
        job_id = f"every-{uuid.uuid4().hex}"
        self._scheduler.add_job(
            func,
            "interval",
            seconds=seconds,
            id=job_id,
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        if DEBUG:
            print(f"[Scheduler] {job_id} every {seconds}s")
        return ScheduledJob(self._scheduler, job_id)

    def after(self, seconds: float, func: Callable[[], None]) -> ScheduledJob:
        """Run func once, `seconds` from now."""
        job_id = f"after-{uuid.uuid4().hex}"
        self._scheduler.add_job(
            func,
            "date",
            run_date=datetime.now() + timedelta(seconds=seconds),
            id=job_id,
            misfire_grace_time=None,
            replace_existing=True,
        )
        if DEBUG:
            print(f"[Scheduler] {job_id} in {seconds}s")
        return ScheduledJob(self._scheduler, job_id)
