"""
Background scheduler for the preventive maintenance jobs.

Jobs:
  • reconcile      - daily at RECONCILE_HOUR and once at startup
  • create_alerts  - daily at ALERT_HOUR and once at startup (after reconcile)
  • dispatch       - every DISPATCH_INTERVAL_SECONDS, first run shortly after startup

Each job body is synchronous (SQLAlchemy sessions, smtplib) and runs in a
worker thread so the event loop keeps serving requests. Jobs share one lock
and never overlap. Errors are logged at the job boundary and never propagate.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

from itmaint.core.config import Settings, get_settings

logger = logging.getLogger(__name__)


def seconds_until(hour: int, minute: int, now: datetime) -> float:
    """Seconds from now until the next occurrence of hour:minute (tomorrow if already passed)."""
    target = now.replace(hour=hour, minute=minute, second=0, microsecond=0)
    if target <= now:
        target += timedelta(days=1)
    return (target - now).total_seconds()


def run_job(name: str, func: Callable[[], object]) -> bool:
    """Run a job body, logging and swallowing any error. Returns True on success."""
    started = datetime.utcnow()
    try:
        result = func()
    except Exception:
        logger.exception(f"[scheduler] Job '{name}' failed")
        return False
    duration = (datetime.utcnow() - started).total_seconds()
    logger.info(f"[scheduler] Job '{name}' finished ({duration:.2f}s) -> {result}")
    return True


@dataclass
class ScheduledJob:
    name: str
    func: Callable[[], object]
    hour: Optional[int] = None
    minute: int = 0
    interval: Optional[float] = None
    first_delay: float = 0.0
    run_at_start: bool = False

    @property
    def is_daily(self) -> bool:
        return self.hour is not None

    def next_delay(self, now: datetime) -> float:
        if self.is_daily:
            return seconds_until(self.hour, self.minute, now)
        return float(self.interval)


class MaintenanceScheduler:
    """Minimal asyncio scheduler: fixed daily times, fixed intervals and run-now."""

    def __init__(self, clock: Callable[[], datetime] = datetime.now):
        self.clock = clock
        self.jobs: Dict[str, ScheduledJob] = {}
        self._tasks: List[asyncio.Task] = []
        self._lock: Optional[asyncio.Lock] = None

    @property
    def running(self) -> bool:
        return any(not t.done() for t in self._tasks)

    def add_daily(self, name: str, func: Callable[[], object], hour: int, minute: int = 0,
                  run_at_start: bool = False) -> ScheduledJob:
        if not 0 <= hour <= 23 or not 0 <= minute <= 59:
            raise ValueError(f"Invalid time {hour}:{minute:02d} for job '{name}'")
        job = ScheduledJob(name=name, func=func, hour=hour, minute=minute, run_at_start=run_at_start)
        self.jobs[name] = job
        return job

    def add_interval(self, name: str, func: Callable[[], object], seconds: float,
                     first_delay: Optional[float] = None) -> ScheduledJob:
        if seconds <= 0:
            raise ValueError(f"Interval for job '{name}' must be positive")
        job = ScheduledJob(
            name=name,
            func=func,
            interval=seconds,
            first_delay=seconds if first_delay is None else first_delay,
        )
        self.jobs[name] = job
        return job

    async def _run_locked(self, jobs: List[ScheduledJob]) -> List[bool]:
        if self._lock is None:
            self._lock = asyncio.Lock()
        results = []
        async with self._lock:
            for job in jobs:
                results.append(await asyncio.to_thread(run_job, job.name, job.func))
        return results

    async def run_now(self, name: str) -> bool:
        """Run a registered job immediately, waiting for any job already running."""
        return (await self._run_locked([self.jobs[name]]))[0]

    async def _startup(self) -> None:
        # one lock hold so nothing runs between reconcile and alert creation
        await self._run_locked([job for job in self.jobs.values() if job.run_at_start])

    async def _loop(self, job: ScheduledJob) -> None:
        delay = job.next_delay(self.clock()) if job.is_daily else job.first_delay
        while True:
            await asyncio.sleep(delay)
            await self.run_now(job.name)
            delay = job.next_delay(self.clock())

    def start(self) -> None:
        """Schedule every job on the running event loop."""
        if self.running:
            return
        self._lock = asyncio.Lock()
        self._tasks = [asyncio.create_task(self._startup(), name="scheduler-startup")]
        for job in self.jobs.values():
            self._tasks.append(asyncio.create_task(self._loop(job), name=f"scheduler-{job.name}"))
            if job.is_daily:
                logger.info(f"[scheduler] '{job.name}' scheduled daily at {job.hour:02d}:{job.minute:02d}")
            else:
                logger.info(f"[scheduler] '{job.name}' scheduled every {job.interval:.0f}s")
        logger.info("[scheduler] Scheduler started")

    async def stop(self) -> None:
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        logger.info("[scheduler] Scheduler stopped")


# ── Job bodies ────────────────────────────────────────────────────────────────

def reconcile_job() -> int:
    from itmaint.database import SessionLocal
    from itmaint.services.preventive import generate_missing_interventions

    with SessionLocal() as db:
        return generate_missing_interventions(db)


def create_alerts_job() -> int:
    from itmaint.database import SessionLocal
    from itmaint.services.preventive import create_alerts

    with SessionLocal() as db:
        return create_alerts(db)


def dispatch_job() -> int:
    from itmaint.database import SessionLocal
    from itmaint.services.notification_service import send_pending_alerts

    with SessionLocal() as db:
        return send_pending_alerts(db)


def build_scheduler(settings: Optional[Settings] = None) -> MaintenanceScheduler:
    """Scheduler wired with the three preventive maintenance jobs."""
    settings = settings or get_settings()
    scheduler = MaintenanceScheduler()
    scheduler.add_daily("reconcile", reconcile_job, hour=settings.RECONCILE_HOUR, run_at_start=True)
    scheduler.add_daily("create_alerts", create_alerts_job, hour=settings.ALERT_HOUR, run_at_start=True)
    scheduler.add_interval(
        "dispatch",
        dispatch_job,
        seconds=settings.DISPATCH_INTERVAL_SECONDS,
        first_delay=settings.DISPATCH_STARTUP_DELAY_SECONDS,
    )
    return scheduler
