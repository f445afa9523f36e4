import asyncio
import logging
from datetime import date, datetime, timedelta

import pytest

from itmaint.core.config import Settings
from itmaint.models.alert import Alert
from itmaint.models.intervention import Intervention
from itmaint.services.scheduler import (
    MaintenanceScheduler,
    build_scheduler,
    create_alerts_job,
    reconcile_job,
    run_job,
    seconds_until,
)


def test_seconds_until_later_today():
    assert seconds_until(8, 0, datetime(2024, 5, 10, 7, 30)) == 1800


def test_seconds_until_rolls_over_to_tomorrow():
    assert seconds_until(8, 0, datetime(2024, 5, 10, 8, 0)) == 24 * 3600
    assert seconds_until(0, 0, datetime(2024, 12, 31, 23, 0)) == 3600


def test_run_job_logs_and_swallows_errors(caplog):
    def boom():
        raise RuntimeError("database unreachable")

    with caplog.at_level(logging.ERROR):
        assert run_job("reconcile", boom) is False
    assert "reconcile" in caplog.text
    assert "database unreachable" in caplog.text

    assert run_job("ok", lambda: 3) is True


def test_invalid_schedules_are_rejected():
    scheduler = MaintenanceScheduler()
    with pytest.raises(ValueError):
        scheduler.add_daily("bad", lambda: None, hour=24)
    with pytest.raises(ValueError):
        scheduler.add_daily("bad", lambda: None, hour=8, minute=60)
    with pytest.raises(ValueError):
        scheduler.add_interval("bad", lambda: None, seconds=0)


def test_daily_job_next_delay_uses_clock():
    scheduler = MaintenanceScheduler(clock=lambda: datetime(2024, 5, 10, 6, 0))
    job = scheduler.add_daily("alerts", lambda: None, hour=8)
    assert job.next_delay(scheduler.clock()) == 2 * 3600

    interval = scheduler.add_interval("dispatch", lambda: None, seconds=3600, first_delay=5)
    assert interval.first_delay == 5
    assert interval.next_delay(scheduler.clock()) == 3600


def test_build_scheduler_registers_maintenance_jobs():
    scheduler = build_scheduler(Settings(RECONCILE_HOUR=1, ALERT_HOUR=9, DISPATCH_INTERVAL_SECONDS=600))

    assert list(scheduler.jobs) == ["reconcile", "create_alerts", "dispatch"]
    assert scheduler.jobs["reconcile"].hour == 1
    assert scheduler.jobs["reconcile"].run_at_start is True
    assert scheduler.jobs["create_alerts"].hour == 9
    assert scheduler.jobs["create_alerts"].run_at_start is True
    assert scheduler.jobs["dispatch"].interval == 600
    assert scheduler.jobs["dispatch"].run_at_start is False


def test_startup_runs_reconcile_before_alerts_then_dispatch():
    calls = []

    async def scenario():
        scheduler = MaintenanceScheduler()
        scheduler.add_daily("reconcile", lambda: calls.append("reconcile"), hour=0, run_at_start=True)
        scheduler.add_daily("create_alerts", lambda: calls.append("create_alerts"), hour=8, run_at_start=True)
        scheduler.add_interval("dispatch", lambda: calls.append("dispatch"), seconds=60, first_delay=0.05)
        scheduler.start()
        assert scheduler.running
        await asyncio.sleep(0.5)
        await scheduler.stop()
        assert not scheduler.running

    asyncio.run(scenario())

    assert calls[:2] == ["reconcile", "create_alerts"]
    assert calls.count("dispatch") == 1


def test_failing_job_does_not_stop_the_scheduler():
    calls = []

    def failing():
        calls.append("reconcile")
        raise RuntimeError("boom")

    async def scenario():
        scheduler = MaintenanceScheduler()
        scheduler.add_daily("reconcile", failing, hour=0, run_at_start=True)
        scheduler.add_interval("dispatch", lambda: calls.append("dispatch"), seconds=0.1, first_delay=0.05)
        scheduler.start()
        await asyncio.sleep(0.4)
        assert await scheduler.run_now("dispatch") is True
        await scheduler.stop()

    asyncio.run(scenario())

    assert calls[0] == "reconcile"
    assert calls.count("dispatch") >= 2


def test_job_bodies_use_their_own_sessions(monkeypatch, session_factory, db, make_equipment):
    monkeypatch.setattr("itmaint.database.SessionLocal", session_factory)
    make_equipment(purchase_date=date.today() + timedelta(days=3))

    assert reconcile_job() >= 2
    created = create_alerts_job()

    db.expire_all()
    assert db.query(Intervention).count() >= 2
    assert db.query(Alert).count() == created
