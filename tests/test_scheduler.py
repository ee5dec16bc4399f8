"""Rollover scheduler week tracking."""

from datetime import datetime

import pytz

from league_engine.data_models.league import RolloverSummary
from league_engine.database.models import LeagueTier
from league_engine.scheduler import CHECK_INTERVAL_MINUTES, RolloverScheduler


def summary(week_id, failed=()):
    return RolloverSummary(
        week_id=week_id,
        groups_processed=1,
        groups_failed=list(failed),
        groups_skipped=0,
        users_processed=10,
        promotions=1,
        relegations=2,
        rewards_granted=200,
    )


class StubRollover:
    def __init__(self, failures=None):
        self.calls = []
        self.failures = list(failures or [])

    async def run_weekly_rollover(self, week_id=None):
        self.calls.append(week_id)
        failed = self.failures.pop(0) if self.failures else ()
        return summary(week_id, failed)


class StubConfig:
    def __init__(self, enabled):
        self.enabled = enabled

    def get(self, key, default=None):
        if key == 'league.automated_rollover_enabled':
            return self.enabled
        return default


# Monday 00:00 in Seoul, the default league timezone
BOUNDARY = pytz.utc.localize(datetime(2026, 10, 18, 15, 0))


async def test_runs_closed_week_once():
    rollover = StubRollover()
    scheduler = RolloverScheduler(rollover)

    first = await scheduler.run_if_due(BOUNDARY)
    second = await scheduler.run_if_due(BOUNDARY)

    assert first.week_id == "2026-W42"
    assert second is None
    assert rollover.calls == ["2026-W42"]
    assert scheduler.last_completed_week == "2026-W42"


async def test_failed_groups_are_retried_next_check():
    rollover = StubRollover(failures=[[(LeagueTier.GOLD, 1)]])
    scheduler = RolloverScheduler(rollover)

    await scheduler.run_if_due(BOUNDARY)
    assert scheduler.last_completed_week is None
    assert scheduler.last_summary.groups_failed == [(LeagueTier.GOLD, 1)]

    await scheduler.run_if_due(BOUNDARY)
    assert rollover.calls == ["2026-W42", "2026-W42"]
    assert scheduler.last_completed_week == "2026-W42"


async def test_enabled_flag_follows_configuration():
    assert RolloverScheduler(StubRollover()).enabled
    assert RolloverScheduler(StubRollover(), StubConfig(True)).enabled
    assert not RolloverScheduler(StubRollover(), StubConfig(False)).enabled


async def test_missed_boundary_closes_latest_week():
    rollover = StubRollover()
    scheduler = RolloverScheduler(rollover)

    # Process was down for three boundaries; the first check closes the latest one
    later = pytz.utc.localize(datetime(2026, 11, 4, 3, 0))
    await scheduler.run_if_due(later)

    assert rollover.calls == ["2026-W44"]


async def test_loop_checks_every_interval_and_honours_disable():
    rollover = StubRollover()
    scheduler = RolloverScheduler(rollover, StubConfig(False))
    assert scheduler.weekly_rollover.minutes == CHECK_INTERVAL_MINUTES

    await scheduler.weekly_rollover()
    assert rollover.calls == []

    scheduler.config_service = StubConfig(True)
    await scheduler.weekly_rollover()
    assert len(rollover.calls) == 1
