"""Weekly score ledger accrual."""

import pytest
from sqlalchemy import update

from league_engine.database.models import LeagueTier, WeeklyScoreEntry
from league_engine.utils.league_exceptions import ScoreValidationError, WeekClosedError
from league_engine.utils.week import week_identifier

WEEK = "2026-W41"


async def mark_processed(db, user_id, week_id=WEEK):
    async with db.transaction() as session:
        await session.execute(
            update(WeeklyScoreEntry)
            .where(WeeklyScoreEntry.user_id == user_id, WeeklyScoreEntry.week_id == week_id)
            .values(processed=True)
        )


async def test_first_grant_creates_entry(ledger, get_entry):
    total = await ledger.increment_weekly_score("u1", 25, week_id=WEEK)
    assert total == 25
    entry = await get_entry("u1")
    assert entry.score == 25
    assert entry.processed is False


async def test_grants_are_additive(ledger):
    await ledger.increment_weekly_score("u1", 10, week_id=WEEK)
    await ledger.increment_weekly_score("u1", 15, week_id=WEEK)
    total = await ledger.increment_weekly_score("u1", 5, week_id=WEEK)
    assert total == 30
    assert await ledger.get_weekly_score("u1", WEEK) == 30


async def test_weeks_are_separate(ledger):
    await ledger.increment_weekly_score("u1", 10, week_id=WEEK)
    await ledger.increment_weekly_score("u1", 7, week_id="2026-W42")
    assert await ledger.get_weekly_score("u1", WEEK) == 10
    assert await ledger.get_weekly_score("u1", "2026-W42") == 7


async def test_grant_accrues_lifetime_score(ledger, add_user, get_state):
    await add_user("u1", tier=LeagueTier.BRONZE, lifetime=100)
    await ledger.increment_weekly_score("u1", 40, week_id=WEEK)
    state = await get_state("u1")
    assert state.lifetime_score == 140
    # Not the current week, so the weekly mirror is untouched
    assert state.weekly_score == 0


async def test_current_week_grant_updates_mirror(ledger, add_user, get_state):
    await add_user("u1", tier=LeagueTier.BRONZE, lifetime=0)
    await ledger.increment_weekly_score("u1", 12)
    await ledger.increment_weekly_score("u1", 3)
    state = await get_state("u1")
    assert state.weekly_score == 15
    assert state.lifetime_score == 15
    assert await ledger.get_weekly_score("u1") == 15
    assert await ledger.get_weekly_score("u1", week_identifier()) == 15


@pytest.mark.parametrize("amount", [0, -5, 2.5, "10", True, None])
async def test_invalid_amounts_are_rejected(ledger, amount):
    with pytest.raises(ScoreValidationError):
        await ledger.increment_weekly_score("u1", amount, week_id=WEEK)


async def test_missing_user_is_rejected(ledger):
    with pytest.raises(ScoreValidationError):
        await ledger.increment_weekly_score("", 5, week_id=WEEK)


async def test_processed_week_is_closed(ledger, db):
    await ledger.increment_weekly_score("u1", 10, week_id=WEEK)
    await mark_processed(db, "u1")
    with pytest.raises(WeekClosedError):
        await ledger.increment_weekly_score("u1", 10, week_id=WEEK)


async def test_unknown_score_defaults_to_zero(ledger):
    assert await ledger.get_weekly_score("nobody", WEEK) == 0


async def test_entries_for_week_skip_processed(ledger, db):
    await ledger.increment_weekly_score("u1", 10, week_id=WEEK)
    await ledger.increment_weekly_score("u2", 20, week_id=WEEK)
    await ledger.increment_weekly_score("u3", 30, week_id="2026-W40")
    await mark_processed(db, "u1")

    pending = await ledger.get_entries_for_week(WEEK)
    assert [e.user_id for e in pending] == ["u2"]
    everything = await ledger.get_entries_for_week(WEEK, include_processed=True)
    assert sorted(e.user_id for e in everything) == ["u1", "u2"]
