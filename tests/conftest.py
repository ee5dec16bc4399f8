"""
Shared fixtures for the league engine test suite.

Each test gets its own SQLite file so rollover transactions never interfere
across tests.
"""

import os

# Must be set before league_engine.config is imported
os.environ.setdefault('LOG_DIR', '')
os.environ.setdefault('GLOBAL_LEADERBOARD_CACHE_TTL', '0')

import pytest
import pytest_asyncio
from sqlalchemy import select

from league_engine.database.database import Database
from league_engine.database.models import (
    LeagueHistoryRecord, LeagueTier, UserLeagueState, WeeklyScoreEntry
)
from league_engine.services.configuration import ConfigurationService
from league_engine.services.league_state import LeagueStateService
from league_engine.services.notifications import LeagueNotifier
from league_engine.services.score_ledger import ScoreLedgerService
from league_engine.services.standings import StandingsService
from league_engine.services.weekly_rollover_service import WeeklyRolloverService
from league_engine.utils.tiers import TierRegistry

WEEK = "2026-W41"


@pytest.fixture
def registry():
    return TierRegistry()


@pytest_asyncio.fixture
async def db(tmp_path):
    database = Database(f"sqlite+aiosqlite:///{tmp_path / 'league.db'}")
    await database.initialize()
    yield database
    await database.close()


@pytest_asyncio.fixture
async def config_service(db):
    service = ConfigurationService(db.session_factory)
    await service.load_all()
    return service


@pytest.fixture
def notifier():
    return LeagueNotifier()


@pytest.fixture
def ledger(db):
    return ScoreLedgerService(db.session_factory)


@pytest.fixture
def league_state(db, registry):
    return LeagueStateService(db.session_factory, registry)


@pytest.fixture
def standings(db, registry):
    return StandingsService(db.session_factory, registry)


@pytest.fixture
def rollover(db, registry, notifier, standings):
    return WeeklyRolloverService(
        db.session_factory,
        registry,
        notifier=notifier,
        standings_service=standings,
        fan_out=1,
        max_retries=2,
        retry_base_delay=0,
    )


@pytest.fixture
def add_user(db):
    """Insert a league state and, when weekly is given, a ledger entry for WEEK."""
    async def _add_user(user_id, tier=LeagueTier.SILVER, division=1, lifetime=1000,
                        weekly=None, week_id=WEEK, display_name=None):
        async with db.transaction() as session:
            session.add(UserLeagueState(
                user_id=user_id,
                display_name=display_name,
                tier=tier,
                division=division,
                lifetime_score=lifetime,
                weekly_score=weekly or 0,
            ))
            if weekly is not None:
                session.add(WeeklyScoreEntry(user_id=user_id, week_id=week_id, score=weekly))
    return _add_user


@pytest.fixture
def get_state(db):
    async def _get_state(user_id):
        async with db.get_session() as session:
            return await session.get(UserLeagueState, user_id)
    return _get_state


@pytest.fixture
def get_history(db):
    async def _get_history(week_id=WEEK):
        async with db.get_session() as session:
            result = await session.execute(
                select(LeagueHistoryRecord)
                .where(LeagueHistoryRecord.week_id == week_id)
                .order_by(LeagueHistoryRecord.rank)
            )
            return list(result.scalars().all())
    return _get_history


@pytest.fixture
def get_entry(db):
    async def _get_entry(user_id, week_id=WEEK):
        async with db.get_session() as session:
            return await session.scalar(
                select(WeeklyScoreEntry).where(
                    WeeklyScoreEntry.user_id == user_id,
                    WeeklyScoreEntry.week_id == week_id
                )
            )
    return _get_entry
