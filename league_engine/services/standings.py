"""
Standings service

Read-only league views: live standings of one (tier, division) for mid-week
polling, and the global top-N leaderboard by lifetime score. Neither path
mutates state; both reflect whatever is committed at read time.
"""

from typing import Dict, List, Optional, Tuple
import asyncio
import time
import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from league_engine.config import Config
from league_engine.services.base import BaseService
from league_engine.data_models.league import RankedEntry
from league_engine.database.models import LeagueTier, UserLeagueState, WeeklyScoreEntry
from league_engine.utils.grouping import DivisionGrouper
from league_engine.utils.league_exceptions import StandingsUnavailableError
from league_engine.utils.ranking import RankingCalculator
from league_engine.utils.tiers import TierRegistry
from league_engine.utils.week import week_identifier

logger = logging.getLogger(__name__)


class StandingsService(BaseService):
    """Service for live division standings and the global leaderboard."""

    def __init__(self, session_factory, registry: TierRegistry, config_service=None):
        super().__init__(session_factory)
        self.registry = registry
        self.config_service = config_service
        self.grouper = DivisionGrouper(registry)
        # TTL cache for the global leaderboard
        self._cache: Dict[str, Tuple[float, List[RankedEntry]]] = {}
        self._cache_lock = asyncio.Lock()

    @property
    def cache_ttl(self) -> int:
        return self.setting('league.global_leaderboard_cache_ttl', Config.GLOBAL_LEADERBOARD_CACHE_TTL)

    async def get_rankings(self, tier: LeagueTier, division: int,
                           week_id: Optional[str] = None) -> List[RankedEntry]:
        """
        Rank the current members of one division by this week's scores.

        Raises:
            StandingsUnavailableError: if the store cannot be read. A partial
                ranking is never returned.
        """
        if division < 1:
            raise ValueError("division must be a positive integer")
        week_id = week_id or week_identifier()

        try:
            async with self.get_session() as session:
                result = await session.execute(
                    select(UserLeagueState).where(
                        UserLeagueState.tier == tier,
                        UserLeagueState.division == division
                    )
                )
                states = list(result.scalars().all())

                entries = []
                if states:
                    entry_result = await session.execute(
                        select(WeeklyScoreEntry).where(
                            WeeklyScoreEntry.week_id == week_id,
                            WeeklyScoreEntry.user_id.in_([s.user_id for s in states])
                        )
                    )
                    entries = list(entry_result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"Failed to read standings for {tier.value} division {division}: {e}", exc_info=True)
            raise StandingsUnavailableError("get_rankings", str(e)) from e

        groups = self.grouper.group(states, entries)
        return RankingCalculator.rank(groups.get((tier, division), []))

    async def get_global_leaderboard(self, limit: Optional[int] = None) -> List[RankedEntry]:
        """
        Top users by lifetime score across every tier.

        Raises:
            StandingsUnavailableError: if the store cannot be read
        """
        limit = limit or self.setting('league.global_leaderboard_size', Config.GLOBAL_LEADERBOARD_SIZE)
        if not isinstance(limit, int) or limit < 1:
            raise ValueError("limit must be a positive integer")

        cache_key = f"global:{limit}"
        ttl = self.cache_ttl
        if ttl > 0:
            async with self._cache_lock:
                cached = self._cache.get(cache_key)
                if cached and time.time() - cached[0] < ttl:
                    return cached[1]

        try:
            async with self.get_session() as session:
                result = await session.execute(
                    select(UserLeagueState)
                    .order_by(UserLeagueState.lifetime_score.desc(), UserLeagueState.user_id.asc())
                    .limit(limit)
                )
                states = list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"Failed to read global leaderboard: {e}", exc_info=True)
            raise StandingsUnavailableError("get_global_leaderboard", str(e)) from e

        leaderboard = [
            RankedEntry(
                rank=position,
                user_id=state.user_id,
                weekly_score=state.weekly_score or 0,
                lifetime_score=state.lifetime_score or 0,
                tier=state.tier,
                division=state.division,
                display_name=state.display_name,
            )
            for position, state in enumerate(states, start=1)
        ]

        if ttl > 0:
            async with self._cache_lock:
                self._cache[cache_key] = (time.time(), leaderboard)
        return leaderboard

    async def invalidate_cache(self):
        """Drop cached leaderboards, e.g. after a rollover."""
        async with self._cache_lock:
            self._cache.clear()
        logger.debug("Global leaderboard cache cleared")
