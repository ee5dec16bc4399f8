"""
League state service

User league lifecycle: onboarding placement and lookups of the long-lived
state and the per-week history log.
"""

import logging
from typing import List, Optional
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from league_engine.constants import LeagueConstants
from league_engine.services.base import BaseService
from league_engine.database.models import UserLeagueState, LeagueHistoryRecord
from league_engine.utils.league_exceptions import UserLeagueNotFoundError
from league_engine.utils.tiers import TierRegistry

logger = logging.getLogger(__name__)

class LeagueStateService(BaseService):
    """Service for user league placement and history."""

    def __init__(self, session_factory, registry: TierRegistry):
        super().__init__(session_factory)
        self.registry = registry

    async def initialize_user_league(self, user_id: str, display_name: Optional[str] = None) -> UserLeagueState:
        """
        Place a new user in the league.

        New users start in the tier for a lifetime score of 0 (always the lowest
        tier) and division 1. Existing users are returned unchanged.
        """
        try:
            async with self.get_session() as session:
                existing = await session.get(UserLeagueState, user_id)
                if existing is not None:
                    logger.debug(f"User {user_id} already placed in {existing.tier.value} division {existing.division}")
                    return existing

                state = UserLeagueState(
                    user_id=user_id,
                    display_name=display_name,
                    tier=self.registry.tier_for_lifetime_score(0),
                    division=LeagueConstants.DEFAULT_DIVISION,
                    lifetime_score=0,
                    weekly_score=0,
                )
                session.add(state)
                await session.flush()
                await session.refresh(state)
        except IntegrityError:
            # Another caller placed the user between our read and insert
            logger.info(f"User {user_id} was initialized concurrently, returning existing state")
            return await self.get_user_state(user_id)

        logger.info(f"Initialized league for user {user_id}: {state.tier.value} division {state.division}")
        return state

    async def get_user_state(self, user_id: str) -> UserLeagueState:
        async with self.get_session() as session:
            state = await session.get(UserLeagueState, user_id)
        if state is None:
            raise UserLeagueNotFoundError(user_id)
        return state

    async def get_history(self, user_id: str, limit: Optional[int] = None) -> List[LeagueHistoryRecord]:
        """Past weekly results for a user, newest first."""
        stmt = (
            select(LeagueHistoryRecord)
            .where(LeagueHistoryRecord.user_id == user_id)
            .order_by(LeagueHistoryRecord.week_id.desc())
        )
        if limit:
            stmt = stmt.limit(limit)
        async with self.get_session() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())
