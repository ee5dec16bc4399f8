"""
Weekly score ledger service

Additive per-user, per-week score counter. The XP subsystem calls
increment_weekly_score whenever a user earns progression points; the rollover
and live standings read it.
"""

import logging
from typing import List, Optional
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from league_engine.config import Config
from league_engine.services.base import BaseService
from league_engine.database.models import (
    WeeklyScoreEntry, UserLeagueState, LeagueHistoryRecord
)
from league_engine.utils.league_exceptions import ScoreValidationError, WeekClosedError
from league_engine.utils.week import week_identifier

logger = logging.getLogger(__name__)

class ScoreLedgerService(BaseService):
    """Service for weekly score accrual."""

    def __init__(self, session_factory, config_service=None):
        super().__init__(session_factory)
        self.config_service = config_service

    async def increment_weekly_score(self, user_id: str, amount: int,
                                     week_id: Optional[str] = None) -> int:
        """
        Add points to a user's weekly score.

        The ledger entry is created on the first grant of the week. When the
        user has a league state, the amount also accrues to their lifetime
        score, and to the weekly mirror if the grant is for the current week.

        Args:
            user_id: User receiving the points
            amount: Positive number of points
            week_id: Target week, defaults to the current week

        Returns:
            The user's weekly total after the grant

        Raises:
            ScoreValidationError: if amount is not a positive integer
            WeekClosedError: if the week was already rolled over for this user
        """
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise ScoreValidationError(amount, "Score must be a whole number.")
        if amount <= 0:
            raise ScoreValidationError(amount, "Score must be positive.")
        if not user_id:
            raise ScoreValidationError(amount, "A user is required.")

        current_week = week_identifier()
        target_week = week_id or current_week

        async def _apply_increment():
            async with self.get_session() as session:
                async with session.begin():
                    return await self._apply_increment(
                        session, user_id, amount, target_week, target_week == current_week
                    )

        new_total = await self.execute_with_retry(
            _apply_increment,
            max_retries=self.setting('league.commit_max_retries', Config.COMMIT_MAX_RETRIES),
            base_delay=self.setting('league.commit_retry_base_delay', Config.COMMIT_RETRY_BASE_DELAY),
        )
        logger.debug(f"Granted {amount} to user {user_id} for week {target_week}, total {new_total}")
        return new_total

    async def _apply_increment(self, session: AsyncSession, user_id: str, amount: int,
                               week_id: str, is_current_week: bool) -> int:
        entry = (await session.execute(
            select(WeeklyScoreEntry).where(
                WeeklyScoreEntry.user_id == user_id,
                WeeklyScoreEntry.week_id == week_id
            )
        )).scalar_one_or_none()

        if entry is not None and entry.processed:
            raise WeekClosedError(user_id, week_id)

        already_processed = await session.scalar(
            select(LeagueHistoryRecord.id).where(
                LeagueHistoryRecord.user_id == user_id,
                LeagueHistoryRecord.week_id == week_id
            )
        )
        if already_processed is not None:
            raise WeekClosedError(user_id, week_id)

        if entry is None:
            session.add(WeeklyScoreEntry(user_id=user_id, week_id=week_id, score=amount))
        else:
            # Column arithmetic so concurrent grants never lose an update
            await session.execute(
                update(WeeklyScoreEntry)
                .where(WeeklyScoreEntry.id == entry.id)
                .values(score=WeeklyScoreEntry.score + amount)
            )

        state_values = {'lifetime_score': UserLeagueState.lifetime_score + amount}
        if is_current_week:
            state_values['weekly_score'] = UserLeagueState.weekly_score + amount
        await session.execute(
            update(UserLeagueState)
            .where(UserLeagueState.user_id == user_id)
            .values(**state_values)
        )

        await session.flush()
        return await session.scalar(
            select(WeeklyScoreEntry.score).where(
                WeeklyScoreEntry.user_id == user_id,
                WeeklyScoreEntry.week_id == week_id
            )
        )

    async def get_weekly_score(self, user_id: str, week_id: Optional[str] = None) -> int:
        """Current weekly total for a user, 0 when nothing was granted."""
        week_id = week_id or week_identifier()
        async with self.get_session() as session:
            score = await session.scalar(
                select(WeeklyScoreEntry.score).where(
                    WeeklyScoreEntry.user_id == user_id,
                    WeeklyScoreEntry.week_id == week_id
                )
            )
        return score or 0

    async def get_entries_for_week(self, week_id: str, include_processed: bool = False) -> List[WeeklyScoreEntry]:
        """All ledger entries for a week, by default only those not yet rolled over."""
        async with self.get_session() as session:
            return await self.fetch_entries_for_week(session, week_id, include_processed)

    @staticmethod
    async def fetch_entries_for_week(session: AsyncSession, week_id: str,
                                     include_processed: bool = False) -> List[WeeklyScoreEntry]:
        stmt = select(WeeklyScoreEntry).where(WeeklyScoreEntry.week_id == week_id)
        if not include_processed:
            stmt = stmt.where(WeeklyScoreEntry.processed == False)
        result = await session.execute(stmt)
        return list(result.scalars().all())
