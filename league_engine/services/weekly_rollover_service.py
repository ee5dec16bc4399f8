"""
Weekly Rollover Service - scheduled week-boundary processing

This service closes one league week: it loads the ledger and league states,
shards users into (tier, division) groups, ranks each group, resolves
promotions, relegations and rewards, and commits each group atomically.

Key Features:
- Groups processed concurrently up to a configured fan-out
- One transaction per group: state moves, rewards, ledger reset, history
- Bounded exponential-backoff retry per group; a failed group never blocks others
- Per-group marker written last so re-running a week is a no-op
- League change notifications published after each successful commit
"""

import asyncio
import logging
from typing import Dict, List, Optional, Set, Tuple
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from league_engine.config import Config
from league_engine.services.base import BaseService
from league_engine.services.notifications import LeagueNotifier
from league_engine.services.score_ledger import ScoreLedgerService
from league_engine.data_models.league import (
    GroupKey, GroupMember, GroupOutcome, GroupPhase, LeagueChange,
    RolloverSummary, TransitionDecision
)
from league_engine.database.models import (
    LeagueGroupMarker, LeagueHistoryRecord, LeagueTier, UserLeagueState, WeeklyScoreEntry
)
from league_engine.utils.grouping import DivisionGrouper
from league_engine.utils.league_exceptions import TransactionError
from league_engine.utils.ranking import RankingCalculator
from league_engine.utils.tiers import TierRegistry
from league_engine.utils.transitions import TransitionResolver
from league_engine.utils.week import previous_week_identifier, week_identifier

logger = logging.getLogger(__name__)

class WeeklyRolloverService(BaseService):
    """Service for closing a league week and applying its results."""

    def __init__(self, session_factory, registry: TierRegistry, config_service=None,
                 notifier: Optional[LeagueNotifier] = None, standings_service=None,
                 fan_out: Optional[int] = None, max_retries: Optional[int] = None,
                 retry_base_delay: Optional[float] = None):
        super().__init__(session_factory)
        self.registry = registry
        self.config_service = config_service
        self.notifier = notifier
        self.standings_service = standings_service  # Cache invalidated after each run
        self.grouper = DivisionGrouper(registry)
        self.resolver = TransitionResolver(registry)
        # Explicit values win over runtime configuration
        self._fan_out = fan_out
        self._max_retries = max_retries
        self._retry_base_delay = retry_base_delay

    @property
    def fan_out(self) -> int:
        if self._fan_out is not None:
            return self._fan_out
        return self.setting('league.rollover_fan_out', Config.ROLLOVER_FAN_OUT)

    @property
    def max_retries(self) -> int:
        if self._max_retries is not None:
            return self._max_retries
        return self.setting('league.commit_max_retries', Config.COMMIT_MAX_RETRIES)

    @property
    def retry_base_delay(self) -> float:
        if self._retry_base_delay is not None:
            return self._retry_base_delay
        return self.setting('league.commit_retry_base_delay', Config.COMMIT_RETRY_BASE_DELAY)

    async def run_weekly_rollover(self, week_id: Optional[str] = None) -> RolloverSummary:
        """
        Close a league week.

        This method:
        1. Loads league states, the week's unprocessed ledger entries and the
           groups/users already processed for the week (LOADED)
        2. Shards users into (tier, division) groups (GROUPED)
        3. For each group concurrently: ranks, resolves and commits it
        4. Publishes league change notifications for committed groups

        Args:
            week_id: Week to close, defaults to the week that just ended

        Returns:
            RolloverSummary with processed, failed and skipped groups

        Raises:
            TransactionError: if the snapshot cannot be loaded; nothing is
                committed in that case
        """
        week_id = week_id or previous_week_identifier()
        logger.info(f"Starting weekly rollover for week {week_id}")

        try:
            states, entries, committed_keys, processed_users = await self.execute_with_retry(
                lambda: self._load_snapshot(week_id),
                max_retries=self.max_retries,
                base_delay=self.retry_base_delay,
            )
        except Exception as e:
            logger.error(f"Failed to load rollover snapshot for week {week_id}: {e}", exc_info=True)
            raise TransactionError(f"load rollover snapshot for week {week_id}", self.max_retries) from e

        logger.info(
            f"Loaded {len(states)} league states and {len(entries)} ledger entries for week {week_id} "
            f"({len(committed_keys)} groups already committed)"
        )

        groups = self.grouper.group(states, entries, exclude_user_ids=processed_users)
        logger.info(f"Grouped week {week_id} into {len(groups)} divisions")

        semaphore = asyncio.Semaphore(max(1, self.fan_out))

        async def _run_group(key: GroupKey, members: List[GroupMember]) -> GroupOutcome:
            async with semaphore:
                return await self._process_group(week_id, key, members, key in committed_keys)

        ordered_keys = sorted(groups, key=self._group_sort_key)
        outcomes = await asyncio.gather(*(_run_group(key, groups[key]) for key in ordered_keys))

        summary = self._summarize(week_id, outcomes)

        if self.standings_service is not None and summary.groups_processed:
            await self.standings_service.invalidate_cache()

        logger.info(
            f"Weekly rollover for week {week_id} completed: {summary.groups_processed} processed, "
            f"{len(summary.groups_failed)} failed, {summary.groups_skipped} skipped, "
            f"{summary.promotions} promoted, {summary.relegations} relegated"
        )
        if summary.groups_failed:
            failed = ', '.join(f"{tier.value}/{division}" for tier, division in summary.groups_failed)
            logger.error(f"Groups needing operator follow-up for week {week_id}: {failed}")

        return summary

    async def _load_snapshot(self, week_id: str) -> Tuple[List[UserLeagueState], List[WeeklyScoreEntry], Set[GroupKey], Set[str]]:
        """Fetch everything the grouping step needs in one read session."""
        async with self.get_session() as session:
            states_result = await session.execute(select(UserLeagueState))
            states = list(states_result.scalars().all())

            entries = await ScoreLedgerService.fetch_entries_for_week(session, week_id)

            marker_result = await session.execute(
                select(LeagueGroupMarker.tier, LeagueGroupMarker.division)
                .where(LeagueGroupMarker.week_id == week_id)
            )
            committed_keys = {(row.tier, row.division) for row in marker_result}

            history_result = await session.execute(
                select(LeagueHistoryRecord.user_id)
                .where(LeagueHistoryRecord.week_id == week_id)
                .distinct()
            )
            processed_users = set(history_result.scalars().all())

        return states, entries, committed_keys, processed_users

    async def _process_group(self, week_id: str, key: GroupKey, members: List[GroupMember],
                             already_committed: bool) -> GroupOutcome:
        """Run rank -> resolve -> commit for one group."""
        tier, division = key

        if already_committed:
            logger.info(f"{tier.value} division {division} already committed for week {week_id}, skipping")
            return GroupOutcome(tier=tier, division=division, phase=GroupPhase.SKIPPED, members=len(members))

        if not any(member.weekly_score > 0 for member in members):
            # Nobody scored: ranking would only order by lifetime score
            logger.info(f"{tier.value} division {division} had no activity in week {week_id}, skipping")
            return GroupOutcome(tier=tier, division=division, phase=GroupPhase.SKIPPED, members=len(members))

        phase = GroupPhase.GROUPED
        try:
            ranked = RankingCalculator.rank(members)
            phase = GroupPhase.RANKED

            decisions = self.resolver.resolve(ranked, tier)
            phase = GroupPhase.RESOLVED

            async def _commit():
                return await self._commit_group(week_id, tier, division, decisions)

            committed, applied, changes = await self.execute_with_retry(
                _commit,
                max_retries=self.max_retries,
                base_delay=self.retry_base_delay,
            )
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(
                f"Rollover failed for {tier.value} division {division} in phase {phase.value}: {e}",
                exc_info=True
            )
            return GroupOutcome(
                tier=tier, division=division, phase=GroupPhase.FAILED,
                members=len(members), error=str(e)
            )

        if not committed:
            logger.info(f"{tier.value} division {division} was committed concurrently for week {week_id}")
            return GroupOutcome(tier=tier, division=division, phase=GroupPhase.SKIPPED, members=len(members))

        if self.notifier is not None:
            for change in changes:
                self.notifier.publish(change)

        outcome = GroupOutcome(
            tier=tier,
            division=division,
            phase=GroupPhase.COMMITTED,
            members=len(applied),
            promotions=sum(1 for d in applied if d.promote),
            relegations=sum(1 for d in applied if d.relegate),
            rewards_granted=sum(d.reward for d in applied),
        )
        logger.info(
            f"Processed {tier.value} division {division}: {outcome.members} users, "
            f"{outcome.promotions} promoted, {outcome.relegations} relegated"
        )
        return outcome

    async def _commit_group(self, week_id: str, tier: LeagueTier, division: int,
                            decisions: List[TransitionDecision]) -> Tuple[bool, List[TransitionDecision], List[LeagueChange]]:
        """
        Apply one group's decisions in a single transaction.

        Returns:
            (False, [], []) if the group's marker already exists, else
            (True, applied decisions, changes). Users who moved or lost their
            state since the snapshot are left out of both lists.
        """
        user_ids = [d.user_id for d in decisions]
        current_week = week_identifier()

        async with self.get_session() as session:
            async with session.begin():
                marker = await session.scalar(
                    select(LeagueGroupMarker.id).where(
                        LeagueGroupMarker.week_id == week_id,
                        LeagueGroupMarker.tier == tier,
                        LeagueGroupMarker.division == division
                    )
                )
                if marker is not None:
                    return False, [], []

                states = await self._fetch_by_user(session, UserLeagueState, user_ids)
                entries = await self._fetch_by_user(session, WeeklyScoreEntry, user_ids, week_id)
                if current_week != week_id:
                    # Grants for the new week may already have landed in the mirror
                    open_week = await self._fetch_by_user(session, WeeklyScoreEntry, user_ids, current_week)
                else:
                    open_week = {}

                applied = []
                changes = []
                for decision in decisions:
                    state = states.get(decision.user_id)
                    if state is None:
                        logger.warning(f"User {decision.user_id} lost their league state before commit, skipping")
                        continue
                    if (state.tier, state.division) != (tier, division):
                        logger.warning(
                            f"User {decision.user_id} moved to {state.tier.value} division {state.division} "
                            f"before commit, skipping"
                        )
                        continue

                    state.tier = decision.target_tier
                    state.division = decision.target_division
                    if decision.reward:
                        state.lifetime_score = UserLeagueState.lifetime_score + decision.reward
                    open_entry = open_week.get(decision.user_id)
                    state.weekly_score = open_entry.score if open_entry is not None else 0

                    entry = entries.get(decision.user_id)
                    if entry is not None:
                        entry.score = 0
                        entry.processed = True

                    session.add(LeagueHistoryRecord(
                        user_id=decision.user_id,
                        week_id=week_id,
                        tier=tier,
                        division=division,
                        weekly_score=decision.weekly_score,
                        rank=decision.rank,
                        promoted=decision.promote,
                        relegated=decision.relegate,
                        reward=decision.reward,
                    ))

                    if decision.promote or decision.relegate:
                        changes.append(LeagueChange(
                            user_id=decision.user_id,
                            week_id=week_id,
                            old_tier=tier,
                            new_tier=decision.target_tier,
                            old_division=division,
                            new_division=decision.target_division,
                            promoted=decision.promote,
                            relegated=decision.relegate,
                        ))
                    applied.append(decision)

                # Marker last: its presence gates re-processing
                session.add(LeagueGroupMarker(
                    week_id=week_id,
                    tier=tier,
                    division=division,
                    members_processed=len(applied),
                ))

        return True, applied, changes

    @staticmethod
    async def _fetch_by_user(session: AsyncSession, model, user_ids: List[str],
                             week_id: Optional[str] = None) -> Dict:
        if not user_ids:
            return {}
        stmt = select(model).where(model.user_id.in_(user_ids))
        if week_id is not None:
            stmt = stmt.where(model.week_id == week_id)
        result = await session.execute(stmt)
        return {row.user_id: row for row in result.scalars()}

    def _group_sort_key(self, key: GroupKey):
        tier, division = key
        return (self.registry.tiers().index(tier), division)

    @staticmethod
    def _summarize(week_id: str, outcomes: List[GroupOutcome]) -> RolloverSummary:
        committed = [o for o in outcomes if o.phase == GroupPhase.COMMITTED]
        return RolloverSummary(
            week_id=week_id,
            groups_processed=len(committed),
            groups_failed=[o.key for o in outcomes if o.phase == GroupPhase.FAILED],
            groups_skipped=sum(1 for o in outcomes if o.phase == GroupPhase.SKIPPED),
            users_processed=sum(o.members for o in committed),
            promotions=sum(o.promotions for o in committed),
            relegations=sum(o.relegations for o in committed),
            rewards_granted=sum(o.rewards_granted for o in committed),
            outcomes=list(outcomes),
        )
