"""
Division grouper

Shards the league population for one week into disjoint (tier, division)
groups.
"""

import logging
from collections import defaultdict
from typing import Dict, Iterable, List

from league_engine.data_models.league import GroupKey, GroupMember
from league_engine.utils.tiers import TierRegistry

logger = logging.getLogger(__name__)


class DivisionGrouper:
    """Builds one group per (tier, division) from league states and ledger entries."""

    def __init__(self, registry: TierRegistry):
        self.registry = registry

    def group(self, states: Iterable, ledger_entries: Iterable,
              exclude_user_ids: Iterable[str] = ()) -> Dict[GroupKey, List[GroupMember]]:
        """
        Partition users into groups for the week being closed.

        Args:
            states: UserLeagueState-like rows (user_id, tier, division,
                lifetime_score, display_name)
            ledger_entries: WeeklyScoreEntry-like rows (user_id, score) for the week
            exclude_user_ids: users already processed for the week

        Returns:
            Mapping of (tier, division) to its members. Users without a ledger
            entry are included with a weekly score of 0.
        """
        excluded = set(exclude_user_ids)
        weekly_scores: Dict[str, int] = defaultdict(int)
        for entry in ledger_entries:
            weekly_scores[entry.user_id] += entry.score or 0

        groups: Dict[GroupKey, List[GroupMember]] = defaultdict(list)
        seen = set()
        for state in states:
            if state.user_id in excluded or state.user_id in seen:
                continue
            seen.add(state.user_id)
            groups[(state.tier, state.division)].append(GroupMember(
                user_id=state.user_id,
                tier=state.tier,
                division=state.division,
                weekly_score=weekly_scores.get(state.user_id, 0),
                lifetime_score=state.lifetime_score or 0,
                display_name=state.display_name,
            ))

        orphaned = [uid for uid in weekly_scores if uid not in seen and uid not in excluded]
        for user_id in orphaned:
            logger.warning(f"Ledger entry for user {user_id} has no league state, excluding from rankings")

        for (tier, division), members in groups.items():
            max_size = self.registry.config(tier).max_division_size
            if len(members) > max_size:
                logger.warning(
                    f"{tier.value} division {division} has {len(members)} members, above the maximum of {max_size}"
                )

        return dict(groups)
