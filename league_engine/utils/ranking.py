"""
Ranking calculator

Provides the single ordering used by both the weekly rollover and the live
standings, so a group ranked twice always comes out the same.
"""

from typing import Iterable, List

from league_engine.data_models.league import GroupMember, RankedEntry


class RankingCalculator:
    """Deterministic total order over a group."""

    @staticmethod
    def sort_key(member: GroupMember):
        # weekly desc, lifetime desc, user id asc
        return (-member.weekly_score, -member.lifetime_score, member.user_id)

    @staticmethod
    def rank(members: Iterable[GroupMember]) -> List[RankedEntry]:
        """Rank members 1..N with no shared ranks."""
        ordered = sorted(members, key=RankingCalculator.sort_key)
        return [
            RankedEntry(
                rank=position,
                user_id=member.user_id,
                weekly_score=member.weekly_score,
                lifetime_score=member.lifetime_score,
                tier=member.tier,
                division=member.division,
                display_name=member.display_name,
            )
            for position, member in enumerate(ordered, start=1)
        ]
