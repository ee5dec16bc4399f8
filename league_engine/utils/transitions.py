"""
Transition resolver

Turns a ranked group into per-user promotion/relegation/stay decisions and
reward amounts.
"""

import math
from typing import List, Tuple

from league_engine.constants import LeagueConstants
from league_engine.data_models.league import RankedEntry, TransitionDecision
from league_engine.database.models import LeagueTier
from league_engine.utils.league_exceptions import LeagueConfigurationError
from league_engine.utils.tiers import TierRegistry

# Absorbs float error such as 0.29 * 100 == 28.999999999999996
_FLOOR_EPSILON = 1e-9


class TransitionResolver:
    """Applies a tier's promotion/relegation rules to a ranked group."""

    def __init__(self, registry: TierRegistry):
        self.registry = registry

    @staticmethod
    def window_sizes(group_size: int, promotion_rate: float, relegation_rate: float) -> Tuple[int, int]:
        """Return (promotion_count, relegation_count) for a group of this size."""
        promotion_count = math.floor(group_size * promotion_rate + _FLOOR_EPSILON)
        relegation_count = math.floor(group_size * relegation_rate + _FLOOR_EPSILON)
        return promotion_count, relegation_count

    def resolve(self, ranked: List[RankedEntry], tier: LeagueTier) -> List[TransitionDecision]:
        """
        Decide the outcome of the week for every entry of one group.

        Args:
            ranked: entries with contiguous ranks 1..N
            tier: the group's tier

        Returns:
            One decision per entry, in rank order

        Raises:
            LeagueConfigurationError: if the promotion and relegation windows
                would overlap for this group size
        """
        config = self.registry.config(tier)
        total = len(ranked)
        promotion_count, relegation_count = self.window_sizes(
            total, config.promotion_rate, config.relegation_rate
        )
        if promotion_count + relegation_count > total:
            raise LeagueConfigurationError(
                f"{tier.value} windows overlap for a group of {total} "
                f"({promotion_count} promoted, {relegation_count} relegated)"
            )

        next_tier = self.registry.next_tier(tier)
        previous_tier = self.registry.previous_tier(tier)

        decisions = []
        for entry in sorted(ranked, key=lambda e: e.rank):
            reward = config.weekly_winner_reward if entry.rank == 1 else 0
            promote = relegate = False
            target_tier = tier
            target_division = entry.division if entry.division is not None else LeagueConstants.DEFAULT_DIVISION

            if config.promotion_rate > 0 and entry.rank <= promotion_count and next_tier is not None:
                promote = True
                reward += config.promotion_reward
                target_tier = next_tier
                target_division = LeagueConstants.DEFAULT_DIVISION
            elif config.relegation_rate > 0 and entry.rank > total - relegation_count and previous_tier is not None:
                relegate = True
                target_tier = previous_tier
                target_division = LeagueConstants.DEFAULT_DIVISION

            decisions.append(TransitionDecision(
                user_id=entry.user_id,
                rank=entry.rank,
                weekly_score=entry.weekly_score,
                reward=reward,
                promote=promote,
                relegate=relegate,
                stay=not (promote or relegate),
                target_tier=target_tier,
                target_division=target_division,
            ))
        return decisions
