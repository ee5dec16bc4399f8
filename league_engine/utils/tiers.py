"""
Tier registry

Ordered lookup over the static tier table. Looking up a tier that is not in
the table is a programming error and surfaces as KeyError.
"""

from typing import Dict, List, Optional

from league_engine.constants import TIER_DEFINITIONS
from league_engine.data_models.league import TierDefinition
from league_engine.database.models import LeagueTier, TIER_ORDER
from league_engine.utils.league_exceptions import LeagueConfigurationError


class TierRegistry:
    """Read-only view of the tier table in competitive order."""

    def __init__(self, definitions: Dict[LeagueTier, TierDefinition] = None,
                 order: List[LeagueTier] = None):
        self._definitions = dict(definitions if definitions is not None else TIER_DEFINITIONS)
        self._order = list(order if order is not None else TIER_ORDER)
        self._index = {tier: position for position, tier in enumerate(self._order)}

    def tiers(self) -> List[LeagueTier]:
        """All tiers, lowest first."""
        return list(self._order)

    def config(self, tier: LeagueTier) -> TierDefinition:
        return self._definitions[tier]

    def next_tier(self, tier: LeagueTier) -> Optional[LeagueTier]:
        position = self._index[tier]
        if position == len(self._order) - 1:
            return None
        return self._order[position + 1]

    def previous_tier(self, tier: LeagueTier) -> Optional[LeagueTier]:
        position = self._index[tier]
        if position == 0:
            return None
        return self._order[position - 1]

    def lowest_tier(self) -> LeagueTier:
        return self._order[0]

    def tier_for_lifetime_score(self, score: int) -> LeagueTier:
        """Highest tier whose minimum lifetime score is met."""
        selected = self._order[0]
        for tier in self._order:
            if score >= self._definitions[tier].min_lifetime_score:
                selected = tier
        return selected

    def validate(self):
        """
        Check the tier table once at startup.

        Raises:
            LeagueConfigurationError: on any inconsistency. The engine must not
                run with an invalid table.
        """
        if not self._order:
            raise LeagueConfigurationError("no tiers configured")
        if len(set(self._order)) != len(self._order):
            raise LeagueConfigurationError("tier order contains duplicates")

        missing = [t.value for t in LeagueTier if t not in self._definitions or t not in self._index]
        if missing:
            raise LeagueConfigurationError(f"tiers without configuration: {', '.join(missing)}")

        previous_min = None
        for tier in self._order:
            definition = self._definitions[tier]
            if definition.tier != tier:
                raise LeagueConfigurationError(f"definition for {tier.value} is labelled {definition.tier.value}")
            if previous_min is not None and definition.min_lifetime_score <= previous_min:
                raise LeagueConfigurationError(
                    f"{tier.value} minimum lifetime score must exceed the tier below it"
                )
            previous_min = definition.min_lifetime_score

            if definition.max_division_size < 1:
                raise LeagueConfigurationError(f"{tier.value} max division size must be at least 1")
            for name in ('promotion_rate', 'relegation_rate'):
                rate = getattr(definition, name)
                if not 0 <= rate < 1:
                    raise LeagueConfigurationError(f"{tier.value} {name} must be in [0, 1), got {rate}")
            if definition.promotion_rate + definition.relegation_rate > 1:
                raise LeagueConfigurationError(
                    f"{tier.value} promotion and relegation rates sum above 1"
                )
            if definition.weekly_winner_reward < 0 or definition.promotion_reward < 0:
                raise LeagueConfigurationError(f"{tier.value} rewards must not be negative")

        lowest = self._definitions[self._order[0]]
        highest = self._definitions[self._order[-1]]
        if lowest.min_lifetime_score != 0:
            raise LeagueConfigurationError("lowest tier must accept a lifetime score of 0")
        if lowest.relegation_rate != 0:
            raise LeagueConfigurationError("lowest tier cannot relegate")
        if highest.promotion_rate != 0:
            raise LeagueConfigurationError("highest tier cannot promote")
