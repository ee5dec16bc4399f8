"""
Engine-wide constants for the league engine.

This module contains the static tier table and the named values used
throughout the codebase to improve maintainability and clarity.
"""

from league_engine.data_models.league import TierDefinition
from league_engine.database.models import LeagueTier

# Static tier table, lowest tier first.
# Bronze has nothing below it and Diamond nothing above it.
TIER_DEFINITIONS = {
    LeagueTier.BRONZE: TierDefinition(
        tier=LeagueTier.BRONZE,
        min_lifetime_score=0,
        max_division_size=500,
        promotion_rate=0.15,
        relegation_rate=0.0,
        weekly_winner_reward=50,
        promotion_reward=50,
    ),
    LeagueTier.SILVER: TierDefinition(
        tier=LeagueTier.SILVER,
        min_lifetime_score=500,
        max_division_size=200,
        promotion_rate=0.1,
        relegation_rate=0.2,
        weekly_winner_reward=100,
        promotion_reward=100,
    ),
    LeagueTier.GOLD: TierDefinition(
        tier=LeagueTier.GOLD,
        min_lifetime_score=2000,
        max_division_size=100,
        promotion_rate=0.1,
        relegation_rate=0.2,
        weekly_winner_reward=200,
        promotion_reward=150,
    ),
    LeagueTier.PLATINUM: TierDefinition(
        tier=LeagueTier.PLATINUM,
        min_lifetime_score=5000,
        max_division_size=50,
        promotion_rate=0.1,
        relegation_rate=0.2,
        weekly_winner_reward=300,
        promotion_reward=200,
    ),
    LeagueTier.DIAMOND: TierDefinition(
        tier=LeagueTier.DIAMOND,
        min_lifetime_score=10000,
        max_division_size=50,
        promotion_rate=0.0,
        relegation_rate=0.15,
        weekly_winner_reward=500,
        promotion_reward=0,
    ),
}

class LeagueConstants:
    """Constants related to league placement."""

    # New users and tier changes always land in this division
    DEFAULT_DIVISION = 1

    # Week identifier layout: ISO year and week of the local week-start date
    WEEK_ID_FORMAT = "{year:04d}-W{week:02d}"

class RolloverConstants:
    """Constants for the weekly rollover."""

    # Upper bound applied to any backoff sleep between commit retries (seconds)
    MAX_RETRY_DELAY = 5.0
