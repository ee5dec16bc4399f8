"""
League data models

Provides immutable data transfer objects passed between the grouping, ranking,
transition and rollover stages and returned by the read queries.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from league_engine.database.models import LeagueTier


GroupKey = Tuple[LeagueTier, int]


@dataclass(frozen=True)
class TierDefinition:
    """Static rules for one tier."""
    tier: LeagueTier
    min_lifetime_score: int
    max_division_size: int
    promotion_rate: float
    relegation_rate: float
    weekly_winner_reward: int
    promotion_reward: int


@dataclass(frozen=True)
class GroupMember:
    """One participant of a (tier, division) group for the week being processed."""
    user_id: str
    tier: LeagueTier
    division: int
    weekly_score: int
    lifetime_score: int
    display_name: Optional[str] = None


@dataclass(frozen=True)
class RankedEntry:
    """Single ranked row."""
    rank: int
    user_id: str
    weekly_score: int
    lifetime_score: int
    tier: Optional[LeagueTier] = None
    division: Optional[int] = None
    display_name: Optional[str] = None


@dataclass(frozen=True)
class TransitionDecision:
    """Outcome of the week for one ranked entry. Exactly one of promote/relegate/stay is set."""
    user_id: str
    rank: int
    weekly_score: int
    reward: int
    promote: bool
    relegate: bool
    stay: bool
    target_tier: LeagueTier
    target_division: int


@dataclass(frozen=True)
class LeagueChange:
    """Tier/division move emitted after a group commit."""
    user_id: str
    week_id: str
    old_tier: LeagueTier
    new_tier: LeagueTier
    old_division: int
    new_division: int
    promoted: bool
    relegated: bool


class GroupPhase(Enum):
    LOADED = "loaded"
    GROUPED = "grouped"
    RANKED = "ranked"
    RESOLVED = "resolved"
    COMMITTED = "committed"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class GroupOutcome:
    """Final state of one group's pipeline."""
    tier: LeagueTier
    division: int
    phase: GroupPhase
    members: int = 0
    promotions: int = 0
    relegations: int = 0
    rewards_granted: int = 0
    error: Optional[str] = None

    @property
    def key(self) -> GroupKey:
        return (self.tier, self.division)


@dataclass(frozen=True)
class RolloverSummary:
    """Result of one rollover invocation."""
    week_id: str
    groups_processed: int
    groups_failed: List[GroupKey]
    groups_skipped: int
    users_processed: int
    promotions: int
    relegations: int
    rewards_granted: int
    outcomes: List[GroupOutcome] = field(default_factory=list)
