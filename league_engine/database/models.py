from sqlalchemy import (
    Column, Integer, String, DateTime, Boolean, Text,
    Enum as SQLEnum, UniqueConstraint, CheckConstraint, Index
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func
from enum import Enum

Base = declarative_base()

class LeagueTier(Enum):
    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"
    PLATINUM = "platinum"
    DIAMOND = "diamond"

# Lowest tier first
TIER_ORDER = [
    LeagueTier.BRONZE,
    LeagueTier.SILVER,
    LeagueTier.GOLD,
    LeagueTier.PLATINUM,
    LeagueTier.DIAMOND,
]

class UserLeagueState(Base):
    """
    Long-lived competitive standing of one user.

    Only the league engine mutates tier/division. weekly_score mirrors the
    ledger entry for the current week and is reset to 0 at rollover.
    """
    __tablename__ = 'user_league_states'

    user_id = Column(String(128), primary_key=True)
    display_name = Column(String(100), nullable=True)

    tier = Column(SQLEnum(LeagueTier), nullable=False, default=LeagueTier.BRONZE, index=True)
    division = Column(Integer, nullable=False, default=1)

    lifetime_score = Column(Integer, nullable=False, default=0, index=True)
    weekly_score = Column(Integer, nullable=False, default=0)

    # Metadata
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint('division >= 1', name='ck_user_league_division_positive'),
        Index('ix_user_league_tier_division', 'tier', 'division'),
    )

    def __repr__(self):
        return f"<UserLeagueState(user_id='{self.user_id}', tier={self.tier}, division={self.division}, lifetime={self.lifetime_score})>"

class WeeklyScoreEntry(Base):
    """
    Per-user, per-week additive score counter.

    Created on the first grant of the week, zeroed (never deleted) and
    flagged processed when the week is rolled over.
    """
    __tablename__ = 'weekly_score_entries'

    id = Column(Integer, primary_key=True)
    user_id = Column(String(128), nullable=False, index=True)
    week_id = Column(String(16), nullable=False, index=True)

    score = Column(Integer, nullable=False, default=0)
    processed = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint('user_id', 'week_id', name='uq_weekly_score_user_week'),
    )

    def __repr__(self):
        return f"<WeeklyScoreEntry(user_id='{self.user_id}', week='{self.week_id}', score={self.score}, processed={self.processed})>"

class LeagueHistoryRecord(Base):
    """
    Append-only result of one user's week.

    Written only by the rollover processor, one per user per processed week.
    """
    __tablename__ = 'league_history'

    id = Column(Integer, primary_key=True)
    user_id = Column(String(128), nullable=False, index=True)
    week_id = Column(String(16), nullable=False, index=True)

    tier = Column(SQLEnum(LeagueTier), nullable=False)
    division = Column(Integer, nullable=False)
    weekly_score = Column(Integer, nullable=False)
    rank = Column(Integer, nullable=False)

    promoted = Column(Boolean, nullable=False, default=False)
    relegated = Column(Boolean, nullable=False, default=False)
    reward = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, default=func.now())

    __table_args__ = (
        UniqueConstraint('user_id', 'week_id', name='uq_league_history_user_week'),
    )

    def __repr__(self):
        return f"<LeagueHistoryRecord(user_id='{self.user_id}', week='{self.week_id}', tier={self.tier}, rank={self.rank})>"

class LeagueGroupMarker(Base):
    """Written last in a group's commit; its presence means the group is done for the week."""
    __tablename__ = 'league_group_markers'

    id = Column(Integer, primary_key=True)
    week_id = Column(String(16), nullable=False)
    tier = Column(SQLEnum(LeagueTier), nullable=False)
    division = Column(Integer, nullable=False)

    members_processed = Column(Integer, nullable=False, default=0)
    committed_at = Column(DateTime, default=func.now())

    __table_args__ = (
        UniqueConstraint('week_id', 'tier', 'division', name='uq_league_group_marker'),
    )

    def __repr__(self):
        return f"<LeagueGroupMarker(week='{self.week_id}', tier={self.tier}, division={self.division})>"

class Configuration(Base):
    """Runtime configuration overrides, JSON-encoded."""
    __tablename__ = 'configurations'

    key = Column(String(100), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<Configuration(key='{self.key}')>"

class AuditLog(Base):
    __tablename__ = 'audit_logs'

    id = Column(Integer, primary_key=True)
    actor = Column(String(128), nullable=False)
    action = Column(String(50), nullable=False)
    details = Column(Text, nullable=True)
    created_at = Column(DateTime, default=func.now())

    def __repr__(self):
        return f"<AuditLog(actor='{self.actor}', action='{self.action}')>"
