"""
Services package for the league engine.
"""

from .base import BaseService
from .configuration import ConfigurationService
from .league_state import LeagueStateService
from .notifications import LeagueNotifier
from .score_ledger import ScoreLedgerService
from .standings import StandingsService
from .weekly_rollover_service import WeeklyRolloverService

__all__ = [
    'BaseService', 'ConfigurationService', 'LeagueStateService', 'LeagueNotifier',
    'ScoreLedgerService', 'StandingsService', 'WeeklyRolloverService'
]
