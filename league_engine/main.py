import argparse
import asyncio
import sys
from typing import Callable, List, Optional

from league_engine.config import Config
from league_engine.data_models.league import RankedEntry, RolloverSummary
from league_engine.database.database import Database
from league_engine.database.models import LeagueTier, UserLeagueState
from league_engine.scheduler import RolloverScheduler
from league_engine.services.configuration import ConfigurationService
from league_engine.services.league_state import LeagueStateService
from league_engine.services.notifications import LeagueNotifier
from league_engine.services.score_ledger import ScoreLedgerService
from league_engine.services.standings import StandingsService
from league_engine.services.weekly_rollover_service import WeeklyRolloverService
from league_engine.utils.logger import setup_logger
from league_engine.utils.tiers import TierRegistry

class LeagueEngine:
    """Wires the league services together and exposes the collaborator-facing calls."""

    def __init__(self, database_url: Optional[str] = None, registry: Optional[TierRegistry] = None):
        self.logger = setup_logger(__name__)
        self.registry = registry or TierRegistry()
        self.db = Database(database_url)
        self.notifier = LeagueNotifier()
        self.config_service: Optional[ConfigurationService] = None
        self.ledger: Optional[ScoreLedgerService] = None
        self.league_state: Optional[LeagueStateService] = None
        self.standings: Optional[StandingsService] = None
        self.rollover: Optional[WeeklyRolloverService] = None
        self.scheduler: Optional[RolloverScheduler] = None

    async def setup(self):
        """Validate configuration and build services. Refuses to start on invalid tiers."""
        self.logger.info("Setting up League Engine...")

        Config.validate()
        self.registry.validate()

        await self.db.initialize()

        self.config_service = ConfigurationService(self.db.session_factory)
        await self.config_service.load_all()
        self.logger.info("Configuration service initialized")

        session_factory = self.db.session_factory
        self.ledger = ScoreLedgerService(session_factory, self.config_service)
        self.league_state = LeagueStateService(session_factory, self.registry)
        self.standings = StandingsService(session_factory, self.registry, self.config_service)
        self.rollover = WeeklyRolloverService(
            session_factory,
            self.registry,
            config_service=self.config_service,
            notifier=self.notifier,
            standings_service=self.standings,
        )
        self.scheduler = RolloverScheduler(self.rollover, self.config_service)

        self.logger.info("League Engine setup complete!")

    # Consumed by collaborators

    async def increment_weekly_score(self, user_id: str, amount: int) -> int:
        return await self.ledger.increment_weekly_score(user_id, amount)

    async def initialize_user_league(self, user_id: str, display_name: Optional[str] = None) -> UserLeagueState:
        return await self.league_state.initialize_user_league(user_id, display_name)

    # Exposed to collaborators

    async def get_rankings(self, tier: LeagueTier, division: int) -> List[RankedEntry]:
        return await self.standings.get_rankings(tier, division)

    async def get_global_leaderboard(self) -> List[RankedEntry]:
        return await self.standings.get_global_leaderboard()

    async def run_weekly_rollover(self) -> RolloverSummary:
        return await self.rollover.run_weekly_rollover()

    def on_user_league_changed(self, handler: Callable):
        """Subscribe a handler to tier/division changes."""
        return self.notifier.subscribe(handler)

    async def close(self):
        if self.scheduler:
            self.scheduler.stop()
        await self.notifier.drain()
        await self.db.close()

async def _run(args) -> int:
    logger = setup_logger('league_engine')
    engine = LeagueEngine()
    try:
        await engine.setup()

        if args.rollover_now:
            summary = await engine.rollover.run_weekly_rollover(args.week)
            print(f"Week {summary.week_id}: {summary.groups_processed} groups processed, "
                  f"{len(summary.groups_failed)} failed, {summary.groups_skipped} skipped")
            for tier, division in summary.groups_failed:
                print(f"  FAILED: {tier.value} division {division}")
            return 1 if summary.groups_failed else 0

        engine.scheduler.start()
        logger.info("League Engine running, waiting for week boundaries")
        await asyncio.Event().wait()
        return 0
    finally:
        await engine.close()

def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Weekly league engine")
    parser.add_argument('--rollover-now', action='store_true',
                        help="Run one rollover and exit instead of scheduling")
    parser.add_argument('--week', default=None,
                        help="Week identifier to close (e.g. 2026-W42); defaults to the week that just ended")
    args = parser.parse_args(argv)

    try:
        return asyncio.run(_run(args))
    except KeyboardInterrupt:
        return 0

if __name__ == "__main__":
    sys.exit(main())
