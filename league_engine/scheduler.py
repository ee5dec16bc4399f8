"""
Rollover scheduler - background weekly trigger

Checks periodically whether a league week has closed and, if so, runs the
weekly rollover for it. A week is only marked done once every group
committed, so failed groups are retried on the next tick and a missed
boundary (process down at the time) is caught up on start.
"""

from datetime import datetime, timezone
from typing import Optional

from discord.ext import tasks

from league_engine.data_models.league import RolloverSummary
from league_engine.services.weekly_rollover_service import WeeklyRolloverService
from league_engine.utils.logger import setup_logger
from league_engine.utils.week import previous_week_identifier

logger = setup_logger(__name__)

CHECK_INTERVAL_MINUTES = 15


class RolloverScheduler:
    """Runs WeeklyRolloverService once per closed week."""

    def __init__(self, rollover_service: WeeklyRolloverService, config_service=None):
        self.rollover_service = rollover_service
        self.config_service = config_service
        self.logger = logger
        self.last_completed_week: Optional[str] = None
        self.last_summary: Optional[RolloverSummary] = None

    def start(self):
        """Start the background task. Must be called from a running event loop."""
        if not self.weekly_rollover.is_running():
            self.weekly_rollover.start()
            self.logger.info("RolloverScheduler: Background task started")

    def stop(self):
        """Stop the background task"""
        self.weekly_rollover.cancel()
        self.logger.info("RolloverScheduler: Background task stopped")

    @property
    def enabled(self) -> bool:
        if self.config_service is None:
            return True
        return bool(self.config_service.get('league.automated_rollover_enabled', True))

    async def run_if_due(self, now: Optional[datetime] = None) -> Optional[RolloverSummary]:
        """Run the rollover for the most recently closed week unless it already completed."""
        week_id = previous_week_identifier(now)
        if week_id == self.last_completed_week:
            return None

        summary = await self.rollover_service.run_weekly_rollover(week_id)
        self.last_summary = summary
        if not summary.groups_failed:
            self.last_completed_week = week_id
        else:
            self.logger.warning(
                f"Week {week_id} left {len(summary.groups_failed)} failed groups, will retry next check"
            )
        return summary

    @tasks.loop(minutes=CHECK_INTERVAL_MINUTES)
    async def weekly_rollover(self):
        """Background task checking for a closed week"""
        try:
            if not self.enabled:
                return
            await self.run_if_due(datetime.now(timezone.utc))
        except Exception as e:
            self.logger.error(f"Error in weekly rollover task: {e}", exc_info=True)
