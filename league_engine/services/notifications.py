"""
League change notifications

Fire-and-forget delivery of tier/division moves to downstream systems such as
push notifications. Delivery runs on background tasks after a group has
committed; a failing handler is logged and never reaches the rollover.
"""

import asyncio
import inspect
import logging
from typing import Callable, List, Set

from league_engine.data_models.league import LeagueChange

logger = logging.getLogger(__name__)


class LeagueNotifier:
    """Dispatches LeagueChange events to subscribed handlers."""

    def __init__(self):
        self._handlers: List[Callable] = []
        # Background task tracking for proper lifecycle management
        self._background_tasks: Set[asyncio.Task] = set()

    def subscribe(self, handler: Callable):
        """Register a sync or async callable taking a LeagueChange."""
        self._handlers.append(handler)
        return handler

    def unsubscribe(self, handler: Callable):
        if handler in self._handlers:
            self._handlers.remove(handler)

    def publish(self, change: LeagueChange):
        """Schedule delivery of one change to every handler and return immediately."""
        for handler in list(self._handlers):
            task = asyncio.create_task(self._deliver(handler, change))
            self._background_tasks.add(task)
            task.add_done_callback(self._background_tasks.discard)

    async def _deliver(self, handler: Callable, change: LeagueChange):
        try:
            result = handler(change)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.warning(
                f"League change handler {getattr(handler, '__name__', handler)} failed for user {change.user_id}: {e}",
                exc_info=True
            )

    async def drain(self):
        """Wait for pending deliveries."""
        if self._background_tasks:
            await asyncio.gather(*list(self._background_tasks), return_exceptions=True)

    @property
    def pending(self) -> int:
        return len(self._background_tasks)
