"""
Runtime overrides for rollover and leaderboard parameters.

Values live in the configurations table as JSON and are cached in memory.
Every write is checked against the declared league settings and recorded in
the audit log; a stored value that no longer passes those checks is ignored so
callers fall back to the environment default.
"""

import json
import logging
from typing import Any, Dict

from sqlalchemy import select

from league_engine.services.base import BaseService
from league_engine.services.seed_configurations import coerce_setting
from league_engine.database.models import Configuration, AuditLog
from league_engine.utils.league_exceptions import LeagueConfigurationError

logger = logging.getLogger(__name__)


class ConfigurationService(BaseService):
    """Validated league settings with an in-memory cache and audit trail."""

    def __init__(self, session_factory):
        super().__init__(session_factory)
        self._cache: Dict[str, Any] = {}

    async def load_all(self):
        """Refresh the cache from the database, dropping rows that fail validation."""
        async with self.get_session() as session:
            result = await session.execute(select(Configuration))
            rows = [(row.key, row.value) for row in result.scalars()]

        loaded = {}
        for key, raw in rows:
            try:
                loaded[key] = coerce_setting(key, json.loads(raw))
            except json.JSONDecodeError:
                logger.warning(f"Invalid JSON for setting '{key}', using default")
            except LeagueConfigurationError as e:
                logger.warning(f"Ignoring stored setting: {e}")

        self._cache = loaded
        logger.info(f"Loaded {len(self._cache)} league settings")

    def get(self, key: str, default: Any = None) -> Any:
        value = self._cache.get(key)
        return default if value is None else value

    async def set(self, key: str, value: Any, actor: str) -> Any:
        """
        Persist a league setting and audit the change.

        Args:
            key: Setting key, e.g. 'league.commit_max_retries'
            value: New value; must match the setting's type and minimum
            actor: Operator or system identifier for the audit trail

        Returns:
            The stored value

        Raises:
            LeagueConfigurationError: if the key is unknown or the value invalid.
                Nothing is written in that case.
        """
        value = coerce_setting(key, value)
        old_value = self._cache.get(key)

        async with self.get_session() as session:
            config = await session.get(Configuration, key)
            if config is None:
                session.add(Configuration(key=key, value=json.dumps(value)))
            else:
                config.value = json.dumps(value)

            session.add(AuditLog(
                actor=str(actor),
                action='config_set',
                details=json.dumps({'key': key, 'old_value': old_value, 'new_value': value}),
            ))

        self._cache[key] = value
        logger.info(f"Setting {key} changed from {old_value!r} to {value!r} by {actor}")
        return value
