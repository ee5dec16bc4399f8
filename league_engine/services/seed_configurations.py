"""
Runtime settings for the league engine.

Each key the configuration service accepts is declared here with its type
and lower bound. Defaults come from the environment Config and are written to
the configurations table the first time the database is initialized.
"""

import json
from typing import Any, NamedTuple, Optional

from league_engine.config import Config
from league_engine.database.models import Configuration
from league_engine.utils.league_exceptions import LeagueConfigurationError


class RuntimeSetting(NamedTuple):
    default: Any
    kind: type
    minimum: Optional[float] = None


RUNTIME_SETTINGS = {
    # Rollover
    'league.rollover_fan_out': RuntimeSetting(Config.ROLLOVER_FAN_OUT, int, 1),
    'league.commit_max_retries': RuntimeSetting(Config.COMMIT_MAX_RETRIES, int, 1),
    'league.commit_retry_base_delay': RuntimeSetting(Config.COMMIT_RETRY_BASE_DELAY, float, 0),

    # Leaderboard
    'league.global_leaderboard_size': RuntimeSetting(Config.GLOBAL_LEADERBOARD_SIZE, int, 1),
    'league.global_leaderboard_cache_ttl': RuntimeSetting(Config.GLOBAL_LEADERBOARD_CACHE_TTL, int, 0),

    # Scheduling
    'league.automated_rollover_enabled': RuntimeSetting(True, bool),
}

INITIAL_CONFIGS = {key: setting.default for key, setting in RUNTIME_SETTINGS.items()}


def coerce_setting(key: str, value: Any) -> Any:
    """
    Check a runtime value against its declared type and lower bound.

    Returns:
        The value, with ints widened to float for float settings

    Raises:
        LeagueConfigurationError: for unknown keys, wrong types or values
            below the minimum
    """
    setting = RUNTIME_SETTINGS.get(key)
    if setting is None:
        raise LeagueConfigurationError(f"unknown setting '{key}'")

    if setting.kind is bool:
        if not isinstance(value, bool):
            raise LeagueConfigurationError(f"{key} must be true or false, got {value!r}")
        return value

    # bool is an int subclass but never a valid count or delay
    allowed = (int,) if setting.kind is int else (int, float)
    if isinstance(value, bool) or not isinstance(value, allowed):
        raise LeagueConfigurationError(f"{key} must be a {setting.kind.__name__}, got {value!r}")
    value = setting.kind(value)

    if setting.minimum is not None and value < setting.minimum:
        raise LeagueConfigurationError(f"{key} must be at least {setting.minimum}, got {value}")
    return value


async def seed_configurations(db) -> int:
    """Write every default setting. Returns the number of keys written."""
    async with db.get_session() as session:
        for key, value in INITIAL_CONFIGS.items():
            await session.merge(Configuration(key=key, value=json.dumps(value)))
        await session.commit()
    return len(INITIAL_CONFIGS)
