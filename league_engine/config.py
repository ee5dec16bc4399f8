import os
from dotenv import load_dotenv

load_dotenv()

class Config:
    """League engine configuration settings"""

    # Database settings
    DATABASE_URL = os.getenv('DATABASE_URL', 'sqlite:///league.db')

    # Engine settings
    DEBUG = os.getenv('DEBUG', 'False').lower() == 'true'
    LOG_DIR = os.getenv('LOG_DIR', 'logs')  # Empty string disables file logging

    # Week boundary convention (Monday 00:00 Asia/Seoul)
    LEAGUE_TIMEZONE = os.getenv('LEAGUE_TIMEZONE', 'Asia/Seoul')
    WEEK_START_WEEKDAY = int(os.getenv('WEEK_START_WEEKDAY', 0))  # 0 = Monday
    WEEK_START_HOUR = int(os.getenv('WEEK_START_HOUR', 0))

    # Rollover settings
    ROLLOVER_FAN_OUT = int(os.getenv('ROLLOVER_FAN_OUT', 4))
    COMMIT_MAX_RETRIES = int(os.getenv('COMMIT_MAX_RETRIES', 3))
    COMMIT_RETRY_BASE_DELAY = float(os.getenv('COMMIT_RETRY_BASE_DELAY', 0.1))

    # Leaderboard settings
    GLOBAL_LEADERBOARD_SIZE = int(os.getenv('GLOBAL_LEADERBOARD_SIZE', 100))
    GLOBAL_LEADERBOARD_CACHE_TTL = int(os.getenv('GLOBAL_LEADERBOARD_CACHE_TTL', 60))

    @classmethod
    def get_async_database_url(cls, database_url: str = None) -> str:
        """Get the database URL with an async driver"""
        database_url = database_url or cls.DATABASE_URL
        if database_url.startswith('sqlite:///'):
            database_url = database_url.replace('sqlite:///', 'sqlite+aiosqlite:///')
        return database_url

    @classmethod
    def validate(cls):
        """Validate that configuration values are usable"""
        if not cls.DATABASE_URL:
            raise ValueError("DATABASE_URL is required")
        if not 0 <= cls.WEEK_START_WEEKDAY <= 6:
            raise ValueError("WEEK_START_WEEKDAY must be between 0 (Monday) and 6 (Sunday)")
        if not 0 <= cls.WEEK_START_HOUR <= 23:
            raise ValueError("WEEK_START_HOUR must be between 0 and 23")
        if cls.ROLLOVER_FAN_OUT < 1:
            raise ValueError("ROLLOVER_FAN_OUT must be at least 1")
        if cls.COMMIT_MAX_RETRIES < 1:
            raise ValueError("COMMIT_MAX_RETRIES must be at least 1")
        if cls.COMMIT_RETRY_BASE_DELAY < 0:
            raise ValueError("COMMIT_RETRY_BASE_DELAY must not be negative")
        if cls.GLOBAL_LEADERBOARD_SIZE < 1:
            raise ValueError("GLOBAL_LEADERBOARD_SIZE must be at least 1")
        if cls.GLOBAL_LEADERBOARD_CACHE_TTL < 0:
            raise ValueError("GLOBAL_LEADERBOARD_CACHE_TTL must not be negative")
