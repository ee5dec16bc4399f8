"""
Base service class for the league engine.

Provides async database session management and retry logic for all service
layer operations.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Callable, Any, Tuple, Type
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from league_engine.constants import RolloverConstants

logger = logging.getLogger(__name__)

class BaseService:
    """Base class for all services with async database session management."""

    def __init__(self, session_factory):
        """
        Initialize base service with session factory.

        Args:
            session_factory: Async session factory from Database class
        """
        self.session_factory = session_factory

    def setting(self, key: str, default: Any) -> Any:
        """Runtime override from the configuration service, if the service has one."""
        config_service = getattr(self, 'config_service', None)
        if config_service is None:
            return default
        return config_service.get(key, default)

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """Provide a transactional scope for async database operations."""
        session = self.session_factory()
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    async def execute_with_retry(self, func: Callable, max_retries: int = 3,
                                 base_delay: float = 0.1,
                                 retry_on: Tuple[Type[BaseException], ...] = (SQLAlchemyError,)) -> Any:
        """Execute a function with automatic retry on database errors."""
        max_retries = max(1, max_retries)  # Always at least one attempt
        for attempt in range(max_retries):
            try:
                return await func()
            except retry_on as e:
                if attempt == max_retries - 1:
                    raise
                logger.warning(f"Retry attempt {attempt + 1} for {getattr(func, '__name__', func)}: {e}")
                delay = min(base_delay * (2 ** attempt), RolloverConstants.MAX_RETRY_DELAY)
                await asyncio.sleep(delay)  # Exponential backoff
