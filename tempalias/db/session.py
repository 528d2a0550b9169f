"""
Database Session Management

Provides:
- Async SQLAlchemy engine over aiosqlite
- Session factory
- Schema creation and the expires_at migration
"""

import logging
from pathlib import Path

from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from tempalias.config import Settings
from tempalias.db.base import Base


logger = logging.getLogger(__name__)

EXPIRES_AT_MIGRATION = "ALTER TABLE emails ADD COLUMN expires_at DATETIME"


class Database:
    """
    Owns the async engine and session factory.
    
    One instance is created at startup and handed to every component
    that needs storage.
    """
    
    def __init__(self, url: str, echo: bool = False, busy_timeout: float = 15.0):
        self.url = url
        self.engine: AsyncEngine = create_async_engine(
            url,
            echo=echo,
            connect_args={"timeout": busy_timeout},
        )
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
    
    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        """
        Build the database for DB_PATH, creating its directory.
        
        Args:
            settings: Application settings
        
        Returns:
            Database: Unopened database handle
        """
        settings.database_dir.mkdir(parents=True, exist_ok=True)
        return cls(settings.database_url, echo=settings.DATABASE_ECHO)
    
    @classmethod
    def for_path(cls, path: Path, echo: bool = False) -> "Database":
        return cls(f"sqlite+aiosqlite:///{path}", echo=echo)
    
    def session(self) -> AsyncSession:
        """Open a new session."""
        return self.session_factory()
    
    async def create_tables(self):
        """
        Create the schema and apply the expires_at migration.
        
        Should be called on application startup. Failure here is fatal.
        """
        logger.info("Creating database tables...")
        
        async with self.engine.begin() as conn:
            from tempalias.db import models  # noqa: F401
            
            await conn.run_sync(Base.metadata.create_all)
        
        await self._add_expires_at_column()
        logger.info("Database tables ready")
    
    async def _add_expires_at_column(self):
        # Installations created before expiry tracking lack the column.
        try:
            async with self.engine.begin() as conn:
                await conn.execute(text(EXPIRES_AT_MIGRATION))
            logger.info("Added expires_at column to emails table")
        except OperationalError:
            logger.debug("expires_at column already present")
    
    async def ping(self) -> bool:
        """Check that the database answers a trivial query."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            return False
    
    async def dispose(self):
        """Close all pooled connections."""
        await self.engine.dispose()
        logger.info("Database connections closed")
