"""
Alias Store

Durable CRUD over alias records. Every call runs in its own transaction
and reads straight from SQLite; there is no cache. Paired fields
(status + rule id, status + rule id + expiry) are always written by a
single UPDATE so no half-written pair is ever visible.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timedelta
from typing import AsyncIterator, List

from sqlalchemy import case, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tempalias.core.exceptions import AliasNotFound, StorageError
from tempalias.core.logging import get_logger
from tempalias.db.models import Alias, AliasStatus
from tempalias.db.session import Database

logger = get_logger(__name__)

# SQLite keeps millisecond precision through strftime's %f
_SQLITE_DATETIME_FORMAT = "%Y-%m-%d %H:%M:%f"


class AliasStore:
    """Persistence for Alias records."""
    
    def __init__(self, database: Database):
        self.database = database
    
    @asynccontextmanager
    async def _transaction(self, operation: str) -> AsyncIterator[AsyncSession]:
        try:
            async with self.database.session() as session:
                async with session.begin():
                    yield session
        except SQLAlchemyError as e:
            logger.error("Alias store operation failed", operation=operation, error=str(e))
            raise StorageError(f"Database {operation} failed: {e}") from e
    
    async def create(self, address: str, remote_rule_id: str, expires_at: datetime) -> int:
        """
        Insert a new active alias.
        
        Args:
            address: Full email address
            remote_rule_id: Cloudflare rule backing the alias
            expires_at: When the sweeper may expire it
        
        Returns:
            int: New alias id
        
        Raises:
            StorageError: If the insert fails
        """
        async with self._transaction("insert") as session:
            alias = Alias(
                address=address,
                remote_rule_id=remote_rule_id,
                expires_at=expires_at,
                status=AliasStatus.ACTIVE.value,
            )
            session.add(alias)
            await session.flush()
            return alias.id
    
    async def get(self, alias_id: int) -> Alias:
        """
        Load one alias.
        
        Raises:
            AliasNotFound: If no row has this id
            StorageError: If the query fails
        """
        async with self._transaction("select") as session:
            alias = await session.get(Alias, alias_id)
        
        if alias is None:
            raise AliasNotFound(alias_id)
        return alias
    
    async def list_all(self) -> List[Alias]:
        """All aliases, active ones first, each group newest first."""
        active_first = case((Alias.status == AliasStatus.ACTIVE.value, 1), else_=2)
        
        async with self._transaction("select") as session:
            result = await session.execute(
                select(Alias).order_by(active_first, Alias.created_at.desc(), Alias.id.desc())
            )
            return list(result.scalars().all())
    
    async def list_expired_active(self, now: datetime) -> List[Alias]:
        """Active aliases whose expiry is strictly before `now`."""
        async with self._transaction("select") as session:
            result = await session.execute(
                select(Alias)
                .where(Alias.status == AliasStatus.ACTIVE.value)
                .where(Alias.expires_at.is_not(None))
                .where(Alias.expires_at < now)
                .order_by(Alias.expires_at, Alias.id)
            )
            return list(result.scalars().all())
    
    async def update_status_and_rule(
        self,
        alias_id: int,
        status: AliasStatus,
        remote_rule_id: str,
    ) -> bool:
        """
        Set status and rule id together.
        
        Returns:
            bool: True if a row was updated
        """
        async with self._transaction("update") as session:
            result = await session.execute(
                update(Alias)
                .where(Alias.id == alias_id)
                .values(status=AliasStatus(status).value, remote_rule_id=remote_rule_id)
                .execution_options(synchronize_session=False)
            )
            return result.rowcount > 0
    
    async def extend_expiry(self, alias_id: int, delta: timedelta) -> bool:
        """
        Push the expiry of an active alias forward by `delta`.
        
        Conditional on the row still being active at write time.
        
        Returns:
            bool: True if the alias was active and got extended
        """
        modifier = f"{delta.total_seconds():+f} seconds"
        
        async with self._transaction("update") as session:
            result = await session.execute(
                update(Alias)
                .where(Alias.id == alias_id)
                .where(Alias.status == AliasStatus.ACTIVE.value)
                .values(expires_at=func.strftime(
                    _SQLITE_DATETIME_FORMAT,
                    func.coalesce(Alias.expires_at, Alias.created_at),
                    modifier,
                ))
                .execution_options(synchronize_session=False)
            )
            return result.rowcount > 0
    
    async def reset_for_recreate(
        self,
        alias_id: int,
        remote_rule_id: str,
        expires_at: datetime,
    ) -> bool:
        """
        Reactivate an alias with a new rule and a fresh expiry.
        
        Returns:
            bool: True if a row was updated
        """
        async with self._transaction("update") as session:
            result = await session.execute(
                update(Alias)
                .where(Alias.id == alias_id)
                .values(
                    status=AliasStatus.ACTIVE.value,
                    remote_rule_id=remote_rule_id,
                    expires_at=expires_at,
                )
                .execution_options(synchronize_session=False)
            )
            return result.rowcount > 0
