"""
SQLAlchemy Database Models

The alias table keeps the column names of existing installations
(`emails.alias`, `emails.rule_id`); the Python attributes use the
domain names instead.
"""

import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import Column, DateTime, Index, Integer, String, Text
from sqlalchemy.sql import func

from tempalias.core.clock import utcnow
from tempalias.db.base import Base


class AliasStatus(str, enum.Enum):
    """Lifecycle status of an alias. `deleted` is terminal except for recreate."""
    
    ACTIVE = "active"
    INACTIVE = "inactive"
    DELETED = "deleted"


class Alias(Base):
    """A generated forwarding address and its Cloudflare rule."""
    
    __tablename__ = "emails"
    
    id = Column(Integer, primary_key=True, autoincrement=True)
    address = Column("alias", Text, nullable=False)
    remote_rule_id = Column("rule_id", Text, nullable=True, default="")
    created_at = Column(DateTime, default=utcnow, server_default=func.current_timestamp())
    expires_at = Column(DateTime, nullable=True)
    status = Column(String(16), default=AliasStatus.ACTIVE.value, server_default=AliasStatus.ACTIVE.value)
    
    __table_args__ = (
        Index("idx_emails_status_expires", "status", "expires_at"),
    )
    
    @property
    def rule_id(self) -> str:
        """Remote rule id, empty when no live rule exists."""
        return self.remote_rule_id or ""
    
    @property
    def is_active(self) -> bool:
        return self.status == AliasStatus.ACTIVE.value
    
    @property
    def is_deleted(self) -> bool:
        return self.status == AliasStatus.DELETED.value
    
    @property
    def effective_expires_at(self) -> Optional[datetime]:
        # rows from before the expiry column existed
        return self.expires_at or self.created_at
    
    def __repr__(self):
        return f"<Alias(id={self.id}, address={self.address}, status={self.status})>"
