"""
Alias-related Pydantic schemas.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from tempalias.db.models import Alias, AliasStatus


class AliasRead(BaseModel):
    """Alias as listed by the API."""
    
    model_config = ConfigDict(from_attributes=True)
    
    id: int = Field(..., description="Alias ID")
    address: str = Field(..., description="Full email address")
    remote_rule_id: str = Field("", description="Cloudflare rule ID, empty when no rule is live")
    created_at: Optional[datetime] = Field(None, description="Creation timestamp (UTC)")
    expires_at: Optional[datetime] = Field(None, description="Expiration timestamp (UTC)")
    status: AliasStatus = Field(..., description="active, inactive or deleted")
    
    @classmethod
    def from_alias(cls, alias: Alias) -> "AliasRead":
        return cls(
            id=alias.id,
            address=alias.address,
            remote_rule_id=alias.rule_id,
            created_at=alias.created_at,
            expires_at=alias.effective_expires_at,
            status=alias.status,
        )
