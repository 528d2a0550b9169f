"""
Pydantic Schemas

Response models for API serialization.
"""

from tempalias.schemas.alias import AliasRead
from tempalias.schemas.common import HealthResponse

__all__ = [
    "AliasRead",
    "HealthResponse",
]
