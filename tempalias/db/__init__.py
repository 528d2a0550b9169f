"""
Database Module

Provides:
- SQLAlchemy models
- Database engine/session management
- The alias store
"""

__all__ = [
    "models",
    "session",
    "base",
    "alias_store",
]
