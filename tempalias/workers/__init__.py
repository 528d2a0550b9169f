"""
Background Workers

- Expiration sweeper
"""

__all__ = [
    "expiration_sweeper",
]
