"""
Core Module

Core functionality including:
- Logging (structured logging)
- Metrics (Prometheus)
- Exceptions (custom exceptions)
- Clock helpers
"""

__all__ = [
    "clock",
    "logging",
    "metrics",
    "exceptions",
]
