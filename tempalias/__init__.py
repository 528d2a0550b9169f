"""
TempAlias - Self-Expiring Email Aliases

Issues temporary forwarding aliases on a Cloudflare Email Routing zone,
tracks their lifecycle in SQLite and expires them automatically.

License: MIT
Version: 1.0.0
"""

__version__ = "1.0.0"
__license__ = "MIT"

# Package metadata
__all__ = [
    "__version__",
    "__license__",
]
