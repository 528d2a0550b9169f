"""
HTTP API

- Alias list page and lifecycle endpoints
- Health checks
"""
