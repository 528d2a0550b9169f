"""
API Router

Aggregates all endpoints.
"""

from fastapi import APIRouter

from tempalias.api import aliases, health, pages

api_router = APIRouter()

api_router.include_router(
    pages.router,
    tags=["pages"],
)

api_router.include_router(
    aliases.router,
    prefix="/api",
    tags=["aliases"],
)

api_router.include_router(
    health.router,
    tags=["health"],
)
