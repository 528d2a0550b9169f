"""
Health Check API Endpoints

Provides health endpoints for load balancers and monitoring systems.
"""

from fastapi import APIRouter, Depends, Response, status

from tempalias import __version__
from tempalias.dependencies import Components, get_components
from tempalias.schemas.common import HealthResponse

router = APIRouter()


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Health check",
    description="""
    Checks:
    - Database connectivity
    - Cloudflare settings presence
    - Expiration sweeper status
    
    Returns HTTP 200 if the database is reachable, 503 otherwise.
    """,
    responses={
        200: {"description": "Service healthy"},
        503: {"description": "Database unreachable"},
    }
)
async def health_check(
    response: Response,
    components: Components = Depends(get_components),
):
    """
    Perform health check.
    
    Returns:
        HealthResponse: Health status of all components
    """
    db_healthy = await components.database.ping()
    
    if not db_healthy:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    
    return HealthResponse(
        status="healthy" if db_healthy else "unhealthy",
        version=__version__,
        environment=components.settings.APP_ENV,
        components={
            "database": "healthy" if db_healthy else "unhealthy",
            "provider": "configured" if components.settings.provider_configured else "unconfigured",
            "sweeper": "running" if components.sweeper.running else "stopped",
        },
    )
