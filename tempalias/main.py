"""
FastAPI Application Entry Point

FastAPI application with:
- Alias list page and lifecycle endpoints
- Background expiration sweeper
- Error handling
- Metrics collection
- Structured logging
"""

import sys
import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import PlainTextResponse
from prometheus_client import make_asgi_app

from tempalias import __version__
from tempalias.api.router import api_router
from tempalias.config import Settings, get_settings
from tempalias.core.exceptions import TempAliasException
from tempalias.core.logging import setup_logging, get_logger
from tempalias.core.metrics import active_requests, record_request
from tempalias.dependencies import build_components

logger = get_logger(__name__)


def _describe_validation_error(error: dict) -> str:
    # loc is ("query", "id"), ("body", ...) and so on
    field = ".".join(str(part) for part in error.get("loc", ())[1:]) or "request"
    return f"Invalid {field}: {error.get('msg', 'invalid value')}"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan handler.
    
    Manages startup and shutdown events:
    - Database schema creation and migration
    - Cloudflare client
    - Expiration sweeper
    """
    settings: Settings = app.state.settings
    
    logger.info(
        "Starting application",
        app=settings.APP_NAME,
        environment=settings.APP_ENV,
        alias_domain=settings.CF_EMAIL_DOMAIN or "(unset)",
    )
    
    try:
        components = await build_components(settings)
    except Exception as e:
        logger.error("Startup failed", error=str(e), exc_info=True)
        sys.exit(1)
    
    app.state.components = components
    components.sweeper.start()
    
    yield
    
    logger.info("Shutting down application", app=settings.APP_NAME)
    try:
        await components.close()
    except Exception as e:
        logger.error("Shutdown error", error=str(e), exc_info=True)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the FastAPI application.
    
    Args:
        settings: Application settings (default: from environment)
    
    Returns:
        FastAPI: Configured application; components are attached by the lifespan
    """
    settings = settings or get_settings()
    setup_logging(settings)
    
    app = FastAPI(
        title=f"{settings.APP_NAME} API",
        description="Temporary, self-expiring email aliases on Cloudflare Email Routing",
        version=__version__,
        docs_url="/docs" if settings.is_development else None,
        redoc_url=None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    
    # ===================================
    # Request/Response Middleware
    # ===================================
    
    @app.middleware("http")
    async def metrics_middleware(request: Request, call_next):
        """
        Collect Prometheus metrics for all requests.
        """
        active_requests.inc()
        start_time = time.time()
        status_code = 500
        
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            record_request(request.method, request.url.path, status_code, time.time() - start_time)
            active_requests.dec()
    
    # ===================================
    # Exception Handlers
    # ===================================
    
    @app.exception_handler(TempAliasException)
    async def tempalias_exception_handler(request: Request, exc: TempAliasException):
        """
        Render application errors as plain text with their status code.
        """
        log = logger.error if exc.status_code >= 500 else logger.warning
        log(
            exc.message,
            error_code=exc.error_code,
            path=request.url.path,
            method=request.method,
        )
        return PlainTextResponse(exc.message, status_code=exc.status_code)
    
    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """
        Render request validation errors as plain text, one line per field.
        """
        message = "\n".join(_describe_validation_error(error) for error in exc.errors())
        logger.warning(
            "Invalid request",
            error=message,
            path=request.url.path,
            method=request.method,
        )
        return PlainTextResponse(message, status_code=422)
    
    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """
        Handle unexpected exceptions.
        """
        logger.error(
            "Unexpected exception",
            error=str(exc),
            path=request.url.path,
            method=request.method,
            exc_info=True,
        )
        message = str(exc) if settings.is_development else "Internal server error"
        return PlainTextResponse(message, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)
    
    # ===================================
    # Routes
    # ===================================
    
    app.include_router(api_router)
    
    if settings.ENABLE_METRICS:
        app.mount("/metrics", make_asgi_app())
        logger.info("Prometheus metrics enabled at /metrics")
    
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    
    settings = get_settings()
    uvicorn.run(
        "tempalias.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.is_development,
        log_config=None,  # Use our custom logging
    )
