"""
FastAPI application initialization
"""

from typing import Optional
from fastapi import FastAPI
from api.errors import register_exception_handlers
from api.middleware import RequestContextMiddleware
from api.routes import catalog, health, space, telemetry
from core.config import settings
from core.logging import setup_logging
from services.container import ServiceContainer
import logging

setup_logging()

logger = logging.getLogger(__name__)


def create_app(container: Optional[ServiceContainer] = None) -> FastAPI:
    """
    Build the application.

    Args:
        container: Prebuilt container (tests); by default one is built from
            settings at startup
    """
    app = FastAPI(
        title="Space Data Service API",
        description="Refresh-and-cache service for ISS, OSDR and space weather feeds",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc"
    )

    app.add_middleware(RequestContextMiddleware)
    register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(telemetry.router)
    app.include_router(catalog.router)
    app.include_router(space.router)

    @app.on_event("startup")
    async def startup_event():
        """Application startup event"""
        logger.info("Starting Space Data Service API")
        logger.info(f"Environment: {settings.ENVIRONMENT}")
        logger.info(f"Database: {settings.DATABASE_URL.split('@')[1] if '@' in settings.DATABASE_URL else 'configured'}")

        app.state.container = container or ServiceContainer(settings)
        await app.state.container.start()

    @app.on_event("shutdown")
    async def shutdown_event():
        """Application shutdown event; in-flight refresh ticks are abandoned"""
        logger.info("Shutting down Space Data Service API")
        await app.state.container.close()

    @app.get("/")
    async def root():
        """Root endpoint"""
        return {
            "message": "Space Data Service API",
            "version": "1.0.0",
            "docs": "/docs",
            "health": "/health",
            "endpoints": {
                "iss": ["/last", "/fetch", "/iss/trend"],
                "osdr": ["/osdr/sync", "/osdr/list", "/osdr/item/{business_key}"],
                "space": ["/space/{src}/latest", "/space/refresh", "/space/summary"]
            }
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.API_HOST, port=settings.API_PORT)
