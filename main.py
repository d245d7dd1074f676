"""
Authentication Service - FastAPI Application.

This is the main entry point for the authentication service, providing a
FastAPI application with the authentication endpoints.
"""
import logging
from typing import Optional

import uvicorn
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from auth_service import __version__
from auth_service.api import router as auth_router
from auth_service.config import Settings, get_settings
from auth_service.dependencies import build_resources
from auth_service.email_client import EmailClient

logger = logging.getLogger("auth_service")


def configure_logging(settings: Settings) -> None:
    """
    Configure root logging from settings.

    Leaves logging alone when the root logger already has handlers, so a host
    that configured logging first keeps its own setup.
    """
    if logging.getLogger().handlers:
        return
    handlers = [logging.StreamHandler()]
    if settings.LOG_FILE:
        handlers.append(logging.FileHandler(settings.LOG_FILE))
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format=settings.LOG_FORMAT,
        handlers=handlers,
    )


# PUBLIC_INTERFACE
def create_app(settings: Optional[Settings] = None, email_client: Optional[EmailClient] = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        settings: Settings to use. Defaults to settings from the environment.
        email_client: Delivery client for 2FA codes.

    Returns:
        Configured FastAPI application.
    """
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title=settings.APP_NAME,
        description=settings.APP_DESCRIPTION,
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        debug=settings.DEBUG,
    )
    app.state.settings = settings
    app.state.resources = build_resources(settings, email_client=email_client)

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        """Handle HTTP exceptions."""
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
            headers=exc.headers,
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle general exceptions."""
        logger.error("Unhandled exception: %s", type(exc).__name__, exc_info=exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"},
        )

    @app.get(
        "/health",
        tags=["health"],
        summary="Health check",
        description="Check if the API is running.",
    )
    async def health_check():
        """Health check endpoint."""
        return {"status": "ok", "version": __version__}

    app.include_router(auth_router, prefix=settings.API_PREFIX)

    @app.on_event("shutdown")
    async def shutdown_event():
        """Close backend connections on shutdown."""
        logger.info("Shutting down authentication service")
        await app.state.resources.close()

    logger.info("Authentication service initialized")
    return app


# Run the application if executed directly
if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run(
        create_app(settings),
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )
