"""
FastAPI Main Application
LSCS Core API
"""

import time
from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from lscs_core import __version__
from lscs_core.api.router import api_router
from lscs_core.core.config import Settings
from lscs_core.core.database import Database
from lscs_core.core.logging import setup_logging
from lscs_core.core.rbac import RBACService
from lscs_core.core.security import APIKeyIssuer
from lscs_core.core.token_validator import GoogleIDTokenValidationStrategy, LocalJWTValidationStrategy
from lscs_core.middleware.logging import LoggingMiddleware
from lscs_core.middleware.security import SecurityHeadersMiddleware
from lscs_core.services.api_key import APIKeyService
from lscs_core.services.bootstrap_admin import ensure_bootstrap_admin
from lscs_core.services.oauth import GoogleOAuthClient
from lscs_core.services.session import SessionService
from lscs_core.services.session_cleanup import SessionCleanupJob

logger = structlog.get_logger()

ERROR_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    409: "CONFLICT",
    422: "VALIDATION_ERROR",
    500: "INTERNAL_ERROR",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    settings: Settings = app.state.settings
    database: Database = app.state.database
    cleanup_job: SessionCleanupJob = app.state.session_cleanup_job

    logger.info("Starting LSCS Core API", version=__version__, environment=settings.ENVIRONMENT)

    await database.create_all()
    async with database.session_factory() as session:
        await ensure_bootstrap_admin(session, settings.BOOTSTRAP_ADMIN_EMAIL)

    await cleanup_job.start()

    yield

    logger.info("Shutting down LSCS Core API")
    await cleanup_job.stop()
    await database.close()


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if isinstance(exc.detail, dict):
            content = exc.detail
        else:
            content = {"error": exc.detail, "code": ERROR_CODES.get(exc.status_code, "ERROR")}
        return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=422,
            content={
                "error": "Validation failed",
                "code": "VALIDATION_ERROR",
                "details": jsonable_encoder(exc.errors(), custom_encoder={Exception: str}),
            },
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Global exception handler"""
        logger.error(
            "Unhandled exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            exc_info=True,
        )
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "code": "INTERNAL_ERROR"},
        )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the application

    Args:
        settings: Explicit settings; read from the environment when omitted

    Returns:
        Configured FastAPI app with services on app.state
    """
    settings = settings or Settings()
    setup_logging(settings)

    app = FastAPI(
        title="LSCS Core API",
        description="Membership directory, authentication and API key management",
        version=__version__,
        docs_url=None if settings.is_production else "/docs",
        redoc_url=None if settings.is_production else "/redoc",
        lifespan=lifespan,
    )

    database = Database(settings)
    rbac_service = RBACService()
    session_service = SessionService(database.session_factory, settings)

    app.state.settings = settings
    app.state.database = database
    app.state.rbac_service = rbac_service
    app.state.session_service = session_service
    app.state.session_cleanup_job = SessionCleanupJob(session_service, settings.SESSION_CLEANUP_INTERVAL)
    app.state.api_key_service = APIKeyService(APIKeyIssuer(settings), rbac_service)
    app.state.api_key_validator = LocalJWTValidationStrategy(settings.JWT_SECRET, settings.JWT_ALGORITHM)
    app.state.google_token_validator = GoogleIDTokenValidationStrategy(settings.GOOGLE_CLIENT_ID)
    app.state.oauth_client = GoogleOAuthClient(settings)

    logger.info("Configuring CORS", allowed_origins=settings.allowed_origins)
    app.add_middleware(SecurityHeadersMiddleware, enable_hsts=settings.is_production)
    app.add_middleware(LoggingMiddleware)
    # added last so it wraps everything, including preflight requests
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "Accept", "X-Requested-With", "X-Request-ID", "Origin"],
        expose_headers=["X-Request-ID"],
        max_age=600,
    )

    _register_exception_handlers(app)
    app.include_router(api_router)

    @app.get("/health", tags=["health"])
    async def health_check():
        """Health check endpoint for Docker and load balancers"""
        healthy = await database.check_health()
        body = {
            "status": "healthy" if healthy else "unhealthy",
            "service": "lscs-core-api",
            "version": __version__,
            "timestamp": time.time(),
            "database": "connected" if healthy else "disconnected",
        }
        return JSONResponse(status_code=200 if healthy else 503, content=body)

    return app


if __name__ == "__main__":
    import uvicorn

    _settings = Settings()
    uvicorn.run(
        "lscs_core.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=8080,
        reload=_settings.ENVIRONMENT == "development",
        log_level=_settings.LOG_LEVEL.lower(),
    )
