"""
Main Application Entry Point
============================

Responsibilities:
- Construct the single SessionManager of this process
- Restore persisted sessions during startup
- Register API routers
- Set up exception handlers
- Provide health check endpoint
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from multiauth.core.config import Settings, get_settings
from multiauth.core.exceptions import MultiAuthException
from multiauth.core.logging import get_logger
from multiauth.middleware.session_context import SessionContextMiddleware
from multiauth.routes import dashboard_routes, session_routes
from multiauth.services.auth_client import HttpAuthenticator
from multiauth.services.session_manager import SessionManager
from multiauth.storage import build_session_store

# Initialize logger
logger = get_logger(__name__)


def build_session_manager(settings: Settings) -> SessionManager:
    """Wire the session manager from settings."""
    return SessionManager(
        store=build_session_store(settings),
        authenticator=HttpAuthenticator.from_settings(settings),
    )


def create_app(
    settings: Optional[Settings] = None,
    manager: Optional[SessionManager] = None,
) -> FastAPI:
    """
    Build the dashboard session shell.

    Args:
        settings: Explicit settings; defaults to the environment
        manager: Explicit session manager; defaults to one built from settings

    Returns:
        FastAPI application
    """
    settings = settings or get_settings()
    manager = manager or build_session_manager(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Startup: restore persisted sessions (routes answer LOADING until then).
        Shutdown: nothing to release.
        """
        logger.info(
            "Application starting",
            app_name=settings.app_name,
            version=settings.app_version,
        )
        manager.init()

        try:
            yield
        except asyncio.CancelledError:
            logger.debug("Application shutdown requested (CancelledError caught)")
            raise
        finally:
            logger.info("Application shutdown complete")

    app = FastAPI(
        title=settings.app_name,
        description="""
        Dashboard session shell

        Holds simultaneously authenticated sessions for several roles
        (admin, moderator, employee, vendor, trader, client) and enforces
        which single role is active for authorization.
        """,
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
    )
    app.state.settings = settings
    app.state.session_manager = manager

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(SessionContextMiddleware)

    @app.exception_handler(MultiAuthException)
    async def multiauth_exception_handler(request: Request, exc: MultiAuthException):
        """Render every session failure as a rejected-operation payload."""
        logger.warning(
            "Session operation rejected",
            exception_type=type(exc).__name__,
            kind=exc.kind,
            status_code=exc.status_code,
            path=request.url.path,
        )

        headers = {}
        retry_after = getattr(exc, "retry_after", None)
        if retry_after is not None:
            headers["Retry-After"] = str(retry_after)

        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_dict(),
            headers=headers or None,
        )

    @app.get("/health", tags=["Health"])
    def health_check() -> dict:
        return {
            "status": "healthy",
            "service": "multiauth",
            "sessions_loaded": not manager.loading,
        }

    app.include_router(session_routes.router)
    app.include_router(dashboard_routes.router)

    return app
