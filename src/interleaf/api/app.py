"""
FastAPI Application Factory & Configuration.

This module initializes the Interleaf API. It is responsible for:
1.  **Middleware Setup**: CORS for browser-based editors.
2.  **Exception Handling**: Global handlers so all errors return structured JSON.
3.  **Routing**: Mounting the documents router and the health probe.
4.  **Lifecycle**: Initializing the session store on startup.

Design Pattern
--------------
An **Application Factory** (`create_app`) so tests can build isolated apps.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from interleaf import __version__
from interleaf.api.routers import documents
from interleaf.api.session_store import SessionStore
from interleaf.core.settings import get_logger, load_settings

logger = get_logger("interleaf.api")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    ASGI Lifespan context manager.

    - **Startup**: Initialize the in-memory session store singleton.
    - **Shutdown**: Nothing to release; sessions are volatile.
    """
    logger.info("Interleaf API starting up")
    SessionStore.get_instance()
    yield
    logger.info("Interleaf API shutting down")


def create_app() -> FastAPI:
    """
    Construct and configure the Interleaf FastAPI application.

    Returns
    -------
    FastAPI
        The configured ASGI application ready to be served by Uvicorn.
    """
    app = FastAPI(
        title="Interleaf API",
        description="Interleaved text/image block editing sessions",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all handler: unhandled exceptions become structured 500s."""
        logger.exception("unhandled error on %s", request.url.path)
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal Server Error",
                "detail": str(exc),
                "path": request.url.path,
            },
        )

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
        """Map Python ValueErrors (incl. PublishError) to HTTP 400 Bad Request."""
        return JSONResponse(
            status_code=400,
            content={
                "error": "Bad Request",
                "detail": str(exc),
            },
        )

    app.include_router(documents.router)

    @app.get("/health", tags=["System"])
    async def health_check() -> dict[str, str]:
        """Simple liveness probe."""
        return {
            "status": "ok",
            "environment": load_settings().environment,
            "version": __version__,
        }

    return app


__all__ = ["create_app"]
