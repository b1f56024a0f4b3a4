"""Main FastAPI application module.

This module builds the FastAPI application, registers all route handlers and
the exception handlers that shape every error as ``{"error": ...}``.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.routes import auth, deadline, files, group_route, note, project
from config import (
    API_HOST,
    API_PORT,
    BLOB_STORE_DIR,
    CORS_ALLOWED_ORIGINS,
    DATABASE_URL,
)
from core.blob_store import BlobStore
from core.database import Database
from core.exceptions import CascadeDeleteError, StudyHubError
from core.logging_config import setup_logging

logger = logging.getLogger(__name__)

API_TITLE = "StudyHub API"
API_VERSION = "1.0.0"
API_DESCRIPTION = "Backend API for student study groups, notes, projects and deadlines."


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


async def studyhub_error_handler(request: Request, exc: StudyHubError) -> JSONResponse:
    # Partial cascades are already logged with their stages by GroupManager
    if exc.status_code >= 500 and not isinstance(exc, CascadeDeleteError):
        logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc)
    return _error_response(exc.status_code, exc.message)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    response = _error_response(exc.status_code, str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report the first invalid field as a 400."""
    errors = exc.errors()
    if not errors:
        return _error_response(status.HTTP_400_BAD_REQUEST, "Invalid request.")
    first = errors[0]
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid value")
    return _error_response(
        status.HTTP_400_BAD_REQUEST, f"{field}: {message}" if field else message
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error.")


def create_app(
    database_url: Optional[str] = None,
    blob_store_dir: Optional[Union[str, Path]] = None,
) -> FastAPI:
    """Build the application.

    The database and blob store are constructed on startup and closed on
    shutdown, so nothing touches storage at import time.

    Args:
        database_url: SQLAlchemy URL, defaults to ``DATABASE_URL``.
        blob_store_dir: Directory for file bytes, defaults to ``BLOB_STORE_DIR``.

    Returns:
        The configured FastAPI application.
    """
    setup_logging()

    app = FastAPI(title=API_TITLE, description=API_DESCRIPTION, version=API_VERSION)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(StudyHubError, studyhub_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(auth.router)
    app.include_router(group_route.router)
    app.include_router(note.router)
    app.include_router(project.router)
    app.include_router(deadline.router)
    app.include_router(files.router)

    @app.on_event("startup")
    def open_storage() -> None:
        database = Database(database_url or DATABASE_URL)
        database.init()
        blob_store = BlobStore(Path(blob_store_dir or BLOB_STORE_DIR))
        blob_store.init()
        app.state.database = database
        app.state.blob_store = blob_store

    @app.on_event("shutdown")
    def close_storage() -> None:
        app.state.blob_store.close()
        app.state.database.close()

    @app.get("/", summary="API root", tags=["Info"])
    def root() -> dict:
        """Return API information and documentation links."""
        return {
            "name": API_TITLE,
            "version": API_VERSION,
            "description": API_DESCRIPTION,
            "docs": {
                "swagger": "/docs",
                "redoc": "/redoc",
            },
            "health": "/api/health",
        }

    @app.get("/api/health", summary="Health check", tags=["Health"])
    def health() -> dict:
        return {"status": "ok"}

    return app


app = create_app()


# --- Startup code for direct execution ---
if __name__ == "__main__":
    import uvicorn

    logger.info("Starting StudyHub API at http://%s:%s (docs at /docs)", API_HOST, API_PORT)
    uvicorn.run("app:app", host=API_HOST, port=API_PORT, reload=True)
