"""Main entry point for the confession board application."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from confession_board.api.v1 import (
    admin_router,
    comments_router,
    confessions_router,
    users_router,
)
from confession_board.core.errors import BoardError
from confession_board.core.settings import settings
from confession_board.db.session import Database
from confession_board.services.repair import CounterRepairWorker

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Anonymous confessions judged by the community",
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

# Include API routers
app.include_router(confessions_router, prefix="/api/v1")
app.include_router(comments_router, prefix="/api/v1")
app.include_router(admin_router, prefix="/api/v1")
app.include_router(users_router, prefix="/api/v1")


@app.exception_handler(BoardError)
async def board_error_handler(request: Request, exc: BoardError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Request %s %s failed: %s", request.method, request.url.path, exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.kind, "detail": exc.detail},
    )


@app.on_event("startup")
async def on_startup() -> None:
    if getattr(app.state, "database", None) is None:
        database = Database(settings.database_url, echo=settings.sql_debug)
        database.open(create_tables=settings.create_tables_on_startup)
        app.state.database = database
    if settings.counter_repair_enabled:
        worker = CounterRepairWorker(app.state.database, settings.counter_repair_interval_seconds)
        await worker.start()
        app.state.repair_worker = worker
    else:
        app.state.repair_worker = None


@app.on_event("shutdown")
async def on_shutdown() -> None:
    worker: CounterRepairWorker | None = getattr(app.state, "repair_worker", None)
    if worker:
        await worker.stop()
    database: Database | None = getattr(app.state, "database", None)
    if database is not None:
        database.close()
        app.state.database = None


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("confession_board.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
