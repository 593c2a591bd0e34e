"""FastAPI application entry point.

Couple Survey API - upload couple survey workbooks, browse rows, read the
travel preference analysis.
"""

from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from survey_api.routes import api_router
from survey_api.services.errors import StorageError, UploadTooLargeError, UploadValidationError, storage_details
from survey_api.settings import get_settings
from survey_api.stores.postgres import close_db, create_tables, init_db, ping_db
from survey_api.stores.redis import close_redis, init_redis

logger = logging.getLogger("uvicorn.error")

# Room for multipart boundaries and part headers around the file itself
MULTIPART_OVERHEAD_BYTES = 64 * 1024


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Handles startup and shutdown events.
    """
    # Startup
    settings = get_settings()

    try:
        await init_db()
        if settings.db_create_tables:
            await create_tables()
            logger.info("Table 'couples' checked/created")
        await ping_db()
        logger.info("Database connected")
    except Exception:
        logger.exception("Database init failed")

    if settings.report_cache_backend == "redis":
        try:
            await init_redis()
        except Exception:
            logger.exception("Redis init failed, analysis cache reads will miss")

    yield

    # Shutdown
    await close_redis()
    await close_db()


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Couple travel survey ingestion and analysis API",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000)

    # Refuse oversized uploads before Starlette spools the multipart body
    @app.middleware("http")
    async def upload_size_guard(request: Request, call_next):
        if request.method == "POST" and request.url.path.rstrip("/") == "/upload":
            limit_bytes = get_settings().max_upload_bytes
            declared = request.headers.get("content-length", "")
            if declared.isdigit() and int(declared) > limit_bytes + MULTIPART_OVERHEAD_BYTES:
                logger.info(f"Upload refused from Content-Length: {declared} bytes")
                return JSONResponse(status_code=413, content={"error": str(UploadTooLargeError(limit_bytes))})
        return await call_next(request)

    @app.exception_handler(UploadValidationError)
    async def upload_validation_handler(request: Request, exc: UploadValidationError) -> JSONResponse:
        content: dict[str, object] = {"error": exc.message}
        if exc.missing:
            content["missing"] = exc.missing
        if exc.problems:
            content["problems"] = exc.problems
        return JSONResponse(status_code=400, content=content)

    @app.exception_handler(UploadTooLargeError)
    async def upload_too_large_handler(request: Request, exc: UploadTooLargeError) -> JSONResponse:
        return JSONResponse(status_code=413, content={"error": str(exc)})

    @app.exception_handler(StorageError)
    async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
        return JSONResponse(status_code=500, content={"error": exc.message, "details": exc.details})

    # Exception handler for everything else
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Global exception handler returning structured error format."""
        logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc!r}")
        return JSONResponse(
            status_code=500,
            content={"error": "Internal Server Error", "details": str(exc)},
        )

    # Health check endpoint
    @app.get("/health", tags=["health"])
    async def health_check() -> dict[str, bool]:
        """Health check endpoint."""
        return {"ok": True}

    # Storage liveness probe
    @app.get("/test-db", tags=["health"])
    async def test_db() -> JSONResponse:
        """Check that the database answers a trivial query."""
        try:
            solution = await ping_db()
        except (SQLAlchemyError, RuntimeError, OSError) as e:
            logger.error(f"DB Test Error: {e!r}")
            details = storage_details(e) if isinstance(e, SQLAlchemyError) else str(e)
            return JSONResponse(
                status_code=500,
                content={"error": "DB connection failed", "details": details},
            )
        return JSONResponse(
            content={"success": True, "message": "Database connection successful!", "result": solution}
        )

    # Include API routes
    app.include_router(api_router)

    return app


# Application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "survey_api.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
