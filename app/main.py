import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from app.config import Settings, get_settings
from app.errors import AppError, ConfigMissing
from app.routers import posts
from app.services.mongo_service import create_mongo_client
from app.services.s3_service import create_s3_client
import structlog

logger = structlog.get_logger()


def configure_logging(level: str = "INFO") -> None:
    """Configure structured logging."""
    logging.basicConfig(level=getattr(logging, level), format="%(message)s", stream=sys.stdout)
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings: Settings = app.state.settings
    app.state.s3_client = create_s3_client(settings)
    app.state.mongo_client = create_mongo_client(settings)
    logger.info(
        "Storage clients ready",
        bucket=settings.aws_bucket,
        database=settings.mongodb_db_name,
        collection=settings.collection_name
    )
    yield
    app.state.mongo_client.close()
    logger.info("MongoDB client closed")


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error", path=request.url.path, error=str(exc), exc_info=exc)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


def create_app(settings: Settings) -> FastAPI:
    app = FastAPI(
        title="Admin Posts API",
        description="Accepts picture submissions and lists stored posts",
        version="1.0.0",
        lifespan=lifespan
    )
    app.state.settings = settings

    # Only the configured frontend may call the API
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_origin],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Origin", "Content-Type", "Authorization"],
        expose_headers=["Content-Length"],
        max_age=settings.cors_max_age,
    )
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(posts.router)

    @app.get("/")
    async def root():
        """Health check endpoint."""
        return {"message": "Admin Posts API is running"}

    @app.get("/health")
    async def health_check():
        """Detailed health check endpoint."""
        return {
            "status": "healthy",
            "service": "admin-posts-api",
            "version": "1.0.0"
        }

    return app


try:
    settings = get_settings()
except ConfigMissing as e:
    configure_logging()
    logger.error("Invalid configuration", missing=e.names)
    sys.exit(1)

configure_logging(settings.log_level)
app = create_app(settings)


def main() -> None:
    import uvicorn
    logger.info("Server starting", host=settings.host, port=settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
