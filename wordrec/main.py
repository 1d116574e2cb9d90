import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from sqlalchemy import text

from wordrec.api.middleware import LoggingMiddleware, MetricsMiddleware
from wordrec.api.v1.monitoring import router as monitoring_router
from wordrec.api.v1.recommendations import router as recommendations_router
from wordrec.core.config import settings
from wordrec.core.exception import WordRecError
from wordrec.core.logging_config import setup_logging
from wordrec.infrastructure.database import async_engine
from wordrec.infrastructure.redis import redis_client

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Check backing services on startup and release them on shutdown"""
    logger.info("Starting word recommendation service...")

    try:
        async with async_engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
        logger.info("Database connection established")
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        raise

    # Without Redis the service still answers, every request is a cache miss
    try:
        redis_client.get_client().ping()
        logger.info("Redis connection established")
    except Exception as e:
        logger.warning(f"Redis connection failed: {e}")

    yield

    logger.info("Shutting down word recommendation service...")

    try:
        await async_engine.dispose()
    except Exception as e:
        logger.warning(f"Engine disposal failed: {e}")

    try:
        redis_client.close()
    except Exception as e:
        logger.warning(f"Redis close failed: {e}")


async def wordrec_exception_handler(request: Request, exc: WordRecError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"error": "InternalServerError", "message": "An unexpected error occurred"},
    )


async def metrics() -> Response:
    """Prometheus metrics"""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


def create_app() -> FastAPI:
    """Build the FastAPI application"""
    setup_logging()

    app = FastAPI(
        title=settings.app_name,
        description="Personalized dictionary word recommendations",
        version=settings.version,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )
    app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.allowed_hosts)
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(MetricsMiddleware)

    app.add_exception_handler(WordRecError, wordrec_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    app.include_router(monitoring_router, tags=["monitoring"])
    app.include_router(recommendations_router, prefix="/api/v1", tags=["recommendations"])
    app.add_api_route("/metrics", metrics, methods=["GET"], include_in_schema=False)

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "wordrec.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
