# siakad/main.py
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging
import time

from .core.audit import AuditLogMiddleware
from .core.cache import cache_manager
from .core.config import settings
from .core.database import close_db_connections
from .core.error_handlers import register_exception_handlers
from .core.logging import setup_logging

# Import all routers
from .routers import (
    health, graduates, students, rombels, promotion, academic_years, curricula, scores, assessment_types,
)

setup_logging()
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.app_name} API ({settings.environment})")

    await cache_manager.initialize()
    logger.info("Cache initialized")

    yield

    logger.info(f"Shutting down {settings.app_name} API")
    await cache_manager.close()
    await close_db_connections()
    logger.info("Shutdown complete")

def create_app() -> FastAPI:
    app = FastAPI(
        title="SIAKAD API",
        description="School administration: student lifecycle, rombel membership and scores",
        version=settings.app_version,
        lifespan=lifespan
    )

    @app.middleware("http")
    async def add_process_time_header(request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time
        response.headers["X-Process-Time"] = str(process_time)
        logger.info(f"{request.method} {request.url.path} - {process_time:.3f}s")
        return response

    app.add_middleware(AuditLogMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        max_age=3600,
    )

    register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(graduates.router)
    app.include_router(students.router)
    app.include_router(rombels.router)
    app.include_router(promotion.router)
    app.include_router(academic_years.router)
    app.include_router(curricula.router)
    app.include_router(scores.router)
    app.include_router(assessment_types.router)

    @app.get("/")
    async def root():
        return {
            "message": f"{settings.app_name} API v{settings.app_version}",
            "version": settings.app_version,
            "status": "active"
        }

    return app

app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("siakad.main:app", host="0.0.0.0", port=8000, reload=True)
