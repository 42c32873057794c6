"""FastAPI application factory for Scanara-Engine."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from scanara_engine.common.config import get_settings
from scanara_engine.common.exceptions import ScanaraError
from scanara_engine.common.logging import setup_logging
from scanara_engine.common.schemas import ErrorResponse, HealthResponse

logger = logging.getLogger(__name__)


def _error_response(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=code, message=message).model_dump(),
    )


def create_app() -> FastAPI:
    settings = get_settings()
    setup_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        from scanara_engine.deps import get_db
        db = get_db()
        await db.init()
        await db.create_all()
        logger.info("Scanara-Engine started (%s)", settings.environment)
        yield
        # Shutdown
        await db.close()

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ScanaraError)
    async def scanara_error_handler(request: Request, exc: ScanaraError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return _error_response(exc.status_code, exc.code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
        return _error_response(400, "VALIDATION_ERROR", message)

    @app.get("/health", response_model=HealthResponse)
    async def health():
        return HealthResponse(version=settings.api_version)

    # Mount routers
    from scanara_engine.projects.router import router as projects_router
    from scanara_engine.snapshots.router import router as snapshots_router
    from scanara_engine.github.router import router as github_router
    from scanara_engine.audits.router import router as audits_router
    from scanara_engine.cli_channel.router import router as cli_router

    prefix = settings.api_prefix
    app.include_router(projects_router, prefix=prefix, tags=["projects"])
    app.include_router(snapshots_router, prefix=prefix, tags=["snapshots"])
    app.include_router(github_router, prefix=prefix, tags=["github"])
    app.include_router(audits_router, prefix=prefix, tags=["audits"])
    app.include_router(cli_router, prefix=prefix, tags=["cli"])

    return app
