"""FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from talent_reports.config import get_settings
from talent_reports.routers import (
    health_router,
    render_router,
    reports_router,
    views_router,
)
from talent_reports.services import get_snowflake_service

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    settings = get_settings()
    logger.info(f"Starting {settings.app_name} {settings.app_version}...")
    logger.info(f"Environment: {'DEBUG' if settings.debug else 'PRODUCTION'}")
    if settings.report_debug:
        logger.info("Report debug logging enabled")
    yield
    logger.info(f"Shutting down {settings.app_name}...")
    get_snowflake_service().disconnect()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="""
        ## Talent Report Pipeline API

        Scored feedback reports for completed talent assessments.

        ### Features:
        - 360 (multi-rater) and leader/blocker (single-rater) reports
        - Industry benchmarks and group norms per dimension
        - Feedback assignment from the assessment's library
        - Per-assessment report templates
        - CSV, Excel and PDF exports
        - Queued, browser-rendered PDF artifacts with signed download URLs
        """,
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json"
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_router)
    # render routes first so /pdf/queue is not read as an assignment id
    app.include_router(render_router)
    app.include_router(reports_router)
    app.include_router(views_router)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error", "error": str(exc)}
        )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("talent_reports.main:app", host="0.0.0.0", port=8000, reload=True)
