"""FastAPI application for the activity dashboard."""

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .api.deps import get_activity_source, get_dashboard_service
from .api.exception_handlers import register_exception_handlers
from .api.routes import dashboard
from .config import get_settings
from .llm.providers import close_llm_client, get_llm_metrics
from .services.dashboard import DashboardService


logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    settings = get_settings()
    configure_logging(settings.log_level)
    logger.info(f"Starting Activity Coach v{__version__}")
    logger.info(f"Text generation model: {settings.llm_model}")
    yield
    source = get_activity_source()
    if source is not None:
        await source.close()
    await close_llm_client()
    logger.info("Shutting down Activity Coach")


app = FastAPI(
    title="Activity Coach API",
    description="Activity trends and training recommendations",
    version=__version__,
    lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(dashboard.router, prefix="/api/v1/dashboard", tags=["dashboard"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "Activity Coach API",
        "version": __version__,
        "status": "healthy",
    }


@app.get("/health")
async def health(service: DashboardService = Depends(get_dashboard_service)):
    """Health check endpoint."""
    return {
        "status": "healthy",
        "activities": service.snapshot.record_count,
        "llm": get_llm_metrics(),
    }


def run() -> None:
    import uvicorn
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)


if __name__ == "__main__":
    run()
