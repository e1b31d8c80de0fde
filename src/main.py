"""FastAPI application initialization."""

from contextlib import asynccontextmanager

import logfire
import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sentry_sdk.integrations.fastapi import FastApiIntegration

from src.api import extract, health
from src.config import get_settings
from src.logging_config import setup_logfire
from src.services.content_pipeline import ContentPipeline
from src.services.rate_limiter import TokenBucket
from src.services.study_service import StudyMaterialService

APP_VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    settings = get_settings()

    # Initialize Logfire for observability
    setup_logfire(app)

    # Initialize Sentry if DSN is provided
    if settings.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            traces_sample_rate=settings.sentry_traces_sample_rate,
            send_default_pii=False,
            integrations=[FastApiIntegration()],
        )

    # One pipeline and one AI throttle per process, shared by every request
    app.state.pipeline = ContentPipeline.from_settings(settings)
    app.state.rate_limiter = TokenBucket(
        capacity=settings.ai_rate_limit_requests,
        window_seconds=settings.ai_rate_limit_window_seconds,
    )
    app.state.study_service = StudyMaterialService(
        rate_limiter=app.state.rate_limiter,
        model=settings.default_model,
    )

    logfire.info(
        "Application startup complete",
        model=settings.default_model,
        environment=settings.env,
        proxy_count=len(settings.proxy_templates),
        direct_fetch=settings.direct_fetch_enabled,
    )

    yield

    logfire.info("Application shutdown complete")


# Create FastAPI app
app = FastAPI(
    title="Notelo Content Pipeline",
    description="Turns web pages, PDFs, YouTube videos and text into study material",
    version=APP_VERSION,
    lifespan=lifespan,
)

# CORS middleware (browser clients call the API directly)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(health.router, tags=["health"])
app.include_router(extract.router, tags=["content"])


@app.get("/")
def root():
    """Root endpoint."""
    settings = get_settings()
    return {
        "message": "Notelo Content Pipeline API",
        "model": settings.default_model,
        "version": APP_VERSION,
    }
