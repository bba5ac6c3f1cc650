"""
UniBridge AI Core - Main Application

FastAPI backend with:
- Opportunity ranking (heuristic + optional DeepSeek judgment)
- Wellness check-in triage with template fallback
- PostgreSQL as the read-only live opportunity catalog

Run: uvicorn unibridge.main:app --reload
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from unibridge import __version__
from unibridge.api.routes import api_router
from unibridge.core.config import Settings, get_settings
from unibridge.core.log_config import configure_logging
from unibridge.db.postgres import test_postgres_connection
from unibridge.schemas.schemas import HealthResponse
from unibridge.services import build_services

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    app.state.services.shutdown()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the app and its services once; services are shared by all requests."""
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="UniBridge AI Core",
        description="""
        AI-assisted decision services for the UniBridge student portal.

        ## Features
        - **Opportunity Matching**: explainable ranking of scholarships, bursaries, gigs, internships and grants
        - **Wellness Check-In**: urgency triage with safe, supportive replies
        - **Graceful degradation**: every AI feature has a deterministic fallback
        """,
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )

    # CORS middleware (allow all for development)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.settings = settings
    app.state.services = build_services(settings)
    logger.info(
        "Services ready (AI provider %s)",
        "configured" if app.state.services.provider_configured else "not configured"
    )

    app.include_router(api_router, prefix="/api")

    @app.get("/", tags=["Health"])
    async def root():
        return {"status": "healthy", "app": "UniBridge AI Core", "version": __version__}

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    def health_check():
        """Detailed health check."""
        return HealthResponse(
            status="healthy",
            postgres="connected" if test_postgres_connection(settings) else "disconnected",
            ai_provider="configured" if app.state.services.provider_configured else "fallback-only"
        )

    return app


app = create_app()
