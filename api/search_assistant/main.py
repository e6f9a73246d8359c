"""
FastAPI application entrypoint.

Registers routers and error handlers, configures CORS, initializes
telemetry, and creates service instances on startup.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from search_assistant.core.config import get_settings
from search_assistant.core.errors import register_exception_handlers
from search_assistant.core.telemetry import setup_telemetry
from search_assistant.routers import health, search
from search_assistant.services.assistant import SearchAssistant
from search_assistant.services.gemini_client import GeminiService
from search_assistant.services.sessions import InMemorySessionStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(application: FastAPI):
    """
    Application lifespan handler.
    Initializes service clients on startup, cleans up on shutdown.
    """
    settings = get_settings()

    # Configure logging
    logging.basicConfig(level=settings.log_level)

    # Initialize telemetry
    setup_telemetry(settings.applicationinsights_connection_string)

    # Initialize service clients
    gemini_service = GeminiService(settings)
    session_store = InMemorySessionStore(ttl_seconds=settings.session_ttl_seconds)

    # Store in app state for dependency injection
    application.state.search_assistant = SearchAssistant(
        gemini_service,
        session_store,
        promote_headings=settings.promote_colon_headings,
    )

    logger.info("Grounded Search Assistant API started (model %s).", gemini_service.model)
    yield
    await gemini_service.aclose()
    logger.info("Grounded Search Assistant API shutting down.")


app = FastAPI(
    title="Grounded Search Assistant API",
    description="Conversational web search with Gemini grounding and numbered citations.",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS
settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Error responses
register_exception_handlers(app)

# Register routers
app.include_router(health.router)
app.include_router(search.router)
