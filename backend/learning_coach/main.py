"""
AI Learning Coach - Main FastAPI Application
"""

import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from .config import settings
from .api import chat_router, conversations_router, feedback_router
from .core import (
    CoachService, ConversationStore, FeedbackStore, RecommendationExtractor,
    SessionRegistry, SessionStats
)
from .core.logging_config import setup_logging
from .llm import create_llm_provider
from .middleware import RequestLoggingMiddleware
from .storage import create_storage

# Logger will be initialized after setup_logging() is called
logger = logging.getLogger(__name__)


def _get_llm_provider():
    """Get configured LLM provider or None."""
    api_key = settings.llm_api_key or settings.gemini_api_key
    if not api_key:
        return None
    return create_llm_provider(
        provider=settings.llm_provider,
        api_key=api_key,
        model=settings.llm_model,
        base_url=settings.llm_base_url,
        timeout=settings.llm_timeout,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    # Startup
    setup_logging(settings)

    storage = create_storage(settings)
    store = ConversationStore(storage, storage_key=settings.conversations_storage_key)
    load_result = await store.load()
    if not load_result.ok:
        logger.warning(f"Conversation history started empty: {load_result.failure.value}")

    stats = SessionStats(storage, storage_key=settings.stats_storage_key)
    await stats.load()

    llm_provider = _get_llm_provider()
    if llm_provider is None:
        logger.warning("No LLM API key configured, coaching requests will be rejected")

    extractor = RecommendationExtractor()
    app.state.storage = storage
    app.state.conversation_store = store
    app.state.stats = stats
    app.state.session_registry = SessionRegistry(extractor, max_sessions=settings.max_sessions)
    app.state.feedback_store = FeedbackStore(storage, storage_key=settings.feedback_storage_key)
    app.state.coach = CoachService(llm_provider, temperature=settings.llm_temperature)

    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Storage: {settings.storage_type} ({settings.local_storage_path})")
    logger.info(f"Loaded {len(store)} saved conversations")
    yield
    # Shutdown
    flush_result = await store.flush()
    if not flush_result.ok:
        logger.warning(f"Final history flush failed: {flush_result.failure.value}")
    logger.info(f"Shutting down {settings.app_name}")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="AI learning coach: personalised study advice, recommendations and consultation history",
    lifespan=lifespan
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add request logging middleware (after CORS)
if settings.log_api_requests:
    app.add_middleware(RequestLoggingMiddleware)

# Include routers
app.include_router(chat_router)
app.include_router(conversations_router)
app.include_router(feedback_router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "app": settings.app_name,
        "version": settings.app_version,
        "status": "running",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "storage": settings.storage_type,
        "llm_configured": app.state.coach.configured,
        "version": settings.app_version
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "learning_coach.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug
    )
