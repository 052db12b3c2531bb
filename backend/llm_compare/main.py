import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from llm_compare.api.compare import router as compare_router
from llm_compare.api.health import router as health_router
from llm_compare.api.sessions import router as sessions_router
from llm_compare.config import Settings, get_settings
from llm_compare.config_loader import build_provider_streams
from llm_compare.services.db_init import init_database
from llm_compare.services.pocketbase import PocketbaseError, PocketbaseService
from llm_compare.services.results import (
    InMemoryResultStore,
    PocketbaseResultStore,
    ResultStore,
)
from llm_compare.services.streaming import StreamRelay

logger = logging.getLogger(__name__)


async def build_store(settings: Settings) -> ResultStore:
    """Create the configured result store, preparing Pocketbase if used."""
    if settings.result_store == "memory":
        logger.info("Using in-memory result store (results are not persisted)")
        return InMemoryResultStore()

    pocketbase = PocketbaseService(
        settings.pocketbase_url,
        admin_email=settings.pocketbase_admin_email,
        admin_password=settings.pocketbase_admin_password,
    )

    # Check Pocketbase connection
    try:
        health = await pocketbase.health_check()
        logger.info("Pocketbase connected: %s", (health or {}).get("message", "OK"))
        await init_database(pocketbase)
    except PocketbaseError as e:
        logger.error("Pocketbase connection failed: %s", e.message)

    return PocketbaseResultStore(pocketbase)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the FastAPI application for the given settings."""
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup and shutdown events."""
        logger.info("Backend starting...")

        store = await build_store(settings)
        openai_stream, gemini_stream = build_provider_streams(settings)

        app.state.store = store
        app.state.store_kind = settings.result_store
        app.state.relay = StreamRelay(
            store,
            openai_stream,
            gemini_stream,
            event_buffer_size=settings.event_buffer_size,
        )

        logger.info("Backend started")

        yield

        logger.info("Backend shutting down...")

    app = FastAPI(title="LLM Compare Backend", lifespan=lifespan)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.cors_origin],
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    # Include routers
    app.include_router(health_router)
    app.include_router(compare_router)
    app.include_router(sessions_router)

    return app


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


configure_logging(get_settings())
app = create_app()
