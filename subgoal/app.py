"""FastAPI application factory"""

import logging
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from subgoal.core.config import Settings, get_settings
from subgoal.core.database import DatabaseManager
from subgoal.core.logging import setup_logging
from subgoal.models import CredentialRecord
from subgoal.repositories import CredentialStore, MemoryCredentialStore, PostgresCredentialStore
from subgoal.routers import auth_router, goal_router, metric_router, overlay_router
from subgoal.services import GoalStore, MetricFetcher, OAuthFlow, TokenCache, TwitchAPIClient

logger = logging.getLogger(__name__)


async def _open_credential_store(
    settings: Settings,
) -> tuple[CredentialStore, DatabaseManager | None, list[CredentialRecord]]:
    """Connect the durable store and load its rows.

    Any failure (connect, schema or load) downgrades to memory-only.
    """
    if not settings.persistence_enabled:
        logger.warning("DATABASE_URL not set; starting without DB persistence.")
        return MemoryCredentialStore(), None, []

    db_manager = DatabaseManager(settings.database_url, ssl=settings.database_ssl)
    try:
        await db_manager.connect()
        store = PostgresCredentialStore(db_manager.pool)
        await store.init_schema()
        records = await store.load_all()
        return store, db_manager, records
    except Exception as e:
        logger.error(
            f"Failed to init/load DB: {type(e).__name__}: {e}; running memory-only"
        )
        await db_manager.disconnect()
        return MemoryCredentialStore(), None, []


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Build stores and services on startup, tear them down on shutdown"""
    settings: Settings = app.state.settings
    app.state.start_time = time.time()

    # Startup
    logger.info("Starting subgoal server")
    logger.info(f"Environment: {settings.environment}")

    db_manager: DatabaseManager | None = None
    credential_store = app.state.credential_store_override
    if credential_store is None:
        credential_store, db_manager, records = await _open_credential_store(settings)
    else:
        records = await credential_store.load_all()

    token_cache = TokenCache()
    loaded = token_cache.load(records)
    logger.info(f"Loaded tokens for channels: {token_cache.channels} ({loaded})")

    twitch_api = TwitchAPIClient(
        client_id=settings.twitch_client_id,
        client_secret=settings.twitch_client_secret,
        redirect_uri=settings.twitch_redirect_uri,
        transport=app.state.transport,
    )
    oauth_flow = OAuthFlow(twitch_api, token_cache, credential_store)

    app.state.db_manager = db_manager
    app.state.credential_store = credential_store
    app.state.token_cache = token_cache
    app.state.twitch_api = twitch_api
    app.state.goal_store = GoalStore(default_goal=settings.default_goal)
    app.state.oauth_flow = oauth_flow
    app.state.metric_fetcher = MetricFetcher(twitch_api, token_cache, oauth_flow)

    yield

    # Shutdown
    logger.info("Shutting down subgoal server")
    try:
        await twitch_api.close()
        if db_manager is not None:
            await db_manager.disconnect()
            logger.info("Database disconnected")
    except Exception as e:
        logger.exception(f"Error during shutdown: {e}")
    finally:
        app.state.token_cache = None
        app.state.goal_store = None
        app.state.oauth_flow = None
        app.state.metric_fetcher = None


def create_app(
    settings: Settings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
    credential_store: CredentialStore | None = None,
) -> FastAPI:
    """Create and configure FastAPI application

    *transport* and *credential_store* replace the network and the database,
    which is how the tests run the app without either.
    """
    settings = settings or get_settings()

    setup_logging(settings)

    app = FastAPI(
        title="Subgoal",
        description="Twitch sub goal overlay service",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
    )
    app.state.settings = settings
    app.state.transport = transport
    app.state.credential_store_override = credential_store
    app.state.credential_store = credential_store
    app.state.start_time = time.time()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(auth_router.router)
    app.include_router(goal_router.router)
    app.include_router(metric_router.router)
    app.include_router(overlay_router.router)

    # Liveness probe, no external dependency
    @app.get("/health", response_class=PlainTextResponse)
    async def health():
        return "OK"

    @app.get("/status")
    async def status():
        """Readiness / status endpoint"""
        db_manager: DatabaseManager | None = getattr(app.state, "db_manager", None)
        token_cache: TokenCache | None = getattr(app.state, "token_cache", None)
        store = app.state.credential_store
        return {
            "service": "subgoal",
            "persistence": store.name if store is not None else "memory",
            "db_connected": db_manager is not None and await db_manager.check_health(),
            "authorized_channels": len(token_cache) if token_cache is not None else 0,
            "uptime_seconds": int(time.time() - app.state.start_time),
        }

    logger.info("FastAPI application configured")

    return app
