"""craftsync API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map CraftSyncError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database, ledger connection and synchronizer are built in the lifespan and
      torn down in reverse order on shutdown
    - A ledger that cannot be reached at startup leaves the API serving from the
      store; readiness reports the chain as unavailable

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - ChainConnectionManager and EventSynchronizer live on app.state, one per
      process, injected into routes through api/dependencies.py
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from craftsync.api.error_handlers import register_error_handlers
from craftsync.api.routes import (
    crafting, health, ingredients, ledger, recipes, sync_status,
)
from craftsync.config import Settings, get_settings
from craftsync.core.errors import ChainUnavailableError
from craftsync.infrastructure.chain_connection import (
    ChainConnectionManager, web3_handle_factory,
)
from craftsync.infrastructure.database import DatabaseSessionManager, init_db
from craftsync.infrastructure.observability import setup_logging
from craftsync.infrastructure.web3_ledger import RetryPolicy
from craftsync.services.event_synchronizer import EventSynchronizer
from craftsync.services.recipe_store import IngredientStore, RecipeStore

logger = logging.getLogger(__name__)


async def start_ledger_sync(
    app: FastAPI, settings: Settings, db: DatabaseSessionManager,
) -> None:
    """Connect to the ledger and start the synchronizer, when configured."""
    if not (settings.chain_rpc_url and settings.chain_token_contract):
        logger.warning("Ledger not configured; event synchronization disabled")
        return

    chain = ChainConnectionManager(
        handle_factory=web3_handle_factory(
            poll_interval=settings.chain_poll_interval_seconds,
            retry=RetryPolicy(
                max_retries=settings.chain_read_max_retries,
                base_delay_ms=settings.chain_read_base_delay_ms,
                max_delay_ms=settings.chain_read_max_delay_ms,
            ),
        ),
    )
    app.state.chain = chain
    try:
        await chain.initialize(
            settings.chain_rpc_url,
            settings.chain_token_contract,
            settings.chain_workbench_contract,
        )
    except ChainUnavailableError as e:
        logger.error(f"Ledger unavailable at startup: {e.message}")
        return

    if not settings.sync_enabled:
        logger.info("Event synchronization disabled by settings")
        return
    synchronizer = EventSynchronizer(
        RecipeStore(db),
        IngredientStore(db),
        chain.token_contract,
        chain.workbench_contract if chain.has_workbench_contract else None,
        worker_count=settings.sync_worker_count,
        queue_size=settings.sync_queue_size,
        dead_letter_size=settings.sync_dead_letter_size,
    )
    await synchronizer.start()
    app.state.synchronizer = synchronizer


async def stop_ledger_sync(app: FastAPI) -> None:
    synchronizer = getattr(app.state, "synchronizer", None)
    if synchronizer is not None:
        await synchronizer.stop()
    chain = getattr(app.state, "chain", None)
    if chain is not None:
        await chain.close()
    app.state.synchronizer = None
    app.state.chain = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    db = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    app.state.chain = None
    app.state.synchronizer = None
    await start_ledger_sync(app, settings, db)
    logger.info("craftsync API started")
    yield
    logger.info("craftsync API shutting down")
    await stop_ledger_sync(app)
    await db.dispose()


app = FastAPI(
    title="craftsync API", version="1.0.0", lifespan=lifespan,
)

# CORS — configured from settings, not hardcoded
settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routes — explicit registration
app.include_router(health.router)
app.include_router(sync_status.router)
app.include_router(crafting.router)
app.include_router(recipes.router)
app.include_router(ingredients.router)
app.include_router(ledger.router)

register_error_handlers(app)
