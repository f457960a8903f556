"""Event Synchronizer — projects ledger events into the recipe/ingredient store.

Invariants:
    - States: STOPPED <-> LISTENING; start()/stop() are no-ops in the state they lead to
    - Transport callbacks only enqueue; worker tasks do the projection
    - One natural key -> at most one row, under duplicate, reordered or concurrent delivery
    - A failing event is logged, counted and dead-lettered; workers never stop
    - Unresolvable context (missing tx, undecodable calldata) skips the event

Design Decisions:
    - asyncio.Queue between transport and workers: ingestion never waits on the
      database, and a full queue applies backpressure to the poller
    - Handlers share no lock: the store's unique indexes resolve races
    - Dead letters kept in a bounded deque and exposed through status(); there is
      no automatic replay of them
"""

import asyncio
import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone

from craftsync.core.domain_types import (
    LedgerEvent, LedgerEventName, ListenerState, SyncOutcome,
)
from craftsync.core.errors import CraftSyncError, DecodeError
from craftsync.core.event_projection import (
    event_context, has_full_recipe_payload, ledger_recipe_id,
    minted_token_ids, recipe_from_create_call, recipe_from_event,
)
from craftsync.core.repository_protocols import (
    IngredientRepository, RecipeRepository, TokenLedger, WorkbenchLedger,
)

logger = logging.getLogger(__name__)


@dataclass
class SyncStats:
    """Operational counters; read by the status endpoint."""
    received: int = 0
    processed: int = 0
    created: int = 0
    duplicates: int = 0
    ignored: int = 0
    skipped: int = 0
    last_event: dict | None = None
    dead_letters: deque = field(default_factory=lambda: deque(maxlen=100))


class EventSynchronizer:
    """Subscribes to ledger events and keeps the store's projection current."""

    def __init__(
        self,
        recipes: RecipeRepository,
        ingredients: IngredientRepository,
        token_ledger: TokenLedger,
        workbench_ledger: WorkbenchLedger | None = None,
        worker_count: int = 4,
        queue_size: int = 1000,
        dead_letter_size: int = 100,
        drain_timeout: float = 5.0,
    ):
        self.recipes = recipes
        self.ingredients = ingredients
        self.token_ledger = token_ledger
        self.workbench_ledger = workbench_ledger
        self.worker_count = max(1, worker_count)
        self.drain_timeout = drain_timeout
        self.state = ListenerState.STOPPED
        self.stats = SyncStats(dead_letters=deque(maxlen=dead_letter_size))
        self._queue: asyncio.Queue[LedgerEvent] = asyncio.Queue(maxsize=queue_size)
        self._workers: list[asyncio.Task] = []

    # ─── Lifecycle ───────────────────────────────────────────────

    async def start(self) -> None:
        if self.state == ListenerState.LISTENING:
            logger.info("Event synchronizer already listening")
            return
        self._workers = [
            asyncio.create_task(self._worker(), name=f"sync-worker-{i}")
            for i in range(self.worker_count)
        ]
        if self.workbench_ledger is not None:
            self.workbench_ledger.subscribe(
                LedgerEventName.RECIPE_CREATED.value, self.enqueue,
            )
        else:
            logger.warning("No workbench contract configured; recipe events not synced")
        self.token_ledger.subscribe(LedgerEventName.TRANSFER_BATCH.value, self.enqueue)
        self.token_ledger.subscribe(LedgerEventName.TRANSFER_SINGLE.value, self.enqueue)
        self.state = ListenerState.LISTENING
        logger.info(f"Event synchronizer listening with {self.worker_count} workers")

    async def stop(self) -> None:
        if self.state == ListenerState.STOPPED:
            logger.info("Event synchronizer not running")
            return
        self.token_ledger.unsubscribe_all()
        if self.workbench_ledger is not None:
            self.workbench_ledger.unsubscribe_all()
        try:
            await asyncio.wait_for(self._queue.join(), timeout=self.drain_timeout)
        except asyncio.TimeoutError:
            logger.warning(
                f"Stopping with {self._queue.qsize()} events still queued",
            )
        for task in self._workers:
            task.cancel()
        await asyncio.gather(*self._workers, return_exceptions=True)
        self._workers = []
        self.state = ListenerState.STOPPED
        logger.info("Event synchronizer stopped")

    def is_active(self) -> bool:
        return self.state == ListenerState.LISTENING

    async def enqueue(self, event: LedgerEvent) -> None:
        """Transport callback: hand the event to the workers."""
        self.stats.received += 1
        await self._queue.put(event)

    async def drain(self) -> None:
        """Wait until every queued event has been handled."""
        await self._queue.join()

    async def _worker(self) -> None:
        while True:
            event = await self._queue.get()
            try:
                await self.handle(event)
            finally:
                self._queue.task_done()

    def status(self) -> dict:
        return {
            "state": self.state.value,
            "queue_depth": self._queue.qsize(),
            "received": self.stats.received,
            "processed": self.stats.processed,
            "created": self.stats.created,
            "duplicates": self.stats.duplicates,
            "ignored": self.stats.ignored,
            "skipped": self.stats.skipped,
            "last_event": self.stats.last_event,
            "dead_letters": list(self.stats.dead_letters),
        }

    # ─── Processing ──────────────────────────────────────────────

    async def handle(self, event: LedgerEvent) -> SyncOutcome:
        """Project one event. Never raises; failures become SKIPPED."""
        log_extra = {
            "event_name": event.name,
            "tx_hash": event.tx_hash,
            "block_number": event.block_number,
        }
        try:
            outcome = await self._route(event)
        except DecodeError as e:
            logger.warning(f"Unresolved event skipped: {e.message}", extra=log_extra)
            outcome = self._dead_letter(event, e.code, e.message)
        except CraftSyncError as e:
            logger.error(f"Event processing failed: {e.message}", extra=log_extra)
            outcome = self._dead_letter(event, e.code, e.message)
        except Exception as e:
            logger.error(
                f"Unexpected error processing event: {e}", exc_info=True,
                extra=log_extra,
            )
            outcome = self._dead_letter(event, "INTERNAL_ERROR", str(e))
        self._record(event, outcome)
        return outcome

    async def _route(self, event: LedgerEvent) -> SyncOutcome:
        if event.name == LedgerEventName.RECIPE_CREATED:
            return await self.on_recipe_created(event)
        if event.name in (
            LedgerEventName.TRANSFER_BATCH, LedgerEventName.TRANSFER_SINGLE,
        ):
            return await self.on_transfer(event)
        return SyncOutcome.IGNORED

    async def on_recipe_created(self, event: LedgerEvent) -> SyncOutcome:
        recipe_id = ledger_recipe_id(event)
        if await self.recipes.exists(recipe_id):
            logger.info("Recipe already synced", extra={"recipe_id": recipe_id})
            return SyncOutcome.DUPLICATE

        if has_full_recipe_payload(event):
            recipe = recipe_from_event(event)
        else:
            recipe = await self._recover_from_transaction(event)

        created = await self.recipes.insert_if_absent(
            recipe,
            description=f"Recipe created from ledger event {recipe_id}",
            category="blockchain",
        )
        if not created:
            return SyncOutcome.DUPLICATE
        logger.info(
            f"Created recipe {recipe.name} with {len(recipe.requirements)} ingredients",
            extra={"recipe_id": recipe_id, "block_number": event.block_number},
        )
        return SyncOutcome.CREATED

    async def _recover_from_transaction(self, event: LedgerEvent):
        """Compact payloads: rebuild the ingredient list from createRecipe calldata."""
        ctx = event_context(event)
        if self.workbench_ledger is None or not event.tx_hash:
            raise DecodeError("no transaction to recover ingredients from", ctx)
        tx = await self.workbench_ledger.get_transaction(event.tx_hash)
        if tx is None:
            raise DecodeError(f"transaction {event.tx_hash} not found", ctx)
        try:
            call_args = self.workbench_ledger.decode_create_recipe(tx.get("input"))
        except Exception as e:
            raise DecodeError(f"createRecipe calldata not decodable: {e}", ctx) from e
        return recipe_from_create_call(event, call_args)

    async def on_transfer(self, event: LedgerEvent) -> SyncOutcome:
        token_ids = minted_token_ids(event)
        if not token_ids:
            return SyncOutcome.IGNORED
        created = 0
        for token_id in token_ids:
            if await self.ingredients.exists(event.address, token_id):
                continue
            metadata = await self._token_metadata(token_id)
            if await self.ingredients.ensure(event.address, token_id, metadata):
                created += 1
                logger.info(
                    f"Registered minted token {token_id}",
                    extra={"token_id": token_id, "tx_hash": event.tx_hash},
                )
        return SyncOutcome.CREATED if created else SyncOutcome.DUPLICATE

    async def _token_metadata(self, token_id: int) -> dict:
        name, uri, price = await asyncio.gather(
            self.token_ledger.token_name(token_id),
            self.token_ledger.token_uri(token_id),
            self.token_ledger.token_price(token_id),
        )
        return {
            "name": name or f"Token {token_id}",
            "uri": uri,
            "price_wei": str(price),
        }

    # ─── Bookkeeping ─────────────────────────────────────────────

    def _dead_letter(self, event: LedgerEvent, code: str, reason: str) -> SyncOutcome:
        self.stats.dead_letters.append({
            "event_name": event.name,
            "tx_hash": event.tx_hash,
            "block_number": event.block_number,
            "log_index": event.log_index,
            "error_code": code,
            "reason": reason,
            "failed_at": datetime.now(timezone.utc).isoformat(),
        })
        return SyncOutcome.SKIPPED

    def _record(self, event: LedgerEvent, outcome: SyncOutcome) -> None:
        self.stats.processed += 1
        if outcome == SyncOutcome.CREATED:
            self.stats.created += 1
        elif outcome == SyncOutcome.DUPLICATE:
            self.stats.duplicates += 1
        elif outcome == SyncOutcome.IGNORED:
            self.stats.ignored += 1
        else:
            self.stats.skipped += 1
        self.stats.last_event = {
            "event_name": event.name,
            "tx_hash": event.tx_hash,
            "block_number": event.block_number,
            "outcome": outcome.value,
            "processed_at": datetime.now(timezone.utc).isoformat(),
        }
