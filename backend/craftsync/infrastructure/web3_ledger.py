"""Web3 Ledger Clients — read-only contract handles with a polling event feed.

Invariants:
    - Read calls: transient failures retried with exponential backoff and jitter,
      then raised as TransientChainError; reverts are never retried
    - Event feed starts at the block after subscribe() and never replays history
    - A log whose topic or data cannot be decoded is logged and dropped; the poll loop
      itself survives every exception except cancellation
    - Handlers receive decoded LedgerEvent values, never raw web3 AttributeDicts

Design Decisions:
    - Polling eth_getLogs over eth_subscribe: works against plain HTTP RPC endpoints
    - One poller per contract handle, started lazily on first subscribe()
    - Each event ABI gets its own decoder keyed by topic0, so overloaded event
      names (two RecipeCreated shapes) decode independently
    - ±25% jitter on backoff: prevents thundering herd on a shared RPC node
"""

import asyncio
import logging
import random
from collections import defaultdict

from web3 import AsyncWeb3
from web3.exceptions import (
    BadFunctionCallOutput, ContractLogicError, TransactionNotFound,
)

from craftsync.core.domain_types import LedgerEvent
from craftsync.core.errors import TransientChainError
from craftsync.core.repository_protocols import EventHandler
from craftsync.infrastructure.contract_abis import (
    TOKEN_EVENTS, TOKEN_FUNCTIONS, WORKBENCH_EVENTS, WORKBENCH_FUNCTIONS,
    event_signature,
)

logger = logging.getLogger(__name__)

_NON_RETRYABLE = (ContractLogicError, BadFunctionCallOutput)


class RetryPolicy:
    """Bounded exponential backoff for ledger reads."""

    def __init__(
        self, max_retries: int = 2, base_delay_ms: int = 500, max_delay_ms: int = 10_000,
    ):
        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms
        self.max_delay_ms = max_delay_ms

    def backoff(self, attempt: int) -> int:
        """Exponential backoff with ±25% jitter."""
        delay = min(self.max_delay_ms, (2 ** attempt) * self.base_delay_ms)
        return int(delay * random.uniform(0.75, 1.25))  # nosec B311


class Web3ContractClient:
    """Read-only handle to one contract: view calls, tx lookup, event feed."""

    function_abi: list[dict] = []
    event_abi: list[dict] = []

    def __init__(
        self,
        w3: AsyncWeb3,
        address: str,
        poll_interval: float = 2.0,
        retry: RetryPolicy | None = None,
    ):
        self.w3 = w3
        self.address = AsyncWeb3.to_checksum_address(address)
        self.contract = w3.eth.contract(address=self.address, abi=self.function_abi)
        self.poll_interval = poll_interval
        self.retry = retry or RetryPolicy()
        self._handlers: dict[str, list[EventHandler]] = defaultdict(list)
        self._poll_task: asyncio.Task | None = None
        self._next_block: int | None = None
        self._decoders = {}
        for abi in self.event_abi:
            topic = AsyncWeb3.to_hex(AsyncWeb3.keccak(text=event_signature(abi)))
            single = w3.eth.contract(address=self.address, abi=[abi])
            self._decoders[topic] = getattr(single.events, abi["name"])()

    # ─── Event feed ──────────────────────────────────────────────

    def subscribe(self, event_name: str, handler: EventHandler) -> None:
        self._handlers[event_name].append(handler)
        if self._poll_task is None or self._poll_task.done():
            self._poll_task = asyncio.create_task(
                self._poll_loop(), name=f"ledger-poll-{self.address}",
            )

    def unsubscribe_all(self) -> None:
        self._handlers.clear()
        if self._poll_task is not None:
            self._poll_task.cancel()
            self._poll_task = None
        self._next_block = None

    async def _poll_loop(self) -> None:
        while True:
            try:
                await self._poll_once()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.warning(f"Log poll failed for {self.address}: {e}")
            await asyncio.sleep(self.poll_interval)

    async def _poll_once(self) -> None:
        latest = await self.w3.eth.block_number
        if self._next_block is None:
            self._next_block = latest + 1
            return
        if latest < self._next_block:
            return
        logs = await self.w3.eth.get_logs({
            "address": self.address,
            "fromBlock": self._next_block,
            "toBlock": latest,
        })
        for log in logs:
            event = self.decode_log(log)
            if event is not None:
                await self._dispatch(event)
        self._next_block = latest + 1

    def decode_log(self, log) -> LedgerEvent | None:
        topics = log.get("topics") or []
        if not topics:
            return None
        decoder = self._decoders.get(AsyncWeb3.to_hex(topics[0]))
        if decoder is None:
            return None
        try:
            data = decoder.process_log(log)
        except Exception as e:
            logger.warning(
                f"Undecodable log from {self.address}: {e}",
                extra={"tx_hash": AsyncWeb3.to_hex(log.get("transactionHash") or b"")},
            )
            return None
        return LedgerEvent(
            name=data["event"],
            args=dict(data["args"]),
            address=data["address"],
            tx_hash=AsyncWeb3.to_hex(data["transactionHash"]),
            block_number=data["blockNumber"],
            log_index=data["logIndex"],
        )

    async def _dispatch(self, event: LedgerEvent) -> None:
        for handler in list(self._handlers.get(event.name, ())):
            try:
                await handler(event)
            except Exception as e:
                logger.error(
                    f"Event handler failed: {e}", exc_info=True,
                    extra={"event_name": event.name, "tx_hash": event.tx_hash},
                )

    # ─── Reads ───────────────────────────────────────────────────

    async def call(self, function_name: str, *args):
        """Call a view function with bounded retry."""
        fn = getattr(self.contract.functions, function_name)
        return await self._with_retry(
            function_name, lambda: fn(*args).call(),
        )

    async def get_transaction(self, tx_hash: str) -> dict | None:
        try:
            tx = await self._with_retry(
                "get_transaction", lambda: self.w3.eth.get_transaction(tx_hash),
            )
        except TransientChainError as e:
            if isinstance(e.__cause__, TransactionNotFound):
                return None
            raise
        return dict(tx)

    async def _with_retry(self, operation: str, make_call):
        for attempt in range(self.retry.max_retries + 1):
            try:
                return await make_call()
            except (*_NON_RETRYABLE, TransactionNotFound) as e:
                raise TransientChainError(str(e), operation) from e
            except Exception as e:
                if attempt >= self.retry.max_retries:
                    raise TransientChainError(
                        f"failed after {self.retry.max_retries} retries: {e}",
                        operation,
                    ) from e
                delay = self.retry.backoff(attempt)
                logger.warning(
                    f"Ledger {operation} failed, retry after {delay}ms: {e}",
                    extra={"attempt": attempt + 1},
                )
                await asyncio.sleep(delay / 1000)

    async def close(self) -> None:
        self.unsubscribe_all()


class TokenContractClient(Web3ContractClient):
    """ERC1155 game items: balances, prices, names, existence."""

    function_abi = TOKEN_FUNCTIONS
    event_abi = TOKEN_EVENTS

    async def balance_of(self, account: str, token_id: int) -> int:
        return int(await self.call(
            "balanceOf", AsyncWeb3.to_checksum_address(account), token_id,
        ))

    async def token_price(self, token_id: int) -> int:
        return int(await self.call("tokenPrices", token_id))

    async def token_name(self, token_id: int) -> str:
        return await self.call("tokenNames", token_id)

    async def token_uri(self, token_id: int) -> str:
        return await self.call("uri", token_id)

    async def token_exists(self, token_id: int) -> bool:
        return bool(await self.call("exists", token_id))

    async def total_supply(self, token_id: int) -> int:
        return int(await self.call("totalSupply", token_id))


class WorkbenchContractClient(Web3ContractClient):
    """Workbench recipes: recipe views and createRecipe calldata decoding."""

    function_abi = WORKBENCH_FUNCTIONS
    event_abi = WORKBENCH_EVENTS

    async def get_recipe(self, recipe_id: int) -> dict:
        output_id, output_amount, exact, active, name, count = await self.call(
            "getRecipe", recipe_id,
        )
        return {
            "outputTokenId": int(output_id),
            "outputAmount": int(output_amount),
            "requiresExactPattern": bool(exact),
            "active": bool(active),
            "name": name,
            "ingredientCount": int(count),
        }

    async def get_active_recipe_ids(self) -> list[int]:
        return [int(i) for i in await self.call("getActiveRecipeIds")]

    def decode_create_recipe(self, tx_input) -> dict:
        """Decode createRecipe calldata; ValueError when it is some other call."""
        fn, params = self.contract.decode_function_input(tx_input)
        if fn.fn_name != "createRecipe":
            raise ValueError(f"transaction calls {fn.fn_name}, not createRecipe")
        params = dict(params)
        params["ingredients"] = [
            (i["tokenId"], i["amount"], i["position"]) if isinstance(i, dict) else tuple(i)
            for i in params["ingredients"]
        ]
        return params
