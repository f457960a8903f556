"""Chain Connection Manager — one validated, read-only ledger connection per process.

Invariants:
    - initialize() runs at most once successfully; later calls log and return
    - A failed initialize() leaves the manager un-initialized and raises ChainUnavailableError
    - Every accessor raises ChainUnavailableError before initialization, never None
    - close() releases the transport and clears all handles; safe to call repeatedly

Design Decisions:
    - Explicit instance created in the app lifespan and injected into dependents,
      not module-level global state
    - connect/handle_factory parameters: production uses web3.py, tests pass fakes
    - initialize() guarded by an asyncio.Lock: concurrent boot calls build one transport
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable

from web3 import AsyncWeb3, AsyncHTTPProvider

from craftsync.core.errors import ChainUnavailableError
from craftsync.infrastructure.web3_ledger import (
    RetryPolicy, TokenContractClient, WorkbenchContractClient,
)

logger = logging.getLogger(__name__)

Connector = Callable[[str], Awaitable[Any]]
HandleFactory = Callable[[Any, str, str], Any]

TOKEN = "token"
WORKBENCH = "workbench"


async def connect_web3(rpc_endpoint: str) -> AsyncWeb3:
    """Open an HTTP JSON-RPC transport and verify it answers."""
    w3 = AsyncWeb3(AsyncHTTPProvider(rpc_endpoint))
    chain_id = await w3.eth.chain_id
    logger.info(f"Connected to chain {chain_id}")
    return w3


def web3_handle_factory(
    poll_interval: float = 2.0, retry: RetryPolicy | None = None,
) -> HandleFactory:
    def build(transport: AsyncWeb3, kind: str, address: str):
        cls = TokenContractClient if kind == TOKEN else WorkbenchContractClient
        return cls(transport, address, poll_interval=poll_interval, retry=retry)
    return build


class ChainConnectionManager:
    """Owns the ledger transport and the contract handles built on it."""

    def __init__(
        self,
        connect: Connector = connect_web3,
        handle_factory: HandleFactory | None = None,
    ):
        self._connect = connect
        self._handle_factory = handle_factory or web3_handle_factory()
        self._lock = asyncio.Lock()
        self._transport = None
        self._token = None
        self._workbench = None
        self._initialized = False
        self.rpc_endpoint: str | None = None

    async def initialize(
        self,
        rpc_endpoint: str,
        primary_token_contract: str,
        secondary_contract: str | None = None,
    ) -> None:
        async with self._lock:
            if self._initialized:
                logger.info("Chain connection already initialized")
                return
            logger.info(
                f"Initializing chain connection: rpc={rpc_endpoint} "
                f"token={primary_token_contract} workbench={secondary_contract}",
            )
            try:
                transport = await self._connect(rpc_endpoint)
                token = self._handle_factory(transport, TOKEN, primary_token_contract)
                workbench = None
                if secondary_contract:
                    workbench = self._handle_factory(
                        transport, WORKBENCH, secondary_contract,
                    )
            except Exception as e:
                logger.error(f"Chain initialization failed: {e}")
                raise ChainUnavailableError(
                    f"Chain initialization failed: {e}",
                ) from e

            self._transport = transport
            self._token = token
            self._workbench = workbench
            self.rpc_endpoint = rpc_endpoint
            self._initialized = True
            logger.info("Chain connection initialized")

    def is_ready(self) -> bool:
        return self._initialized and self._transport is not None

    @property
    def transport(self):
        if not self.is_ready():
            raise ChainUnavailableError(
                "Chain transport not initialized. Call initialize() first.",
            )
        return self._transport

    @property
    def token_contract(self):
        if not self.is_ready() or self._token is None:
            raise ChainUnavailableError(
                "Token contract not initialized. Call initialize() first.",
            )
        return self._token

    @property
    def workbench_contract(self):
        if not self.is_ready() or self._workbench is None:
            raise ChainUnavailableError(
                "Workbench contract not initialized. "
                "Call initialize() with a workbench contract address first.",
            )
        return self._workbench

    @property
    def has_workbench_contract(self) -> bool:
        return self.is_ready() and self._workbench is not None

    async def close(self) -> None:
        async with self._lock:
            handles = [h for h in (self._token, self._workbench) if h is not None]
            transport = self._transport
            self._token = None
            self._workbench = None
            self._transport = None
            self._initialized = False
            for handle in handles:
                await handle.close()
            if transport is not None:
                provider = getattr(transport, "provider", None)
                if provider is not None:
                    await provider.disconnect()
                logger.info("Chain connection closed")
