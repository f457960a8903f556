"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - All IO operations accessed through Protocol types
    - Implementations provided by shell via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, fakes in tests need no inheritance
    - Async in Protocol: boundary methods do IO; the pure matching and projection
      functions that consume their results are never async themselves
"""

from typing import Awaitable, Callable, Protocol

from craftsync.core.domain_types import LedgerEvent, RecipeSpec

EventHandler = Callable[[LedgerEvent], Awaitable[None]]


class LedgerClient(Protocol):
    """Read-only view of the ledger plus its event feed — implemented by shell."""
    address: str

    def subscribe(self, event_name: str, handler: EventHandler) -> None: ...
    def unsubscribe_all(self) -> None: ...
    async def get_transaction(self, tx_hash: str) -> dict | None: ...
    async def close(self) -> None: ...


class TokenLedger(LedgerClient, Protocol):
    """ERC1155 game-items contract views."""
    async def balance_of(self, account: str, token_id: int) -> int: ...
    async def token_price(self, token_id: int) -> int: ...
    async def token_name(self, token_id: int) -> str: ...
    async def token_uri(self, token_id: int) -> str: ...
    async def token_exists(self, token_id: int) -> bool: ...
    async def total_supply(self, token_id: int) -> int: ...


class WorkbenchLedger(LedgerClient, Protocol):
    """Workbench (recipe) contract views."""
    async def get_recipe(self, recipe_id: int) -> dict: ...
    async def get_active_recipe_ids(self) -> list[int]: ...
    def decode_create_recipe(self, tx_input: str) -> dict: ...


class RecipeRepository(Protocol):
    """Contract for recipe persistence — implemented by shell."""
    async def exists(self, ledger_recipe_id: str) -> bool: ...
    async def insert_if_absent(self, recipe: RecipeSpec, **listing: object) -> bool: ...
    async def list_specs(self, active_only: bool = False) -> list[RecipeSpec]: ...


class IngredientRepository(Protocol):
    """Contract for ingredient persistence — implemented by shell."""
    async def exists(self, token_contract: str, token_id: int) -> bool: ...
    async def ensure(
        self, token_contract: str, token_id: int, metadata: dict,
    ) -> bool: ...
