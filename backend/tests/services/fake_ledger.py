"""Fake ledger — in-process stand-in for the web3 contract handles.

Records subscriptions, lets tests emit events through them, and serves
token metadata and transactions from plain dicts.
"""

from collections import defaultdict

from craftsync.core.domain_types import LedgerEvent, ZERO_ADDRESS
from craftsync.core.errors import ChainUnavailableError, TransientChainError

TOKEN_ADDRESS = "0x1111111111111111111111111111111111111111"
WORKBENCH_ADDRESS = "0x2222222222222222222222222222222222222222"
PLAYER = "0x3333333333333333333333333333333333333333"


class FakeLedger:
    def __init__(self, address: str = TOKEN_ADDRESS):
        self.address = address
        self.handlers = defaultdict(list)
        self.names: dict[int, str] = {}
        self.prices: dict[int, int] = {}
        self.balances: dict[tuple[str, int], int] = {}
        self.supplies: dict[int, int] = {}
        self.recipes: dict[int, dict] = {}
        self.transactions: dict[str, dict] = {}
        self.create_calls: dict[str, dict] = {}
        self.fail_reads: Exception | None = None
        self.closed = False

    # Event feed
    def subscribe(self, event_name, handler):
        self.handlers[event_name].append(handler)

    def unsubscribe_all(self):
        self.handlers.clear()

    async def emit(self, event: LedgerEvent):
        for handler in list(self.handlers.get(event.name, ())):
            await handler(event)

    # Token reads
    async def token_name(self, token_id):
        self._maybe_fail()
        return self.names.get(token_id, "")

    async def token_uri(self, token_id):
        self._maybe_fail()
        return f"ipfs://items/{token_id}.json"

    async def token_price(self, token_id):
        self._maybe_fail()
        return self.prices.get(token_id, 0)

    async def token_exists(self, token_id):
        self._maybe_fail()
        return token_id in self.names

    async def balance_of(self, account, token_id):
        self._maybe_fail()
        return self.balances.get((account.lower(), token_id), 0)

    async def total_supply(self, token_id):
        self._maybe_fail()
        return self.supplies.get(token_id, 0)

    # Workbench reads
    async def get_recipe(self, recipe_id):
        self._maybe_fail()
        if recipe_id not in self.recipes:
            raise TransientChainError("execution reverted: no such recipe", "getRecipe")
        return self.recipes[recipe_id]

    async def get_active_recipe_ids(self):
        self._maybe_fail()
        return [rid for rid, view in self.recipes.items() if view["active"]]

    async def get_transaction(self, tx_hash):
        self._maybe_fail()
        return self.transactions.get(tx_hash)

    def decode_create_recipe(self, tx_input):
        if tx_input not in self.create_calls:
            raise ValueError("unknown function selector")
        return self.create_calls[tx_input]

    async def close(self):
        self.closed = True
        self.unsubscribe_all()

    def _maybe_fail(self):
        if self.fail_reads is not None:
            raise self.fail_reads


class FakeChain:
    """Connected chain manager holding fake contract handles."""

    def __init__(self, token: FakeLedger, workbench: FakeLedger | None = None):
        self.token_contract = token
        self._workbench = workbench

    def is_ready(self):
        return True

    @property
    def workbench_contract(self):
        if self._workbench is None:
            raise ChainUnavailableError("Workbench contract not initialized.")
        return self._workbench


def recipe_created(
    recipe_id, output_id, ingredient_ids, positions, amounts,
    tx_hash="0xaa", block_number=10, log_index=0,
) -> LedgerEvent:
    return LedgerEvent(
        name="RecipeCreated",
        args={
            "recipeId": recipe_id,
            "resultIngredientId": output_id,
            "ingredients": ingredient_ids,
            "positions": positions,
            "amounts": amounts,
        },
        address=WORKBENCH_ADDRESS,
        tx_hash=tx_hash,
        block_number=block_number,
        log_index=log_index,
    )


def compact_recipe_created(
    recipe_id, name, output_id, output_amount=1, tx_hash="0xbb",
) -> LedgerEvent:
    return LedgerEvent(
        name="RecipeCreated",
        args={
            "recipeId": recipe_id,
            "name": name,
            "outputTokenId": output_id,
            "outputAmount": output_amount,
        },
        address=WORKBENCH_ADDRESS,
        tx_hash=tx_hash,
        block_number=11,
        log_index=0,
    )


def transfer_batch(ids, values, sender=ZERO_ADDRESS, tx_hash="0xcc") -> LedgerEvent:
    return LedgerEvent(
        name="TransferBatch",
        args={
            "operator": PLAYER, "from": sender, "to": PLAYER,
            "ids": ids, "values": values,
        },
        address=TOKEN_ADDRESS,
        tx_hash=tx_hash,
        block_number=12,
        log_index=1,
    )


def transfer_single(token_id, value, sender=ZERO_ADDRESS, tx_hash="0xdd") -> LedgerEvent:
    return LedgerEvent(
        name="TransferSingle",
        args={
            "operator": PLAYER, "from": sender, "to": PLAYER,
            "id": token_id, "value": value,
        },
        address=TOKEN_ADDRESS,
        tx_hash=tx_hash,
        block_number=13,
        log_index=2,
    )
