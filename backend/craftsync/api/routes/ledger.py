"""Ledger Routes — live reads from the token and workbench contracts.

Invariants:
    - Read-only: nothing here writes to the store or the ledger
    - No ledger connection -> 503 CHAIN_UNAVAILABLE; failed reads after retries
      -> 503 TRANSIENT_CHAIN_ERROR
"""

from fastapi import APIRouter, Depends, Path

from craftsync.api.dependencies import get_token_ledger, get_workbench_ledger
from craftsync.core.repository_protocols import TokenLedger, WorkbenchLedger
from craftsync.schemas.crafting import ADDRESS_PATTERN
from craftsync.schemas.ledger import (
    ActiveRecipeIdsOut, LedgerRecipeOut, TokenBalanceOut, TokenExistsOut,
    TokenPriceOut, TokenSupplyOut,
)

router = APIRouter(prefix="/api/v1/ledger", tags=["ledger"])


@router.get("/tokens/{token_id}/balance/{account}", response_model=TokenBalanceOut)
async def token_balance(
    token_id: int = Path(ge=0),
    account: str = Path(pattern=ADDRESS_PATTERN),
    ledger: TokenLedger = Depends(get_token_ledger),
):
    balance = await ledger.balance_of(account, token_id)
    return TokenBalanceOut(
        token_id=token_id, account=account, balance=str(balance),
        contract_address=ledger.address,
    )


@router.get("/tokens/{token_id}/price", response_model=TokenPriceOut)
async def token_price(
    token_id: int = Path(ge=0),
    ledger: TokenLedger = Depends(get_token_ledger),
):
    price = await ledger.token_price(token_id)
    return TokenPriceOut(
        token_id=token_id, price_wei=str(price), contract_address=ledger.address,
    )


@router.get("/tokens/{token_id}/supply", response_model=TokenSupplyOut)
async def token_supply(
    token_id: int = Path(ge=0),
    ledger: TokenLedger = Depends(get_token_ledger),
):
    supply = await ledger.total_supply(token_id)
    return TokenSupplyOut(
        token_id=token_id, total_supply=str(supply), contract_address=ledger.address,
    )


@router.get("/tokens/{token_id}/exists", response_model=TokenExistsOut)
async def token_exists(
    token_id: int = Path(ge=0),
    ledger: TokenLedger = Depends(get_token_ledger),
):
    exists = await ledger.token_exists(token_id)
    return TokenExistsOut(
        token_id=token_id, exists=exists, contract_address=ledger.address,
    )


@router.get("/recipes/active", response_model=ActiveRecipeIdsOut)
async def active_recipe_ids(
    ledger: WorkbenchLedger = Depends(get_workbench_ledger),
):
    ids = await ledger.get_active_recipe_ids()
    return ActiveRecipeIdsOut(recipe_ids=ids, count=len(ids))


@router.get("/recipes/{recipe_id}", response_model=LedgerRecipeOut)
async def ledger_recipe(
    recipe_id: int = Path(ge=0),
    ledger: WorkbenchLedger = Depends(get_workbench_ledger),
):
    """Recipe header as the workbench contract reports it right now."""
    view = await ledger.get_recipe(recipe_id)
    return LedgerRecipeOut.from_view(recipe_id, view)
