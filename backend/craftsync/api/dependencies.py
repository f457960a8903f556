"""Route Dependencies — stores and services built per request over shared state.

Invariants:
    - The session manager comes from get_db_manager(); tests override that one seam
    - The synchronizer and chain manager live on app.state, set by the lifespan;
      either may be None when the ledger is not configured
    - Ledger handles resolve through the chain manager, so an absent or
      uninitialized connection surfaces as ChainUnavailableError
"""

from fastapi import Depends, Request

from craftsync.core.errors import ChainUnavailableError
from craftsync.core.repository_protocols import TokenLedger, WorkbenchLedger
from craftsync.infrastructure.database import DatabaseSessionManager, get_db_manager
from craftsync.services.crafting_service import CraftingService
from craftsync.services.recipe_store import IngredientStore, RecipeStore


def get_recipe_store(
    db: DatabaseSessionManager = Depends(get_db_manager),
) -> RecipeStore:
    return RecipeStore(db)


def get_ingredient_store(
    db: DatabaseSessionManager = Depends(get_db_manager),
) -> IngredientStore:
    return IngredientStore(db)


def get_crafting_service(
    recipes: RecipeStore = Depends(get_recipe_store),
    ingredients: IngredientStore = Depends(get_ingredient_store),
) -> CraftingService:
    return CraftingService(recipes, ingredients)


def get_synchronizer(request: Request):
    return getattr(request.app.state, "synchronizer", None)


def get_chain(request: Request):
    return getattr(request.app.state, "chain", None)


def get_token_ledger(chain=Depends(get_chain)) -> TokenLedger:
    """Token contract handle; ChainUnavailableError (503) when not connected."""
    if chain is None:
        raise ChainUnavailableError("Ledger connection is not configured")
    return chain.token_contract


def get_workbench_ledger(chain=Depends(get_chain)) -> WorkbenchLedger:
    if chain is None:
        raise ChainUnavailableError("Ledger connection is not configured")
    return chain.workbench_contract
