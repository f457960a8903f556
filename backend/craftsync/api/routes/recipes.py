"""Recipe Routes — paginated access to the projected recipes plus admin writes.

Invariants:
    - Recipes normally enter the store through the synchronizer; POST is the
      administrative path and an existing ledger id -> 409 DUPLICATE_KEY
    - `active` is the only field PATCH can change
    - Unknown ledger id -> 404 RESOURCE_NOT_FOUND envelope
"""

import logging

from fastapi import APIRouter, Depends, Query, status

from craftsync.api.dependencies import get_recipe_store
from craftsync.schemas.catalog import (
    RecipeActiveUpdate, RecipeCreate, RecipeOut, RecipePage,
)
from craftsync.services.recipe_store import RecipeFilters, RecipeStore

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/recipes", tags=["recipes"])


@router.get("", response_model=RecipePage)
async def list_recipes(
    ledger_recipe_id: str | None = Query(None, max_length=78),
    output_token_id: int | None = Query(None, ge=0),
    output_token_contract: str | None = None,
    category: str | None = Query(None, max_length=50),
    name: str | None = Query(None, max_length=100),
    difficulty: int | None = Query(None, ge=1, le=10),
    active: bool | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    store: RecipeStore = Depends(get_recipe_store),
):
    filters = RecipeFilters(
        ledger_recipe_id=ledger_recipe_id,
        output_token_id=output_token_id,
        output_token_contract=output_token_contract,
        category=category,
        name=name,
        difficulty=difficulty,
        active=active,
    )
    rows, total = await store.query(filters, page=page, limit=limit)
    return RecipePage.build(rows, total, page, limit)


@router.post("", response_model=RecipeOut, status_code=status.HTTP_201_CREATED)
async def create_recipe(
    body: RecipeCreate,
    store: RecipeStore = Depends(get_recipe_store),
):
    row = await store.create(body.to_spec(), **body.listing())
    logger.info(
        f"Recipe {body.name} created", extra={"recipe_id": body.ledger_recipe_id},
    )
    return RecipeOut.model_validate(row)


@router.get("/{ledger_recipe_id}", response_model=RecipeOut)
async def get_recipe(
    ledger_recipe_id: str,
    store: RecipeStore = Depends(get_recipe_store),
):
    return await store.get(ledger_recipe_id)


@router.patch("/{ledger_recipe_id}", response_model=RecipeOut)
async def set_recipe_active(
    ledger_recipe_id: str,
    body: RecipeActiveUpdate,
    store: RecipeStore = Depends(get_recipe_store),
):
    row = await store.set_active(ledger_recipe_id, body.active)
    logger.info(
        f"Recipe active={body.active}", extra={"recipe_id": ledger_recipe_id},
    )
    return RecipeOut.model_validate(row)
