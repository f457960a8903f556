"""Ingredient Routes — listing plus the administrative create, update and delete.

Invariants:
    - POST on an existing (token_contract, token_id) -> 409 DUPLICATE_KEY
    - PUT and DELETE on an unknown (token_contract, token_id) -> 404
    - DELETE removes the metadata row with the ingredient
    - Listing is paginated and filterable by metadata category and name
"""

import logging

from fastapi import APIRouter, Depends, Path, Query, status

from craftsync.api.dependencies import get_ingredient_store
from craftsync.schemas.catalog import (
    IngredientCreate, IngredientMetadata, IngredientOut, IngredientPage,
)
from craftsync.schemas.crafting import ADDRESS_PATTERN
from craftsync.services.recipe_store import IngredientStore

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/ingredients", tags=["ingredients"])


@router.get("", response_model=IngredientPage)
async def list_ingredients(
    category: str | None = Query(None, max_length=50),
    name: str | None = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    store: IngredientStore = Depends(get_ingredient_store),
):
    rows, total = await store.query(category=category, name=name, page=page, limit=limit)
    return IngredientPage(
        items=[IngredientOut.from_row(row) for row in rows],
        total=total, page=page, limit=limit,
    )


@router.post(
    "", response_model=IngredientOut, status_code=status.HTTP_201_CREATED,
)
async def create_ingredient(
    body: IngredientCreate,
    store: IngredientStore = Depends(get_ingredient_store),
):
    row = await store.create(
        body.token_contract, body.token_id,
        body.metadata.model_dump(exclude_none=True),
    )
    logger.info(
        f"Ingredient {body.metadata.name} created",
        extra={"token_id": body.token_id},
    )
    return IngredientOut.from_row(row)


@router.put("/{token_contract}/{token_id}", response_model=IngredientOut)
async def update_ingredient(
    body: IngredientMetadata,
    token_contract: str = Path(pattern=ADDRESS_PATTERN),
    token_id: int = Path(ge=0),
    store: IngredientStore = Depends(get_ingredient_store),
):
    """Replace an ingredient's metadata."""
    row = await store.update_metadata(
        token_contract, token_id, body.model_dump(exclude_none=True),
    )
    return IngredientOut.from_row(row)


@router.delete("/{token_contract}/{token_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_ingredient(
    token_contract: str = Path(pattern=ADDRESS_PATTERN),
    token_id: int = Path(ge=0),
    store: IngredientStore = Depends(get_ingredient_store),
):
    await store.delete(token_contract, token_id)
    logger.info(f"Ingredient {token_contract}:{token_id} deleted", extra={"token_id": token_id})
